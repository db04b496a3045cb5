"""
Module: engine.services

Bundle of per-render collaborators shared by the layout pass, the render
pass and plugins: plugin registry, scope resolver, fonts, resource caches,
diagnostics and the template's style layers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from bandpdf.engine.diagnostics import DiagnosticsCollector
from bandpdf.engine.layout.binding import PlaceholderResolver, ScopeResolver
from bandpdf.engine.layout.style import ResolvedStyle, resolve_style
from bandpdf.engine.output.fonts import FontRegistry
from bandpdf.engine.resources import BarcodeCache, ChartCache, ImageCache
from bandpdf.plugins.registry import PluginRegistry, default_registry


@dataclass(frozen=True)
class EngineServices:
    """
    Collaborators for one render request.

    Caches may be shared across requests by passing the same instances;
    everything else is per request.
    """

    registry: PluginRegistry = field(default_factory=default_registry)
    resolver: ScopeResolver = field(default_factory=PlaceholderResolver)
    fonts: FontRegistry = field(default_factory=FontRegistry)
    images: ImageCache = field(default_factory=ImageCache)
    barcodes: BarcodeCache = field(default_factory=BarcodeCache)
    charts: ChartCache = field(default_factory=ChartCache)
    diagnostics: DiagnosticsCollector = field(default_factory=DiagnosticsCollector)
    styles: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)
    default_style: Mapping[str, Any] = field(default_factory=dict)

    def style_for(self, element: Any) -> ResolvedStyle:
        return resolve_style(element, self.styles, self.default_style)
