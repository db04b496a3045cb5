"""
Module: engine.config

Purpose:
    Options for a render request. Immutable configuration with validation
    on construction.

Key Classes:
    - RenderOptions: Per-request options for render_document

Dependencies:
    - dataclasses (std)

Used By:
    - engine.controller: render_document
    - cli: Command line options
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from bandpdf.engine.layout.binding import ScopeResolver
from bandpdf.engine.resources.barcodes import BarcodeCache
from bandpdf.engine.resources.charts import ChartCache
from bandpdf.engine.resources.images import ImageCache
from bandpdf.engine.resources.loader import DEFAULT_FETCH_TIMEOUT
from bandpdf.plugins.registry import PluginRegistry

LAST_PAGE_FOOTER_SCOPES = ("document", "section")


@dataclass(frozen=True)
class RenderOptions:
    """
    Options for one render request (immutable).

    Attributes:
        fetch_timeout: Seconds allowed per remote/file fetch
        prefetch_workers: Threads used to prefetch images before layout
        warn_duplicate_anchors: Report duplicate anchor ids as diagnostics
        validate_data: Check data against the template's dataSchema
        last_page_footer_scope: "document" (final page only) or "section"
            (final page of each section)
        resolver: Scope resolver (placeholder resolver when None)
        registry: Plugin registry (built-in plugins when None)
        image_cache / barcode_cache / chart_cache: Caches to share across
            requests (fresh per request when None)
        base_dir: Directory relative image/font paths resolve against

    Example:
        >>> options = RenderOptions(fetch_timeout=5, warn_duplicate_anchors=True)
        >>> result = render_document("invoice.json", data, options)
    """

    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT
    prefetch_workers: int = 4
    warn_duplicate_anchors: bool = False
    validate_data: bool = True
    last_page_footer_scope: str = "document"
    resolver: Optional[ScopeResolver] = None
    registry: Optional[PluginRegistry] = None
    image_cache: Optional[ImageCache] = None
    barcode_cache: Optional[BarcodeCache] = None
    chart_cache: Optional[ChartCache] = None
    base_dir: Optional[Path] = None

    def __post_init__(self) -> None:
        """Validate options on construction."""
        if self.fetch_timeout <= 0:
            raise ValueError(f"fetch_timeout must be positive: {self.fetch_timeout}")
        if self.prefetch_workers < 1:
            raise ValueError(f"prefetch_workers must be at least 1: {self.prefetch_workers}")
        if self.last_page_footer_scope not in LAST_PAGE_FOOTER_SCOPES:
            raise ValueError(
                f"last_page_footer_scope must be one of {LAST_PAGE_FOOTER_SCOPES}: "
                f"{self.last_page_footer_scope!r}"
            )
