"""
Module: engine.layout.measure

Purpose:
    Measure band instances and their elements.

    - Fixed-height bands use their declared height; elements are not measured.
    - autoHeight bands take max(band.height, element.y + measured + padding)
      over visible elements.
    - Plugin results are sanitised: negative or non-finite heights clamp to
      0 with a contract diagnostic.
    - Resource failures fall back to the element's declared height with a
      resource diagnostic; the render pass draws a placeholder.

Key Classes:
    - BandMeasurer: Element preparation, band measurement, splitting,
      nested band stacks (frames)
    - PreparedElement / MeasuredBand / StackEntry

Used By:
    - engine.layout.paginator
    - engine.output.renderer (element preparation, frame stacks)
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from bandpdf.core.models import Band, Element, Section
from bandpdf.engine.diagnostics import DiagnosticKind
from bandpdf.engine.resources.errors import ResourceError
from bandpdf.engine.services import EngineServices
from bandpdf.plugins.base import ContainerDepthError, ElementPlugin, MeasureContext
from .expander import BandInstance, expand_section
from .style import ResolvedStyle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreparedElement:
    """An element with its plugin, resolved props and resolved style."""

    element: Element
    plugin: ElementPlugin
    props: Dict[str, Any]
    style: ResolvedStyle


@dataclass(frozen=True)
class MeasuredBand:
    """
    Attributes:
        height: Band height on the page
        element_heights: Outer (padding included) measured height per element id
    """

    height: float
    element_heights: Mapping[str, float]


@dataclass(frozen=True)
class StackEntry:
    """One band of a nested (frame) stack, offset from the stack top."""

    instance: BandInstance
    offset_y: float
    measured: MeasuredBand


class BandMeasurer:
    """
    Measures bands and elements against the plugin contract.

    Example:
        >>> measurer = BandMeasurer(EngineServices())
        >>> measurer.measure_band(band, scope={}).height
        40.0
    """

    def __init__(self, services: EngineServices):
        self.services = services

    @property
    def diagnostics(self):
        return self.services.diagnostics

    # ─────────────────────────────────────────────────────────────────────────
    # Elements
    # ─────────────────────────────────────────────────────────────────────────

    def prepare(
        self,
        element: Element,
        scope: Mapping[str, Any],
        props_override: Optional[Mapping[str, Any]] = None,
    ) -> Optional[PreparedElement]:
        """
        Evaluate the condition, look up the plugin, resolve and validate props.

        Returns None when the element must be skipped.
        """
        services = self.services
        if not services.resolver.evaluate(element.condition, scope):
            return None

        if not services.registry.has(element.type):
            self.diagnostics.add_once(
                DiagnosticKind.CONTRACT,
                f"Unknown element type '{element.type}'; element skipped",
                element_id=element.id,
            )
            return None
        plugin = services.registry.get(element.type)

        if props_override is not None:
            props = dict(props_override)
        else:
            props = plugin.resolve_props(services.resolver.resolve_props(element.properties, scope))

        errors = plugin.validate(props)
        if errors:
            self.diagnostics.add_once(
                DiagnosticKind.CONTRACT,
                f"Invalid properties ({'; '.join(str(e) for e in errors)}); element skipped",
                element_id=element.id,
            )
            return None

        return PreparedElement(element, plugin, props, services.style_for(element))

    def measure_context(
        self,
        prepared: PreparedElement,
        scope: Mapping[str, Any],
        width: Optional[float] = None,
        height: Optional[float] = None,
        depth: int = 0,
    ) -> MeasureContext:
        element = prepared.element
        padding = prepared.style.padding
        box_width = element.width if width is None else width
        box_height = element.height if height is None else height
        return MeasureContext(
            element=element,
            style=prepared.style,
            available_width=max(0.0, box_width - padding.horizontal),
            available_height=max(0.0, box_height - padding.vertical),
            scope=scope,
            services=self.services,
            depth=depth,
            measure_child=lambda child, w, h: self.measure_element(child, scope, w, h, depth + 1) or 0.0,
            measure_bands=lambda bands, w: self.measure_stack(bands, scope, w)[1],
        )

    def measure_element(
        self,
        element: Element,
        scope: Mapping[str, Any],
        width: Optional[float] = None,
        height: Optional[float] = None,
        depth: int = 0,
        props_override: Optional[Mapping[str, Any]] = None,
    ) -> Optional[float]:
        """
        Outer height (padding included) of an element, or None if it is skipped.
        """
        prepared = self.prepare(element, scope, props_override)
        if prepared is None:
            return None
        return self.measure_prepared(prepared, scope, width, height, depth)

    def measure_prepared(
        self,
        prepared: PreparedElement,
        scope: Mapping[str, Any],
        width: Optional[float] = None,
        height: Optional[float] = None,
        depth: int = 0,
    ) -> float:
        element = prepared.element
        padding = prepared.style.padding
        ctx = self.measure_context(prepared, scope, width, height, depth)
        try:
            size = prepared.plugin.measure(prepared.props, ctx)
        except ResourceError as e:
            self.diagnostics.add_once(
                DiagnosticKind.RESOURCE,
                f"{e}; placeholder used",
                element_id=element.id,
            )
            return element.height if height is None else height
        except ContainerDepthError as e:
            self.diagnostics.add_once(DiagnosticKind.CONTRACT, str(e), element_id=element.id)
            return element.height if height is None else height
        return self._sanitize(size.height, element.id) + padding.vertical

    def _sanitize(self, value: Any, element_id: str) -> float:
        try:
            number = float(value)
        except (TypeError, ValueError):
            number = math.nan
        if not math.isfinite(number) or number < 0:
            self.diagnostics.add_once(
                DiagnosticKind.CONTRACT,
                f"Plugin returned invalid height {value!r}; clamped to 0",
                element_id=element_id,
            )
            return 0.0
        return number

    # ─────────────────────────────────────────────────────────────────────────
    # Bands
    # ─────────────────────────────────────────────────────────────────────────

    def measure_band(
        self,
        band: Band,
        scope: Mapping[str, Any],
        element_props: Optional[Mapping[str, Mapping[str, Any]]] = None,
    ) -> MeasuredBand:
        """Measure one band instance."""
        if not band.auto_height:
            return MeasuredBand(height=band.height, element_heights={})

        overrides = element_props or {}
        heights: Dict[str, float] = {}
        bottom = band.height
        for element in band.elements:
            outer = self.measure_element(element, scope, props_override=overrides.get(element.id))
            if outer is None:
                continue
            heights[element.id] = outer
            bottom = max(bottom, element.y + outer)
        return MeasuredBand(height=bottom, element_heights=heights)

    def measure_instance(self, instance: BandInstance, extra_scope: Optional[Mapping[str, Any]] = None) -> MeasuredBand:
        scope = instance.scope if not extra_scope else {**instance.scope, **extra_scope}
        return self.measure_band(instance.band, scope, instance.element_props)

    def try_split(
        self,
        instance: BandInstance,
        available_height: float,
        extra_scope: Optional[Mapping[str, Any]] = None,
    ) -> Optional[Tuple[BandInstance, BandInstance]]:
        """
        Split an autoHeight band whose single visible element supports splitting.

        Returns:
            (head, tail) band instances, or None if the band cannot be split
            so that at least some content fits
        """
        band = instance.band
        if not band.auto_height:
            return None
        scope = instance.scope if not extra_scope else {**instance.scope, **extra_scope}

        visible: List[PreparedElement] = []
        for element in band.elements:
            prepared = self.prepare(element, scope, instance.element_props.get(element.id))
            if prepared is not None:
                visible.append(prepared)
        if len(visible) != 1 or not visible[0].plugin.can_split:
            return None

        prepared = visible[0]
        element = prepared.element
        room = available_height - element.y - prepared.style.padding.vertical
        if room <= 0:
            return None

        ctx = self.measure_context(prepared, scope)
        result = prepared.plugin.split(prepared.props, ctx, room)
        if result is None:
            return None

        logger.debug(f"Split band '{band.id}' element '{element.id}' at {room:.1f}pt")
        head = BandInstance(band, instance.scope, {**instance.element_props, element.id: result.head})
        tail = BandInstance(band, instance.scope, {**instance.element_props, element.id: result.tail})
        return head, tail

    # ─────────────────────────────────────────────────────────────────────────
    # Nested stacks (frames)
    # ─────────────────────────────────────────────────────────────────────────

    def measure_stack(
        self,
        bands: Sequence[Band],
        scope: Mapping[str, Any],
        width: float,
    ) -> Tuple[List[StackEntry], float]:
        """
        Expand and stack nested bands against the enclosing scope.

        The stack never paginates; callers clip it to their box.

        Returns:
            (entries, total_height)
        """
        expanded = expand_section(
            Section(id="nested", bands=tuple(bands)),
            {},
            self.services.resolver,
            self.diagnostics,
            parent_scope=scope,
        )
        entries: List[StackEntry] = []
        offset = 0.0
        for instance in expanded.content:
            measured = self.measure_instance(instance)
            entries.append(StackEntry(instance=instance, offset_y=offset, measured=measured))
            offset += measured.height
        return entries, offset
