"""
Module: engine.output.renderer

Purpose:
    Render a LayoutResult to PDF bytes using ReportLab.
    Each LayoutPage becomes one PDF page sized from its geometry; every
    placed band draws its background and then its elements through their
    plugins.

    The render scope of every band adds ``_totalPages`` and ``_anchors``
    to the scope it was laid out with, so page-count and cross-reference
    placeholders resolve here.

    Footnote markers in content bands are numbered per page from the
    band's first footnote; the page's footnote block (separator rule and
    numbered notes) is drawn above the column and page footers.

    Elements whose resources fail draw a placeholder box (a crossed
    rectangle) and record a resource diagnostic; the document still
    renders.

Key Functions:
    - render_pdf(): LayoutResult -> PDF bytes

Dependencies:
    - reportlab: PDF canvas
    - engine.layout.measure: Element preparation, frame stacks
    - engine.layout.coordinates: Template -> PDF space
    - engine.layout.footnotes: Footnote block layout

Used By:
    - engine.controller: render_document
"""

from __future__ import annotations

import io
import itertools
import logging
from typing import Any, Callable, Dict, Mapping, Optional, Sequence

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from bandpdf.core.models import Band, Element
from bandpdf.core.utils.colors import parse_color
from bandpdf.engine.diagnostics import DiagnosticKind
from bandpdf.engine.layout.coordinates import PagePoint, to_page_space
from bandpdf.engine.layout.footnotes import (
    SEPARATOR_GAP,
    SEPARATOR_THICKNESS,
    SEPARATOR_WIDTH_FRACTION,
    footnote_base_style,
    footnote_style,
    layout_footnotes,
)
from bandpdf.engine.layout.measure import BandMeasurer, PreparedElement
from bandpdf.engine.layout.models import LayoutPage, LayoutResult, PlacedBand
from bandpdf.engine.resources.errors import ResourceError
from bandpdf.engine.services import EngineServices
from bandpdf.plugins.base import ContainerDepthError, RenderContext
from bandpdf.plugins.drawing import fill_box
from bandpdf.plugins.typesetting import MARKER_RISE_RATIO, draw_lines

logger = logging.getLogger(__name__)

PLACEHOLDER_FILL = colors.Color(0.93, 0.93, 0.93)
PLACEHOLDER_STROKE = colors.Color(0.6, 0.6, 0.6)


def render_pdf(
    layout: LayoutResult,
    services: EngineServices,
    *,
    anchors: Optional[Mapping[str, int]] = None,
    title: Optional[str] = None,
) -> bytes:
    """
    Render a layout to PDF bytes.

    Args:
        layout: Paginated layout
        services: Engine services used for layout (same registry/caches)
        anchors: Anchor id -> page number map exposed as ``_anchors``
        title: PDF document title

    Returns:
        The PDF document

    Example:
        >>> pdf = render_pdf(layout, services, anchors=collect_anchors(layout))
        >>> pdf[:5]
        b'%PDF-'
    """
    renderer = _PageRenderer(services, layout.page_count, anchors or {})
    buffer = io.BytesIO()

    first = layout.pages[0].geometry if layout.pages else None
    pagesize = (first.width, first.height) if first else A4
    c = canvas.Canvas(buffer, pagesize=pagesize)
    c.setCreator("bandpdf")
    if title:
        c.setTitle(title)

    if not layout.pages:
        logger.warning("Empty layout, creating empty PDF")

    for page in layout.pages:
        c.setPageSize((page.geometry.width, page.geometry.height))
        renderer.render_page(c, page)
        c.showPage()

    c.save()
    pdf = buffer.getvalue()
    logger.info(f"Rendered {layout.page_count} pages ({len(pdf)} bytes)")
    return pdf


class _PageRenderer:
    """Draws pages band by band; holds the per-document render scope additions."""

    def __init__(self, services: EngineServices, total_pages: int, anchors: Mapping[str, int]):
        self.services = services
        self.measurer = BandMeasurer(services)
        self.total_pages = total_pages
        self.anchors = anchors
        self.geometry = None

    def render_scope(self, scope: Mapping[str, Any]) -> Dict[str, Any]:
        merged = dict(scope)
        merged["_totalPages"] = self.total_pages
        merged["_anchors"] = self.anchors
        return merged

    def render_page(self, c: canvas.Canvas, page: LayoutPage) -> None:
        self.geometry = page.geometry
        for placed in page.bands:
            width = placed.width if placed.width is not None else page.geometry.content_width
            self.render_band(c, placed, placed.x_offset, placed.offset_y, width)
        if page.footnotes:
            self._draw_footnotes(c, page)

    def to_pdf(self, x: float, y: float) -> PagePoint:
        """Convert a template-space point on the current page to PDF space."""
        geometry = self.geometry
        return to_page_space(x, y, geometry.height, geometry.margins.top, geometry.margins.left)

    # ─────────────────────────────────────────────────────────────────────────
    # Bands
    #
    # Positions passed between the draw methods stay in template space
    # (top-down, relative to the content area) and accumulate band, container
    # and frame offsets. Each drawn box converts to PDF space exactly once.
    # ─────────────────────────────────────────────────────────────────────────

    def render_band(self, c: canvas.Canvas, placed: PlacedBand, x: float, y: float, width: float) -> None:
        footnote_number = None
        if placed.footnote_start is not None:
            footnote_number = itertools.count(placed.footnote_start).__next__
        self._draw_band(
            c,
            placed.band,
            self.render_scope(placed.scope),
            x,
            y,
            width,
            placed.measured_height,
            placed.element_heights,
            placed.element_props,
            footnote_number=footnote_number,
        )

    def _draw_band(
        self,
        c: canvas.Canvas,
        band: Band,
        scope: Mapping[str, Any],
        x: float,
        y: float,
        width: float,
        height: float,
        element_heights: Mapping[str, float],
        element_props: Mapping[str, Mapping[str, Any]],
        depth: int = 0,
        footnote_number: Optional[Callable[[], int]] = None,
    ) -> None:
        left, top = self.to_pdf(x, y)
        fill_box(c, band.background_color, left, top - height, width, height)
        for element in band.elements:
            prepared = self.measurer.prepare(element, scope, element_props.get(element.id))
            if prepared is None:
                continue
            outer_height = element_heights.get(element.id, element.height)
            self._draw_element(
                c, prepared, scope, x + element.x, y + element.y, element.width, outer_height, depth, footnote_number,
            )

    def _draw_nested_bands(
        self,
        c: canvas.Canvas,
        bands: Sequence[Band],
        scope: Mapping[str, Any],
        x: float,
        y: float,
        width: float,
        depth: int,
    ) -> None:
        entries, _ = self.measurer.measure_stack(bands, scope, width)
        for entry in entries:
            instance = entry.instance
            self._draw_band(
                c,
                instance.band,
                self.render_scope(instance.scope),
                x,
                y + entry.offset_y,
                width,
                entry.measured.height,
                entry.measured.element_heights,
                instance.element_props,
                depth,
            )

    # ─────────────────────────────────────────────────────────────────────────
    # Elements
    # ─────────────────────────────────────────────────────────────────────────

    def _draw_child(
        self,
        c: canvas.Canvas,
        child: Element,
        scope: Mapping[str, Any],
        x: float,
        y: float,
        width: float,
        height: float,
        depth: int,
        footnote_number: Optional[Callable[[], int]] = None,
    ) -> None:
        prepared = self.measurer.prepare(child, scope)
        if prepared is not None:
            self._draw_element(c, prepared, scope, x, y, width, height, depth, footnote_number)

    def _draw_element(
        self,
        c: canvas.Canvas,
        prepared: PreparedElement,
        scope: Mapping[str, Any],
        x: float,
        y: float,
        width: float,
        height: float,
        depth: int,
        footnote_number: Optional[Callable[[], int]] = None,
    ) -> None:
        """Draw one element whose outer box has its top-left corner at template-space (x, y)."""
        element = prepared.element
        style = prepared.style
        padding = style.padding
        left, top = self.to_pdf(x, y)
        content_x = x + padding.left
        content_y = y + padding.top

        c.saveState()
        if style.opacity < 1:
            c.setFillAlpha(max(0.0, float(style.opacity)))
            c.setStrokeAlpha(max(0.0, float(style.opacity)))
        if element.rotation:
            cx, cy = left + width / 2, top - height / 2
            c.translate(cx, cy)
            # Template rotation is clockwise
            c.rotate(-float(element.rotation))
            c.translate(-cx, -cy)

        self._draw_box(c, style, left, top, width, height)

        ctx = RenderContext(
            canvas=c,
            x=left + padding.left,
            y=top - padding.top,
            width=max(0.0, width - padding.horizontal),
            height=max(0.0, height - padding.vertical),
            element=element,
            style=style,
            scope=scope,
            services=self.services,
            depth=depth,
            render_child=lambda child, dx, dy, w, h: self._draw_child(
                c, child, scope, content_x + dx, content_y + dy, w, h, depth + 1, footnote_number,
            ),
            render_bands=lambda bands, dx, dy, w, h: self._draw_nested_bands(
                c, bands, scope, content_x + dx, content_y + dy, w, depth + 1,
            ),
            measure_child=lambda child, w, h: self.measurer.measure_element(child, scope, w, h, depth + 1) or 0.0,
            footnote_number=footnote_number,
        )
        try:
            prepared.plugin.render(prepared.props, ctx)
        except ResourceError as e:
            self.services.diagnostics.add_once(
                DiagnosticKind.RESOURCE,
                f"{e}; placeholder used",
                element_id=element.id,
            )
            _draw_placeholder(c, left, top, width, height)
        except ContainerDepthError as e:
            self.services.diagnostics.add_once(DiagnosticKind.CONTRACT, str(e), element_id=element.id)
        finally:
            c.restoreState()

    # ─────────────────────────────────────────────────────────────────────────
    # Footnotes
    # ─────────────────────────────────────────────────────────────────────────

    def _draw_footnotes(self, c: canvas.Canvas, page: LayoutPage) -> None:
        services = self.services
        width = page.geometry.content_width
        base = footnote_base_style(services)
        entries, _ = layout_footnotes(page.footnotes, width, services.fonts, base, services.styles)
        text_style = footnote_style(base)
        color = parse_color(base.color, colors.black)

        left, rule_y = self.to_pdf(0.0, page.footnote_top + SEPARATOR_GAP)
        c.saveState()
        c.setStrokeColor(color)
        c.setLineWidth(SEPARATOR_THICKNESS)
        c.line(left, rule_y, left + width * SEPARATOR_WIDTH_FRACTION, rule_y)
        c.restoreState()

        y = page.footnote_top + SEPARATOR_GAP * 2 + SEPARATOR_THICKNESS
        for entry in entries:
            left, top = self.to_pdf(0.0, y)
            self._draw_footnote_number(c, entry, text_style, left, top, color)
            draw_lines(c, entry.lines, left + entry.indent, top, width - entry.indent, "left", services.fonts)
            y += entry.height

    def _draw_footnote_number(self, c: canvas.Canvas, entry, style, left: float, top: float, color) -> None:
        """Superscript number aligned with the first line of the note text."""
        fonts = self.services.fonts
        text_font = fonts.font_name(style)
        baseline = top - max(0.0, (style.leading - style.font_size) / 2) - fonts.ascent(text_font, style.font_size)
        text = c.beginText(left, baseline)
        text.setFont(fonts.font_name(entry.marker_style), entry.marker_style.font_size)
        text.setFillColor(color)
        text.setRise(style.font_size * MARKER_RISE_RATIO)
        text.textOut(str(entry.number))
        c.drawText(text)

    @staticmethod
    def _draw_box(c: canvas.Canvas, style, left: float, top: float, width: float, height: float) -> None:
        """Element background (colour or gradient) and border from its style."""
        radius = max(0.0, min(style.border_radius, width / 2, height / 2))
        background = style.background_color
        if isinstance(background, Mapping):
            fill_box(c, background, left, top - height, width, height, radius)
            fill = None
        else:
            fill = parse_color(background)
        stroke = parse_color(style.border_color) if style.border_width > 0 else None
        if fill is None and stroke is None:
            return
        c.saveState()
        if fill is not None:
            c.setFillColor(fill)
        if stroke is not None:
            c.setStrokeColor(stroke)
            c.setLineWidth(style.border_width)
        do_fill = 1 if fill is not None else 0
        do_stroke = 1 if stroke is not None else 0
        if radius > 0:
            c.roundRect(left, top - height, width, height, radius, stroke=do_stroke, fill=do_fill)
        else:
            c.rect(left, top - height, width, height, stroke=do_stroke, fill=do_fill)
        c.restoreState()


def _draw_placeholder(c: canvas.Canvas, left: float, top: float, width: float, height: float) -> None:
    if width <= 0 or height <= 0:
        return
    c.saveState()
    c.setFillColor(PLACEHOLDER_FILL)
    c.setStrokeColor(PLACEHOLDER_STROKE)
    c.setLineWidth(0.5)
    c.rect(left, top - height, width, height, stroke=1, fill=1)
    c.line(left, top, left + width, top - height)
    c.line(left, top - height, left + width, top)
    c.restoreState()
