"""
Module: engine.layout.paginator

Purpose:
    The band layout engine. Walks each section's expanded band stream,
    measures band instances and places them on physical pages.

Algorithm (per section):
    1. Merge the section's page override onto the template default.
    2. Expand bands (title, groups/details, body, summary, noData) and
       measure the repeating bands once to reserve their space:
       content area = page content height - pageHeaders - columnHeaders
                      - columnFooters - max(pageFooters, lastPageFooters)
    3. Keep a running cursor inside the content area. A band that does
       not fit is split (single splittable element in an autoHeight band),
       moved to the next column (multi-column sections) or moved to a new
       page. A band that does not fit on a fresh page is placed anyway
       with a pagination diagnostic, so no empty-page loop is possible.
       An instance measuring 0pt occupies no space and is dropped unless
       its band carries an anchor, which still needs a page position.
       Footnotes marked by placed bands are reserved at the page foot, so
       a band fits only if it and the footnote block it grows still fit.
    4. After every section is laid out, each page is finalised with its
       background, headers, column headers/footers and footers.
       lastPageFooter replaces pageFooter on the document's final page
       (or on each section's final page with scope "section").

Key Functions:
    - paginate(): Template + data -> LayoutResult

Dependencies:
    - engine.layout.expander: Band streams
    - engine.layout.measure: Band heights, splitting
    - engine.layout.columns: Column geometry

Used By:
    - engine.controller: render_document
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field, replace
from typing import Any, Deque, Dict, List, Mapping, Optional, Sequence, Tuple

from bandpdf.core.models import Band, BandType, Section, Template
from bandpdf.engine.diagnostics import DiagnosticKind
from bandpdf.engine.services import EngineServices
from .columns import ColumnLayout, compute_column_layout
from .config import PageGeometry, merge_page_config
from .expander import BandInstance, ExpandedSection, build_scope, expand_section
from .footnotes import collect_footnotes, footnote_base_style, footnote_block_height
from .measure import BandMeasurer, MeasuredBand
from .models import FootnoteEntry, LayoutPage, LayoutResult, PlacedBand, freeze_scope

logger = logging.getLogger(__name__)

COLUMN_BAND_TYPES = frozenset({BandType.DETAIL, BandType.GROUP_HEADER, BandType.GROUP_FOOTER})
LAST_PAGE_FOOTER_SCOPES = ("document", "section")

# Float tolerance for fit comparisons
EPSILON = 1e-6


@dataclass
class _PageDraft:
    """Content placed on one page before repeating bands are added."""

    page_index: int
    content: List[PlacedBand] = field(default_factory=list)
    used: float = 0.0
    footnotes: List[Any] = field(default_factory=list)
    footnote_height: float = 0.0


@dataclass(frozen=True)
class _Furniture:
    """Measured repeating bands of a section."""

    bands: Tuple[Tuple[Band, MeasuredBand], ...] = ()

    @property
    def height(self) -> float:
        return sum(m.height for _, m in self.bands)


def paginate(
    template: Template,
    data: Optional[Mapping[str, Any]] = None,
    services: Optional[EngineServices] = None,
    *,
    last_page_footer_scope: str = "document",
) -> LayoutResult:
    """
    Lay out every section of a template onto pages.

    Args:
        template: Parsed template
        data: Runtime data payload
        services: Engine collaborators (default services when None)
        last_page_footer_scope: "document" or "section"

    Returns:
        LayoutResult with pages in output order

    Raises:
        TemplateError: A section has no resolvable page geometry

    Example:
        >>> result = paginate(template, {"items": rows})
        >>> result.page_count
        3
    """
    if last_page_footer_scope not in LAST_PAGE_FOOTER_SCOPES:
        raise ValueError(f"last_page_footer_scope must be one of {LAST_PAGE_FOOTER_SCOPES}")
    data = data or {}
    services = services or EngineServices(styles=template.styles, default_style=template.default_style)
    measurer = BandMeasurer(services)
    diagnostics_before = len(services.diagnostics)

    laid_out: List[Tuple[_SectionPaginator, List[_PageDraft]]] = []
    next_page_index = 0
    for section_index, section in enumerate(template.sections):
        geometry = merge_page_config(template.page, section.page)
        expanded = expand_section(section, data, services.resolver, services.diagnostics)
        paginator = _SectionPaginator(
            section_index, section, geometry, expanded, measurer, build_scope(data), next_page_index,
        )
        drafts = paginator.run()
        laid_out.append((paginator, drafts))
        next_page_index += len(drafts)

    pages: List[LayoutPage] = []
    for position, (paginator, drafts) in enumerate(laid_out):
        is_last_section = position == len(laid_out) - 1
        for i, draft in enumerate(drafts):
            is_section_end = i == len(drafts) - 1
            use_last_footer = is_section_end and (is_last_section or last_page_footer_scope == "section")
            pages.append(paginator.finalize(draft, use_last_footer))

    warnings = tuple(str(d) for d in services.diagnostics.snapshot()[diagnostics_before:])
    placed = sum(len(page.bands) for page in pages)
    logger.info(f"Paginated {placed} band instances onto {len(pages)} pages")
    return LayoutResult(pages=tuple(pages), warnings=warnings)


class _SectionPaginator:
    """Cursor state machine for one section."""

    def __init__(
        self,
        section_index: int,
        section: Section,
        geometry: PageGeometry,
        expanded: ExpandedSection,
        measurer: BandMeasurer,
        base_scope: Dict[str, Any],
        first_page_index: int,
    ):
        self.section_index = section_index
        self.section = section
        self.geometry = geometry
        self.expanded = expanded
        self.measurer = measurer
        self.base_scope = base_scope
        self.first_page_index = first_page_index

        first_scope = {**base_scope, "_pageNumber": first_page_index + 1}
        self.backgrounds = self._measure_furniture(expanded.background, first_scope)
        self.headers = self._measure_furniture(expanded.page_headers, first_scope)
        self.column_headers = self._measure_furniture(expanded.column_headers, first_scope)
        self.column_footers = self._measure_furniture(expanded.column_footers, first_scope)
        self.footers = self._measure_furniture(expanded.page_footers, first_scope)
        self.last_footers = self._measure_furniture(expanded.last_page_footers, first_scope)

        self.reserved_footer = max(self.footers.height, self.last_footers.height)
        self.content_top = self.headers.height + self.column_headers.height
        if geometry.auto_height:
            self.available = float("inf")
        else:
            self.available = (
                geometry.content_height - self.content_top - self.column_footers.height - self.reserved_footer
            )
            if self.available <= 0:
                measurer.diagnostics.add(
                    DiagnosticKind.PAGINATION,
                    f"Repeating bands leave no content space ({self.available:.1f}pt) in section '{section.id}'",
                )

        self.columns: Optional[ColumnLayout] = None
        if section.columns is not None and section.columns.count > 1:
            self.columns = compute_column_layout(
                geometry.content_width, section.columns.count, section.columns.gap, section.columns.widths,
            )
        self.allow_column_split = section.columns is not None and section.columns.mode == "flow"
        self.footnote_style = footnote_base_style(measurer.services)

        self.drafts: List[_PageDraft] = []
        self.page = _PageDraft(page_index=first_page_index)
        self.cursor = 0.0
        self.in_columns = False
        self.column = 0
        self.column_cursors: List[float] = []

    # ─────────────────────────────────────────────────────────────────────────
    # Main loop
    # ─────────────────────────────────────────────────────────────────────────

    def run(self) -> List[_PageDraft]:
        queue: Deque[BandInstance] = deque(self.expanded.content)
        while queue:
            instance = queue.popleft()
            columnar = self.columns is not None and instance.band.type in COLUMN_BAND_TYPES
            if columnar and not self.in_columns:
                self._open_columns()
            elif not columnar and self.in_columns:
                self._close_columns()

            if instance.band.page_break_before and not self._at_top():
                self._new_page()

            page_scope = {"_pageNumber": self.page.page_index + 1}
            measured = self.measurer.measure_instance(instance, page_scope)
            if measured.height <= EPSILON and not instance.band.anchor:
                logger.debug(f"Band '{instance.band.id}' measured 0pt; nothing to place")
                continue
            notes = self._footnotes(instance, page_scope)
            growth = self._footnote_growth(notes)
            remaining = self.available - self._position() - self.page.footnote_height
            if measured.height + growth <= remaining + EPSILON:
                self._place(instance, measured, columnar, notes)
                continue

            if not columnar or self.allow_column_split:
                parts = self.measurer.try_split(instance, remaining - growth, page_scope)
                if parts is not None:
                    head, tail = parts
                    head_notes = self._footnotes(head, page_scope)
                    self._place(head, self.measurer.measure_instance(head, page_scope), columnar, head_notes)
                    queue.appendleft(tail)
                    self._advance(columnar)
                    continue

            if self._at_top():
                self.measurer.diagnostics.add(
                    DiagnosticKind.PAGINATION,
                    f"Band needs {measured.height:.1f}pt but a page offers {self.available:.1f}pt; placed anyway",
                    band_id=instance.band.id,
                    page=self.page.page_index + 1,
                )
                self._place(instance, measured, columnar, notes)
                continue

            self._advance(columnar)
            queue.appendleft(instance)

        if self.in_columns:
            self._close_columns()
        self.drafts.append(self.page)
        return self.drafts

    # ─────────────────────────────────────────────────────────────────────────
    # Cursor helpers
    # ─────────────────────────────────────────────────────────────────────────

    def _position(self) -> float:
        return self.column_cursors[self.column] if self.in_columns else self.cursor

    def _at_top(self) -> bool:
        return self._position() <= EPSILON

    def _place(
        self,
        instance: BandInstance,
        measured: MeasuredBand,
        columnar: bool,
        notes: Sequence[Any] = (),
    ) -> None:
        y = self._position()
        x_offset, width = 0.0, None
        if columnar and self.columns is not None:
            x_offset = self.columns.offsets[self.column]
            width = self.columns.widths[self.column]

        scope = dict(instance.scope)
        scope["_pageNumber"] = self.page.page_index + 1
        self.page.content.append(PlacedBand(
            band=instance.band,
            offset_y=self.content_top + y,
            measured_height=measured.height,
            element_heights=measured.element_heights,
            scope=freeze_scope(scope),
            x_offset=x_offset,
            width=width,
            element_props=instance.element_props,
            footnote_start=len(self.page.footnotes) + 1,
        ))
        if notes:
            self.page.footnote_height += self._footnote_growth(notes)
            self.page.footnotes.extend(notes)

        bottom = y + measured.height
        if self.in_columns:
            self.column_cursors[self.column] = bottom
        else:
            self.cursor = bottom
        self.page.used = max(self.page.used, bottom)

    # ─────────────────────────────────────────────────────────────────────────
    # Footnotes
    # ─────────────────────────────────────────────────────────────────────────

    def _footnotes(self, instance: BandInstance, page_scope: Mapping[str, Any]) -> List[Any]:
        scope = {**instance.scope, **page_scope}
        return collect_footnotes(self.measurer, instance.band, scope, instance.element_props)

    def _footnote_growth(self, notes: Sequence[Any]) -> float:
        """Extra block height the current page needs to also hold ``notes``."""
        if not notes:
            return 0.0
        services = self.measurer.services
        height = footnote_block_height(
            self.page.footnotes + list(notes),
            self.geometry.content_width,
            services.fonts,
            self.footnote_style,
            services.styles,
        )
        return height - self.page.footnote_height

    def _advance(self, columnar: bool) -> None:
        """Move to the next column, or to a new page."""
        if columnar and self.columns is not None and self.column < self.columns.count - 1:
            self.column += 1
            logger.debug(f"Section '{self.section.id}': column {self.column + 1}")
            return
        self._new_page()

    def _new_page(self) -> None:
        self.drafts.append(self.page)
        self.page = _PageDraft(page_index=self.page.page_index + 1)
        self.cursor = 0.0
        if self.in_columns:
            self.column = 0
            self.column_cursors = [0.0] * len(self.column_cursors)
        logger.debug(f"Section '{self.section.id}': page break -> page {self.page.page_index + 1}")

    def _open_columns(self) -> None:
        assert self.columns is not None
        self.in_columns = True
        self.column = 0
        self.column_cursors = [self.cursor] * self.columns.count

    def _close_columns(self) -> None:
        self.cursor = max(self.column_cursors) if self.column_cursors else self.cursor
        self.in_columns = False
        self.column = 0
        self.column_cursors = []

    # ─────────────────────────────────────────────────────────────────────────
    # Repeating bands
    # ─────────────────────────────────────────────────────────────────────────

    def _measure_furniture(self, bands: Tuple[Band, ...], scope: Mapping[str, Any]) -> _Furniture:
        resolver = self.measurer.services.resolver
        measured = tuple(
            (band, self.measurer.measure_band(band, scope))
            for band in bands
            if resolver.evaluate(band.condition, scope)
        )
        return _Furniture(measured)

    def _stack(
        self,
        furniture: _Furniture,
        top: float,
        scope: Mapping[str, Any],
        into: List[PlacedBand],
    ) -> float:
        resolver = self.measurer.services.resolver
        y = top
        for band, measured in furniture.bands:
            if not resolver.evaluate(band.condition, scope):
                continue
            into.append(PlacedBand(
                band=band,
                offset_y=y,
                measured_height=measured.height,
                element_heights=measured.element_heights,
                scope=freeze_scope(scope),
            ))
            y += measured.height
        return y

    def finalize(self, draft: _PageDraft, use_last_footer: bool) -> LayoutPage:
        """Add repeating bands around a page's content."""
        page_scope = {**self.base_scope, "_pageNumber": draft.page_index + 1}
        footers = self.last_footers if use_last_footer and self.last_footers.bands else self.footers

        geometry = self.geometry
        content_bottom = self.content_top + draft.used
        if geometry.auto_height:
            needed = content_bottom + self.column_footers.height + footers.height + draft.footnote_height
            if needed > geometry.content_height:
                geometry = replace(geometry, height=needed + geometry.margins.vertical)
        page_content_height = geometry.content_height

        bands: List[PlacedBand] = []
        for band, measured in self.backgrounds.bands:
            bands.append(PlacedBand(
                band=band,
                offset_y=0.0,
                measured_height=measured.height,
                element_heights=measured.element_heights,
                scope=freeze_scope(page_scope),
            ))

        y = self._stack(self.headers, 0.0, page_scope, bands)
        self._stack(self.column_headers, y, page_scope, bands)
        bands.extend(draft.content)

        pinned_top = page_content_height - self.reserved_footer - self.column_footers.height
        floating = any(band.floating for band, _ in self.column_footers.bands)
        column_footer_top = min(content_bottom, pinned_top) if floating else pinned_top
        self._stack(self.column_footers, column_footer_top, page_scope, bands)

        self._stack(footers, page_content_height - footers.height, page_scope, bands)

        return LayoutPage(
            section_index=self.section_index,
            page_index=draft.page_index,
            geometry=geometry,
            bands=tuple(bands),
            footnotes=tuple(FootnoteEntry(i, note) for i, note in enumerate(draft.footnotes, start=1)),
            footnote_top=pinned_top - draft.footnote_height,
        )
