"""
Module: engine.layout.expander

Purpose:
    Expand a section's declared bands into structural roles (repeating
    page furniture) and an ordered stream of content band instances bound
    to their data scopes.

Content order:
    title -> [groupHeader -> detail items -> groupFooter]* -> body -> summary -> noData

Rules:
    - Bands are ordered by type priority, declaration order within a type.
    - Detail bands iterate their data source; ``groupBy`` partitions items
      into contiguous runs of equal key (no sorting).
    - An empty or absent data source emits the noData band instead.
    - Summary is suppressed only when the section iterates data, produced
      no items and declares no noData band.
    - A missing or non-array data source is a data diagnostic, never fatal.

Key Functions:
    - expand_section(): Section + data -> ExpandedSection
    - build_scope(): Base scope for a data payload
    - group_contiguous(): Contiguous grouping
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from bandpdf.core.models import Band, BandType, Section
from bandpdf.core.utils.data import resolve_dot_path
from bandpdf.engine.diagnostics import DiagnosticKind, DiagnosticsCollector
from .binding import ScopeResolver

logger = logging.getLogger(__name__)

DEFAULT_ITEM_NAME = "item"


@dataclass(frozen=True)
class BandInstance:
    """A content band bound to the scope it will be laid out against."""

    band: Band
    scope: Mapping[str, Any]
    element_props: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)


@dataclass(frozen=True)
class ExpandedSection:
    """Bands of one section separated by structural role."""

    background: Tuple[Band, ...] = ()
    page_headers: Tuple[Band, ...] = ()
    page_footers: Tuple[Band, ...] = ()
    last_page_footers: Tuple[Band, ...] = ()
    column_headers: Tuple[Band, ...] = ()
    column_footers: Tuple[Band, ...] = ()
    content: Tuple[BandInstance, ...] = ()

    @property
    def detail_count(self) -> int:
        return sum(1 for inst in self.content if inst.band.type == BandType.DETAIL)


def build_scope(data: Mapping[str, Any], **extra: Any) -> Dict[str, Any]:
    """
    Base scope: top-level data keys, the whole payload as ``data``, then extras.

    Reserved keys (``_pageNumber``, ``_index``, ...) are added by callers.
    """
    scope: Dict[str, Any] = dict(data)
    scope["data"] = data
    scope.update(extra)
    return scope


def group_contiguous(items: Sequence[Any], key_path: str) -> List[Tuple[Any, List[Any]]]:
    """
    Partition items into runs of consecutive equal keys, preserving order.

    Example:
        >>> rows = [{"k": "A"}, {"k": "A"}, {"k": "B"}, {"k": "A"}]
        >>> [(k, len(g)) for k, g in group_contiguous(rows, "k")]
        [('A', 2), ('B', 1), ('A', 1)]
    """
    return [
        (key, list(run))
        for key, run in itertools.groupby(items, key=lambda item: resolve_dot_path(item, key_path))
    ]


def expand_section(
    section: Section,
    data: Mapping[str, Any],
    resolver: ScopeResolver,
    diagnostics: Optional[DiagnosticsCollector] = None,
    *,
    parent_scope: Optional[Mapping[str, Any]] = None,
) -> ExpandedSection:
    """
    Expand one section's bands.

    Args:
        section: Section to expand
        data: Runtime data payload (or the enclosing scope for frame bands)
        resolver: Evaluates band conditions
        diagnostics: Receives data diagnostics
        parent_scope: Enclosing scope (frame bands); data sources resolve against it

    Returns:
        ExpandedSection with repeating bands and ordered content instances
    """
    by_type: Dict[BandType, List[Band]] = {t: [] for t in BandType}
    for band in section.bands:
        by_type[band.type].append(band)

    if parent_scope is not None:
        data = parent_scope
        base = dict(parent_scope)
    else:
        base = build_scope(data)

    def scoped(**extra: Any) -> Dict[str, Any]:
        scope = dict(base)
        scope.update(extra)
        return scope

    content: List[BandInstance] = []

    def include(band: Band, scope: Dict[str, Any]) -> None:
        if resolver.evaluate(band.condition, scope):
            content.append(BandInstance(band=band, scope=scope))
        else:
            logger.debug(f"Band '{band.id}' skipped by condition")

    for band in by_type[BandType.TITLE]:
        include(band, base)

    detail_bands = by_type[BandType.DETAIL]
    has_items = False
    for band in detail_bands:
        items = _resolve_items(band, data, diagnostics)
        if not items:
            continue
        has_items = True
        item_name = band.item_name or DEFAULT_ITEM_NAME

        if band.group_by:
            for key, run in group_contiguous(items, band.group_by):
                group_scope = scoped(_groupKey=key, _groupItems=run)
                for header in by_type[BandType.GROUP_HEADER]:
                    include(header, group_scope)
                for index, item in enumerate(run):
                    include(band, scoped(**{item_name: item, "_index": index, "_groupKey": key}))
                for footer in by_type[BandType.GROUP_FOOTER]:
                    include(footer, group_scope)
        else:
            for index, item in enumerate(items):
                include(band, scoped(**{item_name: item, "_index": index}))

    for band in by_type[BandType.BODY]:
        include(band, base)

    no_data = by_type[BandType.NO_DATA]
    suppress_summary = bool(detail_bands) and not has_items and not no_data
    if suppress_summary:
        logger.debug(f"Section '{section.id}': no items and no noData band, summary suppressed")
    else:
        for band in by_type[BandType.SUMMARY]:
            include(band, base)

    if not has_items:
        for band in no_data:
            include(band, base)

    return ExpandedSection(
        background=tuple(by_type[BandType.BACKGROUND]),
        page_headers=tuple(by_type[BandType.PAGE_HEADER]),
        page_footers=tuple(by_type[BandType.PAGE_FOOTER]),
        last_page_footers=tuple(by_type[BandType.LAST_PAGE_FOOTER]),
        column_headers=tuple(by_type[BandType.COLUMN_HEADER]),
        column_footers=tuple(by_type[BandType.COLUMN_FOOTER]),
        content=tuple(content),
    )


def _resolve_items(
    band: Band,
    data: Mapping[str, Any],
    diagnostics: Optional[DiagnosticsCollector],
) -> List[Any]:
    if not band.data_source:
        if diagnostics is not None:
            diagnostics.add(
                DiagnosticKind.DATA,
                "Detail band has no dataSource; treated as empty",
                band_id=band.id,
            )
        return []

    value = resolve_dot_path(data, band.data_source)
    if value is None:
        if diagnostics is not None:
            diagnostics.add(
                DiagnosticKind.DATA,
                f"dataSource '{band.data_source}' not found in data; treated as empty",
                band_id=band.id,
            )
        return []
    if not isinstance(value, (list, tuple)):
        if diagnostics is not None:
            diagnostics.add(
                DiagnosticKind.DATA,
                f"dataSource '{band.data_source}' is {type(value).__name__}, not an array; treated as empty",
                band_id=band.id,
            )
        return []
    return list(value)
