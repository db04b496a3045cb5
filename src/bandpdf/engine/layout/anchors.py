"""
Module: engine.layout.anchors

Purpose:
    Map anchor ids to the page numbers they landed on after layout, so
    the render pass can expose them as ``_anchors`` (table of contents,
    "see page N" references).

    Band anchors are visited before element anchors on the same band;
    elements are walked depth first (children, then frame bands). The
    first occurrence of an id wins. An element whose condition is false
    for its band scope is not rendered, so neither it nor anything nested
    in it contributes an anchor.

Key Functions:
    - collect_anchors(): LayoutResult -> read-only {anchor id: page number}
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional, Set

from bandpdf.core.models import Element
from bandpdf.engine.diagnostics import DiagnosticKind, DiagnosticsCollector
from .binding import PlaceholderResolver, ScopeResolver
from .models import LayoutResult

logger = logging.getLogger(__name__)


def _element_anchors(element: Element, scope: Mapping[str, Any], resolver: ScopeResolver) -> Iterator[str]:
    if not resolver.evaluate(element.condition, scope):
        logger.debug(f"Element '{element.id}' hidden by condition; anchors skipped")
        return
    if element.anchor:
        yield element.anchor
    for child in element.elements:
        yield from _element_anchors(child, scope, resolver)
    for band in element.bands:
        if not resolver.evaluate(band.condition, scope):
            continue
        if band.anchor:
            yield band.anchor
        for nested in band.elements:
            yield from _element_anchors(nested, scope, resolver)


def collect_anchors(
    layout: LayoutResult,
    *,
    warn_duplicates: bool = False,
    diagnostics: Optional[DiagnosticsCollector] = None,
    resolver: Optional[ScopeResolver] = None,
) -> Mapping[str, int]:
    """
    Collect anchor ids and their 1-based page numbers.

    Args:
        layout: Paginated layout
        warn_duplicates: Report each duplicated id once
        diagnostics: Collector for duplicate warnings
        resolver: Evaluates element conditions (default PlaceholderResolver)

    Returns:
        Read-only mapping of anchor id -> page number
    """
    resolver = resolver or PlaceholderResolver()
    anchors: Dict[str, int] = {}
    reported: Set[str] = set()

    def visit(anchor: str, page_number: int) -> None:
        if anchor not in anchors:
            anchors[anchor] = page_number
            return
        if not warn_duplicates or anchor in reported:
            return
        reported.add(anchor)
        message = f"Duplicate anchor '{anchor}' (page {page_number}); first occurrence on page {anchors[anchor]} kept"
        if diagnostics is not None:
            diagnostics.add(DiagnosticKind.ANCHOR, message, page=page_number)
        else:
            logger.warning(message)

    for page in layout.pages:
        for placed in page.bands:
            if placed.band.anchor:
                visit(placed.band.anchor, page.page_number)
            for element in placed.band.elements:
                for anchor in _element_anchors(element, placed.scope, resolver):
                    visit(anchor, page.page_number)

    logger.debug(f"Collected {len(anchors)} anchors")
    return MappingProxyType(anchors)
