"""
Module: engine.layout.footnotes

Purpose:
    Footnotes collected from text runs and laid out at the foot of a page.

    A page's footnote block sits directly above its column and page
    footers: a short separator rule, then one entry per footnote, each
    a superscript number followed by the note text wrapped to the
    remaining width. Notes are numbered per page from 1 in the order
    their markers are drawn.

Key Functions:
    - collect_footnotes(): Footnote contents of one band instance
    - layout_footnotes(): Wrap a page's entries and size the block
    - footnote_block_height(): Height to reserve for a list of notes

Used By:
    - engine.layout.paginator: Reserves the block height
    - engine.output.renderer: Draws the block
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, List, Mapping, Optional, Sequence, Tuple

from bandpdf.core.models import Band, Element
from bandpdf.plugins.typesetting import (
    MARKER_SIZE_RATIO,
    Line,
    lines_height,
    runs_from_content,
    wrap_runs,
)
from .models import FootnoteEntry
from .style import ResolvedStyle

if TYPE_CHECKING:
    from bandpdf.engine.output.fonts import FontRegistry
    from bandpdf.engine.services import EngineServices

    from .measure import BandMeasurer

FOOTNOTE_SIZE_RATIO = 0.8
SEPARATOR_GAP = 4.0
SEPARATOR_THICKNESS = 0.5
SEPARATOR_WIDTH_FRACTION = 1 / 3
# Space between an entry's number and its text
MARKER_GAP = 3.0


@dataclass(frozen=True)
class FootnoteLayout:
    """One wrapped footnote entry."""

    number: int
    marker_style: ResolvedStyle
    indent: float
    lines: Tuple[Line, ...]
    height: float


def footnote_style(base: ResolvedStyle) -> ResolvedStyle:
    return base.with_overrides({"fontSize": base.font_size * FOOTNOTE_SIZE_RATIO})


def footnote_base_style(services: "EngineServices") -> ResolvedStyle:
    """The document default style; footnote text is a reduced copy of it."""
    return ResolvedStyle().with_overrides(services.default_style)


def layout_footnotes(
    entries: Sequence[FootnoteEntry],
    width: float,
    fonts: "FontRegistry",
    base_style: ResolvedStyle,
    named_styles: Optional[Mapping[str, Mapping[str, Any]]] = None,
) -> Tuple[List[FootnoteLayout], float]:
    """
    Wrap footnote entries for a block ``width`` wide.

    Returns:
        (entry layouts, block height); the height is 0 without entries
    """
    if not entries:
        return [], 0.0
    style = footnote_style(base_style)
    marker_style = style.with_overrides({"fontSize": style.font_size * MARKER_SIZE_RATIO})
    marker_font = fonts.font_name(marker_style)

    layouts: List[FootnoteLayout] = []
    height = SEPARATOR_GAP * 2 + SEPARATOR_THICKNESS
    for entry in entries:
        number_width = fonts.string_width(str(entry.number), marker_font, marker_style.font_size)
        indent = number_width + MARKER_GAP
        runs = runs_from_content(entry.content, style, named_styles)
        lines = wrap_runs(runs, width - indent, fonts, style)
        # An empty note still takes a line so its number is visible
        entry_height = max(lines_height(lines), style.leading)
        layouts.append(FootnoteLayout(entry.number, marker_style, indent, tuple(lines), entry_height))
        height += entry_height
    return layouts, height


def footnote_block_height(
    contents: Sequence[Any],
    width: float,
    fonts: "FontRegistry",
    base_style: ResolvedStyle,
    named_styles: Optional[Mapping[str, Mapping[str, Any]]] = None,
) -> float:
    entries = [FootnoteEntry(i, content) for i, content in enumerate(contents, start=1)]
    return layout_footnotes(entries, width, fonts, base_style, named_styles)[1]


def collect_footnotes(
    measurer: "BandMeasurer",
    band: Band,
    scope: Mapping[str, Any],
    element_props: Optional[Mapping[str, Mapping[str, Any]]] = None,
) -> List[Any]:
    """
    Footnote contents of a band instance, in the order its markers are drawn.

    Walks the band's visible elements and the children of its containers.
    Nested bands (frames) are not walked; their text draws no markers.
    """
    overrides = element_props or {}
    notes: List[Any] = []
    for element in band.elements:
        _element_footnotes(measurer, element, scope, overrides.get(element.id), notes)
    return notes


def _element_footnotes(
    measurer: "BandMeasurer",
    element: Element,
    scope: Mapping[str, Any],
    props_override: Optional[Mapping[str, Any]],
    notes: List[Any],
) -> None:
    prepared = measurer.prepare(element, scope, props_override)
    if prepared is None:
        return
    notes.extend(prepared.plugin.footnotes(prepared.props))
    for child in element.elements:
        _element_footnotes(measurer, child, scope, None, notes)
