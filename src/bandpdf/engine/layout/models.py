"""
Module: engine.layout.models

Purpose:
    Data models for the layout pass output.
    Immutable dataclasses representing placed bands, pages and the
    whole layout result.

Key Classes:
    - PlacedBand: A band instance positioned on a page
    - FootnoteEntry: A numbered footnote of a page
    - LayoutPage: One physical page
    - LayoutResult: Final layout output

Used By:
    - engine.layout.paginator: Creates pages
    - engine.layout.anchors: Reads pages
    - engine.output.renderer: Draws pages
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from bandpdf.core.models import Band, BandType
from .config import PageGeometry


@dataclass(frozen=True)
class PlacedBand:
    """
    A band instance positioned on a page.

    Attributes:
        band: The band (possibly a split fragment of the template band)
        offset_y: Top offset relative to the page content area (top-down)
        measured_height: Height consumed on the page
        element_heights: Measured height per element id
        scope: Data scope this instance was laid out against
        x_offset: Left offset inside the content area (columns)
        width: Width available to the band (None = full content width)
        element_props: Per-element property overrides from splitting
        footnote_start: Number of the first footnote this instance marks;
            None for bands that draw no footnote markers (repeating bands)

    Example:
        >>> placed = PlacedBand(band, offset_y=100, measured_height=40)
        >>> placed.bottom
        140
    """

    band: Band
    offset_y: float
    measured_height: float
    element_heights: Mapping[str, float] = field(default_factory=dict)
    scope: Mapping[str, Any] = field(default_factory=dict)
    x_offset: float = 0.0
    width: Optional[float] = None
    element_props: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)
    footnote_start: Optional[int] = None

    @property
    def bottom(self) -> float:
        """Bottom Y coordinate (offset_y + measured_height)."""
        return self.offset_y + self.measured_height

    @property
    def band_type(self) -> BandType:
        return self.band.type


@dataclass(frozen=True)
class FootnoteEntry:
    """A footnote marked on a page; ``content`` is a string or rich-text runs."""

    number: int
    content: Any = field(compare=False)


@dataclass(frozen=True)
class LayoutPage:
    """
    One physical page.

    Attributes:
        section_index: Index of the section that produced this page
        page_index: Global 0-based page index
        geometry: Page geometry (height may exceed the template for auto-height pages)
        bands: Placed bands in drawing order (background bands first)
        footnotes: Footnotes marked on this page, numbered from 1
        footnote_top: Top of the footnote block (content-area offset)
    """

    section_index: int
    page_index: int
    geometry: PageGeometry
    bands: Tuple[PlacedBand, ...]
    footnotes: Tuple[FootnoteEntry, ...] = ()
    footnote_top: float = 0.0

    @property
    def page_number(self) -> int:
        return self.page_index + 1

    @property
    def flow_bands(self) -> Tuple[PlacedBand, ...]:
        """Placed bands excluding page backgrounds."""
        return tuple(b for b in self.bands if b.band.type != BandType.BACKGROUND)

    def bands_of(self, band_type: BandType) -> List[PlacedBand]:
        return [b for b in self.bands if b.band.type == band_type]


@dataclass(frozen=True)
class LayoutResult:
    """
    Final layout output.

    Attributes:
        pages: Tuple of LayoutPages in output order
        warnings: Layout warnings as plain strings (full detail lives in diagnostics)
    """

    pages: Tuple[LayoutPage, ...]
    warnings: Tuple[str, ...] = ()

    @property
    def page_count(self) -> int:
        """Number of pages."""
        return len(self.pages)

    @property
    def total_placements(self) -> int:
        """Total number of band instances across all pages."""
        return sum(len(page.bands) for page in self.pages)

    def placements_of(self, band_type: BandType) -> List[PlacedBand]:
        """All placements of one band type across every page, in order."""
        found: List[PlacedBand] = []
        for page in self.pages:
            found.extend(page.bands_of(band_type))
        return found


def freeze_scope(scope: Dict[str, Any]) -> Mapping[str, Any]:
    """Read-only view of a scope dict."""
    return MappingProxyType(dict(scope))
