"""
Module: engine.layout.config

Purpose:
    Resolve the page geometry used by a section's pages.

Key Functions:
    - merge_page_config(): Template default + section override -> PageGeometry

Key Classes:
    - PageGeometry: Complete, validated page geometry
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from bandpdf.core.models import Margins, PageConfig, TemplateError
from bandpdf.core.models.template import page_dimensions


@dataclass(frozen=True)
class PageGeometry:
    """
    Page geometry for one section (immutable).

    Attributes:
        width: Page width in points
        height: Page height in points
        margins: Page margins
        auto_height: Page grows to fit content; no page breaks

    Example:
        >>> geometry = PageGeometry(612, 792, Margins(40, 40, 40, 40))
        >>> geometry.content_height
        712.0
    """

    width: float
    height: float
    margins: Margins = Margins()
    auto_height: bool = False

    def __post_init__(self) -> None:
        """Validate geometry on construction."""
        if self.width <= 0:
            raise TemplateError(f"Page width must be positive: {self.width}")
        if self.height <= 0:
            raise TemplateError(f"Page height must be positive: {self.height}")
        if self.content_width <= 0:
            raise TemplateError("Margins exceed page width")
        if self.content_height <= 0:
            raise TemplateError("Margins exceed page height")

    @property
    def content_width(self) -> float:
        """Width available for content (excluding margins)."""
        return float(self.width - self.margins.horizontal)

    @property
    def content_height(self) -> float:
        """Height available for content (excluding margins)."""
        return float(self.height - self.margins.vertical)


def merge_page_config(
    base: PageConfig,
    override: Optional[Mapping[str, Any]] = None,
) -> PageGeometry:
    """
    Merge a section's partial page override onto the template default.

    Override wins per field; margins merge per side.

    Raises:
        TemplateError: If no width/height can be resolved
    """
    width, height = base.width, base.height
    margins = base.margins
    auto_height = base.auto_height

    if override:
        o_width, o_height = page_dimensions(override)
        width = o_width if o_width is not None else width
        height = o_height if o_height is not None else height
        o_margins = override.get("margins")
        if isinstance(o_margins, Mapping):
            margins = Margins(
                top=float(o_margins.get("top", margins.top)),
                right=float(o_margins.get("right", margins.right)),
                bottom=float(o_margins.get("bottom", margins.bottom)),
                left=float(o_margins.get("left", margins.left)),
            )
        elif o_margins is not None:
            margins = Margins.from_value(o_margins)
        if "autoHeight" in override:
            auto_height = bool(override["autoHeight"])

    if width is None or height is None:
        raise TemplateError("No page width/height could be resolved for section")

    return PageGeometry(width=width, height=height, margins=margins, auto_height=auto_height)
