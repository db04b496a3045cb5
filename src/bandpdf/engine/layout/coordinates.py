"""
Module: engine.layout.coordinates

Template space is top-down with its origin at the top-left of the page
content area; PDF space is bottom-up with its origin at the page's
bottom-left corner. Callers sum band offsets, container offsets and frame
offsets first, then convert each leaf position exactly once.
"""

from __future__ import annotations

from typing import NamedTuple


class PagePoint(NamedTuple):
    x: float
    y: float


def to_page_space(
    x: float,
    y: float,
    page_height: float,
    margin_top: float,
    margin_left: float,
) -> PagePoint:
    """
    Convert a template-space point to PDF page space.

    Example:
        >>> to_page_space(100, 50, 792, 40, 40)
        PagePoint(x=140, y=702)
    """
    return PagePoint(margin_left + x, page_height - margin_top - y)
