"""
Module: engine.layout.style

Purpose:
    Cascading style resolution for elements.

    Layers, later wins, each property independently:
        built-in defaults < template default style < named style < inline overrides

    Style mappings use the template's camelCase keys (fontSize,
    textAlign, ...). The result is a frozen ResolvedStyle so that resolving
    twice yields equal values and nothing downstream can mutate it.

Key Functions:
    - resolve_style(): Cascade for one element
    - normalize_padding(): Shorthand padding -> Padding

Key Classes:
    - ResolvedStyle: Fully populated style
    - Padding: Per-side padding, never negative

Used By:
    - engine.layout.measure: Measure contexts
    - engine.output.renderer: Render contexts
    - plugins: Text runs, table cells
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, Optional


@dataclass(frozen=True)
class Padding:
    """Per-side padding in points."""

    top: float = 0.0
    right: float = 0.0
    bottom: float = 0.0
    left: float = 0.0

    @property
    def horizontal(self) -> float:
        return self.left + self.right

    @property
    def vertical(self) -> float:
        return self.top + self.bottom


def _clamp(value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or number < 0:
        return 0.0
    return number


def normalize_padding(value: Any) -> Padding:
    """
    Normalise a padding shorthand.

    Args:
        value: None, a number, a Padding, or a per-side mapping

    Returns:
        Padding with every negative side clamped to 0

    Example:
        >>> normalize_padding(4)
        Padding(top=4.0, right=4.0, bottom=4.0, left=4.0)
        >>> normalize_padding({"top": -3, "left": 2})
        Padding(top=0.0, right=0.0, bottom=0.0, left=2.0)
    """
    if value is None:
        return Padding()
    if isinstance(value, Padding):
        return Padding(_clamp(value.top), _clamp(value.right), _clamp(value.bottom), _clamp(value.left))
    if isinstance(value, Mapping):
        return Padding(
            top=_clamp(value.get("top", 0)),
            right=_clamp(value.get("right", 0)),
            bottom=_clamp(value.get("bottom", 0)),
            left=_clamp(value.get("left", 0)),
        )
    n = _clamp(value)
    return Padding(n, n, n, n)


# Template key -> ResolvedStyle field
_STYLE_KEYS: Dict[str, str] = {
    "fontFamily": "font_family",
    "fontSize": "font_size",
    "fontWeight": "font_weight",
    "fontStyle": "font_style",
    "color": "color",
    "textAlign": "text_align",
    "lineHeight": "line_height",
    "letterSpacing": "letter_spacing",
    "textDecoration": "text_decoration",
    "backgroundColor": "background_color",
    "borderWidth": "border_width",
    "borderColor": "border_color",
    "borderRadius": "border_radius",
    "padding": "padding",
    "opacity": "opacity",
}


@dataclass(frozen=True)
class ResolvedStyle:
    """
    Fully populated style (immutable).

    Every field has a value; the defaults here are the built-in bottom
    layer of the cascade.
    """

    font_family: str = "Helvetica"
    font_size: float = 12.0
    font_weight: str = "normal"
    font_style: str = "normal"
    color: str = "#000000"
    text_align: str = "left"
    line_height: float = 1.2
    letter_spacing: float = 0.0
    text_decoration: str = "none"
    background_color: Any = None
    border_width: float = 0.0
    border_color: str = "#000000"
    border_radius: float = 0.0
    padding: Padding = field(default_factory=Padding)
    opacity: float = 1.0

    @property
    def is_bold(self) -> bool:
        return str(self.font_weight) in ("bold", "bolder") or (
            str(self.font_weight).isdigit() and int(self.font_weight) >= 600
        )

    @property
    def is_italic(self) -> bool:
        return self.font_style in ("italic", "oblique")

    @property
    def leading(self) -> float:
        """Distance between baselines in points."""
        return self.font_size * self.line_height

    def with_overrides(self, overrides: Optional[Mapping[str, Any]]) -> "ResolvedStyle":
        """Return a copy with a further style layer applied on top."""
        if not overrides:
            return self
        changes = {}
        for key, value in overrides.items():
            name = _STYLE_KEYS.get(key)
            if name is None or value is None:
                continue
            changes[name] = normalize_padding(value) if name == "padding" else value
        return replace(self, **changes) if changes else self


def resolve_style(
    element: Any,
    named_styles: Optional[Mapping[str, Mapping[str, Any]]],
    default_style: Optional[Mapping[str, Any]],
) -> ResolvedStyle:
    """
    Resolve an element's style through the cascade.

    An unknown named style resolves to an empty layer. Pure function:
    safe to call once per measure and again per render.

    Args:
        element: Anything with ``style`` and ``style_overrides`` attributes
        named_styles: Template named styles
        default_style: Template-wide default style layer

    Returns:
        ResolvedStyle

    Example:
        >>> el = Element(id="t", type="text", x=0, y=0, width=10, height=10,
        ...              style="h1", style_overrides={"color": "#ff0000"})
        >>> s = resolve_style(el, {"h1": {"fontSize": 24, "color": "#00ff00"}}, {})
        >>> (s.font_size, s.color)
        (24, '#ff0000')
    """
    named = {}
    style_name = getattr(element, "style", None)
    if style_name and named_styles:
        named = named_styles.get(style_name) or {}

    return (
        ResolvedStyle()
        .with_overrides(default_style)
        .with_overrides(named)
        .with_overrides(getattr(element, "style_overrides", None))
    )
