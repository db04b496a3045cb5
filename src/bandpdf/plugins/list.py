"""
Module: plugins.list

Purpose:
    Bulleted, numbered or lettered list with nested children. Item text
    wraps beside its marker; nested levels indent by ``indent`` points.
    Splits between top-level items and keeps numbering across the split.

Properties:
    - items: strings or ``{content, children}``
    - listType: bullet | numbered | lettered
    - bulletStyle, indent, itemSpacing
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from .base import (
    ElementPlugin,
    MeasureContext,
    PropValidationError,
    RenderContext,
    Size,
    SplitResult,
    non_negative,
    one_of,
)
from .typesetting import Line, draw_lines, lines_height, plain_text, wrap_text

LIST_TYPES = ("bullet", "numbered", "lettered")

# Numbering offset carried by split continuations
START_KEY = "_startIndex"


def to_letter(index: int) -> str:
    """0 -> a, 25 -> z, 26 -> aa."""
    result = ""
    n = index
    while True:
        result = chr(97 + n % 26) + result
        n = n // 26 - 1
        if n < 0:
            return result


def marker_for(list_type: str, index: int, bullet: str) -> str:
    if list_type == "numbered":
        return f"{index + 1}."
    if list_type == "lettered":
        return f"{to_letter(index)}."
    return bullet


def _split_item(item: Any) -> Tuple[Any, List[Any]]:
    if isinstance(item, Mapping):
        return item.get("content", ""), list(item.get("children") or [])
    return item, []


@dataclass(frozen=True)
class ListEntry:
    """One laid-out item (any depth), offset from the list top."""

    depth: int
    marker: str
    marker_width: float
    text_width: float
    lines: List[Line]
    offset: float


@dataclass(frozen=True)
class ListLayout:
    entries: List[ListEntry]
    # (top, bottom) of each top-level item including its children
    spans: List[Tuple[float, float]]
    height: float


def layout_list(props: Mapping[str, Any], ctx: "MeasureContext | RenderContext", width: float) -> ListLayout:
    style = ctx.style
    fonts = ctx.fonts
    font = fonts.font_name(style)
    list_type = props.get("listType", "bullet")
    bullet = str(props.get("bulletStyle", "•"))
    indent = float(props.get("indent", 15))
    spacing = float(props.get("itemSpacing", 2))

    entries: List[ListEntry] = []
    spans: List[Tuple[float, float]] = []

    def walk(items: Sequence[Any], depth: int, cursor: float, start: int) -> float:
        for i, item in enumerate(items):
            top = cursor
            content, children = _split_item(item)
            marker = marker_for(list_type, start + i, bullet)
            marker_width = fonts.string_width(marker + " ", font, style.font_size, style.letter_spacing)
            text_width = max(1.0, width - depth * indent - marker_width)
            lines = wrap_text(plain_text(content), text_width, fonts, style)
            entries.append(ListEntry(depth, marker, marker_width, text_width, lines, cursor))
            cursor += max(lines_height(lines), style.leading)
            if children:
                cursor += spacing
                cursor = walk(children, depth + 1, cursor, 0)
            if depth == 0:
                spans.append((top, cursor))
            if i < len(items) - 1:
                cursor += spacing
        return cursor

    height = walk(list(props.get("items") or []), 0, 0.0, int(props.get(START_KEY, 0)))
    return ListLayout(entries, spans, height)


class ListPlugin(ElementPlugin):
    type = "list"
    default_props = {
        "items": [],
        "listType": "bullet",
        "bulletStyle": "•",
        "indent": 15,
        "itemSpacing": 2,
    }
    can_split = True

    def validate(self, props: Mapping[str, Any]) -> List[PropValidationError]:
        errors = one_of(props, "listType", LIST_TYPES) + non_negative(props, "indent", "itemSpacing")
        if not isinstance(props.get("items"), (list, tuple)):
            errors.append(PropValidationError("items", "must be an array"))
        return errors

    def measure(self, props: Mapping[str, Any], ctx: MeasureContext) -> Size:
        return Size(ctx.available_width, layout_list(props, ctx, ctx.available_width).height)

    def split(self, props: Mapping[str, Any], ctx: MeasureContext, available_height: float) -> Optional[SplitResult]:
        items = list(props.get("items") or [])
        layout = layout_list(props, ctx, ctx.available_width)
        fit = sum(1 for _, bottom in layout.spans if bottom <= available_height)
        if fit == 0 or fit == len(items):
            return None
        start = int(props.get(START_KEY, 0))
        head = {**props, "items": items[:fit]}
        tail = {**props, "items": items[fit:], START_KEY: start + fit}
        return SplitResult(head=head, tail=tail)

    def render(self, props: Mapping[str, Any], ctx: RenderContext) -> None:
        indent = float(props.get("indent", 15))
        layout = layout_list(props, ctx, ctx.width)
        for entry in layout.entries:
            top = ctx.y - entry.offset
            x = ctx.x + entry.depth * indent
            marker_lines = wrap_text(entry.marker, entry.marker_width + 1, ctx.fonts, ctx.style)
            draw_lines(ctx.canvas, marker_lines, x, top, entry.marker_width, "left", ctx.fonts)
            draw_lines(ctx.canvas, entry.lines, x + entry.marker_width, top, entry.text_width, ctx.style.text_align, ctx.fonts)
