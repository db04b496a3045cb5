"""
Module: plugins.container

Purpose:
    Groups child elements and positions them with one of four layouts:

    - absolute: children keep their own x/y
    - horizontal: left to right, ``gap`` apart, cross-axis ``alignItems``
    - vertical: top to bottom, ``gap`` apart, cross-axis ``alignItems``
    - grid: ``gridColumns`` equal columns, rows as tall as their tallest child

    Children are measured through the engine callback, so nested
    containers recurse; nesting deeper than MAX_NESTING_DEPTH raises
    ContainerDepthError.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Sequence

from bandpdf.core.models import Element
from .base import (
    MAX_NESTING_DEPTH,
    ContainerDepthError,
    ElementPlugin,
    MeasureContext,
    PropValidationError,
    RenderContext,
    Size,
    non_negative,
    one_of,
)

LAYOUTS = ("absolute", "horizontal", "vertical", "grid")
ALIGNMENTS = ("start", "center", "end", "stretch")


@dataclass(frozen=True)
class ChildSlot:
    """Where a child goes, relative to the container content box (top-down)."""

    element: Element
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class ContainerLayout:
    slots: List[ChildSlot]
    width: float
    height: float


def _align(mode: str, available: float, size: float) -> float:
    if mode == "center":
        return (available - size) / 2
    if mode == "end":
        return available - size
    return 0.0


def layout_children(
    props: Mapping[str, Any],
    children: Sequence[Element],
    measure: Callable[[Element, float, float], float],
    width: float,
    height: float,
) -> ContainerLayout:
    """
    Position children inside a ``width`` x ``height`` content box.

    Args:
        props: Container properties
        children: Child elements in declaration order
        measure: (child, width, height) -> measured outer height
        width, height: Content box size
    """
    mode = props.get("layout", "absolute")
    gap = float(props.get("gap", 0))
    align = props.get("alignItems", "start")
    slots: List[ChildSlot] = []

    if mode == "grid":
        columns = max(1, int(props.get("gridColumns", 2)))
        column_width = max(0.0, (width - gap * (columns - 1)) / columns)
        heights = [measure(child, column_width, child.height) for child in children]
        cursor = 0.0
        for row_start in range(0, len(children), columns):
            row = list(range(row_start, min(row_start + columns, len(children))))
            row_height = max(heights[i] for i in row)
            for col, i in enumerate(row):
                child_height = row_height if align == "stretch" else heights[i]
                slots.append(ChildSlot(
                    children[i],
                    col * (column_width + gap),
                    cursor + _align(align, row_height, heights[i]),
                    column_width,
                    child_height,
                ))
            cursor += row_height + gap
        total = cursor - gap if children else 0.0
        return ContainerLayout(slots, width, total)

    if mode == "horizontal":
        heights = [measure(child, child.width, child.height) for child in children]
        tallest = max(heights, default=0.0)
        cross = max(height, tallest)
        cursor = 0.0
        for child, child_height in zip(children, heights):
            if align == "stretch":
                slots.append(ChildSlot(child, cursor, 0.0, child.width, cross))
            else:
                slots.append(ChildSlot(child, cursor, _align(align, cross, child_height), child.width, child_height))
            cursor += child.width + gap
        return ContainerLayout(slots, cursor - gap if children else 0.0, tallest)

    if mode == "vertical":
        cursor = 0.0
        widest = 0.0
        for child in children:
            child_width = width if align == "stretch" else child.width
            child_height = measure(child, child_width, child.height)
            slots.append(ChildSlot(child, _align(align, width, child_width), cursor, child_width, child_height))
            cursor += child_height + gap
            widest = max(widest, child_width)
        return ContainerLayout(slots, widest, cursor - gap if children else 0.0)

    right = bottom = 0.0
    for child in children:
        child_height = measure(child, child.width, child.height)
        slots.append(ChildSlot(child, child.x, child.y, child.width, child_height))
        right = max(right, child.x + child.width)
        bottom = max(bottom, child.y + child_height)
    return ContainerLayout(slots, right, bottom)


class ContainerPlugin(ElementPlugin):
    type = "container"
    default_props = {"layout": "absolute", "gap": 0, "gridColumns": 2, "alignItems": "start"}

    def validate(self, props: Mapping[str, Any]) -> List[PropValidationError]:
        errors = one_of(props, "layout", LAYOUTS) + one_of(props, "alignItems", ALIGNMENTS) + non_negative(props, "gap")
        columns = props.get("gridColumns")
        if not isinstance(columns, int) or columns < 1:
            errors.append(PropValidationError("gridColumns", "must be an integer of at least 1"))
        return errors

    @staticmethod
    def _check_depth(depth: int, element: Element) -> None:
        if depth >= MAX_NESTING_DEPTH:
            raise ContainerDepthError(
                f"Container '{element.id}' nests deeper than {MAX_NESTING_DEPTH} levels"
            )

    def measure(self, props: Mapping[str, Any], ctx: MeasureContext) -> Size:
        self._check_depth(ctx.depth, ctx.element)
        children = ctx.element.elements
        if not children or ctx.measure_child is None:
            return Size(ctx.available_width, ctx.available_height)
        layout = layout_children(props, children, ctx.measure_child, ctx.available_width, ctx.available_height)
        return Size(layout.width, layout.height)

    def render(self, props: Mapping[str, Any], ctx: RenderContext) -> None:
        self._check_depth(ctx.depth, ctx.element)
        children = ctx.element.elements
        if not children or ctx.render_child is None or ctx.measure_child is None:
            return
        # Measured heights are memoised for this draw so each child is measured once
        measured: Dict[str, float] = {}

        def measure(child: Element, width: float, height: float) -> float:
            if child.id not in measured:
                measured[child.id] = ctx.measure_child(child, width, height)
            return measured[child.id]

        layout = layout_children(props, children, measure, ctx.width, ctx.height)
        for slot in layout.slots:
            ctx.render_child(slot.element, slot.x, slot.y, slot.width, slot.height)
