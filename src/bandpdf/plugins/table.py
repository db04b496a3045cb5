"""
Module: plugins.table

Purpose:
    Data table element with a header row, striped body rows, wrapped cell
    text and cell borders. Splits at row boundaries; the continuation
    repeats the header unless ``headerRepeat`` is false.

Column widths:
    Columns with a fixed ``width`` take it first; the remaining width is
    shared among the other columns by ``flex`` weight (default 1).

Key Functions:
    - compute_column_widths(): Column definitions -> widths
    - measure_table(): Row heights for a set of props

Used By:
    - plugins.registry
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from bandpdf.core.utils.colors import parse_color
from bandpdf.core.utils.data import resolve_dot_path
from bandpdf.engine.layout.style import ResolvedStyle
from .base import (
    ElementPlugin,
    MeasureContext,
    PropValidationError,
    RenderContext,
    Size,
    SplitResult,
    non_negative,
)
from .drawing import fill_box
from .typesetting import draw_lines, lines_height, wrap_text


def compute_column_widths(columns: Sequence[Mapping[str, Any]], available_width: float) -> List[float]:
    """
    Example:
        >>> compute_column_widths([{"key": "a", "width": 100}, {"key": "b"}, {"key": "c", "flex": 3}], 500)
        [100, 100.0, 300.0]
    """
    widths: List[float] = [0.0] * len(columns)
    fixed_total = 0.0
    flexible: List[int] = []
    for i, column in enumerate(columns):
        width = column.get("width")
        if width is not None:
            widths[i] = width
            fixed_total += width
        else:
            flexible.append(i)

    if not flexible:
        return widths

    remaining = max(0.0, available_width - fixed_total)
    total_flex = sum(float(columns[i].get("flex", 1)) for i in flexible)
    for i in flexible:
        flex = float(columns[i].get("flex", 1))
        widths[i] = remaining * flex / total_flex if total_flex > 0 else remaining / len(flexible)
    return widths


def _cell_text(row: Any, key: str) -> str:
    value = resolve_dot_path(row, key)
    return "" if value is None else str(value)


@dataclass(frozen=True)
class TableStyles:
    header: ResolvedStyle
    row: ResolvedStyle
    alternate: ResolvedStyle

    def for_row(self, index: int) -> ResolvedStyle:
        return self.row if index % 2 == 0 else self.alternate


@dataclass(frozen=True)
class TableMeasurement:
    column_widths: List[float]
    header_height: float
    row_heights: List[float]

    @property
    def total_height(self) -> float:
        return self.header_height + sum(self.row_heights)


def _styles(props: Mapping[str, Any], ctx: "MeasureContext | RenderContext") -> TableStyles:
    named = ctx.services.styles

    def layer(name: Optional[str], base: ResolvedStyle) -> ResolvedStyle:
        return base.with_overrides(named.get(name)) if name else base

    row = layer(props.get("rowStyle"), ctx.style)
    return TableStyles(
        header=layer(props.get("headerStyle"), ctx.style),
        row=row,
        alternate=layer(props.get("alternateRowStyle"), ctx.style) if props.get("alternateRowStyle") else row,
    )


def _row_height(cells: Sequence[str], widths: Sequence[float], padding: float, style: ResolvedStyle, fonts) -> float:
    tallest = 0.0
    for text, width in zip(cells, widths):
        lines = wrap_text(text, max(0.0, width - 2 * padding), fonts, style)
        tallest = max(tallest, lines_height(lines))
    return tallest + 2 * padding


def _header_cells(props: Mapping[str, Any]) -> List[str]:
    return [str(col.get("header", col.get("key", ""))) for col in props["columns"]]


def _row_cells(props: Mapping[str, Any], row: Any) -> List[str]:
    return [_cell_text(row, str(col.get("key", ""))) for col in props["columns"]]


def measure_table(props: Mapping[str, Any], ctx: "MeasureContext | RenderContext", width: float) -> TableMeasurement:
    widths = compute_column_widths(props["columns"], width)
    padding = float(props.get("cellPadding", 4))
    styles = _styles(props, ctx)

    header_height = 0.0
    if props.get("showHeader", True):
        header_height = _row_height(_header_cells(props), widths, padding, styles.header, ctx.fonts)
    row_heights = [
        _row_height(_row_cells(props, row), widths, padding, styles.for_row(i), ctx.fonts)
        for i, row in enumerate(props.get("rows") or [])
    ]
    return TableMeasurement(widths, header_height, row_heights)


class TablePlugin(ElementPlugin):
    type = "table"
    default_props = {
        "columns": [],
        "rows": [],
        "showHeader": True,
        "headerStyle": None,
        "rowStyle": None,
        "alternateRowStyle": None,
        "borderWidth": 0.5,
        "borderColor": "#000000",
        "cellPadding": 4,
        "headerRepeat": True,
    }
    can_split = True

    def validate(self, props: Mapping[str, Any]) -> List[PropValidationError]:
        errors: List[PropValidationError] = []
        columns = props.get("columns")
        if not isinstance(columns, (list, tuple)) or not columns:
            errors.append(PropValidationError("columns", "must have at least one column"))
        elif not all(isinstance(col, Mapping) and col.get("key") for col in columns):
            errors.append(PropValidationError("columns", "every column needs a key"))
        if not isinstance(props.get("rows"), (list, tuple)):
            errors.append(PropValidationError("rows", "must be an array"))
        return errors + non_negative(props, "borderWidth", "cellPadding")

    def measure(self, props: Mapping[str, Any], ctx: MeasureContext) -> Size:
        return Size(ctx.available_width, measure_table(props, ctx, ctx.available_width).total_height)

    def split(self, props: Mapping[str, Any], ctx: MeasureContext, available_height: float) -> Optional[SplitResult]:
        rows = list(props.get("rows") or [])
        if not rows:
            return None
        m = measure_table(props, ctx, ctx.available_width)

        used = m.header_height
        if used > available_height:
            return None
        fit = 0
        for height in m.row_heights:
            if used + height > available_height:
                break
            used += height
            fit += 1
        if fit == 0 or fit == len(rows):
            return None

        head = {**props, "rows": rows[:fit]}
        tail = {
            **props,
            "rows": rows[fit:],
            "showHeader": bool(props.get("showHeader", True)) and bool(props.get("headerRepeat", True)),
        }
        return SplitResult(head=head, tail=tail)

    def render(self, props: Mapping[str, Any], ctx: RenderContext) -> None:
        rows = list(props.get("rows") or [])
        show_header = props.get("showHeader", True)
        if not rows and not show_header:
            return

        m = measure_table(props, ctx, ctx.width)
        styles = _styles(props, ctx)
        padding = float(props.get("cellPadding", 4))
        canvas = ctx.canvas

        bands: List[Tuple[float, float]] = []
        cursor = 0.0
        if show_header:
            self._draw_row(ctx, _header_cells(props), props, m.column_widths, cursor, m.header_height, padding, styles.header)
            bands.append((cursor, m.header_height))
            cursor += m.header_height
        for i, row in enumerate(rows):
            height = m.row_heights[i]
            self._draw_row(ctx, _row_cells(props, row), props, m.column_widths, cursor, height, padding, styles.for_row(i))
            bands.append((cursor, height))
            cursor += height

        border_width = float(props.get("borderWidth", 0.5))
        if border_width <= 0 or not bands:
            return
        canvas.saveState()
        canvas.setStrokeColor(parse_color(props.get("borderColor"), parse_color("#000000")))
        canvas.setLineWidth(border_width)
        right = ctx.x + sum(m.column_widths)
        for offset, height in bands:
            top = ctx.y - offset
            canvas.line(ctx.x, top, right, top)
            x = ctx.x
            canvas.line(x, top, x, top - height)
            for width in m.column_widths:
                x += width
                canvas.line(x, top, x, top - height)
        bottom = ctx.y - cursor
        canvas.line(ctx.x, bottom, right, bottom)
        canvas.restoreState()

    @staticmethod
    def _draw_row(
        ctx: RenderContext,
        cells: Sequence[str],
        props: Mapping[str, Any],
        widths: Sequence[float],
        offset: float,
        height: float,
        padding: float,
        style: ResolvedStyle,
    ) -> None:
        top = ctx.y - offset
        fill_box(ctx.canvas, style.background_color, ctx.x, top - height, sum(widths), height)
        x = ctx.x
        for text, width, column in zip(cells, widths, props["columns"]):
            content_width = max(0.0, width - 2 * padding)
            lines = wrap_text(text, content_width, ctx.fonts, style)
            align = column.get("align") or style.text_align
            draw_lines(ctx.canvas, lines, x + padding, top - padding, content_width, align, ctx.fonts)
            x += width
