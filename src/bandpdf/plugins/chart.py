"""
Module: plugins.chart

Purpose:
    Chart element (bar, horizontal bar, line, pie) built with
    reportlab.graphics.charts through the chart cache.

    Data comes either from ``series`` (list of numeric lists) or from
    ``dataSource``: a list of records (or a dotted path into the scope)
    read through ``categoryField`` and ``valueFields``.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Sequence

from bandpdf.core.utils.data import resolve_dot_path
from bandpdf.engine.resources.charts import CHART_TYPES
from .base import ElementPlugin, MeasureContext, PropValidationError, RenderContext, Size, one_of
from .drawing import draw_fitted, fill_box, fitted_height
from .fit import FIT_MODES


def _records(props: Mapping[str, Any], scope: Mapping[str, Any]) -> Sequence[Any]:
    source = props.get("dataSource")
    if isinstance(source, str):
        source = resolve_dot_path(scope, source)
    return source if isinstance(source, (list, tuple)) else []


def chart_spec(props: Mapping[str, Any], scope: Mapping[str, Any], width: float, height: float) -> Dict[str, Any]:
    """Cache spec for a chart sized to its element box."""
    categories = props.get("categories")
    series = props.get("series")
    series_names = props.get("seriesNames")

    records = _records(props, scope)
    value_fields = props.get("valueFields") or []
    if records and value_fields:
        category_field = props.get("categoryField")
        if category_field:
            categories = [resolve_dot_path(row, category_field) for row in records]
        series = [[resolve_dot_path(row, name) or 0 for row in records] for name in value_fields]
        series_names = series_names or list(value_fields)

    return {
        "chartType": props.get("chartType"),
        "series": series or [],
        "categories": categories,
        "seriesNames": series_names,
        "colors": props.get("colors"),
        "title": props.get("title"),
        "legend": bool(props.get("legend")),
        "width": round(width, 2),
        "height": round(height, 2),
    }


class ChartPlugin(ElementPlugin):
    type = "chart"
    default_props = {
        "chartType": "bar",
        "series": None,
        "dataSource": None,
        "categoryField": None,
        "valueFields": None,
        "categories": None,
        "seriesNames": None,
        "colors": None,
        "title": None,
        "legend": False,
        "fit": "contain",
        "backgroundColor": None,
    }

    def validate(self, props: Mapping[str, Any]) -> List[PropValidationError]:
        errors = one_of(props, "chartType", CHART_TYPES) + one_of(props, "fit", FIT_MODES)
        if props.get("series") is None and props.get("dataSource") is None:
            errors.append(PropValidationError("series", "series or dataSource is required"))
        return errors

    def measure(self, props: Mapping[str, Any], ctx: MeasureContext) -> Size:
        spec = chart_spec(props, ctx.scope, ctx.available_width, ctx.available_height)
        drawing = ctx.services.charts.get(spec)
        height = fitted_height(drawing, ctx.available_width, ctx.available_height, props.get("fit", "contain"))
        return Size(ctx.available_width, height)

    def render(self, props: Mapping[str, Any], ctx: RenderContext) -> None:
        # Built at the declared box height so the cached drawing matches measure
        declared_height = ctx.element.height - ctx.style.padding.vertical
        spec = chart_spec(props, ctx.scope, ctx.width, max(ctx.height, declared_height))
        drawing = ctx.services.charts.get(spec)
        fill_box(ctx.canvas, props.get("backgroundColor"), ctx.x, ctx.bottom, ctx.width, ctx.height)
        draw_fitted(drawing, ctx, props.get("fit", "contain"))
