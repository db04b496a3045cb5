"""
Module: engine.resources.charts

Purpose:
    Build chart drawings with reportlab.graphics.charts, memoised in a
    single-flight cache keyed by the canonical JSON of the chart spec.

Supported chart types:
    - bar: Vertical bar chart
    - horizontalBar: Horizontal bar chart
    - line: Line chart
    - pie: Pie chart (first series only)

Key Functions:
    - build_chart(): spec -> reportlab Drawing
"""

from __future__ import annotations

import json
import logging
from typing import Any, List, Mapping, Sequence

from reportlab.graphics.charts.barcharts import HorizontalBarChart, VerticalBarChart
from reportlab.graphics.charts.legends import Legend
from reportlab.graphics.charts.linecharts import HorizontalLineChart
from reportlab.graphics.charts.piecharts import Pie
from reportlab.graphics.shapes import Drawing, String
from reportlab.lib import colors

from bandpdf.core.utils.colors import parse_color
from .cache import SingleFlightCache
from .errors import ResourceError

logger = logging.getLogger(__name__)

DEFAULT_PALETTE = ("#4e79a7", "#f28e2b", "#e15759", "#76b7b2", "#59a14f", "#edc948", "#b07aa1")
DEFAULT_CHART_WIDTH = 400.0
DEFAULT_CHART_HEIGHT = 300.0
CHART_TYPES = ("bar", "horizontalBar", "line", "pie")


def chart_key(spec: Mapping[str, Any]) -> str:
    """Canonical cache key for a chart spec."""
    return json.dumps(spec, sort_keys=True, default=str)


def _palette(spec: Mapping[str, Any]) -> List[colors.Color]:
    names = spec.get("colors") or DEFAULT_PALETTE
    return [parse_color(name, colors.grey) for name in names]


def _series(spec: Mapping[str, Any]) -> List[List[float]]:
    series = spec.get("series") or []
    try:
        return [[float(v) for v in values] for values in series]
    except (TypeError, ValueError) as e:
        raise ResourceError(f"Chart series must be numeric: {e}") from e


def _add_legend(drawing: Drawing, names: Sequence[str], palette: List[colors.Color], x: float, y: float) -> None:
    legend = Legend()
    legend.x = x
    legend.y = y
    legend.fontSize = 8
    legend.alignment = "right"
    legend.colorNamePairs = [(palette[i % len(palette)], str(name)) for i, name in enumerate(names)]
    drawing.add(legend)


def build_chart(spec: Mapping[str, Any]) -> Drawing:
    """
    Build a chart drawing.

    Args:
        spec: ``chartType``, ``series`` (list of numeric lists), and optional
              ``categories``, ``seriesNames``, ``colors``, ``title``,
              ``legend``, ``width``, ``height``

    Raises:
        ResourceError: Unknown chart type or no data
    """
    chart_type = spec.get("chartType", "bar")
    if chart_type not in CHART_TYPES:
        raise ResourceError(f"Unsupported chart type '{chart_type}'")
    series = _series(spec)
    if not series or not any(series):
        raise ResourceError("Chart has no data")

    width = float(spec.get("width") or DEFAULT_CHART_WIDTH)
    height = float(spec.get("height") or DEFAULT_CHART_HEIGHT)
    categories = [str(c) for c in spec.get("categories") or []]
    palette = _palette(spec)
    title = spec.get("title")
    show_legend = bool(spec.get("legend", False))
    series_names = spec.get("seriesNames") or [f"Series {i + 1}" for i in range(len(series))]

    drawing = Drawing(width, height)
    top_pad = 28 if title else 12
    legend_pad = 90 if show_legend else 0

    if chart_type == "pie":
        pie = Pie()
        size = max(10.0, min(width - legend_pad, height - top_pad) - 20)
        pie.x = (width - legend_pad - size) / 2
        pie.y = (height - top_pad - size) / 2
        pie.width = pie.height = size
        pie.data = series[0]
        if categories and not show_legend:
            pie.labels = categories[: len(series[0])]
        for i in range(len(series[0])):
            pie.slices[i].fillColor = palette[i % len(palette)]
            pie.slices[i].strokeColor = colors.white
        drawing.add(pie)
        if show_legend:
            _add_legend(drawing, categories or [str(i + 1) for i in range(len(series[0]))], palette, width - 5, height - top_pad)
    else:
        if chart_type == "bar":
            chart = VerticalBarChart()
        elif chart_type == "horizontalBar":
            chart = HorizontalBarChart()
        else:
            chart = HorizontalLineChart()
        chart.x = 45
        chart.y = 35
        chart.width = max(10.0, width - 60 - legend_pad)
        chart.height = max(10.0, height - 35 - top_pad)
        chart.data = [tuple(values) for values in series]
        if categories:
            chart.categoryAxis.categoryNames = categories
        chart.categoryAxis.labels.fontSize = 8
        chart.valueAxis.labels.fontSize = 8
        chart.valueAxis.valueMin = min(0.0, min(min(s) for s in series if s))
        for i in range(len(series)):
            color = palette[i % len(palette)]
            if chart_type == "line":
                chart.lines[i].strokeColor = color
                chart.lines[i].strokeWidth = 1.5
            else:
                chart.bars[i].fillColor = color
                chart.bars[i].strokeColor = None
        drawing.add(chart)
        if show_legend:
            _add_legend(drawing, series_names, palette, width - 5, height - top_pad)

    if title:
        drawing.add(String(width / 2, height - 18, str(title), textAnchor="middle", fontSize=12))

    return drawing


class ChartCache:
    """Single-flight cache of generated chart drawings."""

    def __init__(self) -> None:
        self._cache: SingleFlightCache[str, Drawing] = SingleFlightCache("charts")

    def get(self, spec: Mapping[str, Any]) -> Drawing:
        return self._cache.get(chart_key(spec), lambda: build_chart(spec))

    def __len__(self) -> int:
        return len(self._cache)
