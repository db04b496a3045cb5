"""Shape element: rectangle (optionally rounded), circle or ellipse."""

from __future__ import annotations

from typing import Any, List, Mapping

from bandpdf.core.utils.colors import parse_color
from .base import ElementPlugin, MeasureContext, PropValidationError, RenderContext, Size, non_negative, one_of
from .drawing import set_dash

SHAPE_TYPES = ("rect", "circle", "ellipse")


class ShapePlugin(ElementPlugin):
    type = "shape"
    default_props = {
        "shapeType": "rect",
        "fillColor": None,
        "strokeColor": None,
        "strokeWidth": None,
        "borderRadius": 0,
        "dashPattern": None,
    }

    def validate(self, props: Mapping[str, Any]) -> List[PropValidationError]:
        return one_of(props, "shapeType", SHAPE_TYPES) + non_negative(props, "strokeWidth", "borderRadius")

    def measure(self, props: Mapping[str, Any], ctx: MeasureContext) -> Size:
        return Size(ctx.available_width, ctx.available_height)

    def render(self, props: Mapping[str, Any], ctx: RenderContext) -> None:
        fill = parse_color(props.get("fillColor"))
        stroke = parse_color(props.get("strokeColor"))
        stroke_width = props.get("strokeWidth")
        if stroke_width is None:
            stroke_width = 1 if stroke is not None else 0
        do_stroke = 1 if stroke is not None and stroke_width > 0 else 0
        do_fill = 1 if fill is not None else 0
        if not (do_fill or do_stroke):
            return

        canvas = ctx.canvas
        canvas.saveState()
        if fill is not None:
            canvas.setFillColor(fill)
        if do_stroke:
            canvas.setStrokeColor(stroke)
            canvas.setLineWidth(float(stroke_width))
            set_dash(canvas, props.get("dashPattern"))

        shape_type = props.get("shapeType", "rect")
        if shape_type == "circle":
            radius = min(ctx.width, ctx.height) / 2
            canvas.circle(ctx.x + ctx.width / 2, ctx.y - ctx.height / 2, radius, stroke=do_stroke, fill=do_fill)
        elif shape_type == "ellipse":
            canvas.ellipse(ctx.x, ctx.bottom, ctx.x + ctx.width, ctx.y, stroke=do_stroke, fill=do_fill)
        else:
            radius = min(float(props.get("borderRadius") or 0), ctx.width / 2, ctx.height / 2)
            if radius > 0:
                canvas.roundRect(ctx.x, ctx.bottom, ctx.width, ctx.height, radius, stroke=do_stroke, fill=do_fill)
            else:
                canvas.rect(ctx.x, ctx.bottom, ctx.width, ctx.height, stroke=do_stroke, fill=do_fill)
        canvas.restoreState()
