"""Line element: a horizontal or vertical rule through the middle of its box."""

from __future__ import annotations

from typing import Any, List, Mapping

from bandpdf.core.utils.colors import parse_color
from .base import ElementPlugin, MeasureContext, PropValidationError, RenderContext, Size, one_of
from .drawing import set_dash


class LinePlugin(ElementPlugin):
    type = "line"
    default_props = {"color": "#000000", "thickness": 1, "direction": "horizontal", "dashPattern": None}

    def validate(self, props: Mapping[str, Any]) -> List[PropValidationError]:
        errors = one_of(props, "direction", ("horizontal", "vertical"))
        thickness = props.get("thickness")
        if not isinstance(thickness, (int, float)) or thickness <= 0:
            errors.append(PropValidationError("thickness", "must be greater than 0"))
        return errors

    def measure(self, props: Mapping[str, Any], ctx: MeasureContext) -> Size:
        thickness = float(props["thickness"])
        if props.get("direction") == "vertical":
            return Size(thickness, ctx.available_height)
        return Size(ctx.available_width, thickness)

    def render(self, props: Mapping[str, Any], ctx: RenderContext) -> None:
        canvas = ctx.canvas
        canvas.saveState()
        canvas.setStrokeColor(parse_color(props.get("color"), parse_color("#000000")))
        canvas.setLineWidth(float(props["thickness"]))
        set_dash(canvas, props.get("dashPattern"))
        if props.get("direction") == "vertical":
            x = ctx.x + ctx.width / 2
            canvas.line(x, ctx.y, x, ctx.bottom)
        else:
            y = ctx.y - ctx.height / 2
            canvas.line(ctx.x, y, ctx.x + ctx.width, y)
        canvas.restoreState()
