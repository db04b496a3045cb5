"""
Barcode element (QR, Code 128/39/93, EAN, UPC-A, I2of5, Codabar,
Data Matrix). Drawings are generated once per distinct spec through the
barcode cache and scaled into the element box.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping

from bandpdf.engine.resources.barcodes import BARCODE_FORMATS
from .base import ElementPlugin, MeasureContext, PropValidationError, RenderContext, Size, one_of, require
from .drawing import draw_fitted, fill_box, fitted_height
from .fit import FIT_MODES


def barcode_spec(props: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "value": str(props.get("value", "")),
        "format": props.get("format"),
        "barColor": props.get("barColor"),
        "includeText": bool(props.get("includeText")),
        "barHeight": props.get("barHeight"),
    }


class BarcodePlugin(ElementPlugin):
    type = "barcode"
    default_props = {
        "value": "",
        "format": "qrcode",
        "barColor": "#000000",
        "backgroundColor": None,
        "includeText": False,
        "barHeight": None,
        "fit": "contain",
    }

    def validate(self, props: Mapping[str, Any]) -> List[PropValidationError]:
        return (
            require(props, "value")
            + one_of(props, "format", BARCODE_FORMATS)
            + one_of(props, "fit", FIT_MODES)
        )

    def measure(self, props: Mapping[str, Any], ctx: MeasureContext) -> Size:
        drawing = ctx.services.barcodes.get(barcode_spec(props))
        height = fitted_height(drawing, ctx.available_width, ctx.available_height, props.get("fit", "contain"))
        return Size(ctx.available_width, height)

    def render(self, props: Mapping[str, Any], ctx: RenderContext) -> None:
        drawing = ctx.services.barcodes.get(barcode_spec(props))
        fill_box(ctx.canvas, props.get("backgroundColor"), ctx.x, ctx.bottom, ctx.width, ctx.height)
        draw_fitted(drawing, ctx, props.get("fit", "contain"))
