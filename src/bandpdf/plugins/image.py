"""
Module: plugins.image

Purpose:
    Raster image element (PNG/JPEG). Images come from the shared image
    cache, so concurrent elements with the same ``src`` trigger one fetch.

    Measure returns the contain-fit height for ``fit: contain`` and the
    declared box height for every other mode. Render clips for cover and
    none.

Properties:
    - src: file path, http(s) URL or data URI (required)
    - fit: contain | cover | fill | none
"""

from __future__ import annotations

from typing import Any, List, Mapping

from .base import ElementPlugin, MeasureContext, PropValidationError, RenderContext, Size, one_of, require
from .drawing import clip_rect
from .fit import FIT_MODES, compute_fit_box


class ImagePlugin(ElementPlugin):
    type = "image"
    default_props = {"src": "", "fit": "contain"}

    def validate(self, props: Mapping[str, Any]) -> List[PropValidationError]:
        return require(props, "src", str) + one_of(props, "fit", FIT_MODES)

    def measure(self, props: Mapping[str, Any], ctx: MeasureContext) -> Size:
        if props.get("fit") != "contain":
            return Size(ctx.available_width, ctx.available_height)
        image = ctx.services.images.get(props["src"])
        box = compute_fit_box(image.width, image.height, ctx.available_width, ctx.available_height, "contain")
        return Size(box.width, box.height)

    def render(self, props: Mapping[str, Any], ctx: RenderContext) -> None:
        image = ctx.services.images.get(props["src"])
        box = compute_fit_box(image.width, image.height, ctx.width, ctx.height, props.get("fit", "contain"))
        if box.width <= 0 or box.height <= 0:
            return

        canvas = ctx.canvas
        canvas.saveState()
        if box.clip:
            clip_rect(canvas, ctx.x, ctx.bottom, ctx.width, ctx.height)
        canvas.drawImage(
            image.reader,
            ctx.x + box.x,
            ctx.y - box.y - box.height,
            width=box.width,
            height=box.height,
            mask="auto",
        )
        canvas.restoreState()
