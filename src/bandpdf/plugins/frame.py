"""
Frame element: a nested band stack (title, details, summary...) expanded
against the enclosing band's scope. The stack is measured as one block
and drawn clipped to the frame box; it never starts new pages.
"""

from __future__ import annotations

from typing import Any, List, Mapping

from .base import ElementPlugin, MeasureContext, PropValidationError, RenderContext, Size
from .drawing import clip_rect


class FramePlugin(ElementPlugin):
    type = "frame"
    default_props = {}

    def validate(self, props: Mapping[str, Any]) -> List[PropValidationError]:
        return []

    def measure(self, props: Mapping[str, Any], ctx: MeasureContext) -> Size:
        bands = ctx.element.bands
        if not bands or ctx.measure_bands is None:
            return Size(ctx.available_width, 0.0)
        return Size(ctx.available_width, ctx.measure_bands(bands, ctx.available_width))

    def render(self, props: Mapping[str, Any], ctx: RenderContext) -> None:
        bands = ctx.element.bands
        if not bands or ctx.render_bands is None:
            return
        canvas = ctx.canvas
        canvas.saveState()
        clip_rect(canvas, ctx.x, ctx.bottom, ctx.width, ctx.height)
        ctx.render_bands(bands, 0.0, 0.0, ctx.width, ctx.height)
        canvas.restoreState()
