"""
Module: plugins.text

Purpose:
    Text element: plain or rich (styled runs) content, word wrapped to
    the element width and aligned left, center, right or justify.
    Splits at line boundaries.

Properties:
    - content: str, or list of runs ``{text, style, styleOverrides, footnote}``

A run's ``footnote`` (string or runs) puts a numbered superscript marker
after the run; the engine reserves and draws the note at the page bottom.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from .base import ElementPlugin, MeasureContext, PropValidationError, RenderContext, Size, SplitResult
from .typesetting import Line, draw_lines, footnotes_in_content, lines_height, runs_from_content, wrap_runs

# Pre-wrapped lines carried by split fragments
WRAPPED_KEY = "_wrapped"


class TextPlugin(ElementPlugin):
    type = "text"
    default_props = {"content": ""}
    can_split = True

    def validate(self, props: Mapping[str, Any]) -> List[PropValidationError]:
        content = props.get("content")
        if content is not None and not isinstance(content, (str, int, float, list, tuple, dict)):
            return [PropValidationError("content", "must be a string or a list of runs")]
        return []

    def _lines(self, props: Mapping[str, Any], ctx: "MeasureContext | RenderContext", width: float) -> List[Line]:
        wrapped = props.get(WRAPPED_KEY)
        if wrapped is not None:
            return list(wrapped)
        runs = runs_from_content(props.get("content"), ctx.style, ctx.services.styles, footnotes=True)
        return wrap_runs(runs, width, ctx.fonts, ctx.style)

    def measure(self, props: Mapping[str, Any], ctx: MeasureContext) -> Size:
        lines = self._lines(props, ctx, ctx.available_width)
        return Size(max((line.width for line in lines), default=0.0), lines_height(lines))

    def render(self, props: Mapping[str, Any], ctx: RenderContext) -> None:
        lines = self._lines(props, ctx, ctx.width)
        draw_lines(ctx.canvas, lines, ctx.x, ctx.y, ctx.width, ctx.style.text_align, ctx.fonts, ctx.footnote_number)

    def footnotes(self, props: Mapping[str, Any]) -> List[Any]:
        wrapped = props.get(WRAPPED_KEY)
        if wrapped is not None:
            return [f.footnote for line in wrapped for f in line.fragments if f.is_marker]
        return footnotes_in_content(props.get("content"))

    def split(self, props: Mapping[str, Any], ctx: MeasureContext, available_height: float) -> Optional[SplitResult]:
        lines = self._lines(props, ctx, ctx.available_width)
        used = 0.0
        fit = 0
        for line in lines:
            if used + line.height > available_height:
                break
            used += line.height
            fit += 1
        if fit == 0 or fit == len(lines):
            return None
        head: Dict[str, Any] = {**props, WRAPPED_KEY: tuple(lines[:fit])}
        tail: Dict[str, Any] = {**props, WRAPPED_KEY: tuple(lines[fit:])}
        return SplitResult(head=head, tail=tail)
