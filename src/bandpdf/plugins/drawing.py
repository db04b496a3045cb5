"""
Canvas helpers shared by plugins and the renderer: clipping, dash
patterns, solid and gradient fills, and drawing reportlab Drawings
(barcodes, charts) into a fit box.

Gradients use the canvas shading operators (linearGradient /
radialGradient) clipped to the filled box.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Any, List, Mapping, Optional, Sequence, Tuple

from reportlab.graphics import renderPDF
from reportlab.graphics.shapes import Drawing
from reportlab.lib.colors import Color

from bandpdf.core.utils.colors import parse_color
from .fit import compute_fit_box

if TYPE_CHECKING:
    from reportlab.pdfgen.canvas import Canvas

    from .base import RenderContext

logger = logging.getLogger(__name__)


def clip_rect(canvas: "Canvas", x: float, bottom: float, width: float, height: float) -> None:
    """Clip subsequent drawing to a rectangle (caller owns save/restoreState)."""
    path = canvas.beginPath()
    path.rect(x, bottom, width, height)
    canvas.clipPath(path, stroke=0, fill=0)


def set_dash(canvas: "Canvas", pattern: Optional[Sequence[Any]]) -> None:
    if pattern:
        canvas.setDash([float(v) for v in pattern], 0)


def fill_box(
    canvas: "Canvas",
    color: Any,
    x: float,
    bottom: float,
    width: float,
    height: float,
    radius: float = 0.0,
) -> None:
    """Fill a rectangle with a hex colour or a gradient mapping; anything unparseable draws nothing."""
    if isinstance(color, Mapping):
        fill_gradient(canvas, color, x, bottom, width, height, radius)
        return
    fill = parse_color(color)
    if fill is None:
        return
    canvas.saveState()
    canvas.setFillColor(fill)
    if radius > 0:
        canvas.roundRect(x, bottom, width, height, radius, stroke=0, fill=1)
    else:
        canvas.rect(x, bottom, width, height, stroke=0, fill=1)
    canvas.restoreState()


def gradient_stops(gradient: Mapping[str, Any]) -> Optional[Tuple[List[Color], List[float]]]:
    """
    Colours and positions of a gradient's stops, sorted by position.

    Stops without a parseable colour are dropped; a missing position spreads
    stops evenly. Positions are clamped to 0..1 and padded so the ramp
    covers the whole axis.

    Returns:
        (colors, positions), or None with fewer than two usable stops
    """
    raw = gradient.get("stops")
    if not isinstance(raw, (list, tuple)):
        return None
    stops: List[Tuple[float, Color]] = []
    for index, stop in enumerate(raw):
        if not isinstance(stop, Mapping):
            continue
        color = parse_color(stop.get("color"))
        if color is None:
            continue
        default = index / (len(raw) - 1) if len(raw) > 1 else 0.0
        try:
            position = float(stop.get("position", default))
        except (TypeError, ValueError):
            position = default
        stops.append((min(1.0, max(0.0, position)), color))
    if len(stops) < 2:
        return None

    stops.sort(key=lambda stop: stop[0])
    if stops[0][0] > 0:
        stops.insert(0, (0.0, stops[0][1]))
    if stops[-1][0] < 1:
        stops.append((1.0, stops[-1][1]))
    return [color for _, color in stops], [position for position, _ in stops]


def fill_gradient(
    canvas: "Canvas",
    gradient: Mapping[str, Any],
    x: float,
    bottom: float,
    width: float,
    height: float,
    radius: float = 0.0,
) -> None:
    """
    Paint a linear or radial gradient clipped to a (rounded) rectangle.

    Linear: ``angle`` in degrees, 0 = left to right, 90 = top to bottom.
    Radial: centre ``cx``/``cy`` as fractions of the box from its top-left
    corner (default 0.5), ``radius`` as a fraction of the shorter side
    (default 0.5).
    """
    parsed = gradient_stops(gradient)
    if parsed is None:
        logger.debug(f"Gradient without two usable stops ignored: {gradient!r}")
        return
    if width <= 0 or height <= 0:
        return
    colors, positions = parsed

    canvas.saveState()
    path = canvas.beginPath()
    if radius > 0:
        path.roundRect(x, bottom, width, height, radius)
    else:
        path.rect(x, bottom, width, height)
    canvas.clipPath(path, stroke=0, fill=0)

    if gradient.get("type") == "radial":
        cx = x + _fraction(gradient.get("cx"), 0.5) * width
        cy = bottom + height - _fraction(gradient.get("cy"), 0.5) * height
        r = _fraction(gradient.get("radius"), 0.5) * min(width, height)
        canvas.radialGradient(cx, cy, max(r, 1e-3), colors, positions, extend=True)
    else:
        angle = math.radians(_number(gradient.get("angle"), 0.0))
        cos, sin = math.cos(angle), math.sin(angle)
        cx, cy = x + width / 2, bottom + height / 2
        half = abs(cos * width / 2) + abs(sin * height / 2)
        # PDF y grows upwards, so a positive angle runs downwards
        canvas.linearGradient(
            cx - cos * half, cy + sin * half, cx + cos * half, cy - sin * half,
            colors, positions, extend=True,
        )
    canvas.restoreState()


def _number(value: Any, default: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if math.isfinite(number) else default


def _fraction(value: Any, default: float) -> float:
    return min(1.0, max(0.0, _number(value, default)))


def fitted_height(drawing: Drawing, width: float, height: float, fit: str) -> float:
    """Height a drawing occupies in a box: the fit box height for contain, else the box."""
    if fit != "contain":
        return height
    return compute_fit_box(drawing.width, drawing.height, width, height, "contain").height


def draw_fitted(drawing: Drawing, ctx: "RenderContext", fit: str = "contain") -> None:
    """Scale and draw a reportlab Drawing into the context's box."""
    box = compute_fit_box(drawing.width, drawing.height, ctx.width, ctx.height, fit)
    if box.width <= 0 or box.height <= 0:
        return
    canvas = ctx.canvas
    canvas.saveState()
    if box.clip:
        clip_rect(canvas, ctx.x, ctx.bottom, ctx.width, ctx.height)
    canvas.translate(ctx.x + box.x, ctx.y - box.y - box.height)
    canvas.scale(box.width / drawing.width, box.height / drawing.height)
    renderPDF.draw(drawing, canvas, 0, 0)
    canvas.restoreState()
