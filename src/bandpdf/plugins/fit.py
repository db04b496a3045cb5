"""
Fit-box computation shared by image, barcode and chart plugins.

Given intrinsic content size and a target box, return where to draw:

- fill: stretch to the box
- none: intrinsic size, centred (may overflow; caller clips)
- cover: scale to cover the box, centred, clipped
- contain: scale to fit inside the box, centred
"""

from __future__ import annotations

from dataclasses import dataclass

FIT_MODES = ("contain", "cover", "fill", "none")


@dataclass(frozen=True)
class FitBox:
    """Draw box relative to the target box's top-left corner (top-down)."""

    x: float
    y: float
    width: float
    height: float
    clip: bool = False


def compute_fit_box(
    intrinsic_width: float,
    intrinsic_height: float,
    box_width: float,
    box_height: float,
    fit: str = "contain",
) -> FitBox:
    """
    Compute the draw box for content of a given intrinsic size.

    Degenerate intrinsic sizes produce a zero box instead of dividing by zero.

    Example:
        >>> compute_fit_box(200, 100, 100, 100, "contain")
        FitBox(x=0.0, y=25.0, width=100.0, height=50.0, clip=False)
    """
    if fit == "fill":
        return FitBox(0.0, 0.0, float(box_width), float(box_height))

    if intrinsic_width <= 0 or intrinsic_height <= 0:
        return FitBox(0.0, 0.0, 0.0, 0.0)

    if fit == "none":
        return FitBox(
            (box_width - intrinsic_width) / 2,
            (box_height - intrinsic_height) / 2,
            float(intrinsic_width),
            float(intrinsic_height),
            clip=True,
        )

    sx = box_width / intrinsic_width
    sy = box_height / intrinsic_height
    cover = fit == "cover"
    # Driving axis is exactly the box size; the other axis is clamped against rounding
    if (sx >= sy) == cover:
        width = float(box_width)
        height = intrinsic_height * sx
        height = max(height, box_height) if cover else min(height, box_height)
    else:
        height = float(box_height)
        width = intrinsic_width * sy
        width = max(width, box_width) if cover else min(width, box_width)
    return FitBox(
        (box_width - width) / 2,
        (box_height - height) / 2,
        width,
        height,
        clip=fit == "cover",
    )
