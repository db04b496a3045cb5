"""
Module: core.utils.colors

Purpose:
    Parse template colour strings (#RGB, #RRGGBB, #RRGGBBAA) into
    reportlab colours. Invalid values fall back to a caller default so a
    typo in a template never aborts a render.
"""

from __future__ import annotations

import logging
from typing import Optional

from reportlab.lib import colors

logger = logging.getLogger(__name__)


def parse_color(value: Optional[str], default: Optional[colors.Color] = None) -> Optional[colors.Color]:
    """
    Convert a hex colour string to a reportlab Color.

    Args:
        value: "#RGB", "#RRGGBB" or "#RRGGBBAA" (also "transparent")
        default: Returned when value is empty or unparseable

    Returns:
        reportlab Color, or ``default``

    Example:
        >>> parse_color("#ff0000").red
        1.0
    """
    if not value or value == "transparent":
        return default
    text = value.strip().lstrip("#")
    if len(text) == 3:
        text = "".join(ch * 2 for ch in text)
    if len(text) not in (6, 8):
        logger.warning(f"Invalid colour {value!r}, using default")
        return default
    try:
        channels = [int(text[i:i + 2], 16) / 255.0 for i in range(0, len(text), 2)]
    except ValueError:
        logger.warning(f"Invalid colour {value!r}, using default")
        return default
    alpha = channels[3] if len(channels) == 4 else 1.0
    return colors.Color(channels[0], channels[1], channels[2], alpha=alpha)
