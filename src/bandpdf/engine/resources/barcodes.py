"""
Module: engine.resources.barcodes

Purpose:
    Generate barcode drawings with reportlab's barcode widgets, memoised
    in a single-flight cache keyed by the canonical JSON of the barcode
    spec (value, format, colours, options).

Key Functions:
    - build_barcode(): spec -> reportlab Drawing

Key Classes:
    - BarcodeCache
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Mapping

from reportlab.graphics.barcode import createBarcodeDrawing
from reportlab.graphics.shapes import Drawing

from bandpdf.core.utils.colors import parse_color
from .cache import SingleFlightCache
from .errors import ResourceError

logger = logging.getLogger(__name__)

# Template format name -> reportlab barcode widget name
BARCODE_FORMATS: Dict[str, str] = {
    "qrcode": "QR",
    "code128": "Code128",
    "code39": "Standard39",
    "code93": "Standard93",
    "ean13": "EAN13",
    "ean8": "EAN8",
    "upca": "UPCA",
    "i2of5": "I2of5",
    "codabar": "Codabar",
    "datamatrix": "ECC200DataMatrix",
}


def barcode_key(spec: Mapping[str, Any]) -> str:
    """Canonical cache key for a barcode spec."""
    return json.dumps(spec, sort_keys=True, default=str)


def build_barcode(spec: Mapping[str, Any]) -> Drawing:
    """
    Build a barcode drawing.

    Args:
        spec: ``value``, ``format`` and optional ``barColor``,
              ``includeText``, ``barHeight``

    Raises:
        ResourceError: Unknown format or a value the symbology rejects
    """
    fmt = str(spec.get("format", "qrcode")).lower()
    code_name = BARCODE_FORMATS.get(fmt)
    if code_name is None:
        raise ResourceError(f"Unsupported barcode format '{fmt}'")
    value = str(spec.get("value", ""))
    if not value:
        raise ResourceError("Barcode value is empty")

    # createBarcodeDrawing drops options the widget does not declare
    options: Dict[str, Any] = {"value": value, "humanReadable": bool(spec.get("includeText", False))}
    bar_color = parse_color(spec.get("barColor"))
    if bar_color is not None:
        options["barFillColor"] = bar_color
        options["barStrokeColor"] = bar_color
    if spec.get("barHeight"):
        options["barHeight"] = float(spec["barHeight"])

    try:
        drawing = createBarcodeDrawing(code_name, **options)
    except Exception as e:
        raise ResourceError(f"Cannot encode {value!r} as {fmt}: {e}") from e
    if drawing.width <= 0 or drawing.height <= 0:
        raise ResourceError(f"Barcode {fmt} produced an empty drawing")
    return drawing


class BarcodeCache:
    """Single-flight cache of generated barcode drawings."""

    def __init__(self) -> None:
        self._cache: SingleFlightCache[str, Drawing] = SingleFlightCache("barcodes")

    def get(self, spec: Mapping[str, Any]) -> Drawing:
        return self._cache.get(barcode_key(spec), lambda: build_barcode(spec))

    def __len__(self) -> int:
        return len(self._cache)
