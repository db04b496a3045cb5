"""
Module: engine.output.fonts

Purpose:
    Map resolved styles to reportlab font names and measure text.
    Standard PDF families (Helvetica, Times, Courier) need no embedding;
    template-declared TrueType fonts are registered with reportlab's
    pdfmetrics under a generated name per family/weight/style.

Key Classes:
    - FontRegistry: Font lookup, registration and text metrics

Dependencies:
    - reportlab.pdfbase.pdfmetrics / ttfonts
"""

from __future__ import annotations

import io
import logging
import re
from typing import Callable, Dict, Tuple

from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont, TTFError

from bandpdf.core.models import FontDeclaration
from bandpdf.engine.layout.style import ResolvedStyle
from bandpdf.engine.resources.errors import ResourceError

logger = logging.getLogger(__name__)

# family -> (regular, bold, italic, bold italic)
STANDARD_FONTS: Dict[str, Tuple[str, str, str, str]] = {
    "helvetica": ("Helvetica", "Helvetica-Bold", "Helvetica-Oblique", "Helvetica-BoldOblique"),
    "arial": ("Helvetica", "Helvetica-Bold", "Helvetica-Oblique", "Helvetica-BoldOblique"),
    "sans-serif": ("Helvetica", "Helvetica-Bold", "Helvetica-Oblique", "Helvetica-BoldOblique"),
    "times": ("Times-Roman", "Times-Bold", "Times-Italic", "Times-BoldItalic"),
    "times-roman": ("Times-Roman", "Times-Bold", "Times-Italic", "Times-BoldItalic"),
    "times new roman": ("Times-Roman", "Times-Bold", "Times-Italic", "Times-BoldItalic"),
    "serif": ("Times-Roman", "Times-Bold", "Times-Italic", "Times-BoldItalic"),
    "courier": ("Courier", "Courier-Bold", "Courier-Oblique", "Courier-BoldOblique"),
    "monospace": ("Courier", "Courier-Bold", "Courier-Oblique", "Courier-BoldOblique"),
}


def _variant_index(bold: bool, italic: bool) -> int:
    return (1 if bold else 0) + (2 if italic else 0)


class FontRegistry:
    """
    Resolve fonts for styles and measure strings.

    Example:
        >>> fonts = FontRegistry()
        >>> fonts.font_name(ResolvedStyle(font_weight="bold"))
        'Helvetica-Bold'
    """

    def __init__(self) -> None:
        # (family, bold, italic) -> registered reportlab name
        self._custom: Dict[Tuple[str, bool, bool], str] = {}

    def register(self, declaration: FontDeclaration, fetch: Callable[[str], bytes]) -> str:
        """
        Register a declared TrueType font.

        Args:
            declaration: Font declaration from the template
            fetch: Callable returning the font file bytes for a source string

        Returns:
            The reportlab font name

        Raises:
            ResourceError: Font bytes could not be fetched or parsed
        """
        bold = declaration.weight in ("bold", "bolder") or (
            declaration.weight.isdigit() and int(declaration.weight) >= 600
        )
        italic = declaration.style in ("italic", "oblique")
        safe_family = re.sub(r"[^A-Za-z0-9]+", "", declaration.family) or "Custom"
        name = f"{safe_family}-{'Bold' if bold else 'Regular'}{'Italic' if italic else ''}"

        data = fetch(declaration.src)
        try:
            pdfmetrics.registerFont(TTFont(name, io.BytesIO(data)))
        except (TTFError, ValueError, KeyError) as e:
            raise ResourceError(f"Cannot load font '{declaration.family}': {e}", source=declaration.src) from e

        self._custom[(declaration.family.lower(), bold, italic)] = name
        logger.debug(f"Registered font {declaration.family} as {name}")
        return name

    def font_name(self, style: ResolvedStyle) -> str:
        """reportlab font name for a style, falling back to the closest variant."""
        family = str(style.font_family).lower()
        bold, italic = style.is_bold, style.is_italic

        for key in ((family, bold, italic), (family, bold, False), (family, False, italic), (family, False, False)):
            name = self._custom.get(key)
            if name is not None:
                return name

        variants = STANDARD_FONTS.get(family)
        if variants is None:
            first = family.split(",")[0].strip().strip("'\"")
            variants = STANDARD_FONTS.get(first, STANDARD_FONTS["helvetica"])
        return variants[_variant_index(bold, italic)]

    @staticmethod
    def string_width(text: str, font_name: str, font_size: float, letter_spacing: float = 0.0) -> float:
        """Advance width of ``text`` in points, including letter spacing."""
        width = pdfmetrics.stringWidth(text, font_name, font_size)
        if letter_spacing and text:
            width += letter_spacing * (len(text) - 1)
        return width

    @staticmethod
    def ascent(font_name: str, font_size: float) -> float:
        return pdfmetrics.getAscent(font_name, font_size)

    @staticmethod
    def descent(font_name: str, font_size: float) -> float:
        return pdfmetrics.getDescent(font_name, font_size)

