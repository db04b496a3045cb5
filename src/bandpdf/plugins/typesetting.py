"""
Module: plugins.typesetting

Purpose:
    Word wrapping and line drawing shared by the text, table and list
    plugins.

    - Words wrap at whitespace; a word wider than the line is broken by
      character.
    - Explicit newlines start a new paragraph.
    - Line height is the tallest fragment's font size * line height.
    - Justified lines spread the slack over their spaces, except the last
      line of a paragraph.
    - A run with a ``footnote`` is followed by a superscript marker that
      hugs its last word; the marker number is assigned when drawn.

Key Functions:
    - wrap_runs(): Styled runs -> wrapped lines
    - draw_lines(): Draw wrapped lines onto a reportlab canvas

Dependencies:
    - reportlab (through FontRegistry metrics)
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Callable, Iterable, List, Mapping, Optional, Sequence, Tuple

from bandpdf.core.utils.colors import parse_color
from bandpdf.engine.layout.style import ResolvedStyle

if TYPE_CHECKING:
    from reportlab.pdfgen.canvas import Canvas

    from bandpdf.engine.output.fonts import FontRegistry

_TOKEN_RE = re.compile(r"\S+|\s+")
EPSILON = 1e-6

# Footnote markers: superscript at 65% of the run's size, raised by 40% of it
MARKER_SIZE_RATIO = 0.65
MARKER_RISE_RATIO = 0.4
# Markers are wrapped with a one-digit stand-in; the number is set when drawn
MARKER_PLACEHOLDER = "0"

# (text, style) or, for a footnote marker, (text, style, footnote content)
Run = Tuple[Any, ...]


@dataclass(frozen=True)
class Fragment:
    text: str
    style: ResolvedStyle
    font: str
    width: float
    rise: float = 0.0
    footnote: Any = field(default=None, compare=False)

    @property
    def is_space(self) -> bool:
        return self.text.isspace()

    @property
    def is_marker(self) -> bool:
        return self.footnote is not None


@dataclass(frozen=True)
class Line:
    """One wrapped line of styled fragments."""

    fragments: Tuple[Fragment, ...]
    height: float
    last_in_paragraph: bool = False

    @property
    def width(self) -> float:
        return sum(f.width for f in self.fragments)

    @property
    def font_size(self) -> float:
        return max((f.style.font_size for f in self.fragments), default=0.0)

    @property
    def is_empty(self) -> bool:
        return not self.fragments


@dataclass
class _LineBuilder:
    fonts: "FontRegistry"
    width: float
    base_style: ResolvedStyle
    lines: List[Line] = field(default_factory=list)
    current: List[Fragment] = field(default_factory=list)
    pending_space: Optional[Fragment] = None
    x: float = 0.0

    def fragment(self, text: str, style: ResolvedStyle) -> Fragment:
        font = self.fonts.font_name(style)
        width = self.fonts.string_width(text, font, style.font_size, style.letter_spacing)
        return Fragment(text, style, font, width)

    def flush(self, last_in_paragraph: bool) -> None:
        height = max((f.style.leading for f in self.current), default=self.base_style.leading)
        self.lines.append(Line(tuple(self.current), height, last_in_paragraph))
        self.current = []
        self.pending_space = None
        self.x = 0.0

    def append(self, fragment: Fragment) -> None:
        if self.pending_space is not None and self.current:
            self.current.append(self.pending_space)
            self.x += self.pending_space.width
        self.pending_space = None
        self.current.append(fragment)
        self.x += fragment.width

    def add_word(self, token: str, style: ResolvedStyle) -> None:
        word = self.fragment(token, style)
        space = self.pending_space.width if self.pending_space is not None and self.current else 0.0
        if self.current and self.x + space + word.width > self.width + EPSILON:
            self.flush(False)
        if not self.current and word.width > self.width + EPSILON:
            for i, piece in enumerate(self._break_word(token, style)):
                if i > 0:
                    self.flush(False)
                self.append(piece)
            return
        self.append(word)

    def add_marker(self, style: ResolvedStyle, footnote: Any) -> None:
        """Attach a footnote marker directly to the preceding word."""
        marker_style = style.with_overrides({"fontSize": style.font_size * MARKER_SIZE_RATIO})
        marker = replace(
            self.fragment(MARKER_PLACEHOLDER, marker_style),
            rise=style.font_size * MARKER_RISE_RATIO,
            footnote=footnote,
        )
        self.pending_space = None
        if self.current and self.x + marker.width > self.width + EPSILON:
            self.flush(False)
        self.append(marker)

    def _break_word(self, token: str, style: ResolvedStyle) -> List[Fragment]:
        pieces: List[Fragment] = []
        current = ""
        for char in token:
            candidate = current + char
            if current and self.fragment(candidate, style).width > self.width + EPSILON:
                pieces.append(self.fragment(current, style))
                current = char
            else:
                current = candidate
        if current:
            pieces.append(self.fragment(current, style))
        return pieces


def wrap_runs(
    runs: Iterable[Run],
    width: float,
    fonts: "FontRegistry",
    base_style: ResolvedStyle,
) -> List[Line]:
    """
    Wrap styled runs into lines no wider than ``width``.

    Example:
        >>> lines = wrap_runs([("Hello world", style)], 30, FontRegistry(), style)
        >>> [" ".join(f.text for f in l.fragments if not f.is_space) for l in lines]
        ['Hello', 'world']
    """
    builder = _LineBuilder(fonts=fonts, width=max(width, 0.0), base_style=base_style)
    for run in runs:
        text, style = run[0], run[1]
        if len(run) > 2 and run[2] is not None:
            builder.add_marker(style, run[2])
            continue
        for i, segment in enumerate(str(text).split("\n")):
            if i > 0:
                builder.flush(True)
            for token in _TOKEN_RE.findall(segment):
                if token.isspace():
                    if builder.current:
                        builder.pending_space = builder.fragment(" ", style)
                    continue
                builder.add_word(token, style)
    builder.flush(True)
    return builder.lines


def wrap_text(text: str, width: float, fonts: "FontRegistry", style: ResolvedStyle) -> List[Line]:
    return wrap_runs([(text, style)], width, fonts, style)


def lines_height(lines: Sequence[Line]) -> float:
    """Total height; an all-empty result (no text at all) measures 0."""
    if all(line.is_empty for line in lines):
        return 0.0
    return sum(line.height for line in lines)


def runs_from_content(
    content: Any,
    style: ResolvedStyle,
    named_styles: Optional[Mapping[str, Mapping[str, Any]]] = None,
    footnotes: bool = False,
) -> List[Run]:
    """
    Normalise text content (string or list of runs) into styled runs.

    With ``footnotes``, a run carrying a ``footnote`` is followed by a
    marker run for it.
    """
    if content is None:
        return []
    if isinstance(content, str):
        return [(content, style)]
    if isinstance(content, Mapping):
        content = [content]
    if not isinstance(content, (list, tuple)):
        return [(str(content), style)]

    runs: List[Run] = []
    for run in content:
        if isinstance(run, Mapping):
            run_style = style
            name = run.get("style")
            if name and named_styles:
                run_style = run_style.with_overrides(named_styles.get(name))
            run_style = run_style.with_overrides(run.get("styleOverrides"))
            runs.append((str(run.get("text", "")), run_style))
            if footnotes and run.get("footnote") is not None:
                runs.append((MARKER_PLACEHOLDER, run_style, run["footnote"]))
        elif run is not None:
            runs.append((str(run), style))
    return runs


def footnotes_in_content(content: Any) -> List[Any]:
    """Footnote contents attached to the runs of text content, in order."""
    if isinstance(content, Mapping):
        content = [content]
    if not isinstance(content, (list, tuple)):
        return []
    return [run["footnote"] for run in content if isinstance(run, Mapping) and run.get("footnote") is not None]


def plain_text(content: Any) -> str:
    """Flatten content (string or runs) to its text."""
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, Mapping):
        return str(content.get("text", ""))
    if isinstance(content, (list, tuple)):
        return "".join(plain_text(part) for part in content)
    return str(content)


# ─────────────────────────────────────────────────────────────────────────────
# Drawing
# ─────────────────────────────────────────────────────────────────────────────

def draw_lines(
    canvas: "Canvas",
    lines: Sequence[Line],
    x: float,
    top: float,
    width: float,
    align: str,
    fonts: "FontRegistry",
    footnote_number: Optional[Callable[[], int]] = None,
) -> float:
    """
    Draw wrapped lines with their top edge at ``top`` (PDF space).

    Footnote markers take their numbers from ``footnote_number`` in
    drawing order; without it markers are left out.

    Returns:
        Height consumed
    """
    y = top
    for line in lines:
        if not line.is_empty:
            _draw_line(canvas, line, x, y, width, align, fonts, footnote_number)
        y -= line.height
    return top - y


def _draw_line(
    canvas: "Canvas",
    line: Line,
    x: float,
    top: float,
    width: float,
    align: str,
    fonts: "FontRegistry",
    footnote_number: Optional[Callable[[], int]] = None,
) -> None:
    ascent = max(fonts.ascent(f.font, f.style.font_size) for f in line.fragments)
    half_leading = max(0.0, (line.height - line.font_size) / 2)
    baseline = top - half_leading - ascent

    slack = width - line.width
    spaces = sum(1 for f in line.fragments if f.is_space)
    extra_per_space = 0.0
    if align == "center":
        cursor = x + slack / 2
    elif align == "right":
        cursor = x + slack
    else:
        cursor = x
        if align == "justify" and not line.last_in_paragraph and spaces and slack > 0:
            extra_per_space = slack / spaces

    for fragment in line.fragments:
        advance = fragment.width + (extra_per_space if fragment.is_space else 0.0)
        if fragment.is_marker:
            if footnote_number is not None:
                _draw_fragment(canvas, fragment, cursor, baseline, str(footnote_number()))
            cursor += advance
            continue
        if not fragment.is_space:
            _draw_fragment(canvas, fragment, cursor, baseline)
        decoration = fragment.style.text_decoration
        if decoration and decoration != "none":
            draw_decoration(canvas, decoration, cursor, baseline, advance, fragment.style)
        cursor += advance


def _draw_fragment(
    canvas: "Canvas",
    fragment: Fragment,
    x: float,
    baseline: float,
    text_override: Optional[str] = None,
) -> None:
    style = fragment.style
    text = canvas.beginText(x, baseline)
    text.setFont(fragment.font, style.font_size)
    if style.letter_spacing:
        text.setCharSpace(style.letter_spacing)
    text.setFillColor(parse_color(style.color, parse_color("#000000")))
    if fragment.rise:
        text.setRise(fragment.rise)
    text.textOut(fragment.text if text_override is None else text_override)
    canvas.drawText(text)


def draw_decoration(
    canvas: "Canvas",
    decoration: str,
    x: float,
    baseline: float,
    width: float,
    style: ResolvedStyle,
) -> None:
    """Underline and/or strike through a span of text."""
    thickness = max(0.5, style.font_size * 0.06)
    color = parse_color(style.color, parse_color("#000000"))
    canvas.saveState()
    canvas.setStrokeColor(color)
    canvas.setLineWidth(thickness)
    if "underline" in decoration:
        y = baseline - style.font_size * 0.12
        canvas.line(x, y, x + width, y)
    if "line-through" in decoration or "strikethrough" in decoration:
        y = baseline + style.font_size * 0.3
        canvas.line(x, y, x + width, y)
    canvas.restoreState()
