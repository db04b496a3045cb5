"""
Unit tests for word wrapping and line drawing.
"""

from unittest.mock import MagicMock

import pytest

from bandpdf.engine.layout.style import ResolvedStyle
from bandpdf.engine.output.fonts import FontRegistry
from bandpdf.plugins.typesetting import (
    MARKER_RISE_RATIO,
    MARKER_SIZE_RATIO,
    draw_lines,
    footnotes_in_content,
    lines_height,
    plain_text,
    runs_from_content,
    wrap_runs,
    wrap_text,
)

STYLE = ResolvedStyle()
LEADING = 12 * 1.2


def _words(line):
    return [f.text for f in line.fragments if not f.is_space]


class TestWrapText:
    """Tests for wrap_text / wrap_runs."""

    def setup_method(self):
        self.fonts = FontRegistry()

    def test_when_line_too_narrow_then_wraps_at_spaces(self):
        lines = wrap_text("Hello world", 30, self.fonts, STYLE)

        assert [_words(line) for line in lines] == [["Hello"], ["world"]]

    def test_when_wide_enough_then_single_line(self):
        lines = wrap_text("Hello world", 500, self.fonts, STYLE)

        assert len(lines) == 1
        assert _words(lines[0]) == ["Hello", "world"]
        assert lines[0].last_in_paragraph

    def test_when_word_wider_than_line_then_broken_by_character(self):
        # Act
        lines = wrap_text("a" * 10, 20, self.fonts, STYLE)

        # Assert
        assert len(lines) > 1
        assert all(line.width <= 20 + 1e-6 for line in lines)
        assert "".join("".join(_words(line)) for line in lines) == "a" * 10

    def test_when_newlines_then_paragraphs_and_blank_lines(self):
        lines = wrap_text("a\n\nb", 500, self.fonts, STYLE)

        assert [_words(line) for line in lines] == [["a"], [], ["b"]]
        assert lines_height(lines) == pytest.approx(3 * LEADING)

    def test_when_empty_then_zero_height(self):
        assert lines_height(wrap_text("", 100, self.fonts, STYLE)) == 0.0

    def test_when_mixed_font_sizes_then_line_uses_tallest(self):
        runs = [("small ", STYLE), ("BIG", STYLE.with_overrides({"fontSize": 24}))]

        lines = wrap_runs(runs, 500, self.fonts, STYLE)

        assert len(lines) == 1
        assert lines[0].height == pytest.approx(24 * 1.2)

    def test_when_letter_spacing_then_wider(self):
        plain = wrap_text("spacing", 500, self.fonts, STYLE)[0].width
        spaced = wrap_text("spacing", 500, self.fonts, STYLE.with_overrides({"letterSpacing": 2}))[0].width

        assert spaced == pytest.approx(plain + 2 * 6)


class TestRuns:
    """Tests for runs_from_content and plain_text."""

    def test_when_string_then_single_run(self):
        assert runs_from_content("hi", STYLE) == [("hi", STYLE)]

    def test_when_rich_runs_then_styles_layered(self):
        # Arrange
        content = [
            {"text": "Bold ", "styleOverrides": {"fontWeight": "bold"}},
            {"text": "quiet", "style": "muted"},
        ]

        # Act
        runs = runs_from_content(content, STYLE, {"muted": {"color": "#888888"}})

        # Assert
        assert runs[0][1].is_bold
        assert runs[1][1].color == "#888888"
        assert FontRegistry().font_name(runs[0][1]) == "Helvetica-Bold"

    def test_when_none_then_no_runs(self):
        assert runs_from_content(None, STYLE) == []

    def test_plain_text_flattens_runs(self):
        assert plain_text([{"text": "a"}, "b", {"text": "c"}]) == "abc"
        assert plain_text(12) == "12"


class TestDrawLines:
    """Tests for draw_lines against a mock canvas."""

    def test_when_drawn_then_one_text_object_per_word(self):
        # Arrange
        canvas = MagicMock()
        fonts = FontRegistry()
        lines = wrap_text("Hello world", 500, fonts, STYLE)

        # Act
        consumed = draw_lines(canvas, lines, 10, 700, 500, "left", fonts)

        # Assert
        assert consumed == pytest.approx(LEADING)
        assert canvas.drawText.call_count == 2
        first_x, first_baseline = canvas.beginText.call_args_list[0].args
        assert first_x == 10
        assert first_baseline < 700

    def test_when_right_aligned_then_starts_at_slack(self):
        canvas = MagicMock()
        fonts = FontRegistry()
        lines = wrap_text("Hi", 100, fonts, STYLE)

        draw_lines(canvas, lines, 0, 100, 100, "right", fonts)

        x, _ = canvas.beginText.call_args.args
        assert x == pytest.approx(100 - lines[0].width)

    def test_when_underlined_then_decoration_drawn(self):
        canvas = MagicMock()
        fonts = FontRegistry()
        lines = wrap_text("Hi", 100, fonts, STYLE.with_overrides({"textDecoration": "underline"}))

        draw_lines(canvas, lines, 0, 100, 100, "left", fonts)

        canvas.line.assert_called_once()


class TestFootnoteMarkers:
    """Runs carrying a footnote are followed by a superscript marker."""

    def setup_method(self):
        self.fonts = FontRegistry()
        self.content = [{"text": "Revenue rose", "footnote": "Audited figures."}, {"text": " sharply"}]

    def test_when_footnotes_enabled_then_marker_hugs_run(self):
        # Arrange
        runs = runs_from_content(self.content, STYLE, footnotes=True)

        # Act
        lines = wrap_runs(runs, 500, self.fonts, STYLE)

        # Assert
        fragments = lines[0].fragments
        marker = fragments[3]
        assert [f.text for f in fragments[:3]] == ["Revenue", " ", "rose"]
        assert marker.is_marker
        assert marker.footnote == "Audited figures."
        assert marker.style.font_size == pytest.approx(12 * MARKER_SIZE_RATIO)
        assert marker.rise == pytest.approx(12 * MARKER_RISE_RATIO)

    def test_when_footnotes_disabled_then_no_marker(self):
        runs = runs_from_content(self.content, STYLE)

        lines = wrap_runs(runs, 500, self.fonts, STYLE)

        assert not any(f.is_marker for f in lines[0].fragments)

    def test_when_drawn_with_numbering_then_number_raised(self):
        # Arrange
        canvas = MagicMock()
        text = canvas.beginText.return_value
        lines = wrap_runs(runs_from_content(self.content, STYLE, footnotes=True), 500, self.fonts, STYLE)

        # Act
        draw_lines(canvas, lines, 0, 100, 500, "left", self.fonts, footnote_number=lambda: 7)

        # Assert
        drawn = [c.args[0] for c in text.textOut.call_args_list]
        assert drawn == ["Revenue", "rose", "7", "sharply"]
        text.setRise.assert_called_once_with(pytest.approx(12 * MARKER_RISE_RATIO))

    def test_when_drawn_without_numbering_then_marker_left_out(self):
        canvas = MagicMock()
        text = canvas.beginText.return_value
        lines = wrap_runs(runs_from_content(self.content, STYLE, footnotes=True), 500, self.fonts, STYLE)

        draw_lines(canvas, lines, 0, 100, 500, "left", self.fonts)

        drawn = [c.args[0] for c in text.textOut.call_args_list]
        assert drawn == ["Revenue", "rose", "sharply"]

    def test_footnotes_in_content_lists_notes_in_order(self):
        content = [{"text": "a", "footnote": "one"}, "b", {"text": "c", "footnote": [{"text": "two"}]}]

        assert footnotes_in_content(content) == ["one", [{"text": "two"}]]
        assert footnotes_in_content("plain") == []
