"""
Tests for the PDF render pass.

Verifies:
- Layouts render to PDF bytes with one page per layout page
- Page sizes follow each page's geometry
- Failed resources draw a placeholder and record a diagnostic
- Footnote blocks and gradient backgrounds reach the page
"""

import fitz  # PyMuPDF
import pytest

from bandpdf.engine.diagnostics import DiagnosticKind
from bandpdf.engine.layout.paginator import paginate
from bandpdf.engine.output.renderer import render_pdf

def _text_band(band_factory, content, band_type="detail", **extra):
    element = {"id": "label", "type": "text", "x": 0, "y": 0, "width": 400, "height": 20,
               "properties": {"content": content}}
    return band_factory(band_type, elements=[element], **extra)


class TestRenderPdf:
    """Tests for render_pdf()."""

    def test_when_rendered_then_valid_pdf_with_page_count(self, band_factory, template_factory, services):
        # Arrange
        detail = band_factory("detail", height=100, dataSource="rows")
        template = template_factory([detail])
        layout = paginate(template, {"rows": list(range(7))}, services)

        # Act
        pdf = render_pdf(layout, services, title="test")

        # Assert
        assert pdf.startswith(b"%PDF-")
        with fitz.open(stream=pdf, filetype="pdf") as doc:
            assert doc.page_count == layout.page_count == 3

    def test_when_empty_layout_then_still_a_pdf(self, template_factory, services):
        layout = paginate(template_factory([]), {}, services)

        pdf = render_pdf(layout, services)

        with fitz.open(stream=pdf, filetype="pdf") as doc:
            assert doc.page_count == 1

    def test_page_size_follows_geometry(self, band_factory, template_factory, services):
        template = template_factory([band_factory("title")], page={"width": 300, "height": 500, "margins": 20})

        pdf = render_pdf(paginate(template, {}, services), services)

        with fitz.open(stream=pdf, filetype="pdf") as doc:
            rect = doc[0].rect
            assert (rect.width, rect.height) == pytest.approx((300, 500))

    def test_when_total_pages_placeholder_then_resolved_at_render(self, band_factory, template_factory, services):
        # Arrange
        footer = _text_band(band_factory, "Page {{ _pageNumber }} of {{ _totalPages }}", band_type="pageFooter")
        detail = band_factory("detail", height=100, dataSource="rows")
        template = template_factory([detail, footer])
        layout = paginate(template, {"rows": list(range(5))}, services)

        # Act
        pdf = render_pdf(layout, services)

        # Assert
        with fitz.open(stream=pdf, filetype="pdf") as doc:
            texts = [page.get_text() for page in doc]
        assert len(texts) == 3
        assert "Page 1 of 3" in texts[0]
        assert "Page 3 of 3" in texts[2]

    def test_when_image_missing_then_placeholder_and_diagnostic(self, band_factory, template_factory, services, tmp_path):
        # Arrange
        image = {"id": "logo", "type": "image", "x": 0, "y": 0, "width": 80, "height": 40,
                 "properties": {"src": str(tmp_path / "missing.png")}}
        template = template_factory([band_factory("title", height=50, elements=[image])])
        layout = paginate(template, {}, services)

        # Act
        pdf = render_pdf(layout, services)

        # Assert
        assert pdf.startswith(b"%PDF-")
        resource = services.diagnostics.of_kind(DiagnosticKind.RESOURCE)
        assert resource
        assert all(d.element_id == "logo" for d in resource)
        assert resource[0].message.endswith("placeholder used")

    def test_when_band_background_then_drawn_behind_elements(self, band_factory, template_factory, services):
        template = template_factory([_text_band(band_factory, "shaded", band_type="title", backgroundColor="#dddddd")])

        pdf = render_pdf(paginate(template, {}, services), services)

        with fitz.open(stream=pdf, filetype="pdf") as doc:
            assert "shaded" in doc[0].get_text()
            assert doc[0].get_drawings()


class TestPositions:
    """Nested offsets accumulate in template space before conversion to PDF space."""

    def test_when_text_nested_in_container_and_frame_then_offsets_summed(self, band_factory, template_factory, services):
        # Arrange
        nested_text = {"id": "deep", "type": "text", "x": 0, "y": 10, "width": 150, "height": 20,
                       "properties": {"content": "Deep"}}
        frame = {"id": "frame", "type": "frame", "x": 0, "y": 20, "width": 200, "height": 60,
                 "properties": {"bands": [{"type": "body", "height": 40, "elements": [nested_text]}]}}
        container = {"id": "box", "type": "container", "x": 100, "y": 30, "width": 200, "height": 100,
                     "properties": {"layout": "absolute"},
                     "elements": [
                         {"id": "top", "type": "text", "x": 0, "y": 0, "width": 150, "height": 20,
                          "properties": {"content": "Top"}},
                         frame,
                     ]}
        template = template_factory([band_factory("title", 20), band_factory("body", 150, elements=[container])])

        # Act
        pdf = render_pdf(paginate(template, {}, services), services)

        # Assert
        with fitz.open(stream=pdf, filetype="pdf") as doc:
            top = doc[0].search_for("Top")[0]
            deep = doc[0].search_for("Deep")[0]
        # margin 50 + title 20 + container y 30 = 100; frame y 20 + band element y 10 = 130
        assert top.x0 == pytest.approx(150, abs=1.5)
        assert top.y0 == pytest.approx(100, abs=5)
        assert deep.x0 == pytest.approx(150, abs=1.5)
        assert deep.y0 == pytest.approx(130, abs=5)


def _spans(page):
    return [
        span
        for block in page.get_text("dict")["blocks"]
        for line in block.get("lines", [])
        for span in line["spans"]
    ]


class TestFootnotesAndFills:
    """Footnote blocks and gradient fills in the rendered PDF."""

    def test_when_run_has_footnote_then_marker_and_note_drawn(self, band_factory, template_factory, services):
        # Arrange
        title = _text_band(band_factory, [{"text": "Claim", "footnote": "Source of the claim"}], band_type="title", height=30)
        layout = paginate(template_factory([title]), {}, services)

        # Act
        pdf = render_pdf(layout, services)

        # Assert
        with fitz.open(stream=pdf, filetype="pdf") as doc:
            page = doc[0]
            notes = page.search_for("Source of the claim")
            assert len(notes) == 1
            # The block starts below the separator at the foot of the content area
            assert notes[0].y0 > layout.pages[0].footnote_top + 50
            numbers = sorted(span["size"] for span in _spans(page) if span["text"].strip() == "1")
            # Marker in the text, then the number in the block
            assert numbers == pytest.approx([12 * 0.8 * 0.65, 12 * 0.65], abs=0.1)

    def test_when_band_in_frame_has_footnote_then_no_block(self, band_factory, template_factory, services):
        # Arrange
        inner = _text_band(band_factory, [{"text": "Nested", "footnote": "Hidden"}], band_type="body")
        frame = {"id": "frame", "type": "frame", "x": 0, "y": 0, "width": 400, "height": 60,
                 "properties": {"bands": [inner]}}
        template = template_factory([band_factory("title", 60, elements=[frame])])

        # Act
        pdf = render_pdf(paginate(template, {}, services), services)

        # Assert
        with fitz.open(stream=pdf, filetype="pdf") as doc:
            text = doc[0].get_text()
            assert "Nested" in text
            assert "Hidden" not in text

    def test_when_band_background_gradient_then_shading_written(self, band_factory, template_factory, services):
        # Arrange
        gradient = {"type": "linear", "angle": 90,
                    "stops": [{"color": "#ff0000", "position": 0}, {"color": "#0000ff", "position": 1}]}
        template = template_factory([_text_band(band_factory, "shaded", band_type="title", backgroundColor=gradient)])

        # Act
        pdf = render_pdf(paginate(template, {}, services), services)

        # Assert
        with fitz.open(stream=pdf, filetype="pdf") as doc:
            assert "shaded" in doc[0].get_text()
            shadings = [x for x in range(1, doc.xref_length()) if "/ShadingType" in doc.xref_object(x)]
            assert shadings
