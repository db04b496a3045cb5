"""
Unit tests for anchor collection.
"""

import logging

import pytest

from bandpdf.engine.diagnostics import DiagnosticKind, DiagnosticsCollector
from bandpdf.engine.layout.anchors import collect_anchors
from bandpdf.engine.layout.paginator import paginate


@pytest.fixture
def anchored_layout(template_factory, band_factory, services):
    """Two pages: intro + body on page 1, summary forced onto page 2."""
    template = template_factory([
        band_factory("title", 20, anchor="intro"),
        band_factory("body", 20, anchor="dup", elements=[
            {"id": "chart-box", "type": "shape", "width": 10, "height": 10, "anchor": "figure-1"},
        ]),
        band_factory("summary", 20, anchor="totals", pageBreakBefore=True, elements=[
            {"id": "again", "type": "shape", "width": 10, "height": 10, "anchor": "dup"},
        ]),
    ])
    return paginate(template, {}, services)


class TestCollectAnchors:
    """Tests for collect_anchors."""

    def test_when_anchors_on_bands_and_elements_then_page_numbers(self, anchored_layout):
        anchors = collect_anchors(anchored_layout)

        assert anchors["intro"] == 1
        assert anchors["figure-1"] == 1
        assert anchors["totals"] == 2

    def test_when_duplicate_then_first_occurrence_wins(self, anchored_layout):
        assert collect_anchors(anchored_layout)["dup"] == 1

    def test_when_warn_duplicates_then_one_anchor_diagnostic(self, anchored_layout):
        # Arrange
        diagnostics = DiagnosticsCollector()

        # Act
        collect_anchors(anchored_layout, warn_duplicates=True, diagnostics=diagnostics)

        # Assert
        found = diagnostics.of_kind(DiagnosticKind.ANCHOR)
        assert len(found) == 1
        assert "'dup'" in found[0].message
        assert found[0].page == 2

    def test_when_not_warning_then_silent(self, anchored_layout):
        diagnostics = DiagnosticsCollector()

        collect_anchors(anchored_layout, diagnostics=diagnostics)

        assert len(diagnostics) == 0

    def test_when_no_collector_then_logged(self, anchored_layout, caplog):
        with caplog.at_level(logging.WARNING):
            collect_anchors(anchored_layout, warn_duplicates=True)

        assert "Duplicate anchor 'dup'" in caplog.text

    def test_result_is_read_only(self, anchored_layout):
        anchors = collect_anchors(anchored_layout)

        with pytest.raises(TypeError):
            anchors["new"] = 3

    def test_when_detail_band_anchored_then_first_item_page(self, template_factory, band_factory, services):
        template = template_factory([band_factory("detail", 200, dataSource="items", anchor="rows")])
        layout = paginate(template, {"items": [1, 2, 3]}, services)

        assert collect_anchors(layout)["rows"] == 1

    def test_when_element_condition_false_then_anchor_skipped(self, template_factory, band_factory, services):
        # Arrange
        template = template_factory([
            band_factory("title", 40, elements=[
                {"id": "shown", "type": "text", "width": 100, "height": 20, "anchor": "visible",
                 "properties": {"content": "Shown"}},
                {"id": "gone", "type": "text", "width": 100, "height": 20, "anchor": "hidden",
                 "condition": False, "properties": {"content": "Gone"}},
                {"id": "box", "type": "container", "width": 100, "height": 20, "condition": "showBox",
                 "elements": [{"id": "inner", "type": "shape", "width": 10, "height": 10, "anchor": "nested"}]},
            ]),
        ])
        layout = paginate(template, {"showBox": False}, services)

        # Act
        anchors = collect_anchors(layout, resolver=services.resolver)

        # Assert
        assert anchors == {"visible": 1}

    def test_when_condition_true_then_nested_anchor_kept(self, template_factory, band_factory, services):
        template = template_factory([
            band_factory("title", 40, elements=[
                {"id": "box", "type": "container", "width": 100, "height": 20, "condition": "showBox",
                 "elements": [{"id": "inner", "type": "shape", "width": 10, "height": 10, "anchor": "nested"}]},
            ]),
        ])
        layout = paginate(template, {"showBox": True}, services)

        assert collect_anchors(layout)["nested"] == 1
