"""
Unit tests for page geometry, coordinate transform and column layout.
"""

import pytest

from bandpdf.core.models import Margins, PageConfig, TemplateError
from bandpdf.engine.layout.columns import compute_column_layout
from bandpdf.engine.layout.config import PageGeometry, merge_page_config
from bandpdf.engine.layout.coordinates import to_page_space


class TestToPageSpace:
    """Tests for the template -> PDF coordinate transform."""

    def test_when_point_in_content_area_then_flipped_and_offset(self):
        point = to_page_space(100, 50, 792, 40, 40)

        assert point == (140, 702)
        assert point.x == 140
        assert point.y == 702

    def test_when_origin_then_top_left_of_content_area(self):
        assert to_page_space(0, 0, 400, 50, 50) == (50, 350)


class TestMergePageConfig:
    """Tests for merge_page_config."""

    def test_when_no_override_then_template_default(self):
        base = PageConfig(width=600, height=400, margins=Margins(10, 10, 10, 10))

        geometry = merge_page_config(base)

        assert geometry == PageGeometry(600, 400, Margins(10, 10, 10, 10))
        assert geometry.content_width == 580
        assert geometry.content_height == 380

    def test_when_override_then_wins_per_field_and_margin_side(self):
        # Arrange
        base = PageConfig(width=600, height=400, margins=Margins(10, 10, 10, 10))

        # Act
        geometry = merge_page_config(base, {"height": 500, "margins": {"top": 30}})

        # Assert
        assert geometry.width == 600
        assert geometry.height == 500
        assert geometry.margins == Margins(top=30, right=10, bottom=10, left=10)

    def test_when_override_names_size_then_used(self):
        geometry = merge_page_config(PageConfig(width=100, height=100), {"size": "A4", "autoHeight": True})

        assert round(geometry.width) == 595
        assert geometry.auto_height is True

    def test_when_nothing_resolves_then_raises(self):
        with pytest.raises(TemplateError, match="width/height"):
            merge_page_config(PageConfig(), {"margins": 10})

    def test_when_margins_exceed_page_then_raises(self):
        with pytest.raises(TemplateError, match="Margins exceed"):
            PageGeometry(100, 100, Margins(60, 0, 60, 0))


class TestColumnLayout:
    """Tests for compute_column_layout."""

    def test_when_equal_columns_then_gap_between(self):
        layout = compute_column_layout(500, 2, gap=20)

        assert layout.widths == (240.0, 240.0)
        assert layout.offsets == (0.0, 260.0)
        assert layout.count == 2

    def test_when_ratios_then_proportional(self):
        layout = compute_column_layout(300, 2, gap=0, ratios=[1, 2])

        assert layout.widths == pytest.approx((100.0, 200.0))
        assert layout.offsets == pytest.approx((0.0, 100.0))

    def test_when_ratio_count_wrong_then_equal_widths(self):
        layout = compute_column_layout(300, 3, ratios=[1, 2])

        assert layout.widths == pytest.approx((100.0, 100.0, 100.0))
