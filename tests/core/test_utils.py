"""
Unit tests for core utilities: dot paths, colours, JSON loading.
"""

import json

import pytest
from reportlab.lib import colors

from bandpdf.core.models import Template, TemplateError
from bandpdf.core.utils import load_data, load_template, parse_color, resolve_dot_path


class TestResolveDotPath:
    """Tests for resolve_dot_path."""

    def test_when_nested_mapping_then_value(self):
        assert resolve_dot_path({"a": {"b": {"c": 3}}}, "a.b.c") == 3

    def test_when_list_index_then_element(self):
        assert resolve_dot_path({"rows": [{"n": 1}, {"n": 2}]}, "rows.1.n") == 2

    def test_when_segment_missing_then_none(self):
        assert resolve_dot_path({"a": {}}, "a.b.c") is None
        assert resolve_dot_path({"rows": [1]}, "rows.5") is None

    def test_when_path_empty_then_whole_value(self):
        data = {"a": 1}

        assert resolve_dot_path(data, "") is data
        assert resolve_dot_path(data, None) is data


class TestParseColor:
    """Tests for parse_color."""

    def test_when_six_digit_hex_then_color(self):
        color = parse_color("#ff8000")

        assert color.red == 1.0
        assert color.green == pytest.approx(128 / 255)
        assert color.blue == 0.0

    def test_when_short_hex_then_expanded(self):
        assert parse_color("#f00").red == 1.0

    def test_when_alpha_given_then_kept(self):
        assert parse_color("#00000080").alpha == pytest.approx(128 / 255)

    def test_when_invalid_then_default(self):
        default = colors.black

        assert parse_color("#zzzzzz", default) is default
        assert parse_color("#12345", default) is default
        assert parse_color(None, default) is default
        assert parse_color("transparent") is None


class TestLoading:
    """Tests for load_template and load_data."""

    def test_when_path_then_template_loaded(self, tmp_path):
        # Arrange
        path = tmp_path / "template.json"
        path.write_text(json.dumps({"name": "invoice", "sections": []}), encoding="utf-8")

        # Act
        template = load_template(path)

        # Assert
        assert isinstance(template, Template)
        assert template.name == "invoice"

    def test_when_template_instance_then_returned_unchanged(self):
        template = Template()

        assert load_template(template) is template

    def test_when_file_not_json_then_template_error(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(TemplateError, match="not valid JSON"):
            load_template(path)

    def test_when_file_missing_then_file_not_found(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_template(tmp_path / "absent.json")

    def test_when_data_none_then_empty_dict(self):
        assert load_data(None) == {}

    def test_when_data_not_object_then_error(self, tmp_path):
        path = tmp_path / "data.json"
        path.write_text("[1, 2, 3]", encoding="utf-8")

        with pytest.raises(TemplateError, match="JSON object"):
            load_data(path)
