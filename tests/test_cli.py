"""
Tests for the bandpdf command line.
"""

import json

import pytest

from bandpdf.cli import main


def _write_template(path, element_type="text"):
    template = {
        "name": "cli",
        "page": {"width": 400, "height": 300, "margins": 20},
        "sections": [{"bands": [
            {"type": "title", "height": 30, "elements": [
                {"id": "greeting", "type": element_type, "x": 0, "y": 0, "width": 200, "height": 20,
                 "properties": {"content": "Hello {{ who }}"}},
            ]},
        ]}],
    }
    path.write_text(json.dumps(template))
    return path


class TestRenderCommand:
    """Tests for `bandpdf render`."""

    def test_when_rendered_then_pdf_written(self, tmp_path, capsys):
        # Arrange
        template = _write_template(tmp_path / "hello.json")
        data = tmp_path / "data.json"
        data.write_text(json.dumps({"who": "world"}))
        output = tmp_path / "out" / "hello.pdf"

        # Act
        code = main(["render", str(template), "--data", str(data), "-o", str(output)])

        # Assert
        assert code == 0
        assert output.read_bytes().startswith(b"%PDF-")
        assert "Wrote 1 pages" in capsys.readouterr().out

    def test_when_no_output_then_next_to_template(self, tmp_path):
        template = _write_template(tmp_path / "hello.json")

        assert main(["render", str(template)]) == 0
        assert (tmp_path / "hello.pdf").exists()

    def test_when_strict_and_diagnostics_then_exit_1(self, tmp_path, capsys):
        template = _write_template(tmp_path / "odd.json", element_type="sparkle")

        code = main(["render", str(template), "--strict"])

        assert code == 1
        assert "sparkle" in capsys.readouterr().out

    def test_when_diagnostics_without_strict_then_exit_0(self, tmp_path):
        template = _write_template(tmp_path / "odd.json", element_type="sparkle")

        assert main(["render", str(template)]) == 0

    def test_when_template_missing_then_exit_2(self, tmp_path, capsys):
        code = main(["render", str(tmp_path / "missing.json")])

        assert code == 2
        assert "error:" in capsys.readouterr().err

    def test_when_template_not_json_then_exit_2(self, tmp_path):
        broken = tmp_path / "broken.json"
        broken.write_text("{ not json")

        assert main(["render", str(broken)]) == 2


class TestValidateCommand:
    """Tests for `bandpdf validate`."""

    def test_when_template_valid_then_ok(self, tmp_path, capsys):
        template = _write_template(tmp_path / "hello.json")

        code = main(["validate", str(template)])

        assert code == 0
        assert capsys.readouterr().out.strip().endswith("OK")

    def test_when_unknown_element_type_then_problems(self, tmp_path, capsys):
        template = _write_template(tmp_path / "odd.json", element_type="sparkle")

        code = main(["validate", str(template)])

        assert code == 1
        assert "1 problem(s)" in capsys.readouterr().out

    def test_when_no_command_then_usage_error(self):
        with pytest.raises(SystemExit) as excinfo:
            main([])

        assert excinfo.value.code == 2
