"""
Unit tests for band and element measurement.
"""

import pytest

from bandpdf.core.models import Band
from bandpdf.engine.diagnostics import DiagnosticKind
from bandpdf.engine.layout.expander import BandInstance
from bandpdf.engine.layout.measure import BandMeasurer
from bandpdf.engine.services import EngineServices
from bandpdf.plugins.base import ElementPlugin, Size
from bandpdf.plugins.registry import PluginRegistry

LEADING = 12 * 1.2


class NegativePlugin(ElementPlugin):
    type = "broken"

    def measure(self, props, ctx):
        return Size(10, -5)

    def render(self, props, ctx):
        pass


def _band(elements, height=0, auto_height=True, **extra):
    data = {"id": "b", "type": "body", "height": height, "autoHeight": auto_height, "elements": elements}
    data.update(extra)
    return Band.from_dict(data)


def _text(element_id="t", content="Hi", y=0, width=200, height=10, **extra):
    data = {
        "id": element_id,
        "type": "text",
        "y": y,
        "width": width,
        "height": height,
        "properties": {"content": content},
    }
    data.update(extra)
    return data


class TestMeasureBand:
    """Tests for BandMeasurer.measure_band."""

    def test_when_fixed_height_then_declared_height(self, services):
        band = _band([_text(content="one\ntwo\nthree\nfour")], height=20, auto_height=False)

        measured = BandMeasurer(services).measure_band(band, {})

        assert measured.height == 20
        assert measured.element_heights == {}

    def test_when_auto_height_then_grows_to_content(self, services):
        # Arrange
        band = _band([_text(content="one\ntwo\nthree", y=5)], height=10)

        # Act
        measured = BandMeasurer(services).measure_band(band, {})

        # Assert
        assert measured.height == pytest.approx(5 + 3 * LEADING)
        assert measured.element_heights["t"] == pytest.approx(3 * LEADING)

    def test_when_content_shorter_than_declared_then_declared_is_minimum(self, services):
        band = _band([_text(content="x")], height=50)

        assert BandMeasurer(services).measure_band(band, {}).height == 50

    def test_when_padding_then_included_in_outer_height(self, services):
        band = _band([_text(styleOverrides={"padding": 5})])

        measured = BandMeasurer(services).measure_band(band, {})

        assert measured.height == pytest.approx(LEADING + 10)

    def test_when_element_hidden_then_not_measured(self, services):
        band = _band([_text(content="a\nb\nc\nd", condition="show")], height=5)

        measured = BandMeasurer(services).measure_band(band, {"show": False})

        assert measured.height == 5
        assert "t" not in measured.element_heights

    def test_when_placeholder_then_resolved_before_measure(self, services):
        band = _band([_text(content="{{ body }}")])

        measured = BandMeasurer(services).measure_band(band, {"body": "a\nb"})

        assert measured.height == pytest.approx(2 * LEADING)


class TestMeasureFailures:
    """Recoverable failures become diagnostics, never exceptions."""

    def test_when_unknown_type_then_contract_diagnostic_and_skipped(self, services):
        band = _band([{"id": "x", "type": "sparkline", "height": 99}], height=10)

        measured = BandMeasurer(services).measure_band(band, {})

        assert measured.height == 10
        found = services.diagnostics.of_kind(DiagnosticKind.CONTRACT)
        assert len(found) == 1
        assert found[0].element_id == "x"

    def test_when_plugin_returns_negative_then_clamped_to_zero(self):
        # Arrange
        registry = PluginRegistry()
        registry.register(NegativePlugin())
        services = EngineServices(registry=registry)
        band = _band([{"id": "n", "type": "broken", "y": 4, "height": 30}])

        # Act
        measured = BandMeasurer(services).measure_band(band, {})

        # Assert
        assert measured.element_heights["n"] == 0
        assert measured.height == 4
        assert "invalid height" in services.diagnostics.of_kind(DiagnosticKind.CONTRACT)[0].message

    def test_when_image_missing_then_declared_height_and_resource_diagnostic(self, services, tmp_path):
        # Arrange
        band = _band([{
            "id": "img",
            "type": "image",
            "width": 100,
            "height": 80,
            "properties": {"src": str(tmp_path / "missing.png")},
        }])

        # Act
        measured = BandMeasurer(services).measure_band(band, {})

        # Assert
        assert measured.height == 80
        assert services.diagnostics.of_kind(DiagnosticKind.RESOURCE)[0].element_id == "img"

    def test_when_props_invalid_then_element_skipped(self, services):
        band = _band([{"id": "l", "type": "line", "height": 40, "properties": {"thickness": 0}}], height=3)

        measured = BandMeasurer(services).measure_band(band, {})

        assert measured.height == 3
        assert "thickness" in services.diagnostics.of_kind(DiagnosticKind.CONTRACT)[0].message


class TestMeasureNested:
    """Containers and frames measure through the engine callbacks."""

    def test_when_image_contain_then_fit_height(self, services, sample_image):
        band = _band([{
            "id": "img",
            "type": "image",
            "y": 10,
            "width": 100,
            "height": 100,
            "properties": {"src": str(sample_image), "fit": "contain"},
        }])

        measured = BandMeasurer(services).measure_band(band, {})

        assert measured.height == pytest.approx(60)

    def test_when_vertical_container_then_children_stacked_with_gap(self, services):
        band = _band([{
            "id": "box",
            "type": "container",
            "width": 200,
            "height": 10,
            "properties": {
                "layout": "vertical",
                "gap": 4,
                "children": [_text("a", width=100), _text("b", width=100)],
            },
        }])

        measured = BandMeasurer(services).measure_band(band, {})

        assert measured.height == pytest.approx(2 * LEADING + 4)

    def test_when_containers_nest_too_deep_then_contract_diagnostic(self, services):
        # Arrange
        element = _text("leaf")
        for depth in range(12):
            element = {"id": f"c{depth}", "type": "container", "width": 100, "height": 7,
                       "properties": {"layout": "vertical", "children": [element]}}
        band = _band([element])

        # Act
        BandMeasurer(services).measure_band(band, {})

        # Assert
        messages = [d.message for d in services.diagnostics.of_kind(DiagnosticKind.CONTRACT)]
        assert any("nests deeper" in m for m in messages)

    def test_when_frame_then_nested_bands_stacked_against_scope(self, services):
        band = _band([{
            "id": "frame",
            "type": "frame",
            "width": 300,
            "height": 10,
            "properties": {"bands": [
                {"type": "title", "height": 10},
                {"type": "detail", "height": 5, "dataSource": "rows"},
            ]},
        }])

        measured = BandMeasurer(services).measure_band(band, {"rows": [1, 2, 3]})

        assert measured.height == pytest.approx(25)


class TestTrySplit:
    """Tests for BandMeasurer.try_split."""

    def test_when_fixed_height_then_not_splittable(self, services):
        instance = BandInstance(_band([_text(content="a\nb\nc")], height=50, auto_height=False), {})

        assert BandMeasurer(services).try_split(instance, 20) is None

    def test_when_two_visible_elements_then_not_splittable(self, services):
        band = _band([_text("a", content="1\n2\n3"), _text("b", content="4\n5\n6", y=60)])

        assert BandMeasurer(services).try_split(BandInstance(band, {}), 20) is None

    def test_when_text_splits_then_head_and_tail_cover_all_lines(self, services):
        # Arrange
        band = _band([_text(content="\n".join(f"line {i}" for i in range(10)))])
        measurer = BandMeasurer(services)

        # Act
        head, tail = measurer.try_split(BandInstance(band, {}), 4 * LEADING + 1)

        # Assert
        assert measurer.measure_instance(head).height == pytest.approx(4 * LEADING)
        assert measurer.measure_instance(tail).height == pytest.approx(6 * LEADING)
