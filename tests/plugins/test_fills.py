"""
Unit tests for the solid and gradient fill helpers.

Drawing is checked against a MagicMock canvas.
"""

from unittest.mock import MagicMock

import pytest

from bandpdf.plugins.drawing import fill_box, gradient_stops


def _linear(angle=0, stops=None):
    return {
        "type": "linear",
        "angle": angle,
        "stops": stops or [{"color": "#ff0000", "position": 0}, {"color": "#0000ff", "position": 1}],
    }


class TestGradientStops:
    """Tests for gradient_stops()."""

    def test_when_stops_unsorted_then_sorted_by_position(self):
        colors, positions = gradient_stops({"stops": [
            {"color": "#0000ff", "position": 1},
            {"color": "#ff0000", "position": 0},
        ]})

        assert positions == [0.0, 1.0]
        assert colors[0].red == 1.0

    def test_when_stops_inside_axis_then_padded_to_ends(self):
        colors, positions = gradient_stops({"stops": [
            {"color": "#ff0000", "position": 0.25},
            {"color": "#0000ff", "position": 0.75},
        ]})

        assert positions == [0.0, 0.25, 0.75, 1.0]
        assert len(colors) == 4

    def test_when_positions_missing_then_spread_evenly(self):
        _, positions = gradient_stops({"stops": [{"color": "#000"}, {"color": "#777"}, {"color": "#fff"}]})

        assert positions == [0.0, 0.5, 1.0]

    @pytest.mark.parametrize("gradient", [
        {},
        {"stops": "red"},
        {"stops": [{"color": "#ff0000"}]},
        {"stops": [{"color": "#ff0000"}, {"color": "not-a-colour"}]},
    ])
    def test_when_fewer_than_two_usable_stops_then_none(self, gradient):
        assert gradient_stops(gradient) is None


class TestFillBox:
    """Tests for fill_box()."""

    def test_when_hex_colour_then_solid_rect(self):
        canvas = MagicMock()

        fill_box(canvas, "#336699", 10, 20, 100, 50)

        canvas.rect.assert_called_once_with(10, 20, 100, 50, stroke=0, fill=1)
        canvas.linearGradient.assert_not_called()

    def test_when_no_colour_then_nothing_drawn(self):
        canvas = MagicMock()

        fill_box(canvas, None, 10, 20, 100, 50)

        canvas.saveState.assert_not_called()

    def test_when_linear_gradient_then_clipped_shading_across_box(self):
        # Arrange
        canvas = MagicMock()

        # Act
        fill_box(canvas, _linear(angle=0), 10, 20, 100, 50)

        # Assert
        canvas.clipPath.assert_called_once()
        args, kwargs = canvas.linearGradient.call_args
        x0, y0, x1, y1, colors, positions = args
        assert (x0, x1) == pytest.approx((10, 110))
        assert y0 == pytest.approx(45) and y1 == pytest.approx(45)
        assert positions == [0.0, 1.0]
        assert kwargs == {"extend": True}
        canvas.rect.assert_not_called()

    def test_when_angle_90_then_runs_top_to_bottom(self):
        canvas = MagicMock()

        fill_box(canvas, _linear(angle=90), 10, 20, 100, 50)

        x0, y0, x1, y1 = canvas.linearGradient.call_args.args[:4]
        assert (x0, x1) == pytest.approx((60, 60))
        assert (y0, y1) == pytest.approx((70, 20))

    def test_when_radial_then_centred_with_radius_of_shorter_side(self):
        # Arrange
        canvas = MagicMock()
        gradient = {"type": "radial", "cx": 0.5, "cy": 0.25, "radius": 0.5,
                    "stops": [{"color": "#ffffff"}, {"color": "#000000"}]}

        # Act
        fill_box(canvas, gradient, 0, 0, 200, 100)

        # Assert
        cx, cy, r = canvas.radialGradient.call_args.args[:3]
        assert (cx, cy, r) == pytest.approx((100, 75, 50))

    def test_when_gradient_invalid_then_nothing_drawn(self):
        canvas = MagicMock()

        fill_box(canvas, {"type": "linear", "stops": []}, 0, 0, 10, 10)

        canvas.saveState.assert_not_called()
        canvas.linearGradient.assert_not_called()

    def test_when_rounded_then_clip_path_rounded(self):
        canvas = MagicMock()

        fill_box(canvas, _linear(), 0, 0, 100, 40, radius=6)

        canvas.beginPath.return_value.roundRect.assert_called_once_with(0, 0, 100, 40, 6)
