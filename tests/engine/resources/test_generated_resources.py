"""
Unit tests for the image, barcode and chart caches.
"""

import pytest
from reportlab.graphics.shapes import Drawing

from bandpdf.engine.resources import (
    BarcodeCache,
    ChartCache,
    ImageCache,
    ResourceError,
    UnsupportedFormatError,
    build_barcode,
    build_chart,
    decode_image,
)


class TestImageCache:
    """Image loading through the single-flight cache."""

    def test_when_png_then_intrinsic_size(self, sample_image):
        image = ImageCache().get(str(sample_image))

        assert image.format == "png"
        assert (image.width, image.height) == (200, 100)

    def test_when_same_source_twice_then_fetched_once(self, sample_png_bytes):
        # Arrange
        calls = []

        def fetcher(src, **kwargs):
            calls.append(src)
            return sample_png_bytes

        cache = ImageCache(fetcher=fetcher)

        # Act
        first = cache.get("logo.png")
        second = cache.get("logo.png")

        # Assert
        assert first is second
        assert calls == ["logo.png"]

    def test_when_fetcher_receives_timeout_and_base_dir(self, sample_png_bytes, tmp_path):
        seen = {}

        def fetcher(src, **kwargs):
            seen.update(kwargs)
            return sample_png_bytes

        ImageCache(timeout=3, base_dir=tmp_path, fetcher=fetcher).get("a.png")

        assert seen == {"timeout": 3, "base_dir": tmp_path}

    def test_when_bytes_not_image_then_unsupported_and_retried_after_forget(self, sample_png_bytes):
        # Arrange
        payloads = [b"not an image", sample_png_bytes]
        cache = ImageCache(fetcher=lambda src, **kwargs: payloads.pop(0))

        # Act / Assert
        with pytest.raises(UnsupportedFormatError):
            cache.get("flaky.png")
        cache.forget_failures()
        assert cache.get("flaky.png").width == 200

    def test_when_source_failed_then_not_fetched_again(self):
        # Arrange
        calls = []

        def fetcher(src, **kwargs):
            calls.append(src)
            raise ResourceError("unreachable", source=src)

        cache = ImageCache(fetcher=fetcher)

        # Act
        for _ in range(3):
            with pytest.raises(ResourceError, match="unreachable"):
                cache.get("missing.png")

        # Assert
        assert calls == ["missing.png"]

    def test_when_prefetch_failed_then_get_reuses_error(self):
        calls = []

        def fetcher(src, **kwargs):
            calls.append(src)
            raise ResourceError("unreachable", source=src)

        cache = ImageCache(fetcher=fetcher)
        cache.prefetch(["bad.png"])

        with pytest.raises(ResourceError):
            cache.get("bad.png")
        assert calls == ["bad.png"]

    def test_when_prefetch_then_counts_successes(self, sample_png_bytes):
        def fetcher(src, **kwargs):
            if src == "bad.png":
                raise ResourceError("unreachable", source=src)
            return sample_png_bytes

        cache = ImageCache(fetcher=fetcher)

        loaded = cache.prefetch(["a.png", "b.png", "a.png", "bad.png", ""], max_workers=2)

        assert loaded == 2
        assert len(cache) == 2

    def test_when_png_header_but_corrupt_then_resource_error(self):
        with pytest.raises(ResourceError, match="Cannot decode"):
            decode_image("broken.png", b"\x89PNG\r\n\x1a\ngarbage")


class TestBarcodes:
    """Barcode generation."""

    def test_when_qr_then_drawing(self):
        drawing = build_barcode({"value": "https://example.com", "format": "qrcode"})

        assert isinstance(drawing, Drawing)
        assert drawing.width > 0 and drawing.height > 0

    def test_when_code128_with_text_then_drawing(self):
        drawing = build_barcode({"value": "ABC-123", "format": "code128", "includeText": True, "barHeight": 30})

        assert drawing.width > 0

    def test_when_unknown_format_then_resource_error(self):
        with pytest.raises(ResourceError, match="Unsupported barcode format"):
            build_barcode({"value": "x", "format": "aztec"})

    def test_when_value_empty_then_resource_error(self):
        with pytest.raises(ResourceError, match="empty"):
            build_barcode({"value": "", "format": "qrcode"})

    def test_when_same_spec_then_cached(self):
        cache = BarcodeCache()
        spec = {"value": "42", "format": "qrcode"}

        assert cache.get(spec) is cache.get(dict(spec))
        assert len(cache) == 1


class TestCharts:
    """Chart generation."""

    @pytest.mark.parametrize("chart_type", ["bar", "horizontalBar", "line", "pie"])
    def test_when_chart_type_then_drawing_sized_to_spec(self, chart_type):
        drawing = build_chart({
            "chartType": chart_type,
            "series": [[1, 2, 3], [3, 2, 1]],
            "categories": ["a", "b", "c"],
            "title": "Sales",
            "legend": True,
            "width": 300,
            "height": 200,
        })

        assert (drawing.width, drawing.height) == (300, 200)

    def test_when_no_data_then_resource_error(self):
        with pytest.raises(ResourceError, match="no data"):
            build_chart({"chartType": "bar", "series": []})

    def test_when_series_not_numeric_then_resource_error(self):
        with pytest.raises(ResourceError, match="numeric"):
            build_chart({"chartType": "bar", "series": [["x"]]})

    def test_when_unknown_type_then_resource_error(self):
        with pytest.raises(ResourceError, match="Unsupported chart type"):
            build_chart({"chartType": "radar", "series": [[1]]})

    def test_when_same_spec_then_cached(self):
        cache = ChartCache()
        spec = {"chartType": "bar", "series": [[1, 2]], "width": 100, "height": 80}

        assert cache.get(spec) is cache.get(spec)
        assert len(cache) == 1
