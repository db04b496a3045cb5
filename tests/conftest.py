import io
import sys
from pathlib import Path

import pytest
from PIL import Image

# Add src to sys.path so we can import bandpdf
SRC_PATH = Path(__file__).resolve().parent.parent / "src"
if SRC_PATH.as_posix() not in sys.path:
    sys.path.insert(0, SRC_PATH.as_posix())

from bandpdf.core.models import Template  # noqa: E402
from bandpdf.engine.services import EngineServices  # noqa: E402


# Common test fixtures
@pytest.fixture
def sample_png_bytes() -> bytes:
    """A small 200x100 PNG."""
    buffer = io.BytesIO()
    Image.new("RGB", (200, 100), color="white").save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def sample_image(tmp_path: Path, sample_png_bytes: bytes):
    """Create a simple test image on disk."""
    img_path = tmp_path / "sample.png"
    img_path.write_bytes(sample_png_bytes)
    return img_path


@pytest.fixture
def band_factory():
    """Factory for band dicts in the JSON template format."""
    def _create(band_type: str, height: float = 20, band_id: str = None, **extra):
        band = {"type": band_type, "height": height}
        if band_id:
            band["id"] = band_id
        band.update(extra)
        return band
    return _create


@pytest.fixture
def template_factory():
    """
    Factory for Templates with one section.

    Default page: 600 x 400 with 50pt margins (content area 500 x 300).
    """
    def _create(bands, page=None, columns=None, **extra):
        section = {"id": "main", "bands": list(bands)}
        if columns:
            section["columns"] = columns
        data = {
            "name": "test",
            "page": page or {"width": 600, "height": 400, "margins": 50},
            "sections": [section],
        }
        data.update(extra)
        return Template.from_dict(data)
    return _create


@pytest.fixture
def services():
    """Fresh engine services with the built-in plugins."""
    return EngineServices()
