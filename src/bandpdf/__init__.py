"""Top-level package for bandpdf.

Provides subpackages:
- bandpdf.core – template models, schema validation, small utilities
- bandpdf.engine – layout engine, resource caches, PDF render pass
- bandpdf.plugins – element plugins (text, image, table, ...)
- bandpdf.cli – command line entry point
"""

def _get_version() -> str:
    """Get version from pyproject.toml (dev) or importlib.metadata (installed)."""
    from pathlib import Path

    pyproject = Path(__file__).resolve().parent.parent.parent / "pyproject.toml"
    if pyproject.exists():
        try:
            content = pyproject.read_text()
            for line in content.splitlines():
                if line.strip().startswith("version"):
                    # Parse: version = "0.3.0"
                    return line.split("=")[1].strip().strip('"').strip("'")
        except OSError:
            pass

    # Fallback to importlib.metadata for installed package
    from importlib.metadata import PackageNotFoundError, version as pkg_version
    try:
        return pkg_version("bandpdf")
    except PackageNotFoundError:
        return "0.0.0"

__version__ = _get_version()

from bandpdf.engine.controller import render_document, RenderResult
from bandpdf.engine.config import RenderOptions

__all__ = ["render_document", "RenderResult", "RenderOptions", "__version__"]
