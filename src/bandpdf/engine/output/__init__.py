"""PDF output: font registry and the reportlab render pass (engine.output.renderer)."""

from .fonts import FontRegistry

__all__ = ["FontRegistry"]
