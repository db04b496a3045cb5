"""
Element plugins.

Each element type (text, image, line, shape, container, table, chart,
barcode, list, frame) is an ElementPlugin registered in a
PluginRegistry. ``default_registry()`` builds the registry with every
built-in plugin.
"""

from .base import ElementPlugin, MeasureContext, PropValidationError, RenderContext, Size, SplitResult
from .registry import PluginNotFoundError, PluginRegistrationError, PluginRegistry, default_registry

__all__ = [
    "ElementPlugin",
    "MeasureContext",
    "PluginNotFoundError",
    "PluginRegistrationError",
    "PluginRegistry",
    "PropValidationError",
    "RenderContext",
    "Size",
    "SplitResult",
    "default_registry",
]
