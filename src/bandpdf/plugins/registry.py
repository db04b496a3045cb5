"""
Module: plugins.registry

Maps element type tags to plugin instances. The engine never branches on
type strings; new element types are added by registering a plugin.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterator, List

from .base import ElementPlugin

logger = logging.getLogger(__name__)


class PluginNotFoundError(KeyError):
    """Raised when no plugin is registered for an element type."""
    pass


class PluginRegistrationError(ValueError):
    """Raised when a plugin type is registered twice or has no type tag."""
    pass


class PluginRegistry:
    """
    Registry of element plugins keyed by type tag.

    Example:
        >>> registry = PluginRegistry()
        >>> registry.register(TextPlugin())
        >>> registry.get("text").type
        'text'
    """

    def __init__(self) -> None:
        self._plugins: Dict[str, ElementPlugin] = {}

    def register(self, plugin: ElementPlugin) -> None:
        if not plugin.type:
            raise PluginRegistrationError(f"{type(plugin).__name__} has no type tag")
        if plugin.type in self._plugins:
            raise PluginRegistrationError(f"Plugin for type '{plugin.type}' is already registered")
        self._plugins[plugin.type] = plugin
        logger.debug(f"Registered plugin '{plugin.type}'")

    def get(self, element_type: str) -> ElementPlugin:
        try:
            return self._plugins[element_type]
        except KeyError:
            raise PluginNotFoundError(f"No plugin registered for element type '{element_type}'") from None

    def has(self, element_type: str) -> bool:
        return element_type in self._plugins

    @property
    def types(self) -> List[str]:
        return sorted(self._plugins)

    def __iter__(self) -> Iterator[ElementPlugin]:
        return iter(self._plugins.values())

    def __len__(self) -> int:
        return len(self._plugins)


def default_registry() -> PluginRegistry:
    """A registry with every built-in element plugin."""
    from .barcode import BarcodePlugin
    from .chart import ChartPlugin
    from .container import ContainerPlugin
    from .frame import FramePlugin
    from .image import ImagePlugin
    from .line import LinePlugin
    from .list import ListPlugin
    from .shape import ShapePlugin
    from .table import TablePlugin
    from .text import TextPlugin

    registry = PluginRegistry()
    for plugin in (
        TextPlugin(),
        ImagePlugin(),
        LinePlugin(),
        ShapePlugin(),
        ContainerPlugin(),
        TablePlugin(),
        ChartPlugin(),
        BarcodePlugin(),
        ListPlugin(),
        FramePlugin(),
    ):
        registry.register(plugin)
    return registry
