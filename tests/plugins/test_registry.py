"""
Unit tests for the plugin registry and the base plugin contract.
"""

import pytest

from bandpdf.plugins.base import ElementPlugin, PropValidationError, Size, non_negative, one_of, require
from bandpdf.plugins.registry import (
    PluginNotFoundError,
    PluginRegistrationError,
    PluginRegistry,
    default_registry,
)
from bandpdf.plugins.text import TextPlugin


class StampPlugin(ElementPlugin):
    type = "stamp"
    default_props = {"label": "DRAFT", "tags": []}

    def measure(self, props, ctx):
        return Size(0, 0)

    def render(self, props, ctx):
        pass


class TestPluginRegistry:
    """Tests for PluginRegistry."""

    def test_when_registered_then_found(self):
        registry = PluginRegistry()
        registry.register(StampPlugin())

        assert registry.has("stamp")
        assert registry.get("stamp").type == "stamp"
        assert len(registry) == 1

    def test_when_registered_twice_then_error(self):
        # Arrange
        registry = PluginRegistry()
        registry.register(TextPlugin())

        # Act / Assert
        with pytest.raises(PluginRegistrationError, match="already registered"):
            registry.register(TextPlugin())

    def test_when_no_type_tag_then_error(self):
        class Nameless(StampPlugin):
            type = ""

        with pytest.raises(PluginRegistrationError):
            PluginRegistry().register(Nameless())

    def test_when_unknown_type_then_not_found(self):
        with pytest.raises(PluginNotFoundError):
            PluginRegistry().get("sparkline")

    def test_default_registry_has_every_builtin(self):
        assert default_registry().types == [
            "barcode", "chart", "container", "frame", "image", "line", "list", "shape", "table", "text",
        ]

    def test_default_registries_are_independent(self):
        first = default_registry()
        first.register(StampPlugin())

        assert not default_registry().has("stamp")


class TestElementPluginDefaults:
    """Tests for ElementPlugin.resolve_props and validation helpers."""

    def test_when_resolving_then_defaults_merged_and_none_ignored(self):
        props = StampPlugin().resolve_props({"label": None, "extra": 1})

        assert props == {"label": "DRAFT", "tags": [], "extra": 1}

    def test_when_resolving_then_defaults_not_shared(self):
        plugin = StampPlugin()
        plugin.resolve_props({})["tags"].append("x")

        assert plugin.resolve_props({})["tags"] == []

    def test_when_raw_missing_then_defaults(self):
        assert StampPlugin().resolve_props(None)["label"] == "DRAFT"

    def test_validation_helpers(self):
        assert require({}, "src") == [PropValidationError("src", "is required")]
        assert require({"src": 3}, "src", str)[0].message == "must be str, got int"
        assert one_of({"fit": "zoom"}, "fit", ("contain", "cover"))[0].path == "fit"
        assert one_of({}, "fit", ("contain",)) == []
        assert [e.path for e in non_negative({"gap": -1, "indent": 2}, "gap", "indent")] == ["gap"]
