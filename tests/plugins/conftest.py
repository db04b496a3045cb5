from unittest.mock import MagicMock

import pytest

from bandpdf.core.models import Element
from bandpdf.engine.layout.style import ResolvedStyle
from bandpdf.plugins.base import MeasureContext, RenderContext


@pytest.fixture
def measure_context(services):
    """Factory for MeasureContexts around a bare element of the given type."""
    def _create(element_type="text", width=200.0, height=100.0, style=None, element=None, **kwargs):
        element = element or Element(id="el", type=element_type, x=0, y=0, width=width, height=height)
        return MeasureContext(
            element=element,
            style=style or ResolvedStyle(),
            available_width=width,
            available_height=height,
            scope=kwargs.pop("scope", {}),
            services=services,
            **kwargs,
        )
    return _create


@pytest.fixture
def render_context(services):
    """Factory for RenderContexts drawing onto a MagicMock canvas."""
    def _create(element_type="shape", x=10.0, y=300.0, width=200.0, height=100.0, element=None, **kwargs):
        element = element or Element(id="el", type=element_type, x=0, y=0, width=width, height=height)
        return RenderContext(
            canvas=kwargs.pop("canvas", MagicMock()),
            x=x,
            y=y,
            width=width,
            height=height,
            element=element,
            style=kwargs.pop("style", ResolvedStyle()),
            scope=kwargs.pop("scope", {}),
            services=services,
            **kwargs,
        )
    return _create
