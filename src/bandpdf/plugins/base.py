"""
Module: plugins.base

Purpose:
    The contract every element type implements, and the contexts the
    engine hands to plugins.

    Lifecycle per element instance:
        resolve_props(raw) -> validate(props) -> measure(props, ctx) -> render(props, ctx)

    ``measure`` and ``render`` may block on the resource caches (image
    fetch, barcode/chart generation); the engine waits for each call
    before it uses the result.

Key Classes:
    - ElementPlugin: Abstract base for element plugins
    - MeasureContext: Inputs to measure
    - RenderContext: Inputs to render (absolute PDF position, canvas)
    - Size, SplitResult, PropValidationError

Used By:
    - plugins.registry
    - engine.layout.measure
    - engine.output.renderer
"""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from bandpdf.core.models import Band, Element
from bandpdf.engine.layout.style import ResolvedStyle

if TYPE_CHECKING:
    from reportlab.pdfgen.canvas import Canvas

    from bandpdf.engine.services import EngineServices


@dataclass(frozen=True)
class Size:
    width: float
    height: float


@dataclass(frozen=True)
class PropValidationError:
    """A structural problem with an element's properties."""

    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"


@dataclass(frozen=True)
class SplitResult:
    """
    Result of splitting an element across a page boundary.

    Attributes:
        head: Props for the part that fits
        tail: Props for the part that continues on the next page/column
    """

    head: Dict[str, Any]
    tail: Dict[str, Any]


@dataclass(frozen=True)
class MeasureContext:
    """
    Everything a plugin may use to measure itself.

    Attributes:
        element: Element being measured
        style: Resolved style
        available_width: Content width (element width minus padding)
        available_height: Content height (element height minus padding)
        scope: Band scope (no _totalPages during layout)
        services: Shared engine services (fonts, caches, registry)
        depth: Nesting depth (containers)
        measure_child: (child, width, height) -> measured height
        measure_bands: (bands, width) -> stacked height of nested bands
    """

    element: Element
    style: ResolvedStyle
    available_width: float
    available_height: float
    scope: Mapping[str, Any]
    services: "EngineServices"
    depth: int = 0
    measure_child: Optional[Callable[[Element, float, float], float]] = None
    measure_bands: Optional[Callable[[Sequence[Band], float], float]] = None

    @property
    def fonts(self):
        return self.services.fonts


@dataclass(frozen=True)
class RenderContext:
    """
    Everything a plugin may use to draw itself.

    Positions are in PDF space: ``x`` is the left edge and ``y`` the TOP
    edge of the content box (PDF y grows upwards, so the box spans
    ``y - height`` .. ``y``).

    Attributes:
        canvas: reportlab canvas for the current page
        x: Left edge of the content box
        y: Top edge of the content box
        width: Content box width
        height: Content box height (measured height when available)
        element, style, scope, services, depth: As in MeasureContext
        render_child: (child, dx, dy, width, height) -> None
        render_bands: (bands, dx, dy, width, height) -> None
            Child offsets are top-down distances from the top-left corner
            of this element's content box, not PDF coordinates.
        measure_child: (child, width, height) -> measured height
        footnote_number: Returns the next footnote number on this page;
            None where footnote markers are not drawn
    """

    canvas: "Canvas"
    x: float
    y: float
    width: float
    height: float
    element: Element
    style: ResolvedStyle
    scope: Mapping[str, Any]
    services: "EngineServices"
    depth: int = 0
    render_child: Optional[Callable[[Element, float, float, float, float], None]] = None
    render_bands: Optional[Callable[[Sequence[Band], float, float, float, float], None]] = None
    measure_child: Optional[Callable[[Element, float, float], float]] = None
    footnote_number: Optional[Callable[[], int]] = None

    @property
    def fonts(self):
        return self.services.fonts

    @property
    def bottom(self) -> float:
        return self.y - self.height


MAX_NESTING_DEPTH = 10


class ContainerDepthError(Exception):
    """Raised when containers nest deeper than MAX_NESTING_DEPTH."""
    pass


class ElementPlugin(ABC):
    """
    Base class for element plugins.

    Subclasses set ``type`` and ``default_props`` and implement
    ``measure`` and ``render``. Plugins that can break across pages set
    ``can_split`` and implement ``split``.
    """

    type: str = ""
    default_props: Mapping[str, Any] = {}
    can_split: bool = False

    def resolve_props(self, raw: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        """Defaults merged with author properties. Never raises."""
        props = copy.deepcopy(dict(self.default_props))
        for key, value in (raw or {}).items():
            if value is not None:
                props[key] = value
        return props

    def validate(self, props: Mapping[str, Any]) -> List[PropValidationError]:
        return []

    @abstractmethod
    def measure(self, props: Mapping[str, Any], ctx: MeasureContext) -> Size:
        """Return the space this element occupies."""

    @abstractmethod
    def render(self, props: Mapping[str, Any], ctx: RenderContext) -> None:
        """Draw the element."""

    def split(
        self,
        props: Mapping[str, Any],
        ctx: MeasureContext,
        available_height: float,
    ) -> Optional[SplitResult]:
        """Split into a fitting head and a continuing tail, or None."""
        return None

    def footnotes(self, props: Mapping[str, Any]) -> List[Any]:
        """Footnote contents this element marks, in drawing order."""
        return []


# ─────────────────────────────────────────────────────────────────────────────
# Validation helpers
# ─────────────────────────────────────────────────────────────────────────────

def require(props: Mapping[str, Any], key: str, kind: type = object) -> List[PropValidationError]:
    """Check that ``key`` is present (non-empty) and of the given type."""
    value = props.get(key)
    if value is None or value == "":
        return [PropValidationError(key, "is required")]
    if kind is not object and not isinstance(value, kind):
        return [PropValidationError(key, f"must be {kind.__name__}, got {type(value).__name__}")]
    return []


def one_of(props: Mapping[str, Any], key: str, options: Iterable[str]) -> List[PropValidationError]:
    """Check enum membership when ``key`` is set."""
    allowed = tuple(options)
    value = props.get(key)
    if value is not None and value not in allowed:
        return [PropValidationError(key, f"must be one of {', '.join(allowed)}, got {value!r}")]
    return []


def non_negative(props: Mapping[str, Any], *keys: str) -> List[PropValidationError]:
    errors = []
    for key in keys:
        value = props.get(key)
        if value is None:
            continue
        if not isinstance(value, (int, float)) or value < 0:
            errors.append(PropValidationError(key, f"must be a non-negative number, got {value!r}"))
    return errors
