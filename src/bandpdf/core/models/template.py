"""
Module: core.models.template

Purpose:
    Immutable template model: page geometry, sections, bands, elements,
    named styles and declared fonts. Parsed once from the JSON template
    format and passed read-only through layout and rendering.

Key Classes:
    - Template: Whole document template
    - PageConfig / Margins: Page geometry (possibly partial)
    - Section: Ordered bands sharing one page geometry
    - ColumnConfig: Multi-column settings for a section
    - Band / BandType: Horizontal content strip and its semantic type
    - Element: Positioned element rendered by a plugin
    - FontDeclaration: Custom TrueType font to register

Key Functions:
    - Template.from_dict(data): Parse the JSON template format

Dependencies:
    - dataclasses (std)
    - enum (std)

Used By:
    - core.utils.serialization: Template loading
    - engine.layout: Expansion, measurement, pagination
    - plugins.frame: Nested bands
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Mapping, Optional, Tuple, Union


class TemplateError(Exception):
    """Raised when a template is structurally invalid and cannot be rendered."""
    pass


# A condition is either pre-resolved or a dotted data path tested for truthiness
Condition = Union[bool, str, None]

# A hex colour string or a gradient mapping ({"type": "linear" | "radial", "stops": [...]})
Background = Union[str, Mapping[str, Any], None]


class BandType(str, Enum):
    """Semantic band types."""
    BACKGROUND = "background"
    PAGE_HEADER = "pageHeader"
    TITLE = "title"
    COLUMN_HEADER = "columnHeader"
    GROUP_HEADER = "groupHeader"
    DETAIL = "detail"
    GROUP_FOOTER = "groupFooter"
    NO_DATA = "noData"
    BODY = "body"
    SUMMARY = "summary"
    COLUMN_FOOTER = "columnFooter"
    PAGE_FOOTER = "pageFooter"
    LAST_PAGE_FOOTER = "lastPageFooter"

    @property
    def is_repeating(self) -> bool:
        """Bands drawn once per physical page rather than once per stream."""
        return self in _REPEATING_TYPES


_REPEATING_TYPES = frozenset({
    BandType.BACKGROUND,
    BandType.PAGE_HEADER,
    BandType.COLUMN_HEADER,
    BandType.COLUMN_FOOTER,
    BandType.PAGE_FOOTER,
    BandType.LAST_PAGE_FOOTER,
})


@dataclass(frozen=True)
class Margins:
    """
    Page margins in points.

    Example:
        >>> Margins.from_value({"top": 40, "left": 20})
        Margins(top=40.0, right=0.0, bottom=0.0, left=20.0)
    """

    top: float = 0.0
    right: float = 0.0
    bottom: float = 0.0
    left: float = 0.0

    def __post_init__(self) -> None:
        for side in ("top", "right", "bottom", "left"):
            if getattr(self, side) < 0:
                raise TemplateError(f"Margin '{side}' must be >= 0: {getattr(self, side)}")

    @classmethod
    def from_value(cls, value: Any) -> "Margins":
        """Build from a number (all sides) or a per-side mapping."""
        if value is None:
            return cls()
        if isinstance(value, (int, float)):
            return cls(float(value), float(value), float(value), float(value))
        if isinstance(value, Mapping):
            return cls(
                top=float(value.get("top", 0)),
                right=float(value.get("right", 0)),
                bottom=float(value.get("bottom", 0)),
                left=float(value.get("left", 0)),
            )
        raise TemplateError(f"Invalid margins: {value!r}")

    @property
    def vertical(self) -> float:
        return self.top + self.bottom

    @property
    def horizontal(self) -> float:
        return self.left + self.right


@dataclass(frozen=True)
class PageConfig:
    """
    Template-wide default page geometry.

    Width and height may be missing on the template default when every
    section supplies its own; resolution happens in
    ``engine.layout.config.merge_page_config``.

    Attributes:
        width: Page width in points (None if unspecified)
        height: Page height in points (None if unspecified)
        margins: Page margins
        auto_height: Grow the page to fit content instead of breaking
    """

    width: Optional[float] = None
    height: Optional[float] = None
    margins: Margins = field(default_factory=Margins)
    auto_height: bool = False

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "PageConfig":
        if not data:
            return cls()
        width, height = page_dimensions(data)
        return cls(
            width=width,
            height=height,
            margins=Margins.from_value(data.get("margins")),
            auto_height=bool(data.get("autoHeight", False)),
        )


def page_dimensions(data: Mapping[str, Any]) -> Tuple[Optional[float], Optional[float]]:
    """
    Read width/height from a page mapping.

    Accepts explicit ``width``/``height`` or a named ``size``
    (A4, Letter, Legal) with optional ``orientation``.
    """
    from reportlab.lib.pagesizes import A4, LEGAL, LETTER

    named = {"a4": A4, "letter": LETTER, "legal": LEGAL}
    width = data.get("width")
    height = data.get("height")
    size = data.get("size")
    if size is not None:
        dims = named.get(str(size).lower())
        if dims is None:
            raise TemplateError(f"Unknown page size: {size!r}")
        if width is None:
            width = dims[0]
        if height is None:
            height = dims[1]
    if data.get("orientation") == "landscape" and width is not None and height is not None:
        width, height = max(width, height), min(width, height)
    return (
        float(width) if width is not None else None,
        float(height) if height is not None else None,
    )


@dataclass(frozen=True)
class ColumnConfig:
    """
    Multi-column configuration for a section.

    Attributes:
        count: Number of columns (>= 1)
        gap: Horizontal gap between columns in points
        widths: Optional relative width ratios, one per column
        mode: "tile" (move to next column) or "flow" (may split across columns)
    """

    count: int = 1
    gap: float = 0.0
    widths: Optional[Tuple[float, ...]] = None
    mode: str = "tile"

    def __post_init__(self) -> None:
        if self.count < 1:
            raise TemplateError(f"Column count must be >= 1: {self.count}")
        if self.gap < 0:
            raise TemplateError(f"Column gap must be >= 0: {self.gap}")
        if self.widths is not None and len(self.widths) != self.count:
            raise TemplateError(
                f"Column widths has {len(self.widths)} entries, expected {self.count}"
            )
        if self.mode not in ("tile", "flow"):
            raise TemplateError(f"Unknown column mode: {self.mode!r}")

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> Optional["ColumnConfig"]:
        if not data:
            return None
        widths = data.get("widths")
        return cls(
            count=int(data.get("count", 1)),
            gap=float(data.get("gap", 0)),
            widths=tuple(float(w) for w in widths) if widths else None,
            mode=str(data.get("mode", "tile")),
        )


@dataclass(frozen=True)
class Element:
    """
    A positioned element inside a band.

    Coordinates are top-down and local to the enclosing band (or parent
    container). ``properties`` are plugin-specific and arrive with any
    expressions already resolved upstream.

    Attributes:
        id: Element identifier (unique within the template)
        type: Plugin type tag (text, image, table, ...)
        x, y, width, height: Local box in points
        properties: Plugin properties
        rotation: Clockwise rotation in degrees around the box centre
        style: Named style reference
        style_overrides: Inline style properties (win over everything)
        condition: Visibility condition
        anchor: Anchor id for cross references
        elements: Child elements (containers)
        bands: Nested bands (frames)
    """

    id: str
    type: str
    x: float
    y: float
    width: float
    height: float
    properties: Mapping[str, Any] = field(default_factory=dict)
    rotation: float = 0.0
    style: Optional[str] = None
    style_overrides: Optional[Mapping[str, Any]] = None
    condition: Condition = None
    anchor: Optional[str] = None
    elements: Tuple["Element", ...] = ()
    bands: Tuple["Band", ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], fallback_id: str = "element") -> "Element":
        if "type" not in data:
            raise TemplateError(f"Element '{data.get('id', fallback_id)}' has no type")
        element_id = str(data.get("id") or fallback_id)
        properties = dict(data.get("properties") or {})

        children = tuple(
            Element.from_dict(child, f"{element_id}.{i}")
            for i, child in enumerate(properties.pop("children", None) or data.get("elements") or ())
        )
        bands = tuple(
            Band.from_dict(band, f"{element_id}.band{i}")
            for i, band in enumerate(properties.pop("bands", None) or ())
        )

        return cls(
            id=element_id,
            type=str(data["type"]),
            x=float(data.get("x", 0)),
            y=float(data.get("y", 0)),
            width=float(data.get("width", 0)),
            height=float(data.get("height", 0)),
            properties=properties,
            rotation=float(data.get("rotation", 0) or 0),
            style=data.get("style"),
            style_overrides=data.get("styleOverrides"),
            condition=data.get("condition"),
            anchor=data.get("anchor") or None,
            elements=children,
            bands=bands,
        )

    def iter_tree(self):
        """Yield this element and every nested element (children and frame bands)."""
        yield self
        for child in self.elements:
            yield from child.iter_tree()
        for band in self.bands:
            for element in band.elements:
                yield from element.iter_tree()


@dataclass(frozen=True)
class Band:
    """
    A horizontal content strip.

    Attributes:
        id: Band identifier
        type: Semantic band type
        height: Declared height in points (minimum height when auto_height)
        elements: Ordered elements
        auto_height: Grow to fit measured elements
        data_source: Dotted path to an array in the data (detail bands)
        item_name: Scope key for the bound item (default "item")
        group_by: Dotted path inside each item used for contiguous grouping
        condition: Visibility condition
        anchor: Anchor id for cross references
        page_break_before: Start a new page before this band
        background_color: Fill colour or gradient painted behind the band
        floating: Column footers only ("float" in JSON): follow content instead of pinning to the bottom
    """

    id: str
    type: BandType
    height: float
    elements: Tuple[Element, ...] = ()
    auto_height: bool = False
    data_source: Optional[str] = None
    item_name: Optional[str] = None
    group_by: Optional[str] = None
    condition: Condition = None
    anchor: Optional[str] = None
    page_break_before: bool = False
    background_color: Background = None
    floating: bool = False

    def __post_init__(self) -> None:
        if self.height < 0:
            raise TemplateError(f"Band '{self.id}' height must be >= 0: {self.height}")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], fallback_id: str = "band") -> "Band":
        band_id = str(data.get("id") or fallback_id)
        try:
            band_type = BandType(data.get("type"))
        except ValueError as e:
            raise TemplateError(f"Band '{band_id}' has unknown type {data.get('type')!r}") from e

        return cls(
            id=band_id,
            type=band_type,
            height=float(data.get("height", 0)),
            elements=tuple(
                Element.from_dict(el, f"{band_id}.el{i}")
                for i, el in enumerate(data.get("elements") or ())
            ),
            auto_height=bool(data.get("autoHeight", False)),
            data_source=data.get("dataSource") or None,
            item_name=data.get("itemName") or None,
            group_by=data.get("groupBy") or None,
            condition=data.get("condition"),
            anchor=data.get("anchor") or None,
            page_break_before=bool(data.get("pageBreakBefore", False)),
            background_color=data.get("backgroundColor"),
            floating=bool(data.get("float", False)),
        )


@dataclass(frozen=True)
class Section:
    """
    Ordered bands sharing one page geometry.

    Attributes:
        id: Section identifier
        bands: Bands in declaration order
        page: Partial page override (merged onto the template default)
        columns: Optional multi-column configuration
        name: Display name
    """

    id: str
    bands: Tuple[Band, ...]
    page: Optional[Mapping[str, Any]] = None
    columns: Optional[ColumnConfig] = None
    name: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], fallback_id: str = "section") -> "Section":
        section_id = str(data.get("id") or fallback_id)
        return cls(
            id=section_id,
            bands=tuple(
                Band.from_dict(band, f"{section_id}.band{i}")
                for i, band in enumerate(data.get("bands") or ())
            ),
            page=data.get("page") or None,
            columns=ColumnConfig.from_dict(data.get("columns")),
            name=data.get("name"),
        )


@dataclass(frozen=True)
class FontDeclaration:
    """A TrueType font to register before rendering."""

    family: str
    src: str
    weight: str = "normal"
    style: str = "normal"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FontDeclaration":
        if not data.get("family") or not data.get("src"):
            raise TemplateError(f"Font declaration needs 'family' and 'src': {dict(data)!r}")
        weight = data.get("weight", "normal")
        if isinstance(weight, (int, float)):
            weight = "bold" if weight >= 600 else "normal"
        return cls(
            family=str(data["family"]),
            src=str(data["src"]),
            weight=str(weight),
            style=str(data.get("style", "normal")),
        )


@dataclass(frozen=True)
class Template:
    """
    Document template (immutable).

    Attributes:
        name: Template name
        page: Default page geometry
        sections: Ordered sections
        styles: Named styles
        default_style: Template-wide style layer
        data_schema: JSON Schema the data payload must satisfy
        fonts: Custom fonts
        version: Template format version

    Example:
        >>> t = Template.from_dict({"page": {"size": "A4"}, "sections": []})
        >>> round(t.page.width)
        595
    """

    name: str = "untitled"
    page: PageConfig = field(default_factory=PageConfig)
    sections: Tuple[Section, ...] = ()
    styles: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)
    default_style: Mapping[str, Any] = field(default_factory=dict)
    data_schema: Mapping[str, Any] = field(default_factory=dict)
    fonts: Tuple[FontDeclaration, ...] = ()
    version: str = "1.0"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Template":
        if not isinstance(data, Mapping):
            raise TemplateError(f"Template must be a mapping, got {type(data).__name__}")
        sections = data.get("sections")
        if sections is None or not isinstance(sections, list):
            raise TemplateError("Template has no 'sections' list")

        return cls(
            name=str(data.get("name", "untitled")),
            page=PageConfig.from_dict(data.get("page")),
            sections=tuple(
                Section.from_dict(section, f"section{i}") for i, section in enumerate(sections)
            ),
            styles=dict(data.get("styles") or {}),
            default_style=dict(data.get("defaultStyle") or {}),
            data_schema=dict(data.get("dataSchema") or {}),
            fonts=tuple(FontDeclaration.from_dict(f) for f in data.get("fonts") or ()),
            version=str(data.get("version", "1.0")),
        )

    def iter_elements(self) -> List[Element]:
        """All elements in the template, nested ones included."""
        found: List[Element] = []
        for section in self.sections:
            for band in section.bands:
                for element in band.elements:
                    found.extend(element.iter_tree())
        return found
