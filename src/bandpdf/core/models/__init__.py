"""
Core Models Package

Immutable template models. Every class is a frozen dataclass parsed from
the JSON template format via ``from_dict`` and never mutated afterwards,
so a template can be shared between layout, anchor collection and the
render pass without copying.
"""

from .template import (
    Band,
    BandType,
    ColumnConfig,
    Element,
    FontDeclaration,
    Margins,
    PageConfig,
    Section,
    Template,
    TemplateError,
)

__all__ = [
    "Band",
    "BandType",
    "ColumnConfig",
    "Element",
    "FontDeclaration",
    "Margins",
    "PageConfig",
    "Section",
    "Template",
    "TemplateError",
]
