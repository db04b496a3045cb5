"""
Layout Package

Style resolution, coordinate transform, band expansion, pagination and
anchor collection. Pagination and measurement live in
``engine.layout.paginator`` and ``engine.layout.measure``.
"""

from .anchors import collect_anchors
from .binding import PlaceholderResolver, ScopeResolver
from .columns import ColumnLayout, compute_column_layout
from .config import PageGeometry, merge_page_config
from .coordinates import PagePoint, to_page_space
from .expander import BandInstance, ExpandedSection, expand_section, group_contiguous
from .models import LayoutPage, LayoutResult, PlacedBand
from .style import Padding, ResolvedStyle, normalize_padding, resolve_style

__all__ = [
    "BandInstance",
    "ColumnLayout",
    "ExpandedSection",
    "LayoutPage",
    "LayoutResult",
    "PageGeometry",
    "PagePoint",
    "Padding",
    "PlacedBand",
    "PlaceholderResolver",
    "ResolvedStyle",
    "ScopeResolver",
    "collect_anchors",
    "compute_column_layout",
    "expand_section",
    "group_contiguous",
    "merge_page_config",
    "normalize_padding",
    "resolve_style",
    "to_page_space",
]
