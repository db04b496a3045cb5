"""Column geometry for multi-column sections."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple


@dataclass(frozen=True)
class ColumnLayout:
    """Resolved column widths and x offsets (relative to the content area)."""

    widths: Tuple[float, ...]
    offsets: Tuple[float, ...]

    @property
    def count(self) -> int:
        return len(self.widths)


def compute_column_layout(
    content_width: float,
    count: int,
    gap: float = 0.0,
    ratios: Optional[Sequence[float]] = None,
) -> ColumnLayout:
    """
    Split the content width into columns.

    Equal widths are ``(content_width - (count - 1) * gap) / count``;
    ratios distribute the same usable width proportionally.

    Example:
        >>> compute_column_layout(500, 2, gap=20)
        ColumnLayout(widths=(240.0, 240.0), offsets=(0.0, 260.0))
    """
    count = max(1, count)
    usable = max(0.0, content_width - (count - 1) * gap)

    if ratios and len(ratios) == count and sum(ratios) > 0:
        total = float(sum(ratios))
        widths = tuple(usable * (r / total) for r in ratios)
    else:
        widths = tuple(usable / count for _ in range(count))

    offsets = []
    x = 0.0
    for width in widths:
        offsets.append(x)
        x += width + gap

    return ColumnLayout(widths=widths, offsets=tuple(offsets))
