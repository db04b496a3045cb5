"""Dot-path lookup into nested data payloads."""

from __future__ import annotations

from typing import Any, Mapping, Optional


def resolve_dot_path(data: Any, path: Optional[str]) -> Any:
    """
    Follow a dot-separated path through nested mappings.

    List segments may be addressed by integer index ("rows.0.name").
    Returns None as soon as a segment is missing.

    Example:
        >>> resolve_dot_path({"a": {"b": [1, 2]}}, "a.b.1")
        2
        >>> resolve_dot_path({"a": {}}, "a.missing") is None
        True
    """
    if not path:
        return data
    current = data
    for segment in path.split("."):
        if isinstance(current, Mapping):
            if segment not in current:
                return None
            current = current[segment]
        elif isinstance(current, (list, tuple)) and segment.isdigit():
            index = int(segment)
            if index >= len(current):
                return None
            current = current[index]
        else:
            return None
    return current
