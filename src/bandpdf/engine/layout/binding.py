"""
Module: engine.layout.binding

Purpose:
    Bind band scopes to element properties and conditions.

    Expression evaluation belongs to whatever produced the template; this
    module only defines the seam (ScopeResolver) and a deliberately small
    default that substitutes bare dotted-path placeholders such as
    ``{{ item.name }}`` or ``{{ _pageNumber }}``. Anything that is not a
    plain identifier path (filters, operators, calls) is left untouched.

Key Classes:
    - ScopeResolver: Protocol used by layout and rendering
    - PlaceholderResolver: Default implementation

Used By:
    - engine.layout.measure
    - engine.layout.expander
    - engine.output.renderer
"""

from __future__ import annotations

import re
from typing import Any, Mapping, Protocol

from bandpdf.core.utils.data import resolve_dot_path

PLACEHOLDER_RE = re.compile(r"\{\{\s*([A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z0-9_]+)*)\s*\}\}")
_PURE_PLACEHOLDER_RE = re.compile(r"^\s*\{\{\s*([A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z0-9_]+)*)\s*\}\}\s*$")

_MISSING = object()


class ScopeResolver(Protocol):
    """Resolves element properties and conditions against a band scope."""

    def resolve_props(self, props: Mapping[str, Any], scope: Mapping[str, Any]) -> dict: ...

    def evaluate(self, condition: Any, scope: Mapping[str, Any]) -> bool: ...


def _lookup(scope: Mapping[str, Any], path: str) -> Any:
    head = path.split(".", 1)[0]
    if head not in scope:
        return _MISSING
    return resolve_dot_path(scope, path)


def _format(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class PlaceholderResolver:
    """
    Default resolver: bare dotted-path placeholders only.

    - ``"Total: {{ data.total }}"`` -> ``"Total: 42"``
    - ``"{{ data.rows }}"`` (a lone placeholder) -> the raw list
    - unresolvable placeholders stay verbatim, which is how
      ``{{ _totalPages }}`` survives the layout pass untouched
    """

    def resolve_props(self, props: Mapping[str, Any], scope: Mapping[str, Any]) -> dict:
        return {key: self._resolve_value(value, scope) for key, value in props.items()}

    def evaluate(self, condition: Any, scope: Mapping[str, Any]) -> bool:
        if condition is None:
            return True
        if isinstance(condition, bool):
            return condition
        if isinstance(condition, str):
            text = condition.strip()
            negate = text.startswith("!")
            path = text[1:].strip() if negate else text
            match = _PURE_PLACEHOLDER_RE.match(path)
            if match:
                path = match.group(1)
            value = _lookup(scope, path)
            result = value is not _MISSING and bool(value)
            return not result if negate else result
        return bool(condition)

    def _resolve_value(self, value: Any, scope: Mapping[str, Any]) -> Any:
        if isinstance(value, str):
            return self._resolve_string(value, scope)
        if isinstance(value, list):
            return [self._resolve_value(v, scope) for v in value]
        if isinstance(value, Mapping):
            return {k: self._resolve_value(v, scope) for k, v in value.items()}
        return value

    def _resolve_string(self, text: str, scope: Mapping[str, Any]) -> Any:
        if "{{" not in text:
            return text
        pure = _PURE_PLACEHOLDER_RE.match(text)
        if pure:
            value = _lookup(scope, pure.group(1))
            if value is _MISSING:
                return text
            if isinstance(value, (list, tuple, Mapping)):
                return value
            return _format(value)

        def substitute(match: "re.Match[str]") -> str:
            value = _lookup(scope, match.group(1))
            return match.group(0) if value is _MISSING else _format(value)

        return PLACEHOLDER_RE.sub(substitute, text)
