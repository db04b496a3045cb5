"""
Template and Data Validation

Two levels of checking:

- Structural template problems that make rendering impossible raise
  ``TemplateError`` while parsing (see core.models.template).
- Softer problems are reported as message lists so the caller can turn
  them into diagnostics: duplicate ids, detail bands without a data
  source, unknown element types, and data payloads that violate the
  template's ``dataSchema`` (checked with jsonschema).
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Any, Iterable, List, Mapping, Optional

import jsonschema

from bandpdf.core.models import BandType, Template

logger = logging.getLogger(__name__)


def _is_trivial_schema(schema: Optional[Mapping[str, Any]]) -> bool:
    """An empty schema or a bare ``{"type": "object"}`` accepts every payload we render."""
    if not schema:
        return True
    return set(schema.keys()) <= {"type", "$schema"} and schema.get("type") in (None, "object")


def validate_data(data: Any, schema: Optional[Mapping[str, Any]]) -> List[str]:
    """
    Validate a data payload against a template's JSON Schema.

    Args:
        data: Runtime data payload
        schema: JSON Schema (any draft jsonschema supports)

    Returns:
        Human-readable error messages, empty when valid

    Example:
        >>> validate_data({"n": "x"}, {"type": "object", "properties": {"n": {"type": "number"}}})
        ["n: 'x' is not of type 'number'"]
    """
    if _is_trivial_schema(schema):
        return []

    validator_cls = jsonschema.validators.validator_for(schema)
    try:
        validator_cls.check_schema(schema)
    except jsonschema.SchemaError as e:
        return [f"dataSchema is invalid: {e.message}"]

    errors = sorted(validator_cls(schema).iter_errors(data), key=lambda err: list(err.absolute_path))
    messages = []
    for err in errors:
        location = ".".join(str(p) for p in err.absolute_path) or "<root>"
        messages.append(f"{location}: {err.message}")
    if messages:
        logger.debug(f"Data failed schema validation with {len(messages)} error(s)")
    return messages


def validate_template(template: Template, known_types: Optional[Iterable[str]] = None) -> List[str]:
    """
    Report non-fatal template problems.

    Args:
        template: Parsed template
        known_types: Registered element types (skips the type check when None)

    Returns:
        List of problem descriptions
    """
    problems: List[str] = []
    known = set(known_types) if known_types is not None else None

    element_ids = Counter(el.id for el in template.iter_elements())
    for element_id, count in sorted(element_ids.items()):
        if count > 1:
            problems.append(f"Element id '{element_id}' is used {count} times")

    for section in template.sections:
        band_ids = Counter(band.id for band in section.bands)
        for band_id, count in sorted(band_ids.items()):
            if count > 1:
                problems.append(f"Section '{section.id}': band id '{band_id}' is used {count} times")

        for band in section.bands:
            if band.type == BandType.DETAIL and not band.data_source:
                problems.append(f"Detail band '{band.id}' has no dataSource")
            if band.group_by and band.type != BandType.DETAIL:
                problems.append(f"Band '{band.id}' sets groupBy but is not a detail band")

    if known is not None:
        for element in template.iter_elements():
            if element.type not in known:
                problems.append(f"Element '{element.id}' has unknown type '{element.type}'")

    for style_name in {el.style for el in template.iter_elements() if el.style}:
        if style_name not in template.styles:
            problems.append(f"Named style '{style_name}' is not defined")

    return problems
