"""
Module: core.utils.serialization

Purpose:
    Load templates and data payloads from JSON files or mappings.

Key Functions:
    - load_template(): Path | mapping | Template -> Template
    - load_data(): Path | mapping | None -> dict

Used By:
    - engine.controller: render_document
    - cli: render / validate commands
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from bandpdf.core.models import Template, TemplateError

logger = logging.getLogger(__name__)

TemplateSource = Union[Template, Mapping[str, Any], str, Path]


def _read_json(path: Path) -> Any:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise TemplateError(f"{path} is not valid JSON: {e}") from e


def load_template(source: TemplateSource) -> Template:
    """
    Coerce a template source into a Template.

    Raises:
        TemplateError: If the file is not JSON or the structure is invalid
        FileNotFoundError: If a path does not exist
    """
    if isinstance(source, Template):
        return source
    if isinstance(source, (str, Path)):
        path = Path(source)
        logger.debug(f"Loading template from {path}")
        return Template.from_dict(_read_json(path))
    return Template.from_dict(source)


def load_data(source: Union[Mapping[str, Any], str, Path, None]) -> dict:
    """Coerce a data source into a plain dict (None -> empty)."""
    if source is None:
        return {}
    if isinstance(source, (str, Path)):
        data = _read_json(Path(source))
    else:
        data = source
    if not isinstance(data, Mapping):
        raise TemplateError(f"Data payload must be a JSON object, got {type(data).__name__}")
    return dict(data)
