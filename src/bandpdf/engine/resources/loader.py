"""
Module: engine.resources.loader

Purpose:
    Fetch raw resource bytes from a file path, an http(s) URL or a data
    URI, and sniff the image format from magic bytes. Declared MIME types
    and file extensions are never trusted.

Key Functions:
    - fetch_source_bytes(): Source string -> bytes
    - detect_format(): Bytes -> "png" | "jpeg"
    - parse_data_uri(): data: URI -> bytes

Dependencies:
    - requests: Remote fetch with a bounded timeout
"""

from __future__ import annotations

import base64
import binascii
import logging
from pathlib import Path
from typing import Optional
from urllib.parse import unquote_to_bytes

import requests

from .errors import FetchTimeoutError, ResourceError, UnsupportedFormatError

logger = logging.getLogger(__name__)

DEFAULT_FETCH_TIMEOUT = 30.0
USER_AGENT = "bandpdf/0.3"

PNG_SIGNATURE = b"\x89PNG"
JPEG_SIGNATURE = b"\xff\xd8"


def detect_format(data: bytes) -> str:
    """
    Identify an image format from its leading bytes.

    Raises:
        UnsupportedFormatError: For anything other than PNG or JPEG

    Example:
        >>> detect_format(b"\\x89PNG\\r\\n\\x1a\\n...")
        'png'
    """
    if data[:4] == PNG_SIGNATURE:
        return "png"
    if data[:2] == JPEG_SIGNATURE:
        return "jpeg"
    raise UnsupportedFormatError(
        f"Unsupported image format (leading bytes {data[:4].hex(' ') or 'empty'})"
    )


def parse_data_uri(uri: str) -> bytes:
    """
    Decode a ``data:`` URI (base64 or percent-encoded payload).

    Raises:
        ResourceError: If the URI is malformed
    """
    header, sep, payload = uri.partition(",")
    if not sep:
        raise ResourceError("Malformed data URI: missing ','", source=uri[:40])
    if header.endswith(";base64"):
        try:
            return base64.b64decode(payload, validate=False)
        except (binascii.Error, ValueError) as e:
            raise ResourceError(f"Malformed base64 data URI: {e}", source=uri[:40]) from e
    return unquote_to_bytes(payload)


def fetch_source_bytes(
    src: str,
    *,
    timeout: float = DEFAULT_FETCH_TIMEOUT,
    base_dir: Optional[Path] = None,
) -> bytes:
    """
    Load the bytes behind a resource source string.

    Args:
        src: File path, ``file://`` URL, ``http(s)://`` URL or ``data:`` URI
        timeout: Seconds before a remote fetch is abandoned
        base_dir: Directory relative file paths are resolved against

    Returns:
        Raw bytes

    Raises:
        FetchTimeoutError: Remote fetch exceeded ``timeout``
        ResourceError: Unreachable URL, HTTP error, unreadable file
    """
    if not src:
        raise ResourceError("Empty resource source")

    if src.startswith("data:"):
        return parse_data_uri(src)

    if src.startswith(("http://", "https://")):
        logger.debug(f"Fetching {src} (timeout {timeout}s)")
        try:
            response = requests.get(src, timeout=timeout, headers={"User-Agent": USER_AGENT})
            response.raise_for_status()
        except requests.exceptions.Timeout as e:
            raise FetchTimeoutError(f"Timed out after {timeout}s fetching {src}", source=src) from e
        except requests.exceptions.RequestException as e:
            raise ResourceError(f"Failed to fetch {src}: {e}", source=src) from e
        return response.content

    path = Path(src[len("file://"):] if src.startswith("file://") else src)
    if not path.is_absolute() and base_dir is not None:
        path = base_dir / path
    try:
        return path.read_bytes()
    except OSError as e:
        raise ResourceError(f"Cannot read {path}: {e}", source=src) from e
