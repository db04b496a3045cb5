"""Resource failure types (fetch, decode, generation)."""

from __future__ import annotations

from typing import Optional


class ResourceError(Exception):
    """Raised when an external resource cannot be fetched, decoded or generated."""

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message)
        self.source = source


class FetchTimeoutError(ResourceError):
    """Raised when a remote fetch exceeds its timeout."""
    pass


class UnsupportedFormatError(ResourceError):
    """Raised when resource bytes are not a supported image format."""
    pass
