"""
Module: engine.diagnostics

Collects recoverable problems found while laying out and rendering a
document. Nothing in here aborts a render: template/data issues, resource
failures, impossible pagination and plugin contract violations are all
recorded and returned alongside the PDF so the caller decides how strict
to be.

Every recorded diagnostic is also logged at WARNING level.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Tuple

logger = logging.getLogger(__name__)


class DiagnosticKind(str, Enum):
    DATA = "data"
    RESOURCE = "resource"
    PAGINATION = "pagination"
    CONTRACT = "contract"
    ANCHOR = "anchor"


@dataclass(frozen=True)
class Diagnostic:
    """
    A single recoverable problem.

    Fields:
    - kind: Category (data, resource, pagination, contract, anchor)
    - message: Human readable description
    - band_id / element_id: Where it happened, when known
    - page: 1-based page number, when known
    """
    kind: DiagnosticKind
    message: str
    band_id: Optional[str] = None
    element_id: Optional[str] = None
    page: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"kind": self.kind.value, "message": self.message}
        if self.band_id:
            d["band_id"] = self.band_id
        if self.element_id:
            d["element_id"] = self.element_id
        if self.page is not None:
            d["page"] = self.page
        return d

    def __str__(self) -> str:
        where = []
        if self.page is not None:
            where.append(f"page {self.page}")
        if self.band_id:
            where.append(f"band {self.band_id}")
        if self.element_id:
            where.append(f"element {self.element_id}")
        suffix = f" ({', '.join(where)})" if where else ""
        return f"[{self.kind.value}] {self.message}{suffix}"


class DiagnosticsCollector:
    """
    Thread-safe accumulator for diagnostics.

    Resource prefetch workers and the layout pass may report concurrently,
    so all mutation happens under a lock.
    """

    def __init__(self) -> None:
        self._items: List[Diagnostic] = []
        self._seen: Set[Tuple[Any, ...]] = set()
        self._lock = threading.Lock()

    def add(
        self,
        kind: DiagnosticKind,
        message: str,
        *,
        band_id: Optional[str] = None,
        element_id: Optional[str] = None,
        page: Optional[int] = None,
    ) -> Diagnostic:
        diagnostic = Diagnostic(kind, message, band_id=band_id, element_id=element_id, page=page)
        with self._lock:
            self._items.append(diagnostic)
        logger.warning(str(diagnostic))
        return diagnostic

    def add_once(
        self,
        kind: DiagnosticKind,
        message: str,
        *,
        band_id: Optional[str] = None,
        element_id: Optional[str] = None,
        page: Optional[int] = None,
    ) -> Optional[Diagnostic]:
        """Record unless an identical diagnostic (ignoring page) was already recorded."""
        key = (kind, message, band_id, element_id)
        with self._lock:
            if key in self._seen:
                return None
            self._seen.add(key)
        return self.add(kind, message, band_id=band_id, element_id=element_id, page=page)

    def extend(self, kind: DiagnosticKind, messages: List[str]) -> None:
        for message in messages:
            self.add(kind, message)

    def of_kind(self, kind: DiagnosticKind) -> Tuple[Diagnostic, ...]:
        with self._lock:
            return tuple(d for d in self._items if d.kind == kind)

    def snapshot(self) -> Tuple[Diagnostic, ...]:
        """Immutable copy of everything recorded so far."""
        with self._lock:
            return tuple(self._items)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
