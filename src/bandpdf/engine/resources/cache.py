"""
Module: engine.resources.cache

Purpose:
    Single-flight cache: memoises the in-flight operation for a key, not
    just its result. Concurrent callers for the same key share one
    Future; the first caller runs the factory. A failed operation is
    evicted before its exception is published so the next request
    retries instead of replaying the failure.

Key Classes:
    - SingleFlightCache: Generic key -> Future cache

Dependencies:
    - concurrent.futures: Future as the shared in-flight handle
    - threading: Lock around the entry map

Used By:
    - engine.resources.images: ImageCache
    - engine.resources.barcodes: BarcodeCache
    - engine.resources.charts: ChartCache
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from typing import Callable, Dict, Generic, Hashable, Optional, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class SingleFlightCache(Generic[K, V]):
    """
    Deduplicating cache of in-flight and completed operations.

    Usage:
        cache = SingleFlightCache("images")
        image = cache.get(src, lambda: load_image(src), timeout=30)

    Attributes:
        name: Label used in log messages
    """

    def __init__(self, name: str = "cache"):
        self.name = name
        self._entries: Dict[K, Future] = {}
        self._lock = threading.Lock()

    def get_or_create(self, key: K, factory: Callable[[], V]) -> Future:
        """
        Return the shared Future for ``key``, running ``factory`` if this is the first request.

        The factory runs on the calling thread of the first requester;
        every other caller receives the same Future and may block on it.
        """
        with self._lock:
            existing = self._entries.get(key)
            if existing is not None:
                logger.debug(f"{self.name}: HIT {self._describe(key)}")
                return existing
            future: Future = Future()
            future.set_running_or_notify_cancel()
            self._entries[key] = future

        logger.debug(f"{self.name}: MISS {self._describe(key)}")
        try:
            result = factory()
        except Exception as e:
            with self._lock:
                if self._entries.get(key) is future:
                    del self._entries[key]
            logger.debug(f"{self.name}: evicted {self._describe(key)} after failure: {e}")
            future.set_exception(e)
        else:
            future.set_result(result)
        return future

    def get(self, key: K, factory: Callable[[], V], timeout: Optional[float] = None) -> V:
        """Blocking lookup; re-raises the factory's exception."""
        return self.get_or_create(key, factory).result(timeout=timeout)

    def peek(self, key: K) -> Optional[Future]:
        with self._lock:
            return self._entries.get(key)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    @staticmethod
    def _describe(key: object) -> str:
        text = str(key)
        return text if len(text) <= 80 else text[:77] + "..."
