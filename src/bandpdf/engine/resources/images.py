"""
Module: engine.resources.images

Purpose:
    Image resolution for image elements: fetch bytes, sniff the format,
    read the intrinsic pixel size with Pillow and wrap the data in a
    reportlab ImageReader ready for drawing. Results are shared through a
    single-flight cache keyed by the source string. A source that failed
    is remembered with its error and not fetched again until
    forget_failures() is called (once per render request).

Key Classes:
    - LoadedImage: Decoded image ready to draw
    - ImageCache: Single-flight cache + concurrent prefetch

Dependencies:
    - PIL: Intrinsic size, decode check
    - reportlab.lib.utils.ImageReader: Drawing handle
    - concurrent.futures: Prefetch worker pool
"""

from __future__ import annotations

import io
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, Optional

from PIL import Image, UnidentifiedImageError
from reportlab.lib.utils import ImageReader

from .cache import SingleFlightCache
from .errors import ResourceError
from .loader import DEFAULT_FETCH_TIMEOUT, detect_format, fetch_source_bytes

logger = logging.getLogger(__name__)

Fetcher = Callable[..., bytes]


@dataclass(frozen=True)
class LoadedImage:
    """
    A fetched and decoded image (immutable).

    Attributes:
        source: Source string it was loaded from
        format: "png" or "jpeg" (sniffed)
        width: Intrinsic width in pixels
        height: Intrinsic height in pixels
        data: Raw bytes
        reader: reportlab ImageReader over ``data``
    """

    source: str
    format: str
    width: int
    height: int
    data: bytes = field(repr=False)
    reader: ImageReader = field(repr=False, compare=False)


def decode_image(source: str, data: bytes) -> LoadedImage:
    """
    Sniff, decode and wrap raw image bytes.

    Raises:
        UnsupportedFormatError: Not PNG/JPEG
        ResourceError: Bytes claim a supported format but cannot be decoded
    """
    image_format = detect_format(data)
    try:
        with Image.open(io.BytesIO(data)) as img:
            width, height = img.size
    except (UnidentifiedImageError, OSError) as e:
        raise ResourceError(f"Cannot decode {image_format} image: {e}", source=source) from e
    return LoadedImage(
        source=source,
        format=image_format,
        width=width,
        height=height,
        data=data,
        reader=ImageReader(io.BytesIO(data)),
    )


class ImageCache:
    """
    Single-flight image cache.

    Usage:
        images = ImageCache(timeout=10)
        images.prefetch(["logo.png", "https://example.com/a.jpg"])
        logo = images.get("logo.png")
    """

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_FETCH_TIMEOUT,
        base_dir: Optional[Path] = None,
        fetcher: Fetcher = fetch_source_bytes,
    ):
        self.timeout = timeout
        self.base_dir = base_dir
        self._fetcher = fetcher
        self._cache: SingleFlightCache[str, LoadedImage] = SingleFlightCache("images")
        self._failed: Dict[str, ResourceError] = {}
        self._failed_lock = threading.Lock()

    def _load(self, src: str) -> LoadedImage:
        data = self._fetcher(src, timeout=self.timeout, base_dir=self.base_dir)
        image = decode_image(src, data)
        logger.debug(f"Loaded {image.format} image {image.width}x{image.height} from {src[:60]}")
        return image

    def get(self, src: str) -> LoadedImage:
        """
        Resolve an image, blocking until it is available.

        Raises:
            ResourceError: Fetch or decode failed, now or earlier in this request
        """
        with self._failed_lock:
            failed = self._failed.get(src)
        if failed is not None:
            raise failed
        try:
            return self._cache.get(src, lambda: self._load(src))
        except ResourceError as e:
            with self._failed_lock:
                self._failed.setdefault(src, e)
            raise

    def forget_failures(self) -> None:
        """Allow previously failed sources to be fetched again."""
        with self._failed_lock:
            if self._failed:
                logger.debug(f"Forgetting {len(self._failed)} failed image sources")
            self._failed.clear()

    def prefetch(self, sources: Iterable[str], max_workers: int = 4) -> int:
        """
        Warm the cache concurrently.

        Failures are logged and left for the layout pass to report when
        it requests the same source.

        Returns:
            Number of sources that loaded successfully
        """
        unique = sorted({s for s in sources if s})
        if not unique:
            return 0

        loaded = 0
        with ThreadPoolExecutor(max_workers=max(1, max_workers)) as executor:
            futures = {executor.submit(self.get, src): src for src in unique}
            for future in as_completed(futures):
                error = future.exception()
                if error is None:
                    loaded += 1
                else:
                    logger.debug(f"Prefetch failed for {futures[future][:60]}: {error}")
        logger.debug(f"Prefetched {loaded}/{len(unique)} images")
        return loaded

    def __len__(self) -> int:
        return len(self._cache)
