"""
Resource resolution for image, barcode and chart elements.

All caches are single-flight (see cache.SingleFlightCache) and safe to
share between threads and between render requests.
"""

from .barcodes import BarcodeCache, build_barcode
from .cache import SingleFlightCache
from .charts import ChartCache, build_chart
from .errors import FetchTimeoutError, ResourceError, UnsupportedFormatError
from .images import ImageCache, LoadedImage, decode_image
from .loader import detect_format, fetch_source_bytes, parse_data_uri

__all__ = [
    "BarcodeCache",
    "ChartCache",
    "FetchTimeoutError",
    "ImageCache",
    "LoadedImage",
    "ResourceError",
    "SingleFlightCache",
    "UnsupportedFormatError",
    "build_barcode",
    "build_chart",
    "decode_image",
    "detect_format",
    "fetch_source_bytes",
    "parse_data_uri",
]
