"""
DimensionProbe - intrinsic width/height of an image

Lenient by contract: callers use it to pre-fill UI state, so any failure
returns Dimensions(0, 0) instead of raising.
"""
import io
import logging
from pathlib import Path
from typing import Union

import numpy as np
from PIL import Image

from .codec import from_data_url
from .pixel_buffer import PixelBuffer, Dimensions

logger = logging.getLogger(__name__)

UNKNOWN = Dimensions(0, 0)


def _header_size(fp) -> Dimensions:
    # Image.open only parses the header; pixel data is never loaded here
    with Image.open(fp) as im:
        width, height = im.size
    return Dimensions(int(width), int(height))


def probe(source: Union[PixelBuffer, np.ndarray, bytes, str, Path]) -> Dimensions:
    """Return (width, height) of `source`, or (0, 0) when it cannot be read"""
    try:
        if isinstance(source, PixelBuffer):
            return source.dimensions
        if isinstance(source, np.ndarray):
            if source.ndim < 2 or 0 in source.shape[:2]:
                return UNKNOWN
            return Dimensions(int(source.shape[1]), int(source.shape[0]))
        if isinstance(source, (bytes, bytearray, memoryview)):
            if not source:
                return UNKNOWN
            return _header_size(io.BytesIO(bytes(source)))
        if isinstance(source, str) and source.startswith("data:"):
            data, _ = from_data_url(source)
            return _header_size(io.BytesIO(data))
        if isinstance(source, (str, Path)):
            return _header_size(Path(source))
    except Exception as e:
        logger.warning(f"Could not read image dimensions: {e}")
        return UNKNOWN

    logger.warning(f"Unsupported probe input type: {type(source).__name__}")
    return UNKNOWN
