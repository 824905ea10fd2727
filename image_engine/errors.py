"""
Error kinds raised by the image engine.
Each error also derives from the matching built-in so callers that only
know about ValueError / IndexError / MemoryError keep working.
"""


class ImageEngineError(Exception):
    """Base class for all image engine errors"""


class InvalidBuffer(ImageEngineError, ValueError):
    """Pixel data does not match the declared width/height"""


class InvalidDimensions(ImageEngineError, ValueError):
    """Target width or height is zero, negative or not an integer"""


class OutOfBounds(ImageEngineError, IndexError):
    """Pixel access outside the buffer"""


class DecodeError(ImageEngineError, ValueError):
    """Source could not be decoded into a PixelBuffer"""


class EncodeError(ImageEngineError, ValueError):
    """PixelBuffer could not be encoded to image bytes"""


class AllocationError(ImageEngineError, MemoryError):
    """Target buffer too large to allocate"""


class BatchLimitError(ImageEngineError, ValueError):
    """Batch would exceed the maximum number of files"""

    def __init__(self, remaining: int, max_files: int):
        self.remaining = remaining
        self.max_files = max_files
        super().__init__(
            f"Batch limit reached. You can only add {remaining} more files (Max {max_files} total)."
        )
