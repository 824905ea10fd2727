"""
PixelBuffer - in-memory RGBA raster

Backed by a numpy array of shape (height, width, 4), row-major, no padding.
uint8 buffers are the canonical RGBA8 form. float32 buffers are pipeline
intermediates and may hold values outside [0, 255] until they are clamped.
"""
from typing import NamedTuple, Tuple, Union, Sequence

import numpy as np

from .errors import InvalidBuffer, OutOfBounds

CHANNELS = 4
OPAQUE = 255


class Dimensions(NamedTuple):
    """Width/height pair"""
    width: int
    height: int


def _check_size(width, height) -> None:
    for name, value in (("width", width), ("height", height)):
        if isinstance(value, bool) or not isinstance(value, (int, np.integer)) or value < 1:
            raise InvalidBuffer(f"Buffer {name} must be a positive integer, got {value!r}")


class PixelBuffer:
    """RGBA image with explicit width and height"""

    __slots__ = ("_width", "_height", "_data")

    def __init__(self, width: int, height: int, pixel_data: Union[bytes, bytearray, Sequence[int], np.ndarray]):
        _check_size(width, height)
        expected = int(width) * int(height) * CHANNELS

        if isinstance(pixel_data, (bytes, bytearray, memoryview)):
            flat = np.frombuffer(bytes(pixel_data), dtype=np.uint8)
        else:
            flat = np.asarray(pixel_data).reshape(-1)

        if flat.size != expected:
            raise InvalidBuffer(
                f"Pixel data has {flat.size} values, expected {expected} for {width}x{height} RGBA"
            )
        if flat.dtype != np.uint8:
            if np.issubdtype(flat.dtype, np.floating):
                if not np.isfinite(flat).all():
                    raise InvalidBuffer("Channel values must be finite")
                flat = np.rint(flat)
            if flat.size and (flat.min() < 0 or flat.max() > 255):
                raise InvalidBuffer("Channel values must be within [0, 255]")
            flat = flat.astype(np.uint8)

        self._width = int(width)
        self._height = int(height)
        self._data = flat.reshape(self._height, self._width, CHANNELS).copy()

    @classmethod
    def from_array(cls, array: np.ndarray) -> "PixelBuffer":
        """
        Wrap an (H, W, 4) or (H, W, 3) array.

        RGB input gets an opaque alpha channel. Float input is kept as a
        float32 intermediate buffer without range checks.
        """
        array = np.asarray(array)
        if array.ndim != 3 or array.shape[2] not in (3, 4):
            raise InvalidBuffer(f"Invalid array shape: {array.shape}. Expected (H, W, 3) or (H, W, 4)")
        height, width = array.shape[:2]
        _check_size(width, height)

        if np.issubdtype(array.dtype, np.floating):
            data = array.astype(np.float32)
        elif array.dtype == np.uint8:
            data = array.copy()
        else:
            if array.size and (array.min() < 0 or array.max() > 255):
                raise InvalidBuffer("Channel values must be within [0, 255]")
            data = array.astype(np.uint8)

        if data.shape[2] == 3:
            alpha = np.full((height, width, 1), OPAQUE, dtype=data.dtype)
            data = np.concatenate([data, alpha], axis=2)

        return cls._wrap(np.ascontiguousarray(data))

    @classmethod
    def _wrap(cls, data: np.ndarray) -> "PixelBuffer":
        # Takes ownership of `data` without copying; internal use only.
        buf = cls.__new__(cls)
        buf._height, buf._width = int(data.shape[0]), int(data.shape[1])
        buf._data = data
        return buf

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def dimensions(self) -> Dimensions:
        return Dimensions(self._width, self._height)

    @property
    def dtype(self) -> np.dtype:
        return self._data.dtype

    @property
    def is_intermediate(self) -> bool:
        """True for float buffers that have not been clamped yet"""
        return self._data.dtype != np.uint8

    @property
    def pixels(self) -> np.ndarray:
        """Flat copy of the RGBA values, length width*height*4"""
        return self._data.reshape(-1).copy()

    def __len__(self) -> int:
        return self._data.size

    def get_pixel(self, x: int, y: int) -> Tuple:
        """Return the (r, g, b, a) tuple at column x, row y"""
        for value in (x, y):
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
                raise OutOfBounds(f"Pixel coordinates must be integers, got ({x!r}, {y!r})")
        if not (0 <= x < self._width and 0 <= y < self._height):
            raise OutOfBounds(f"Pixel ({x}, {y}) outside {self._width}x{self._height} buffer")
        return tuple(self._data[y, x].tolist())

    def to_array(self) -> np.ndarray:
        """Copy of the (H, W, 4) array"""
        return self._data.copy()

    def copy(self) -> "PixelBuffer":
        return PixelBuffer._wrap(self._data.copy())

    def view(self) -> np.ndarray:
        """Read-only view of the backing array, for pipeline stages"""
        arr = self._data.view()
        arr.flags.writeable = False
        return arr

    def _replace(self, data: np.ndarray) -> None:
        # In-place replacement used by stages that own this buffer.
        if data.shape != (self._height, self._width, CHANNELS):
            raise InvalidBuffer(f"Replacement shape {data.shape} does not match buffer")
        self._data = data

    def __eq__(self, other) -> bool:
        if not isinstance(other, PixelBuffer):
            return NotImplemented
        return self.dimensions == other.dimensions and np.array_equal(self._data, other._data)

    def __repr__(self) -> str:
        return f"PixelBuffer({self._width}x{self._height}, dtype={self._data.dtype})"
