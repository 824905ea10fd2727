"""
Image codec collaborator backed by Pillow

decode(bytes) -> PixelBuffer, encode(PixelBuffer, format, quality) -> bytes.
Quality follows the 0.0-1.0 convention of the calling layer and is mapped to
Pillow's 1-100 scale.
"""
import io
import base64
import binascii
import logging
import re
from typing import Tuple

import numpy as np
from PIL import Image

from .errors import DecodeError, EncodeError
from .pixel_buffer import PixelBuffer

logger = logging.getLogger(__name__)

FORMAT_ALIASES = {
    "JPG": "JPEG",
    "TIF": "TIFF",
}

MIME_TYPES = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "WEBP": "image/webp",
    "BMP": "image/bmp",
    "TIFF": "image/tiff",
    "GIF": "image/gif",
}

# Formats that cannot store an alpha channel
OPAQUE_FORMATS = {"JPEG", "BMP"}

_DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?P<params>(;[^;,]*)*?);base64,(?P<data>.*)$", re.DOTALL)


def normalize_format(fmt: str) -> str:
    fmt = fmt.lstrip(".").upper()
    return FORMAT_ALIASES.get(fmt, fmt)


def quality_to_pillow(quality: float) -> int:
    """Map 0.0-1.0 to Pillow's 1-100 quality scale"""
    if not 0.0 <= quality <= 1.0:
        raise EncodeError(f"Quality must be within [0.0, 1.0], got {quality}")
    return max(1, min(100, int(round(quality * 100))))


class PillowCodec:
    """Decode/encode PixelBuffers with Pillow"""

    def decode(self, data: bytes) -> PixelBuffer:
        if not data:
            raise DecodeError("Image bytes are empty")
        try:
            with Image.open(io.BytesIO(data)) as im:
                im = im.convert("RGBA")
                arr = np.array(im, dtype=np.uint8)
        except Exception as e:
            raise DecodeError(
                f"Could not decode image bytes. Size: {len(data)} bytes. "
                f"Magic bytes: {bytes(data[:12]).hex()}. Error: {e}"
            ) from e

        buffer = PixelBuffer.from_array(arr)
        logger.debug(f"Decoded {buffer.width}x{buffer.height} image ({len(data)} bytes)")
        return buffer

    def encode(self, buffer: PixelBuffer, format: str = "JPEG", quality: float = 0.92) -> bytes:
        fmt = normalize_format(format)
        if fmt not in MIME_TYPES:
            raise EncodeError(f"Unsupported output format: {format}")
        pillow_quality = quality_to_pillow(quality)

        arr = buffer.to_array()
        if buffer.is_intermediate:
            arr = np.rint(np.clip(arr, 0, 255)).astype(np.uint8)

        im = Image.fromarray(np.ascontiguousarray(arr))
        if fmt in OPAQUE_FORMATS:
            im = im.convert("RGB")

        save_kwargs = {}
        if fmt == "JPEG":
            save_kwargs.update(quality=pillow_quality, optimize=True)
        elif fmt == "WEBP":
            save_kwargs.update(quality=pillow_quality, method=6)
        elif fmt == "PNG":
            save_kwargs.update(optimize=True)

        out = io.BytesIO()
        try:
            im.save(out, format=fmt, **save_kwargs)
        except (OSError, ValueError, KeyError) as e:
            raise EncodeError(f"Failed to encode {fmt}: {e}") from e

        result = out.getvalue()
        logger.debug(f"Encoded {buffer.width}x{buffer.height} as {fmt} q={pillow_quality} ({len(result)/1024:.1f}KB)")
        return result


def mime_type_for(format: str) -> str:
    fmt = normalize_format(format)
    if fmt not in MIME_TYPES:
        raise EncodeError(f"Unsupported output format: {format}")
    return MIME_TYPES[fmt]


def to_data_url(data: bytes, mime_type: str = "image/jpeg") -> str:
    """Wrap encoded bytes in a base64 data URL"""
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def from_data_url(url: str) -> Tuple[bytes, str]:
    """Split a base64 data URL into (bytes, mime type)"""
    match = _DATA_URL_RE.match(url.strip()) if isinstance(url, str) else None
    if not match:
        raise DecodeError("Not a base64 data URL")
    try:
        data = base64.b64decode(match.group("data"), validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"Invalid base64 payload in data URL: {e}") from e
    return data, match.group("mime") or "application/octet-stream"


def decode_image(data: bytes) -> PixelBuffer:
    """Quick function to decode image bytes"""
    return PillowCodec().decode(data)


def encode_image(buffer: PixelBuffer, format: str = "JPEG", quality: float = 0.92) -> bytes:
    """Quick function to encode a PixelBuffer"""
    return PillowCodec().encode(buffer, format, quality)
