"""
Resampler - produces a PixelBuffer at a target width/height

Interpolation is always smooth: area averaging when shrinking, bicubic when
enlarging (or when one axis grows and the other shrinks).
"""
import logging
import math
from typing import Optional

import cv2
import numpy as np

from .config import UpscalePolicy, LimitsConfig, get_config
from .errors import InvalidDimensions, AllocationError
from .pixel_buffer import PixelBuffer, Dimensions, OPAQUE

logger = logging.getLogger(__name__)


def validate_dimensions(width, height) -> Dimensions:
    """Reject zero, negative and non-integer target sizes"""
    for name, value in (("width", width), ("height", height)):
        if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
            raise InvalidDimensions(f"Target {name} must be an integer, got {value!r}")
        if value < 1:
            raise InvalidDimensions(f"Target {name} must be >= 1, got {value}")
    return Dimensions(int(width), int(height))


def compute_upscale_dimensions(width: int, height: int, policy: Optional[UpscalePolicy] = None) -> Dimensions:
    """
    Target dimensions for the auto-upscale-to-4K path.

    Landscape/square sources scale their width to the long edge (3840).
    Portrait sources use portrait_edge / width (2160 / W), still derived from
    the width. The scale never drops below 1, so this path never downscales.
    """
    policy = policy or get_config().upscale
    width, height = validate_dimensions(width, height)

    if width >= height:
        scale = policy.target_long_edge / width
    else:
        scale = policy.portrait_edge / width

    if scale < 1:
        scale = 1.0

    return Dimensions(math.floor(width * scale), math.floor(height * scale))


def check_allocation(width: int, height: int, limits: Optional[LimitsConfig] = None) -> None:
    """Fail early when a target would exceed the configured pixel budget"""
    limits = limits or get_config().limits
    if width * height > limits.max_target_pixels:
        raise AllocationError(
            f"Target {width}x{height} ({width * height} px) exceeds limit of {limits.max_target_pixels} px"
        )


def _as_uint8_rgb(source: PixelBuffer) -> np.ndarray:
    data = source.view()[:, :, :3]
    if source.is_intermediate:
        data = np.rint(np.clip(data, 0, 255)).astype(np.uint8)
    return np.ascontiguousarray(data)


def _pick_interpolation(src: int, dst: int) -> int:
    return cv2.INTER_AREA if dst <= src else cv2.INTER_CUBIC


def _resize_rgb(rgb: np.ndarray, src: Dimensions, dst: Dimensions) -> np.ndarray:
    """
    Area-average every shrinking axis, bicubic on every growing one.

    When one axis grows and the other shrinks the two are resampled in
    separate passes so that neither falls back to single-row sampling.
    """
    along_x = _pick_interpolation(src.width, dst.width)
    along_y = _pick_interpolation(src.height, dst.height)
    if along_x == along_y:
        return cv2.resize(rgb, (dst.width, dst.height), interpolation=along_x)

    # shrink first so the growing pass works on fewer pixels
    if along_x == cv2.INTER_AREA:
        rgb = cv2.resize(rgb, (dst.width, src.height), interpolation=cv2.INTER_AREA)
        return cv2.resize(rgb, (dst.width, dst.height), interpolation=cv2.INTER_CUBIC)
    rgb = cv2.resize(rgb, (src.width, dst.height), interpolation=cv2.INTER_AREA)
    return cv2.resize(rgb, (dst.width, dst.height), interpolation=cv2.INTER_CUBIC)


def _describe(src: Dimensions, dst: Dimensions) -> str:
    names = {cv2.INTER_AREA: "area", cv2.INTER_CUBIC: "bicubic"}
    along_x = names[_pick_interpolation(src.width, dst.width)]
    along_y = names[_pick_interpolation(src.height, dst.height)]
    return along_x if along_x == along_y else f"{along_x} x, {along_y} y"


def resample(
    source: PixelBuffer,
    width: int,
    height: int,
    limits: Optional[LimitsConfig] = None,
) -> PixelBuffer:
    """
    Resample `source` to exactly width x height.

    Returns a new uint8 buffer with alpha forced to 255. Aspect ratio is not
    enforced here.
    """
    target = validate_dimensions(width, height)
    check_allocation(target.width, target.height, limits)

    rgb = _as_uint8_rgb(source)

    try:
        out = np.empty((target.height, target.width, 4), dtype=np.uint8)
        if target == source.dimensions:
            out[:, :, :3] = rgb
        else:
            out[:, :, :3] = _resize_rgb(rgb, source.dimensions, target)
    except MemoryError as e:
        raise AllocationError(f"Could not allocate {target.width}x{target.height} buffer") from e
    except cv2.error as e:
        if getattr(e, "code", None) == cv2.Error.StsNoMem:
            raise AllocationError(f"Could not allocate {target.width}x{target.height} buffer: {e}") from e
        raise
    out[:, :, 3] = OPAQUE

    logger.debug(
        f"Resampled {source.width}x{source.height} -> {target.width}x{target.height} "
        f"({_describe(source.dimensions, target)})"
    )
    return PixelBuffer._wrap(out)
