"""
Enhancement Pipeline - 4K upscale and custom resize

Pipeline Flow (upscale):
1. INPUT -> Target dimensions (auto-upscale policy)
2. Resampler -> new buffer at target size
3. ConvolutionSharpener -> float intermediate (unclamped)
4. ColorEnhancer -> contrast + saturation, clamped RGBA8
5. OUTPUT (handed to the codec by the caller)

Custom resize runs the Resampler only.
"""
import time
import logging
from typing import Optional, Union

import numpy as np

from .codec import PillowCodec
from .color import ColorEnhancer
from .config import EnhancementParams, UpscalePolicy, LimitsConfig, get_config
from .errors import AllocationError, DecodeError, InvalidBuffer
from .pixel_buffer import PixelBuffer, Dimensions
from .resampler import resample, compute_upscale_dimensions, validate_dimensions
from .sharpen import ConvolutionSharpener

logger = logging.getLogger(__name__)

ImageSource = Union[PixelBuffer, np.ndarray, bytes]


class EnhancementPipeline:
    """
    Deterministic local enhancement.

    Stateless apart from its immutable parameters; every call allocates its
    own buffers, so one instance can serve concurrent callers.
    """

    def __init__(
        self,
        params: Optional[EnhancementParams] = None,
        policy: Optional[UpscalePolicy] = None,
        limits: Optional[LimitsConfig] = None,
        codec: Optional[PillowCodec] = None,
    ):
        config = get_config()
        self.params = params or config.enhancement
        self.policy = policy or config.upscale
        self.limits = limits or config.limits
        self.codec = codec or PillowCodec()

    def _load(self, source: ImageSource) -> PixelBuffer:
        """Accept a PixelBuffer, an (H, W, 3|4) array or encoded bytes"""
        if isinstance(source, PixelBuffer):
            return source
        if isinstance(source, np.ndarray):
            try:
                return PixelBuffer.from_array(source)
            except InvalidBuffer as e:
                raise DecodeError(f"Malformed source array: {e}") from e
        if isinstance(source, (bytes, bytearray, memoryview)):
            return self.codec.decode(bytes(source))
        raise DecodeError(f"Unsupported image source type: {type(source).__name__}")

    def target_dimensions(self, source: ImageSource) -> Dimensions:
        """Upscale target for `source` without touching its pixels"""
        buffer = self._load(source)
        return compute_upscale_dimensions(buffer.width, buffer.height, self.policy)

    def upscale(self, source: ImageSource) -> PixelBuffer:
        """Resample toward 4K, sharpen, then enhance contrast/saturation"""
        start_time = time.time()
        buffer = self._load(source)
        target = compute_upscale_dimensions(buffer.width, buffer.height, self.policy)

        logger.info(f"UPSCALE START | {buffer.width}x{buffer.height} -> {target.width}x{target.height}")

        step_start = time.time()
        resized = resample(buffer, target.width, target.height, self.limits)
        logger.debug(f"   Resample: {int((time.time() - step_start) * 1000)}ms")

        try:
            step_start = time.time()
            sharpened = ConvolutionSharpener(self.params.sharpen_mix).apply(resized)
            del resized
            logger.debug(f"   Sharpen: {int((time.time() - step_start) * 1000)}ms")

            step_start = time.time()
            result = ColorEnhancer(self.params.contrast, self.params.saturation).apply(sharpened)
            logger.debug(f"   Color: {int((time.time() - step_start) * 1000)}ms")
        except MemoryError as e:
            raise AllocationError(f"Out of memory enhancing {target.width}x{target.height} image") from e

        logger.info(
            f"UPSCALE COMPLETE | {result.width}x{result.height} | "
            f"Time: {int((time.time() - start_time) * 1000)}ms"
        )
        return result

    def resize(self, source: ImageSource, width: int, height: int) -> PixelBuffer:
        """Resample to exactly width x height, no enhancement"""
        validate_dimensions(width, height)
        start_time = time.time()
        buffer = self._load(source)
        result = resample(buffer, width, height, self.limits)
        logger.info(
            f"RESIZE COMPLETE | {buffer.width}x{buffer.height} -> {result.width}x{result.height} | "
            f"Time: {int((time.time() - start_time) * 1000)}ms"
        )
        return result


def upscale(source: ImageSource) -> PixelBuffer:
    """Quick function to upscale an image with default parameters"""
    return EnhancementPipeline().upscale(source)


def resize(source: ImageSource, width: int, height: int) -> PixelBuffer:
    """Quick function to resize an image"""
    return EnhancementPipeline().resize(source, width, height)
