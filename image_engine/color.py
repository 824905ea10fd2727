"""
ColorEnhancer - contrast then saturation, clamped to [0, 255]
"""
import logging

import numpy as np

from .pixel_buffer import PixelBuffer, OPAQUE

logger = logging.getLogger(__name__)

# Luma weights used as the saturation pivot
LUMA_R = 0.2989
LUMA_G = 0.5870
LUMA_B = 0.1140


class ColorEnhancer:
    """Contrast around mid-grey (128), then saturation around luma"""

    def __init__(self, contrast: float = 1.1, saturation: float = 1.15):
        self.contrast = float(contrast)
        self.saturation = float(saturation)

    def apply(self, buffer: PixelBuffer) -> PixelBuffer:
        """
        Enhance `buffer` in place and return it.

        Only pass a buffer owned by the current pipeline call. Float
        intermediates are accepted and come out as uint8; this is the only
        clamp point in the pipeline.
        """
        rgb = buffer.view()[:, :, :3].astype(np.float32)

        intercept = 128 * (1 - self.contrast)
        rgb = rgb * self.contrast + intercept

        gray = LUMA_R * rgb[:, :, 0] + LUMA_G * rgb[:, :, 1] + LUMA_B * rgb[:, :, 2]
        gray = gray[:, :, np.newaxis]
        rgb = gray + (rgb - gray) * self.saturation

        out = np.empty((buffer.height, buffer.width, 4), dtype=np.uint8)
        rgb = np.nan_to_num(rgb, nan=0.0, posinf=255.0, neginf=0.0)
        out[:, :, :3] = np.rint(np.clip(rgb, 0, 255))
        out[:, :, 3] = OPAQUE
        buffer._replace(out)

        logger.debug(
            f"Color enhanced {buffer.width}x{buffer.height} "
            f"(contrast={self.contrast}, saturation={self.saturation})"
        )
        return buffer
