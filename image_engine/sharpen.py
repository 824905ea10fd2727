"""
ConvolutionSharpener - fixed 3x3 high-pass kernel blended with the original

Border samples that fall outside the buffer contribute nothing: the border
is neither replicated nor wrapped, and the centre weight is not compensated,
so edge pixels come out darker.
"""
import logging
from typing import Sequence

import numpy as np

from .pixel_buffer import PixelBuffer, OPAQUE

logger = logging.getLogger(__name__)

SHARPEN_KERNEL = (
    0, -1, 0,
    -1, 5, -1,
    0, -1, 0,
)


def _kernel_matrix(weights: Sequence[float]) -> np.ndarray:
    kernel = np.asarray(weights, dtype=np.float32).reshape(-1)
    size = int(round(np.sqrt(kernel.size)))
    if size * size != kernel.size or size % 2 == 0:
        raise ValueError(f"Kernel must be an odd square matrix, got {kernel.size} weights")
    return kernel.reshape(size, size)


def convolve_zero_border(channels: np.ndarray, kernel: np.ndarray) -> np.ndarray:
    """
    Correlate an (H, W, C) array with `kernel`, skipping out-of-range samples.

    Each kernel offset adds a shifted slice of the source to the overlapping
    region of the output, so no padded copy is made.
    """
    h, w = channels.shape[:2]
    half = kernel.shape[0] // 2
    out = np.zeros(channels.shape, dtype=np.float32)

    for ky in range(kernel.shape[0]):
        for kx in range(kernel.shape[1]):
            weight = kernel[ky, kx]
            if weight == 0:
                continue
            dy, dx = ky - half, kx - half
            # output rows y receive source rows y + dy
            y0, y1 = max(0, -dy), min(h, h - dy)
            x0, x1 = max(0, -dx), min(w, w - dx)
            if y0 >= y1 or x0 >= x1:
                continue
            out[y0:y1, x0:x1] += weight * channels[y0 + dy:y1 + dy, x0 + dx:x1 + dx]

    return out


class ConvolutionSharpener:
    """Unsharp-style sharpen: src * (1 - mix) + conv * mix, unclamped"""

    def __init__(self, mix: float = 0.35, kernel: Sequence[float] = SHARPEN_KERNEL):
        self.mix = float(mix)
        self.kernel = _kernel_matrix(kernel)

    def apply(self, source: PixelBuffer) -> PixelBuffer:
        """Return a new float32 buffer; values may fall outside [0, 255]"""
        rgb = source.view()[:, :, :3].astype(np.float32)
        conv = convolve_zero_border(rgb, self.kernel)

        out = np.empty((source.height, source.width, 4), dtype=np.float32)
        out[:, :, :3] = rgb * (1 - self.mix) + conv * self.mix
        out[:, :, 3] = OPAQUE

        logger.debug(f"Sharpened {source.width}x{source.height} (mix={self.mix})")
        return PixelBuffer._wrap(out)


def sharpen(source: PixelBuffer, mix: float = 0.35) -> PixelBuffer:
    """Sharpen with the fixed kernel"""
    return ConvolutionSharpener(mix).apply(source)
