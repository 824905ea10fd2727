import io

import numpy as np
import pytest
from PIL import Image

from image_engine.config import UpscalePolicy, LimitsConfig, EnhancementParams
from image_engine.pixel_buffer import PixelBuffer


def encode_png(array: np.ndarray) -> bytes:
    buf = io.BytesIO()
    Image.fromarray(array).save(buf, format="PNG")
    return buf.getvalue()


def solid_array(width, height, rgba=(120, 80, 40, 255)):
    return np.tile(np.array(rgba, dtype=np.uint8), (height, width, 1))


def gradient_array(width, height):
    ys, xs = np.mgrid[0:height, 0:width]
    arr = np.empty((height, width, 4), dtype=np.uint8)
    arr[:, :, 0] = (xs * 255 // max(width - 1, 1)).astype(np.uint8)
    arr[:, :, 1] = (ys * 255 // max(height - 1, 1)).astype(np.uint8)
    arr[:, :, 2] = ((xs + ys) % 256).astype(np.uint8)
    arr[:, :, 3] = 255
    return arr


@pytest.fixture
def gradient_buffer():
    return PixelBuffer.from_array(gradient_array(32, 18))


@pytest.fixture
def small_policy():
    # 32-wide landscape sources double, like 1920 -> 3840
    return UpscalePolicy(target_long_edge=64, portrait_edge=36)


@pytest.fixture
def default_params():
    return EnhancementParams(sharpen_mix=0.35, contrast=1.1, saturation=1.15)


@pytest.fixture
def default_limits():
    return LimitsConfig(max_target_pixels=200_000_000, max_batch_files=300)
