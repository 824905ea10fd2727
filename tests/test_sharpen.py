import numpy as np
import pytest

from image_engine.pixel_buffer import PixelBuffer
from image_engine.sharpen import ConvolutionSharpener, SHARPEN_KERNEL, convolve_zero_border, sharpen

from conftest import solid_array, gradient_array


def test_kernel_is_fixed_laplacian_sharpen():
    assert SHARPEN_KERNEL == (0, -1, 0, -1, 5, -1, 0, -1, 0)
    assert sum(SHARPEN_KERNEL) == 1


def test_uniform_interior_is_unchanged():
    src = PixelBuffer.from_array(solid_array(6, 5, (100, 150, 200, 255)))
    out = ConvolutionSharpener(0.35).apply(src).to_array()

    interior = out[1:-1, 1:-1, :3]
    assert np.allclose(interior, (100, 150, 200), atol=1e-3)


def test_border_samples_are_skipped_not_replicated():
    src = PixelBuffer.from_array(solid_array(5, 5, (100, 100, 100, 255)))
    out = ConvolutionSharpener(0.35).apply(src).to_array()[:, :, 0]

    # corner misses two neighbours: conv = 500 - 200 = 300
    assert out[0, 0] == pytest.approx(100 * 0.65 + 300 * 0.35, abs=1e-3)
    assert out[4, 4] == pytest.approx(170.0, abs=1e-3)
    # edge misses one neighbour: conv = 500 - 300 = 200
    assert out[0, 2] == pytest.approx(135.0, abs=1e-3)
    assert out[2, 4] == pytest.approx(135.0, abs=1e-3)


def test_values_are_not_clamped():
    arr = np.zeros((3, 3, 4), dtype=np.uint8)
    arr[1, 1, :3] = 100
    arr[:, :, 3] = 255
    out = ConvolutionSharpener(0.35).apply(PixelBuffer.from_array(arr))

    assert out.is_intermediate
    centre = out.get_pixel(1, 1)
    neighbour = out.get_pixel(1, 0)
    assert centre[0] == pytest.approx(100 * 0.65 + 500 * 0.35, abs=1e-3)
    assert neighbour[0] == pytest.approx(-35.0, abs=1e-3)
    assert out.get_pixel(0, 0)[0] == pytest.approx(0.0)


def test_single_pixel_has_no_neighbours():
    src = PixelBuffer(1, 1, [10, 20, 30, 255])
    out = sharpen(src, 0.35).get_pixel(0, 0)

    assert out[:3] == pytest.approx((24.0, 48.0, 72.0), abs=1e-3)


def test_alpha_forced_and_dimensions_kept():
    src = PixelBuffer.from_array(solid_array(7, 3, (1, 2, 3, 0)))
    out = ConvolutionSharpener().apply(src)

    assert out.dimensions == (7, 3)
    assert (out.to_array()[:, :, 3] == 255).all()


def test_mix_zero_returns_original_colors():
    arr = gradient_array(9, 6)
    out = ConvolutionSharpener(0.0).apply(PixelBuffer.from_array(arr)).to_array()

    assert np.allclose(out[:, :, :3], arr[:, :, :3])


def test_source_is_not_modified():
    arr = gradient_array(9, 6)
    src = PixelBuffer.from_array(arr)
    ConvolutionSharpener().apply(src)

    assert np.array_equal(src.to_array(), arr)


def test_matches_direct_neighbourhood_sum():
    arr = gradient_array(7, 5)
    rgb = arr[:, :, :3].astype(np.float64)
    kernel = np.array(SHARPEN_KERNEL, dtype=np.float64).reshape(3, 3)
    h, w = rgb.shape[:2]
    expected = np.zeros_like(rgb)
    for y in range(h):
        for x in range(w):
            for ky in range(3):
                for kx in range(3):
                    sy, sx = y + ky - 1, x + kx - 1
                    if 0 <= sy < h and 0 <= sx < w:
                        expected[y, x] += kernel[ky, kx] * rgb[sy, sx]

    conv = convolve_zero_border(rgb.astype(np.float32), kernel.astype(np.float32))
    assert np.allclose(conv, expected, atol=1e-2)


def test_rejects_non_square_kernel():
    with pytest.raises(ValueError):
        ConvolutionSharpener(0.35, kernel=[1, 2, 3, 4])
