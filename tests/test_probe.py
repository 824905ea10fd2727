import numpy as np

from image_engine.codec import to_data_url
from image_engine.pixel_buffer import PixelBuffer, Dimensions
from image_engine.probe import probe

from conftest import encode_png, gradient_array


def test_probe_pixel_buffer():
    assert probe(PixelBuffer(3, 2, bytes(24))) == Dimensions(3, 2)


def test_probe_array():
    assert probe(np.zeros((7, 9, 4), dtype=np.uint8)) == (9, 7)


def test_probe_encoded_bytes():
    assert probe(encode_png(gradient_array(31, 12))) == (31, 12)


def test_probe_data_url():
    url = to_data_url(encode_png(gradient_array(6, 5)), "image/png")
    assert probe(url) == (6, 5)


def test_probe_path(tmp_path):
    path = tmp_path / "image.png"
    path.write_bytes(encode_png(gradient_array(10, 4)))

    assert probe(path) == (10, 4)
    assert probe(str(path)) == (10, 4)


def test_probe_undecodable_input_returns_zero():
    assert probe(b"definitely not an image") == (0, 0)
    assert probe(b"") == (0, 0)
    assert probe("data:image/png;base64,!!!") == (0, 0)


def test_probe_missing_file_returns_zero(tmp_path):
    assert probe(tmp_path / "missing.png") == (0, 0)


def test_probe_unsupported_type_returns_zero():
    assert probe(12345) == (0, 0)
    assert probe(None) == (0, 0)
