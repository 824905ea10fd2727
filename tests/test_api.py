import io

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from api import main as api_main
from image_engine.config import OutputConfig
from image_engine.pipeline import EnhancementPipeline
from image_engine.service import ImageEngineService

from conftest import encode_png, gradient_array


@pytest.fixture
def client(monkeypatch, small_policy, default_params, default_limits):
    pipeline = EnhancementPipeline(default_params, small_policy, default_limits)
    output = OutputConfig(output_format="JPEG", upscale_quality=0.95, resize_quality=0.90)
    monkeypatch.setattr(api_main, "service", ImageEngineService(pipeline=pipeline, output=output))
    return TestClient(api_main.app)


@pytest.fixture
def png_upload():
    return {"file": ("photo.png", encode_png(gradient_array(40, 20)), "image/png")}


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_upscale_returns_jpeg(client, png_upload):
    response = client.post("/api/v1/upscale", files=png_upload)

    assert response.status_code == 200
    assert response.headers["content-type"] == "image/jpeg"
    assert response.headers["x-output-width"] == "64"
    assert response.headers["x-output-height"] == "32"
    with Image.open(io.BytesIO(response.content)) as im:
        assert im.size == (64, 32)


def test_resize_with_explicit_dimensions(client, png_upload):
    response = client.post("/api/v1/resize", files=png_upload, data={"width": "15", "height": "9"})

    assert response.status_code == 200
    with Image.open(io.BytesIO(response.content)) as im:
        assert im.size == (15, 9)


def test_resize_with_locked_aspect(client, png_upload):
    response = client.post(
        "/api/v1/resize", files=png_upload,
        data={"width": "10", "lock_aspect": "true", "output_format": "PNG"},
    )

    assert response.status_code == 200
    assert response.headers["content-type"] == "image/png"
    assert (response.headers["x-output-width"], response.headers["x-output-height"]) == ("10", "5")


def test_resize_zero_width_is_bad_request(client, png_upload):
    response = client.post("/api/v1/resize", files=png_upload, data={"width": "0", "height": "9"})

    assert response.status_code == 400
    assert response.json()["error"] == "InvalidDimensions"


def test_resize_missing_height_is_bad_request(client, png_upload):
    response = client.post("/api/v1/resize", files=png_upload, data={"width": "10"})
    assert response.status_code == 400


def test_dimensions(client, png_upload):
    response = client.post("/api/v1/dimensions", files=png_upload)
    assert response.json() == {"width": 40, "height": 20}


def test_dimensions_of_undecodable_image_is_zero(client):
    files = {"file": ("broken.png", b"not really a png", "image/png")}
    response = client.post("/api/v1/dimensions", files=files)

    assert response.status_code == 200
    assert response.json() == {"width": 0, "height": 0}


def test_upscale_undecodable_image_is_bad_request(client):
    files = {"file": ("broken.png", b"not really a png", "image/png")}
    response = client.post("/api/v1/upscale", files=files)

    assert response.status_code == 400
    assert response.json()["error"] == "DecodeError"


def test_non_image_upload_is_rejected(client):
    files = {"file": ("notes.txt", b"hello", "text/plain")}
    response = client.post("/api/v1/upscale", files=files)
    assert response.status_code == 400


def test_upload_over_limit_is_rejected(client, png_upload, monkeypatch):
    monkeypatch.setattr(api_main.config.api, "max_upload_size_mb", 0)
    response = client.post("/api/v1/upscale", files=png_upload)
    assert response.status_code == 413
