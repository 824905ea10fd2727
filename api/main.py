import os
import logging
import asyncio
from datetime import datetime, timezone
from typing import Optional
from contextlib import asynccontextmanager

from fastapi import FastAPI, File, UploadFile, HTTPException, Form, Request
from fastapi.responses import Response, JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from image_engine.config import get_config
from image_engine.errors import (
    ImageEngineError,
    InvalidBuffer,
    InvalidDimensions,
    DecodeError,
    EncodeError,
    AllocationError,
)
from image_engine.logging_config import setup_logging
from image_engine.service import ImageEngineService, EnhancementResult, lock_aspect_ratio

logger = logging.getLogger(__name__)
config = get_config()


class DimensionsResponse(BaseModel):
    """Intrinsic image dimensions, 0x0 when undecodable"""
    width: int
    height: int


service = ImageEngineService()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    setup_logging(
        level=os.getenv("LOG_LEVEL", config.log_level),
        log_to_file=os.getenv("LOG_TO_FILE", "true").lower() == "true",
    )
    logger.info("Starting Local Image Engine API...")
    yield
    logger.info("Shutting down...")


app = FastAPI(
    title="Local Image Engine API",
    description="Deterministic 4K upscaling and custom resizing",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.api.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ==================== Error Mapping ====================

ERROR_STATUS = (
    (AllocationError, 413),
    (EncodeError, 500),
    (InvalidDimensions, 400),
    (InvalidBuffer, 400),
    (DecodeError, 400),
)


@app.exception_handler(ImageEngineError)
async def image_engine_error_handler(request: Request, exc: ImageEngineError):
    status = next((code for kind, code in ERROR_STATUS if isinstance(exc, kind)), 500)
    if status >= 500:
        logger.error(f"{request.url.path} failed: {type(exc).__name__}: {exc}")
    else:
        logger.warning(f"{request.url.path} rejected: {type(exc).__name__}: {exc}")
    return JSONResponse(
        status_code=status,
        content={"error": type(exc).__name__, "detail": str(exc)},
    )


async def read_upload(file: UploadFile) -> bytes:
    """Read an uploaded image, enforcing type and size limits"""
    if not file.content_type or not file.content_type.startswith('image/'):
        raise HTTPException(400, "Invalid file type. Must be an image.")

    max_bytes = config.api.max_upload_size_mb * 1024 * 1024
    content = await file.read(max_bytes + 1)
    if len(content) > max_bytes:
        raise HTTPException(413, f"File too large. Maximum size is {config.api.max_upload_size_mb}MB.")
    if not content:
        raise HTTPException(400, "Uploaded file is empty.")
    return content


def image_response(result: EnhancementResult) -> Response:
    return Response(
        content=result.image_bytes,
        media_type=result.mime_type,
        headers={
            "X-Request-Id": result.request_id,
            "X-Original-Width": str(result.original_dimensions[0]),
            "X-Original-Height": str(result.original_dimensions[1]),
            "X-Output-Width": str(result.output_dimensions[0]),
            "X-Output-Height": str(result.output_dimensions[1]),
            "X-Processing-Time-Ms": str(result.processing_time_ms),
        },
    )


# ==================== API Endpoints ====================

@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.post("/api/v1/upscale")
async def upscale_upload(
    file: UploadFile = File(...),
    output_format: Optional[str] = Form(None),
):
    """
    Upscale an uploaded image toward 4K

    - Resamples, sharpens and enhances color
    - Returns the encoded image (quality 0.95)
    """
    content = await read_upload(file)
    result = await asyncio.to_thread(service.upscale_bytes, content, output_format)
    return image_response(result)


@app.post("/api/v1/resize")
async def resize_upload(
    file: UploadFile = File(...),
    width: Optional[int] = Form(None),
    height: Optional[int] = Form(None),
    lock_aspect: bool = Form(False),
    output_format: Optional[str] = Form(None),
):
    """
    Resize an uploaded image to width x height

    With lock_aspect, give only one side; the other follows the source
    aspect ratio.
    """
    content = await read_upload(file)

    if lock_aspect:
        dims = service.dimensions(content)
        if dims.width == 0 or dims.height == 0:
            raise DecodeError("Could not read source dimensions")
        target = lock_aspect_ratio(dims.width / dims.height, width=width,
                                   height=None if width is not None else height)
        width, height = target.width, target.height
    elif width is None or height is None:
        raise InvalidDimensions("Both width and height are required unless lock_aspect is set")

    result = await asyncio.to_thread(service.resize_bytes, content, width, height, output_format)
    return image_response(result)


@app.post("/api/v1/dimensions", response_model=DimensionsResponse)
async def image_dimensions(file: UploadFile = File(...)):
    """Intrinsic width/height of an uploaded image (0x0 if unreadable)"""
    content = await read_upload(file)
    dims = service.dimensions(content)
    return DimensionsResponse(width=dims.width, height=dims.height)


# Run with: uvicorn api.main:app --reload --port 8000
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host=config.api.host,
        port=config.api.port,
        reload=True
    )
