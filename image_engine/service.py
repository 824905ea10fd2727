"""
Image Engine Service - orchestration around the enhancement pipeline

decode -> pipeline -> encode, with the output quality policy of the calling
layer (0.95 for 4K upscale, 0.90 for custom resize). Errors from the
pipeline and codec propagate unchanged.
"""
import asyncio
import time
import uuid
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .codec import PillowCodec, normalize_format, mime_type_for
from .config import OutputConfig, get_config
from .errors import BatchLimitError, InvalidDimensions
from .logging_config import RequestLogger
from .pipeline import EnhancementPipeline
from .pixel_buffer import Dimensions
from .probe import probe

logger = logging.getLogger(__name__)


@dataclass
class ProcessingStep:
    """Record of a single processing step"""
    name: str
    latency_ms: int
    details: str = ""


@dataclass
class EnhancementResult:
    """Encoded output of an upscale/resize call with timing details"""
    image_bytes: bytes
    output_format: str
    quality: float
    original_dimensions: Tuple[int, int] = (0, 0)
    output_dimensions: Tuple[int, int] = (0, 0)
    original_size_bytes: int = 0
    processing_time_ms: int = 0
    processing_steps: List[ProcessingStep] = field(default_factory=list)
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def mime_type(self) -> str:
        return mime_type_for(self.output_format)

    @property
    def output_size_bytes(self) -> int:
        return len(self.image_bytes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "request_id": self.request_id,
            "output_format": self.output_format,
            "quality": self.quality,
            "original_dimensions": list(self.original_dimensions),
            "output_dimensions": list(self.output_dimensions),
            "original_size_bytes": self.original_size_bytes,
            "output_size_bytes": self.output_size_bytes,
            "processing_time_ms": self.processing_time_ms,
            "processing_steps": [
                {"name": s.name, "latency_ms": s.latency_ms, "details": s.details}
                for s in self.processing_steps
            ],
        }


def _elapsed_ms(start: float) -> int:
    return int((time.time() - start) * 1000)


class ImageEngineService:
    """Runs pipeline operations on encoded image bytes"""

    def __init__(
        self,
        pipeline: Optional[EnhancementPipeline] = None,
        codec: Optional[PillowCodec] = None,
        output: Optional[OutputConfig] = None,
    ):
        self.codec = codec or PillowCodec()
        self.pipeline = pipeline or EnhancementPipeline(codec=self.codec)
        self.output = output or get_config().output
        self.request_logger = RequestLogger(logger)

    def _run(self, operation: str, data: bytes, process: Callable, output_format: Optional[str],
             quality: float, **log_fields) -> EnhancementResult:
        fmt = normalize_format(output_format or self.output.output_format)
        request_id = str(uuid.uuid4())
        start_time = time.time()
        steps = []

        rl = self.request_logger
        rl.start_request(request_id, operation, input_bytes=len(data), output_format=fmt,
                         quality=quality, **log_fields)
        try:
            step_start = time.time()
            source = self.codec.decode(data)
            steps.append(ProcessingStep("decode", _elapsed_ms(step_start), f"{source.width}x{source.height}"))
            rl.log_step("decode", steps[-1].latency_ms, dims=steps[-1].details)

            step_start = time.time()
            output = process(source)
            steps.append(ProcessingStep(operation, _elapsed_ms(step_start), f"{output.width}x{output.height}"))
            rl.log_step(operation, steps[-1].latency_ms, dims=steps[-1].details)

            step_start = time.time()
            encoded = self.codec.encode(output, fmt, quality)
            steps.append(ProcessingStep("encode", _elapsed_ms(step_start), fmt))
            rl.log_step("encode", steps[-1].latency_ms, size_kb=f"{len(encoded)/1024:.1f}")
        except Exception as e:
            rl.end_request(False, error=f"{type(e).__name__}: {e}")
            raise

        result = EnhancementResult(
            image_bytes=encoded,
            output_format=fmt,
            quality=quality,
            original_dimensions=tuple(source.dimensions),
            output_dimensions=tuple(output.dimensions),
            original_size_bytes=len(data),
            processing_steps=steps,
            request_id=request_id,
        )
        result.processing_time_ms = rl.end_request(
            True, dimensions=f"{result.original_dimensions} -> {result.output_dimensions}"
        )
        return result

    def upscale_bytes(self, data: bytes, output_format: Optional[str] = None,
                      quality: Optional[float] = None) -> EnhancementResult:
        """4K upscale + enhancement of encoded image bytes"""
        quality = self.output.upscale_quality if quality is None else quality
        return self._run("upscale", data, self.pipeline.upscale, output_format, quality)

    def resize_bytes(self, data: bytes, width: int, height: int, output_format: Optional[str] = None,
                     quality: Optional[float] = None) -> EnhancementResult:
        """Custom resize of encoded image bytes"""
        quality = self.output.resize_quality if quality is None else quality
        return self._run(
            "resize", data, lambda source: self.pipeline.resize(source, width, height),
            output_format, quality, target=f"{width}x{height}",
        )

    def dimensions(self, data) -> Dimensions:
        """Lenient dimension lookup, (0, 0) when undecodable"""
        return probe(data)


def lock_aspect_ratio(aspect_ratio: float, width: Optional[int] = None,
                      height: Optional[int] = None) -> Dimensions:
    """
    Fill in the missing side of a resize request so width/height keeps
    `aspect_ratio` (width / height). Exactly one of width/height is given.
    """
    if aspect_ratio is None or aspect_ratio <= 0:
        raise InvalidDimensions(f"Aspect ratio must be positive, got {aspect_ratio}")
    if (width is None) == (height is None):
        raise InvalidDimensions("Give exactly one of width or height to lock the aspect ratio")

    if width is not None:
        if width < 1:
            raise InvalidDimensions(f"Target width must be >= 1, got {width}")
        return Dimensions(int(width), max(1, round(width / aspect_ratio)))

    if height < 1:
        raise InvalidDimensions(f"Target height must be >= 1, got {height}")
    return Dimensions(max(1, round(height * aspect_ratio)), int(height))


def check_batch_limit(existing: int, adding: int, max_files: Optional[int] = None) -> None:
    """Raise BatchLimitError if adding files would exceed the batch limit"""
    if max_files is None:
        max_files = get_config().limits.max_batch_files
    if existing + adding > max_files:
        raise BatchLimitError(max(0, max_files - existing), max_files)


@dataclass
class BatchItemResult:
    """Outcome of one batch entry: a result or the error it raised"""
    index: int
    result: Optional[EnhancementResult] = None
    error: Optional[Exception] = None

    @property
    def success(self) -> bool:
        return self.error is None


async def process_batch(
    items: Sequence[bytes],
    operation: Callable[[bytes], EnhancementResult],
    concurrency: Optional[int] = None,
    max_files: Optional[int] = None,
) -> List[BatchItemResult]:
    """
    Run `operation` over every item in worker threads.

    At most `concurrency` calls run at once. Results keep input order; a
    failing item records its error without stopping the others.
    """
    check_batch_limit(0, len(items), max_files)
    concurrency = concurrency or get_config().worker_concurrency
    semaphore = asyncio.Semaphore(concurrency)

    async def run_one(index: int, data: bytes) -> BatchItemResult:
        async with semaphore:
            try:
                result = await asyncio.to_thread(operation, data)
                return BatchItemResult(index=index, result=result)
            except Exception as e:
                logger.error(f"Batch item {index} failed: {type(e).__name__}: {e}")
                return BatchItemResult(index=index, error=e)

    logger.info(f"BATCH START | {len(items)} items | concurrency={concurrency}")
    results = await asyncio.gather(*(run_one(i, data) for i, data in enumerate(items)))
    failed = sum(1 for r in results if not r.success)
    logger.info(f"BATCH COMPLETE | success={len(results) - failed} failed={failed}")
    return list(results)
