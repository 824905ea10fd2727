"""
Local Image Engine - Core Source Package
Deterministic 4K upscaling, sharpening, color enhancement and resizing
"""
from .config import (
    get_config,
    Config,
    EnhancementParams,
    UpscalePolicy,
    LimitsConfig,
    OutputConfig,
)
from .errors import (
    ImageEngineError,
    InvalidBuffer,
    InvalidDimensions,
    OutOfBounds,
    DecodeError,
    EncodeError,
    AllocationError,
    BatchLimitError,
)
from .pixel_buffer import PixelBuffer, Dimensions
from .resampler import resample, compute_upscale_dimensions
from .sharpen import ConvolutionSharpener, SHARPEN_KERNEL
from .color import ColorEnhancer
from .pipeline import EnhancementPipeline, upscale, resize
from .probe import probe
from .codec import PillowCodec, decode_image, encode_image, to_data_url, from_data_url
from .service import (
    ImageEngineService,
    EnhancementResult,
    ProcessingStep,
    BatchItemResult,
    lock_aspect_ratio,
    check_batch_limit,
    process_batch,
)

__all__ = [
    # Config
    'get_config',
    'Config',
    'EnhancementParams',
    'UpscalePolicy',
    'LimitsConfig',
    'OutputConfig',

    # Errors
    'ImageEngineError',
    'InvalidBuffer',
    'InvalidDimensions',
    'OutOfBounds',
    'DecodeError',
    'EncodeError',
    'AllocationError',
    'BatchLimitError',

    # Core
    'PixelBuffer',
    'Dimensions',
    'resample',
    'compute_upscale_dimensions',
    'ConvolutionSharpener',
    'SHARPEN_KERNEL',
    'ColorEnhancer',
    'EnhancementPipeline',
    'upscale',
    'resize',
    'probe',

    # Codec
    'PillowCodec',
    'decode_image',
    'encode_image',
    'to_data_url',
    'from_data_url',

    # Orchestration
    'ImageEngineService',
    'EnhancementResult',
    'ProcessingStep',
    'BatchItemResult',
    'lock_aspect_ratio',
    'check_batch_limit',
    'process_batch',
]
