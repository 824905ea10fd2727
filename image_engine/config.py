"""
Configuration settings for the Local Image Engine
Defaults match the 4K upscale / custom resize behaviour; every value can be
overridden through the environment or a .env file.
"""
import os
from dataclasses import dataclass, field
from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class EnhancementParams:
    """Fixed enhancement applied after the 4K upscale"""
    # Blend factor between original and convolved pixel
    sharpen_mix: float = field(
        default_factory=lambda: float(os.getenv("SHARPEN_MIX", "0.35"))
    )
    contrast: float = field(
        default_factory=lambda: float(os.getenv("CONTRAST", "1.1"))
    )
    saturation: float = field(
        default_factory=lambda: float(os.getenv("SATURATION", "1.15"))
    )


@dataclass(frozen=True)
class UpscalePolicy:
    """Scale-factor policy for the auto-upscale-to-4K path"""
    target_long_edge: int = field(
        default_factory=lambda: int(os.getenv("UPSCALE_TARGET_LONG_EDGE", "3840"))
    )
    # Portrait branch divides this by the source *width*
    portrait_edge: int = field(
        default_factory=lambda: int(os.getenv("UPSCALE_PORTRAIT_EDGE", "2160"))
    )


@dataclass(frozen=True)
class LimitsConfig:
    """Resource limits"""
    # Largest target (width * height) a single operation may allocate
    max_target_pixels: int = field(
        default_factory=lambda: int(os.getenv("MAX_TARGET_PIXELS", "200000000"))
    )
    max_batch_files: int = field(
        default_factory=lambda: int(os.getenv("MAX_BATCH_FILES", "300"))
    )


@dataclass(frozen=True)
class OutputConfig:
    """Encoding policy of the orchestration layer (quality in 0.0-1.0)"""
    output_format: str = field(
        default_factory=lambda: os.getenv("OUTPUT_FORMAT", "JPEG")
    )
    upscale_quality: float = field(
        default_factory=lambda: float(os.getenv("UPSCALE_QUALITY", "0.95"))
    )
    resize_quality: float = field(
        default_factory=lambda: float(os.getenv("RESIZE_QUALITY", "0.90"))
    )


@dataclass
class APIConfig:
    """API configuration"""
    host: str = field(default_factory=lambda: os.getenv("API_HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.getenv("API_PORT", "8000")))

    max_upload_size_mb: int = field(
        default_factory=lambda: int(os.getenv("MAX_UPLOAD_SIZE_MB", "50"))
    )
    cors_origins: list = field(default_factory=lambda: ["*"])


@dataclass
class Config:
    """Main configuration class"""
    enhancement: EnhancementParams = field(default_factory=EnhancementParams)
    upscale: UpscalePolicy = field(default_factory=UpscalePolicy)
    limits: LimitsConfig = field(default_factory=LimitsConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    api: APIConfig = field(default_factory=APIConfig)

    worker_concurrency: int = 4
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Config":
        return cls(
            worker_concurrency=int(os.getenv("WORKER_CONCURRENCY", "4")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )


# Global config instance
_config = None


def get_config() -> Config:
    """Get the global config instance"""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def reset_config() -> None:
    """Drop the cached config so the next get_config() re-reads the environment"""
    global _config
    _config = None
