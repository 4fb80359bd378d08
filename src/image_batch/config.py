"""
Configuration loader for the batch orchestrator.

Environment variables (prefix ``IMAGE_BATCH_``) and an optional ``.env`` file
are centralized here so the rest of the code only sees typed settings.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from image_batch.schemas import normalize_format
from image_batch.types import COMPRESS_FORMATS


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="IMAGE_BATCH_",
        env_file=".env",
        extra="ignore",
        case_sensitive=False,
    )

    # Logging
    log_level: str = "WARNING"

    # Run defaults
    default_convert_format: str = "png"
    default_compress_format: str = "jpg"
    default_quality: int = Field(80, ge=1, le=100)
    default_scale_percentage: int = Field(100, ge=1, le=100)

    # Engine
    convert_jpeg_quality: int = Field(85, ge=1, le=100)
    engine_timeout_seconds: float | None = Field(None, gt=0)

    # Packaging
    single_file_passthrough: bool = False

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in logging.getLevelNamesMapping():
            raise ValueError(f"unknown log level: {value}")
        return normalized

    @field_validator("default_convert_format", "default_compress_format")
    @classmethod
    def _normalize_formats(cls, value: str) -> str:
        return normalize_format(value)

    @field_validator("default_compress_format")
    @classmethod
    def _validate_compress_format(cls, value: str) -> str:
        if value not in COMPRESS_FORMATS:
            raise ValueError(
                "default_compress_format must be one of " + ", ".join(COMPRESS_FORMATS)
            )
        return value


@lru_cache()
def get_settings() -> Settings:
    """Return cached settings to avoid reparsing env on every call."""
    return Settings()


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once for CLI entrypoints."""
    resolved = (level or get_settings().log_level).upper()
    logging.basicConfig(
        level=getattr(logging, resolved, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
