"""Pydantic schemas for runtime validation of batch inputs."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from image_batch.types import COMPRESS_FORMATS, TransformMode


def normalize_format(value: str) -> str:
    """Trim, lower-case and drop a leading dot from a format token."""
    return value.strip().lower().lstrip(".")


class RunConfig(BaseModel):
    """Validated parameters for a batch run."""

    model_config = ConfigDict(extra="forbid")

    target_format: str
    mode: TransformMode = "convert"
    quality: int = Field(default=80, ge=1, le=100)
    scale_percentage: int = Field(default=100, ge=1, le=100)

    @field_validator("target_format")
    @classmethod
    def _validate_target_format(cls, value: str) -> str:
        normalized = normalize_format(value)
        if not normalized:
            raise ValueError("target_format cannot be empty.")
        if any(ch in normalized for ch in "./\\ "):
            raise ValueError("target_format must be a bare extension such as 'png'.")
        return normalized

    @model_validator(mode="after")
    def _validate_mode_format(self) -> RunConfig:
        if self.mode == "compress" and self.target_format not in COMPRESS_FORMATS:
            raise ValueError(
                "compression supports only: " + ", ".join(COMPRESS_FORMATS)
            )
        return self
