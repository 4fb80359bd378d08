"""Typed option objects shared across batch use-cases."""

from __future__ import annotations

from dataclasses import dataclass

from image_batch.types import TransformMode


@dataclass(frozen=True)
class RunOptions:
    """Parameters of one batch run.

    ``quality`` is only read in ``compress`` mode and ``scale_percentage`` only
    in ``resize`` mode.
    """

    target_format: str
    mode: TransformMode = "convert"
    quality: int = 80
    scale_percentage: int = 100


@dataclass(frozen=True)
class PackagingOptions:
    """Archive assembly configuration."""

    single_file_passthrough: bool = False
