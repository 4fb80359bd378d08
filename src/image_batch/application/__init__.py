"""Application-layer use-cases and option objects."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from image_batch.application.options import PackagingOptions, RunOptions
from image_batch.application.ports import (
    ArchiveWriter,
    CodecEngine,
    PreviewFactory,
    PreviewHandle,
)
from image_batch.application.results import BatchOutcome
from image_batch.types import TransformMode

if TYPE_CHECKING:
    from image_batch.batch.registry import RawFileLike


def build_run_options(
    *,
    mode: TransformMode = "convert",
    target_format: str | None = None,
    quality: int | None = None,
    scale_percentage: int | None = None,
) -> RunOptions:
    """Build typed run options via lazy use-case import."""
    from image_batch.application.use_cases import build_run_options as _impl

    return _impl(
        mode=mode,
        target_format=target_format,
        quality=quality,
        scale_percentage=scale_percentage,
    )


async def run_batch(
    *,
    files: Iterable[RawFileLike],
    options: RunOptions,
    archive_writer: ArchiveWriter | None = None,
    preview_factory: PreviewFactory | None = None,
    packaging: PackagingOptions | None = None,
    timeout_seconds: float | None = None,
) -> BatchOutcome:
    """Run one batch with the default engine via lazy use-case import."""
    from image_batch.application.use_cases import run_batch as _impl

    return await _impl(
        files=files,
        options=options,
        archive_writer=archive_writer,
        preview_factory=preview_factory,
        packaging=packaging,
        timeout_seconds=timeout_seconds,
    )


__all__ = [
    "ArchiveWriter",
    "BatchOutcome",
    "CodecEngine",
    "PackagingOptions",
    "PreviewFactory",
    "PreviewHandle",
    "RunOptions",
    "build_run_options",
    "run_batch",
]
