"""Application use-cases orchestrating one-shot batch workflows."""

from __future__ import annotations

from collections.abc import Iterable

from image_batch.adapters.codecs import load_pillow_engine
from image_batch.adapters.previews import DataUriPreviewFactory
from image_batch.application.options import PackagingOptions, RunOptions
from image_batch.application.ports import ArchiveWriter, PreviewFactory
from image_batch.application.results import BatchOutcome
from image_batch.batch.driver import ResultListener
from image_batch.batch.registry import RawFileLike
from image_batch.batch.session import BatchSession
from image_batch.config import Settings, get_settings
from image_batch.engine import EngineHandle
from image_batch.errors import EmptyResultSetError
from image_batch.infrastructure.archive import ZipArchiveWriter
from image_batch.types import TransformMode


def build_run_options(
    *,
    mode: TransformMode = "convert",
    target_format: str | None = None,
    quality: int | None = None,
    scale_percentage: int | None = None,
    settings: Settings | None = None,
) -> RunOptions:
    """Build run options, filling unset values from settings."""
    settings = settings or get_settings()
    if target_format is None:
        target_format = (
            settings.default_compress_format
            if mode == "compress"
            else settings.default_convert_format
        )
    return RunOptions(
        target_format=target_format,
        mode=mode,
        quality=settings.default_quality if quality is None else quality,
        scale_percentage=(
            settings.default_scale_percentage
            if scale_percentage is None
            else scale_percentage
        ),
    )


def default_engine_handle(settings: Settings | None = None) -> EngineHandle:
    """Unloaded handle around the Pillow codec engine."""
    settings = settings or get_settings()
    return EngineHandle(
        lambda: load_pillow_engine(convert_jpeg_quality=settings.convert_jpeg_quality)
    )


async def run_batch(
    *,
    files: Iterable[RawFileLike],
    options: RunOptions,
    engine: EngineHandle | None = None,
    archive_writer: ArchiveWriter | None = None,
    preview_factory: PreviewFactory | None = None,
    packaging: PackagingOptions | None = None,
    timeout_seconds: float | None = None,
    listener: ResultListener | None = None,
    settings: Settings | None = None,
) -> BatchOutcome:
    """Use-case: select files, run one batch, and package the successes.

    The engine is loaded first when needed. When nothing succeeds the
    outcome carries no archive; callers decide whether that is an error.
    """
    settings = settings or get_settings()
    engine = engine or default_engine_handle(settings)
    await engine.load()

    with BatchSession(
        engine,
        preview_factory or DataUriPreviewFactory(),
        archive_writer or ZipArchiveWriter(),
        packaging=(
            PackagingOptions(single_file_passthrough=settings.single_file_passthrough)
            if packaging is None
            else packaging
        ),
        timeout_seconds=(
            settings.engine_timeout_seconds if timeout_seconds is None else timeout_seconds
        ),
    ) as session:
        if listener is not None:
            session.add_listener(listener)
        session.add(files)
        report = await session.run(options)
        try:
            archive = session.package()
        except EmptyResultSetError:
            archive = None
        return BatchOutcome(report=report, stats=session.stats(), archive=archive)
