"""Unit tests for application use-case contracts."""

from __future__ import annotations

import pytest

from image_batch.application.options import PackagingOptions, RunOptions
from image_batch.application.use_cases import build_run_options, run_batch
from image_batch.batch.registry import RawFile
from image_batch.batch.state import TransformationResult, TransformStatus
from image_batch.config import Settings
from image_batch.engine import EngineHandle, EngineState
from image_batch.errors import EngineError, EngineUnavailableError


class _Engine:
    def convert(self, data: bytes, target_format: str) -> bytes:
        if data == b"bad":
            raise EngineError("Failed to load image")
        return target_format.encode()

    def compress(self, data: bytes, target_format: str, quality: int) -> bytes:
        return bytes([quality])

    def resize(self, data: bytes, target_format: str, scale_percentage: int) -> bytes:
        return data


def test_build_run_options_uses_settings_defaults() -> None:
    """Ensure unset fields fall back to settings per mode."""
    settings = Settings(
        _env_file=None,
        default_convert_format="webp",
        default_compress_format="png",
        default_quality=55,
        default_scale_percentage=40,
    )

    assert build_run_options(settings=settings) == RunOptions(
        target_format="webp", mode="convert", quality=55, scale_percentage=40
    )
    assert build_run_options(mode="compress", settings=settings).target_format == "png"
    assert build_run_options(
        mode="resize", target_format="gif", scale_percentage=10, settings=settings
    ) == RunOptions(target_format="gif", mode="resize", quality=55, scale_percentage=10)


@pytest.mark.asyncio
async def test_run_batch_returns_results_stats_and_archive() -> None:
    """Ensure a mixed batch yields an archive of the successes."""
    seen: list[TransformationResult] = []

    outcome = await run_batch(
        files=[RawFile("a.png", b"aaaa"), ("b.png", b"bad", "image/png")],
        options=RunOptions(target_format="png"),
        engine=EngineHandle.ready(_Engine()),
        listener=seen.append,
    )

    assert [r.status for r in outcome.report.results] == [
        TransformStatus.SUCCEEDED,
        TransformStatus.FAILED,
    ]
    assert outcome.stats.completed_count == 1
    assert outcome.archive is not None
    assert outcome.archive.entry_names == ("a.png",)
    assert outcome.archive.file_name == "converted-images-png.zip"
    assert outcome.archive_path is None
    assert seen[-1].status is TransformStatus.FAILED


@pytest.mark.asyncio
async def test_run_batch_without_successes_has_no_archive() -> None:
    """Ensure an all-failed batch reports no deliverable."""
    outcome = await run_batch(
        files=[RawFile("a.png", b"bad")],
        options=RunOptions(target_format="png"),
        engine=EngineHandle.ready(_Engine()),
    )
    assert outcome.archive is None
    assert outcome.stats.failed_count == 1


@pytest.mark.asyncio
async def test_run_batch_honours_passthrough() -> None:
    """Ensure packaging options reach the assembler."""
    outcome = await run_batch(
        files=[RawFile("a.png", b"x")],
        options=RunOptions(target_format="jpg", mode="compress", quality=7),
        engine=EngineHandle.ready(_Engine()),
        packaging=PackagingOptions(single_file_passthrough=True),
    )
    assert outcome.archive is not None
    assert not outcome.archive.is_archive
    assert outcome.archive.data == bytes([7])


@pytest.mark.asyncio
async def test_run_batch_loads_engine_first() -> None:
    """Ensure an unloaded handle is loaded before the run."""
    handle = EngineHandle(_Engine)

    await run_batch(
        files=[RawFile("a.png", b"x")],
        options=RunOptions(target_format="png"),
        engine=handle,
    )

    assert handle.state is EngineState.READY


@pytest.mark.asyncio
async def test_run_batch_surfaces_engine_load_failure() -> None:
    """Ensure a loader failure aborts before any item is processed."""

    def broken() -> _Engine:
        raise RuntimeError("no codecs")

    with pytest.raises(EngineUnavailableError):
        await run_batch(
            files=[RawFile("a.png", b"x")],
            options=RunOptions(target_format="png"),
            engine=EngineHandle(broken),
        )


@pytest.mark.asyncio
async def test_run_batch_takes_passthrough_from_settings_when_unset() -> None:
    """Ensure settings decide passthrough unless packaging is given explicitly."""
    settings = Settings(_env_file=None, single_file_passthrough=True)
    files = [RawFile("a.png", b"x")]
    options = RunOptions(target_format="jpg")

    from_settings = await run_batch(
        files=files, options=options, engine=EngineHandle.ready(_Engine()), settings=settings
    )
    overridden = await run_batch(
        files=files,
        options=options,
        engine=EngineHandle.ready(_Engine()),
        packaging=PackagingOptions(single_file_passthrough=False),
        settings=settings,
    )

    assert from_settings.archive is not None
    assert not from_settings.archive.is_archive
    assert from_settings.archive.file_name == "a.jpg"
    assert overridden.archive is not None
    assert overridden.archive.is_archive
    assert overridden.archive.file_name == "converted-images-jpg.zip"
