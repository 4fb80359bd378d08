"""Public file-based batch API (delegates to application use-cases)."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import replace
from pathlib import Path

from image_batch.adapters.files import read_input_files, write_deliverable
from image_batch.application.options import PackagingOptions, RunOptions
from image_batch.application.results import BatchOutcome
from image_batch.application.use_cases import build_run_options, run_batch
from image_batch.batch.driver import ResultListener

logger = logging.getLogger(__name__)


def _run_files(
    paths: Iterable[Path],
    output_path: Path,
    options: RunOptions,
    *,
    single_file_passthrough: bool | None,
    listener: ResultListener | None,
) -> BatchOutcome:
    raw_files = read_input_files(paths)
    packaging = (
        None
        if single_file_passthrough is None
        else PackagingOptions(single_file_passthrough=single_file_passthrough)
    )
    outcome = asyncio.run(
        run_batch(
            files=raw_files,
            options=options,
            packaging=packaging,
            listener=listener,
        )
    )
    if outcome.archive is None:
        return outcome
    written = write_deliverable(
        output_path, outcome.archive.file_name, outcome.archive.data
    )
    logger.info("Wrote %s", written)
    return replace(outcome, archive_path=written)


def convert_files(
    paths: Iterable[Path],
    output_path: Path,
    target_format: str | None = None,
    *,
    single_file_passthrough: bool | None = None,
    listener: ResultListener | None = None,
) -> BatchOutcome:
    """Convert image files to ``target_format`` and write the deliverable."""
    options = build_run_options(mode="convert", target_format=target_format)
    return _run_files(
        paths,
        output_path,
        options,
        single_file_passthrough=single_file_passthrough,
        listener=listener,
    )


def compress_files(
    paths: Iterable[Path],
    output_path: Path,
    target_format: str | None = None,
    quality: int | None = None,
    *,
    single_file_passthrough: bool | None = None,
    listener: ResultListener | None = None,
) -> BatchOutcome:
    """Re-encode image files at ``quality`` and write the deliverable."""
    options = build_run_options(
        mode="compress", target_format=target_format, quality=quality
    )
    return _run_files(
        paths,
        output_path,
        options,
        single_file_passthrough=single_file_passthrough,
        listener=listener,
    )


def resize_files(
    paths: Iterable[Path],
    output_path: Path,
    scale_percentage: int | None = None,
    target_format: str | None = None,
    *,
    single_file_passthrough: bool | None = None,
    listener: ResultListener | None = None,
) -> BatchOutcome:
    """Scale image files by ``scale_percentage`` and write the deliverable."""
    options = build_run_options(
        mode="resize",
        target_format=target_format,
        scale_percentage=scale_percentage,
    )
    return _run_files(
        paths,
        output_path,
        options,
        single_file_passthrough=single_file_passthrough,
        listener=listener,
    )
