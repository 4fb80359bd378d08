"""Top-level API for batch image conversion, compression and resizing."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from image_batch.application.results import BatchOutcome
    from image_batch.batch.registry import RawFileLike

__version__ = "0.1.0"


def convert_images(
    files: Iterable[RawFileLike],
    target_format: str,
) -> BatchOutcome:
    """Convert in-memory images to another format.

    Parameters
    ----------
    files : Iterable[RawFileLike]
        ``RawFile`` objects or ``(name, data, mime)`` tuples, in order.
    target_format : str
        Output format token, e.g. ``"png"`` or ``".JPG"``.

    Returns
    -------
    BatchOutcome
        Per-item results, aggregate statistics and the packaged
        deliverable (``None`` when nothing succeeded).
    """
    from .application.use_cases import build_run_options, run_batch

    options = build_run_options(mode="convert", target_format=target_format)
    return asyncio.run(run_batch(files=files, options=options))


def compress_images(
    files: Iterable[RawFileLike],
    quality: int,
    target_format: str = "jpg",
) -> BatchOutcome:
    """Re-encode in-memory images at a quality level.

    Parameters
    ----------
    files : Iterable[RawFileLike]
        ``RawFile`` objects or ``(name, data, mime)`` tuples, in order.
    quality : int
        Encoder quality in ``[1, 100]``.
    target_format : str, default="jpg"
        One of ``jpg``, ``jpeg``, ``png`` or ``webp``.

    Returns
    -------
    BatchOutcome
        Per-item results, aggregate statistics and the packaged deliverable.
    """
    from .application.use_cases import build_run_options, run_batch

    options = build_run_options(
        mode="compress", target_format=target_format, quality=quality
    )
    return asyncio.run(run_batch(files=files, options=options))


def resize_images(
    files: Iterable[RawFileLike],
    scale_percentage: int,
    target_format: str = "png",
) -> BatchOutcome:
    """Scale in-memory images by a percentage of their dimensions."""
    from .application.use_cases import build_run_options, run_batch

    options = build_run_options(
        mode="resize",
        target_format=target_format,
        scale_percentage=scale_percentage,
    )
    return asyncio.run(run_batch(files=files, options=options))


__all__ = [
    "convert_images",
    "compress_images",
    "resize_images",
]
