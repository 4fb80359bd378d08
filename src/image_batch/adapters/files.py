"""Filesystem file-selection source."""

from __future__ import annotations

import logging
import mimetypes
import os
from collections.abc import Iterable
from pathlib import Path

from image_batch.batch.registry import RawFile

logger = logging.getLogger(__name__)


def guess_mime(path: Path) -> str:
    mime, _ = mimetypes.guess_type(path.name)
    return mime or "application/octet-stream"


def read_input_files(paths: Iterable[Path]) -> list[RawFile]:
    """Read each path into a ``RawFile`` in the given order.

    Raises
    ------
    OSError
        If a path cannot be read.
    """
    raw_files = [
        RawFile(name=path.name, data=path.read_bytes(), mime=guess_mime(path))
        for path in paths
    ]
    logger.debug("Read %d input file(s)", len(raw_files))
    return raw_files


def _is_directory_target(destination: Path | str) -> bool:
    raw = str(destination)
    if raw.endswith(("/", os.sep)):
        return True
    path = Path(raw)
    return path.is_dir() or not path.suffix


def write_deliverable(destination: Path | str, file_name: str, data: bytes) -> Path:
    """Write ``data`` to ``destination``.

    An existing directory, a path given with a trailing separator, or a path
    without a suffix is treated as a directory and receives ``file_name``.
    Anything else is the output file itself.
    """
    target = (
        Path(destination) / file_name
        if _is_directory_target(destination)
        else Path(destination)
    )
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(data)
    return target
