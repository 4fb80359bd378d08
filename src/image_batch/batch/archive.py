"""Assemble succeeded results into one deliverable."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import PurePosixPath

from image_batch.application.options import PackagingOptions, RunOptions
from image_batch.application.ports import ArchiveWriter
from image_batch.batch.state import TransformationResult, TransformStatus
from image_batch.errors import EmptyResultSetError
from image_batch.types import ItemId

logger = logging.getLogger(__name__)

_LAST_EXTENSION = re.compile(r"\.[^/.]+$")
_DEFAULT_BASENAME = "image"


@dataclass(frozen=True)
class PackagedArchive:
    """Deliverable produced from a result set.

    ``is_archive`` is false only for a single-file passthrough, in which case
    ``data`` is the item's own output and ``file_name`` its output name.
    """

    data: bytes
    file_name: str
    entry_names: tuple[str, ...]
    is_archive: bool = True


def safe_source_name(name: str) -> str:
    """Return the file-name part of ``name`` with directories removed."""
    raw = name.strip()
    if not raw:
        return _DEFAULT_BASENAME
    # Normalize Windows-style separators before basename extraction.
    candidate = PurePosixPath(raw.replace("\\", "/")).name
    if candidate in {"", ".", ".."}:
        return _DEFAULT_BASENAME
    return candidate


def output_name_for(source_name: str, output_format: str) -> str:
    """Swap the last extension of ``source_name`` for ``output_format``.

    ``photo.jpeg`` with ``webp`` gives ``photo.webp``; a name without an
    extension simply gains one. A dot-file such as ``.hidden`` has an empty
    base and becomes ``image.png``, never a bare ``.png``.
    """
    base = _LAST_EXTENSION.sub("", safe_source_name(source_name))
    return f"{base or _DEFAULT_BASENAME}.{output_format}"


def _disambiguate(name: str, taken: set[str]) -> str:
    if name not in taken:
        return name
    match = _LAST_EXTENSION.search(name)
    stem, ext = (name[: match.start()], match.group()) if match else (name, "")
    counter = 1
    while f"{stem} ({counter}){ext}" in taken:
        counter += 1
    return f"{stem} ({counter}){ext}"


def suggested_archive_name(options: RunOptions | None) -> str:
    """Archive name encoding the run parameters."""
    if options is None:
        return "images.zip"
    if options.mode == "compress":
        return f"compressed-images-{options.quality}%.zip"
    if options.mode == "resize":
        return f"resized-images-{options.scale_percentage}%.zip"
    return f"converted-images-{options.target_format}.zip"


class ArchiveAssembler:
    """Package succeeded results through an ``ArchiveWriter``."""

    def __init__(
        self,
        writer: ArchiveWriter,
        options: PackagingOptions | None = None,
    ) -> None:
        self._writer = writer
        self._options = options or PackagingOptions()

    def entries(
        self,
        results: Iterable[TransformationResult],
        original_names_by_id: Mapping[ItemId, str] | None = None,
    ) -> dict[str, bytes]:
        """Map unique output names to output bytes for succeeded results."""
        names = original_names_by_id or {}
        entries: dict[str, bytes] = {}
        for result in results:
            if result.status is not TransformStatus.SUCCEEDED:
                continue
            source = names.get(result.item_id, result.source_name)
            name = _disambiguate(
                output_name_for(source, result.output_format), set(entries)
            )
            entries[name] = result.output_bytes
        return entries

    def package(
        self,
        results: Iterable[TransformationResult],
        original_names_by_id: Mapping[ItemId, str] | None = None,
        *,
        run_options: RunOptions | None = None,
    ) -> PackagedArchive:
        """Build the deliverable from the succeeded subset of ``results``.

        Raises
        ------
        EmptyResultSetError
            If no result succeeded. The writer is not called.
        """
        entries = self.entries(results, original_names_by_id)
        if not entries:
            raise EmptyResultSetError("No succeeded results to package.")

        if len(entries) == 1 and self._options.single_file_passthrough:
            ((name, data),) = entries.items()
            logger.debug("Passing single output %s through without an archive", name)
            return PackagedArchive(
                data=data, file_name=name, entry_names=(name,), is_archive=False
            )

        blob = self._writer.write(entries)
        file_name = suggested_archive_name(run_options)
        logger.info("Packaged %d output(s) into %s", len(entries), file_name)
        return PackagedArchive(
            data=blob, file_name=file_name, entry_names=tuple(entries)
        )
