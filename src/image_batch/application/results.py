"""Application-layer result objects."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from image_batch.batch.archive import PackagedArchive
    from image_batch.batch.driver import RunReport
    from image_batch.batch.stats import BatchStats


@dataclass(frozen=True)
class BatchOutcome:
    """Structured outcome of a one-shot batch.

    ``archive`` is ``None`` when no item succeeded; ``archive_path`` is set
    only by the file-based API once the deliverable was written.
    """

    report: RunReport
    stats: BatchStats
    archive: PackagedArchive | None = None
    archive_path: Path | None = None
