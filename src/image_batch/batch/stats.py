"""Batch-level statistics derived from a result snapshot."""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass

from image_batch.batch.state import TransformationResult, TransformStatus


@dataclass(frozen=True)
class BatchStats:
    """Aggregate view of one result set.

    ``compression_ratio_percent`` is 0 when there is nothing to compare
    (either total is 0); it is a display value, not a claim of no savings.
    It is negative when outputs are larger than inputs.
    """

    total_count: int
    completed_count: int
    failed_count: int
    pending_count: int
    running_count: int
    total_original_size: int
    total_output_size: int
    compression_ratio_percent: int

    @property
    def finished(self) -> bool:
        return self.pending_count == 0 and self.running_count == 0


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _ratio_percent(output_size: int, original_size: int) -> int:
    return _round_half_up((1 - output_size / original_size) * 100)


def summarize(results: Iterable[TransformationResult]) -> BatchStats:
    """Compute counts, size totals and the overall ratio."""
    counts = dict.fromkeys(TransformStatus, 0)
    total_original = 0
    total_output = 0
    for result in results:
        counts[result.status] += 1
        total_original += result.original_size
        if result.status is TransformStatus.SUCCEEDED:
            total_output += result.output_size

    ratio = (
        _ratio_percent(total_output, total_original)
        if total_original and total_output
        else 0
    )
    return BatchStats(
        total_count=sum(counts.values()),
        completed_count=counts[TransformStatus.SUCCEEDED],
        failed_count=counts[TransformStatus.FAILED],
        pending_count=counts[TransformStatus.QUEUED],
        running_count=counts[TransformStatus.RUNNING],
        total_original_size=total_original,
        total_output_size=total_output,
        compression_ratio_percent=ratio,
    )


def item_ratio_percent(result: TransformationResult) -> int | None:
    """Per-item ratio; ``None`` unless the result succeeded.

    An empty source yields ``None`` as well, since there is nothing to compare.
    """
    if result.status is not TransformStatus.SUCCEEDED or not result.original_size:
        return None
    return _ratio_percent(result.output_size, result.original_size)
