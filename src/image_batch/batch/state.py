"""Per-item transformation status and transition rules."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, replace
from enum import StrEnum
from typing import Protocol

from image_batch.errors import InvalidTransitionError
from image_batch.types import ItemId

logger = logging.getLogger(__name__)


class TransformStatus(StrEnum):
    """Lifecycle of one item within a run."""

    QUEUED = "queued"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (TransformStatus.SUCCEEDED, TransformStatus.FAILED)


@dataclass(frozen=True)
class TransformationResult:
    """Outcome of one item, keyed by the selected item's id.

    Parameters
    ----------
    item_id : str
        Id of the selected item this result belongs to.
    source_name : str
        Original file name, used to derive the output name.
    output_format : str
        Format requested for this item when the run started.
    status : TransformStatus
        Current lifecycle state.
    original_size : int
        Byte length of the source payload.
    output_bytes : bytes, default=b""
        Engine output; empty until ``SUCCEEDED``.
    output_size : int, default=0
        ``len(output_bytes)``; 0 until ``SUCCEEDED``.
    error_message : str | None, default=None
        Engine failure message; set only when ``FAILED``.
    """

    item_id: ItemId
    source_name: str
    output_format: str
    status: TransformStatus
    original_size: int
    output_bytes: bytes = b""
    output_size: int = 0
    error_message: str | None = None


class _SourceItem(Protocol):
    """Structural subset of ``SelectedItem`` read by ``initialize``."""

    id: ItemId
    source_name: str
    source_bytes: bytes


_ALLOWED: dict[TransformStatus, TransformStatus] = {
    TransformStatus.RUNNING: TransformStatus.QUEUED,
    TransformStatus.SUCCEEDED: TransformStatus.RUNNING,
    TransformStatus.FAILED: TransformStatus.RUNNING,
}


class JobStateMachine:
    """Own the result set of the current run and apply transitions."""

    def __init__(self) -> None:
        self._results: dict[ItemId, TransformationResult] = {}
        self._run_active = False
        self._discard_pending = False

    def initialize(
        self, items: Iterable[_SourceItem], output_format: str
    ) -> tuple[TransformationResult, ...]:
        """Replace the result set with one ``QUEUED`` result per item."""
        self._results = {
            item.id: TransformationResult(
                item_id=item.id,
                source_name=item.source_name,
                output_format=output_format,
                status=TransformStatus.QUEUED,
                original_size=len(item.source_bytes),
            )
            for item in items
        }
        return self.snapshot()

    def discard(self) -> None:
        """Drop the result set (a new selection invalidates it).

        While a run is active the drop is deferred until ``end_run``.
        """
        if self._run_active:
            self._discard_pending = True
            return
        self._results = {}

    @property
    def run_active(self) -> bool:
        return self._run_active

    def begin_run(self) -> None:
        self._run_active = True
        self._discard_pending = False

    def end_run(self) -> None:
        self._run_active = False
        if self._discard_pending:
            self._discard_pending = False
            self._results = {}

    def get(self, item_id: ItemId) -> TransformationResult:
        try:
            return self._results[item_id]
        except KeyError as exc:
            raise InvalidTransitionError(
                f"No result for item '{item_id}' in the current run."
            ) from exc

    def snapshot(self) -> tuple[TransformationResult, ...]:
        """Return results in initialization order."""
        return tuple(self._results.values())

    def __len__(self) -> int:
        return len(self._results)

    def mark_running(self, item_id: ItemId) -> TransformationResult:
        return self._transition(item_id, TransformStatus.RUNNING)

    def mark_succeeded(
        self, item_id: ItemId, output_bytes: bytes
    ) -> TransformationResult:
        return self._transition(
            item_id,
            TransformStatus.SUCCEEDED,
            output_bytes=bytes(output_bytes),
            output_size=len(output_bytes),
        )

    def mark_failed(self, item_id: ItemId, message: str) -> TransformationResult:
        return self._transition(item_id, TransformStatus.FAILED, error_message=message)

    def _transition(
        self,
        item_id: ItemId,
        target: TransformStatus,
        **changes: object,
    ) -> TransformationResult:
        current = self.get(item_id)
        if current.status is not _ALLOWED[target]:
            logger.warning(
                "Rejected transition %s -> %s for item %s",
                current.status,
                target,
                item_id,
            )
            raise InvalidTransitionError(
                f"Item '{item_id}' cannot move from {current.status} to {target}."
            )
        updated = replace(current, status=target, **changes)
        self._results[item_id] = updated
        logger.debug("Item %s is now %s", item_id, target)
        return updated
