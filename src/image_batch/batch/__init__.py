"""Batch orchestration: registry, state machine, driver, stats and packaging."""

from .archive import ArchiveAssembler, PackagedArchive, output_name_for
from .driver import RunReport, TransformationDriver
from .registry import ItemRegistry, RawFile, SelectedItem
from .session import BatchSession, BatchSnapshot
from .state import JobStateMachine, TransformationResult, TransformStatus
from .stats import BatchStats, item_ratio_percent, summarize

__all__ = [
    "ArchiveAssembler",
    "BatchSession",
    "BatchSnapshot",
    "BatchStats",
    "ItemRegistry",
    "JobStateMachine",
    "PackagedArchive",
    "RawFile",
    "RunReport",
    "SelectedItem",
    "TransformationDriver",
    "TransformationResult",
    "TransformStatus",
    "item_ratio_percent",
    "output_name_for",
    "summarize",
]
