"""Produced surface: one selection, its latest run, and packaging."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from types import TracebackType

from image_batch.application.options import PackagingOptions, RunOptions
from image_batch.application.ports import ArchiveWriter, PreviewFactory
from image_batch.batch.archive import ArchiveAssembler, PackagedArchive
from image_batch.batch.driver import ResultListener, RunReport, TransformationDriver
from image_batch.batch.registry import ItemRegistry, RawFileLike, SelectedItem
from image_batch.batch.state import JobStateMachine, TransformationResult
from image_batch.batch.stats import BatchStats, summarize
from image_batch.engine import EngineHandle
from image_batch.types import ItemId


@dataclass(frozen=True)
class BatchSnapshot:
    """Read-only view for presentation layers."""

    items: tuple[SelectedItem, ...]
    results: tuple[TransformationResult, ...]
    stats: BatchStats
    running: bool


class BatchSession:
    """Wire registry, state machine, driver and assembler together.

    Parameters
    ----------
    engine : EngineHandle
        Codec engine lifecycle; ``run`` fails fast unless it is ready.
    preview_factory : PreviewFactory
        Source of preview handles for selected items.
    archive_writer : ArchiveWriter
        Collaborator that bundles outputs.
    packaging : PackagingOptions, optional
        Archive assembly configuration.
    timeout_seconds : float | None, default=None
        Per-item engine timeout forwarded to the driver.
    """

    def __init__(
        self,
        engine: EngineHandle,
        preview_factory: PreviewFactory,
        archive_writer: ArchiveWriter,
        *,
        packaging: PackagingOptions | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self._job_state = JobStateMachine()
        self.registry = ItemRegistry(preview_factory, job_state=self._job_state)
        self.driver = TransformationDriver(
            engine, self._job_state, timeout_seconds=timeout_seconds
        )
        self.assembler = ArchiveAssembler(archive_writer, packaging)
        self._last_run: RunReport | None = None

    def __enter__(self) -> BatchSession:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Tear down: release every preview handle."""
        self.registry.clear()

    def add(self, raw_files: Iterable[RawFileLike]) -> list[SelectedItem]:
        return self.registry.add(raw_files)

    def remove(self, item_id: ItemId) -> None:
        self.registry.remove(item_id)

    def clear(self) -> None:
        self.registry.clear()

    def add_listener(self, listener: ResultListener) -> None:
        self.driver.add_listener(listener)

    def request_cancel(self) -> None:
        self.driver.request_cancel()

    async def run(self, options: RunOptions) -> RunReport:
        """Run every currently selected item; see ``TransformationDriver.run``."""
        report = await self.driver.run(self.registry.items(), options)
        self._last_run = report
        return report

    def results(self) -> tuple[TransformationResult, ...]:
        return self._job_state.snapshot()

    def stats(self) -> BatchStats:
        """Aggregate computed on demand from the current results."""
        return summarize(self.results())

    def snapshot(self) -> BatchSnapshot:
        results = self.results()
        return BatchSnapshot(
            items=self.registry.items(),
            results=results,
            stats=summarize(results),
            running=self.driver.running,
        )

    def package(self) -> PackagedArchive:
        """Package the current succeeded results.

        Raises
        ------
        EmptyResultSetError
            If no current result succeeded.
        """
        results = self.results()
        names = {item.id: item.source_name for item in self.registry.items()}
        run_options = self._last_run.options if self._last_run and results else None
        return self.assembler.package(results, names, run_options=run_options)
