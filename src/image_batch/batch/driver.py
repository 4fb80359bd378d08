"""Sequential batch driver with per-item failure isolation."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace
from typing import TypeAlias

from pydantic import ValidationError

from image_batch.application.options import RunOptions
from image_batch.application.ports import CodecEngine
from image_batch.batch.registry import SelectedItem
from image_batch.batch.state import (
    JobStateMachine,
    TransformationResult,
    TransformStatus,
)
from image_batch.engine import EngineHandle
from image_batch.errors import (
    BatchInProgressError,
    EngineError,
    InvalidRunOptionsError,
)
from image_batch.schemas import RunConfig

logger = logging.getLogger(__name__)

ResultListener: TypeAlias = Callable[[TransformationResult], None]


@dataclass(frozen=True)
class RunReport:
    """Outcome of one ``TransformationDriver.run`` call.

    ``results`` keeps registry order. When ``cancelled`` is true, items that
    were never scheduled remain ``QUEUED``.
    """

    results: tuple[TransformationResult, ...]
    options: RunOptions
    cancelled: bool = False


def validate_run_options(options: RunOptions) -> RunOptions:
    """Return options with a normalized target format.

    Raises
    ------
    InvalidRunOptionsError
        If any field is out of range or the mode/format pair is invalid.
    """
    try:
        config = RunConfig(
            target_format=options.target_format,
            mode=options.mode,
            quality=options.quality,
            scale_percentage=options.scale_percentage,
        )
    except ValidationError as exc:
        raise InvalidRunOptionsError(f"Invalid run options: {exc}") from exc
    return replace(options, target_format=config.target_format)


def _failure_message(exc: BaseException) -> str:
    return str(exc).strip() or type(exc).__name__


def _engine_call(
    engine: CodecEngine, data: bytes, options: RunOptions
) -> tuple[Callable[..., object], tuple[object, ...]]:
    if options.mode == "compress":
        return engine.compress, (data, options.target_format, options.quality)
    if options.mode == "resize":
        return engine.resize, (data, options.target_format, options.scale_percentage)
    return engine.convert, (data, options.target_format)


async def _drain(call: asyncio.Future[object]) -> None:
    """Wait for an abandoned call to settle and consume its outcome."""
    await asyncio.wait([call])
    if not call.cancelled():
        call.exception()


class TransformationDriver:
    """Drive each selected item through the job state machine.

    Items are processed one at a time: the engine is a single shared unit, so
    no two engine invocations are ever in flight for one driver. A failing
    item is recorded as ``FAILED`` and the batch continues.

    Parameters
    ----------
    engine : EngineHandle
        Lifecycle wrapper around the codec engine; must be ``READY`` at run time.
    job_state : JobStateMachine, optional
        Result set owner. A private one is created when omitted.
    timeout_seconds : float | None, default=None
        Per-item engine timeout. Expiry records that item as ``FAILED``.
    """

    def __init__(
        self,
        engine: EngineHandle,
        job_state: JobStateMachine | None = None,
        *,
        timeout_seconds: float | None = None,
    ) -> None:
        self._engine = engine
        self._state = job_state if job_state is not None else JobStateMachine()
        self._timeout = timeout_seconds
        self._listeners: list[ResultListener] = []
        self._running = False
        self._cancel_requested = False
        self._abandoned: asyncio.Future[object] | None = None

    @property
    def job_state(self) -> JobStateMachine:
        return self._state

    @property
    def running(self) -> bool:
        return self._running

    def add_listener(self, listener: ResultListener) -> None:
        """Call ``listener`` with every result after each transition."""
        self._listeners.append(listener)

    def request_cancel(self) -> None:
        """Stop scheduling items at the next item boundary."""
        if self._running:
            self._cancel_requested = True

    async def run(
        self, items: Iterable[SelectedItem], options: RunOptions
    ) -> RunReport:
        """Transform every item and return the full result set.

        Raises
        ------
        BatchInProgressError
            If another run on this driver has not finished.
        InvalidRunOptionsError
            If ``options`` fail validation.
        EngineUnavailableError
            If the codec engine is not loaded.

        All three are raised before the result set is touched. Engine
        failures on individual items are never raised.
        """
        if self._running:
            raise BatchInProgressError("A batch run is already in progress.")
        options = validate_run_options(options)
        engine = self._engine.require_ready()
        batch = tuple(items)

        self._running = True
        self._cancel_requested = False
        if self._abandoned is not None:
            # A call left behind by a cancelled run must settle first.
            try:
                await _drain(self._abandoned)
            except BaseException:
                self._running = False
                raise
            self._abandoned = None
        self._state.begin_run()
        try:
            for result in self._state.initialize(batch, options.target_format):
                self._notify(result)
            logger.info(
                "Starting %s run of %d item(s) to %s",
                options.mode,
                len(batch),
                options.target_format,
            )
            cancelled = False
            for item in batch:
                if self._cancel_requested:
                    cancelled = True
                    logger.info("Run cancelled before item %s", item.id)
                    break
                await self._process_item(engine, item, options)
            results = self._state.snapshot()
        finally:
            self._state.end_run()
            self._running = False
            self._cancel_requested = False

        logger.info(
            "Finished %s run: %d succeeded, %d failed",
            options.mode,
            sum(1 for r in results if r.status is TransformStatus.SUCCEEDED),
            sum(1 for r in results if r.status is TransformStatus.FAILED),
        )
        return RunReport(results=results, options=options, cancelled=cancelled)

    async def _process_item(
        self, engine: CodecEngine, item: SelectedItem, options: RunOptions
    ) -> None:
        self._notify(self._state.mark_running(item.id))
        data = item.source_bytes
        try:
            output = await self._invoke(engine, data, options)
            if not isinstance(output, (bytes, bytearray, memoryview)):
                raise EngineError(
                    f"engine returned {type(output).__name__} instead of bytes"
                )
        except asyncio.CancelledError:
            self._notify(self._state.mark_failed(item.id, "cancelled"))
            raise
        except Exception as exc:
            message = _failure_message(exc)
            logger.warning("Item %s (%s) failed: %s", item.id, item.source_name, message)
            result = self._state.mark_failed(item.id, message)
        else:
            result = self._state.mark_succeeded(item.id, bytes(output))
        self._notify(result)

    async def _invoke(
        self, engine: CodecEngine, data: bytes, options: RunOptions
    ) -> object:
        method, args = _engine_call(engine, data, options)
        if inspect.iscoroutinefunction(method):
            call: asyncio.Future[object] = asyncio.ensure_future(method(*args))
            threaded = False
        else:
            call = asyncio.ensure_future(asyncio.to_thread(method, *args))
            threaded = True

        try:
            if self._timeout is None:
                output = await asyncio.shield(call)
            else:
                output = await asyncio.wait_for(asyncio.shield(call), self._timeout)
        except TimeoutError:
            if not threaded:
                call.cancel()
            # A worker thread cannot be interrupted; wait for it so the
            # next item never overlaps with it.
            await _drain(call)
            raise EngineError(
                f"engine call timed out after {self._timeout:g}s"
            ) from None
        except asyncio.CancelledError:
            if not threaded:
                call.cancel()
            self._abandoned = call
            await asyncio.shield(_drain(call))
            self._abandoned = None
            raise
        if inspect.isawaitable(output):
            output = await output
        return output

    def _notify(self, result: TransformationResult) -> None:
        for listener in self._listeners:
            try:
                listener(result)
            except Exception:
                logger.exception("Result listener failed for item %s", result.item_id)
