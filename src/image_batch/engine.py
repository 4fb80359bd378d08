"""Codec engine lifecycle.

The engine is loaded once, asynchronously, before the first run:

    Unloaded -> Loading -> Ready
                        -> Failed -> Loading (retry)

``EngineHandle.require_ready`` is the only way the driver obtains the engine,
so a run attempted before ``Ready`` fails fast with ``EngineUnavailableError``.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from enum import StrEnum
from typing import TypeAlias

from image_batch.application.ports import CodecEngine
from image_batch.errors import EngineUnavailableError

logger = logging.getLogger(__name__)

EngineLoader: TypeAlias = Callable[[], CodecEngine | Awaitable[CodecEngine]]


class EngineState(StrEnum):
    """Load state of the shared codec engine."""

    UNLOADED = "unloaded"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class EngineHandle:
    """Owns one codec engine instance and its load state."""

    def __init__(self, loader: EngineLoader) -> None:
        self._loader = loader
        self._engine: CodecEngine | None = None
        self._state = EngineState.UNLOADED
        self._error: BaseException | None = None
        self._lock = asyncio.Lock()

    @classmethod
    def ready(cls, engine: CodecEngine) -> EngineHandle:
        """Wrap an already constructed engine."""
        handle = cls(lambda: engine)
        handle._engine = engine
        handle._state = EngineState.READY
        return handle

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def error(self) -> BaseException | None:
        """Exception from the last failed load, if any."""
        return self._error

    async def load(self) -> CodecEngine:
        """Load the engine once; concurrent callers share the same load.

        Raises
        ------
        EngineUnavailableError
            If the loader fails. The handle moves to ``FAILED`` and a later
            ``load`` call retries.
        """
        if self._engine is not None:
            return self._engine
        async with self._lock:
            if self._engine is not None:
                return self._engine
            self._state = EngineState.LOADING
            try:
                loaded = self._loader()
                if inspect.isawaitable(loaded):
                    loaded = await loaded
            except Exception as exc:
                self._state = EngineState.FAILED
                self._error = exc
                logger.exception("Codec engine failed to load")
                raise EngineUnavailableError(f"Codec engine failed to load: {exc}") from exc
            self._engine = loaded
            self._error = None
            self._state = EngineState.READY
            logger.info("Codec engine ready: %s", type(loaded).__name__)
            return loaded

    def require_ready(self) -> CodecEngine:
        """Return the engine or raise if it is not loaded yet."""
        if self._state is not EngineState.READY or self._engine is None:
            raise EngineUnavailableError(
                f"Codec engine is not ready (state: {self._state})."
            )
        return self._engine
