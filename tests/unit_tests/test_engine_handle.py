"""Unit tests for codec engine lifecycle."""

from __future__ import annotations

import asyncio

import pytest

from image_batch.engine import EngineHandle, EngineState
from image_batch.errors import EngineUnavailableError


class _Engine:
    def convert(self, data: bytes, target_format: str) -> bytes:
        return data

    def compress(self, data: bytes, target_format: str, quality: int) -> bytes:
        return data

    def resize(self, data: bytes, target_format: str, scale_percentage: int) -> bytes:
        return data


def test_unloaded_engine_is_not_ready() -> None:
    """Ensure require_ready fails before load."""
    handle = EngineHandle(_Engine)
    assert handle.state is EngineState.UNLOADED
    with pytest.raises(EngineUnavailableError):
        handle.require_ready()


@pytest.mark.asyncio
async def test_load_runs_loader_once() -> None:
    """Ensure concurrent loads share one loader invocation."""
    calls = 0

    async def loader() -> _Engine:
        nonlocal calls
        calls += 1
        await asyncio.sleep(0.01)
        return _Engine()

    handle = EngineHandle(loader)
    first, second = await asyncio.gather(handle.load(), handle.load())

    assert first is second
    assert calls == 1
    assert handle.state is EngineState.READY
    assert handle.require_ready() is first


@pytest.mark.asyncio
async def test_failed_load_can_be_retried() -> None:
    """Ensure a loader failure moves to FAILED and a later load retries."""
    attempts: list[int] = []

    def loader() -> _Engine:
        attempts.append(1)
        if len(attempts) == 1:
            raise RuntimeError("wasm init failed")
        return _Engine()

    handle = EngineHandle(loader)
    with pytest.raises(EngineUnavailableError, match="wasm init failed"):
        await handle.load()
    assert handle.state is EngineState.FAILED
    assert isinstance(handle.error, RuntimeError)
    with pytest.raises(EngineUnavailableError):
        handle.require_ready()

    await handle.load()

    assert handle.state is EngineState.READY
    assert handle.error is None


def test_ready_wraps_existing_engine() -> None:
    """Ensure a pre-built engine is immediately usable."""
    engine = _Engine()
    assert EngineHandle.ready(engine).require_ready() is engine
