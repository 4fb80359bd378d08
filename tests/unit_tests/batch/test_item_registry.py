"""Unit tests for item selection and preview ownership."""

from __future__ import annotations

import logging

import pytest

from image_batch.adapters.previews import DataUriPreviewFactory
from image_batch.batch.registry import ItemRegistry, RawFile
from image_batch.batch.state import JobStateMachine


class _FlakyFactory:
    """Preview factory that fails on a given file name."""

    def __init__(self, fail_on: str) -> None:
        self.fail_on = fail_on
        self.inner = DataUriPreviewFactory()

    def acquire(self, name: str, data: bytes, mime: str):
        if name == self.fail_on:
            raise OSError(f"cannot preview {name}")
        return self.inner.acquire(name, data, mime)


def test_add_appends_items_with_unique_ids() -> None:
    """Ensure added items keep order, payload and get fresh ids."""
    registry = ItemRegistry(DataUriPreviewFactory())

    added = registry.add(
        [
            RawFile("a.png", b"aaa", "image/png"),
            ("b.jpg", b"bb", "image/jpeg"),
        ]
    )

    assert [item.source_name for item in registry] == ["a.png", "b.jpg"]
    assert len({item.id for item in added}) == 2
    assert added[0].size == 3
    assert added[1].mime == "image/jpeg"
    assert added[0].preview.uri.startswith("data:image/png;base64,")


def test_duplicate_names_are_kept() -> None:
    """Ensure names are not deduplicated at selection time."""
    registry = ItemRegistry(DataUriPreviewFactory())
    registry.add([RawFile("a.png", b"1"), RawFile("a.png", b"2")])
    assert len(registry) == 2


def test_remove_releases_preview_and_ignores_unknown_ids() -> None:
    """Ensure removal frees the handle and absent ids are a no-op."""
    factory = DataUriPreviewFactory()
    registry = ItemRegistry(factory)
    (item,) = registry.add([RawFile("a.png", b"1")])

    registry.remove(item.id)
    registry.remove(item.id)
    registry.remove("never-added")

    assert item.id not in registry
    assert item.preview.released
    assert factory.live_count == 0


def test_clear_releases_every_preview() -> None:
    """Ensure clear empties the registry and frees all handles."""
    factory = DataUriPreviewFactory()
    registry = ItemRegistry(factory)
    registry.add([RawFile("a.png", b"1"), RawFile("b.png", b"2")])

    registry.clear()

    assert len(registry) == 0
    assert factory.live_count == 0


def test_already_released_preview_is_tolerated() -> None:
    """Ensure a handle released elsewhere does not break removal."""
    factory = DataUriPreviewFactory()
    registry = ItemRegistry(factory)
    (item,) = registry.add([RawFile("a.png", b"1")])
    item.preview.release()

    registry.remove(item.id)

    assert len(registry) == 0


def test_context_manager_releases_on_error() -> None:
    """Ensure leaving the registry scope releases handles even on errors."""
    factory = DataUriPreviewFactory()
    with pytest.raises(RuntimeError):
        with ItemRegistry(factory) as registry:
            registry.add([RawFile("a.png", b"1")])
            raise RuntimeError("boom")
    assert factory.live_count == 0


def test_partial_preview_failure_releases_acquired_handles() -> None:
    """Ensure a failing acquisition leaves no leaked handle or partial add."""
    factory = _FlakyFactory(fail_on="b.png")
    registry = ItemRegistry(factory)

    with pytest.raises(OSError):
        registry.add([RawFile("a.png", b"1"), RawFile("b.png", b"2")])

    assert len(registry) == 0
    assert factory.inner.live_count == 0


def test_add_discards_previous_results() -> None:
    """Ensure a new selection invalidates the current result set."""
    state = JobStateMachine()
    registry = ItemRegistry(DataUriPreviewFactory(), job_state=state)
    first = registry.add([RawFile("a.png", b"1")])
    state.initialize(first, "png")

    registry.add([RawFile("b.png", b"2")])

    assert state.snapshot() == ()


def test_add_logs_type_label_and_size(caplog: pytest.LogCaptureFixture) -> None:
    """Ensure each selected file is logged with its type label and size."""
    registry = ItemRegistry(DataUriPreviewFactory())

    with caplog.at_level(logging.DEBUG, logger="image_batch.batch.registry"):
        (item,) = registry.add([RawFile("a.png", b"x" * 1536, "image/png")])

    assert item.size == 1536
    assert "Selected a.png (PNG, 1.5 KB)" in caplog.text
