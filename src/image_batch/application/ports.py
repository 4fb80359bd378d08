"""Application ports for clean architecture boundaries."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol

from image_batch.types import EngineOutput


class CodecEngine(Protocol):
    """Transform encoded image bytes.

    Methods may be plain functions or coroutines; both are accepted by the
    driver. Failures are reported by raising.
    """

    def convert(self, data: bytes, target_format: str) -> EngineOutput:
        """Re-encode ``data`` into ``target_format``."""

    def compress(self, data: bytes, target_format: str, quality: int) -> EngineOutput:
        """Re-encode ``data`` into ``target_format`` at ``quality`` (1-100)."""

    def resize(
        self, data: bytes, target_format: str, scale_percentage: int
    ) -> EngineOutput:
        """Scale ``data`` by ``scale_percentage`` (1-100) and re-encode."""


class ArchiveWriter(Protocol):
    """Bundle named payloads into one downloadable blob."""

    def write(self, entries: Mapping[str, bytes]) -> bytes:
        """Return archive bytes containing every entry."""


class PreviewHandle(Protocol):
    """Transient display reference for one selected item."""

    @property
    def uri(self) -> str:
        """Reference the presentation layer can display."""

    @property
    def released(self) -> bool:
        """Whether ``release`` already ran."""

    def release(self) -> None:
        """Free the preview; raise ``ResourceReleaseSkipped`` when repeated."""


class PreviewFactory(Protocol):
    """Acquire preview handles for newly selected items."""

    def acquire(self, name: str, data: bytes, mime: str) -> PreviewHandle:
        """Create a preview handle for raw file content."""
