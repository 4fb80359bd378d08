"""In-memory preview handles implementing the preview ports."""

from __future__ import annotations

import base64
import itertools

from image_batch.errors import ResourceReleaseSkipped


class DataUriPreview:
    """``data:`` URI over the raw payload, dropped on release."""

    def __init__(self, handle_id: int, uri: str) -> None:
        self.handle_id = handle_id
        self._uri: str | None = uri

    @property
    def uri(self) -> str:
        if self._uri is None:
            raise ResourceReleaseSkipped(f"Preview {self.handle_id} was released.")
        return self._uri

    @property
    def released(self) -> bool:
        return self._uri is None

    def release(self) -> None:
        if self._uri is None:
            raise ResourceReleaseSkipped(
                f"Preview {self.handle_id} was already released."
            )
        self._uri = None


class DataUriPreviewFactory:
    """Create ``DataUriPreview`` handles and track how many are live."""

    def __init__(self) -> None:
        self._ids = itertools.count(1)
        self._issued: list[DataUriPreview] = []

    def acquire(self, name: str, data: bytes, mime: str) -> DataUriPreview:
        del name
        self._issued = [preview for preview in self._issued if not preview.released]
        encoded = base64.b64encode(data).decode("ascii")
        preview = DataUriPreview(next(self._ids), f"data:{mime};base64,{encoded}")
        self._issued.append(preview)
        return preview

    @property
    def live_count(self) -> int:
        """Number of issued handles not yet released."""
        return sum(1 for preview in self._issued if not preview.released)
