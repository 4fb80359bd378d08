"""Selected input items and ownership of their preview handles."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from types import TracebackType
from typing import TypeAlias

from image_batch.application.ports import PreviewFactory, PreviewHandle
from image_batch.batch.state import JobStateMachine
from image_batch.errors import ResourceReleaseSkipped
from image_batch.formatting import file_type_label, format_file_size
from image_batch.types import ItemId

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawFile:
    """Raw file tuple supplied by a file-selection source."""

    name: str
    data: bytes
    mime: str = "application/octet-stream"


@dataclass(frozen=True)
class SelectedItem:
    """One selected input file.

    Parameters
    ----------
    id : str
        Opaque id generated at selection time.
    source_name : str
        Original file name.
    source_bytes : bytes
        Raw payload, owned by the registry until the item is removed.
    mime : str
        Declared mime type of the source.
    preview : PreviewHandle
        Display reference; released by the registry only.
    """

    id: ItemId
    source_name: str
    source_bytes: bytes
    mime: str
    preview: PreviewHandle

    @property
    def size(self) -> int:
        return len(self.source_bytes)


RawFileLike: TypeAlias = RawFile | tuple[str, bytes, str]


def _coerce_raw_file(raw: RawFileLike) -> RawFile:
    if isinstance(raw, RawFile):
        return raw
    name, data, mime = raw
    return RawFile(name=name, data=bytes(data), mime=mime)


def new_item_id() -> ItemId:
    """Return a fresh opaque item id."""
    return uuid.uuid4().hex


class ItemRegistry:
    """Ordered set of selected items.

    The registry is the only component that acquires or releases preview
    handles. Use it as a context manager (or call ``clear``) so every handle
    acquired is released on every exit path.
    """

    def __init__(
        self,
        preview_factory: PreviewFactory,
        job_state: JobStateMachine | None = None,
    ) -> None:
        self._preview_factory = preview_factory
        self._job_state = job_state
        self._items: dict[ItemId, SelectedItem] = {}

    def __enter__(self) -> ItemRegistry:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.clear()

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[SelectedItem]:
        return iter(tuple(self._items.values()))

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    def items(self) -> tuple[SelectedItem, ...]:
        """Return the current items in selection order."""
        return tuple(self._items.values())

    def get(self, item_id: ItemId) -> SelectedItem | None:
        return self._items.get(item_id)

    def add(self, raw_files: Iterable[RawFileLike]) -> list[SelectedItem]:
        """Append one item per raw file and invalidate previous results.

        Names are not deduplicated. If acquiring a preview fails part way,
        the handles acquired by this call are released before re-raising.
        """
        added: list[SelectedItem] = []
        try:
            for raw in raw_files:
                raw_file = _coerce_raw_file(raw)
                preview = self._preview_factory.acquire(
                    raw_file.name, raw_file.data, raw_file.mime
                )
                added.append(
                    SelectedItem(
                        id=new_item_id(),
                        source_name=raw_file.name,
                        source_bytes=raw_file.data,
                        mime=raw_file.mime,
                        preview=preview,
                    )
                )
        except BaseException:
            for item in added:
                self._release(item)
            raise

        for item in added:
            self._items[item.id] = item
            logger.debug(
                "Selected %s (%s, %s)",
                item.source_name,
                file_type_label(item.mime),
                format_file_size(item.size),
            )
        if self._job_state is not None:
            self._job_state.discard()
        logger.debug("Selected %d item(s); registry holds %d", len(added), len(self))
        return added

    def remove(self, item_id: ItemId) -> None:
        """Release the item's preview and drop it; unknown ids are ignored."""
        item = self._items.pop(item_id, None)
        if item is None:
            return
        self._release(item)

    def clear(self) -> None:
        """Release every preview and empty the registry."""
        items = tuple(self._items.values())
        self._items.clear()
        for item in items:
            self._release(item)

    def _release(self, item: SelectedItem) -> None:
        try:
            item.preview.release()
        except ResourceReleaseSkipped:
            logger.debug("Preview for item %s was already released", item.id)
