"""Shared type aliases for batch modules."""

from __future__ import annotations

from collections.abc import Awaitable
from typing import Literal, TypeAlias

ItemId: TypeAlias = str
TransformMode: TypeAlias = Literal["convert", "compress", "resize"]
EngineOutput: TypeAlias = bytes | Awaitable[bytes]

CONVERT_FORMATS: tuple[str, ...] = (
    "jpg",
    "jpeg",
    "png",
    "gif",
    "webp",
    "bmp",
    "ico",
    "tiff",
    "pnm",
)
COMPRESS_FORMATS: tuple[str, ...] = ("jpg", "jpeg", "png", "webp")
RESIZE_FORMATS: tuple[str, ...] = ("jpg", "jpeg", "png", "webp", "gif", "bmp")

FORMATS_BY_MODE: dict[str, tuple[str, ...]] = {
    "convert": CONVERT_FORMATS,
    "compress": COMPRESS_FORMATS,
    "resize": RESIZE_FORMATS,
}
