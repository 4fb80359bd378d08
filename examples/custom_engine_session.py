#!/usr/bin/env python3
"""Drive a BatchSession with a custom async codec engine.

The engine below grayscales images with Pillow in a worker thread. Any object
with ``convert``, ``compress`` and ``resize`` methods (plain or ``async``)
satisfies the ``CodecEngine`` port.
"""

from __future__ import annotations

import asyncio
import io
from pathlib import Path

from PIL import Image, ImageOps

from image_batch.adapters.previews import DataUriPreviewFactory
from image_batch.application.options import RunOptions
from image_batch.batch import BatchSession, RawFile
from image_batch.engine import EngineHandle
from image_batch.errors import EngineError
from image_batch.infrastructure.archive import ZipArchiveWriter


class GrayscaleEngine:
    """Re-encode images as grayscale; ignores quality and scale."""

    def _gray(self, data: bytes, target_format: str) -> bytes:
        try:
            img = ImageOps.grayscale(Image.open(io.BytesIO(data)))
        except Exception as exc:
            raise EngineError(f"Failed to load image: {exc}") from exc
        buffer = io.BytesIO()
        img.save(buffer, format="JPEG" if target_format in {"jpg", "jpeg"} else target_format.upper())
        return buffer.getvalue()

    async def convert(self, data: bytes, target_format: str) -> bytes:
        return await asyncio.to_thread(self._gray, data, target_format)

    async def compress(self, data: bytes, target_format: str, quality: int) -> bytes:
        return await self.convert(data, target_format)

    async def resize(self, data: bytes, target_format: str, scale_percentage: int) -> bytes:
        return await self.convert(data, target_format)


async def main() -> None:
    """Grayscale two generated images plus one corrupt file."""
    sample = io.BytesIO()
    Image.new("RGB", (32, 32), (10, 120, 240)).save(sample, format="PNG")

    engine = EngineHandle(GrayscaleEngine)
    await engine.load()

    with BatchSession(engine, DataUriPreviewFactory(), ZipArchiveWriter()) as session:
        session.add_listener(lambda r: print(f"{r.source_name}: {r.status}"))
        session.add(
            [
                RawFile("blue.png", sample.getvalue(), "image/png"),
                RawFile("broken.png", b"\x00\x01", "image/png"),
                RawFile("blue-copy.png", sample.getvalue(), "image/png"),
            ]
        )
        await session.run(RunOptions(target_format="png"))
        stats = session.stats()
        print(f"{stats.completed_count}/{stats.total_count} succeeded")

        archive = session.package()
        output_path = Path("outputs") / archive.file_name
        output_path.parent.mkdir(exist_ok=True)
        output_path.write_bytes(archive.data)
        print(f"Saved {output_path} with {', '.join(archive.entry_names)}")


if __name__ == "__main__":
    asyncio.run(main())
