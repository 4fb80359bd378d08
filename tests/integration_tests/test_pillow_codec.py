"""Integration tests for the Pillow codec engine."""

from __future__ import annotations

import io
import zipfile

import pytest
from PIL import Image

from image_batch.adapters.codecs import (
    PillowCodecEngine,
    load_pillow_engine,
    png_compress_level,
    supported_formats,
)
from image_batch.adapters.previews import DataUriPreviewFactory
from image_batch.application.options import RunOptions
from image_batch.application.use_cases import run_batch
from image_batch.batch import BatchSession
from image_batch.batch.registry import RawFile
from image_batch.batch.state import TransformStatus
from image_batch.engine import EngineHandle
from image_batch.errors import EngineError
from image_batch.infrastructure.archive import ZipArchiveWriter


def _image_bytes(fmt: str = "PNG", mode: str = "RGB", size: tuple[int, int] = (64, 48)) -> bytes:
    img = Image.new(mode, size)
    # Gradient so lossy encoders have something to discard.
    for x in range(size[0]):
        for y in range(size[1]):
            value = (x * 4 + y * 3) % 256
            if mode == "RGBA":
                img.putpixel((x, y), (value, 255 - value, (x * y) % 256, 128))
            else:
                img.putpixel((x, y), (value, 255 - value, (x * y) % 256))
    buffer = io.BytesIO()
    img.save(buffer, format=fmt)
    return buffer.getvalue()


def _open(data: bytes) -> Image.Image:
    img = Image.open(io.BytesIO(data))
    img.load()
    return img


@pytest.mark.parametrize(
    ("target", "pillow_format"),
    [
        ("jpg", "JPEG"),
        ("jpeg", "JPEG"),
        ("png", "PNG"),
        ("gif", "GIF"),
        ("webp", "WEBP"),
        ("bmp", "BMP"),
        ("ico", "ICO"),
        ("tiff", "TIFF"),
        ("pnm", "PPM"),
    ],
)
def test_convert_to_each_format(target: str, pillow_format: str) -> None:
    """Ensure every conversion target produces a decodable image."""
    output = PillowCodecEngine().convert(_image_bytes(), target)
    assert _open(output).format == pillow_format


def test_convert_flattens_alpha_for_jpeg() -> None:
    """Ensure transparent sources are flattened when the target has no alpha."""
    output = PillowCodecEngine().convert(_image_bytes(mode="RGBA"), "jpg")
    assert _open(output).mode == "RGB"


def test_webp_conversion_keeps_alpha() -> None:
    """Ensure WebP conversion preserves transparency."""
    output = PillowCodecEngine().convert(_image_bytes(mode="RGBA"), "webp")
    assert _open(output).mode == "RGBA"


@pytest.mark.parametrize("target", ["heic", "svg", "exe"])
def test_unsupported_target_raises_engine_error(target: str) -> None:
    """Ensure unknown output formats are rejected by the engine."""
    with pytest.raises(EngineError):
        PillowCodecEngine().convert(_image_bytes(), target)


def test_malformed_input_raises_engine_error() -> None:
    """Ensure undecodable bytes raise a load failure."""
    with pytest.raises(EngineError, match="Failed to load image"):
        PillowCodecEngine().convert(b"definitely not an image", "png")


def test_lower_jpeg_quality_gives_smaller_output() -> None:
    """Ensure quality drives the JPEG encoder."""
    engine = PillowCodecEngine()
    source = _image_bytes(size=(128, 128))
    assert len(engine.compress(source, "jpg", 10)) < len(engine.compress(source, "jpg", 95))


def test_png_compression_is_lossless() -> None:
    """Ensure PNG compression never changes pixels."""
    source = _image_bytes()
    output = PillowCodecEngine().compress(source, "png", 1)
    assert _open(output).tobytes() == _open(source).tobytes()


def test_png_compress_level_mapping() -> None:
    """Ensure quality maps to zlib level inversely and is clamped."""
    assert png_compress_level(1) == 9
    assert png_compress_level(100) == 0
    assert png_compress_level(500) == 0
    assert png_compress_level(-3) == 9


def test_compress_rejects_non_compressible_format() -> None:
    """Ensure compression refuses formats without a quality knob."""
    with pytest.raises(EngineError):
        PillowCodecEngine().compress(_image_bytes(), "gif", 50)


def test_resize_scales_dimensions() -> None:
    """Ensure resize scales both sides and never goes below one pixel."""
    engine = PillowCodecEngine()
    assert _open(engine.resize(_image_bytes(size=(64, 48)), "png", 50)).size == (32, 24)
    assert _open(engine.resize(_image_bytes(size=(10, 10)), "png", 1)).size == (1, 1)


def test_supported_formats_cover_core_modes() -> None:
    """Ensure the installed Pillow writes the formats each mode needs."""
    formats = supported_formats()
    assert {"jpg", "png", "webp"} <= set(formats["compress"])
    assert "png" in formats["convert"]


@pytest.mark.asyncio
async def test_batch_with_real_engine() -> None:
    """Ensure a real batch isolates a corrupt file and zips the rest."""
    outcome = await run_batch(
        files=[
            RawFile("a.png", _image_bytes(), "image/png"),
            RawFile("b.png", b"corrupt", "image/png"),
            RawFile("c.jpg", _image_bytes("JPEG"), "image/jpeg"),
        ],
        options=RunOptions(target_format="webp"),
    )

    assert [r.status for r in outcome.report.results] == [
        TransformStatus.SUCCEEDED,
        TransformStatus.FAILED,
        TransformStatus.SUCCEEDED,
    ]
    assert outcome.archive is not None
    with zipfile.ZipFile(io.BytesIO(outcome.archive.data)) as bundle:
        assert bundle.namelist() == ["a.webp", "c.webp"]
        assert _open(bundle.read("c.webp")).format == "WEBP"


def test_load_pillow_engine() -> None:
    """Ensure the loader returns a configured engine."""
    engine = load_pillow_engine(convert_jpeg_quality=70)
    assert engine.convert_jpeg_quality == 70


@pytest.mark.asyncio
async def test_quality_changes_sizes_not_outcomes() -> None:
    """Ensure quality 1 and 100 give the same statuses with growing output size."""
    files = [
        RawFile("a.png", _image_bytes(size=(128, 128)), "image/png"),
        RawFile("b.png", b"corrupt", "image/png"),
    ]
    runs = []
    for quality in (1, 100):
        with BatchSession(
            EngineHandle.ready(PillowCodecEngine()), DataUriPreviewFactory(), ZipArchiveWriter()
        ) as session:
            session.add(files)
            report = await session.run(
                RunOptions(target_format="jpg", mode="compress", quality=quality)
            )
            runs.append(([r.status for r in report.results], session.stats()))

    (low_statuses, low_stats), (high_statuses, high_stats) = runs
    assert low_statuses == high_statuses == [TransformStatus.SUCCEEDED, TransformStatus.FAILED]
    assert low_stats.total_original_size == high_stats.total_original_size
    assert low_stats.total_output_size <= high_stats.total_output_size
