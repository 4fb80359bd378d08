"""Pillow-backed codec engine implementing the ``CodecEngine`` port."""

from __future__ import annotations

import logging
from io import BytesIO

import PIL
from PIL import Image

from image_batch.errors import EngineError
from image_batch.types import (
    COMPRESS_FORMATS,
    CONVERT_FORMATS,
    FORMATS_BY_MODE,
    RESIZE_FORMATS,
)

logger = logging.getLogger(__name__)

PILLOW_FORMATS: dict[str, str] = {
    "jpg": "JPEG",
    "jpeg": "JPEG",
    "png": "PNG",
    "gif": "GIF",
    "webp": "WEBP",
    "bmp": "BMP",
    "ico": "ICO",
    "tiff": "TIFF",
    "pnm": "PPM",
}

_ACCEPTED_MODES: dict[str, tuple[str, ...]] = {
    "JPEG": ("L", "RGB", "CMYK"),
    "PNG": ("1", "L", "LA", "P", "RGB", "RGBA", "I", "I;16"),
    "GIF": ("1", "L", "P", "RGB", "RGBA"),
    "WEBP": ("RGB", "RGBA"),
    "BMP": ("1", "L", "P", "RGB", "RGBA"),
    "ICO": ("RGBA",),
    "TIFF": ("1", "L", "LA", "P", "RGB", "RGBA", "CMYK", "I", "F"),
    "PPM": ("1", "L", "RGB"),
}

_ALPHA_MODES = ("RGBA", "LA", "PA")


def _has_alpha(img: Image.Image) -> bool:
    return img.mode in _ALPHA_MODES or (
        img.mode == "P" and "transparency" in img.info
    )


def _flatten_on_white(img: Image.Image) -> Image.Image:
    rgba = img.convert("RGBA")
    background = Image.new("RGB", rgba.size, (255, 255, 255))
    background.paste(rgba, (0, 0), mask=rgba.split()[-1])
    return background


def _prepare_mode(img: Image.Image, pillow_format: str) -> Image.Image:
    """Convert ``img`` into a mode the target encoder accepts."""
    accepted = _ACCEPTED_MODES[pillow_format]
    if img.mode in accepted:
        return img
    if pillow_format == "JPEG" or pillow_format == "PPM":
        return _flatten_on_white(img) if _has_alpha(img) else img.convert("RGB")
    if pillow_format == "ICO":
        return img.convert("RGBA")
    return img.convert("RGBA" if _has_alpha(img) else "RGB")


def _resolve_format(target_format: str, allowed: tuple[str, ...], operation: str) -> str:
    normalized = target_format.strip().lower().lstrip(".")
    if normalized == "heic":
        raise EngineError(f"HEIC {operation} is not supported.")
    if normalized not in allowed:
        raise EngineError(
            f"Unsupported output format '{target_format}' for {operation}. "
            f"Supported: {', '.join(allowed)}"
        )
    return PILLOW_FORMATS[normalized]


def _decode(data: bytes) -> Image.Image:
    try:
        with Image.open(BytesIO(data)) as img:
            img.load()
            return img.copy()
    except Exception as exc:
        raise EngineError(f"Failed to load image: {exc}") from exc


def _encode(img: Image.Image, pillow_format: str, **save_kwargs: object) -> bytes:
    buffer = BytesIO()
    try:
        _prepare_mode(img, pillow_format).save(buffer, format=pillow_format, **save_kwargs)
    except Exception as exc:
        raise EngineError(f"Failed to encode {pillow_format} image: {exc}") from exc
    return buffer.getvalue()


def _clamp_percent(value: int) -> int:
    return max(1, min(100, int(value)))


def png_compress_level(quality: int) -> int:
    """Map quality 1-100 to zlib level 9-0 (higher quality, lighter compression)."""
    return round(9 - (_clamp_percent(quality) - 1) * 9 / 99)


class PillowCodecEngine:
    """Convert, compress and resize images with Pillow.

    Parameters
    ----------
    convert_jpeg_quality : int, default=85
        JPEG quality used in conversion and resize modes.
    """

    def __init__(self, convert_jpeg_quality: int = 85) -> None:
        self.convert_jpeg_quality = _clamp_percent(convert_jpeg_quality)

    def _default_save_kwargs(self, pillow_format: str) -> dict[str, object]:
        if pillow_format == "JPEG":
            return {"quality": self.convert_jpeg_quality}
        if pillow_format == "WEBP":
            return {"lossless": True}
        return {}

    def convert(self, data: bytes, target_format: str) -> bytes:
        """Re-encode ``data`` into ``target_format``."""
        pillow_format = _resolve_format(target_format, CONVERT_FORMATS, "conversion")
        img = _decode(data)
        return _encode(img, pillow_format, **self._default_save_kwargs(pillow_format))

    def compress(self, data: bytes, target_format: str, quality: int) -> bytes:
        """Re-encode ``data`` at ``quality`` (clamped to 1-100).

        JPEG and WebP use ``quality`` directly; PNG is lossless and maps it
        to the zlib compression level.
        """
        pillow_format = _resolve_format(target_format, COMPRESS_FORMATS, "compression")
        quality = _clamp_percent(quality)
        img = _decode(data)
        if pillow_format == "PNG":
            save_kwargs: dict[str, object] = {
                "compress_level": png_compress_level(quality)
            }
        else:
            save_kwargs = {"quality": quality}
        return _encode(img, pillow_format, **save_kwargs)

    def resize(self, data: bytes, target_format: str, scale_percentage: int) -> bytes:
        """Scale both dimensions by ``scale_percentage`` and re-encode."""
        pillow_format = _resolve_format(target_format, RESIZE_FORMATS, "resizing")
        factor = _clamp_percent(scale_percentage) / 100
        img = _decode(data)
        size = (max(1, int(img.width * factor)), max(1, int(img.height * factor)))
        resized = img.resize(size, Image.Resampling.LANCZOS) if size != img.size else img
        return _encode(resized, pillow_format, **self._default_save_kwargs(pillow_format))


def supported_formats() -> dict[str, tuple[str, ...]]:
    """Formats accepted by each mode that the installed Pillow can write."""
    Image.init()
    return {
        mode: tuple(fmt for fmt in formats if PILLOW_FORMATS[fmt] in Image.SAVE)
        for mode, formats in FORMATS_BY_MODE.items()
    }


def pillow_version() -> str:
    return PIL.__version__


def load_pillow_engine(convert_jpeg_quality: int = 85) -> PillowCodecEngine:
    """Register Pillow plugins and build the engine.

    Raises
    ------
    EngineError
        If the installed Pillow cannot write one of the core formats.
    """
    Image.init()
    missing = sorted(
        {PILLOW_FORMATS[fmt] for fmt in COMPRESS_FORMATS} - set(Image.SAVE)
    )
    if missing:
        raise EngineError(
            f"Pillow {pillow_version()} lacks encoders for: {', '.join(missing)}"
        )
    logger.info("Loaded Pillow %s codec engine", pillow_version())
    return PillowCodecEngine(convert_jpeg_quality=convert_jpeg_quality)
