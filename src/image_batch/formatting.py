"""Display helpers shared by presentation layers."""

from __future__ import annotations

_SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


def format_file_size(size: int) -> str:
    """Human-readable byte count, e.g. ``1536`` -> ``1.5 KB``."""
    if size <= 0:
        return "0 Bytes"
    scaled = float(size)
    index = 0
    while scaled >= 1024 and index < len(_SIZE_UNITS) - 1:
        scaled /= 1024
        index += 1
    value = f"{scaled:.2f}".rstrip("0").rstrip(".")
    return f"{value} {_SIZE_UNITS[index]}"


def file_type_label(mime: str) -> str:
    """Upper-cased mime subtype (``image/png`` -> ``PNG``) or ``Unknown``."""
    _, _, subtype = mime.partition("/")
    return subtype.upper() if subtype else "Unknown"


def format_ratio(ratio_percent: int | None) -> str:
    if ratio_percent is None:
        return ""
    if ratio_percent >= 0:
        return f"{ratio_percent}% smaller"
    return f"{-ratio_percent}% larger"
