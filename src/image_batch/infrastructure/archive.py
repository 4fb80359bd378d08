"""Zip archive writer implementing the ``ArchiveWriter`` port."""

from __future__ import annotations

import zipfile
from collections.abc import Mapping
from io import BytesIO


class ZipArchiveWriter:
    """Default archive writer producing an in-memory zip blob."""

    def __init__(self, compression: int = zipfile.ZIP_DEFLATED) -> None:
        self.compression = compression

    def write(self, entries: Mapping[str, bytes]) -> bytes:
        """Write every entry into one zip archive.

        Parameters
        ----------
        entries : Mapping[str, bytes]
            Archive member name to payload. Names are used as-is.

        Returns
        -------
        bytes
            Complete zip archive.
        """
        buffer = BytesIO()
        with zipfile.ZipFile(buffer, mode="w", compression=self.compression) as archive:
            for name, data in entries.items():
                archive.writestr(name, data)
        return buffer.getvalue()
