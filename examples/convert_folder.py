#!/usr/bin/env python3
"""Convert every image in a folder and report per-item results."""

from __future__ import annotations

import sys
from pathlib import Path

from image_batch.api import convert_files
from image_batch.batch.state import TransformationResult, TransformStatus
from image_batch.batch.stats import item_ratio_percent
from image_batch.formatting import format_file_size, format_ratio

IMAGE_SUFFIXES = {".png", ".jpg", ".jpeg", ".gif", ".webp", ".bmp", ".tif", ".tiff"}


def _print_result(result: TransformationResult) -> None:
    if result.status is TransformStatus.SUCCEEDED:
        ratio = format_ratio(item_ratio_percent(result))
        print(
            f"  ok   {result.source_name}: {format_file_size(result.original_size)} -> "
            f"{format_file_size(result.output_size)} {ratio}"
        )
    elif result.status is TransformStatus.FAILED:
        print(f"  fail {result.source_name}: {result.error_message}")


def main() -> None:
    """Usage: convert_folder.py SOURCE_DIR [FORMAT] [OUTPUT_DIR]."""
    if len(sys.argv) < 2:
        raise SystemExit(main.__doc__)
    source_dir = Path(sys.argv[1])
    target_format = sys.argv[2] if len(sys.argv) > 2 else "webp"
    output_dir = Path(sys.argv[3]) if len(sys.argv) > 3 else Path("outputs")
    output_dir.mkdir(exist_ok=True)

    paths = sorted(p for p in source_dir.iterdir() if p.suffix.lower() in IMAGE_SUFFIXES)
    print(f"Converting {len(paths)} file(s) to {target_format}")
    outcome = convert_files(paths, output_dir, target_format, listener=_print_result)

    stats = outcome.stats
    print(f"{stats.completed_count} succeeded, {stats.failed_count} failed")
    if outcome.archive_path is None:
        raise SystemExit("FAIL: no image was converted.")
    print(f"Archive: {outcome.archive_path}")


if __name__ == "__main__":
    main()
