#!/usr/bin/env python3
"""Architecture boundary checks."""

from __future__ import annotations

from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
PACKAGE = ROOT / "src/image_batch"


def _read(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def _assert_no_imports(path: Path, banned: list[str]) -> None:
    text = _read(path)
    for token in banned:
        if token in text:
            raise SystemExit(f"Architecture violation in {path}: found '{token}'")


def main() -> None:
    """Run repository architecture boundary checks."""
    _assert_no_imports(
        PACKAGE / "cli/cli.py",
        ["import PIL", "from PIL"],
    )

    # Batch core depends on ports only; concrete codecs and writers are injected.
    for path in (PACKAGE / "batch").glob("*.py"):
        _assert_no_imports(
            path,
            [
                "import typer",
                "from typer",
                "import PIL",
                "from PIL",
                "image_batch.adapters",
                "image_batch.infrastructure",
                "image_batch.cli",
            ],
        )

    for path in (PACKAGE / "application").glob("*.py"):
        _assert_no_imports(
            path,
            [
                "import typer",
                "from typer",
                "import PIL",
                "from PIL",
                "image_batch.cli",
            ],
        )

    print("Architecture checks passed.")


if __name__ == "__main__":
    main()
