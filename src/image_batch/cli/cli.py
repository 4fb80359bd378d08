#!/usr/bin/env python3
"""
image_batch.cli.cli

Typer-based CLI for converting, compressing and resizing batches of images.

Every command transforms its inputs one at a time, reports each item as it
finishes, and writes a single deliverable: a zip archive of the successful
outputs (or the lone output file with ``--single-file-passthrough``).

Examples
--------
Install core + CLI:

    uv pip install -e ".[cli]"

Convert a folder of photos to WebP:

    image-batch convert photos/*.jpg --to webp -o out/
"""

from __future__ import annotations

import sys
import traceback
from collections.abc import Callable
from pathlib import Path

import typer

from image_batch.application.results import BatchOutcome
from image_batch.batch.archive import output_name_for
from image_batch.batch.state import TransformationResult, TransformStatus
from image_batch.batch.stats import item_ratio_percent
from image_batch.errors import EmptyResultSetError, ImageBatchError
from image_batch.formatting import format_file_size, format_ratio

app = typer.Typer(
    name="image-batch",
    help="Convert, compress or resize batches of images into one archive.",
    no_args_is_help=True,
)

INPUTS_HELP = "Image files to transform, in order."
OUTPUT_HELP = "Directory (archive name is derived) or file path for the deliverable."
PASSTHROUGH_HELP = (
    "Write a lone successful output as-is instead of zipping it "
    "(defaults to IMAGE_BATCH_SINGLE_FILE_PASSTHROUGH)."
)
STRICT_HELP = "Exit non-zero when any item failed."


def _print_error(exc: Exception, debug: bool) -> int:
    """Print a user-friendly batch error.

    Parameters
    ----------
    exc : Exception
        Exception raised while running the batch.
    debug : bool
        Whether to include traceback details.

    Returns
    -------
    int
        Process exit code.
    """
    typer.echo(f"✗ {type(exc).__name__}: {exc}", err=True)
    if debug:
        typer.echo("\nTraceback:", err=True)
        typer.echo("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)), err=True)
    code = getattr(exc, "exit_code", None)
    if isinstance(code, int) and code > 0:
        return code
    return 1


def _echo_result(result: TransformationResult) -> None:
    """Print one line per item once it reaches a terminal state."""
    if result.status is TransformStatus.SUCCEEDED:
        line = (
            f"✓ {result.source_name} -> "
            f"{output_name_for(result.source_name, result.output_format)}  "
            f"{format_file_size(result.original_size)} -> "
            f"{format_file_size(result.output_size)}"
        )
        ratio = format_ratio(item_ratio_percent(result))
        typer.echo(f"{line} ({ratio})" if ratio else line)
    elif result.status is TransformStatus.FAILED:
        typer.echo(f"✗ {result.source_name}: {result.error_message}", err=True)


def _finish(outcome: BatchOutcome, *, strict: bool, debug: bool) -> None:
    """Print the summary and map the outcome to an exit code."""
    stats = outcome.stats
    summary = (
        f"{stats.completed_count}/{stats.total_count} succeeded, "
        f"{stats.failed_count} failed; "
        f"{format_file_size(stats.total_original_size)} -> "
        f"{format_file_size(stats.total_output_size)}"
    )
    ratio = format_ratio(stats.compression_ratio_percent) if stats.completed_count else ""
    typer.echo(f"{summary} ({ratio})" if ratio else summary)
    if outcome.report.cancelled:
        typer.echo("Run cancelled; remaining items were not processed.", err=True)

    if outcome.archive_path is None:
        exc = EmptyResultSetError("No image was transformed successfully; nothing written.")
        raise typer.Exit(code=_print_error(exc, debug))
    typer.echo(f"✓ Saved: {outcome.archive_path}")
    if strict and stats.failed_count:
        raise typer.Exit(code=1)


def _run_command(ctx: typer.Context, call: Callable[[], BatchOutcome], strict: bool) -> None:
    debug: bool = bool(ctx.obj.get("debug", False))
    try:
        outcome = call()
    except (ImageBatchError, OSError) as exc:
        raise typer.Exit(code=_print_error(exc, debug))
    except Exception as exc:
        # Unexpected crash: still show a clean message; debug prints traceback.
        raise typer.Exit(code=_print_error(exc, debug))
    _finish(outcome, strict=strict, debug=debug)


# -----------------------------
# Global options
# -----------------------------
@app.callback()
def _main(
    ctx: typer.Context,
    debug: bool = typer.Option(False, "--debug", help="Show full tracebacks on error."),
    log_level: str | None = typer.Option(
        None, "--log-level", help="Logging level (defaults to IMAGE_BATCH_LOG_LEVEL)."
    ),
) -> None:
    """Initialize shared CLI state and logging.

    Parameters
    ----------
    ctx : typer.Context
        Typer context object used to store shared state.
    debug : bool, default=False
        Whether to enable debug error output.
    log_level : str, optional
        Root logging level override.
    """
    from image_batch.config import configure_logging

    configure_logging("DEBUG" if debug and log_level is None else log_level)
    ctx.obj = {"debug": debug}


# -----------------------------
# Commands
# -----------------------------
@app.command("convert")
def convert_cmd(
    ctx: typer.Context,
    inputs: list[Path] = typer.Argument(
        ..., exists=True, dir_okay=False, readable=True, help=INPUTS_HELP
    ),
    output_path: Path = typer.Option(Path("."), "--output", "-o", help=OUTPUT_HELP),
    target_format: str | None = typer.Option(
        None, "--to", help="Output format, e.g. png, jpg, webp, gif, bmp, ico, tiff, pnm."
    ),
    single_file_passthrough: bool | None = typer.Option(
        None,
        "--single-file-passthrough/--no-single-file-passthrough",
        help=PASSTHROUGH_HELP,
    ),
    strict: bool = typer.Option(False, "--strict", help=STRICT_HELP),
) -> None:
    """Convert images to another format."""
    from image_batch.api import convert_files

    _run_command(
        ctx,
        lambda: convert_files(
            inputs,
            output_path,
            target_format,
            single_file_passthrough=single_file_passthrough,
            listener=_echo_result,
        ),
        strict,
    )


@app.command("compress")
def compress_cmd(
    ctx: typer.Context,
    inputs: list[Path] = typer.Argument(
        ..., exists=True, dir_okay=False, readable=True, help=INPUTS_HELP
    ),
    output_path: Path = typer.Option(Path("."), "--output", "-o", help=OUTPUT_HELP),
    quality: int | None = typer.Option(
        None, "--quality", "-q", help="Encoder quality from 1 (smallest) to 100 (best)."
    ),
    target_format: str | None = typer.Option(
        None, "--to", help="Output format: jpg, jpeg, png or webp."
    ),
    single_file_passthrough: bool | None = typer.Option(
        None,
        "--single-file-passthrough/--no-single-file-passthrough",
        help=PASSTHROUGH_HELP,
    ),
    strict: bool = typer.Option(False, "--strict", help=STRICT_HELP),
) -> None:
    """Re-encode images at a quality level to save space."""
    from image_batch.api import compress_files

    _run_command(
        ctx,
        lambda: compress_files(
            inputs,
            output_path,
            target_format,
            quality,
            single_file_passthrough=single_file_passthrough,
            listener=_echo_result,
        ),
        strict,
    )


@app.command("resize")
def resize_cmd(
    ctx: typer.Context,
    inputs: list[Path] = typer.Argument(
        ..., exists=True, dir_okay=False, readable=True, help=INPUTS_HELP
    ),
    output_path: Path = typer.Option(Path("."), "--output", "-o", help=OUTPUT_HELP),
    scale_percentage: int | None = typer.Option(
        None, "--scale", help="Target size as a percentage of the original dimensions."
    ),
    target_format: str | None = typer.Option(
        None, "--to", help="Output format: jpg, jpeg, png, webp, gif or bmp."
    ),
    single_file_passthrough: bool | None = typer.Option(
        None,
        "--single-file-passthrough/--no-single-file-passthrough",
        help=PASSTHROUGH_HELP,
    ),
    strict: bool = typer.Option(False, "--strict", help=STRICT_HELP),
) -> None:
    """Scale images by a percentage of their dimensions."""
    from image_batch.api import resize_files

    _run_command(
        ctx,
        lambda: resize_files(
            inputs,
            output_path,
            scale_percentage,
            target_format,
            single_file_passthrough=single_file_passthrough,
            listener=_echo_result,
        ),
        strict,
    )


@app.command("formats")
def formats_cmd() -> None:
    """Print the output formats each command accepts with the installed Pillow."""
    from image_batch.adapters.codecs import pillow_version, supported_formats

    typer.echo(f"Python: {sys.version.split()[0]}")
    typer.echo(f"Pillow: {pillow_version()}")
    for mode, formats in supported_formats().items():
        typer.echo(f"{mode}: {', '.join(formats) or '<none>'}")


if __name__ == "__main__":
    app()
