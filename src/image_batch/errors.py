"""Error taxonomy for batch image transformation."""

from __future__ import annotations


class ImageBatchError(Exception):
    """Base error for the batch orchestrator.

    Attributes
    ----------
    exit_code : int
        Process exit code used by the CLI when this error ends a command.
    """

    exit_code: int = 1


class EngineUnavailableError(ImageBatchError):
    """A run was attempted before the codec engine finished loading."""

    exit_code = 3


class EngineError(ImageBatchError):
    """Codec engine rejected an input (malformed data, unsupported format)."""


class EmptyResultSetError(ImageBatchError):
    """Packaging was attempted with no succeeded results."""

    exit_code = 4


class BatchInProgressError(ImageBatchError):
    """A run was started while another run on the same session is active."""

    exit_code = 5


class InvalidRunOptionsError(ImageBatchError):
    """Run options failed validation."""

    exit_code = 2


class InvalidTransitionError(ImageBatchError):
    """A result was asked to move to a state its current state cannot reach."""


class ResourceReleaseSkipped(ImageBatchError):
    """A preview handle was released more than once.

    Internal only: the registry absorbs it as a no-op.
    """
