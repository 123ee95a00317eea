"""Error types and user-facing error formatting for ibtools.

Every failure in generation or comparison aborts the whole call and is
surfaced as one of the ``IBToolsError`` subclasses below.  Each carries
the stage that failed and, where known, the offending path or value so
the CLI can print a single descriptive message.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path


class IBToolsError(Exception):
    """Base class for all ibtools failures.

    Args:
        message: Human-readable description.
        stage: Pipeline stage that failed (e.g. ``"classify"``).
        path: Offending path or value, if any.
    """

    error_type = "error"

    def __init__(
        self,
        message: str,
        *,
        stage: str | None = None,
        path: Path | str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.stage = stage
        self.path = str(path) if path is not None else None


class InputNotFoundError(IBToolsError):
    """A manifest, dump, or folder is missing or of the wrong kind."""

    error_type = "input_not_found"


class MalformedInputError(IBToolsError):
    """Input exists but cannot be interpreted."""

    error_type = "malformed_input"


class InvalidIdentifierError(IBToolsError):
    """The target instance identifier is not a well-formed UUID."""

    error_type = "invalid_identifier"


class SyncIOError(IBToolsError):
    """A read, write, or copy failed while processing."""

    error_type = "io_failure"


@contextmanager
def io_stage(stage: str, path: Path | str | None = None) -> Iterator[None]:
    """Wrap ``OSError`` raised inside the block into ``SyncIOError``.

    ``IBToolsError`` instances pass through untouched.
    """
    try:
        yield
    except OSError as exc:
        target = path if path is not None else exc.filename
        raise SyncIOError(
            f"{exc.strerror or exc}", stage=stage, path=target
        ) from exc


# ---------------------------------------------------------------------------
# User-facing formatting
# ---------------------------------------------------------------------------

_CORRECTIVE_ACTIONS: dict[str, str] = {
    "input_not_found": "Check that the path exists and is of the expected kind (file or folder).",
    "malformed_input": "Verify the file was produced by a supported tool version and is not truncated.",
    "invalid_identifier": "Pass the infobase identifier as a UUID, e.g. 11111111-1111-1111-1111-111111111111.",
    "io_failure": "Check file permissions and free disk space, then re-run the whole command.",
    "config_error": "Fix the configuration value or the corresponding environment variable.",
    "error": "Re-run with --debug for details.",
}


def format_error(error: IBToolsError) -> str:
    """Render *error* as ``Error (type) [stage]: message`` plus an action line."""
    header = f"Error ({error.error_type})"
    if error.stage:
        header += f" [{error.stage}]"
    text = f"{header}: {error.message}"
    if error.path and error.path not in error.message:
        text += f" ({error.path})"
    action = _CORRECTIVE_ACTIONS.get(
        error.error_type, _CORRECTIVE_ACTIONS["error"]
    )
    return f"{text}\n\nAction: {action}"


def format_config_error(message: str) -> str:
    """Render a configuration ``ValueError`` the same way as ``format_error``."""
    return (
        f"Error (config_error): {message}\n\n"
        f"Action: {_CORRECTIVE_ACTIONS['config_error']}"
    )
