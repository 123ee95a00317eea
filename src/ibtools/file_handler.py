"""File handler module: path validation, encoding-aware reads, atomic writes.

Provides the filesystem plumbing shared by the sync modules and the CLI.
Writes go through a temporary file in the destination folder followed by
``os.replace()`` so readers never observe a half-written index or dump.
"""

from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path

from charset_normalizer import from_bytes

from ibtools.errors import InputNotFoundError

# =============================================================================
# Path Validation
# =============================================================================


def resolve_path(path_str: str | Path, base_dir: Path | None = None) -> Path:
    """Resolve *path_str* against *base_dir* (default: CWD)."""
    path = Path(path_str).expanduser()
    if not path.is_absolute():
        path = (base_dir or Path.cwd()) / path
    return path.resolve()


def validate_folder(
    path_str: str | Path, what: str = "Folder", base_dir: Path | None = None
) -> Path:
    """Validate that *path_str* names an existing directory.

    Raises:
        InputNotFoundError: If the path is missing or is not a directory.
    """
    resolved = resolve_path(path_str, base_dir)
    if not resolved.is_dir():
        raise InputNotFoundError(
            f"{what} '{path_str}' does not exist or is not a folder",
            stage="validate",
            path=resolved,
        )
    return resolved


def validate_file(
    path_str: str | Path, what: str = "File", base_dir: Path | None = None
) -> Path:
    """Validate that *path_str* names an existing regular file.

    Raises:
        InputNotFoundError: If the path is missing or is a directory.
    """
    resolved = resolve_path(path_str, base_dir)
    if not resolved.is_file():
        raise InputNotFoundError(
            f"{what} '{path_str}' does not exist or is not a file",
            stage="validate",
            path=resolved,
        )
    return resolved


# =============================================================================
# Reading
# =============================================================================


def read_text_with_encoding(path: Path) -> tuple[str, str]:
    """Read a small text file with automatic encoding detection.

    Empty files and files whose encoding cannot be detected decode as
    UTF-8.  A leading BOM is dropped.

    Returns:
        Tuple of (content_string, detected_encoding).
    """
    raw = path.read_bytes()
    if not raw:
        return ("", "utf-8")

    result = from_bytes(raw).best()
    if result is None:
        encoding = "utf-8"
        content = raw.decode(encoding, errors="replace")
    else:
        encoding = result.encoding
        if encoding == "ascii":
            encoding = "utf-8"
        content = str(result)
    return (content.lstrip("\ufeff"), encoding)


# =============================================================================
# Atomic writes
# =============================================================================


def _replace_from_temp(target: Path, fill) -> None:
    fd, tmp_path = tempfile.mkstemp(
        dir=str(target.parent), prefix=f".{target.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "wb") as fh:
            fill(fh)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_path, target)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def atomic_write_bytes(target: Path, data: bytes) -> int:
    """Write *data* to *target* atomically, replacing any existing file.

    Returns:
        Number of bytes written.
    """
    _replace_from_temp(target, lambda fh: fh.write(data))
    return len(data)


def atomic_copy(source: Path, target: Path) -> None:
    """Copy *source* byte-for-byte over *target* atomically."""

    def _copy(fh) -> None:
        with open(source, "rb") as src:
            shutil.copyfileobj(src, fh)

    _replace_from_temp(target, _copy)
