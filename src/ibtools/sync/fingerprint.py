"""Content fingerprinting and resource tree walking.

``fingerprint()`` reduces a byte stream to a 32-byte SHA-256 digest.
``collect_digests()`` enumerates every regular file under a source root
and fingerprints them on a thread pool that lives only for the duration
of the call.  Any per-file failure aborts the whole collection.
"""

from __future__ import annotations

import hashlib
import logging
import os
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import BinaryIO

from ibtools.errors import InputNotFoundError, io_stage

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024

Fingerprint = Callable[[BinaryIO], bytes]


def fingerprint(stream: BinaryIO) -> bytes:
    """Return the SHA-256 digest of everything left in *stream*."""
    hasher = hashlib.sha256()
    for chunk in iter(lambda: stream.read(CHUNK_SIZE), b""):
        hasher.update(chunk)
    return hasher.digest()


def fingerprint_file(path: Path, fp: Fingerprint = fingerprint) -> bytes:
    with open(path, "rb") as fh:
        return fp(fh)


def default_worker_count() -> int:
    """Available parallelism for this process."""
    try:
        return max(1, len(os.sched_getaffinity(0)))
    except AttributeError:
        return os.cpu_count() or 1


def walk_files(source_root: Path) -> list[Path]:
    """Return every regular file below *source_root*, recursively.

    Raises:
        InputNotFoundError: If *source_root* is not a directory.
        SyncIOError: If a directory cannot be listed.
    """
    if not source_root.is_dir():
        raise InputNotFoundError(
            f"Source folder '{source_root}' does not exist",
            stage="walk",
            path=source_root,
        )

    def _raise(exc: OSError) -> None:
        raise exc

    files: list[Path] = []
    with io_stage("walk", source_root):
        for dirpath, _dirnames, filenames in os.walk(
            source_root, onerror=_raise
        ):
            for name in filenames:
                path = Path(dirpath) / name
                if path.is_file():
                    files.append(path)
    return files


class _DigestAccumulator:
    """Thread-safe digest map with insert-if-absent semantics."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._digests: dict[Path, bytes] = {}

    def put_if_absent(self, path: Path, digest: bytes) -> None:
        with self._lock:
            if path in self._digests:
                logger.debug("Duplicate digest for %s ignored", path)
                return
            self._digests[path] = digest

    def snapshot(self) -> dict[Path, bytes]:
        with self._lock:
            return dict(self._digests)


def collect_digests(
    source_root: Path,
    max_workers: int | None = None,
    fp: Fingerprint = fingerprint,
) -> dict[Path, bytes]:
    """Fingerprint every file under *source_root* concurrently.

    Args:
        source_root: Folder to walk.
        max_workers: Pool size; ``None`` uses available parallelism.
        fp: Fingerprint function applied to each opened file.

    Returns:
        Absolute file path mapped to its digest.

    Raises:
        InputNotFoundError: If *source_root* is missing.
        SyncIOError: If any file cannot be read; no partial result.
    """
    files = walk_files(source_root)
    workers = max_workers or default_worker_count()
    logger.info(
        "Fingerprinting %d files under %s with %d workers",
        len(files),
        source_root,
        workers,
    )

    accumulator = _DigestAccumulator()
    if not files:
        return accumulator.snapshot()

    with ThreadPoolExecutor(
        max_workers=workers, thread_name_prefix="ibtools-hash"
    ) as pool:
        future_map = {
            pool.submit(fingerprint_file, path, fp): path for path in files
        }
        try:
            for future in as_completed(future_map):
                path = future_map[future]
                with io_stage("fingerprint", path):
                    digest = future.result()
                accumulator.put_if_absent(path, digest)
        except BaseException:
            for pending in future_map:
                pending.cancel()
            raise

    return accumulator.snapshot()
