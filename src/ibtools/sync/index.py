"""Binary index codec (``index.idx``).

Layout, all integers big-endian::

    int64   timestamp (ms since epoch)
    int32   resource count N
    N times:
        utf     relative resource path
        int32   digest length L
        L bytes digest
    utf     generation id
    utf     root object id

``utf`` is a 2-byte unsigned byte length followed by that many bytes of
UTF-8.  Resources are written in path order so identical states produce
identical files apart from the timestamp.

Object versions and extension states are not part of the index: they are
recovered from the dump copy and the ``ext/`` folders next to it.
"""

from __future__ import annotations

import io
import logging
import struct
from pathlib import Path

from pydantic import ValidationError

from ibtools.errors import MalformedInputError, io_stage
from ibtools.file_handler import atomic_write_bytes

from .models import SynchronizationState

logger = logging.getLogger(__name__)

_INT64 = struct.Struct(">q")
_INT32 = struct.Struct(">i")
_UINT16 = struct.Struct(">H")

MAX_UTF_BYTES = 0xFFFF


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def _pack_utf(value: str, field: str) -> bytes:
    try:
        encoded = value.encode("utf-8")
    except UnicodeEncodeError:
        raise MalformedInputError(
            f"{field} {value!r} cannot be encoded as UTF-8",
            stage="encode-index",
            path=field,
        ) from None
    if len(encoded) > MAX_UTF_BYTES:
        raise MalformedInputError(
            f"{field} is {len(encoded)} bytes long, the index format allows at most {MAX_UTF_BYTES}",
            stage="encode-index",
            path=field,
        )
    return _UINT16.pack(len(encoded)) + encoded


def encode_index(state: SynchronizationState) -> bytes:
    """Serialize *state* to the index byte layout.

    Raises:
        MalformedInputError: If a string is not encodable or too long.
    """
    buf = io.BytesIO()
    buf.write(_INT64.pack(state.timestamp))
    buf.write(_INT32.pack(len(state.resource_digests)))
    for path in sorted(state.resource_digests):
        digest = state.resource_digests[path]
        buf.write(_pack_utf(path, "Resource path"))
        buf.write(_INT32.pack(len(digest)))
        buf.write(digest)
    buf.write(_pack_utf(state.generation_id, "Generation id"))
    buf.write(_pack_utf(state.root_object_id, "Root object id"))
    return buf.getvalue()


def store_index(path: Path, data: bytes) -> int:
    """Atomically replace *path* with already encoded index *data*.

    Returns:
        Number of bytes written.
    """
    with io_stage("write-index", path):
        written = atomic_write_bytes(path, data)
    logger.debug("Wrote index %s (%d bytes)", path, written)
    return written


def write_index(path: Path, state: SynchronizationState) -> int:
    """Encode *state* and write it to *path* atomically.

    Returns:
        Number of bytes written.
    """
    return store_index(path, encode_index(state))


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


class _Reader:
    def __init__(self, data: bytes) -> None:
        self._data = data
        self._pos = 0

    def take(self, size: int, what: str) -> bytes:
        end = self._pos + size
        if end > len(self._data):
            raise ValueError(
                f"truncated while reading {what} at offset {self._pos}"
            )
        chunk = self._data[self._pos : end]
        self._pos = end
        return chunk

    def unpack(self, fmt: struct.Struct, what: str) -> int:
        return fmt.unpack(self.take(fmt.size, what))[0]

    def utf(self, what: str) -> str:
        length = self.unpack(_UINT16, f"{what} length")
        return self.take(length, what).decode("utf-8")

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos


def decode_index(data: bytes) -> SynchronizationState:
    """Decode index bytes into a state without versions or extensions.

    Raises:
        ValueError: On truncated, oversized, or otherwise invalid data.
    """
    reader = _Reader(data)
    timestamp = reader.unpack(_INT64, "timestamp")
    count = reader.unpack(_INT32, "resource count")
    if count < 0:
        raise ValueError(f"negative resource count {count}")

    digests: dict[str, bytes] = {}
    for i in range(count):
        path = reader.utf(f"resource #{i} path")
        length = reader.unpack(_INT32, f"resource #{i} digest length")
        if length < 0:
            raise ValueError(f"negative digest length for '{path}'")
        digests[path] = reader.take(length, f"digest of '{path}'")

    generation_id = reader.utf("generation id")
    root_object_id = reader.utf("root object id")
    if reader.remaining:
        raise ValueError(f"{reader.remaining} unexpected trailing bytes")

    try:
        return SynchronizationState(
            timestamp=timestamp,
            generation_id=generation_id,
            root_object_id=root_object_id,
            resource_digests=digests,
        )
    except ValidationError as exc:
        raise ValueError(str(exc)) from exc


def read_index(path: Path) -> SynchronizationState:
    """Read and decode the index file at *path*.

    Raises:
        SyncIOError: If the file cannot be read.
        MalformedInputError: If its contents are not a valid index.
    """
    with io_stage("read-index", path):
        data = path.read_bytes()
    try:
        return decode_index(data)
    except ValueError as exc:
        raise MalformedInputError(
            f"Invalid index file: {exc}", stage="read-index", path=path
        ) from exc
