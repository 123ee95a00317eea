"""Structural comparison of two synchronization states.

The two inputs are independent snapshots, so the comparison is a plain
map diff on each axis: keys only in the source are *removed*, keys only in
the destination are *added*, keys in both with different values are
*changed*.  Findings are sorted by key.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import TypeVar

from ibtools.config import SyncConfig

from .models import ChangeKind, DiffReport, KeyChange, SynchronizationState
from .state import SyncStateStore

logger = logging.getLogger(__name__)

V = TypeVar("V")


def diff_mapping(
    source: Mapping[str, V],
    destination: Mapping[str, V],
    render: Callable[[V], str] = str,
) -> list[KeyChange]:
    """Three-way classify the keys of two mappings, sorted by key."""
    changes: list[KeyChange] = []
    for key in sorted(source.keys() | destination.keys()):
        if key not in destination:
            changes.append(
                KeyChange(
                    key=key, kind=ChangeKind.REMOVED, old=render(source[key])
                )
            )
        elif key not in source:
            changes.append(
                KeyChange(
                    key=key,
                    kind=ChangeKind.ADDED,
                    new=render(destination[key]),
                )
            )
        elif source[key] != destination[key]:
            changes.append(
                KeyChange(
                    key=key,
                    kind=ChangeKind.CHANGED,
                    old=render(source[key]),
                    new=render(destination[key]),
                )
            )
    return changes


def _hex(digest: bytes) -> str:
    return digest.hex()


def compare_states(
    source: SynchronizationState,
    destination: SynchronizationState,
    *,
    context: str = "",
) -> DiffReport:
    """Compare two states and return a ``DiffReport``.

    A differing root object id is reported as a warning; it does not stop
    the comparison.
    """
    warnings: list[str] = []
    if source.root_object_id != destination.root_object_id:
        message = (
            f"Root object id differs{context}: "
            f"'{source.root_object_id}' vs '{destination.root_object_id}'"
        )
        logger.warning("%s", message)
        warnings.append(message)

    src_ext = source.extension_states
    dst_ext = destination.extension_states
    extensions = {
        name: compare_states(
            src_ext[name], dst_ext[name], context=f" in extension '{name}'"
        )
        for name in sorted(src_ext.keys() & dst_ext.keys())
    }

    return DiffReport(
        resources=diff_mapping(
            source.resource_digests, destination.resource_digests, _hex
        ),
        versions=diff_mapping(
            source.object_versions, destination.object_versions
        ),
        source_generation_id=source.generation_id,
        destination_generation_id=destination.generation_id,
        source_root_object_id=source.root_object_id,
        destination_root_object_id=destination.root_object_id,
        warnings=warnings,
        added_extensions=sorted(dst_ext.keys() - src_ext.keys()),
        removed_extensions=sorted(src_ext.keys() - dst_ext.keys()),
        extensions=extensions,
    )


def compare_folders(
    source_folder: Path,
    destination_folder: Path,
    config: SyncConfig | None = None,
) -> DiffReport:
    """Load the states stored in two folders and compare them.

    Raises:
        InputNotFoundError: If either folder lacks its index or dump copy.
        MalformedInputError: If either index or dump cannot be parsed.
        SyncIOError: On read failures.
    """
    store = SyncStateStore(config)
    logger.info(
        "Comparing states in %s and %s", source_folder, destination_folder
    )
    source = store.load_state(source_folder)
    destination = store.load_state(destination_folder)
    return compare_states(source, destination)
