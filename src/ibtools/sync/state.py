"""Synchronization state storage layout.

Each target infobase owns one folder named after its UUID under the
state root.  Extension projects nest below it::

    <root>/<uuid>/index.idx
    <root>/<uuid>/ConfigDumpInfo.xml
    <root>/<uuid>/ext/<extension name>/index.idx
    <root>/<uuid>/ext/<extension name>/ConfigDumpInfo.xml

``SyncStateStore`` resolves and creates these folders and reassembles a
full ``SynchronizationState`` from one of them: digests and ids from the
index, object versions from the dump copy, extension states from the
``ext/`` subfolders.
"""

from __future__ import annotations

import logging
from pathlib import Path
from uuid import UUID

from ibtools.config import SyncConfig
from ibtools.errors import InputNotFoundError, io_stage

from .dump import parse_config_dump
from .index import read_index
from .models import ProjectInfo, ProjectKind, SynchronizationState

logger = logging.getLogger(__name__)


class SyncStateStore:
    """Resolve, create, and load synchronization state folders.

    Args:
        layout: File and folder names; defaults to ``SyncConfig()``.
    """

    def __init__(self, layout: SyncConfig | None = None) -> None:
        self.layout = layout or SyncConfig()

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------

    def target_folder(
        self, state_root: Path, target_id: UUID, project: ProjectInfo
    ) -> Path:
        """Return the folder holding the state of *project* for *target_id*."""
        folder = state_root / str(target_id)
        if project.kind is ProjectKind.EXTENSION:
            folder = folder / self.layout.extension_holder / project.name
        return folder

    def ensure_target_folder(
        self, state_root: Path, target_id: UUID, project: ProjectInfo
    ) -> Path:
        """Create the target folder if absent and return it."""
        folder = self.target_folder(state_root, target_id, project)
        with io_stage("prepare-target", folder):
            folder.mkdir(parents=True, exist_ok=True)
        return folder

    def index_path(self, folder: Path) -> Path:
        return folder / self.layout.index_file

    def dump_path(self, folder: Path) -> Path:
        return folder / self.layout.dump_file

    def extension_folders(self, folder: Path) -> dict[str, Path]:
        """Return extension name -> folder for every ``ext/<name>`` with an index."""
        holder = folder / self.layout.extension_holder
        if not holder.is_dir():
            return {}
        with io_stage("load-state", holder):
            children = sorted(p for p in holder.iterdir() if p.is_dir())
        return {
            child.name: child
            for child in children
            if self.index_path(child).is_file()
        }

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_state(
        self, folder: Path, include_extensions: bool = True
    ) -> SynchronizationState:
        """Reassemble the state stored in *folder*.

        Args:
            folder: A target folder (``<root>/<uuid>`` or an extension
                folder below it).
            include_extensions: Also load ``ext/<name>`` states.

        A target folder holding only extension states (no root index but
        ``ext/<name>`` folders with indexes) loads as an empty root state
        that carries those extensions.

        Raises:
            InputNotFoundError: If the folder is missing, has neither a
                root index nor extension states, or lacks its dump copy.
            MalformedInputError: If the index or dump cannot be parsed.
            SyncIOError: On read failures.
        """
        if not folder.is_dir():
            raise InputNotFoundError(
                f"State folder '{folder}' does not exist",
                stage="load-state",
                path=folder,
            )

        extensions: dict[str, SynchronizationState] = {}
        if include_extensions:
            for name, ext_folder in self.extension_folders(folder).items():
                logger.debug("Loading extension state '%s'", name)
                extensions[name] = self.load_state(
                    ext_folder, include_extensions=False
                )

        index_file = self.index_path(folder)
        if not index_file.is_file() and extensions:
            logger.debug(
                "No root state in %s, using %d extension state(s) only",
                folder,
                len(extensions),
            )
            return SynchronizationState(
                timestamp=0, extension_states=extensions
            )
        if not index_file.is_file():
            raise InputNotFoundError(
                f"State folder '{folder}' has no {self.layout.index_file}",
                stage="load-state",
                path=index_file,
            )
        dump_file = self.dump_path(folder)
        if not dump_file.is_file():
            raise InputNotFoundError(
                f"State folder '{folder}' has no {self.layout.dump_file}",
                stage="load-state",
                path=dump_file,
            )

        indexed = read_index(index_file)
        dump = parse_config_dump(dump_file)

        return SynchronizationState(
            timestamp=indexed.timestamp,
            generation_id=indexed.generation_id,
            root_object_id=indexed.root_object_id,
            resource_digests=indexed.resource_digests,
            object_versions=dump.versions,
            extension_states=extensions,
        )
