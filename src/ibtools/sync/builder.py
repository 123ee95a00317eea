"""Synchronization state generation.

``SyncStateBuilder.generate()`` produces the state of a source project for
a target infobase:

1. Validates the identifier and inputs.
2. Classifies the project from its manifest.
3. Fingerprints every resource under the project's source folder.
4. Parses the dump for object versions and the root object id.
5. Builds and encodes the state.
6. Resolves and creates the target folder.
7. Copies the metadata dump into it under its canonical name.
8. Writes the encoded index atomically.

Steps 1-5 only read, so a malformed or unreadable input leaves the target
untouched.  Every step either completes or raises; re-running for the
same target fully replaces the previous state.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from pathlib import Path
from uuid import UUID

from pydantic import BaseModel

from ibtools.config import SyncConfig
from ibtools.errors import InputNotFoundError, MalformedInputError, io_stage
from ibtools.file_handler import atomic_copy
from ibtools.validators import parse_target_id, validate_extension_name

from .dump import parse_config_dump
from .fingerprint import Fingerprint, collect_digests, fingerprint
from .index import encode_index, store_index
from .models import ProjectInfo, ProjectKind, SynchronizationState
from .project import classify_project
from .state import SyncStateStore

logger = logging.getLogger(__name__)


def current_millis() -> int:
    return time.time_ns() // 1_000_000


def resource_key(path: Path, project_folder: Path) -> str:
    """Project-relative, forward-slash key for a resource file.

    Raises:
        MalformedInputError: If the file name is not valid UTF-8.
    """
    key = path.relative_to(project_folder).as_posix()
    try:
        key.encode("utf-8")
    except UnicodeEncodeError:
        raise MalformedInputError(
            f"Resource file name {key!r} is not valid UTF-8",
            stage="collect",
            path=path,
        ) from None
    return key


class GenerationResult(BaseModel):
    """Outcome of one ``generate`` call."""

    project: ProjectInfo
    folder: Path
    state: SynchronizationState

    model_config = {"frozen": True}


class SyncStateBuilder:
    """Generate synchronization states.

    Args:
        config: Layout, worker count and nature vocabulary.
        fp: Fingerprint function applied to each resource stream.
        clock: Returns the write timestamp in ms since the epoch.
    """

    def __init__(
        self,
        config: SyncConfig | None = None,
        fp: Fingerprint = fingerprint,
        clock: Callable[[], int] = current_millis,
    ) -> None:
        self.config = config or SyncConfig()
        self.fp = fp
        self.clock = clock
        self.store = SyncStateStore(self.config)

    def generate(
        self,
        source_project_folder: Path,
        dump_file: Path,
        generation_id: str,
        target_id: UUID | str,
        state_root: Path,
    ) -> GenerationResult:
        """Generate and persist the state of a project for one target.

        Args:
            source_project_folder: Project folder holding ``.project``.
            dump_file: Metadata dump received from the target infobase.
            generation_id: Data generation token of the target infobase.
            target_id: Target infobase UUID.
            state_root: Folder that holds per-infobase state folders.

        Returns:
            The project classification, target folder, and written state.

        Raises:
            InvalidIdentifierError: If *target_id* is not a UUID.
            InputNotFoundError: If a required input is missing.
            MalformedInputError: If the manifest or dump is malformed.
            SyncIOError: If any read, copy, or write fails.
        """
        target_uuid = parse_target_id(target_id)
        source_root = source_project_folder / self.config.source_folder
        self._require_inputs(source_project_folder, source_root, dump_file)

        project = classify_project(
            source_project_folder,
            self.config.configuration_nature,
            self.config.extension_nature,
        )
        if project.kind is ProjectKind.EXTENSION:
            validate_extension_name(project.name)
        logger.info(
            "Generating %s state for '%s' on infobase %s",
            project.kind.value,
            project.name,
            target_uuid,
        )

        digests = collect_digests(
            source_root, self.config.max_workers, self.fp
        )
        relative = {
            resource_key(path, source_project_folder): digest
            for path, digest in digests.items()
        }

        dump = parse_config_dump(dump_file)

        state = SynchronizationState(
            timestamp=self.clock(),
            generation_id=generation_id,
            root_object_id=dump.root_object_id,
            resource_digests=relative,
            object_versions=dump.versions,
        )
        index_data = encode_index(state)

        folder = self.store.ensure_target_folder(
            state_root, target_uuid, project
        )

        dump_copy = self.store.dump_path(folder)
        with io_stage("copy-dump", dump_copy):
            atomic_copy(dump_file, dump_copy)
        logger.debug("Copied %s to %s", dump_file, dump_copy)

        store_index(self.store.index_path(folder), index_data)

        logger.info(
            "Wrote state with %d resources and %d object versions to %s",
            len(state.resource_digests),
            len(state.object_versions),
            folder,
        )
        return GenerationResult(project=project, folder=folder, state=state)

    def _require_inputs(
        self, project_folder: Path, source_root: Path, dump_file: Path
    ) -> None:
        if not project_folder.is_dir():
            raise InputNotFoundError(
                f"Source project folder '{project_folder}' does not exist",
                stage="validate",
                path=project_folder,
            )
        if not source_root.is_dir():
            raise InputNotFoundError(
                f"Source project has no '{self.config.source_folder}' folder",
                stage="validate",
                path=source_root,
            )
        if not dump_file.is_file():
            raise InputNotFoundError(
                f"Config dump file '{dump_file}' does not exist",
                stage="validate",
                path=dump_file,
            )
