"""Pydantic models for infobase synchronization states.

Defines the data contracts used across the sync modules:

- ``ProjectKind`` / ``ProjectInfo``: classification of a source project.
- ``ConfigDumpParseResult``: versions and root id extracted from a dump.
- ``SynchronizationState``: the persisted snapshot for one target.
- ``ChangeKind`` / ``KeyChange`` / ``DiffReport``: comparison output.

All models are frozen (immutable).  A state is built once from fully
collected inputs; ``SynchronizationState.copy_state()`` returns a deep,
value-independent copy for callers that need their own handle.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, field_validator, model_validator

DIGEST_SIZE = 32


class ProjectKind(str, Enum):
    """Kind of a source project, derived from its manifest natures."""

    ROOT_CONFIGURATION = "configuration"
    EXTENSION = "extension"


class ProjectInfo(BaseModel):
    """Classification of a source project.

    Attributes:
        kind: Root configuration or extension.
        name: Declared project name (``<name>`` element).
    """

    kind: ProjectKind
    name: str

    model_config = {"frozen": True}


class ConfigDumpParseResult(BaseModel):
    """Result of parsing a metadata dump file.

    Attributes:
        versions: Fully qualified object name (e.g.
            ``Catalog.Foo.Form.Bar.Form``) mapped to its content version.
        root_object_id: Identifier of the ``Configuration.<name>`` record,
            empty when the dump carries none.
    """

    versions: dict[str, str] = Field(default_factory=dict)
    root_object_id: str = ""

    model_config = {"frozen": True}


class SynchronizationState(BaseModel):
    """Synchronization state of a project against one target infobase.

    Attributes:
        timestamp: Write time in milliseconds since the epoch.
        generation_id: Opaque data generation token of the infobase.
        root_object_id: Identifier of the root configuration object.
        resource_digests: Project-relative resource path (``src/...``)
            mapped to its 32-byte SHA-256 content digest.
        object_versions: Metadata object name mapped to version token.
        extension_states: Extension name mapped to that extension's
            state.  Only root states carry extensions.
    """

    timestamp: int
    generation_id: str = ""
    root_object_id: str = ""
    resource_digests: dict[str, bytes] = Field(default_factory=dict)
    object_versions: dict[str, str] = Field(default_factory=dict)
    extension_states: dict[str, SynchronizationState] = Field(
        default_factory=dict
    )

    model_config = {"frozen": True}

    @field_validator("resource_digests")
    @classmethod
    def _check_digest_width(
        cls, value: dict[str, bytes]
    ) -> dict[str, bytes]:
        for path, digest in value.items():
            if len(digest) != DIGEST_SIZE:
                raise ValueError(
                    f"digest for '{path}' is {len(digest)} bytes, expected {DIGEST_SIZE}"
                )
        return value

    @model_validator(mode="after")
    def _check_extension_depth(self) -> SynchronizationState:
        for name, ext_state in self.extension_states.items():
            if ext_state.extension_states:
                raise ValueError(
                    f"extension state '{name}' must not carry nested extension states"
                )
        return self

    def with_extensions(
        self, extensions: dict[str, SynchronizationState]
    ) -> SynchronizationState:
        """Return a new root state composed with *extensions*.

        Raises:
            pydantic.ValidationError: If an extension state itself
                carries extension states.
        """
        return SynchronizationState(
            timestamp=self.timestamp,
            generation_id=self.generation_id,
            root_object_id=self.root_object_id,
            resource_digests=dict(self.resource_digests),
            object_versions=dict(self.object_versions),
            extension_states=dict(extensions),
        )

    def copy_state(self) -> SynchronizationState:
        """Deep copy with value-independent nested maps."""
        return self.model_copy(deep=True)


# ---------------------------------------------------------------------------
# Comparison results
# ---------------------------------------------------------------------------


class ChangeKind(str, Enum):
    """Classification of one key in a two-snapshot comparison."""

    ADDED = "added"
    REMOVED = "removed"
    CHANGED = "changed"


class KeyChange(BaseModel):
    """One differing key.

    Attributes:
        key: Resource path or metadata object name.
        kind: Added (only in destination), removed (only in source) or
            changed (in both with different values).
        old: Source-side value (hex digest or version token), if any.
        new: Destination-side value, if any.
    """

    key: str
    kind: ChangeKind
    old: str | None = None
    new: str | None = None

    model_config = {"frozen": True}


class DiffReport(BaseModel):
    """Structured diff of two synchronization states.

    Findings in ``resources`` and ``versions`` are sorted by key;
    ``extensions`` holds sub-reports for extensions present on both sides,
    while one-sided extensions are listed by name only.
    """

    resources: list[KeyChange] = []
    versions: list[KeyChange] = []
    source_generation_id: str = ""
    destination_generation_id: str = ""
    source_root_object_id: str = ""
    destination_root_object_id: str = ""
    warnings: list[str] = []
    added_extensions: list[str] = []
    removed_extensions: list[str] = []
    extensions: dict[str, DiffReport] = {}

    model_config = {"frozen": True}

    @property
    def generation_id_equal(self) -> bool:
        return self.source_generation_id == self.destination_generation_id

    @property
    def root_object_id_equal(self) -> bool:
        return (
            self.source_root_object_id == self.destination_root_object_id
        )

    def _of_kind(
        self, changes: list[KeyChange], kind: ChangeKind
    ) -> list[str]:
        return [c.key for c in changes if c.kind == kind]

    @property
    def added_resources(self) -> list[str]:
        return self._of_kind(self.resources, ChangeKind.ADDED)

    @property
    def removed_resources(self) -> list[str]:
        return self._of_kind(self.resources, ChangeKind.REMOVED)

    @property
    def changed_resources(self) -> list[str]:
        return self._of_kind(self.resources, ChangeKind.CHANGED)

    @property
    def added_versions(self) -> list[str]:
        return self._of_kind(self.versions, ChangeKind.ADDED)

    @property
    def removed_versions(self) -> list[str]:
        return self._of_kind(self.versions, ChangeKind.REMOVED)

    @property
    def changed_versions(self) -> list[str]:
        return self._of_kind(self.versions, ChangeKind.CHANGED)

    @property
    def is_empty(self) -> bool:
        """True when the two states are equivalent on every axis."""
        return (
            not self.resources
            and not self.versions
            and self.generation_id_equal
            and self.root_object_id_equal
            and not self.added_extensions
            and not self.removed_extensions
            and all(sub.is_empty for sub in self.extensions.values())
        )

    def summary(self) -> str:
        """Format a short multi-line count summary."""
        lines = [
            "Synchronization state comparison",
            f"  Resources added:    {len(self.added_resources)}",
            f"  Resources removed:  {len(self.removed_resources)}",
            f"  Resources changed:  {len(self.changed_resources)}",
            f"  Versions added:     {len(self.added_versions)}",
            f"  Versions removed:   {len(self.removed_versions)}",
            f"  Versions changed:   {len(self.changed_versions)}",
            f"  Generation id:      {'equal' if self.generation_id_equal else 'different'}",
            f"  Root object id:     {'equal' if self.root_object_id_equal else 'different'}",
            f"  Extensions:         +{len(self.added_extensions)} "
            f"-{len(self.removed_extensions)} ~{len(self.extensions)}",
        ]
        return "\n".join(lines)


SynchronizationState.model_rebuild()
DiffReport.model_rebuild()
