"""Infobase synchronization state engine.

Produces and compares the synchronization state of a source project
against a target infobase without a running development environment.

Modules:

- ``fingerprint`` -- SHA-256 content digests and concurrent tree walking.
- ``project``     -- ``.project`` manifest classification.
- ``dump``        -- ``ConfigDumpInfo.xml`` line scanner.
- ``index``       -- binary ``index.idx`` codec.
- ``state``       -- ``SyncStateStore``: folder layout and state loading.
- ``builder``     -- ``SyncStateBuilder``: the generation pipeline.
- ``comparator``  -- ``compare_states`` / ``compare_folders``.
- ``models``      -- pydantic data contracts.
- ``reporter``    -- text and JSON rendering of ``DiffReport``.

Usage example
-------------
::

    from pathlib import Path
    from ibtools.sync import SyncStateBuilder, compare_folders, format_diff_report

    builder = SyncStateBuilder()
    result = builder.generate(
        Path("MyProject"),
        Path("ConfigDumpInfo.xml"),
        generation_id="42",
        target_id="11111111-1111-1111-1111-111111111111",
        state_root=Path("states"),
    )

    report = compare_folders(result.folder, Path("other/states/1111..."))
    print(format_diff_report(report))
"""

from .builder import GenerationResult, SyncStateBuilder
from .comparator import compare_folders, compare_states
from .dump import parse_config_dump
from .fingerprint import collect_digests, fingerprint
from .index import read_index, write_index
from .models import (
    ChangeKind,
    ConfigDumpParseResult,
    DiffReport,
    KeyChange,
    ProjectInfo,
    ProjectKind,
    SynchronizationState,
)
from .project import classify_project
from .reporter import format_diff_report, report_to_json
from .state import SyncStateStore

__all__ = [
    "ChangeKind",
    "ConfigDumpParseResult",
    "DiffReport",
    "GenerationResult",
    "KeyChange",
    "ProjectInfo",
    "ProjectKind",
    "SyncStateBuilder",
    "SyncStateStore",
    "SynchronizationState",
    "classify_project",
    "collect_digests",
    "compare_folders",
    "compare_states",
    "fingerprint",
    "format_diff_report",
    "parse_config_dump",
    "read_index",
    "report_to_json",
    "write_index",
]
