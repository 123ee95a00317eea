"""Diff report formatting functions.

- ``format_diff_report`` -- human-readable comparison report.
- ``report_to_json`` -- structured dict for ``--json`` output.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .models import ChangeKind

if TYPE_CHECKING:
    from .models import DiffReport, KeyChange

_SECTION_LABELS = {
    ChangeKind.ADDED: "Added",
    ChangeKind.REMOVED: "Removed",
    ChangeKind.CHANGED: "Changed",
}

# ------------------------------------------------------------------
# Human-readable report
# ------------------------------------------------------------------


def _change_lines(
    title: str, changes: list[KeyChange], indent: str
) -> list[str]:
    lines: list[str] = []
    for kind in (ChangeKind.ADDED, ChangeKind.REMOVED, ChangeKind.CHANGED):
        keys = [c for c in changes if c.kind == kind]
        if not keys:
            continue
        lines.append(f"{indent}{_SECTION_LABELS[kind]} {title}:")
        for change in keys:
            if kind is ChangeKind.CHANGED:
                lines.append(
                    f"{indent}  {change.key}: {change.old} -> {change.new}"
                )
            else:
                lines.append(f"{indent}  {change.key}")
        lines.append("")
    return lines


def _report_lines(report: DiffReport, indent: str) -> list[str]:
    lines: list[str] = []

    if not report.generation_id_equal:
        lines.append(
            f"{indent}Generation id: {report.source_generation_id!r} -> "
            f"{report.destination_generation_id!r}"
        )
    if not report.root_object_id_equal:
        lines.append(
            f"{indent}Root object id: {report.source_root_object_id!r} -> "
            f"{report.destination_root_object_id!r}"
        )
    if lines:
        lines.append("")

    for warning in report.warnings:
        lines.append(f"{indent}WARNING: {warning}")
    if report.warnings:
        lines.append("")

    lines.extend(_change_lines("resources", report.resources, indent))
    lines.extend(_change_lines("object versions", report.versions, indent))

    if report.added_extensions:
        lines.append(
            f"{indent}Added extensions: {', '.join(report.added_extensions)}"
        )
    if report.removed_extensions:
        lines.append(
            f"{indent}Removed extensions: {', '.join(report.removed_extensions)}"
        )
    if report.added_extensions or report.removed_extensions:
        lines.append("")

    for name, sub in report.extensions.items():
        if sub.is_empty:
            continue
        lines.append(f"{indent}Extension '{name}':")
        lines.extend(_report_lines(sub, indent + "  "))

    return lines


def format_diff_report(report: DiffReport) -> str:
    """Format a comparison report as human-readable text.

    Sections are only included when they contain at least one finding.

    Args:
        report: The comparison result.

    Returns:
        Multi-line formatted string.
    """
    if report.is_empty:
        return "Synchronization states are identical."

    lines = [
        "Synchronization states differ: "
        f"{len(report.resources)} resource(s), "
        f"{len(report.versions)} object version(s), "
        f"{len(report.added_extensions) + len(report.removed_extensions)} extension(s) added/removed",
        "",
    ]
    lines.extend(_report_lines(report, ""))
    return "\n".join(lines).rstrip()


# ------------------------------------------------------------------
# JSON output
# ------------------------------------------------------------------


def _changes_to_json(changes: list[KeyChange]) -> list[dict]:
    result = []
    for c in changes:
        entry: dict = {"key": c.key, "kind": c.kind.value}
        if c.old is not None:
            entry["old"] = c.old
        if c.new is not None:
            entry["new"] = c.new
        result.append(entry)
    return result


def report_to_json(report: DiffReport) -> dict:
    """Convert a comparison report to a JSON-serialisable dict.

    Digests appear as lowercase hex strings.
    """
    return {
        "identical": report.is_empty,
        "generation_id": {
            "source": report.source_generation_id,
            "destination": report.destination_generation_id,
            "equal": report.generation_id_equal,
        },
        "root_object_id": {
            "source": report.source_root_object_id,
            "destination": report.destination_root_object_id,
            "equal": report.root_object_id_equal,
        },
        "counts": {
            "resources_added": len(report.added_resources),
            "resources_removed": len(report.removed_resources),
            "resources_changed": len(report.changed_resources),
            "versions_added": len(report.added_versions),
            "versions_removed": len(report.removed_versions),
            "versions_changed": len(report.changed_versions),
        },
        "warnings": list(report.warnings),
        "resources": _changes_to_json(report.resources),
        "versions": _changes_to_json(report.versions),
        "added_extensions": list(report.added_extensions),
        "removed_extensions": list(report.removed_extensions),
        "extensions": {
            name: report_to_json(sub)
            for name, sub in report.extensions.items()
        },
    }
