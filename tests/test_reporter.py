"""Tests for diff report formatting functions.

Covers:
- identical report produces a single line
- sections appear only when they have findings
- extension sub-reports and warnings are indented
- report_to_json structure and completeness
"""

from __future__ import annotations

import json

from ibtools.sync.models import ChangeKind, DiffReport, KeyChange
from ibtools.sync.reporter import format_diff_report, report_to_json

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _report(**overrides) -> DiffReport:
    values = dict(
        resources=[
            KeyChange(key="src/a.bsl", kind=ChangeKind.ADDED, new="aa"),
            KeyChange(key="src/b.bsl", kind=ChangeKind.REMOVED, old="bb"),
            KeyChange(
                key="src/c.bsl", kind=ChangeKind.CHANGED, old="c1", new="c2"
            ),
        ],
        versions=[
            KeyChange(
                key="Catalog.Goods", kind=ChangeKind.CHANGED, old="1", new="2"
            ),
        ],
        source_generation_id="g",
        destination_generation_id="g",
    )
    values.update(overrides)
    return DiffReport(**values)


# ---------------------------------------------------------------------------
# format_diff_report
# ---------------------------------------------------------------------------


class TestFormatDiffReport:
    """Tests for format_diff_report()."""

    def test_identical(self):
        assert (
            format_diff_report(DiffReport())
            == "Synchronization states are identical."
        )

    def test_header_counts(self):
        text = format_diff_report(_report())
        first = text.splitlines()[0]
        assert "3 resource(s)" in first
        assert "1 object version(s)" in first

    def test_sections(self):
        text = format_diff_report(_report())
        assert "Added resources:\n  src/a.bsl" in text
        assert "Removed resources:\n  src/b.bsl" in text
        assert "src/c.bsl: c1 -> c2" in text
        assert "Changed object versions:" in text
        assert "Added object versions:" not in text

    def test_generation_id_line_only_when_different(self):
        assert "Generation id" not in format_diff_report(_report())
        text = format_diff_report(
            _report(source_generation_id="1", destination_generation_id="2")
        )
        assert "Generation id: '1' -> '2'" in text

    def test_warning_lines(self):
        text = format_diff_report(
            _report(
                source_root_object_id="a",
                destination_root_object_id="b",
                warnings=["Root object id differs: 'a' vs 'b'"],
            )
        )
        assert "WARNING: Root object id differs" in text
        assert "Root object id: 'a' -> 'b'" in text

    def test_extensions(self):
        sub = DiffReport(
            versions=[
                KeyChange(key="Catalog.E", kind=ChangeKind.ADDED, new="1")
            ]
        )
        text = format_diff_report(
            DiffReport(
                added_extensions=["New"],
                removed_extensions=["Gone"],
                extensions={"Shared": sub, "Same": DiffReport()},
            )
        )
        assert "Added extensions: New" in text
        assert "Removed extensions: Gone" in text
        assert "Extension 'Shared':\n  Added object versions:\n    Catalog.E" in text
        assert "Extension 'Same'" not in text

    def test_no_trailing_whitespace(self):
        text = format_diff_report(_report())
        assert text == text.rstrip()


# ---------------------------------------------------------------------------
# report_to_json
# ---------------------------------------------------------------------------


class TestReportToJson:
    """Tests for report_to_json()."""

    def test_serialisable(self):
        data = report_to_json(_report())
        json.dumps(data)

    def test_keys(self):
        data = report_to_json(_report())
        assert set(data) == {
            "identical",
            "generation_id",
            "root_object_id",
            "counts",
            "warnings",
            "resources",
            "versions",
            "added_extensions",
            "removed_extensions",
            "extensions",
        }

    def test_counts(self):
        counts = report_to_json(_report())["counts"]
        assert counts == {
            "resources_added": 1,
            "resources_removed": 1,
            "resources_changed": 1,
            "versions_added": 0,
            "versions_removed": 0,
            "versions_changed": 1,
        }

    def test_change_entries_omit_missing_sides(self):
        resources = report_to_json(_report())["resources"]
        assert resources[0] == {"key": "src/a.bsl", "kind": "added", "new": "aa"}
        assert resources[1] == {"key": "src/b.bsl", "kind": "removed", "old": "bb"}
        assert resources[2] == {
            "key": "src/c.bsl",
            "kind": "changed",
            "old": "c1",
            "new": "c2",
        }

    def test_identical_flag(self):
        assert report_to_json(DiffReport())["identical"] is True
        assert report_to_json(_report())["identical"] is False

    def test_nested_extensions(self):
        data = report_to_json(DiffReport(extensions={"E": _report()}))
        assert data["extensions"]["E"]["counts"]["resources_added"] == 1
        assert data["identical"] is False
