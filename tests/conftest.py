"""Shared pytest fixtures for ibtools tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from ibtools.config import CONFIGURATION_NATURE, EXTENSION_NATURE

TARGET_UUID = "3f2504e0-4f89-11d3-9a0c-0305e82c3301"
ROOT_ID = "11111111-1111-1111-1111-111111111111"

MANIFEST_TEMPLATE = """\
<?xml version="1.0" encoding="UTF-8"?>
<projectDescription>
\t<name>{name}</name>
\t<comment></comment>
\t<projects>
\t</projects>
\t<buildSpec>
\t\t<buildCommand>
\t\t\t<name>org.eclipse.xtext.ui.shared.xtextBuilder</name>
\t\t\t<arguments>
\t\t\t</arguments>
\t\t</buildCommand>
\t</buildSpec>
\t<natures>
{natures}
\t</natures>
</projectDescription>
"""

DUMP_HEADER = '<?xml version="1.0" encoding="UTF-8"?>'


def render_manifest(name: str, natures: list[str]) -> str:
    nature_lines = "\n".join(f"\t\t<nature>{n}</nature>" for n in natures)
    return MANIFEST_TEMPLATE.format(name=name, natures=nature_lines)


def render_dump(records: list[str]) -> str:
    body = "\n".join(f"\t\t{r}" for r in records)
    return (
        f"{DUMP_HEADER}\n"
        '<ConfigDumpInfo xmlns="http://v8.1c.ru/8.3/xcf/dumpinfo" format="Hierarchical" version="2.17">\n'
        "\t<ConfigVersions>\n"
        f"{body}\n"
        "\t</ConfigVersions>\n"
        "</ConfigDumpInfo>\n"
    )


DEFAULT_RECORDS = [
    f'<Metadata name="Configuration.Trade" id="{ROOT_ID}" configVersion="c0nf1g"/>',
    '<Metadata name="Catalog.Goods" id="22222222-2222-2222-2222-222222222222" configVersion="g1"/>',
    '<Metadata name="Catalog.Goods.Form.Item" id="33333333-3333-3333-3333-333333333333"/>',
    '<Metadata name="Catalog.Goods.Form.Item.Form" id="44444444-4444-4444-4444-444444444444" configVersion="f1"/>',
]


@pytest.fixture
def make_project(tmp_path: Path):
    """Factory: create a project folder with a manifest and ``src`` files."""

    def _make(
        name: str = "Trade",
        natures: list[str] | None = None,
        files: dict[str, bytes] | None = None,
        folder: str | None = None,
    ) -> Path:
        root = tmp_path / (folder or name)
        root.mkdir(parents=True, exist_ok=True)
        (root / ".project").write_text(
            render_manifest(name, natures or [CONFIGURATION_NATURE]),
            encoding="utf-8",
        )
        src = root / "src"
        src.mkdir(exist_ok=True)
        for rel, content in (files or {}).items():
            target = src / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)
        return root

    return _make


@pytest.fixture
def make_dump(tmp_path: Path):
    """Factory: write a ConfigDumpInfo-style file and return its path."""

    def _make(
        records: list[str] | None = None, name: str = "ConfigDumpInfo.xml"
    ) -> Path:
        path = tmp_path / "dumps" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            render_dump(DEFAULT_RECORDS if records is None else records),
            encoding="utf-8",
        )
        return path

    return _make


@pytest.fixture
def extension_natures() -> list[str]:
    return [EXTENSION_NATURE]
