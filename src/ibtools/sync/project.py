"""Source project classification from its ``.project`` manifest.

The manifest is scanned line by line rather than parsed as XML: the first
``<name>`` element gives the project name and every ``<nature>`` inside
the ``<natures>`` block contributes to the nature set.  The extension
nature wins over the configuration nature; a manifest with neither is
rejected.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from ibtools.config import CONFIGURATION_NATURE, EXTENSION_NATURE
from ibtools.errors import InputNotFoundError, MalformedInputError, io_stage
from ibtools.file_handler import read_text_with_encoding

from .models import ProjectInfo, ProjectKind

logger = logging.getLogger(__name__)

PROJECT_FILE = ".project"

NAME_START_TAG = "<name>"
NATURES_START_TAG = "<natures>"
NATURES_END_TAG = "</natures>"
NAME_PATTERN = re.compile(r"<name>(.*?)</name>")
NATURE_PATTERN = re.compile(r"<nature>(.*?)</nature>")


def scan_manifest(text: str) -> tuple[str | None, set[str]]:
    """Extract the project name and nature set from manifest text.

    Scanning stops at the line that closes the natures block or at the
    end of input.

    Returns:
        Tuple of (name or None, natures).
    """
    name: str | None = None
    natures: set[str] = set()
    in_natures = False

    for raw_line in text.splitlines():
        line = raw_line.strip()

        if name is None and line.startswith(NAME_START_TAG):
            match = NAME_PATTERN.search(line)
            if match:
                name = match.group(1).strip()

        if not in_natures and line.startswith(NATURES_START_TAG):
            in_natures = True

        if in_natures and line.startswith(NATURES_END_TAG):
            break

        if in_natures:
            for match in NATURE_PATTERN.finditer(line):
                natures.add(match.group(1).strip())

    return name, natures


def classify_natures(
    natures: set[str],
    configuration_nature: str = CONFIGURATION_NATURE,
    extension_nature: str = EXTENSION_NATURE,
) -> ProjectKind | None:
    if extension_nature in natures:
        return ProjectKind.EXTENSION
    if configuration_nature in natures:
        return ProjectKind.ROOT_CONFIGURATION
    return None


def classify_project(
    project_root: Path,
    configuration_nature: str = CONFIGURATION_NATURE,
    extension_nature: str = EXTENSION_NATURE,
) -> ProjectInfo:
    """Classify the project at *project_root*.

    Raises:
        InputNotFoundError: If the manifest is missing.
        MalformedInputError: If the manifest declares neither nature, or an
            extension manifest has no name.
        SyncIOError: If the manifest cannot be read.
    """
    manifest = project_root / PROJECT_FILE
    if not manifest.is_file():
        raise InputNotFoundError(
            f"Project manifest '{manifest}' does not exist",
            stage="classify",
            path=manifest,
        )

    with io_stage("classify", manifest):
        text, _encoding = read_text_with_encoding(manifest)

    name, natures = scan_manifest(text)
    kind = classify_natures(natures, configuration_nature, extension_nature)
    if kind is None:
        raise MalformedInputError(
            "Project manifest declares neither a configuration nor an "
            f"extension nature (found: {', '.join(sorted(natures)) or 'none'})",
            stage="classify",
            path=manifest,
        )

    if kind is ProjectKind.EXTENSION and not name:
        raise MalformedInputError(
            "Extension project manifest has no <name> element",
            stage="classify",
            path=manifest,
        )

    info = ProjectInfo(kind=kind, name=name or "")
    logger.debug("Classified %s as %s '%s'", project_root, kind.value, info.name)
    return info
