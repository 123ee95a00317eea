"""Streaming parser for ``ConfigDumpInfo.xml`` metadata dumps.

The dump is read one line at a time.  The header line (XML declaration)
and any other non-record lines are skipped.  Every ``<Metadata``
record contributes its ``configVersion`` under its ``name``; the first
``Configuration.<name>`` record also supplies the root object identifier.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ibtools.errors import InputNotFoundError, MalformedInputError, io_stage

from .models import ConfigDumpParseResult

logger = logging.getLogger(__name__)

RECORD_TAG = "<Metadata"
CONFIGURATION_PREFIX = "Configuration."


def is_configuration_record(name: str) -> bool:
    """True for ``Configuration.<X>`` names with no further dots."""
    return (
        name.startswith(CONFIGURATION_PREFIX)
        and name.rfind(".") == len(CONFIGURATION_PREFIX) - 1
    )


def extract_attribute(line: str, attribute: str) -> str | None:
    """Return the value of ``attribute="..."`` on *line*, or ``None``.

    Only whole attribute names match: ``id`` does not match ``uuid="``.

    Raises:
        ValueError: If the value has no closing quote.
    """
    marker = f'{attribute}="'
    start = line.find(marker)
    while start > 0 and not line[start - 1].isspace():
        start = line.find(marker, start + 1)
    if start == -1:
        return None
    start += len(marker)
    end = line.find('"', start)
    if end == -1:
        raise ValueError(f"unterminated {attribute} attribute")
    return line[start:end]


def _is_record(line: str) -> bool:
    return line.lstrip().startswith(RECORD_TAG)


def _decode_line(raw: bytes, line_no: int, location: Path) -> str:
    try:
        return raw.decode("utf-8-sig" if line_no == 1 else "utf-8")
    except UnicodeDecodeError as exc:
        raise MalformedInputError(
            f"Line {line_no} is not valid UTF-8 "
            f"(byte 0x{exc.object[exc.start]:02x})",
            stage="parse-dump",
            path=location,
        ) from exc


def parse_config_dump(location: Path) -> ConfigDumpParseResult:
    """Parse the dump at *location*.

    Duplicate object names keep the last version seen.

    Raises:
        InputNotFoundError: If *location* is not a file.
        MalformedInputError: If a line is not UTF-8, a record lacks
            ``name``, the root record lacks ``id``, or an attribute value
            is unterminated.
        SyncIOError: If the file cannot be read.
    """
    if not location.is_file():
        raise InputNotFoundError(
            f"Config dump file '{location}' does not exist",
            stage="parse-dump",
            path=location,
        )

    versions: dict[str, str] = {}
    root_object_id: str | None = None

    with io_stage("parse-dump", location):
        with open(location, "rb") as fh:
            for line_no, raw in enumerate(fh, start=1):
                line = _decode_line(raw, line_no, location)
                # Header and non-record lines carry nothing we need.
                if not _is_record(line):
                    continue
                try:
                    name = extract_attribute(line, "name")
                    if name is None:
                        raise ValueError("record has no name attribute")

                    if root_object_id is None and is_configuration_record(
                        name
                    ):
                        root_object_id = extract_attribute(line, "id")
                        if root_object_id is None:
                            raise ValueError(
                                f"root record '{name}' has no id attribute"
                            )

                    version = extract_attribute(line, "configVersion")
                except ValueError as exc:
                    raise MalformedInputError(
                        f"Malformed metadata record at line {line_no}: {exc}",
                        stage="parse-dump",
                        path=location,
                    ) from exc

                if version is not None:
                    versions[name] = version

    logger.debug(
        "Parsed %d object versions from %s (root id: %s)",
        len(versions),
        location,
        root_object_id or "<none>",
    )
    return ConfigDumpParseResult(
        versions=versions, root_object_id=root_object_id or ""
    )
