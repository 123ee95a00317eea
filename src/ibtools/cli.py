"""Command-line entry point for ibtools.

Commands:
    generate-ib-sync-state   Generate the synchronization state of a source
                             project for a target infobase.
    compare-ib-sync-states   Compare two previously generated states.

All user-facing messages and logs go to stderr; reports go to stdout.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from . import __version__
from .config import UnifiedConfig, load_config
from .errors import IBToolsError, format_config_error, format_error
from .file_handler import resolve_path, validate_file, validate_folder
from .logger import setup_logging
from .sync import (
    SyncStateBuilder,
    compare_folders,
    format_diff_report,
    report_to_json,
)
from .validators import parse_target_id

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_DIFFERENT = 1
EXIT_ERROR = 2


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def cmd_generate(args: argparse.Namespace, config: UnifiedConfig) -> int:
    """Handle ``generate-ib-sync-state``."""
    project = validate_folder(args.project, "Source project folder")
    dump_file = validate_file(args.cdi, "Source config dump info file")
    target_id = parse_target_id(args.ib_uuid)
    state_root = resolve_path(args.target)

    builder = SyncStateBuilder(config.sync)
    result = builder.generate(
        project, dump_file, args.gen_id, target_id, state_root
    )
    print(
        f"Generated {result.project.kind.value} state "
        f"({len(result.state.resource_digests)} resources, "
        f"{len(result.state.object_versions)} object versions) in {result.folder}",
        file=sys.stderr,
    )
    return EXIT_OK


def cmd_compare(args: argparse.Namespace, config: UnifiedConfig) -> int:
    """Handle ``compare-ib-sync-states``."""
    source = validate_folder(args.source, "Source synchronization index folder")
    destination = validate_folder(
        args.destination, "Destination synchronization index folder"
    )

    report = compare_folders(source, destination, config.sync)
    if args.json:
        print(json.dumps(report_to_json(report), indent=2))
    else:
        print(format_diff_report(report))
    return EXIT_OK if report.is_empty else EXIT_DIFFERENT


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ibtools",
        description="Generate and compare infobase synchronization states",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Generate the state of a configuration project for an infobase
  ibtools generate-ib-sync-state --project MyConfig --cdi ConfigDumpInfo.xml \\
      --gen-id 1234 --ib-uuid 11111111-1111-1111-1111-111111111111 --target states

  # Compare two generated states
  ibtools compare-ib-sync-states --source states/1111... --destination other/1111...

Exit status: 0 on success (identical states), 1 when states differ, 2 on error.
        """,
    )
    parser.add_argument(
        "--config", help="YAML config file (overrides IBTOOLS_CONFIG)"
    )
    parser.add_argument(
        "--max-workers",
        type=int,
        help="Fingerprinting worker threads (default: available CPUs)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging and show tracebacks on errors",
    )
    parser.add_argument("--log-file", help="Also append logs to this file")
    parser.add_argument(
        "--log-format",
        choices=("text", "json"),
        help="Log record format (default: text)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"ibtools version {__version__}",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser(
        "generate-ib-sync-state",
        help="Generate an infobase synchronization state for a project",
    )
    gen.add_argument(
        "--project", required=True, help="Source project folder"
    )
    gen.add_argument(
        "--cdi",
        required=True,
        help="ConfigDumpInfo.xml received from the source infobase",
    )
    gen.add_argument(
        "--gen-id",
        required=True,
        help="Data generation identifier received from the source infobase",
    )
    gen.add_argument(
        "--ib-uuid", required=True, help="Target infobase UUID"
    )
    gen.add_argument(
        "--target",
        required=True,
        help="Folder holding synchronization states of infobases",
    )
    gen.set_defaults(handler=cmd_generate)

    cmp_ = sub.add_parser(
        "compare-ib-sync-states",
        help="Compare two synchronization state folders",
    )
    cmp_.add_argument(
        "--source", required=True, help="Source synchronization index folder"
    )
    cmp_.add_argument(
        "--destination",
        required=True,
        help="Destination synchronization index folder",
    )
    cmp_.add_argument(
        "--json", action="store_true", help="Print the report as JSON"
    )
    cmp_.set_defaults(handler=cmd_compare)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Parse *argv*, run the selected command, and return the exit status."""
    args = build_parser().parse_args(argv)
    load_dotenv()

    try:
        config = load_config(
            config_file=Path(args.config) if args.config else None,
            max_workers=args.max_workers,
            log_file=args.log_file,
            log_format=args.log_format,
        )
    except (ValueError, FileNotFoundError) as e:
        print(format_config_error(str(e)), file=sys.stderr)
        return EXIT_ERROR

    setup_logging(
        level=config.logging.level,
        debug=args.debug,
        log_file=config.logging.file,
        log_format=config.logging.format,
    )

    try:
        return args.handler(args, config)
    except IBToolsError as e:
        logger.debug("Command failed", exc_info=True)
        print(format_error(e), file=sys.stderr)
        return EXIT_ERROR


def run() -> None:
    """Console script entry point."""
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    run()
