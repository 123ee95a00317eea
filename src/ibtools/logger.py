import json
import logging
import os
import sys

_DATEFMT = "%Y-%m-%d %H:%M:%S"


class JsonFormatter(logging.Formatter):
    """One JSON object per record: ts, level, logger, msg (plus exc)."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def _make_formatter(fmt: str, with_name: bool) -> logging.Formatter:
    if fmt == "json":
        return JsonFormatter(datefmt=_DATEFMT)
    pattern = (
        "[%(asctime)s] [%(levelname)s] %(name)s %(message)s"
        if with_name
        else "[%(asctime)s] [%(levelname)s] %(message)s"
    )
    return logging.Formatter(pattern, datefmt=_DATEFMT)


def setup_logging(
    level: str | None = None,
    debug: bool = False,
    log_file: str | None = None,
    log_format: str = "text",
) -> None:
    """
    Configure logging for the ibtools command line.

    Records go to stderr so stdout stays reserved for reports.  When
    ``log_file`` is given, records are also appended to that file.

    Args:
        level: Level name from configuration (DEBUG, INFO, WARNING, ERROR).
        debug: If True, forces DEBUG regardless of other settings.
        log_file: Optional additional log file.
        log_format: "text" (default) or "json" for structured output.

    Environment variables:
        LOG_LEVEL: Overrides ``level`` when set. Default: INFO.
    """
    level_name = (os.getenv("LOG_LEVEL") or level or "INFO").upper()

    if debug:
        log_level = logging.DEBUG
    else:
        log_level = getattr(logging, level_name, logging.INFO)

    handlers: list[logging.Handler] = []
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(_make_formatter(log_format, with_name=False))
    handlers.append(stderr_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a")
        file_handler.setFormatter(_make_formatter(log_format, with_name=True))
        handlers.append(file_handler)

    logging.basicConfig(level=log_level, handlers=handlers)
