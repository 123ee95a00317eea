"""Configuration schema and runtime resolution for ibtools.

Pydantic models describe the YAML config structure; ``load_config``
resolves the effective settings from CLI options, environment variables,
``.env`` values and YAML files.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    IBTOOLS_CONFIG: Explicit config file path.
    IBTOOLS_MAX_WORKERS: Fingerprinting worker count (1-256).
    LOG_LEVEL: Logging level (handled by ``setup_logging``).

Usage:
    from ibtools.config import load_config

    config = load_config(max_workers=4)
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, ValidationError

from .config_loader import load_hierarchical_config

logger = logging.getLogger(__name__)

CONFIGURATION_NATURE = "com._1c.g5.v8.dt.core.V8ConfigurationNature"
EXTENSION_NATURE = "com._1c.g5.v8.dt.core.V8ExtensionNature"

MAX_WORKERS_LIMIT = 256


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class SyncConfig(BaseModel):
    """Layout and processing settings for sync state generation.

    File and folder names default to the layout expected by the
    development environment's own infobase synchronization.
    """

    source_folder: str = Field(
        default="src", description="Project subfolder holding resources"
    )
    index_file: str = Field(
        default="index.idx", description="Binary index file name"
    )
    dump_file: str = Field(
        default="ConfigDumpInfo.xml",
        description="Canonical name of the copied metadata dump",
    )
    extension_holder: str = Field(
        default="ext",
        description="Folder that holds per-extension sync states",
    )
    max_workers: int | None = Field(
        default=None,
        ge=1,
        le=MAX_WORKERS_LIMIT,
        description="Fingerprinting workers (None = available parallelism)",
    )
    configuration_nature: str = Field(default=CONFIGURATION_NATURE)
    extension_nature: str = Field(default=EXTENSION_NATURE)

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Log file path")
    format: Literal["text", "json"] = Field(default="text")

    model_config = {"frozen": True}


class UnifiedConfig(BaseModel):
    """Top-level configuration; ``UnifiedConfig()`` is always valid."""

    sync: SyncConfig = Field(default_factory=SyncConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}


def build_config(raw_data: dict | None) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from a merged raw dict.

    Raises:
        ValueError: If a section fails validation.
    """
    if not raw_data:
        return UnifiedConfig()
    try:
        return UnifiedConfig(**raw_data)
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration: {exc}") from exc


# ---------------------------------------------------------------------------
# Runtime resolution
# ---------------------------------------------------------------------------


def _parse_max_workers(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(
            f"Invalid IBTOOLS_MAX_WORKERS '{raw}': must be a number between 1 and {MAX_WORKERS_LIMIT}"
        ) from None
    if not (1 <= value <= MAX_WORKERS_LIMIT):
        raise ValueError(
            f"Invalid IBTOOLS_MAX_WORKERS '{raw}': must be a number between 1 and {MAX_WORKERS_LIMIT}"
        )
    return value


def load_config(
    config_file: Path | None = None,
    max_workers: int | None = None,
    log_level: str | None = None,
    log_file: str | None = None,
    log_format: str | None = None,
) -> UnifiedConfig:
    """Load configuration with unified precedence.

    The caller is responsible for calling ``load_dotenv()`` first so that
    .env values are visible through ``os.getenv()``.

    Args:
        config_file: Explicit YAML config (``--config``).
        max_workers: CLI override for the fingerprinting pool size.
        log_level: CLI override for the log level.
        log_file: CLI override for the log file.
        log_format: CLI override for the log format.

    Returns:
        Validated ``UnifiedConfig``.

    Raises:
        ValueError: On invalid values from any source.
        FileNotFoundError: If *config_file* does not exist.
    """
    unified = build_config(load_hierarchical_config(config_file))

    sync_updates: dict = {}
    if max_workers is not None:
        if not (1 <= max_workers <= MAX_WORKERS_LIMIT):
            raise ValueError(
                f"Invalid --max-workers {max_workers}: must be between 1 and {MAX_WORKERS_LIMIT}"
            )
        sync_updates["max_workers"] = max_workers
    else:
        env_workers = os.getenv("IBTOOLS_MAX_WORKERS")
        if env_workers:
            sync_updates["max_workers"] = _parse_max_workers(env_workers)

    logging_updates: dict = {}
    if log_level:
        logging_updates["level"] = log_level
    if log_file:
        logging_updates["file"] = log_file
    if log_format:
        if log_format not in ("text", "json"):
            raise ValueError(
                f"Invalid log format '{log_format}': must be 'text' or 'json'"
            )
        logging_updates["format"] = log_format

    if not sync_updates and not logging_updates:
        return unified

    logger.debug(
        "Config overrides: %s",
        ", ".join([*sync_updates, *logging_updates]),
    )
    return UnifiedConfig(
        sync=unified.sync.model_copy(update=sync_updates),
        logging=unified.logging.model_copy(update=logging_updates),
    )
