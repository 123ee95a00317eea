"""
Hierarchical configuration loader for ibtools.

Discovers YAML config files by convention, merges them with "project wins"
semantics and interpolates environment variables into string values.

Usage:
    from ibtools.config_loader import load_hierarchical_config

    raw = load_hierarchical_config()
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "IBTOOLS_CONFIG"

# ${VAR} and ${VAR:-default}
_ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+?)(?::-(.*?))?\}")


def interpolate_env_vars(value: str) -> str:
    """Replace ``${VAR}`` and ``${VAR:-default}`` with environment values.

    An unset or empty variable falls back to *default*, or to ``""`` when
    no default clause is present.
    """

    def _replace(match: re.Match) -> str:
        env_val = os.environ.get(match.group(1))
        if env_val:
            return env_val
        return match.group(2) or ""

    return _ENV_VAR_PATTERN.sub(_replace, value)


def _interpolate_recursive(obj: Any) -> Any:
    if isinstance(obj, str):
        return interpolate_env_vars(obj)
    if isinstance(obj, dict):
        return {k: _interpolate_recursive(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_interpolate_recursive(item) for item in obj]
    return obj


def discover_config_files(explicit: Path | None = None) -> list[Path]:
    """Return existing config file paths in precedence order (highest first).

    Search order:
        1. *explicit* (the ``--config`` CLI option), if given.
        2. ``IBTOOLS_CONFIG`` env var.
        3. ``.ibtools/config.yml`` then ``.ibtools/config.yaml`` in CWD.
        4. ``~/.config/ibtools/config.yml`` (XDG global).

    An explicit path that does not exist raises ``FileNotFoundError``;
    all other candidates are silently skipped when absent.
    """
    candidates: list[Path] = []

    if explicit is not None:
        explicit = explicit.expanduser().resolve()
        if not explicit.is_file():
            raise FileNotFoundError(f"Config file not found: {explicit}")
        candidates.append(explicit)

    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        candidates.append(Path(env_path).expanduser().resolve())

    cwd = Path.cwd()
    candidates.append(cwd / ".ibtools" / "config.yml")
    candidates.append(cwd / ".ibtools" / "config.yaml")
    candidates.append(Path.home() / ".config" / "ibtools" / "config.yml")

    return [p for p in candidates if p.exists()]


def load_yaml_file(path: Path) -> Any:
    with open(path, "r", encoding="utf-8") as fh:
        return yaml.safe_load(fh)


def load_hierarchical_config(explicit: Path | None = None) -> dict[str, Any]:
    """Load and merge all discovered config files.

    Files are applied from lowest precedence to highest; each file's
    top-level keys replace those from earlier files (shallow merge).
    Env var interpolation runs after merging.

    Returns an empty dict when no config files exist (zero-config).
    """
    paths = discover_config_files(explicit)

    if not paths:
        logger.debug("No config files found, using defaults")
        return {}

    merged: dict[str, Any] = {}
    for path in reversed(paths):
        logger.debug("Loading config: %s", path)
        try:
            data = load_yaml_file(path)
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {path}: {exc}") from exc

        if isinstance(data, dict):
            merged.update(data)
        elif data is not None:
            logger.warning(
                "Config file %s has non-dict root (%s), skipping",
                path,
                type(data).__name__,
            )

    return _interpolate_recursive(merged)
