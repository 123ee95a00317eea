"""Tests for ibtools.config — schema defaults and runtime precedence.

Precedence under test: CLI args > environment > YAML > defaults.
"""

import pytest

from ibtools.config import (
    CONFIGURATION_NATURE,
    EXTENSION_NATURE,
    SyncConfig,
    UnifiedConfig,
    build_config,
    load_config,
)


@pytest.fixture(autouse=True)
def _isolated(tmp_path, monkeypatch):
    monkeypatch.delenv("IBTOOLS_CONFIG", raising=False)
    monkeypatch.delenv("IBTOOLS_MAX_WORKERS", raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))


def _write_config(tmp_path, text: str):
    path = tmp_path / ".ibtools" / "config.yml"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return path


# -------------------------------------------------------------------------
# Schema
# -------------------------------------------------------------------------


class TestSchema:
    """Tests for the Pydantic config models."""

    def test_defaults(self):
        config = UnifiedConfig()
        assert config.sync.source_folder == "src"
        assert config.sync.index_file == "index.idx"
        assert config.sync.dump_file == "ConfigDumpInfo.xml"
        assert config.sync.extension_holder == "ext"
        assert config.sync.max_workers is None
        assert config.sync.configuration_nature == CONFIGURATION_NATURE
        assert config.sync.extension_nature == EXTENSION_NATURE
        assert config.logging.level == "INFO"
        assert config.logging.format == "text"

    @pytest.mark.parametrize("workers", [0, 257, -1])
    def test_max_workers_bounds(self, workers):
        with pytest.raises(ValueError):
            SyncConfig(max_workers=workers)

    def test_build_config_empty(self):
        assert build_config(None) == UnifiedConfig()
        assert build_config({}) == UnifiedConfig()

    def test_build_config_invalid_section(self):
        with pytest.raises(ValueError, match="Invalid configuration"):
            build_config({"logging": {"format": "xml"}})


# -------------------------------------------------------------------------
# load_config()
# -------------------------------------------------------------------------


class TestLoadConfig:
    """Tests for load_config() precedence."""

    def test_zero_config(self):
        assert load_config() == UnifiedConfig()

    def test_yaml_values(self, tmp_path):
        _write_config(
            tmp_path,
            "sync:\n  max_workers: 3\n  extension_holder: extensions\n"
            "logging:\n  format: json\n",
        )
        config = load_config()
        assert config.sync.max_workers == 3
        assert config.sync.extension_holder == "extensions"
        assert config.logging.format == "json"

    def test_env_overrides_yaml(self, tmp_path, monkeypatch):
        _write_config(tmp_path, "sync:\n  max_workers: 3\n")
        monkeypatch.setenv("IBTOOLS_MAX_WORKERS", "5")
        assert load_config().sync.max_workers == 5

    def test_cli_overrides_env(self, monkeypatch):
        monkeypatch.setenv("IBTOOLS_MAX_WORKERS", "5")
        assert load_config(max_workers=7).sync.max_workers == 7

    @pytest.mark.parametrize("raw", ["abc", "0", "1000"])
    def test_invalid_env_workers(self, monkeypatch, raw):
        monkeypatch.setenv("IBTOOLS_MAX_WORKERS", raw)
        with pytest.raises(ValueError, match="IBTOOLS_MAX_WORKERS"):
            load_config()

    def test_invalid_cli_workers(self):
        with pytest.raises(ValueError, match="--max-workers"):
            load_config(max_workers=0)

    def test_logging_overrides(self, tmp_path):
        _write_config(tmp_path, "logging:\n  level: DEBUG\n")
        config = load_config(
            log_file=str(tmp_path / "ib.log"), log_format="json"
        )
        assert config.logging.level == "DEBUG"
        assert config.logging.file == str(tmp_path / "ib.log")
        assert config.logging.format == "json"

    def test_invalid_log_format(self):
        with pytest.raises(ValueError, match="log format"):
            load_config(log_format="xml")

    def test_explicit_file(self, tmp_path):
        path = tmp_path / "custom.yml"
        path.write_text("sync:\n  index_file: custom.idx\n")
        assert load_config(config_file=path).sync.index_file == "custom.idx"

    def test_explicit_file_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(config_file=tmp_path / "missing.yml")

    def test_overrides_keep_yaml_siblings(self, tmp_path):
        _write_config(tmp_path, "sync:\n  index_file: keep.idx\n")
        config = load_config(max_workers=2)
        assert config.sync.index_file == "keep.idx"
        assert config.sync.max_workers == 2
