"""Unit tests for configuration management."""

from pathlib import Path

import pytest
import yaml

from src.buildgraph.config import (
    BuildGraphConfig,
    LoggingConfig,
    ResolutionConfig,
    load_config,
)


class TestResolutionConfig:
    """Test ResolutionConfig dataclass."""

    def test_default_values(self):
        """Duplicates are rejected and disabled packages tolerated by default."""
        config = ResolutionConfig()

        assert config.allow_duplicate_definitions is False
        assert config.strict is False


class TestLoggingConfig:
    """Test LoggingConfig dataclass."""

    def test_default_values(self):
        config = LoggingConfig()

        assert config.level == "INFO"
        assert config.format == "console"
        assert config.file is None


class TestBuildGraphConfig:
    """Test loading and saving BuildGraphConfig."""

    def test_from_file(self, tmp_path):
        """Sections are read from YAML."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            yaml.safe_dump(
                {
                    "resolution": {"allow_duplicate_definitions": True, "strict": True},
                    "logging": {"level": "DEBUG", "format": "json", "file": "logs/run.log"},
                }
            )
        )

        config = BuildGraphConfig.from_file(config_file)

        assert config.resolution.allow_duplicate_definitions is True
        assert config.resolution.strict is True
        assert config.logging.level == "DEBUG"
        assert config.logging.format == "json"
        assert config.logging.file == Path("logs/run.log")

    def test_from_file_partial(self, tmp_path):
        """Missing sections fall back to defaults."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("resolution:\n  strict: true\n")

        config = BuildGraphConfig.from_file(config_file)

        assert config.resolution.strict is True
        assert config.logging == LoggingConfig()

    def test_from_empty_file(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("")

        assert BuildGraphConfig.from_file(config_file) == BuildGraphConfig()

    def test_from_file_invalid_yaml(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("resolution: [unclosed\n")

        with pytest.raises(ValueError, match="Invalid YAML"):
            BuildGraphConfig.from_file(config_file)

    def test_from_file_invalid_structure(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("- a\n- b\n")

        with pytest.raises(ValueError, match="expected dictionary, got list"):
            BuildGraphConfig.from_file(config_file)

    def test_from_file_unknown_key(self, tmp_path):
        """Unknown keys in a section are errors."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("resolution:\n  allow_cycles: true\n")

        with pytest.raises(ValueError, match="allow_cycles"):
            BuildGraphConfig.from_file(config_file)

    def test_from_file_section_not_a_mapping(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("resolution: 3\n")

        with pytest.raises(ValueError, match="Invalid configuration"):
            BuildGraphConfig.from_file(config_file)

    def test_round_trip(self, tmp_path):
        """A saved configuration loads back unchanged."""
        config = BuildGraphConfig(
            resolution=ResolutionConfig(strict=True),
            logging=LoggingConfig(level="WARNING", file=Path("out/log.txt")),
        )
        config_file = tmp_path / "nested" / "config.yaml"

        config.to_file(config_file)

        assert BuildGraphConfig.from_file(config_file) == config

    def test_to_dict_omits_unset_file(self):
        assert BuildGraphConfig().to_dict() == {
            "resolution": {"allow_duplicate_definitions": False, "strict": False},
            "logging": {"level": "INFO", "format": "console"},
        }

    def test_from_env(self, monkeypatch):
        """Environment variables override defaults."""
        monkeypatch.setenv("BUILDGRAPH_ALLOW_DUPLICATES", "yes")
        monkeypatch.setenv("BUILDGRAPH_STRICT", "0")
        monkeypatch.setenv("BUILDGRAPH_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("BUILDGRAPH_LOG_FORMAT", "json")
        monkeypatch.setenv("BUILDGRAPH_LOG_FILE", "run.log")

        config = BuildGraphConfig.from_env()

        assert config.resolution.allow_duplicate_definitions is True
        assert config.resolution.strict is False
        assert config.logging.level == "DEBUG"
        assert config.logging.format == "json"
        assert config.logging.file == Path("run.log")

    def test_from_env_defaults(self, monkeypatch):
        for name in (
            "BUILDGRAPH_ALLOW_DUPLICATES",
            "BUILDGRAPH_STRICT",
            "BUILDGRAPH_LOG_LEVEL",
            "BUILDGRAPH_LOG_FORMAT",
            "BUILDGRAPH_LOG_FILE",
        ):
            monkeypatch.delenv(name, raising=False)

        assert BuildGraphConfig.from_env() == BuildGraphConfig()


class TestLoadConfig:
    """Test load_config helper."""

    def test_load_from_file(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("resolution:\n  allow_duplicate_definitions: true\n")

        assert load_config(config_file).resolution.allow_duplicate_definitions is True

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yaml")

    def test_falls_back_to_env(self, monkeypatch):
        monkeypatch.setenv("BUILDGRAPH_STRICT", "true")

        assert load_config().resolution.strict is True
