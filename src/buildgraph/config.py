"""Configuration management for buildgraph."""

import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import yaml

_FALSE_VALUES = ("false", "0", "no", "off")


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() not in _FALSE_VALUES


@dataclass
class ResolutionConfig:
    """
    Policy for turning declarations into a sorted project.

    Controls how strictly declarations are checked and how disabled
    packages are reported.
    """

    # Allow the same (name, dirname) pair to be declared more than once
    allow_duplicate_definitions: bool = False

    # Treat any disabled package as a failure of `check`
    strict: bool = False


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    format: str = "console"  # Options: "console", "json"
    file: Path | None = None


@dataclass
class BuildGraphConfig:
    """
    Settings for one buildgraph run.

    Loaded from a YAML file or from the environment.
    """

    resolution: ResolutionConfig = field(default_factory=ResolutionConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_file(cls, config_path: Path) -> "BuildGraphConfig":
        """
        Read a YAML file with optional ``resolution`` and ``logging`` sections.

        An empty file gives the defaults. Unknown keys raise ``ValueError``.
        """
        try:
            data = yaml.safe_load(Path(config_path).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {config_path}: {e}") from e

        if not isinstance(data, dict):
            raise ValueError(f"{config_path}: expected dictionary, got {type(data).__name__}")

        try:
            logging_fields = dict(data.get("logging") or {})
            if logging_fields.get("file"):
                logging_fields["file"] = Path(logging_fields["file"])
            return cls(
                resolution=ResolutionConfig(**(data.get("resolution") or {})),
                logging=LoggingConfig(**logging_fields),
            )
        except TypeError as e:
            raise ValueError(f"Invalid configuration in {config_path}: {e}") from e

    def to_dict(self) -> dict[str, Any]:
        """Plain sections, as written by ``to_file``; unset fields are left out."""
        sections = {"resolution": asdict(self.resolution), "logging": asdict(self.logging)}
        return {
            name: {
                key: str(value) if isinstance(value, Path) else value
                for key, value in values.items()
                if value is not None
            }
            for name, values in sections.items()
        }

    def to_file(self, config_path: Path) -> None:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(yaml.safe_dump(self.to_dict(), sort_keys=False))

    @classmethod
    def from_env(cls) -> "BuildGraphConfig":
        """
        Create configuration from environment variables.

        Environment variables:
            BUILDGRAPH_ALLOW_DUPLICATES: Allow repeated (name, dirname) definitions
            BUILDGRAPH_STRICT: Fail `check` on disabled packages
            BUILDGRAPH_LOG_LEVEL: Logging level (default: INFO)
            BUILDGRAPH_LOG_FORMAT: console or json (default: console)
            BUILDGRAPH_LOG_FILE: Optional log file

        Returns:
            BuildGraphConfig instance
        """
        resolution = ResolutionConfig(
            allow_duplicate_definitions=_env_flag("BUILDGRAPH_ALLOW_DUPLICATES", False),
            strict=_env_flag("BUILDGRAPH_STRICT", False),
        )

        log_file = os.environ.get("BUILDGRAPH_LOG_FILE")
        logging = LoggingConfig(
            level=os.environ.get("BUILDGRAPH_LOG_LEVEL", "INFO"),
            format=os.environ.get("BUILDGRAPH_LOG_FORMAT", "console"),
            file=Path(log_file) if log_file else None,
        )

        return cls(resolution=resolution, logging=logging)


def load_config(config_file: Path | None = None) -> BuildGraphConfig:
    """
    Use ``config_file`` when given, otherwise the ``BUILDGRAPH_*`` environment.

    Raises:
        FileNotFoundError: If ``config_file`` does not exist
    """
    if config_file is None:
        return BuildGraphConfig.from_env()
    if not config_file.is_file():
        raise FileNotFoundError(f"Configuration file not found: {config_file}")
    return BuildGraphConfig.from_file(config_file)
