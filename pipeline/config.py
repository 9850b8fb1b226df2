"""Configuration management for extstage.

Loads configuration from:
1. extstage.toml (defaults)
2. Environment variables (overrides)
"""

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from dotenv import load_dotenv

from extensions.errors import ExtstageError

CONFIG_FILENAME = "extstage.toml"


class ConfigError(ExtstageError):
    """Raised when configuration is invalid."""

    pass


@dataclass
class PathsConfig:
    """Project-relative locations."""

    extensions_source: str = "src/extensions"  # Extension sources
    runtime_extensions: str = "extensions"  # Directory the host server loads
    dist_dir: str = "dist"  # Production bundle
    env_dir: str = ".config"  # Holds <environment>.env files


@dataclass
class BuildConfig:
    """Build and assembly configuration."""

    extension_command: str = "npm run build"  # Run inside each extension
    host_command: str = "npm run build:ts"  # Empty string skips the host build
    start_command: str = "directus start"  # Start script of the bundle
    aux_files: list[str] = field(default_factory=lambda: ["README.md", "README", "LICENSE"])
    deploy_files: list[str] = field(default_factory=lambda: ["ecosystem.config.json", "config"])


@dataclass
class WatchConfig:
    """Development watch/restart configuration."""

    paths: list[str] = field(
        default_factory=lambda: [
            "src",
            ".config",
            "config",
            "tsconfig.json",
            "package.json",
            "snapshot.js",
        ]
    )
    extensions: list[str] = field(default_factory=lambda: ["ts", "env", "liquid"])
    delay: float = 0.5  # Debounce delay in seconds
    script: str = "src/start.ts"
    exec_command: str = (
        "node --loader ts-node/esm -r tsconfig-paths/register {script} --project {tsconfig}"
    )


@dataclass
class EnvironmentsConfig:
    """Named environments selectable with --env."""

    choices: list[str] = field(default_factory=lambda: ["portal", "staging", "staging2"])
    default: str = "portal"

    def validate(self, name: str) -> str:
        """Return ``name`` if it is a known environment.

        Raises:
            ConfigError: If the environment is not configured.
        """
        if name not in self.choices:
            raise ConfigError(
                f"Unknown environment: {name}. Choose one of: {', '.join(self.choices)}"
            )
        return name


@dataclass
class PipelineConfig:
    """Pipeline execution configuration."""

    log_level: str = "INFO"


@dataclass
class Config:
    """Main configuration container."""

    paths: PathsConfig = field(default_factory=PathsConfig)
    build: BuildConfig = field(default_factory=BuildConfig)
    watch: WatchConfig = field(default_factory=WatchConfig)
    environments: EnvironmentsConfig = field(default_factory=EnvironmentsConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Config":
        """Create Config from dictionary.

        Raises:
            ConfigError: If a section holds unknown keys.
        """
        sections = {
            "paths": PathsConfig,
            "build": BuildConfig,
            "watch": WatchConfig,
            "environments": EnvironmentsConfig,
            "pipeline": PipelineConfig,
        }

        kwargs: dict[str, Any] = {}
        for name, section_cls in sections.items():
            section_data = data.get(name, {})
            try:
                kwargs[name] = section_cls(**section_data)
            except TypeError as e:
                raise ConfigError(f"Invalid [{name}] section: {e}") from e

        config = cls(**kwargs)
        config.environments.validate(config.environments.default)
        return config


def find_config_file(start: Path | None = None) -> Path | None:
    """Find extstage.toml in the start directory or its parents.

    Returns:
        Path to extstage.toml or None if not found.
    """
    current = Path(start) if start else Path.cwd()

    for directory in [current, *current.parents]:
        config_path = directory / CONFIG_FILENAME
        if config_path.exists():
            return config_path

    return None


def load_config(config_path: Path | str | None = None, root: Path | None = None) -> Config:
    """Load configuration from file and environment.

    Args:
        config_path: Optional explicit path to extstage.toml
        root: Project root used to search for extstage.toml and .env

    Returns:
        Config object with merged settings.

    Raises:
        ConfigError: If the config file cannot be parsed.
    """
    root = Path(root) if root else Path.cwd()

    # Load .env file if present
    load_dotenv(root / ".env")

    # Start with defaults
    config_data: dict[str, Any] = {}

    # Load from file if available
    if config_path is None:
        config_path = find_config_file(root)

    if config_path is not None:
        path = Path(config_path)
        if path.exists():
            try:
                with open(path, "rb") as f:
                    config_data = tomllib.load(f)
            except tomllib.TOMLDecodeError as e:
                raise ConfigError(f"Invalid config file {path}: {e}") from e

    # Apply environment variable overrides
    env_overrides = {
        "paths": {
            "extensions_source": os.getenv("EXTSTAGE_EXTENSIONS_SOURCE"),
            "runtime_extensions": os.getenv("EXTSTAGE_RUNTIME_EXTENSIONS"),
            "dist_dir": os.getenv("EXTSTAGE_DIST_DIR"),
        },
        "build": {
            "extension_command": os.getenv("EXTSTAGE_BUILD_COMMAND"),
        },
        "pipeline": {
            "log_level": os.getenv("EXTSTAGE_LOG_LEVEL"),
        },
    }

    # Merge env overrides (only non-None values)
    for section, values in env_overrides.items():
        if section not in config_data:
            config_data[section] = {}
        for key, value in values.items():
            if value is not None:
                config_data[section][key] = value

    return Config.from_dict(config_data)
