# src/pagetree/config.py
"""Configuration system for the pagetree service.

This module handles loading settings from environment variables and INI files,
providing sensible defaults, and computing derived paths for the design-assets
directory structure.
"""

from configparser import ConfigParser
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional
import os


class ConfigError(Exception):
    """Raised when configuration validation fails."""

    pass


# Schema: section -> key -> (type, default, min, max, description)
CONFIG_SCHEMA: dict[str, dict[str, tuple[type, Any, Any, Any, str]]] = {
    "cache": {
        "ttl_short_seconds": (int, 60, 1, 86400, "TTL for the module list cache"),
        "ttl_medium_seconds": (int, 300, 1, 86400, "TTL for per-module tree caches"),
        "ttl_long_seconds": (int, 900, 1, 86400, "TTL for the analytics cache"),
    },
    "mermaid": {
        "theme": (str, "default", None, None, "Mermaid theme name"),
        "layout_direction": (str, "TD", None, None, "Flowchart direction (TD, LR, ...)"),
        "label_max_length": (int, 40, 10, 200, "Max characters in a node label"),
    },
    "paths": {
        "assets_dir": (str, "design-assets", None, None, "Directory holding all modules"),
    },
}


@dataclass(frozen=True)
class CacheConfig:
    """Cache time-to-live configuration."""

    ttl_short_seconds: int
    ttl_medium_seconds: int
    ttl_long_seconds: int


@dataclass(frozen=True)
class MermaidConfig:
    """Diagram rendering preferences."""

    theme: str
    layout_direction: str
    label_max_length: int


@dataclass(frozen=True)
class PathsConfig:
    """Path names configuration."""

    assets_dir: str


def _load_section(
    parser: ConfigParser, section: str, schema: dict[str, tuple[type, Any, Any, Any, str]]
) -> dict[str, Any]:
    """Load and validate a configuration section.

    Args:
        parser: ConfigParser instance with loaded config
        section: Section name to load
        schema: Schema definition for the section

    Returns:
        Dictionary of validated configuration values

    Raises:
        ConfigError: If validation fails
    """
    result = {}

    for key, (typ, default, min_val, max_val, _) in schema.items():
        if parser.has_option(section, key):
            raw_value = parser.get(section, key)
            value: int | float | str
            try:
                if typ is int:
                    value = int(raw_value)
                elif typ is float:
                    value = float(raw_value)
                else:
                    value = raw_value.strip()
            except ValueError as e:
                raise ConfigError(
                    f"Invalid value for [{section}].{key}: {raw_value!r} (expected {typ.__name__})"
                ) from e
        else:
            value = default

        if typ in (int, float) and value is not None:
            if min_val is not None and value < min_val:
                raise ConfigError(
                    f"Value for [{section}].{key} is {value}, but minimum is {min_val}"
                )
            if max_val is not None and value > max_val:
                raise ConfigError(
                    f"Value for [{section}].{key} is {value}, but maximum is {max_val}"
                )

        result[key] = value

    return result


def _defaults(section: str) -> dict[str, Any]:
    return {key: default for key, (_, default, _, _, _) in CONFIG_SCHEMA[section].items()}


def _load_config(config_path: Optional[Path] = None) -> "Config":
    """Load configuration from an INI file (internal use only).

    Returns a Config with a placeholder workspace_path that load_settings()
    replaces with the path from the WORKSPACE_PATH environment variable.

    Raises:
        ConfigError: If validation fails
    """
    parser = ConfigParser()

    if config_path and config_path.exists():
        parser.read(config_path, encoding="utf-8")

    cache = CacheConfig(**_load_section(parser, "cache", CONFIG_SCHEMA["cache"]))
    mermaid = MermaidConfig(**_load_section(parser, "mermaid", CONFIG_SCHEMA["mermaid"]))
    paths = PathsConfig(**_load_section(parser, "paths", CONFIG_SCHEMA["paths"]))

    return Config(
        workspace_path=Path("."),  # Placeholder, will be overwritten
        cache=cache,
        mermaid=mermaid,
        paths=paths,
    )


@dataclass(frozen=True)
class Config:
    """Complete application configuration."""

    workspace_path: Path
    project_name: Optional[str] = None

    # Section configs - defaults set in __post_init__
    cache: CacheConfig = None  # type: ignore[assignment]
    mermaid: MermaidConfig = None  # type: ignore[assignment]
    paths: PathsConfig = None  # type: ignore[assignment]

    def __post_init__(self):
        """Initialize section configs with defaults if not provided."""
        if self.cache is None:
            object.__setattr__(self, "cache", CacheConfig(**_defaults("cache")))
        if self.mermaid is None:
            object.__setattr__(self, "mermaid", MermaidConfig(**_defaults("mermaid")))
        if self.paths is None:
            object.__setattr__(self, "paths", PathsConfig(**_defaults("paths")))

    @property
    def assets_path(self) -> Path:
        """Path to the directory containing every module."""
        return self.workspace_path / self.paths.assets_dir

    @property
    def config_path(self) -> Path:
        """Path to the workspace config.ini file."""
        return self.workspace_path / "config.ini"

    @property
    def display_name(self) -> str:
        """Project name shown in analytics and exports."""
        return self.project_name or self.workspace_path.resolve().name


@lru_cache(maxsize=1)
def load_settings() -> Config:
    """Load settings from environment variables and config file.

    Settings are cached for the lifetime of the application.
    Use load_settings.cache_clear() to reload settings.

    Raises:
        ValueError: If WORKSPACE_PATH is not set.
        ConfigError: If config.ini holds invalid values.
    """
    workspace_path_str = os.getenv("WORKSPACE_PATH")
    if not workspace_path_str:
        raise ValueError("WORKSPACE_PATH environment variable must be set")

    workspace_path = Path(workspace_path_str)

    config_file = workspace_path / "config.ini"
    try:
        config_exists = config_file.exists()
    except PermissionError:
        config_exists = False
    base_config = _load_config(config_file if config_exists else None)

    return Config(
        workspace_path=workspace_path,
        project_name=os.getenv("PAGETREE_PROJECT_NAME"),
        cache=base_config.cache,
        mermaid=base_config.mermaid,
        paths=base_config.paths,
    )


Settings = Config
