"""Configuration management for spatialbox.

Supports loading configuration from:
1. Environment variables (SPATIALBOX_*)
2. Config file (~/.spatialbox/config.yaml)
3. Default values

Example config file (~/.spatialbox/config.yaml):
    io:
      copy_chunk_size: 1048576
      temp_dir: "/tmp/spatialbox"
    logging:
      level: "INFO"
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

# Config file search locations (in priority order)
CONFIG_LOCATIONS = [
    Path.home() / ".spatialbox" / "config.yaml",
    Path.home() / ".config" / "spatialbox" / "config.yaml",
    Path(".spatialbox.yaml"),
]

DEFAULT_COPY_CHUNK_SIZE = 64 * 1024


@dataclass
class IOConfig:
    """Stream copy configuration."""

    copy_chunk_size: int = DEFAULT_COPY_CHUNK_SIZE
    temp_dir: str | None = None


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "WARNING"


@dataclass
class SpatialboxConfig:
    """Main configuration for spatialbox."""

    io: IOConfig = field(default_factory=IOConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _load_yaml_config() -> dict[str, Any]:
    """Load configuration from the first YAML file found."""
    for config_path in CONFIG_LOCATIONS:
        if config_path.exists():
            try:
                with open(config_path) as f:
                    data = yaml.safe_load(f)
                    return data if isinstance(data, dict) else {}
            except (OSError, yaml.YAMLError):
                continue
    return {}


def _get_env(key: str, default: Any = None) -> Any:
    """Get environment variable with SPATIALBOX_ prefix."""
    return os.environ.get(f"SPATIALBOX_{key}", default)


def load_config() -> SpatialboxConfig:
    """Load configuration from file and environment variables.

    Priority (highest first):
    1. Environment variables (SPATIALBOX_*)
    2. Config file (~/.spatialbox/config.yaml)
    3. Default values
    """
    file_config = _load_yaml_config()

    # IO config
    io_config = file_config.get("io") or {}
    chunk_size = int(
        _get_env("COPY_CHUNK_SIZE") or io_config.get("copy_chunk_size", DEFAULT_COPY_CHUNK_SIZE)
    )
    if chunk_size <= 0:
        raise ValueError(f"copy_chunk_size must be positive, got {chunk_size}")
    io = IOConfig(
        copy_chunk_size=chunk_size,
        temp_dir=_get_env("TEMP_DIR") or io_config.get("temp_dir"),
    )

    # Logging config
    logging_config = file_config.get("logging") or {}
    logging = LoggingConfig(
        level=str(_get_env("LOG_LEVEL") or logging_config.get("level", "WARNING")).upper(),
    )

    return SpatialboxConfig(io=io, logging=logging)


# Global config instance (lazy loaded)
_config: SpatialboxConfig | None = None


def get_config() -> SpatialboxConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Reset the global configuration (for testing)."""
    global _config
    _config = None
