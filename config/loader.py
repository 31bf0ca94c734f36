"""
Configuration loader.

Loads configuration from:
1. Default values (built-in)
2. TOML config file (broksum.toml or ~/.config/broksum/config.toml)
3. Environment variables (BROKSUM_*)

Priority: env vars > config file > defaults
"""

import logging
import os
import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .schema import BroksumConfig

logger = logging.getLogger(__name__)

# Config file search paths (in priority order)
CONFIG_PATHS = [
    Path("broksum.toml"),                                  # Current directory
    Path(".broksum.toml"),                                 # Hidden in current directory
    Path.home() / ".config" / "broksum" / "config.toml",   # User config
    Path("/etc/broksum/config.toml"),                      # System config
]

# Environment variable prefix
ENV_PREFIX = "BROKSUM_"


class ConfigError(Exception):
    """Configuration error with helpful message."""

    def __init__(self, message: str, source: str | None = None, field: str | None = None):
        self.source = source
        self.field = field
        super().__init__(message)

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.source:
            parts.append(f"Source: {self.source}")
        if self.field:
            parts.append(f"Field: {self.field}")
        return " | ".join(parts)


def _load_toml_file(path: Path) -> dict[str, Any]:
    """Load TOML file if it exists."""
    if not path.exists():
        return {}

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except (tomllib.TOMLDecodeError, OSError) as e:
        raise ConfigError(f"Failed to parse TOML: {e}", source=str(path)) from e

    logger.info(f"Loaded config from: {path}")
    return data


def _find_config_file() -> Path | None:
    """Find the first existing config file."""
    for path in CONFIG_PATHS:
        if path.exists():
            return path
    return None


def _load_env_overrides() -> dict[str, Any]:
    """Collect top-level overrides from environment variables."""
    overrides: dict[str, Any] = {}

    if mode := os.environ.get(f"{ENV_PREFIX}VALUATION_MODE"):
        overrides["valuation_mode"] = mode.strip().lower()

    if index_pe := os.environ.get(f"{ENV_PREFIX}INDEX_PE"):
        try:
            overrides["index_pe"] = float(index_pe)
        except ValueError as e:
            raise ConfigError(
                f"Invalid number: {index_pe!r}",
                source="environment",
                field=f"{ENV_PREFIX}INDEX_PE",
            ) from e

    if log_level := os.environ.get(f"{ENV_PREFIX}LOG_LEVEL"):
        overrides["log_level"] = log_level

    return overrides


def load_config(config_path: Path | str | None = None) -> BroksumConfig:
    """
    Load and validate configuration.

    Args:
        config_path: Explicit path to config file (optional)

    Returns:
        Validated BroksumConfig

    Raises:
        ConfigError: If configuration is invalid
    """
    config_data: dict[str, Any] = {}
    source: str | None = None

    if config_path:
        path = Path(config_path)
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}", source=str(path))
        config_data = _load_toml_file(path)
        source = str(path)
    else:
        found_path = _find_config_file()
        if found_path:
            config_data = _load_toml_file(found_path)
            source = str(found_path)

    env_overrides = _load_env_overrides()
    if env_overrides:
        config_data.update(env_overrides)
        logger.debug(f"Applied {len(env_overrides)} override(s) from environment")

    try:
        config = BroksumConfig(**config_data)
    except ValidationError as e:
        errors = e.errors()
        if errors:
            first_error = errors[0]
            field = ".".join(str(loc) for loc in first_error.get("loc", []))
            msg = first_error.get("msg", "Validation error")
            raise ConfigError(f"Invalid configuration: {msg}", source=source, field=field) from e
        raise ConfigError(f"Invalid configuration: {e}", source=source) from e

    return config


@lru_cache
def get_config() -> BroksumConfig:
    """
    Get singleton configuration instance.

    Uses LRU cache to ensure config is loaded only once.
    """
    return load_config()


def reload_config(config_path: Path | str | None = None) -> BroksumConfig:
    """
    Force reload configuration.

    Clears the cache. An explicit path is loaded directly and not cached.
    """
    get_config.cache_clear()
    if config_path:
        return load_config(config_path)
    return get_config()
