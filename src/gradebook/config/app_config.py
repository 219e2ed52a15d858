"""Application configuration loader.

Loads configuration from data/config/gradebook.yaml, falling back to
built-in defaults. GRADEBOOK_DB_PATH overrides the database path.

Usage:
    from gradebook.config.app_config import load_app_config

    config = load_app_config()
    db_path = config.database.path
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

# Config file path (relative to project root)
CONFIG_FILE = Path("data/config/gradebook.yaml")

DB_PATH_ENV = "GRADEBOOK_DB_PATH"


@dataclass
class DatabaseConfig:
    """Where the SQLite database lives."""

    path: str = "db/gradebook.db"


@dataclass
class LoggingConfig:
    """Log level for the command line."""

    level: str = "INFO"


@dataclass
class AppConfig:
    """Application-wide configuration."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "database": {"path": "db/gradebook.db"},
        "logging": {"level": "INFO"},
    }


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    defaults = _get_defaults()

    database_data = data.get("database") or {}
    logging_data = data.get("logging") or {}

    database = DatabaseConfig(
        path=str(database_data.get("path", defaults["database"]["path"])),
    )
    log = LoggingConfig(
        level=str(logging_data.get("level", defaults["logging"]["level"])).upper(),
    )

    env_path = os.environ.get(DB_PATH_ENV)
    if env_path:
        database.path = env_path

    return AppConfig(database=database, logging=log)


def load_app_config(
    force_reload: bool = False,
    config_file: Path | None = None,
) -> AppConfig:
    """Load application config, using defaults when no file exists.

    Args:
        force_reload: If True, ignore cached config and reload from file.
        config_file: Alternative YAML file (default: data/config/gradebook.yaml)

    Returns:
        AppConfig object with all settings.
    """
    global _cached_config

    if _cached_config is not None and not force_reload:
        return _cached_config

    source = config_file or CONFIG_FILE
    data: dict[str, Any]

    if source.exists():
        logger.debug("loading_app_config", source=str(source))
        data = yaml.safe_load(source.read_text(encoding="utf-8")) or {}
    else:
        logger.debug("using_default_config")
        data = _get_defaults()

    _cached_config = _parse_config(data)
    return _cached_config


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None
