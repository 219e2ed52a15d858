"""Configuration package for the gradebook."""

from gradebook.config.app_config import (
    AppConfig,
    DatabaseConfig,
    LoggingConfig,
    clear_config_cache,
    load_app_config,
)
from gradebook.config.logging import configure_logging

__all__ = [
    "AppConfig",
    "DatabaseConfig",
    "LoggingConfig",
    "clear_config_cache",
    "configure_logging",
    "load_app_config",
]
