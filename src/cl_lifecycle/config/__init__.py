"""Application configuration helpers."""

from __future__ import annotations

from .controller import ControllerConfig, get_controller_config
from .env import env_flag
from .errors import ConfigurationError
from .logging import configure_logging
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "ConfigurationError",
    "ControllerConfig",
    "DatabaseConfig",
    "StorageConfig",
    "configure_logging",
    "env_flag",
    "get_controller_config",
    "get_database_config",
    "get_storage_config",
]
