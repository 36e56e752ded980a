"""Application configuration helpers."""

from __future__ import annotations

from .env import env_positive_int
from .errors import ConfigurationError
from .imports import ArchiveConfig, ImportConfig, get_archive_config, get_import_config
from .logging import configure_logging
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "ArchiveConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "ImportConfig",
    "StorageConfig",
    "configure_logging",
    "env_positive_int",
    "get_archive_config",
    "get_database_config",
    "get_import_config",
    "get_storage_config",
]
