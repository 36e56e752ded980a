"""Import processing defaults and archive settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .env import env_positive_int
from .storage import StorageConfig, get_storage_config

DEFAULT_MAX_PAYLOAD_BYTES = 64 * 1024
DEFAULT_FAILURE_PAGE_SIZE = 100
DEFAULT_ARCHIVE_BASE_URL = "file://"


@dataclass(frozen=True, slots=True)
class ImportConfig:
    max_payload_bytes: int = DEFAULT_MAX_PAYLOAD_BYTES
    failure_page_size: int = DEFAULT_FAILURE_PAGE_SIZE


@dataclass(frozen=True, slots=True)
class ArchiveConfig:
    base_path: Path
    base_url: str


def get_import_config() -> ImportConfig:
    return ImportConfig(
        max_payload_bytes=env_positive_int("SHELFIE_MAX_PAYLOAD_BYTES", DEFAULT_MAX_PAYLOAD_BYTES),
        failure_page_size=env_positive_int("SHELFIE_FAILURE_PAGE_SIZE", DEFAULT_FAILURE_PAGE_SIZE),
    )


def get_archive_config(*, storage: StorageConfig | None = None) -> ArchiveConfig:
    env_dir = os.getenv("SHELFIE_ARCHIVE_DIR")
    if env_dir:
        base_path = Path(env_dir).expanduser().resolve()
    else:
        base_path = (storage or get_storage_config()).archive_path(ensure=False)
    base_url = os.getenv("SHELFIE_ARCHIVE_BASE_URL") or f"{DEFAULT_ARCHIVE_BASE_URL}{base_path}"
    return ArchiveConfig(base_path=base_path, base_url=base_url)
