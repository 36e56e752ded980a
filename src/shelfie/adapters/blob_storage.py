"""Filesystem-backed blob storage for archiving uploaded source files."""

from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING
from urllib.parse import quote

from shelfie.domain.errors import StorageError

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

log = logging.getLogger(__name__)


def archive_path(household_id: UUID, file_name: str, *, at: datetime, token: UUID) -> str:
    """Storage path for an uploaded file: ``imports/<household>/<yyyy>/<mm>/<token>-<name>``."""

    safe_name = PurePosixPath(file_name.replace("\\", "/")).name or "upload"
    return f"imports/{household_id}/{at:%Y}/{at:%m}/{token}-{safe_name}"


class LocalFileBlobStorage:
    """Stores blobs as files below ``base_path`` and serves them from ``base_url``."""

    def __init__(self, base_path: Path, base_url: str) -> None:
        self.base_path = base_path.resolve()
        self.base_url = base_url.rstrip("/")

    def upload(self, path: str, content: bytes, content_type: str) -> str:
        target = self._resolve(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)
        except OSError as exc:
            raise StorageError(f"Could not archive {path}: {exc}") from exc
        log.info("Archived %s bytes (%s) to %s", len(content), content_type, target)
        return self.public_url(path)

    def delete(self, path: str) -> bool:
        target = self._resolve(path)
        try:
            target.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise StorageError(f"Could not delete {path}: {exc}") from exc
        log.info("Deleted archived file %s", target)
        return True

    def public_url(self, path: str) -> str:
        relative = self._relative(path)
        return f"{self.base_url}/{quote(relative.as_posix())}"

    def _relative(self, path: str) -> PurePosixPath:
        relative = PurePosixPath(path.lstrip("/"))
        if not relative.parts or ".." in relative.parts:
            raise ValueError(f"Invalid blob path: {path!r}")
        return relative

    def _resolve(self, path: str) -> Path:
        return self.base_path.joinpath(*self._relative(path).parts)


if TYPE_CHECKING:
    from shelfie.domain.ports.blob_storage import BlobStorage

    _blob_storage_check: BlobStorage = LocalFileBlobStorage(Path(), "")
