"""Import batches and records: the persisted units of work of a bulk import.

A batch opens as ``PENDING`` and is moved to a terminal status exactly once.
Each record inside it follows the same single transition. Terminal entities are
history and are never mutated again.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from shelfie.domain.errors import InvalidStateError
from shelfie.domain.model.entity import Entity
from shelfie.domain.model.enums import ImportStatus

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from shelfie.domain.model.primitives import BatchId, Digest, HouseholdId, ItemId

UNKNOWN_ERROR = "unknown error"


@dataclass(eq=False, kw_only=True)
class ImportBatch(Entity):
    household_id: HouseholdId
    source: str
    file_name: str | None = None
    archive_url: str | None = None
    started_at: datetime
    finished_at: datetime | None = None
    status: ImportStatus = ImportStatus.PENDING
    duplicates_skipped: int = 0

    @property
    def is_finished(self) -> bool:
        return self.status.is_terminal

    def finish(self, status: ImportStatus, at: datetime, *, duplicates_skipped: int = 0) -> None:
        if self.status.is_terminal:
            raise InvalidStateError(f"Import batch {self.id} is already {self.status}")
        if not status.is_terminal:
            raise InvalidStateError(f"Cannot finish import batch {self.id} as {status}")
        if at < self.started_at:
            raise InvalidStateError(
                f"Import batch {self.id} cannot finish before it started ({at} < {self.started_at})"
            )
        if duplicates_skipped < 0:
            raise ValueError("duplicates_skipped must be non-negative")
        self.status = status
        self.finished_at = at
        self.duplicates_skipped = duplicates_skipped


@dataclass(eq=False, kw_only=True)
class ImportRecord(Entity):
    batch_id: BatchId
    external_id: str | None = None
    payload: str
    payload_digest: Digest
    created_at: datetime
    status: ImportStatus = ImportStatus.PENDING
    error: str | None = None
    processed_at: datetime | None = None
    item_id: ItemId | None = None

    def complete(self, at: datetime, item_id: ItemId | None = None) -> None:
        self._require_pending("complete")
        self.status = ImportStatus.COMPLETED
        self.error = None
        self.processed_at = at
        self.item_id = item_id

    def fail(self, message: str, at: datetime) -> None:
        self._require_pending("fail")
        self.status = ImportStatus.FAILED
        self.error = message.strip() or UNKNOWN_ERROR
        self.processed_at = at

    def reopen(self) -> None:
        """Undo a terminal transition that storage refused to persist."""
        self.status = ImportStatus.PENDING
        self.error = None
        self.processed_at = None
        self.item_id = None

    def _require_pending(self, action: str) -> None:
        if self.status.is_terminal:
            raise InvalidStateError(
                f"Cannot {action} import record {self.id}: already {self.status}"
            )


@dataclass(frozen=True, slots=True)
class ImportRecordFailure:
    """Operator-facing view of a failed record."""

    id: UUID
    external_id: str | None
    created_at: datetime
    processed_at: datetime | None
    error: str

    @classmethod
    def from_record(cls, record: ImportRecord) -> ImportRecordFailure:
        return cls(
            id=record.id,
            external_id=record.external_id,
            created_at=record.created_at,
            processed_at=record.processed_at,
            error=record.error or UNKNOWN_ERROR,
        )
