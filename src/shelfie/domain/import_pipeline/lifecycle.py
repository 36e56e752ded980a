"""Batch and record lifecycle operations on top of a unit of work.

Every operation here is one durable step: it mutates the entity, hands it to
the repository and commits. Callers never touch the import repositories
directly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from shelfie.domain.errors import DuplicateDigestError, InvalidStateError, StorageError
from shelfie.domain.hashing import compute_digest, digest_hex, payload_bytes
from shelfie.domain.model import ImportBatch, ImportRecord, ImportStatus
from shelfie.domain.ports.clock import Clock, SystemClock

if TYPE_CHECKING:
    from shelfie.domain.import_pipeline.merge import MergeResult
    from shelfie.domain.model import HouseholdId
    from shelfie.domain.ports.unit_of_work import ImportUnitOfWork

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class IngestResult:
    record: ImportRecord
    is_duplicate: bool


class ImportLedger:
    """Durable bookkeeping for one import run."""

    def __init__(self, uow: ImportUnitOfWork, *, clock: Clock | None = None) -> None:
        self._uow = uow
        self._clock = clock or SystemClock()

    @property
    def clock(self) -> Clock:
        return self._clock

    def open_batch(
        self,
        household_id: HouseholdId,
        source: str,
        file_name: str | None = None,
        *,
        archive_url: str | None = None,
    ) -> ImportBatch:
        if not source.strip():
            raise ValueError("Import source must not be blank")
        batch = ImportBatch(
            household_id=household_id,
            source=source.strip(),
            file_name=file_name,
            archive_url=archive_url,
            started_at=self._clock.now(),
        )
        self._uow.repositories.batches.add(batch)
        self.save()
        log.info(
            "Opened import batch %s: household=%s, source=%s, file=%s",
            batch.id,
            household_id,
            batch.source,
            file_name,
        )
        return batch

    def ingest_payload(
        self,
        batch: ImportBatch,
        raw_payload: bytes | str,
        external_id: str | None = None,
    ) -> IngestResult:
        """Record ``raw_payload`` in ``batch`` unless byte-identical content is already there."""

        if batch.is_finished:
            raise InvalidStateError(f"Import batch {batch.id} is already {batch.status}")

        records = self._uow.repositories.records
        digest = compute_digest(raw_payload)
        existing = records.get_by_digest(batch.id, digest)
        if existing is not None:
            log.debug("Duplicate payload %s in batch %s", digest_hex(digest), batch.id)
            return IngestResult(record=existing, is_duplicate=True)

        record = ImportRecord(
            batch_id=batch.id,
            external_id=external_id,
            payload=_payload_text(raw_payload),
            payload_digest=digest,
            created_at=self._clock.now(),
        )
        try:
            records.add(record)
            self._uow.commit()
        except DuplicateDigestError:
            # the constraint is the source of truth; the lookup above only saves a round trip
            self._uow.rollback()
            existing = records.get_by_digest(batch.id, digest)
            if existing is None:
                raise
            log.debug("Payload %s lost an insert race in batch %s", digest_hex(digest), batch.id)
            return IngestResult(record=existing, is_duplicate=True)
        except StorageError:
            self._uow.rollback()
            raise
        return IngestResult(record=record, is_duplicate=False)

    def complete_record(self, record: ImportRecord, result: MergeResult | None = None) -> None:
        """Mark ``record`` completed in the same commit as any pending catalog changes."""
        record.complete(self._clock.now(), item_id=result.item_id if result else None)
        self._save_transition(record)

    def fail_record(self, record: ImportRecord, message: str) -> None:
        record.fail(message, self._clock.now())
        self._save_transition(record)

    def finalize_batch(
        self,
        batch: ImportBatch,
        status: ImportStatus = ImportStatus.COMPLETED,
        *,
        duplicates_skipped: int = 0,
    ) -> ImportBatch:
        batch.finish(status, self._clock.now(), duplicates_skipped=duplicates_skipped)
        self._uow.repositories.batches.update(batch)
        self.save()
        log.info(
            "Finalized import batch %s as %s (duplicates skipped: %s)",
            batch.id,
            batch.status,
            duplicates_skipped,
        )
        return batch

    def save(self) -> None:
        """Commit pending changes, rolling back if storage rejects them."""
        try:
            self._uow.commit()
        except StorageError:
            self._uow.rollback()
            raise

    def discard(self) -> None:
        self._uow.rollback()

    def _save_transition(self, record: ImportRecord) -> None:
        self._uow.repositories.records.update(record)
        try:
            self.save()
        except StorageError:
            record.reopen()
            raise


def _payload_text(raw_payload: bytes | str) -> str:
    if isinstance(raw_payload, str):
        return raw_payload
    return payload_bytes(raw_payload).decode("utf-8", errors="replace")
