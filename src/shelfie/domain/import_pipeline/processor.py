"""Drive one import batch end to end.

Rows are consumed once, in order, on a single thread. Each row ends as a
tagged outcome (completed, failed or duplicate) that is accumulated in the run
result; a bad row never stops the batch. Only a broken source or a failing
batch-level write ends the run early.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final, Protocol

from shelfie.config.imports import DEFAULT_MAX_PAYLOAD_BYTES
from shelfie.domain.errors import (
    PayloadTooLargeError,
    RecordError,
    SourceReadError,
    StorageError,
)
from shelfie.domain.hashing import payload_bytes
from shelfie.domain.import_pipeline.lifecycle import ImportLedger
from shelfie.domain.import_pipeline.merge import ExternalRefMergeStrategy, MergeStrategy
from shelfie.domain.import_pipeline.parsing import parse_payload
from shelfie.domain.model import ImportStatus
from shelfie.domain.ports.clock import Clock, SystemClock

if TYPE_CHECKING:
    from collections.abc import Iterable
    from uuid import UUID

    from shelfie.domain.import_pipeline.merge import MergeResult
    from shelfie.domain.model import HouseholdId, ImportBatch, ImportRecord
    from shelfie.domain.ports.unit_of_work import ImportUnitOfWork

log = logging.getLogger(__name__)

UnitOfWorkFactory = Callable[[], "ImportUnitOfWork"]

_END: Final = object()


class CancellationSignal(Protocol):
    """Anything with ``is_set()``; ``threading.Event`` qualifies."""

    def is_set(self) -> bool: ...


@dataclass(frozen=True, slots=True)
class SourceRow:
    """One raw payload as delivered by a source reader.

    ``external_id`` is the identifier the source system gave the row and is used
    to find the item again on re-import. ``position`` (e.g. ``line:3``) only
    labels the row in reports and never identifies an item.
    """

    payload: bytes | str
    external_id: str | None = None
    position: str | None = None

    @property
    def label(self) -> str | None:
        return self.external_id or self.position


@dataclass(frozen=True, slots=True)
class ImportRequest:
    household_id: HouseholdId
    source: str
    file_name: str | None = None
    archive_url: str | None = None


@dataclass(frozen=True, slots=True)
class RecordCompleted:
    record_id: UUID
    external_id: str | None
    item_id: UUID
    created: bool


@dataclass(frozen=True, slots=True)
class RecordFailed:
    record_id: UUID | None  # None when storage refused the record itself
    external_id: str | None
    error: str


@dataclass(frozen=True, slots=True)
class RecordDuplicate:
    record_id: UUID
    external_id: str | None


type RecordOutcome = RecordCompleted | RecordFailed | RecordDuplicate


@dataclass(slots=True)
class ImportRunResult:
    """Outcome of an import run."""

    batch: ImportBatch
    outcomes: list[RecordOutcome] = field(default_factory=list["RecordOutcome"])
    cancelled: bool = False

    @property
    def completed(self) -> int:
        return sum(1 for outcome in self.outcomes if isinstance(outcome, RecordCompleted))

    @property
    def failed(self) -> int:
        return sum(1 for outcome in self.outcomes if isinstance(outcome, RecordFailed))

    @property
    def duplicates(self) -> int:
        return sum(1 for outcome in self.outcomes if isinstance(outcome, RecordDuplicate))

    @property
    def failures(self) -> tuple[RecordFailed, ...]:
        return tuple(outcome for outcome in self.outcomes if isinstance(outcome, RecordFailed))


class ImportProcessor:
    """Run a bounded sequence of payloads through the import lifecycle."""

    def __init__(
        self,
        unit_of_work_factory: UnitOfWorkFactory,
        *,
        merge_strategy: MergeStrategy | None = None,
        clock: Clock | None = None,
        max_payload_bytes: int = DEFAULT_MAX_PAYLOAD_BYTES,
    ) -> None:
        if max_payload_bytes <= 0:
            raise ValueError("max_payload_bytes must be positive")
        self._unit_of_work_factory = unit_of_work_factory
        self._merge_strategy = merge_strategy or ExternalRefMergeStrategy()
        self._clock = clock or SystemClock()
        self._max_payload_bytes = max_payload_bytes

    def run(
        self,
        request: ImportRequest,
        rows: Iterable[SourceRow | bytes | str],
        *,
        cancel: CancellationSignal | None = None,
    ) -> ImportRunResult:
        with self._unit_of_work_factory() as uow:
            ledger = ImportLedger(uow, clock=self._clock)
            batch = ledger.open_batch(
                request.household_id,
                request.source,
                request.file_name,
                archive_url=request.archive_url,
            )
            result = ImportRunResult(batch=batch)

            iterator = iter(rows)
            while True:
                if cancel is not None and cancel.is_set():
                    result.cancelled = True
                    log.warning(
                        "Import batch %s cancelled after %s rows", batch.id, len(result.outcomes)
                    )
                    break
                try:
                    row = next(iterator, _END)
                    if row is _END:
                        break
                    source_row = _as_source_row(row)
                except Exception as exc:
                    raise self._abort(ledger, result, exc) from exc
                result.outcomes.append(self._process_row(ledger, uow, batch, source_row))

            status = ImportStatus.FAILED if result.cancelled else ImportStatus.COMPLETED
            ledger.finalize_batch(batch, status, duplicates_skipped=result.duplicates)

        log.info(
            "Import batch %s %s: completed=%s, failed=%s, duplicates=%s",
            batch.id,
            batch.status,
            result.completed,
            result.failed,
            result.duplicates,
        )
        return result

    def _process_row(
        self,
        ledger: ImportLedger,
        uow: ImportUnitOfWork,
        batch: ImportBatch,
        row: SourceRow,
    ) -> RecordOutcome:
        try:
            ingested = ledger.ingest_payload(batch, row.payload, row.label)
        except StorageError as exc:
            log.warning("Import row %r rejected by storage: %s", row.label, exc)
            return RecordFailed(record_id=None, external_id=row.label, error=str(exc))

        record = ingested.record
        if ingested.is_duplicate:
            return RecordDuplicate(record_id=record.id, external_id=row.label)

        try:
            merge_result = self._apply(uow, batch, row)
            ledger.complete_record(record, merge_result)
        except (RecordError, StorageError) as exc:
            ledger.discard()
            return self._fail(ledger, record, str(exc))

        return RecordCompleted(
            record_id=record.id,
            external_id=record.external_id,
            item_id=merge_result.item_id,
            created=merge_result.created,
        )

    def _apply(self, uow: ImportUnitOfWork, batch: ImportBatch, row: SourceRow) -> MergeResult:
        size = len(payload_bytes(row.payload))
        if size > self._max_payload_bytes:
            raise PayloadTooLargeError(size, self._max_payload_bytes)
        candidate = parse_payload(row.payload, external_id=row.external_id)
        return self._merge_strategy.merge(
            uow.repositories.items,
            batch.household_id,
            candidate,
            now=self._clock.now(),
        )

    @staticmethod
    def _abort(ledger: ImportLedger, result: ImportRunResult, exc: Exception) -> SourceReadError:
        batch = result.batch
        log.error(
            "Import source for batch %s failed after %s rows: %s",
            batch.id,
            len(result.outcomes),
            exc,
        )
        ledger.discard()
        ledger.finalize_batch(batch, ImportStatus.FAILED, duplicates_skipped=result.duplicates)
        return SourceReadError(
            f"Import source failed: {exc}", batch_id=batch.id, partial_result=result
        )

    @staticmethod
    def _fail(ledger: ImportLedger, record: ImportRecord, message: str) -> RecordFailed:
        try:
            ledger.fail_record(record, message)
        except StorageError as exc:
            # the record stays Pending in storage and is reported as abandoned
            log.error("Import record %s could not be marked failed: %s", record.id, exc)
            message = f"{message} (failure not stored: {exc})"
        else:
            log.warning(
                "Import record %s (external id %r) failed: %s",
                record.id,
                record.external_id,
                message,
            )
        return RecordFailed(record_id=record.id, external_id=record.external_id, error=message)


def _as_source_row(row: object) -> SourceRow:
    if isinstance(row, SourceRow):
        return row
    if isinstance(row, (bytes, str)):
        return SourceRow(payload=row)
    raise TypeError(f"Unsupported import row type: {type(row).__name__}")
