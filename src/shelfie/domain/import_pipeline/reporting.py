"""Read-only views over import batches for operators."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING

from shelfie.config.imports import DEFAULT_FAILURE_PAGE_SIZE
from shelfie.domain.errors import BatchNotFoundError
from shelfie.domain.model import ImportBatch, ImportRecordFailure, ImportStatus

if TYPE_CHECKING:
    from collections.abc import Sequence

    from shelfie.domain.model import BatchId, HouseholdId
    from shelfie.domain.ports.unit_of_work import ImportUnitOfWork

log = logging.getLogger(__name__)

UnitOfWorkFactory = Callable[[], "ImportUnitOfWork"]


@dataclass(frozen=True, slots=True)
class BatchSummary:
    batch_id: BatchId
    status: ImportStatus
    total: int
    completed: int
    failed: int
    pending: int
    duplicates_skipped: int

    @property
    def has_failures(self) -> bool:
        return self.failed > 0


class FailureFeed:
    """Lazily paged, re-iterable sequence of a batch's failed records.

    Each iteration starts from the first failure and fetches one page per
    unit of work, so arbitrarily large batches are never loaded at once.
    """

    def __init__(
        self, unit_of_work_factory: UnitOfWorkFactory, batch_id: BatchId, *, page_size: int
    ) -> None:
        self._unit_of_work_factory = unit_of_work_factory
        self._batch_id = batch_id
        self._page_size = page_size

    @property
    def batch_id(self) -> BatchId:
        return self._batch_id

    def __iter__(self) -> Iterator[ImportRecordFailure]:
        skip = 0
        while True:
            page = self.page(skip=skip)
            yield from page
            if len(page) < self._page_size:
                return
            skip += len(page)

    def page(self, *, skip: int = 0) -> list[ImportRecordFailure]:
        with self._unit_of_work_factory() as uow:
            records = uow.repositories.records.list_failures(
                self._batch_id, take=self._page_size, skip=skip
            )
            return [ImportRecordFailure.from_record(record) for record in records]


class ImportReporter:
    def __init__(
        self,
        unit_of_work_factory: UnitOfWorkFactory,
        *,
        page_size: int = DEFAULT_FAILURE_PAGE_SIZE,
    ) -> None:
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self._unit_of_work_factory = unit_of_work_factory
        self._page_size = page_size

    def get_batch(self, batch_id: BatchId) -> ImportBatch:
        with self._unit_of_work_factory() as uow:
            batch = uow.repositories.batches.get(batch_id)
        if batch is None:
            raise BatchNotFoundError(batch_id)
        return batch

    def summarize(self, batch: ImportBatch | BatchId) -> BatchSummary:
        batch_id = _batch_id(batch)
        with self._unit_of_work_factory() as uow:
            stored = uow.repositories.batches.get(batch_id)
            if stored is None:
                raise BatchNotFoundError(batch_id)
            counts = uow.repositories.records.count_by_status(batch_id)

        completed = counts.get(ImportStatus.COMPLETED, 0)
        failed = counts.get(ImportStatus.FAILED, 0)
        pending = counts.get(ImportStatus.PENDING, 0)
        return BatchSummary(
            batch_id=stored.id,
            status=stored.status,
            total=completed + failed + pending,
            completed=completed,
            failed=failed,
            pending=pending,
            duplicates_skipped=stored.duplicates_skipped,
        )

    def list_failures(
        self, batch: ImportBatch | BatchId, *, page_size: int | None = None
    ) -> FailureFeed:
        """Failed records of ``batch`` in creation order.

        The batch is checked up front so a bad id fails here and not on first
        iteration.
        """
        batch_id = _batch_id(batch)
        self.get_batch(batch_id)
        return FailureFeed(
            self._unit_of_work_factory, batch_id, page_size=page_size or self._page_size
        )

    def list_batches(
        self, household_id: HouseholdId, *, take: int = 20, skip: int = 0
    ) -> Sequence[ImportBatch]:
        with self._unit_of_work_factory() as uow:
            batches = list(
                uow.repositories.batches.list_for_household(household_id, take=take, skip=skip)
            )
        log.debug("Listed %s import batches for household %s", len(batches), household_id)
        return batches


def _batch_id(batch: ImportBatch | BatchId) -> BatchId:
    return batch.id if isinstance(batch, ImportBatch) else batch
