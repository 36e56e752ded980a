from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING
from uuid import uuid4

import pytest

from shelfie.domain.errors import BatchNotFoundError
from shelfie.domain.import_pipeline import ImportLedger, ImportReporter
from shelfie.domain.model import ImportStatus
from tests.helpers.imports import HOUSEHOLD_ID, OTHER_HOUSEHOLD_ID, START, TickingClock, item_payload

if TYPE_CHECKING:
    from collections.abc import Callable

    from shelfie.domain.model import ImportBatch
    from tests.helpers.imports import FakeImportUnitOfWork, InMemoryImportStore


def _batch_with_failures(
    fake_uow_factory: Callable[[], FakeImportUnitOfWork], *, failures: int, completed: int = 1
) -> ImportBatch:
    ledger = ImportLedger(fake_uow_factory(), clock=TickingClock())
    batch = ledger.open_batch(HOUSEHOLD_ID, "csv-upload")
    for n in range(completed):
        ledger.complete_record(ledger.ingest_payload(batch, item_payload(f"ok-{n}")).record)
    for n in range(failures):
        record = ledger.ingest_payload(batch, item_payload(f"bad-{n}"), f"bad-{n}").record
        ledger.fail_record(record, f"problem {n}")
    ledger.finalize_batch(batch, duplicates_skipped=4)
    return batch


def test_summary_counts_records_and_duplicates(
    fake_uow_factory: Callable[[], FakeImportUnitOfWork],
) -> None:
    batch = _batch_with_failures(fake_uow_factory, failures=2, completed=3)

    summary = ImportReporter(fake_uow_factory).summarize(batch.id)

    assert summary.batch_id == batch.id
    assert summary.status is ImportStatus.COMPLETED
    assert (summary.total, summary.completed, summary.failed, summary.pending) == (5, 3, 2, 0)
    assert summary.duplicates_skipped == 4
    assert summary.has_failures


def test_abandoned_records_count_as_pending(
    fake_uow_factory: Callable[[], FakeImportUnitOfWork],
) -> None:
    ledger = ImportLedger(fake_uow_factory(), clock=TickingClock())
    batch = ledger.open_batch(HOUSEHOLD_ID, "csv-upload")
    ledger.ingest_payload(batch, item_payload("left-behind"))
    ledger.finalize_batch(batch, ImportStatus.FAILED)

    summary = ImportReporter(fake_uow_factory).summarize(batch)

    assert (summary.total, summary.pending, summary.status) == (1, 1, ImportStatus.FAILED)


def test_failures_are_ordered_and_paged_lazily(
    fake_uow_factory: Callable[[], FakeImportUnitOfWork], import_store: InMemoryImportStore
) -> None:
    batch = _batch_with_failures(fake_uow_factory, failures=5)
    reporter = ImportReporter(fake_uow_factory, page_size=2)

    feed = reporter.list_failures(batch.id)
    first = next(iter(feed))

    assert first.external_id == "bad-0"
    assert import_store.failure_queries == [(0, 2)]
    failures = list(feed)
    assert [f.external_id for f in failures] == [f"bad-{n}" for n in range(5)]
    assert [f.error for f in failures][:2] == ["problem 0", "problem 1"]
    created = [f.created_at for f in failures]
    assert created == sorted(created)
    assert all(f.processed_at is not None for f in failures)
    assert import_store.failure_queries[1:] == [(0, 2), (2, 2), (4, 2)]


def test_failure_feed_is_re_iterable_and_sees_new_state(
    fake_uow_factory: Callable[[], FakeImportUnitOfWork], import_store: InMemoryImportStore
) -> None:
    batch = _batch_with_failures(fake_uow_factory, failures=1)
    feed = ImportReporter(fake_uow_factory, page_size=10).list_failures(batch)

    assert len(list(feed)) == 1
    record = import_store.records_for(batch.id)[0]
    record.status = ImportStatus.FAILED
    record.error = "late failure"
    assert len(list(feed)) == 2


def test_page_size_override(fake_uow_factory: Callable[[], FakeImportUnitOfWork]) -> None:
    batch = _batch_with_failures(fake_uow_factory, failures=3)

    feed = ImportReporter(fake_uow_factory, page_size=100).list_failures(batch, page_size=1)

    assert feed.page(skip=1)[0].external_id == "bad-1"
    assert len(list(feed)) == 3


def test_unknown_batch_raises(fake_uow_factory: Callable[[], FakeImportUnitOfWork]) -> None:
    reporter = ImportReporter(fake_uow_factory)
    missing = uuid4()

    with pytest.raises(BatchNotFoundError):
        reporter.summarize(missing)
    with pytest.raises(BatchNotFoundError):
        reporter.list_failures(missing)
    with pytest.raises(LookupError):
        reporter.get_batch(missing)


def test_list_batches_is_newest_first_and_household_scoped(
    fake_uow_factory: Callable[[], FakeImportUnitOfWork],
) -> None:
    clock = TickingClock(START, step=timedelta(hours=1))
    ledger = ImportLedger(fake_uow_factory(), clock=clock)
    older = ledger.open_batch(HOUSEHOLD_ID, "first")
    newer = ledger.open_batch(HOUSEHOLD_ID, "second")
    ledger.open_batch(OTHER_HOUSEHOLD_ID, "foreign")
    reporter = ImportReporter(fake_uow_factory)

    batches = reporter.list_batches(HOUSEHOLD_ID)

    assert [b.id for b in batches] == [newer.id, older.id]
    assert [b.id for b in reporter.list_batches(HOUSEHOLD_ID, take=1, skip=1)] == [older.id]


def test_reporter_requires_positive_page_size(
    fake_uow_factory: Callable[[], FakeImportUnitOfWork],
) -> None:
    with pytest.raises(ValueError, match="page_size"):
        ImportReporter(fake_uow_factory, page_size=0)
