"""Tests for SQLAlchemy repositories."""

from __future__ import annotations

from datetime import timedelta

import pytest
from sqlalchemy.orm import Session  # noqa: TC002

from shelfie.adapters.sqlalchemy.repositories import (
    SqlAlchemyImportBatchRepository,
    SqlAlchemyImportRecordRepository,
    SqlAlchemyItemSearchRepository,
    SqlAlchemyLibraryItemRepository,
)
from shelfie.domain.errors import DuplicateDigestError
from shelfie.domain.hashing import compute_digest
from shelfie.domain.model import ImportBatch, ImportRecord, ImportStatus
from tests.helpers.imports import HOUSEHOLD_ID, OTHER_HOUSEHOLD_ID, START, make_batch, make_item


def _add_batch(session: Session, **kwargs: object) -> ImportBatch:
    batch = make_batch(**kwargs)  # type: ignore[arg-type]
    SqlAlchemyImportBatchRepository(session).add(batch)
    session.commit()
    return batch


def _record(batch: ImportBatch, payload: str, *, offset: int = 0) -> ImportRecord:
    return ImportRecord(
        batch_id=batch.id,
        external_id=payload,
        payload=payload,
        payload_digest=compute_digest(payload),
        created_at=START + timedelta(seconds=offset),
    )


def test_batches_are_listed_newest_first_per_household(sqlite_session: Session) -> None:
    older = _add_batch(sqlite_session, started_at=START)
    newer = _add_batch(sqlite_session, started_at=START + timedelta(hours=1))
    _add_batch(sqlite_session, household_id=OTHER_HOUSEHOLD_ID)
    repository = SqlAlchemyImportBatchRepository(sqlite_session)

    batches = repository.list_for_household(HOUSEHOLD_ID, take=10)

    assert [b.id for b in batches] == [newer.id, older.id]
    assert [b.id for b in repository.list_for_household(HOUSEHOLD_ID, take=1, skip=1)] == [
        older.id
    ]
    assert repository.get(older.id) is older


def test_record_lookup_by_digest_is_batch_scoped(sqlite_session: Session) -> None:
    first_batch = _add_batch(sqlite_session)
    second_batch = _add_batch(sqlite_session)
    repository = SqlAlchemyImportRecordRepository(sqlite_session)
    record = _record(first_batch, '{"a": 1}')
    repository.add(record)
    sqlite_session.commit()

    assert repository.get_by_digest(first_batch.id, compute_digest('{"a": 1}')) is record
    assert repository.get_by_digest(second_batch.id, compute_digest('{"a": 1}')) is None
    assert repository.get(record.id) is record


def test_duplicate_digest_is_rejected_by_the_database(sqlite_session: Session) -> None:
    batch = _add_batch(sqlite_session)
    repository = SqlAlchemyImportRecordRepository(sqlite_session)
    repository.add(_record(batch, '{"a": 1}'))
    sqlite_session.commit()

    with pytest.raises(DuplicateDigestError):
        repository.add(_record(batch, '{"a": 1}', offset=1))
    sqlite_session.rollback()

    assert repository.count_by_status(batch.id) == {ImportStatus.PENDING: 1}


def test_failures_are_ordered_by_creation_and_paged(sqlite_session: Session) -> None:
    batch = _add_batch(sqlite_session)
    repository = SqlAlchemyImportRecordRepository(sqlite_session)
    records = [_record(batch, f'{{"n": {n}}}', offset=10 - n) for n in range(4)]
    for record in records:
        repository.add(record)
    records[0].complete(START + timedelta(minutes=1))
    for record in records[1:]:
        record.fail("bad", START + timedelta(minutes=1))
    sqlite_session.commit()

    first_page = repository.list_failures(batch.id, take=2)
    second_page = repository.list_failures(batch.id, take=2, skip=2)

    # created_at runs backwards with n, so the last record failed first
    assert [r.id for r in first_page] == [records[3].id, records[2].id]
    assert [r.id for r in second_page] == [records[1].id]
    assert repository.count_by_status(batch.id) == {
        ImportStatus.COMPLETED: 1,
        ImportStatus.FAILED: 3,
    }


def test_item_lookups_are_household_scoped(sqlite_session: Session) -> None:
    mine = make_item(external_ref="gr-1", barcode="123")
    theirs = make_item(household_id=OTHER_HOUSEHOLD_ID, external_ref="gr-1", barcode="123")
    repository = SqlAlchemyLibraryItemRepository(sqlite_session)
    repository.add(mine)
    repository.add(theirs)
    sqlite_session.commit()

    assert [i.id for i in repository.find_by_external_ref(HOUSEHOLD_ID, "gr-1")] == [mine.id]
    assert [i.id for i in repository.find_by_barcode(OTHER_HOUSEHOLD_ID, "123")] == [theirs.id]
    assert repository.find_by_barcode(HOUSEHOLD_ID, "999") == []


def test_search_matches_titles_and_authors_case_insensitively(sqlite_session: Session) -> None:
    items = SqlAlchemyLibraryItemRepository(sqlite_session)
    dune = make_item(title="Dune", authors="Frank Herbert", barcode="1", location="Shelf A")
    emma = make_item(title="Emma", authors="Jane Austen", barcode="2", location="Shelf B")
    foreign = make_item(household_id=OTHER_HOUSEHOLD_ID, title="Dune Messiah")
    for item in (dune, emma, foreign):
        items.add(item)
    sqlite_session.commit()
    search = SqlAlchemyItemSearchRepository(sqlite_session)

    by_author = search.search(HOUSEHOLD_ID, query="herbert")
    by_title = search.search(HOUSEHOLD_ID, query="EMM")
    by_location = search.search(HOUSEHOLD_ID, location="Shelf B")
    everything = search.search(HOUSEHOLD_ID)

    assert [r.item_id for r in by_author] == [dune.id]
    assert by_author[0].work_id == dune.work.id
    assert by_author[0].authors == "Frank Herbert"
    assert by_author[0].work_title == "Dune"
    assert [r.item_id for r in by_title] == [emma.id]
    assert [r.item_id for r in by_location] == [emma.id]
    assert [r.title for r in everything] == ["Dune", "Emma"]
    assert search.search(HOUSEHOLD_ID, barcode="1", status="lent") == []
