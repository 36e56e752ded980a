"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from shelfie.adapters.sqlalchemy.mappings import (
    import_batch_table,
    import_record_table,
    library_item_table,
    work_table,
)
from shelfie.domain.errors import DuplicateDigestError, StorageError
from shelfie.domain.model import (
    ImportBatch,
    ImportRecord,
    ImportStatus,
    ItemSearchResult,
    LibraryItem,
)

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from uuid import UUID

    from sqlalchemy.orm import Session

    from shelfie.domain.model import BatchId, Digest, HouseholdId


class SqlAlchemyImportBatchRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: ImportBatch) -> None:
        self.session.add(entity)

    def get(self, entity_id: UUID) -> ImportBatch | None:
        return self.session.get(ImportBatch, entity_id)

    def update(self, batch: ImportBatch) -> None:
        self.session.add(batch)

    def list_for_household(
        self, household_id: HouseholdId, *, take: int, skip: int = 0
    ) -> Sequence[ImportBatch]:
        stmt = (
            select(ImportBatch)
            .where(import_batch_table.c.household_id == household_id)
            .order_by(import_batch_table.c.started_at.desc(), import_batch_table.c.id)
            .offset(skip)
            .limit(take)
        )
        return self.session.execute(stmt).scalars().all()


class SqlAlchemyImportRecordRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: ImportRecord) -> None:
        """Insert ``entity`` immediately so the digest constraint fires here."""

        self.session.add(entity)
        try:
            self.session.flush()
        except IntegrityError as exc:
            raise DuplicateDigestError(
                f"Payload digest already recorded in import batch {entity.batch_id}"
            ) from exc
        except SQLAlchemyError as exc:
            raise StorageError(f"Could not store import record: {exc}") from exc

    def get(self, entity_id: UUID) -> ImportRecord | None:
        return self.session.get(ImportRecord, entity_id)

    def get_by_digest(self, batch_id: BatchId, digest: Digest) -> ImportRecord | None:
        stmt = (
            select(ImportRecord)
            .where(import_record_table.c.batch_id == batch_id)
            .where(import_record_table.c.payload_digest == digest)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def update(self, record: ImportRecord) -> None:
        self.session.add(record)

    def count_by_status(self, batch_id: BatchId) -> Mapping[ImportStatus, int]:
        stmt = (
            select(import_record_table.c.status, func.count())
            .where(import_record_table.c.batch_id == batch_id)
            .group_by(import_record_table.c.status)
        )
        return {ImportStatus(status): count for status, count in self.session.execute(stmt)}

    def list_failures(
        self, batch_id: BatchId, *, take: int, skip: int = 0
    ) -> Sequence[ImportRecord]:
        stmt = (
            select(ImportRecord)
            .where(import_record_table.c.batch_id == batch_id)
            .where(import_record_table.c.status == ImportStatus.FAILED)
            .order_by(import_record_table.c.created_at, import_record_table.c.id)
            .offset(skip)
            .limit(take)
        )
        return self.session.execute(stmt).scalars().all()


class SqlAlchemyLibraryItemRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: LibraryItem) -> None:
        self.session.add(entity)

    def get(self, entity_id: UUID) -> LibraryItem | None:
        return self.session.get(LibraryItem, entity_id)

    def find_by_external_ref(
        self, household_id: HouseholdId, external_ref: str
    ) -> Sequence[LibraryItem]:
        stmt = (
            select(LibraryItem)
            .where(library_item_table.c.household_id == household_id)
            .where(library_item_table.c.external_ref == external_ref)
        )
        return self.session.execute(stmt).unique().scalars().all()

    def find_by_barcode(self, household_id: HouseholdId, barcode: str) -> Sequence[LibraryItem]:
        stmt = (
            select(LibraryItem)
            .where(library_item_table.c.household_id == household_id)
            .where(library_item_table.c.barcode == barcode)
        )
        return self.session.execute(stmt).unique().scalars().all()


class SqlAlchemyItemSearchRepository:
    """Flattened item/work rows for the search projection."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def search(
        self,
        household_id: HouseholdId,
        *,
        query: str | None = None,
        barcode: str | None = None,
        status: str | None = None,
        location: str | None = None,
        take: int = 50,
        skip: int = 0,
    ) -> Sequence[ItemSearchResult]:
        item = library_item_table.c
        work = work_table.c
        stmt = (
            select(
                item.id,
                item._work_id.label("work_id"),  # noqa: SLF001
                item.kind,
                item.title,
                item.subtitle,
                item.barcode,
                item.location,
                item.status,
                item.condition,
                item.acquired_on,
                item.price,
                item.created_at,
                work.title.label("work_title"),
                work.authors,
            )
            .join_from(library_item_table, work_table, item._work_id == work.id)  # noqa: SLF001
            .where(item.household_id == household_id)
        )
        if query:
            pattern = f"%{query.strip().lower()}%"
            stmt = stmt.where(
                or_(
                    func.lower(item.title).like(pattern),
                    func.lower(work.title).like(pattern),
                    func.lower(work.authors).like(pattern),
                )
            )
        if barcode:
            stmt = stmt.where(item.barcode == barcode.strip())
        if status:
            stmt = stmt.where(item.status == status.strip())
        if location:
            stmt = stmt.where(item.location == location.strip())
        stmt = stmt.order_by(item.title, item.created_at, item.id).offset(skip).limit(take)

        return [
            ItemSearchResult(
                item_id=row.id,
                work_id=row.work_id,
                kind=row.kind,
                title=row.title,
                subtitle=row.subtitle,
                barcode=row.barcode,
                location=row.location,
                status=row.status,
                condition=row.condition,
                acquired_on=row.acquired_on,
                price=row.price,
                created_at=row.created_at,
                work_title=row.work_title,
                authors=row.authors,
            )
            for row in self.session.execute(stmt)
        ]
