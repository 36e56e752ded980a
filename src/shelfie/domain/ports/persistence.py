"""Ports for persisting import batches, records and catalog items."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

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

    from shelfie.domain.model import BatchId, Digest, HouseholdId


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...

    def get(self, entity_id: UUID) -> TEntity | None: ...


@runtime_checkable
class ImportBatchRepository(Repository[ImportBatch], Protocol):
    """Persistence contract for import batches."""

    def update(self, batch: ImportBatch) -> None: ...

    def list_for_household(
        self, household_id: HouseholdId, *, take: int, skip: int = 0
    ) -> Sequence[ImportBatch]:
        """Batches of a household, newest first."""
        ...


@runtime_checkable
class ImportRecordRepository(Repository[ImportRecord], Protocol):
    """Persistence contract for import records.

    Implementations must enforce uniqueness of ``(batch_id, payload_digest)``
    atomically and raise ``DuplicateDigestError`` when it fires.
    """

    def get_by_digest(self, batch_id: BatchId, digest: Digest) -> ImportRecord | None: ...

    def update(self, record: ImportRecord) -> None: ...

    def count_by_status(self, batch_id: BatchId) -> Mapping[ImportStatus, int]: ...

    def list_failures(
        self, batch_id: BatchId, *, take: int, skip: int = 0
    ) -> Sequence[ImportRecord]:
        """Failed records ordered by creation time, oldest first."""
        ...


@runtime_checkable
class LibraryItemRepository(Repository[LibraryItem], Protocol):
    """Persistence contract for catalog items, always scoped by household."""

    def find_by_external_ref(
        self, household_id: HouseholdId, external_ref: str
    ) -> Sequence[LibraryItem]: ...

    def find_by_barcode(self, household_id: HouseholdId, barcode: str) -> Sequence[LibraryItem]: ...


@runtime_checkable
class ItemSearchRepository(Protocol):
    """Read-side queries over catalog items."""

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
    ) -> Sequence[ItemSearchResult]: ...
