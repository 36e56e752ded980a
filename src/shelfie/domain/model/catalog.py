"""Catalog entities touched by imports, plus the read-side search projection."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from shelfie.domain.model.entity import Entity
from shelfie.domain.model.enums import ItemKind

if TYPE_CHECKING:
    from datetime import date, datetime
    from decimal import Decimal
    from uuid import UUID

    from shelfie.domain.model.primitives import HouseholdId


@dataclass(eq=False, kw_only=True)
class Work(Entity):
    """The abstract creative work an item is a copy of."""

    household_id: HouseholdId
    title: str
    subtitle: str | None = None
    authors: str | None = None
    created_at: datetime


@dataclass(eq=False, kw_only=True)
class LibraryItem(Entity):
    """A physical or digital copy owned by a household.

    ``external_ref`` is the identifier the item carried in the system it was
    imported from; re-imports use it to find the item again.
    """

    household_id: HouseholdId
    work: Work = field(repr=False)
    kind: ItemKind = ItemKind.BOOK
    title: str
    subtitle: str | None = None
    external_ref: str | None = None

    barcode: str | None = None
    location: str | None = None
    status: str | None = None
    condition: str | None = None
    acquired_on: date | None = None
    price: Decimal | None = None
    notes: str | None = None

    created_at: datetime


@dataclass(frozen=True, slots=True)
class ItemSearchResult:
    """Flattened read model of an item and its work."""

    item_id: UUID
    work_id: UUID
    kind: ItemKind
    title: str
    subtitle: str | None
    barcode: str | None
    location: str | None
    status: str | None
    condition: str | None
    acquired_on: date | None
    price: Decimal | None
    created_at: datetime
    work_title: str | None
    authors: str | None

    @classmethod
    def from_item(cls, item: LibraryItem) -> ItemSearchResult:
        return cls(
            item_id=item.id,
            work_id=item.work.id,
            kind=item.kind,
            title=item.title,
            subtitle=item.subtitle,
            barcode=item.barcode,
            location=item.location,
            status=item.status,
            condition=item.condition,
            acquired_on=item.acquired_on,
            price=item.price,
            created_at=item.created_at,
            work_title=item.work.title,
            authors=item.work.authors,
        )
