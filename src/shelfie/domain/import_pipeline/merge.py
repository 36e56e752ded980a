"""Merge item candidates into a household's catalog."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from shelfie.domain.errors import RecordMergeConflict
from shelfie.domain.model import LibraryItem, Work, apply_inventory_patch

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from shelfie.domain.import_pipeline.parsing import ItemCandidate
    from shelfie.domain.model import HouseholdId
    from shelfie.domain.ports.persistence import LibraryItemRepository

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class MergeResult:
    item_id: UUID
    created: bool
    changed_fields: tuple[str, ...] = ()


@runtime_checkable
class MergeStrategy(Protocol):
    """Decides whether a candidate creates a new item or patches an existing one."""

    def merge(
        self,
        items: LibraryItemRepository,
        household_id: HouseholdId,
        candidate: ItemCandidate,
        *,
        now: datetime,
    ) -> MergeResult: ...


class ExternalRefMergeStrategy:
    """Match by source-system reference first, then by barcode, within one household.

    Candidates without a match are inserted; matched items only receive the
    inventory fields the payload actually specified.
    """

    def merge(
        self,
        items: LibraryItemRepository,
        household_id: HouseholdId,
        candidate: ItemCandidate,
        *,
        now: datetime,
    ) -> MergeResult:
        existing = self.match(items, household_id, candidate)
        if existing is None:
            return self._insert(items, household_id, candidate, now=now)

        changed = apply_inventory_patch(existing, candidate.inventory)
        log.debug("Patched item %s: %s", existing.id, ", ".join(changed) or "no changes")
        return MergeResult(item_id=existing.id, created=False, changed_fields=tuple(changed))

    def match(
        self,
        items: LibraryItemRepository,
        household_id: HouseholdId,
        candidate: ItemCandidate,
    ) -> LibraryItem | None:
        matches: dict[UUID, LibraryItem] = {}
        if candidate.external_ref:
            for item in items.find_by_external_ref(household_id, candidate.external_ref):
                matches[item.id] = item
        barcode = candidate.barcode
        if barcode:
            for item in items.find_by_barcode(household_id, barcode):
                matches[item.id] = item

        if len(matches) > 1:
            raise RecordMergeConflict(
                f"ambiguous match: {len(matches)} items match "
                f"external id {candidate.external_ref!r} / barcode {barcode!r}"
            )
        return next(iter(matches.values()), None)

    @staticmethod
    def _insert(
        items: LibraryItemRepository,
        household_id: HouseholdId,
        candidate: ItemCandidate,
        *,
        now: datetime,
    ) -> MergeResult:
        if not candidate.title:
            raise RecordMergeConflict("no matching item and no title to create one")

        work = Work(
            household_id=household_id,
            title=candidate.title,
            subtitle=candidate.subtitle,
            authors=candidate.authors,
            created_at=now,
        )
        item = LibraryItem(
            household_id=household_id,
            work=work,
            kind=candidate.kind,
            title=candidate.title,
            subtitle=candidate.subtitle,
            external_ref=candidate.external_ref,
            created_at=now,
        )
        changed = apply_inventory_patch(item, candidate.inventory)
        items.add(item)
        return MergeResult(item_id=item.id, created=True, changed_fields=tuple(changed))
