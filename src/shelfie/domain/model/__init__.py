"""Public domain model surface."""

from __future__ import annotations

from shelfie.domain.model.catalog import ItemSearchResult, LibraryItem, Work
from shelfie.domain.model.entity import Entity, new_id
from shelfie.domain.model.enums import ImportStatus, ItemKind
from shelfie.domain.model.imports import ImportBatch, ImportRecord, ImportRecordFailure
from shelfie.domain.model.inventory import (
    ItemInventoryPatch,
    apply_inventory_patch,
    normalize_text,
)
from shelfie.domain.model.patch import PatchField
from shelfie.domain.model.primitives import BatchId, Digest, HouseholdId, ItemId

__all__ = [  # noqa: RUF022
    # base
    "Entity",
    "new_id",
    # imports
    "ImportBatch",
    "ImportRecord",
    "ImportRecordFailure",
    # catalog
    "Work",
    "LibraryItem",
    "ItemSearchResult",
    # patching
    "PatchField",
    "ItemInventoryPatch",
    "apply_inventory_patch",
    "normalize_text",
    # enums
    "ImportStatus",
    "ItemKind",
    # primitives
    "BatchId",
    "Digest",
    "HouseholdId",
    "ItemId",
]
