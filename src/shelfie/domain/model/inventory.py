"""Partial updates of a catalog item's inventory attributes."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import TYPE_CHECKING, Any, Final, cast

from shelfie.domain.model.patch import PatchField

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping
    from datetime import date
    from decimal import Decimal

    from shelfie.domain.model.catalog import LibraryItem

TEXT_FIELDS: Final[frozenset[str]] = frozenset(
    {"barcode", "location", "status", "condition", "notes"}
)


def _unspecified() -> PatchField[Any]:
    return PatchField.unspecified()


@dataclass(frozen=True, slots=True)
class ItemInventoryPatch:
    """Bundle of patch fields; only specified fields touch the target item."""

    barcode: PatchField[str] = field(default_factory=_unspecified)
    location: PatchField[str] = field(default_factory=_unspecified)
    status: PatchField[str] = field(default_factory=_unspecified)
    condition: PatchField[str] = field(default_factory=_unspecified)
    acquired_on: PatchField[date] = field(default_factory=_unspecified)
    price: PatchField[Decimal] = field(default_factory=_unspecified)
    notes: PatchField[str] = field(default_factory=_unspecified)

    @classmethod
    def field_names(cls) -> tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> ItemInventoryPatch:
        """Build a patch where every key present in ``data`` is specified.

        Unknown keys are ignored; a key mapped to ``None`` clears the target field.
        """

        specified = {
            name: PatchField.from_(data[name]) for name in cls.field_names() if name in data
        }
        return cls(**cast("dict[str, Any]", specified))

    def specified_fields(self) -> Iterator[tuple[str, PatchField[Any]]]:
        for name in self.field_names():
            patch_field = cast("PatchField[Any]", getattr(self, name))
            if patch_field.is_specified:
                yield name, patch_field

    @property
    def is_empty(self) -> bool:
        return next(self.specified_fields(), None) is None


def normalize_text(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def apply_inventory_patch(item: LibraryItem, patch: ItemInventoryPatch) -> list[str]:
    """Apply the specified fields of ``patch`` to ``item`` and return changed field names."""

    changed: list[str] = []
    for name, patch_field in patch.specified_fields():
        new_value = patch_field.value
        if name in TEXT_FIELDS:
            new_value = normalize_text(cast("str | None", new_value))
        if getattr(item, name) != new_value:
            setattr(item, name, new_value)
            changed.append(name)
    return changed
