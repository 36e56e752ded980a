"""Turn raw import payloads into catalog item candidates."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date  # noqa: TC003
from decimal import Decimal  # noqa: TC003
from typing import TYPE_CHECKING, Any, Final

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from shelfie.domain.errors import RecordParseError
from shelfie.domain.model import ItemInventoryPatch, ItemKind, normalize_text

if TYPE_CHECKING:
    from pydantic_core import ErrorDetails

log = logging.getLogger(__name__)

# numeric kinds used by the catalog's original export format
LEGACY_KIND_CODES: Final[dict[int, ItemKind]] = {1: ItemKind.BOOK, 99: ItemKind.OTHER}
MAX_REPORTED_ERRORS: Final[int] = 3


class ItemPayload(BaseModel):
    """Structural shape of one imported catalog record.

    Keys may be given in snake_case or camelCase. Unknown keys are ignored.
    """

    model_config = ConfigDict(
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )

    external_id: str | None = None
    kind: ItemKind = ItemKind.BOOK
    title: str | None = None
    subtitle: str | None = None
    authors: str | list[str] | None = None

    barcode: str | None = None
    location: str | None = None
    status: str | None = None
    condition: str | None = None
    acquired_on: date | None = None
    price: Decimal | None = None
    notes: str | None = None

    @field_validator("kind", mode="before")
    @classmethod
    def _legacy_kind(cls, value: Any) -> Any:  # noqa: ANN401
        if isinstance(value, int) and not isinstance(value, bool):
            return LEGACY_KIND_CODES.get(value, value)
        if isinstance(value, str):
            value = value.strip().lower()
            if value.isdigit():
                return LEGACY_KIND_CODES.get(int(value), value)
        return value


@dataclass(frozen=True, slots=True)
class ItemCandidate:
    """What a payload says about a catalog item."""

    external_ref: str | None
    kind: ItemKind
    title: str | None
    subtitle: str | None
    authors: str | None
    inventory: ItemInventoryPatch

    @property
    def barcode(self) -> str | None:
        return normalize_text(self.inventory.barcode.get())


def parse_payload(raw_payload: bytes | str, *, external_id: str | None = None) -> ItemCandidate:
    """Parse ``raw_payload`` as a JSON object describing an item.

    ``external_id`` is the identifier the caller supplied alongside the payload;
    an ``externalId`` inside the payload takes precedence.
    """

    if isinstance(raw_payload, bytes):
        try:
            raw_payload = raw_payload.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise RecordParseError(f"payload is not valid UTF-8: {exc.reason}") from exc
    try:
        payload = ItemPayload.model_validate_json(raw_payload)
    except ValidationError as exc:
        raise RecordParseError(describe_validation_error(exc)) from exc

    specified = payload.model_fields_set
    inventory = ItemInventoryPatch.from_mapping(
        {
            name: getattr(payload, name)
            for name in ItemInventoryPatch.field_names()
            if name in specified
        }
    )
    return ItemCandidate(
        external_ref=normalize_text(payload.external_id) or normalize_text(external_id),
        kind=payload.kind,
        title=normalize_text(payload.title),
        subtitle=normalize_text(payload.subtitle),
        authors=_join_authors(payload.authors),
        inventory=inventory,
    )


def describe_validation_error(exc: ValidationError) -> str:
    errors = exc.errors(include_url=False)
    if any(error["type"] == "json_invalid" for error in errors):
        return f"malformed JSON: {errors[0]['msg']}"
    parts = [_describe_error(error) for error in errors[:MAX_REPORTED_ERRORS]]
    if len(errors) > MAX_REPORTED_ERRORS:
        parts.append(f"and {len(errors) - MAX_REPORTED_ERRORS} more")
    return "invalid payload: " + "; ".join(parts)


def _describe_error(error: ErrorDetails) -> str:
    location = ".".join(str(part) for part in error["loc"])
    if not location:
        return error["msg"]
    return f"{location}: {error['msg']}"


def _join_authors(authors: str | list[str] | None) -> str | None:
    if authors is None:
        return None
    if isinstance(authors, str):
        return normalize_text(authors)
    names = [name.strip() for name in authors if name.strip()]
    return ", ".join(names) or None
