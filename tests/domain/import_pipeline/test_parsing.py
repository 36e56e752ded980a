from __future__ import annotations

import json
from datetime import date
from decimal import Decimal

import pytest

from shelfie.domain.errors import RecordParseError
from shelfie.domain.import_pipeline import parse_payload
from shelfie.domain.model import ItemKind


def test_parses_camel_case_payload() -> None:
    candidate = parse_payload(
        '{"externalId": "gr-1", "title": " Dune ", "authors": ["Frank Herbert"], '
        '"barcode": "9780441013593", "acquiredOn": "2024-02-29", "price": "12.50"}'
    )

    assert candidate.external_ref == "gr-1"
    assert candidate.title == "Dune"
    assert candidate.authors == "Frank Herbert"
    assert candidate.kind is ItemKind.BOOK
    assert candidate.barcode == "9780441013593"
    assert candidate.inventory.acquired_on.value == date(2024, 2, 29)
    assert candidate.inventory.price.value == Decimal("12.50")


def test_snake_case_keys_are_accepted() -> None:
    candidate = parse_payload(b'{"external_id": "x-9", "title": "Emma", "acquired_on": null}')

    assert candidate.external_ref == "x-9"
    assert candidate.inventory.acquired_on.is_specified
    assert candidate.inventory.acquired_on.value is None


def test_absent_keys_stay_unspecified_and_null_clears() -> None:
    candidate = parse_payload('{"title": "Emma", "location": null}')

    assert candidate.inventory.location.is_specified
    assert candidate.inventory.location.value is None
    assert not candidate.inventory.barcode.is_specified
    assert not candidate.inventory.notes.is_specified


def test_caller_external_id_is_a_fallback() -> None:
    assert parse_payload('{"title": "Emma"}', external_id="lt-2").external_ref == "lt-2"
    assert parse_payload('{"externalId": "a"}', external_id="lt-2").external_ref == "a"


def test_numeric_identifiers_are_coerced_to_text() -> None:
    candidate = parse_payload('{"externalId": 42, "barcode": 9780441013593}')

    assert candidate.external_ref == "42"
    assert candidate.barcode == "9780441013593"


@pytest.mark.parametrize(
    ("raw_kind", "expected"),
    [(1, ItemKind.BOOK), (99, ItemKind.OTHER), ("OTHER", ItemKind.OTHER), ("1", ItemKind.BOOK)],
)
def test_legacy_kind_codes(raw_kind: object, expected: ItemKind) -> None:
    payload = json.dumps({"title": "t", "kind": raw_kind})

    assert parse_payload(payload).kind is expected


def test_unknown_keys_are_ignored() -> None:
    assert parse_payload('{"title": "Emma", "goodreadsShelf": "to-read"}').title == "Emma"


def test_author_lists_are_joined_and_blanks_dropped() -> None:
    candidate = parse_payload('{"authors": ["Terry Pratchett", " ", "Neil Gaiman"]}')

    assert candidate.authors == "Terry Pratchett, Neil Gaiman"


def test_malformed_json_is_a_parse_error() -> None:
    with pytest.raises(RecordParseError, match="malformed JSON"):
        parse_payload('{"title": "Dune"')


def test_non_object_document_is_a_parse_error() -> None:
    with pytest.raises(RecordParseError, match="invalid payload"):
        parse_payload('["Dune"]')


def test_mistyped_field_reports_its_location() -> None:
    with pytest.raises(RecordParseError, match="acquiredOn"):
        parse_payload('{"title": "Dune", "acquiredOn": "yesterday"}')


def test_invalid_utf8_is_a_parse_error() -> None:
    with pytest.raises(RecordParseError, match="UTF-8"):
        parse_payload(b'{"title": "\xff"}')
