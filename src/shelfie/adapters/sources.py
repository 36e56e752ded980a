"""Readers that turn uploaded export files into import rows.

Each reader is a generator: files are opened lazily and rows are produced one
by one, so an I/O failure surfaces while the processor is iterating and is
reported as a source failure for the batch.
"""

from __future__ import annotations

import csv
import json
import logging
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Final, cast

from shelfie.domain.errors import SourceReadError
from shelfie.domain.import_pipeline import SourceRow

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path

log = logging.getLogger(__name__)

EXTERNAL_ID_KEYS: Final[tuple[str, ...]] = ("externalId", "external_id")


class SourceFormat(StrEnum):
    JSONL = "jsonl"
    CSV = "csv"
    JSON = "json"

    @classmethod
    def from_path(cls, path: Path) -> SourceFormat:
        suffix = path.suffix.lower().lstrip(".")
        if suffix in {"jsonl", "ndjson"}:
            return cls.JSONL
        try:
            return cls(suffix)
        except ValueError:
            raise ValueError(f"Cannot infer import format from file name: {path.name}") from None


def read_jsonl(path: Path) -> Iterator[SourceRow]:
    """One payload per non-blank line, passed through byte for byte."""

    with path.open("rb") as handle:
        for line_number, line in enumerate(handle, start=1):
            payload = line.strip()
            if not payload:
                continue
            yield SourceRow(
                payload=payload,
                external_id=_external_id_from_json(payload),
                position=f"line:{line_number}",
            )


def read_csv(path: Path, *, delimiter: str = ",") -> Iterator[SourceRow]:
    """One payload per data row, re-serialised as a JSON object.

    Blank cells are dropped so they leave the target field untouched; a column
    has to be omitted from the payload, not emptied, to stay unspecified.
    """

    with path.open(newline="", encoding="utf-8-sig") as handle:
        reader = csv.DictReader(handle, delimiter=delimiter)
        if reader.fieldnames is None:
            return
        for row_number, row in enumerate(reader, start=2):
            values = {
                key.strip(): value.strip()
                for key, value in row.items()
                if key is not None and key.strip() and value is not None and value.strip()
            }
            external_id = next((values[key] for key in EXTERNAL_ID_KEYS if values.get(key)), None)
            payload = json.dumps(values, ensure_ascii=False, sort_keys=True)
            yield SourceRow(payload=payload, external_id=external_id, position=f"row:{row_number}")


def read_json_array(path: Path) -> Iterator[SourceRow]:
    """Each element of a top-level JSON array becomes one payload."""

    with path.open("rb") as handle:
        try:
            document = json.load(handle)
        except json.JSONDecodeError as exc:
            raise SourceReadError(f"{path.name} is not valid JSON: {exc}") from exc
    if not isinstance(document, list):
        raise SourceReadError(f"{path.name} must contain a top-level JSON array")

    for index, element in enumerate(cast("list[Any]", document)):
        external_id = None
        if isinstance(element, dict):
            external_id = _external_id_from_mapping(cast("dict[str, Any]", element))
        payload = json.dumps(element, ensure_ascii=False, sort_keys=True)
        yield SourceRow(payload=payload, external_id=external_id, position=f"item:{index}")


READERS: Final[dict[SourceFormat, Callable[[Path], Iterator[SourceRow]]]] = {
    SourceFormat.JSONL: read_jsonl,
    SourceFormat.CSV: read_csv,
    SourceFormat.JSON: read_json_array,
}


def read_source(path: Path, source_format: SourceFormat | None = None) -> Iterator[SourceRow]:
    resolved = source_format or SourceFormat.from_path(path)
    log.debug("Reading %s as %s", path, resolved)
    return READERS[resolved](path)


def _external_id_from_json(payload: bytes) -> str | None:
    try:
        document = json.loads(payload)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    if not isinstance(document, dict):
        return None
    return _external_id_from_mapping(cast("dict[str, Any]", document))


def _external_id_from_mapping(document: dict[str, Any]) -> str | None:
    for key in EXTERNAL_ID_KEYS:
        value = document.get(key)
        if isinstance(value, (str, int)) and not isinstance(value, bool):
            text = str(value).strip()
            if text:
                return text
    return None
