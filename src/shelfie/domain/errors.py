"""Error taxonomy for import processing.

Per-record errors (``RecordError`` subclasses) are absorbed by the processor and
stored as failed import records. Everything else propagates to the caller.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from uuid import UUID

    from shelfie.domain.import_pipeline.processor import ImportRunResult


class ImportProcessingError(Exception):
    """Base class for all import processing errors."""


class RecordError(ImportProcessingError):
    """A single record could not be applied; never aborts the batch."""


class RecordParseError(RecordError):
    """The payload is malformed or cannot be turned into an item candidate."""


class RecordMergeConflict(RecordError):
    """The payload is well-formed but cannot be merged into the catalog."""


class PayloadTooLargeError(RecordError):
    """The payload exceeds the configured maximum size."""

    def __init__(self, size: int, limit: int) -> None:
        super().__init__("payload too large")
        self.size = size
        self.limit = limit


class SourceReadError(ImportProcessingError):
    """The payload source broke while being read; fatal to the batch."""

    def __init__(
        self,
        message: str,
        *,
        batch_id: UUID | None = None,
        partial_result: ImportRunResult | None = None,
    ) -> None:
        super().__init__(message)
        self.batch_id = batch_id
        self.partial_result = partial_result


class InvalidStateError(ImportProcessingError):
    """A lifecycle transition was attempted from a state that does not allow it."""


class UnspecifiedFieldError(InvalidStateError):
    """The value of an unspecified patch field was read."""


class StorageError(ImportProcessingError):
    """The durable layer rejected a write."""


class DuplicateDigestError(StorageError):
    """The (batch, digest) uniqueness constraint fired on insert."""


class BatchNotFoundError(ImportProcessingError, LookupError):
    """No import batch exists with the requested id."""

    def __init__(self, batch_id: UUID) -> None:
        super().__init__(f"Import batch {batch_id} not found")
        self.batch_id = batch_id
