"""Bulk import pipeline: lifecycle, parsing, merging, processing and reporting."""

from __future__ import annotations

from shelfie.domain.import_pipeline.lifecycle import ImportLedger, IngestResult
from shelfie.domain.import_pipeline.merge import (
    ExternalRefMergeStrategy,
    MergeResult,
    MergeStrategy,
)
from shelfie.domain.import_pipeline.parsing import ItemCandidate, ItemPayload, parse_payload
from shelfie.domain.import_pipeline.processor import (
    CancellationSignal,
    ImportProcessor,
    ImportRequest,
    ImportRunResult,
    RecordCompleted,
    RecordDuplicate,
    RecordFailed,
    RecordOutcome,
    SourceRow,
)
from shelfie.domain.import_pipeline.reporting import BatchSummary, FailureFeed, ImportReporter

__all__ = [  # noqa: RUF022
    # lifecycle
    "ImportLedger",
    "IngestResult",
    # parsing
    "ItemCandidate",
    "ItemPayload",
    "parse_payload",
    # merging
    "ExternalRefMergeStrategy",
    "MergeResult",
    "MergeStrategy",
    # processing
    "CancellationSignal",
    "ImportProcessor",
    "ImportRequest",
    "ImportRunResult",
    "RecordCompleted",
    "RecordDuplicate",
    "RecordFailed",
    "RecordOutcome",
    "SourceRow",
    # reporting
    "BatchSummary",
    "FailureFeed",
    "ImportReporter",
]
