"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

from shelfie.adapters.blob_storage import LocalFileBlobStorage, archive_path
from shelfie.adapters.sources import SourceFormat, read_source
from shelfie.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyImportUnitOfWork,
    is_started,
    startup,
)
from shelfie.config import get_archive_config, get_import_config
from shelfie.domain.import_pipeline import (
    BatchSummary,
    FailureFeed,
    ImportProcessor,
    ImportReporter,
    ImportRequest,
    ImportRunResult,
)
from shelfie.domain.model import new_id
from shelfie.domain.ports.clock import SystemClock
from shelfie.domain.ports.unit_of_work import ImportUnitOfWork

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from pathlib import Path
    from uuid import UUID

    from shelfie.config import ImportConfig
    from shelfie.domain.import_pipeline import CancellationSignal, SourceRow
    from shelfie.domain.model import ImportBatch, ItemSearchResult
    from shelfie.domain.ports.blob_storage import BlobStorage
    from shelfie.domain.ports.clock import Clock

UnitOfWorkFactory = Callable[[], ImportUnitOfWork]

CONTENT_TYPES = {
    SourceFormat.JSONL: "application/x-ndjson",
    SourceFormat.CSV: "text/csv",
    SourceFormat.JSON: "application/json",
}

log = getLogger(__name__)


def _default_unit_of_work_factory() -> UnitOfWorkFactory:
    if not is_started():
        startup()
    return SqlAlchemyImportUnitOfWork


def import_payloads(
    payloads: Iterable[SourceRow | bytes | str],
    *,
    household_id: UUID,
    source: str,
    file_name: str | None = None,
    archive_url: str | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    clock: Clock | None = None,
    config: ImportConfig | None = None,
    cancel: CancellationSignal | None = None,
) -> ImportRunResult:
    """Run already-extracted payloads through one import batch."""

    effective_uow = unit_of_work_factory or _default_unit_of_work_factory()
    effective_config = config or get_import_config()
    processor = ImportProcessor(
        effective_uow,
        clock=clock,
        max_payload_bytes=effective_config.max_payload_bytes,
    )
    request = ImportRequest(
        household_id=household_id,
        source=source,
        file_name=file_name,
        archive_url=archive_url,
    )
    return processor.run(request, payloads, cancel=cancel)


def import_file(
    path: Path,
    *,
    household_id: UUID,
    source: str | None = None,
    source_format: SourceFormat | None = None,
    archive: bool = False,
    blob_storage: BlobStorage | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    clock: Clock | None = None,
    config: ImportConfig | None = None,
    cancel: CancellationSignal | None = None,
) -> ImportRunResult:
    """Import an exported file, optionally archiving the raw upload first."""

    resolved_format = source_format or SourceFormat.from_path(path)
    effective_source = source or f"{resolved_format}-upload"
    archive_url: str | None = None
    if archive or blob_storage is not None:
        archive_url = archive_source_file(
            path,
            household_id=household_id,
            content_type=CONTENT_TYPES[resolved_format],
            blob_storage=blob_storage,
            clock=clock,
        )

    log.info(
        "Starting import of %s: household=%s, format=%s, source=%s",
        path,
        household_id,
        resolved_format,
        effective_source,
    )
    result = import_payloads(
        read_source(path, resolved_format),
        household_id=household_id,
        source=effective_source,
        file_name=path.name,
        archive_url=archive_url,
        unit_of_work_factory=unit_of_work_factory,
        clock=clock,
        config=config,
        cancel=cancel,
    )
    log.info(
        f"Finished import of {path.name}: batch={result.batch.id}, "
        f"completed={result.completed}, failed={result.failed}, duplicates={result.duplicates}"
    )
    return result


def archive_source_file(
    path: Path,
    *,
    household_id: UUID,
    content_type: str,
    blob_storage: BlobStorage | None = None,
    clock: Clock | None = None,
) -> str:
    """Store the raw upload and return its URL."""

    storage = blob_storage or _default_blob_storage()
    now = (clock or SystemClock()).now()
    target = archive_path(household_id, path.name, at=now, token=new_id())
    return storage.upload(target, path.read_bytes(), content_type)


def _default_blob_storage() -> BlobStorage:
    config = get_archive_config()
    return LocalFileBlobStorage(config.base_path, config.base_url)


def _reporter(unit_of_work_factory: UnitOfWorkFactory | None) -> ImportReporter:
    effective_uow = unit_of_work_factory or _default_unit_of_work_factory()
    return ImportReporter(effective_uow, page_size=get_import_config().failure_page_size)


def summarize_batch(
    batch_id: UUID, *, unit_of_work_factory: UnitOfWorkFactory | None = None
) -> BatchSummary:
    return _reporter(unit_of_work_factory).summarize(batch_id)


def list_batch_failures(
    batch_id: UUID, *, unit_of_work_factory: UnitOfWorkFactory | None = None
) -> FailureFeed:
    return _reporter(unit_of_work_factory).list_failures(batch_id)


def list_household_batches(
    household_id: UUID,
    *,
    take: int = 20,
    skip: int = 0,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> Sequence[ImportBatch]:
    return _reporter(unit_of_work_factory).list_batches(household_id, take=take, skip=skip)


def search_items(
    household_id: UUID,
    *,
    query: str | None = None,
    barcode: str | None = None,
    status: str | None = None,
    location: str | None = None,
    take: int = 50,
    skip: int = 0,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> Sequence[ItemSearchResult]:
    """Look up catalog items after an import."""

    effective_uow = unit_of_work_factory or _default_unit_of_work_factory()
    with effective_uow() as uow:
        return list(
            uow.repositories.search.search(
                household_id,
                query=query,
                barcode=barcode,
                status=status,
                location=location,
                take=take,
                skip=skip,
            )
        )
