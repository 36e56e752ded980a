"""Domain port definitions for adapters."""

from __future__ import annotations

from .blob_storage import BlobStorage
from .clock import Clock, SystemClock
from .persistence import (
    ImportBatchRepository,
    ImportRecordRepository,
    ItemSearchRepository,
    LibraryItemRepository,
    Repository,
)
from .unit_of_work import (
    ImportRepositories,
    ImportUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "BlobStorage",
    "Clock",
    "ImportBatchRepository",
    "ImportRecordRepository",
    "ImportRepositories",
    "ImportUnitOfWork",
    "ItemSearchRepository",
    "LibraryItemRepository",
    "Repository",
    "RepositoryCollection",
    "SystemClock",
    "UnitOfWork",
]
