"""SQLAlchemy adapter package for shelfie."""

from __future__ import annotations

from .mappings import create_all_tables, mapper_registry, start_mappers
from .repositories import (
    SqlAlchemyImportBatchRepository,
    SqlAlchemyImportRecordRepository,
    SqlAlchemyItemSearchRepository,
    SqlAlchemyLibraryItemRepository,
)

__all__ = [
    "SqlAlchemyImportBatchRepository",
    "SqlAlchemyImportRecordRepository",
    "SqlAlchemyItemSearchRepository",
    "SqlAlchemyLibraryItemRepository",
    "create_all_tables",
    "mapper_registry",
    "start_mappers",
]
