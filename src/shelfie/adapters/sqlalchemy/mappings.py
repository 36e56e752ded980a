"""SQLAlchemy mapping metadata for the shelfie domain model."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from functools import cache
from typing import TYPE_CHECKING

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Dialect,
    Enum,
    ForeignKey,
    Index,
    Integer,
    LargeBinary,
    Numeric,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
    Uuid,
    orm,
)
from sqlalchemy.orm import configure_mappers, relationship

from shelfie.domain.hashing import DIGEST_SIZE
from shelfie.domain.model import (
    ImportBatch,
    ImportRecord,
    ImportStatus,
    ItemKind,
    LibraryItem,
    Work,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Import tables ---------------------------------------------------------------

import_batch_table = Table(
    "import_batches",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("household_id", UUIDColumnType, nullable=False),
    Column("source", String(128), nullable=False),
    Column("file_name", String(512), nullable=True),
    Column("archive_url", String(2048), nullable=True),
    Column("started_at", UTCDateTime(), nullable=False),
    Column("finished_at", UTCDateTime(), nullable=True),
    Column("status", Enum(ImportStatus, native_enum=False), nullable=False),
    Column("duplicates_skipped", Integer, nullable=False, default=0),
    Index("ix_import_batches_household_started", "household_id", "started_at"),
)

import_record_table = Table(
    "import_records",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "batch_id",
        UUIDColumnType,
        ForeignKey("import_batches.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("external_id", String(256), nullable=True),
    Column("payload", Text, nullable=False),
    Column("payload_digest", LargeBinary(DIGEST_SIZE), nullable=False),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("status", Enum(ImportStatus, native_enum=False), nullable=False),
    Column("error", Text, nullable=True),
    Column("processed_at", UTCDateTime(), nullable=True),
    Column("item_id", UUIDColumnType, nullable=True),
    UniqueConstraint("batch_id", "payload_digest"),
    Index("ix_import_records_batch_status_created", "batch_id", "status", "created_at"),
)

# Catalog tables --------------------------------------------------------------

work_table = Table(
    "work",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("household_id", UUIDColumnType, nullable=False, index=True),
    Column("title", String(512), nullable=False),
    Column("subtitle", String(512), nullable=True),
    Column("authors", String(1024), nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
)

library_item_table = Table(
    "library_item",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("household_id", UUIDColumnType, nullable=False),
    Column(
        "work_id",
        UUIDColumnType,
        ForeignKey("work.id", ondelete="CASCADE"),
        key="_work_id",
        nullable=False,
    ),
    Column("kind", Enum(ItemKind, native_enum=False), nullable=False),
    Column("title", String(512), nullable=False),
    Column("subtitle", String(512), nullable=True),
    Column("external_ref", String(256), nullable=True),
    Column("barcode", String(128), nullable=True),
    Column("location", String(256), nullable=True),
    Column("status", String(64), nullable=True),
    Column("condition", String(64), nullable=True),
    Column("acquired_on", Date, nullable=True),
    Column("price", Numeric(12, 2), nullable=True),
    Column("notes", Text, nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
    # NULL barcodes never collide, so blank barcodes must be stored as NULL
    UniqueConstraint("household_id", "barcode"),
    Index("ix_library_item_household_external_ref", "household_id", "external_ref"),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(ImportBatch, import_batch_table)

    mapper_registry.map_imperatively(ImportRecord, import_record_table)

    mapper_registry.map_imperatively(Work, work_table)

    mapper_registry.map_imperatively(
        LibraryItem,
        library_item_table,
        properties={
            "work": relationship(Work, lazy="joined", cascade="save-update, merge"),
        },
    )

    configure_mappers()
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the mapped metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)
