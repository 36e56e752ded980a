"""Create import batch, import record and catalog item tables.

Revision ID: 0001_import_tables
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

from shelfie.adapters.sqlalchemy.mappings import UTCDateTime

revision = "0001_import_tables"
down_revision = None
branch_labels = None
depends_on = None

_IMPORT_STATUS = sa.Enum("PENDING", "COMPLETED", "FAILED", name="importstatus", native_enum=False)
_ITEM_KIND = sa.Enum("BOOK", "OTHER", name="itemkind", native_enum=False)


def upgrade() -> None:
    op.create_table(
        "import_batches",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("household_id", sa.Uuid(), nullable=False),
        sa.Column("source", sa.String(length=128), nullable=False),
        sa.Column("file_name", sa.String(length=512), nullable=True),
        sa.Column("archive_url", sa.String(length=2048), nullable=True),
        sa.Column("started_at", UTCDateTime(), nullable=False),
        sa.Column("finished_at", UTCDateTime(), nullable=True),
        sa.Column("status", _IMPORT_STATUS, nullable=False),
        sa.Column("duplicates_skipped", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_import_batches")),
    )
    op.create_index(
        "ix_import_batches_household_started",
        "import_batches",
        ["household_id", "started_at"],
    )

    op.create_table(
        "import_records",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("batch_id", sa.Uuid(), nullable=False),
        sa.Column("external_id", sa.String(length=256), nullable=True),
        sa.Column("payload", sa.Text(), nullable=False),
        sa.Column("payload_digest", sa.LargeBinary(length=32), nullable=False),
        sa.Column("created_at", UTCDateTime(), nullable=False),
        sa.Column("status", _IMPORT_STATUS, nullable=False),
        sa.Column("error", sa.Text(), nullable=True),
        sa.Column("processed_at", UTCDateTime(), nullable=True),
        sa.Column("item_id", sa.Uuid(), nullable=True),
        sa.ForeignKeyConstraint(
            ["batch_id"],
            ["import_batches.id"],
            name=op.f("fk_import_records_batch_id_import_batches"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_import_records")),
        sa.UniqueConstraint(
            "batch_id", "payload_digest", name=op.f("uq_import_records_batch_id")
        ),
    )
    op.create_index(
        "ix_import_records_batch_status_created",
        "import_records",
        ["batch_id", "status", "created_at"],
    )

    op.create_table(
        "work",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("household_id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(length=512), nullable=False),
        sa.Column("subtitle", sa.String(length=512), nullable=True),
        sa.Column("authors", sa.String(length=1024), nullable=True),
        sa.Column("created_at", UTCDateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_work")),
    )
    op.create_index(op.f("ix_work_household_id"), "work", ["household_id"])

    op.create_table(
        "library_item",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("household_id", sa.Uuid(), nullable=False),
        sa.Column("work_id", sa.Uuid(), nullable=False),
        sa.Column("kind", _ITEM_KIND, nullable=False),
        sa.Column("title", sa.String(length=512), nullable=False),
        sa.Column("subtitle", sa.String(length=512), nullable=True),
        sa.Column("external_ref", sa.String(length=256), nullable=True),
        sa.Column("barcode", sa.String(length=128), nullable=True),
        sa.Column("location", sa.String(length=256), nullable=True),
        sa.Column("status", sa.String(length=64), nullable=True),
        sa.Column("condition", sa.String(length=64), nullable=True),
        sa.Column("acquired_on", sa.Date(), nullable=True),
        sa.Column("price", sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", UTCDateTime(), nullable=False),
        sa.ForeignKeyConstraint(
            ["work_id"],
            ["work.id"],
            name=op.f("fk_library_item_work_id_work"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_library_item")),
        sa.UniqueConstraint("household_id", "barcode", name=op.f("uq_library_item_household_id")),
    )
    op.create_index(
        "ix_library_item_household_external_ref",
        "library_item",
        ["household_id", "external_ref"],
    )


def downgrade() -> None:
    op.drop_index("ix_library_item_household_external_ref", table_name="library_item")
    op.drop_table("library_item")
    op.drop_index(op.f("ix_work_household_id"), table_name="work")
    op.drop_table("work")
    op.drop_index("ix_import_records_batch_status_created", table_name="import_records")
    op.drop_table("import_records")
    op.drop_index("ix_import_batches_household_started", table_name="import_batches")
    op.drop_table("import_batches")
