"""create preservation catalog tables"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

from services.preservation.catalog.data.schema import CATALOG_SCHEMA

# revision identifiers, used by Alembic.
revision = "20261001_0001"
down_revision = None
branch_labels = None
depends_on = None


def _id() -> sa.Column:
    return sa.Column("id", sa.BigInteger(), sa.Identity(), primary_key=True)


def _timestamps() -> tuple[sa.Column, sa.Column]:
    return (
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )


def _fk(column: str, table: str, *, ondelete: str = "RESTRICT") -> sa.Column:
    return sa.Column(
        column,
        sa.BigInteger(),
        sa.ForeignKey(f"{CATALOG_SCHEMA}.{table}.id", ondelete=ondelete),
        nullable=False,
    )


def upgrade() -> None:
    """Create the catalog tables."""
    schema = CATALOG_SCHEMA

    op.create_table(
        "preserved_objects",
        _id(),
        sa.Column("druid", sa.String(length=11), nullable=False),
        sa.Column("current_version", sa.Integer(), nullable=False),
        sa.Column("last_archive_audit", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("druid", name="uq_preserved_objects_druid"),
        sa.CheckConstraint("current_version > 0", name="ck_preserved_objects_version"),
        schema=schema,
    )

    op.create_table(
        "moab_storage_roots",
        _id(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("storage_location", sa.String(length=1024), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("name", name="uq_moab_storage_roots_name"),
        sa.UniqueConstraint("storage_location", name="uq_moab_storage_roots_location"),
        schema=schema,
    )

    op.create_table(
        "moab_records",
        _id(),
        _fk("preserved_object_id", "preserved_objects"),
        _fk("moab_storage_root_id", "moab_storage_roots"),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("size", sa.BigInteger(), nullable=True),
        sa.Column("status", sa.String(length=64), nullable=False),
        sa.Column("status_details", sa.Text(), nullable=True),
        sa.Column("last_version_audit", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_moab_validation", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_checksum_validation", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint(
            "preserved_object_id",
            "moab_storage_root_id",
            name="uq_moab_records_object_root",
        ),
        sa.UniqueConstraint("preserved_object_id", name="uq_moab_records_object"),
        sa.CheckConstraint("version > 0", name="ck_moab_records_version"),
        schema=schema,
    )
    op.create_index(
        "ix_moab_records_last_version_audit",
        "moab_records",
        ["last_version_audit"],
        schema=schema,
    )
    op.create_index(
        "ix_moab_records_last_checksum_validation",
        "moab_records",
        ["last_checksum_validation"],
        schema=schema,
    )

    op.create_table(
        "zip_endpoints",
        _id(),
        sa.Column("endpoint_name", sa.String(length=255), nullable=False),
        sa.Column("endpoint_node", sa.String(length=1024), nullable=False),
        sa.Column("storage_location", sa.String(length=1024), nullable=False),
        sa.Column("provider", sa.String(length=64), nullable=False, server_default="s3"),
        *_timestamps(),
        sa.UniqueConstraint("endpoint_name", name="uq_zip_endpoints_name"),
        schema=schema,
    )

    op.create_table(
        "zipped_moab_versions",
        _id(),
        _fk("preserved_object_id", "preserved_objects"),
        _fk("zip_endpoint_id", "zip_endpoints"),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("zip_parts_count", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="created"),
        sa.Column("status_details", sa.Text(), nullable=True),
        sa.Column("status_updated_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint(
            "preserved_object_id",
            "zip_endpoint_id",
            "version",
            name="uq_zipped_moab_versions_object_endpoint_version",
        ),
        sa.CheckConstraint("version > 0", name="ck_zipped_moab_versions_version"),
        schema=schema,
    )

    op.create_table(
        "zip_parts",
        _id(),
        _fk("zipped_moab_version_id", "zipped_moab_versions", ondelete="CASCADE"),
        sa.Column("suffix", sa.String(length=8), nullable=False),
        sa.Column("size", sa.BigInteger(), nullable=False),
        sa.Column("md5", sa.String(length=32), nullable=False),
        sa.Column(
            "status", sa.String(length=32), nullable=False, server_default="unreplicated"
        ),
        *_timestamps(),
        sa.UniqueConstraint(
            "zipped_moab_version_id", "suffix", name="uq_zip_parts_version_suffix"
        ),
        sa.CheckConstraint("size >= 0", name="ck_zip_parts_size"),
        schema=schema,
    )


def downgrade() -> None:
    """Drop the catalog tables."""
    schema = CATALOG_SCHEMA
    op.drop_table("zip_parts", schema=schema)
    op.drop_table("zipped_moab_versions", schema=schema)
    op.drop_table("zip_endpoints", schema=schema)
    op.drop_index("ix_moab_records_last_checksum_validation", table_name="moab_records", schema=schema)
    op.drop_index("ix_moab_records_last_version_audit", table_name="moab_records", schema=schema)
    op.drop_table("moab_records", schema=schema)
    op.drop_table("moab_storage_roots", schema=schema)
    op.drop_table("preserved_objects", schema=schema)
