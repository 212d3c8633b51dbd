"""Table models for the preservation catalog schema."""

from __future__ import annotations

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Identity,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
    func,
)

CATALOG_SCHEMA = "preservation"

metadata = MetaData(schema=CATALOG_SCHEMA)


def _id_column() -> Column:
    return Column("id", BigInteger, Identity(), primary_key=True)


def _timestamps() -> tuple[Column, Column]:
    return (
        Column(
            "created_at",
            DateTime(timezone=True),
            nullable=False,
            server_default=func.now(),
        ),
        Column(
            "updated_at",
            DateTime(timezone=True),
            nullable=False,
            server_default=func.now(),
        ),
    )


preserved_objects = Table(
    "preserved_objects",
    metadata,
    _id_column(),
    Column("druid", String(11), nullable=False),
    Column("current_version", Integer, nullable=False),
    Column("last_archive_audit", DateTime(timezone=True), nullable=True),
    *_timestamps(),
    UniqueConstraint("druid", name="uq_preserved_objects_druid"),
    CheckConstraint("current_version > 0", name="ck_preserved_objects_version"),
)

moab_storage_roots = Table(
    "moab_storage_roots",
    metadata,
    _id_column(),
    Column("name", String(255), nullable=False),
    Column("storage_location", String(1024), nullable=False),
    *_timestamps(),
    UniqueConstraint("name", name="uq_moab_storage_roots_name"),
    UniqueConstraint("storage_location", name="uq_moab_storage_roots_location"),
)

moab_records = Table(
    "moab_records",
    metadata,
    _id_column(),
    Column(
        "preserved_object_id",
        BigInteger,
        ForeignKey(f"{CATALOG_SCHEMA}.preserved_objects.id", ondelete="RESTRICT"),
        nullable=False,
    ),
    Column(
        "moab_storage_root_id",
        BigInteger,
        ForeignKey(f"{CATALOG_SCHEMA}.moab_storage_roots.id", ondelete="RESTRICT"),
        nullable=False,
    ),
    Column("version", Integer, nullable=False),
    Column("size", BigInteger, nullable=True),
    Column("status", String(64), nullable=False),
    Column("status_details", Text, nullable=True),
    Column("last_version_audit", DateTime(timezone=True), nullable=True),
    Column("last_moab_validation", DateTime(timezone=True), nullable=True),
    Column("last_checksum_validation", DateTime(timezone=True), nullable=True),
    *_timestamps(),
    UniqueConstraint(
        "preserved_object_id",
        "moab_storage_root_id",
        name="uq_moab_records_object_root",
    ),
    UniqueConstraint("preserved_object_id", name="uq_moab_records_object"),
    CheckConstraint("version > 0", name="ck_moab_records_version"),
    Index("ix_moab_records_last_version_audit", "last_version_audit"),
    Index("ix_moab_records_last_checksum_validation", "last_checksum_validation"),
)

zip_endpoints = Table(
    "zip_endpoints",
    metadata,
    _id_column(),
    Column("endpoint_name", String(255), nullable=False),
    Column("endpoint_node", String(1024), nullable=False),
    Column("storage_location", String(1024), nullable=False),
    Column("provider", String(64), nullable=False, server_default="s3"),
    *_timestamps(),
    UniqueConstraint("endpoint_name", name="uq_zip_endpoints_name"),
)

zipped_moab_versions = Table(
    "zipped_moab_versions",
    metadata,
    _id_column(),
    Column(
        "preserved_object_id",
        BigInteger,
        ForeignKey(f"{CATALOG_SCHEMA}.preserved_objects.id", ondelete="RESTRICT"),
        nullable=False,
    ),
    Column(
        "zip_endpoint_id",
        BigInteger,
        ForeignKey(f"{CATALOG_SCHEMA}.zip_endpoints.id", ondelete="RESTRICT"),
        nullable=False,
    ),
    Column("version", Integer, nullable=False),
    Column("zip_parts_count", Integer, nullable=True),
    Column("status", String(32), nullable=False, server_default="created"),
    Column("status_details", Text, nullable=True),
    Column("status_updated_at", DateTime(timezone=True), nullable=True),
    *_timestamps(),
    UniqueConstraint(
        "preserved_object_id",
        "zip_endpoint_id",
        "version",
        name="uq_zipped_moab_versions_object_endpoint_version",
    ),
    CheckConstraint("version > 0", name="ck_zipped_moab_versions_version"),
)

zip_parts = Table(
    "zip_parts",
    metadata,
    _id_column(),
    Column(
        "zipped_moab_version_id",
        BigInteger,
        ForeignKey(f"{CATALOG_SCHEMA}.zipped_moab_versions.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("suffix", String(8), nullable=False),
    Column("size", BigInteger, nullable=False),
    Column("md5", String(32), nullable=False),
    Column("status", String(32), nullable=False, server_default="unreplicated"),
    *_timestamps(),
    UniqueConstraint(
        "zipped_moab_version_id", "suffix", name="uq_zip_parts_version_suffix"
    ),
    CheckConstraint("size >= 0", name="ck_zip_parts_size"),
)
