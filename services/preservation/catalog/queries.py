"""Catalog helpers composed from transaction operations."""

from __future__ import annotations

from datetime import datetime

from services.preservation.catalog.domain import (
    MoabStorageRoot,
    PreservedObject,
    StorageRootSummary,
    ZippedMoabVersion,
    ZipPartStatus,
)
from services.preservation.catalog.interfaces import CatalogTransaction


def populate_zipped_moab_versions(
    tx: CatalogTransaction, *, preserved_object: PreservedObject, now: datetime
) -> tuple[ZippedMoabVersion, ...]:
    """Create missing replica records for every version on every endpoint.

    Returns only the records this call created; each starts as ``created``.
    """
    created: list[ZippedMoabVersion] = []
    for version in range(1, preserved_object.current_version + 1):
        for endpoint in tx.list_zip_endpoints():
            record, was_created = tx.find_or_create_zipped_moab_version(
                preserved_object_id=preserved_object.id,
                zip_endpoint_id=endpoint.id,
                version=version,
                now=now,
            )
            if was_created:
                created.append(record)
    return tuple(created)


def zip_parts_all_ok(tx: CatalogTransaction, *, record: ZippedMoabVersion) -> bool:
    """Return whether every expected part of ``record`` is replicated."""
    parts = tx.list_zip_parts(zipped_moab_version_id=record.id)
    if not parts:
        return False
    if record.zip_parts_count is not None and len(parts) != record.zip_parts_count:
        return False
    return all(part.status == ZipPartStatus.OK for part in parts)


def storage_root_summary(
    tx: CatalogTransaction, *, storage_root: MoabStorageRoot
) -> StorageRootSummary:
    """Return Moab record counts by status for one storage root."""
    counts = tx.count_moab_records_by_status(moab_storage_root_id=storage_root.id)
    return StorageRootSummary(
        storage_root_name=storage_root.name,
        total=sum(counts.values()),
        counts=counts,
    )
