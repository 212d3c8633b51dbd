"""Staleness-ordered batches of druids for scheduled audits."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta

from services.preservation.catalog import CatalogStore, CatalogTransaction, MoabRecord


def catalog_audit_batch(
    store: CatalogStore,
    *,
    storage_root_name: str,
    now: datetime,
    ttl_seconds: int,
    limit: int,
) -> list[str]:
    """Return druids on one root whose version audit is older than ``ttl_seconds``."""
    with store.transaction() as tx:
        root = tx.get_storage_root(name=storage_root_name)
        if root is None:
            return []
        records = tx.moab_records_version_audit_expired(
            moab_storage_root_id=root.id,
            before=now - timedelta(seconds=ttl_seconds),
            limit=limit,
        )
        return _druids(tx, records)


def fixity_check_batch(
    store: CatalogStore,
    *,
    storage_root_name: str,
    now: datetime,
    ttl_seconds: int,
    limit: int,
) -> list[str]:
    """Return druids on one root whose checksum validation is older than ``ttl_seconds``."""
    with store.transaction() as tx:
        root = tx.get_storage_root(name=storage_root_name)
        if root is None:
            return []
        records = tx.moab_records_fixity_check_expired(
            moab_storage_root_id=root.id,
            before=now - timedelta(seconds=ttl_seconds),
            limit=limit,
        )
        return _druids(tx, records)


def _druids(tx: CatalogTransaction, records: Iterable[MoabRecord]) -> list[str]:
    druids: list[str] = []
    for record in records:
        preserved_object = tx.get_preserved_object_by_id(
            preserved_object_id=record.preserved_object_id
        )
        if preserved_object is not None:
            druids.append(preserved_object.druid)
    return druids
