"""Lookup of a cataloged Moab together with its object and storage root."""

from __future__ import annotations

from dataclasses import dataclass

from services.preservation.catalog import (
    CatalogTransaction,
    MoabRecord,
    MoabStorageRoot,
    PreservedObject,
)


@dataclass(frozen=True)
class CatalogedMoab:
    """A MoabRecord with the druid and storage root needed to find it on disk."""

    druid: str
    preserved_object: PreservedObject
    record: MoabRecord
    storage_root: MoabStorageRoot


def load_cataloged_moab(tx: CatalogTransaction, *, druid: str) -> CatalogedMoab | None:
    """Return the druid's MoabRecord and root, or ``None`` when not cataloged."""
    preserved_object = tx.get_preserved_object(druid=druid)
    if preserved_object is None:
        return None
    record = tx.get_moab_record(preserved_object_id=preserved_object.id)
    if record is None:
        return None
    root = tx.get_storage_root_by_id(storage_root_id=record.moab_storage_root_id)
    if root is None:
        return None
    return CatalogedMoab(
        druid=druid, preserved_object=preserved_object, record=record, storage_root=root
    )
