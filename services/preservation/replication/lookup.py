"""Catalog lookups shared by the delivery chain."""

from __future__ import annotations

from dataclasses import dataclass

from services.preservation.catalog import (
    CatalogTransaction,
    PreservedObject,
    ZipEndpoint,
    ZippedMoabVersion,
    ZipPart,
)


@dataclass(frozen=True)
class ReplicaTarget:
    """One replica record with its object and endpoint."""

    preserved_object: PreservedObject
    endpoint: ZipEndpoint
    record: ZippedMoabVersion

    def part_with_suffix(self, tx: CatalogTransaction, suffix: str) -> ZipPart | None:
        for part in tx.list_zip_parts(zipped_moab_version_id=self.record.id):
            if part.suffix == suffix:
                return part
        return None


def load_replica_target(
    tx: CatalogTransaction, *, druid: str, version: int, endpoint_name: str
) -> ReplicaTarget | None:
    """Return the replica record for (druid, version, endpoint) if cataloged."""
    preserved_object = tx.get_preserved_object(druid=druid)
    endpoint = tx.get_zip_endpoint(endpoint_name=endpoint_name)
    if preserved_object is None or endpoint is None:
        return None
    record = tx.get_zipped_moab_version(
        preserved_object_id=preserved_object.id,
        zip_endpoint_id=endpoint.id,
        version=version,
    )
    if record is None:
        return None
    return ReplicaTarget(preserved_object=preserved_object, endpoint=endpoint, record=record)
