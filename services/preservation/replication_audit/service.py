"""Replication audits per object and per endpoint.

An audit reads a snapshot of the replica records in a short transaction,
checks each endpoint remotely with no transaction open, and writes each
endpoint's verdicts back in a transaction of its own. An endpoint whose
remote checks raise is reported and left as it was; the other endpoints
are still audited and persisted.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from packages.preservation_shared.errors import exception_summary
from packages.preservation_shared.ids import moab_object_path, version_dir_name
from packages.preservation_shared.logging import get_logger
from services.preservation.audit_results import (
    AuditResults,
    ResultCode,
    ResultsReporter,
)
from services.preservation.catalog import (
    CatalogStore,
    CatalogTransaction,
    PreservedObject,
    ZipEndpoint,
    ZippedMoabVersion,
    ZippedMoabVersionStatus,
    ZipPart,
    populate_zipped_moab_versions,
    utc_now,
)
from services.preservation.reconciliation import with_transaction_and_rescue
from services.preservation.replication import ReplicatorRegistry
from services.preservation.replication_audit.zipped_moab_version_audit import (
    VersionAuditVerdict,
    ZippedMoabVersionAudit,
)
from services.preservation.zip_packaging import MoabVersionFiles, ZipPackagingError

_LOGGER = get_logger(__name__)
CHECK_NAME = "ReplicationAudit"
_PENDING_STATUSES = frozenset(
    {ZippedMoabVersionStatus.CREATED, ZippedMoabVersionStatus.INCOMPLETE}
)


@dataclass
class ReplicationAuditOutcome:
    """Results per endpoint and the versions that still need packaging."""

    druid: str
    results: list[AuditResults] = field(default_factory=list)
    versions_to_zip: list[int] = field(default_factory=list)


@dataclass(frozen=True)
class _EndpointSnapshot:
    endpoint: ZipEndpoint
    records: tuple[tuple[ZippedMoabVersion, tuple[ZipPart, ...]], ...]


class ReplicationAuditService:
    """Audit replica records and stamp the object's archive audit time."""

    def __init__(
        self,
        *,
        store: CatalogStore,
        registry: ReplicatorRegistry,
        reporter: ResultsReporter,
        clock: Callable[[], datetime] = utc_now,
        logger: logging.Logger | None = None,
    ) -> None:
        self._store = store
        self._registry = registry
        self._reporter = reporter
        self._clock = clock
        self._logger = logger or _LOGGER

    def replication_audit(self, *, druid: str) -> ReplicationAuditOutcome | None:
        """Audit every endpoint for one object; ``None`` when not cataloged."""
        return self._audit_object(druid, endpoint_name=None)

    def audit_endpoint(
        self, *, endpoint_name: str, ttl_seconds: int, limit: int
    ) -> list[ReplicationAuditOutcome]:
        """Audit objects whose archive audit on ``endpoint_name`` has expired."""
        now = self._clock()
        with self._store.transaction() as tx:
            endpoint = tx.get_zip_endpoint(endpoint_name=endpoint_name)
            if endpoint is None:
                self._logger.warning(
                    "unknown zip endpoint", extra={"endpoint_name": endpoint_name}
                )
                return []
            druids = [
                obj.druid
                for obj in tx.preserved_objects_archive_audit_expired(
                    before=now - timedelta(seconds=ttl_seconds),
                    limit=limit,
                    zip_endpoint_id=endpoint.id,
                )
            ]
        outcomes: list[ReplicationAuditOutcome] = []
        for druid in druids:
            outcome = self._audit_object(druid, endpoint_name=endpoint_name)
            if outcome is not None:
                outcomes.append(outcome)
        return outcomes

    def _audit_object(
        self, druid: str, *, endpoint_name: str | None
    ) -> ReplicationAuditOutcome | None:
        now = self._clock()
        outcome = ReplicationAuditOutcome(druid=druid)
        with self._store.transaction() as tx:
            preserved_object = tx.get_preserved_object(druid=druid)
            if preserved_object is None:
                self._logger.warning(
                    "replication audit for uncataloged druid", extra={"druid": druid}
                )
                return None
            populate_zipped_moab_versions(tx, preserved_object=preserved_object, now=now)
            snapshots = self._snapshot(tx, preserved_object, endpoint_name)
            storage_location = self._storage_location(tx, preserved_object)

        sizes: dict[int, int | None] = {}
        pending: set[int] = set()
        audited_everywhere = True
        for snapshot in snapshots:
            results = AuditResults(
                druid=druid,
                check_name=CHECK_NAME,
                storage_area=snapshot.endpoint.endpoint_name,
                actual_version=preserved_object.current_version,
            )
            outcome.results.append(results)
            verdicts = self._audit_snapshot(
                preserved_object, snapshot, results, storage_location, sizes
            )
            if verdicts is None:
                audited_everywhere = False
                pending.update(
                    record.version
                    for record, _parts in snapshot.records
                    if record.status in _PENDING_STATUSES
                )
                continue
            if not self._persist(verdicts, results, now):
                audited_everywhere = False
            pending.update(v.record.version for v in verdicts if v.status in _PENDING_STATUSES)
        outcome.versions_to_zip = sorted(pending)

        if audited_everywhere:
            with self._store.transaction() as tx:
                current = tx.get_preserved_object(druid=druid)
                if current is not None:
                    tx.update_preserved_object(
                        current.model_copy(
                            update={"last_archive_audit": now, "updated_at": now}
                        )
                    )

        for results in outcome.results:
            self._reporter.report_results(results)
        self._logger.info(
            "replication audit finished",
            extra={
                "druid": druid,
                "check_name": CHECK_NAME,
                "versions_to_zip": outcome.versions_to_zip,
                "audited_everywhere": audited_everywhere,
            },
        )
        return outcome

    def _snapshot(
        self,
        tx: CatalogTransaction,
        preserved_object: PreservedObject,
        endpoint_name: str | None,
    ) -> list[_EndpointSnapshot]:
        snapshots: list[_EndpointSnapshot] = []
        for endpoint in tx.list_zip_endpoints():
            if endpoint_name is not None and endpoint.endpoint_name != endpoint_name:
                continue
            if endpoint.endpoint_name not in self._registry:
                self._logger.warning(
                    "no replicator for zip endpoint; skipping",
                    extra={
                        "druid": preserved_object.druid,
                        "endpoint_name": endpoint.endpoint_name,
                    },
                )
                continue
            records = tuple(
                (record, tx.list_zip_parts(zipped_moab_version_id=record.id))
                for record in tx.list_zipped_moab_versions(
                    preserved_object_id=preserved_object.id, zip_endpoint_id=endpoint.id
                )
            )
            snapshots.append(_EndpointSnapshot(endpoint=endpoint, records=records))
        return snapshots

    def _audit_snapshot(
        self,
        preserved_object: PreservedObject,
        snapshot: _EndpointSnapshot,
        results: AuditResults,
        storage_location: str | None,
        sizes: dict[int, int | None],
    ) -> list[VersionAuditVerdict] | None:
        """Check one endpoint remotely; ``None`` when its checks raised."""
        replicator = self._registry.for_endpoint(snapshot.endpoint.endpoint_name)
        verdicts: list[VersionAuditVerdict] = []
        try:
            for record, parts in snapshot.records:
                if record.version not in sizes:
                    sizes[record.version] = self._moab_version_size(
                        preserved_object.druid, storage_location, record.version
                    )
                verdicts.append(
                    ZippedMoabVersionAudit(
                        druid=preserved_object.druid,
                        record=record,
                        parts=parts,
                        endpoint=snapshot.endpoint,
                        replicator=replicator,
                        results=results,
                        moab_version_size=sizes[record.version],
                    ).run()
                )
        except Exception as exc:  # noqa: BLE001
            results.add_result(
                ResultCode.REPLICATION_AUDIT_FAILED,
                {
                    "endpoint_name": snapshot.endpoint.endpoint_name,
                    "error": exception_summary(exc),
                },
            )
            self._logger.warning(
                "replication audit of endpoint failed; leaving its records as they were",
                extra={
                    "druid": preserved_object.druid,
                    "endpoint_name": snapshot.endpoint.endpoint_name,
                    "exception_type": type(exc).__name__,
                },
            )
            return None
        return verdicts

    def _persist(
        self, verdicts: list[VersionAuditVerdict], results: AuditResults, now: datetime
    ) -> bool:
        """Write one endpoint's verdicts in a single short transaction."""

        def write(tx: CatalogTransaction) -> None:
            for verdict in verdicts:
                current = tx.get_zipped_moab_version(
                    preserved_object_id=verdict.record.preserved_object_id,
                    zip_endpoint_id=verdict.record.zip_endpoint_id,
                    version=verdict.record.version,
                )
                if current is None:
                    continue
                for zip_part_id, status in verdict.part_statuses.items():
                    tx.update_zip_part_status(zip_part_id=zip_part_id, status=status, now=now)
                tx.update_zipped_moab_version(
                    current.model_copy(
                        update={
                            "zip_parts_count": verdict.zip_parts_count,
                            "status": verdict.status,
                            "status_details": verdict.status_details,
                            "status_updated_at": now,
                            "updated_at": now,
                        }
                    )
                )

        return with_transaction_and_rescue(self._store, results, write, logger=self._logger)

    def _storage_location(
        self, tx: CatalogTransaction, preserved_object: PreservedObject
    ) -> str | None:
        record = tx.get_moab_record(preserved_object_id=preserved_object.id)
        if record is None:
            return None
        root = tx.get_storage_root_by_id(storage_root_id=record.moab_storage_root_id)
        return None if root is None else root.storage_location

    def _moab_version_size(
        self, druid: str, storage_location: str | None, version: int
    ) -> int | None:
        """Return the on-disk size of one version, or ``None`` when unreadable."""
        if storage_location is None:
            return None
        version_path = moab_object_path(storage_location, druid) / version_dir_name(version)
        try:
            return MoabVersionFiles(version_path).size()
        except ZipPackagingError as exc:
            self._logger.warning(
                "moab version size unavailable; skipping size check",
                extra={
                    "druid": druid,
                    "version": version,
                    "exception_type": type(exc).__name__,
                },
            )
            return None
