"""Removal of replica records that failed to replicate.

Deleting a failed ``ZippedMoabVersion`` lets the next replication audit
recreate it from scratch and queue the version for packaging again.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from packages.preservation_shared.logging import get_logger
from services.preservation.audit_results import AuditResults, ResultCode
from services.preservation.catalog import (
    CatalogStore,
    ZipEndpoint,
    ZippedMoabVersion,
    ZipPart,
    utc_now,
)
from services.preservation.replication import ReplicatorRegistry
from services.preservation.replication_audit.zipped_moab_version_audit import (
    ZippedMoabVersionAudit,
)
from services.preservation.zip_packaging import ReplicationSettings

_LOGGER = get_logger(__name__)
CHECK_NAME = "PruneReplicationFailures"

_Candidate = tuple[ZippedMoabVersion, tuple[ZipPart, ...], ZipEndpoint]


class FailureRemediator:
    """Find errored replica records for one version and delete them."""

    def __init__(
        self,
        *,
        store: CatalogStore,
        registry: ReplicatorRegistry,
        settings: ReplicationSettings | None = None,
        clock: Callable[[], datetime] = utc_now,
        logger: logging.Logger | None = None,
    ) -> None:
        self._store = store
        self._registry = registry
        self._settings = settings or ReplicationSettings()
        self._clock = clock
        self._logger = logger or _LOGGER

    def prune_replication_failures(
        self, *, druid: str, version: int, verify_expiration: bool = True
    ) -> list[tuple[int, str]]:
        """Delete records of ``version`` whose audit reports errors.

        With ``verify_expiration`` only records older than the zip cache
        expiry are considered, so uploads still in flight are left alone.
        A record whose endpoint cannot be checked is kept. Returns
        ``(version, endpoint_name)`` for every deleted record.
        """
        now = self._clock()
        with self._store.transaction() as tx:
            preserved_object = tx.get_preserved_object(druid=druid)
            if preserved_object is None:
                return []
            current_version = preserved_object.current_version
            candidates: list[_Candidate] = []
            for record in tx.list_zipped_moab_versions(
                preserved_object_id=preserved_object.id, version=version
            ):
                if verify_expiration and not self._expired(record, now):
                    continue
                endpoint = tx.get_zip_endpoint_by_id(zip_endpoint_id=record.zip_endpoint_id)
                if endpoint is None or endpoint.endpoint_name not in self._registry:
                    continue
                parts = tx.list_zip_parts(zipped_moab_version_id=record.id)
                candidates.append((record, parts, endpoint))

        failing: list[tuple[ZippedMoabVersion, ZipEndpoint, AuditResults]] = []
        for record, parts, endpoint in candidates:
            results = AuditResults(
                druid=druid,
                check_name=CHECK_NAME,
                storage_area=endpoint.endpoint_name,
                actual_version=current_version,
            )
            try:
                self._check(druid, record, parts, endpoint, results)
            except Exception as exc:  # noqa: BLE001
                self._logger.warning(
                    "unable to check replica record; keeping it",
                    extra={
                        "druid": druid,
                        "version": record.version,
                        "endpoint_name": endpoint.endpoint_name,
                        "exception_type": type(exc).__name__,
                    },
                )
                continue
            if results.error_results():
                failing.append((record, endpoint, results))

        pruned: list[tuple[int, str]] = []
        if not failing:
            return pruned
        with self._store.transaction() as tx:
            for record, endpoint, results in failing:
                tx.delete_zipped_moab_version(zipped_moab_version_id=record.id)
                pruned.append((record.version, endpoint.endpoint_name))
                self._logger.info(
                    "pruned failed replica record",
                    extra={
                        "druid": druid,
                        "version": record.version,
                        "endpoint_name": endpoint.endpoint_name,
                        "reason": results.to_s(),
                    },
                )
        return pruned

    def _check(
        self,
        druid: str,
        record: ZippedMoabVersion,
        parts: tuple[ZipPart, ...],
        endpoint: ZipEndpoint,
        results: AuditResults,
    ) -> None:
        if not parts:
            results.add_result(
                ResultCode.ZIP_PARTS_NOT_CREATED,
                {"version": record.version, "endpoint_name": endpoint.endpoint_name},
            )
            return
        audit = ZippedMoabVersionAudit(
            druid=druid,
            record=record,
            parts=parts,
            endpoint=endpoint,
            replicator=self._registry.for_endpoint(endpoint.endpoint_name),
            results=results,
        )
        if audit.check_count_consistency() is None:
            audit.check_remote_parts(report_each_missing=True)

    def _expired(self, record: ZippedMoabVersion, now: datetime) -> bool:
        expiry = timedelta(minutes=self._settings.zip_cache_expiry_minutes)
        return record.created_at <= now - expiry
