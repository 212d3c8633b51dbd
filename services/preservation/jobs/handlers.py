"""Job bodies behind the Celery tasks.

Each handler does one unit of work against the runtime services and hands
follow-up work to ``enqueue``. Handlers return small JSON-safe summaries.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Mapping, Protocol

from packages.preservation_shared.logging import get_logger, log_context
from services.preservation.catalog import MoabStorageRoot
from services.preservation.jobs.runtime import PreservationRuntime
from services.preservation.moab_validation import iter_moab_druids
from services.preservation.reconciliation import catalog_audit_batch, fixity_check_batch
from services.preservation.replication import DeliveryOutcome

_LOGGER = get_logger(__name__)

CATALOG_TO_MOAB = "catalog_to_moab"
MOAB_TO_CATALOG = "moab_to_catalog"
VALIDATE_CHECKSUMS = "validate_checksums"
ZIPMAKER = "zipmaker"
DISPATCH_PART = "dispatch_part"
DELIVER_PART = "deliver_part"
RECORD_DELIVERY = "record_delivery"
REPLICATION_AUDIT = "replication_audit"
AUDIT_ENDPOINT = "audit_endpoint"
PRUNE_REPLICATION_FAILURES = "prune_replication_failures"

_RECORDABLE_OUTCOMES = frozenset(
    {DeliveryOutcome.UPLOADED, DeliveryOutcome.ALREADY_REPLICATED}
)


class Enqueue(Protocol):
    """Publish one job by name; return whether it was published."""

    def __call__(self, job_name: str, *args: Any) -> bool:
        """Publish ``job_name`` with positional ``args``."""


class JobHandlers:
    """Run named jobs against one ``PreservationRuntime``."""

    def __init__(
        self,
        *,
        runtime: PreservationRuntime,
        enqueue: Enqueue,
        logger: logging.Logger | None = None,
    ) -> None:
        self._runtime = runtime
        self._enqueue = enqueue
        self._logger = logger or _LOGGER

    def catalog_to_moab(self, druid: str) -> dict[str, Any]:
        with log_context({"job_name": CATALOG_TO_MOAB, "druid": druid}):
            results = self._runtime.catalog_to_moab.check_catalog_version(druid=druid)
        return _summary(druid, results)

    def moab_to_catalog(self, druid: str, storage_root_name: str) -> dict[str, Any]:
        with log_context({"job_name": MOAB_TO_CATALOG, "druid": druid}):
            results = self._runtime.moab_to_catalog.check_existence_for_druid(
                druid=druid, storage_root_name=storage_root_name
            )
        return _summary(druid, results)

    def validate_checksums(self, druid: str) -> dict[str, Any]:
        with log_context({"job_name": VALIDATE_CHECKSUMS, "druid": druid}):
            results = self._runtime.checksum_validation.validate_checksums(druid=druid)
        return _summary(druid, results)

    def zipmaker(self, druid: str, version: int) -> dict[str, Any]:
        """Package one version and queue each valid part for dispatch."""
        dispatched: list[str] = []
        with log_context({"job_name": ZIPMAKER, "druid": druid, "version": version}):
            for payload in self._runtime.zipmaker.make_zip(druid=druid, version=version):
                if not payload.precondition.ok:
                    self._logger.error(
                        "part metadata failed delivery preconditions; not dispatching",
                        extra={
                            "part_key": payload.part_key,
                            "errors": [e.message for e in payload.precondition.errors],
                        },
                    )
                    continue
                self._enqueue(DISPATCH_PART, druid, version, payload.part_key, payload.metadata)
                dispatched.append(payload.part_key)
        return {"druid": druid, "version": version, "dispatched": dispatched}

    def dispatch_part(
        self, druid: str, version: int, part_key: str, metadata: Mapping[str, Any]
    ) -> dict[str, Any]:
        """Record the part per endpoint and queue delivery where it is not yet ok."""
        context = {"job_name": DISPATCH_PART, "druid": druid, "version": version}
        with log_context({**context, "part_key": part_key}):
            endpoint_names = self._runtime.dispatcher.dispatch_part(
                druid=druid, version=version, part_key=part_key, metadata=metadata
            )
            for endpoint_name in endpoint_names:
                self._enqueue(
                    DELIVER_PART, druid, version, part_key, endpoint_name, dict(metadata)
                )
        return {"druid": druid, "part_key": part_key, "endpoints": endpoint_names}

    def deliver_part(
        self,
        druid: str,
        version: int,
        part_key: str,
        endpoint_name: str,
        metadata: Mapping[str, Any],
    ) -> dict[str, Any]:
        context = {
            "job_name": DELIVER_PART,
            "druid": druid,
            "version": version,
            "part_key": part_key,
            "endpoint_name": endpoint_name,
        }
        with log_context(context):
            receipt = self._runtime.delivery.deliver_part(
                druid=druid,
                version=version,
                part_key=part_key,
                endpoint_name=endpoint_name,
                metadata=metadata,
            )
            if receipt.outcome in _RECORDABLE_OUTCOMES:
                self._enqueue(RECORD_DELIVERY, druid, version, part_key, endpoint_name)
        return {
            "part_key": part_key,
            "endpoint_name": endpoint_name,
            "outcome": receipt.outcome.value,
        }

    def record_delivery(
        self, druid: str, version: int, part_key: str, endpoint_name: str
    ) -> dict[str, Any]:
        context = {
            "job_name": RECORD_DELIVERY,
            "druid": druid,
            "version": version,
            "endpoint_name": endpoint_name,
        }
        with log_context(context):
            recorded = self._runtime.recorder.record_delivery(
                druid=druid, version=version, part_key=part_key, endpoint_name=endpoint_name
            )
        return {
            "druid": druid,
            "version": version,
            "endpoint_name": endpoint_name,
            "endpoint_complete": recorded.endpoint_complete,
            "all_endpoints_complete": recorded.all_endpoints_complete,
        }

    def replication_audit(self, druid: str) -> dict[str, Any]:
        """Audit every replica of ``druid`` and queue packaging for pending versions."""
        with log_context({"job_name": REPLICATION_AUDIT, "druid": druid}):
            outcome = self._runtime.replication_audit.replication_audit(druid=druid)
            versions = outcome.versions_to_zip if outcome is not None else []
            for version in versions:
                self._enqueue(ZIPMAKER, druid, version)
        return {"druid": druid, "versions_to_zip": versions}

    def audit_endpoint(self, endpoint_name: str) -> dict[str, Any]:
        audit = self._runtime.audit
        with log_context({"job_name": AUDIT_ENDPOINT, "endpoint_name": endpoint_name}):
            outcomes = self._runtime.replication_audit.audit_endpoint(
                endpoint_name=endpoint_name,
                ttl_seconds=self._runtime.policy.archive_ttl_seconds,
                limit=audit.replication_batch_size,
            )
            for outcome in outcomes:
                for version in outcome.versions_to_zip:
                    self._enqueue(ZIPMAKER, outcome.druid, version)
        return {"endpoint_name": endpoint_name, "audited": [o.druid for o in outcomes]}

    def prune_replication_failures(
        self, druid: str, version: int, verify_expiration: bool = True
    ) -> dict[str, Any]:
        """Delete failed replica records of one version and queue it for packaging again."""
        with log_context(
            {"job_name": PRUNE_REPLICATION_FAILURES, "druid": druid, "version": version}
        ):
            pruned = self._runtime.remediator.prune_replication_failures(
                druid=druid, version=version, verify_expiration=verify_expiration
            )
            if pruned:
                self._enqueue(ZIPMAKER, druid, version)
        return {
            "druid": druid,
            "version": version,
            "pruned": [endpoint_name for _version, endpoint_name in pruned],
        }

    def c2m_sweep(self, storage_root_name: str | None = None) -> dict[str, int]:
        """Queue catalog-to-Moab audits for the stalest records on each root."""
        queued = 0
        now = self._runtime.clock()
        for root in self._roots(storage_root_name):
            for druid in catalog_audit_batch(
                self._runtime.store,
                storage_root_name=root.name,
                now=now,
                ttl_seconds=self._runtime.policy.version_audit_ttl_seconds,
                limit=self._runtime.audit.c2m_batch_size,
            ):
                queued += int(self._enqueue(CATALOG_TO_MOAB, druid))
        return {"queued": queued}

    def checksum_validation_sweep(self, storage_root_name: str | None = None) -> dict[str, int]:
        """Queue checksum validation for records past the fixity TTL."""
        queued = 0
        now = self._runtime.clock()
        for root in self._roots(storage_root_name):
            for druid in fixity_check_batch(
                self._runtime.store,
                storage_root_name=root.name,
                now=now,
                ttl_seconds=self._runtime.policy.fixity_ttl_seconds,
                limit=self._runtime.audit.checksum_batch_size,
            ):
                queued += int(self._enqueue(VALIDATE_CHECKSUMS, druid))
        return {"queued": queued}

    def replication_audit_sweep(self) -> dict[str, int]:
        """Queue replication audits for objects past the archive TTL."""
        before = self._runtime.clock() - timedelta(
            seconds=self._runtime.policy.archive_ttl_seconds
        )
        with self._runtime.store.transaction() as tx:
            druids = [
                obj.druid
                for obj in tx.preserved_objects_archive_audit_expired(
                    before=before, limit=self._runtime.audit.replication_batch_size
                )
            ]
        queued = sum(int(self._enqueue(REPLICATION_AUDIT, druid)) for druid in druids)
        return {"queued": queued}

    def m2c_sweep(self, storage_root_name: str | None = None) -> dict[str, int]:
        """Queue a Moab-to-catalog check for every druid found on storage."""
        queued = 0
        for root in self._roots(storage_root_name):
            for druid in iter_moab_druids(root.storage_location):
                queued += int(self._enqueue(MOAB_TO_CATALOG, druid, root.name))
        return {"queued": queued}

    def _roots(self, storage_root_name: str | None) -> list[MoabStorageRoot]:
        roots = self._runtime.engine.storage_roots
        if storage_root_name is None:
            return list(roots)
        selected = [root for root in roots if root.name == storage_root_name]
        if not selected:
            self._logger.warning(
                "unknown storage root", extra={"storage_root": storage_root_name}
            )
        return selected


def _summary(druid: str, results: Any) -> dict[str, Any]:
    if results is None:
        return {"druid": druid, "cataloged": False, "results": []}
    return {
        "druid": druid,
        "cataloged": True,
        "results": [r.as_dict() for r in results.to_list()],
    }
