"""Build local parts for one druid version and prepare their dispatch payloads."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from packages.preservation_shared.logging import get_logger
from resources.substrates.filesystem import ZipStorageSubstrate
from services.preservation.audit_results import AuditResults, ResultsReporter
from services.preservation.catalog import (
    CatalogStore,
    ZippedMoabVersionStatus,
    utc_now,
)
from services.preservation.replication.preconditions import (
    PreconditionResult,
    validate_delivery_metadata,
)
from services.preservation.replication.zip_parts_audit import ZipPartsToZipFilesAudit
from services.preservation.zip_packaging import (
    DruidVersionZip,
    ReplicationSettings,
    ZipArchiver,
)

_LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class PartPayload:
    """One part ready for ``dispatch_part``."""

    part_key: str
    metadata: dict[str, Any]
    precondition: PreconditionResult


class ZipmakerService:
    """Ensure complete local parts exist for a cataloged druid version."""

    def __init__(
        self,
        *,
        store: CatalogStore,
        storage: ZipStorageSubstrate,
        archiver: ZipArchiver,
        reporter: ResultsReporter,
        settings: ReplicationSettings | None = None,
        clock: Callable[[], datetime] = utc_now,
        logger: logging.Logger | None = None,
    ) -> None:
        self._store = store
        self._storage = storage
        self._archiver = archiver
        self._reporter = reporter
        self._settings = settings or ReplicationSettings()
        self._clock = clock
        self._logger = logger or _LOGGER

    def make_zip(self, *, druid: str, version: int) -> list[PartPayload]:
        """Create or reuse parts; return one payload per part in part order.

        Packaging errors propagate after local parts are removed.
        """
        storage_location = self._storage_location(druid)
        if storage_location is None:
            self._logger.warning(
                "zipmaker skipped: druid not cataloged",
                extra={"druid": druid, "version": version},
            )
            return []
        zip_ = DruidVersionZip(
            druid=druid,
            version=version,
            storage=self._storage,
            archiver=self._archiver,
            settings=self._settings,
            storage_location=storage_location,
            logger=self._logger,
        )
        zip_info = zip_.find_or_create_zip()
        self._check_recorded_parts(druid, version)

        parts = zip_.parts()
        payloads: list[PartPayload] = []
        for part in parts:
            metadata = part.metadata(zip_info=zip_info, parts_count=len(parts))
            payloads.append(
                PartPayload(
                    part_key=part.key,
                    metadata=metadata,
                    precondition=validate_delivery_metadata(metadata),
                )
            )
        return payloads

    def _storage_location(self, druid: str) -> str | None:
        with self._store.transaction() as tx:
            preserved_object = tx.get_preserved_object(druid=druid)
            if preserved_object is None:
                return None
            record = tx.get_moab_record(preserved_object_id=preserved_object.id)
            if record is None:
                return None
            root = tx.get_storage_root_by_id(storage_root_id=record.moab_storage_root_id)
            return None if root is None else root.storage_location

    def _check_recorded_parts(self, druid: str, version: int) -> None:
        """Fail incomplete replica records whose part rows disagree with local sidecars."""
        audit = ZipPartsToZipFilesAudit(storage=self._storage)
        now = self._clock()
        findings: list[AuditResults] = []
        with self._store.transaction() as tx:
            preserved_object = tx.get_preserved_object(druid=druid)
            if preserved_object is None:
                return
            for record in tx.list_zipped_moab_versions(
                preserved_object_id=preserved_object.id, version=version
            ):
                if record.status != ZippedMoabVersionStatus.INCOMPLETE:
                    continue
                endpoint = tx.get_zip_endpoint_by_id(zip_endpoint_id=record.zip_endpoint_id)
                if endpoint is None:
                    continue
                results = audit.audit(tx, druid=druid, record=record, endpoint=endpoint)
                if results.is_empty():
                    continue
                tx.update_zipped_moab_version(
                    record.model_copy(
                        update={
                            "status": ZippedMoabVersionStatus.FAILED,
                            "status_details": results.to_s(),
                            "status_updated_at": now,
                            "updated_at": now,
                        }
                    )
                )
                findings.append(results)
        for results in findings:
            self._reporter.report_results(results)
