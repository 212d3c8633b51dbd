"""Deliver one local part to one zip endpoint."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any, Mapping

from packages.preservation_shared.logging import get_logger
from resources.substrates.filesystem import ZipStorageSubstrate
from services.preservation.audit_results import AuditResults, ResultCode, ResultsReporter
from services.preservation.catalog import (
    CatalogStore,
    ZippedMoabVersionStatus,
    ZipPartStatus,
    utc_now,
)
from services.preservation.replication.interfaces import DeliveryOutcome, DeliveryReceipt
from services.preservation.replication.lookup import load_replica_target
from services.preservation.replication.preconditions import validate_delivery_metadata
from services.preservation.replication.registry import ReplicatorRegistry
from services.preservation.zip_packaging import DruidVersionZipPart, part_suffix

_LOGGER = get_logger(__name__)
CHECK_NAME = "ZipPartDelivery"


class ZipPartDelivery:
    """Upload parts through the endpoint's replicator, never overwriting."""

    def __init__(
        self,
        *,
        store: CatalogStore,
        registry: ReplicatorRegistry,
        storage: ZipStorageSubstrate,
        reporter: ResultsReporter,
        clock: Callable[[], datetime] = utc_now,
        logger: logging.Logger | None = None,
    ) -> None:
        self._store = store
        self._registry = registry
        self._storage = storage
        self._reporter = reporter
        self._clock = clock
        self._logger = logger or _LOGGER

    def deliver_part(
        self,
        *,
        druid: str,
        version: int,
        part_key: str,
        endpoint_name: str,
        metadata: Mapping[str, Any],
    ) -> DeliveryReceipt:
        """Deliver one part; a different remote object is reported, not replaced."""
        validate_delivery_metadata(metadata).raise_for_errors()
        replicator = self._registry.for_endpoint(endpoint_name)
        receipt = replicator.deliver(
            DruidVersionZipPart(key=part_key, storage=self._storage), metadata
        )
        self._logger.info(
            "part delivery finished",
            extra={
                "druid": druid,
                "version": version,
                "endpoint_name": endpoint_name,
                "part_key": part_key,
                "outcome": receipt.outcome.value,
            },
        )
        if receipt.outcome == DeliveryOutcome.CHECKSUM_MISMATCH:
            self._record_mismatch(
                druid=druid,
                version=version,
                endpoint_name=endpoint_name,
                receipt=receipt,
                md5=str(metadata["checksum_md5"]),
            )
        elif receipt.outcome == DeliveryOutcome.LOCAL_CHECKSUM_MISMATCH:
            self._report_local_mismatch(
                druid=druid,
                version=version,
                endpoint_name=endpoint_name,
                receipt=receipt,
                md5=str(metadata["checksum_md5"]),
            )
        return receipt

    def _report_local_mismatch(
        self,
        *,
        druid: str,
        version: int,
        endpoint_name: str,
        receipt: DeliveryReceipt,
        md5: str,
    ) -> None:
        results = AuditResults(
            druid=druid,
            check_name=CHECK_NAME,
            storage_area=endpoint_name,
            actual_version=version,
        )
        results.add_result(
            ResultCode.ZIP_PART_CHECKSUM_FILE_MISMATCH,
            {"s3_key": receipt.key, "md5": md5, "local_md5": receipt.local_checksum_md5},
        )
        self._reporter.report_results(results)

    def _record_mismatch(
        self,
        *,
        druid: str,
        version: int,
        endpoint_name: str,
        receipt: DeliveryReceipt,
        md5: str,
    ) -> None:
        results = AuditResults(
            druid=druid,
            check_name=CHECK_NAME,
            storage_area=endpoint_name,
            actual_version=version,
        )
        results.add_result(
            ResultCode.ZIP_PART_CHECKSUM_MISMATCH,
            {
                "endpoint_name": endpoint_name,
                "s3_key": receipt.key,
                "md5": md5,
                "replicated_checksum": receipt.remote_checksum_md5,
                "bucket_name": receipt.bucket_name,
            },
        )
        now = self._clock()
        with self._store.transaction() as tx:
            target = load_replica_target(
                tx, druid=druid, version=version, endpoint_name=endpoint_name
            )
            if target is not None:
                part = target.part_with_suffix(tx, part_suffix(receipt.key))
                if part is not None:
                    tx.update_zip_part_status(
                        zip_part_id=part.id, status=ZipPartStatus.CHECKSUM_MISMATCH, now=now
                    )
                tx.update_zipped_moab_version(
                    target.record.model_copy(
                        update={
                            "status": ZippedMoabVersionStatus.FAILED,
                            "status_details": results.to_s(),
                            "status_updated_at": now,
                            "updated_at": now,
                        }
                    )
                )
        self._reporter.report_results(results)
