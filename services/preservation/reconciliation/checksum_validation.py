"""Fixity validation of one cataloged Moab, persisted as a status change."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from packages.preservation_shared.logging import get_logger
from services.preservation.audit_results import (
    AuditResults,
    ResultCode,
    ResultsReporter,
)
from services.preservation.catalog import (
    CatalogStore,
    CatalogTransaction,
    MoabRecord,
    MoabRecordStatus,
    utc_now,
)
from services.preservation.moab_validation import (
    ChecksumValidator,
    MoabOnStorage,
    MoabValidationSettings,
    MoabValidator,
)
from services.preservation.reconciliation.cataloged import load_cataloged_moab
from services.preservation.reconciliation.engine import MOAB_RECORD
from services.preservation.reconciliation.status_handler import StatusHandler
from services.preservation.reconciliation.transaction import (
    with_transaction_and_rescue,
)

_LOGGER = get_logger(__name__)

CHECK_NAME = "validate_checksums"


class ChecksumValidationService:
    """Re-hash one Moab outside any transaction, then persist the outcome."""

    def __init__(
        self,
        *,
        store: CatalogStore,
        reporter: ResultsReporter,
        settings: MoabValidationSettings | None = None,
        clock: Callable[[], datetime] = utc_now,
        logger: logging.Logger | None = None,
    ) -> None:
        self._store = store
        self._reporter = reporter
        self._settings = settings or MoabValidationSettings()
        self._clock = clock
        self._logger = logger or _LOGGER

    def validate_checksums(self, *, druid: str) -> AuditResults | None:
        """Validate fixity for ``druid``; ``None`` when it is not cataloged."""
        with self._store.transaction() as tx:
            cataloged = load_cataloged_moab(tx, druid=druid)
        if cataloged is None:
            self._logger.warning(
                "no cataloged moab found for checksum validation",
                extra={"druid": druid},
            )
            return None

        moab = MoabOnStorage(
            druid=druid, storage_location=cataloged.storage_root.storage_location
        )
        results = AuditResults(
            druid=druid,
            check_name=CHECK_NAME,
            storage_area=cataloged.storage_root.name,
            actual_version=moab.current_version(),
        )
        validator = MoabValidator(
            moab=moab,
            results=results,
            allow_content_subdirs=self._settings.allow_content_subdirs,
        )
        moab_found = moab.exists()
        if moab_found:
            ChecksumValidator(
                moab=moab, results=results, chunk_bytes=self._settings.hash_chunk_bytes
            ).validate()
        checksums_match = moab_found and results.is_empty()

        def persist(tx: CatalogTransaction) -> None:
            current = load_cataloged_moab(tx, druid=druid)
            if current is None:
                results.add_result(ResultCode.DB_OBJ_DOES_NOT_EXIST, MOAB_RECORD)
                return
            handler = StatusHandler(results=results, record=current.record, clock=self._clock)
            if not moab_found:
                handler.mark_moab_not_found()
            elif checksums_match:
                handler.update(last_checksum_validation=self._clock())
                results.add_result(ResultCode.MOAB_CHECKSUM_VALID)
                handler.update_audit_timestamps(moab_validated=True, version_audited=True)
                self._validate_versions(handler, validator, moab, current.record)
            else:
                handler.update(last_checksum_validation=self._clock())
                handler.update_moab_record_status(MoabRecordStatus.INVALID_CHECKSUM)
            tx.update_moab_record(handler.persist_changes())

        with_transaction_and_rescue(self._store, results, persist, logger=self._logger)
        self._reporter.report_results(results)
        self._logger.info(
            "checksum validation finished",
            extra={"druid": druid, "check_name": CHECK_NAME},
        )
        return results

    @staticmethod
    def _validate_versions(
        handler: StatusHandler,
        validator: MoabValidator,
        moab: MoabOnStorage,
        record: MoabRecord,
    ) -> None:
        versions_match = moab.current_version() == record.version
        handler.validate_moab_on_storage_and_set_status(
            found_expected_version=versions_match,
            validator=validator,
            caller_validates_checksums=True,
        )
        if not versions_match:
            handler.results.add_result(
                ResultCode.UNEXPECTED_VERSION,
                {"db_obj_name": MOAB_RECORD, "db_obj_version": record.version},
            )
