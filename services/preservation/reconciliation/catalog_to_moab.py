"""Catalog-driven version audit of one cataloged Moab against storage."""

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
    MoabRecordStatus,
    utc_now,
)
from services.preservation.moab_validation import (
    MoabOnStorage,
    MoabValidationSettings,
    MoabValidator,
)
from services.preservation.reconciliation.cataloged import load_cataloged_moab
from services.preservation.reconciliation.engine import (
    MOAB_RECORD,
    ReconciliationEngine,
)
from services.preservation.reconciliation.interfaces import ChecksumValidationTrigger
from services.preservation.reconciliation.status_handler import StatusHandler
from services.preservation.reconciliation.transaction import (
    with_transaction_and_rescue,
)

_LOGGER = get_logger(__name__)

CHECK_NAME = "check_catalog_version"


class CatalogToMoab:
    """Compare a MoabRecord's version with the Moab on its storage root.

    A newer Moab on storage is handed to the engine's update pass after this
    pass commits.
    """

    def __init__(
        self,
        *,
        store: CatalogStore,
        reporter: ResultsReporter,
        engine: ReconciliationEngine,
        settings: MoabValidationSettings | None = None,
        checksum_trigger: ChecksumValidationTrigger | None = None,
        clock: Callable[[], datetime] = utc_now,
        logger: logging.Logger | None = None,
    ) -> None:
        self._store = store
        self._reporter = reporter
        self._engine = engine
        self._settings = settings or MoabValidationSettings()
        self._checksum_trigger = checksum_trigger
        self._clock = clock
        self._logger = logger or _LOGGER

    def check_catalog_version(self, *, druid: str) -> AuditResults | None:
        """Audit ``druid``; ``None`` when it has no MoabRecord."""
        with self._store.transaction() as tx:
            cataloged = load_cataloged_moab(tx, druid=druid)
        if cataloged is None:
            self._logger.warning(
                "no cataloged moab found for catalog audit", extra={"druid": druid}
            )
            return None

        root = cataloged.storage_root
        moab = MoabOnStorage(druid=druid, storage_location=root.storage_location)
        moab_version = moab.current_version()
        results = AuditResults(
            druid=druid,
            check_name=CHECK_NAME,
            storage_area=root.name,
            actual_version=moab_version,
        )
        validator = MoabValidator(
            moab=moab,
            results=results,
            allow_content_subdirs=self._settings.allow_content_subdirs,
        )
        newer_on_storage: list[int] = []
        became_unknown: list[bool] = []

        def audit(tx: CatalogTransaction) -> None:
            current = load_cataloged_moab(tx, druid=druid)
            if current is None:
                results.add_result(ResultCode.DB_OBJ_DOES_NOT_EXIST, MOAB_RECORD)
                return
            record = current.record
            if record.version != current.preserved_object.current_version:
                results.add_result(
                    ResultCode.DB_VERSIONS_DISAGREE,
                    {
                        "moab_record_version": record.version,
                        "po_version": current.preserved_object.current_version,
                    },
                )
                return

            handler = StatusHandler(results=results, record=record, clock=self._clock)
            if moab_version is None:
                handler.mark_moab_not_found()
                tx.update_moab_record(handler.persist_changes())
                return
            if not validator.can_validate_current_comp_moab_status(moab_record=record):
                return

            if record.version == moab_version:
                if record.status != MoabRecordStatus.OK:
                    handler.validate_moab_on_storage_and_set_status(
                        found_expected_version=True, validator=validator
                    )
                results.add_result(ResultCode.VERSION_MATCHES, MOAB_RECORD)
            elif record.version < moab_version:
                handler.validate_moab_on_storage_and_set_status(
                    found_expected_version=True, validator=validator
                )
                newer_on_storage.append(moab_version)
            else:
                handler.validate_moab_on_storage_and_set_status(
                    found_expected_version=False, validator=validator
                )
                results.add_result(
                    ResultCode.UNEXPECTED_VERSION,
                    {"db_obj_name": MOAB_RECORD, "db_obj_version": record.version},
                )
            handler.update_audit_timestamps(
                moab_validated=validator.ran_moab_validation, version_audited=True
            )
            tx.update_moab_record(handler.persist_changes())
            became_unknown.append(
                handler.status_changed
                and handler.record.status == MoabRecordStatus.VALIDITY_UNKNOWN
            )

        committed = with_transaction_and_rescue(
            self._store, results, audit, logger=self._logger
        )
        self._reporter.report_results(results)
        if committed and newer_on_storage:
            self._engine.update_version_after_validation(
                druid=druid,
                incoming_version=newer_on_storage[0],
                incoming_size=moab.size(),
                storage_root_name=root.name,
            )
        elif committed and any(became_unknown) and self._checksum_trigger is not None:
            self._checksum_trigger(druid=druid)
        return results
