"""Version reconciliation between Moabs on storage and the catalog.

Each operation compares an incoming (druid, version, size) observed on one
storage root with the catalog inside exactly one transaction, records every
finding in an ``AuditResults`` and reports it through the injected reporter.
Replication and checksum validation are triggered only after commit.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

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
    MoabStorageRoot,
    PreservedObject,
    utc_now,
)
from services.preservation.moab_validation import (
    ChecksumValidator,
    MoabOnStorage,
    MoabValidationSettings,
    MoabValidator,
)
from services.preservation.reconciliation.interfaces import (
    ChecksumValidationTrigger,
    ReplicationTrigger,
)
from services.preservation.reconciliation.status_handler import StatusHandler
from services.preservation.reconciliation.transaction import (
    VersionsDisagreeError,
    with_transaction_and_rescue,
)
from services.preservation.reconciliation.validation import (
    ReconciliationRequest,
    validate_request,
)

_LOGGER = get_logger(__name__)

MOAB_RECORD = "MoabRecord"


@dataclass
class PassOutcome:
    """Side effects a pass schedules for after its transaction commits."""

    committed: bool = False
    replicate_version: int | None = None
    validate_checksums: bool = False


@dataclass(frozen=True)
class _Target:
    request: ReconciliationRequest
    root: MoabStorageRoot
    moab: MoabOnStorage
    validator: MoabValidator


class ReconciliationEngine:
    """Reconcile observed Moab versions with catalog records."""

    def __init__(
        self,
        *,
        store: CatalogStore,
        storage_roots: Iterable[MoabStorageRoot],
        reporter: ResultsReporter,
        settings: MoabValidationSettings | None = None,
        replication_trigger: ReplicationTrigger | None = None,
        checksum_trigger: ChecksumValidationTrigger | None = None,
        clock: Callable[[], datetime] = utc_now,
        logger: logging.Logger | None = None,
    ) -> None:
        self._store = store
        self._roots = {root.name: root for root in storage_roots}
        self._reporter = reporter
        self._settings = settings or MoabValidationSettings()
        self._replication_trigger = replication_trigger
        self._checksum_trigger = checksum_trigger
        self._clock = clock
        self._logger = logger or _LOGGER

    @property
    def storage_roots(self) -> tuple[MoabStorageRoot, ...]:
        """Return the storage roots this engine accepts."""
        return tuple(self._roots.values())

    def storage_root_named(self, name: str) -> MoabStorageRoot | None:
        return self._roots.get(name)

    def create(
        self,
        *,
        druid: Any,
        incoming_version: Any,
        incoming_size: Any,
        storage_root_name: Any,
        checksums_validated: bool = False,
    ) -> AuditResults:
        """Register a new object; ``ok`` only when the caller validated checksums."""
        results = self._new_results(druid, incoming_version, storage_root_name, "create")
        target = self._target(
            results, druid, incoming_version, incoming_size, storage_root_name
        )
        if target is not None:
            self._run(
                results,
                lambda tx, outcome: self._create(
                    tx,
                    outcome,
                    results,
                    target,
                    clean_status=(
                        MoabRecordStatus.OK
                        if checksums_validated
                        else MoabRecordStatus.VALIDITY_UNKNOWN
                    ),
                    checksums_validated=checksums_validated,
                ),
            )
        return self._report(results)

    def create_after_validation(
        self,
        *,
        druid: Any,
        incoming_version: Any,
        incoming_size: Any,
        storage_root_name: Any,
        checksums_validated: bool = False,
    ) -> AuditResults:
        """Register a new object after structural and checksum validation.

        Checksums are re-computed here unless the caller already did so. The
        record starts ``ok`` only when they match, else ``invalid_checksum``.
        """
        results = self._new_results(
            druid, incoming_version, storage_root_name, "create_after_validation"
        )
        target = self._target(
            results, druid, incoming_version, incoming_size, storage_root_name
        )
        if target is None:
            return self._report(results)
        if not checksums_validated and target.moab.exists():
            checksums_validated = self._validate_checksums(target, results)
        self._run(
            results,
            lambda tx, outcome: self._create(
                tx,
                outcome,
                results,
                target,
                clean_status=(
                    MoabRecordStatus.OK
                    if checksums_validated
                    else MoabRecordStatus.INVALID_CHECKSUM
                ),
                checksums_validated=checksums_validated,
            ),
        )
        return self._report(results)

    def update_version(
        self,
        *,
        druid: Any,
        incoming_version: Any,
        incoming_size: Any,
        storage_root_name: Any,
        checksums_validated: bool = False,
    ) -> AuditResults:
        """Advance the catalog to a newer version reported by a caller."""
        results = self._new_results(druid, incoming_version, storage_root_name, "update")
        self._update_version(
            results,
            druid,
            incoming_version,
            incoming_size,
            storage_root_name,
            checksums_validated=checksums_validated,
        )
        return self._report(results)

    def update_version_after_validation(
        self,
        *,
        druid: Any,
        incoming_version: Any,
        incoming_size: Any,
        storage_root_name: Any,
        checksums_validated: bool = False,
    ) -> AuditResults:
        """Advance the catalog only when the Moab on storage is structurally valid."""
        results = self._new_results(
            druid, incoming_version, storage_root_name, "update_version_after_validation"
        )
        target = self._target(
            results, druid, incoming_version, incoming_size, storage_root_name
        )
        if target is None:
            return self._report(results)
        if not target.validator.moab_validation_errors():
            self._update_version(
                results,
                druid,
                incoming_version,
                incoming_size,
                storage_root_name,
                checksums_validated=checksums_validated,
                target=target,
            )
            return self._report(results)

        def mark_invalid(tx: CatalogTransaction, outcome: PassOutcome) -> None:
            loaded = self._load(tx, results, target)
            if loaded is None:
                return
            _, record = loaded
            handler = StatusHandler(results=results, record=record, clock=self._clock)
            handler.update_moab_record_status(MoabRecordStatus.INVALID_MOAB)
            handler.update_audit_timestamps(moab_validated=True, version_audited=False)
            self._save(tx, handler)

        self._run(results, mark_invalid)
        return self._report(results)

    def check_existence(
        self,
        *,
        druid: Any,
        incoming_version: Any,
        incoming_size: Any,
        storage_root_name: Any,
    ) -> AuditResults:
        """Reconcile a Moab found on disk with its catalog records.

        Missing records are created; existing ones are compared version by
        version and their audit timestamps refreshed.
        """
        results = self._new_results(
            druid, incoming_version, storage_root_name, "check_existence"
        )
        target = self._target(
            results, druid, incoming_version, incoming_size, storage_root_name
        )
        if target is not None:
            self._run(
                results, lambda tx, outcome: self._check_existence(tx, outcome, results, target)
            )
        return self._report(results)

    def _check_existence(
        self,
        tx: CatalogTransaction,
        outcome: PassOutcome,
        results: AuditResults,
        target: _Target,
    ) -> None:
        preserved_object = tx.get_preserved_object(druid=target.request.druid)
        record = (
            tx.get_moab_record(preserved_object_id=preserved_object.id)
            if preserved_object is not None
            else None
        )
        if preserved_object is None or record is None:
            results.add_result(ResultCode.DB_OBJ_DOES_NOT_EXIST, MOAB_RECORD)
            status = (
                MoabRecordStatus.INVALID_MOAB
                if target.validator.moab_validation_errors()
                else MoabRecordStatus.VALIDITY_UNKNOWN
            )
            self._create_db_objects(
                tx, outcome, results, target, status=status, checksums_validated=False
            )
            return

        self._raise_if_versions_disagree(results, preserved_object, record)
        validator = target.validator
        if not validator.can_validate_current_comp_moab_status(moab_record=record):
            return

        handler = StatusHandler(results=results, record=record, clock=self._clock)
        incoming = target.request.incoming_version
        if incoming == record.version:
            if record.status != MoabRecordStatus.OK:
                handler.validate_moab_on_storage_and_set_status(
                    found_expected_version=True, validator=validator
                )
            results.add_result(ResultCode.VERSION_MATCHES, MOAB_RECORD)
        elif incoming > record.version:
            if record.status != MoabRecordStatus.OK:
                handler.validate_moab_on_storage_and_set_status(
                    found_expected_version=True, validator=validator
                )
            results.add_result(
                ResultCode.ACTUAL_VERS_GT_DB_OBJ,
                {"db_obj_name": MOAB_RECORD, "db_obj_version": record.version},
            )
            if validator.moab_validation_errors():
                handler.update_moab_record_status(MoabRecordStatus.INVALID_MOAB)
            else:
                handler.update_version_and_size(
                    moab_validated=validator.ran_moab_validation,
                    version=incoming,
                    size=target.request.incoming_size,
                )
                self._advance_preserved_object(tx, preserved_object, incoming)
                outcome.replicate_version = incoming
        else:
            handler.validate_moab_on_storage_and_set_status(
                found_expected_version=False, validator=validator
            )
            results.add_result(
                ResultCode.ACTUAL_VERS_LT_DB_OBJ,
                {"db_obj_name": MOAB_RECORD, "db_obj_version": record.version},
            )
        handler.update_audit_timestamps(
            moab_validated=validator.ran_moab_validation, version_audited=True
        )
        self._save(tx, handler, outcome)

    def _update_version(
        self,
        results: AuditResults,
        druid: Any,
        incoming_version: Any,
        incoming_size: Any,
        storage_root_name: Any,
        *,
        checksums_validated: bool,
        target: _Target | None = None,
    ) -> None:
        target = target or self._target(
            results, druid, incoming_version, incoming_size, storage_root_name
        )
        if target is None:
            return
        new_status = None if checksums_validated else MoabRecordStatus.VALIDITY_UNKNOWN

        def work(tx: CatalogTransaction, outcome: PassOutcome) -> None:
            loaded = self._load(tx, results, target)
            if loaded is None:
                return
            preserved_object, record = loaded
            self._raise_if_versions_disagree(results, preserved_object, record)
            handler = StatusHandler(results=results, record=record, clock=self._clock)
            incoming = target.request.incoming_version
            if incoming > record.version:
                results.add_result(
                    ResultCode.ACTUAL_VERS_GT_DB_OBJ,
                    {"db_obj_name": MOAB_RECORD, "db_obj_version": record.version},
                )
                handler.update_version_and_size(
                    moab_validated=target.validator.ran_moab_validation,
                    version=incoming,
                    size=target.request.incoming_size,
                )
                if checksums_validated and record.last_checksum_validation is not None:
                    handler.update(last_checksum_validation=self._clock())
                if new_status is not None:
                    handler.update_moab_record_status(new_status)
                self._save(tx, handler, outcome)
                self._advance_preserved_object(tx, preserved_object, incoming)
                outcome.replicate_version = incoming
                return

            results.add_result(
                ResultCode.UNEXPECTED_VERSION,
                {"db_obj_name": MOAB_RECORD, "db_obj_version": record.version},
            )
            _add_version_comparison(results, incoming, record)
            handler.update_moab_record_status(
                MoabRecordStatus.UNEXPECTED_VERSION_ON_STORAGE
            )
            handler.update_audit_timestamps(
                moab_validated=target.validator.ran_moab_validation,
                version_audited=True,
            )
            self._save(tx, handler, outcome)

        self._run(results, work)

    def _create(
        self,
        tx: CatalogTransaction,
        outcome: PassOutcome,
        results: AuditResults,
        target: _Target,
        *,
        clean_status: MoabRecordStatus,
        checksums_validated: bool,
    ) -> None:
        preserved_object = tx.get_preserved_object(druid=target.request.druid)
        if (
            preserved_object is not None
            and tx.get_moab_record(preserved_object_id=preserved_object.id) is not None
        ):
            results.add_result(ResultCode.DB_OBJ_ALREADY_EXISTS, MOAB_RECORD)
            return
        status = (
            MoabRecordStatus.INVALID_MOAB
            if target.validator.moab_validation_errors()
            else clean_status
        )
        self._create_db_objects(
            tx,
            outcome,
            results,
            target,
            status=status,
            checksums_validated=checksums_validated,
        )

    def _create_db_objects(
        self,
        tx: CatalogTransaction,
        outcome: PassOutcome,
        results: AuditResults,
        target: _Target,
        *,
        status: MoabRecordStatus,
        checksums_validated: bool,
    ) -> MoabRecord:
        now = self._clock()
        request = target.request
        preserved_object = tx.get_preserved_object(druid=request.druid)
        if preserved_object is None:
            preserved_object = tx.create_preserved_object(
                druid=request.druid, current_version=request.incoming_version, now=now
            )
        validated_at = now if target.validator.ran_moab_validation else None
        record = tx.create_moab_record(
            preserved_object_id=preserved_object.id,
            moab_storage_root_id=target.root.id,
            version=request.incoming_version,
            size=request.incoming_size,
            status=status,
            now=now,
            last_version_audit=validated_at,
            last_moab_validation=validated_at,
            last_checksum_validation=now if checksums_validated else None,
        )
        results.add_result(ResultCode.CREATED_NEW_OBJECT)
        outcome.validate_checksums = status == MoabRecordStatus.VALIDITY_UNKNOWN
        return record

    def _validate_checksums(self, target: _Target, results: AuditResults) -> bool:
        """Run fixity checks outside any transaction; return whether all matched."""
        before = len(results)
        ChecksumValidator(
            moab=target.moab,
            results=results,
            chunk_bytes=self._settings.hash_chunk_bytes,
        ).validate()
        if len(results) == before:
            results.add_result(ResultCode.MOAB_CHECKSUM_VALID)
            return True
        return False

    def _target(
        self,
        results: AuditResults,
        druid: Any,
        incoming_version: Any,
        incoming_size: Any,
        storage_root_name: Any,
    ) -> _Target | None:
        request, violations = validate_request(
            druid=druid,
            incoming_version=incoming_version,
            incoming_size=incoming_size,
            storage_root_name=storage_root_name,
        )
        root = self._roots.get(storage_root_name) if isinstance(storage_root_name, str) else None
        if root is None and isinstance(storage_root_name, str) and storage_root_name:
            violations.append(
                f"storage_root_name {storage_root_name!r} is not a configured storage root"
            )
        if request is None or root is None or violations:
            results.add_result(ResultCode.INVALID_ARGUMENTS, violations)
            return None
        moab = MoabOnStorage(druid=request.druid, storage_location=root.storage_location)
        validator = MoabValidator(
            moab=moab,
            results=results,
            allow_content_subdirs=self._settings.allow_content_subdirs,
        )
        return _Target(request=request, root=root, moab=moab, validator=validator)

    def _load(
        self, tx: CatalogTransaction, results: AuditResults, target: _Target
    ) -> tuple[PreservedObject, MoabRecord] | None:
        preserved_object = tx.get_preserved_object(druid=target.request.druid)
        record = (
            tx.get_moab_record(preserved_object_id=preserved_object.id)
            if preserved_object is not None
            else None
        )
        if preserved_object is None or record is None:
            results.add_result(ResultCode.DB_OBJ_DOES_NOT_EXIST, MOAB_RECORD)
            return None
        return preserved_object, record

    def _advance_preserved_object(
        self, tx: CatalogTransaction, preserved_object: PreservedObject, version: int
    ) -> None:
        if version <= preserved_object.current_version:
            return
        tx.update_preserved_object(
            preserved_object.model_copy(
                update={"current_version": version, "updated_at": self._clock()}
            )
        )

    def _save(
        self,
        tx: CatalogTransaction,
        handler: StatusHandler,
        outcome: PassOutcome | None = None,
    ) -> None:
        tx.update_moab_record(handler.persist_changes())
        if (
            outcome is not None
            and handler.status_changed
            and handler.record.status == MoabRecordStatus.VALIDITY_UNKNOWN
        ):
            outcome.validate_checksums = True

    @staticmethod
    def _raise_if_versions_disagree(
        results: AuditResults, preserved_object: PreservedObject, record: MoabRecord
    ) -> None:
        if record.version == preserved_object.current_version:
            return
        results.add_result(
            ResultCode.DB_VERSIONS_DISAGREE,
            {
                "moab_record_version": record.version,
                "po_version": preserved_object.current_version,
            },
        )
        raise VersionsDisagreeError(
            f"MoabRecord version {record.version} != "
            f"PreservedObject current_version {preserved_object.current_version}"
        )

    def _run(
        self,
        results: AuditResults,
        work: Callable[[CatalogTransaction, PassOutcome], None],
    ) -> PassOutcome:
        """Run ``work`` in one transaction and fire post-commit triggers."""
        outcome = PassOutcome()
        outcome.committed = with_transaction_and_rescue(
            self._store,
            results,
            lambda tx: work(tx, outcome),
            logger=self._logger,
        )
        if not outcome.committed:
            return PassOutcome()
        self._after_commit(results.druid, outcome)
        return outcome

    def _after_commit(self, druid: str, outcome: PassOutcome) -> None:
        replication_trigger = self._replication_trigger
        version = outcome.replicate_version
        if version is not None and replication_trigger is not None:
            self._fire(
                "replication",
                druid,
                lambda: replication_trigger(druid=druid, version=version),
            )
        checksum_trigger = self._checksum_trigger
        if outcome.validate_checksums and checksum_trigger is not None:
            self._fire("checksum validation", druid, lambda: checksum_trigger(druid=druid))

    def _fire(self, name: str, druid: str, trigger: Callable[[], None]) -> None:
        try:
            trigger()
        except Exception as exc:  # noqa: BLE001
            self._logger.error(
                "failed to trigger %s",
                name,
                extra={"druid": druid, "exception_type": type(exc).__name__},
            )

    def _new_results(
        self, druid: Any, incoming_version: Any, storage_root_name: Any, check_name: str
    ) -> AuditResults:
        return AuditResults(
            druid=str(druid),
            check_name=check_name,
            storage_area=str(storage_root_name) if storage_root_name else None,
            actual_version=incoming_version if isinstance(incoming_version, int) else None,
        )

    def _report(self, results: AuditResults) -> AuditResults:
        self._reporter.report_results(results)
        return results


def _add_version_comparison(
    results: AuditResults, incoming: int, record: MoabRecord
) -> None:
    if incoming == record.version:
        results.add_result(ResultCode.VERSION_MATCHES, MOAB_RECORD)
    elif incoming < record.version:
        results.add_result(
            ResultCode.ACTUAL_VERS_LT_DB_OBJ,
            {"db_obj_name": MOAB_RECORD, "db_obj_version": record.version},
        )
    else:
        results.add_result(
            ResultCode.ACTUAL_VERS_GT_DB_OBJ,
            {"db_obj_name": MOAB_RECORD, "db_obj_version": record.version},
        )
