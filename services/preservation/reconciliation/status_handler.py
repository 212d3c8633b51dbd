"""Status transitions of one MoabRecord, recorded as audit results."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import Any

from services.preservation.audit_results import AuditResults, ResultCode
from services.preservation.catalog import MoabRecord, MoabRecordStatus, utc_now
from services.preservation.moab_validation import MoabValidator


class StatusHandler:
    """Derive and apply MoabRecord status changes for one check run.

    Records are immutable; ``record`` always holds the latest working copy and
    the caller persists it inside its transaction.
    """

    def __init__(
        self,
        *,
        results: AuditResults,
        record: MoabRecord,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.results = results
        self.record = record
        self._initial_status = record.status
        self._clock = clock

    @property
    def status_changed(self) -> bool:
        """Return whether the working copy's status differs from the loaded one."""
        return self.record.status != self._initial_status

    def update(self, **changes: Any) -> MoabRecord:
        """Apply field changes to the working copy and return it."""
        self.record = self.record.model_copy(update=changes)
        return self.record

    def update_moab_record_status(self, new_status: MoabRecordStatus) -> None:
        """Set ``new_status``, noting a change, and refresh ``status_details``."""
        old_status = self.record.status
        if new_status != old_status:
            self.results.add_result(
                ResultCode.MOAB_RECORD_STATUS_CHANGED,
                {"old_status": old_status.value, "new_status": new_status.value},
            )
        self.update(status=new_status, status_details=self.results.to_s())

    def mark_moab_not_found(self) -> None:
        self.results.add_result(
            ResultCode.MOAB_NOT_FOUND,
            {
                "db_created_at": self.record.created_at.isoformat(),
                "db_updated_at": self.record.updated_at.isoformat(),
            },
        )
        self.update_moab_record_status(MoabRecordStatus.MOAB_ON_STORAGE_NOT_FOUND)

    def validate_moab_on_storage_and_set_status(
        self,
        *,
        found_expected_version: bool,
        validator: MoabValidator,
        caller_validates_checksums: bool = False,
    ) -> None:
        """Re-derive status from structure, version and checksum findings.

        ``ok`` is reachable only when this run recorded ``MOAB_CHECKSUM_VALID``.
        Checksum validation itself never happens here.
        """
        if not validator.moab.object_dir.is_dir():
            self.mark_moab_not_found()
            return
        if validator.moab_validation_errors():
            self.update_moab_record_status(MoabRecordStatus.INVALID_MOAB)
            return
        if not found_expected_version:
            self.update_moab_record_status(MoabRecordStatus.UNEXPECTED_VERSION_ON_STORAGE)
            return
        if self.results.contains_result_code(ResultCode.MOAB_CHECKSUM_VALID):
            self.update_moab_record_status(MoabRecordStatus.OK)
        elif caller_validates_checksums:
            self.update_moab_record_status(MoabRecordStatus.INVALID_CHECKSUM)
        else:
            self.update_moab_record_status(MoabRecordStatus.VALIDITY_UNKNOWN)

    def update_audit_timestamps(
        self, *, moab_validated: bool, version_audited: bool
    ) -> None:
        now = self._clock()
        changes: dict[str, datetime] = {}
        if moab_validated:
            changes["last_moab_validation"] = now
        if version_audited:
            changes["last_version_audit"] = now
        if changes:
            self.update(**changes)

    def update_version_and_size(
        self, *, moab_validated: bool, version: int, size: int | None
    ) -> None:
        """Advance version (and size when known), stamping a version audit."""
        changes: dict[str, Any] = {"version": version}
        if size is not None:
            changes["size"] = size
        self.update(**changes)
        self.update_audit_timestamps(moab_validated=moab_validated, version_audited=True)

    def persist_changes(self) -> MoabRecord:
        """Stamp ``updated_at`` on the working copy before it is written."""
        return self.update(updated_at=self._clock())
