"""Facade tying structural validation and status gating to one result set."""

from __future__ import annotations

from services.preservation.audit_results import AuditResults, ResultCode
from services.preservation.catalog import MoabRecord, MoabRecordStatus
from services.preservation.moab_validation.moab import MoabOnStorage
from services.preservation.moab_validation.structure import StructureValidator


class MoabValidator:
    """Validate one Moab on storage, recording findings in ``results``."""

    def __init__(
        self,
        *,
        moab: MoabOnStorage,
        results: AuditResults,
        allow_content_subdirs: bool = True,
    ) -> None:
        self.moab = moab
        self._results = results
        self._structure = StructureValidator(allow_content_subdirs=allow_content_subdirs)
        self._errors: list[dict[str, str]] | None = None

    @property
    def ran_moab_validation(self) -> bool:
        """Return whether structural validation has run."""
        return self._errors is not None

    def moab_validation_errors(self) -> list[dict[str, str]]:
        """Run structural validation once; add ``INVALID_MOAB`` when it fails."""
        if self._errors is None:
            self._errors = self._structure.validation_errors(self.moab)
            if self._errors:
                messages = [message for error in self._errors for message in error.values()]
                self._results.add_result(ResultCode.INVALID_MOAB, messages)
        return self._errors

    def can_validate_current_comp_moab_status(
        self, *, moab_record: MoabRecord, caller_validates_checksums: bool = False
    ) -> bool:
        """Return whether status may be re-derived; record why when it may not."""
        allowed = (
            caller_validates_checksums
            or moab_record.status != MoabRecordStatus.INVALID_CHECKSUM
        )
        if not allowed:
            self._results.add_result(
                ResultCode.UNABLE_TO_CHECK_STATUS,
                {"current_status": moab_record.status.value},
            )
        return allowed
