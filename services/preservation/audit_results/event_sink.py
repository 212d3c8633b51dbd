"""Reporting sink that records audit outcomes as object events."""

from __future__ import annotations

import socket
from collections.abc import Sequence
from typing import Any

from resources.adapters.event_service import EventServiceAdapter
from services.preservation.audit_results import messages
from services.preservation.audit_results.codes import ResultCode
from services.preservation.audit_results.reporter import ReportContext
from services.preservation.audit_results.results import AuditResult

INVOKED_BY = "preservation-catalog"
SUCCESS_EVENT = "preservation_audit_success"
FAILURE_EVENT = "preservation_audit_failure"
MOAB_VALID_PROCESS = "moab-valid"
AUDIT_PROCESS = "preservation-audit"

# Codes about the local Moab and the catalog; merged into one audit failure.
CATALOG_MERGE_CODES = frozenset(
    {
        ResultCode.ACTUAL_VERS_LT_DB_OBJ,
        ResultCode.DB_UPDATE_FAILED,
        ResultCode.DB_VERSIONS_DISAGREE,
        ResultCode.FILE_NOT_IN_MANIFEST,
        ResultCode.FILE_NOT_IN_MOAB,
        ResultCode.FILE_NOT_IN_SIGNATURE_CATALOG,
        ResultCode.INVALID_MANIFEST,
        ResultCode.MANIFEST_NOT_IN_MOAB,
        ResultCode.MOAB_FILE_CHECKSUM_MISMATCH,
        ResultCode.MOAB_NOT_FOUND,
        ResultCode.SIGNATURE_CATALOG_NOT_IN_MOAB,
        ResultCode.UNABLE_TO_CHECK_STATUS,
        ResultCode.UNEXPECTED_VERSION,
    }
)
REPLICATION_MERGE_CODES = frozenset(
    {
        ResultCode.ZIP_PART_CHECKSUM_MISMATCH,
        ResultCode.ZIP_PART_NOT_FOUND,
        ResultCode.ZIP_PARTS_COUNT_DIFFERS_FROM_ACTUAL,
        ResultCode.ZIP_PARTS_NOT_ALL_REPLICATED,
        ResultCode.ZIP_PARTS_SIZE_INCONSISTENCY,
    }
)
EVENT_MERGE_CODES = (
    CATALOG_MERGE_CODES
    | REPLICATION_MERGE_CODES
    | frozenset({ResultCode.DB_OBJ_ALREADY_EXISTS})
)


class EventSink:
    """Create success and failure events through the event service."""

    name = "event_service"
    merge_codes: frozenset[ResultCode] = EVENT_MERGE_CODES
    handled_codes: frozenset[ResultCode] | None = (
        frozenset({ResultCode.INVALID_MOAB}) | EVENT_MERGE_CODES
    )

    def __init__(
        self, event_service: EventServiceAdapter, *, hostname: str | None = None
    ) -> None:
        self._events = event_service
        self._hostname = hostname or socket.gethostname()

    def report_completed(self, *, context: ReportContext, result: AuditResult) -> None:
        del result
        for process in (MOAB_VALID_PROCESS, AUDIT_PROCESS):
            self._events.create_event(
                druid=context.druid,
                event_type=SUCCESS_EVENT,
                data=self._data(context, process),
            )

    def report_error(self, *, context: ReportContext, result: AuditResult) -> None:
        error = messages.invalid_moab_message(
            context.check_name, context.version, context.storage_area, result
        )
        self._events.create_event(
            druid=context.druid,
            event_type=FAILURE_EVENT,
            data={**self._data(context, MOAB_VALID_PROCESS), "error": error},
        )

    def report_merged_errors(
        self, *, context: ReportContext, results: Sequence[AuditResult]
    ) -> None:
        error = messages.results_as_message(
            context.check_name, context.version, context.storage_area, results
        )
        self._events.create_event(
            druid=context.druid,
            event_type=FAILURE_EVENT,
            data={**self._data(context, AUDIT_PROCESS), "error": error},
        )

    def _data(self, context: ReportContext, process: str) -> dict[str, Any]:
        """Return the common event payload."""
        return {
            "host": self._hostname,
            "invoked_by": INVOKED_BY,
            "storage_area": context.storage_area,
            "actual_version": context.version,
            "check_name": process,
        }
