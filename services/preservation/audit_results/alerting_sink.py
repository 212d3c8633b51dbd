"""Reporting sink that raises operator alerts for integrity failures."""

from __future__ import annotations

from collections.abc import Sequence

from resources.adapters.alerting import AlertingAdapter
from services.preservation.audit_results.codes import ResultCode
from services.preservation.audit_results.reporter import ReportContext
from services.preservation.audit_results.results import AuditResult

ALERTING_CODES = frozenset(
    {
        ResultCode.DB_OBJ_ALREADY_EXISTS,
        ResultCode.MOAB_FILE_CHECKSUM_MISMATCH,
        ResultCode.MOAB_NOT_FOUND,
        ResultCode.ZIP_PART_CHECKSUM_MISMATCH,
        ResultCode.ZIP_PART_NOT_FOUND,
        ResultCode.ZIP_PARTS_COUNT_DIFFERS_FROM_ACTUAL,
        ResultCode.ZIP_PARTS_NOT_ALL_REPLICATED,
        ResultCode.ZIP_PARTS_SIZE_INCONSISTENCY,
        ResultCode.ZIP_PART_CHECKSUM_FILE_MISMATCH,
        ResultCode.REPLICATION_AUDIT_FAILED,
    }
)


class AlertingSink:
    """Send one alert per handled error; completions are ignored."""

    name = "alerting"
    handled_codes: frozenset[ResultCode] | None = ALERTING_CODES
    merge_codes: frozenset[ResultCode] = frozenset()

    def __init__(self, alerting: AlertingAdapter) -> None:
        self._alerting = alerting

    def report_completed(self, *, context: ReportContext, result: AuditResult) -> None:
        del context, result

    def report_error(self, *, context: ReportContext, result: AuditResult) -> None:
        self._alerting.notify(
            message=context.check_name,
            context={
                "druid": context.druid,
                "storage_area": str(context.storage_area),
                "result": result.message,
            },
        )

    def report_merged_errors(
        self, *, context: ReportContext, results: Sequence[AuditResult]
    ) -> None:
        for result in results:
            self.report_error(context=context, result=result)
