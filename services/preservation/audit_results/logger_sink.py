"""Reporting sink that writes every result to the application log."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from packages.preservation_shared.logging import get_logger
from services.preservation.audit_results.codes import ResultCode
from services.preservation.audit_results.reporter import ReportContext
from services.preservation.audit_results.results import AuditResult

_LOGGER = get_logger(__name__)

_WARNING_CODES = frozenset(
    {
        ResultCode.DB_OBJ_DOES_NOT_EXIST,
        ResultCode.ZIP_PARTS_NOT_CREATED,
        ResultCode.ZIP_PARTS_NOT_ALL_REPLICATED,
    }
)
_INFO_CODES = frozenset(
    {
        ResultCode.VERSION_MATCHES,
        ResultCode.ACTUAL_VERS_GT_DB_OBJ,
        ResultCode.CREATED_NEW_OBJECT,
        ResultCode.MOAB_RECORD_STATUS_CHANGED,
        ResultCode.MOAB_CHECKSUM_VALID,
    }
)


def severity_for(code: ResultCode) -> int:
    """Return the log level used for one result code."""
    if code in _WARNING_CODES:
        return logging.WARNING
    if code in _INFO_CODES:
        return logging.INFO
    return logging.ERROR


class LoggerSink:
    """Log each result on one line at a per-code severity."""

    name = "logger"
    handled_codes: frozenset[ResultCode] | None = None
    merge_codes: frozenset[ResultCode] = frozenset()

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or _LOGGER

    def report_completed(self, *, context: ReportContext, result: AuditResult) -> None:
        self._log(context, result)

    def report_error(self, *, context: ReportContext, result: AuditResult) -> None:
        self._log(context, result)

    def report_merged_errors(
        self, *, context: ReportContext, results: Sequence[AuditResult]
    ) -> None:
        for result in results:
            self._log(context, result)

    def _log(self, context: ReportContext, result: AuditResult) -> None:
        """Emit ``check_name(druid, storage_area) message``."""
        self._logger.log(
            severity_for(result.code),
            "%s(%s, %s) %s",
            context.check_name,
            context.druid,
            context.storage_area,
            result.message,
            extra={"result_code": result.code.value},
        )
