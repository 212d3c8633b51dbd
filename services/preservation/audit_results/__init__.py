"""Audit result collection and reporter fan-out."""

from services.preservation.audit_results.alerting_sink import AlertingSink
from services.preservation.audit_results.codes import (
    DB_UPDATED_CODES,
    MESSAGE_TEMPLATES,
    ResultCode,
)
from services.preservation.audit_results.event_sink import EventSink
from services.preservation.audit_results.logger_sink import LoggerSink
from services.preservation.audit_results.reporter import (
    ReportContext,
    ReporterSink,
    ResultsReporter,
)
from services.preservation.audit_results.results import AuditResult, AuditResults
from services.preservation.audit_results.workflow_sink import WorkflowSink

__all__ = [
    "DB_UPDATED_CODES",
    "MESSAGE_TEMPLATES",
    "AlertingSink",
    "AuditResult",
    "AuditResults",
    "EventSink",
    "LoggerSink",
    "ReportContext",
    "ReporterSink",
    "ResultCode",
    "ResultsReporter",
    "WorkflowSink",
]
