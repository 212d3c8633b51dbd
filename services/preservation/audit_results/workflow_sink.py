"""Reporting sink that mirrors local Moab audit state into workflow steps."""

from __future__ import annotations

from collections.abc import Callable, Sequence

from resources.adapters.workflow_service import (
    WorkflowNotFoundError,
    WorkflowServiceAdapter,
)
from services.preservation.audit_results import messages
from services.preservation.audit_results.codes import ResultCode
from services.preservation.audit_results.event_sink import (
    AUDIT_PROCESS,
    CATALOG_MERGE_CODES,
    MOAB_VALID_PROCESS,
)
from services.preservation.audit_results.reporter import ReportContext
from services.preservation.audit_results.results import AuditResult

AUDIT_WORKFLOW = "preservationAuditWF"


class WorkflowSink:
    """Update ``preservationAuditWF`` steps; replication codes are excluded.

    An errored audit workflow blocks further versioning of the object, so only
    findings about the local Moab are routed here.
    """

    name = "workflow_service"
    merge_codes: frozenset[ResultCode] = CATALOG_MERGE_CODES
    handled_codes: frozenset[ResultCode] | None = (
        frozenset({ResultCode.INVALID_MOAB}) | CATALOG_MERGE_CODES
    )

    def __init__(self, workflow_service: WorkflowServiceAdapter) -> None:
        self._workflows = workflow_service

    def report_completed(self, *, context: ReportContext, result: AuditResult) -> None:
        del result
        for process in (MOAB_VALID_PROCESS, AUDIT_PROCESS):
            self._with_workflow(
                context,
                lambda process=process: self._workflows.update_status(
                    druid=context.druid,
                    version=context.version or 1,
                    workflow=AUDIT_WORKFLOW,
                    process=process,
                    status="completed",
                ),
            )

    def report_error(self, *, context: ReportContext, result: AuditResult) -> None:
        error = messages.invalid_moab_message(
            context.check_name, context.version, context.storage_area, result
        )
        self._update_error(context, MOAB_VALID_PROCESS, error)

    def report_merged_errors(
        self, *, context: ReportContext, results: Sequence[AuditResult]
    ) -> None:
        error = messages.results_as_message(
            context.check_name, context.version, context.storage_area, results
        )
        self._update_error(context, AUDIT_PROCESS, error)

    def _update_error(self, context: ReportContext, process: str, error: str) -> None:
        """Mark one process errored, creating the workflow when missing."""
        self._with_workflow(
            context,
            lambda: self._workflows.update_error_status(
                druid=context.druid,
                version=context.version or 1,
                workflow=AUDIT_WORKFLOW,
                process=process,
                error_msg=error,
            ),
        )

    def _with_workflow(self, context: ReportContext, update: Callable[[], None]) -> None:
        """Run ``update``; on a missing workflow create it and retry exactly once."""
        try:
            update()
        except WorkflowNotFoundError:
            self._workflows.create_workflow(
                druid=context.druid,
                workflow=AUDIT_WORKFLOW,
                version=context.version or 1,
            )
            update()
