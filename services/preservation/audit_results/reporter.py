"""Fan-out of audit results to independent reporting sinks."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from packages.preservation_shared.logging import get_logger
from services.preservation.audit_results.codes import ResultCode
from services.preservation.audit_results.results import AuditResult, AuditResults

_LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class ReportContext:
    """Identity of the check run being reported."""

    druid: str
    version: int | None
    storage_area: str | None
    check_name: str


class ReporterSink(Protocol):
    """One destination for audit results.

    ``handled_codes`` of ``None`` means every code. Codes in ``merge_codes``
    are delivered together through one ``report_merged_errors`` call; other
    handled codes go one result at a time through ``report_error``.
    """

    name: str
    handled_codes: frozenset[ResultCode] | None
    merge_codes: frozenset[ResultCode]

    def report_completed(self, *, context: ReportContext, result: AuditResult) -> None:
        """Report one status change to ok."""

    def report_error(self, *, context: ReportContext, result: AuditResult) -> None:
        """Report one individually handled error."""

    def report_merged_errors(
        self, *, context: ReportContext, results: Sequence[AuditResult]
    ) -> None:
        """Report all merge-code errors in one call."""


class ResultsReporter:
    """Deliver one ``AuditResults`` to every sink, isolating sink failures."""

    def __init__(
        self,
        *,
        sinks: Sequence[ReporterSink],
        logger: logging.Logger | None = None,
    ) -> None:
        self._sinks = tuple(sinks)
        self._logger = logger or _LOGGER

    @property
    def sinks(self) -> tuple[ReporterSink, ...]:
        """Return configured sinks in delivery order."""
        return self._sinks

    def report_results(self, results: AuditResults) -> list[AuditResult]:
        """Report completions then errors; return every result."""
        context = ReportContext(
            druid=results.druid,
            version=results.actual_version,
            storage_area=results.storage_area,
            check_name=results.check_name,
        )
        completed = results.completed_results()
        errors = results.error_results()
        for sink in self._sinks:
            for result in completed:
                self._deliver(sink, "report_completed", context, result=result)
            self._report_errors(sink, context, errors)
        return results.to_list()

    def _report_errors(
        self,
        sink: ReporterSink,
        context: ReportContext,
        errors: Sequence[AuditResult],
    ) -> None:
        """Route handled errors to single or merged delivery for one sink."""
        merged: list[AuditResult] = []
        for result in errors:
            if sink.handled_codes is not None and result.code not in sink.handled_codes:
                continue
            if result.code in sink.merge_codes:
                merged.append(result)
                continue
            self._deliver(sink, "report_error", context, result=result)
        if merged:
            self._deliver(sink, "report_merged_errors", context, results=merged)

    def _deliver(
        self,
        sink: ReporterSink,
        method_name: str,
        context: ReportContext,
        **kwargs: object,
    ) -> None:
        """Invoke one sink method; log and continue on failure."""
        try:
            getattr(sink, method_name)(context=context, **kwargs)
        except Exception as exc:  # noqa: BLE001
            self._logger.error(
                "reporter sink %s.%s failed for %s: %s",
                sink.name,
                method_name,
                context.druid,
                exc,
                extra={"exception_type": type(exc).__name__},
            )
