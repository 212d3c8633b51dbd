"""Ephemeral, ordered collector of audit findings for one check run."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from services.preservation.audit_results.codes import (
    DB_UPDATED_CODES,
    MESSAGE_TEMPLATES,
    ResultCode,
)


@dataclass(frozen=True)
class AuditResult:
    """One (code, rendered message) entry."""

    code: ResultCode
    message: str

    def as_dict(self) -> dict[str, str]:
        """Return ``{code: message}`` as used in JSON payloads."""
        return {self.code.value: self.message}


class AuditResults:
    """Accumulate findings keyed by druid, version, storage area and check name.

    Results are ordered by insertion. Status changes ending ``to ok`` are
    treated as completions; every other entry is an error for reporting.
    """

    def __init__(
        self,
        *,
        druid: str,
        check_name: str,
        storage_area: str | None = None,
        actual_version: int | None = None,
    ) -> None:
        self.druid = druid
        self.check_name = check_name
        self.storage_area = storage_area
        self.actual_version = actual_version
        self._results: list[AuditResult] = []

    def add_result(self, code: ResultCode, msg_args: object = None) -> AuditResult:
        """Render and append one result; mapping args fill template fields."""
        result = AuditResult(code=code, message=self._render(code, msg_args))
        self._results.append(result)
        return result

    def remove_db_updated_results(self) -> None:
        """Drop results describing writes that were rolled back."""
        self._results = [r for r in self._results if r.code not in DB_UPDATED_CODES]

    def to_list(self) -> list[AuditResult]:
        """Return a copy of all results in insertion order."""
        return list(self._results)

    def completed_results(self) -> list[AuditResult]:
        """Return status changes that ended in ``ok``."""
        return [r for r in self._results if _status_changed_to_ok(r)]

    def error_results(self) -> list[AuditResult]:
        """Return every result that is not a completion."""
        return [r for r in self._results if not _status_changed_to_ok(r)]

    def contains_result_code(self, code: ResultCode) -> bool:
        """Return whether any result carries ``code``."""
        return any(r.code == code for r in self._results)

    def is_empty(self) -> bool:
        """Return whether no results were recorded."""
        return not self._results

    def __len__(self) -> int:
        return len(self._results)

    def location_version_string(self) -> str:
        """Return ``actual location: X; actual version: V`` with blanks omitted."""
        location = (
            f"actual location: {self.storage_area}" if self.storage_area else ""
        )
        version = (
            f"actual version: {self.actual_version}"
            if self.actual_version is not None
            else ""
        )
        return f"{location}; {version}"

    def string_prefix(self) -> str:
        """Return ``check_name (location; version)``."""
        return f"{self.check_name} ({self.location_version_string()})"

    def to_s(self) -> str:
        """Render every message on one grep-able line."""
        messages = " && ".join(r.message for r in self._results)
        return f"{self.string_prefix()} {messages}"

    def __str__(self) -> str:
        return self.to_s()

    def to_json(self) -> str:
        """Serialize ``{druid, results}`` for callers and logs."""
        return json.dumps(
            {"druid": self.druid, "results": [r.as_dict() for r in self._results]}
        )

    def result_summary_msg(self) -> str:
        """Return a pass/fail one-liner for operators."""
        if self.error_results():
            headline = "⚠️ fixity check failed, investigate errors"
        else:
            headline = "✅ fixity check passed"
        return (
            f"{headline} - {self.check_name} - {self.druid} - "
            f"{self.location_version_string()}"
        )

    def _render(self, code: ResultCode, msg_args: object) -> str:
        """Interpolate one template with ``actual_version`` plus caller args."""
        arguments: dict[str, Any] = {"actual_version": self.actual_version}
        if isinstance(msg_args, Mapping):
            arguments.update(msg_args)
        else:
            arguments["addl"] = "" if msg_args is None else msg_args
        return MESSAGE_TEMPLATES[code].format_map(arguments)


def _status_changed_to_ok(result: AuditResult) -> bool:
    """Return whether ``result`` is a status change ending in ``to ok``."""
    return (
        result.code == ResultCode.MOAB_RECORD_STATUS_CHANGED
        and result.message.endswith("to ok")
    )
