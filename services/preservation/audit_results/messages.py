"""Message formatting shared by reporting sinks."""

from __future__ import annotations

from collections.abc import Sequence

from services.preservation.audit_results.results import AuditResult


def string_prefix(check_name: str, version: int | None, storage_area: str | None) -> str:
    """Return ``check_name (actual location: X; actual version: V)``."""
    location = f"actual location: {storage_area}" if storage_area else ""
    actual_version = f"actual version: {version}" if version is not None else ""
    return f"{check_name} ({location}; {actual_version})"


def invalid_moab_message(
    check_name: str, version: int | None, storage_area: str | None, result: AuditResult
) -> str:
    """Format one individually reported error."""
    return f"{string_prefix(check_name, version, storage_area)} || {result.message}"


def results_as_message(
    check_name: str,
    version: int | None,
    storage_area: str | None,
    results: Sequence[AuditResult],
) -> str:
    """Format several errors merged into one line."""
    joined = " && ".join(result.message for result in results)
    return f"{string_prefix(check_name, version, storage_area)} {joined}"
