"""One catalog transaction per audit pass, with failures recorded as results."""

from __future__ import annotations

import logging
from collections.abc import Callable

from packages.preservation_shared.errors import exception_summary
from services.preservation.audit_results import AuditResults, ResultCode
from services.preservation.catalog import CatalogError, CatalogStore, CatalogTransaction


class VersionsDisagreeError(Exception):
    """Raised inside a pass to roll back when catalog records disagree."""


def with_transaction_and_rescue(
    store: CatalogStore,
    results: AuditResults,
    work: Callable[[CatalogTransaction], None],
    *,
    logger: logging.Logger,
) -> bool:
    """Run ``work`` in one transaction; return whether it committed.

    A rolled-back pass drops results describing writes that never landed.
    Any failure other than a version disagreement adds ``DB_UPDATE_FAILED``
    with the exception class and message.
    """
    try:
        with store.transaction() as tx:
            work(tx)
    except VersionsDisagreeError:
        results.remove_db_updated_results()
        return False
    except CatalogError as exc:
        _record_failure(results, exc.summary, type(exc).__name__, logger)
        return False
    except Exception as exc:  # noqa: BLE001
        _record_failure(results, exception_summary(exc), type(exc).__name__, logger)
        return False
    return True


def _record_failure(
    results: AuditResults,
    summary: str,
    exception_type: str,
    logger: logging.Logger,
) -> None:
    results.add_result(ResultCode.DB_UPDATE_FAILED, summary)
    results.remove_db_updated_results()
    logger.warning(
        "catalog transaction rolled back",
        extra={
            "druid": results.druid,
            "check_name": results.check_name,
            "exception_type": exception_type,
        },
    )
