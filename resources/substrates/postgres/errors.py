"""Translate SQLAlchemy/psycopg failures into shared ``ErrorDetail`` values."""

from __future__ import annotations

from sqlalchemy.exc import (
    DBAPIError,
    IntegrityError,
    InterfaceError,
    OperationalError,
    ProgrammingError,
)

from packages.preservation_shared.errors import (
    ErrorDetail,
    codes,
    conflict_error,
    dependency_error,
    internal_error,
)

# SQLSTATE class 23505 is unique_violation.
UNIQUE_VIOLATION_SQLSTATE = "23505"


def _sqlstate(exc: BaseException) -> str | None:
    origin = exc.orig if isinstance(exc, DBAPIError) else exc
    return getattr(origin, "sqlstate", None) or getattr(origin, "pgcode", None)


def is_unique_violation(exc: BaseException) -> bool:
    """Whether ``exc`` is a duplicate-key failure, wrapped or raw."""
    if _sqlstate(exc) == UNIQUE_VIOLATION_SQLSTATE:
        return True
    if isinstance(exc, IntegrityError):
        return "duplicate key value" in str(exc)
    return type(exc).__name__ == "UniqueViolation"


def normalize_postgres_error(exc: BaseException) -> ErrorDetail:
    """Classify one database failure for catalog error reporting.

    Lost connections and lock or statement timeouts are retryable; malformed
    SQL is a dependency failure that retrying will not fix.
    """
    metadata = {"exception_type": type(exc).__name__}
    sqlstate = _sqlstate(exc)
    if sqlstate:
        metadata["sqlstate"] = sqlstate

    if is_unique_violation(exc):
        return conflict_error(
            "row already exists", code=codes.ALREADY_EXISTS, metadata=metadata
        )
    if isinstance(exc, OperationalError) or "timeout" in str(exc).lower():
        return dependency_error(
            "postgres unavailable",
            code=codes.DEPENDENCY_UNAVAILABLE,
            metadata=metadata,
        )
    if isinstance(exc, (InterfaceError, ProgrammingError)):
        return dependency_error(
            "postgres rejected the statement",
            code=codes.DEPENDENCY_FAILURE,
            retryable=False,
            metadata=metadata,
        )
    return internal_error(
        "unexpected postgres failure",
        code=codes.UNEXPECTED_EXCEPTION,
        metadata=metadata,
    )
