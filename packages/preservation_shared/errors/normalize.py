"""Builders for ``ErrorDetail`` and the fallback exception mapping."""

from __future__ import annotations

from typing import Mapping

from . import codes
from .types import ErrorCategory, ErrorDetail

Metadata = Mapping[str, str] | None


def validation_error(
    message: str, *, code: str = codes.VALIDATION_ERROR, metadata: Metadata = None
) -> ErrorDetail:
    return ErrorDetail.build(ErrorCategory.VALIDATION, message, code=code, metadata=metadata)


def not_found_error(
    message: str, *, code: str = codes.NOT_FOUND, metadata: Metadata = None
) -> ErrorDetail:
    return ErrorDetail.build(ErrorCategory.NOT_FOUND, message, code=code, metadata=metadata)


def conflict_error(
    message: str, *, code: str = codes.CONFLICT, metadata: Metadata = None
) -> ErrorDetail:
    return ErrorDetail.build(ErrorCategory.CONFLICT, message, code=code, metadata=metadata)


def dependency_error(
    message: str,
    *,
    code: str = codes.DEPENDENCY_FAILURE,
    retryable: bool = True,
    metadata: Metadata = None,
) -> ErrorDetail:
    """Failure of Postgres, Redis, an endpoint or a REST service."""
    return ErrorDetail.build(
        ErrorCategory.DEPENDENCY,
        message,
        code=code,
        retryable=retryable,
        metadata=metadata,
    )


def internal_error(
    message: str, *, code: str = codes.INTERNAL_ERROR, metadata: Metadata = None
) -> ErrorDetail:
    return ErrorDetail.build(ErrorCategory.INTERNAL, message, code=code, metadata=metadata)


# First match wins, so subclasses precede their bases.
_EXCEPTION_MAP: tuple[tuple[type[BaseException], ErrorCategory, str, str, bool], ...] = (
    (ValueError, ErrorCategory.VALIDATION, codes.INVALID_ARGUMENT, "invalid value", False),
    (KeyError, ErrorCategory.NOT_FOUND, codes.RESOURCE_NOT_FOUND, "missing key", False),
    (FileNotFoundError, ErrorCategory.NOT_FOUND, codes.RESOURCE_NOT_FOUND, "missing file", False),
    (TimeoutError, ErrorCategory.DEPENDENCY, codes.DEPENDENCY_TIMEOUT, "dependency timeout", True),
    (ConnectionError, ErrorCategory.DEPENDENCY, codes.DEPENDENCY_UNAVAILABLE, "dependency unavailable", True),
    (OSError, ErrorCategory.INTERNAL, codes.STORAGE_IO_ERROR, "storage i/o failure", False),
)


def exception_summary(exc: BaseException) -> str:
    """Render ``ExceptionClass: message``, the form audit results quote."""
    return f"{type(exc).__name__}: {exc}"


def exception_to_error(exc: BaseException) -> ErrorDetail:
    """Classify an arbitrary exception when no narrower mapping applies.

    Substrates translate their own driver errors first (see
    ``resources.substrates.postgres.normalize_postgres_error``).
    """
    metadata = {"exception_type": type(exc).__name__}
    for exc_type, category, code, fallback, retryable in _EXCEPTION_MAP:
        if isinstance(exc, exc_type):
            return ErrorDetail.build(
                category,
                str(exc) or fallback,
                code=code,
                retryable=retryable,
                metadata=metadata,
            )
    return internal_error(
        str(exc) or "unexpected exception",
        code=codes.UNEXPECTED_EXCEPTION,
        metadata=metadata,
    )
