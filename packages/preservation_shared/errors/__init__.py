"""Shared structured-error vocabulary."""

from . import codes
from .normalize import (
    conflict_error,
    dependency_error,
    exception_summary,
    exception_to_error,
    internal_error,
    not_found_error,
    validation_error,
)
from .types import ErrorCategory, ErrorDetail

__all__ = [
    "ErrorCategory",
    "ErrorDetail",
    "codes",
    "conflict_error",
    "dependency_error",
    "exception_summary",
    "exception_to_error",
    "internal_error",
    "not_found_error",
    "validation_error",
]
