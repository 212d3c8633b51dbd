"""Tests for the shared exception normalization helpers."""

from __future__ import annotations

import pytest

from packages.preservation_shared.errors import (
    ErrorCategory,
    codes,
    exception_summary,
    exception_to_error,
)


@pytest.mark.parametrize(
    ("exc", "category", "code"),
    [
        (ValueError("bad version"), ErrorCategory.VALIDATION, codes.INVALID_ARGUMENT),
        (KeyError("druid"), ErrorCategory.NOT_FOUND, codes.RESOURCE_NOT_FOUND),
        (FileNotFoundError("manifestInventory.xml"), ErrorCategory.NOT_FOUND, codes.RESOURCE_NOT_FOUND),
        (TimeoutError(), ErrorCategory.DEPENDENCY, codes.DEPENDENCY_TIMEOUT),
        (ConnectionRefusedError("refused"), ErrorCategory.DEPENDENCY, codes.DEPENDENCY_UNAVAILABLE),
        (PermissionError("denied"), ErrorCategory.INTERNAL, codes.STORAGE_IO_ERROR),
        (RuntimeError("boom"), ErrorCategory.INTERNAL, codes.UNEXPECTED_EXCEPTION),
    ],
)
def test_exception_to_error_maps_builtin_exceptions(exc, category, code) -> None:
    error = exception_to_error(exc)

    assert error.category is category
    assert error.code == code
    assert error.metadata["exception_type"] == type(exc).__name__


def test_timeout_without_message_gets_default_text() -> None:
    assert exception_to_error(TimeoutError()).message == "dependency timeout"


def test_exception_summary_renders_class_and_message() -> None:
    assert exception_summary(OSError("disk gone")) == "OSError: disk gone"
