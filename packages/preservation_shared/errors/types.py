"""Structured failure record shared by preconditions and storage seams."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping


class ErrorCategory(str, Enum):
    """Coarse failure class; callers branch on this, never on ``code``."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    DEPENDENCY = "dependency"
    INTERNAL = "internal"


@dataclass(frozen=True)
class ErrorDetail:
    """One failure: a stable code, a readable message and its category."""

    code: str
    message: str
    category: ErrorCategory
    retryable: bool = False
    metadata: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        category: ErrorCategory,
        message: str,
        *,
        code: str,
        retryable: bool = False,
        metadata: Mapping[str, str] | None = None,
    ) -> ErrorDetail:
        return cls(
            code=code,
            message=message,
            category=category,
            retryable=retryable,
            metadata=dict(metadata or {}),
        )
