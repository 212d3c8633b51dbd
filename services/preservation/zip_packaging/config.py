"""Replication settings resolved from ``components.service.replication``."""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, Field, field_validator

from packages.preservation_shared.config import (
    PreservationSettings,
    resolve_component_settings,
)

SERVICE_COMPONENT_ID = "service_replication"

_SPLIT_SIZE_PATTERN = re.compile(r"^([1-9][0-9]*)([kmgt])$")
_SPLIT_MULTIPLIERS = {"k": 1024, "m": 1024**2, "g": 1024**3, "t": 1024**4}


class ReplicationSettings(BaseModel):
    """Zip packaging and delivery knobs."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    zip_split_size: str = "10g"
    zip_command: str = "zip"
    zip_timeout_seconds: float | None = Field(default=None, gt=0)
    lock_timeout_seconds: int = Field(default=3600, gt=0)
    zip_cache_expiry_minutes: int = Field(default=1440, gt=0)

    @field_validator("zip_split_size")
    @classmethod
    def _validate_split_size(cls, value: str) -> str:
        """Accept ``zip -s`` sizes such as ``10g`` or ``500m``."""
        normalized = value.strip().lower()
        if _SPLIT_SIZE_PATTERN.match(normalized) is None:
            raise ValueError("zip_split_size must look like 10g, 500m or 64k")
        return normalized

    def split_size_bytes(self) -> int:
        """Return ``zip_split_size`` in bytes."""
        return split_size_to_bytes(self.zip_split_size)


def split_size_to_bytes(value: str) -> int:
    """Convert a ``zip -s`` size string to bytes."""
    match = _SPLIT_SIZE_PATTERN.match(value.strip().lower())
    if match is None:
        raise ValueError(f"invalid split size: {value!r}")
    return int(match.group(1)) * _SPLIT_MULTIPLIERS[match.group(2)]


def resolve_replication_settings(settings: PreservationSettings) -> ReplicationSettings:
    """Resolve replication settings from ``components.service.replication``."""
    return resolve_component_settings(
        settings=settings,
        component_id=SERVICE_COMPONENT_ID,
        model=ReplicationSettings,
    )
