"""Scheduled audit settings for the job layer."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from packages.preservation_shared.config import (
    PreservationSettings,
    resolve_component_settings,
)

SERVICE_COMPONENT_ID = "service_audit"


class AuditJobSettings(BaseModel):
    """Sweep batch sizes and beat intervals."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    c2m_batch_size: int = Field(default=500, gt=0)
    checksum_batch_size: int = Field(default=200, gt=0)
    replication_batch_size: int = Field(default=500, gt=0)
    c2m_interval_seconds: float = Field(default=86_400.0, gt=0)
    checksum_interval_seconds: float = Field(default=86_400.0, gt=0)
    replication_interval_seconds: float = Field(default=86_400.0, gt=0)
    m2c_interval_seconds: float = Field(default=604_800.0, gt=0)
    run_migrations_on_startup: bool = True


def resolve_audit_job_settings(settings: PreservationSettings) -> AuditJobSettings:
    """Resolve sweep settings from ``components.service.audit``."""
    return resolve_component_settings(
        settings=settings,
        component_id=SERVICE_COMPONENT_ID,
        model=AuditJobSettings,
    )
