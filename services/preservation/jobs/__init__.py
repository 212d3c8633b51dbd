"""Celery job layer: runtime wiring, unique enqueue and job handlers."""

from services.preservation.jobs.config import (
    SERVICE_COMPONENT_ID,
    AuditJobSettings,
    resolve_audit_job_settings,
)
from services.preservation.jobs.handlers import Enqueue, JobHandlers
from services.preservation.jobs.locking import enqueue_unique, lock_key, release_job_lock
from services.preservation.jobs.runtime import PreservationRuntime

__all__ = [
    "SERVICE_COMPONENT_ID",
    "AuditJobSettings",
    "Enqueue",
    "JobHandlers",
    "PreservationRuntime",
    "enqueue_unique",
    "lock_key",
    "release_job_lock",
    "resolve_audit_job_settings",
]
