"""Celery entry point for preservation jobs and scheduled sweeps."""

from __future__ import annotations

import os
from typing import Any

from celery import Celery, Task, states
from celery.signals import setup_logging, worker_init

from packages.preservation_shared.config import load_settings
from packages.preservation_shared.logging import configure_logging, get_logger
from services.preservation.catalog import CatalogError
from services.preservation.catalog.data import CatalogPostgresRuntime
from services.preservation.jobs import handlers as jobs
from services.preservation.jobs.config import AuditJobSettings, resolve_audit_job_settings
from services.preservation.jobs.handlers import JobHandlers
from services.preservation.jobs.locking import enqueue_unique, release_job_lock
from services.preservation.jobs.runtime import PreservationRuntime

LOGGER = get_logger(__name__)
TASK_PREFIX = "prescat."


def _env(var: str, default: str) -> str:
    return os.environ.get(var, default)


celery_app = Celery("prescat")
celery_app.conf.broker_url = _env("CELERY_BROKER_URL", "redis://redis:6379/1")
celery_app.conf.result_backend = _env("CELERY_RESULT_BACKEND", "redis://redis:6379/2")
celery_app.conf.task_default_queue = _env("CELERY_QUEUE_NAME", "preservation")
celery_app.conf.task_serializer = "json"
celery_app.conf.result_serializer = "json"
celery_app.conf.accept_content = ["json"]
celery_app.conf.enable_utc = True
celery_app.conf.timezone = "UTC"


def build_beat_schedule(audit: AuditJobSettings) -> dict[str, dict[str, Any]]:
    """Return the sweep schedule keyed by task name."""
    intervals = {
        "c2m_sweep": audit.c2m_interval_seconds,
        "checksum_validation_sweep": audit.checksum_interval_seconds,
        "replication_audit_sweep": audit.replication_interval_seconds,
        "m2c_sweep": audit.m2c_interval_seconds,
    }
    return {
        f"{TASK_PREFIX}{name}": {"task": f"{TASK_PREFIX}{name}", "schedule": seconds}
        for name, seconds in intervals.items()
    }


celery_app.conf.beat_schedule = build_beat_schedule(resolve_audit_job_settings(load_settings()))

_runtime: PreservationRuntime | None = None


def get_runtime() -> PreservationRuntime:
    """Return the process runtime, building it from settings on first use."""
    global _runtime
    if _runtime is None:
        _runtime = PreservationRuntime.from_settings(
            load_settings(),
            replication_trigger=_replication_trigger,
            checksum_trigger=_checksum_trigger,
        )
    return _runtime


def set_runtime(runtime: PreservationRuntime | None) -> None:
    """Install a prebuilt runtime, or clear it so the next use rebuilds."""
    global _runtime
    _runtime = runtime


def enqueue_job(job_name: str, *args: Any) -> bool:
    """Publish ``job_name`` unless an identical job already holds its lock."""
    runtime = get_runtime()
    return enqueue_unique(
        celery_app.tasks[f"{TASK_PREFIX}{job_name}"],
        *args,
        locks=runtime.locks,
        ttl_seconds=runtime.replication.lock_timeout_seconds,
        logger=LOGGER,
    )


def _replication_trigger(*, druid: str, version: int) -> None:
    enqueue_job(jobs.ZIPMAKER, druid, version)


def _checksum_trigger(*, druid: str) -> None:
    enqueue_job(jobs.VALIDATE_CHECKSUMS, druid)


def _handlers() -> JobHandlers:
    return JobHandlers(runtime=get_runtime(), enqueue=enqueue_job, logger=LOGGER)


@setup_logging.connect
def _configure_worker_logging(**kwargs: Any) -> None:
    """Replace Celery's logging setup with the shared stdout configuration."""
    del kwargs
    settings = load_settings().logging
    configure_logging(
        level=settings.level,
        json_output=settings.json_output,
        service=settings.service,
        environment=settings.environment,
    )


@worker_init.connect
def _migrate_catalog_on_startup(**kwargs: Any) -> None:
    """Upgrade the catalog schema before the worker consumes jobs."""
    del kwargs
    settings = load_settings()
    if not resolve_audit_job_settings(settings).run_migrations_on_startup:
        return
    catalog = CatalogPostgresRuntime.from_settings(settings)
    try:
        catalog.migrate()
    finally:
        catalog.engine.dispose()


class UniqueJobTask(Task):
    """Task base that releases the enqueue lock once the job has run.

    A job handed back for retry still holds its key, so the lock is kept
    until the final attempt returns.
    """

    def after_return(
        self,
        status: str,
        retval: Any,
        task_id: str,
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
        einfo: Any,
    ) -> None:
        if status == states.RETRY:
            return
        release_job_lock(self.name, args, locks=get_runtime().locks, logger=LOGGER)


@celery_app.task(base=UniqueJobTask, name=f"{TASK_PREFIX}{jobs.CATALOG_TO_MOAB}")
def catalog_to_moab(druid: str) -> dict[str, Any]:
    """Compare the cataloged version of ``druid`` with its Moab."""
    return _handlers().catalog_to_moab(druid)


@celery_app.task(base=UniqueJobTask, name=f"{TASK_PREFIX}{jobs.MOAB_TO_CATALOG}")
def moab_to_catalog(druid: str, storage_root_name: str) -> dict[str, Any]:
    """Reconcile one Moab found on storage with the catalog."""
    return _handlers().moab_to_catalog(druid, storage_root_name)


@celery_app.task(
    base=UniqueJobTask,
    name=f"{TASK_PREFIX}{jobs.VALIDATE_CHECKSUMS}",
    autoretry_for=(OSError, CatalogError),
    max_retries=5,
    retry_backoff=True,
)
def validate_checksums(druid: str) -> dict[str, Any]:
    """Validate fixity of every file in the Moab of ``druid``."""
    return _handlers().validate_checksums(druid)


@celery_app.task(base=UniqueJobTask, name=f"{TASK_PREFIX}{jobs.ZIPMAKER}")
def zipmaker(druid: str, version: int) -> dict[str, Any]:
    return _handlers().zipmaker(druid, version)


@celery_app.task(base=UniqueJobTask, name=f"{TASK_PREFIX}{jobs.DISPATCH_PART}")
def dispatch_part(
    druid: str, version: int, part_key: str, metadata: dict[str, Any]
) -> dict[str, Any]:
    return _handlers().dispatch_part(druid, version, part_key, metadata)


@celery_app.task(
    base=UniqueJobTask, name=f"{TASK_PREFIX}{jobs.DELIVER_PART}", acks_late=True
)
def deliver_part(
    druid: str, version: int, part_key: str, endpoint_name: str, metadata: dict[str, Any]
) -> dict[str, Any]:
    return _handlers().deliver_part(druid, version, part_key, endpoint_name, metadata)


@celery_app.task(base=UniqueJobTask, name=f"{TASK_PREFIX}{jobs.RECORD_DELIVERY}")
def record_delivery(
    druid: str, version: int, part_key: str, endpoint_name: str
) -> dict[str, Any]:
    return _handlers().record_delivery(druid, version, part_key, endpoint_name)


@celery_app.task(base=UniqueJobTask, name=f"{TASK_PREFIX}{jobs.REPLICATION_AUDIT}")
def replication_audit(druid: str) -> dict[str, Any]:
    """Audit every replica of ``druid`` across endpoints."""
    return _handlers().replication_audit(druid)


@celery_app.task(base=UniqueJobTask, name=f"{TASK_PREFIX}{jobs.AUDIT_ENDPOINT}")
def audit_endpoint(endpoint_name: str) -> dict[str, Any]:
    """Audit objects with expired archive audits on one endpoint."""
    return _handlers().audit_endpoint(endpoint_name)


@celery_app.task(
    base=UniqueJobTask, name=f"{TASK_PREFIX}{jobs.PRUNE_REPLICATION_FAILURES}"
)
def prune_replication_failures(
    druid: str, version: int, verify_expiration: bool = True
) -> dict[str, Any]:
    """Operator job deleting failed replica records of one version."""
    return _handlers().prune_replication_failures(druid, version, verify_expiration)


@celery_app.task(name=f"{TASK_PREFIX}c2m_sweep")
def c2m_sweep(storage_root_name: str | None = None) -> dict[str, int]:
    """Celery beat job queueing catalog-to-Moab audits."""
    return _handlers().c2m_sweep(storage_root_name)


@celery_app.task(name=f"{TASK_PREFIX}checksum_validation_sweep")
def checksum_validation_sweep(storage_root_name: str | None = None) -> dict[str, int]:
    """Celery beat job queueing checksum validation."""
    return _handlers().checksum_validation_sweep(storage_root_name)


@celery_app.task(name=f"{TASK_PREFIX}replication_audit_sweep")
def replication_audit_sweep() -> dict[str, int]:
    """Celery beat job queueing replication audits."""
    return _handlers().replication_audit_sweep()


@celery_app.task(name=f"{TASK_PREFIX}m2c_sweep")
def m2c_sweep(storage_root_name: str | None = None) -> dict[str, int]:
    """Celery beat job walking storage roots into the catalog."""
    return _handlers().m2c_sweep(storage_root_name)
