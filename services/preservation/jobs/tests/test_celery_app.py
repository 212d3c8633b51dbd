"""Tests for Celery task registration, beat schedule and enqueue wiring."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest

import services.preservation.jobs.celery_app as celery_module
from services.preservation.audit_results import ResultsReporter
from services.preservation.jobs import AuditJobSettings, PreservationRuntime
from tests.support.catalog_fixtures import FIXED_NOW, store_with_root
from tests.support.replication_fixtures import (
    FakeArchiver,
    InMemoryLocks,
    registry_for,
    zip_storage,
)

JOB_NAMES = (
    "catalog_to_moab",
    "moab_to_catalog",
    "validate_checksums",
    "zipmaker",
    "dispatch_part",
    "deliver_part",
    "record_delivery",
    "replication_audit",
    "audit_endpoint",
    "prune_replication_failures",
    "c2m_sweep",
    "checksum_validation_sweep",
    "replication_audit_sweep",
    "m2c_sweep",
)


@pytest.fixture
def locks(tmp_path: Path) -> Iterator[InMemoryLocks]:
    store, root = store_with_root(str(tmp_path / "sdr2objects"))
    held = InMemoryLocks()
    celery_module.set_runtime(
        PreservationRuntime.assemble(
            store=store,
            storage_roots=[root],
            storage=zip_storage(tmp_path / "zip_storage"),
            locks=held,
            registry=registry_for(),
            reporter=ResultsReporter(sinks=[]),
            archiver=FakeArchiver([1]),
            notifier=None,
            clock=lambda: FIXED_NOW,
        )
    )
    yield held
    celery_module.set_runtime(None)


def test_every_job_is_registered_under_the_prescat_prefix() -> None:
    registered = set(celery_module.celery_app.tasks.keys())

    assert {f"prescat.{name}" for name in JOB_NAMES} <= registered
    assert celery_module.celery_app.main == "prescat"
    assert celery_module.celery_app.conf.task_serializer == "json"


def test_beat_schedule_covers_every_sweep() -> None:
    schedule = celery_module.build_beat_schedule(
        AuditJobSettings(c2m_interval_seconds=60.0)
    )

    assert sorted(schedule) == [
        "prescat.c2m_sweep",
        "prescat.checksum_validation_sweep",
        "prescat.m2c_sweep",
        "prescat.replication_audit_sweep",
    ]
    assert schedule["prescat.c2m_sweep"]["schedule"] == 60.0


def test_validate_checksums_retries_at_most_five_times() -> None:
    task = celery_module.celery_app.tasks["prescat.validate_checksums"]

    assert task.max_retries == 5


def test_enqueue_job_is_unique_until_the_job_returns(
    locks: InMemoryLocks, monkeypatch: pytest.MonkeyPatch
) -> None:
    task = celery_module.celery_app.tasks["prescat.zipmaker"]
    published: list[list[Any]] = []
    monkeypatch.setattr(
        task, "apply_async", lambda args=None, **options: published.append(list(args))
    )

    assert celery_module.enqueue_job("zipmaker", "bj102hs9687", 1)
    assert not celery_module.enqueue_job("zipmaker", "bj102hs9687", 1)
    assert list(locks.held) == ["lock:prescat.zipmaker-bj102hs9687;1"]

    task.after_return("SUCCESS", None, "task-id", ("bj102hs9687", 1), {}, None)

    assert locks.held == {}
    assert celery_module.enqueue_job("zipmaker", "bj102hs9687", 1)
    assert published == [["bj102hs9687", 1], ["bj102hs9687", 1]]


def test_retrying_job_keeps_its_lock_until_the_final_attempt(
    locks: InMemoryLocks, monkeypatch: pytest.MonkeyPatch
) -> None:
    task = celery_module.celery_app.tasks["prescat.validate_checksums"]
    monkeypatch.setattr(task, "apply_async", lambda args=None, **options: None)

    assert celery_module.enqueue_job("validate_checksums", "bj102hs9687")
    task.after_return("RETRY", None, "task-id", ("bj102hs9687",), {}, None)

    assert list(locks.held) == ["lock:prescat.validate_checksums-bj102hs9687"]
    assert not celery_module.enqueue_job("validate_checksums", "bj102hs9687")

    task.after_return("FAILURE", None, "task-id", ("bj102hs9687",), {}, None)

    assert locks.held == {}
