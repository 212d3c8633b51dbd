"""Behavior tests for enqueue-time job uniqueness."""

from __future__ import annotations

from typing import Any, Sequence

import pytest

from services.preservation.jobs import enqueue_unique, lock_key, release_job_lock
from tests.support.replication_fixtures import InMemoryLocks


class _Task:
    def __init__(self, name: str, *, fail: bool = False) -> None:
        self.name = name
        self.fail = fail
        self.published: list[list[Any]] = []

    def apply_async(self, args: Sequence[Any] | None = None, **options: Any) -> None:
        del options
        if self.fail:
            raise ConnectionError("broker unavailable")
        self.published.append(list(args or []))


def test_lock_key_joins_positional_args_and_skips_metadata() -> None:
    key = lock_key("prescat.deliver_part", ["bj102hs9687", 1, "a.zip", "aws", {"size": 1}])

    assert key == "lock:prescat.deliver_part-bj102hs9687;1;a.zip;aws"


def test_second_identical_enqueue_is_rejected_until_release() -> None:
    locks = InMemoryLocks()
    task = _Task("prescat.zipmaker")

    assert enqueue_unique(task, "bj102hs9687", 2, locks=locks, ttl_seconds=3600)
    assert not enqueue_unique(task, "bj102hs9687", 2, locks=locks, ttl_seconds=3600)
    assert enqueue_unique(task, "bj102hs9687", 3, locks=locks, ttl_seconds=3600)

    release_job_lock("prescat.zipmaker", ("bj102hs9687", 2), locks=locks)

    assert enqueue_unique(task, "bj102hs9687", 2, locks=locks, ttl_seconds=3600)
    assert task.published == [["bj102hs9687", 2], ["bj102hs9687", 3], ["bj102hs9687", 2]]


def test_publish_failure_releases_lock() -> None:
    locks = InMemoryLocks()

    with pytest.raises(ConnectionError):
        enqueue_unique(
            _Task("prescat.zipmaker", fail=True), "bj102hs9687", 1, locks=locks, ttl_seconds=60
        )

    assert locks.held == {}
