"""Real-provider integration tests for Redis lock behavior."""

from __future__ import annotations

import pytest

pytestmark = pytest.mark.integration


def test_lock_roundtrip_against_real_redis(lock_substrate) -> None:
    """A real Redis should enforce NX and release semantics."""
    substrate = lock_substrate
    key = "lock:int-test-job;1"
    substrate.release_lock(key=key)

    assert substrate.acquire_lock(key=key, ttl_seconds=30, owner="one") is True
    assert substrate.acquire_lock(key=key, ttl_seconds=30, owner="two") is False
    assert substrate.release_lock(key=key) is True
