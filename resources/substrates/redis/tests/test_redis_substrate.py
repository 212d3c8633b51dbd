"""Unit tests for the Redis lock substrate wrapper."""

from __future__ import annotations

from dataclasses import dataclass, field

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

import resources.substrates.redis.redis_substrate as redis_substrate_module
from resources.substrates.redis.config import RedisSettings
from resources.substrates.redis.redis_substrate import RedisLockSubstrate


@dataclass
class _FakeRedisClient:
    """In-memory fake implementing the Redis commands used for locking."""

    values: dict[str, str] = field(default_factory=dict)
    expiries: dict[str, int] = field(default_factory=dict)
    healthy: bool = True

    def set(
        self, name: str, value: str, nx: bool = False, ex: int | None = None
    ) -> bool | None:
        if nx and name in self.values:
            return None
        self.values[name] = value
        if ex is not None:
            self.expiries[name] = ex
        return True

    def get(self, name: str) -> str | None:
        return self.values.get(name)

    def delete(self, name: str) -> int:
        if name in self.values:
            del self.values[name]
            return 1
        return 0

    def ping(self) -> bool:
        if not self.healthy:
            raise RedisConnectionError("down")
        return True


def _substrate(
    monkeypatch: pytest.MonkeyPatch, fake_client: _FakeRedisClient
) -> RedisLockSubstrate:
    """Build a substrate wired to one fake client."""
    monkeypatch.setattr(
        redis_substrate_module,
        "create_redis_client",
        lambda settings, **kwargs: fake_client,
    )
    return RedisLockSubstrate(settings=RedisSettings())


def test_second_acquire_for_same_key_is_rejected(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """SET NX semantics should admit exactly one holder per key."""
    fake_client = _FakeRedisClient()
    substrate = _substrate(monkeypatch, fake_client)

    assert substrate.acquire_lock(key="lock:zipmaker-bc123df4567;1", ttl_seconds=3600, owner="a")
    assert not substrate.acquire_lock(key="lock:zipmaker-bc123df4567;1", ttl_seconds=3600, owner="b")
    assert substrate.lock_owner(key="lock:zipmaker-bc123df4567;1") == "a"
    assert fake_client.expiries["lock:zipmaker-bc123df4567;1"] == 3600


def test_release_allows_reacquire(monkeypatch: pytest.MonkeyPatch) -> None:
    """Releasing a lock should make the key available again."""
    substrate = _substrate(monkeypatch, _FakeRedisClient())

    substrate.acquire_lock(key="k", ttl_seconds=10, owner="a")

    assert substrate.release_lock(key="k") is True
    assert substrate.release_lock(key="k") is False
    assert substrate.acquire_lock(key="k", ttl_seconds=10, owner="b") is True


def test_health_reports_connection_failures(monkeypatch: pytest.MonkeyPatch) -> None:
    """Health should degrade instead of raising when Redis is down."""
    substrate = _substrate(monkeypatch, _FakeRedisClient(healthy=False))

    status = substrate.health()

    assert status.ready is False
    assert "ConnectionError" in status.detail
