"""Redis client-backed lock substrate implementation."""

from __future__ import annotations

from redis import Redis
from redis.exceptions import RedisError

from resources.substrates.redis.client import create_redis_client
from resources.substrates.redis.config import RedisSettings
from resources.substrates.redis.substrate import LockSubstrate, RedisHealthStatus


class RedisLockSubstrate(LockSubstrate):
    """Concrete lock substrate using ``SET NX EX`` on redis-py."""

    def __init__(self, *, settings: RedisSettings) -> None:
        self._client: Redis = create_redis_client(settings)
        self._health_client: Redis = create_redis_client(
            settings, timeout_seconds=settings.health_timeout_seconds
        )

    def acquire_lock(self, *, key: str, ttl_seconds: int, owner: str) -> bool:
        """Set ``key`` only if absent with an expiry, returning acquisition."""
        return bool(self._client.set(name=key, value=owner, nx=True, ex=ttl_seconds))

    def release_lock(self, *, key: str) -> bool:
        """Delete ``key`` and return whether it existed."""
        return bool(self._client.delete(key))

    def lock_owner(self, *, key: str) -> str | None:
        """Return the stored owner token for ``key``."""
        value = self._client.get(name=key)
        if value is None:
            return None
        return str(value)

    def ping(self) -> bool:
        """Return Redis ping status."""
        return bool(self._health_client.ping())

    def health(self) -> RedisHealthStatus:
        """Return Redis substrate readiness and concise detail."""
        try:
            ready = self.ping()
        except RedisError as exc:
            return RedisHealthStatus(
                ready=False,
                detail=f"redis ping failed: {type(exc).__name__}",
            )
        return RedisHealthStatus(
            ready=ready,
            detail="ok" if ready else "redis ping returned false",
        )
