"""Substrate contract for Redis-backed job-uniqueness locks."""

from __future__ import annotations

from typing import Protocol

from pydantic import BaseModel, ConfigDict


class RedisHealthStatus(BaseModel):
    """Redis substrate readiness payload."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    ready: bool
    detail: str


class LockSubstrate(Protocol):
    """Protocol for short-lived exclusive locks keyed by string."""

    def acquire_lock(self, *, key: str, ttl_seconds: int, owner: str) -> bool:
        """Set ``key`` only if absent; return whether this caller now holds it."""

    def release_lock(self, *, key: str) -> bool:
        """Drop ``key`` and return whether a lock was held."""

    def lock_owner(self, *, key: str) -> str | None:
        """Return the current holder recorded for ``key``, if any."""

    def health(self) -> RedisHealthStatus:
        """Probe substrate readiness and detail."""
