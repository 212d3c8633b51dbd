"""Redis client construction helpers."""

from __future__ import annotations

from redis import Redis

from resources.substrates.redis.config import RedisSettings


def create_redis_client(
    settings: RedisSettings, *, timeout_seconds: float | None = None
) -> Redis:
    """Construct a configured Redis client, optionally with a tighter timeout."""
    connect_timeout = (
        settings.connect_timeout_seconds if timeout_seconds is None else timeout_seconds
    )
    socket_timeout = (
        settings.socket_timeout_seconds if timeout_seconds is None else timeout_seconds
    )
    return Redis.from_url(
        url=settings.url,
        password=settings.resolved_password(),
        socket_connect_timeout=connect_timeout,
        socket_timeout=socket_timeout,
        max_connections=settings.max_connections,
        decode_responses=True,
        encoding="utf-8",
    )
