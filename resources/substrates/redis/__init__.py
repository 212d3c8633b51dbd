"""Redis substrate for job-uniqueness locks."""

from resources.substrates.redis.config import (
    RESOURCE_COMPONENT_ID,
    RedisSettings,
    resolve_redis_settings,
)
from resources.substrates.redis.redis_substrate import RedisLockSubstrate
from resources.substrates.redis.substrate import LockSubstrate, RedisHealthStatus

__all__ = [
    "RESOURCE_COMPONENT_ID",
    "LockSubstrate",
    "RedisHealthStatus",
    "RedisLockSubstrate",
    "RedisSettings",
    "resolve_redis_settings",
]
