"""Pydantic settings for the Redis lock substrate."""

from __future__ import annotations

import os

from pydantic import BaseModel, ConfigDict, Field, model_validator

from packages.preservation_shared.config import (
    PreservationSettings,
    resolve_component_settings,
)

RESOURCE_COMPONENT_ID = "substrate_redis"


class RedisSettings(BaseModel):
    """Redis connectivity for job-uniqueness locks."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    url: str = "redis://redis:6379/0"
    password_env: str = ""
    connect_timeout_seconds: float = Field(default=5.0, gt=0)
    socket_timeout_seconds: float = Field(default=5.0, gt=0)
    health_timeout_seconds: float = Field(default=1.0, gt=0)
    max_connections: int = Field(default=20, gt=0)
    lock_ttl_seconds: int = Field(default=3600, gt=0)

    @model_validator(mode="after")
    def _require_url(self) -> "RedisSettings":
        """Require a URL and a resolvable password reference when one is named."""
        if self.url.strip() == "":
            raise ValueError("substrate.redis.url is required")
        env_name = self.password_env.strip()
        if env_name != "" and os.environ.get(env_name, "").strip() == "":
            raise ValueError(
                f"substrate.redis.password_env references missing env var '{env_name}'"
            )
        return self

    def resolved_password(self) -> str | None:
        """Return the password named by ``password_env``, if any."""
        env_name = self.password_env.strip()
        if env_name == "":
            return None
        return os.environ[env_name].strip()


def resolve_redis_settings(settings: PreservationSettings) -> RedisSettings:
    """Resolve Redis substrate settings from ``components.substrate.redis``."""
    return resolve_component_settings(
        settings=settings,
        component_id=RESOURCE_COMPONENT_ID,
        model=RedisSettings,
    )
