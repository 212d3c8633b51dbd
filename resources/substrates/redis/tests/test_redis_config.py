"""Unit tests for Redis substrate settings resolution and validation."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from packages.preservation_shared.config import PreservationSettings
from resources.substrates.redis.config import RedisSettings, resolve_redis_settings


def test_redis_settings_rejects_blank_url() -> None:
    """A blank URL is never a usable lock backend."""
    with pytest.raises(ValidationError, match="url is required"):
        RedisSettings(url="  ")


def test_redis_settings_resolves_password_from_env(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Password should resolve from the referenced environment variable."""
    monkeypatch.setenv("REDIS_PASSWORD", "secret")

    settings = RedisSettings(password_env="REDIS_PASSWORD")

    assert settings.resolved_password() == "secret"


def test_redis_settings_rejects_missing_password_env(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """A named but unset password variable should fail validation."""
    monkeypatch.delenv("REDIS_PASSWORD", raising=False)
    with pytest.raises(ValidationError, match="references missing env var"):
        RedisSettings(password_env="REDIS_PASSWORD")


def test_resolve_redis_settings_reads_lock_ttl() -> None:
    """Lock TTL should come from ``components.substrate.redis``."""
    settings = PreservationSettings.model_validate(
        {"components": {"substrate": {"redis": {"lock_ttl_seconds": 120}}}}
    )

    assert resolve_redis_settings(settings).lock_ttl_seconds == 120


def test_redis_settings_default_lock_ttl_is_one_hour() -> None:
    """Default lock TTL should be 3600 seconds."""
    assert RedisSettings().lock_ttl_seconds == 3600
