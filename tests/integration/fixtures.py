"""Live-service fixtures; each skips cleanly when its service is absent."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from packages.preservation_shared.config import PreservationSettings, load_settings
from resources.substrates.redis.config import resolve_redis_settings
from resources.substrates.redis.redis_substrate import RedisLockSubstrate
from services.preservation.catalog.data import CatalogPostgresRuntime
from tests.integration.helpers import (
    real_provider_tests_enabled,
    requires_real_providers_reason,
)


@pytest.fixture(scope="session")
def live_settings() -> PreservationSettings:
    if not real_provider_tests_enabled():
        pytest.skip(requires_real_providers_reason)
    return load_settings()


@pytest.fixture(scope="session")
def catalog_runtime(live_settings: PreservationSettings) -> Iterator[CatalogPostgresRuntime]:
    """Migrated catalog runtime against the configured Postgres."""
    runtime = CatalogPostgresRuntime.from_settings(live_settings)
    if not runtime.is_healthy():
        runtime.engine.dispose()
        pytest.skip("postgres unavailable for integration tests")
    runtime.migrate()
    yield runtime
    runtime.engine.dispose()


@pytest.fixture(scope="session")
def lock_substrate(live_settings: PreservationSettings) -> RedisLockSubstrate:
    substrate = RedisLockSubstrate(settings=resolve_redis_settings(live_settings))
    if not substrate.health().ready:
        pytest.skip("redis unavailable for integration tests")
    return substrate
