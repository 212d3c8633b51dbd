"""Tests for catalog Postgres settings resolution."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from packages.preservation_shared.config import PreservationSettings
from resources.substrates.postgres.config import (
    PostgresSettings,
    resolve_postgres_settings,
)


def test_defaults_target_the_prescat_database() -> None:
    config = PostgresSettings()

    assert config.url.endswith("/prescat")
    assert config.pool_pre_ping is True
    assert config.application_name == "prescat"
    assert config.lock_timeout_seconds == 30.0


def test_boolean_like_strings_are_coerced() -> None:
    assert PostgresSettings.model_validate({"pool_pre_ping": "false"}).pool_pre_ping is False


@pytest.mark.parametrize(
    "overrides",
    [
        {"sslmode": "sometimes"},
        {"url": "   "},
        {"lock_timeout_seconds": 0},
        {"unknown_key": 1},
    ],
)
def test_invalid_settings_are_rejected(overrides: dict[str, object]) -> None:
    with pytest.raises(ValidationError):
        PostgresSettings.model_validate(overrides)


def test_resolver_reads_substrate_namespace() -> None:
    settings = PreservationSettings.model_validate(
        {
            "components": {
                "substrate": {
                    "postgres": {
                        "url": "postgresql+psycopg://a:b@db:5432/catalog",
                        "pool_size": 2,
                    }
                }
            }
        }
    )

    resolved = resolve_postgres_settings(settings)

    assert resolved.url.endswith("/catalog")
    assert resolved.pool_size == 2
