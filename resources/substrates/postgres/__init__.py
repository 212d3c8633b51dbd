"""Postgres access for the preservation catalog."""

from resources.substrates.postgres.bootstrap import bootstrap_schema
from resources.substrates.postgres.config import (
    RESOURCE_COMPONENT_ID,
    PostgresSettings,
    resolve_postgres_settings,
)
from resources.substrates.postgres.engine import create_postgres_engine, ping
from resources.substrates.postgres.errors import (
    is_unique_violation,
    normalize_postgres_error,
)
from resources.substrates.postgres.session import SchemaSessions, check_schema_name

__all__ = [
    "RESOURCE_COMPONENT_ID",
    "PostgresSettings",
    "SchemaSessions",
    "bootstrap_schema",
    "check_schema_name",
    "create_postgres_engine",
    "is_unique_violation",
    "normalize_postgres_error",
    "ping",
    "resolve_postgres_settings",
]
