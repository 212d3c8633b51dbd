"""Catalog-owned Postgres runtime wiring."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import Engine

from packages.preservation_shared.config import PreservationSettings
from resources.substrates.postgres import (
    SchemaSessions,
    create_postgres_engine,
    ping,
    resolve_postgres_settings,
)
from services.preservation.catalog.data.migrations import run_catalog_migrations
from services.preservation.catalog.data.repository import PostgresCatalogStore
from services.preservation.catalog.data.schema import CATALOG_SCHEMA


@dataclass(frozen=True)
class CatalogPostgresRuntime:
    """Engine and schema-pinned sessions for the catalog database."""

    engine: Engine
    sessions: SchemaSessions
    health_timeout_seconds: float

    @classmethod
    def from_settings(cls, settings: PreservationSettings) -> "CatalogPostgresRuntime":
        """Build the catalog runtime from ``components.substrate.postgres``."""
        postgres = resolve_postgres_settings(settings)
        engine = create_postgres_engine(postgres)
        return cls(
            engine=engine,
            sessions=SchemaSessions(engine, schema=CATALOG_SCHEMA),
            health_timeout_seconds=postgres.health_timeout_seconds,
        )

    def store(self) -> PostgresCatalogStore:
        """Return a catalog store over this runtime's sessions."""
        return PostgresCatalogStore(self.sessions)

    def migrate(self) -> None:
        """Provision the catalog schema and upgrade it to the latest revision."""
        run_catalog_migrations(self.engine)

    def is_healthy(self) -> bool:
        """Return ``True`` when the catalog database answers in time."""
        return ping(self.engine, timeout_seconds=self.health_timeout_seconds)
