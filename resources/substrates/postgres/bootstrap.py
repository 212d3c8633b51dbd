"""Pre-migration provisioning of service-owned schemas.

Tables belong to each service's Alembic migrations; this only creates the
schema those migrations and their version table live in.
"""

from __future__ import annotations

from sqlalchemy import Engine, text

from resources.substrates.postgres.session import check_schema_name


def bootstrap_schema(engine: Engine, *, schema: str) -> None:
    """Create ``schema`` if absent."""
    statement = text(f"CREATE SCHEMA IF NOT EXISTS {check_schema_name(schema)}")
    with engine.begin() as connection:
        connection.execute(statement)
