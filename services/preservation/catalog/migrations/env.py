"""Alembic environment for the preservation catalog schema."""

from __future__ import annotations

from logging.config import fileConfig
from typing import Any

from alembic import context
from sqlalchemy import engine_from_config, pool

from packages.preservation_shared.config import load_settings
from resources.substrates.postgres.config import resolve_postgres_settings
from services.preservation.catalog.data.schema import CATALOG_SCHEMA, metadata

config = context.config

# In-process upgrades configure logging themselves and pass their own URL.
if config.config_file_name is not None and config.attributes.get("configure_logger", True):
    fileConfig(config.config_file_name, disable_existing_loggers=False)
if not config.get_main_option("sqlalchemy.url"):
    config.set_main_option(
        "sqlalchemy.url", resolve_postgres_settings(load_settings()).url
    )


def _migrate(**configure_kwargs: Any) -> None:
    context.configure(
        target_metadata=metadata,
        include_schemas=True,
        version_table_schema=CATALOG_SCHEMA,
        **configure_kwargs,
    )
    with context.begin_transaction():
        context.run_migrations()


if context.is_offline_mode():
    _migrate(
        url=config.get_main_option("sqlalchemy.url"),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
else:
    engine = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with engine.connect() as connection:
        _migrate(connection=connection)
