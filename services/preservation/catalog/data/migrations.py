"""Schema provisioning and Alembic upgrades for the catalog schema."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import Engine

from packages.preservation_shared.logging import get_logger
from resources.substrates.postgres import bootstrap_schema
from services.preservation.catalog.data.schema import CATALOG_SCHEMA

_LOGGER = get_logger(__name__)

ALEMBIC_CONFIG_PATH = Path(__file__).resolve().parents[1] / "migrations" / "alembic.ini"


class MigrationExecutionError(RuntimeError):
    """Raised when the catalog Alembic upgrade fails."""


def catalog_alembic_config(url: str) -> Config:
    """Return an Alembic config bound to ``url`` for in-process upgrades."""
    config = Config(str(ALEMBIC_CONFIG_PATH))
    # configparser interpolation treats ``%`` in passwords as a directive.
    config.set_main_option("sqlalchemy.url", url.replace("%", "%%"))
    config.attributes["configure_logger"] = False
    return config


def run_catalog_migrations(
    engine: Engine,
    *,
    upgrade_fn: Callable[[Config, str], None] = command.upgrade,
    bootstrap_fn: Callable[..., None] = bootstrap_schema,
) -> None:
    """Provision the catalog schema, then upgrade it to Alembic ``head``."""
    bootstrap_fn(engine, schema=CATALOG_SCHEMA)
    config = catalog_alembic_config(engine.url.render_as_string(hide_password=False))
    try:
        upgrade_fn(config, "head")
    except Exception as exc:
        raise MigrationExecutionError(
            f"catalog migration failed for config '{ALEMBIC_CONFIG_PATH}'"
        ) from exc
    _LOGGER.info("catalog schema migrated", extra={"operation": "migrate"})
