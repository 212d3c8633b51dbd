"""Engine construction and liveness check for the catalog database."""

from __future__ import annotations

from sqlalchemy import Engine, create_engine, text
from sqlalchemy.exc import SQLAlchemyError

from resources.substrates.postgres.config import PostgresSettings

_SET_STATEMENT_TIMEOUT = text("SELECT set_config('statement_timeout', :value, false)")
_PROBE = text("SELECT 1")


def _millis(seconds: float) -> str:
    return f"{max(1, round(seconds * 1000))}ms"


def create_postgres_engine(config: PostgresSettings) -> Engine:
    """Build a pooled psycopg engine.

    Every connection is tagged with ``application_name`` and bounded by
    ``lock_timeout`` so concurrent audits of one druid fail instead of
    queueing forever on a row lock.
    """
    connect_args = {
        "application_name": config.application_name,
        "connect_timeout": int(config.connect_timeout_seconds),
        "options": f"-c lock_timeout={_millis(config.lock_timeout_seconds)}",
        "sslmode": config.sslmode,
    }
    return create_engine(
        config.url,
        connect_args=connect_args,
        max_overflow=config.max_overflow,
        pool_pre_ping=config.pool_pre_ping,
        pool_size=config.pool_size,
        pool_timeout=config.pool_timeout_seconds,
    )


def ping(engine: Engine, *, timeout_seconds: float = 1.0) -> bool:
    """Return whether the database answers ``SELECT 1`` within ``timeout_seconds``."""
    try:
        with engine.connect() as connection:
            connection.execute(_SET_STATEMENT_TIMEOUT, {"value": _millis(timeout_seconds)})
            return connection.execute(_PROBE).scalar() == 1
    except (SQLAlchemyError, OSError):
        return False
