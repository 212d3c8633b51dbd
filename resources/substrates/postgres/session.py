"""Transaction-scoped ORM sessions pinned to one service-owned schema."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import Engine, text
from sqlalchemy.orm import Session, sessionmaker


def check_schema_name(schema: str) -> str:
    """Return ``schema`` when it is safe to interpolate into DDL."""
    if not schema or not schema.replace("_", "").isalnum():
        raise ValueError(f"postgres schema must be alphanumeric/underscore: {schema!r}")
    return schema


class SchemaSessions:
    """Open sessions whose ``search_path`` starts at one schema.

    Each ``transaction()`` block is exactly one database transaction: the
    catalog relies on this to make a reconciliation pass atomic.
    """

    def __init__(self, engine: Engine, *, schema: str) -> None:
        self.schema = check_schema_name(schema)
        self._factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
        self._search_path = text(f"SET LOCAL search_path TO {self.schema}, public")

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """Yield a session; commit on clean exit, roll back if the block raises."""
        with self._factory.begin() as session:
            session.execute(self._search_path)
            yield session
