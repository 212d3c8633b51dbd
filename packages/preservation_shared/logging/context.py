"""Per-job logging context.

Job handlers wrap each body in ``log_context`` so every line logged while
auditing a druid carries ``druid``, ``version``, ``endpoint_name`` and
``job_name`` without callers repeating them in ``extra=``.
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from types import MappingProxyType
from typing import Iterator, Mapping

_CONTEXT: ContextVar[Mapping[str, str]] = ContextVar(
    "prescat_log_context", default=MappingProxyType({})
)


def _stringify(values: Mapping[str, object]) -> dict[str, str]:
    return {str(key): str(value) for key, value in values.items() if value is not None}


def get_context() -> dict[str, str]:
    """Return a copy of the fields bound in the current context."""
    return dict(_CONTEXT.get())


def bind_context(**values: object) -> None:
    """Merge non-``None`` values, stringified, into the context until cleared."""
    if values:
        _CONTEXT.set(MappingProxyType({**_CONTEXT.get(), **_stringify(values)}))


def clear_context(*keys: str) -> None:
    """Drop ``keys`` from the context, or every field when none are named."""
    kept = {key: value for key, value in _CONTEXT.get().items() if keys and key not in keys}
    _CONTEXT.set(MappingProxyType(kept))


@contextmanager
def log_context(values: Mapping[str, object]) -> Iterator[dict[str, str]]:
    """Bind ``values`` for the block and restore the previous context after it."""
    token = _CONTEXT.set(MappingProxyType({**_CONTEXT.get(), **_stringify(values)}))
    try:
        yield get_context()
    finally:
        _CONTEXT.reset(token)
