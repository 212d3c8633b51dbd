"""Enqueue-time uniqueness for jobs keyed by their positional arguments.

A job is identified by its name plus every non-mapping positional argument,
so delivery metadata never widens the key. The lock is taken with Redis
``SET NX EX`` before the task is published and released once the job has run.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping, Sequence
from typing import Any, Protocol

from packages.preservation_shared.logging import get_logger
from resources.substrates.redis import LockSubstrate

_LOGGER = get_logger(__name__)
LOCK_PREFIX = "lock:"


class PublishableTask(Protocol):
    """The slice of a Celery task used for publishing."""

    name: str

    def apply_async(self, args: Sequence[Any] | None = None, **options: Any) -> Any:
        """Publish one message for this task."""


def lock_key(job_name: str, args: Sequence[Any]) -> str:
    """Return ``lock:{job_name}-{args joined ';'}`` over non-mapping args."""
    key_args = [str(arg) for arg in args if not isinstance(arg, Mapping)]
    return f"{LOCK_PREFIX}{job_name}-{';'.join(key_args)}"


def enqueue_unique(
    task: PublishableTask,
    *args: Any,
    locks: LockSubstrate,
    ttl_seconds: int,
    logger: logging.Logger | None = None,
) -> bool:
    """Publish ``task`` unless an identical job is already queued or running.

    Returns whether a message was published.
    """
    log = logger or _LOGGER
    key = lock_key(task.name, args)
    if not locks.acquire_lock(key=key, ttl_seconds=ttl_seconds, owner=uuid.uuid4().hex):
        log.info(
            "job already queued; skipping enqueue",
            extra={"job_name": task.name, "lock_key": key},
        )
        return False
    try:
        task.apply_async(args=list(args))
    except Exception:
        locks.release_lock(key=key)
        raise
    log.debug("job enqueued", extra={"job_name": task.name, "lock_key": key})
    return True


def release_job_lock(
    job_name: str,
    args: Sequence[Any],
    *,
    locks: LockSubstrate,
    logger: logging.Logger | None = None,
) -> None:
    """Release the uniqueness lock of a finished job."""
    key = lock_key(job_name, args)
    if not locks.release_lock(key=key):
        (logger or _LOGGER).debug(
            "job lock already expired", extra={"job_name": job_name, "lock_key": key}
        )
