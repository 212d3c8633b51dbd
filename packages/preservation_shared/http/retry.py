"""Tenacity retry policy for idempotent outbound HTTP calls."""

from __future__ import annotations

import email.utils
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone

from tenacity import (
    RetryCallState,
    Retrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_random_exponential,
)
from tenacity.wait import wait_base

from packages.preservation_shared.logging import get_logger

from .errors import HttpClientError, HttpStatusError

_LOGGER = get_logger(__name__)

IDEMPOTENT_METHODS = frozenset({"GET", "HEAD", "PUT", "DELETE", "OPTIONS"})


def parse_retry_after(value: str | None) -> float | None:
    """Convert a ``Retry-After`` header (seconds or HTTP date) to seconds."""
    if not value:
        return None
    try:
        return max(0.0, float(int(value)))
    except ValueError:
        pass
    try:
        when = email.utils.parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return max(0.0, (when - datetime.now(timezone.utc)).total_seconds())


class _RetryAfterOrJitter(wait_base):
    """Prefer the server's ``Retry-After`` hint, else jittered backoff."""

    def __init__(self, fallback: wait_base, max_wait_seconds: float) -> None:
        self._fallback = fallback
        self._max_wait_seconds = max_wait_seconds

    def __call__(self, retry_state: RetryCallState) -> float:
        outcome = retry_state.outcome
        exc = outcome.exception() if outcome is not None else None
        if isinstance(exc, HttpStatusError):
            hinted = parse_retry_after(exc.retry_after)
            if hinted is not None:
                return min(hinted, self._max_wait_seconds)
        return float(self._fallback(retry_state))


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, HttpClientError) and exc.retryable


@dataclass(frozen=True)
class HttpRetryPolicy:
    """How many times, and how patiently, to repeat a failed idempotent call.

    Only ``HttpClientError`` instances flagged ``retryable`` are repeated;
    the final failure is re-raised unchanged. Non-idempotent methods are
    always sent exactly once.
    """

    max_attempts: int = 3
    initial_wait_seconds: float = 0.5
    max_wait_seconds: float = 10.0
    sleep: Callable[[float], None] | None = None

    def applies_to(self, method: str) -> bool:
        return self.max_attempts > 1 and method.upper() in IDEMPOTENT_METHODS

    def retrying(self, logger: logging.Logger | None = None) -> Retrying:
        """Build a fresh ``Retrying`` controller for one logical call."""
        options = {}
        if self.sleep is not None:
            options["sleep"] = self.sleep
        return Retrying(
            retry=retry_if_exception(_is_retryable),
            stop=stop_after_attempt(self.max_attempts),
            wait=_RetryAfterOrJitter(
                wait_random_exponential(
                    multiplier=self.initial_wait_seconds, max=self.max_wait_seconds
                ),
                self.max_wait_seconds,
            ),
            before_sleep=before_sleep_log(logger or _LOGGER, logging.WARNING),
            reraise=True,
            **options,
        )
