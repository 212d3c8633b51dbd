"""Shared outbound HTTP API for preservation adapters."""

from .client import HttpClient
from .errors import (
    RETRYABLE_STATUS_CODES,
    HttpClientError,
    HttpError,
    HttpJsonDecodeError,
    HttpRequestError,
    HttpStatusError,
)
from .retry import IDEMPOTENT_METHODS, HttpRetryPolicy, parse_retry_after

__all__ = [
    "IDEMPOTENT_METHODS",
    "RETRYABLE_STATUS_CODES",
    "HttpClient",
    "HttpClientError",
    "HttpError",
    "HttpJsonDecodeError",
    "HttpRequestError",
    "HttpRetryPolicy",
    "HttpStatusError",
    "parse_retry_after",
]
