"""Typed failures raised by the shared outbound HTTP client."""

from __future__ import annotations

from collections.abc import Mapping

RETRYABLE_STATUS_CODES = frozenset({408, 425, 429, 500, 502, 503, 504})


class HttpError(Exception):
    """Root of every failure raised by ``HttpClient``."""


class HttpClientError(HttpError):
    """One outbound call that did not produce a usable response.

    ``retryable`` tells callers (and the client's own retry policy) whether
    repeating the identical request could plausibly succeed.
    """

    retryable = False

    def __init__(self, message: str, *, method: str, url: str) -> None:
        super().__init__(message)
        self.method = method
        self.url = url


class HttpRequestError(HttpClientError):
    """The request never produced a response (connect, timeout, protocol)."""

    retryable = True

    def __init__(
        self, message: str, *, method: str, url: str, cause: Exception | None = None
    ) -> None:
        super().__init__(message, method=method, url=url)
        self.cause = cause


class HttpStatusError(HttpClientError):
    """The remote service answered with a 4xx or 5xx status."""

    def __init__(
        self,
        message: str,
        *,
        method: str,
        url: str,
        status_code: int,
        response_body: str = "",
        response_headers: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, method=method, url=url)
        self.status_code = status_code
        self.response_body = response_body
        self.response_headers = dict(response_headers or {})

    @property
    def retryable(self) -> bool:  # type: ignore[override]
        return self.status_code in RETRYABLE_STATUS_CODES

    @property
    def retry_after(self) -> str | None:
        """Raw ``Retry-After`` header value, if the service sent one."""
        for key, value in self.response_headers.items():
            if key.lower() == "retry-after":
                return value
        return None


class HttpJsonDecodeError(HttpClientError):
    """A successful response whose body could not be decoded as JSON."""

    def __init__(
        self,
        message: str,
        *,
        method: str,
        url: str,
        status_code: int,
        response_body: str = "",
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, method=method, url=url)
        self.status_code = status_code
        self.response_body = response_body
        self.cause = cause
