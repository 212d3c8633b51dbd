"""Synchronous httpx wrapper shared by the preservation REST adapters."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx

from .errors import HttpJsonDecodeError, HttpRequestError, HttpStatusError
from .retry import HttpRetryPolicy


def _safe_text(response: httpx.Response) -> str:
    try:
        return response.text
    except UnicodeDecodeError:
        return ""


class HttpClient:
    """One adapter's connection to one remote service.

    Failures surface as ``HttpRequestError`` (no response) or
    ``HttpStatusError`` (error status). With a ``retry`` policy, retryable
    failures of idempotent methods are repeated before surfacing.
    """

    def __init__(
        self,
        *,
        base_url: str = "",
        timeout_seconds: float = 10.0,
        headers: Mapping[str, str] | None = None,
        transport: httpx.BaseTransport | None = None,
        client: httpx.Client | None = None,
        retry: HttpRetryPolicy | None = None,
    ) -> None:
        self._retry = retry
        self._owns_client = client is None
        if client is None:
            client = httpx.Client(
                base_url=base_url,
                timeout=timeout_seconds,
                headers=dict(headers or {}),
                transport=transport,
            )
        self._client = client

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> HttpClient:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()

    def request(
        self,
        method: str,
        url: str,
        *,
        raise_for_status: bool = True,
        **kwargs: Any,
    ) -> httpx.Response:
        """Send one request, repeating it under the retry policy when allowed."""
        if self._retry is None or not self._retry.applies_to(method):
            return self._send(method, url, raise_for_status, kwargs)
        for attempt in self._retry.retrying():
            with attempt:
                response = self._send(method, url, raise_for_status, kwargs)
        return response

    def _send(
        self, method: str, url: str, raise_for_status: bool, kwargs: dict[str, Any]
    ) -> httpx.Response:
        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.RequestError as exc:
            try:
                target, verb = str(exc.request.url), exc.request.method
            except RuntimeError:
                target, verb = url, method.upper()
            raise HttpRequestError(
                f"{verb} {target} failed: {exc}", method=verb, url=target, cause=exc
            ) from exc
        if raise_for_status and response.is_error:
            request = response.request
            raise HttpStatusError(
                f"{request.method} {request.url} returned HTTP {response.status_code}",
                method=request.method,
                url=str(request.url),
                status_code=response.status_code,
                response_body=_safe_text(response),
                response_headers=response.headers,
            )
        return response

    def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return self.request("GET", url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return self.request("POST", url, **kwargs)

    def put(self, url: str, **kwargs: Any) -> httpx.Response:
        return self.request("PUT", url, **kwargs)

    def request_json(self, method: str, url: str, **kwargs: Any) -> Any:
        """Send one request and decode its JSON body; empty bodies give ``None``."""
        response = self.request(method, url, **kwargs)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            request = response.request
            raise HttpJsonDecodeError(
                f"{request.method} {request.url} returned invalid JSON",
                method=request.method,
                url=str(request.url),
                status_code=response.status_code,
                response_body=_safe_text(response),
                cause=exc,
            ) from exc
