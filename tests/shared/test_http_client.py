"""Unit tests for the shared HTTP client wrapper."""

from __future__ import annotations

import httpx
import pytest

from packages.preservation_shared.http import (
    HttpClient,
    HttpJsonDecodeError,
    HttpRequestError,
    HttpRetryPolicy,
    HttpStatusError,
    parse_retry_after,
)


def _client(handler) -> HttpClient:
    return HttpClient(base_url="https://example.test", transport=httpx.MockTransport(handler))


def test_request_json_returns_decoded_payload() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"ok": True}, request=request)

    with _client(handler) as client:
        assert client.request_json("GET", "/health") == {"ok": True}


def test_request_json_returns_none_for_empty_body() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(201, request=request)

    with _client(handler) as client:
        assert client.request_json("POST", "/events") is None


def test_status_failure_maps_to_typed_error() -> None:
    """5xx responses should raise a retryable HttpStatusError."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="unavailable", request=request)

    with _client(handler) as client:
        with pytest.raises(HttpStatusError) as exc_info:
            client.get("/health")

    error = exc_info.value
    assert error.method == "GET"
    assert error.status_code == 503
    assert error.retryable is True
    assert error.response_body == "unavailable"


def test_not_found_is_not_retryable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, text="missing", request=request)

    with _client(handler) as client:
        with pytest.raises(HttpStatusError) as exc_info:
            client.put("/objects/druid:bj102hs9687/workflows")

    assert exc_info.value.retryable is False


def test_transport_failure_maps_to_typed_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection failed", request=request)

    with _client(handler) as client:
        with pytest.raises(HttpRequestError) as exc_info:
            client.get("/health")

    error = exc_info.value
    assert error.url == "https://example.test/health"
    assert error.retryable is True
    assert isinstance(error.cause, httpx.ConnectError)


def test_invalid_json_maps_to_typed_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="not-json", request=request)

    with _client(handler) as client:
        with pytest.raises(HttpJsonDecodeError) as exc_info:
            client.request_json("GET", "/health")

    assert exc_info.value.status_code == 200
    assert exc_info.value.response_body == "not-json"


def _retrying_client(handler, *, max_attempts: int = 3) -> HttpClient:
    return HttpClient(
        base_url="https://example.test",
        transport=httpx.MockTransport(handler),
        retry=HttpRetryPolicy(max_attempts=max_attempts, sleep=lambda _: None),
    )


def test_idempotent_request_retries_transient_status_then_succeeds() -> None:
    statuses = iter([503, 502, 200])
    calls: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.method)
        return httpx.Response(next(statuses), json={"ok": True}, request=request)

    with _retrying_client(handler) as client:
        assert client.request_json("PUT", "/objects/druid:bj102hs9687") == {"ok": True}

    assert calls == ["PUT", "PUT", "PUT"]


def test_retry_gives_up_after_max_attempts_and_reraises() -> None:
    calls: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        raise httpx.ConnectError("refused", request=request)

    with _retrying_client(handler, max_attempts=2) as client:
        with pytest.raises(HttpRequestError):
            client.get("/health")

    assert len(calls) == 2


def test_post_is_never_retried() -> None:
    calls: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(503, request=request)

    with _retrying_client(handler) as client:
        with pytest.raises(HttpStatusError):
            client.post("/events")

    assert calls == [1]


def test_client_errors_are_not_retried() -> None:
    calls: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(404, request=request)

    with _retrying_client(handler) as client:
        with pytest.raises(HttpStatusError):
            client.get("/objects/missing")

    assert calls == [1]


def test_retry_after_header_drives_the_wait() -> None:
    waits: list[float] = []
    statuses = iter([429, 200])

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            next(statuses), headers={"Retry-After": "2"}, request=request
        )

    client = HttpClient(
        base_url="https://example.test",
        transport=httpx.MockTransport(handler),
        retry=HttpRetryPolicy(max_attempts=2, sleep=waits.append),
    )
    with client:
        client.get("/health")

    assert waits == [2.0]


@pytest.mark.parametrize(
    ("value", "expected"),
    [(None, None), ("", None), ("7", 7.0), ("-3", 0.0), ("soon", None)],
)
def test_parse_retry_after(value, expected) -> None:
    assert parse_retry_after(value) == expected
