"""Behavior tests for the HTTP event service adapter."""

from __future__ import annotations

import json

import httpx
import pytest

from packages.preservation_shared.http import HttpClient
from resources.adapters.event_service import (
    EventServiceAdapterSettings,
    EventServiceError,
    HttpEventServiceAdapter,
)


def _adapter(handler) -> HttpEventServiceAdapter:
    """Build one adapter whose client is routed to ``handler``."""
    client = HttpClient(
        base_url="http://events.test", transport=httpx.MockTransport(handler)
    )
    return HttpEventServiceAdapter(
        settings=EventServiceAdapterSettings(), client=client
    )


def test_create_event_posts_namespaced_druid_and_payload() -> None:
    """Events should be posted under the ``druid:`` namespaced object path."""
    seen: list[httpx.Request] = []

    def _handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(201, json={})

    _adapter(_handler).create_event(
        druid="bj102hs9687",
        event_type="preservation_audit_failure",
        data={"check_name": "moab-valid", "actual_version": 3},
    )

    assert seen[0].url.path == "/v1/objects/druid:bj102hs9687/events"
    body = json.loads(seen[0].content)
    assert body["event_type"] == "preservation_audit_failure"
    assert body["data"]["actual_version"] == 3


def test_create_event_maps_status_failures() -> None:
    """Non-success responses should raise the adapter error type."""
    with pytest.raises(EventServiceError, match="HTTP 500"):
        _adapter(lambda request: httpx.Response(500)).create_event(
            druid="bj102hs9687", event_type="x", data={}
        )


def test_create_event_maps_transport_failures() -> None:
    """Connection failures should raise the adapter error type."""

    def _handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(EventServiceError, match="unavailable"):
        _adapter(_handler).create_event(druid="bj102hs9687", event_type="x", data={})
