"""Behavior tests for the webhook alerting adapter."""

from __future__ import annotations

import json

import httpx
import pytest

from packages.preservation_shared.http import HttpClient
from resources.adapters.alerting import (
    AlertingAdapterSettings,
    AlertingError,
    WebhookAlertingAdapter,
)


def test_notify_posts_message_and_context() -> None:
    """Alerts should be posted as JSON with environment and context."""
    seen: list[dict[str, object]] = []

    def _handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(200)

    adapter = WebhookAlertingAdapter(
        settings=AlertingAdapterSettings(
            webhook_url="http://alerts.test/hook", environment="stage"
        ),
        client=HttpClient(transport=httpx.MockTransport(_handler)),
    )

    adapter.notify(message="checksum mismatch", context={"druid": "bj102hs9687"})

    assert seen == [
        {
            "message": "checksum mismatch",
            "environment": "stage",
            "context": {"druid": "bj102hs9687"},
        }
    ]


def test_notify_without_webhook_does_not_send() -> None:
    """A blank webhook URL should disable delivery without raising."""

    def _handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    adapter = WebhookAlertingAdapter(
        settings=AlertingAdapterSettings(),
        client=HttpClient(transport=httpx.MockTransport(_handler)),
    )

    adapter.notify(message="ignored", context={})


def test_notify_maps_http_failures() -> None:
    """Webhook failures should raise ``AlertingError``."""
    adapter = WebhookAlertingAdapter(
        settings=AlertingAdapterSettings(webhook_url="http://alerts.test/hook"),
        client=HttpClient(transport=httpx.MockTransport(lambda r: httpx.Response(502))),
    )

    with pytest.raises(AlertingError, match="502"):
        adapter.notify(message="boom", context={})
