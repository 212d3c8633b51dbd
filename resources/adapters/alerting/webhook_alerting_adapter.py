"""Alerting adapter that posts JSON alerts to one webhook URL."""

from __future__ import annotations

from typing import Mapping

from packages.preservation_shared.http import (
    HttpClient,
    HttpRequestError,
    HttpStatusError,
)
from packages.preservation_shared.logging import get_logger
from resources.adapters.alerting.adapter import AlertingAdapter, AlertingError
from resources.adapters.alerting.config import AlertingAdapterSettings

_LOGGER = get_logger(__name__)


class WebhookAlertingAdapter(AlertingAdapter):
    """Post ``{message, environment, context}`` to the configured webhook."""

    def __init__(
        self,
        *,
        settings: AlertingAdapterSettings,
        client: HttpClient | None = None,
    ) -> None:
        self._settings = settings
        self._client = client or HttpClient(timeout_seconds=settings.timeout_seconds)

    def notify(self, *, message: str, context: Mapping[str, str]) -> None:
        """Deliver one alert, or log it when no webhook is configured."""
        if self._settings.webhook_url == "":
            _LOGGER.warning("alerting webhook unset; alert not sent: %s", message)
            return
        payload = {
            "message": message,
            "environment": self._settings.environment,
            "context": dict(context),
        }
        try:
            self._client.post(self._settings.webhook_url, json=payload)
        except (HttpStatusError, HttpRequestError) as exc:
            raise AlertingError(f"alert delivery failed: {exc}") from exc
