"""Event service adapter over the shared HTTP client."""

from __future__ import annotations

from typing import Any, Mapping
from urllib.parse import quote

from packages.preservation_shared.http import (
    HttpClient,
    HttpRequestError,
    HttpStatusError,
)
from packages.preservation_shared.ids import namespaced_druid
from resources.adapters.event_service.adapter import (
    EventServiceAdapter,
    EventServiceError,
)
from resources.adapters.event_service.config import EventServiceAdapterSettings


class HttpEventServiceAdapter(EventServiceAdapter):
    """Post object events to ``/v1/objects/{druid}/events``."""

    def __init__(
        self,
        *,
        settings: EventServiceAdapterSettings,
        client: HttpClient | None = None,
    ) -> None:
        headers = {"Content-Type": "application/json"}
        if settings.token:
            headers["Authorization"] = f"Bearer {settings.token}"
        self._client = client or HttpClient(
            base_url=settings.base_url.rstrip("/"),
            timeout_seconds=settings.timeout_seconds,
            headers=headers,
        )

    def create_event(
        self, *, druid: str, event_type: str, data: Mapping[str, Any]
    ) -> None:
        """Record one event; transport and status failures raise ``EventServiceError``."""
        path = f"/v1/objects/{quote(namespaced_druid(druid))}/events"
        try:
            self._client.post(path, json={"event_type": event_type, "data": dict(data)})
        except HttpStatusError as exc:
            raise EventServiceError(
                f"event service rejected {event_type} for {druid}: HTTP {exc.status_code}"
            ) from exc
        except HttpRequestError as exc:
            raise EventServiceError(
                f"event service unavailable for {event_type} on {druid}"
            ) from exc
