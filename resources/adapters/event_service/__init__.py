"""Event service adapter exports."""

from resources.adapters.event_service.adapter import (
    EventServiceAdapter,
    EventServiceError,
)
from resources.adapters.event_service.config import (
    RESOURCE_COMPONENT_ID,
    EventServiceAdapterSettings,
    resolve_event_service_adapter_settings,
)
from resources.adapters.event_service.http_event_service_adapter import (
    HttpEventServiceAdapter,
)

__all__ = [
    "RESOURCE_COMPONENT_ID",
    "EventServiceAdapter",
    "EventServiceAdapterSettings",
    "EventServiceError",
    "HttpEventServiceAdapter",
    "resolve_event_service_adapter_settings",
]
