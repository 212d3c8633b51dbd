"""Pydantic settings for the event service adapter."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from packages.preservation_shared.config import (
    PreservationSettings,
    resolve_component_settings,
)

RESOURCE_COMPONENT_ID = "adapter_event_service"


class EventServiceAdapterSettings(BaseModel):
    """Connection settings for the object event service."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    base_url: str = "http://dor-services-app:3000"
    token: str = ""
    timeout_seconds: float = Field(default=10.0, gt=0)


def resolve_event_service_adapter_settings(
    settings: PreservationSettings,
) -> EventServiceAdapterSettings:
    """Resolve adapter settings from ``components.adapter.event_service``."""
    return resolve_component_settings(
        settings=settings,
        component_id=RESOURCE_COMPONENT_ID,
        model=EventServiceAdapterSettings,
    )
