"""Pydantic settings for the webhook alerting adapter."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from packages.preservation_shared.config import (
    PreservationSettings,
    resolve_component_settings,
)

RESOURCE_COMPONENT_ID = "adapter_alerting"


class AlertingAdapterSettings(BaseModel):
    """Webhook target for operator alerts; blank disables delivery."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    webhook_url: str = ""
    timeout_seconds: float = Field(default=5.0, gt=0)
    environment: str = "dev"


def resolve_alerting_adapter_settings(
    settings: PreservationSettings,
) -> AlertingAdapterSettings:
    """Resolve adapter settings from ``components.adapter.alerting``."""
    return resolve_component_settings(
        settings=settings,
        component_id=RESOURCE_COMPONENT_ID,
        model=AlertingAdapterSettings,
    )
