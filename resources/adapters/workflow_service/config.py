"""Pydantic settings for the workflow service adapter."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from packages.preservation_shared.config import (
    PreservationSettings,
    resolve_component_settings,
)

RESOURCE_COMPONENT_ID = "adapter_workflow_service"


class WorkflowServiceAdapterSettings(BaseModel):
    """Connection settings for the workflow status service."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    base_url: str = "http://workflow-server:3000"
    timeout_seconds: float = Field(default=10.0, gt=0)
    max_error_msg_chars: int = Field(default=4000, gt=0)
    max_attempts: int = Field(default=3, ge=1)


def resolve_workflow_service_adapter_settings(
    settings: PreservationSettings,
) -> WorkflowServiceAdapterSettings:
    """Resolve adapter settings from ``components.adapter.workflow_service``."""
    return resolve_component_settings(
        settings=settings,
        component_id=RESOURCE_COMPONENT_ID,
        model=WorkflowServiceAdapterSettings,
    )
