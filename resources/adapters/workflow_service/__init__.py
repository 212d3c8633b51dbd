"""Workflow service adapter exports."""

from resources.adapters.workflow_service.adapter import (
    WorkflowNotFoundError,
    WorkflowServiceAdapter,
    WorkflowServiceError,
)
from resources.adapters.workflow_service.config import (
    RESOURCE_COMPONENT_ID,
    WorkflowServiceAdapterSettings,
    resolve_workflow_service_adapter_settings,
)
from resources.adapters.workflow_service.http_workflow_service_adapter import (
    HttpWorkflowServiceAdapter,
)

__all__ = [
    "RESOURCE_COMPONENT_ID",
    "HttpWorkflowServiceAdapter",
    "WorkflowNotFoundError",
    "WorkflowServiceAdapter",
    "WorkflowServiceAdapterSettings",
    "WorkflowServiceError",
    "resolve_workflow_service_adapter_settings",
]
