"""Operator alerting adapter exports."""

from resources.adapters.alerting.adapter import AlertingAdapter, AlertingError
from resources.adapters.alerting.config import (
    RESOURCE_COMPONENT_ID,
    AlertingAdapterSettings,
    resolve_alerting_adapter_settings,
)
from resources.adapters.alerting.webhook_alerting_adapter import (
    WebhookAlertingAdapter,
)

__all__ = [
    "RESOURCE_COMPONENT_ID",
    "AlertingAdapter",
    "AlertingAdapterSettings",
    "AlertingError",
    "WebhookAlertingAdapter",
    "resolve_alerting_adapter_settings",
]
