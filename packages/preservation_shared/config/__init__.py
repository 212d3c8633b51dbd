"""Layered, typed configuration shared by preservation workers."""

from .loader import CONFIG_PATH_VAR, ENV_PREFIX, deep_merge, load_config, load_settings
from .models import (
    COMPONENT_KINDS,
    DEFAULT_CONFIG_PATH,
    ComponentsSettings,
    LoggingSettings,
    PreservationPolicySettings,
    PreservationSettings,
    ZipEndpointSettings,
    resolve_component_settings,
)

__all__ = [
    "COMPONENT_KINDS",
    "CONFIG_PATH_VAR",
    "DEFAULT_CONFIG_PATH",
    "ENV_PREFIX",
    "ComponentsSettings",
    "LoggingSettings",
    "PreservationPolicySettings",
    "PreservationSettings",
    "ZipEndpointSettings",
    "deep_merge",
    "load_config",
    "load_settings",
    "resolve_component_settings",
]
