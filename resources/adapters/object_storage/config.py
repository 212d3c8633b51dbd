"""Pydantic settings for the S3-compatible object storage adapter."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from packages.preservation_shared.config import (
    PreservationSettings,
    resolve_component_settings,
)

RESOURCE_COMPONENT_ID = "adapter_object_storage"


class ObjectStorageAdapterSettings(BaseModel):
    """Client tuning shared by every endpoint's S3 client."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    connect_timeout_seconds: float = Field(default=10.0, gt=0)
    read_timeout_seconds: float = Field(default=60.0, gt=0)
    max_attempts: int = Field(default=5, ge=1)
    multipart_threshold_bytes: int = Field(default=64 * 1024 * 1024, gt=0)
    multipart_chunksize_bytes: int = Field(default=64 * 1024 * 1024, gt=0)
    max_concurrency: int = Field(default=4, ge=1)


def resolve_object_storage_adapter_settings(
    settings: PreservationSettings,
) -> ObjectStorageAdapterSettings:
    """Resolve adapter settings from ``components.adapter.object_storage``."""
    return resolve_component_settings(
        settings=settings,
        component_id=RESOURCE_COMPONENT_ID,
        model=ObjectStorageAdapterSettings,
    )
