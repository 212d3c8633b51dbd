"""Object storage adapter exports for zip part replicas."""

from resources.adapters.object_storage.adapter import (
    ObjectStorageAdapter,
    ObjectStorageDependencyError,
    ObjectStorageError,
    ObjectStorageHealthResult,
)
from resources.adapters.object_storage.config import (
    RESOURCE_COMPONENT_ID,
    ObjectStorageAdapterSettings,
    resolve_object_storage_adapter_settings,
)
from resources.adapters.object_storage.s3_adapter import (
    S3ObjectStorageAdapter,
    build_s3_adapter,
)

__all__ = [
    "RESOURCE_COMPONENT_ID",
    "ObjectStorageAdapter",
    "ObjectStorageAdapterSettings",
    "ObjectStorageDependencyError",
    "ObjectStorageError",
    "ObjectStorageHealthResult",
    "S3ObjectStorageAdapter",
    "build_s3_adapter",
    "resolve_object_storage_adapter_settings",
]
