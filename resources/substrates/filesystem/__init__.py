"""Zip storage substrate exports."""

from resources.substrates.filesystem.config import (
    RESOURCE_COMPONENT_ID,
    FilesystemSubstrateSettings,
    resolve_filesystem_substrate_settings,
)
from resources.substrates.filesystem.filesystem_substrate import (
    LocalZipStorageSubstrate,
)
from resources.substrates.filesystem.substrate import (
    FilesystemHealthStatus,
    ZipStorageSubstrate,
)

__all__ = [
    "RESOURCE_COMPONENT_ID",
    "FilesystemHealthStatus",
    "FilesystemSubstrateSettings",
    "LocalZipStorageSubstrate",
    "ZipStorageSubstrate",
    "resolve_filesystem_substrate_settings",
]
