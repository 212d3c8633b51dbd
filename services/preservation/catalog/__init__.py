"""Preservation catalog: domain records, persistence and seeding."""

from services.preservation.catalog.domain import (
    MoabRecord,
    MoabRecordStatus,
    MoabStorageRoot,
    PreservedObject,
    StorageRootSummary,
    ZipEndpoint,
    ZippedMoabVersion,
    ZippedMoabVersionStatus,
    ZipPart,
    ZipPartStatus,
    utc_now,
)
from services.preservation.catalog.interfaces import (
    CatalogConflictError,
    CatalogError,
    CatalogStore,
    CatalogTransaction,
)
from services.preservation.catalog.queries import (
    populate_zipped_moab_versions,
    storage_root_summary,
    zip_parts_all_ok,
)
from services.preservation.catalog.seeding import (
    seed_storage_roots_from_config,
    seed_zip_endpoints_from_config,
)

__all__ = [
    "CatalogConflictError",
    "CatalogError",
    "CatalogStore",
    "CatalogTransaction",
    "MoabRecord",
    "MoabRecordStatus",
    "MoabStorageRoot",
    "PreservedObject",
    "StorageRootSummary",
    "ZipEndpoint",
    "ZipPart",
    "ZipPartStatus",
    "ZippedMoabVersion",
    "ZippedMoabVersionStatus",
    "populate_zipped_moab_versions",
    "seed_storage_roots_from_config",
    "seed_zip_endpoints_from_config",
    "storage_root_summary",
    "utc_now",
    "zip_parts_all_ok",
]
