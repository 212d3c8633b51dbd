"""Catalog data layer exports."""

from services.preservation.catalog.data.migrations import (
    MigrationExecutionError,
    catalog_alembic_config,
    run_catalog_migrations,
)
from services.preservation.catalog.data.repository import (
    InMemoryCatalogStore,
    PostgresCatalogStore,
)
from services.preservation.catalog.data.runtime import CatalogPostgresRuntime
from services.preservation.catalog.data.schema import (
    CATALOG_SCHEMA,
    metadata,
    moab_records,
    moab_storage_roots,
    preserved_objects,
    zip_endpoints,
    zip_parts,
    zipped_moab_versions,
)

__all__ = [
    "CATALOG_SCHEMA",
    "CatalogPostgresRuntime",
    "InMemoryCatalogStore",
    "MigrationExecutionError",
    "PostgresCatalogStore",
    "catalog_alembic_config",
    "metadata",
    "moab_records",
    "moab_storage_roots",
    "preserved_objects",
    "run_catalog_migrations",
    "zip_endpoints",
    "zip_parts",
    "zipped_moab_versions",
]
