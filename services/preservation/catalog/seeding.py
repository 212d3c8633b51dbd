"""Idempotent seeding of static catalog entities from configuration."""

from __future__ import annotations

import logging

from packages.preservation_shared.config import PreservationSettings
from packages.preservation_shared.logging import get_logger
from services.preservation.catalog.domain import MoabStorageRoot, ZipEndpoint
from services.preservation.catalog.interfaces import CatalogStore

_LOGGER = get_logger(__name__)


def seed_storage_roots_from_config(
    store: CatalogStore,
    settings: PreservationSettings,
    *,
    logger: logging.Logger | None = None,
) -> tuple[MoabStorageRoot, ...]:
    """Find or create one storage root per ``storage_roots`` entry."""
    log = logger or _LOGGER
    with store.transaction() as tx:
        roots = tuple(
            tx.find_or_create_storage_root(name=name, storage_location=location)
            for name, location in sorted(settings.storage_roots.items())
        )
    for root in roots:
        if root.storage_location != settings.storage_roots[root.name]:
            log.warning(
                "storage root %s is cataloged at %s but configured at %s",
                root.name,
                root.storage_location,
                settings.storage_roots[root.name],
            )
    return roots


def seed_zip_endpoints_from_config(
    store: CatalogStore,
    settings: PreservationSettings,
    *,
    logger: logging.Logger | None = None,
) -> tuple[ZipEndpoint, ...]:
    """Find or create one zip endpoint per ``zip_endpoints`` entry."""
    log = logger or _LOGGER
    with store.transaction() as tx:
        endpoints = tuple(
            tx.find_or_create_zip_endpoint(
                endpoint_name=name,
                endpoint_node=config.endpoint_node,
                storage_location=config.storage_location,
                provider=config.provider,
            )
            for name, config in sorted(settings.zip_endpoints.items())
        )
    log.info("seeded %d zip endpoints", len(endpoints))
    return endpoints
