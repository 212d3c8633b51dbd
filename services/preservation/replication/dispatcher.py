"""Fan one local part out to every configured zip endpoint."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any, Mapping

from packages.preservation_shared.logging import get_logger
from services.preservation.catalog import (
    CatalogStore,
    ZippedMoabVersionStatus,
    ZipPartStatus,
    utc_now,
)
from services.preservation.replication.preconditions import validate_delivery_metadata
from services.preservation.zip_packaging import part_suffix

_LOGGER = get_logger(__name__)
PARTS_CREATED_DETAILS = "zip parts created, replication pending"


class ReplicationDispatcher:
    """Record part rows per endpoint and decide which endpoints need delivery."""

    def __init__(
        self,
        *,
        store: CatalogStore,
        clock: Callable[[], datetime] = utc_now,
        logger: logging.Logger | None = None,
    ) -> None:
        self._store = store
        self._clock = clock
        self._logger = logger or _LOGGER

    def dispatch_part(
        self,
        *,
        druid: str,
        version: int,
        part_key: str,
        metadata: Mapping[str, Any],
    ) -> list[str]:
        """Ensure replica and part rows exist; return endpoints still lacking the part.

        Raises ``DeliveryPreconditionError`` when ``metadata`` is incomplete.
        """
        parsed = validate_delivery_metadata(metadata).raise_for_errors()
        suffix = part_suffix(part_key)
        now = self._clock()
        pending: list[str] = []
        with self._store.transaction() as tx:
            preserved_object = tx.get_preserved_object(druid=druid)
            if preserved_object is None:
                self._logger.warning(
                    "dispatch for uncataloged druid", extra={"druid": druid, "version": version}
                )
                return []
            for endpoint in tx.list_zip_endpoints():
                record, _ = tx.find_or_create_zipped_moab_version(
                    preserved_object_id=preserved_object.id,
                    zip_endpoint_id=endpoint.id,
                    version=version,
                    now=now,
                )
                part = tx.find_or_create_zip_part(
                    zipped_moab_version_id=record.id,
                    suffix=suffix,
                    size=parsed.size,
                    md5=parsed.checksum_md5,
                    now=now,
                )
                changes: dict[str, Any] = {}
                if record.zip_parts_count is None and parsed.parts_count is not None:
                    changes["zip_parts_count"] = parsed.parts_count
                if record.status == ZippedMoabVersionStatus.CREATED:
                    changes.update(
                        status=ZippedMoabVersionStatus.INCOMPLETE,
                        status_details=PARTS_CREATED_DETAILS,
                        status_updated_at=now,
                    )
                if changes:
                    tx.update_zipped_moab_version(
                        record.model_copy(update={**changes, "updated_at": now})
                    )
                if part.status != ZipPartStatus.OK:
                    pending.append(endpoint.endpoint_name)
        self._logger.info(
            "part dispatched",
            extra={
                "druid": druid,
                "version": version,
                "part_key": part_key,
                "endpoints": pending,
            },
        )
        return pending
