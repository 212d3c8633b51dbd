"""Record delivered parts and finish a replica version once all parts are in."""

from __future__ import annotations

import logging
import socket
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from packages.preservation_shared.logging import get_logger
from resources.adapters.event_service import EventServiceAdapter
from packages.preservation_shared.ids import zip_key_base
from resources.substrates.filesystem import ZipStorageSubstrate
from services.preservation.catalog import (
    CatalogStore,
    ZippedMoabVersionStatus,
    ZipPartStatus,
    utc_now,
    zip_parts_all_ok,
)
from services.preservation.replication.lookup import load_replica_target
from services.preservation.zip_packaging import ZipPartPathfinder, part_suffix

_LOGGER = get_logger(__name__)
REPLICATED_EVENT = "druid_version_replicated"
INVOKED_BY = "preservation-catalog"
REPLICATION_COMPLETE_DETAILS = "replication complete"


@dataclass(frozen=True)
class RecordedDelivery:
    """What one ``record_delivery`` call changed."""

    part_recorded: bool
    endpoint_complete: bool = False
    all_endpoints_complete: bool = False
    local_parts_removed: int = 0
    parts_info: list[dict[str, Any]] = field(default_factory=list)


class ResultsRecorder:
    """Mark parts replicated, close replica records and clean local parts."""

    def __init__(
        self,
        *,
        store: CatalogStore,
        storage: ZipStorageSubstrate,
        notifier: EventServiceAdapter | None = None,
        clock: Callable[[], datetime] = utc_now,
        hostname: str | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._store = store
        self._storage = storage
        self._notifier = notifier
        self._clock = clock
        self._hostname = hostname or socket.gethostname()
        self._logger = logger or _LOGGER

    def record_delivery(
        self, *, druid: str, version: int, part_key: str, endpoint_name: str
    ) -> RecordedDelivery:
        """Mark one part ok and finish the endpoint and version when complete."""
        now = self._clock()
        with self._store.transaction() as tx:
            target = load_replica_target(
                tx, druid=druid, version=version, endpoint_name=endpoint_name
            )
            part = None
            if target is not None:
                part = target.part_with_suffix(tx, part_suffix(part_key))
            if target is None or part is None:
                self._logger.warning(
                    "no zip part row for delivered part",
                    extra={
                        "druid": druid,
                        "version": version,
                        "endpoint_name": endpoint_name,
                        "part_key": part_key,
                    },
                )
                return RecordedDelivery(part_recorded=False)

            tx.update_zip_part_status(zip_part_id=part.id, status=ZipPartStatus.OK, now=now)
            endpoint_complete = False
            parts_info: list[dict[str, Any]] = []
            if (
                target.record.status != ZippedMoabVersionStatus.OK
                and zip_parts_all_ok(tx, record=target.record)
            ):
                tx.update_zipped_moab_version(
                    target.record.model_copy(
                        update={
                            "status": ZippedMoabVersionStatus.OK,
                            "status_details": REPLICATION_COMPLETE_DETAILS,
                            "status_updated_at": now,
                            "updated_at": now,
                        }
                    )
                )
                endpoint_complete = True
                base_key = zip_key_base(druid, version)
                parts_info = [
                    {"s3_key": f"{base_key}{p.suffix}", "size": p.size, "md5": p.md5}
                    for p in tx.list_zip_parts(zipped_moab_version_id=target.record.id)
                ]
            all_complete = all(
                zip_parts_all_ok(tx, record=record)
                for record in tx.list_zipped_moab_versions(
                    preserved_object_id=target.preserved_object.id, version=version
                )
            )

        if endpoint_complete:
            self._emit_replicated_event(
                druid=druid, version=version, endpoint_name=endpoint_name, parts_info=parts_info
            )
        removed = self._remove_local_parts(druid, version) if all_complete else 0
        return RecordedDelivery(
            part_recorded=True,
            endpoint_complete=endpoint_complete,
            all_endpoints_complete=all_complete,
            local_parts_removed=removed,
            parts_info=parts_info,
        )

    def _emit_replicated_event(
        self,
        *,
        druid: str,
        version: int,
        endpoint_name: str,
        parts_info: list[dict[str, Any]],
    ) -> None:
        if self._notifier is None:
            return
        try:
            self._notifier.create_event(
                druid=druid,
                event_type=REPLICATED_EVENT,
                data={
                    "host": self._hostname,
                    "invoked_by": INVOKED_BY,
                    "version": version,
                    "endpoint_name": endpoint_name,
                    "parts_info": parts_info,
                },
            )
        except Exception as exc:  # noqa: BLE001
            self._logger.error(
                "replicated event not recorded",
                extra={
                    "druid": druid,
                    "endpoint_name": endpoint_name,
                    "exception_type": type(exc).__name__,
                },
            )

    def _remove_local_parts(self, druid: str, version: int) -> int:
        pathfinder = ZipPartPathfinder(druid=druid, version=version, storage=self._storage)
        removed = sum(1 for key in pathfinder.all_keys() if self._storage.delete(key))
        self._logger.info(
            "local zip parts removed",
            extra={"druid": druid, "version": version, "removed": removed},
        )
        return removed
