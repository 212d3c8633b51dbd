"""Storage-driven walk of a root's druid tree into the catalog."""

from __future__ import annotations

import logging

from packages.preservation_shared.logging import get_logger
from services.preservation.audit_results import AuditResults
from services.preservation.moab_validation import MoabOnStorage, iter_moab_druids
from services.preservation.reconciliation.engine import ReconciliationEngine

_LOGGER = get_logger(__name__)


class MoabToCatalog:
    """Run existence checks or seeding for Moabs found on storage roots."""

    def __init__(
        self,
        *,
        engine: ReconciliationEngine,
        logger: logging.Logger | None = None,
    ) -> None:
        self._engine = engine
        self._logger = logger or _LOGGER

    def check_existence_for_druid(
        self, *, druid: str, storage_root_name: str
    ) -> AuditResults | None:
        """Reconcile one Moab found on ``storage_root_name``; ``None`` if absent."""
        moab = self._moab(druid, storage_root_name)
        if moab is None:
            return None
        version = moab.current_version()
        if version is None:
            self._logger.info(
                "moab object path does not exist",
                extra={"druid": druid, "storage_root": storage_root_name},
            )
            return None
        return self._engine.check_existence(
            druid=druid,
            incoming_version=version,
            incoming_size=moab.size(),
            storage_root_name=storage_root_name,
        )

    def check_existence_for_dir(self, *, storage_root_name: str) -> list[AuditResults]:
        """Reconcile every Moab under one storage root."""
        root = self._engine.storage_root_named(storage_root_name)
        if root is None:
            raise ValueError(f"unknown storage root: {storage_root_name}")
        self._logger.info("moab to catalog starting", extra={"storage_root": root.name})
        found: list[AuditResults] = []
        for druid in iter_moab_druids(root.storage_location):
            results = self.check_existence_for_druid(
                druid=druid, storage_root_name=root.name
            )
            if results is not None:
                found.append(results)
        self._logger.info(
            "moab to catalog finished",
            extra={"storage_root": root.name, "checked": len(found)},
        )
        return found

    def seed_catalog_for_dir(self, *, storage_root_name: str) -> list[AuditResults]:
        """Register every Moab under one storage root after validating it."""
        root = self._engine.storage_root_named(storage_root_name)
        if root is None:
            raise ValueError(f"unknown storage root: {storage_root_name}")
        seeded: list[AuditResults] = []
        for druid in iter_moab_druids(root.storage_location):
            moab = MoabOnStorage(druid=druid, storage_location=root.storage_location)
            version = moab.current_version()
            if version is None:
                continue
            seeded.append(
                self._engine.create_after_validation(
                    druid=druid,
                    incoming_version=version,
                    incoming_size=moab.size(),
                    storage_root_name=root.name,
                )
            )
        return seeded

    def _moab(self, druid: str, storage_root_name: str) -> MoabOnStorage | None:
        root = self._engine.storage_root_named(storage_root_name)
        if root is None:
            self._logger.warning(
                "unknown storage root", extra={"storage_root": storage_root_name}
            )
            return None
        return MoabOnStorage(druid=druid, storage_location=root.storage_location)
