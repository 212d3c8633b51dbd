"""Transport-neutral protocol interfaces for catalog persistence.

Every reconciliation or audit pass runs against one ``CatalogTransaction``
obtained from ``CatalogStore.transaction()``; leaving the block normally
commits, raising rolls back every write made inside it.
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from datetime import datetime
from typing import Protocol

from packages.preservation_shared.errors import ErrorDetail, exception_summary
from services.preservation.catalog.domain import (
    MoabRecord,
    MoabRecordStatus,
    MoabStorageRoot,
    PreservedObject,
    ZipEndpoint,
    ZippedMoabVersion,
    ZipPart,
    ZipPartStatus,
)


class CatalogError(Exception):
    """Raised when a catalog read or write fails."""

    def __init__(
        self,
        message: str,
        *,
        summary: str | None = None,
        error: ErrorDetail | None = None,
    ) -> None:
        super().__init__(message)
        self.summary = summary or f"{type(self).__name__}: {message}"
        self.error = error

    @classmethod
    def from_exception(
        cls, exc: BaseException, *, error: ErrorDetail | None = None
    ) -> "CatalogError":
        """Wrap a driver exception, keeping ``Class: message`` text."""
        return cls(str(exc), summary=exception_summary(exc), error=error)


class CatalogConflictError(CatalogError):
    """Raised when a write collides with a unique constraint."""


class CatalogTransaction(Protocol):
    """Catalog operations bound to one open transaction."""

    def find_or_create_storage_root(
        self, *, name: str, storage_location: str
    ) -> MoabStorageRoot:
        """Return the storage root named ``name``, inserting it if absent."""

    def get_storage_root(self, *, name: str) -> MoabStorageRoot | None:
        """Return one storage root by name."""

    def get_storage_root_by_id(self, *, storage_root_id: int) -> MoabStorageRoot | None:
        """Return one storage root by primary key."""

    def list_storage_roots(self) -> tuple[MoabStorageRoot, ...]:
        """Return every storage root ordered by name."""

    def find_or_create_zip_endpoint(
        self,
        *,
        endpoint_name: str,
        endpoint_node: str,
        storage_location: str,
        provider: str,
    ) -> ZipEndpoint:
        """Return the endpoint named ``endpoint_name``, inserting it if absent."""

    def get_zip_endpoint(self, *, endpoint_name: str) -> ZipEndpoint | None:
        """Return one endpoint by name."""

    def get_zip_endpoint_by_id(self, *, zip_endpoint_id: int) -> ZipEndpoint | None:
        """Return one endpoint by primary key."""

    def list_zip_endpoints(self) -> tuple[ZipEndpoint, ...]:
        """Return every endpoint ordered by name."""

    def get_preserved_object(self, *, druid: str) -> PreservedObject | None:
        """Return one preserved object by bare druid."""

    def get_preserved_object_by_id(
        self, *, preserved_object_id: int
    ) -> PreservedObject | None:
        """Return one preserved object by primary key."""

    def create_preserved_object(
        self, *, druid: str, current_version: int, now: datetime
    ) -> PreservedObject:
        """Insert one preserved object; raise ``CatalogConflictError`` on duplicates."""

    def update_preserved_object(self, obj: PreservedObject) -> PreservedObject:
        """Persist version and audit fields of ``obj``."""

    def preserved_objects_archive_audit_expired(
        self,
        *,
        before: datetime,
        limit: int,
        zip_endpoint_id: int | None = None,
    ) -> tuple[PreservedObject, ...]:
        """Return objects whose archive audit predates ``before``, never-audited first.

        When ``zip_endpoint_id`` is given only objects with a replica record on
        that endpoint are considered.
        """

    def get_moab_record(self, *, preserved_object_id: int) -> MoabRecord | None:
        """Return the primary Moab record for one object."""

    def create_moab_record(
        self,
        *,
        preserved_object_id: int,
        moab_storage_root_id: int,
        version: int,
        size: int | None,
        status: MoabRecordStatus,
        now: datetime,
        last_version_audit: datetime | None = None,
        last_moab_validation: datetime | None = None,
        last_checksum_validation: datetime | None = None,
    ) -> MoabRecord:
        """Insert one Moab record; raise ``CatalogConflictError`` on duplicates."""

    def update_moab_record(self, record: MoabRecord) -> MoabRecord:
        """Persist mutable fields of ``record``."""

    def moab_records_version_audit_expired(
        self, *, moab_storage_root_id: int, before: datetime, limit: int
    ) -> tuple[MoabRecord, ...]:
        """Return records on one root by ``last_version_audit`` nulls first."""

    def moab_records_fixity_check_expired(
        self, *, moab_storage_root_id: int, before: datetime, limit: int
    ) -> tuple[MoabRecord, ...]:
        """Return records on one root by ``last_checksum_validation`` nulls first."""

    def count_moab_records_by_status(
        self, *, moab_storage_root_id: int
    ) -> dict[MoabRecordStatus, int]:
        """Return record counts per status for one root."""

    def find_or_create_zipped_moab_version(
        self,
        *,
        preserved_object_id: int,
        zip_endpoint_id: int,
        version: int,
        now: datetime,
    ) -> tuple[ZippedMoabVersion, bool]:
        """Return the replica record and whether this call created it."""

    def get_zipped_moab_version(
        self, *, preserved_object_id: int, zip_endpoint_id: int, version: int
    ) -> ZippedMoabVersion | None:
        """Return one replica record by its natural key."""

    def list_zipped_moab_versions(
        self,
        *,
        preserved_object_id: int,
        zip_endpoint_id: int | None = None,
        version: int | None = None,
    ) -> tuple[ZippedMoabVersion, ...]:
        """Return replica records for one object ordered by version and endpoint."""

    def update_zipped_moab_version(self, record: ZippedMoabVersion) -> ZippedMoabVersion:
        """Persist mutable fields of ``record``."""

    def delete_zipped_moab_version(self, *, zipped_moab_version_id: int) -> None:
        """Delete one replica record together with its parts."""

    def find_or_create_zip_part(
        self,
        *,
        zipped_moab_version_id: int,
        suffix: str,
        size: int,
        md5: str,
        now: datetime,
    ) -> ZipPart:
        """Return the part with ``suffix``, inserting it if absent."""

    def list_zip_parts(self, *, zipped_moab_version_id: int) -> tuple[ZipPart, ...]:
        """Return parts of one replica record ordered by suffix."""

    def update_zip_part_status(
        self, *, zip_part_id: int, status: ZipPartStatus, now: datetime
    ) -> ZipPart:
        """Set one part status."""


class CatalogStore(Protocol):
    """Factory for catalog transactions."""

    def transaction(self) -> AbstractContextManager[CatalogTransaction]:
        """Open one transaction; commit on clean exit, roll back on error."""

