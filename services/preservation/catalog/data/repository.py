"""Catalog persistence implementations over Postgres and in-process state."""

from __future__ import annotations

import copy
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import Table, delete, exists, func, select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from resources.substrates.postgres import (
    SchemaSessions,
    is_unique_violation,
    normalize_postgres_error,
)
from services.preservation.catalog.data.schema import (
    moab_records,
    moab_storage_roots,
    preserved_objects,
    zip_endpoints,
    zip_parts,
    zipped_moab_versions,
)
from services.preservation.catalog.domain import (
    MoabRecord,
    MoabRecordStatus,
    MoabStorageRoot,
    PreservedObject,
    ZipEndpoint,
    ZippedMoabVersion,
    ZippedMoabVersionStatus,
    ZipPart,
    ZipPartStatus,
)
from services.preservation.catalog.interfaces import (
    CatalogConflictError,
    CatalogError,
    CatalogTransaction,
)


class PostgresCatalogStore:
    """Catalog store over the service-owned Postgres schema."""

    def __init__(self, sessions: SchemaSessions) -> None:
        self._sessions = sessions

    @contextmanager
    def transaction(self) -> Iterator[CatalogTransaction]:
        """Yield one transaction; driver errors surface as ``CatalogError``."""
        try:
            with self._sessions.transaction() as session:
                yield PostgresCatalogTransaction(session)
        except SQLAlchemyError as exc:
            error = normalize_postgres_error(exc)
            if is_unique_violation(exc):
                raise CatalogConflictError.from_exception(exc, error=error) from exc
            raise CatalogError.from_exception(exc, error=error) from exc


class PostgresCatalogTransaction:
    """SQL catalog operations bound to one open session."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def find_or_create_storage_root(
        self, *, name: str, storage_location: str
    ) -> MoabStorageRoot:
        stmt = insert(moab_storage_roots).values(
            name=name, storage_location=storage_location
        )
        self._session.execute(
            stmt.on_conflict_do_nothing(constraint="uq_moab_storage_roots_name")
        )
        root = self.get_storage_root(name=name)
        if root is None:
            raise CatalogError(f"storage root {name} vanished after insert")
        return root

    def get_storage_root(self, *, name: str) -> MoabStorageRoot | None:
        row = self._one_or_none(
            select(moab_storage_roots).where(moab_storage_roots.c.name == name)
        )
        return None if row is None else _to_storage_root(row)

    def get_storage_root_by_id(self, *, storage_root_id: int) -> MoabStorageRoot | None:
        row = self._one_or_none(
            select(moab_storage_roots).where(moab_storage_roots.c.id == storage_root_id)
        )
        return None if row is None else _to_storage_root(row)

    def list_storage_roots(self) -> tuple[MoabStorageRoot, ...]:
        rows = self._all(select(moab_storage_roots).order_by(moab_storage_roots.c.name))
        return tuple(_to_storage_root(row) for row in rows)

    def find_or_create_zip_endpoint(
        self,
        *,
        endpoint_name: str,
        endpoint_node: str,
        storage_location: str,
        provider: str,
    ) -> ZipEndpoint:
        stmt = insert(zip_endpoints).values(
            endpoint_name=endpoint_name,
            endpoint_node=endpoint_node,
            storage_location=storage_location,
            provider=provider,
        )
        self._session.execute(
            stmt.on_conflict_do_nothing(constraint="uq_zip_endpoints_name")
        )
        endpoint = self.get_zip_endpoint(endpoint_name=endpoint_name)
        if endpoint is None:
            raise CatalogError(f"zip endpoint {endpoint_name} vanished after insert")
        return endpoint

    def get_zip_endpoint(self, *, endpoint_name: str) -> ZipEndpoint | None:
        row = self._one_or_none(
            select(zip_endpoints).where(zip_endpoints.c.endpoint_name == endpoint_name)
        )
        return None if row is None else _to_zip_endpoint(row)

    def get_zip_endpoint_by_id(self, *, zip_endpoint_id: int) -> ZipEndpoint | None:
        row = self._one_or_none(
            select(zip_endpoints).where(zip_endpoints.c.id == zip_endpoint_id)
        )
        return None if row is None else _to_zip_endpoint(row)

    def list_zip_endpoints(self) -> tuple[ZipEndpoint, ...]:
        rows = self._all(select(zip_endpoints).order_by(zip_endpoints.c.endpoint_name))
        return tuple(_to_zip_endpoint(row) for row in rows)

    def get_preserved_object(self, *, druid: str) -> PreservedObject | None:
        row = self._one_or_none(
            select(preserved_objects).where(preserved_objects.c.druid == druid)
        )
        return None if row is None else _to_preserved_object(row)

    def get_preserved_object_by_id(
        self, *, preserved_object_id: int
    ) -> PreservedObject | None:
        row = self._one_or_none(
            select(preserved_objects).where(
                preserved_objects.c.id == preserved_object_id
            )
        )
        return None if row is None else _to_preserved_object(row)

    def create_preserved_object(
        self, *, druid: str, current_version: int, now: datetime
    ) -> PreservedObject:
        stmt = (
            insert(preserved_objects)
            .values(
                druid=druid,
                current_version=current_version,
                created_at=now,
                updated_at=now,
            )
            .on_conflict_do_nothing(constraint="uq_preserved_objects_druid")
            .returning(*preserved_objects.c)
        )
        row = self._session.execute(stmt).mappings().one_or_none()
        if row is None:
            raise CatalogConflictError(f"preserved object {druid} already exists")
        return _to_preserved_object(row)

    def update_preserved_object(self, obj: PreservedObject) -> PreservedObject:
        return _to_preserved_object(
            self._update(
                preserved_objects,
                obj.id,
                current_version=obj.current_version,
                last_archive_audit=obj.last_archive_audit,
                updated_at=obj.updated_at,
            )
        )

    def preserved_objects_archive_audit_expired(
        self,
        *,
        before: datetime,
        limit: int,
        zip_endpoint_id: int | None = None,
    ) -> tuple[PreservedObject, ...]:
        column = preserved_objects.c.last_archive_audit
        stmt = select(preserved_objects).where(column.is_(None) | (column < before))
        if zip_endpoint_id is not None:
            stmt = stmt.where(
                exists()
                .where(zipped_moab_versions.c.preserved_object_id == preserved_objects.c.id)
                .where(zipped_moab_versions.c.zip_endpoint_id == zip_endpoint_id)
            )
        stmt = stmt.order_by(column.asc().nulls_first(), preserved_objects.c.id).limit(
            limit
        )
        return tuple(_to_preserved_object(row) for row in self._all(stmt))

    def get_moab_record(self, *, preserved_object_id: int) -> MoabRecord | None:
        row = self._one_or_none(
            select(moab_records).where(
                moab_records.c.preserved_object_id == preserved_object_id
            )
        )
        return None if row is None else _to_moab_record(row)

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
        stmt = (
            insert(moab_records)
            .values(
                preserved_object_id=preserved_object_id,
                moab_storage_root_id=moab_storage_root_id,
                version=version,
                size=size,
                status=status.value,
                last_version_audit=last_version_audit,
                last_moab_validation=last_moab_validation,
                last_checksum_validation=last_checksum_validation,
                created_at=now,
                updated_at=now,
            )
            .on_conflict_do_nothing(constraint="uq_moab_records_object")
            .returning(*moab_records.c)
        )
        row = self._session.execute(stmt).mappings().one_or_none()
        if row is None:
            raise CatalogConflictError(
                f"moab record for preserved object {preserved_object_id} already exists"
            )
        return _to_moab_record(row)

    def update_moab_record(self, record: MoabRecord) -> MoabRecord:
        return _to_moab_record(
            self._update(
                moab_records,
                record.id,
                moab_storage_root_id=record.moab_storage_root_id,
                version=record.version,
                size=record.size,
                status=record.status.value,
                status_details=record.status_details,
                last_version_audit=record.last_version_audit,
                last_moab_validation=record.last_moab_validation,
                last_checksum_validation=record.last_checksum_validation,
                updated_at=record.updated_at,
            )
        )

    def moab_records_version_audit_expired(
        self, *, moab_storage_root_id: int, before: datetime, limit: int
    ) -> tuple[MoabRecord, ...]:
        return self._expired_moab_records(
            moab_records.c.last_version_audit,
            moab_storage_root_id=moab_storage_root_id,
            before=before,
            limit=limit,
        )

    def moab_records_fixity_check_expired(
        self, *, moab_storage_root_id: int, before: datetime, limit: int
    ) -> tuple[MoabRecord, ...]:
        return self._expired_moab_records(
            moab_records.c.last_checksum_validation,
            moab_storage_root_id=moab_storage_root_id,
            before=before,
            limit=limit,
        )

    def count_moab_records_by_status(
        self, *, moab_storage_root_id: int
    ) -> dict[MoabRecordStatus, int]:
        rows = self._session.execute(
            select(moab_records.c.status, func.count())
            .where(moab_records.c.moab_storage_root_id == moab_storage_root_id)
            .group_by(moab_records.c.status)
        ).all()
        return {MoabRecordStatus(status): int(count) for status, count in rows}

    def find_or_create_zipped_moab_version(
        self,
        *,
        preserved_object_id: int,
        zip_endpoint_id: int,
        version: int,
        now: datetime,
    ) -> tuple[ZippedMoabVersion, bool]:
        stmt = (
            insert(zipped_moab_versions)
            .values(
                preserved_object_id=preserved_object_id,
                zip_endpoint_id=zip_endpoint_id,
                version=version,
                status=ZippedMoabVersionStatus.CREATED.value,
                status_updated_at=now,
                created_at=now,
                updated_at=now,
            )
            .on_conflict_do_nothing(
                constraint="uq_zipped_moab_versions_object_endpoint_version"
            )
            .returning(zipped_moab_versions.c.id)
        )
        created = self._session.execute(stmt).scalar_one_or_none() is not None
        record = self.get_zipped_moab_version(
            preserved_object_id=preserved_object_id,
            zip_endpoint_id=zip_endpoint_id,
            version=version,
        )
        if record is None:
            raise CatalogError("zipped moab version vanished after insert")
        return record, created

    def get_zipped_moab_version(
        self, *, preserved_object_id: int, zip_endpoint_id: int, version: int
    ) -> ZippedMoabVersion | None:
        row = self._one_or_none(
            select(zipped_moab_versions)
            .where(zipped_moab_versions.c.preserved_object_id == preserved_object_id)
            .where(zipped_moab_versions.c.zip_endpoint_id == zip_endpoint_id)
            .where(zipped_moab_versions.c.version == version)
        )
        return None if row is None else _to_zipped_moab_version(row)

    def list_zipped_moab_versions(
        self,
        *,
        preserved_object_id: int,
        zip_endpoint_id: int | None = None,
        version: int | None = None,
    ) -> tuple[ZippedMoabVersion, ...]:
        stmt = select(zipped_moab_versions).where(
            zipped_moab_versions.c.preserved_object_id == preserved_object_id
        )
        if zip_endpoint_id is not None:
            stmt = stmt.where(zipped_moab_versions.c.zip_endpoint_id == zip_endpoint_id)
        if version is not None:
            stmt = stmt.where(zipped_moab_versions.c.version == version)
        stmt = stmt.order_by(
            zipped_moab_versions.c.version, zipped_moab_versions.c.zip_endpoint_id
        )
        return tuple(_to_zipped_moab_version(row) for row in self._all(stmt))

    def update_zipped_moab_version(self, record: ZippedMoabVersion) -> ZippedMoabVersion:
        return _to_zipped_moab_version(
            self._update(
                zipped_moab_versions,
                record.id,
                zip_parts_count=record.zip_parts_count,
                status=record.status.value,
                status_details=record.status_details,
                status_updated_at=record.status_updated_at,
                updated_at=record.updated_at,
            )
        )

    def delete_zipped_moab_version(self, *, zipped_moab_version_id: int) -> None:
        self._session.execute(
            delete(zip_parts).where(
                zip_parts.c.zipped_moab_version_id == zipped_moab_version_id
            )
        )
        self._session.execute(
            delete(zipped_moab_versions).where(
                zipped_moab_versions.c.id == zipped_moab_version_id
            )
        )

    def find_or_create_zip_part(
        self,
        *,
        zipped_moab_version_id: int,
        suffix: str,
        size: int,
        md5: str,
        now: datetime,
    ) -> ZipPart:
        stmt = insert(zip_parts).values(
            zipped_moab_version_id=zipped_moab_version_id,
            suffix=suffix,
            size=size,
            md5=md5,
            status=ZipPartStatus.UNREPLICATED.value,
            created_at=now,
            updated_at=now,
        )
        self._session.execute(
            stmt.on_conflict_do_nothing(constraint="uq_zip_parts_version_suffix")
        )
        row = self._one_or_none(
            select(zip_parts)
            .where(zip_parts.c.zipped_moab_version_id == zipped_moab_version_id)
            .where(zip_parts.c.suffix == suffix)
        )
        if row is None:
            raise CatalogError(f"zip part {suffix} vanished after insert")
        return _to_zip_part(row)

    def list_zip_parts(self, *, zipped_moab_version_id: int) -> tuple[ZipPart, ...]:
        rows = self._all(
            select(zip_parts)
            .where(zip_parts.c.zipped_moab_version_id == zipped_moab_version_id)
            .order_by(zip_parts.c.suffix)
        )
        return tuple(_to_zip_part(row) for row in rows)

    def update_zip_part_status(
        self, *, zip_part_id: int, status: ZipPartStatus, now: datetime
    ) -> ZipPart:
        return _to_zip_part(
            self._update(zip_parts, zip_part_id, status=status.value, updated_at=now)
        )

    def _expired_moab_records(
        self,
        column: Any,
        *,
        moab_storage_root_id: int,
        before: datetime,
        limit: int,
    ) -> tuple[MoabRecord, ...]:
        """Return stale records on one root, never-checked rows first."""
        stmt = (
            select(moab_records)
            .where(moab_records.c.moab_storage_root_id == moab_storage_root_id)
            .where(column.is_(None) | (column < before))
            .order_by(column.asc().nulls_first(), moab_records.c.id)
            .limit(limit)
        )
        return tuple(_to_moab_record(row) for row in self._all(stmt))

    def _update(self, table: Table, row_id: int, **values: Any) -> Mapping[str, Any]:
        """Update one row by id and return the stored values."""
        row = (
            self._session.execute(
                update(table)
                .where(table.c.id == row_id)
                .values(**values)
                .returning(*table.c)
            )
            .mappings()
            .one_or_none()
        )
        if row is None:
            raise CatalogError(f"{table.name} row {row_id} does not exist")
        return row

    def _one_or_none(self, stmt: Any) -> Mapping[str, Any] | None:
        return self._session.execute(stmt).mappings().one_or_none()

    def _all(self, stmt: Any) -> list[Mapping[str, Any]]:
        return list(self._session.execute(stmt).mappings().all())


@dataclass
class _CatalogState:
    """Mutable table contents for the in-memory catalog."""

    storage_roots: dict[int, MoabStorageRoot] = field(default_factory=dict)
    zip_endpoints: dict[int, ZipEndpoint] = field(default_factory=dict)
    preserved_objects: dict[int, PreservedObject] = field(default_factory=dict)
    moab_records: dict[int, MoabRecord] = field(default_factory=dict)
    zipped_moab_versions: dict[int, ZippedMoabVersion] = field(default_factory=dict)
    zip_parts: dict[int, ZipPart] = field(default_factory=dict)
    next_id: int = 1


class InMemoryCatalogStore:
    """In-process catalog with snapshot rollback, for tests and local tooling.

    ``failures`` maps operation names to exceptions raised the next time that
    operation runs inside a transaction.
    """

    def __init__(self) -> None:
        self._state = _CatalogState()
        self.failures: dict[str, Exception] = {}
        self.commits = 0
        self.rollbacks = 0

    @contextmanager
    def transaction(self) -> Iterator[CatalogTransaction]:
        """Yield one transaction; restore the prior snapshot on error."""
        snapshot = copy.deepcopy(self._state)
        try:
            yield InMemoryCatalogTransaction(self._state, self.failures)
        except Exception:
            self._state = snapshot
            self.rollbacks += 1
            raise
        self.commits += 1


class InMemoryCatalogTransaction:
    """Catalog operations over ``_CatalogState`` dictionaries."""

    def __init__(self, state: _CatalogState, failures: dict[str, Exception]) -> None:
        self._state = state
        self._failures = failures

    def find_or_create_storage_root(
        self, *, name: str, storage_location: str
    ) -> MoabStorageRoot:
        existing = self.get_storage_root(name=name)
        if existing is not None:
            return existing
        root = MoabStorageRoot(
            id=self._next_id(), name=name, storage_location=storage_location
        )
        self._state.storage_roots[root.id] = root
        return root

    def get_storage_root(self, *, name: str) -> MoabStorageRoot | None:
        return next(
            (r for r in self._state.storage_roots.values() if r.name == name), None
        )

    def get_storage_root_by_id(self, *, storage_root_id: int) -> MoabStorageRoot | None:
        return self._state.storage_roots.get(storage_root_id)

    def list_storage_roots(self) -> tuple[MoabStorageRoot, ...]:
        return tuple(sorted(self._state.storage_roots.values(), key=lambda r: r.name))

    def find_or_create_zip_endpoint(
        self,
        *,
        endpoint_name: str,
        endpoint_node: str,
        storage_location: str,
        provider: str,
    ) -> ZipEndpoint:
        existing = self.get_zip_endpoint(endpoint_name=endpoint_name)
        if existing is not None:
            return existing
        endpoint = ZipEndpoint(
            id=self._next_id(),
            endpoint_name=endpoint_name,
            endpoint_node=endpoint_node,
            storage_location=storage_location,
            provider=provider,
        )
        self._state.zip_endpoints[endpoint.id] = endpoint
        return endpoint

    def get_zip_endpoint(self, *, endpoint_name: str) -> ZipEndpoint | None:
        return next(
            (
                e
                for e in self._state.zip_endpoints.values()
                if e.endpoint_name == endpoint_name
            ),
            None,
        )

    def get_zip_endpoint_by_id(self, *, zip_endpoint_id: int) -> ZipEndpoint | None:
        return self._state.zip_endpoints.get(zip_endpoint_id)

    def list_zip_endpoints(self) -> tuple[ZipEndpoint, ...]:
        return tuple(
            sorted(self._state.zip_endpoints.values(), key=lambda e: e.endpoint_name)
        )

    def get_preserved_object(self, *, druid: str) -> PreservedObject | None:
        return next(
            (o for o in self._state.preserved_objects.values() if o.druid == druid),
            None,
        )

    def get_preserved_object_by_id(
        self, *, preserved_object_id: int
    ) -> PreservedObject | None:
        return self._state.preserved_objects.get(preserved_object_id)

    def create_preserved_object(
        self, *, druid: str, current_version: int, now: datetime
    ) -> PreservedObject:
        self._maybe_fail("create_preserved_object")
        if self.get_preserved_object(druid=druid) is not None:
            raise CatalogConflictError(f"preserved object {druid} already exists")
        obj = PreservedObject(
            id=self._next_id(),
            druid=druid,
            current_version=current_version,
            created_at=now,
            updated_at=now,
        )
        self._state.preserved_objects[obj.id] = obj
        return obj

    def update_preserved_object(self, obj: PreservedObject) -> PreservedObject:
        self._maybe_fail("update_preserved_object")
        self._require(self._state.preserved_objects, obj.id)
        self._state.preserved_objects[obj.id] = obj
        return obj

    def preserved_objects_archive_audit_expired(
        self,
        *,
        before: datetime,
        limit: int,
        zip_endpoint_id: int | None = None,
    ) -> tuple[PreservedObject, ...]:
        candidates = [
            o
            for o in self._state.preserved_objects.values()
            if o.last_archive_audit is None or o.last_archive_audit < before
        ]
        if zip_endpoint_id is not None:
            with_replicas = {
                z.preserved_object_id
                for z in self._state.zipped_moab_versions.values()
                if z.zip_endpoint_id == zip_endpoint_id
            }
            candidates = [o for o in candidates if o.id in with_replicas]
        candidates.sort(key=lambda o: _nulls_first(o.last_archive_audit, o.id))
        return tuple(candidates[:limit])

    def get_moab_record(self, *, preserved_object_id: int) -> MoabRecord | None:
        return next(
            (
                r
                for r in self._state.moab_records.values()
                if r.preserved_object_id == preserved_object_id
            ),
            None,
        )

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
        self._maybe_fail("create_moab_record")
        if self.get_moab_record(preserved_object_id=preserved_object_id) is not None:
            raise CatalogConflictError(
                f"moab record for preserved object {preserved_object_id} already exists"
            )
        record = MoabRecord(
            id=self._next_id(),
            preserved_object_id=preserved_object_id,
            moab_storage_root_id=moab_storage_root_id,
            version=version,
            size=size,
            status=status,
            last_version_audit=last_version_audit,
            last_moab_validation=last_moab_validation,
            last_checksum_validation=last_checksum_validation,
            created_at=now,
            updated_at=now,
        )
        self._state.moab_records[record.id] = record
        return record

    def update_moab_record(self, record: MoabRecord) -> MoabRecord:
        self._maybe_fail("update_moab_record")
        self._require(self._state.moab_records, record.id)
        self._state.moab_records[record.id] = record
        return record

    def moab_records_version_audit_expired(
        self, *, moab_storage_root_id: int, before: datetime, limit: int
    ) -> tuple[MoabRecord, ...]:
        return self._expired(
            "last_version_audit", moab_storage_root_id, before=before, limit=limit
        )

    def moab_records_fixity_check_expired(
        self, *, moab_storage_root_id: int, before: datetime, limit: int
    ) -> tuple[MoabRecord, ...]:
        return self._expired(
            "last_checksum_validation", moab_storage_root_id, before=before, limit=limit
        )

    def count_moab_records_by_status(
        self, *, moab_storage_root_id: int
    ) -> dict[MoabRecordStatus, int]:
        counts: dict[MoabRecordStatus, int] = {}
        for record in self._state.moab_records.values():
            if record.moab_storage_root_id == moab_storage_root_id:
                counts[record.status] = counts.get(record.status, 0) + 1
        return counts

    def find_or_create_zipped_moab_version(
        self,
        *,
        preserved_object_id: int,
        zip_endpoint_id: int,
        version: int,
        now: datetime,
    ) -> tuple[ZippedMoabVersion, bool]:
        existing = self.get_zipped_moab_version(
            preserved_object_id=preserved_object_id,
            zip_endpoint_id=zip_endpoint_id,
            version=version,
        )
        if existing is not None:
            return existing, False
        record = ZippedMoabVersion(
            id=self._next_id(),
            preserved_object_id=preserved_object_id,
            zip_endpoint_id=zip_endpoint_id,
            version=version,
            status_updated_at=now,
            created_at=now,
            updated_at=now,
        )
        self._state.zipped_moab_versions[record.id] = record
        return record, True

    def get_zipped_moab_version(
        self, *, preserved_object_id: int, zip_endpoint_id: int, version: int
    ) -> ZippedMoabVersion | None:
        matches = self.list_zipped_moab_versions(
            preserved_object_id=preserved_object_id,
            zip_endpoint_id=zip_endpoint_id,
            version=version,
        )
        return matches[0] if matches else None

    def list_zipped_moab_versions(
        self,
        *,
        preserved_object_id: int,
        zip_endpoint_id: int | None = None,
        version: int | None = None,
    ) -> tuple[ZippedMoabVersion, ...]:
        rows = [
            z
            for z in self._state.zipped_moab_versions.values()
            if z.preserved_object_id == preserved_object_id
            and (zip_endpoint_id is None or z.zip_endpoint_id == zip_endpoint_id)
            and (version is None or z.version == version)
        ]
        return tuple(sorted(rows, key=lambda z: (z.version, z.zip_endpoint_id)))

    def update_zipped_moab_version(self, record: ZippedMoabVersion) -> ZippedMoabVersion:
        self._maybe_fail("update_zipped_moab_version")
        self._require(self._state.zipped_moab_versions, record.id)
        self._state.zipped_moab_versions[record.id] = record
        return record

    def delete_zipped_moab_version(self, *, zipped_moab_version_id: int) -> None:
        self._maybe_fail("delete_zipped_moab_version")
        self._state.zip_parts = {
            key: part
            for key, part in self._state.zip_parts.items()
            if part.zipped_moab_version_id != zipped_moab_version_id
        }
        self._state.zipped_moab_versions.pop(zipped_moab_version_id, None)

    def find_or_create_zip_part(
        self,
        *,
        zipped_moab_version_id: int,
        suffix: str,
        size: int,
        md5: str,
        now: datetime,
    ) -> ZipPart:
        for part in self._state.zip_parts.values():
            if part.zipped_moab_version_id == zipped_moab_version_id and part.suffix == suffix:
                return part
        part = ZipPart(
            id=self._next_id(),
            zipped_moab_version_id=zipped_moab_version_id,
            suffix=suffix,
            size=size,
            md5=md5,
            created_at=now,
            updated_at=now,
        )
        self._state.zip_parts[part.id] = part
        return part

    def list_zip_parts(self, *, zipped_moab_version_id: int) -> tuple[ZipPart, ...]:
        rows = [
            p
            for p in self._state.zip_parts.values()
            if p.zipped_moab_version_id == zipped_moab_version_id
        ]
        return tuple(sorted(rows, key=lambda p: p.suffix))

    def update_zip_part_status(
        self, *, zip_part_id: int, status: ZipPartStatus, now: datetime
    ) -> ZipPart:
        self._maybe_fail("update_zip_part_status")
        part = self._require(self._state.zip_parts, zip_part_id)
        updated = part.model_copy(update={"status": status, "updated_at": now})
        self._state.zip_parts[zip_part_id] = updated
        return updated

    def _expired(
        self,
        attribute: str,
        moab_storage_root_id: int,
        *,
        before: datetime,
        limit: int,
    ) -> tuple[MoabRecord, ...]:
        rows = [
            r
            for r in self._state.moab_records.values()
            if r.moab_storage_root_id == moab_storage_root_id
            and (getattr(r, attribute) is None or getattr(r, attribute) < before)
        ]
        rows.sort(key=lambda r: _nulls_first(getattr(r, attribute), r.id))
        return tuple(rows[:limit])

    def _maybe_fail(self, operation: str) -> None:
        error = self._failures.pop(operation, None)
        if error is not None:
            raise error

    def _next_id(self) -> int:
        value = self._state.next_id
        self._state.next_id += 1
        return value

    @staticmethod
    def _require(table: dict[int, Any], row_id: int) -> Any:
        if row_id not in table:
            raise CatalogError(f"row {row_id} does not exist")
        return table[row_id]


def _nulls_first(value: datetime | None, row_id: int) -> tuple[int, datetime, int]:
    """Sort key placing ``None`` timestamps before every real timestamp."""
    if value is None:
        return (0, datetime.min.replace(tzinfo=UTC), row_id)
    return (1, value, row_id)


def _utc(value: datetime | None) -> datetime | None:
    """Normalize driver datetimes to timezone-aware UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _to_storage_root(row: Mapping[str, Any]) -> MoabStorageRoot:
    return MoabStorageRoot(
        id=int(row["id"]),
        name=str(row["name"]),
        storage_location=str(row["storage_location"]),
    )


def _to_zip_endpoint(row: Mapping[str, Any]) -> ZipEndpoint:
    return ZipEndpoint(
        id=int(row["id"]),
        endpoint_name=str(row["endpoint_name"]),
        endpoint_node=str(row["endpoint_node"]),
        storage_location=str(row["storage_location"]),
        provider=str(row["provider"]),
    )


def _to_preserved_object(row: Mapping[str, Any]) -> PreservedObject:
    return PreservedObject(
        id=int(row["id"]),
        druid=str(row["druid"]),
        current_version=int(row["current_version"]),
        last_archive_audit=_utc(row["last_archive_audit"]),
        created_at=_utc(row["created_at"]),
        updated_at=_utc(row["updated_at"]),
    )


def _to_moab_record(row: Mapping[str, Any]) -> MoabRecord:
    return MoabRecord(
        id=int(row["id"]),
        preserved_object_id=int(row["preserved_object_id"]),
        moab_storage_root_id=int(row["moab_storage_root_id"]),
        version=int(row["version"]),
        size=None if row["size"] is None else int(row["size"]),
        status=MoabRecordStatus(row["status"]),
        status_details=row["status_details"],
        last_version_audit=_utc(row["last_version_audit"]),
        last_moab_validation=_utc(row["last_moab_validation"]),
        last_checksum_validation=_utc(row["last_checksum_validation"]),
        created_at=_utc(row["created_at"]),
        updated_at=_utc(row["updated_at"]),
    )


def _to_zipped_moab_version(row: Mapping[str, Any]) -> ZippedMoabVersion:
    return ZippedMoabVersion(
        id=int(row["id"]),
        preserved_object_id=int(row["preserved_object_id"]),
        zip_endpoint_id=int(row["zip_endpoint_id"]),
        version=int(row["version"]),
        zip_parts_count=(
            None if row["zip_parts_count"] is None else int(row["zip_parts_count"])
        ),
        status=ZippedMoabVersionStatus(row["status"]),
        status_details=row["status_details"],
        status_updated_at=_utc(row["status_updated_at"]),
        created_at=_utc(row["created_at"]),
        updated_at=_utc(row["updated_at"]),
    )


def _to_zip_part(row: Mapping[str, Any]) -> ZipPart:
    return ZipPart(
        id=int(row["id"]),
        zipped_moab_version_id=int(row["zipped_moab_version_id"]),
        suffix=str(row["suffix"]),
        size=int(row["size"]),
        md5=str(row["md5"]),
        status=ZipPartStatus(row["status"]),
        created_at=_utc(row["created_at"]),
        updated_at=_utc(row["updated_at"]),
    )
