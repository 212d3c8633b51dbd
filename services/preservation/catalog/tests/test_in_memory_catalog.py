"""Behavior tests for the in-memory catalog store."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from services.preservation.catalog import (
    CatalogConflictError,
    CatalogError,
    MoabRecordStatus,
    ZipPartStatus,
)
from services.preservation.catalog.data import InMemoryCatalogStore

NOW = datetime(2026, 1, 5, 12, 0, tzinfo=UTC)


def test_rollback_restores_prior_state() -> None:
    """Writes made before an exception should not survive the transaction."""
    store = InMemoryCatalogStore()

    with pytest.raises(RuntimeError):
        with store.transaction() as tx:
            tx.create_preserved_object(druid="ab123cd4567", current_version=1, now=NOW)
            raise RuntimeError("boom")

    with store.transaction() as tx:
        assert tx.get_preserved_object(druid="ab123cd4567") is None
    assert store.rollbacks == 1


def test_duplicate_preserved_object_raises_conflict() -> None:
    """Creating the same druid twice should be a conflict, not a second row."""
    store = InMemoryCatalogStore()
    with store.transaction() as tx:
        tx.create_preserved_object(druid="ab123cd4567", current_version=1, now=NOW)

    with pytest.raises(CatalogConflictError) as exc_info:
        with store.transaction() as tx:
            tx.create_preserved_object(druid="ab123cd4567", current_version=2, now=NOW)

    assert exc_info.value.summary.startswith("CatalogConflictError: ")


def test_injected_failure_raises_once() -> None:
    """Configured failures fire on the next matching operation only."""
    store = InMemoryCatalogStore()
    store.failures["create_preserved_object"] = CatalogError(
        "connection lost", summary="OperationalError: connection lost"
    )

    with pytest.raises(CatalogError):
        with store.transaction() as tx:
            tx.create_preserved_object(druid="ab123cd4567", current_version=1, now=NOW)
    with store.transaction() as tx:
        tx.create_preserved_object(druid="ab123cd4567", current_version=1, now=NOW)


def test_fixity_expired_orders_never_checked_first() -> None:
    """Staleness scans should return null timestamps before old ones."""
    store = InMemoryCatalogStore()
    with store.transaction() as tx:
        root = tx.find_or_create_storage_root(name="sr1", storage_location="/sr1")
        druids = ("bb111bb1111", "bb222bb2222", "bb333bb3333")
        checked = (NOW - timedelta(days=10), None, NOW)
        for druid, last_checked in zip(druids, checked):
            obj = tx.create_preserved_object(druid=druid, current_version=1, now=NOW)
            tx.create_moab_record(
                preserved_object_id=obj.id,
                moab_storage_root_id=root.id,
                version=1,
                size=10,
                status=MoabRecordStatus.OK,
                now=NOW,
                last_checksum_validation=last_checked,
            )

        expired = tx.moab_records_fixity_check_expired(
            moab_storage_root_id=root.id, before=NOW - timedelta(days=1), limit=10
        )

    assert [r.last_checksum_validation for r in expired] == [None, NOW - timedelta(days=10)]


def test_find_or_create_zipped_moab_version_reports_creation() -> None:
    """Only the first call for a natural key should report a creation."""
    store = InMemoryCatalogStore()
    with store.transaction() as tx:
        obj = tx.create_preserved_object(druid="ab123cd4567", current_version=1, now=NOW)
        endpoint = tx.find_or_create_zip_endpoint(
            endpoint_name="aws_s3_west_2",
            endpoint_node="s3.us-west-2.amazonaws.com",
            storage_location="bucket",
            provider="s3",
        )
        first, created = tx.find_or_create_zipped_moab_version(
            preserved_object_id=obj.id, zip_endpoint_id=endpoint.id, version=1, now=NOW
        )
        second, created_again = tx.find_or_create_zipped_moab_version(
            preserved_object_id=obj.id, zip_endpoint_id=endpoint.id, version=1, now=NOW
        )

    assert created is True
    assert created_again is False
    assert first.id == second.id


def test_delete_zipped_moab_version_removes_parts() -> None:
    """Deleting a replica record should delete its parts with it."""
    store = InMemoryCatalogStore()
    with store.transaction() as tx:
        obj = tx.create_preserved_object(druid="ab123cd4567", current_version=1, now=NOW)
        endpoint = tx.find_or_create_zip_endpoint(
            endpoint_name="e1", endpoint_node="n", storage_location="b", provider="s3"
        )
        record, _ = tx.find_or_create_zipped_moab_version(
            preserved_object_id=obj.id, zip_endpoint_id=endpoint.id, version=1, now=NOW
        )
        part = tx.find_or_create_zip_part(
            zipped_moab_version_id=record.id,
            suffix=".zip",
            size=5,
            md5="0" * 32,
            now=NOW,
        )
        tx.update_zip_part_status(zip_part_id=part.id, status=ZipPartStatus.OK, now=NOW)
        tx.delete_zipped_moab_version(zipped_moab_version_id=record.id)

        assert tx.list_zip_parts(zipped_moab_version_id=record.id) == ()
        assert tx.list_zipped_moab_versions(preserved_object_id=obj.id) == ()
