"""Real-provider integration tests for the Postgres catalog store."""

from __future__ import annotations

import pytest

from services.preservation.catalog import MoabRecordStatus, utc_now

pytestmark = pytest.mark.integration


def test_catalog_roundtrip_against_real_postgres(catalog_runtime) -> None:
    """Creates, updates and race-safe find-or-create should work on Postgres."""
    store = catalog_runtime.store()
    druid = "zz999zz9999"
    now = utc_now()

    with store.transaction() as tx:
        root = tx.find_or_create_storage_root(name="int_sr", storage_location="/int/sr")
        obj = tx.get_preserved_object(druid=druid)
        if obj is None:
            obj = tx.create_preserved_object(druid=druid, current_version=1, now=now)
            tx.create_moab_record(
                preserved_object_id=obj.id,
                moab_storage_root_id=root.id,
                version=1,
                size=10,
                status=MoabRecordStatus.VALIDITY_UNKNOWN,
                now=now,
            )

    with store.transaction() as tx:
        record = tx.get_moab_record(preserved_object_id=obj.id)
        assert record is not None
        updated = tx.update_moab_record(
            record.model_copy(update={"status": MoabRecordStatus.OK, "updated_at": utc_now()})
        )
        assert updated.status == MoabRecordStatus.OK
        again = tx.find_or_create_storage_root(name="int_sr", storage_location="/int/sr")
        assert again.id == root.id
