"""Behavior tests for catalog audits, storage walks and checksum validation."""

from __future__ import annotations

import shutil
from datetime import timedelta
from pathlib import Path

from services.preservation.audit_results import ResultCode, ResultsReporter
from services.preservation.catalog import MoabRecordStatus, MoabStorageRoot
from services.preservation.catalog.data import InMemoryCatalogStore
from services.preservation.reconciliation import (
    CatalogToMoab,
    ChecksumValidationService,
    MoabToCatalog,
    ReconciliationEngine,
    catalog_audit_batch,
    fixity_check_batch,
)
from tests.support.catalog_fixtures import (
    FIXED_NOW,
    catalog_moab,
    load_moab_state,
    store_with_root,
)
from tests.support.moab_fixtures import build_moab, version_path

DRUID = "bj102hs9687"
OTHER_DRUID = "cd456gh7890"


def _versions(count: int) -> list[dict[str, bytes]]:
    return [
        {f"content/file{n}.txt": f"content {n}".encode(), "metadata/m.xml": f"<m{n}/>".encode()}
        for n in range(1, count + 1)
    ]


def _engine(
    store: InMemoryCatalogStore,
    root: MoabStorageRoot,
    replicated: list[tuple[str, int]] | None = None,
) -> ReconciliationEngine:
    sink = replicated if replicated is not None else []
    return ReconciliationEngine(
        store=store,
        storage_roots=[root],
        reporter=ResultsReporter(sinks=[]),
        replication_trigger=lambda *, druid, version: sink.append((druid, version)),
        clock=lambda: FIXED_NOW,
    )


def test_checksum_validation_promotes_validity_unknown_to_ok(tmp_path: Path) -> None:
    """Only a run that recorded matching checksums may set ``ok``."""
    store, root = store_with_root(str(tmp_path))
    build_moab(tmp_path, DRUID, _versions(2))
    catalog_moab(store, root, DRUID, version=2, status=MoabRecordStatus.VALIDITY_UNKNOWN)
    service = ChecksumValidationService(
        store=store, reporter=ResultsReporter(sinks=[]), clock=lambda: FIXED_NOW
    )

    results = service.validate_checksums(druid=DRUID)

    assert results is not None
    assert results.contains_result_code(ResultCode.MOAB_CHECKSUM_VALID)
    record = load_moab_state(store, DRUID)[1]
    assert record.status == MoabRecordStatus.OK
    assert record.last_checksum_validation == FIXED_NOW
    assert record.last_moab_validation == FIXED_NOW


def test_checksum_validation_flags_corrupted_file(tmp_path: Path) -> None:
    store, root = store_with_root(str(tmp_path))
    build_moab(tmp_path, DRUID, _versions(2))
    catalog_moab(store, root, DRUID, version=2)
    (version_path(tmp_path, DRUID, 2) / "data" / "content" / "file2.txt").write_bytes(b"rot")
    service = ChecksumValidationService(
        store=store, reporter=ResultsReporter(sinks=[]), clock=lambda: FIXED_NOW
    )

    results = service.validate_checksums(druid=DRUID)

    assert results is not None
    assert results.contains_result_code(ResultCode.MOAB_FILE_CHECKSUM_MISMATCH)
    assert load_moab_state(store, DRUID)[1].status == MoabRecordStatus.INVALID_CHECKSUM


def test_checksum_validation_marks_missing_moab(tmp_path: Path) -> None:
    store, root = store_with_root(str(tmp_path))
    catalog_moab(store, root, DRUID, version=1)
    service = ChecksumValidationService(store=store, reporter=ResultsReporter(sinks=[]))

    results = service.validate_checksums(druid=DRUID)

    assert results is not None
    assert results.contains_result_code(ResultCode.MOAB_NOT_FOUND)
    record = load_moab_state(store, DRUID)[1]
    assert record.status == MoabRecordStatus.MOAB_ON_STORAGE_NOT_FOUND


def test_checksum_validation_skips_uncataloged_druid(tmp_path: Path) -> None:
    store, _root = store_with_root(str(tmp_path))
    service = ChecksumValidationService(store=store, reporter=ResultsReporter(sinks=[]))

    assert service.validate_checksums(druid=DRUID) is None


def test_catalog_to_moab_hands_newer_moab_to_update(tmp_path: Path) -> None:
    """A newer Moab should be validated, then advanced by a separate update pass."""
    store, root = store_with_root(str(tmp_path))
    build_moab(tmp_path, DRUID, _versions(3))
    catalog_moab(store, root, DRUID, version=2)
    replicated: list[tuple[str, int]] = []
    audit = CatalogToMoab(
        store=store,
        reporter=ResultsReporter(sinks=[]),
        engine=_engine(store, root, replicated),
        clock=lambda: FIXED_NOW,
    )

    results = audit.check_catalog_version(druid=DRUID)

    assert results is not None
    assert results.check_name == "check_catalog_version"
    preserved_object, record = load_moab_state(store, DRUID)
    assert preserved_object.current_version == 3
    assert record.version == 3
    assert record.status == MoabRecordStatus.VALIDITY_UNKNOWN
    assert replicated == [(DRUID, 3)]


def test_catalog_to_moab_matching_version(tmp_path: Path) -> None:
    store, root = store_with_root(str(tmp_path))
    build_moab(tmp_path, DRUID, _versions(2))
    catalog_moab(store, root, DRUID, version=2)
    audit = CatalogToMoab(
        store=store,
        reporter=ResultsReporter(sinks=[]),
        engine=_engine(store, root),
        clock=lambda: FIXED_NOW,
    )

    results = audit.check_catalog_version(druid=DRUID)

    assert results is not None
    assert [r.code for r in results.to_list()] == [ResultCode.VERSION_MATCHES]
    assert load_moab_state(store, DRUID)[1].last_version_audit == FIXED_NOW


def test_catalog_to_moab_missing_moab_sets_not_found(tmp_path: Path) -> None:
    store, root = store_with_root(str(tmp_path))
    build_moab(tmp_path, DRUID, _versions(1))
    catalog_moab(store, root, DRUID, version=1)
    shutil.rmtree(version_path(tmp_path, DRUID, 1).parent)
    audit = CatalogToMoab(
        store=store, reporter=ResultsReporter(sinks=[]), engine=_engine(store, root)
    )

    results = audit.check_catalog_version(druid=DRUID)

    assert results is not None
    assert results.contains_result_code(ResultCode.MOAB_NOT_FOUND)
    record = load_moab_state(store, DRUID)[1]
    assert record.status == MoabRecordStatus.MOAB_ON_STORAGE_NOT_FOUND


def test_catalog_to_moab_reports_disagreeing_catalog(tmp_path: Path) -> None:
    store, root = store_with_root(str(tmp_path))
    build_moab(tmp_path, DRUID, _versions(2))
    catalog_moab(store, root, DRUID, version=1, po_version=2)
    audit = CatalogToMoab(
        store=store, reporter=ResultsReporter(sinks=[]), engine=_engine(store, root)
    )

    results = audit.check_catalog_version(druid=DRUID)

    assert results is not None
    assert [r.code for r in results.to_list()] == [ResultCode.DB_VERSIONS_DISAGREE]


def test_catalog_to_moab_older_moab_is_unexpected(tmp_path: Path) -> None:
    store, root = store_with_root(str(tmp_path))
    build_moab(tmp_path, DRUID, _versions(1))
    catalog_moab(store, root, DRUID, version=2)
    audit = CatalogToMoab(
        store=store, reporter=ResultsReporter(sinks=[]), engine=_engine(store, root)
    )

    results = audit.check_catalog_version(druid=DRUID)

    assert results is not None
    assert results.contains_result_code(ResultCode.UNEXPECTED_VERSION)
    record = load_moab_state(store, DRUID)[1]
    assert record.status == MoabRecordStatus.UNEXPECTED_VERSION_ON_STORAGE


def test_moab_to_catalog_walks_storage_root(tmp_path: Path) -> None:
    store, root = store_with_root(str(tmp_path))
    build_moab(tmp_path, DRUID, _versions(1))
    build_moab(tmp_path, OTHER_DRUID, _versions(2))
    walker = MoabToCatalog(engine=_engine(store, root))

    found = walker.check_existence_for_dir(storage_root_name=root.name)

    assert sorted(r.druid for r in found) == [DRUID, OTHER_DRUID]
    assert load_moab_state(store, OTHER_DRUID)[0].current_version == 2


def test_seed_catalog_validates_checksums(tmp_path: Path) -> None:
    store, root = store_with_root(str(tmp_path))
    build_moab(tmp_path, DRUID, _versions(2))
    walker = MoabToCatalog(engine=_engine(store, root))

    seeded = walker.seed_catalog_for_dir(storage_root_name=root.name)

    assert [r.check_name for r in seeded] == ["create_after_validation"]
    assert load_moab_state(store, DRUID)[1].status == MoabRecordStatus.OK


def test_sweep_batches_order_never_checked_first(tmp_path: Path) -> None:
    store, root = store_with_root(str(tmp_path))
    catalog_moab(store, root, DRUID, version=1)
    catalog_moab(store, root, OTHER_DRUID, version=1)
    with store.transaction() as tx:
        preserved_object = tx.get_preserved_object(druid=DRUID)
        assert preserved_object is not None
        record = tx.get_moab_record(preserved_object_id=preserved_object.id)
        assert record is not None
        tx.update_moab_record(
            record.model_copy(
                update={
                    "last_version_audit": FIXED_NOW - timedelta(days=30),
                    "last_checksum_validation": FIXED_NOW,
                }
            )
        )

    audit_batch = catalog_audit_batch(
        store, storage_root_name=root.name, now=FIXED_NOW, ttl_seconds=86400, limit=10
    )
    fixity_batch = fixity_check_batch(
        store, storage_root_name=root.name, now=FIXED_NOW, ttl_seconds=86400, limit=10
    )

    assert audit_batch == [OTHER_DRUID, DRUID]
    assert fixity_batch == [OTHER_DRUID]
    assert catalog_audit_batch(
        store, storage_root_name="unknown", now=FIXED_NOW, ttl_seconds=1, limit=1
    ) == []
