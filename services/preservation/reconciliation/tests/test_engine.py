"""Behavior tests for the version reconciliation engine."""

from __future__ import annotations

from pathlib import Path

from services.preservation.audit_results import (
    AuditResults,
    ResultCode,
    ResultsReporter,
)
from services.preservation.catalog import (
    CatalogError,
    MoabRecordStatus,
    MoabStorageRoot,
)
from services.preservation.catalog.data import InMemoryCatalogStore
from services.preservation.reconciliation import ReconciliationEngine
from tests.support.catalog_fixtures import (
    FIXED_NOW,
    catalog_moab,
    load_moab_state,
    store_with_root,
)
from tests.support.moab_fixtures import build_moab, version_path

DRUID = "ab123cd4567"
ROOT_NAME = "fixture_sr1"
NOW = FIXED_NOW


class _Triggers:
    """Record post-commit replication and checksum validation requests."""

    def __init__(self) -> None:
        self.replicated: list[tuple[str, int]] = []
        self.validated: list[str] = []

    def replicate(self, *, druid: str, version: int) -> None:
        self.replicated.append((druid, version))

    def validate(self, *, druid: str) -> None:
        self.validated.append(druid)


def _versions(count: int) -> list[dict[str, bytes]]:
    return [
        {f"content/page{n}.txt": f"page {n}".encode(), "metadata/m.xml": f"<m{n}/>".encode()}
        for n in range(1, count + 1)
    ]


def _setup(
    tmp_path: Path,
) -> tuple[InMemoryCatalogStore, MoabStorageRoot, ReconciliationEngine, _Triggers]:
    store, root = store_with_root(str(tmp_path), name=ROOT_NAME)
    triggers = _Triggers()
    engine = ReconciliationEngine(
        store=store,
        storage_roots=[root],
        reporter=ResultsReporter(sinks=[]),
        replication_trigger=triggers.replicate,
        checksum_trigger=triggers.validate,
        clock=lambda: NOW,
    )
    return store, root, engine, triggers


def _codes(results: AuditResults) -> list[ResultCode]:
    return [r.code for r in results.to_list()]


def test_version_bump_advances_catalog_and_replicates_new_version(tmp_path: Path) -> None:
    """A Moab one version ahead of the catalog should advance both records."""
    store, root, engine, triggers = _setup(tmp_path)
    build_moab(tmp_path, DRUID, _versions(3))
    catalog_moab(store, root, DRUID, version=2)

    results = engine.check_existence(
        druid=DRUID, incoming_version=3, incoming_size=500000, storage_root_name=ROOT_NAME
    )

    assert _codes(results) == [ResultCode.ACTUAL_VERS_GT_DB_OBJ]
    preserved_object, record = load_moab_state(store, DRUID)
    assert preserved_object.current_version == 3
    assert (record.version, record.size) == (3, 500000)
    assert record.last_version_audit == NOW
    assert triggers.replicated == [(DRUID, 3)]


def test_missing_record_is_created_with_validity_unknown(tmp_path: Path) -> None:
    store, _root, engine, triggers = _setup(tmp_path)
    build_moab(tmp_path, DRUID, _versions(1))

    results = engine.check_existence(
        druid=DRUID, incoming_version=1, incoming_size=640, storage_root_name=ROOT_NAME
    )

    assert _codes(results) == [
        ResultCode.DB_OBJ_DOES_NOT_EXIST,
        ResultCode.CREATED_NEW_OBJECT,
    ]
    _, record = load_moab_state(store, DRUID)
    assert record.status == MoabRecordStatus.VALIDITY_UNKNOWN
    assert record.last_moab_validation == NOW
    assert triggers.validated == [DRUID]
    assert triggers.replicated == []


def test_missing_record_with_invalid_moab_is_created_invalid(tmp_path: Path) -> None:
    store, _root, engine, _ = _setup(tmp_path)
    build_moab(tmp_path, DRUID, _versions(1))
    (version_path(tmp_path, DRUID, 1) / "stray.txt").write_text("x")

    results = engine.check_existence(
        druid=DRUID, incoming_version=1, incoming_size=640, storage_root_name=ROOT_NAME
    )

    assert ResultCode.INVALID_MOAB in _codes(results)
    assert load_moab_state(store, DRUID)[1].status == MoabRecordStatus.INVALID_MOAB


def test_older_moab_marks_unexpected_version_without_regressing(tmp_path: Path) -> None:
    """The catalog version never decreases when storage reports an older one."""
    store, root, engine, triggers = _setup(tmp_path)
    build_moab(tmp_path, DRUID, _versions(2))
    catalog_moab(store, root, DRUID, version=3)

    results = engine.check_existence(
        druid=DRUID, incoming_version=2, incoming_size=640, storage_root_name=ROOT_NAME
    )

    assert ResultCode.ACTUAL_VERS_LT_DB_OBJ in _codes(results)
    preserved_object, record = load_moab_state(store, DRUID)
    assert preserved_object.current_version == 3
    assert record.version == 3
    assert record.status == MoabRecordStatus.UNEXPECTED_VERSION_ON_STORAGE
    assert triggers.replicated == []


def test_matching_version_revalidates_non_ok_status(tmp_path: Path) -> None:
    store, root, engine, _ = _setup(tmp_path)
    build_moab(tmp_path, DRUID, _versions(2))
    catalog_moab(store, root, DRUID, version=2, status=MoabRecordStatus.INVALID_MOAB)

    results = engine.check_existence(
        druid=DRUID, incoming_version=2, incoming_size=640, storage_root_name=ROOT_NAME
    )

    assert _codes(results) == [
        ResultCode.MOAB_RECORD_STATUS_CHANGED,
        ResultCode.VERSION_MATCHES,
    ]
    record = load_moab_state(store, DRUID)[1]
    assert record.status == MoabRecordStatus.VALIDITY_UNKNOWN
    assert "invalid_moab to validity_unknown" in (record.status_details or "")


def test_disagreeing_catalog_versions_roll_back(tmp_path: Path) -> None:
    store, root, engine, triggers = _setup(tmp_path)
    build_moab(tmp_path, DRUID, _versions(3))
    catalog_moab(store, root, DRUID, version=2, po_version=3)

    results = engine.check_existence(
        druid=DRUID, incoming_version=3, incoming_size=640, storage_root_name=ROOT_NAME
    )

    assert _codes(results) == [ResultCode.DB_VERSIONS_DISAGREE]
    assert load_moab_state(store, DRUID)[1].version == 2
    assert store.rollbacks == 1
    assert triggers.replicated == []


def test_invalid_checksum_status_is_not_rechecked(tmp_path: Path) -> None:
    store, root, engine, _ = _setup(tmp_path)
    build_moab(tmp_path, DRUID, _versions(2))
    catalog_moab(store, root, DRUID, version=2, status=MoabRecordStatus.INVALID_CHECKSUM)

    results = engine.check_existence(
        druid=DRUID, incoming_version=2, incoming_size=640, storage_root_name=ROOT_NAME
    )

    assert _codes(results) == [ResultCode.UNABLE_TO_CHECK_STATUS]
    assert load_moab_state(store, DRUID)[1].status == MoabRecordStatus.INVALID_CHECKSUM


def test_invalid_arguments_list_every_violation(tmp_path: Path) -> None:
    store, _root, engine, _ = _setup(tmp_path)
    commits_before = store.commits

    results = engine.check_existence(
        druid="not-a-druid", incoming_version=0, incoming_size=-5, storage_root_name="nope"
    )

    assert _codes(results) == [ResultCode.INVALID_ARGUMENTS]
    message = results.to_list()[0].message
    for field in ("druid", "incoming_version", "incoming_size", "storage_root_name"):
        assert field in message
    assert store.commits == commits_before


def test_database_failure_is_reported_and_db_updates_dropped(tmp_path: Path) -> None:
    """A failing write should roll back and drop status-change results."""
    store, root, engine, triggers = _setup(tmp_path)
    build_moab(tmp_path, DRUID, _versions(2))
    catalog_moab(store, root, DRUID, version=2, status=MoabRecordStatus.INVALID_MOAB)
    store.failures["update_moab_record"] = CatalogError(
        "server closed the connection", summary="OperationalError: server closed the connection"
    )

    results = engine.check_existence(
        druid=DRUID, incoming_version=2, incoming_size=640, storage_root_name=ROOT_NAME
    )

    codes = _codes(results)
    assert ResultCode.DB_UPDATE_FAILED in codes
    assert ResultCode.MOAB_RECORD_STATUS_CHANGED not in codes
    assert "OperationalError: server closed the connection" in results.to_s()
    assert load_moab_state(store, DRUID)[1].status == MoabRecordStatus.INVALID_MOAB
    assert triggers.validated == []


def test_create_reports_existing_record(tmp_path: Path) -> None:
    store, root, engine, _ = _setup(tmp_path)
    build_moab(tmp_path, DRUID, _versions(1))
    catalog_moab(store, root, DRUID, version=1)

    results = engine.create(
        druid=DRUID, incoming_version=1, incoming_size=640, storage_root_name=ROOT_NAME
    )

    assert _codes(results) == [ResultCode.DB_OBJ_ALREADY_EXISTS]


def test_create_trusts_caller_checksum_validation(tmp_path: Path) -> None:
    store, _root, engine, triggers = _setup(tmp_path)
    build_moab(tmp_path, DRUID, _versions(1))

    results = engine.create(
        druid=f"druid:{DRUID}",
        incoming_version=1,
        incoming_size=640,
        storage_root_name=ROOT_NAME,
        checksums_validated=True,
    )

    assert _codes(results) == [ResultCode.CREATED_NEW_OBJECT]
    record = load_moab_state(store, DRUID)[1]
    assert record.status == MoabRecordStatus.OK
    assert record.last_checksum_validation == NOW
    assert triggers.validated == []


def test_create_after_validation_sets_ok_for_intact_moab(tmp_path: Path) -> None:
    store, _root, engine, _ = _setup(tmp_path)
    build_moab(tmp_path, DRUID, _versions(2))

    results = engine.create_after_validation(
        druid=DRUID, incoming_version=2, incoming_size=640, storage_root_name=ROOT_NAME
    )

    assert _codes(results) == [
        ResultCode.MOAB_CHECKSUM_VALID,
        ResultCode.CREATED_NEW_OBJECT,
    ]
    assert load_moab_state(store, DRUID)[1].status == MoabRecordStatus.OK


def test_create_after_validation_flags_checksum_mismatch(tmp_path: Path) -> None:
    store, _root, engine, _ = _setup(tmp_path)
    build_moab(tmp_path, DRUID, _versions(2))
    (version_path(tmp_path, DRUID, 2) / "data" / "content" / "page2.txt").write_bytes(
        b"tampered"
    )

    results = engine.create_after_validation(
        druid=DRUID, incoming_version=2, incoming_size=640, storage_root_name=ROOT_NAME
    )

    assert ResultCode.MOAB_FILE_CHECKSUM_MISMATCH in _codes(results)
    assert load_moab_state(store, DRUID)[1].status == MoabRecordStatus.INVALID_CHECKSUM


def test_update_version_advances_and_resets_status(tmp_path: Path) -> None:
    store, root, engine, triggers = _setup(tmp_path)
    build_moab(tmp_path, DRUID, _versions(3))
    catalog_moab(store, root, DRUID, version=2)

    results = engine.update_version(
        druid=DRUID, incoming_version=3, incoming_size=900, storage_root_name=ROOT_NAME
    )

    assert _codes(results) == [
        ResultCode.ACTUAL_VERS_GT_DB_OBJ,
        ResultCode.MOAB_RECORD_STATUS_CHANGED,
    ]
    preserved_object, record = load_moab_state(store, DRUID)
    assert preserved_object.current_version == 3
    assert record.status == MoabRecordStatus.VALIDITY_UNKNOWN
    assert triggers.replicated == [(DRUID, 3)]
    assert triggers.validated == [DRUID]


def test_update_version_keeps_status_when_checksums_validated(tmp_path: Path) -> None:
    store, root, engine, _ = _setup(tmp_path)
    build_moab(tmp_path, DRUID, _versions(3))
    catalog_moab(store, root, DRUID, version=2)

    engine.update_version(
        druid=DRUID,
        incoming_version=3,
        incoming_size=900,
        storage_root_name=ROOT_NAME,
        checksums_validated=True,
    )

    assert load_moab_state(store, DRUID)[1].status == MoabRecordStatus.OK


def test_update_version_with_same_version_is_unexpected(tmp_path: Path) -> None:
    store, root, engine, triggers = _setup(tmp_path)
    build_moab(tmp_path, DRUID, _versions(2))
    catalog_moab(store, root, DRUID, version=2)

    results = engine.update_version(
        druid=DRUID, incoming_version=2, incoming_size=900, storage_root_name=ROOT_NAME
    )

    assert _codes(results)[:2] == [
        ResultCode.UNEXPECTED_VERSION,
        ResultCode.VERSION_MATCHES,
    ]
    assert load_moab_state(store, DRUID)[1].status == MoabRecordStatus.UNEXPECTED_VERSION_ON_STORAGE
    assert triggers.replicated == []


def test_update_version_without_record_reports_missing(tmp_path: Path) -> None:
    _store, _root, engine, _ = _setup(tmp_path)

    results = engine.update_version(
        druid=DRUID, incoming_version=2, incoming_size=900, storage_root_name=ROOT_NAME
    )

    assert _codes(results) == [ResultCode.DB_OBJ_DOES_NOT_EXIST]


def test_update_after_validation_refuses_invalid_moab(tmp_path: Path) -> None:
    store, root, engine, triggers = _setup(tmp_path)
    build_moab(tmp_path, DRUID, _versions(3))
    catalog_moab(store, root, DRUID, version=2)
    (version_path(tmp_path, DRUID, 3) / "stray.txt").write_text("x")

    engine.update_version_after_validation(
        druid=DRUID, incoming_version=3, incoming_size=900, storage_root_name=ROOT_NAME
    )

    preserved_object, record = load_moab_state(store, DRUID)
    assert preserved_object.current_version == 2
    assert record.status == MoabRecordStatus.INVALID_MOAB
    assert triggers.replicated == []
