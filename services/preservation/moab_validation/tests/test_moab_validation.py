"""Behavior tests for Moab structural and fixity validation."""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from services.preservation.audit_results import AuditResults, ResultCode
from services.preservation.catalog import MoabRecord, MoabRecordStatus
from services.preservation.moab_validation import (
    ChecksumValidator,
    MoabOnStorage,
    MoabValidator,
    StructureValidator,
    iter_moab_druids,
)
from tests.support.moab_fixtures import build_moab, version_path

DRUID = "bj102hs9687"
NOW = datetime(2026, 1, 5, tzinfo=UTC)


def _two_version_moab(root: Path) -> MoabOnStorage:
    build_moab(
        root,
        DRUID,
        [
            {"content/page1.txt": b"first page", "metadata/descMetadata.xml": b"<d/>"},
            {"content/page2.txt": b"second page", "metadata/descMetadata.xml": b"<d2/>"},
        ],
    )
    return MoabOnStorage(druid=DRUID, storage_location=root)


def _results() -> AuditResults:
    return AuditResults(druid=DRUID, check_name="validate_checksums", actual_version=2)


def test_reader_reports_versions_and_druid_tree(tmp_path: Path) -> None:
    moab = _two_version_moab(tmp_path)

    assert moab.exists()
    assert moab.versions() == [1, 2]
    assert moab.object_dir == tmp_path / "bj" / "102" / "hs" / "9687" / DRUID
    assert list(iter_moab_druids(tmp_path)) == [DRUID]


def test_valid_moab_has_no_structure_errors(tmp_path: Path) -> None:
    moab = _two_version_moab(tmp_path)

    assert StructureValidator().validation_errors(moab) == []


def test_structure_flags_gaps_and_stray_entries(tmp_path: Path) -> None:
    """Non-sequential versions and stray files should each be reported."""
    moab = _two_version_moab(tmp_path)
    version_path(tmp_path, DRUID, 2).rename(moab.object_dir / "v0003")
    (moab.object_dir / "notes.txt").write_text("stray")
    (version_path(tmp_path, DRUID, 1) / "data" / "extra").mkdir()

    codes = {
        code
        for error in StructureValidator().validation_errors(moab)
        for code in error
    }

    assert {"VERSIONS_NOT_IN_ORDER", "VERSION_DIR_BAD_FORMAT", "INCORRECT_DIR_CONTENTS"} <= codes


def test_content_subdirs_respect_setting(tmp_path: Path) -> None:
    build_moab(tmp_path, DRUID, [{"content/sub/page.txt": b"x", "metadata/m.xml": b"m"}])
    moab = MoabOnStorage(druid=DRUID, storage_location=tmp_path)

    assert StructureValidator(allow_content_subdirs=True).validation_errors(moab) == []
    errors = StructureValidator(allow_content_subdirs=False).validation_errors(moab)
    assert [list(e) for e in errors] == [["CONTENT_SUB_DIRS_DETECTED"]]


def test_checksum_validation_passes_on_intact_moab(tmp_path: Path) -> None:
    results = _results()

    ChecksumValidator(moab=_two_version_moab(tmp_path), results=results).validate()

    assert results.is_empty()


def test_checksum_validation_flags_tampered_latest_file(tmp_path: Path) -> None:
    moab = _two_version_moab(tmp_path)
    (version_path(tmp_path, DRUID, 2) / "data" / "content" / "page2.txt").write_bytes(b"rot")
    results = _results()

    ChecksumValidator(moab=moab, results=results).validate()

    assert results.contains_result_code(ResultCode.MOAB_FILE_CHECKSUM_MISMATCH)


def test_checksum_validation_flags_missing_and_unlisted_files(tmp_path: Path) -> None:
    moab = _two_version_moab(tmp_path)
    (version_path(tmp_path, DRUID, 1) / "data" / "content" / "page1.txt").unlink()
    (version_path(tmp_path, DRUID, 2) / "data" / "content" / "sneaky.txt").write_bytes(b"?")
    (version_path(tmp_path, DRUID, 1) / "manifests" / "extra.xml").write_bytes(b"<x/>")
    results = _results()

    ChecksumValidator(moab=moab, results=results).validate()

    assert results.contains_result_code(ResultCode.FILE_NOT_IN_MOAB)
    assert results.contains_result_code(ResultCode.FILE_NOT_IN_SIGNATURE_CATALOG)
    assert results.contains_result_code(ResultCode.FILE_NOT_IN_MANIFEST)


def test_malformed_and_missing_manifests_become_results(tmp_path: Path) -> None:
    moab = _two_version_moab(tmp_path)
    (version_path(tmp_path, DRUID, 2) / "manifests" / "manifestInventory.xml").write_text("<oops")
    (version_path(tmp_path, DRUID, 2) / "manifests" / "signatureCatalog.xml").unlink()
    results = _results()

    ChecksumValidator(moab=moab, results=results).validate()

    assert results.contains_result_code(ResultCode.INVALID_MANIFEST)
    assert results.contains_result_code(ResultCode.SIGNATURE_CATALOG_NOT_IN_MOAB)


def test_validator_adds_invalid_moab_once(tmp_path: Path) -> None:
    moab = _two_version_moab(tmp_path)
    (moab.object_dir / "junk").write_text("x")
    results = _results()
    validator = MoabValidator(moab=moab, results=results)

    first = validator.moab_validation_errors()
    second = validator.moab_validation_errors()

    assert first == second
    assert validator.ran_moab_validation
    assert len(results) == 1
    assert results.to_list()[0].code == ResultCode.INVALID_MOAB


def test_status_gate_blocks_invalid_checksum_unless_caller_validates(tmp_path: Path) -> None:
    results = _results()
    validator = MoabValidator(moab=_two_version_moab(tmp_path), results=results)
    record = MoabRecord(
        id=1,
        preserved_object_id=1,
        moab_storage_root_id=1,
        version=2,
        status=MoabRecordStatus.INVALID_CHECKSUM,
        created_at=NOW,
        updated_at=NOW,
    )

    assert validator.can_validate_current_comp_moab_status(moab_record=record) is False
    assert (
        validator.can_validate_current_comp_moab_status(
            moab_record=record, caller_validates_checksums=True
        )
        is True
    )
    assert [r.message for r in results.to_list()] == [
        "unable to validate when MoabRecord status is invalid_checksum"
    ]
