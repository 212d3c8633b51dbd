"""Audit result codes and their message templates.

Templates use ``str.format`` fields. ``actual_version`` is always available;
a non-mapping message argument is exposed as ``addl``.
"""

from __future__ import annotations

from enum import Enum


class ResultCode(str, Enum):
    """Machine-readable code for one audit finding or action."""

    ACTUAL_VERS_GT_DB_OBJ = "actual_vers_gt_db_obj"
    ACTUAL_VERS_LT_DB_OBJ = "actual_vers_lt_db_obj"
    CREATED_NEW_OBJECT = "created_new_object"
    DB_OBJ_ALREADY_EXISTS = "db_obj_already_exists"
    DB_OBJ_DOES_NOT_EXIST = "db_obj_does_not_exist"
    DB_UPDATE_FAILED = "db_update_failed"
    DB_VERSIONS_DISAGREE = "db_versions_disagree"
    FILE_NOT_IN_MANIFEST = "file_not_in_manifest"
    FILE_NOT_IN_MOAB = "file_not_in_moab"
    FILE_NOT_IN_SIGNATURE_CATALOG = "file_not_in_signature_catalog"
    INVALID_ARGUMENTS = "invalid_arguments"
    INVALID_MANIFEST = "invalid_manifest"
    INVALID_MOAB = "invalid_moab"
    MANIFEST_NOT_IN_MOAB = "manifest_not_in_moab"
    MOAB_CHECKSUM_VALID = "moab_checksum_valid"
    MOAB_FILE_CHECKSUM_MISMATCH = "moab_file_checksum_mismatch"
    MOAB_NOT_FOUND = "moab_not_found"
    MOAB_RECORD_STATUS_CHANGED = "moab_record_status_changed"
    REPLICATION_AUDIT_FAILED = "replication_audit_failed"
    SIGNATURE_CATALOG_NOT_IN_MOAB = "signature_catalog_not_in_moab"
    UNABLE_TO_CHECK_STATUS = "unable_to_check_status"
    UNEXPECTED_VERSION = "unexpected_version"
    VERSION_MATCHES = "version_matches"
    ZIP_PART_CHECKSUM_FILE_MISMATCH = "zip_part_checksum_file_mismatch"
    ZIP_PART_CHECKSUM_MISMATCH = "zip_part_checksum_mismatch"
    ZIP_PART_NOT_FOUND = "zip_part_not_found"
    ZIP_PARTS_COUNT_DIFFERS_FROM_ACTUAL = "zip_parts_count_differs_from_actual"
    ZIP_PARTS_SIZE_INCONSISTENCY = "zip_parts_size_inconsistency"
    ZIP_PARTS_NOT_ALL_REPLICATED = "zip_parts_not_all_replicated"
    ZIP_PARTS_NOT_CREATED = "zip_parts_not_created"


MESSAGE_TEMPLATES: dict[ResultCode, str] = {
    ResultCode.ACTUAL_VERS_GT_DB_OBJ: (
        "actual version ({actual_version}) greater than "
        "{db_obj_name} db version ({db_obj_version})"
    ),
    ResultCode.ACTUAL_VERS_LT_DB_OBJ: (
        "actual version ({actual_version}) less than "
        "{db_obj_name} db version ({db_obj_version}); ERROR!"
    ),
    ResultCode.CREATED_NEW_OBJECT: "added object to db as it did not exist",
    ResultCode.DB_OBJ_ALREADY_EXISTS: "{addl} db object already exists",
    ResultCode.DB_OBJ_DOES_NOT_EXIST: "{addl} db object does not exist",
    ResultCode.DB_UPDATE_FAILED: "db update failed: {addl}",
    ResultCode.DB_VERSIONS_DISAGREE: (
        "MoabRecord version {moab_record_version} does not match "
        "PreservedObject current_version {po_version}"
    ),
    ResultCode.FILE_NOT_IN_MANIFEST: (
        "Moab file {file_path} was not found in Moab manifest {manifest_file_path}"
    ),
    ResultCode.FILE_NOT_IN_MOAB: (
        "{manifest_file_path} refers to file ({file_path}) not found in Moab"
    ),
    ResultCode.FILE_NOT_IN_SIGNATURE_CATALOG: (
        "Moab file {file_path} was not found in "
        "Moab signature catalog {signature_catalog_path}"
    ),
    ResultCode.INVALID_ARGUMENTS: "encountered validation error(s): {addl}",
    ResultCode.INVALID_MANIFEST: "unable to parse {manifest_file_path} in Moab",
    ResultCode.INVALID_MOAB: "Invalid Moab, validation errors: {addl}",
    ResultCode.MANIFEST_NOT_IN_MOAB: "{manifest_file_path} not found in Moab",
    ResultCode.MOAB_CHECKSUM_VALID: "checksum(s) match",
    ResultCode.MOAB_FILE_CHECKSUM_MISMATCH: (
        "checksums or size for {file_path} version "
        "{version} do not match entry in latest signatureCatalog.xml."
    ),
    ResultCode.MOAB_NOT_FOUND: (
        "db MoabRecord (created {db_created_at}; last updated "
        "{db_updated_at}) exists but Moab not found"
    ),
    ResultCode.MOAB_RECORD_STATUS_CHANGED: (
        "MoabRecord status changed from {old_status} to {new_status}"
    ),
    ResultCode.REPLICATION_AUDIT_FAILED: (
        "unable to audit replicated parts on {endpoint_name}: {error}"
    ),
    ResultCode.SIGNATURE_CATALOG_NOT_IN_MOAB: "{signature_catalog_path} not found in Moab",
    ResultCode.UNABLE_TO_CHECK_STATUS: (
        "unable to validate when MoabRecord status is {current_status}"
    ),
    ResultCode.UNEXPECTED_VERSION: (
        "actual version ({actual_version}) has unexpected "
        "relationship to {db_obj_name} db version ({db_obj_version}); ERROR!"
    ),
    ResultCode.VERSION_MATCHES: "actual version ({actual_version}) matches {addl} db version",
    ResultCode.ZIP_PART_CHECKSUM_FILE_MISMATCH: (
        "{s3_key} catalog md5 ({md5}) doesn't match the local zip file md5 "
        "({local_md5})"
    ),
    ResultCode.ZIP_PART_CHECKSUM_MISMATCH: (
        "replicated md5 mismatch on {endpoint_name}: "
        "{s3_key} catalog md5 ({md5}) doesn't match the replicated md5 "
        "({replicated_checksum}) on {bucket_name}"
    ),
    ResultCode.ZIP_PART_NOT_FOUND: (
        "replicated part not found on {endpoint_name}: "
        "{s3_key} was not found on {bucket_name}"
    ),
    ResultCode.ZIP_PARTS_COUNT_DIFFERS_FROM_ACTUAL: (
        "{version} on {endpoint_name}: "
        "ZippedMoabVersion stated parts count ({db_count}) doesn't match actual "
        "number of zip parts rows ({actual_count})"
    ),
    ResultCode.ZIP_PARTS_SIZE_INCONSISTENCY: (
        "{version} on {endpoint_name}: "
        "Sum of ZippedMoabVersion child part sizes ({total_part_size}) is less than "
        "what is in the Moab: {moab_version_size}"
    ),
    ResultCode.ZIP_PARTS_NOT_ALL_REPLICATED: (
        "{version} on {endpoint_name}: not all "
        "ZippedMoabVersion parts are replicated yet"
    ),
    ResultCode.ZIP_PARTS_NOT_CREATED: (
        "{version} on {endpoint_name}: no zip_parts exist yet for this ZippedMoabVersion"
    ),
}

# Results dropped from a result set when the transaction that produced them
# rolls back.
DB_UPDATED_CODES: frozenset[ResultCode] = frozenset(
    {ResultCode.CREATED_NEW_OBJECT, ResultCode.MOAB_RECORD_STATUS_CHANGED}
)
