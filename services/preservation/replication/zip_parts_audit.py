"""Compare cataloged part md5s with the md5 sidecars in local zip storage."""

from __future__ import annotations

from packages.preservation_shared.ids import zip_key_base
from resources.substrates.filesystem import ZipStorageSubstrate
from services.preservation.audit_results import AuditResults, ResultCode
from services.preservation.catalog import CatalogTransaction, ZipEndpoint, ZippedMoabVersion
from services.preservation.zip_packaging import DruidVersionZipPart

CHECK_NAME = "ZipPartsToZipFilesAudit"


class ZipPartsToZipFilesAudit:
    """Report parts whose catalog md5 differs from the local sidecar."""

    def __init__(self, *, storage: ZipStorageSubstrate) -> None:
        self._storage = storage

    def audit(
        self,
        tx: CatalogTransaction,
        *,
        druid: str,
        record: ZippedMoabVersion,
        endpoint: ZipEndpoint,
    ) -> AuditResults:
        results = AuditResults(
            druid=druid,
            check_name=CHECK_NAME,
            storage_area=endpoint.endpoint_name,
            actual_version=record.version,
        )
        base_key = zip_key_base(druid, record.version)
        for zip_part in tx.list_zip_parts(zipped_moab_version_id=record.id):
            key = f"{base_key}{zip_part.suffix}"
            local_md5 = DruidVersionZipPart(key=key, storage=self._storage).read_md5()
            if local_md5 == zip_part.md5:
                continue
            results.add_result(
                ResultCode.ZIP_PART_CHECKSUM_FILE_MISMATCH,
                {"s3_key": key, "md5": zip_part.md5, "local_md5": local_md5},
            )
        return results
