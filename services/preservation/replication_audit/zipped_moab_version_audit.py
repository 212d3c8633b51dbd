"""One audit pass over one replica record.

Checks run in order and the first failing check decides the status:
missing parts (``created``), short total size and part count drift
(``failed``), remote checksum mismatch (``failed``) and remote absence
(``incomplete``). A record passing every check becomes ``ok``.

The audit reads a snapshot of the record and its parts and touches only the
endpoint; callers persist the returned ``VersionAuditVerdict``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from packages.preservation_shared.ids import zip_key_base
from services.preservation.audit_results import AuditResults, ResultCode
from services.preservation.catalog import (
    ZipEndpoint,
    ZippedMoabVersion,
    ZippedMoabVersionStatus,
    ZipPart,
    ZipPartStatus,
)
from services.preservation.replication import RemotePart, Replicator


@dataclass(frozen=True)
class VersionAuditVerdict:
    """What one pass concluded about a record, ready to be written back."""

    record: ZippedMoabVersion
    status: ZippedMoabVersionStatus
    status_details: str | None
    zip_parts_count: int | None
    part_statuses: dict[int, ZipPartStatus] = field(default_factory=dict)


class ZippedMoabVersionAudit:
    """Audit one ``ZippedMoabVersion`` and its parts against its endpoint."""

    def __init__(
        self,
        *,
        druid: str,
        record: ZippedMoabVersion,
        parts: tuple[ZipPart, ...],
        endpoint: ZipEndpoint,
        replicator: Replicator,
        results: AuditResults,
        moab_version_size: int | None = None,
    ) -> None:
        self._druid = druid
        self.record = record
        self.parts = parts
        self._endpoint = endpoint
        self._replicator = replicator
        self._results = results
        self._moab_version_size = moab_version_size
        self._zip_parts_count = record.zip_parts_count
        if self._zip_parts_count is None and parts:
            self._zip_parts_count = len(parts)
        self._remote: dict[int, RemotePart] | None = None
        self._part_statuses: dict[int, ZipPartStatus] = {}

    def run(self) -> VersionAuditVerdict:
        """Run every check in order and return the verdict."""
        first_result = len(self._results)
        status = self.check_parts_created()
        if status is None:
            status = (
                self.check_size_consistency()
                or self.check_count_consistency()
                or self.check_remote_parts()
                or ZippedMoabVersionStatus.OK
            )
        added = self._results.to_list()[first_result:]
        return VersionAuditVerdict(
            record=self.record,
            status=status,
            status_details=" && ".join(r.message for r in added) or None,
            zip_parts_count=self._zip_parts_count,
            part_statuses=dict(self._part_statuses),
        )

    def check_parts_created(self) -> ZippedMoabVersionStatus | None:
        if self.parts or self.record.zip_parts_count is not None:
            return None
        self._add(ResultCode.ZIP_PARTS_NOT_CREATED)
        return ZippedMoabVersionStatus.CREATED

    def check_size_consistency(self) -> ZippedMoabVersionStatus | None:
        if self._moab_version_size is None:
            return None
        total_part_size = sum(part.size for part in self.parts)
        if total_part_size >= self._moab_version_size:
            return None
        self._add(
            ResultCode.ZIP_PARTS_SIZE_INCONSISTENCY,
            total_part_size=total_part_size,
            moab_version_size=self._moab_version_size,
        )
        return ZippedMoabVersionStatus.FAILED

    def check_count_consistency(self) -> ZippedMoabVersionStatus | None:
        actual_count = len(self.parts)
        if self._zip_parts_count == actual_count:
            return None
        self._add(
            ResultCode.ZIP_PARTS_COUNT_DIFFERS_FROM_ACTUAL,
            db_count=self._zip_parts_count,
            actual_count=actual_count,
        )
        return ZippedMoabVersionStatus.FAILED

    def check_remote_parts(
        self, *, report_each_missing: bool = False
    ) -> ZippedMoabVersionStatus | None:
        """Classify every part at the endpoint and report mismatches or absences.

        A record already ``incomplete`` gets one informational result for
        absent parts unless ``report_each_missing`` is set.
        """
        remote = self._classify_parts()
        mismatched = [
            p for p in self.parts if self._status_of(p) == ZipPartStatus.CHECKSUM_MISMATCH
        ]
        for part in mismatched:
            self._add(
                ResultCode.ZIP_PART_CHECKSUM_MISMATCH,
                s3_key=self._key(part),
                md5=part.md5,
                replicated_checksum=remote[part.id].checksum_md5,
                bucket_name=self._replicator.bucket_name(),
            )
        if mismatched:
            return ZippedMoabVersionStatus.FAILED

        missing = [
            p for p in self.parts if self._status_of(p) == ZipPartStatus.NOT_FOUND
        ]
        if not missing:
            return None
        if (
            self.record.status == ZippedMoabVersionStatus.INCOMPLETE
            and not report_each_missing
        ):
            self._add(ResultCode.ZIP_PARTS_NOT_ALL_REPLICATED)
        else:
            for part in missing:
                self._add(
                    ResultCode.ZIP_PART_NOT_FOUND,
                    s3_key=self._key(part),
                    bucket_name=self._replicator.bucket_name(),
                )
        return ZippedMoabVersionStatus.INCOMPLETE

    def _classify_parts(self) -> dict[int, RemotePart]:
        """Look up each part remotely once, noting statuses that changed."""
        if self._remote is not None:
            return self._remote
        remote: dict[int, RemotePart] = {}
        for part in self.parts:
            state = self._replicator.remote_part(self._key(part))
            remote[part.id] = state
            if not state.exists:
                status = ZipPartStatus.NOT_FOUND
            elif state.checksum_md5 != part.md5:
                status = ZipPartStatus.CHECKSUM_MISMATCH
            else:
                status = ZipPartStatus.OK
            if status != part.status:
                self._part_statuses[part.id] = status
        self._remote = remote
        return remote

    def _status_of(self, part: ZipPart) -> ZipPartStatus:
        return self._part_statuses.get(part.id, part.status)

    def _key(self, part: ZipPart) -> str:
        return f"{zip_key_base(self._druid, self.record.version)}{part.suffix}"

    def _add(self, code: ResultCode, **details: Any) -> None:
        self._results.add_result(
            code,
            {
                **details,
                "version": self.record.version,
                "endpoint_name": self._endpoint.endpoint_name,
            },
        )
