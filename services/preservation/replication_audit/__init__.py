"""Audits and remediation of replicated Moab versions."""

from services.preservation.replication_audit.remediation import FailureRemediator
from services.preservation.replication_audit.service import (
    ReplicationAuditOutcome,
    ReplicationAuditService,
)
from services.preservation.replication_audit.zipped_moab_version_audit import (
    VersionAuditVerdict,
    ZippedMoabVersionAudit,
)

__all__ = [
    "FailureRemediator",
    "ReplicationAuditOutcome",
    "ReplicationAuditService",
    "VersionAuditVerdict",
    "ZippedMoabVersionAudit",
]
