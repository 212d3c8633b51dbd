"""Version reconciliation, catalog audits and checksum validation of Moabs."""

from services.preservation.reconciliation.catalog_to_moab import CatalogToMoab
from services.preservation.reconciliation.cataloged import (
    CatalogedMoab,
    load_cataloged_moab,
)
from services.preservation.reconciliation.checksum_validation import (
    ChecksumValidationService,
)
from services.preservation.reconciliation.engine import (
    MOAB_RECORD,
    PassOutcome,
    ReconciliationEngine,
)
from services.preservation.reconciliation.interfaces import (
    ChecksumValidationTrigger,
    ReplicationTrigger,
)
from services.preservation.reconciliation.moab_to_catalog import MoabToCatalog
from services.preservation.reconciliation.status_handler import StatusHandler
from services.preservation.reconciliation.sweeps import (
    catalog_audit_batch,
    fixity_check_batch,
)
from services.preservation.reconciliation.transaction import (
    VersionsDisagreeError,
    with_transaction_and_rescue,
)
from services.preservation.reconciliation.validation import (
    ReconciliationRequest,
    validate_request,
)

__all__ = [
    "MOAB_RECORD",
    "CatalogToMoab",
    "CatalogedMoab",
    "ChecksumValidationService",
    "ChecksumValidationTrigger",
    "MoabToCatalog",
    "PassOutcome",
    "ReconciliationEngine",
    "ReconciliationRequest",
    "ReplicationTrigger",
    "StatusHandler",
    "VersionsDisagreeError",
    "catalog_audit_batch",
    "fixity_check_batch",
    "load_cataloged_moab",
    "validate_request",
    "with_transaction_and_rescue",
]
