"""Moab on-storage reader and validators."""

from services.preservation.moab_validation.checksums import ChecksumValidator
from services.preservation.moab_validation.config import (
    SERVICE_COMPONENT_ID,
    MoabValidationSettings,
    resolve_moab_validation_settings,
)
from services.preservation.moab_validation.moab import (
    FileSignature,
    ManifestEntry,
    MoabOnStorage,
    SignatureCatalogEntry,
    compute_signature,
    iter_moab_druids,
)
from services.preservation.moab_validation.structure import StructureValidator
from services.preservation.moab_validation.validator import MoabValidator

__all__ = [
    "SERVICE_COMPONENT_ID",
    "ChecksumValidator",
    "FileSignature",
    "ManifestEntry",
    "MoabOnStorage",
    "MoabValidationSettings",
    "MoabValidator",
    "SignatureCatalogEntry",
    "StructureValidator",
    "compute_signature",
    "iter_moab_druids",
    "resolve_moab_validation_settings",
]
