"""Domain contracts for catalog records of preserved objects and replicas."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class MoabRecordStatus(str, Enum):
    """Audit status of one on-disk Moab as recorded in the catalog."""

    OK = "ok"
    INVALID_MOAB = "invalid_moab"
    INVALID_CHECKSUM = "invalid_checksum"
    MOAB_ON_STORAGE_NOT_FOUND = "moab_on_storage_not_found"
    UNEXPECTED_VERSION_ON_STORAGE = "unexpected_version_on_storage"
    VALIDITY_UNKNOWN = "validity_unknown"


class ZippedMoabVersionStatus(str, Enum):
    """Replication status of one object version on one endpoint."""

    CREATED = "created"
    INCOMPLETE = "incomplete"
    OK = "ok"
    FAILED = "failed"


class ZipPartStatus(str, Enum):
    """Remote classification of one transfer part."""

    UNREPLICATED = "unreplicated"
    OK = "ok"
    NOT_FOUND = "not_found"
    CHECKSUM_MISMATCH = "checksum_mismatch"


def utc_now() -> datetime:
    """Return the current UTC timestamp."""
    return datetime.now(UTC)


class PreservedObject(BaseModel):
    """Catalog record for one preserved object."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: int
    druid: str = Field(min_length=11, max_length=11)
    current_version: int = Field(gt=0)
    last_archive_audit: datetime | None = None
    created_at: datetime
    updated_at: datetime


class MoabStorageRoot(BaseModel):
    """Configured filesystem location that holds Moabs."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: int
    name: str = Field(min_length=1)
    storage_location: str = Field(min_length=1)


class MoabRecord(BaseModel):
    """Per-location record of one object's Moab."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: int
    preserved_object_id: int
    moab_storage_root_id: int
    version: int = Field(gt=0)
    size: int | None = None
    status: MoabRecordStatus
    status_details: str | None = None
    last_version_audit: datetime | None = None
    last_moab_validation: datetime | None = None
    last_checksum_validation: datetime | None = None
    created_at: datetime
    updated_at: datetime


class ZipEndpoint(BaseModel):
    """Configured remote replica target."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: int
    endpoint_name: str = Field(min_length=1)
    endpoint_node: str
    storage_location: str
    provider: str = "s3"


class ZippedMoabVersion(BaseModel):
    """Replica version record for one (object, endpoint, version)."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: int
    preserved_object_id: int
    zip_endpoint_id: int
    version: int = Field(gt=0)
    zip_parts_count: int | None = None
    status: ZippedMoabVersionStatus = ZippedMoabVersionStatus.CREATED
    status_details: str | None = None
    status_updated_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class ZipPart(BaseModel):
    """One transfer part belonging to a replica version record."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: int
    zipped_moab_version_id: int
    suffix: str = Field(pattern=r"^\.(zip|z[0-9]{2,})$")
    size: int = Field(ge=0)
    md5: str = Field(pattern=r"^[0-9a-f]{32}$")
    status: ZipPartStatus = ZipPartStatus.UNREPLICATED
    created_at: datetime
    updated_at: datetime


class StorageRootSummary(BaseModel):
    """Counts of Moab records on one storage root grouped by status."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    storage_root_name: str
    total: int
    counts: dict[MoabRecordStatus, int]
