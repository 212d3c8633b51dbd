"""Protocols and DTOs shared by replicators and the delivery chain."""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping, Protocol

from pydantic import BaseModel, ConfigDict

from services.preservation.zip_packaging import DruidVersionZipPart


class DeliveryOutcome(str, Enum):
    """What one delivery attempt did at the endpoint."""

    UPLOADED = "uploaded"
    ALREADY_REPLICATED = "already_replicated"
    CHECKSUM_MISMATCH = "checksum_mismatch"
    LOCAL_CHECKSUM_MISMATCH = "local_checksum_mismatch"


class RemotePart(BaseModel):
    """State of one part key at an endpoint."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    key: str
    exists: bool
    checksum_md5: str | None = None


class DeliveryReceipt(BaseModel):
    """Result of one ``Replicator.deliver`` call."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    key: str
    bucket_name: str
    outcome: DeliveryOutcome
    remote_checksum_md5: str | None = None
    local_checksum_md5: str | None = None


class Replicator(Protocol):
    """Deliver transfer parts to one zip endpoint and inspect what is there."""

    @property
    def endpoint_name(self) -> str:
        """Return the endpoint this replicator writes to."""

    def bucket_name(self) -> str:
        """Return the bucket (or container) name at the endpoint."""

    def remote_part(self, key: str) -> RemotePart:
        """Return existence and recorded md5 for ``key``."""

    def deliver(
        self, part: DruidVersionZipPart, metadata: Mapping[str, Any]
    ) -> DeliveryReceipt:
        """Upload ``part`` unless an object already exists at its key.

        An existing object with a different md5 is never overwritten, and a
        local file whose md5 differs from ``metadata`` is never uploaded.
        """
