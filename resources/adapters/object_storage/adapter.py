"""Transport-agnostic object storage adapter protocol and DTOs."""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict


class ObjectStorageError(Exception):
    """Base exception for object storage adapter failures."""


class ObjectStorageDependencyError(ObjectStorageError):
    """Remote store unreachable, throttling, or rejecting credentials."""


class ObjectStorageHealthResult(BaseModel):
    """Readiness payload for one bucket."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    adapter_ready: bool
    detail: str


@runtime_checkable
class ObjectStorageAdapter(Protocol):
    """Protocol for one bucket on one replication endpoint."""

    @property
    def bucket_name(self) -> str:
        """Return the bucket this adapter reads and writes."""

    def exists(self, key: str) -> bool:
        """Return whether an object exists at ``key``."""

    def upload(self, key: str, local_path: Path, metadata: Mapping[str, str]) -> None:
        """Upload one local file to ``key`` with user metadata."""

    def get_metadata(self, key: str) -> dict[str, str] | None:
        """Return user metadata for ``key`` or ``None`` when absent."""

    def health(self) -> ObjectStorageHealthResult:
        """Return bucket reachability."""
