"""Protocol for zip storage substrate operations keyed by relative path."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from pydantic import BaseModel, ConfigDict


class FilesystemHealthStatus(BaseModel):
    """Zip storage substrate readiness payload."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    ready: bool
    detail: str


class ZipStorageSubstrate(Protocol):
    """Protocol for files under the zip storage root.

    Keys are ``/``-separated paths relative to the root; the same string is
    used as the remote object key.
    """

    @property
    def root(self) -> Path:
        """Return the absolute zip storage root."""

    def health(self) -> FilesystemHealthStatus:
        """Probe root directory readiness."""

    def resolve_path(self, key: str) -> Path:
        """Return the absolute path for one relative key."""

    def key_for(self, path: Path) -> str:
        """Return the relative key for one absolute path under the root."""

    def glob_keys(self, pattern: str) -> list[str]:
        """Return sorted keys matching a root-relative glob pattern."""

    def exists(self, key: str) -> bool:
        """Return whether a regular file exists at ``key``."""

    def file_size(self, key: str) -> int:
        """Return the byte size of the file at ``key``."""

    def md5_hexdigest(self, key: str) -> str:
        """Stream-hash the file at ``key`` and return its md5 hex digest."""

    def write_text_atomic(self, key: str, content: str) -> Path:
        """Write text atomically (temp file then replace) and return the path."""

    def read_text(self, key: str) -> str | None:
        """Return text content at ``key`` or ``None`` when absent."""

    def ensure_parent(self, key: str) -> Path:
        """Create the parent directory for ``key`` and return the full path."""

    def delete(self, key: str) -> bool:
        """Delete one file and return whether it existed."""
