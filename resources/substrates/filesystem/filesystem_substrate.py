"""Local zip storage substrate with atomic sidecar writes."""

from __future__ import annotations

import hashlib
import os
from pathlib import Path, PurePosixPath
from tempfile import NamedTemporaryFile

from resources.substrates.filesystem.config import FilesystemSubstrateSettings
from resources.substrates.filesystem.substrate import (
    FilesystemHealthStatus,
    ZipStorageSubstrate,
)

_HASH_CHUNK_BYTES = 8 * 1024 * 1024


class LocalZipStorageSubstrate(ZipStorageSubstrate):
    """Persist transfer parts and sidecars under one local root directory."""

    def __init__(self, *, settings: FilesystemSubstrateSettings) -> None:
        self._settings = settings
        self._root = settings.root_path()

    @property
    def root(self) -> Path:
        """Return the absolute zip storage root."""
        return self._root

    def health(self) -> FilesystemHealthStatus:
        """Return readiness for root dir access."""
        try:
            self._root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            return FilesystemHealthStatus(
                ready=False,
                detail=f"filesystem check failed: {type(exc).__name__}",
            )
        if not self._root.is_dir():
            return FilesystemHealthStatus(
                ready=False,
                detail=f"root path is not a directory: {self._root}",
            )
        return FilesystemHealthStatus(ready=True, detail="ok")

    def resolve_path(self, key: str) -> Path:
        """Return the absolute path for one relative key."""
        return self._root.joinpath(*_key_parts(key))

    def key_for(self, path: Path) -> str:
        """Return the relative key for one absolute path under the root."""
        return path.resolve().relative_to(self._root).as_posix()

    def glob_keys(self, pattern: str) -> list[str]:
        """Return sorted keys matching a root-relative glob pattern."""
        _key_parts(pattern)
        return sorted(
            path.relative_to(self._root).as_posix()
            for path in self._root.glob(pattern)
            if path.is_file()
        )

    def exists(self, key: str) -> bool:
        """Return whether a regular file exists at ``key``."""
        return self.resolve_path(key).is_file()

    def file_size(self, key: str) -> int:
        """Return the byte size of the file at ``key``."""
        return self.resolve_path(key).stat().st_size

    def md5_hexdigest(self, key: str) -> str:
        """Stream-hash the file at ``key`` and return its md5 hex digest."""
        digest = hashlib.md5()
        with self.resolve_path(key).open("rb") as handle:
            for chunk in iter(lambda: handle.read(_HASH_CHUNK_BYTES), b""):
                digest.update(chunk)
        return digest.hexdigest()

    def write_text_atomic(self, key: str, content: str) -> Path:
        """Write text through a temp file and ``os.replace`` into place."""
        path = self.ensure_parent(key)
        tmp_path: Path | None = None
        try:
            with NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                prefix=f".{self._settings.temp_prefix}-",
                suffix=".tmp",
                dir=path.parent,
                delete=False,
            ) as handle:
                tmp_path = Path(handle.name)
                handle.write(content)
                handle.flush()
                if self._settings.fsync_writes:
                    os.fsync(handle.fileno())
            os.replace(tmp_path, path)
            return path
        finally:
            if tmp_path is not None and tmp_path.exists():
                tmp_path.unlink(missing_ok=True)

    def read_text(self, key: str) -> str | None:
        """Return text content at ``key`` or ``None`` when absent."""
        path = self.resolve_path(key)
        if not path.is_file():
            return None
        return path.read_text(encoding="utf-8")

    def ensure_parent(self, key: str) -> Path:
        """Create the parent directory for ``key`` and return the full path."""
        if self._root.exists() and not self._root.is_dir():
            raise OSError(f"zip storage root is not a directory: {self._root}")
        path = self.resolve_path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        return path

    def delete(self, key: str) -> bool:
        """Delete one file and return whether it existed."""
        path = self.resolve_path(key)
        if not path.exists():
            return False
        path.unlink()
        return True


def _key_parts(key: str) -> tuple[str, ...]:
    """Split a relative key, rejecting absolute paths and parent traversal."""
    pure = PurePosixPath(key)
    if key.strip() == "" or pure.is_absolute() or ".." in pure.parts:
        raise ValueError(f"invalid zip storage key: {key!r}")
    return pure.parts
