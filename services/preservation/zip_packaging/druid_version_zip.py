"""Local transfer parts for one druid version.

``DruidVersionZip`` creates, checks and removes the split zip of one Moab
version in zip storage. ``DruidVersionZipPart`` is one file of that zip with
its md5 sidecar.
"""

from __future__ import annotations

import logging
import shlex
from pathlib import Path
from typing import Any

from packages.preservation_shared.ids import bare_druid, moab_object_path, version_dir_name
from packages.preservation_shared.logging import get_logger
from resources.substrates.filesystem import ZipStorageSubstrate
from services.preservation.zip_packaging.archiver import ZipArchiver, ZipInfo
from services.preservation.zip_packaging.config import ReplicationSettings
from services.preservation.zip_packaging.errors import ZipmakerFailure
from services.preservation.zip_packaging.moab_version_files import MoabVersionFiles
from services.preservation.zip_packaging.pathfinder import (
    MD5_SUFFIX,
    ZipPartPathfinder,
    part_suffix,
)

_LOGGER = get_logger(__name__)


class DruidVersionZipPart:
    """One part file in zip storage, addressed by its relative key."""

    def __init__(self, *, key: str, storage: ZipStorageSubstrate) -> None:
        self.key = key
        self._storage = storage
        self._hexdigest: str | None = None

    @property
    def suffix(self) -> str:
        """Return the part extension, for example ``.z03``."""
        return part_suffix(self.key)

    @property
    def sidecar_key(self) -> str:
        return f"{self.key}{MD5_SUFFIX}"

    @property
    def file_path(self) -> Path:
        return self._storage.resolve_path(self.key)

    def size(self) -> int:
        return self._storage.file_size(self.key)

    def hexdigest(self) -> str:
        """Return the md5 of the part file, computed once."""
        if self._hexdigest is None:
            self._hexdigest = self._storage.md5_hexdigest(self.key)
        return self._hexdigest

    def write_md5(self) -> str:
        """Write the sidecar and return the digest written."""
        digest = self.hexdigest()
        self._storage.write_text_atomic(self.sidecar_key, digest)
        return digest

    def read_md5(self) -> str | None:
        """Return the sidecar digest, or ``None`` when there is no sidecar."""
        content = self._storage.read_text(self.sidecar_key)
        if content is None:
            return None
        return content.strip()

    def md5_match(self) -> bool:
        return self.read_md5() == self.hexdigest()

    def metadata(self, *, zip_info: ZipInfo, parts_count: int) -> dict[str, Any]:
        """Return the delivery metadata that accompanies this part."""
        return {
            "checksum_md5": self.hexdigest(),
            "size": self.size(),
            "parts_count": parts_count,
            "suffix": self.suffix,
            "zip_cmd": zip_info.zip_cmd,
            "zip_version": zip_info.zip_version,
        }


class DruidVersionZip:
    """Create and inspect the split zip of one Moab version."""

    def __init__(
        self,
        *,
        druid: str,
        version: int,
        storage: ZipStorageSubstrate,
        archiver: ZipArchiver,
        settings: ReplicationSettings | None = None,
        storage_location: str | Path | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.druid = bare_druid(druid)
        self.version = version
        self._storage = storage
        self._archiver = archiver
        self._settings = settings or ReplicationSettings()
        self._storage_location = storage_location
        self._logger = logger or _LOGGER
        self.pathfinder = ZipPartPathfinder(
            druid=self.druid, version=version, storage=storage
        )

    @property
    def moab_version_path(self) -> Path:
        """Return ``<storage_location>/<druid tree>/<druid>/vNNNN``."""
        if self._storage_location is None:
            raise ZipmakerFailure(
                f"cannot determine moab version path for {self.druid} "
                f"v{self.version}: storage_location not provided"
            )
        return moab_object_path(self._storage_location, self.druid) / version_dir_name(
            self.version
        )

    def part_keys(self) -> list[str]:
        return self.pathfinder.part_keys()

    def parts(self) -> list[DruidVersionZipPart]:
        """Return every existing part in part order."""
        return [
            DruidVersionZipPart(key=key, storage=self._storage)
            for key in self.pathfinder.part_keys()
        ]

    def total_part_size(self) -> int:
        return sum(part.size() for part in self.parts())

    def moab_version_size(self) -> int:
        """Return the summed size of the Moab version's files."""
        return MoabVersionFiles(self.moab_version_path).size()

    def complete(self) -> bool:
        """Return whether parts exist, each with a sidecar whose md5 matches."""
        parts = self.parts()
        if not parts:
            return False
        if not self.pathfinder.part_keys_match_sidecars():
            return False
        return all(part.md5_match() for part in parts)

    def zip_info(self) -> ZipInfo:
        """Return how parts for this version are (or would be) produced."""
        argv = self._archiver.command_line(
            target=self._storage.resolve_path(self.pathfinder.zip_key),
            source=self._archive_source(),
            split_size=self._settings.zip_split_size,
        )
        return ZipInfo(zip_cmd=shlex.join(argv), zip_version=self._archiver.version())

    def find_or_create_zip(self) -> ZipInfo:
        """Reuse complete parts or rebuild them from scratch."""
        if self.complete():
            self._logger.info(
                "reusing complete zip parts",
                extra={"druid": self.druid, "version": self.version},
            )
            return self.zip_info()
        self.cleanup_zip_parts()
        return self.create_zip()

    def create_zip(self) -> ZipInfo:
        """Zip the Moab version, check part sizes and write md5 sidecars.

        Any failure removes every part and sidecar for this druid version
        before the error propagates.
        """
        files = MoabVersionFiles(self.moab_version_path)
        try:
            files.ensure_readable()
            content_size = files.size()
            target = self._storage.ensure_parent(self.pathfinder.zip_key)
            zip_info = self._archiver.create(
                work_dir=self.moab_version_path.parent.parent,
                target=target,
                source=self._archive_source(),
                split_size=self._settings.zip_split_size,
            )
            total_part_size = self.total_part_size()
            if total_part_size <= content_size:
                raise ZipmakerFailure(
                    f"zip size ({total_part_size}) is not larger than the moab "
                    f"version size ({content_size})"
                )
            parts = self.parts()
            for part in parts:
                part.write_md5()
        except Exception as exc:
            self._logger.warning(
                "zip creation failed; removing parts",
                extra={
                    "druid": self.druid,
                    "version": self.version,
                    "exception_type": type(exc).__name__,
                },
            )
            self.cleanup_zip_parts()
            raise
        self._logger.info(
            "zip parts created",
            extra={"druid": self.druid, "version": self.version, "parts": len(parts)},
        )
        return zip_info

    def cleanup_zip_parts(self) -> int:
        """Delete every part and sidecar for this druid version."""
        removed = 0
        for key in self.pathfinder.all_keys():
            if self._storage.delete(key):
                removed += 1
        return removed

    def _archive_source(self) -> str:
        return f"{self.druid}/{version_dir_name(self.version)}"
