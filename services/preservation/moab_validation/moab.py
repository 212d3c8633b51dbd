"""Minimal reader for Moab objects on local storage.

A Moab lives at ``<storage_location>/ab/123/cd/4567/ab123cd4567`` and holds
sequential ``vNNNN`` version directories, each with a flat ``manifests/``
directory and an optional ``data/{content,metadata}`` tree.
"""

from __future__ import annotations

import hashlib
import os
import re
import xml.etree.ElementTree as ET
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from packages.preservation_shared.ids import (
    bare_druid,
    is_valid_druid,
    moab_object_path,
    version_dir_name,
)

VERSION_DIR_PATTERN = re.compile(r"^v(\d{4})$")
MANIFESTS_DIR = "manifests"
DATA_DIR = "data"
MANIFEST_INVENTORY_XML = "manifestInventory.xml"
SIGNATURE_CATALOG_XML = "signatureCatalog.xml"
_CHUNK_BYTES = 1_048_576


@dataclass(frozen=True)
class FileSignature:
    """Fixity values recorded for, or computed from, one file."""

    size: int
    md5: str
    sha1: str | None = None
    sha256: str | None = None

    def matches(self, actual: "FileSignature") -> bool:
        """Return whether ``actual`` agrees on size, md5 and any recorded sha."""
        if self.size != actual.size or self.md5 != actual.md5:
            return False
        if self.sha1 and actual.sha1 and self.sha1 != actual.sha1:
            return False
        if self.sha256 and actual.sha256 and self.sha256 != actual.sha256:
            return False
        return True


@dataclass(frozen=True)
class ManifestEntry:
    """One file listed in a version's ``manifestInventory.xml``."""

    path: str
    signature: FileSignature


@dataclass(frozen=True)
class SignatureCatalogEntry:
    """One data file listed in a ``signatureCatalog.xml``."""

    original_version: int
    group_id: str
    path: str
    signature: FileSignature

    @property
    def storage_path(self) -> str:
        """Return the path relative to the object directory."""
        return "/".join(
            (version_dir_name(self.original_version), DATA_DIR, self.group_id, self.path)
        )


def compute_signature(path: Path, *, chunk_bytes: int = _CHUNK_BYTES) -> FileSignature:
    """Stream ``path`` once and return its size, md5, sha1 and sha256."""
    md5 = hashlib.md5()
    sha1 = hashlib.sha1()
    sha256 = hashlib.sha256()
    size = 0
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(chunk_bytes), b""):
            size += len(chunk)
            md5.update(chunk)
            sha1.update(chunk)
            sha256.update(chunk)
    return FileSignature(
        size=size,
        md5=md5.hexdigest(),
        sha1=sha1.hexdigest(),
        sha256=sha256.hexdigest(),
    )


class MoabOnStorage:
    """Read-only view of one druid's Moab under one storage location."""

    def __init__(self, *, druid: str, storage_location: str | Path) -> None:
        self.druid = bare_druid(druid)
        self.storage_location = Path(storage_location)
        self.object_dir = moab_object_path(self.storage_location, self.druid)

    def exists(self) -> bool:
        """Return whether the object directory holds at least one version."""
        return self.object_dir.is_dir() and self.current_version() is not None

    def versions(self) -> list[int]:
        """Return version numbers of well-formed version directories, ascending."""
        if not self.object_dir.is_dir():
            return []
        found: list[int] = []
        for child in self.object_dir.iterdir():
            match = VERSION_DIR_PATTERN.match(child.name)
            if match and child.is_dir():
                found.append(int(match.group(1)))
        return sorted(found)

    def current_version(self) -> int | None:
        """Return the highest version on disk, or ``None`` when there is none."""
        versions = self.versions()
        return versions[-1] if versions else None

    def version_path(self, version: int) -> Path:
        return self.object_dir / version_dir_name(version)

    def manifests_path(self, version: int) -> Path:
        return self.version_path(version) / MANIFESTS_DIR

    def manifest_inventory_path(self, version: int) -> Path:
        return self.manifests_path(version) / MANIFEST_INVENTORY_XML

    def signature_catalog_path(self, version: int) -> Path:
        return self.manifests_path(version) / SIGNATURE_CATALOG_XML

    def size(self) -> int:
        """Return the byte total of every file in the object directory."""
        return sum(path.stat().st_size for path in self._walk_files(self.object_dir))

    def data_files(self) -> list[Path]:
        """Return every file under any version's ``data/content`` or ``data/metadata``."""
        files: list[Path] = []
        for version in self.versions():
            for group in ("content", "metadata"):
                group_dir = self.version_path(version) / DATA_DIR / group
                if group_dir.is_dir():
                    files.extend(self._walk_files(group_dir))
        return sorted(files)

    def read_manifest_inventory(self, version: int) -> list[ManifestEntry]:
        """Parse ``manifestInventory.xml``; raises ``OSError`` or ``ET.ParseError``."""
        root = ET.parse(self.manifest_inventory_path(version)).getroot()
        entries: list[ManifestEntry] = []
        for file_element in root.iter("file"):
            signature = _signature_from(file_element.find("fileSignature"))
            for instance in file_element.findall("fileInstance"):
                entries.append(
                    ManifestEntry(path=instance.get("path", ""), signature=signature)
                )
        return entries

    def read_signature_catalog(self, version: int) -> list[SignatureCatalogEntry]:
        """Parse ``signatureCatalog.xml``; raises ``OSError`` or ``ET.ParseError``."""
        root = ET.parse(self.signature_catalog_path(version)).getroot()
        return [
            SignatureCatalogEntry(
                original_version=int(entry.get("originalVersion", "0")),
                group_id=entry.get("groupId", ""),
                path=entry.get("storagePath", ""),
                signature=_signature_from(entry.find("fileSignature")),
            )
            for entry in root.iter("entry")
        ]

    @staticmethod
    def _walk_files(directory: Path) -> Iterator[Path]:
        for dirpath, _dirnames, filenames in os.walk(directory):
            for filename in filenames:
                yield Path(dirpath) / filename


def iter_moab_druids(storage_location: str | Path) -> Iterator[str]:
    """Yield druids of every Moab directory found in a storage root's druid tree."""
    root = Path(storage_location)
    if not root.is_dir():
        return
    for candidate in sorted(root.glob("*/*/*/*/*")):
        if not candidate.is_dir() or not is_valid_druid(candidate.name):
            continue
        if candidate == moab_object_path(root, candidate.name):
            yield candidate.name


def _signature_from(element: ET.Element | None) -> FileSignature:
    if element is None:
        raise ET.ParseError("fileSignature element missing")
    try:
        size = int(element.get("size", ""))
    except ValueError as exc:
        raise ET.ParseError(f"invalid fileSignature size: {exc}") from exc
    return FileSignature(
        size=size,
        md5=element.get("md5", ""),
        sha1=element.get("sha1") or None,
        sha256=element.get("sha256") or None,
    )
