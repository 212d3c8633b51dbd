"""Builders for well-formed Moab trees used across test suites."""

from __future__ import annotations

import hashlib
from collections.abc import Mapping
from pathlib import Path
from xml.sax.saxutils import quoteattr

from packages.preservation_shared.ids import moab_object_path, version_dir_name

VersionFiles = Mapping[str, bytes]


def _signature_attrs(payload: bytes) -> str:
    return (
        f'size="{len(payload)}" md5="{hashlib.md5(payload).hexdigest()}" '
        f'sha1="{hashlib.sha1(payload).hexdigest()}" '
        f'sha256="{hashlib.sha256(payload).hexdigest()}"'
    )


def build_moab(
    storage_root: Path,
    druid: str,
    versions: list[VersionFiles],
) -> Path:
    """Write a valid Moab with one entry of ``versions`` per version directory.

    Each mapping key is a path under ``data/`` such as ``content/page1.txt``.
    Returns the object directory.
    """
    object_dir = moab_object_path(storage_root, druid)
    cataloged: list[tuple[int, str, str, bytes]] = []
    for number, files in enumerate(versions, start=1):
        version_dir = object_dir / version_dir_name(number)
        manifests = version_dir / "manifests"
        manifests.mkdir(parents=True)
        for relative, payload in files.items():
            target = version_dir / "data" / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(payload)
            group, _, path = relative.partition("/")
            cataloged.append((number, group, path, payload))

        manifest_files = {
            "versionInventory.xml": f'<versionInventory versionId="{number}"/>'.encode(),
            "versionAdditions.xml": f'<fileInventory versionId="{number}"/>'.encode(),
            "signatureCatalog.xml": _signature_catalog(druid, number, cataloged),
        }
        for name, payload in manifest_files.items():
            (manifests / name).write_bytes(payload)
        (manifests / "manifestInventory.xml").write_bytes(
            _manifest_inventory(druid, number, manifest_files)
        )
    return object_dir


def _signature_catalog(
    druid: str, version: int, entries: list[tuple[int, str, str, bytes]]
) -> bytes:
    lines = [f'<signatureCatalog objectId="druid:{druid}" versionId="{version}">']
    for original, group, path, payload in entries:
        lines.append(
            f'  <entry originalVersion="{original}" groupId="{group}" '
            f"storagePath={quoteattr(path)}>"
        )
        lines.append(f"    <fileSignature {_signature_attrs(payload)}/>")
        lines.append("  </entry>")
    lines.append("</signatureCatalog>")
    return "\n".join(lines).encode()


def _manifest_inventory(
    druid: str, version: int, files: Mapping[str, bytes]
) -> bytes:
    lines = [
        f'<fileInventory type="manifests" objectId="druid:{druid}" versionId="{version}">',
        '  <fileGroup groupId="manifests">',
    ]
    for name, payload in files.items():
        lines.append("    <file>")
        lines.append(f"      <fileSignature {_signature_attrs(payload)}/>")
        lines.append(f"      <fileInstance path={quoteattr(name)}/>")
        lines.append("    </file>")
    lines.extend(["  </fileGroup>", "</fileInventory>"])
    return "\n".join(lines).encode()


def version_path(storage_root: Path, druid: str, version: int) -> Path:
    """Return the on-disk directory of one Moab version."""
    return moab_object_path(storage_root, druid) / version_dir_name(version)
