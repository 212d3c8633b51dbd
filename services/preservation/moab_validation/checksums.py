"""Manifest inventory and signature catalog fixity checks."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from pathlib import Path

from services.preservation.audit_results import AuditResults, ResultCode
from services.preservation.moab_validation.moab import (
    MANIFEST_INVENTORY_XML,
    FileSignature,
    MoabOnStorage,
    SignatureCatalogEntry,
    compute_signature,
)


class ChecksumValidator:
    """Record fixity findings for one Moab into an ``AuditResults``.

    Older versions are checked for presence only; files originating in the
    latest version are re-hashed.
    """

    def __init__(
        self,
        *,
        moab: MoabOnStorage,
        results: AuditResults,
        chunk_bytes: int = 1_048_576,
    ) -> None:
        self._moab = moab
        self._results = results
        self._chunk_bytes = chunk_bytes
        self._latest = moab.current_version()

    def validate(self) -> None:
        """Run manifest inventory checks then signature catalog checks."""
        self.validate_manifest_inventories()
        self.validate_signature_catalog()

    def validate_manifest_inventories(self) -> None:
        for version in reversed(self._moab.versions()):
            self._validate_manifest_inventory(version)

    def validate_signature_catalog(self) -> None:
        if self._latest is None:
            return
        catalog_path = self._moab.signature_catalog_path(self._latest)
        try:
            entries = self._moab.read_signature_catalog(self._latest)
        except FileNotFoundError:
            self._results.add_result(
                ResultCode.SIGNATURE_CATALOG_NOT_IN_MOAB,
                {"signature_catalog_path": str(catalog_path)},
            )
            return
        except ET.ParseError:
            self._results.add_result(
                ResultCode.INVALID_MANIFEST, {"manifest_file_path": str(catalog_path)}
            )
            return

        cataloged = {self._moab.object_dir / entry.storage_path for entry in entries}
        for data_file in self._moab.data_files():
            if data_file not in cataloged:
                self._results.add_result(
                    ResultCode.FILE_NOT_IN_SIGNATURE_CATALOG,
                    {
                        "file_path": str(data_file),
                        "signature_catalog_path": str(catalog_path),
                    },
                )
        for entry in entries:
            self._validate_signature_entry(entry, catalog_path)

    def _validate_manifest_inventory(self, version: int) -> None:
        manifests_dir = self._moab.manifests_path(version)
        inventory_path = self._moab.manifest_inventory_path(version)
        try:
            entries = self._moab.read_manifest_inventory(version)
        except FileNotFoundError:
            self._results.add_result(
                ResultCode.MANIFEST_NOT_IN_MOAB, {"manifest_file_path": str(inventory_path)}
            )
            return
        except ET.ParseError:
            self._results.add_result(
                ResultCode.INVALID_MANIFEST, {"manifest_file_path": str(inventory_path)}
            )
            return

        listed = {entry.path for entry in entries}
        for entry in entries:
            file_path = manifests_dir / entry.path
            if not file_path.is_file():
                self._results.add_result(
                    ResultCode.FILE_NOT_IN_MOAB,
                    {
                        "file_path": str(file_path),
                        "manifest_file_path": str(inventory_path),
                    },
                )
            elif version == self._latest and not self._matches(
                file_path, entry.signature
            ):
                self._results.add_result(
                    ResultCode.MOAB_FILE_CHECKSUM_MISMATCH,
                    {"file_path": str(file_path), "version": version},
                )
        for on_disk in sorted(manifests_dir.iterdir()):
            if on_disk.is_file() and on_disk.name != MANIFEST_INVENTORY_XML:
                if on_disk.name not in listed:
                    self._results.add_result(
                        ResultCode.FILE_NOT_IN_MANIFEST,
                        {
                            "file_path": str(on_disk),
                            "manifest_file_path": str(inventory_path),
                        },
                    )

    def _validate_signature_entry(
        self, entry: SignatureCatalogEntry, catalog_path: Path
    ) -> None:
        file_path = self._moab.object_dir / entry.storage_path
        if not file_path.is_file():
            self._results.add_result(
                ResultCode.FILE_NOT_IN_MOAB,
                {"file_path": str(file_path), "manifest_file_path": str(catalog_path)},
            )
            return
        if entry.original_version == self._latest and not self._matches(
            file_path, entry.signature
        ):
            self._results.add_result(
                ResultCode.MOAB_FILE_CHECKSUM_MISMATCH,
                {"file_path": str(file_path), "version": entry.original_version},
            )

    def _matches(self, file_path: Path, expected: FileSignature) -> bool:
        try:
            actual = compute_signature(file_path, chunk_bytes=self._chunk_bytes)
        except OSError:
            return False
        return expected.matches(actual)
