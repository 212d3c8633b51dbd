"""Structural conventions every Moab on storage must follow."""

from __future__ import annotations

from pathlib import Path

from services.preservation.moab_validation.moab import (
    DATA_DIR,
    MANIFEST_INVENTORY_XML,
    MANIFESTS_DIR,
    SIGNATURE_CATALOG_XML,
    VERSION_DIR_PATTERN,
    MoabOnStorage,
)

INCORRECT_DIR_CONTENTS = "INCORRECT_DIR_CONTENTS"
MISSING_DIR = "MISSING_DIR"
EXTRA_CHILD_DETECTED = "EXTRA_CHILD_DETECTED"
VERSION_DIR_BAD_FORMAT = "VERSION_DIR_BAD_FORMAT"
NO_SIGNATURE_CATALOG = "NO_SIGNATURE_CATALOG"
NO_MANIFEST_INVENTORY = "NO_MANIFEST_INVENTORY"
NO_FILES_IN_MANIFEST_DIR = "NO_FILES_IN_MANIFEST_DIR"
VERSIONS_NOT_IN_ORDER = "VERSIONS_NOT_IN_ORDER"
METADATA_SUB_DIRS_DETECTED = "METADATA_SUB_DIRS_DETECTED"
FILES_IN_VERSION_DIR = "FILES_IN_VERSION_DIR"
NO_FILES_IN_METADATA_DIR = "NO_FILES_IN_METADATA_DIR"
NO_FILES_IN_CONTENT_DIR = "NO_FILES_IN_CONTENT_DIR"
CONTENT_SUB_DIRS_DETECTED = "CONTENT_SUB_DIRS_DETECTED"
BAD_SUB_DIR_IN_CONTENT_DIR = "BAD_SUB_DIR_IN_CONTENT_DIR"

_DATA_GROUPS = frozenset({"content", "metadata"})
_FORBIDDEN_CONTENT_SUBDIRS = frozenset({"data", "manifests", "content", "metadata"})


class StructureValidator:
    """Collect ``{error_code: message}`` entries for structural violations.

    Filesystem errors become entries; nothing is raised.
    """

    def __init__(self, *, allow_content_subdirs: bool = True) -> None:
        self._allow_content_subdirs = allow_content_subdirs

    def validation_errors(self, moab: MoabOnStorage) -> list[dict[str, str]]:
        errors: list[dict[str, str]] = []
        try:
            self._check_object_root(moab, errors)
            for version in moab.versions():
                self._check_version_dir(moab.version_path(version), errors)
        except OSError as exc:
            errors.append({MISSING_DIR: f"{type(exc).__name__}: {exc}"})
        return errors

    def _check_object_root(self, moab: MoabOnStorage, errors: list[dict[str, str]]) -> None:
        if not moab.object_dir.is_dir():
            errors.append({MISSING_DIR: f"Missing directory: {moab.object_dir}"})
            return
        names = sorted(child.name for child in moab.object_dir.iterdir())
        for name in names:
            if VERSION_DIR_PATTERN.match(name) is None:
                errors.append(
                    {
                        VERSION_DIR_BAD_FORMAT: (
                            f"Version directory name not in 'v00xx' format: {name}"
                        )
                    }
                )
            elif not (moab.object_dir / name).is_dir():
                errors.append({EXTRA_CHILD_DETECTED: f"Unexpected item in path: {name}"})
        versions = moab.versions()
        if versions != list(range(1, len(versions) + 1)):
            listing = ", ".join(f"v{v:04d}" for v in versions)
            errors.append(
                {
                    VERSIONS_NOT_IN_ORDER: (
                        "Should contain only sequential version directories. "
                        f"Current directories: {listing}"
                    )
                }
            )

    def _check_version_dir(self, version_dir: Path, errors: list[dict[str, str]]) -> None:
        label = version_dir.name
        children = {child.name: child for child in version_dir.iterdir()}
        if any(child.is_file() for child in children.values()):
            errors.append(
                {
                    FILES_IN_VERSION_DIR: (
                        f"Version {label}: version directory should not contain files; "
                        "only the manifests and data directories"
                    )
                }
            )
        unexpected = sorted(
            name
            for name, child in children.items()
            if child.is_dir() and name not in {MANIFESTS_DIR, DATA_DIR}
        )
        if unexpected:
            errors.append(
                {
                    INCORRECT_DIR_CONTENTS: (
                        f"Incorrect items under {label} directory: {', '.join(unexpected)}"
                    )
                }
            )
        if MANIFESTS_DIR not in children:
            errors.append({MISSING_DIR: f"Version {label}: Missing directory: manifests"})
        else:
            self._check_manifests_dir(label, children[MANIFESTS_DIR], errors)
        if DATA_DIR in children:
            self._check_data_dir(label, children[DATA_DIR], errors)

    def _check_manifests_dir(
        self, label: str, manifests_dir: Path, errors: list[dict[str, str]]
    ) -> None:
        children = list(manifests_dir.iterdir())
        files = {child.name for child in children if child.is_file()}
        if not files:
            errors.append(
                {NO_FILES_IN_MANIFEST_DIR: f"Version {label}: No files present in manifest dir"}
            )
            return
        if any(child.is_dir() for child in children):
            errors.append(
                {
                    INCORRECT_DIR_CONTENTS: (
                        f"Incorrect items under {label}/manifests directory: "
                        "manifests should only contain files"
                    )
                }
            )
        if MANIFEST_INVENTORY_XML not in files:
            errors.append(
                {NO_MANIFEST_INVENTORY: f"Version {label}: Missing manifestInventory.xml"}
            )
        if SIGNATURE_CATALOG_XML not in files:
            errors.append(
                {NO_SIGNATURE_CATALOG: f"Version {label}: Missing signatureCatalog.xml"}
            )

    def _check_data_dir(
        self, label: str, data_dir: Path, errors: list[dict[str, str]]
    ) -> None:
        children = {child.name: child for child in data_dir.iterdir()}
        unexpected = sorted(name for name in children if name not in _DATA_GROUPS)
        if unexpected:
            errors.append(
                {
                    INCORRECT_DIR_CONTENTS: (
                        f"Incorrect items under {label}/data directory: {', '.join(unexpected)}"
                    )
                }
            )
        if "metadata" in children:
            self._check_metadata_dir(label, children["metadata"], errors)
        if "content" in children:
            self._check_content_dir(label, children["content"], errors)

    def _check_metadata_dir(
        self, label: str, metadata_dir: Path, errors: list[dict[str, str]]
    ) -> None:
        children = list(metadata_dir.iterdir())
        if not any(child.is_file() for child in children):
            errors.append(
                {NO_FILES_IN_METADATA_DIR: f"Version {label}: No files present in metadata dir"}
            )
        for child in children:
            if child.is_dir():
                errors.append(
                    {
                        METADATA_SUB_DIRS_DETECTED: (
                            f"Version {label}: metadata directory should only contain "
                            f"files, not directories. Found directory: {child.name}"
                        )
                    }
                )

    def _check_content_dir(
        self, label: str, content_dir: Path, errors: list[dict[str, str]]
    ) -> None:
        if not any(path.is_file() for path in content_dir.rglob("*")):
            errors.append(
                {NO_FILES_IN_CONTENT_DIR: f"Version {label}: No files present in content dir"}
            )
        for path in sorted(content_dir.rglob("*")):
            if not path.is_dir():
                continue
            if not self._allow_content_subdirs:
                errors.append(
                    {
                        CONTENT_SUB_DIRS_DETECTED: (
                            f"Version {label}: content directory should only contain "
                            f"files, not directories. Found directory: {path.name}"
                        )
                    }
                )
            elif path.name in _FORBIDDEN_CONTENT_SUBDIRS:
                errors.append(
                    {
                        BAD_SUB_DIR_IN_CONTENT_DIR: (
                            f"Content directory contains forbidden directory: {path.name}"
                        )
                    }
                )
