"""Druid grammar, normalization and druid-tree path helpers.

A druid is an 11 character identifier of the form ``aa999aa9999``. With
``strict=True`` the letters are further limited to a consonant alphabet.
Storage trees spread objects over ``ab/123/cd/4567`` directories.
"""

from __future__ import annotations

import re
from pathlib import Path

DRUID_PATTERN = re.compile(r"^[a-z]{2}[0-9]{3}[a-z]{2}[0-9]{4}$")
STRICT_DRUID_PATTERN = re.compile(
    r"^[b-df-hjkmnp-tv-z]{2}[0-9]{3}[b-df-hjkmnp-tv-z]{2}[0-9]{4}$"
)
_PREFIX = "druid:"


class InvalidDruidError(ValueError):
    """Raised when a value does not match the druid grammar."""


def bare_druid(value: str) -> str:
    """Return ``value`` without an optional ``druid:`` prefix."""
    text = value.strip()
    if text.startswith(_PREFIX):
        return text[len(_PREFIX) :]
    return text


def namespaced_druid(value: str) -> str:
    """Return ``value`` with the ``druid:`` prefix used by external services."""
    return f"{_PREFIX}{bare_druid(value)}"


def is_valid_druid(value: str | None, *, strict: bool = False) -> bool:
    """Return whether ``value`` (prefix optional) matches the druid grammar."""
    if value is None:
        return False
    pattern = STRICT_DRUID_PATTERN if strict else DRUID_PATTERN
    return pattern.match(bare_druid(value)) is not None


def druid_tree_segments(druid: str) -> tuple[str, str, str, str]:
    """Split a druid into its four druid-tree directory segments."""
    bare = bare_druid(druid)
    if DRUID_PATTERN.match(bare) is None:
        raise InvalidDruidError(f"invalid druid: {druid!r}")
    return (bare[0:2], bare[2:5], bare[5:7], bare[7:11])


def druid_tree_path(root: str | Path, druid: str) -> Path:
    """Return ``<root>/ab/123/cd/4567`` for one druid."""
    return Path(root).joinpath(*druid_tree_segments(druid))


def version_dir_name(version: int) -> str:
    """Return the Moab version directory name, for example ``v0003``."""
    if version < 1:
        raise ValueError(f"version must be positive, got {version}")
    return f"v{version:04d}"


def moab_object_path(storage_location: str | Path, druid: str) -> Path:
    """Return ``<storage_location>/ab/123/cd/4567/ab123cd4567``."""
    return druid_tree_path(storage_location, druid) / bare_druid(druid)


def zip_key_base(druid: str, version: int) -> str:
    """Return the relative zip key stem, for example ``ab/123/cd/4567/ab123cd4567.v0001``."""
    segments = druid_tree_segments(druid)
    return "/".join((*segments, f"{bare_druid(druid)}.{version_dir_name(version)}"))
