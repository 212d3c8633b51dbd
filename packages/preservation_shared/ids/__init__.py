"""Druid identifier helpers shared by every preservation component."""

from .druid import (
    DRUID_PATTERN,
    STRICT_DRUID_PATTERN,
    InvalidDruidError,
    bare_druid,
    druid_tree_path,
    druid_tree_segments,
    is_valid_druid,
    moab_object_path,
    namespaced_druid,
    version_dir_name,
    zip_key_base,
)

__all__ = [
    "DRUID_PATTERN",
    "STRICT_DRUID_PATTERN",
    "InvalidDruidError",
    "bare_druid",
    "druid_tree_path",
    "druid_tree_segments",
    "is_valid_druid",
    "moab_object_path",
    "namespaced_druid",
    "version_dir_name",
    "zip_key_base",
]
