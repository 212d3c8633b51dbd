"""Key layout for transfer parts and md5 sidecars in zip storage.

Parts of one druid version share the stem ``ab/123/cd/4567/ab123cd4567.v0001``.
A single-part zip ends ``.zip``; a split zip ends ``.z01``, ``.z02``, ... with
the final part ending ``.zip``, as the zip utility writes them. The same
relative key is used as the remote object key.
"""

from __future__ import annotations

import math

from packages.preservation_shared.ids import zip_key_base
from resources.substrates.filesystem import ZipStorageSubstrate

ZIP_SUFFIX = ".zip"
MD5_SUFFIX = ".md5"


def part_suffix(key: str) -> str:
    """Return the extension of one part key, for example ``.z03``."""
    _, dot, extension = key.rpartition(".")
    if not dot:
        raise ValueError(f"part key has no extension: {key!r}")
    return f".{extension}"


def part_sort_key(key: str) -> tuple[int, int]:
    """Order split parts numerically with the ``.zip`` part last."""
    suffix = part_suffix(key)
    if suffix == ZIP_SUFFIX:
        return (1, 0)
    return (0, int(suffix[2:]))


def expected_part_suffixes(total_bytes: int, split_bytes: int) -> list[str]:
    """Return the suffixes a split zip of ``total_bytes`` is written with."""
    if split_bytes <= 0:
        raise ValueError("split_bytes must be positive")
    count = max(1, math.ceil(total_bytes / split_bytes))
    return [f".z{index:02d}" for index in range(1, count)] + [ZIP_SUFFIX]


class ZipPartPathfinder:
    """Resolve part, sidecar and cleanup keys for one druid version."""

    def __init__(self, *, druid: str, version: int, storage: ZipStorageSubstrate) -> None:
        self.druid = druid
        self.version = version
        self._storage = storage
        self.base_key = zip_key_base(druid, version)

    @property
    def zip_key(self) -> str:
        """Return the key of the ``.zip`` part."""
        return self.key_for(ZIP_SUFFIX)

    def key_for(self, suffix: str) -> str:
        """Return the part key for ``suffix``, for example ``.z01``."""
        return f"{self.base_key}{suffix}"

    def part_keys(self) -> list[str]:
        """Return keys of existing part files in part order."""
        keys = [
            key
            for key in self._storage.glob_keys(f"{self.base_key}.z*")
            if not key.endswith(MD5_SUFFIX)
        ]
        return sorted(keys, key=part_sort_key)

    def sidecar_part_keys(self) -> list[str]:
        """Return part keys implied by existing md5 sidecar files."""
        keys = [
            key.removesuffix(MD5_SUFFIX)
            for key in self._storage.glob_keys(f"{self.base_key}.*{MD5_SUFFIX}")
        ]
        return sorted(keys, key=part_sort_key)

    def part_keys_match_sidecars(self) -> bool:
        """Return whether every part has a sidecar and every sidecar a part."""
        return set(self.part_keys()) == set(self.sidecar_part_keys())

    def all_keys(self) -> list[str]:
        """Return every part and sidecar key for this druid version."""
        return self._storage.glob_keys(f"{self.base_key}.*")
