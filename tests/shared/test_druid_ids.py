"""Tests for druid normalization and druid-tree path helpers."""

from __future__ import annotations

from pathlib import Path

import pytest

from packages.preservation_shared.ids import (
    InvalidDruidError,
    bare_druid,
    druid_tree_path,
    is_valid_druid,
    moab_object_path,
    namespaced_druid,
    version_dir_name,
    zip_key_base,
)


def test_prefix_is_added_and_stripped() -> None:
    assert bare_druid("druid:bj102hs9687") == "bj102hs9687"
    assert bare_druid("bj102hs9687") == "bj102hs9687"
    assert namespaced_druid("bj102hs9687") == "druid:bj102hs9687"
    assert namespaced_druid("druid:bj102hs9687") == "druid:bj102hs9687"


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("bj102hs9687", True),
        ("druid:bj102hs9687", True),
        ("ab123cd4567", True),
        ("ba102hs9687", True),
        ("AB123CD4567", False),
        ("bj102hs968", False),
        ("", False),
        (None, False),
    ],
)
def test_is_valid_druid(value, expected) -> None:
    assert is_valid_druid(value) is expected


def test_druid_tree_paths() -> None:
    assert druid_tree_path("/storage", "bj102hs9687") == Path("/storage/bj/102/hs/9687")
    assert moab_object_path("/storage", "druid:bj102hs9687") == Path(
        "/storage/bj/102/hs/9687/bj102hs9687"
    )


def test_invalid_druid_is_rejected() -> None:
    with pytest.raises(InvalidDruidError):
        druid_tree_path("/storage", "not-a-druid")


def test_zip_key_base_and_version_dirs() -> None:
    assert zip_key_base("bj102hs9687", 1) == "bj/102/hs/9687/bj102hs9687.v0001"
    assert version_dir_name(12) == "v0012"
    with pytest.raises(ValueError):
        version_dir_name(0)


@pytest.mark.parametrize(
    ("value", "expected"),
    [("bj102hs9687", True), ("ab123cd4567", False), ("bl102hs9687", False)],
)
def test_strict_grammar_excludes_vowels_and_l(value, expected) -> None:
    assert is_valid_druid(value, strict=True) is expected


def test_example_druid_maps_to_its_tree() -> None:
    assert moab_object_path("/storage", "ab123cd4567") == Path(
        "/storage/ab/123/cd/4567/ab123cd4567"
    )
