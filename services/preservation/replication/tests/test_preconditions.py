"""Behavior tests for delivery metadata preconditions."""

from __future__ import annotations

import pytest

from packages.preservation_shared.errors import ErrorCategory, codes
from services.preservation.replication import (
    DeliveryPreconditionError,
    validate_delivery_metadata,
)

_GOOD = {
    "checksum_md5": "d41d8cd98f00b204e9800998ecf8427e",
    "size": 4096,
    "parts_count": 1,
    "suffix": ".zip",
    "zip_cmd": "zip -r0X -s 10g /zips/bj/102/hs/9687/bj102hs9687.v0001.zip bj102hs9687/v0001",
    "zip_version": "Zip 3.0",
}


def test_complete_metadata_passes() -> None:
    result = validate_delivery_metadata(_GOOD)

    assert result.ok
    assert result.errors == ()
    assert result.raise_for_errors().size == 4096


def test_missing_metadata_is_rejected() -> None:
    result = validate_delivery_metadata(None)

    assert not result.ok
    assert result.errors[0].code == codes.MISSING_REQUIRED_FIELD
    assert result.errors[0].message == "delivery metadata not found"


@pytest.mark.parametrize("key", ["checksum_md5", "size", "zip_cmd", "zip_version"])
def test_each_required_key_is_enforced(key: str) -> None:
    metadata = {k: v for k, v in _GOOD.items() if k != key}

    result = validate_delivery_metadata(metadata)

    assert not result.ok
    assert [error.metadata["field"] for error in result.errors] == [key]
    assert result.errors[0].category == ErrorCategory.VALIDATION


def test_blank_zip_version_counts_as_missing() -> None:
    result = validate_delivery_metadata({**_GOOD, "zip_version": "  "})

    assert not result.ok
    assert result.errors[0].message == "required metadata[zip_version] not found"


def test_malformed_md5_is_invalid() -> None:
    result = validate_delivery_metadata({**_GOOD, "checksum_md5": "not-an-md5"})

    assert not result.ok
    assert result.errors[0].code == codes.INVALID_ARGUMENT
    with pytest.raises(DeliveryPreconditionError, match="checksum_md5"):
        result.raise_for_errors()
