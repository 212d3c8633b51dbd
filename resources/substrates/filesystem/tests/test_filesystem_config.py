"""Configuration tests for zip storage substrate settings."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from packages.preservation_shared.config import PreservationSettings
from resources.substrates.filesystem.config import (
    FilesystemSubstrateSettings,
    resolve_filesystem_substrate_settings,
)


def test_root_dir_is_required() -> None:
    """Blank root directory should fail validation."""
    with pytest.raises(ValidationError, match="root_dir is required"):
        FilesystemSubstrateSettings(root_dir="  ")


def test_resolver_reads_substrate_filesystem_namespace(tmp_path) -> None:
    """Zip storage root should resolve from ``components.substrate.filesystem``."""
    settings = PreservationSettings.model_validate(
        {"components": {"substrate": {"filesystem": {"root_dir": str(tmp_path)}}}}
    )

    resolved = resolve_filesystem_substrate_settings(settings)

    assert resolved.root_path() == tmp_path.resolve()
    assert resolved.fsync_writes is True


@pytest.mark.parametrize("prefix", ["", "zip tmp", "../up"])
def test_temp_prefix_must_be_a_plain_token(prefix: str) -> None:
    with pytest.raises(ValidationError):
        FilesystemSubstrateSettings(temp_prefix=prefix)
