"""Settings for the local zip storage directory."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from packages.preservation_shared.config import (
    PreservationSettings,
    resolve_component_settings,
)

RESOURCE_COMPONENT_ID = "substrate_filesystem"


class FilesystemSubstrateSettings(BaseModel):
    """Where zip parts and their ``.md5`` sidecars are staged for delivery.

    ``temp_prefix`` names the dot-files parts are written to before the
    atomic rename; ``fsync_writes`` may be disabled for throwaway test dirs.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    root_dir: str = "/tmp/prescat/zip_storage"
    temp_prefix: str = Field(default="ziptmp", pattern=r"^[A-Za-z0-9_-]+$")
    fsync_writes: bool = True

    @field_validator("root_dir")
    @classmethod
    def _root_dir_present(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("root_dir is required")
        return value.strip()

    def root_path(self) -> Path:
        return Path(self.root_dir).expanduser().resolve()


def resolve_filesystem_substrate_settings(
    settings: PreservationSettings,
) -> FilesystemSubstrateSettings:
    return resolve_component_settings(
        settings=settings,
        component_id=RESOURCE_COMPONENT_ID,
        model=FilesystemSubstrateSettings,
    )
