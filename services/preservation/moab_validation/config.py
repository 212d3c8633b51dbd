"""Moab validation settings resolved from ``components.service.moab_validation``."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from packages.preservation_shared.config import (
    PreservationSettings,
    resolve_component_settings,
)

SERVICE_COMPONENT_ID = "service_moab_validation"


class MoabValidationSettings(BaseModel):
    """Structural validation knobs."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    allow_content_subdirs: bool = True
    hash_chunk_bytes: int = 1_048_576


def resolve_moab_validation_settings(
    settings: PreservationSettings,
) -> MoabValidationSettings:
    """Resolve validation settings from ``components.service.moab_validation``."""
    return resolve_component_settings(
        settings=settings,
        component_id=SERVICE_COMPONENT_ID,
        model=MoabValidationSettings,
    )
