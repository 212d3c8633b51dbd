"""Pydantic request-validation models for reconciliation passes."""

from __future__ import annotations

from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictInt,
    ValidationError,
    field_validator,
)

from packages.preservation_shared.ids import bare_druid, is_valid_druid


class ReconciliationRequest(BaseModel):
    """Validated (druid, incoming version, incoming size, root) request."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    druid: str
    incoming_version: StrictInt = Field(gt=0)
    incoming_size: StrictInt = Field(gt=0)
    storage_root_name: str = Field(min_length=1)

    @field_validator("druid", mode="before")
    @classmethod
    def _validate_druid(cls, value: Any) -> str:
        """Require a druid matching the grammar and strip any prefix."""
        if not isinstance(value, str) or value.strip() == "":
            raise ValueError("is required")
        normalized = bare_druid(value)
        if not is_valid_druid(normalized):
            raise ValueError("does not match the druid grammar")
        return normalized


def validate_request(
    *,
    druid: Any,
    incoming_version: Any,
    incoming_size: Any,
    storage_root_name: Any,
) -> tuple[ReconciliationRequest | None, list[str]]:
    """Return the validated request or every violation as readable messages."""
    try:
        request = ReconciliationRequest(
            druid=druid,
            incoming_version=incoming_version,
            incoming_size=incoming_size,
            storage_root_name=storage_root_name,
        )
    except ValidationError as exc:
        return None, _violations(exc)
    return request, []


def _violations(exc: ValidationError) -> list[str]:
    messages: list[str] = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ()))
        text = str(error.get("msg", "invalid value"))
        messages.append(f"{field} {text.removeprefix('Value error, ')}")
    return messages
