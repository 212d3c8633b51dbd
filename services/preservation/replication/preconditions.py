"""Delivery metadata preconditions checked before any job payload is built."""

from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, StrictInt, ValidationError

from packages.preservation_shared.errors import ErrorDetail, codes, validation_error

REQUIRED_METADATA_KEYS = ("checksum_md5", "size", "zip_cmd", "zip_version")


class DeliveryPreconditionError(ValueError):
    """Raised when delivery metadata is missing required fields."""

    def __init__(self, errors: tuple[ErrorDetail, ...]) -> None:
        super().__init__("; ".join(error.message for error in errors))
        self.errors = errors


class DeliveryMetadata(BaseModel):
    """Metadata produced with a part and carried to every endpoint."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    checksum_md5: str = Field(pattern=r"^[0-9a-f]{32}$")
    size: StrictInt = Field(gt=0)
    zip_cmd: str = Field(min_length=1)
    zip_version: str = Field(min_length=1)
    parts_count: StrictInt | None = Field(default=None, gt=0)
    suffix: str | None = None


class PreconditionResult(BaseModel):
    """Outcome of validating one delivery payload."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    ok: bool
    errors: tuple[ErrorDetail, ...] = ()
    metadata: DeliveryMetadata | None = None

    def raise_for_errors(self) -> DeliveryMetadata:
        """Return validated metadata or raise ``DeliveryPreconditionError``."""
        if not self.ok or self.metadata is None:
            raise DeliveryPreconditionError(self.errors)
        return self.metadata


def validate_delivery_metadata(metadata: Mapping[str, Any] | None) -> PreconditionResult:
    """Check that ``metadata`` carries md5, size, zip command and zip version."""
    if not metadata:
        return PreconditionResult(
            ok=False,
            errors=(
                validation_error(
                    "delivery metadata not found", code=codes.MISSING_REQUIRED_FIELD
                ),
            ),
        )

    missing = tuple(
        validation_error(
            f"required metadata[{key}] not found",
            code=codes.MISSING_REQUIRED_FIELD,
            metadata={"field": key},
        )
        for key in REQUIRED_METADATA_KEYS
        if _is_blank(metadata.get(key))
    )
    if missing:
        return PreconditionResult(ok=False, errors=missing)

    try:
        parsed = DeliveryMetadata.model_validate(dict(metadata))
    except ValidationError as exc:
        return PreconditionResult(
            ok=False,
            errors=tuple(
                validation_error(
                    f"metadata[{'.'.join(str(p) for p in error['loc'])}] {error['msg']}",
                    code=codes.INVALID_ARGUMENT,
                    metadata={"field": ".".join(str(p) for p in error["loc"])},
                )
                for error in exc.errors()
            ),
        )
    return PreconditionResult(ok=True, metadata=parsed)


def _is_blank(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    return False
