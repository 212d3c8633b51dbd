"""Typed configuration models for preservation workers."""

from __future__ import annotations

import re
from pathlib import Path
from typing import ClassVar, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "prescat" / "prescat.yaml"
COMPONENT_KINDS = ("service", "adapter", "substrate")

_NAME_PATTERN = re.compile(r"^[a-z][a-z0-9_]*$")


class LoggingSettings(BaseModel):
    """Stdout logging knobs shared by every worker."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    json_output: bool = True
    service: str = "prescat"
    environment: str = "dev"


class PreservationPolicySettings(BaseModel):
    """How stale a check may get before a sweep queues it again."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    fixity_ttl_seconds: int = Field(default=7_776_000, gt=0)
    archive_ttl_seconds: int = Field(default=7_776_000, gt=0)
    version_audit_ttl_seconds: int = Field(default=604_800, gt=0)


class ZipEndpointSettings(BaseModel):
    """Connection details for one remote replica target.

    ``endpoint_node`` is the provider host; ``storage_location`` is the bucket.
    Credentials left unset fall back to the provider SDK's default chain.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    endpoint_node: str = Field(min_length=1)
    storage_location: str = Field(min_length=1)
    provider: str = "s3"
    region: str | None = None
    access_key_id: str | None = None
    secret_access_key: str | None = None

    @field_validator("endpoint_node", "storage_location", mode="before")
    @classmethod
    def _strip(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value


class ComponentNamespaceSettings(BaseModel):
    """Free-form ``components.<kind>`` map; each component validates its own entry."""

    model_config = ConfigDict(extra="allow")


class ComponentsSettings(BaseModel):
    """``components`` subtree grouped by kind."""

    model_config = ConfigDict(extra="allow")

    service: ComponentNamespaceSettings = Field(default_factory=ComponentNamespaceSettings)
    adapter: ComponentNamespaceSettings = Field(default_factory=ComponentNamespaceSettings)
    substrate: ComponentNamespaceSettings = Field(default_factory=ComponentNamespaceSettings)

    @model_validator(mode="before")
    @classmethod
    def _reject_flat_component_keys(cls, value: object) -> object:
        """Point ``components.service_x`` users at ``components.service.x``."""
        if not isinstance(value, dict):
            return value
        for key in value:
            kind, separator, name = str(key).partition("_")
            if separator and kind in COMPONENT_KINDS:
                raise ValueError(
                    f"components.{key} is invalid; use components.{kind}.{name} instead"
                )
        return value


class PreservationSettings(BaseSettings):
    """Root settings: policy, storage roots, zip endpoints and components."""

    model_config = SettingsConfigDict(
        env_prefix="PRESCAT_",
        env_nested_delimiter="__",
        extra="ignore",
        nested_model_default_partial_update=True,
    )

    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    preservation_policy: PreservationPolicySettings = Field(
        default_factory=PreservationPolicySettings
    )
    storage_roots: dict[str, str] = Field(default_factory=dict)
    zip_endpoints: dict[str, ZipEndpointSettings] = Field(default_factory=dict)
    components: ComponentsSettings = Field(default_factory=ComponentsSettings)

    _config_path: ClassVar[Path] = DEFAULT_CONFIG_PATH

    @field_validator("storage_roots")
    @classmethod
    def _absolute_unique_roots(cls, value: dict[str, str]) -> dict[str, str]:
        """Storage roots are named, absolute and never share a location."""
        locations: dict[str, str] = {}
        for name, location in value.items():
            if _NAME_PATTERN.match(name) is None:
                raise ValueError(f"storage root name must be snake_case: {name!r}")
            if not Path(location).is_absolute():
                raise ValueError(f"storage root {name} must be an absolute path")
            normalized = str(Path(location))
            if normalized in locations:
                raise ValueError(
                    f"storage roots {locations[normalized]} and {name} share {normalized}"
                )
            locations[normalized] = name
        return value

    @field_validator("zip_endpoints")
    @classmethod
    def _endpoint_names(
        cls, value: dict[str, ZipEndpointSettings]
    ) -> dict[str, ZipEndpointSettings]:
        for name in value:
            if _NAME_PATTERN.match(name) is None:
                raise ValueError(f"zip endpoint name must be snake_case: {name!r}")
        return value

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Direct construction reads init, then env, then the YAML file."""
        yaml_source = YamlConfigSettingsSource(
            settings_cls, yaml_file=cls._config_path, yaml_file_encoding="utf-8"
        )
        return (init_settings, env_settings, yaml_source)


TComponentSettings = TypeVar("TComponentSettings", bound=BaseModel)


def resolve_component_settings(
    *,
    settings: PreservationSettings,
    component_id: str,
    model: type[TComponentSettings],
) -> TComponentSettings:
    """Validate ``components.<kind>.<name>`` for ``component_id`` = ``<kind>_<name>``."""
    kind, separator, name = component_id.partition("_")
    if not separator or kind not in COMPONENT_KINDS:
        raise ValueError(
            f"component_id must be prefixed with service_, adapter_ or substrate_: {component_id}"
        )
    namespace = getattr(settings.components, kind).model_dump(mode="python")
    raw = namespace.get(name, {})
    if not isinstance(raw, dict):
        raise TypeError(f"components.{kind}.{name} must resolve to an object mapping")
    return model.model_validate(raw)
