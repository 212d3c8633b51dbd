"""Endpoint name to replicator mapping, built once at startup.

Each configured zip endpoint names a ``provider``; the provider selects one of
the statically known replicator factories below. An endpoint with an unknown
provider fails startup rather than its first delivery.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping

from packages.preservation_shared.config import PreservationSettings, ZipEndpointSettings
from packages.preservation_shared.logging import get_logger
from resources.adapters.object_storage import (
    ObjectStorageAdapterSettings,
    build_s3_adapter,
    resolve_object_storage_adapter_settings,
)
from services.preservation.replication.interfaces import Replicator
from services.preservation.replication.replicators import ObjectStorageReplicator

_LOGGER = get_logger(__name__)

ReplicatorFactory = Callable[
    [str, ZipEndpointSettings, ObjectStorageAdapterSettings], Replicator
]


class UnknownEndpointError(KeyError):
    """Raised when no replicator is registered for an endpoint name."""


class UnknownProviderError(ValueError):
    """Raised when an endpoint names a provider with no factory."""


def _s3_compatible(
    endpoint_name: str,
    endpoint: ZipEndpointSettings,
    adapter_settings: ObjectStorageAdapterSettings,
) -> Replicator:
    """Build a boto3-backed replicator; non-AWS providers use ``endpoint_node``."""
    return ObjectStorageReplicator(
        endpoint_name=endpoint_name,
        adapter=build_s3_adapter(endpoint=endpoint, settings=adapter_settings),
    )


PROVIDER_FACTORIES: Mapping[str, ReplicatorFactory] = {
    "s3": _s3_compatible,
    "aws": _s3_compatible,
    "ibm": _s3_compatible,
    "gcp": _s3_compatible,
}


class ReplicatorRegistry:
    """Hold one replicator per configured zip endpoint."""

    def __init__(self, replicators: Mapping[str, Replicator] | None = None) -> None:
        self._replicators: dict[str, Replicator] = dict(replicators or {})

    @classmethod
    def from_settings(
        cls,
        settings: PreservationSettings,
        *,
        factories: Mapping[str, ReplicatorFactory] = PROVIDER_FACTORIES,
        logger: logging.Logger | None = None,
    ) -> "ReplicatorRegistry":
        """Build replicators for every entry in ``settings.zip_endpoints``."""
        log = logger or _LOGGER
        adapter_settings = resolve_object_storage_adapter_settings(settings)
        registry = cls()
        for endpoint_name, endpoint in sorted(settings.zip_endpoints.items()):
            factory = factories.get(endpoint.provider)
            if factory is None:
                raise UnknownProviderError(
                    f"zip endpoint {endpoint_name} names unknown provider "
                    f"{endpoint.provider!r}; known: {', '.join(sorted(factories))}"
                )
            registry.register(endpoint_name, factory(endpoint_name, endpoint, adapter_settings))
            log.info(
                "replicator registered",
                extra={"endpoint_name": endpoint_name, "provider": endpoint.provider},
            )
        return registry

    def register(self, endpoint_name: str, replicator: Replicator) -> None:
        self._replicators[endpoint_name] = replicator

    def for_endpoint(self, endpoint_name: str) -> Replicator:
        """Return the replicator for ``endpoint_name``."""
        try:
            return self._replicators[endpoint_name]
        except KeyError as exc:
            raise UnknownEndpointError(
                f"no replicator registered for zip endpoint {endpoint_name}"
            ) from exc

    def endpoint_names(self) -> list[str]:
        return sorted(self._replicators)

    def __contains__(self, endpoint_name: object) -> bool:
        return endpoint_name in self._replicators

    def __iter__(self) -> Iterator[str]:
        return iter(self.endpoint_names())
