"""Behavior tests for building replicators from endpoint configuration."""

from __future__ import annotations

from typing import Any

import pytest

import services.preservation.replication.registry as registry_module
from packages.preservation_shared.config import PreservationSettings
from services.preservation.replication import (
    ObjectStorageReplicator,
    ReplicatorRegistry,
    UnknownEndpointError,
    UnknownProviderError,
)
from tests.support.replication_fixtures import InMemoryObjectStorage


def _settings(provider: str = "aws") -> PreservationSettings:
    return PreservationSettings(
        zip_endpoints={
            "aws_s3_west_2": {
                "endpoint_node": "s3.us-west-2.amazonaws.com",
                "storage_location": "sul-sdr-aws-us-west-2-test",
                "provider": provider,
            },
            "ibm_us_south": {
                "endpoint_node": "https://s3.us-south.example.test",
                "storage_location": "sul-sdr-ibm-us-south-1-test",
                "provider": "ibm",
            },
        }
    )


def test_registry_builds_one_replicator_per_endpoint(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    built: list[str] = []

    def _build(*, endpoint: Any, settings: Any) -> InMemoryObjectStorage:
        del settings
        built.append(endpoint.storage_location)
        return InMemoryObjectStorage(endpoint.storage_location)

    monkeypatch.setattr(registry_module, "build_s3_adapter", _build)

    registry = ReplicatorRegistry.from_settings(_settings())

    assert registry.endpoint_names() == ["aws_s3_west_2", "ibm_us_south"]
    replicator = registry.for_endpoint("ibm_us_south")
    assert isinstance(replicator, ObjectStorageReplicator)
    assert replicator.bucket_name() == "sul-sdr-ibm-us-south-1-test"
    assert built == ["sul-sdr-aws-us-west-2-test", "sul-sdr-ibm-us-south-1-test"]


def test_unknown_provider_fails_at_startup() -> None:
    with pytest.raises(UnknownProviderError, match="tape"):
        ReplicatorRegistry.from_settings(_settings(provider="tape"))


def test_unregistered_endpoint_raises() -> None:
    registry = ReplicatorRegistry()

    with pytest.raises(UnknownEndpointError):
        registry.for_endpoint("nowhere")
    assert "nowhere" not in registry
