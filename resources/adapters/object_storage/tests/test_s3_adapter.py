"""Behavior tests for the boto3-backed object storage adapter."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
from botocore.exceptions import ClientError

import resources.adapters.object_storage.s3_adapter as s3_adapter_module
from packages.preservation_shared.config import ZipEndpointSettings
from resources.adapters.object_storage import (
    ObjectStorageAdapterSettings,
    ObjectStorageDependencyError,
    S3ObjectStorageAdapter,
    build_s3_adapter,
)


def _client_error(code: str, operation: str = "HeadObject") -> ClientError:
    """Build one botocore client error with an error code."""
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


class _FakeS3Client:
    """In-memory fake of the S3 client calls used by the adapter."""

    def __init__(self) -> None:
        self.objects: dict[str, dict[str, str]] = {}
        self.uploads: list[dict[str, Any]] = []
        self.head_error: ClientError | None = None

    def head_object(self, *, Bucket: str, Key: str) -> dict[str, Any]:
        del Bucket
        if self.head_error is not None:
            raise self.head_error
        if Key not in self.objects:
            raise _client_error("404")
        return {"Metadata": dict(self.objects[Key])}

    def upload_file(self, **kwargs: Any) -> None:
        self.uploads.append(kwargs)
        self.objects[kwargs["Key"]] = dict(kwargs["ExtraArgs"]["Metadata"])

    def head_bucket(self, *, Bucket: str) -> dict[str, Any]:
        if Bucket != "sul-sdr-aws-us-west-2-test":
            raise _client_error("403", "HeadBucket")
        return {}


def _adapter(client: _FakeS3Client) -> S3ObjectStorageAdapter:
    return S3ObjectStorageAdapter(
        bucket="sul-sdr-aws-us-west-2-test",
        settings=ObjectStorageAdapterSettings(),
        client=client,
    )


def test_exists_treats_missing_key_as_false() -> None:
    """404 from head_object means the object is absent, not an error."""
    assert _adapter(_FakeS3Client()).exists("bj/102/hs/9687/bj102hs9687.v0001.zip") is False


def test_upload_stringifies_metadata_and_get_metadata_reads_it(tmp_path: Path) -> None:
    """Metadata values should be sent as strings and read back by key."""
    client = _FakeS3Client()
    adapter = _adapter(client)
    part = tmp_path / "part.zip"
    part.write_bytes(b"abc")

    adapter.upload("k.zip", part, {"checksum_md5": "00ff", "size": 3})  # type: ignore[dict-item]

    assert client.uploads[0]["Filename"] == str(part)
    assert adapter.exists("k.zip") is True
    assert adapter.get_metadata("k.zip") == {"checksum_md5": "00ff", "size": "3"}


def test_non_missing_client_errors_raise_dependency_error() -> None:
    """Access-denied style errors must not be confused with absence."""
    client = _FakeS3Client()
    client.head_error = _client_error("AccessDenied")

    with pytest.raises(ObjectStorageDependencyError, match="AccessDenied"):
        _adapter(client).get_metadata("k.zip")


def test_health_reports_bucket_check_failures() -> None:
    """Health should degrade when the bucket cannot be reached."""
    adapter = S3ObjectStorageAdapter(
        bucket="other-bucket",
        settings=ObjectStorageAdapterSettings(),
        client=_FakeS3Client(),
    )

    assert adapter.health().adapter_ready is False
    assert _adapter(_FakeS3Client()).health().adapter_ready is True


def test_build_s3_adapter_passes_http_endpoint_node_as_endpoint_url(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """S3-compatible endpoints are addressed through ``endpoint_url``."""
    captured: dict[str, Any] = {}

    def _fake_client(service: str, **kwargs: Any) -> _FakeS3Client:
        captured["service"] = service
        captured.update(kwargs)
        return _FakeS3Client()

    monkeypatch.setattr(s3_adapter_module.boto3, "client", _fake_client)

    adapter = build_s3_adapter(
        endpoint=ZipEndpointSettings(
            endpoint_node="https://s3.us-south.cloud-object-storage.appdomain.cloud",
            storage_location="sul-sdr-ibm-us-south-1-test",
            region="us-south",
            access_key_id="key",
            secret_access_key="secret",
        ),
        settings=ObjectStorageAdapterSettings(),
    )

    assert adapter.bucket_name == "sul-sdr-ibm-us-south-1-test"
    assert captured["service"] == "s3"
    assert captured["endpoint_url"].startswith("https://s3.us-south")
    assert captured["region_name"] == "us-south"


def test_build_s3_adapter_omits_endpoint_url_for_plain_node_names(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Plain AWS node names should use the default S3 endpoint resolution."""
    captured: dict[str, Any] = {}

    def _fake_client(service: str, **kwargs: Any) -> _FakeS3Client:
        del service
        captured.update(kwargs)
        return _FakeS3Client()

    monkeypatch.setattr(s3_adapter_module.boto3, "client", _fake_client)

    build_s3_adapter(
        endpoint=ZipEndpointSettings(
            endpoint_node="us-west-2", storage_location="bucket", region="us-west-2"
        ),
        settings=ObjectStorageAdapterSettings(),
    )

    assert "endpoint_url" not in captured
    assert "aws_access_key_id" not in captured
