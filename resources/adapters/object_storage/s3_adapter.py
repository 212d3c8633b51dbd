"""boto3-backed adapter for S3 and S3-compatible replication endpoints."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Mapping

import boto3
from boto3.s3.transfer import TransferConfig
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from packages.preservation_shared.config import ZipEndpointSettings
from packages.preservation_shared.logging import get_logger
from resources.adapters.object_storage.adapter import (
    ObjectStorageAdapter,
    ObjectStorageDependencyError,
    ObjectStorageHealthResult,
)
from resources.adapters.object_storage.config import ObjectStorageAdapterSettings

_LOGGER = get_logger(__name__)
_MISSING_CODES = frozenset({"404", "NoSuchKey", "NotFound"})
_URL_PATTERN = re.compile(r"^https?://", re.IGNORECASE)


class S3ObjectStorageAdapter(ObjectStorageAdapter):
    """Object storage adapter for one bucket via a boto3 S3 client."""

    def __init__(
        self,
        *,
        bucket: str,
        settings: ObjectStorageAdapterSettings,
        client: Any,
    ) -> None:
        self._bucket = bucket
        self._client = client
        self._transfer_config = TransferConfig(
            multipart_threshold=settings.multipart_threshold_bytes,
            multipart_chunksize=settings.multipart_chunksize_bytes,
            max_concurrency=settings.max_concurrency,
        )

    @property
    def bucket_name(self) -> str:
        """Return the bucket this adapter reads and writes."""
        return self._bucket

    def exists(self, key: str) -> bool:
        """Return whether ``key`` exists, treating 404 variants as absent."""
        return self._head(key) is not None

    def upload(self, key: str, local_path: Path, metadata: Mapping[str, str]) -> None:
        """Upload one file with string-valued user metadata."""
        try:
            self._client.upload_file(
                Filename=str(local_path),
                Bucket=self._bucket,
                Key=key,
                ExtraArgs={"Metadata": {k: str(v) for k, v in metadata.items()}},
                Config=self._transfer_config,
            )
        except (BotoCoreError, ClientError) as exc:
            raise ObjectStorageDependencyError(
                f"upload of {key} to {self._bucket} failed: {type(exc).__name__}: {exc}"
            ) from exc
        _LOGGER.info("uploaded %s to bucket %s", key, self._bucket)

    def get_metadata(self, key: str) -> dict[str, str] | None:
        """Return user metadata for ``key`` or ``None`` when absent."""
        response = self._head(key)
        if response is None:
            return None
        return dict(response.get("Metadata", {}))

    def health(self) -> ObjectStorageHealthResult:
        """Return bucket reachability from ``head_bucket``."""
        try:
            self._client.head_bucket(Bucket=self._bucket)
        except (BotoCoreError, ClientError) as exc:
            return ObjectStorageHealthResult(
                adapter_ready=False,
                detail=f"bucket check failed: {type(exc).__name__}",
            )
        return ObjectStorageHealthResult(adapter_ready=True, detail="ok")

    def _head(self, key: str) -> dict[str, Any] | None:
        """Return ``head_object`` output or ``None`` for missing keys."""
        try:
            return self._client.head_object(Bucket=self._bucket, Key=key)
        except ClientError as exc:
            code = str(exc.response.get("Error", {}).get("Code", ""))
            if code in _MISSING_CODES:
                return None
            raise ObjectStorageDependencyError(
                f"head of {key} in {self._bucket} failed: {code or type(exc).__name__}"
            ) from exc
        except BotoCoreError as exc:
            raise ObjectStorageDependencyError(
                f"head of {key} in {self._bucket} failed: {type(exc).__name__}"
            ) from exc


def endpoint_url_for(endpoint: ZipEndpointSettings) -> str | None:
    """Return ``endpoint_node`` as a client URL when it is an http(s) URL."""
    if _URL_PATTERN.match(endpoint.endpoint_node):
        return endpoint.endpoint_node
    return None


def build_s3_adapter(
    *,
    endpoint: ZipEndpointSettings,
    settings: ObjectStorageAdapterSettings,
) -> S3ObjectStorageAdapter:
    """Build one adapter from endpoint configuration and client tuning."""
    client_kwargs: dict[str, Any] = {
        "region_name": endpoint.region,
        "endpoint_url": endpoint_url_for(endpoint),
        "aws_access_key_id": endpoint.access_key_id,
        "aws_secret_access_key": endpoint.secret_access_key,
    }
    client = boto3.client(
        "s3",
        config=Config(
            connect_timeout=settings.connect_timeout_seconds,
            read_timeout=settings.read_timeout_seconds,
            retries={"max_attempts": settings.max_attempts, "mode": "standard"},
        ),
        **{key: value for key, value in client_kwargs.items() if value is not None},
    )
    return S3ObjectStorageAdapter(
        bucket=endpoint.storage_location,
        settings=settings,
        client=client,
    )
