"""Object-storage backed replicator for S3 and S3-compatible endpoints."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from packages.preservation_shared.logging import get_logger
from resources.adapters.object_storage import ObjectStorageAdapter
from services.preservation.replication.interfaces import (
    DeliveryOutcome,
    DeliveryReceipt,
    RemotePart,
)
from services.preservation.zip_packaging import DruidVersionZipPart

_LOGGER = get_logger(__name__)
CHECKSUM_METADATA_KEY = "checksum_md5"
SIZE_METADATA_KEY = "size"


class ObjectStorageReplicator:
    """Replicate parts into one bucket through an ``ObjectStorageAdapter``."""

    def __init__(
        self,
        *,
        endpoint_name: str,
        adapter: ObjectStorageAdapter,
        logger: logging.Logger | None = None,
    ) -> None:
        self._endpoint_name = endpoint_name
        self._adapter = adapter
        self._logger = logger or _LOGGER

    @property
    def endpoint_name(self) -> str:
        return self._endpoint_name

    def bucket_name(self) -> str:
        return self._adapter.bucket_name

    def remote_part(self, key: str) -> RemotePart:
        """Return existence and recorded md5 from object metadata."""
        metadata = self._adapter.get_metadata(key)
        if metadata is None:
            return RemotePart(key=key, exists=False)
        return RemotePart(
            key=key, exists=True, checksum_md5=metadata.get(CHECKSUM_METADATA_KEY)
        )

    def deliver(
        self, part: DruidVersionZipPart, metadata: Mapping[str, Any]
    ) -> DeliveryReceipt:
        """Upload ``part`` with ``{checksum_md5, size}`` unless already present.

        The local file is hashed first and held back when it no longer matches
        the md5 it was recorded with.
        """
        expected_md5 = str(metadata[CHECKSUM_METADATA_KEY])
        remote = self.remote_part(part.key)
        if remote.exists and remote.checksum_md5 == expected_md5:
            self._logger.info(
                "part already replicated",
                extra={"endpoint_name": self._endpoint_name, "part_key": part.key},
            )
            return self._receipt(part.key, DeliveryOutcome.ALREADY_REPLICATED, remote)
        if remote.exists:
            self._logger.warning(
                "different part already at endpoint; not overwriting",
                extra={"endpoint_name": self._endpoint_name, "part_key": part.key},
            )
            return self._receipt(part.key, DeliveryOutcome.CHECKSUM_MISMATCH, remote)

        local_md5 = part.hexdigest()
        if local_md5 != expected_md5:
            self._logger.error(
                "local part differs from its recorded md5; not uploading",
                extra={"endpoint_name": self._endpoint_name, "part_key": part.key},
            )
            return self._receipt(
                part.key, DeliveryOutcome.LOCAL_CHECKSUM_MISMATCH, remote, local_md5=local_md5
            )

        self._adapter.upload(
            part.key,
            part.file_path,
            {
                CHECKSUM_METADATA_KEY: expected_md5,
                SIZE_METADATA_KEY: str(metadata[SIZE_METADATA_KEY]),
            },
        )
        return self._receipt(part.key, DeliveryOutcome.UPLOADED, remote)

    def _receipt(
        self,
        key: str,
        outcome: DeliveryOutcome,
        remote: RemotePart,
        *,
        local_md5: str | None = None,
    ) -> DeliveryReceipt:
        return DeliveryReceipt(
            key=key,
            bucket_name=self.bucket_name(),
            outcome=outcome,
            remote_checksum_md5=remote.checksum_md5,
            local_checksum_md5=local_md5,
        )
