"""Replication of local transfer parts to zip endpoints."""

from services.preservation.replication.delivery import ZipPartDelivery
from services.preservation.replication.dispatcher import (
    PARTS_CREATED_DETAILS,
    ReplicationDispatcher,
)
from services.preservation.replication.interfaces import (
    DeliveryOutcome,
    DeliveryReceipt,
    RemotePart,
    Replicator,
)
from services.preservation.replication.lookup import ReplicaTarget, load_replica_target
from services.preservation.replication.preconditions import (
    REQUIRED_METADATA_KEYS,
    DeliveryMetadata,
    DeliveryPreconditionError,
    PreconditionResult,
    validate_delivery_metadata,
)
from services.preservation.replication.registry import (
    PROVIDER_FACTORIES,
    ReplicatorRegistry,
    UnknownEndpointError,
    UnknownProviderError,
)
from services.preservation.replication.replicators import ObjectStorageReplicator
from services.preservation.replication.results_recorder import (
    REPLICATED_EVENT,
    RecordedDelivery,
    ResultsRecorder,
)
from services.preservation.replication.zip_parts_audit import ZipPartsToZipFilesAudit
from services.preservation.replication.zipmaker import PartPayload, ZipmakerService

__all__ = [
    "PARTS_CREATED_DETAILS",
    "PROVIDER_FACTORIES",
    "REPLICATED_EVENT",
    "REQUIRED_METADATA_KEYS",
    "DeliveryMetadata",
    "DeliveryOutcome",
    "DeliveryPreconditionError",
    "DeliveryReceipt",
    "ObjectStorageReplicator",
    "PartPayload",
    "PreconditionResult",
    "RecordedDelivery",
    "RemotePart",
    "ReplicaTarget",
    "ReplicationDispatcher",
    "Replicator",
    "ReplicatorRegistry",
    "ResultsRecorder",
    "UnknownEndpointError",
    "UnknownProviderError",
    "ZipPartDelivery",
    "ZipPartsToZipFilesAudit",
    "ZipmakerService",
    "load_replica_target",
    "validate_delivery_metadata",
]
