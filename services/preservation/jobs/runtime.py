"""Process-wide wiring of catalog, storage, adapters and services for jobs."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime

from packages.preservation_shared.config import (
    PreservationPolicySettings,
    PreservationSettings,
)
from packages.preservation_shared.logging import get_logger
from resources.adapters.alerting import (
    WebhookAlertingAdapter,
    resolve_alerting_adapter_settings,
)
from resources.adapters.event_service import (
    EventServiceAdapter,
    HttpEventServiceAdapter,
    resolve_event_service_adapter_settings,
)
from resources.adapters.workflow_service import (
    HttpWorkflowServiceAdapter,
    resolve_workflow_service_adapter_settings,
)
from resources.substrates.filesystem import (
    LocalZipStorageSubstrate,
    ZipStorageSubstrate,
    resolve_filesystem_substrate_settings,
)
from resources.substrates.redis import (
    LockSubstrate,
    RedisLockSubstrate,
    resolve_redis_settings,
)
from services.preservation.audit_results import (
    AlertingSink,
    EventSink,
    LoggerSink,
    ResultsReporter,
    WorkflowSink,
)
from services.preservation.catalog import (
    CatalogStore,
    MoabStorageRoot,
    seed_storage_roots_from_config,
    seed_zip_endpoints_from_config,
    utc_now,
)
from services.preservation.catalog.data import CatalogPostgresRuntime
from services.preservation.jobs.config import AuditJobSettings, resolve_audit_job_settings
from services.preservation.moab_validation import (
    MoabValidationSettings,
    resolve_moab_validation_settings,
)
from services.preservation.reconciliation import (
    CatalogToMoab,
    ChecksumValidationService,
    ChecksumValidationTrigger,
    MoabToCatalog,
    ReconciliationEngine,
    ReplicationTrigger,
)
from services.preservation.replication import (
    ReplicationDispatcher,
    ReplicatorRegistry,
    ResultsRecorder,
    ZipmakerService,
    ZipPartDelivery,
)
from services.preservation.replication_audit import (
    FailureRemediator,
    ReplicationAuditService,
)
from services.preservation.zip_packaging import (
    ReplicationSettings,
    SubprocessZipArchiver,
    ZipArchiver,
    resolve_replication_settings,
)

_LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class PreservationRuntime:
    """Every service a job handler may call, sharing one store and reporter."""

    store: CatalogStore
    storage: ZipStorageSubstrate
    locks: LockSubstrate
    registry: ReplicatorRegistry
    reporter: ResultsReporter
    policy: PreservationPolicySettings
    replication: ReplicationSettings
    audit: AuditJobSettings
    engine: ReconciliationEngine
    catalog_to_moab: CatalogToMoab
    moab_to_catalog: MoabToCatalog
    checksum_validation: ChecksumValidationService
    zipmaker: ZipmakerService
    dispatcher: ReplicationDispatcher
    delivery: ZipPartDelivery
    recorder: ResultsRecorder
    replication_audit: ReplicationAuditService
    remediator: FailureRemediator
    clock: Callable[[], datetime] = utc_now

    @classmethod
    def assemble(
        cls,
        *,
        store: CatalogStore,
        storage_roots: Sequence[MoabStorageRoot],
        storage: ZipStorageSubstrate,
        locks: LockSubstrate,
        registry: ReplicatorRegistry,
        reporter: ResultsReporter,
        archiver: ZipArchiver,
        notifier: EventServiceAdapter | None,
        replication_trigger: ReplicationTrigger | None = None,
        checksum_trigger: ChecksumValidationTrigger | None = None,
        policy: PreservationPolicySettings | None = None,
        replication: ReplicationSettings | None = None,
        audit: AuditJobSettings | None = None,
        moab_validation: MoabValidationSettings | None = None,
        clock: Callable[[], datetime] = utc_now,
        logger: logging.Logger | None = None,
    ) -> "PreservationRuntime":
        """Build services over already-constructed substrates and adapters."""
        replication = replication or ReplicationSettings()
        moab_validation = moab_validation or MoabValidationSettings()
        engine = ReconciliationEngine(
            store=store,
            storage_roots=storage_roots,
            reporter=reporter,
            settings=moab_validation,
            replication_trigger=replication_trigger,
            checksum_trigger=checksum_trigger,
            clock=clock,
            logger=logger,
        )
        return cls(
            store=store,
            storage=storage,
            locks=locks,
            registry=registry,
            reporter=reporter,
            policy=policy or PreservationPolicySettings(),
            replication=replication,
            audit=audit or AuditJobSettings(),
            engine=engine,
            catalog_to_moab=CatalogToMoab(
                store=store,
                reporter=reporter,
                engine=engine,
                settings=moab_validation,
                checksum_trigger=checksum_trigger,
                clock=clock,
                logger=logger,
            ),
            moab_to_catalog=MoabToCatalog(engine=engine, logger=logger),
            checksum_validation=ChecksumValidationService(
                store=store,
                reporter=reporter,
                settings=moab_validation,
                clock=clock,
                logger=logger,
            ),
            zipmaker=ZipmakerService(
                store=store,
                storage=storage,
                archiver=archiver,
                reporter=reporter,
                settings=replication,
                clock=clock,
                logger=logger,
            ),
            dispatcher=ReplicationDispatcher(store=store, clock=clock, logger=logger),
            delivery=ZipPartDelivery(
                store=store,
                registry=registry,
                storage=storage,
                reporter=reporter,
                clock=clock,
                logger=logger,
            ),
            recorder=ResultsRecorder(
                store=store,
                storage=storage,
                notifier=notifier,
                clock=clock,
                logger=logger,
            ),
            replication_audit=ReplicationAuditService(
                store=store,
                registry=registry,
                reporter=reporter,
                clock=clock,
                logger=logger,
            ),
            remediator=FailureRemediator(
                store=store,
                registry=registry,
                settings=replication,
                clock=clock,
                logger=logger,
            ),
            clock=clock,
        )

    @classmethod
    def from_settings(
        cls,
        settings: PreservationSettings,
        *,
        replication_trigger: ReplicationTrigger | None = None,
        checksum_trigger: ChecksumValidationTrigger | None = None,
        logger: logging.Logger | None = None,
    ) -> "PreservationRuntime":
        """Connect to Postgres and Redis, seed configured roots and endpoints."""
        log = logger or _LOGGER
        store = CatalogPostgresRuntime.from_settings(settings).store()
        storage_roots = seed_storage_roots_from_config(store, settings, logger=log)
        seed_zip_endpoints_from_config(store, settings, logger=log)
        replication = resolve_replication_settings(settings)
        events = HttpEventServiceAdapter(
            settings=resolve_event_service_adapter_settings(settings)
        )
        reporter = ResultsReporter(
            sinks=[
                LoggerSink(),
                EventSink(events),
                WorkflowSink(
                    HttpWorkflowServiceAdapter(
                        settings=resolve_workflow_service_adapter_settings(settings)
                    )
                ),
                AlertingSink(
                    WebhookAlertingAdapter(
                        settings=resolve_alerting_adapter_settings(settings)
                    )
                ),
            ],
            logger=log,
        )
        return cls.assemble(
            store=store,
            storage_roots=storage_roots,
            storage=LocalZipStorageSubstrate(
                settings=resolve_filesystem_substrate_settings(settings)
            ),
            locks=RedisLockSubstrate(settings=resolve_redis_settings(settings)),
            registry=ReplicatorRegistry.from_settings(settings, logger=log),
            reporter=reporter,
            archiver=SubprocessZipArchiver(
                command=replication.zip_command,
                timeout_seconds=replication.zip_timeout_seconds,
            ),
            notifier=events,
            replication_trigger=replication_trigger,
            checksum_trigger=checksum_trigger,
            policy=settings.preservation_policy,
            replication=replication,
            audit=resolve_audit_job_settings(settings),
            moab_validation=resolve_moab_validation_settings(settings),
            logger=log,
        )
