"""Callables reconciliation passes use to hand work to downstream jobs."""

from __future__ import annotations

from typing import Protocol


class ReplicationTrigger(Protocol):
    """Start replication of one object version after a committed version bump."""

    def __call__(self, *, druid: str, version: int) -> None:
        """Enqueue packaging and replication for ``(druid, version)``."""


class ChecksumValidationTrigger(Protocol):
    """Start checksum validation of one object's Moab."""

    def __call__(self, *, druid: str) -> None:
        """Enqueue checksum validation for ``druid``."""
