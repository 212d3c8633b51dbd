"""Protocol for the external object event notifier."""

from __future__ import annotations

from typing import Any, Mapping, Protocol, runtime_checkable


class EventServiceError(Exception):
    """Raised when an event cannot be delivered to the event service."""


@runtime_checkable
class EventServiceAdapter(Protocol):
    """Protocol for recording one object event such as an audit outcome."""

    def create_event(
        self, *, druid: str, event_type: str, data: Mapping[str, Any]
    ) -> None:
        """Record one event of ``event_type`` for ``druid``."""
