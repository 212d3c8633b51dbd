"""Protocol for operator-facing alert notifications."""

from __future__ import annotations

from typing import Mapping, Protocol, runtime_checkable


class AlertingError(Exception):
    """Raised when an alert cannot be delivered."""


@runtime_checkable
class AlertingAdapter(Protocol):
    """Protocol for raising one operator alert."""

    def notify(self, *, message: str, context: Mapping[str, str]) -> None:
        """Deliver one alert with structured context."""
