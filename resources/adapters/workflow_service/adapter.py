"""Protocol and errors for the workflow status service."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


class WorkflowServiceError(Exception):
    """Raised when the workflow service cannot accept an update."""


class WorkflowNotFoundError(WorkflowServiceError):
    """Raised when the named workflow does not exist for the object."""


@runtime_checkable
class WorkflowServiceAdapter(Protocol):
    """Protocol for updating per-object workflow process steps."""

    def update_status(
        self, *, druid: str, version: int, workflow: str, process: str, status: str
    ) -> None:
        """Set one process step to ``status``."""

    def update_error_status(
        self, *, druid: str, version: int, workflow: str, process: str, error_msg: str
    ) -> None:
        """Mark one process step as errored with ``error_msg``."""

    def create_workflow(self, *, druid: str, workflow: str, version: int) -> None:
        """Create ``workflow`` for ``druid`` at ``version``."""
