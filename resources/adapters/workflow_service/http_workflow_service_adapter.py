"""Workflow service adapter over the shared HTTP client."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

from packages.preservation_shared.http import (
    HttpClient,
    HttpRequestError,
    HttpRetryPolicy,
    HttpStatusError,
)
from packages.preservation_shared.ids import namespaced_druid
from resources.adapters.workflow_service.adapter import (
    WorkflowNotFoundError,
    WorkflowServiceAdapter,
    WorkflowServiceError,
)
from resources.adapters.workflow_service.config import WorkflowServiceAdapterSettings


class HttpWorkflowServiceAdapter(WorkflowServiceAdapter):
    """Update workflow process steps through the workflow REST API."""

    def __init__(
        self,
        *,
        settings: WorkflowServiceAdapterSettings,
        client: HttpClient | None = None,
    ) -> None:
        self._settings = settings
        self._client = client or HttpClient(
            base_url=settings.base_url.rstrip("/"),
            timeout_seconds=settings.timeout_seconds,
            headers={"Content-Type": "application/json"},
            retry=HttpRetryPolicy(max_attempts=settings.max_attempts),
        )

    def update_status(
        self, *, druid: str, version: int, workflow: str, process: str, status: str
    ) -> None:
        """Set one process step to ``status``."""
        self._put_process(
            druid=druid,
            version=version,
            workflow=workflow,
            process=process,
            body={"status": status},
        )

    def update_error_status(
        self, *, druid: str, version: int, workflow: str, process: str, error_msg: str
    ) -> None:
        """Mark one process step as errored, truncating oversized messages."""
        self._put_process(
            druid=druid,
            version=version,
            workflow=workflow,
            process=process,
            body={
                "status": "error",
                "error_msg": error_msg[: self._settings.max_error_msg_chars],
            },
        )

    def create_workflow(self, *, druid: str, workflow: str, version: int) -> None:
        """Create ``workflow`` for ``druid`` at ``version``."""
        path = f"{self._object_path(druid)}/workflows/{quote(workflow)}"
        self._send("POST", path, druid=druid, workflow=workflow, params={"version": version})

    def _put_process(
        self,
        *,
        druid: str,
        version: int,
        workflow: str,
        process: str,
        body: dict[str, Any],
    ) -> None:
        """PUT one process update, mapping 404 to ``WorkflowNotFoundError``."""
        path = f"{self._object_path(druid)}/workflows/{quote(workflow)}/{quote(process)}"
        self._send(
            "PUT",
            path,
            druid=druid,
            workflow=workflow,
            params={"version": version},
            json=body,
        )

    def _send(
        self, method: str, path: str, *, druid: str, workflow: str, **kwargs: Any
    ) -> None:
        """Issue one request and translate HTTP failures to adapter errors."""
        try:
            self._client.request(method, path, **kwargs)
        except HttpStatusError as exc:
            if exc.status_code == 404:
                raise WorkflowNotFoundError(
                    f"{workflow} not found for {druid}"
                ) from exc
            raise WorkflowServiceError(
                f"workflow service rejected {method} {path}: HTTP {exc.status_code}"
            ) from exc
        except HttpRequestError as exc:
            raise WorkflowServiceError(
                f"workflow service unavailable for {method} {path}"
            ) from exc

    @staticmethod
    def _object_path(druid: str) -> str:
        """Return the object resource path for one druid."""
        return f"/objects/{quote(namespaced_druid(druid))}"
