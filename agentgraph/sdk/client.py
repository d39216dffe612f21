"""HTTP client for the agent graph server.

so that a script (or the editor) can save a graph with one call
saved = client.create_workflow(draft)
"""

from __future__ import annotations

import logging
import os
from typing import Any

import httpx

from agentgraph.editor.saves import WorkflowSubmitter
from agentgraph.models.catalog import Catalog
from agentgraph.models.device import DeviceAssignment
from agentgraph.models.stored_graph import SavedWorkflow, StoredGraph
from agentgraph.models.workflow_graph import WorkflowDraft
from agentgraph.validation.errors import ErrorCategory, WorkflowGraphError

logger = logging.getLogger(__name__)

DEFAULT_API_URL = os.getenv("AGENTGRAPH_API_URL", "http://localhost:8000")

_CATEGORY_BY_STATUS = {
    400: ErrorCategory.structural,
    404: ErrorCategory.reference,
    409: ErrorCategory.transaction,
}


class WorkflowApiError(WorkflowGraphError):
    """Raised when the server rejects a request or cannot be reached."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(
            message,
            _CATEGORY_BY_STATUS.get(status_code, ErrorCategory.transaction),
        )
        self.status_code = status_code


class WorkflowClient(WorkflowSubmitter):
    """Talk to the workflow endpoints on behalf of one organization.

    Also usable directly as the editor's submitter.
    """

    def __init__(
        self,
        organization_id: str,
        base_url: str = DEFAULT_API_URL,
        timeout: float = 10.0,
        http: httpx.Client | None = None,
    ) -> None:
        """
        Args:
            organization_id: Tenant every request is scoped to
            base_url: Base URL of the agent graph server
            timeout: HTTP request timeout in seconds
            http: Optional client to reuse instead of opening one per call
        """
        self.organization_id = organization_id
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._http = http

    def _request(self, method: str, path: str, payload: Any = None) -> Any:
        url = f"{self.base_url}/api{path}"
        headers = {"X-Organization-Id": self.organization_id}
        try:
            if self._http is not None:
                response = self._http.request(method, url, json=payload, headers=headers)
            else:
                with httpx.Client(timeout=self.timeout) as client:
                    response = client.request(method, url, json=payload, headers=headers)
        except httpx.RequestError as e:
            raise WorkflowApiError(
                f"Failed to connect to server at {self.base_url}: {e}"
            ) from e

        if response.is_error:
            raise WorkflowApiError(_error_detail(response), response.status_code)
        return response.json()

    # --- graphs ---

    def create_workflow(self, draft: WorkflowDraft) -> SavedWorkflow:
        saved = SavedWorkflow.model_validate(
            self._request("POST", "/workflows", _draft_payload(draft))
        )
        logger.info("created workflow %s", saved.id)
        return saved

    def update_workflow(self, workflow_id: str, draft: WorkflowDraft) -> SavedWorkflow:
        saved = SavedWorkflow.model_validate(
            self._request("PUT", f"/workflows/{workflow_id}", _draft_payload(draft))
        )
        logger.info("updated workflow %s", saved.id)
        return saved

    def get_workflow(self, workflow_id: str) -> StoredGraph:
        return StoredGraph.model_validate(self._request("GET", f"/workflows/{workflow_id}"))

    def list_workflows(self) -> list[StoredGraph]:
        return [
            StoredGraph.model_validate(item)
            for item in self._request("GET", "/workflows")
        ]

    # --- catalog and devices ---

    def get_catalog(self) -> Catalog:
        return Catalog.model_validate(self._request("GET", "/catalog"))

    def assign_device(self, device_id: str, workflow_id: str) -> DeviceAssignment:
        data = self._request(
            "PUT",
            f"/devices/{device_id}/workflow",
            {"agentGraphId": workflow_id},
        )
        return DeviceAssignment.model_validate(data)


def _draft_payload(draft: WorkflowDraft) -> dict[str, Any]:
    return draft.model_dump(mode="json", by_alias=True)


def _error_detail(response: httpx.Response) -> str:
    try:
        detail = response.json().get("detail")
    except ValueError:
        detail = None
    # request validation errors come back as a list
    if isinstance(detail, list) and detail and isinstance(detail[0], dict):
        detail = detail[0].get("msg")
    if isinstance(detail, str) and detail:
        return detail
    return f"Request failed with status {response.status_code}."
