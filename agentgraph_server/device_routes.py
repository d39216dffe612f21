"""API routes for assigning workflows to devices."""

from fastapi import APIRouter, Depends

from agentgraph.models.device import DeviceAssignment, DeviceAssignmentRequest
from agentgraph.validation.errors import WorkflowGraphError
from agentgraph_server.device_db import assign_workflow as db_assign_workflow
from agentgraph_server.session import http_error, require_organization

router = APIRouter()


@router.put("/devices/{device_id}/workflow")
def assign_workflow(
    device_id: str,
    request: DeviceAssignmentRequest,
    organization_id: str = Depends(require_organization),
) -> DeviceAssignment:
    """point a device at one of the organization's workflow graphs."""
    try:
        return db_assign_workflow(organization_id, device_id, request.agent_graph_id)
    except WorkflowGraphError as exc:
        raise http_error(exc) from exc
