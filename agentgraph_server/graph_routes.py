"""API routes for workflow graph management."""

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException

from agentgraph.models.stored_graph import SavedWorkflow, StoredGraph
from agentgraph.validation.errors import WorkflowGraphError
from agentgraph_server.graph_db import (
    WORKFLOW_NOT_FOUND,
    create_graph as db_create_graph,
    get_graph as db_get_graph,
    get_node_ids as db_get_node_ids,
    list_graphs as db_list_graphs,
    replace_graph as db_replace_graph,
)
from agentgraph_server.session import http_error, require_organization

router = APIRouter()


@router.get("/workflows")
def list_workflows(
    organization_id: str = Depends(require_organization),
) -> list[StoredGraph]:
    """list the organization's workflow graphs."""
    return db_list_graphs(organization_id)


@router.get("/workflows/{workflow_id}")
def get_workflow(
    workflow_id: str,
    organization_id: str = Depends(require_organization),
) -> StoredGraph:
    """get a specific workflow graph."""
    graph = db_get_graph(organization_id, workflow_id)
    if not graph:
        raise HTTPException(status_code=404, detail=WORKFLOW_NOT_FOUND)
    return graph


# draft bodies are taken as plain JSON; the normalizer reports shape
# problems as a single 400 message


@router.post("/workflows")
def create_workflow(
    draft: Any = Body(...),
    organization_id: str = Depends(require_organization),
) -> SavedWorkflow:
    """validate a draft and store it as a new workflow graph."""
    try:
        workflow_id = db_create_graph(organization_id, draft)
    except WorkflowGraphError as exc:
        raise http_error(exc) from exc
    return SavedWorkflow(id=workflow_id, node_ids=db_get_node_ids(workflow_id))


@router.put("/workflows/{workflow_id}")
def replace_workflow(
    workflow_id: str,
    draft: Any = Body(...),
    organization_id: str = Depends(require_organization),
) -> SavedWorkflow:
    """replace a stored workflow graph with the submitted draft.

    Nodes sent back with their id are updated in place, the rest are
    created, and stored nodes that are missing from the draft are deleted.
    """
    try:
        db_replace_graph(organization_id, workflow_id, draft)
    except WorkflowGraphError as exc:
        raise http_error(exc) from exc
    return SavedWorkflow(id=workflow_id, node_ids=db_get_node_ids(workflow_id))
