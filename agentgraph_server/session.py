"""Request context shared by the graph and device routes."""

from fastapi import Header, HTTPException

from agentgraph.validation.errors import (
    GraphNotFoundError,
    GraphTransactionError,
    WorkflowGraphError,
)


def require_organization(
    x_organization_id: str | None = Header(default=None),
) -> str:
    """Organization the caller acts for, taken from ``X-Organization-Id``."""
    organization_id = (x_organization_id or "").strip()
    if not organization_id:
        raise HTTPException(status_code=401, detail="Organization context is required.")
    return organization_id


def http_error(exc: WorkflowGraphError) -> HTTPException:
    """Map a graph error to the HTTP status the routes report it with."""
    if isinstance(exc, GraphNotFoundError):
        return HTTPException(status_code=404, detail=exc.message)
    if isinstance(exc, GraphTransactionError):
        return HTTPException(status_code=409, detail=exc.message)
    return HTTPException(status_code=400, detail=exc.message)
