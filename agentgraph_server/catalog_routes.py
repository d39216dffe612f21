"""API routes for the model and tool catalog."""

from fastapi import APIRouter

from agentgraph.models.catalog import Catalog
from agentgraph_server.catalog_db import load_catalog

router = APIRouter()


@router.get("/catalog")
def get_catalog() -> Catalog:
    """models and tools that workflow nodes may reference."""
    return load_catalog()
