"""Agent graph workflows - building, validating and storing multi-agent graphs."""

from agentgraph.models.catalog import Catalog, CatalogModel, CatalogTool
from agentgraph.models.stored_graph import StoredGraph
from agentgraph.models.workflow_graph import (
    END_NODE,
    NodeInput,
    NormalizedWorkflow,
    WorkflowDraft,
    WorkflowEdge,
)
from agentgraph.validation.errors import (
    GraphNotFoundError,
    GraphTransactionError,
    GraphValidationError,
    WorkflowGraphError,
)
from agentgraph.validation.normalization import normalize_workflow, validation_message
from agentgraph.editor.state import WorkflowEditor
from agentgraph.sdk.client import WorkflowApiError, WorkflowClient

__all__ = [
    # Catalog
    "Catalog",
    "CatalogModel",
    "CatalogTool",
    # Graphs
    "END_NODE",
    "NodeInput",
    "NormalizedWorkflow",
    "StoredGraph",
    "WorkflowDraft",
    "WorkflowEdge",
    # Errors
    "GraphNotFoundError",
    "GraphTransactionError",
    "GraphValidationError",
    "WorkflowGraphError",
    # High-level APIs
    "normalize_workflow",
    "validation_message",
    "WorkflowEditor",
    "WorkflowApiError",
    "WorkflowClient",
]
