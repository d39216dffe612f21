"""Core data models for agent graphs."""

from agentgraph.models.catalog import Catalog, CatalogModel, CatalogTool
from agentgraph.models.device import Device, DeviceAssignment, DeviceAssignmentRequest
from agentgraph.models.stored_graph import (
    NodeTypeCounts,
    SavedWorkflow,
    StoredEdge,
    StoredGraph,
    StoredNode,
)
from agentgraph.models.workflow_graph import (
    END_NODE,
    NODE_TYPES,
    UI_POSITION_KEY,
    NodeInput,
    NormalizedNode,
    NormalizedWorkflow,
    SupervisorConfig,
    SupervisorNode,
    ToolConfig,
    ToolNode,
    WorkerConfig,
    WorkerNode,
    WorkflowDraft,
    WorkflowEdge,
    WorkflowFields,
)

__all__ = [
    # Catalog
    "Catalog",
    "CatalogModel",
    "CatalogTool",
    # Drafts and normalized graphs
    "END_NODE",
    "NODE_TYPES",
    "UI_POSITION_KEY",
    "NodeInput",
    "NormalizedNode",
    "NormalizedWorkflow",
    "SupervisorConfig",
    "SupervisorNode",
    "ToolConfig",
    "ToolNode",
    "WorkerConfig",
    "WorkerNode",
    "WorkflowDraft",
    "WorkflowEdge",
    "WorkflowFields",
    # Stored graphs
    "Device",
    "DeviceAssignment",
    "DeviceAssignmentRequest",
    "NodeTypeCounts",
    "SavedWorkflow",
    "StoredEdge",
    "StoredGraph",
    "StoredNode",
]
