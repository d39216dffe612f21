"""Validation of workflow graphs."""

from agentgraph.validation.errors import (
    ErrorCategory,
    GraphNotFoundError,
    GraphTransactionError,
    GraphValidationError,
    WorkflowGraphError,
)
from agentgraph.validation.normalization import (
    build_node_config,
    normalize_graph,
    normalize_workflow,
    normalize_workflow_fields,
    parse_canvas_position,
    reaches_end,
    validation_message,
)

__all__ = [
    # Errors
    "ErrorCategory",
    "GraphNotFoundError",
    "GraphTransactionError",
    "GraphValidationError",
    "WorkflowGraphError",
    # Normalization
    "build_node_config",
    "normalize_graph",
    "normalize_workflow",
    "normalize_workflow_fields",
    "parse_canvas_position",
    "reaches_end",
    "validation_message",
]
