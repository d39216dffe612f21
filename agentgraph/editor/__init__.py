"""Client-side editing of workflow graphs."""

from agentgraph.editor.canvas import (
    EdgeSegment,
    OrchestrationLink,
    edge_segments,
    end_node_position,
    orchestration_links,
)
from agentgraph.editor.interaction import (
    IDLE,
    DraggingEdge,
    DraggingNode,
    Idle,
    Panning,
)
from agentgraph.editor.keys import build_unique_node_key
from agentgraph.editor.listeners import ListenerScope, PointerEvent, PointerSurface
from agentgraph.editor.nodes import EditorNode, hydrate_node, initial_draft
from agentgraph.editor.saves import InFlightSaves, WorkflowSubmitter
from agentgraph.editor.state import WorkflowEditor
from agentgraph.editor.viewport import CanvasRect, Point, Viewport

__all__ = [
    # Editor
    "WorkflowEditor",
    "EditorNode",
    "hydrate_node",
    "initial_draft",
    "build_unique_node_key",
    # Interaction
    "IDLE",
    "Idle",
    "DraggingNode",
    "Panning",
    "DraggingEdge",
    "ListenerScope",
    "PointerEvent",
    "PointerSurface",
    # Saving
    "InFlightSaves",
    "WorkflowSubmitter",
    # Geometry
    "CanvasRect",
    "Point",
    "Viewport",
    "EdgeSegment",
    "OrchestrationLink",
    "edge_segments",
    "end_node_position",
    "orchestration_links",
]
