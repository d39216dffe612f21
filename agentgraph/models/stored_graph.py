"""Data model for persisted workflow graphs as they are read back.

This is the shape the editor hydrates from and the shape an execution
runtime consumes: node config here is already stripped of layout data and
the canvas position is exposed as plain ``x``/``y``.
"""

from typing import Any

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from agentgraph.models.workflow_graph import NodeInput, WorkflowDraft, WorkflowEdge

_CAMEL = {"alias_generator": to_camel, "populate_by_name": True}


class StoredNode(BaseModel):
    """a persisted node."""

    model_config = {**_CAMEL, "protected_namespaces": ()}

    id: str
    node_key: str
    node_type: str
    x: float
    y: float
    input_key: str | None = None
    output_key: str | None = None
    model_id: str | None = None
    model_label: str | None = None
    tool_ids: list[str] = Field(default_factory=list)
    tool_names: list[str] = Field(default_factory=list)
    config: dict[str, Any] = Field(default_factory=dict)


class StoredEdge(BaseModel):
    """a persisted edge."""

    model_config = _CAMEL

    id: str
    from_node: str
    to_node: str


class NodeTypeCounts(BaseModel):
    worker: int = 0
    supervisor: int = 0
    tool: int = 0
    other: int = 0


class StoredGraph(BaseModel):
    """a persisted workflow graph with its nodes and edges."""

    model_config = _CAMEL

    id: str
    organization_id: str
    name: str
    description: str | None = None
    entry_node: str
    nodes: list[StoredNode] = Field(default_factory=list)
    edges: list[StoredEdge] = Field(default_factory=list)
    node_type_counts: NodeTypeCounts = Field(default_factory=NodeTypeCounts)
    attached_device_count: int = 0
    created_at: str
    updated_at: str

    def to_draft(self) -> WorkflowDraft:
        """Build a draft that replays this graph unchanged through a replace."""
        return WorkflowDraft(
            name=self.name,
            description=self.description,
            entry_node=self.entry_node,
            nodes=[
                NodeInput(
                    id=node.id,
                    node_key=node.node_key,
                    node_type=node.node_type,
                    x=node.x,
                    y=node.y,
                    input_key=node.input_key,
                    output_key=node.output_key,
                    model_id=node.model_id,
                    tool_ids=list(node.tool_ids),
                    config=dict(node.config),
                )
                for node in self.nodes
            ],
            edges=[
                WorkflowEdge(from_node=edge.from_node, to_node=edge.to_node)
                for edge in self.edges
            ],
        )


class SavedWorkflow(BaseModel):
    """response body for a created or replaced workflow.

    ``node_ids`` maps each stored node key to its node id so a client can
    send the same nodes back on its next save.
    """

    model_config = _CAMEL

    id: str
    node_ids: dict[str, str] = Field(default_factory=dict)
