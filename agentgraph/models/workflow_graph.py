"""Data models for workflow graphs.

Two layers live here:

* the draft (``WorkflowDraft`` / ``NodeInput`` / ``WorkflowEdge``): the
  camelCase payload produced by the editor and accepted by the server. Field
  values are untrusted and only shape-checked.
* the normalized graph (``NormalizedWorkflow``): what the validator returns.
  Nodes form a tagged union keyed by ``node_type`` and each variant carries a
  config model holding only the fields legal for that type.
"""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

END_NODE = "END"
UI_POSITION_KEY = "uiPosition"

NODE_TYPES = ("worker", "supervisor", "tool")

_CAMEL = {"alias_generator": to_camel, "populate_by_name": True}


class WorkflowEdge(BaseModel):
    """a directed control-flow edge; ``to_node`` may be END."""

    model_config = _CAMEL

    from_node: str
    to_node: str

    @property
    def edge_key(self) -> str:
        return f"{self.from_node}->{self.to_node}"


class NodeInput(BaseModel):
    """a node as submitted by a client, before validation."""

    model_config = {**_CAMEL, "protected_namespaces": ()}

    id: str | None = None
    node_key: str
    node_type: str
    x: float
    y: float
    input_key: str | None = None
    output_key: str | None = None
    model_id: str | None = None
    tool_ids: list[str] = Field(default_factory=list)
    config: Any = None


class WorkflowDraft(BaseModel):
    """request body for creating or replacing a workflow graph."""

    model_config = _CAMEL

    name: str
    description: str | None = None
    entry_node: str
    nodes: list[NodeInput] = Field(default_factory=list)
    edges: list[WorkflowEdge] = Field(default_factory=list)


class WorkflowFields(BaseModel):
    """validated graph metadata."""

    name: str
    description: str | None = None
    entry_node: str


# --- per-type configuration ---


class WorkerConfig(BaseModel):
    system_message: str | None = None
    max_iterations: int = 3


class SupervisorConfig(BaseModel):
    members: list[str]


class ToolConfig(BaseModel):
    input_mapping: dict[str, str] | None = None
    output_mapping: dict[str, str] | None = None


class _NormalizedNodeBase(BaseModel):
    model_config = {"protected_namespaces": ()}

    id: str | None = None
    node_key: str
    x: int
    y: int
    input_key: str | None = None
    output_key: str | None = None
    model_id: str | None = None
    tool_ids: list[str] = Field(default_factory=list)

    def semantic_config(self) -> dict[str, Any]:
        """config as the runtime reads it, without layout data."""
        return self.config.model_dump(exclude_none=True)

    def to_input(self) -> NodeInput:
        return NodeInput(
            id=self.id,
            node_key=self.node_key,
            node_type=self.node_type,
            x=self.x,
            y=self.y,
            input_key=self.input_key,
            output_key=self.output_key,
            model_id=self.model_id,
            tool_ids=list(self.tool_ids),
            config=self.semantic_config(),
        )


class WorkerNode(_NormalizedNodeBase):
    node_type: Literal["worker"] = "worker"
    config: WorkerConfig = Field(default_factory=WorkerConfig)


class SupervisorNode(_NormalizedNodeBase):
    node_type: Literal["supervisor"] = "supervisor"
    config: SupervisorConfig


class ToolNode(_NormalizedNodeBase):
    node_type: Literal["tool"] = "tool"
    config: ToolConfig = Field(default_factory=ToolConfig)


NormalizedNode = Annotated[
    Union[WorkerNode, SupervisorNode, ToolNode],
    Field(discriminator="node_type"),
]


class NormalizedWorkflow(BaseModel):
    """A graph that satisfied every invariant, ready to be persisted."""

    name: str
    description: str | None = None
    entry_node: str
    nodes: list[NormalizedNode]
    edges: list[WorkflowEdge]

    def node_by_key(self, node_key: str):
        for node in self.nodes:
            if node.node_key == node_key:
                return node
        return None

    def to_draft(self) -> WorkflowDraft:
        """Turn the normalized graph back into a submittable draft."""
        return WorkflowDraft(
            name=self.name,
            description=self.description,
            entry_node=self.entry_node,
            nodes=[node.to_input() for node in self.nodes],
            edges=[
                WorkflowEdge(from_node=edge.from_node, to_node=edge.to_node)
                for edge in self.edges
            ],
        )
