"""Editor-side node records and their hydration from the catalog."""

from dataclasses import dataclass, field, replace
from typing import Any

from agentgraph.models.catalog import Catalog
from agentgraph.models.stored_graph import StoredGraph
from agentgraph.models.workflow_graph import NodeInput, WorkflowEdge
from agentgraph.utils.identifiers import generate_local_id


@dataclass
class EditorNode:
    """A node on the canvas.

    ``local_id`` identifies the node inside the editor for its whole life,
    including before it is persisted; ``id`` is the stored identity, if any.
    """

    local_id: str
    node_key: str
    node_type: str
    x: float
    y: float
    id: str | None = None
    input_key: str | None = None
    output_key: str | None = None
    model_id: str | None = None
    tool_ids: list[str] = field(default_factory=list)
    config: dict[str, Any] = field(default_factory=dict)
    tool_names: list[str] = field(default_factory=list)
    model_label: str | None = None

    def to_input(self) -> NodeInput:
        return NodeInput(
            id=self.id,
            node_key=self.node_key.strip(),
            node_type=self.node_type,
            x=round(self.x),
            y=round(self.y),
            input_key=(self.input_key or "").strip() or None,
            output_key=(self.output_key or "").strip() or None,
            model_id=self.model_id,
            tool_ids=list(self.tool_ids),
            config=as_record(self.config),
        )


@dataclass
class EditorDraft:
    name: str
    description: str
    entry_node: str
    nodes: list[EditorNode]
    edges: list[WorkflowEdge]


def as_record(value: Any) -> dict[str, Any]:
    """Shallow copy of ``value`` if it is a dict, else an empty dict."""
    if not isinstance(value, dict):
        return {}
    return dict(value)


def as_string_list(value: Any) -> list[str]:
    """Trimmed, non-blank strings of ``value`` if it is a list."""
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def hydrate_node(node: EditorNode, catalog: Catalog) -> EditorNode:
    """Fill type-appropriate defaults and derived labels from the catalog."""
    config = as_record(node.config)
    model_id = node.model_id
    tool_ids = list(dict.fromkeys(tool_id for tool_id in node.tool_ids if tool_id))

    if node.node_type in ("worker", "supervisor"):
        if not model_id and catalog.models:
            model_id = catalog.models[0].id

    if node.node_type == "worker":
        if not isinstance(config.get("system_message"), str):
            config["system_message"] = ""
        max_iterations = config.get("max_iterations")
        if (
            not isinstance(max_iterations, int)
            or isinstance(max_iterations, bool)
            or max_iterations < 1
        ):
            config["max_iterations"] = 3

    if node.node_type == "supervisor":
        tool_ids = []
        config["members"] = list(dict.fromkeys(as_string_list(config.get("members"))))

    if node.node_type == "tool":
        model_id = None
        known_tool_ids = catalog.tool_ids()
        valid_tool_ids = [tool_id for tool_id in tool_ids if tool_id in known_tool_ids]
        if valid_tool_ids:
            tool_ids = valid_tool_ids[:1]
        elif catalog.tools:
            tool_ids = [catalog.tools[0].id]
        else:
            tool_ids = []
        config["input_mapping"] = as_record(config.get("input_mapping"))
        config["output_mapping"] = as_record(config.get("output_mapping"))

    tools = [tool for tool in (catalog.get_tool(tool_id) for tool_id in tool_ids) if tool]
    model = catalog.get_model(model_id)
    return replace(
        node,
        model_id=model_id,
        tool_ids=tool_ids,
        tool_names=[tool.name for tool in tools],
        model_label=model.label if model else None,
        config=config,
    )


def initial_draft(workflow: StoredGraph | None) -> EditorDraft:
    """Starting point for the editor: a stored graph, or a one-worker canvas."""
    if workflow is None:
        return EditorDraft(
            name="",
            description="",
            entry_node="start",
            nodes=[
                EditorNode(
                    local_id=generate_local_id(),
                    node_key="start",
                    node_type="worker",
                    x=260,
                    y=200,
                    input_key="temp_url",
                    output_key="result",
                    config={"system_message": "", "max_iterations": 3},
                )
            ],
            edges=[],
        )

    return EditorDraft(
        name=workflow.name,
        description=workflow.description or "",
        entry_node=workflow.entry_node,
        nodes=[
            EditorNode(
                local_id=node.id,
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
                tool_names=list(node.tool_names),
                model_label=node.model_label,
            )
            for node in workflow.nodes
        ],
        edges=[
            WorkflowEdge(from_node=edge.from_node, to_node=edge.to_node)
            for edge in workflow.edges
        ],
    )
