"""Normalization and validation of workflow graphs.

``normalize_workflow`` is the single gate every graph passes before it is
stored, and the editor runs the same checks for live feedback. Checks run
in a fixed order and stop at the first violation; later checks rely on the
earlier ones having passed (edge checks assume node keys are unique, the
reachability walk assumes every edge endpoint exists).

Everything here is pure: no I/O, no module state. The catalog of known
models and tools is always passed in.
"""

import json
import math
import re
from collections import deque
from typing import Any, Iterable, Mapping

from pydantic import BaseModel, ValidationError

from agentgraph.models.catalog import Catalog
from agentgraph.models.workflow_graph import (
    END_NODE,
    NODE_TYPES,
    UI_POSITION_KEY,
    NodeInput,
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
from agentgraph.validation.errors import ErrorCategory, GraphValidationError

KEY_PATTERN = re.compile(r"[A-Za-z0-9._:-]+")
UUID_PATTERN = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}",
    re.IGNORECASE,
)
CONST_PREFIX = "_const:"

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 120
KEY_MIN_LENGTH = 2
KEY_MAX_LENGTH = 100
STATE_KEY_MAX_LENGTH = 120
DESCRIPTION_MAX_LENGTH = 800
MAX_ITERATIONS_MIN = 1
MAX_ITERATIONS_MAX = 100
DEFAULT_MAX_ITERATIONS = 3
DEFAULT_COORDINATE = 80

KEY_CHARSET_HINT = "letters, numbers, dots, colons, dashes, and underscores only"


def _shape(message: str) -> GraphValidationError:
    return GraphValidationError(message, ErrorCategory.shape)


def _reference(message: str) -> GraphValidationError:
    return GraphValidationError(message, ErrorCategory.reference)


def _structural(message: str) -> GraphValidationError:
    return GraphValidationError(message, ErrorCategory.structural)


def _coerce(model: type[BaseModel], value: Any):
    """Shape-check untrusted input, reporting the first problem only."""
    if isinstance(value, model):
        return value
    try:
        return model.model_validate(value)
    except ValidationError as exc:
        error = exc.errors()[0]
        location = ".".join(str(part) for part in error["loc"]) or model.__name__
        raise _shape(f"Invalid value for {location}: {error['msg']}.") from exc


def _is_key(value: str) -> bool:
    return KEY_PATTERN.fullmatch(value) is not None


# --- workflow fields ---


def normalize_workflow_fields(
    name: str,
    description: str | None,
    entry_node: str,
) -> WorkflowFields:
    """Validate the graph's name, description and entry node."""
    name = name.strip()
    if len(name) < NAME_MIN_LENGTH:
        raise _shape("Workflow name must be at least 2 characters.")
    if len(name) > NAME_MAX_LENGTH:
        raise _shape("Workflow name must be 120 characters or fewer.")

    entry_node = entry_node.strip()
    if len(entry_node) < KEY_MIN_LENGTH:
        raise _shape("Entry node must be at least 2 characters.")
    if len(entry_node) > KEY_MAX_LENGTH:
        raise _shape("Entry node must be 100 characters or fewer.")
    if not _is_key(entry_node):
        raise _shape(f"Entry node can include {KEY_CHARSET_HINT}.")

    description = (description or "").strip() or None
    if description and len(description) > DESCRIPTION_MAX_LENGTH:
        raise _shape("Description must be 800 characters or fewer.")

    return WorkflowFields(name=name, description=description, entry_node=entry_node)


# --- node field helpers ---


def normalize_optional_state_key(value: str | None, label: str) -> str | None:
    """Trim a state-bag key; blank means absent."""
    normalized = (value or "").strip()
    if not normalized:
        return None
    if len(normalized) > STATE_KEY_MAX_LENGTH:
        raise _shape(f"{label} must be 120 characters or fewer.")
    if not _is_key(normalized):
        raise _shape(f"{label} can include {KEY_CHARSET_HINT}.")
    return normalized


def normalize_node_config(config: Any) -> dict[str, Any]:
    """Return the semantic part of a node config as a fresh dict.

    Serialized configs are decoded; anything that is not an object (or does
    not parse) becomes an empty config. The layout sub-key is dropped.
    """
    if isinstance(config, str):
        try:
            config = json.loads(config)
        except ValueError:
            return {}
    if not isinstance(config, Mapping):
        return {}
    normalized = dict(config)
    normalized.pop(UI_POSITION_KEY, None)
    return normalized


def _normalize_coordinate(value: float | None) -> int:
    if value is None or not math.isfinite(value):
        return DEFAULT_COORDINATE
    return max(0, math.floor(value + 0.5))


def _normalize_node_key(value: str) -> str:
    node_key = value.strip()
    if len(node_key) < KEY_MIN_LENGTH:
        raise _shape("Each node key must be at least 2 characters.")
    if len(node_key) > KEY_MAX_LENGTH:
        raise _shape("Node keys must be 100 characters or fewer.")
    if not _is_key(node_key):
        raise _shape(
            f'Node key "{node_key}" has invalid characters. Use {KEY_CHARSET_HINT}.'
        )
    if node_key == END_NODE:
        raise _shape(f'Node key "{END_NODE}" is reserved for the workflow terminal.')
    return node_key


def _normalize_model_id(
    value: str | None, node_key: str, model_ids: set[str]
) -> str | None:
    model_id = (value or "").strip()
    if not model_id:
        return None
    if UUID_PATTERN.fullmatch(model_id) is None:
        raise _shape(f'Model id for node "{node_key}" is invalid.')
    if model_id not in model_ids:
        raise _reference(f'Node "{node_key}" references an unknown model "{model_id}".')
    return model_id


def _normalize_tool_ids(
    values: Iterable[str], node_key: str, tool_ids: set[str]
) -> list[str]:
    unique = list(dict.fromkeys(value.strip() for value in values if value.strip()))
    for tool_id in unique:
        if UUID_PATTERN.fullmatch(tool_id) is None:
            raise _shape(f'Tool id "{tool_id}" on node "{node_key}" is invalid.')
        if tool_id not in tool_ids:
            raise _reference(
                f'Node "{node_key}" references an unknown tool "{tool_id}".'
            )
    return unique


# --- per-type rules ---


def _max_iterations(value: Any, node_key: str) -> int:
    if value is None:
        return DEFAULT_MAX_ITERATIONS
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    # bool is an int subclass but never a valid iteration count
    if (
        isinstance(value, bool)
        or not isinstance(value, int)
        or not MAX_ITERATIONS_MIN <= value <= MAX_ITERATIONS_MAX
    ):
        raise _structural(
            f'Worker node "{node_key}" max_iterations must be an integer between 1 and 100.'
        )
    return value


def _build_worker(common: dict[str, Any], config: dict[str, Any]) -> WorkerNode:
    node_key = common["node_key"]
    if not common["model_id"]:
        raise _structural(f'Worker node "{node_key}" requires a model.')
    system_message = config.get("system_message")
    if system_message is not None and not isinstance(system_message, str):
        raise _structural(
            f'Worker node "{node_key}" must set system_message as a string.'
        )
    return WorkerNode(
        **common,
        config=WorkerConfig(
            system_message=system_message,
            max_iterations=_max_iterations(config.get("max_iterations"), node_key),
        ),
    )


def _build_supervisor(common: dict[str, Any], config: dict[str, Any]) -> SupervisorNode:
    node_key = common["node_key"]
    if not common["model_id"]:
        raise _structural(f'Supervisor node "{node_key}" requires a model.')
    if common["tool_ids"]:
        raise _structural(f'Supervisor node "{node_key}" cannot have attached tools.')

    members = config.get("members")
    if not isinstance(members, list) or not members:
        raise _structural(
            f'Supervisor node "{node_key}" must define at least one member in config.members.'
        )
    normalized_members: list[str] = []
    for member in members:
        if not isinstance(member, str) or not _is_key(member.strip()):
            raise _shape(f'Supervisor node "{node_key}" has invalid member value.')
        member_key = member.strip()
        if member_key in normalized_members:
            raise _structural(
                f'Supervisor node "{node_key}" has duplicate member "{member_key}".'
            )
        normalized_members.append(member_key)

    return SupervisorNode(**common, config=SupervisorConfig(members=normalized_members))


def _normalize_tool_mapping(
    mapping: Any, mapping_name: str, node_key: str
) -> dict[str, str] | None:
    if mapping is None:
        return None
    if not isinstance(mapping, Mapping):
        raise _shape(
            f'Tool node "{node_key}" must provide {mapping_name} as an object when set.'
        )
    normalized: dict[str, str] = {}
    for field, value in mapping.items():
        if not isinstance(value, str):
            raise _shape(f'Tool node "{node_key}" mapping for "{field}" must be a string.')
        reference = value.strip()
        if not reference:
            raise _shape(f'Tool node "{node_key}" mapping for "{field}" cannot be empty.')
        if not (mapping_name == "input_mapping" and reference.startswith(CONST_PREFIX)):
            if not _is_key(reference):
                raise _shape(
                    f'Tool node "{node_key}" mapping "{field}" must use {KEY_CHARSET_HINT}.'
                )
        normalized[str(field)] = reference
    return normalized


def _build_tool(common: dict[str, Any], config: dict[str, Any]) -> ToolNode:
    node_key = common["node_key"]
    if len(common["tool_ids"]) != 1:
        raise _structural(f'Tool node "{node_key}" must have exactly one attached tool.')
    if common["model_id"]:
        raise _structural(f'Tool node "{node_key}" cannot set a model.')
    return ToolNode(
        **common,
        config=ToolConfig(
            input_mapping=_normalize_tool_mapping(
                config.get("input_mapping"), "input_mapping", node_key
            ),
            output_mapping=_normalize_tool_mapping(
                config.get("output_mapping"), "output_mapping", node_key
            ),
        ),
    )


_BUILDERS = {
    "worker": _build_worker,
    "supervisor": _build_supervisor,
    "tool": _build_tool,
}


def _normalize_node(
    node: NodeInput,
    seen_keys: set[str],
    model_ids: set[str],
    tool_ids: set[str],
):
    node_key = _normalize_node_key(node.node_key)
    if node_key in seen_keys:
        raise _structural(f'Duplicate node key detected: "{node_key}".')
    seen_keys.add(node_key)

    node_type = node.node_type.strip().lower()
    if node_type not in NODE_TYPES:
        raise _shape(
            f'Node "{node_key}" has unsupported type "{node.node_type}". '
            "Use worker, supervisor, or tool."
        )

    common = {
        "id": (node.id or "").strip() or None,
        "node_key": node_key,
        "x": _normalize_coordinate(node.x),
        "y": _normalize_coordinate(node.y),
        "input_key": normalize_optional_state_key(
            node.input_key, f'Input key for node "{node_key}"'
        ),
        "output_key": normalize_optional_state_key(
            node.output_key, f'Output key for node "{node_key}"'
        ),
        "model_id": _normalize_model_id(node.model_id, node_key, model_ids),
        "tool_ids": _normalize_tool_ids(node.tool_ids, node_key, tool_ids),
    }
    config = normalize_node_config(node.config)
    return _BUILDERS[node_type](common, config)


# --- graph level ---


def _check_supervisor_members(nodes: list) -> None:
    type_by_key = {node.node_key: node.node_type for node in nodes}
    for node in nodes:
        if node.node_type != "supervisor":
            continue
        for member in node.config.members:
            member_type = type_by_key.get(member)
            if member_type is None:
                raise _reference(
                    f'Supervisor node "{node.node_key}" references unknown member "{member}".'
                )
            if member_type != "worker":
                raise _structural(
                    f'Supervisor node "{node.node_key}" member "{member}" must be a worker node.'
                )


def _normalize_edges(edges: Iterable[Any], node_keys: set[str]) -> list[WorkflowEdge]:
    normalized: list[WorkflowEdge] = []
    edge_keys: set[str] = set()
    for raw_edge in edges:
        edge = _coerce(WorkflowEdge, raw_edge)
        from_node = edge.from_node.strip()
        to_node = edge.to_node.strip()
        if from_node not in node_keys:
            raise _reference(
                f'Edge "{from_node} -> {to_node}" references a source node that does not exist.'
            )
        if to_node != END_NODE and to_node not in node_keys:
            raise _reference(
                f'Edge "{from_node} -> {to_node}" references a node that does not exist.'
            )
        if from_node == to_node:
            raise _structural(f'Edge "{from_node}" cannot point to itself.')
        edge_key = f"{from_node}->{to_node}"
        if edge_key in edge_keys:
            raise _structural(f"Duplicate edge detected: {edge_key}.")
        edge_keys.add(edge_key)
        normalized.append(WorkflowEdge(from_node=from_node, to_node=to_node))
    return normalized


def reaches_end(entry_node: str, edges: Iterable[WorkflowEdge]) -> bool:
    """Breadth-first walk over edges from the entry node looking for END.

    Supervisor member routing is not an edge and is not followed.
    """
    adjacency: dict[str, list[str]] = {}
    for edge in edges:
        adjacency.setdefault(edge.from_node, []).append(edge.to_node)

    visited: set[str] = set()
    queue = deque([entry_node])
    while queue:
        current = queue.popleft()
        if current in visited:
            continue
        visited.add(current)
        for next_node in adjacency.get(current, []):
            if next_node == END_NODE:
                return True
            if next_node not in visited:
                queue.append(next_node)
    return False


def normalize_graph(
    entry_node: str,
    nodes: Iterable[Any],
    edges: Iterable[Any],
    catalog: Catalog,
) -> tuple[list, list[WorkflowEdge]]:
    """Validate nodes and edges against the catalog.

    Returns the normalized node list (a tagged union per node type) and the
    normalized edge list, or raises ``GraphValidationError`` with the first
    violation found.
    """
    node_inputs = [_coerce(NodeInput, node) for node in nodes]
    if not node_inputs:
        raise _structural("Add at least one node to the workflow canvas.")

    model_ids = catalog.model_ids()
    tool_ids = catalog.tool_ids()
    seen_keys: set[str] = set()
    normalized_nodes = [
        _normalize_node(node, seen_keys, model_ids, tool_ids) for node in node_inputs
    ]

    node_keys = [node.node_key for node in normalized_nodes]
    if len(set(node_keys)) != len(node_keys):
        raise _structural("Duplicate node keys detected.")
    entry_node = entry_node.strip()
    if entry_node not in seen_keys:
        raise _reference("Entry node must match one of the node keys on the canvas.")

    _check_supervisor_members(normalized_nodes)

    normalized_edges = _normalize_edges(edges, seen_keys)
    if not any(edge.to_node == END_NODE for edge in normalized_edges):
        raise _structural("Add at least one edge that points to END.")
    if not reaches_end(entry_node, normalized_edges):
        raise _structural("Entry node must have a path to END.")

    return normalized_nodes, normalized_edges


def normalize_workflow(candidate: Any, catalog: Catalog) -> NormalizedWorkflow:
    """Validate a full draft (fields, nodes, edges) and return it normalized."""
    draft = _coerce(WorkflowDraft, candidate)
    fields = normalize_workflow_fields(draft.name, draft.description, draft.entry_node)
    nodes, edges = normalize_graph(fields.entry_node, draft.nodes, draft.edges, catalog)
    return NormalizedWorkflow(
        name=fields.name,
        description=fields.description,
        entry_node=fields.entry_node,
        nodes=nodes,
        edges=edges,
    )


def validation_message(
    entry_node: str,
    nodes: Iterable[Any],
    edges: Iterable[Any],
    catalog: Catalog,
) -> str | None:
    """First violation of the graph portion, or None when it is valid."""
    try:
        normalize_graph(entry_node, nodes, edges, catalog)
    except GraphValidationError as exc:
        return exc.message
    return None


# --- layout sub-key ---


def build_node_config(node) -> dict[str, Any]:
    """Config as persisted: semantic fields plus the validated position."""
    config = node.semantic_config()
    config[UI_POSITION_KEY] = {"x": node.x, "y": node.y}
    return config


def fallback_position(index: int) -> tuple[int, int]:
    """Grid position for nodes stored without a layout."""
    return 80 + (index % 4) * 220, 80 + (index // 4) * 140


def parse_canvas_position(config: Any, fallback_index: int) -> tuple[float, float]:
    """Read the stored canvas position out of a persisted config."""
    fallback = fallback_position(fallback_index)
    if isinstance(config, str):
        try:
            config = json.loads(config)
        except ValueError:
            return fallback
    if not isinstance(config, Mapping):
        return fallback
    position = config.get(UI_POSITION_KEY)
    if not isinstance(position, Mapping):
        return fallback
    x = position.get("x")
    y = position.get("y")
    if not _is_number(x) or not _is_number(y):
        return fallback
    return x, y


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)
