"""Interactive editor state for building a workflow graph.

``WorkflowEditor`` owns one in-progress graph: its fields, nodes, edges,
viewport and the current pointer interaction. Every change re-runs the
graph validator so ``validation_message`` always reflects the current
canvas, and ``save`` refuses to submit a graph that does not normalize.

Usage:

    editor = WorkflowEditor(catalog, submitter=client)
    editor.set_name("Image triage")
    editor.add_edge_to_end("start")
    editor.save()
"""

import logging
from dataclasses import replace
from typing import Any

from agentgraph.editor.interaction import (
    IDLE,
    DraggingEdge,
    DraggingNode,
    InteractionState,
    Panning,
)
from agentgraph.editor.keys import build_unique_node_key
from agentgraph.editor.listeners import (
    PRIMARY_BUTTON,
    ListenerScope,
    PointerEvent,
    PointerSurface,
)
from agentgraph.editor.nodes import (
    EditorNode,
    as_record,
    as_string_list,
    hydrate_node,
    initial_draft,
)
from agentgraph.editor.saves import CREATING_KEY, InFlightSaves, WorkflowSubmitter
from agentgraph.editor.viewport import (
    BUTTON_ZOOM_IN,
    BUTTON_ZOOM_OUT,
    WHEEL_ZOOM_IN,
    WHEEL_ZOOM_OUT,
    CanvasRect,
    Point,
    Viewport,
)
from agentgraph.models.catalog import Catalog
from agentgraph.models.stored_graph import StoredGraph
from agentgraph.models.workflow_graph import END_NODE, WorkflowDraft, WorkflowEdge
from agentgraph.utils.identifiers import generate_local_id
from agentgraph.validation.errors import GraphValidationError, WorkflowGraphError
from agentgraph.validation.normalization import normalize_workflow, validation_message

logger = logging.getLogger(__name__)

_EDITABLE_NODE_FIELDS = {
    "node_key",
    "node_type",
    "x",
    "y",
    "input_key",
    "output_key",
    "model_id",
    "tool_ids",
    "config",
}


class WorkflowEditor:
    """Single-user editing session for one workflow graph."""

    def __init__(
        self,
        catalog: Catalog,
        workflow: StoredGraph | None = None,
        submitter: WorkflowSubmitter | None = None,
        surface: PointerSurface | None = None,
        saves: InFlightSaves | None = None,
        canvas_rect: CanvasRect | None = None,
    ) -> None:
        self.catalog = catalog
        self.submitter = submitter
        self.surface = surface or PointerSurface()
        self.saves = saves or InFlightSaves()
        self.canvas_rect = canvas_rect or CanvasRect()
        self._listeners = ListenerScope(
            self.surface, self._on_pointer_move, self._on_pointer_up
        )
        self.load(workflow)

    def load(self, workflow: StoredGraph | None) -> None:
        """Reset the session to ``workflow`` (or a fresh canvas)."""
        self._listeners.release()
        draft = initial_draft(workflow)
        self.workflow_id: str | None = workflow.id if workflow else None
        self.name = draft.name
        self.description = draft.description
        self.entry_node = draft.entry_node
        self.nodes: list[EditorNode] = [
            hydrate_node(node, self.catalog) for node in draft.nodes
        ]
        self.edges: list[WorkflowEdge] = draft.edges
        self.selected_node_id: str | None = (
            self.nodes[0].local_id if self.nodes else None
        )
        self.viewport = Viewport()
        self.state: InteractionState = IDLE
        self.local_error: str | None = None
        self.validation_message: str | None = None
        self._revalidate()

    # --- derived state ---

    @property
    def selected_node(self) -> EditorNode | None:
        return self.get_node(self.selected_node_id)

    @property
    def is_saving(self) -> bool:
        return self.saves.is_saving(self._save_key())

    def get_node(self, local_id: str | None) -> EditorNode | None:
        for node in self.nodes:
            if node.local_id == local_id:
                return node
        return None

    def get_node_by_key(self, node_key: str) -> EditorNode | None:
        for node in self.nodes:
            if node.node_key == node_key:
                return node
        return None

    def to_draft(self) -> WorkflowDraft:
        return WorkflowDraft(
            name=self.name.strip(),
            description=self.description.strip(),
            entry_node=self.entry_node.strip(),
            nodes=[node.to_input() for node in self.nodes],
            edges=[
                WorkflowEdge(from_node=edge.from_node, to_node=edge.to_node)
                for edge in self.edges
            ],
        )

    def _revalidate(self) -> None:
        self.validation_message = validation_message(
            self.entry_node,
            [node.to_input() for node in self.nodes],
            self.edges,
            self.catalog,
        )

    def catalog_changed(self, catalog: Catalog) -> None:
        """Swap in a new catalog snapshot and re-check the graph against it."""
        self.catalog = catalog
        self.nodes = [hydrate_node(node, catalog) for node in self.nodes]
        self._revalidate()

    # --- graph fields ---

    def set_name(self, name: str) -> None:
        self.name = name

    def set_description(self, description: str) -> None:
        self.description = description

    def set_entry_node(self, node_key: str) -> None:
        self.entry_node = node_key
        self._revalidate()

    def select_node(self, local_id: str | None) -> None:
        self.selected_node_id = local_id

    # --- node mutations ---

    def add_node(self, node_type: str) -> EditorNode:
        """Add a node of ``node_type`` at the middle of the visible canvas."""
        normalized_type = node_type.strip().lower()
        node_key = build_unique_node_key(
            normalized_type, [node.node_key for node in self.nodes]
        )
        center = self.viewport.center_world(self.canvas_rect)
        node = hydrate_node(
            EditorNode(
                local_id=generate_local_id(),
                node_key=node_key,
                node_type=normalized_type,
                x=round(center.x),
                y=round(center.y),
            ),
            self.catalog,
        )
        self.nodes.append(node)
        self.selected_node_id = node.local_id
        if not self.entry_node:
            self.entry_node = node_key
        self._revalidate()
        return node

    def remove_node(self, local_id: str) -> None:
        target = self.get_node(local_id)
        if target is None:
            return
        self.nodes = [node for node in self.nodes if node.local_id != local_id]
        self.edges = [
            edge
            for edge in self.edges
            if edge.from_node != target.node_key and edge.to_node != target.node_key
        ]
        if self.entry_node == target.node_key:
            self.entry_node = self.nodes[0].node_key if self.nodes else ""
        if self.selected_node_id == local_id:
            self.selected_node_id = None
        self._revalidate()

    def update_node(self, local_id: str, **changes: Any) -> None:
        """Apply field changes to a node and cascade key/type changes.

        Renaming a node rewrites edges, supervisor member lists and the entry
        node that referenced the old key. Turning a worker into another type
        drops it from every supervisor's members.
        """
        node = self.get_node(local_id)
        if node is None:
            return
        unknown = set(changes) - _EDITABLE_NODE_FIELDS
        if unknown:
            raise TypeError(f"Cannot edit node fields: {', '.join(sorted(unknown))}")

        previous_key = node.node_key
        if "node_type" in changes:
            changes["node_type"] = changes["node_type"].strip().lower()
        next_key = changes.get("node_key", previous_key)
        renamed = next_key != previous_key
        removing_worker_role = (
            node.node_type == "worker"
            and changes.get("node_type", "worker") != "worker"
        )

        next_nodes = []
        for current in self.nodes:
            if current.local_id == local_id:
                next_nodes.append(hydrate_node(replace(current, **changes), self.catalog))
                continue
            if current.node_type == "supervisor" and (renamed or removing_worker_role):
                current = self._cascade_members(
                    current, previous_key, next_key, removing_worker_role
                )
            next_nodes.append(current)
        self.nodes = next_nodes

        if renamed:
            self.edges = [
                WorkflowEdge(
                    from_node=next_key if edge.from_node == previous_key else edge.from_node,
                    to_node=next_key if edge.to_node == previous_key else edge.to_node,
                )
                for edge in self.edges
            ]
            if self.entry_node == previous_key:
                self.entry_node = next_key
        self._revalidate()

    def rename_node(self, local_id: str, node_key: str) -> None:
        self.update_node(local_id, node_key=node_key)

    def _cascade_members(
        self,
        supervisor: EditorNode,
        previous_key: str,
        next_key: str,
        removing_worker_role: bool,
    ) -> EditorNode:
        config = as_record(supervisor.config)
        members = as_string_list(config.get("members"))
        next_members = [next_key if member == previous_key else member for member in members]
        if removing_worker_role:
            blocked = {previous_key, next_key}
            next_members = [member for member in next_members if member not in blocked]
        if next_members == members:
            return supervisor
        config["members"] = next_members
        return replace(supervisor, config=config)

    def toggle_supervisor_member(self, local_id: str, member_key: str) -> None:
        node = self.get_node(local_id)
        if node is None or node.node_type != "supervisor":
            return
        members = list(dict.fromkeys(as_string_list(node.config.get("members"))))
        if member_key in members:
            members.remove(member_key)
        else:
            members.append(member_key)
        config = as_record(node.config)
        config["members"] = members
        self._replace_node(replace(node, config=config))

    def toggle_worker_tool(self, local_id: str, tool_id: str) -> None:
        node = self.get_node(local_id)
        if node is None or node.node_type != "worker":
            return
        tool_ids = list(dict.fromkeys(node.tool_ids))
        if tool_id in tool_ids:
            tool_ids.remove(tool_id)
        else:
            tool_ids.append(tool_id)
        self._replace_node(hydrate_node(replace(node, tool_ids=tool_ids), self.catalog))

    def _replace_node(self, updated: EditorNode) -> None:
        self.nodes = [
            updated if node.local_id == updated.local_id else node for node in self.nodes
        ]
        self._revalidate()

    # --- edge mutations ---

    def has_edge(self, from_node: str, to_node: str) -> bool:
        return any(
            edge.from_node == from_node and edge.to_node == to_node for edge in self.edges
        )

    def add_edge_to_end(self, from_node: str) -> None:
        if not from_node or self.has_edge(from_node, END_NODE):
            return
        self.edges.append(WorkflowEdge(from_node=from_node, to_node=END_NODE))
        self._revalidate()

    def remove_edge(self, edge_key: str) -> None:
        self.edges = [edge for edge in self.edges if edge.edge_key != edge_key]
        self._revalidate()

    def _connect(self, from_node: str, to_node: str | None) -> bool:
        if not to_node or to_node == from_node or self.has_edge(from_node, to_node):
            return False
        if to_node != END_NODE and self.get_node_by_key(to_node) is None:
            return False
        self.edges.append(WorkflowEdge(from_node=from_node, to_node=to_node))
        return True

    # --- pointer gestures ---

    def press_node(self, local_id: str, event: PointerEvent) -> None:
        """Primary press on a node body: start dragging it."""
        if event.button != PRIMARY_BUTTON or self.state is not IDLE:
            return
        node = self.get_node(local_id)
        if node is None:
            return
        self.selected_node_id = local_id
        self._enter(DraggingNode(
            local_id=local_id,
            start=Point(event.client_x, event.client_y),
            origin=Point(node.x, node.y),
        ))

    def press_canvas(self, event: PointerEvent) -> None:
        """Primary press on the empty canvas background: start panning."""
        if event.button != PRIMARY_BUTTON or not event.on_background:
            return
        if self.state is not IDLE:
            return
        self._enter(Panning(
            start=Point(event.client_x, event.client_y),
            origin=Point(self.viewport.offset_x, self.viewport.offset_y),
        ))

    def press_connect(self, node_key: str, event: PointerEvent) -> None:
        """Press on a node's connect handle: start drawing an edge from it."""
        if self.state is not IDLE:
            return
        self._enter(DraggingEdge(
            source_key=node_key,
            cursor=self.viewport.to_world(event.client_x, event.client_y, self.canvas_rect),
        ))

    def hover_target(self, node_key: str | None) -> None:
        """Record the node (or END) under the pointer while drawing an edge."""
        if isinstance(self.state, DraggingEdge):
            self.state = replace(self.state, hovered=node_key)

    def _enter(self, state: InteractionState) -> None:
        self.state = state
        self._listeners.acquire()

    def _leave(self) -> None:
        self.state = IDLE
        self._listeners.release()

    def _on_pointer_move(self, event: PointerEvent) -> None:
        state = self.state
        if isinstance(state, DraggingNode):
            next_x = state.origin.x + (event.client_x - state.start.x) / self.viewport.scale
            next_y = state.origin.y + (event.client_y - state.start.y) / self.viewport.scale
            node = self.get_node(state.local_id)
            if node is not None:
                self._replace_node(replace(
                    node,
                    x=max(0, round(next_x)),
                    y=max(0, round(next_y)),
                ))
        elif isinstance(state, Panning):
            self.viewport = self.viewport.panned(
                state.origin.x + (event.client_x - state.start.x),
                state.origin.y + (event.client_y - state.start.y),
            )
        elif isinstance(state, DraggingEdge):
            self.state = replace(
                state,
                cursor=self.viewport.to_world(
                    event.client_x, event.client_y, self.canvas_rect
                ),
            )

    def _on_pointer_up(self, event: PointerEvent) -> None:
        state = self.state
        self._leave()
        if isinstance(state, DraggingEdge):
            if self._connect(state.source_key, state.hovered):
                self._revalidate()
            else:
                logger.debug("discarded edge draft from %s", state.source_key)

    def close(self) -> None:
        """End any gesture and detach listeners."""
        self._leave()

    # --- viewport ---

    def wheel(self, event: PointerEvent, delta_y: float) -> None:
        factor = WHEEL_ZOOM_IN if delta_y < 0 else WHEEL_ZOOM_OUT
        self.apply_zoom(factor, Point(event.client_x, event.client_y))

    def apply_zoom(self, factor: float, anchor: Point | None = None) -> None:
        self.viewport = self.viewport.zoomed(factor, self.canvas_rect, anchor)

    def zoom_in(self) -> None:
        self.apply_zoom(BUTTON_ZOOM_IN)

    def zoom_out(self) -> None:
        self.apply_zoom(BUTTON_ZOOM_OUT)

    def reset_view(self) -> None:
        self.viewport = Viewport()

    # --- saving ---

    def _save_key(self) -> str:
        return self.workflow_id or CREATING_KEY

    def save(self) -> str | None:
        """Validate and submit the graph once.

        Returns the saved graph id, or None when validation failed, the
        submitter rejected the graph, or a save is already in flight. The
        reason is left in ``local_error``.
        """
        if self.submitter is None:
            raise RuntimeError("WorkflowEditor has no submitter to save through.")
        save_key = self._save_key()
        if self.saves.is_saving(save_key):
            logger.debug("save already in flight for %s", save_key)
            return None

        self.local_error = None
        draft = self.to_draft()
        try:
            normalize_workflow(draft, self.catalog)
        except GraphValidationError as exc:
            self.local_error = exc.message
            return None

        self.saves.begin(save_key)
        try:
            if self.workflow_id:
                saved = self.submitter.update_workflow(self.workflow_id, draft)
            else:
                saved = self.submitter.create_workflow(draft)
        except WorkflowGraphError as exc:
            self.local_error = exc.message
            return None
        finally:
            self.saves.end(save_key)

        self.workflow_id = saved.id
        self._adopt_node_ids(saved.node_ids)
        return saved.id

    def _adopt_node_ids(self, node_ids: dict[str, str]) -> None:
        # stored ids by node key; covers nodes created by this save
        self.nodes = [
            replace(node, id=node_ids.get(node.node_key.strip(), node.id))
            for node in self.nodes
        ]
