"""Tests for the workflow editor state machine."""

import pytest

from agentgraph.editor.interaction import IDLE, DraggingEdge, DraggingNode, Panning
from agentgraph.editor.listeners import PointerEvent, PointerSurface
from agentgraph.editor.nodes import EditorNode, hydrate_node
from agentgraph.editor.saves import CREATING_KEY, InFlightSaves, WorkflowSubmitter
from agentgraph.editor.state import WorkflowEditor
from agentgraph.editor.viewport import MAX_SCALE, MIN_SCALE, Viewport
from agentgraph.models.catalog import Catalog
from agentgraph.models.stored_graph import SavedWorkflow, StoredEdge, StoredGraph, StoredNode
from agentgraph.models.workflow_graph import WorkflowEdge
from agentgraph.utils.identifiers import utc_timestamp
from agentgraph.validation.errors import GraphNotFoundError
from agentgraph.tests.graphs import MODEL_ID, OTHER_TOOL_ID, TOOL_ID


class RecordingSubmitter(WorkflowSubmitter):
    """Submitter that records calls instead of talking to a server."""

    def __init__(self, workflow_id: str = "wf-1", error: Exception | None = None):
        self.workflow_id = workflow_id
        self.error = error
        self.calls = []

    def create_workflow(self, draft):
        self.calls.append(("create", None, draft))
        if self.error:
            raise self.error
        return self._saved(self.workflow_id, draft)

    def update_workflow(self, workflow_id, draft):
        self.calls.append(("update", workflow_id, draft))
        if self.error:
            raise self.error
        return self._saved(workflow_id, draft)

    def _saved(self, workflow_id, draft):
        node_ids = {
            node.node_key: node.id or f"{workflow_id}-{node.node_key}"
            for node in draft.nodes
        }
        return SavedWorkflow(id=workflow_id, node_ids=node_ids)


class ReentrantSubmitter(RecordingSubmitter):
    """Submitter that tries to save again while the first save is running."""

    def __init__(self):
        super().__init__()
        self.editor = None
        self.nested_results = []

    def create_workflow(self, draft):
        self.nested_results.append(self.editor.save())
        return super().create_workflow(draft)


@pytest.fixture
def surface():
    return PointerSurface()


@pytest.fixture
def editor(catalog, surface):
    return WorkflowEditor(catalog, surface=surface)


def _press(x: float = 0, y: float = 0, **kwargs) -> PointerEvent:
    return PointerEvent(client_x=x, client_y=y, **kwargs)


def _start(editor: WorkflowEditor) -> EditorNode:
    return editor.get_node_by_key("start")


def _connect(editor: WorkflowEditor, source: str, target: str | None) -> None:
    editor.press_connect(source, _press())
    editor.hover_target(target)
    editor.surface.release()


def _stored_graph() -> StoredGraph:
    now = utc_timestamp()
    return StoredGraph(
        id="wf-stored",
        organization_id="org-1",
        name="Stored",
        description=None,
        entry_node="intake",
        nodes=[
            StoredNode(
                id="node-1",
                node_key="intake",
                node_type="worker",
                x=120,
                y=140,
                model_id=MODEL_ID,
                config={"system_message": "Read it.", "max_iterations": 2},
            )
        ],
        edges=[StoredEdge(id="edge-1", from_node="intake", to_node="END")],
        created_at=now,
        updated_at=now,
    )


class TestInitialState:
    """A new editor starts from a one-worker canvas."""

    def test_new_canvas_has_a_start_worker(self, editor, surface):
        node = _start(editor)

        assert [n.node_key for n in editor.nodes] == ["start"]
        assert editor.entry_node == "start"
        assert editor.selected_node is node
        assert (node.x, node.y) == (260, 200)
        assert node.model_id == MODEL_ID
        assert node.model_label == "openai / gpt-4.1-mini"
        assert node.config == {"system_message": "", "max_iterations": 3}
        assert editor.state is IDLE
        assert surface.listener_count() == 0

    def test_new_canvas_reports_the_missing_end_edge(self, editor):
        assert editor.validation_message == "Add at least one edge that points to END."

        editor.add_edge_to_end("start")

        assert editor.validation_message is None

    def test_loading_a_stored_graph_keeps_node_identity(self, catalog):
        editor = WorkflowEditor(catalog, workflow=_stored_graph())

        node = editor.get_node_by_key("intake")
        assert editor.workflow_id == "wf-stored"
        assert node.local_id == "node-1"
        assert node.id == "node-1"
        assert editor.edges == [WorkflowEdge(from_node="intake", to_node="END")]
        assert editor.validation_message is None
        assert editor.to_draft().nodes[0].id == "node-1"


class TestNodeMutations:
    """Adding, removing and editing nodes."""

    def test_add_node_places_it_at_the_view_center(self, editor):
        node = editor.add_node("Worker")

        assert node.node_key == "worker"
        assert node.node_type == "worker"
        assert (node.x, node.y) == (440, 280)
        assert editor.selected_node_id == node.local_id
        assert editor.entry_node == "start"

    def test_add_node_builds_unique_keys(self, editor):
        first = editor.add_node("worker")
        second = editor.add_node("worker")

        assert first.node_key == "worker"
        assert second.node_key == "worker_2"

    def test_add_node_becomes_entry_when_none(self, editor):
        editor.remove_node(_start(editor).local_id)
        assert editor.entry_node == ""

        node = editor.add_node("worker")

        assert editor.entry_node == node.node_key

    def test_added_tool_node_is_bound_to_the_first_tool(self, editor):
        node = editor.add_node("tool")

        assert node.model_id is None
        assert node.tool_ids == [TOOL_ID]
        assert node.tool_names == ["describe_image"]
        assert node.config == {"input_mapping": {}, "output_mapping": {}}

    def test_remove_node_drops_touching_edges_and_moves_entry(self, editor):
        helper = editor.add_node("worker")
        _connect(editor, "start", "worker")
        editor.add_edge_to_end("worker")

        editor.remove_node(_start(editor).local_id)

        assert [n.node_key for n in editor.nodes] == ["worker"]
        assert editor.edges == [WorkflowEdge(from_node="worker", to_node="END")]
        assert editor.entry_node == "worker"
        assert editor.get_node(helper.local_id) is not None

    def test_rename_cascades_to_edges_members_and_entry(self, editor):
        """Renaming a node referenced by an edge and a supervisor keeps the graph valid."""
        worker = editor.add_node("worker")
        supervisor = editor.add_node("supervisor")
        editor.toggle_supervisor_member(supervisor.local_id, "worker")
        _connect(editor, "start", "worker")
        editor.add_edge_to_end("worker")
        assert editor.validation_message is None

        editor.rename_node(worker.local_id, "captioner")

        assert editor.edges == [
            WorkflowEdge(from_node="start", to_node="captioner"),
            WorkflowEdge(from_node="captioner", to_node="END"),
        ]
        assert editor.get_node(supervisor.local_id).config["members"] == ["captioner"]
        assert editor.validation_message is None

        editor.rename_node(_start(editor).local_id, "intake")
        assert editor.entry_node == "intake"
        assert editor.validation_message is None

    def test_worker_changing_type_leaves_supervisor_members(self, editor):
        worker = editor.add_node("worker")
        supervisor = editor.add_node("supervisor")
        editor.toggle_supervisor_member(supervisor.local_id, "worker")

        editor.update_node(worker.local_id, node_type="tool")

        assert editor.get_node(supervisor.local_id).config["members"] == []
        changed = editor.get_node(worker.local_id)
        assert changed.model_id is None
        assert changed.tool_ids == [TOOL_ID]

    def test_unknown_fields_cannot_be_edited(self, editor):
        with pytest.raises(TypeError):
            editor.update_node(_start(editor).local_id, local_id="other")

    def test_toggle_supervisor_member(self, editor):
        supervisor = editor.add_node("supervisor")

        editor.toggle_supervisor_member(supervisor.local_id, "start")
        assert editor.get_node(supervisor.local_id).config["members"] == ["start"]

        editor.toggle_supervisor_member(supervisor.local_id, "start")
        assert editor.get_node(supervisor.local_id).config["members"] == []

    def test_toggle_worker_tool_updates_tool_names(self, editor):
        start = _start(editor)

        editor.toggle_worker_tool(start.local_id, OTHER_TOOL_ID)
        assert _start(editor).tool_ids == [OTHER_TOOL_ID]
        assert _start(editor).tool_names == ["embed_text"]

        editor.toggle_worker_tool(start.local_id, OTHER_TOOL_ID)
        assert _start(editor).tool_ids == []
        assert _start(editor).tool_names == []


class TestEdges:
    """Edge creation and removal."""

    def test_add_edge_to_end_is_idempotent(self, editor):
        editor.add_edge_to_end("start")
        editor.add_edge_to_end("start")

        assert editor.edges == [WorkflowEdge(from_node="start", to_node="END")]

    def test_remove_edge_by_key(self, editor):
        editor.add_edge_to_end("start")

        editor.remove_edge("start->END")

        assert editor.edges == []
        assert editor.validation_message == "Add at least one edge that points to END."


class TestGestures:
    """Pointer interaction states and listener scoping."""

    def test_node_drag_moves_by_delta_over_scale(self, editor, surface):
        start = _start(editor)

        editor.press_node(start.local_id, _press(100, 100))
        assert isinstance(editor.state, DraggingNode)
        assert surface.listener_count() == 2

        surface.move(130, 90)
        assert (_start(editor).x, _start(editor).y) == (290, 190)

        surface.release()
        assert editor.state is IDLE
        assert surface.listener_count() == 0

    def test_node_drag_accounts_for_zoom(self, editor, surface):
        editor.apply_zoom(2.0)
        start = _start(editor)

        editor.press_node(start.local_id, _press(0, 0))
        surface.move(40, -20)
        surface.release()

        assert (_start(editor).x, _start(editor).y) == (280, 190)

    def test_node_drag_clamps_at_zero(self, editor, surface):
        editor.press_node(_start(editor).local_id, _press(0, 0))
        surface.move(-1000, -1000)
        surface.release()

        assert (_start(editor).x, _start(editor).y) == (0, 0)

    def test_secondary_button_does_not_start_a_drag(self, editor, surface):
        editor.press_node(_start(editor).local_id, _press(button=2))
        editor.press_canvas(_press(button=2))

        assert editor.state is IDLE
        assert surface.listener_count() == 0

    def test_pan_moves_the_offset_by_delta(self, editor, surface):
        editor.press_canvas(_press(10, 10))
        assert isinstance(editor.state, Panning)

        surface.move(30, 5)
        assert (editor.viewport.offset_x, editor.viewport.offset_y) == (60, 35)

        surface.release()
        assert editor.state is IDLE
        assert surface.listener_count() == 0

    def test_press_on_a_canvas_child_does_not_pan(self, editor):
        editor.press_canvas(_press(on_background=False))
        assert editor.state is IDLE

    def test_presses_are_ignored_during_a_gesture(self, editor, surface):
        editor.press_node(_start(editor).local_id, _press())
        editor.press_canvas(_press())
        editor.press_connect("start", _press())

        assert isinstance(editor.state, DraggingNode)
        assert surface.listener_count() == 2

    def test_edge_draft_follows_the_cursor_in_world_space(self, editor, surface):
        editor.press_connect("start", _press())
        surface.move(140, 140)

        assert isinstance(editor.state, DraggingEdge)
        assert (editor.state.cursor.x, editor.state.cursor.y) == (100, 100)

    def test_releasing_over_end_commits_the_edge(self, editor, surface):
        _connect(editor, "start", "END")

        assert editor.edges == [WorkflowEdge(from_node="start", to_node="END")]
        assert editor.validation_message is None
        assert surface.listener_count() == 0

    @pytest.mark.parametrize("target", [None, "start", "ghost"])
    def test_invalid_targets_are_discarded(self, editor, surface, target):
        _connect(editor, "start", target)

        assert editor.edges == []
        assert editor.state is IDLE
        assert surface.listener_count() == 0

    def test_duplicate_edges_are_discarded(self, editor):
        _connect(editor, "start", "END")
        _connect(editor, "start", "END")

        assert len(editor.edges) == 1

    def test_hover_outside_an_edge_draft_is_ignored(self, editor):
        editor.hover_target("start")
        assert editor.state is IDLE

    def test_close_detaches_listeners(self, editor, surface):
        editor.press_canvas(_press())
        editor.close()

        assert editor.state is IDLE
        assert surface.listener_count() == 0


class TestViewport:
    """Zoom and reset controls."""

    def test_wheel_zoom_keeps_the_point_under_the_cursor(self, editor):
        before = editor.viewport.to_world(200, 150, editor.canvas_rect)

        editor.wheel(_press(200, 150), delta_y=-1)

        after = editor.viewport.to_world(200, 150, editor.canvas_rect)
        assert editor.viewport.scale == pytest.approx(1.08)
        assert after.x == pytest.approx(before.x)
        assert after.y == pytest.approx(before.y)

    def test_wheel_down_zooms_out(self, editor):
        editor.wheel(_press(200, 150), delta_y=3)
        assert editor.viewport.scale == pytest.approx(0.92)

    def test_zoom_is_clamped(self, editor):
        for _ in range(30):
            editor.zoom_in()
        assert editor.viewport.scale == MAX_SCALE

        for _ in range(60):
            editor.zoom_out()
        assert editor.viewport.scale == MIN_SCALE

    def test_reset_view(self, editor):
        editor.zoom_in()
        editor.press_canvas(_press())
        editor.surface.move(50, 50)
        editor.surface.release()

        editor.reset_view()

        assert editor.viewport == Viewport(scale=1.0, offset_x=40.0, offset_y=40.0)


class TestCatalogChanges:
    """Explicit re-validation when the catalog snapshot changes."""

    def test_removed_model_is_reported(self, editor, catalog):
        editor.add_edge_to_end("start")

        editor.catalog_changed(Catalog())
        assert editor.validation_message == (
            f'Node "start" references an unknown model "{MODEL_ID}".'
        )
        assert _start(editor).model_label is None

        editor.catalog_changed(catalog)
        assert editor.validation_message is None
        assert _start(editor).model_label == "openai / gpt-4.1-mini"


class TestSave:
    """Saving through a submitter."""

    def test_invalid_graph_is_not_submitted(self, catalog):
        submitter = RecordingSubmitter()
        editor = WorkflowEditor(catalog, submitter=submitter)
        editor.add_edge_to_end("start")

        assert editor.save() is None
        assert editor.local_error == "Workflow name must be at least 2 characters."
        assert submitter.calls == []

    def test_first_save_creates_then_updates(self, catalog):
        submitter = RecordingSubmitter(workflow_id="wf-9")
        editor = WorkflowEditor(catalog, submitter=submitter)
        editor.set_name("Triage")
        editor.add_edge_to_end("start")

        assert editor.save() == "wf-9"
        assert editor.workflow_id == "wf-9"
        assert editor.local_error is None

        assert editor.save() == "wf-9"
        assert [(kind, workflow_id) for kind, workflow_id, _ in submitter.calls] == [
            ("create", None),
            ("update", "wf-9"),
        ]
        draft = submitter.calls[0][2]
        assert draft.name == "Triage"
        assert draft.nodes[0].node_key == "start"

    def test_created_nodes_keep_their_stored_ids(self, catalog):
        submitter = RecordingSubmitter(workflow_id="wf-9")
        editor = WorkflowEditor(catalog, submitter=submitter)
        editor.set_name("Triage")
        editor.add_edge_to_end("start")
        editor.save()

        helper = editor.add_node("worker")
        editor.add_edge_to_end(helper.node_key)
        editor.set_description("Second pass")
        editor.save()
        editor.save()

        created, updated, again = (draft for _, _, draft in submitter.calls)
        assert [node.id for node in created.nodes] == [None]
        assert [node.id for node in updated.nodes] == ["wf-9-start", None]
        assert [node.id for node in again.nodes] == ["wf-9-start", "wf-9-worker"]
        assert editor.get_node(helper.local_id).id == "wf-9-worker"

    def test_save_is_not_reentrant(self, catalog):
        submitter = ReentrantSubmitter()
        editor = WorkflowEditor(catalog, submitter=submitter)
        submitter.editor = editor
        editor.set_name("Triage")
        editor.add_edge_to_end("start")

        assert editor.save() == "wf-1"
        assert submitter.nested_results == [None]
        assert len(submitter.calls) == 1
        assert not editor.is_saving

    def test_save_in_flight_elsewhere_blocks(self, catalog):
        saves = InFlightSaves()
        submitter = RecordingSubmitter()
        editor = WorkflowEditor(catalog, submitter=submitter, saves=saves)
        editor.set_name("Triage")
        editor.add_edge_to_end("start")
        saves.begin(CREATING_KEY)

        assert editor.is_saving
        assert editor.save() is None
        assert submitter.calls == []

    def test_submitter_errors_are_shown(self, catalog):
        submitter = RecordingSubmitter(
            error=GraphNotFoundError("Workflow not found in your organization.")
        )
        editor = WorkflowEditor(catalog, workflow=_stored_graph(), submitter=submitter)

        assert editor.save() is None
        assert editor.local_error == "Workflow not found in your organization."
        assert not editor.is_saving
        assert editor.workflow_id == "wf-stored"

    def test_save_without_submitter_fails_loudly(self, editor):
        with pytest.raises(RuntimeError):
            editor.save()


class TestHydration:
    """Type defaults filled in from the catalog."""

    def test_supervisor_drops_tools_and_duplicate_members(self, catalog):
        node = hydrate_node(
            EditorNode(
                local_id="n1",
                node_key="lead",
                node_type="supervisor",
                x=0,
                y=0,
                tool_ids=[TOOL_ID],
                config={"members": ["a", "a", " b ", 3]},
            ),
            catalog,
        )
        assert node.tool_ids == []
        assert node.config["members"] == ["a", "b"]
        assert node.model_id == MODEL_ID

    def test_tool_keeps_only_the_first_known_tool(self, catalog):
        node = hydrate_node(
            EditorNode(
                local_id="n1",
                node_key="fetch",
                node_type="tool",
                x=0,
                y=0,
                model_id=MODEL_ID,
                tool_ids=["not-in-catalog", OTHER_TOOL_ID, TOOL_ID],
            ),
            catalog,
        )
        assert node.model_id is None
        assert node.tool_ids == [OTHER_TOOL_ID]
        assert node.tool_names == ["embed_text"]

    def test_worker_iterations_default_when_invalid(self, catalog):
        node = hydrate_node(
            EditorNode(
                local_id="n1",
                node_key="writer",
                node_type="worker",
                x=0,
                y=0,
                config={"max_iterations": 0, "system_message": None},
            ),
            catalog,
        )
        assert node.config == {"max_iterations": 3, "system_message": ""}
