"""Save plumbing between the editor and whatever persists its drafts."""

from agentgraph.models.stored_graph import SavedWorkflow
from agentgraph.models.workflow_graph import WorkflowDraft

CREATING_KEY = "creating"


class WorkflowSubmitter:
    """Protocol for the create/update operations the editor saves through."""

    def create_workflow(self, draft: WorkflowDraft) -> SavedWorkflow:
        """Persist a new graph; return its id and the stored node ids by key."""
        raise NotImplementedError

    def update_workflow(self, workflow_id: str, draft: WorkflowDraft) -> SavedWorkflow:
        """Replace an existing graph; return its id and the stored node ids by key."""
        raise NotImplementedError


class InFlightSaves:
    """Tracks saves in progress, keyed by graph id (or ``"creating"``)."""

    def __init__(self) -> None:
        self._keys: set[str] = set()

    def is_saving(self, key: str) -> bool:
        return key in self._keys

    def begin(self, key: str) -> bool:
        """Mark ``key`` as saving; False if a save for it is already running."""
        if key in self._keys:
            return False
        self._keys.add(key)
        return True

    def end(self, key: str) -> None:
        self._keys.discard(key)
