"""Errors raised while validating and persisting workflow graphs.

Every error carries exactly one human-readable message that callers show
verbatim. ``category`` tells whether the user can fix it by editing
(shape, reference, structural) or has to retry the save (transaction).
"""

from enum import Enum


class ErrorCategory(str, Enum):
    shape = "shape"
    reference = "reference"
    structural = "structural"
    transaction = "transaction"


class WorkflowGraphError(Exception):
    """Base class for workflow graph failures."""

    category: ErrorCategory = ErrorCategory.structural

    def __init__(self, message: str, category: ErrorCategory | None = None) -> None:
        super().__init__(message)
        self.message = message
        if category is not None:
            self.category = category

    @property
    def recoverable(self) -> bool:
        """True when editing the graph can fix the problem."""
        return self.category != ErrorCategory.transaction


class GraphValidationError(WorkflowGraphError):
    """A candidate graph violated an invariant."""


class GraphNotFoundError(WorkflowGraphError):
    """The graph (or device) does not exist in the caller's organization."""

    category = ErrorCategory.reference


class GraphTransactionError(WorkflowGraphError):
    """The store could not complete the atomic mutation; nothing was committed."""

    category = ErrorCategory.transaction
