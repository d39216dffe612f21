"""SDK for talking to the agent graph server."""

from agentgraph.sdk.client import WorkflowApiError, WorkflowClient

__all__ = [
    "WorkflowApiError",
    "WorkflowClient",
]
