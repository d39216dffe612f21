"""ID generation and timestamp utilities."""

import uuid
from datetime import datetime, timezone


def generate_graph_id() -> str:
    """Generate a unique workflow graph ID (UUID4)."""
    return str(uuid.uuid4())


def generate_node_id() -> str:
    """Generate a unique persisted node ID (UUID4)."""
    return str(uuid.uuid4())


def generate_edge_id() -> str:
    """Generate a unique persisted edge ID (UUID4)."""
    return str(uuid.uuid4())


def generate_local_id() -> str:
    """Generate an editor-local node handle (UUID4)."""
    return str(uuid.uuid4())


def utc_timestamp() -> str:
    """Generate an ISO8601 UTC timestamp."""
    return datetime.now(timezone.utc).isoformat()
