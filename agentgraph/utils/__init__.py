"""Utility functions for agent graphs."""

from agentgraph.utils.identifiers import (
    generate_edge_id,
    generate_graph_id,
    generate_local_id,
    generate_node_id,
    utc_timestamp,
)

__all__ = [
    "generate_edge_id",
    "generate_graph_id",
    "generate_local_id",
    "generate_node_id",
    "utc_timestamp",
]
