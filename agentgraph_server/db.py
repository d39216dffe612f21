"""database initialization helpers."""

from agentgraph_server.catalog_db import init_db as init_catalog_db
from agentgraph_server.device_db import init_db as init_device_db
from agentgraph_server.graph_db import init_db as init_graph_db


def init_all() -> None:
    """initialize all sqlite tables."""
    init_catalog_db()
    init_graph_db()
    init_device_db()
