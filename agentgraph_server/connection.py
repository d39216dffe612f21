"""SQLite connection settings shared by the storage modules."""

import os
import sqlite3
from pathlib import Path

DEFAULT_DB_PATH = Path(__file__).parent / "data" / "agentgraph.db"
GRAPH_DB_PATH = Path(os.getenv("GRAPH_DB_PATH", str(DEFAULT_DB_PATH)))


def connect() -> sqlite3.Connection:
    GRAPH_DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(GRAPH_DB_PATH)
    conn.row_factory = sqlite3.Row
    # node tool links and edges are removed with their node or graph
    conn.execute("pragma foreign_keys = on")
    return conn
