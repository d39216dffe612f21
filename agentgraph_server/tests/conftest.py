import pytest
from fastapi.testclient import TestClient

from agentgraph.tests.graphs import build_catalog
from agentgraph_server import connection
from agentgraph_server.catalog_db import upsert_model, upsert_tool
from agentgraph_server.db import init_all


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    """Fresh sqlite file with every table created and the test catalog loaded."""
    path = tmp_path / "agentgraph.db"
    monkeypatch.setattr(connection, "GRAPH_DB_PATH", path)
    init_all()
    catalog = build_catalog()
    for model in catalog.models:
        upsert_model(model)
    for tool in catalog.tools:
        upsert_tool(tool)
    return path


@pytest.fixture
def catalog(db_path):
    return build_catalog()


@pytest.fixture
def client(db_path):
    from agentgraph_server.app import app

    with TestClient(app) as test_client:
        yield test_client
