import pytest

from agentgraph.tests.graphs import build_catalog


@pytest.fixture
def catalog():
    return build_catalog()
