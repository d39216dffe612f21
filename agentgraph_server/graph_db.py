"""SQLite storage for workflow graphs.

Graphs are written only through ``create_graph`` and ``replace_graph``. Each
runs as one transaction: the submitted draft is normalized against the
catalog as it exists inside that transaction, and either every row is
written or none is. Node rows keep their identity across replaces when the
client sends their id back; tool links and edges are always rewritten in
full.
"""

import json
import logging
import sqlite3
from collections import Counter
from typing import Any

from agentgraph.models.catalog import Catalog
from agentgraph.models.stored_graph import (
    NodeTypeCounts,
    StoredEdge,
    StoredGraph,
    StoredNode,
)
from agentgraph.models.workflow_graph import NODE_TYPES, NormalizedWorkflow, WorkflowEdge
from agentgraph.utils.identifiers import (
    generate_edge_id,
    generate_graph_id,
    generate_node_id,
    utc_timestamp,
)
from agentgraph.validation.errors import (
    ErrorCategory,
    GraphNotFoundError,
    GraphTransactionError,
    GraphValidationError,
)
from agentgraph.validation.normalization import (
    build_node_config,
    normalize_node_config,
    normalize_workflow,
    parse_canvas_position,
)
from agentgraph_server.catalog_db import load_catalog
from agentgraph_server.connection import connect

logger = logging.getLogger(__name__)

WORKFLOW_NOT_FOUND = "Workflow not found in your organization."
FOREIGN_NODE = "One of the nodes does not belong to this workflow."
DUPLICATE_NODE_ID = "Each existing node can only be submitted once."
SAVE_FAILED = "Could not save the workflow. No changes were made."


def _connect() -> sqlite3.Connection:
    return connect()


def init_db() -> None:
    with _connect() as conn:
        conn.execute(
            """
            create table if not exists agent_graphs (
                id text primary key,
                organization_id text not null,
                name text not null,
                description text,
                entry_node text not null,
                created_at text not null,
                updated_at text not null
            )
            """
        )
        conn.execute(
            """
            create table if not exists agent_graph_nodes (
                id text primary key,
                agent_graph_id text not null
                    references agent_graphs(id) on delete cascade,
                node_key text not null,
                node_type text not null,
                input_key text,
                output_key text,
                model_id text references models(id),
                config text not null,
                sort_order integer not null default 0
            )
            """
        )
        conn.execute(
            """
            create table if not exists agent_graph_node_tools (
                agent_graph_node_id text not null
                    references agent_graph_nodes(id) on delete cascade,
                tool_id text not null references tools(id),
                primary key (agent_graph_node_id, tool_id)
            )
            """
        )
        conn.execute(
            """
            create table if not exists agent_graph_edges (
                id text primary key,
                agent_graph_id text not null
                    references agent_graphs(id) on delete cascade,
                from_node text not null,
                to_node text not null,
                sort_order integer not null default 0
            )
            """
        )
        conn.execute(
            "create index if not exists idx_agent_graphs_org on agent_graphs(organization_id)"
        )
        conn.execute(
            "create index if not exists idx_agent_graph_nodes_graph on agent_graph_nodes(agent_graph_id)"
        )
        conn.execute(
            "create index if not exists idx_agent_graph_edges_graph on agent_graph_edges(agent_graph_id)"
        )
        conn.commit()


# --- writes ---


def _normalize(draft: Any, catalog: Catalog) -> NormalizedWorkflow:
    try:
        return normalize_workflow(draft, catalog)
    except GraphValidationError as exc:
        logger.warning("rejected workflow graph: %s", exc.message)
        raise


def _insert_nodes(
    conn: sqlite3.Connection,
    graph_id: str,
    indexed_nodes: list[tuple[int, Any]],
) -> None:
    conn.executemany(
        """
        insert into agent_graph_nodes (
            id, agent_graph_id, node_key, node_type, input_key, output_key,
            model_id, config, sort_order
        )
        values (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        [
            (
                generate_node_id(),
                graph_id,
                node.node_key,
                node.node_type,
                node.input_key,
                node.output_key,
                node.model_id,
                json.dumps(build_node_config(node)),
                index,
            )
            for index, node in indexed_nodes
        ],
    )


def _update_nodes(
    conn: sqlite3.Connection,
    graph_id: str,
    indexed_nodes: list[tuple[int, Any]],
) -> None:
    conn.executemany(
        """
        update agent_graph_nodes set
            node_key = ?,
            node_type = ?,
            input_key = ?,
            output_key = ?,
            model_id = ?,
            config = ?,
            sort_order = ?
        where id = ? and agent_graph_id = ?
        """,
        [
            (
                node.node_key,
                node.node_type,
                node.input_key,
                node.output_key,
                node.model_id,
                json.dumps(build_node_config(node)),
                index,
                node.id,
                graph_id,
            )
            for index, node in indexed_nodes
        ],
    )


def _node_ids_by_key(conn: sqlite3.Connection, graph_id: str) -> dict[str, str]:
    rows = conn.execute(
        "select id, node_key from agent_graph_nodes where agent_graph_id = ?",
        (graph_id,),
    ).fetchall()
    return {row["node_key"]: row["id"] for row in rows}


def _insert_tool_links(
    conn: sqlite3.Connection,
    nodes: list,
    node_ids: dict[str, str],
) -> None:
    conn.executemany(
        "insert into agent_graph_node_tools (agent_graph_node_id, tool_id) values (?, ?)",
        [
            (node_ids[node.node_key], tool_id)
            for node in nodes
            if node.node_key in node_ids
            for tool_id in node.tool_ids
        ],
    )


def _insert_edges(
    conn: sqlite3.Connection,
    graph_id: str,
    edges: list[WorkflowEdge],
) -> None:
    conn.executemany(
        """
        insert into agent_graph_edges (id, agent_graph_id, from_node, to_node, sort_order)
        values (?, ?, ?, ?, ?)
        """,
        [
            (generate_edge_id(), graph_id, edge.from_node, edge.to_node, index)
            for index, edge in enumerate(edges)
        ],
    )


def create_graph(organization_id: str, draft: Any) -> str:
    """Validate ``draft`` and persist it as a new graph. Returns the graph id."""
    graph_id = generate_graph_id()
    now = utc_timestamp()
    conn = _connect()
    try:
        with conn:
            conn.execute("begin immediate")
            workflow = _normalize(draft, load_catalog(conn))
            conn.execute(
                """
                insert into agent_graphs (
                    id, organization_id, name, description, entry_node,
                    created_at, updated_at
                )
                values (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    graph_id,
                    organization_id,
                    workflow.name,
                    workflow.description,
                    workflow.entry_node,
                    now,
                    now,
                ),
            )
            _insert_nodes(conn, graph_id, list(enumerate(workflow.nodes)))
            _insert_tool_links(conn, workflow.nodes, _node_ids_by_key(conn, graph_id))
            _insert_edges(conn, graph_id, workflow.edges)
    except sqlite3.Error as exc:
        logger.error("failed to create workflow for %s: %s", organization_id, exc)
        raise GraphTransactionError(SAVE_FAILED) from exc
    finally:
        conn.close()

    logger.info(
        "created workflow %s (%d nodes, %d edges)",
        graph_id,
        len(workflow.nodes),
        len(workflow.edges),
    )
    return graph_id


def replace_graph(organization_id: str, graph_id: str, draft: Any) -> str:
    """Replace a stored graph with ``draft``.

    Submitted nodes carrying an id update that row in place; nodes without
    one are inserted; stored nodes that were not submitted are deleted along
    with their tool links. Edges and tool links are rewritten in full.
    """
    now = utc_timestamp()
    conn = _connect()
    try:
        with conn:
            conn.execute("begin immediate")
            owned = conn.execute(
                "select id from agent_graphs where id = ? and organization_id = ?",
                (graph_id, organization_id),
            ).fetchone()
            if owned is None:
                raise GraphNotFoundError(WORKFLOW_NOT_FOUND)

            workflow = _normalize(draft, load_catalog(conn))

            existing_ids = {
                row["id"]
                for row in conn.execute(
                    "select id from agent_graph_nodes where agent_graph_id = ?",
                    (graph_id,),
                )
            }
            submitted_ids = [node.id for node in workflow.nodes if node.id]
            if any(node_id not in existing_ids for node_id in submitted_ids):
                logger.warning("rejected foreign node id for workflow %s", graph_id)
                raise GraphValidationError(FOREIGN_NODE, ErrorCategory.reference)
            if len(set(submitted_ids)) != len(submitted_ids):
                raise GraphValidationError(DUPLICATE_NODE_ID, ErrorCategory.structural)

            conn.executemany(
                "delete from agent_graph_nodes where id = ?",
                [(node_id,) for node_id in existing_ids - set(submitted_ids)],
            )
            indexed = list(enumerate(workflow.nodes))
            _update_nodes(conn, graph_id, [(i, node) for i, node in indexed if node.id])
            _insert_nodes(conn, graph_id, [(i, node) for i, node in indexed if not node.id])

            conn.execute(
                """
                delete from agent_graph_node_tools where agent_graph_node_id in (
                    select id from agent_graph_nodes where agent_graph_id = ?
                )
                """,
                (graph_id,),
            )
            _insert_tool_links(conn, workflow.nodes, _node_ids_by_key(conn, graph_id))

            conn.execute("delete from agent_graph_edges where agent_graph_id = ?", (graph_id,))
            _insert_edges(conn, graph_id, workflow.edges)

            conn.execute(
                """
                update agent_graphs set
                    name = ?,
                    description = ?,
                    entry_node = ?,
                    updated_at = ?
                where id = ? and organization_id = ?
                """,
                (
                    workflow.name,
                    workflow.description,
                    workflow.entry_node,
                    now,
                    graph_id,
                    organization_id,
                ),
            )
    except sqlite3.Error as exc:
        logger.error("failed to replace workflow %s: %s", graph_id, exc)
        raise GraphTransactionError(SAVE_FAILED) from exc
    finally:
        conn.close()

    logger.info(
        "replaced workflow %s (%d nodes, %d edges)",
        graph_id,
        len(workflow.nodes),
        len(workflow.edges),
    )
    return graph_id


# --- reads ---


def _load_graph(conn: sqlite3.Connection, row: sqlite3.Row, catalog: Catalog) -> StoredGraph:
    graph_id = row["id"]
    node_rows = conn.execute(
        """
        select id, node_key, node_type, input_key, output_key, model_id, config
        from agent_graph_nodes
        where agent_graph_id = ?
        order by sort_order, rowid
        """,
        (graph_id,),
    ).fetchall()
    link_rows = conn.execute(
        """
        select links.agent_graph_node_id, links.tool_id, tools.name
        from agent_graph_node_tools as links
        join agent_graph_nodes as nodes on nodes.id = links.agent_graph_node_id
        join tools on tools.id = links.tool_id
        where nodes.agent_graph_id = ?
        order by links.rowid
        """,
        (graph_id,),
    ).fetchall()
    edge_rows = conn.execute(
        """
        select id, from_node, to_node from agent_graph_edges
        where agent_graph_id = ?
        order by sort_order, rowid
        """,
        (graph_id,),
    ).fetchall()
    device_count = conn.execute(
        "select count(*) as total from devices where agent_graph_id = ?",
        (graph_id,),
    ).fetchone()["total"]

    tools_by_node: dict[str, list[sqlite3.Row]] = {}
    for link in link_rows:
        tools_by_node.setdefault(link["agent_graph_node_id"], []).append(link)

    nodes = []
    for index, node_row in enumerate(node_rows):
        stored_config = json.loads(node_row["config"])
        x, y = parse_canvas_position(stored_config, index)
        links = tools_by_node.get(node_row["id"], [])
        model = catalog.get_model(node_row["model_id"])
        nodes.append(StoredNode(
            id=node_row["id"],
            node_key=node_row["node_key"],
            node_type=node_row["node_type"],
            x=x,
            y=y,
            input_key=node_row["input_key"],
            output_key=node_row["output_key"],
            model_id=node_row["model_id"],
            model_label=model.label if model else None,
            tool_ids=[link["tool_id"] for link in links],
            tool_names=[link["name"] for link in links],
            config=normalize_node_config(stored_config),
        ))

    type_counts = Counter(
        node.node_type if node.node_type in NODE_TYPES else "other" for node in nodes
    )
    return StoredGraph(
        id=graph_id,
        organization_id=row["organization_id"],
        name=row["name"],
        description=row["description"],
        entry_node=row["entry_node"],
        nodes=nodes,
        edges=[
            StoredEdge(id=edge["id"], from_node=edge["from_node"], to_node=edge["to_node"])
            for edge in edge_rows
        ],
        node_type_counts=NodeTypeCounts(**type_counts),
        attached_device_count=device_count,
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def get_graph(organization_id: str, graph_id: str) -> StoredGraph | None:
    with _connect() as conn:
        row = conn.execute(
            "select * from agent_graphs where id = ? and organization_id = ?",
            (graph_id, organization_id),
        ).fetchone()
        if not row:
            return None
        return _load_graph(conn, row, load_catalog(conn))


def get_node_ids(graph_id: str) -> dict[str, str]:
    """map each node key of a stored graph to its node id."""
    with _connect() as conn:
        return _node_ids_by_key(conn, graph_id)


def list_graphs(organization_id: str) -> list[StoredGraph]:
    """list an organization's graphs, most recently updated first."""
    with _connect() as conn:
        rows = conn.execute(
            """
            select * from agent_graphs
            where organization_id = ?
            order by updated_at desc
            """,
            (organization_id,),
        ).fetchall()
        catalog = load_catalog(conn)
        return [_load_graph(conn, row, catalog) for row in rows]
