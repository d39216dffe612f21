"""SQLite storage for the model and tool catalog."""

import json
import sqlite3

from agentgraph.models.catalog import Catalog, CatalogModel, CatalogTool, parse_json_schema
from agentgraph_server.connection import connect


def _connect() -> sqlite3.Connection:
    return connect()


def init_db() -> None:
    with _connect() as conn:
        conn.execute(
            """
            create table if not exists models (
                id text primary key,
                provider text not null,
                name text not null,
                type text
            )
            """
        )
        conn.execute(
            """
            create table if not exists tools (
                id text primary key,
                name text not null,
                description text not null default '',
                input_schema text,
                output_schema text
            )
            """
        )
        conn.commit()


def _dump_schema(schema) -> str | None:
    if schema is None:
        return None
    if isinstance(schema, str):
        return schema
    return json.dumps(schema)


def upsert_model(model: CatalogModel) -> None:
    """insert or update a catalog model."""
    with _connect() as conn:
        conn.execute(
            """
            insert into models (id, provider, name, type)
            values (?, ?, ?, ?)
            on conflict(id) do update set
                provider = excluded.provider,
                name = excluded.name,
                type = excluded.type
            """,
            (model.id, model.provider, model.name, model.type),
        )
        conn.commit()


def upsert_tool(tool: CatalogTool) -> None:
    """insert or update a catalog tool."""
    with _connect() as conn:
        conn.execute(
            """
            insert into tools (id, name, description, input_schema, output_schema)
            values (?, ?, ?, ?, ?)
            on conflict(id) do update set
                name = excluded.name,
                description = excluded.description,
                input_schema = excluded.input_schema,
                output_schema = excluded.output_schema
            """,
            (
                tool.id,
                tool.name,
                tool.description,
                _dump_schema(tool.input_schema),
                _dump_schema(tool.output_schema),
            ),
        )
        conn.commit()


def _read_catalog(conn: sqlite3.Connection) -> Catalog:
    model_rows = conn.execute(
        "select id, provider, name, type from models order by provider, name"
    ).fetchall()
    tool_rows = conn.execute(
        "select id, name, description, input_schema, output_schema from tools order by name"
    ).fetchall()
    return Catalog(
        models=[
            CatalogModel(
                id=row["id"],
                provider=row["provider"],
                name=row["name"],
                type=row["type"],
            )
            for row in model_rows
        ],
        tools=[
            CatalogTool(
                id=row["id"],
                name=row["name"],
                description=row["description"],
                input_schema=parse_json_schema(row["input_schema"]),
                output_schema=parse_json_schema(row["output_schema"]),
            )
            for row in tool_rows
        ],
    )


def load_catalog(conn: sqlite3.Connection | None = None) -> Catalog:
    """Snapshot of the catalog, read on ``conn`` when inside a transaction."""
    if conn is not None:
        return _read_catalog(conn)
    with _connect() as own_conn:
        return _read_catalog(own_conn)
