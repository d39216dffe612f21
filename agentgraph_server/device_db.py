"""SQLite storage for devices and their workflow assignment."""

import logging
import sqlite3

from agentgraph.models.device import Device, DeviceAssignment
from agentgraph.utils.identifiers import utc_timestamp
from agentgraph.validation.errors import GraphNotFoundError
from agentgraph_server.connection import connect

logger = logging.getLogger(__name__)

DEVICE_NOT_FOUND = "Device not found in your organization."
WORKFLOW_NOT_FOUND = "Workflow not found in your organization."


def _connect() -> sqlite3.Connection:
    return connect()


def init_db() -> None:
    with _connect() as conn:
        conn.execute(
            """
            create table if not exists devices (
                id text primary key,
                organization_id text not null,
                project_id text,
                name text not null,
                slug text not null,
                agent_graph_id text references agent_graphs(id) on delete set null,
                updated_at text not null
            )
            """
        )
        conn.execute(
            "create index if not exists idx_devices_agent_graph_id on devices(agent_graph_id)"
        )
        conn.commit()


def upsert_device(device: Device) -> None:
    """insert or update a device."""
    with _connect() as conn:
        conn.execute(
            """
            insert into devices (
                id, organization_id, project_id, name, slug, agent_graph_id, updated_at
            )
            values (?, ?, ?, ?, ?, ?, ?)
            on conflict(id) do update set
                organization_id = excluded.organization_id,
                project_id = excluded.project_id,
                name = excluded.name,
                slug = excluded.slug,
                agent_graph_id = excluded.agent_graph_id,
                updated_at = excluded.updated_at
            """,
            (
                device.id,
                device.organization_id,
                device.project_id,
                device.name,
                device.slug,
                device.agent_graph_id,
                device.updated_at,
            ),
        )
        conn.commit()


def get_device(organization_id: str, device_id: str) -> Device | None:
    with _connect() as conn:
        row = conn.execute(
            "select * from devices where id = ? and organization_id = ?",
            (device_id, organization_id),
        ).fetchone()
    if not row:
        return None
    return Device(
        id=row["id"],
        organization_id=row["organization_id"],
        project_id=row["project_id"],
        name=row["name"],
        slug=row["slug"],
        agent_graph_id=row["agent_graph_id"],
        updated_at=row["updated_at"],
    )


def assign_workflow(
    organization_id: str,
    device_id: str,
    agent_graph_id: str,
) -> DeviceAssignment:
    """Point a device at a workflow graph; both must belong to the organization."""
    with _connect() as conn:
        device = conn.execute(
            "select id from devices where id = ? and organization_id = ?",
            (device_id, organization_id),
        ).fetchone()
        if not device:
            raise GraphNotFoundError(DEVICE_NOT_FOUND)
        workflow = conn.execute(
            "select id from agent_graphs where id = ? and organization_id = ?",
            (agent_graph_id, organization_id),
        ).fetchone()
        if not workflow:
            raise GraphNotFoundError(WORKFLOW_NOT_FOUND)
        conn.execute(
            "update devices set agent_graph_id = ?, updated_at = ? where id = ?",
            (agent_graph_id, utc_timestamp(), device_id),
        )
        conn.commit()

    logger.info("assigned workflow %s to device %s", agent_graph_id, device_id)
    return DeviceAssignment(id=device_id, agent_graph_id=agent_graph_id)
