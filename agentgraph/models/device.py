"""Data model for devices that run an assigned workflow graph."""

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class Device(BaseModel):
    """a device registered in an organization's project."""

    model_config = {"alias_generator": to_camel, "populate_by_name": True}

    id: str
    organization_id: str
    project_id: str | None = None
    name: str
    slug: str
    agent_graph_id: str | None = None
    updated_at: str


class DeviceAssignmentRequest(BaseModel):
    """request body for pointing a device at a workflow graph."""

    model_config = {"alias_generator": to_camel, "populate_by_name": True}

    agent_graph_id: str


class DeviceAssignment(BaseModel):
    model_config = {"alias_generator": to_camel, "populate_by_name": True}

    id: str
    agent_graph_id: str
