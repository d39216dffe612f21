"""Catalog of models and tools that workflow nodes may reference.

The catalog is read-only from the point of view of graphs: the validator
checks references against it and the editor builds its affordances from it.
It is always passed in explicitly, never held as module state.
"""

import json
from typing import Any

from pydantic import BaseModel, Field, computed_field
from pydantic.alias_generators import to_camel


def parse_json_schema(schema: Any) -> Any:
    """Decode a schema stored as a JSON string; anything else passes through."""
    if isinstance(schema, str):
        try:
            return json.loads(schema)
        except ValueError:
            return schema
    return schema


def schema_field_names(schema: Any) -> list[str]:
    """Return the property names of an object JSON schema."""
    normalized = parse_json_schema(schema)
    if not isinstance(normalized, dict):
        return []
    properties = normalized.get("properties")
    if not isinstance(properties, dict):
        return []
    return list(properties.keys())


class CatalogModel(BaseModel):
    """a model a worker or supervisor node can run on."""

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }

    id: str
    provider: str
    name: str
    type: str | None = None

    @computed_field
    @property
    def label(self) -> str:
        return f"{self.provider} / {self.name}"


class CatalogTool(BaseModel):
    """a tool a tool node (or a worker, as a capability) can be bound to."""

    model_config = {"alias_generator": to_camel, "populate_by_name": True}

    id: str
    name: str
    description: str = ""
    input_schema: Any = None
    output_schema: Any = None

    @computed_field
    @property
    def input_fields(self) -> list[str]:
        return schema_field_names(self.input_schema)

    @computed_field
    @property
    def output_fields(self) -> list[str]:
        return schema_field_names(self.output_schema)


class Catalog(BaseModel):
    """A snapshot of the model and tool registries."""

    models: list[CatalogModel] = Field(default_factory=list)
    tools: list[CatalogTool] = Field(default_factory=list)

    def model_ids(self) -> set[str]:
        return {model.id for model in self.models}

    def tool_ids(self) -> set[str]:
        return {tool.id for tool in self.tools}

    def get_model(self, model_id: str | None) -> CatalogModel | None:
        if not model_id:
            return None
        for model in self.models:
            if model.id == model_id:
                return model
        return None

    def get_tool(self, tool_id: str) -> CatalogTool | None:
        for tool in self.tools:
            if tool.id == tool_id:
                return tool
        return None
