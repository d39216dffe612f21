"""Tests for catalog models and JSON schema field extraction."""

from agentgraph.models.catalog import Catalog, CatalogModel, schema_field_names
from agentgraph.tests.graphs import MODEL_ID, OTHER_TOOL_ID, TOOL_ID


class TestSchemaFields:
    """Field names come from the schema's ``properties``."""

    def test_object_schema(self):
        schema = {"type": "object", "properties": {"a": {}, "b": {}}}
        assert schema_field_names(schema) == ["a", "b"]

    def test_serialized_schema_is_parsed(self):
        assert schema_field_names('{"properties": {"caption": {}}}') == ["caption"]

    def test_non_object_schemas_have_no_fields(self):
        assert schema_field_names(None) == []
        assert schema_field_names("not json") == []
        assert schema_field_names({"properties": ["a"]}) == []
        assert schema_field_names([1, 2]) == []


class TestCatalog:
    def test_model_label(self):
        model = CatalogModel(id=MODEL_ID, provider="openai", name="gpt-4.1-mini")
        assert model.label == "openai / gpt-4.1-mini"

    def test_tool_fields(self, catalog):
        tool = catalog.get_tool(TOOL_ID)
        assert tool.input_fields == ["image_url"]
        assert tool.output_fields == ["caption"]
        assert catalog.get_tool(OTHER_TOOL_ID).input_fields == []

    def test_lookups(self, catalog):
        assert catalog.model_ids() == {model.id for model in catalog.models}
        assert catalog.get_model(None) is None
        assert catalog.get_model(MODEL_ID).provider == "openai"
        assert catalog.get_tool("missing") is None

    def test_json_round_trip(self, catalog):
        """The catalog survives the trip through the HTTP layer."""
        restored = Catalog.model_validate_json(catalog.model_dump_json(by_alias=True))

        assert restored.model_ids() == catalog.model_ids()
        assert restored.get_tool(TOOL_ID).input_fields == ["image_url"]
