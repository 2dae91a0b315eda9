"""
Tests for ssmigrate.document module.
"""

import pytest
import yaml

from ssmigrate.document import (
    DEFAULT_SCHEMA_TEMPLATE,
    SchemaDocument,
    load_schema,
    parse_schema,
    write_default_schema,
)
from ssmigrate.exceptions import SchemaError
from ssmigrate.schema.models import FieldType


URL = "https://docs.google.com/spreadsheets/d/abc123/edit"


def document_with(resource):
    resource.setdefault("name", "T")
    resource.setdefault("path", URL)
    resource.setdefault("fields", [{"name": "id", "type": "integer"}])
    return parse_schema(yaml.safe_dump({"resources": [resource]}))


class TestParseSchema:
    """Test parsing schema documents."""

    def test_parse_full_resource(self):
        document = parse_schema(f"""
resources:
  - name: Users
    path: {URL}
    x-header-row: 3
    x-header-column: 2
    fields:
      - name: id
        type: integer
        x-protect: true
      - name: created_at
        type: datetime
        format: date
      - name: secret
        type: string
        x-hidden: true
""")

        resource = document.resources[0]
        assert resource.store_id == "abc123"
        assert resource.header_row == 3
        assert resource.column_offset == 1
        assert resource.field_names == ["id", "created_at", "secret"]
        assert resource.fields[0].protect is True
        assert resource.fields[1].type == FieldType.DATETIME
        assert resource.fields[1].format == "date"
        assert resource.fields[2].hidden is True

    def test_field_specs_are_positioned(self):
        document = document_with({
            "fields": [{"name": "a", "type": "string"}, {"name": "b", "type": "number"}],
        })

        specs = document.resources[0].field_specs()

        assert [(s.name, s.type, s.position) for s in specs] == [
            ("a", FieldType.STRING, 0),
            ("b", FieldType.NUMBER, 1),
        ]

    def test_datetime_without_format_means_default(self):
        document = document_with({
            "fields": [
                {"name": "at", "type": "datetime"},
                {"name": "day", "type": "datetime", "format": "date"},
                {"name": "note", "type": "string"},
            ],
        })

        specs = document.resources[0].field_specs()

        assert [s.format for s in specs] == ["default", "date", ""]

    def test_defaults(self):
        resource = document_with({}).resources[0]

        assert resource.header_row == 1
        assert resource.header_column == 1
        assert resource.fields[0].format == ""
        assert resource.fields[0].hidden is False

    def test_invalid_yaml(self):
        with pytest.raises(SchemaError, match="Invalid YAML"):
            parse_schema("resources: [unclosed")

    def test_not_a_mapping(self):
        with pytest.raises(SchemaError):
            parse_schema("- just\n- a list\n")

    def test_unknown_type(self):
        with pytest.raises(SchemaError, match="Invalid schema document"):
            document_with({"fields": [{"name": "a", "type": "uuid"}]})

    def test_get_resource(self):
        document = document_with({"name": "Users"})

        assert document.get_resource("Users") is document.resources[0]
        assert document.get_resource("Nope") is None


class TestValidateDocument:
    """Test document validation rules."""

    def test_valid(self):
        document_with({}).validate_document()

    def test_no_resources(self):
        with pytest.raises(SchemaError, match="at least one resource"):
            SchemaDocument().validate_document()

    @pytest.mark.parametrize(
        "resource,message",
        [
            ({"name": ""}, "resource name is required"),
            ({"path": ""}, "resource path is required"),
            ({"path": "https://example.com/sheet"}, "invalid path"),
            ({"fields": []}, "at least one field"),
            ({"fields": [{"type": "string"}]}, "field name is required"),
            ({"fields": [{"name": "a"}]}, "field type is required"),
            ({"fields": [{"name": "a", "type": ""}]}, "field type is required"),
            (
                {"fields": [{"name": "a", "type": "string"}, {"name": "a", "type": "integer"}]},
                "duplicate field name 'a'",
            ),
            (
                {"fields": [{"name": "a", "type": "datetime", "format": "week"}]},
                "invalid datetime format 'week'",
            ),
            ({"x-header-row": 0}, "must be >= 1"),
            ({"x-header-column": 0}, "must be >= 1"),
        ],
    )
    def test_invalid(self, resource, message):
        document = document_with(resource)

        with pytest.raises(SchemaError, match=message):
            document.validate_document()

    def test_duplicate_resource_names(self):
        document = parse_schema(yaml.safe_dump({
            "resources": [
                {"name": "T", "path": URL, "fields": [{"name": "a", "type": "string"}]},
                {"name": "T", "path": URL, "fields": [{"name": "b", "type": "string"}]},
            ]
        }))

        with pytest.raises(SchemaError, match="duplicate resource name 'T'"):
            document.validate_document()

    @pytest.mark.parametrize("fmt", ["", "default", "date", "time"])
    def test_datetime_formats(self, fmt):
        document_with({
            "fields": [{"name": "a", "type": "datetime", "format": fmt}],
        }).validate_document()


class TestSchemaFiles:
    """Test loading and writing schema files."""

    def test_load_schema(self, schema_file):
        document = load_schema(schema_file)

        assert document.resources[0].name == "Users"

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(SchemaError, match="Schema file not found"):
            load_schema(tmp_path / "missing.yaml")

    def test_load_validates(self, tmp_path):
        path = tmp_path / "schema.yaml"
        path.write_text("resources: []\n", encoding="utf-8")

        with pytest.raises(SchemaError):
            load_schema(path)
        assert load_schema(path, validate=False).resources == []

    def test_write_default_schema(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "schema.yaml"

        written = write_default_schema(path)

        assert written == path
        assert path.read_text(encoding="utf-8") == DEFAULT_SCHEMA_TEMPLATE

    def test_default_template_is_valid(self):
        document = parse_schema(DEFAULT_SCHEMA_TEMPLATE)
        document.validate_document()

        assert document.resources[0].field_names == ["id", "name", "created_at"]
