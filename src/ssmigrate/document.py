"""
Schema document models and loading.

The schema document is a YAML file listing resources (sheets) and the
fields each one should have, in column order.
"""

from pathlib import Path
from typing import List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import ConfigurationError, SchemaError
from .schema.models import FieldSpec, FieldType
from .store.sheets import extract_spreadsheet_id


DATETIME_FORMATS = ("", "default", "date", "time")

DEFAULT_SCHEMA_TEMPLATE = """resources:
  - name: example_table # name is sheet name
    # path to your Google Spreadsheets URL
    path: https://docs.google.com/spreadsheets/d/1_XXXXXXXXXXXXXXXX-xXXXXXXXXXXXX
    # optional: row holding the header labels (default is 1)
    # x-header-row: 1
    # optional: first column of the table (default is 1)
    # x-header-column: 1
    fields:
      - name: id
        type: integer
        # optional: set to true to protect this field from being overwritten
        # x-protect: true
      - name: name
        type: string
      - name: created_at
        type: datetime
        format: default
"""


class FieldDefinition(BaseModel):
    """A declared column."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field("", description="Header label")
    type: Optional[FieldType] = Field(None, description="Semantic type")
    format: str = Field("", description="Format hint (datetime: default, date, time)")
    protect: bool = Field(False, alias="x-protect", description="Reserved")
    hidden: bool = Field(False, alias="x-hidden", description="Hide the column")

    @field_validator("type", mode="before")
    @classmethod
    def blank_type_is_missing(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("format", mode="before")
    @classmethod
    def null_format_is_empty(cls, v):
        return "" if v is None else v


class ResourceDefinition(BaseModel):
    """A declared sheet."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field("", description="Sheet title")
    path: str = Field("", description="Spreadsheet URL")
    header_row: int = Field(1, alias="x-header-row", description="Header row (1-based)")
    header_column: int = Field(
        1, alias="x-header-column", description="First column of the table (1-based)"
    )
    fields: List[FieldDefinition] = Field(default_factory=list)

    @property
    def store_id(self) -> str:
        """Spreadsheet ID parsed from ``path``."""
        return extract_spreadsheet_id(self.path)

    @property
    def column_offset(self) -> int:
        """Number of sheet columns left of the table."""
        return self.header_column - 1

    @property
    def field_names(self) -> List[str]:
        return [f.name for f in self.fields]

    def field_specs(self) -> List[FieldSpec]:
        """
        Declared fields as FieldSpecs, positioned by document order.

        A datetime field without a format means ``default``, which is what
        inspection reports for a plain datetime column.
        """
        return [
            FieldSpec(
                name=f.name,
                type=f.type,
                format=f.format or ("default" if f.type == FieldType.DATETIME else ""),
                hidden=f.hidden,
                protect=f.protect,
                position=i,
            )
            for i, f in enumerate(self.fields)
        ]


class SchemaDocument(BaseModel):
    """Top-level schema document."""

    resources: List[ResourceDefinition] = Field(default_factory=list)

    def get_resource(self, name: str) -> Optional[ResourceDefinition]:
        for resource in self.resources:
            if resource.name == name:
                return resource
        return None

    def validate_document(self) -> None:
        """
        Check the document for consistency.

        Raises:
            SchemaError: On the first problem found
        """
        if not self.resources:
            raise SchemaError("at least one resource is required")

        seen_resources = set()
        for resource in self.resources:
            if not resource.name:
                raise SchemaError("resource name is required")
            if resource.name in seen_resources:
                raise SchemaError(f"duplicate resource name '{resource.name}'")
            seen_resources.add(resource.name)

            if not resource.path:
                raise SchemaError(f"resource path is required for '{resource.name}'")
            try:
                resource.store_id
            except ConfigurationError as e:
                raise SchemaError(
                    f"invalid path for resource '{resource.name}': {e.message}"
                ) from e

            if resource.header_row < 1 or resource.header_column < 1:
                raise SchemaError(
                    f"x-header-row and x-header-column must be >= 1 for '{resource.name}'"
                )

            if not resource.fields:
                raise SchemaError(f"at least one field is required for '{resource.name}'")

            seen_fields = set()
            for field in resource.fields:
                if not field.name:
                    raise SchemaError(f"field name is required in '{resource.name}'")
                if field.type is None:
                    raise SchemaError(
                        f"field type is required for '{resource.name}.{field.name}'"
                    )
                if field.name in seen_fields:
                    raise SchemaError(
                        f"duplicate field name '{field.name}' in '{resource.name}'"
                    )
                seen_fields.add(field.name)

                if field.type == FieldType.DATETIME and field.format not in DATETIME_FORMATS:
                    raise SchemaError(
                        f"invalid datetime format '{field.format}' for "
                        f"'{resource.name}.{field.name}' "
                        f"(expected one of default, date, time)"
                    )


def parse_schema(text: str) -> SchemaDocument:
    """Parse a schema document from YAML text (not validated)."""
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise SchemaError(f"Invalid YAML in schema document: {e}")

    if not isinstance(data, dict):
        raise SchemaError("Schema document must be a mapping with a 'resources' list")

    try:
        return SchemaDocument(**data)
    except ValidationError as e:
        raise SchemaError(f"Invalid schema document: {e}")


def load_schema(path: Union[str, Path], validate: bool = True) -> SchemaDocument:
    """Load a schema document from a YAML file and validate it."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except FileNotFoundError:
        raise SchemaError(f"Schema file not found: {path}")

    document = parse_schema(text)
    if validate:
        document.validate_document()
    return document


def write_default_schema(path: Union[str, Path]) -> Path:
    """Write the default schema template, creating parent directories."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(DEFAULT_SCHEMA_TEMPLATE, encoding="utf-8")
    return target
