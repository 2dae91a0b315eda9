"""
Data model for schema reconciliation.

FieldSpec is the declared column, ObservedField the column read from the
live sheet. The diff engine turns the two lists into a ResourceDiff, and
the result builder turns that into a Plan of Change objects.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union


class FieldType(str, Enum):
    """Semantic column types."""

    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATETIME = "datetime"


class ChangeType(str, Enum):
    """Kinds of structural change."""

    ADD = "add"
    REMOVE = "remove"
    MODIFY = "modify"
    REORDER = "reorder"


def format_field_type(field_type: str, field_format: str = "") -> str:
    """Render a type with its format, e.g. ``datetime(date)``."""
    type_name = field_type.value if isinstance(field_type, FieldType) else field_type
    if field_format:
        return f"{type_name}({field_format})"
    return type_name


@dataclass(frozen=True)
class FieldSpec:
    """Declared column definition from the schema document."""

    name: str
    type: FieldType
    format: str = ""
    hidden: bool = False
    protect: bool = False
    position: int = -1


@dataclass(frozen=True)
class ObservedField:
    """Column as currently found in the sheet."""

    name: str
    type: FieldType
    format: str = ""
    hidden: bool = False
    column_index: int = -1


@dataclass(frozen=True)
class AddPayload:
    field: FieldSpec


@dataclass(frozen=True)
class RemovePayload:
    field: ObservedField


@dataclass(frozen=True)
class ModifyPayload:
    """Old and new structural attributes of a field present on both sides."""

    name: str
    old_type: FieldType
    new_type: FieldType
    old_format: str = ""
    new_format: str = ""
    old_hidden: bool = False
    new_hidden: bool = False
    description: str = ""

    @property
    def type_changed(self) -> bool:
        return self.old_type != self.new_type or self.old_format != self.new_format

    @property
    def hidden_changed(self) -> bool:
        return self.old_hidden != self.new_hidden


@dataclass(frozen=True)
class ReorderPayload:
    expected_order: List[str]
    current_order: List[str] = field(default_factory=list)


ChangePayload = Union[AddPayload, RemovePayload, ModifyPayload, ReorderPayload]


@dataclass(frozen=True)
class Change:
    """A single structural change against one resource."""

    change_type: ChangeType
    path: str
    description: str
    payload: ChangePayload

    @property
    def resource(self) -> str:
        """Resource (sheet) name the change targets."""
        if self.change_type == ChangeType.REORDER:
            return self.path
        return self.path.rsplit(".", 1)[0]

    @property
    def field_name(self) -> Optional[str]:
        """Field name for per-field changes, ``None`` for reorders."""
        if isinstance(self.payload, (AddPayload, RemovePayload)):
            return self.payload.field.name
        if isinstance(self.payload, ModifyPayload):
            return self.payload.name
        return None

    @property
    def symbol(self) -> str:
        return {
            ChangeType.ADD: "+",
            ChangeType.REMOVE: "-",
            ChangeType.MODIFY: "~",
            ChangeType.REORDER: "↔",
        }[self.change_type]

    def __str__(self) -> str:
        return f"{self.symbol} {self.path}: {self.description}"


@dataclass
class ResourceDiff:
    """Structured difference between observed and declared fields."""

    fields_to_add: List[FieldSpec] = field(default_factory=list)
    fields_to_remove: List[ObservedField] = field(default_factory=list)
    fields_to_modify: List[ModifyPayload] = field(default_factory=list)
    reorder_needed: bool = False
    expected_order: List[str] = field(default_factory=list)
    current_order: List[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (
            self.fields_to_add
            or self.fields_to_remove
            or self.fields_to_modify
            or self.reorder_needed
        )


@dataclass
class Plan:
    """Ordered changes for one resource plus a one-line summary."""

    resource: str
    changes: List[Change] = field(default_factory=list)
    summary: str = ""

    @property
    def has_changes(self) -> bool:
        return bool(self.changes)

    def format(self) -> str:
        """Plain-text rendering of the plan."""
        if not self.has_changes:
            return f"No changes detected. {self.summary}."

        lines = ["=== Schema Migration Plan ===", "", self.summary, "", "Changes to be applied:"]
        lines.extend(f"  {change}" for change in self.changes)
        return "\n".join(lines)
