"""
Pytest configuration and shared fixtures for ssmigrate tests.

This module provides an in-memory spreadsheet store and schema document
builders shared by the unit tests.
"""

from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Tuple

import pytest
import yaml

from ssmigrate.config import MigrateSettings, StoreConfig
from ssmigrate.document import SchemaDocument, parse_schema
from ssmigrate.exceptions import StoreNotFoundError
from ssmigrate.store.base import ColumnMetadata, Store
from ssmigrate.store.notation import letter_to_column


SHEET_ID = "1_TESTSPREADSHEETID"
SHEET_URL = f"https://docs.google.com/spreadsheets/d/{SHEET_ID}/edit"

MUTATING_CALLS = {
    "insert_column_before",
    "write_header_cell",
    "clear_header_cell",
    "set_column_hidden",
    "delete_column",
    "create_resource",
}


# ============================================================================
# In-memory Store
# ============================================================================

class FakeStore(Store):
    """
    Store backed by Python lists.

    Each sheet is a list of rows, each row a list of cell values. Failures
    can be injected per method with ``fail``; every call is recorded in
    ``calls`` as ``(method, *args)`` without the store id.
    """

    def __init__(
        self,
        sheets: Optional[Dict[str, List[List[Any]]]] = None,
        hidden: Optional[Dict[str, Iterable[int]]] = None,
        patterns: Optional[Dict[str, Dict[int, str]]] = None,
    ):
        self.sheets: Dict[str, List[List[Any]]] = {
            name: [list(row) for row in rows] for name, rows in (sheets or {}).items()
        }
        self.hidden: Dict[str, Set[int]] = {
            name: set(cols) for name, cols in (hidden or {}).items()
        }
        self.patterns: Dict[str, Dict[int, str]] = {
            name: dict(cols) for name, cols in (patterns or {}).items()
        }
        self.calls: List[Tuple] = []
        self.failures: Dict[str, List[Tuple[Optional[Callable[..., bool]], Exception]]] = {}
        self.closed = False

    def fail(self, method: str, error: Exception, when: Optional[Callable[..., bool]] = None):
        """Make ``method`` raise ``error`` (only for calls where ``when(*args)`` holds)."""
        self.failures.setdefault(method, []).append((when, error))

    def _record(self, method: str, *args):
        self.calls.append((method, *args))
        for when, error in self.failures.get(method, []):
            if when is None or when(*args):
                raise error

    def _rows(self, resource: str) -> List[List[Any]]:
        if resource not in self.sheets:
            raise StoreNotFoundError(f"Not found: sheet {resource}", status_code=404)
        return self.sheets[resource]

    def _set_cell(self, resource: str, row_ref: int, index: int, value: Any):
        rows = self._rows(resource)
        while len(rows) < row_ref:
            rows.append([])
        row = rows[row_ref - 1]
        while len(row) <= index:
            row.append(None)
        row[index] = value

    @property
    def mutations(self) -> List[Tuple]:
        return [call for call in self.calls if call[0] in MUTATING_CALLS]

    def headers(self, resource: str, header_row: int = 1) -> List[str]:
        """Header row as the Sheets API returns it (trailing blanks dropped)."""
        rows = self.sheets.get(resource, [])
        if header_row > len(rows):
            return []
        values = ["" if v is None else str(v) for v in rows[header_row - 1]]
        while values and not values[-1]:
            values.pop()
        return values

    def column(self, resource: str, index: int, start_row: int = 1) -> List[Any]:
        return [
            row[index] if index < len(row) else None
            for row in self.sheets[resource][start_row - 1:]
        ]

    async def get_headers(self, store_id: str, resource: str, header_row: int) -> List[str]:
        self._record("get_headers", resource, header_row)
        self._rows(resource)
        return self.headers(resource, header_row)

    async def get_column_samples(
        self,
        store_id: str,
        resource: str,
        column_ref: str,
        start_row: int,
        limit: Optional[int] = None,
    ) -> List[Any]:
        self._record("get_column_samples", resource, column_ref, start_row, limit)
        self._rows(resource)
        values = self.column(resource, letter_to_column(column_ref), start_row)
        if limit is not None:
            values = values[:limit]
        while values and values[-1] is None:
            values.pop()
        return values

    async def get_column_metadata(
        self, store_id: str, resource: str, data_row: int
    ) -> List[ColumnMetadata]:
        self._record("get_column_metadata", resource, data_row)
        rows = self._rows(resource)
        hidden = self.hidden.get(resource, set())
        patterns = self.patterns.get(resource, {})
        width = max(
            [len(row) for row in rows] + [i + 1 for i in hidden] + [i + 1 for i in patterns]
            or [0]
        )
        return [
            ColumnMetadata(index=i, hidden=i in hidden, format_pattern=patterns.get(i, ""))
            for i in range(width)
        ]

    async def insert_column_before(self, store_id: str, resource: str, index: int) -> None:
        self._record("insert_column_before", resource, index)
        for row in self._rows(resource):
            if len(row) > index:
                row.insert(index, None)
        self.hidden[resource] = {
            i + 1 if i >= index else i for i in self.hidden.get(resource, set())
        }
        self.patterns[resource] = {
            (i + 1 if i >= index else i): p for i, p in self.patterns.get(resource, {}).items()
        }

    async def write_header_cell(
        self, store_id: str, resource: str, column_ref: str, row_ref: int, value: str
    ) -> None:
        self._record("write_header_cell", resource, column_ref, row_ref, value)
        self._set_cell(resource, row_ref, letter_to_column(column_ref), value)

    async def clear_header_cell(
        self, store_id: str, resource: str, column_ref: str, row_ref: int
    ) -> None:
        self._record("clear_header_cell", resource, column_ref, row_ref)
        self._set_cell(resource, row_ref, letter_to_column(column_ref), None)

    async def set_column_hidden(
        self, store_id: str, resource: str, index: int, hidden: bool
    ) -> None:
        self._record("set_column_hidden", resource, index, hidden)
        self._rows(resource)
        columns = self.hidden.setdefault(resource, set())
        if hidden:
            columns.add(index)
        else:
            columns.discard(index)

    async def delete_column(self, store_id: str, resource: str, index: int) -> None:
        self._record("delete_column", resource, index)
        for row in self._rows(resource):
            if len(row) > index:
                del row[index]

    async def resource_exists(self, store_id: str, resource: str) -> bool:
        self._record("resource_exists", resource)
        return resource in self.sheets

    async def create_resource(self, store_id: str, resource: str) -> None:
        self._record("create_resource", resource)
        self.sheets[resource] = []

    async def close(self) -> None:
        self.closed = True


# ============================================================================
# Store Fixtures
# ============================================================================

@pytest.fixture
def make_store() -> Callable[..., FakeStore]:
    """Factory for in-memory stores."""
    return FakeStore


@pytest.fixture
def fake_store() -> FakeStore:
    """Store with a single 'Users' sheet holding a few typed columns."""
    return FakeStore(
        sheets={
            "Users": [
                ["id", "name", "created_at"],
                [1, "alice", "2024-01-02T10:00:00Z"],
                [2, "bob", "2024-02-03T11:30:00Z"],
            ]
        }
    )


# ============================================================================
# Schema Document Fixtures
# ============================================================================

def build_document(resources: List[Dict[str, Any]]) -> SchemaDocument:
    """Build a validated SchemaDocument from plain resource dicts."""
    for resource in resources:
        resource.setdefault("path", SHEET_URL)
    document = parse_schema(yaml.safe_dump({"resources": resources}))
    document.validate_document()
    return document


@pytest.fixture
def make_document() -> Callable[[List[Dict[str, Any]]], SchemaDocument]:
    """Factory for schema documents; resources default to the test sheet URL."""
    return build_document


@pytest.fixture
def sheet_url() -> str:
    return SHEET_URL


@pytest.fixture
def sample_schema_yaml() -> str:
    """Schema document with one resource matching ``fake_store`` plus an email field."""
    return f"""
resources:
  - name: Users
    path: {SHEET_URL}
    fields:
      - name: id
        type: integer
      - name: email
        type: string
      - name: name
        type: string
      - name: created_at
        type: datetime
        format: default
"""


@pytest.fixture
def schema_file(tmp_path, sample_schema_yaml) -> str:
    path = tmp_path / "schema.yaml"
    path.write_text(sample_schema_yaml, encoding="utf-8")
    return str(path)


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def store_config() -> StoreConfig:
    return StoreConfig(access_token="test-token", timeout=5)


@pytest.fixture
def settings(store_config) -> MigrateSettings:
    return MigrateSettings(store=store_config)
