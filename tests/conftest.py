"""
Shared test fixtures.

The Supabase stand-in keeps rows per table in memory, so services can be
exercised end to end: inserts are visible to later selects, updates
mutate stored rows and unique columns reject duplicates the way
PostgREST does.
"""

import sys
from pathlib import Path

# Add project root to Python path
root_dir = Path(__file__).parent.parent
sys.path.insert(0, str(root_dir))

import pytest
from contextlib import ExitStack
from unittest.mock import patch
from datetime import datetime, timezone
from typing import Any, Generator, Optional

from tests.factories import EmployeeFactory, StubIdentifierSource

# ===================
# MOCK SUPABASE CLIENT
# ===================

def _split_logic_filter(expression: str) -> list[str]:
    """Split on commas that are not inside a double-quoted value."""
    parts, current = [], ""
    quoted = escaped = False
    for char in expression:
        if escaped:
            escaped = False
        elif char == "\\" and quoted:
            escaped = True
        elif char == '"':
            quoted = not quoted
        elif char == "," and not quoted:
            parts.append(current)
            current = ""
            continue
        current += char
    parts.append(current)
    return parts


def _unquote(value: str) -> str:
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        inner = value[1:-1]
        result, escaped = "", False
        for char in inner:
            if char == "\\" and not escaped:
                escaped = True
                continue
            result += char
            escaped = False
        return result
    return value


class MockSupabaseResponse:
    """Mock Supabase query response."""

    def __init__(self, data: Any = None, count: int = None):
        self.data = data if data is not None else []
        self.count = count if count is not None else (len(self.data) if isinstance(self.data, list) else 1)


class MockSupabaseQuery:
    """Mock Supabase query builder with chainable methods."""

    def __init__(self, client: "MockSupabaseClient", table: str, operation: str, payload: Any = None):
        self._client = client
        self._table = table
        self._operation = operation
        self._payload = payload
        self._filters = []
        self._order = None
        self._limit = None
        self._range = None
        self._is_single = False

    # Filters

    def eq(self, column, value):
        self._filters.append(lambda row: row.get(column) == value)
        return self

    def neq(self, column, value):
        self._filters.append(lambda row: row.get(column) != value)
        return self

    def lte(self, column, value):
        self._filters.append(lambda row: row.get(column) is not None and str(row[column]) <= str(value))
        return self

    def gte(self, column, value):
        self._filters.append(lambda row: row.get(column) is not None and str(row[column]) >= str(value))
        return self

    def is_(self, column, value):
        if value in (None, "null"):
            self._filters.append(lambda row: row.get(column) is None)
        else:
            self._filters.append(lambda row: row.get(column) == value)
        return self

    def or_(self, expression: str):
        """Supports "col.eq.value,col2.eq.value" expressions, values optionally double-quoted."""
        conditions = []
        for part in _split_logic_filter(expression):
            column, operator, value = part.split(".", 2)
            assert operator == "eq", f"unsupported operator in mock: {operator}"
            conditions.append((column, _unquote(value)))
        self._filters.append(
            lambda row: any(str(row.get(column)) == value for column, value in conditions)
        )
        return self

    # Modifiers

    def order(self, column, desc: bool = False, **kwargs):
        self._order = (column, desc)
        return self

    def limit(self, count):
        self._limit = count
        return self

    def range(self, start, end):
        self._range = (start, end)
        return self

    def single(self):
        self._is_single = True
        return self

    # Execution

    def execute(self) -> MockSupabaseResponse:
        self._client.record(self._table, self._operation)
        self._client.raise_if_failing(self._table, self._operation)

        if self._operation == "insert":
            data = self._client.insert_rows(self._table, self._payload)
            return MockSupabaseResponse(data=data)

        rows = [row for row in self._client.rows(self._table) if all(f(row) for f in self._filters)]

        if self._operation == "update":
            for row in rows:
                row.update(self._payload)
                row["updated_at"] = _now()
            return MockSupabaseResponse(data=[dict(row) for row in rows])

        if self._operation == "delete":
            self._client.remove_rows(self._table, rows)
            return MockSupabaseResponse(data=[dict(row) for row in rows])

        total = len(rows)
        if self._order:
            column, desc = self._order
            rows = sorted(rows, key=lambda row: (row.get(column) is None, str(row.get(column))), reverse=desc)
        if self._range:
            start, end = self._range
            rows = rows[start:end + 1]
        if self._limit is not None:
            rows = rows[:self._limit]

        data = [dict(row) for row in rows]

        if self._is_single:
            return MockSupabaseResponse(data=data[0] if data else None, count=1 if data else 0)

        return MockSupabaseResponse(data=data, count=total)


class MockSupabaseTable:
    """Mock Supabase table bound to the in-memory client."""

    def __init__(self, client: "MockSupabaseClient", name: str):
        self._client = client
        self._name = name

    def select(self, *args, **kwargs):
        return MockSupabaseQuery(self._client, self._name, "select")

    def insert(self, data):
        return MockSupabaseQuery(self._client, self._name, "insert", data)

    def update(self, data):
        return MockSupabaseQuery(self._client, self._name, "update", data)

    def delete(self):
        return MockSupabaseQuery(self._client, self._name, "delete")


class MockSupabaseClient:
    """In-memory Supabase client."""

    def __init__(self):
        self._tables: dict[str, list[dict]] = {}
        self._unique: dict[str, tuple] = {}
        self._failures: dict[tuple[str, str], Exception] = {}
        self._ids = 0
        self.calls: list[tuple[str, str]] = []

    # Configuration

    def set_table_data(self, table_name: str, data: list, count: int = None):
        """Configure rows for a table."""
        self._tables[table_name] = [dict(row) for row in data]

    def set_unique_columns(self, table_name: str, columns: list[str]):
        """Reject inserts that repeat a value in any of these columns."""
        self._unique[table_name] = tuple(columns)

    def fail_on(self, table_name: str, operation: str, error: Optional[Exception] = None):
        """Make every `operation` on the table raise until cleared."""
        self._failures[(table_name, operation)] = error or Exception("connection reset by peer")

    def clear_failure(self, table_name: str, operation: str):
        self._failures.pop((table_name, operation), None)

    # Access

    def table(self, name: str) -> MockSupabaseTable:
        return MockSupabaseTable(self, name)

    def rows(self, table_name: str) -> list[dict]:
        return self._tables.setdefault(table_name, [])

    def count_calls(self, table_name: str, operation: str) -> int:
        return self.calls.count((table_name, operation))

    # Internals used by MockSupabaseQuery

    def record(self, table_name: str, operation: str):
        self.calls.append((table_name, operation))

    def raise_if_failing(self, table_name: str, operation: str):
        error = self._failures.get((table_name, operation))
        if error is not None:
            raise error

    def insert_rows(self, table_name: str, data) -> list[dict]:
        items = [data] if isinstance(data, dict) else list(data)
        table = self.rows(table_name)

        for item in items:
            for column in self._unique.get(table_name, ()):
                value = item.get(column)
                if value is not None and any(row.get(column) == value for row in table):
                    raise Exception(
                        f'duplicate key value violates unique constraint "{table_name}_{column}_key"'
                    )

        inserted = []
        for item in items:
            self._ids += 1
            row = dict(item)
            row.setdefault("id", f"{table_name}-{self._ids}")
            row.setdefault("created_at", _now())
            table.append(row)
            inserted.append(dict(row))

        return inserted

    def remove_rows(self, table_name: str, rows: list[dict]):
        self._tables[table_name] = [row for row in self.rows(table_name) if row not in rows]


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


# ===================
# FIXTURES
# ===================

PATCHED_MODULES = (
    "config.database",
    "services.booking_service",
    "services.billing_request_service",
    "services.responsible_party_service",
    "services.outbox_service",
    "services.notification_service",
)


@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create an in-memory Supabase client.

    billing_requests carries the same unique constraints as the real table.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_table_data("bookings", [BookingFactory.create()])
    """
    client = MockSupabaseClient()
    client.set_unique_columns("billing_requests", ["tracking_code", "invoice_number"])
    client.set_table_data("employees", [EmployeeFactory.create(id="employee-default")])
    return client


@pytest.fixture
def mock_db(mock_supabase) -> Generator:
    """
    Patch the database client with the mock.

    Usage:
        def test_something(mock_db):
            service = BookingService()  # uses the mock
    """
    with ExitStack() as stack:
        for module in PATCHED_MODULES:
            stack.enter_context(patch(f"{module}.get_supabase_client", return_value=mock_supabase))
        yield mock_supabase


@pytest.fixture
def identifier_source() -> StubIdentifierSource:
    """Predictable identifier candidates."""
    return StubIdentifierSource()


@pytest.fixture
def no_telegram():
    """Stop notification tests from reaching Telegram."""
    with patch("services.notification_service.send_message", return_value=False) as send:
        yield send
