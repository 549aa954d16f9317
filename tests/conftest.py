"""
Pytest configuration for bank portal backend tests.

Sets up the test environment, a MagicMock Supabase client and an in-memory
fake that implements the subset of the postgrest query builder the services
use, so filter and pagination behaviour can be tested end to end.
"""
import os
import re
from typing import Any, Callable, Dict, List, Optional
from unittest.mock import MagicMock

import pytest

# Disable config validation during tests
os.environ["VALIDATE_CONFIG"] = "false"

# Set test environment variables
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("TABLE_CATALOG_CHECK", "false")


class FakeResponse:
    def __init__(self, data: Any, count: Optional[int] = None):
        self.data = data
        self.count = count


def _matches_ilike(value: Any, pattern: str) -> bool:
    if value is None:
        return False
    regex = "^" + ".*".join(re.escape(part) for part in pattern.split("%")) + "$"
    return re.match(regex, str(value), re.IGNORECASE | re.DOTALL) is not None


def _same(left: Any, right: Any) -> bool:
    if left == right:
        return True
    return left is not None and right is not None and str(left) == str(right)


def _parse_or(expression: str) -> List[Callable[[Dict[str, Any]], bool]]:
    """Parse `col.ilike."%x%",col2.ilike.%y%` into row predicates."""
    predicates = []
    for column, quoted, bare in re.findall(
        r'(\w+)\.ilike\.(?:"((?:[^"\\]|\\.)*)"|([^,]*))', expression
    ):
        pattern = re.sub(r"\\(.)", r"\1", quoted) if quoted else bare
        predicates.append(lambda row, c=column, p=pattern: _matches_ilike(row.get(c), p))
    return predicates


class FakeQuery:
    """One chained request against a FakeSupabaseClient table."""

    def __init__(self, db: "FakeSupabaseClient", table: str):
        self.db = db
        self.table_name = table
        self.operation = "select"
        self.columns = "*"
        self.count_mode: Any = None
        self.head = False
        self.payload: Any = None
        self.filters: List[Callable[[Dict[str, Any]], bool]] = []
        self.orders: List[tuple] = []
        self.range_bounds: Optional[tuple] = None
        self.row_limit: Optional[int] = None

    # -- operations --

    def select(self, columns: str = "*", count: Any = None, head: bool = False):
        self.columns = columns
        self.count_mode = count
        self.head = head
        return self

    def insert(self, data: Any):
        self.operation = "insert"
        self.payload = data
        return self

    def update(self, data: Dict[str, Any]):
        self.operation = "update"
        self.payload = data
        return self

    def delete(self):
        self.operation = "delete"
        return self

    # -- filters --

    def eq(self, column: str, value: Any):
        self.filters.append(lambda row: _same(row.get(column), value))
        return self

    def neq(self, column: str, value: Any):
        self.filters.append(lambda row: not _same(row.get(column), value))
        return self

    def gte(self, column: str, value: Any):
        self.filters.append(lambda row: row.get(column) is not None and row[column] >= value)
        return self

    def lte(self, column: str, value: Any):
        self.filters.append(lambda row: row.get(column) is not None and row[column] <= value)
        return self

    def ilike(self, column: str, pattern: str):
        self.filters.append(lambda row: _matches_ilike(row.get(column), pattern))
        return self

    def in_(self, column: str, values: List[Any]):
        self.filters.append(lambda row: any(_same(row.get(column), v) for v in values))
        return self

    def or_(self, expression: str):
        predicates = _parse_or(expression)
        self.filters.append(lambda row: any(p(row) for p in predicates))
        return self

    # -- modifiers --

    def order(self, column: str, desc: bool = False):
        self.orders.append((column, desc))
        return self

    def range(self, start: int, end: int):
        self.range_bounds = (start, end)
        return self

    def limit(self, size: int):
        self.row_limit = size
        return self

    # -- execution --

    def _matching(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return [row for row in rows if all(f(row) for f in self.filters)]

    def _project(self, row: Dict[str, Any]) -> Dict[str, Any]:
        if self.columns.strip() == "*":
            return dict(row)
        names = [name.strip() for name in self.columns.split(",")]
        return {name: row.get(name) for name in names}

    def execute(self) -> FakeResponse:
        self.db.calls.append((self.table_name, self.operation))
        self.db.raise_injected(self.table_name, self.operation)

        rows = self.db.tables.setdefault(self.table_name, [])

        if self.operation == "insert":
            items = self.payload if isinstance(self.payload, list) else [self.payload]
            inserted = []
            for item in items:
                row = dict(item)
                if "id" not in row:
                    row["id"] = self.db.next_id(self.table_name)
                rows.append(row)
                inserted.append(dict(row))
            return FakeResponse(inserted)

        matched = self._matching(rows)

        if self.operation == "update":
            for row in matched:
                row.update(self.payload)
            return FakeResponse([dict(row) for row in matched])

        if self.operation == "delete":
            self.db.tables[self.table_name] = [row for row in rows if row not in matched]
            return FakeResponse([dict(row) for row in matched])

        for column, desc in reversed(self.orders):
            matched = sorted(
                matched,
                key=lambda row: (row.get(column) is None, row.get(column)),
                reverse=desc,
            )

        count = len(matched) if self.count_mode else None

        if self.range_bounds is not None:
            start, end = self.range_bounds
            matched = matched[start:end + 1]
        if self.row_limit is not None:
            matched = matched[:self.row_limit]

        if self.head:
            return FakeResponse([], count)

        return FakeResponse([self._project(row) for row in matched], count)


class FakeRpc:
    def __init__(self, db: "FakeSupabaseClient", name: str, params: Dict[str, Any]):
        self.db = db
        self.name = name
        self.params = params

    def execute(self) -> FakeResponse:
        self.db.calls.append((self.name, "rpc"))
        self.db.raise_injected(self.name, "rpc")
        if self.name not in self.db.rpc_handlers:
            raise Exception(f"function {self.name} does not exist")
        return FakeResponse(self.db.rpc_handlers[self.name](self.params))


class FakeSupabaseClient:
    """
    In-memory stand-in for supabase.Client.

    Rows live in `tables`; every executed request is appended to `calls` as
    (table, operation). fail() makes the next matching request(s) raise.
    """

    def __init__(self, tables: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        self.tables: Dict[str, List[Dict[str, Any]]] = {
            name: [dict(row) for row in rows] for name, rows in (tables or {}).items()
        }
        self.calls: List[tuple] = []
        self.rpc_handlers: Dict[str, Callable[[Dict[str, Any]], Any]] = {}
        self._failures: List[list] = []
        self._ids: Dict[str, int] = {}

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rpc(self, name: str, params: Optional[Dict[str, Any]] = None) -> FakeRpc:
        return FakeRpc(self, name, params or {})

    def fail(self, table: str, operation: str, error: Exception, times: int = 1) -> None:
        self._failures.append([table, operation, error, times])

    def raise_injected(self, table: str, operation: str) -> None:
        for failure in self._failures:
            if failure[0] == table and failure[1] == operation and failure[3] > 0:
                failure[3] -= 1
                raise failure[2]

    def next_id(self, table: str) -> int:
        existing = [row["id"] for row in self.tables.get(table, []) if isinstance(row.get("id"), int)]
        current = max([self._ids.get(table, 0), *existing])
        self._ids[table] = current + 1
        return current + 1

    def operations_on(self, table: str) -> List[str]:
        return [operation for name, operation in self.calls if name == table]


@pytest.fixture
def supabase_client():
    """
    Mock Supabase client for call-shape assertions.
    Returns a MagicMock that simulates Supabase client behavior.
    """
    mock_client = MagicMock()
    return mock_client


@pytest.fixture
def fake_client():
    """Empty in-memory Supabase client; seed it via fake_client.tables."""
    return FakeSupabaseClient()


@pytest.fixture
def make_fake_client():
    """Factory for a FakeSupabaseClient pre-seeded with table rows."""
    return FakeSupabaseClient
