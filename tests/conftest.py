"""
Shared test fixtures.

The mock Supabase client keeps rows in memory and really applies the
filters, ordering and ranges used by the aggregation layer.
"""

import os
import sys
from pathlib import Path

# Add project root to Python path
project_dir = Path(__file__).parent.parent
sys.path.insert(0, str(project_dir))

# Settings require these at import time
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")

import pytest
from unittest.mock import patch
from typing import Generator


# ===================
# MOCK SUPABASE CLIENT
# ===================

class MockSupabaseResponse:
    """Mock Supabase query response."""

    def __init__(self, data: list = None, count: int = None):
        self.data = data or []
        self.count = count if count is not None else len(self.data)


class MockSupabaseQuery:
    """Mock Supabase query builder; every filter narrows the in-memory rows."""

    def __init__(self, data: list = None, error: Exception = None, max_rows: int = None):
        self._data = [dict(row) for row in (data or [])]
        self._error = error
        self._max_rows = max_rows
        self.calls = []

    def _filter(self, predicate):
        self._data = [row for row in self._data if predicate(row)]
        return self

    def select(self, *args, **kwargs):
        return self

    def eq(self, column, value):
        return self._filter(lambda row: row.get(column) == value)

    def neq(self, column, value):
        return self._filter(lambda row: row.get(column) != value)

    def gte(self, column, value):
        return self._filter(lambda row: row.get(column) is not None and row[column] >= value)

    def lte(self, column, value):
        return self._filter(lambda row: row.get(column) is not None and row[column] <= value)

    def gt(self, column, value):
        return self._filter(lambda row: row.get(column) is not None and row[column] > value)

    def lt(self, column, value):
        return self._filter(lambda row: row.get(column) is not None and row[column] < value)

    def in_(self, column, values):
        allowed = list(values)
        return self._filter(lambda row: row.get(column) in allowed)

    def order(self, column, desc: bool = False, **kwargs):
        self._data.sort(key=lambda row: (row.get(column) is None, str(row.get(column))), reverse=desc)
        return self

    def range(self, start, end):
        self.calls.append(("range", start, end))
        self._data = self._data[start:end + 1]
        if self._max_rows is not None:
            self._data = self._data[:self._max_rows]
        return self

    def limit(self, count):
        self._data = self._data[:count]
        return self

    def execute(self) -> MockSupabaseResponse:
        if self._error is not None:
            raise self._error
        return MockSupabaseResponse(data=self._data)


class MockSupabaseClient:
    """Mock Supabase client."""

    def __init__(self):
        self._tables = {}
        self._errors = {}
        self._max_rows = None
        self.queries = []

    def set_table_data(self, table_name: str, data: list):
        """Configure rows for a table."""
        self._tables[table_name] = data

    def set_table_error(self, table_name: str, error: Exception):
        """Make every query on a table fail with `error`."""
        self._errors[table_name] = error

    def set_max_rows(self, max_rows: int):
        """Cap every response like the server's max-rows setting."""
        self._max_rows = max_rows

    def table(self, name: str) -> MockSupabaseQuery:
        query = MockSupabaseQuery(self._tables.get(name, []), self._errors.get(name), self._max_rows)
        self.queries.append((name, query))
        return query


# ===================
# FIXTURES
# ===================

@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_table_data("orders", [
                OrderFactory.create(date="2024-03-05", amount=100)
            ])
    """
    return MockSupabaseClient()


@pytest.fixture
def mock_db(mock_supabase) -> Generator:
    """
    Patch the database client with mock.

    Usage:
        def test_something(mock_db):
            mock_db.set_table_data("orders", [...])
            service = FinancialMetricsService()  # reads from the mock
    """
    with patch("config.database.get_supabase_client", return_value=mock_supabase):
        with patch("services.aggregation_service.get_supabase_client", return_value=mock_supabase):
            yield mock_supabase


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client(mock_db):
    """
    FastAPI test client backed by the mock store.

    Lifespan startup is not run, so no real connection is attempted.
    """
    from fastapi.testclient import TestClient
    from main import app

    return TestClient(app)
