"""Shared fixtures for query cache tests."""

from typing import Any, Callable, Dict, List, Optional, Union

import pytest

from common.cache.memory_store import ArrayStore
from common.cache.manager import set_cache_manager
from database.connection import Connection
from database.grammar import Grammar
from database.query_builder import QueryBuilder


Rows = List[Dict[str, Any]]


class RecordingConnection(Connection):
    """Connection double returning canned rows and recording every select."""

    def __init__(self, name: str = "main", rows: Union[Rows, Callable[[str, list], Rows], None] = None):
        super().__init__(name, dbapi_connection=None, grammar=Grammar())
        self.rows = rows if rows is not None else []
        self.selects: List[tuple] = []
        self.error: Optional[Exception] = None

    def select(self, sql, bindings=()):
        self.selects.append((sql, list(bindings)))
        if self.error is not None:
            raise self.error
        if callable(self.rows):
            return self.rows(sql, list(bindings))
        return [dict(row) for row in self.rows]


class SpyStore(ArrayStore):
    """In-memory store counting which get-or-compute path and writes were used."""

    def __init__(self, prefix: str = ""):
        super().__init__(prefix)
        self.calls: Dict[str, int] = {
            "remember": 0, "remember_forever": 0, "put": 0, "forever": 0, "tags": 0,
        }
        self.remembered: List[tuple] = []

    def remember(self, key, minutes, callback):
        self.calls["remember"] += 1
        self.remembered.append((key, minutes))
        return super().remember(key, minutes, callback)

    def remember_forever(self, key, callback):
        self.calls["remember_forever"] += 1
        self.remembered.append((key, None))
        return super().remember_forever(key, callback)

    def put(self, key, value, minutes):
        self.calls["put"] += 1
        return super().put(key, value, minutes)

    def forever(self, key, value):
        self.calls["forever"] += 1
        return super().forever(key, value)

    def tags(self, names):
        self.calls["tags"] += 1
        return super().tags(names)


@pytest.fixture(autouse=True)
def reset_cache_manager():
    set_cache_manager(None)
    yield
    set_cache_manager(None)


@pytest.fixture
def connection() -> RecordingConnection:
    return RecordingConnection(rows=[{"id": 1, "name": "alpha"}, {"id": 2, "name": "beta"}])


@pytest.fixture
def store() -> SpyStore:
    return SpyStore()


@pytest.fixture
def query(connection, store) -> QueryBuilder:
    return QueryBuilder(connection, cache=store).from_("users")
