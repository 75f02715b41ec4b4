import pytest
from fastapi.testclient import TestClient

from barometre.deps import get_store
from barometre.main import app
from barometre.services.executor import WarehouseStore


class FakeStore(WarehouseStore):
    """Warehouse double: canned rows per query key, every call recorded.

    SQL is still rendered through the real registry, so a route asking for an
    unknown key or forgetting a template variable fails like it would live.
    """

    def __init__(self, rows=None):
        super().__init__(engine=None)
        self.rows = dict(rows or {})
        self.calls = []

    def fetch_all(self, key, params=None, **context):
        sql = self.registry.render(key, **context)
        self.calls.append({"key": key, "params": params or {}, "context": context, "sql": sql})
        result = self.rows.get(key, [])
        if isinstance(result, Exception):
            raise result
        return [dict(r) for r in result]

    @property
    def last(self):
        return self.calls[-1]


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
