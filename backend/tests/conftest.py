import sys
from pathlib import Path

import pytest


# Ensure `backend/` is on sys.path so tests can import local modules
# like `geo.*`, `clustering.*`, and `main`.
BACKEND_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(BACKEND_ROOT))


@pytest.fixture(autouse=True)
def _no_telemetry(monkeypatch):
    # Tests that exercise telemetry turn it back on explicitly.
    monkeypatch.setenv("QUADCLUSTER_TELEMETRY", "0")


@pytest.fixture
def store():
    from engine.duckdb import DuckDBLocationStore

    s = DuckDBLocationStore(path=":memory:", threads=1)
    s.ensure_schema()
    yield s
    s.close()


@pytest.fixture
def client(store):
    from fastapi.testclient import TestClient

    from api.deps import get_location_store, invalidate_snapshots
    from main import app

    app.dependency_overrides[get_location_store] = lambda: store
    invalidate_snapshots()
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        invalidate_snapshots()
