from __future__ import annotations

import logging
import os
import threading
from functools import lru_cache

import duckdb
from fastapi import Depends

from engine.duckdb import DuckDBLocationStore
from engine.in_memory import InMemoryCountSource
from engine.types import AggregateQueryError, CountSource

logger = logging.getLogger(__name__)

_snapshots: dict[str, InMemoryCountSource] = {}
_snapshots_lock = threading.Lock()


@lru_cache(maxsize=1)
def default_source_name() -> str:
    return normalize_source(os.getenv("QUADCLUSTER_SOURCE"))


def normalize_source(name: str | None) -> str:
    n = (name or "duckdb").strip().lower()
    if n in {"duckdb", "in_memory"}:
        return n
    return "duckdb"


@lru_cache(maxsize=1)
def get_location_store() -> DuckDBLocationStore:
    store = DuckDBLocationStore()
    store.ensure_schema()
    return store


def _snapshot(store: DuckDBLocationStore) -> InMemoryCountSource:
    """
    In-memory copy of the stored locations, loaded once per database.
    """
    with _snapshots_lock:
        src = _snapshots.get(store.path)
        if src is None:
            try:
                src = InMemoryCountSource(
                    loc for batch in store.iter_batches(10_000) for loc in batch
                )
            except duckdb.Error as e:
                logger.error(f"Loading in-memory snapshot of {store.path} failed: {e}")
                raise AggregateQueryError(f"Could not load locations: {e}") from e
            _snapshots[store.path] = src
        return src


def invalidate_snapshots() -> None:
    with _snapshots_lock:
        _snapshots.clear()


def get_count_source(
    store: DuckDBLocationStore = Depends(get_location_store),
) -> CountSource:
    if default_source_name() == "in_memory":
        return _snapshot(store)
    return store
