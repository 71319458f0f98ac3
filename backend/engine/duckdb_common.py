from __future__ import annotations

import os
from pathlib import Path

import duckdb

DEFAULT_DUCKDB_PATH = "data/duckdb/locations.duckdb"


def _env_int(name: str, default: int, *, minimum: int = 1) -> int:
    raw = (os.getenv(name) or "").strip()
    if raw:
        try:
            return max(minimum, int(raw))
        except ValueError:
            pass
    return default


def duckdb_path() -> str:
    return (os.getenv("QUADCLUSTER_DUCKDB_PATH") or "").strip() or DEFAULT_DUCKDB_PATH


def duckdb_threads() -> int:
    return _env_int("QUADCLUSTER_DUCKDB_THREADS", max(1, int(os.cpu_count() or 1)))


def update_batch_size() -> int:
    return _env_int("QUADCLUSTER_UPDATE_BATCH_SIZE", 1000)


def connect(path: str, *, threads: int) -> duckdb.DuckDBPyConnection:
    if path != ":memory:":
        p = Path(path)
        if p.parent and str(p.parent) not in {".", ""}:
            p.parent.mkdir(parents=True, exist_ok=True)
    return duckdb.connect(database=path, read_only=False, config={"threads": int(threads)})
