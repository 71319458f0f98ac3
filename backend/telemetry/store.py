from __future__ import annotations

import json
import queue
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import duckdb

from telemetry.sql import (
    CREATE_EVENTS_TABLE_SQL,
    INSERT_EVENTS_SQL,
    SLOWEST_SQL_TEMPLATE,
    SUMMARY_SQL_TEMPLATE,
)


def _safe_float(v) -> float | None:
    try:
        if v is None:
            return None
        return float(v)
    except (TypeError, ValueError):
        return None


@dataclass
class TelemetryStore:
    """
    Per-request timing events, written by a single background thread.

    Recording never blocks the request path; events are dropped on overload.
    """

    path: Path
    conn: duckdb.DuckDBPyConnection
    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False)
    _q: "queue.Queue[dict[str, Any]]" = field(default_factory=queue.Queue, repr=False)
    _stop: threading.Event = field(default_factory=threading.Event, repr=False)
    _worker: threading.Thread | None = field(default=None, repr=False)

    def ensure_schema(self) -> None:
        with self._lock:
            self.conn.execute(CREATE_EVENTS_TABLE_SQL)

    def start(self) -> None:
        if self._worker is not None:
            return
        self._stop.clear()
        self._worker = threading.Thread(
            target=self._run, name="telemetry-writer", daemon=True
        )
        self._worker.start()

    def stop(self, *, timeout_s: float = 2.0) -> None:
        """
        Stop the writer thread; it drains and flushes whatever is queued.
        """
        self._stop.set()
        w = self._worker
        if w is not None and w.is_alive():
            w.join(timeout=timeout_s)
        self._worker = None

    def record(
        self,
        *,
        endpoint: str,
        source: str,
        zoom: int,
        bounds: dict[str, float],
        stats: dict[str, Any],
    ) -> None:
        self.start()
        try:
            self._q.put_nowait(
                {
                    "ts_ms": int(time.time() * 1000),
                    "endpoint": str(endpoint),
                    "source": str(source),
                    "zoom": int(zoom),
                    "sw_lat": float(bounds["swLat"]),
                    "sw_lon": float(bounds["swLon"]),
                    "ne_lat": float(bounds["neLat"]),
                    "ne_lon": float(bounds["neLon"]),
                    "stats_json": json.dumps(stats, ensure_ascii=False),
                }
            )
        except queue.Full:
            # drop telemetry on overload
            pass

    def flush(self, *, timeout_s: float = 2.0) -> None:
        """
        Best-effort: wait until queued events are processed (used by tests).
        """
        if self._worker is None:
            return
        deadline = time.time() + timeout_s
        while time.time() < deadline:
            if self._q.unfinished_tasks == 0:
                break
            time.sleep(0.01)
        # Give the writer thread time to flush on its time-based trigger.
        time.sleep(0.55)

    def query(self, sql: str, params: list[Any] | None = None) -> list[tuple]:
        """
        Run a read query inside the backend process.

        DuckDB holds a file lock while the writer is open, so other processes can't
        read the file; querying through the API avoids that.
        """
        with self._lock:
            if params:
                return self.conn.execute(sql, params).fetchall()
            return self.conn.execute(sql).fetchall()

    def summary(
        self,
        *,
        source: str | None = None,
        endpoint: str | None = None,
        since_ms: int | None = None,
    ) -> list[dict[str, Any]]:
        where = []
        params: list[Any] = []
        if source:
            where.append("source = ?")
            params.append(source)
        if endpoint:
            where.append("endpoint = ?")
            params.append(endpoint)
        if since_ms is not None:
            where.append("ts_ms >= ?")
            params.append(int(since_ms))

        where_sql = f"WHERE {' AND '.join(where)}" if where else ""

        rows = self.query(SUMMARY_SQL_TEMPLATE.format(where_sql=where_sql), params)

        out: list[dict[str, Any]] = []
        for source_v, endpoint_v, n, avg_ms, p50, p95, p99, avg_clusters, avg_points in rows:
            out.append(
                {
                    "source": source_v,
                    "endpoint": endpoint_v,
                    "n": int(n),
                    "avgTotalMs": _safe_float(avg_ms),
                    "p50TotalMs": _safe_float(p50),
                    "p95TotalMs": _safe_float(p95),
                    "p99TotalMs": _safe_float(p99),
                    "avgClusters": _safe_float(avg_clusters),
                    "avgPoints": _safe_float(avg_points),
                }
            )
        return out

    def slowest(
        self,
        *,
        source: str | None = None,
        endpoint: str | None = None,
        limit: int = 25,
    ) -> list[dict[str, Any]]:
        where = ["json_extract(stats_json, '$.timingsMs.total') IS NOT NULL"]
        params: list[Any] = []
        if source:
            where.append("source = ?")
            params.append(source)
        if endpoint:
            where.append("endpoint = ?")
            params.append(endpoint)
        params.append(int(max(1, min(200, limit))))

        rows = self.query(
            SLOWEST_SQL_TEMPLATE.format(where_sql=" AND ".join(where)), params
        )
        return [
            {
                "tsMs": int(ts_ms),
                "source": source_v,
                "endpoint": endpoint_v,
                "totalMs": _safe_float(total_ms),
                "clusters": int(clusters) if clusters is not None else None,
                "zoom": int(zoom) if zoom is not None else None,
            }
            for ts_ms, source_v, endpoint_v, total_ms, clusters, zoom in rows
        ]

    def reset(self) -> None:
        # Stop the writer first so it can't write to a closed connection.
        self.stop(timeout_s=2.0)
        with self._lock:
            self.conn.close()
            self.path.unlink(missing_ok=True)

    def _run(self) -> None:
        self.ensure_schema()
        batch: list[dict[str, Any]] = []
        last_flush = time.time()

        def flush_batch() -> None:
            nonlocal batch
            if not batch:
                return
            with self._lock:
                self.conn.executemany(
                    INSERT_EVENTS_SQL,
                    [
                        (
                            e["ts_ms"],
                            e["endpoint"],
                            e["source"],
                            e["zoom"],
                            e["sw_lat"],
                            e["sw_lon"],
                            e["ne_lat"],
                            e["ne_lon"],
                            e["stats_json"],
                        )
                        for e in batch
                    ],
                )
                # Make results visible to readers immediately.
                self.conn.execute("CHECKPOINT;")
            batch = []

        while not self._stop.is_set():
            try:
                e = self._q.get(timeout=0.1)
            except queue.Empty:
                e = None

            if e is not None:
                batch.append(e)
                self._q.task_done()

            # Flush on size or time.
            now = time.time()
            if len(batch) >= 250 or (batch and (now - last_flush) >= 0.5):
                flush_batch()
                last_flush = now

        # Drain remaining
        try:
            while True:
                batch.append(self._q.get_nowait())
                self._q.task_done()
        except queue.Empty:
            pass
        flush_batch()
