from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Iterable, Iterator

import duckdb

from engine.duckdb_common import connect, duckdb_path, duckdb_threads
from engine.sql import (
    BATCH_SQL,
    CLUSTER_COUNTS_SQL_TEMPLATE,
    CREATE_LOCATION_TABLE_SQL,
    FILTERED_COUNT_SQL,
    LON_INSIDE_SQL,
    LON_WRAPPED_SQL,
    PAGE_SQL_TEMPLATE,
    UPDATE_LOCATION_POINT_SQL,
    UPSERT_LOCATION_SQL,
)
from engine.types import AggregateQueryError, CountQuery, CountSource
from locations.types import Location

logger = logging.getLogger(__name__)

SORTABLE_COLUMNS = ("id", "name", "latitude", "longitude", "quad_key")
SORT_ORDERS = ("asc", "desc")


def _like_pattern(name_filter: str) -> str:
    f = (name_filter or "").strip().lower()
    f = f.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{f}%"


def _row_to_location(row: tuple) -> Location:
    id_, name, lat, lon, quad_key = row
    return Location(
        id=int(id_),
        name=str(name or ""),
        latitude=float(lat),
        longitude=float(lon),
        quad_key=str(quad_key or ""),
    )


@dataclass
class DuckDBLocationStore(CountSource):
    """
    DuckDB-backed location table.

    Serves the bounding-box aggregate query by grouping the precomputed storage
    quad keys on a prefix in SQL, plus the listing and maintenance reads/writes.
    Each thread gets its own cursor on one shared database handle.
    """

    path: str = field(default_factory=duckdb_path)
    threads: int = field(default_factory=duckdb_threads)
    name: str = field(default="duckdb", init=False)
    _root: duckdb.DuckDBPyConnection | None = field(default=None, init=False, repr=False)
    _init_lock: threading.RLock = field(default_factory=threading.RLock, init=False, repr=False)
    _write_lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)
    _local: threading.local = field(default_factory=threading.local, init=False, repr=False)

    def ensure_schema(self) -> None:
        if self._root is not None:
            return
        with self._init_lock:
            if self._root is not None:
                return
            try:
                root = connect(self.path, threads=self.threads)
                root.execute(CREATE_LOCATION_TABLE_SQL)
            except (duckdb.Error, OSError) as e:
                logger.error(f"Opening location store {self.path} failed: {e}")
                raise AggregateQueryError(f"Location store {self.path} is unavailable: {e}") from e
            self._root = root

    def _conn(self) -> duckdb.DuckDBPyConnection:
        self.ensure_schema()
        c = getattr(self._local, "conn", None)
        if c is None:
            c = self._root.cursor()
            self._local.conn = c
        return c

    def close(self) -> None:
        with self._init_lock:
            if self._root is not None:
                self._root.close()
            self._root = None
            self._local = threading.local()

    def count(self) -> int:
        row = self._conn().execute("SELECT COUNT(*) FROM location").fetchone()
        return int(row[0] or 0) if row else 0

    def next_id(self) -> int:
        row = self._conn().execute("SELECT COALESCE(MAX(id), 0) FROM location").fetchone()
        return int(row[0] or 0) + 1 if row else 1

    def append(self, build: Callable[[int], Iterable[Location]]) -> int:
        """
        Insert new rows numbered from the first free id.

        `build` receives that id. Reading it and writing the rows happen under one
        lock, so concurrent appends get disjoint id ranges.
        """
        with self._write_lock:
            return self.insert_many(build(self.next_id()))

    def insert_many(self, locations: Iterable[Location]) -> int:
        rows = [
            (loc.id, loc.name, loc.latitude, loc.longitude, loc.quad_key)
            for loc in locations
        ]
        if rows:
            self._conn().executemany(UPSERT_LOCATION_SQL, rows)
        return len(rows)

    def update_many(self, locations: Iterable[Location]) -> int:
        rows = [
            (loc.latitude, loc.longitude, loc.quad_key, loc.id) for loc in locations
        ]
        if rows:
            self._conn().executemany(UPDATE_LOCATION_POINT_SQL, rows)
        return len(rows)

    def get(self, location_id: int) -> Location | None:
        row = (
            self._conn()
            .execute(
                "SELECT id, name, latitude, longitude, quad_key FROM location WHERE id = ?",
                [int(location_id)],
            )
            .fetchone()
        )
        return _row_to_location(row) if row else None

    def counts(self, query: CountQuery) -> dict[str, int]:
        b = query.bounds
        lon_sql = LON_WRAPPED_SQL if b.crosses_antimeridian else LON_INSIDE_SQL
        sql = CLUSTER_COUNTS_SQL_TEMPLATE.format(lon_sql=lon_sql)
        params = [
            query.zoom.value,
            b.sw.latitude,
            b.ne.latitude,
            b.sw.longitude,
            b.ne.longitude,
        ]
        logger.debug(f"Executing cluster count query at zoom {query.zoom.value} with {params[1:]}")
        try:
            rows = self._conn().execute(sql, params).fetchall()
        except duckdb.Error as e:
            logger.error(f"Cluster count query failed: {e}")
            raise AggregateQueryError(str(e)) from e
        return {str(cqk): int(cnt) for cqk, cnt in rows}

    def page(
        self,
        *,
        page: int,
        page_size: int,
        sort_by: str = "name",
        order: str = "asc",
        name_filter: str = "",
    ) -> tuple[list[Location], int]:
        """
        One page of locations plus the total matching the name filter.

        sort_by/order are interpolated into SQL, so they are checked against a
        fixed allow-list first.
        """
        if sort_by not in SORTABLE_COLUMNS:
            raise ValueError(f"Cannot sort by {sort_by!r}; expected one of {SORTABLE_COLUMNS}")
        if order not in SORT_ORDERS:
            raise ValueError(f"Sort order must be 'asc' or 'desc', got {order!r}")
        pattern = _like_pattern(name_filter)
        conn = self._conn()
        total_row = conn.execute(FILTERED_COUNT_SQL, [pattern]).fetchone()
        total = int(total_row[0] or 0) if total_row else 0
        rows = conn.execute(
            PAGE_SQL_TEMPLATE.format(sort_by=sort_by, order=order.upper()),
            [pattern, int(page_size), int(page) * int(page_size)],
        ).fetchall()
        return [_row_to_location(r) for r in rows], total

    def iter_batches(self, batch_size: int) -> Iterator[list[Location]]:
        """
        Walk the whole table in id order, `batch_size` rows at a time.
        """
        size = max(1, int(batch_size))
        offset = 0
        while True:
            rows = self._conn().execute(BATCH_SQL, [size, offset]).fetchall()
            if not rows:
                return
            yield [_row_to_location(r) for r in rows]
            offset += len(rows)
