from __future__ import annotations

import logging
import random

from engine.duckdb import DuckDBLocationStore
from engine.duckdb_common import update_batch_size
from geo.aoi import BBox
from geo.geodesy import clamp_latitude
from geo.types import GeoPoint
from locations.types import Location, LocationPage

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10


def list_locations(
    store: DuckDBLocationStore,
    *,
    page: int = 0,
    page_size: int = DEFAULT_PAGE_SIZE,
    sort_by: str = "name",
    order: str = "asc",
    name_filter: str = "",
) -> LocationPage:
    """
    Paginated, sorted listing of stored locations filtered on name (case-insensitive).
    """
    if page < 0:
        raise ValueError(f"Page must be >= 0, got {page}")
    if page_size < 1:
        raise ValueError(f"Page size must be >= 1, got {page_size}")
    order = (order or "asc").strip().lower()
    items, total = store.page(
        page=page,
        page_size=page_size,
        sort_by=sort_by,
        order=order,
        name_filter=name_filter,
    )
    return LocationPage(
        items=items,
        page=page,
        page_size=page_size,
        total=total,
        sort_by=sort_by,
        order=order,
        name_filter=name_filter,
    )


def random_point(bounds: BBox, rng: random.Random | None = None) -> GeoPoint:
    """
    Uniform random point strictly inside the bounds (longitude wraps for
    antimeridian boxes). Draws that land on an edge are repeated.
    """
    r = rng or random
    sw, ne = bounds.sw, bounds.ne
    lon_span = ne.longitude - sw.longitude
    if bounds.crosses_antimeridian:
        lon_span += 360.0
    if not (sw.latitude < ne.latitude and lon_span > 0.0):
        raise ValueError(f"Bounds {bounds.to_dict()} have no interior to place points in")
    while True:
        lat = r.uniform(sw.latitude, ne.latitude)
        lon = sw.longitude + r.uniform(0.0, lon_span)
        if lon > 180.0:
            lon -= 360.0
        if bounds.contains_strict(lat, lon):
            return GeoPoint(latitude=lat, longitude=lon)


def seed_locations(
    store: DuckDBLocationStore,
    n: int,
    bounds: BBox,
    rng: random.Random | None = None,
) -> int:
    """
    Create `n` named random locations inside the bounds; returns how many were written.
    """
    points = [random_point(bounds, rng) for _ in range(int(n))]

    def build(start: int) -> list[Location]:
        return [
            Location(id=i, name=f"Location {i}", latitude=p.latitude, longitude=p.longitude)
            for i, p in enumerate(points, start=start)
        ]

    written = store.append(build)
    logger.info(f"Seeded {written} locations inside {bounds.to_dict()}")
    return written


def relocate_all(
    store: DuckDBLocationStore,
    bounds: BBox,
    *,
    batch_size: int | None = None,
    rng: random.Random | None = None,
) -> int:
    """
    Give every stored location a new random point inside the bounds and recompute
    its storage quad key, one batch at a time. Returns the number of updated rows.
    """
    # Fail before touching any row if the bounds can't be indexed.
    clamp_latitude(bounds.sw.latitude)
    clamp_latitude(bounds.ne.latitude)
    size = batch_size or update_batch_size()
    total = 0
    for batch in store.iter_batches(size):
        moved = [loc.with_point(random_point(bounds, rng)) for loc in batch]
        total += store.update_many(moved)
    logger.info(f"Updated the quad keys for {total} locations")
    return total
