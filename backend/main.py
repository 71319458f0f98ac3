import logging
import os
import traceback

from fastapi import Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from api.clusters import handle_clusters
from api.deps import (
    get_count_source,
    get_location_store,
    invalidate_snapshots,
)
from api.schemas import ClusterOut, LocationPageOut, TileOut, UpdateOut
from engine.duckdb import DuckDBLocationStore
from engine.types import AggregateQueryError, CountSource
from geo.aoi import BBox
from geo.errors import GeoValueError
from geo.quadkey import tile_of
from locations.service import list_locations, relocate_all, seed_locations
from telemetry.singleton import get_store, reset_store

logging.basicConfig(
    level=(os.getenv("QUADCLUSTER_LOG_LEVEL") or "INFO").strip().upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def _cors_origins() -> list[str]:
    raw = os.getenv("QUADCLUSTER_CORS_ORIGINS") or "http://localhost:3000"
    return [o.strip() for o in raw.split(",") if o.strip()]


app = FastAPI(title="Quad Cluster API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(GeoValueError)
async def geo_value_error_handler(request: Request, exc: GeoValueError):
    logger.warning(f"Invalid input on {request.method} {request.url}: {exc}")
    return JSONResponse(
        status_code=400,
        content={"detail": str(exc), "error_type": type(exc).__name__},
    )


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    logger.warning(f"Bad request on {request.method} {request.url}: {exc}")
    return JSONResponse(
        status_code=400,
        content={"detail": str(exc), "error_type": "ValueError"},
    )


@app.exception_handler(AggregateQueryError)
async def aggregate_query_error_handler(request: Request, exc: AggregateQueryError):
    logger.error(f"Clustering unavailable on {request.method} {request.url}: {exc}")
    return JSONResponse(
        status_code=503,
        content={"detail": str(exc), "error_type": "AggregateQueryError"},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(
        f"Unhandled exception on {request.method} {request.url}: {exc}\n"
        f"{traceback.format_exc()}"
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "error_type": type(exc).__name__},
    )


@app.get("/")
def index():
    return RedirectResponse(url="/locations?page=0&sortBy=name&order=asc&filter=")


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/locations", response_model=LocationPageOut)
def locations(
    page: int = Query(0, ge=0),
    sortBy: str = "name",
    order: str = "asc",
    filter: str = "",
    store: DuckDBLocationStore = Depends(get_location_store),
):
    return list_locations(
        store, page=page, sort_by=sortBy, order=order, name_filter=filter
    ).to_dict()


@app.post("/locations/update", response_model=UpdateOut)
def update_locations(
    swLat: float,
    swLon: float,
    neLat: float,
    neLon: float,
    store: DuckDBLocationStore = Depends(get_location_store),
):
    """
    Move every stored location to a random point inside the bounds and recompute
    its quad key at the storage zoom.
    """
    bounds = BBox.from_corners(swLat, swLon, neLat, neLon)
    n = relocate_all(store, bounds)
    invalidate_snapshots()
    return {"updated": n, "message": f"Updated the quad keys for {n} locations."}


@app.post("/locations/seed")
def seed(
    count: int = Query(..., ge=1, le=1_000_000),
    swLat: float = -60.0,
    swLon: float = -180.0,
    neLat: float = 80.0,
    neLon: float = 180.0,
    store: DuckDBLocationStore = Depends(get_location_store),
):
    bounds = BBox.from_corners(swLat, swLon, neLat, neLon)
    n = seed_locations(store, count, bounds)
    invalidate_snapshots()
    return {"created": n, "total": store.count()}


@app.get("/clusters", response_model=dict[str, ClusterOut])
def clusters(
    swLat: float,
    swLon: float,
    neLat: float,
    neLon: float,
    zoom: int,
    source: CountSource = Depends(get_count_source),
):
    bounds = BBox.from_corners(swLat, swLon, neLat, neLon)
    return handle_clusters(source, bounds, zoom)


@app.get("/tiles/{quad_key}", response_model=TileOut)
def tile(quad_key: str):
    return tile_of(quad_key).to_dict()


@app.get("/telemetry/summary")
def telemetry_summary(source: str | None = None, endpoint: str | None = None):
    store = get_store()
    if store is None:
        return []
    return store.summary(source=source, endpoint=endpoint)


@app.get("/telemetry/slowest")
def telemetry_slowest(
    source: str | None = None, endpoint: str | None = None, limit: int = 25
):
    store = get_store()
    if store is None:
        return []
    return store.slowest(source=source, endpoint=endpoint, limit=limit)


@app.post("/telemetry/reset")
def telemetry_reset():
    reset_store()
    return {"status": "ok"}
