from __future__ import annotations

import math

from geo.errors import InvalidCoordinate
from geo.types import GeoPoint, TileCoordinate
from geo.zoom import ZoomLevel

TILE_SIZE = 256

# Latitude where spherical Web Mercator becomes a square world.
MERCATOR_MAX_LAT = 85.05112878
# Inputs up to this (rounded) limit are accepted and clamped to MERCATOR_MAX_LAT.
MERCATOR_LIMIT_TOLERANCE = 85.05113


def map_size(zoom: "int | ZoomLevel", tile_size: int = TILE_SIZE) -> int:
    """
    Side of the projected world square in pixels.
    """
    return int(tile_size) << ZoomLevel.of(zoom).value


def clamp_latitude(lat: float) -> float:
    if abs(lat) > MERCATOR_LIMIT_TOLERANCE:
        raise InvalidCoordinate(
            f"Latitude {lat} beyond the Web Mercator limit of ±{MERCATOR_LIMIT_TOLERANCE}",
            value=lat,
        )
    return max(-MERCATOR_MAX_LAT, min(MERCATOR_MAX_LAT, lat))


def project(
    point: GeoPoint, zoom: "int | ZoomLevel", tile_size: int = TILE_SIZE
) -> tuple[float, float]:
    """
    Spherical Mercator forward projection to world pixel coordinates.

    Latitude is clamped to the Mercator-valid range (±85.05112878) so the poles
    don't project to infinity; latitudes beyond ±85.05113 raise InvalidCoordinate.
    """
    size = map_size(zoom, tile_size)
    lat = clamp_latitude(point.latitude)

    x = (point.longitude + 180.0) / 360.0
    sin_lat = math.sin(math.radians(lat))
    y = 0.5 - math.log((1.0 + sin_lat) / (1.0 - sin_lat)) / (4.0 * math.pi)
    return x * size, y * size


def unproject(
    pixel_x: float, pixel_y: float, zoom: "int | ZoomLevel", tile_size: int = TILE_SIZE
) -> GeoPoint:
    """
    Inverse of `project`.
    """
    size = float(map_size(zoom, tile_size))
    x = pixel_x / size - 0.5
    y = 0.5 - pixel_y / size

    lat = 90.0 - 360.0 * math.atan(math.exp(-y * 2.0 * math.pi)) / math.pi
    lon = 360.0 * x
    return GeoPoint(latitude=lat, longitude=lon)


def pixel_to_tile(
    pixel_x: float, pixel_y: float, zoom: "int | ZoomLevel", tile_size: int = TILE_SIZE
) -> TileCoordinate:
    z = ZoomLevel.of(zoom)
    n = z.tiles_per_side
    tx = int(math.floor(pixel_x / tile_size))
    ty = int(math.floor(pixel_y / tile_size))
    # Longitude +180 and the Mercator limits land exactly on the far edge.
    tx = max(0, min(n - 1, tx))
    ty = max(0, min(n - 1, ty))
    return TileCoordinate(x=tx, y=ty, zoom=z)


def tile_to_pixel_bounds(
    tile: TileCoordinate, tile_size: int = TILE_SIZE
) -> tuple[tuple[float, float], tuple[float, float]]:
    """
    (top-left, bottom-right) world pixel corners of a tile.
    """
    x0 = float(tile.x * tile_size)
    y0 = float(tile.y * tile_size)
    return (x0, y0), (x0 + tile_size, y0 + tile_size)


def point_to_tile(point: GeoPoint, zoom: "int | ZoomLevel") -> TileCoordinate:
    px, py = project(point, zoom)
    return pixel_to_tile(px, py, zoom)
