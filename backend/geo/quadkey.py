from __future__ import annotations

from functools import lru_cache

from geo.errors import InvalidQuadKey, InvalidZoom
from geo.geodesy import point_to_tile, tile_to_pixel_bounds, unproject
from geo.types import GeoPoint, Tile, TileCoordinate
from geo.zoom import MAX_ZOOM, STORAGE_ZOOM, ZoomLevel

_DIGITS = "0123"


def encode(tile: TileCoordinate) -> str:
    """
    Interleave the bits of x and y into a base-4 quad key.

    Each digit is 2 * y_bit + x_bit, most significant bit first, so digit 0 is the
    north-west quadrant, 1 north-east, 2 south-west and 3 south-east. Zoom 0
    yields the empty key.
    """
    chars: list[str] = []
    for i in range(tile.zoom.value - 1, -1, -1):
        mask = 1 << i
        digit = 0
        if tile.x & mask:
            digit |= 1
        if tile.y & mask:
            digit |= 2
        chars.append(_DIGITS[digit])
    return "".join(chars)


def decode(key: str) -> TileCoordinate:
    if not isinstance(key, str):
        raise InvalidQuadKey(f"Quad key must be a string, got {type(key).__name__}", value=key)
    if len(key) > MAX_ZOOM:
        raise InvalidZoom(
            f"Quad key of length {len(key)} exceeds max zoom {MAX_ZOOM}", value=len(key)
        )

    x = 0
    y = 0
    for ch in key:
        digit = _DIGITS.find(ch)
        if digit < 0:
            raise InvalidQuadKey(f"Invalid quad key digit {ch!r} in {key!r}", value=key)
        x = (x << 1) | (digit & 1)
        y = (y << 1) | (digit >> 1)
    return TileCoordinate(x=x, y=y, zoom=ZoomLevel(len(key)))


def is_valid_quadkey(key: object) -> bool:
    return (
        isinstance(key, str)
        and len(key) <= MAX_ZOOM
        and all(ch in _DIGITS for ch in key)
    )


def tile_of(key: str) -> Tile:
    """
    Decode a quad key into its geographic bounds and center.

    The center is the unprojected pixel midpoint of the tile, which is where the
    map places a cluster marker.
    """
    if not isinstance(key, str):
        raise InvalidQuadKey(f"Quad key must be a string, got {type(key).__name__}", value=key)
    return _tile_of(key)


@lru_cache(maxsize=4096)
def _tile_of(key: str) -> Tile:
    coord = decode(key)
    zoom = coord.zoom
    (x0, y0), (x1, y1) = tile_to_pixel_bounds(coord)
    nw = unproject(x0, y0, zoom)
    se = unproject(x1, y1, zoom)
    center = unproject((x0 + x1) / 2.0, (y0 + y1) / 2.0, zoom)
    return Tile(
        quad_key=key,
        coordinate=coord,
        sw=GeoPoint(latitude=se.latitude, longitude=nw.longitude),
        ne=GeoPoint(latitude=nw.latitude, longitude=se.longitude),
        center=center,
    )


def quadkey_for_point(point: GeoPoint, zoom: "int | ZoomLevel" = STORAGE_ZOOM) -> str:
    return encode(point_to_tile(point, zoom))
