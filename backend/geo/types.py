from __future__ import annotations

import math
from dataclasses import dataclass

from geo.errors import InvalidCoordinate, InvalidZoom
from geo.zoom import ZoomLevel


@dataclass(frozen=True)
class GeoPoint:
    """
    WGS84 coordinate in degrees.

    Latitude in [-90, 90], longitude in [-180, 180]; anything else is rejected
    rather than wrapped.
    """

    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        try:
            lat = float(self.latitude)
            lon = float(self.longitude)
        except (TypeError, ValueError) as e:
            raise InvalidCoordinate(
                f"Coordinates must be numbers, got ({self.latitude!r}, {self.longitude!r})",
                value=(self.latitude, self.longitude),
            ) from e
        if not (math.isfinite(lat) and -90.0 <= lat <= 90.0):
            raise InvalidCoordinate(f"Latitude {lat} outside [-90, 90]", value=lat)
        if not (math.isfinite(lon) and -180.0 <= lon <= 180.0):
            raise InvalidCoordinate(f"Longitude {lon} outside [-180, 180]", value=lon)
        object.__setattr__(self, "latitude", lat)
        object.__setattr__(self, "longitude", lon)

    def to_dict(self) -> dict[str, float]:
        return {"latitude": self.latitude, "longitude": self.longitude}


@dataclass(frozen=True)
class TileCoordinate:
    """
    One cell of the 2^zoom x 2^zoom grid covering the projected world.

    (0, 0) is the north-west corner; x grows east, y grows south.
    """

    x: int
    y: int
    zoom: ZoomLevel

    def __post_init__(self) -> None:
        zoom = ZoomLevel.of(self.zoom)
        object.__setattr__(self, "zoom", zoom)
        n = zoom.tiles_per_side
        for name, v in (("x", self.x), ("y", self.y)):
            if isinstance(v, bool) or not isinstance(v, int) or not 0 <= v < n:
                raise InvalidCoordinate(
                    f"Tile {name}={v!r} outside [0, {n - 1}] at zoom {zoom.value}",
                    value=v,
                )

    def coarsen(self, zoom: "int | ZoomLevel") -> "TileCoordinate":
        """
        Ancestor tile at a coarser (or equal) zoom: halve x and y once per level.
        """
        target = ZoomLevel.of(zoom)
        if target > self.zoom:
            raise InvalidZoom(
                f"Cannot coarsen zoom {self.zoom.value} tile to finer zoom {target.value}",
                value=target.value,
            )
        shift = self.zoom.value - target.value
        return TileCoordinate(x=self.x >> shift, y=self.y >> shift, zoom=target)

    def contains(self, other: "TileCoordinate") -> bool:
        if other.zoom < self.zoom:
            return False
        return other.coarsen(self.zoom) == self


@dataclass(frozen=True)
class Tile:
    """
    Geometry of a quad key, derived on demand and never stored.
    """

    quad_key: str
    coordinate: TileCoordinate
    sw: GeoPoint
    ne: GeoPoint
    center: GeoPoint

    def contains_point(self, point: GeoPoint) -> bool:
        return (
            self.sw.latitude <= point.latitude <= self.ne.latitude
            and self.sw.longitude <= point.longitude <= self.ne.longitude
        )

    def contains_tile(self, other: "Tile") -> bool:
        return self.contains_point(other.sw) and self.contains_point(other.ne)

    def to_dict(self) -> dict:
        return {
            "quadKey": self.quad_key,
            "x": self.coordinate.x,
            "y": self.coordinate.y,
            "zoom": self.coordinate.zoom.value,
            "sw": self.sw.to_dict(),
            "ne": self.ne.to_dict(),
            "center": self.center.to_dict(),
        }
