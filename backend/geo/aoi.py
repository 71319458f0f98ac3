from __future__ import annotations

from dataclasses import dataclass

from geo.types import GeoPoint


@dataclass(frozen=True)
class BBox:
    """
    Map viewport bounds given by its south-west and north-east corners.

    Convention used throughout this repo:
    - a point qualifies only when it lies strictly inside the box
    - sw.longitude > ne.longitude means the box crosses the antimeridian
    """

    sw: GeoPoint
    ne: GeoPoint

    @classmethod
    def from_corners(
        cls, sw_lat: float, sw_lon: float, ne_lat: float, ne_lon: float
    ) -> "BBox":
        return cls(
            sw=GeoPoint(latitude=sw_lat, longitude=sw_lon),
            ne=GeoPoint(latitude=ne_lat, longitude=ne_lon),
        )

    @property
    def crosses_antimeridian(self) -> bool:
        return self.sw.longitude > self.ne.longitude

    def contains_strict(self, lat: float, lon: float) -> bool:
        if not (self.sw.latitude < lat < self.ne.latitude):
            return False
        if self.crosses_antimeridian:
            return lon > self.sw.longitude or lon < self.ne.longitude
        return self.sw.longitude < lon < self.ne.longitude

    def to_dict(self) -> dict[str, float]:
        return {
            "swLat": self.sw.latitude,
            "swLon": self.sw.longitude,
            "neLat": self.ne.latitude,
            "neLon": self.ne.longitude,
        }
