from __future__ import annotations

from dataclasses import dataclass

from geo.quadkey import quadkey_for_point
from geo.types import GeoPoint
from geo.zoom import STORAGE_ZOOM


@dataclass(frozen=True)
class Location:
    """
    A stored point with its quad key precomputed at the storage zoom.

    The quad key is derived from the coordinates when not given, so every
    location that reaches storage carries exactly STORAGE_ZOOM digits.
    """

    id: int
    name: str
    latitude: float
    longitude: float
    quad_key: str = ""

    def __post_init__(self) -> None:
        p = GeoPoint(latitude=self.latitude, longitude=self.longitude)
        object.__setattr__(self, "latitude", p.latitude)
        object.__setattr__(self, "longitude", p.longitude)
        if not self.quad_key:
            object.__setattr__(self, "quad_key", quadkey_for_point(p, STORAGE_ZOOM))

    @property
    def point(self) -> GeoPoint:
        return GeoPoint(latitude=self.latitude, longitude=self.longitude)

    def with_point(self, point: GeoPoint) -> "Location":
        return Location(
            id=self.id,
            name=self.name,
            latitude=point.latitude,
            longitude=point.longitude,
            quad_key=quadkey_for_point(point, STORAGE_ZOOM),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "quadKey": self.quad_key,
        }


@dataclass(frozen=True)
class LocationPage:
    items: list[Location]
    page: int
    page_size: int
    total: int
    sort_by: str = "name"
    order: str = "asc"
    name_filter: str = ""

    @property
    def has_prev(self) -> bool:
        return self.page > 0

    @property
    def has_next(self) -> bool:
        return (self.page + 1) * self.page_size < self.total

    @property
    def from_index(self) -> int:
        """
        1-based index of the first item on this page (0 when empty).
        """
        if not self.items:
            return 0
        return self.page * self.page_size + 1

    @property
    def to_index(self) -> int:
        if not self.items:
            return 0
        return self.page * self.page_size + len(self.items)

    def to_dict(self) -> dict:
        return {
            "items": [loc.to_dict() for loc in self.items],
            "page": self.page,
            "pageSize": self.page_size,
            "total": self.total,
            "sortBy": self.sort_by,
            "order": self.order,
            "filter": self.name_filter,
            "hasPrev": self.has_prev,
            "hasNext": self.has_next,
            "from": self.from_index,
            "to": self.to_index,
        }
