from __future__ import annotations

from dataclasses import dataclass

from geo.errors import InvalidZoom

# Practical resolution ceiling of the tile pyramid.
MAX_ZOOM = 23
# Every stored point carries a quad key of exactly this many digits.
STORAGE_ZOOM = 19


@dataclass(frozen=True, order=True)
class ZoomLevel:
    """
    Validated tile-pyramid resolution.

    Higher values are finer grids; "coarser than" means a smaller value.
    """

    value: int

    def __post_init__(self) -> None:
        v = self.value
        # bool is an int subclass; True/False are never a zoom level.
        if isinstance(v, bool) or not isinstance(v, int):
            raise InvalidZoom(f"Zoom level must be an integer, got {v!r}", value=v)
        if v < 0 or v > MAX_ZOOM:
            raise InvalidZoom(f"Zoom level {v} outside [0, {MAX_ZOOM}]", value=v)

    @classmethod
    def of(cls, value: "int | ZoomLevel") -> "ZoomLevel":
        if isinstance(value, ZoomLevel):
            return value
        return cls(value)

    @classmethod
    def storage(cls) -> "ZoomLevel":
        return cls(STORAGE_ZOOM)

    @property
    def tiles_per_side(self) -> int:
        return 1 << self.value

    def is_coarser_than(self, other: "int | ZoomLevel") -> bool:
        return self.value < ZoomLevel.of(other).value

    def require_stored(self) -> "ZoomLevel":
        """
        Reject levels finer than the storage resolution: no finer index exists.
        """
        if self.value > STORAGE_ZOOM:
            raise InvalidZoom(
                f"Zoom level {self.value} is finer than the storage zoom {STORAGE_ZOOM}",
                value=self.value,
            )
        return self

    def __int__(self) -> int:
        return self.value

    def __index__(self) -> int:
        return self.value
