from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping

from geo.errors import InvalidQuadKey
from geo.quadkey import is_valid_quadkey, tile_of
from geo.types import GeoPoint
from geo.zoom import ZoomLevel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Cluster:
    """
    Aggregate marker for every point inside one non-empty tile.
    """

    center: GeoPoint
    count: int

    def __post_init__(self) -> None:
        if isinstance(self.count, bool) or not isinstance(self.count, int) or self.count < 1:
            raise ValueError(f"Cluster count must be a positive integer, got {self.count!r}")

    def to_dict(self) -> dict:
        return {"center": self.center.to_dict(), "count": self.count}


def group_by_prefix(counts: Mapping[str, int], target_zoom: "int | ZoomLevel") -> dict[str, int]:
    """
    Sum per-tile counts by the first `target_zoom` digits of each quad key.

    Truncating a quad key yields its ancestor tile, so this is the same grouping the
    storage query does with SUBSTRING(quad_key, 1, zoom). Already-grouped input
    (keys of exactly `target_zoom` digits) passes through unchanged.
    """
    z = ZoomLevel.of(target_zoom).value
    out: dict[str, int] = {}
    for key, count in counts.items():
        if not is_valid_quadkey(key) or len(key) < z:
            raise InvalidQuadKey(
                f"Quad key {key!r} cannot be grouped at zoom {z}", value=key
            )
        n = int(count)
        if n < 0:
            raise ValueError(f"Negative count {n} for quad key {key!r}")
        prefix = key[:z]
        out[prefix] = out.get(prefix, 0) + n
    return out


def cluster(counts: Mapping[str, int], target_zoom: "int | ZoomLevel") -> dict[str, Cluster]:
    """
    Turn per-tile point counts into cluster markers at `target_zoom`.

    Returns quad key prefix -> Cluster. Tiles whose summed count is zero are
    omitted. Zoom 0 yields at most one cluster for the whole world; the storage
    zoom yields one cluster per non-empty stored tile.
    """
    zoom = ZoomLevel.of(target_zoom).require_stored()
    grouped = group_by_prefix(counts, zoom)
    logger.debug(f"Grouped {len(counts)} tiles into {len(grouped)} at zoom {zoom.value}")

    out: dict[str, Cluster] = {}
    for prefix, n in grouped.items():
        if n > 0:
            out[prefix] = Cluster(center=tile_of(prefix).center, count=n)
    return out


def clusters_to_json(clusters: Mapping[str, Cluster]) -> dict[str, dict]:
    return {prefix: c.to_dict() for prefix, c in clusters.items()}
