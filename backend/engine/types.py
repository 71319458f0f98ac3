from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from geo.aoi import BBox
from geo.zoom import ZoomLevel


@dataclass(frozen=True)
class CountQuery:
    """
    Request-scoped aggregate query coming from the map viewport.
    """

    bounds: BBox
    zoom: ZoomLevel

    def __post_init__(self) -> None:
        object.__setattr__(self, "zoom", ZoomLevel.of(self.zoom))


class AggregateQueryError(RuntimeError):
    """
    The backing store could not answer an aggregate query.

    Raised by storage-backed sources only; clustering is unavailable for the
    request and the caller decides what to do.
    """


class CountSource(Protocol):
    """
    Bounding-box aggregate query interface.

    Returns quad key prefix (length == query.zoom) -> number of stored points
    strictly inside the bounds.

    - InMemoryCountSource: scans a list of locations
    - DuckDBLocationStore: pushes the prefix GROUP BY down to SQL
    """

    name: str

    def counts(self, query: CountQuery) -> dict[str, int]: ...
