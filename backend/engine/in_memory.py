from __future__ import annotations

from typing import Iterable

from engine.types import CountQuery, CountSource
from locations.types import Location


class InMemoryCountSource(CountSource):
    """
    Holds locations in a list and groups their quad keys by prefix per request.

    Linear in the number of locations; meant for tests and small snapshots.
    """

    name = "in_memory"

    def __init__(self, locations: Iterable[Location] = ()):
        self.locations: list[Location] = list(locations)

    def counts(self, query: CountQuery) -> dict[str, int]:
        z = query.zoom.value
        b = query.bounds
        out: dict[str, int] = {}
        for loc in self.locations:
            if not b.contains_strict(loc.latitude, loc.longitude):
                continue
            prefix = loc.quad_key[:z]
            out[prefix] = out.get(prefix, 0) + 1
        return out
