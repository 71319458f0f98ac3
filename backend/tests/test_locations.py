from __future__ import annotations

import random
from concurrent.futures import ThreadPoolExecutor

import pytest

from geo.aoi import BBox
from geo.errors import InvalidCoordinate
from geo.quadkey import quadkey_for_point, tile_of
from geo.zoom import STORAGE_ZOOM
from locations.service import list_locations, random_point, relocate_all, seed_locations
from locations.types import Location, LocationPage


def _named(n: int) -> list[Location]:
    rng = random.Random(3)
    return [
        Location(
            id=i,
            name=f"Place {i:02d}",
            latitude=rng.uniform(-60.0, 60.0),
            longitude=rng.uniform(-170.0, 170.0),
        )
        for i in range(1, n + 1)
    ]


def test_location_precomputes_storage_quad_key():
    loc = Location(id=1, name="Prague", latitude=50.0755, longitude=14.4378)
    assert len(loc.quad_key) == STORAGE_ZOOM
    assert loc.quad_key == quadkey_for_point(loc.point)
    assert tile_of(loc.quad_key).contains_point(loc.point)


def test_location_rejects_invalid_coordinates():
    with pytest.raises(InvalidCoordinate):
        Location(id=1, name="Nowhere", latitude=95.0, longitude=0.0)


def test_page_helpers():
    page = LocationPage(items=_named(10), page=1, page_size=10, total=25)
    assert page.has_prev and page.has_next
    assert (page.from_index, page.to_index) == (11, 20)
    last = LocationPage(items=_named(5), page=2, page_size=10, total=25)
    assert not last.has_next
    assert (last.from_index, last.to_index) == (21, 25)
    empty = LocationPage(items=[], page=0, page_size=10, total=0)
    assert (empty.from_index, empty.to_index, empty.has_prev, empty.has_next) == (0, 0, False, False)


def test_list_locations_pages_sorts_and_filters(store):
    store.insert_many(_named(25))

    first = list_locations(store, page=0)
    assert first.total == 25
    assert [l.name for l in first.items] == [f"Place {i:02d}" for i in range(1, 11)]

    desc = list_locations(store, page=0, page_size=3, order="DESC")
    assert [l.name for l in desc.items] == ["Place 25", "Place 24", "Place 23"]

    by_lat = list_locations(store, page=0, page_size=25, sort_by="latitude")
    lats = [l.latitude for l in by_lat.items]
    assert lats == sorted(lats)

    filtered = list_locations(store, page=0, name_filter="place 1")
    assert filtered.total == 10
    assert all("Place 1" in l.name for l in filtered.items)

    # LIKE wildcards in the filter are matched literally.
    assert list_locations(store, page=0, name_filter="%").total == 0


def test_list_locations_rejects_unknown_sort_or_order(store):
    with pytest.raises(ValueError):
        list_locations(store, sort_by="name; DROP TABLE location")
    with pytest.raises(ValueError):
        list_locations(store, order="sideways")
    with pytest.raises(ValueError):
        list_locations(store, page=-1)


def test_random_point_stays_inside_bounds():
    rng = random.Random(1)
    b = BBox.from_corners(10.0, 20.0, 11.0, 21.0)
    for _ in range(200):
        p = random_point(b, rng)
        assert 10.0 <= p.latitude <= 11.0
        assert 20.0 <= p.longitude <= 21.0

    pacific = BBox.from_corners(-10.0, 175.0, 10.0, -175.0)
    for _ in range(200):
        p = random_point(pacific, rng)
        assert p.longitude >= 175.0 or p.longitude <= -175.0


def test_relocate_all_moves_every_location_and_recomputes_quad_keys(store):
    store.insert_many(_named(23))
    bounds = BBox.from_corners(49.9, 14.2, 50.2, 14.7)

    n = relocate_all(store, bounds, batch_size=5, rng=random.Random(9))
    assert n == 23
    assert store.count() == 23

    for batch in store.iter_batches(100):
        for loc in batch:
            assert 49.9 <= loc.latitude <= 50.2
            assert 14.2 <= loc.longitude <= 14.7
            assert loc.quad_key == quadkey_for_point(loc.point)


def test_relocate_all_rejects_unindexable_bounds_before_writing(store):
    store.insert_many(_named(3))
    before = [loc for batch in store.iter_batches(10) for loc in batch]
    with pytest.raises(InvalidCoordinate):
        relocate_all(store, BBox.from_corners(80.0, 0.0, 89.0, 10.0))
    after = [loc for batch in store.iter_batches(10) for loc in batch]
    assert before == after


def test_seed_locations_appends_named_points(store):
    store.insert_many(_named(2))
    n = seed_locations(store, 4, BBox.from_corners(0.0, 0.0, 1.0, 1.0), random.Random(5))
    assert n == 4
    assert store.count() == 6
    assert store.get(6).name == "Location 6"


def test_random_point_redraws_values_on_the_box_edge():
    class EdgeFirst(random.Random):
        def __init__(self):
            super().__init__(4)
            self.edge_draws = 2

        def uniform(self, a, b):
            if self.edge_draws:
                self.edge_draws -= 1
                return a
            return super().uniform(a, b)

    b = BBox.from_corners(10.0, 20.0, 11.0, 21.0)
    p = random_point(b, EdgeFirst())
    assert b.contains_strict(p.latitude, p.longitude)


def test_random_point_rejects_bounds_without_interior():
    with pytest.raises(ValueError):
        random_point(BBox.from_corners(10.0, 20.0, 10.0, 21.0))
    with pytest.raises(ValueError):
        random_point(BBox.from_corners(10.0, 20.0, 11.0, 20.0))


def test_concurrent_seeding_hands_out_disjoint_ids(store):
    bounds = BBox.from_corners(0.0, 0.0, 1.0, 1.0)

    def run(i: int) -> int:
        return seed_locations(store, 200, bounds, random.Random(i))

    with ThreadPoolExecutor(max_workers=8) as pool:
        written = list(pool.map(run, range(8)))

    assert written == [200] * 8
    ids = sorted(loc.id for batch in store.iter_batches(500) for loc in batch)
    assert ids == list(range(1, 1601))
    assert store.get(1600).name == "Location 1600"
