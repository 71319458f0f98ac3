from __future__ import annotations

import random

import pytest
from shapely.geometry import box as shapely_box

from geo.errors import InvalidQuadKey, InvalidZoom
from geo.quadkey import decode, encode, is_valid_quadkey, quadkey_for_point, tile_of
from geo.types import GeoPoint, TileCoordinate
from geo.zoom import MAX_ZOOM, STORAGE_ZOOM


def _tile_box(key: str):
    t = tile_of(key)
    return shapely_box(t.sw.longitude, t.sw.latitude, t.ne.longitude, t.ne.latitude)


def _random_keys(n: int, *, seed: int = 7) -> list[str]:
    rng = random.Random(seed)
    return [
        "".join(rng.choice("0123") for _ in range(rng.randint(0, MAX_ZOOM)))
        for _ in range(n)
    ]


def test_encode_interleaves_y_then_x_bits_most_significant_first():
    # x=3 (011), y=5 (101) -> digits (y,x) per bit: (1,0)=2, (0,1)=1, (1,1)=3
    assert encode(TileCoordinate(x=3, y=5, zoom=3)) == "213"
    assert encode(TileCoordinate(x=0, y=0, zoom=1)) == "0"
    assert encode(TileCoordinate(x=1, y=0, zoom=1)) == "1"
    assert encode(TileCoordinate(x=0, y=1, zoom=1)) == "2"
    assert encode(TileCoordinate(x=1, y=1, zoom=1)) == "3"


def test_zoom_zero_is_the_empty_key():
    assert encode(TileCoordinate(x=0, y=0, zoom=0)) == ""
    assert decode("") == TileCoordinate(x=0, y=0, zoom=0)


def test_decode_then_encode_round_trips_every_tile_at_low_zoom():
    for z in range(0, 5):
        n = 1 << z
        for x in range(n):
            for y in range(n):
                t = TileCoordinate(x=x, y=y, zoom=z)
                k = encode(t)
                assert len(k) == z
                assert decode(k) == t


def test_encode_then_decode_round_trips_random_keys():
    for k in _random_keys(200):
        assert encode(decode(k)) == k


def test_truncation_is_the_ancestor_tile():
    for k in _random_keys(100, seed=11):
        child = decode(k)
        for m in range(len(k) + 1):
            prefix = k[:m]
            assert decode(prefix) == child.coarsen(m)
            assert encode(child.coarsen(m)) == prefix
            assert decode(prefix).contains(child)


def test_coarsen_to_a_finer_zoom_is_an_invalid_zoom():
    tile = decode("213")
    with pytest.raises(InvalidZoom):
        tile.coarsen(4)
    assert not tile.contains(decode("21"))


def test_truncated_tile_geographically_covers_the_child_tile():
    k = "1202102332221212"
    child_box = _tile_box(k)
    for m in range(len(k) + 1):
        assert _tile_box(k[:m]).covers(child_box)
        assert tile_of(k[:m]).contains_tile(tile_of(k))


def test_decode_rejects_bad_digits():
    for bad in ["4", "01x", "0 1", "-1", "０"]:
        with pytest.raises(InvalidQuadKey):
            decode(bad)
    with pytest.raises(InvalidQuadKey):
        decode(123)  # type: ignore[arg-type]


def test_decode_rejects_keys_finer_than_max_zoom():
    with pytest.raises(InvalidZoom):
        decode("0" * (MAX_ZOOM + 1))


def test_is_valid_quadkey():
    assert is_valid_quadkey("")
    assert is_valid_quadkey("0123")
    assert not is_valid_quadkey("0124")
    assert not is_valid_quadkey(None)
    assert not is_valid_quadkey("1" * (MAX_ZOOM + 1))


def test_tile_of_world_and_quadrants():
    world = tile_of("")
    assert world.center.latitude == pytest.approx(0.0, abs=1e-9)
    assert world.center.longitude == pytest.approx(0.0, abs=1e-9)
    assert world.sw.longitude == pytest.approx(-180.0)
    assert world.ne.longitude == pytest.approx(180.0)
    assert world.ne.latitude == pytest.approx(85.05112878, abs=1e-6)
    assert world.sw.latitude == pytest.approx(-85.05112878, abs=1e-6)

    ne_quadrant = tile_of("1")
    assert ne_quadrant.sw.longitude == pytest.approx(0.0)
    assert ne_quadrant.sw.latitude == pytest.approx(0.0, abs=1e-9)
    assert ne_quadrant.center.longitude == pytest.approx(90.0)
    # Mercator midpoint, not the arithmetic mean of the latitudes.
    assert ne_quadrant.center.latitude == pytest.approx(66.51326, abs=1e-4)


def test_point_quad_key_lands_in_its_tile():
    prague = GeoPoint(latitude=50.0755, longitude=14.4378)
    k = quadkey_for_point(prague)
    assert len(k) == STORAGE_ZOOM
    assert tile_of(k).contains_point(prague)
    assert k.startswith(quadkey_for_point(prague, 5))


def test_tile_coordinate_rejects_out_of_grid_indices():
    from geo.errors import InvalidCoordinate

    with pytest.raises(InvalidCoordinate):
        TileCoordinate(x=2, y=0, zoom=1)
    with pytest.raises(InvalidCoordinate):
        TileCoordinate(x=0, y=-1, zoom=3)
