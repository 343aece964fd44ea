"""Tests for tile addressing - tile ids, world point resolution, projection."""

import pytest

from airspace.tiles import (
    MAX_ZOOM,
    TILE_SIZE,
    clamp_zoom,
    is_valid_tile,
    latlng_to_world,
    tile_coords,
    tile_from_world_point,
    tile_id,
)


@pytest.mark.unit
class TestTileId:
    """tile_id() derivation and its inverse."""

    def test_formula(self):
        assert tile_id(0, 0, 0) == 0
        assert tile_id(1, 1, 0) == (2 * 0 + 1) * 32 + 1
        assert tile_id(3, 5, 6) == (8 * 6 + 5) * 32 + 3

    def test_injective_low_zooms_exhaustive(self):
        """Every tile of zooms 0-7 gets its own id."""
        ids = [
            tile_id(z, x, y)
            for z in range(8)
            for x in range(1 << z)
            for y in range(1 << z)
        ]
        assert len(ids) == len(set(ids))

    def test_injective_up_to_max_zoom(self):
        """Grid corners, edges and centers stay distinct across all zooms."""
        ids = []
        for z in range(MAX_ZOOM + 1):
            n = 1 << z
            picks = sorted({0, 1, n // 2, n - 2, n - 1} & set(range(n)))
            ids += [tile_id(z, x, y) for x in picks for y in picks]
        assert len(ids) == len(set(ids))

    def test_inverse(self):
        for z, x, y in [(0, 0, 0), (4, 15, 3), (13, 8191, 8191), (13, 4321, 17)]:
            assert tile_coords(tile_id(z, x, y)) == (z, x, y)


@pytest.mark.unit
class TestTileFromWorldPoint:
    """World pixel point -> tile and tile-local pixel."""

    def test_zoom_zero_is_single_tile(self):
        pos = tile_from_world_point(100.7, 42.2, 0)
        assert (pos.zoom, pos.x, pos.y) == (0, 0, 0)
        assert (pos.px, pos.py) == (100, 42)
        assert pos.tile_id == 0

    def test_zoom_one(self):
        pos = tile_from_world_point(200, 50, 1)
        assert (pos.x, pos.y) == (1, 0)
        assert (pos.px, pos.py) == (400 - TILE_SIZE, 100)
        assert pos.tile_id == tile_id(1, 1, 0)

    def test_zoom_two(self):
        pos = tile_from_world_point(200, 200, 2)
        assert (pos.x, pos.y) == (3, 3)
        assert (pos.px, pos.py) == (32, 32)

    def test_zoom_clamped_to_max(self):
        """Zooms past the data cap reuse the cap's tiles."""
        high = tile_from_world_point(128.3, 77.9, 17)
        capped = tile_from_world_point(128.3, 77.9, MAX_ZOOM)
        assert high == capped
        assert high.zoom == MAX_ZOOM

    def test_negative_zoom_clamped(self):
        assert tile_from_world_point(10, 10, -3).zoom == 0

    def test_local_pixel_within_tile(self):
        for wx, wy in [(0.0, 0.0), (255.99, 255.99), (17.3, 201.8)]:
            pos = tile_from_world_point(wx, wy, 9)
            assert 0 <= pos.px < TILE_SIZE
            assert 0 <= pos.py < TILE_SIZE


@pytest.mark.unit
class TestHelpers:

    def test_clamp_zoom(self):
        assert clamp_zoom(5) == 5
        assert clamp_zoom(20) == MAX_ZOOM
        assert clamp_zoom(20, max_zoom=10) == 10

    def test_is_valid_tile(self):
        assert is_valid_tile(0, 0, 0)
        assert is_valid_tile(2, 3, 3)
        assert not is_valid_tile(2, 4, 0)
        assert not is_valid_tile(2, -1, 0)
        assert not is_valid_tile(14, 0, 0)

    def test_latlng_origin_is_world_center(self):
        x, y = latlng_to_world(0.0, 0.0)
        assert x == pytest.approx(128.0)
        assert y == pytest.approx(128.0)

    def test_latlng_edges(self):
        x, _ = latlng_to_world(0.0, -180.0)
        assert x == pytest.approx(0.0)
        _, y_north = latlng_to_world(60.0, 0.0)
        _, y_south = latlng_to_world(-60.0, 0.0)
        assert y_north < 128.0 < y_south
        assert y_north + y_south == pytest.approx(256.0)
