"""Tile addressing for the airspace tile grid.

Three coordinate spaces are in play:

- world pixels: the host map's linear 256x256 world (zoom 0)
- tile pixels: offset of a point inside one display tile, 0..TILE_SIZE
- extent units: integer space a feature's rings are stored in (see decoder)

Every function here names the space it consumes and produces.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

TILE_SIZE = 256

# Airspace tiles are not produced above this zoom, higher zooms over-zoom it.
MAX_ZOOM = 13

# Must exceed MAX_ZOOM so the zoom never bleeds into the (x, y) component.
_ZOOM_SLOTS = 32


@dataclass(frozen=True)
class TilePosition:
    """A world point resolved to its tile.

    Attributes:
        tile_id: Stable integer id of the containing tile.
        zoom: Zoom the tile was resolved at (after clamping).
        x: Tile column.
        y: Tile row.
        px: Tile-local pixel column of the point.
        py: Tile-local pixel row of the point.
    """

    tile_id: int
    zoom: int
    x: int
    y: int
    px: int
    py: int


def tile_id(zoom: int, x: int, y: int) -> int:
    """Return the integer id of tile (zoom, x, y)."""
    return ((1 << zoom) * y + x) * _ZOOM_SLOTS + zoom


def tile_coords(tid: int) -> tuple[int, int, int]:
    """Inverse of tile_id(): return (zoom, x, y)."""
    zoom = tid % _ZOOM_SLOTS
    index = tid // _ZOOM_SLOTS
    y, x = divmod(index, 1 << zoom)
    return zoom, x, y


def clamp_zoom(zoom: int, max_zoom: int = MAX_ZOOM) -> int:
    return max(0, min(int(zoom), max_zoom))


def tile_from_world_point(
    world_x: float, world_y: float, zoom: int, max_zoom: int = MAX_ZOOM
) -> TilePosition:
    """Resolve a world-pixel point to its tile and tile-local pixel offset.

    The zoom is clamped to [0, max_zoom]; above the cap the data of the
    capped zoom is reused.
    """
    zoom = clamp_zoom(zoom, max_zoom)
    scale = 1 << zoom

    tx = math.floor(world_x * scale / TILE_SIZE)
    ty = math.floor(world_y * scale / TILE_SIZE)

    px = math.floor(world_x * scale) - tx * TILE_SIZE
    py = math.floor(world_y * scale) - ty * TILE_SIZE

    return TilePosition(tile_id=tile_id(zoom, tx, ty), zoom=zoom, x=tx, y=ty, px=px, py=py)


def is_valid_tile(zoom: int, x: int, y: int, max_zoom: int = MAX_ZOOM) -> bool:
    if zoom < 0 or zoom > max_zoom:
        return False
    n = 1 << zoom
    return 0 <= x < n and 0 <= y < n


def latlng_to_world(lat: float, lng: float) -> tuple[float, float]:
    """Project WGS84 lat/lng to Web Mercator world pixels (zoom 0).

    Only the HTTP surface uses this; the core expects already projected
    world-pixel input from its host.
    """
    # Mercator blows up at the poles, clip like the host widgets do.
    siny = math.sin(math.radians(lat))
    siny = min(max(siny, -0.9999), 0.9999)

    world_x = TILE_SIZE * (0.5 + lng / 360.0)
    world_y = TILE_SIZE * (0.5 - math.log((1 + siny) / (1 - siny)) / (4 * math.pi))
    return world_x, world_y
