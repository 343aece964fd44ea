"""Point-in-polygon tests for airspace features.

Uses ray casting (crossing number), same as the obstacle checks: cast a
horizontal ray to +x and count the edges it crosses, odd means inside.
Rings are treated as closed whether or not the last point repeats the
first.
"""

from __future__ import annotations

from typing import Sequence

from airspace.decoder import AirspaceFeature, Ring
from airspace.rings import Polygon, feature_polygons
from airspace.tiles import TILE_SIZE


def point_in_ring(x: float, y: float, ring: Ring) -> bool:
    """Ray-casting test of (x, y) against one ring, same space as the ring."""
    n = len(ring)
    if n < 3:
        return False
    inside = False
    j = n - 1
    for i in range(n):
        xi, yi = ring[i]
        xj, yj = ring[j]
        if ((yi > y) != (yj > y)) and (
            x < (xj - xi) * (y - yi) / (yj - yi) + xi
        ):
            inside = not inside
        j = i
    return inside


def point_in_polygon(x: float, y: float, polygon: Polygon) -> bool:
    """Inside the outer ring and outside every hole."""
    if not polygon or not point_in_ring(x, y, polygon[0]):
        return False
    return not any(point_in_ring(x, y, hole) for hole in polygon[1:])


def point_in_polygons(x: float, y: float, polygons: Sequence[Polygon]) -> bool:
    """Inside at least one of the polygons."""
    return any(point_in_polygon(x, y, polygon) for polygon in polygons)


def feature_contains(
    px: float, py: float, feature: AirspaceFeature, display_size: int = TILE_SIZE
) -> bool:
    """Check whether a tile-pixel point lies inside a polygon feature.

    Args:
        px: Tile-local pixel column of the point.
        py: Tile-local pixel row of the point.
        feature: Feature whose rings are in its own extent units.
        display_size: Pixel size the tile is displayed at; the point is
            mapped back to extent units with display_size / extent.
    """
    if not feature.extent:
        return False
    ratio = display_size / feature.extent
    x, y = px / ratio, py / ratio
    return point_in_polygons(x, y, feature_polygons(feature))
