"""Ring classification - group a feature's rings into polygons with holes.

Vector tile polygon features carry a flat list of rings. Outer rings and
holes are told apart only by winding: the first non-degenerate ring sets
the orientation of outer rings, rings wound the other way are holes of the
most recent outer ring.
"""

from __future__ import annotations

from typing import Sequence

from loguru import logger

from airspace.decoder import AirspaceFeature, Ring, TileDecodeError

# A polygon is its outer ring followed by zero or more holes.
Polygon = list[Ring]


def signed_area(ring: Sequence[tuple[float, float]]) -> float:
    """Twice the signed area of a ring (shoelace formula).

    Sum of (x[j] - x[i]) * (y[i] + y[j]) over edges (j, i), wrapping around.
    The sign gives the winding; zero means the ring is degenerate.
    """
    total = 0.0
    n = len(ring)
    j = n - 1
    for i in range(n):
        xi, yi = ring[i]
        xj, yj = ring[j]
        total += (xj - xi) * (yi + yj)
        j = i
    return total


def classify_rings(rings: Sequence[Ring]) -> list[Polygon]:
    """Group rings into polygons, outer ring first then its holes.

    Zero-area rings are skipped. A ring wound like the first
    non-degenerate ring starts a new polygon, any other ring is a hole of
    the current polygon. With at most one ring the input is returned as a
    single polygon untouched.
    """
    if len(rings) <= 1:
        return [list(rings)]

    polygons: list[Polygon] = []
    polygon: Polygon | None = None
    outer_negative: bool | None = None

    for ring in rings:
        area = signed_area(ring)
        if area == 0:
            continue

        if outer_negative is None:
            outer_negative = area < 0

        if outer_negative == (area < 0):
            if polygon:
                polygons.append(polygon)
            polygon = [ring]
        elif polygon is not None:
            polygon.append(ring)

    if polygon:
        polygons.append(polygon)

    return polygons


def feature_polygons(feature: AirspaceFeature) -> list[Polygon]:
    """Classified polygons of a feature, none if its geometry is corrupt.

    Rings are decoded lazily, so a bad command stream in one feature only
    shows up here. That feature is treated as degenerate and the rest of
    the tile stays usable.
    """
    try:
        rings = feature.load_rings()
    except TileDecodeError as e:
        logger.warning(f"Airspace feature {feature.name!r}: bad geometry: {e}")
        return []
    return classify_rings(rings)
