"""Draw instructions for airspace shading.

The core does not paint. It hands the host one filled and stroked shape
per polygon, already scaled to the tile's display pixels.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from airspace.decoder import AirspaceFeature
from airspace.rings import feature_polygons

FILL_ALPHA = "70"
STROKE_ALPHA = "75"


@dataclass(frozen=True)
class DrawInstruction:
    """One polygon (outer ring + holes) to fill with even-odd and stroke."""

    rings: tuple[tuple[tuple[int, int], ...], ...]
    fill_color: str
    stroke_color: str
    fill_rule: str = "evenodd"

    def to_dict(self) -> dict:
        return {
            "rings": [[list(p) for p in ring] for ring in self.rings],
            "fill_color": self.fill_color,
            "stroke_color": self.stroke_color,
            "fill_rule": self.fill_rule,
        }


def _round(v: float) -> int:
    # Half up, like canvas pixel snapping (round() would go to even).
    return math.floor(v + 0.5)


def feature_instructions(feature: AirspaceFeature, display_size: int) -> list[DrawInstruction]:
    """Scale a feature's classified polygons to display pixels."""
    if not feature.extent:
        return []
    ratio = display_size / feature.extent
    fill = feature.color + FILL_ALPHA
    stroke = feature.color + STROKE_ALPHA

    instructions = []
    for polygon in feature_polygons(feature):
        rings = tuple(
            tuple((_round(x * ratio), _round(y * ratio)) for x, y in ring)
            for ring in polygon
            if ring
        )
        if rings:
            instructions.append(DrawInstruction(rings=rings, fill_color=fill, stroke_color=stroke))
    return instructions
