"""AirspaceQuery - what airspace covers a point, and what a tile shows.

Both operations read the TileCache only. A tile that is not cached
(never fetched, still in flight, failed, or released) yields None, which
callers must keep distinct from an empty match list.
"""

from __future__ import annotations

from typing import Optional

from airspace.cache import TileCache
from airspace.containment import feature_contains
from airspace.decoder import AirspaceFeature, AirspaceLayer
from airspace.render import DrawInstruction, feature_instructions
from airspace.tiles import MAX_ZOOM, TILE_SIZE, tile_from_world_point

RESTRICTED_COLOR = "#bfbf40"
MAX_RESULTS = 5


def is_visible(feature: AirspaceFeature, altitude_m: float, include_restricted: bool) -> bool:
    """Altitude and restricted-airspace filter shared by query and render.

    The airspace floor must be strictly below the altitude.
    """
    if not feature.is_polygon:
        return False
    bottom_km = feature.bottom_km
    if bottom_km is None or not bottom_km < altitude_m / 1000:
        return False
    if feature.color == RESTRICTED_COLOR and not include_restricted:
        return False
    return True


def format_label(feature: AirspaceFeature) -> str:
    return f"[{feature.category}] {feature.name} ↧{feature.bottom} ↥{feature.top}"


class AirspaceQuery:
    """Point and render queries over a TileCache."""

    def __init__(self, cache: TileCache, max_zoom: int = MAX_ZOOM) -> None:
        self.cache = cache
        self.max_zoom = max_zoom

    def features_at(
        self,
        world_x: float,
        world_y: float,
        zoom: int,
        altitude_m: float,
        include_restricted: bool,
        limit: int = MAX_RESULTS,
    ) -> Optional[list[AirspaceFeature]]:
        """Return the first `limit` visible features containing the point.

        Features are returned in tile storage order. None when the tile is
        not cached.
        """
        pos = tile_from_world_point(world_x, world_y, zoom, self.max_zoom)
        layer = self.cache.lookup(pos.tile_id)
        if layer is None:
            return None

        matches = []
        for feature in layer:
            if (
                is_visible(feature, altitude_m, include_restricted)
                and feature_contains(pos.px, pos.py, feature, TILE_SIZE)
            ):
                matches.append(feature)
                if len(matches) == limit:
                    break
        return matches

    def airspaces_at(
        self,
        world_x: float,
        world_y: float,
        zoom: int,
        altitude_m: float,
        include_restricted: bool,
    ) -> Optional[list[str]]:
        """Labels of the airspaces at a world-pixel point, at most five.

        Args:
            world_x: World-pixel x (zoom 0, 256 px world).
            world_y: World-pixel y.
            zoom: Map zoom, clamped to max_zoom.
            altitude_m: Query altitude in meters.
            include_restricted: Whether restricted airspace is reported.

        Returns:
            Labels in feature order, or None if the tile is not loaded.
        """
        features = self.features_at(world_x, world_y, zoom, altitude_m, include_restricted)
        if features is None:
            return None
        return [format_label(f) for f in features]

    def render_tile(
        self,
        tile_id: int,
        altitude_m: float,
        include_restricted: bool,
        display_size: int = TILE_SIZE,
    ) -> Optional[list[DrawInstruction]]:
        """Draw instructions for a cached tile, None if it is not cached.

        display_size carries the over-zoom factor: TILE_SIZE << over_zoom.
        """
        layer = self.cache.lookup(tile_id)
        if layer is None:
            return None
        return self.render_layer(layer, altitude_m, include_restricted, display_size)

    def render_layer(
        self,
        layer: AirspaceLayer,
        altitude_m: float,
        include_restricted: bool,
        display_size: int = TILE_SIZE,
    ) -> list[DrawInstruction]:
        instructions: list[DrawInstruction] = []
        for feature in layer:
            if is_visible(feature, altitude_m, include_restricted):
                instructions.extend(feature_instructions(feature, display_size))
        return instructions
