"""Airspace tiles - which airspace volumes cover a point, and how a tile is shaded.

Tiles are Mapbox Vector Tiles addressed by (zoom, x, y). Polygon features
carry flat ring lists whose winding separates outer rings from holes.
"""

from airspace.cache import TileCache
from airspace.decoder import AirspaceFeature, AirspaceLayer, MissingLayerError, TileDecodeError, decode_tile
from airspace.fetcher import TileFetcher
from airspace.maptype import AirspaceMapType, OverZoomMapType, TileCanvas
from airspace.query import AirspaceQuery
from airspace.tiles import TILE_SIZE, MAX_ZOOM, tile_from_world_point, tile_id

__all__ = [
    "AirspaceFeature",
    "AirspaceLayer",
    "AirspaceMapType",
    "AirspaceQuery",
    "MAX_ZOOM",
    "MissingLayerError",
    "OverZoomMapType",
    "TILE_SIZE",
    "TileCache",
    "TileCanvas",
    "TileDecodeError",
    "TileFetcher",
    "decode_tile",
    "tile_from_world_point",
    "tile_id",
]
