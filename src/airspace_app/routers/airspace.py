"""Airspace API - "what airspace is here" and tile shading over HTTP.

The router plays the host map: it owns one AirspaceMapType per app
(``app.state.airspace``), projects lat/lng to world pixels, requests and
releases tiles. A point query only sees tiles that are already cached
unless ``ensure=true`` loads the containing tile first.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request
from loguru import logger
from pydantic import BaseModel, Field

from airspace.cache import TileCache
from airspace.fetcher import TileFetcher
from airspace.maptype import AirspaceMapType
from airspace.tiles import is_valid_tile, latlng_to_world, tile_from_world_point, tile_id
from airspace_app.config import settings

router = APIRouter(prefix="/api/airspace", tags=["airspace"])


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------

class AirspaceSettingsRequest(BaseModel):
    """Update the altitude and restricted-airspace filter."""
    altitude: Optional[float] = Field(default=None, gt=0)
    show_restricted: Optional[bool] = None


class ResetRequest(BaseModel):
    """Start over with a new map type and an empty tile cache."""
    altitude: Optional[float] = Field(default=None, gt=0)


# ---------------------------------------------------------------------------
# Map type ownership
# ---------------------------------------------------------------------------

def create_map_type(
    cache: Optional[TileCache] = None,
    fetcher: Optional[TileFetcher] = None,
    altitude: Optional[float] = None,
) -> AirspaceMapType:
    """Build a map type from settings. The cache it is given is cleared."""
    return AirspaceMapType(
        cache if cache is not None else TileCache(),
        fetcher or TileFetcher(settings.airspace_tile_url, settings.airspace_fetch_timeout),
        altitude=altitude or settings.airspace_default_altitude,
        max_zoom=settings.airspace_max_zoom,
        min_zoom=settings.airspace_min_zoom,
        pixel_ratio=settings.airspace_pixel_ratio,
        show_restricted=settings.airspace_show_restricted,
        layer_name=settings.airspace_layer,
    )


def get_map_type(request: Request) -> AirspaceMapType:
    map_type = getattr(request.app.state, "airspace", None)
    if map_type is None:
        map_type = create_map_type()
        request.app.state.airspace = map_type
    return map_type


def _check_tile(map_type: AirspaceMapType, z: int, x: int, y: int) -> None:
    if z < 0 or z > map_type.query.max_zoom:
        raise HTTPException(
            status_code=400,
            detail=f"Zoom level must be 0-{map_type.query.max_zoom}",
        )
    if not is_valid_tile(z, x, y, map_type.query.max_zoom):
        raise HTTPException(status_code=400, detail=f"Tile {z}/{x}/{y} is outside the grid")


def _settings_payload(map_type: AirspaceMapType) -> dict:
    return {
        "altitude": map_type.altitude,
        "show_restricted": map_type.show_restricted,
        "max_zoom": map_type.query.max_zoom,
        "cached_tiles": len(map_type.cache),
    }


# ---------------------------------------------------------------------------
# Point query
# ---------------------------------------------------------------------------

@router.get("/at")
async def airspaces_at(
    request: Request,
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    zoom: int = Query(10, ge=0, le=22),
    altitude: Optional[float] = Query(None, gt=0),
    restricted: Optional[bool] = None,
    ensure: bool = False,
):
    """List the airspaces at lat/lng below the given altitude (meters).

    ``loaded`` is false when the containing tile is not cached; that is
    not the same as an empty list of airspaces.
    """
    map_type = get_map_type(request)
    world_x, world_y = latlng_to_world(lat, lng)
    pos = tile_from_world_point(world_x, world_y, zoom, map_type.query.max_zoom)

    if ensure and pos.tile_id not in map_type.cache:
        await map_type.load_tile(pos.x, pos.y, pos.zoom)

    altitude_m = altitude if altitude is not None else map_type.altitude
    include_restricted = restricted if restricted is not None else map_type.show_restricted
    labels = map_type.query.airspaces_at(world_x, world_y, zoom, altitude_m, include_restricted)

    return {
        "loaded": labels is not None,
        "tile": {"z": pos.zoom, "x": pos.x, "y": pos.y, "id": pos.tile_id},
        "altitude": altitude_m,
        "airspaces": labels or [],
    }


# ---------------------------------------------------------------------------
# Tile lifecycle
# ---------------------------------------------------------------------------

@router.get("/tile/{z}/{x}/{y}")
async def get_tile(request: Request, z: int, x: int, y: int):
    """Load a tile and return its draw instructions.

    A tile that cannot be fetched or decoded comes back with
    ``loaded: false`` and no instructions.
    """
    map_type = get_map_type(request)
    _check_tile(map_type, z, x, y)

    canvas = await map_type.load_tile(x, y, z)
    data = canvas.to_dict()
    data["loaded"] = canvas.tile_id in map_type.cache
    return data


@router.delete("/tile/{z}/{x}/{y}")
async def release_tile(request: Request, z: int, x: int, y: int):
    """Release a tile from the cache. Unknown tiles are not an error."""
    map_type = get_map_type(request)
    _check_tile(map_type, z, x, y)
    released = map_type.cache.release(tile_id(z, x, y))
    return {"released": released}


# ---------------------------------------------------------------------------
# Filter settings
# ---------------------------------------------------------------------------

@router.get("/settings")
async def get_settings(request: Request):
    """Current altitude, restricted filter and cache size."""
    return _settings_payload(get_map_type(request))


@router.put("/settings")
async def update_settings(request: Request, body: AirspaceSettingsRequest):
    """Change the altitude and/or restricted filter.

    Tiles already rendered keep their shading; point queries use the new
    values right away.
    """
    map_type = get_map_type(request)
    if body.altitude is not None:
        map_type.set_altitude(body.altitude)
    if body.show_restricted is not None:
        map_type.set_show_restricted(body.show_restricted)
    return _settings_payload(map_type)


@router.post("/reset")
async def reset(request: Request, body: ResetRequest):
    """Replace the map type, which empties the tile cache."""
    old = get_map_type(request)
    map_type = create_map_type(old.cache, old.fetcher, body.altitude or old.altitude)
    request.app.state.airspace = map_type
    logger.info(f"Airspace map type reset (altitude={map_type.altitude:.0f} m)")
    return _settings_payload(map_type)
