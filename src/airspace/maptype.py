"""Airspace map types - tile lifecycle between a host map and the cache.

The host asks for a tile and gets a TileCanvas back at once. The fetch
runs as an asyncio task; its done-callback decodes the tile, inserts the
layer into the TileCache and renders draw instructions onto the canvas.
Releasing the canvas drops the cache entry. In-flight fetches are never
cancelled: a late completion for a released tile re-inserts it.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from functools import partial
from typing import Optional

from loguru import logger

from airspace.cache import TileCache
from airspace.decoder import (
    AIRSPACE_LAYER,
    AirspaceLayer,
    MissingLayerError,
    TileDecodeError,
    decode_tile,
)
from airspace.fetcher import TileFetcher
from airspace.query import AirspaceQuery
from airspace.render import DrawInstruction
from airspace.tiles import MAX_ZOOM, TILE_SIZE, clamp_zoom, tile_id

DEFAULT_ALTITUDE = 1000


@dataclass(eq=False)
class TileCanvas:
    """Placeholder handed to the host for one displayed tile.

    Attributes:
        tile_id: Id of the data tile backing this canvas.
        zoom: Zoom of the data tile (base zoom when over-zoomed).
        x: Tile column.
        y: Tile row.
        size: Display size in CSS pixels (TILE_SIZE << over_zoom).
        pixel_ratio: Output density; 2 doubles the backing store.
        instructions: Shapes to draw, filled in when the fetch completes.
    """

    tile_id: int
    zoom: int
    x: int
    y: int
    size: int = TILE_SIZE
    pixel_ratio: int = 1
    instructions: list[DrawInstruction] = field(default_factory=list)
    image_rendering: str = "pixelated"
    _done: asyncio.Event = field(default_factory=asyncio.Event, init=False, repr=False)

    @property
    def scale(self) -> int:
        return 2 if self.pixel_ratio == 2 else 1

    @property
    def width(self) -> int:
        return self.size * self.scale

    @property
    def height(self) -> int:
        return self.size * self.scale

    @property
    def done(self) -> bool:
        return self._done.is_set()

    def finish(self, instructions: Optional[list[DrawInstruction]] = None) -> None:
        if instructions is not None:
            self.instructions = instructions
        self._done.set()

    async def wait(self) -> None:
        await self._done.wait()

    def to_dict(self) -> dict:
        return {
            "tile_id": self.tile_id,
            "zoom": self.zoom,
            "x": self.x,
            "y": self.y,
            "size": self.size,
            "width": self.width,
            "height": self.height,
            "scale": self.scale,
            "image_rendering": self.image_rendering,
            "instructions": [i.to_dict() for i in self.instructions],
        }


class AirspaceMapType:
    """Airspace overlay for a host map.

    Creating a map type resets the cache it is given, so changing the
    altitude unit or the dataset starts from an empty cache.
    """

    def __init__(
        self,
        cache: TileCache,
        fetcher: TileFetcher,
        altitude: float = DEFAULT_ALTITUDE,
        max_zoom: int = MAX_ZOOM,
        min_zoom: int = 4,
        pixel_ratio: int = 1,
        show_restricted: bool = True,
        layer_name: str = AIRSPACE_LAYER,
    ) -> None:
        self.cache = cache
        self.fetcher = fetcher
        self.altitude = altitude or DEFAULT_ALTITUDE
        self.min_zoom = min_zoom
        self.max_zoom = max_zoom
        self.tile_size = TILE_SIZE
        self.pixel_ratio = pixel_ratio
        self.show_restricted = show_restricted
        self.layer_name = layer_name
        self.query = AirspaceQuery(cache, max_zoom=min(max_zoom, MAX_ZOOM))
        self._pending: set[asyncio.Task] = set()
        cache.clear()

    # -- host callbacks ----------------------------------------------------

    def get_tile(self, x: int, y: int, zoom: int) -> TileCanvas:
        """Return a canvas for tile (zoom, x, y) and start fetching it.

        Must be called from a running event loop.
        """
        return self._get_tile(x, y, zoom, zoom)

    def release_tile(self, canvas: TileCanvas) -> None:
        """The host no longer displays this tile. Idempotent."""
        self.cache.release(canvas.tile_id)

    async def load_tile(self, x: int, y: int, zoom: int) -> TileCanvas:
        """get_tile() and wait until the fetch has completed."""
        canvas = self.get_tile(x, y, zoom)
        await canvas.wait()
        return canvas

    def set_altitude(self, altitude: float) -> None:
        self.altitude = altitude

    def set_show_restricted(self, show: bool) -> None:
        self.show_restricted = show

    def airspaces_at(self, world_x: float, world_y: float, zoom: int) -> Optional[list[str]]:
        """Labels at a world-pixel point for the current altitude and filter."""
        return self.query.airspaces_at(
            world_x, world_y, zoom, self.altitude, self.show_restricted,
        )

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for every in-flight fetch to complete."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
            # Let done-callbacks run.
            await asyncio.sleep(0)

    # -- fetch path --------------------------------------------------------

    def _get_tile(self, x: int, y: int, base_zoom: int, dst_zoom: int) -> TileCanvas:
        over_zoom = dst_zoom - base_zoom
        canvas = TileCanvas(
            tile_id=tile_id(base_zoom, x, y),
            zoom=base_zoom,
            x=x,
            y=y,
            size=TILE_SIZE << over_zoom,
            pixel_ratio=self.pixel_ratio,
        )

        loop = asyncio.get_running_loop()
        task = loop.create_task(self.fetcher.fetch(base_zoom, x, y))
        self._pending.add(task)
        task.add_done_callback(partial(self._on_fetched, canvas))
        return canvas

    def _on_fetched(self, canvas: TileCanvas, task: asyncio.Task) -> None:
        self._pending.discard(task)
        instructions = None
        try:
            layer = self._decode_result(canvas, task)
            if layer is not None:
                instructions = self.query.render_layer(
                    layer, self.altitude, self.show_restricted, canvas.size,
                )
                self.cache.insert(canvas.tile_id, layer)
        finally:
            canvas.finish(instructions)

    def _decode_result(self, canvas: TileCanvas, task: asyncio.Task) -> Optional[AirspaceLayer]:
        where = f"{canvas.zoom}/{canvas.x}/{canvas.y}"
        if task.cancelled():
            logger.debug(f"Airspace tile {where}: fetch cancelled")
            return None
        exc = task.exception()
        if exc is not None:
            logger.warning(f"Airspace tile {where}: fetch error: {exc}")
            return None

        data = task.result()
        if data is None:
            return None

        try:
            return decode_tile(data, self.layer_name)
        except MissingLayerError:
            logger.debug(f"Airspace tile {where}: no airspace layer")
        except TileDecodeError as e:
            logger.warning(f"Airspace tile {where}: {e}")
        return None


class OverZoomMapType(AirspaceMapType):
    """Map type for zooms with no native tiles.

    Tiles of base_zoom are fetched and drawn scaled up to the requested
    zoom, so each canvas is TILE_SIZE << (zoom - base_zoom) pixels wide.
    """

    def __init__(
        self,
        cache: TileCache,
        fetcher: TileFetcher,
        altitude: float,
        base_zoom: int,
        zoom: int,
        **kwargs,
    ) -> None:
        if zoom < base_zoom:
            raise ValueError(f"zoom {zoom} is below base zoom {base_zoom}")
        super().__init__(cache, fetcher, altitude, max_zoom=zoom, **kwargs)
        self.min_zoom = zoom
        self.base_zoom = base_zoom
        self.over_zoom = zoom - base_zoom
        self.tile_size = TILE_SIZE << self.over_zoom
        # Point queries read the base zoom tiles this type caches.
        self.query = AirspaceQuery(cache, max_zoom=clamp_zoom(base_zoom))

    def get_tile(self, x: int, y: int, zoom: int) -> TileCanvas:
        return self._get_tile(x, y, self.base_zoom, self.min_zoom)
