"""TileCache - decoded airspace layers keyed by tile id.

Entries live exactly as long as the host keeps the tile materialized:
inserted after a successful decode, removed when the tile is released.
There is no size or time based eviction.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Optional

from loguru import logger

if TYPE_CHECKING:
    from airspace.decoder import AirspaceLayer


class TileCache:
    """Mapping of tile id to decoded AirspaceLayer.

    Safe to mutate from several fetch completions; the last insert for an
    id wins. lookup() never waits on in-flight fetches, a tile that has not
    finished decoding is simply absent.
    """

    def __init__(self) -> None:
        self._layers: dict[int, AirspaceLayer] = {}
        self._lock = threading.Lock()

    def lookup(self, tile_id: int) -> Optional[AirspaceLayer]:
        with self._lock:
            return self._layers.get(tile_id)

    def insert(self, tile_id: int, layer: AirspaceLayer) -> None:
        """Store the layer for a tile, replacing any previous entry."""
        with self._lock:
            self._layers[tile_id] = layer
        logger.debug(f"Tile cache: inserted {tile_id} ({len(layer)} features)")

    def release(self, tile_id: int) -> bool:
        """Drop the entry for a tile.

        Returns:
            True if an entry was removed, False if the id was unknown.
        """
        with self._lock:
            removed = self._layers.pop(tile_id, None) is not None
        if removed:
            logger.debug(f"Tile cache: released {tile_id}")
        return removed

    def clear(self) -> None:
        with self._lock:
            count = len(self._layers)
            self._layers.clear()
        if count:
            logger.debug(f"Tile cache: cleared {count} tiles")

    def tile_ids(self) -> list[int]:
        with self._lock:
            return list(self._layers)

    def __contains__(self, tile_id: object) -> bool:
        with self._lock:
            return tile_id in self._layers

    def __len__(self) -> int:
        with self._lock:
            return len(self._layers)
