"""Airspace tile fetcher.

Fetches raw ``.pbf`` tile bytes over HTTP. A non-2xx status and a
transport error both mean "no data for this tile" and come back as None.
No retries; the core imposes no timeout unless one is configured.
"""

from __future__ import annotations

from typing import Optional

import httpx
from loguru import logger

DEFAULT_TILE_URL = "https://airspaces.storage.googleapis.com/tiles/{z}/{x}/{y}.pbf"


class TileFetcher:
    """Fetch airspace tiles from a {z}/{x}/{y} URL template."""

    def __init__(
        self,
        url_template: str = DEFAULT_TILE_URL,
        timeout: Optional[float] = None,
    ) -> None:
        self.url_template = url_template
        self.timeout = timeout

    def url(self, zoom: int, x: int, y: int) -> str:
        return self.url_template.format(z=zoom, x=x, y=y)

    async def fetch(self, zoom: int, x: int, y: int) -> Optional[bytes]:
        """Return the tile bytes, or None if the tile could not be fetched."""
        url = self.url(zoom, x, y)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                resp = await client.get(url)
            except httpx.HTTPError as e:
                logger.warning(f"Airspace tile fetch failed: {zoom}/{x}/{y}: {e}")
                return None

        if not resp.is_success:
            logger.debug(f"Airspace tile {zoom}/{x}/{y}: HTTP {resp.status_code}")
            return None
        return resp.content
