"""Shared fixtures: vector tile builders and a scriptable tile fetcher."""

from __future__ import annotations

import asyncio
from typing import Optional

import pytest
from mapbox_vector_tile.Mapbox import vector_tile_pb2

from airspace.decoder import GEOM_POLYGON, AirspaceFeature

# Squares in y-down tile coordinates. OUTER_CCW has negative signed area,
# HOLE_CW positive, so they classify as outer ring + hole.
OUTER_CCW = [(10, 10), (10, 240), (240, 240), (240, 10)]
HOLE_CW = [(100, 100), (150, 100), (150, 150), (100, 150)]


def _command(cmd: int, count: int) -> int:
    return (cmd & 0x7) | (count << 3)


def _zigzag(n: int) -> int:
    return (n << 1) ^ (n >> 31)


def encode_rings(rings: list[list[tuple[int, int]]]) -> list[int]:
    """Pack rings as MoveTo / LineTo / ClosePath geometry commands."""
    geometry: list[int] = []
    cx = cy = 0
    for ring in rings:
        x, y = ring[0]
        geometry += [_command(1, 1), _zigzag(x - cx), _zigzag(y - cy)]
        cx, cy = x, y
        geometry.append(_command(2, len(ring) - 1))
        for x, y in ring[1:]:
            geometry += [_zigzag(x - cx), _zigzag(y - cy)]
            cx, cy = x, y
        geometry.append(_command(7, 1))
    return geometry


def truncated_geometry(rings: list[list[tuple[int, int]]]) -> list[int]:
    """Packed rings cut off in the middle of the last coordinate pair."""
    return encode_rings(rings)[:-2]


def asp_props(
    name: str = "Test CTR",
    category: str = "CTR",
    bottom: str = "SFC",
    top: str = "FL65",
    bottom_km: float = 0.0,
    color: str = "#ff0000",
) -> dict:
    return {
        "name": name,
        "category": category,
        "bottom": bottom,
        "top": top,
        "bottom_km": bottom_km,
        "color": color,
    }


def make_feature(
    rings: list[list[tuple[int, int]]],
    extent: int = 256,
    geom_type: int = GEOM_POLYGON,
    **props,
) -> AirspaceFeature:
    return AirspaceFeature(
        type=geom_type,
        extent=extent,
        properties=asp_props(**props),
        geometry=encode_rings(rings),
    )


def _set_value(value, v) -> None:
    if isinstance(v, bool):
        value.bool_value = v
    elif isinstance(v, int):
        value.sint_value = v
    elif isinstance(v, float):
        value.double_value = v
    else:
        value.string_value = str(v)


def build_tile(
    features: list[dict],
    layer_name: str = "asp",
    extent: int = 256,
) -> bytes:
    """Encode features ({"rings" or "geometry", "properties", "type"?}) as one tile layer."""
    tile = vector_tile_pb2.tile()
    layer = tile.layers.add()
    layer.name = layer_name
    layer.version = 2
    layer.extent = extent

    keys: dict[str, int] = {}
    values: dict[tuple, int] = {}

    for f in features:
        pb = layer.features.add()
        pb.type = f.get("type", GEOM_POLYGON)
        for k, v in f["properties"].items():
            if k not in keys:
                keys[k] = len(keys)
                layer.keys.append(k)
            vkey = (type(v).__name__, v)
            if vkey not in values:
                values[vkey] = len(values)
                _set_value(layer.values.add(), v)
            pb.tags.extend([keys[k], values[vkey]])
        pb.geometry.extend(f["geometry"] if "geometry" in f else encode_rings(f["rings"]))

    return tile.SerializeToString()


class FakeFetcher:
    """TileFetcher stand-in serving bytes from a dict.

    Tiles listed in ``gates`` block until their event is set, which lets a
    test interleave queries and releases with an in-flight fetch.
    """

    def __init__(self, tiles: Optional[dict] = None, error: Optional[Exception] = None) -> None:
        self.tiles = tiles or {}
        self.error = error
        self.gates: dict[tuple[int, int, int], asyncio.Event] = {}
        self.calls: list[tuple[int, int, int]] = []

    def gate(self, zoom: int, x: int, y: int) -> asyncio.Event:
        event = asyncio.Event()
        self.gates[(zoom, x, y)] = event
        return event

    async def fetch(self, zoom: int, x: int, y: int) -> Optional[bytes]:
        self.calls.append((zoom, x, y))
        gate = self.gates.get((zoom, x, y))
        if gate is not None:
            await gate.wait()
        if self.error is not None:
            raise self.error
        return self.tiles.get((zoom, x, y))


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def airspace_tile() -> bytes:
    """One CTR with a hole and one restricted area, extent 256."""
    return build_tile([
        {"rings": [OUTER_CCW, HOLE_CW], "properties": asp_props(name="Alpha CTR")},
        {
            "rings": [OUTER_CCW],
            "properties": asp_props(
                name="R 12", category="R", bottom="1000ft", top="FL95",
                bottom_km=0.3, color="#bfbf40",
            ),
        },
    ])
