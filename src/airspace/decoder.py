"""Vector tile decoding for airspace tiles.

Tiles are Mapbox Vector Tiles (protobuf). Only the ``asp`` layer is kept.
Feature geometry stays packed (command integers) until a feature is
actually inspected; load_rings() expands it once and caches the result.

Ring coordinates are in the feature's extent units, y pointing down.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Optional

from google.protobuf.message import DecodeError
from mapbox_vector_tile.Mapbox import vector_tile_pb2

AIRSPACE_LAYER = "asp"

# Geometry types (vector_tile.proto GeomType)
GEOM_UNKNOWN = 0
GEOM_POINT = 1
GEOM_LINESTRING = 2
GEOM_POLYGON = 3

# Geometry commands
_CMD_MOVE_TO = 1
_CMD_LINE_TO = 2
_CMD_CLOSE_PATH = 7

_VALUE_FIELDS = (
    "string_value",
    "float_value",
    "double_value",
    "int_value",
    "uint_value",
    "sint_value",
    "bool_value",
)

Point = tuple[float, float]
Ring = list[Point]


class TileDecodeError(Exception):
    """Raised when tile bytes cannot be decoded."""


class MissingLayerError(TileDecodeError):
    """Raised when a tile decodes but carries no airspace layer."""


def _zigzag(n: int) -> int:
    return (n >> 1) ^ -(n & 1)


def decode_geometry(geometry: list[int]) -> list[Ring]:
    """Expand packed geometry commands into rings of (x, y) points.

    ClosePath repeats the ring's first point so rings come out closed.
    """
    rings: list[Ring] = []
    ring: Optional[Ring] = None
    x = y = 0
    cmd = 0
    length = 0
    i = 0
    end = len(geometry)

    while i < end:
        if length == 0:
            cmd_len = geometry[i]
            i += 1
            cmd = cmd_len & 0x7
            length = cmd_len >> 3
            if length == 0:
                continue
        length -= 1

        if cmd in (_CMD_MOVE_TO, _CMD_LINE_TO):
            if i + 1 >= end:
                raise TileDecodeError("Truncated geometry command")
            x += _zigzag(geometry[i])
            y += _zigzag(geometry[i + 1])
            i += 2
            if cmd == _CMD_MOVE_TO:
                if ring:
                    rings.append(ring)
                ring = []
            if ring is None:
                raise TileDecodeError("LineTo before MoveTo")
            ring.append((x, y))
        elif cmd == _CMD_CLOSE_PATH:
            if ring:
                ring.append(ring[0])
        else:
            raise TileDecodeError(f"Unknown geometry command {cmd}")

    if ring:
        rings.append(ring)
    return rings


@dataclass(eq=False)
class AirspaceFeature:
    """One feature of the airspace layer.

    Attributes:
        type: Geometry type (GEOM_POLYGON for airspace volumes).
        extent: Size of the coordinate space the rings are expressed in.
        properties: name, category, bottom, top, bottom_km, color, ...
    """

    type: int
    extent: int
    properties: dict
    geometry: list[int] = field(default_factory=list, repr=False)
    _rings: Optional[list[Ring]] = field(default=None, init=False, repr=False)

    def load_rings(self) -> list[Ring]:
        """Return the feature's rings, decoding the packed geometry once."""
        if self._rings is None:
            self._rings = decode_geometry(self.geometry)
        return self._rings

    @property
    def rings_loaded(self) -> bool:
        return self._rings is not None

    @property
    def is_polygon(self) -> bool:
        return self.type == GEOM_POLYGON

    @property
    def name(self) -> str:
        return str(self.properties.get("name", ""))

    @property
    def category(self) -> str:
        return str(self.properties.get("category", ""))

    @property
    def bottom(self) -> str:
        return str(self.properties.get("bottom", ""))

    @property
    def top(self) -> str:
        return str(self.properties.get("top", ""))

    @property
    def bottom_km(self) -> Optional[float]:
        value = self.properties.get("bottom_km")
        if value is None or isinstance(value, bool):
            return None
        try:
            return float(value)
        except (TypeError, ValueError):
            return None

    @property
    def color(self) -> str:
        return str(self.properties.get("color", ""))


@dataclass
class AirspaceLayer:
    """The airspace features of one tile, in storage order."""

    name: str
    extent: int
    features: list[AirspaceFeature]

    def feature(self, index: int) -> AirspaceFeature:
        return self.features[index]

    def __len__(self) -> int:
        return len(self.features)

    def __iter__(self) -> Iterator[AirspaceFeature]:
        return iter(self.features)


def _decode_value(value) -> object:
    for name in _VALUE_FIELDS:
        if value.HasField(name):
            return getattr(value, name)
    return None


def _decode_layer(pb_layer) -> AirspaceLayer:
    keys = list(pb_layer.keys)
    values = [_decode_value(v) for v in pb_layer.values]
    extent = pb_layer.extent or 4096

    features = []
    for pb_feature in pb_layer.features:
        tags = pb_feature.tags
        if len(tags) % 2:
            raise TileDecodeError("Odd number of feature tags")
        properties = {}
        for k, v in zip(tags[::2], tags[1::2]):
            try:
                properties[keys[k]] = values[v]
            except IndexError:
                raise TileDecodeError(f"Tag index out of range: {k}/{v}") from None
        features.append(AirspaceFeature(
            type=pb_feature.type,
            extent=extent,
            properties=properties,
            geometry=list(pb_feature.geometry),
        ))

    return AirspaceLayer(name=pb_layer.name, extent=extent, features=features)


def decode_tile(data: bytes, layer_name: str = AIRSPACE_LAYER) -> AirspaceLayer:
    """Decode raw tile bytes into the airspace layer.

    Raises:
        TileDecodeError: The bytes are not a vector tile.
        MissingLayerError: The tile has no layer named ``layer_name``.
    """
    tile = vector_tile_pb2.tile()
    try:
        tile.ParseFromString(data)
    except DecodeError as e:
        raise TileDecodeError(f"Malformed vector tile: {e}") from e

    for pb_layer in tile.layers:
        if pb_layer.name == layer_name:
            return _decode_layer(pb_layer)

    raise MissingLayerError(f"No '{layer_name}' layer in tile")
