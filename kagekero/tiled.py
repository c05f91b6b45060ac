"""Reader for maps saved in the Tiled JSON format (.tmj)."""

from __future__ import annotations

import base64
import binascii
import gzip
import json
import struct
import zlib
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Union

from .pfs import PackFile

FLIPPED_HORIZONTALLY = 0x80000000
FLIPPED_VERTICALLY = 0x40000000
FLIPPED_DIAGONALLY = 0x20000000
_FLIP_MASK = FLIPPED_HORIZONTALLY | FLIPPED_VERTICALLY | FLIPPED_DIAGONALLY

TILE_LAYER = "tilelayer"
OBJECT_GROUP = "objectgroup"

PropertyValue = Union[bool, int, float, str]


class TiledError(Exception):
    """Raised when a map document is malformed or unsupported."""


def remove_gid_flip_bits(gid: int) -> int:
    """Strip the horizontal, vertical and diagonal flip flags from a gid."""
    return gid & ~_FLIP_MASK


@dataclass(frozen=True)
class TiledProperty:
    """A custom property: ``type`` is the Tiled type name."""

    name: str
    type: str
    value: PropertyValue


def find_property(properties: Iterable[TiledProperty], name: str) -> TiledProperty | None:
    """First property called ``name``, or None."""
    return next((prop for prop in properties if prop.name == name), None)


@dataclass
class TileDescriptor:
    """Per-tile data of a tileset; ``animation`` holds (tileid, duration)."""

    tile_index: int
    properties: list[TiledProperty] = field(default_factory=list)
    animation: list[tuple[int, int]] = field(default_factory=list)

    @property
    def frame_count(self) -> int:
        return len(self.animation)


@dataclass
class TiledObject:
    """An object of an object group."""

    id: int
    name: str = ""
    type: str = ""
    x: float = 0.0
    y: float = 0.0
    gid: int = 0
    visible: bool = True
    properties: list[TiledProperty] = field(default_factory=list)


@dataclass
class Layer:
    """A map layer; tile layers carry ``data``, object groups ``objects``."""

    name: str
    type: str
    visible: bool = True
    data: list[int] = field(default_factory=list)
    objects: list[TiledObject] = field(default_factory=list)
    properties: list[TiledProperty] = field(default_factory=list)

    @property
    def is_tile_layer(self) -> bool:
        return self.type == TILE_LAYER

    @property
    def is_object_group(self) -> bool:
        return self.type == OBJECT_GROUP


@dataclass
class Tileset:
    """An embedded tileset laid out as a grid of equally sized tiles."""

    firstgid: int
    columns: int
    tilewidth: int
    tileheight: int
    image: str = ""
    name: str = ""
    tiles: list[TileDescriptor] = field(default_factory=list)

    def local_id(self, gid: int) -> int:
        """Index of ``gid`` within this tileset, never below zero."""
        return max(gid - self.firstgid, 0)

    def tile_position(self, gid: int) -> tuple[int, int]:
        """Pixel position of the tile for ``gid`` in the tileset image."""
        local = self.local_id(gid)
        return (local % self.columns) * self.tilewidth, (local // self.columns) * self.tileheight

    def animation(self, gid: int) -> tuple[int, int] | None:
        """(frame count, first frame's tile id) if ``gid`` is animated, else None."""
        local = self.local_id(gid)
        for tile in self.tiles:
            if tile.tile_index == local and tile.animation:
                return tile.frame_count, tile.animation[0][0]
        return None

    def next_frame_id(self, local_id: int, frame: int) -> int:
        """Tile id shown at ``frame`` of the animation of tile ``local_id``; 0 if unknown."""
        for tile in self.tiles:
            if tile.tile_index == local_id:
                if not 0 <= frame < tile.frame_count:
                    raise IndexError(f"tile {local_id} has no animation frame {frame}")
                return tile.animation[frame][0]
        return 0


@dataclass
class TiledMap:
    """A whole map: grid size in tiles, layers and tilesets."""

    width: int
    height: int
    tilewidth: int
    tileheight: int
    backgroundcolor: int = 0
    layers: list[Layer] = field(default_factory=list)
    tilesets: list[Tileset] = field(default_factory=list)
    properties: list[TiledProperty] = field(default_factory=list)

    @property
    def tileset(self) -> Tileset:
        """The first tileset, which holds every tile the game draws."""
        if not self.tilesets:
            raise TiledError("map has no tileset")
        return self.tilesets[0]

    @property
    def background_rgb(self) -> tuple[int, int, int]:
        color = self.backgroundcolor
        return (color >> 16) & 0xFF, (color >> 8) & 0xFF, color & 0xFF


def _require(obj: Mapping[str, Any], key: str, kind: type | tuple[type, ...], what: str) -> Any:
    if key not in obj:
        raise TiledError(f"{what} lacks '{key}'")
    value = obj[key]
    if isinstance(value, bool) or not isinstance(value, kind):
        raise TiledError(f"{what} has an invalid '{key}'")
    return value


def _parse_color(text: str) -> int:
    digits = text.lstrip("#")
    if not digits:
        return 0
    if len(digits) not in (6, 8):
        raise TiledError(f"invalid colour: {text!r}")
    try:
        return int(digits, 16)
    except ValueError:
        raise TiledError(f"invalid colour: {text!r}") from None


def _parse_property(raw: Any) -> TiledProperty:
    if not isinstance(raw, Mapping):
        raise TiledError("property is not an object")
    name = _require(raw, "name", str, "property")
    kind = raw.get("type", "string")
    value = raw.get("value")
    try:
        if kind == "bool":
            converted: PropertyValue = bool(value)
        elif kind in ("int", "object"):
            converted = int(value)
        elif kind == "float":
            converted = float(value)
        elif kind == "color":
            converted = _parse_color(str(value or ""))
        elif kind in ("string", "file"):
            converted = "" if value is None else str(value)
        else:
            converted = ""
    except (TypeError, ValueError):
        raise TiledError(f"property {name!r} has an invalid value") from None
    return TiledProperty(name, kind, converted)


def _parse_properties(raw: Any) -> list[TiledProperty]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise TiledError("properties must be a list")
    return [_parse_property(item) for item in raw]


def _decode_data(raw: Any, encoding: str, compression: str) -> list[int]:
    if isinstance(raw, list):
        try:
            return [int(value) for value in raw]
        except (TypeError, ValueError):
            raise TiledError("layer data holds a non-integer") from None
    if not isinstance(raw, str):
        raise TiledError("layer data must be a list or a string")
    if encoding != "base64":
        raise TiledError(f"unsupported layer encoding: {encoding!r}")
    try:
        blob = base64.b64decode(raw.strip(), validate=True)
    except (binascii.Error, ValueError):
        raise TiledError("layer data is not valid base64") from None
    try:
        if compression == "zlib":
            blob = zlib.decompress(blob)
        elif compression == "gzip":
            blob = gzip.decompress(blob)
        elif compression:
            raise TiledError(f"unsupported layer compression: {compression!r}")
    except (zlib.error, OSError, EOFError):
        raise TiledError("layer data could not be decompressed") from None
    if len(blob) % 4:
        raise TiledError("layer data length is not a multiple of four")
    return list(struct.unpack(f"<{len(blob) // 4}I", blob))


def _parse_object(raw: Any) -> TiledObject:
    if not isinstance(raw, Mapping):
        raise TiledError("object is not a JSON object")
    return TiledObject(
        id=int(raw.get("id", 0)),
        name=str(raw.get("name", "")),
        type=str(raw.get("type", raw.get("class", ""))),
        x=float(raw.get("x", 0.0)),
        y=float(raw.get("y", 0.0)),
        gid=int(raw.get("gid", 0)),
        visible=bool(raw.get("visible", True)),
        properties=_parse_properties(raw.get("properties")),
    )


def _parse_layer(raw: Any, width: int, height: int) -> Layer:
    if not isinstance(raw, Mapping):
        raise TiledError("layer is not an object")
    kind = _require(raw, "type", str, "layer")
    layer = Layer(
        name=str(raw.get("name", "")),
        type=kind,
        visible=bool(raw.get("visible", True)),
        properties=_parse_properties(raw.get("properties")),
    )
    if kind == TILE_LAYER:
        if "chunks" in raw:
            raise TiledError("infinite maps are not supported")
        layer.data = _decode_data(
            raw.get("data"), str(raw.get("encoding", "csv")), str(raw.get("compression", ""))
        )
        if len(layer.data) != width * height:
            raise TiledError(f"layer {layer.name!r} has {len(layer.data)} tiles, expected {width * height}")
    elif kind == OBJECT_GROUP:
        objects = raw.get("objects", [])
        if not isinstance(objects, list):
            raise TiledError("objects must be a list")
        layer.objects = [_parse_object(item) for item in objects]
    return layer


def _parse_tile(raw: Any) -> TileDescriptor:
    if not isinstance(raw, Mapping):
        raise TiledError("tile is not an object")
    frames = raw.get("animation") or []
    if not isinstance(frames, list):
        raise TiledError("animation must be a list")
    try:
        animation = [(int(frame["tileid"]), int(frame.get("duration", 0))) for frame in frames]
    except (KeyError, TypeError, ValueError, AttributeError):
        raise TiledError("malformed animation frame") from None
    return TileDescriptor(
        tile_index=int(_require(raw, "id", int, "tile")),
        properties=_parse_properties(raw.get("properties")),
        animation=animation,
    )


def _parse_tileset(raw: Any) -> Tileset:
    if not isinstance(raw, Mapping):
        raise TiledError("tileset is not an object")
    if "source" in raw:
        raise TiledError("external tilesets are not supported")
    columns = _require(raw, "columns", int, "tileset")
    if columns <= 0:
        raise TiledError("tileset must have at least one column")
    tiles = raw.get("tiles", [])
    if not isinstance(tiles, list):
        raise TiledError("tiles must be a list")
    return Tileset(
        firstgid=_require(raw, "firstgid", int, "tileset"),
        columns=columns,
        tilewidth=_require(raw, "tilewidth", int, "tileset"),
        tileheight=_require(raw, "tileheight", int, "tileset"),
        image=str(raw.get("image", "")),
        name=str(raw.get("name", "")),
        tiles=[_parse_tile(item) for item in tiles],
    )


def parse_map(data: bytes | str) -> TiledMap:
    """Parse a Tiled JSON map document."""
    try:
        doc = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise TiledError(f"invalid map document: {exc}") from None
    if not isinstance(doc, Mapping):
        raise TiledError("map document is not an object")
    width = _require(doc, "width", int, "map")
    height = _require(doc, "height", int, "map")
    if width < 0 or height < 0:
        raise TiledError("map size must not be negative")
    layers = doc.get("layers", [])
    tilesets = doc.get("tilesets", [])
    if not isinstance(layers, list) or not isinstance(tilesets, list):
        raise TiledError("layers and tilesets must be lists")
    return TiledMap(
        width=width,
        height=height,
        tilewidth=_require(doc, "tilewidth", int, "map"),
        tileheight=_require(doc, "tileheight", int, "map"),
        backgroundcolor=_parse_color(str(doc.get("backgroundcolor", ""))),
        layers=[_parse_layer(item, width, height) for item in layers],
        tilesets=[_parse_tileset(item) for item in tilesets],
        properties=_parse_properties(doc.get("properties")),
    )


def load_tiled_map(pack: PackFile, file_name: str) -> TiledMap:
    """Read and parse the map ``file_name`` from ``pack``."""
    return parse_map(pack.read(file_name))