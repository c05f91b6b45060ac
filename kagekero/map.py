"""Tile map state: collision flags, animated tiles and the pre-rendered canvas."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

import pygame

from .config import ANIM_FPS
from .pfs import PackFile
from .tiled import (
    Layer,
    TiledMap,
    TiledProperty,
    TileDescriptor,
    Tileset,
    find_property,
    load_tiled_map,
    remove_gid_flip_bits,
)
from .utils import load_surface

log = logging.getLogger(__name__)

# Tileset image names are cut to this many characters before loading.
_TILESET_NAME_MAX = 15
_FRAME_TIME = 1000 // ANIM_FPS


@dataclass
class TileDesc:
    """Gameplay flags of one map cell, merged over all tile layers."""

    is_coin: bool = False
    is_deadly: bool = False
    is_door: bool = False
    is_solid: bool = False
    is_wall: bool = False
    offset_top: int = 0


@dataclass
class AnimatedObject:
    """An animated tile placed on the map, with its current frame."""

    dst_x: int
    dst_y: int
    gid: int
    id: int
    anim_length: int
    current_frame: int = 0
    canvas_src_x: int = 0
    canvas_src_y: int = 0
    object_id: int = 0


def _trunc_div(a: int, b: int) -> int:
    """Integer division rounding towards zero."""
    a, b = int(a), int(b)
    quotient = abs(a) // abs(b)
    return quotient if (a >= 0) == (b > 0) else -quotient


def _flag(properties: Iterable[TiledProperty], name: str) -> bool:
    prop = find_property(properties, name)
    return prop is not None and prop.type == "bool" and bool(prop.value)


def _integer(properties: Iterable[TiledProperty], name: str) -> int:
    prop = find_property(properties, name)
    if prop is None or prop.type != "int":
        return 0
    return int(prop.value)


def _tile_with_properties(tileset: Tileset, local_id: int) -> TileDescriptor | None:
    return next(
        (tile for tile in tileset.tiles if tile.tile_index == local_id and tile.properties),
        None,
    )


def build_tile_descs(tiled: TiledMap) -> list[TileDesc]:
    """Collision and pickup flags for every cell, row by row."""
    descs = [TileDesc() for _ in range(tiled.width * tiled.height)]
    tile_layers = [layer for layer in tiled.layers if layer.is_tile_layer]
    if not tile_layers:
        return descs

    tileset = tiled.tileset
    for layer in tile_layers:
        for desc, raw_gid in zip(descs, layer.data):
            local_id = remove_gid_flip_bits(raw_gid) - tileset.firstgid
            tile = _tile_with_properties(tileset, local_id)
            if tile is None:
                continue
            props = tile.properties
            desc.is_coin |= _flag(props, "is_coin")
            desc.is_deadly |= _flag(props, "is_deadly")
            desc.is_door |= _flag(props, "is_door")
            desc.is_solid |= _flag(props, "is_solid")
            desc.is_wall |= _flag(props, "is_wall")
            desc.offset_top = _integer(props, "offset_top")
    return descs


def find_spawn(tiled: TiledMap) -> tuple[int, int]:
    """Position of the last object named "spawn" in a visible object group."""
    spawn = (0, 0)
    for layer in tiled.layers:
        if not (layer.visible and layer.is_object_group):
            continue
        for obj in layer.objects:
            if obj.name == "spawn":
                spawn = (int(obj.x), int(obj.y))
    return spawn


class Map:
    """A loaded level: tile flags, spawn point and a canvas holding its image."""

    def __init__(self, tiled: TiledMap, tileset_surface: pygame.Surface) -> None:
        self.tiled = tiled
        self.tileset = tiled.tileset
        self.tile_width = self.tileset.tilewidth
        self.tile_height = self.tileset.tileheight
        self.columns = tiled.width
        self.rows = tiled.height
        self.width = self.columns * self.tile_width
        self.height = self.rows * self.tile_height
        self.bg_color = tiled.background_rgb
        self.layer_count = sum(1 for layer in tiled.layers if layer.is_tile_layer)

        self.tileset_surface = tileset_surface
        self.render_canvas = pygame.Surface((self.width, self.height), 0, 32)

        self.tile_desc = build_tile_descs(tiled)
        self.spawn_x, self.spawn_y = find_spawn(tiled)

        self.objects: list[AnimatedObject] = []
        self.static_tiles_rendered = False

        self._time_a = 0
        self._time_b = 0
        self.delta_time = 0
        self.time_since_last_frame = 0

    @classmethod
    def load(cls, pack: PackFile, file_name: str) -> Map:
        """Load the map ``file_name`` and its tileset image from ``pack``."""
        log.info("Loading map: %s", file_name)
        tiled = load_tiled_map(pack, file_name)
        image_name = tiled.tileset.image[:_TILESET_NAME_MAX]
        surface = load_surface(pack, image_name)
        return cls(tiled, surface)

    def _blit_tile(self, src: tuple[int, int], dst: tuple[int, int]) -> None:
        area = pygame.Rect(src, (self.tile_width, self.tile_height))
        self.render_canvas.blit(self.tileset_surface, dst, area)

    def _add_object(
        self,
        gid: int,
        animation: tuple[int, int],
        dst: tuple[int, int],
        below: Layer | None,
        cell: int,
        object_id: int = 0,
    ) -> None:
        anim_length, first_id = animation
        obj = AnimatedObject(
            dst_x=dst[0],
            dst_y=dst[1],
            gid=self.tileset.local_id(gid),
            id=first_id,
            anim_length=anim_length,
            object_id=object_id,
        )
        if below is not None and below.is_tile_layer and 0 <= cell < len(below.data):
            gid_below = remove_gid_flip_bits(below.data[cell])
            if gid_below:
                obj.canvas_src_x, obj.canvas_src_y = self.tileset.tile_position(gid_below)
        self.objects.append(obj)

    def _render_static(self) -> None:
        previous: Layer | None = None
        for layer in self.tiled.layers:
            if layer.is_tile_layer:
                if layer.visible:
                    for cell, raw_gid in enumerate(layer.data):
                        gid = remove_gid_flip_bits(raw_gid)
                        if not gid:
                            continue
                        row, col = divmod(cell, self.columns)
                        dst = (col * self.tile_width, row * self.tile_height)
                        self._blit_tile(self.tileset.tile_position(gid), dst)
                        animation = self.tileset.animation(gid)
                        if animation is not None:
                            self._add_object(gid, animation, dst, previous, cell)
                    log.info("Render map layer: %s", layer.name)
            elif layer.is_object_group:
                for obj in layer.objects:
                    gid = remove_gid_flip_bits(obj.gid)
                    if not gid:
                        continue
                    animation = self.tileset.animation(gid)
                    if animation is None:
                        continue
                    dst = (int(obj.x), int(obj.y) - self.tile_height)
                    cell = (
                        _trunc_div(dst[1], self.tile_height) * self.columns
                        + _trunc_div(dst[0], self.tile_width)
                    )
                    self._add_object(gid, animation, dst, previous, cell, obj.id)
                log.info("Render obj layer: %s", layer.name)
            previous = layer
        self.static_tiles_rendered = True

    def _animate(self, now: int) -> None:
        self._time_b = self._time_a
        self._time_a = now
        self.delta_time = abs(self._time_a - self._time_b)
        self.time_since_last_frame += self.delta_time
        if self.time_since_last_frame < _FRAME_TIME:
            return
        self.time_since_last_frame = 0

        for obj in self.objects:
            dst = (obj.dst_x, obj.dst_y)
            # The tile underneath is drawn first to stand in for transparency.
            self._blit_tile((obj.canvas_src_x, obj.canvas_src_y), dst)
            self._blit_tile(self.tileset.tile_position(obj.id + 1), dst)
            obj.current_frame += 1
            if obj.current_frame >= obj.anim_length:
                obj.current_frame = 0
            obj.id = self.tileset.next_frame_id(obj.gid, obj.current_frame)

    def render(self, now: int) -> None:
        """Draw static tiles once, then advance animated tiles; ``now`` is in ms."""
        if not self.static_tiles_rendered:
            self._render_static()
            return
        if self.objects:
            self._animate(now)

    def tile_index(self, pos_x: int, pos_y: int) -> int:
        """Index into ``tile_desc`` of the cell holding the pixel position."""
        index = _trunc_div(pos_x, self.tile_width)
        index += _trunc_div(pos_y, self.tile_height) * self.columns
        return min(index, len(self.tile_desc) - 1)