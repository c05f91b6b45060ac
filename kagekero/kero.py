"""The player character: movement, jumping, power-up warps and sprite animation."""

from __future__ import annotations

import logging
from enum import IntEnum

import pygame

from .config import (
    ACCELERATION,
    DECELERATION,
    GRAVITY,
    JUMP_VELOCITY,
    MAX_FALLING_SPEED,
    MAX_SPEED,
    POWER_UP_TIMEOUT,
)
from .map import Map, TileDesc
from .utils import Button, check_bit, clear_bit

log = logging.getLogger(__name__)

KERO_SIZE = 32
KERO_HALF = 16

WARP_DISTANCE = 64.0
HEADING_LEFT_OFFSET = 96
MASK_OFFSET = 192

_EMPTY = TileDesc()


class KeroState(IntEnum):
    """What the character is currently doing."""

    IDLE = 0
    RUN = 1
    JUMP = 2
    FALL = 3
    POWER_UP = 4


def _desc(tile_map: Map, index: int) -> TileDesc:
    """Tile flags at ``index``; cells outside the map have no flags."""
    if 0 <= index < len(tile_map.tile_desc):
        return tile_map.tile_desc[index]
    return _EMPTY


class Kero:
    """The player: position, velocity, state and the frame to draw."""

    def __init__(self, spawn_x: float, spawn_y: float, sprite: pygame.Surface) -> None:
        self.sprite = sprite
        self.render_canvas = pygame.Surface((KERO_SIZE, KERO_SIZE), 0, 32)
        self.temp_canvas = pygame.Surface((KERO_SIZE, KERO_SIZE), 0, 32)

        self.time_a = 0
        self.time_b = 0
        self.delta_time = 0
        self.time_since_last_frame = 0
        self.power_up_timeout = 0

        self.state = KeroState.IDLE
        self.prev_state = KeroState.IDLE

        self.pos_x = float(spawn_x)
        self.pos_y = float(spawn_y)
        self.warp_x = 0.0
        self.warp_y = 0.0
        self.velocity_x = 0.0
        self.velocity_y = 0.0

        self.current_frame = 0
        self.anim_fps = 1
        self.anim_length = 0
        self.anim_offset_x = 0
        self.anim_offset_y = 0
        self.sprite_offset = 0
        self.heading = 1

        self.repeat_anim = False
        self.jump_lock = False
        self.wears_mask = False

        self.set_state(KeroState.IDLE)

    def set_state(self, state: KeroState) -> None:
        """Switch state; the animation restarts when the state changes."""
        self.prev_state = self.state
        self.state = KeroState(state)
        if self.state != self.prev_state:
            self.current_frame = 0
            self.time_since_last_frame = 0

    def _update_timing(self, now: int) -> None:
        self.time_b = self.time_a
        self.time_a = now
        self.delta_time = abs(self.time_a - self.time_b)

    def _update_animation(self) -> None:
        self.time_since_last_frame += self.delta_time
        if self.time_since_last_frame < 1000 // self.anim_fps:
            return
        self.time_since_last_frame = 0
        self.current_frame += 1
        if self.current_frame >= self.anim_length - 1:
            self.current_frame = 0 if self.repeat_anim else self.anim_length - 1

    def _apply_gravity(self) -> None:
        self.velocity_y = min(self.velocity_y + GRAVITY * self.delta_time, MAX_FALLING_SPEED)

    def _handle_jump(self, buttons: int) -> None:
        if check_bit(buttons, Button.NUM_7) and not self.jump_lock:
            if KeroState.JUMP not in (self.prev_state, self.state):
                self.velocity_y = -JUMP_VELOCITY
                self.set_state(KeroState.JUMP)
            self.jump_lock = True

    def _handle_pickup(self, tile_map: Map) -> None:
        index = tile_map.tile_index(int(self.pos_x), int(self.pos_y))
        if _desc(tile_map, index).is_coin:
            log.info("Picked up a coin at index %d", index)
            self.wears_mask = True

    def _handle_power_up(self, buttons: int, now: int) -> tuple[bool, int]:
        """Return whether normal movement goes on, and the button set."""
        if self.state == KeroState.POWER_UP:
            if check_bit(buttons, Button.LEFT):
                self.pos_x = self.warp_x - WARP_DISTANCE
            elif check_bit(buttons, Button.RIGHT):
                self.pos_x = self.warp_x + WARP_DISTANCE

            if now - self.power_up_timeout >= POWER_UP_TIMEOUT:
                buttons = clear_bit(buttons, Button.NUM_5)
                self.set_state(self.prev_state)
            else:
                return False, buttons

        if check_bit(buttons, Button.NUM_5):
            self.set_state(KeroState.POWER_UP)
            if self.prev_state != KeroState.POWER_UP:
                self.current_frame = 0
                self.time_since_last_frame = 0
                self.warp_x = self.pos_x
                self.warp_y = self.pos_y

            self.anim_fps = 15
            self.anim_length = 7
            self.anim_offset_x = 2
            self.anim_offset_y = 64
            self.repeat_anim = False

            self.power_up_timeout = now
            return False, buttons

        self.repeat_anim = True
        return True, buttons

    def _clamp_position(self, tile_map: Map) -> None:
        if self.pos_y <= KERO_HALF:
            self.pos_y = float(KERO_HALF)
            self.velocity_y = 0.0

        if self.pos_x <= KERO_HALF:
            self.pos_x = float(KERO_HALF)
        elif self.pos_x >= tile_map.width - KERO_HALF:
            self.pos_x = float(tile_map.width - KERO_HALF)
        else:
            index = tile_map.tile_index(int(self.pos_x), int(self.pos_y))
            index += 1 if self.heading else -1
            if _desc(tile_map, index).is_wall:
                column = index % tile_map.columns
                tile_width = tile_map.tiled.tilewidth
                if self.heading:
                    self.pos_x = float(column * tile_width - KERO_HALF)
                else:
                    self.pos_x = float((column + 1) * tile_width + KERO_HALF)
                self.velocity_x = 0.0

    def _respawn(self, tile_map: Map) -> None:
        self.set_state(KeroState.IDLE)
        self.pos_x = float(tile_map.spawn_x)
        self.pos_y = float(tile_map.spawn_y)
        self.velocity_x = 0.0
        self.velocity_y = 0.0

    def update(self, tile_map: Map, buttons: int, now: int) -> int:
        """Advance one frame at time ``now`` (ms); return the updated button set."""
        self._update_timing(now)
        self._update_animation()

        proceed, buttons = self._handle_power_up(buttons, now)
        if not proceed:
            return buttons

        index = tile_map.tile_index(int(self.pos_x), int(self.pos_y))
        if _desc(tile_map, index).is_wall and self.state == KeroState.POWER_UP:
            # The warp ended inside a wall.
            self._respawn(tile_map)
            return buttons

        index += tile_map.columns
        on_solid_ground = _desc(tile_map, index).is_solid and self.state != KeroState.JUMP
        at_bottom = self.pos_y > tile_map.height - KERO_HALF

        if at_bottom:
            self._apply_gravity()
        elif on_solid_ground:
            if self.prev_state in (KeroState.FALL, KeroState.JUMP):
                self.velocity_x = 0.0  # Landing stops horizontal movement.
            self.velocity_y = 0.0
            self._handle_pickup(tile_map)
            if not check_bit(buttons, Button.NUM_7):
                self.jump_lock = False
            self._handle_jump(buttons)
        else:
            self._apply_gravity()

        if self.velocity_y != 0.0:
            self.pos_y += self.velocity_y * self.delta_time
        else:
            tile_height = tile_map.tiled.tileheight
            self.pos_y = float(int(self.pos_y / tile_height) * tile_height)
            self.pos_y += _desc(tile_map, index).offset_top

        if self.pos_y >= tile_map.height + KERO_HALF:
            self._respawn(tile_map)

        left = check_bit(buttons, Button.LEFT)
        right = check_bit(buttons, Button.RIGHT)
        if left:
            self.heading = 0
            self.set_state(KeroState.RUN)
        elif right:
            self.heading = 1
            self.set_state(KeroState.RUN)
        elif self.velocity_x <= 0.0:
            self.set_state(KeroState.IDLE)

        move = self.velocity_x * self.delta_time
        if self.heading:
            self.sprite_offset = 0
            self.pos_x += move if self.velocity_x > 0.0 else -move
        else:
            self.sprite_offset = HEADING_LEFT_OFFSET
            self.pos_x += -move if self.velocity_x > 0.0 else move

        if self.wears_mask:
            self.sprite_offset += MASK_OFFSET

        self._clamp_position(tile_map)

        if self.velocity_y < 0.0:
            self.set_state(KeroState.JUMP)
            self.anim_fps, self.anim_length = 15, 0
            self.anim_offset_x, self.anim_offset_y = 0, 64
        elif self.velocity_y > 0.0:
            self.set_state(KeroState.FALL)
            self.anim_fps, self.anim_length = 15, 0
            self.anim_offset_x, self.anim_offset_y = 1, 64
        elif self.state == KeroState.IDLE:
            self.anim_fps, self.anim_length = 15, 11
            self.anim_offset_x, self.anim_offset_y = 0, 0
            return buttons
        elif self.state == KeroState.RUN:
            self.anim_fps, self.anim_length = 15, 12
            self.anim_offset_x, self.anim_offset_y = 0, 32

        if self.state == KeroState.RUN or self.velocity_y != 0.0:
            if left or right:
                self.velocity_x = min(
                    self.velocity_x + ACCELERATION * self.delta_time, MAX_SPEED
                )
            else:
                if self.velocity_x > 0.0:
                    self.velocity_x -= DECELERATION * self.delta_time
                if self.velocity_x < 0.0:
                    self.velocity_x = 0.0

        return buttons

    def render(self, tile_map: Map) -> pygame.Surface:
        """Compose the current frame over the map background; return the canvas."""
        src_x = max(int(self.pos_x) - KERO_HALF, 0)
        src_y = int(self.pos_y) - KERO_HALF
        background = pygame.Rect(src_x, src_y, KERO_SIZE, KERO_SIZE)
        self.temp_canvas.blit(tile_map.render_canvas, (0, 0), background)

        frame = pygame.Rect(
            (self.current_frame + self.anim_offset_x) * KERO_SIZE,
            self.anim_offset_y + self.sprite_offset,
            KERO_SIZE,
            KERO_SIZE,
        )
        self.temp_canvas.blit(self.sprite, (0, 0), frame)
        self.render_canvas.blit(self.temp_canvas, (0, 0))
        return self.render_canvas