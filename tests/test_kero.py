import pygame
import pytest

from kagekero.config import JUMP_VELOCITY, MAX_FALLING_SPEED, MAX_SPEED
from kagekero.kero import KERO_HALF, KERO_SIZE, Kero, KeroState
from kagekero.map import Map
from kagekero.tiled import (
    Layer,
    TiledMap,
    TiledObject,
    TiledProperty,
    TileDescriptor,
    Tileset,
)
from kagekero.utils import Button, check_bit, set_bit

TILE = 16
COLS = 10
ROWS = 10
SOLID_GID = 1
WALL_GID = 2
COIN_GID = 3
SPAWN = (40, 112)


def make_map(extra=None):
    data = [0] * (COLS * ROWS)
    for col in range(COLS):
        data[8 * COLS + col] = SOLID_GID
    for cell, gid in (extra or {}).items():
        data[cell] = gid
    tileset = Tileset(
        firstgid=1,
        columns=4,
        tilewidth=TILE,
        tileheight=TILE,
        image="tileset.png",
        tiles=[
            TileDescriptor(0, [TiledProperty("is_solid", "bool", True)]),
            TileDescriptor(1, [TiledProperty("is_wall", "bool", True)]),
            TileDescriptor(2, [TiledProperty("is_coin", "bool", True)]),
        ],
    )
    tiled = TiledMap(
        width=COLS,
        height=ROWS,
        tilewidth=TILE,
        tileheight=TILE,
        layers=[
            Layer(name="ground", type="tilelayer", data=data),
            Layer(
                name="objects",
                type="objectgroup",
                objects=[TiledObject(id=1, name="spawn", x=SPAWN[0], y=SPAWN[1])],
            ),
        ],
        tilesets=[tileset],
    )
    return Map(tiled, pygame.Surface((64, 64)))


def make_kero(tile_map, x=None, y=None):
    sprite = pygame.Surface((KERO_SIZE * 16, 512))
    sprite.fill((255, 0, 0))
    return Kero(
        tile_map.spawn_x if x is None else x,
        tile_map.spawn_y if y is None else y,
        sprite,
    )


def test_starts_at_spawn_idle():
    tile_map = make_map()
    kero = make_kero(tile_map)
    assert (kero.pos_x, kero.pos_y) == SPAWN
    assert kero.state == KeroState.IDLE
    assert kero.heading == 1


def test_set_state_resets_frame_only_on_change():
    kero = make_kero(make_map())
    kero.current_frame = 3
    kero.set_state(KeroState.IDLE)
    assert kero.current_frame == 3
    kero.set_state(KeroState.RUN)
    assert kero.current_frame == 0
    assert kero.prev_state == KeroState.IDLE
    assert kero.state == KeroState.RUN


def test_standing_on_ground_stays_put():
    tile_map = make_map()
    kero = make_kero(tile_map)
    buttons = kero.update(tile_map, 0, 1)
    assert buttons == 0
    assert kero.pos_y == SPAWN[1]
    assert kero.velocity_y == 0.0
    assert kero.state == KeroState.IDLE


def test_jump_from_ground():
    tile_map = make_map()
    kero = make_kero(tile_map)
    kero.update(tile_map, set_bit(0, Button.NUM_7), 1)
    assert kero.state == KeroState.JUMP
    assert kero.velocity_y == -JUMP_VELOCITY
    assert kero.pos_y < SPAWN[1]
    assert kero.jump_lock


def test_falls_when_in_air():
    tile_map = make_map()
    kero = make_kero(tile_map, 40, 32)
    kero.update(tile_map, 0, 10)
    assert kero.velocity_y > 0.0
    assert kero.pos_y > 32
    assert kero.state == KeroState.FALL


def test_falling_speed_is_capped():
    tile_map = make_map()
    kero = make_kero(tile_map, 40, 32)
    kero.update(tile_map, 0, 200)
    assert kero.velocity_y == pytest.approx(MAX_FALLING_SPEED)


def test_out_of_bounds_respawns():
    tile_map = make_map()
    kero = make_kero(tile_map, 40, 200)
    kero.update(tile_map, 0, 10)
    assert (kero.pos_x, kero.pos_y) == SPAWN
    assert kero.velocity_x == 0.0
    assert kero.velocity_y == 0.0


def test_running_right_accelerates_up_to_max_speed():
    tile_map = make_map()
    kero = make_kero(tile_map)
    buttons = set_bit(0, Button.RIGHT)
    kero.update(tile_map, buttons, 1)
    assert kero.state == KeroState.RUN
    assert kero.velocity_x > 0.0
    for now in (100, 200, 300):
        kero.update(tile_map, buttons, now)
    assert kero.velocity_x == pytest.approx(MAX_SPEED)
    assert kero.pos_x <= tile_map.width - KERO_HALF


def test_running_left_flips_sprite():
    tile_map = make_map()
    kero = make_kero(tile_map)
    kero.update(tile_map, set_bit(0, Button.LEFT), 1)
    assert kero.heading == 0
    assert kero.sprite_offset == 96


def test_wall_blocks_movement():
    wall_col = 5
    tile_map = make_map({7 * COLS + wall_col: WALL_GID})
    kero = make_kero(tile_map, 70, 112)
    kero.update(tile_map, 0, 1)
    assert kero.pos_x == wall_col * TILE - KERO_HALF
    assert kero.velocity_x == 0.0


def test_coin_pickup_puts_on_mask():
    tile_map = make_map({7 * COLS + 2: COIN_GID})
    kero = make_kero(tile_map)
    kero.update(tile_map, 0, 1)
    assert kero.wears_mask
    assert kero.sprite_offset == 192


def test_power_up_warps_and_times_out():
    tile_map = make_map()
    kero = make_kero(tile_map)
    power = set_bit(0, Button.NUM_5)

    result = kero.update(tile_map, power, 100)
    assert result == power
    assert kero.state == KeroState.POWER_UP
    assert kero.warp_x == SPAWN[0]
    assert not kero.repeat_anim

    held = set_bit(power, Button.RIGHT)
    kero.update(tile_map, held, 200)
    assert kero.state == KeroState.POWER_UP
    assert kero.pos_x == kero.warp_x + 64

    result = kero.update(tile_map, held, 700)
    assert not check_bit(result, Button.NUM_5)
    assert check_bit(result, Button.RIGHT)
    assert kero.state != KeroState.POWER_UP


def test_idle_animation_frames_stay_in_range():
    tile_map = make_map()
    kero = make_kero(tile_map)
    frames = set()
    for step in range(1, 40):
        kero.update(tile_map, 0, step * 100)
        assert 0 <= kero.current_frame < kero.anim_length
        frames.add(kero.current_frame)
    assert len(frames) > 1


def test_render_draws_sprite_frame():
    tile_map = make_map()
    kero = make_kero(tile_map)
    canvas = kero.render(tile_map)
    assert canvas.get_size() == (KERO_SIZE, KERO_SIZE)
    assert tuple(canvas.get_at((0, 0)))[:3] == (255, 0, 0)