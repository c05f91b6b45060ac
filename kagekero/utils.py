"""Hashing, button bit sets, input mapping and image loading."""

from __future__ import annotations

import io
from enum import IntEnum

import pygame

from .config import COLOR_KEY
from .pfs import PackFile

_MASK32 = 0xFFFFFFFF
_MASK64 = 0xFFFFFFFFFFFFFFFF


class Button(IntEnum):
    """Logical buttons; the value is the bit position in a button set."""

    BACKSPACE = 1
    NUM_1 = 2
    NUM_2 = 3
    NUM_3 = 4
    NUM_4 = 5
    NUM_5 = 6
    NUM_6 = 7
    NUM_7 = 8
    NUM_8 = 9
    NUM_9 = 10
    NUM_0 = 11
    ASTERISK = 12
    HASH = 13
    SOFTLEFT = 14
    SOFTRIGHT = 15
    SELECT = 16
    UP = 17
    DOWN = 18
    LEFT = 19
    RIGHT = 20


def generate_hash(name: str | bytes) -> int:
    """64-bit djb2 hash of ``name``, stopping at the first NUL byte."""
    raw = name.encode("utf-8") if isinstance(name, str) else bytes(name)
    value = 5381
    for byte in raw.split(b"\0", 1)[0]:
        value = ((value << 5) + value + byte) & _MASK64
    return value


def _check_position(n: int) -> None:
    if not 0 <= n < 32:
        raise ValueError(f"bit position out of range: {n}")


def set_bit(number: int, n: int) -> int:
    """Return ``number`` with bit ``n`` set."""
    _check_position(n)
    return (number | (1 << n)) & _MASK32


def clear_bit(number: int, n: int) -> int:
    """Return ``number`` with bit ``n`` cleared."""
    _check_position(n)
    return number & ~(1 << n) & _MASK32


def toggle_bit(number: int, n: int) -> int:
    """Return ``number`` with bit ``n`` flipped."""
    _check_position(n)
    return (number ^ (1 << n)) & _MASK32


def check_bit(number: int, n: int) -> bool:
    """Return whether bit ``n`` of ``number`` is set."""
    _check_position(n)
    return bool((number >> n) & 1)


# Key codes not named by every pygame release.
_KEY_SELECT = 0x40000077
_KEY_SOFTLEFT = 0x40000287
_KEY_SOFTRIGHT = 0x40000288

_KEY_BUTTONS: dict[int, Button] = {
    pygame.K_BACKSPACE: Button.BACKSPACE,
    pygame.K_1: Button.NUM_1,
    pygame.K_2: Button.NUM_2,
    pygame.K_3: Button.NUM_3,
    pygame.K_4: Button.NUM_4,
    pygame.K_5: Button.NUM_5,
    pygame.K_LSHIFT: Button.NUM_5,
    pygame.K_6: Button.NUM_6,
    pygame.K_7: Button.NUM_7,
    pygame.K_SPACE: Button.NUM_7,
    pygame.K_8: Button.NUM_8,
    pygame.K_9: Button.NUM_9,
    pygame.K_0: Button.NUM_0,
    pygame.K_ASTERISK: Button.ASTERISK,
    pygame.K_HASH: Button.HASH,
    _KEY_SOFTLEFT: Button.SOFTLEFT,
    pygame.K_ESCAPE: Button.SOFTLEFT,
    _KEY_SOFTRIGHT: Button.SOFTRIGHT,
    _KEY_SELECT: Button.SELECT,
    pygame.K_UP: Button.UP,
    pygame.K_w: Button.UP,
    pygame.K_DOWN: Button.DOWN,
    pygame.K_s: Button.DOWN,
    pygame.K_LEFT: Button.LEFT,
    pygame.K_a: Button.LEFT,
    pygame.K_RIGHT: Button.RIGHT,
    pygame.K_d: Button.RIGHT,
}

# Game controller buttons: south, east, west, back and the d-pad.
_PAD_BUTTONS: dict[int, Button] = {
    0: Button.NUM_7,
    1: Button.NUM_5,
    2: Button.NUM_5,
    4: Button.SOFTLEFT,
    11: Button.UP,
    12: Button.DOWN,
    13: Button.LEFT,
    14: Button.RIGHT,
}


def button_from_key(key: int) -> Button | None:
    """Button bound to a keyboard key, or None if the key is unbound."""
    return _KEY_BUTTONS.get(key)


def button_from_gamepad(pad_btn: int) -> Button | None:
    """Button bound to a game controller button, or None if unbound."""
    return _PAD_BUTTONS.get(pad_btn)


def load_surface(pack: PackFile, file_name: str | None) -> pygame.Surface | None:
    """Load a PNG from the pack with magenta as the transparent colour.

    Returns None when no file name is given.
    """
    if file_name is None:
        return None
    data = pack.read(file_name)
    try:
        surface = pygame.image.load(io.BytesIO(data), file_name)
    except pygame.error as exc:
        raise ValueError(f"couldn't load image data from {file_name}: {exc}") from exc
    surface.set_colorkey(COLOR_KEY)
    return surface