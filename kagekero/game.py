"""The game loop: window set-up, input handling, camera and screen composition."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import NamedTuple

import pygame
from pygame._sdl2 import controller as sdl_controller

from .config import (
    FRAME_IMAGE,
    FRAME_HEIGHT,
    FRAME_WIDTH,
    FULLSCREEN,
    KERO_IMAGE,
    SCALE,
    SCREEN_H,
    SCREEN_W,
    START_MAP,
    WINDOW_H,
    WINDOW_TITLE,
    WINDOW_W,
)
from .kero import KERO_HALF, Kero
from .map import Map
from .pfs import PackFile, PackFileError, default_pack_path
from .tiled import TiledError
from .utils import (
    Button,
    button_from_gamepad,
    button_from_key,
    check_bit,
    clear_bit,
    load_surface,
    set_bit,
)

log = logging.getLogger(__name__)

AUDIO_FREQUENCY = 8000
AUDIO_SIZE = -16
AUDIO_CHANNELS = 1
FRAMES_PER_SECOND = 60


class Layout(NamedTuple):
    """Where the decorative frame and the game screen sit on the display."""

    frame_x: int
    frame_y: int
    screen_x: int
    screen_y: int
    scale: int


def _trunc_div(a: int, b: int) -> int:
    quotient = abs(a) // abs(b)
    return quotient if (a >= 0) == (b > 0) else -quotient


def layout_offsets(display_w: int, display_h: int) -> Layout:
    """Centre the frame and the game screen on a display of the given size."""
    scale = max(min(display_w // WINDOW_W, display_h // WINDOW_H), 1)
    return Layout(
        frame_x=_trunc_div(_trunc_div(display_w - FRAME_WIDTH * scale, 2), scale),
        frame_y=_trunc_div(_trunc_div(display_h - FRAME_HEIGHT * scale, 2), scale),
        screen_x=_trunc_div(_trunc_div(display_w - SCREEN_W * scale, 2), scale),
        screen_y=_trunc_div(_trunc_div(display_h - SCREEN_H * scale, 2), scale),
        scale=scale,
    )


def clamp_camera(cam_x: int, cam_y: int, map_w: int, map_h: int) -> tuple[int, int]:
    """Keep the camera's view of ``SCREEN_W`` by ``SCREEN_H`` inside the map."""
    if cam_x <= 0:
        cam_x = 0
    elif cam_x >= map_w - SCREEN_W:
        cam_x = map_w - SCREEN_W
    if cam_y <= 0:
        cam_y = 0
    elif cam_y >= map_h - SCREEN_H:
        cam_y = map_h - SCREEN_H
    return cam_x, cam_y


class Game:
    """Window, level, player and input state of a running game."""

    def __init__(self, pack_path: str | Path | None = None) -> None:
        self.pack = PackFile(default_pack_path() if pack_path is None else pack_path)
        self.buttons = 0
        self.cam_x = 0
        self.cam_y = 0
        self._controllers: dict[int, sdl_controller.Controller] = {}
        self._closed = False
        self._clock = pygame.time.Clock()

        pygame.init()
        try:
            self._init_app()
            self.map = Map.load(self.pack, START_MAP)
            self.kero = Kero(self.map.spawn_x, self.map.spawn_y, load_surface(self.pack, KERO_IMAGE))
            self.map.render(pygame.time.get_ticks())
            self.frame = load_surface(self.pack, FRAME_IMAGE)
            self.target = pygame.Surface((self.map.width, self.map.height), 0, 32)
        except BaseException:
            self.close()
            raise

    def _init_app(self) -> None:
        try:
            sdl_controller.init()
        except pygame.error as exc:
            log.info("Couldn't initialize gamepad subsystem: %s", exc)

        flags = pygame.FULLSCREEN if FULLSCREEN else 0
        try:
            self.display = pygame.display.set_mode((WINDOW_W * SCALE, WINDOW_H * SCALE), flags)
        except pygame.error as exc:
            raise RuntimeError(f"Couldn't create window: {exc}") from exc
        pygame.display.set_caption(WINDOW_TITLE)
        self.layout = layout_offsets(self.display.get_width(), self.display.get_height())

        pygame.mixer.quit()
        try:
            pygame.mixer.init(frequency=AUDIO_FREQUENCY, size=AUDIO_SIZE, channels=AUDIO_CHANNELS)
        except pygame.error as exc:
            raise RuntimeError(f"Couldn't open audio device: {exc}") from exc

    def __enter__(self) -> Game:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _open_controller(self, device_index: int) -> None:
        try:
            pad = sdl_controller.Controller(device_index)
        except pygame.error as exc:
            log.debug("Joystick #%d could not be opened: %s", device_index, exc)
            return
        instance_id = pad.as_joystick().get_instance_id()
        self._controllers[instance_id] = pad
        log.debug("Joystick #%d connected: %s", instance_id, sdl_controller.name_forindex(device_index))

    def _close_controller(self, instance_id: int) -> None:
        pad = self._controllers.pop(instance_id, None)
        if pad is not None:
            pad.quit()

    def handle_event(self, event: pygame.event.Event) -> bool:
        """Apply one event; return False when the game should stop."""
        if event.type == pygame.QUIT:
            return False
        if event.type == pygame.CONTROLLERDEVICEADDED:
            self._open_controller(event.device_index)
            return True
        if event.type == pygame.CONTROLLERDEVICEREMOVED:
            self._close_controller(event.instance_id)
            return True

        if event.type in (pygame.KEYDOWN, pygame.KEYUP):
            button = button_from_key(event.key)
            pressed = event.type == pygame.KEYDOWN
        elif event.type in (pygame.CONTROLLERBUTTONDOWN, pygame.CONTROLLERBUTTONUP):
            button = button_from_gamepad(event.button)
            pressed = event.type == pygame.CONTROLLERBUTTONDOWN
        else:
            button = None
            pressed = False

        if button is not None:
            self.buttons = (set_bit if pressed else clear_bit)(self.buttons, button)

        return not check_bit(self.buttons, Button.SOFTLEFT)

    def update(self) -> None:
        """Advance the player and the map, and draw the frame around the screen."""
        now = pygame.time.get_ticks()
        self.buttons = self.kero.update(self.map, self.buttons, now)

        self.cam_x = int(self.kero.pos_x) - SCREEN_W // 2
        self.cam_y = int(self.kero.pos_y) - SCREEN_H // 2

        self.map.render(now)
        self.kero.render(self.map)

        self.display.blit(
            self.frame,
            (self.layout.frame_x, self.layout.frame_y),
            pygame.Rect(0, 0, FRAME_WIDTH, FRAME_HEIGHT),
        )

    def draw(self) -> None:
        """Compose the map and the player and show the camera's view."""
        self.target.blit(self.map.render_canvas, (0, 0))
        self.target.blit(
            self.kero.render_canvas,
            (int(self.kero.pos_x) - KERO_HALF, int(self.kero.pos_y) - KERO_HALF),
        )

        self.cam_x, self.cam_y = clamp_camera(self.cam_x, self.cam_y, self.map.width, self.map.height)
        view = pygame.Rect(self.cam_x, self.cam_y, SCREEN_W, SCREEN_H)
        self.display.blit(self.target, (self.layout.screen_x, self.layout.screen_y), view)
        pygame.display.flip()

    def run(self) -> None:
        """Run until the window is closed or the quit button is pressed."""
        while True:
            for event in pygame.event.get():
                if not self.handle_event(event):
                    return
            self.update()
            self.draw()
            self._clock.tick(FRAMES_PER_SECOND)

    def close(self) -> None:
        """Release controllers, audio and the window."""
        if self._closed:
            return
        self._closed = True
        for pad in self._controllers.values():
            pad.quit()
        self._controllers.clear()
        pygame.mixer.quit()
        pygame.quit()


def main(argv: list[str] | None = None) -> int:
    """Start the game; return the process exit status."""
    parser = argparse.ArgumentParser(prog="kagekero", description="A minimalist puzzle-platformer.")
    parser.add_argument("--pack", type=Path, default=None, help="asset pack to load")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(message)s")
    try:
        game = Game(args.pack)
    except (OSError, PackFileError, TiledError, ValueError, RuntimeError, pygame.error) as exc:
        log.error("Failed to initialize kagekero: %s", exc)
        return 1

    with game:
        game.run()
    return 0