"""Gameplay tuning and screen layout constants."""

ANIM_FPS = 15
ACCELERATION = 0.0025
DECELERATION = 0.0025
MAX_SPEED = 0.1
GRAVITY = 0.00125
MAX_FALLING_SPEED = 0.2
JUMP_VELOCITY = 0.25
POWER_UP_TIMEOUT = 500  # milliseconds

START_MAP = "001.tmj"
FRAME_IMAGE = "frame.png"
KERO_IMAGE = "kero.png"

SCALE = 1
WINDOW_W = 640
WINDOW_H = 480
FULLSCREEN = True
FRAME_OFFSET_X = 0
FRAME_OFFSET_Y = 0
SCREEN_OFFSET_X = 232
SCREEN_OFFSET_Y = 136

SCREEN_W = 176
SCREEN_H = 208
FRAME_WIDTH = 640
FRAME_HEIGHT = 480

WINDOW_TITLE = "\u5f71\u30b1\u30ed"

COLOR_KEY = (0xFF, 0x00, 0xFF)