"""A minimalist pygame puzzle-platformer with Tiled maps and a packed asset file."""

__version__ = "1.0.0"