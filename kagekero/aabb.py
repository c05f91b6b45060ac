"""Axis-aligned bounding boxes in screen coordinates (y grows downwards)."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class AABB:
    """A box given by its four edges; ``top`` is above ``bottom``."""

    bottom: float
    left: float
    right: float
    top: float

    def intersects(self, other: AABB) -> bool:
        """Return True if the two boxes overlap or touch."""
        if other.left - self.right > 0.0 or other.top - self.bottom > 0.0:
            return False
        if self.left - other.right > 0.0 or self.top - other.bottom > 0.0:
            return False
        return True


def do_intersect(a: AABB, b: AABB) -> bool:
    """Return True if boxes ``a`` and ``b`` overlap or touch."""
    return a.intersects(b)