from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Point:
    x: int
    y: int

    def distance_to(self, other: "Point") -> float:
        return math.hypot(self.x - other.x, self.y - other.y)

    def to_tuple(self) -> Tuple[int, int]:
        return self.x, self.y


@dataclass(frozen=True)
class Bounds:
    """Screen rectangle (x, y, w, h) in client coordinates."""

    x: int
    y: int
    w: int
    h: int

    @property
    def right(self) -> int:
        return self.x + self.w

    @property
    def bottom(self) -> int:
        return self.y + self.h

    def center(self) -> Point:
        return Point(self.x + self.w // 2, self.y + self.h // 2)

    def grow_by(self, px: int) -> "Bounds":
        """Return the rectangle expanded outward by ``px`` on every side."""
        if px <= 0:
            return self
        return Bounds(self.x - px, self.y - px, self.w + 2 * px, self.h + 2 * px)

    def intersects(self, other: "Bounds") -> bool:
        return (
            self.x < other.right
            and other.x < self.right
            and self.y < other.bottom
            and other.y < self.bottom
        )

    def to_tuple(self) -> Tuple[int, int, int, int]:
        return self.x, self.y, self.w, self.h


__all__ = ["Bounds", "Point"]
