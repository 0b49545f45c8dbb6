from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from farmbot.core.geometry import Bounds, Point

# Vertical gap between a mob name plate and the body underneath it.
ATTACK_POINT_OFFSET_Y = 10


class TargetKind(Enum):
    AGGRESSIVE = "aggressive"
    PASSIVE = "passive"
    MARKER = "marker"

    @property
    def is_mob(self) -> bool:
        return self is not TargetKind.MARKER


@dataclass(frozen=True)
class Target:
    """A mob name plate or target marker detected during one scan."""

    kind: TargetKind
    bounds: Bounds

    @classmethod
    def empty(cls) -> "Target":
        return cls(TargetKind.PASSIVE, Bounds(0, 0, 0, 0))

    @property
    def attack_point(self) -> Point:
        if self.kind is TargetKind.MARKER:
            return self.bounds.center()
        return Point(self.bounds.x + self.bounds.w // 2, self.bounds.bottom + ATTACK_POINT_OFFSET_Y)


__all__ = ["ATTACK_POINT_OFFSET_Y", "Target", "TargetKind"]
