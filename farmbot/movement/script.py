"""Abstract input actions and the player that runs them in order."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Iterable, Tuple, Union, TYPE_CHECKING

from farmbot.core.geometry import Point

if TYPE_CHECKING:  # pragma: no cover
    from farmbot.movement.backends import InputBackend

logger = logging.getLogger("farmbot.movement")


@dataclass(frozen=True)
class MoveTo:
    point: Point


@dataclass(frozen=True)
class ClickAt:
    point: Point


@dataclass(frozen=True)
class PressKey:
    key: str


@dataclass(frozen=True)
class HoldKeyFor:
    key: str
    duration_ms: int


@dataclass(frozen=True)
class HoldKeys:
    keys: Tuple[str, ...]


@dataclass(frozen=True)
class ReleaseKey:
    key: str


@dataclass(frozen=True)
class ReleaseKeys:
    keys: Tuple[str, ...]


@dataclass(frozen=True)
class Rotate:
    direction: str  # "left" | "right"
    duration_ms: int


@dataclass(frozen=True)
class Wait:
    duration_ms: int


@dataclass(frozen=True)
class SendSlot:
    bar: int
    slot: int


Action = Union[MoveTo, ClickAt, PressKey, HoldKeyFor, HoldKeys, ReleaseKey, ReleaseKeys, Rotate, Wait, SendSlot]


class MovementPlayer:
    """Plays action scripts synchronously on an input backend."""

    def __init__(self, backend: "InputBackend", *, sleep: Callable[[float], None] = time.sleep) -> None:
        self.backend = backend
        self._sleep = sleep

    def wait(self, duration_ms: int) -> None:
        if duration_ms > 0:
            self._sleep(duration_ms / 1000.0)

    def play(self, actions: Iterable[Action]) -> None:
        for action in actions:
            self._run(action)

    def _run(self, action: Action) -> None:
        backend = self.backend
        if isinstance(action, MoveTo):
            backend.move_to(action.point)
        elif isinstance(action, ClickAt):
            backend.click_at(action.point)
        elif isinstance(action, PressKey):
            backend.press_key(action.key)
        elif isinstance(action, HoldKeyFor):
            backend.key_down(action.key)
            self.wait(action.duration_ms)
            backend.key_up(action.key)
        elif isinstance(action, HoldKeys):
            for key in action.keys:
                backend.key_down(key)
        elif isinstance(action, ReleaseKey):
            backend.key_up(action.key)
        elif isinstance(action, ReleaseKeys):
            for key in action.keys:
                backend.key_up(key)
        elif isinstance(action, Rotate):
            if action.direction not in ("left", "right"):
                raise ValueError(f"Unsupported rotation: {action.direction}")
            backend.key_down(action.direction)
            self.wait(action.duration_ms)
            backend.key_up(action.direction)
        elif isinstance(action, Wait):
            self.wait(action.duration_ms)
        elif isinstance(action, SendSlot):
            backend.send_slot(action.bar, action.slot)
        else:
            raise TypeError(f"Unknown action: {action!r}")


__all__ = [
    "Action",
    "ClickAt",
    "HoldKeyFor",
    "HoldKeys",
    "MoveTo",
    "MovementPlayer",
    "PressKey",
    "ReleaseKey",
    "ReleaseKeys",
    "Rotate",
    "SendSlot",
    "Wait",
]
