from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from farmbot.core.geometry import Point
from farmbot.platform import input as human_input

logger = logging.getLogger("farmbot.input")


@dataclass
class KeyBindings:
    """Keys that activate slot bars and the slots inside the active bar."""

    slot_keys: List[str] = field(default_factory=lambda: ["1", "2", "3", "4", "5", "6", "7", "8", "9", "0"])
    bar_keys: List[str] = field(default_factory=lambda: [f"f{i}" for i in range(1, 10)])

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "KeyBindings":
        defaults = cls()
        data = data if isinstance(data, dict) else {}
        slot_keys = data.get("slot_keys")
        bar_keys = data.get("bar_keys")
        return cls(
            slot_keys=[str(k) for k in slot_keys] if isinstance(slot_keys, list) and len(slot_keys) == 10 else defaults.slot_keys,
            bar_keys=[str(k) for k in bar_keys] if isinstance(bar_keys, list) and len(bar_keys) == 9 else defaults.bar_keys,
        )

    def keys_for(self, bar: int, slot: int) -> Tuple[str, str]:
        return self.bar_keys[bar], self.slot_keys[slot]


class InputBackend(ABC):
    """Turns abstract actions into OS input. Points are client coordinates."""

    def __init__(self, bindings: Optional[KeyBindings] = None) -> None:
        self.bindings = bindings or KeyBindings()

    @abstractmethod
    def move_to(self, point: Point) -> None:
        raise NotImplementedError

    @abstractmethod
    def click_at(self, point: Point) -> None:
        raise NotImplementedError

    @abstractmethod
    def key_down(self, key: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def key_up(self, key: str) -> None:
        raise NotImplementedError

    def press_key(self, key: str) -> None:
        self.key_down(key)
        self.key_up(key)

    def send_slot(self, bar: int, slot: int) -> None:
        bar_key, slot_key = self.bindings.keys_for(bar, slot)
        self.press_key(bar_key)
        self.press_key(slot_key)


class DryRunInputBackend(InputBackend):
    """Logs and records every action without touching the OS."""

    def __init__(self, bindings: Optional[KeyBindings] = None) -> None:
        super().__init__(bindings)
        self.events: List[Tuple[Any, ...]] = []

    def move_to(self, point: Point) -> None:
        self.events.append(("move", point))
        logger.debug("dry_run move | x=%d y=%d", point.x, point.y)

    def click_at(self, point: Point) -> None:
        self.events.append(("click", point))
        logger.info("dry_run click | x=%d y=%d", point.x, point.y)

    def key_down(self, key: str) -> None:
        self.events.append(("down", key))
        logger.debug("dry_run key_down | key=%s", key)

    def key_up(self, key: str) -> None:
        self.events.append(("up", key))
        logger.debug("dry_run key_up | key=%s", key)

    def send_slot(self, bar: int, slot: int) -> None:
        self.events.append(("slot", bar, slot))
        logger.info("dry_run slot | bar=%d slot=%d keys=%s", bar, slot, "+".join(self.bindings.keys_for(bar, slot)))
        super().send_slot(bar, slot)

    def clear(self) -> None:
        self.events.clear()


class Win32InputBackend(InputBackend):
    """Live input through user32; requires Windows."""

    def __init__(
        self,
        bindings: Optional[KeyBindings] = None,
        *,
        window_origin: Tuple[int, int] = (0, 0),
        key_hold: float = 0.03,
    ) -> None:
        super().__init__(bindings)
        self.window_origin = window_origin
        self.key_hold = key_hold

    def _screen(self, point: Point) -> Tuple[int, int]:
        return self.window_origin[0] + point.x, self.window_origin[1] + point.y

    def move_to(self, point: Point) -> None:
        human_input.human_move(self._screen(point))

    def click_at(self, point: Point) -> None:
        human_input.human_click(self._screen(point))

    def key_down(self, key: str) -> None:
        human_input.key_down(key)

    def key_up(self, key: str) -> None:
        human_input.key_up(key)

    def press_key(self, key: str) -> None:
        human_input.human_keypress(key, hold=self.key_hold)


__all__ = ["DryRunInputBackend", "InputBackend", "KeyBindings", "Win32InputBackend"]
