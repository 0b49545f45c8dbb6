from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class Stat:
    """A percentage gauge read from the HUD.

    ``last_update_time`` is the clock value of the last observed change, or
    ``None`` until the gauge has changed at least once.
    """

    value: int = 0
    last_update_time: Optional[float] = None

    def update(self, value: int, now: float) -> bool:
        value = max(0, min(100, int(value)))
        if value == self.value:
            return False
        self.value = value
        self.last_update_time = now
        return True

    def reset_last_update_time(self, now: float) -> None:
        self.last_update_time = now

    def elapsed_ms(self, now: float) -> Optional[float]:
        if self.last_update_time is None:
            return None
        return (now - self.last_update_time) * 1000.0


@dataclass
class ClientStats:
    hp: Stat = field(default_factory=Stat)
    mp: Stat = field(default_factory=Stat)
    fp: Stat = field(default_factory=Stat)
    target_hp: Stat = field(default_factory=Stat)
    target_mp: Stat = field(default_factory=Stat)

    def is_alive(self) -> bool:
        return self.hp.value > 0
