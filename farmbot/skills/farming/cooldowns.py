from __future__ import annotations

from typing import List, Optional, Tuple

from farmbot.skills.farming.config import SLOT_BAR_COUNT, SLOTS_PER_BAR, FarmingConfig


def _cell(bar: int, slot: int) -> int:
    if not (0 <= bar < SLOT_BAR_COUNT and 0 <= slot < SLOTS_PER_BAR):
        raise IndexError(f"slot ({bar}, {slot}) out of range")
    return bar * SLOTS_PER_BAR + slot


class CooldownLedger:
    """Last-fired timestamps for the 9x10 slot grid, stored flat."""

    def __init__(self) -> None:
        self._fired_at: List[Optional[float]] = [None] * (SLOT_BAR_COUNT * SLOTS_PER_BAR)

    def fire(self, bar: int, slot: int, now: float) -> None:
        self._fired_at[_cell(bar, slot)] = now

    def fired_at(self, bar: int, slot: int) -> Optional[float]:
        return self._fired_at[_cell(bar, slot)]

    def is_available(self, bar: int, slot: int) -> bool:
        return self.fired_at(bar, slot) is None

    def refresh(self, config: FarmingConfig, now: float) -> List[Tuple[int, int]]:
        """Clear cells whose cooldown has elapsed; return the cleared (bar, slot) pairs."""
        cleared: List[Tuple[int, int]] = []
        for idx, fired_at in enumerate(self._fired_at):
            if fired_at is None:
                continue
            bar, slot = divmod(idx, SLOTS_PER_BAR)
            if (now - fired_at) * 1000.0 > config.slot_cooldown(bar, slot):
                self._fired_at[idx] = None
                cleared.append((bar, slot))
        return cleared

    def reset(self) -> None:
        for idx in range(len(self._fired_at)):
            self._fired_at[idx] = None


class PetTimer:
    """Tracks the summoned pickup pet; it stays out until its slot cooldown elapses."""

    def __init__(self) -> None:
        self.summoned_at: Optional[float] = None

    @property
    def active(self) -> bool:
        return self.summoned_at is not None

    def summon(self, now: float) -> None:
        self.summoned_at = now

    def expired(self, cooldown_ms: int, now: float) -> bool:
        if self.summoned_at is None:
            return False
        return (now - self.summoned_at) * 1000.0 > cooldown_ms

    def clear(self) -> None:
        self.summoned_at = None
