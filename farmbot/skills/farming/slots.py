"""Pick the slot to fire for a capability across all slot bars."""

from __future__ import annotations

from typing import Optional, Tuple

from farmbot.skills.farming.config import FarmingConfig, Slot, SlotType
from farmbot.skills.farming.cooldowns import CooldownLedger


def slot_is_eligible(
    slot: Slot,
    slot_type: SlotType,
    threshold: Optional[int],
    available: bool,
) -> bool:
    return (
        slot.slot_type is slot_type
        and slot.enabled
        and available
        and slot.effective_threshold >= (threshold or 0)
    )


def select_slot(
    config: FarmingConfig,
    ledger: CooldownLedger,
    slot_type: SlotType,
    threshold: Optional[int] = None,
) -> Optional[Tuple[int, int]]:
    """Return ``(bar, slot)`` of the best usable slot, or ``None``.

    A slot qualifies when it has the requested type, is enabled, is off
    cooldown and its configured threshold is at or above ``threshold`` (the
    current stat percentage for restorers; omitted means no floor). The
    lowest configured threshold wins so the most targeted remedy fires first;
    ties keep scan order (lowest bar, then lowest slot).
    """
    best: Optional[Tuple[int, int]] = None
    best_threshold = 0
    for bar, index, slot in config.iter_slots():
        if not slot_is_eligible(slot, slot_type, threshold, ledger.is_available(bar, index)):
            continue
        if best is None or slot.effective_threshold < best_threshold:
            best = (bar, index)
            best_threshold = slot.effective_threshold
    return best


__all__ = ["select_slot", "slot_is_eligible"]
