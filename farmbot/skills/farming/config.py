"""Typed farming configuration: slot bars plus behaviour toggles."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple

logger = logging.getLogger("farmbot.config")

SLOT_BAR_COUNT = 9
SLOTS_PER_BAR = 10
DEFAULT_SLOT_COOLDOWN_MS = 100
DEFAULT_SLOT_THRESHOLD = 100


class SlotType(Enum):
    UNUSED = "Unused"
    FOOD = "Food"
    PILL = "Pill"
    HEAL_SKILL = "HealSkill"
    MP_RESTORER = "MpRestorer"
    FP_RESTORER = "FpRestorer"
    PICKUP_PET = "PickupPet"
    PICKUP_MOTION = "PickupMotion"
    ATTACK_SKILL = "AttackSkill"
    BUFF_SKILL = "BuffSkill"
    FLYING = "Flying"

    @classmethod
    def parse(cls, raw: object) -> "SlotType":
        """Accept ``"PickupPet"``, ``"pickup_pet"`` or ``"pickup pet"``."""
        key = str(raw or "").replace("_", "").replace(" ", "").strip().lower()
        for member in cls:
            if member.value.lower() == key:
                return member
        if key:
            logger.warning("config | unknown slot_type=%r, using Unused", raw)
        return cls.UNUSED


def _opt_int(raw: object, name: str) -> Optional[int]:
    if raw is None:
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        logger.warning("config | invalid %s=%r ignored", name, raw)
        return None


def _int(raw: object, default: int, name: str) -> int:
    value = _opt_int(raw, name)
    return default if value is None else value


def _bool(raw: object, default: bool) -> bool:
    if raw is None:
        return default
    if isinstance(raw, str):
        return raw.strip().lower() in ("true", "1", "yes", "on")
    return bool(raw)


@dataclass
class Slot:
    slot_type: SlotType = SlotType.UNUSED
    cooldown: Optional[int] = None
    threshold: Optional[int] = None
    enabled: bool = True

    @property
    def effective_cooldown(self) -> int:
        return DEFAULT_SLOT_COOLDOWN_MS if self.cooldown is None else self.cooldown

    @property
    def effective_threshold(self) -> int:
        return DEFAULT_SLOT_THRESHOLD if self.threshold is None else self.threshold

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Slot":
        if not isinstance(data, dict):
            return cls()
        return cls(
            slot_type=SlotType.parse(data.get("slot_type")),
            cooldown=_opt_int(data.get("slot_cooldown"), "slot_cooldown"),
            threshold=_opt_int(data.get("slot_threshold"), "slot_threshold"),
            enabled=_bool(data.get("slot_enabled"), True),
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"slot_type": self.slot_type.value, "slot_enabled": self.enabled}
        if self.cooldown is not None:
            out["slot_cooldown"] = self.cooldown
        if self.threshold is not None:
            out["slot_threshold"] = self.threshold
        return out


@dataclass
class SlotBar:
    slots: List[Slot] = field(default_factory=lambda: [Slot() for _ in range(SLOTS_PER_BAR)])

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "SlotBar":
        raw_slots = data.get("slots") if isinstance(data, dict) else None
        if not isinstance(raw_slots, list):
            raw_slots = []
        slots = [Slot.from_dict(item) for item in raw_slots[:SLOTS_PER_BAR]]
        slots.extend(Slot() for _ in range(SLOTS_PER_BAR - len(slots)))
        return cls(slots=slots)

    def to_dict(self) -> Dict[str, Any]:
        return {"slots": [slot.to_dict() for slot in self.slots]}


def _default_bars() -> List[SlotBar]:
    return [SlotBar() for _ in range(SLOT_BAR_COUNT)]


def _color_triplet(raw: object) -> Tuple[Optional[int], Optional[int], Optional[int]]:
    values: List[Optional[int]] = [None, None, None]
    if isinstance(raw, (list, tuple)):
        for i, item in enumerate(raw[:3]):
            values[i] = _opt_int(item, "mobs_colors")
    return values[0], values[1], values[2]


@dataclass
class FarmingConfig:
    """Farming mode settings. Missing keys resolve to the defaults below."""

    slot_bars: List[SlotBar] = field(default_factory=_default_bars)
    # Patrol step length in ms; 0 disables patrol movement.
    circle_pattern_rotation_duration: int = 30
    is_stop_fighting: bool = False
    prevent_already_attacked: bool = False
    passive_mobs_colors: Tuple[Optional[int], Optional[int], Optional[int]] = (None, None, None)
    passive_tolerance: int = 5
    aggressive_mobs_colors: Tuple[Optional[int], Optional[int], Optional[int]] = (None, None, None)
    aggressive_tolerance: int = 10
    obstacle_avoidance_enabled: bool = True
    obstacle_avoidance_cooldown: int = 5500
    obstacle_avoidance_max_try: int = 3
    obstacle_avoidance_only_passive: bool = True
    min_mobs_name_width: int = 15
    max_mobs_name_width: int = 180
    min_hp_attack: int = 0

    # -- Slot lookups -----------------------------------------------------
    def slot(self, bar: int, index: int) -> Slot:
        return self.slot_bars[bar].slots[index]

    def slot_cooldown(self, bar: int, index: int) -> int:
        return self.slot(bar, index).effective_cooldown

    def iter_slots(self) -> Iterator[Tuple[int, int, Slot]]:
        """Yield ``(bar, index, slot)`` in bar-then-slot order."""
        for bar_index, bar in enumerate(self.slot_bars):
            for slot_index, slot in enumerate(bar.slots):
                yield bar_index, slot_index, slot

    def slot_index(self, slot_type: SlotType) -> Optional[Tuple[int, int]]:
        """First slot of ``slot_type`` regardless of enabled state or cooldown."""
        for bar_index, slot_index, slot in self.iter_slots():
            if slot.slot_type is slot_type:
                return bar_index, slot_index
        return None

    # -- Serialization ----------------------------------------------------
    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "FarmingConfig":
        data = data if isinstance(data, dict) else {}
        defaults = cls()
        raw_bars = data.get("slot_bars")
        if not isinstance(raw_bars, list):
            raw_bars = []
        bars = [SlotBar.from_dict(item) for item in raw_bars[:SLOT_BAR_COUNT]]
        bars.extend(SlotBar() for _ in range(SLOT_BAR_COUNT - len(bars)))
        return cls(
            slot_bars=bars,
            circle_pattern_rotation_duration=max(
                0,
                _int(
                    data.get("circle_pattern_rotation_duration"),
                    defaults.circle_pattern_rotation_duration,
                    "circle_pattern_rotation_duration",
                ),
            ),
            is_stop_fighting=_bool(data.get("is_stop_fighting"), defaults.is_stop_fighting),
            prevent_already_attacked=_bool(data.get("prevent_already_attacked"), defaults.prevent_already_attacked),
            passive_mobs_colors=_color_triplet(data.get("passive_mobs_colors")),
            passive_tolerance=_int(data.get("passive_tolerance"), defaults.passive_tolerance, "passive_tolerance"),
            aggressive_mobs_colors=_color_triplet(data.get("aggressive_mobs_colors")),
            aggressive_tolerance=_int(
                data.get("aggressive_tolerance"), defaults.aggressive_tolerance, "aggressive_tolerance"
            ),
            obstacle_avoidance_enabled=_bool(
                data.get("obstacle_avoidance_enabled"), defaults.obstacle_avoidance_enabled
            ),
            obstacle_avoidance_cooldown=_int(
                data.get("obstacle_avoidance_cooldown"),
                defaults.obstacle_avoidance_cooldown,
                "obstacle_avoidance_cooldown",
            ),
            obstacle_avoidance_max_try=_int(
                data.get("obstacle_avoidance_max_try"),
                defaults.obstacle_avoidance_max_try,
                "obstacle_avoidance_max_try",
            ),
            obstacle_avoidance_only_passive=_bool(
                data.get("obstacle_avoidance_only_passive"), defaults.obstacle_avoidance_only_passive
            ),
            min_mobs_name_width=_int(
                data.get("min_mobs_name_width"), defaults.min_mobs_name_width, "min_mobs_name_width"
            ),
            max_mobs_name_width=_int(
                data.get("max_mobs_name_width"), defaults.max_mobs_name_width, "max_mobs_name_width"
            ),
            min_hp_attack=_int(data.get("min_hp_attack"), defaults.min_hp_attack, "min_hp_attack"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "slot_bars": [bar.to_dict() for bar in self.slot_bars],
            "circle_pattern_rotation_duration": self.circle_pattern_rotation_duration,
            "is_stop_fighting": self.is_stop_fighting,
            "prevent_already_attacked": self.prevent_already_attacked,
            "passive_mobs_colors": list(self.passive_mobs_colors),
            "passive_tolerance": self.passive_tolerance,
            "aggressive_mobs_colors": list(self.aggressive_mobs_colors),
            "aggressive_tolerance": self.aggressive_tolerance,
            "obstacle_avoidance_enabled": self.obstacle_avoidance_enabled,
            "obstacle_avoidance_cooldown": self.obstacle_avoidance_cooldown,
            "obstacle_avoidance_max_try": self.obstacle_avoidance_max_try,
            "obstacle_avoidance_only_passive": self.obstacle_avoidance_only_passive,
            "min_mobs_name_width": self.min_mobs_name_width,
            "max_mobs_name_width": self.max_mobs_name_width,
            "min_hp_attack": self.min_hp_attack,
        }


__all__ = [
    "DEFAULT_SLOT_COOLDOWN_MS",
    "DEFAULT_SLOT_THRESHOLD",
    "FarmingConfig",
    "SLOTS_PER_BAR",
    "SLOT_BAR_COUNT",
    "Slot",
    "SlotBar",
    "SlotType",
]
