"""Farming behaviour: kill, loot, repeat."""

from .config import FarmingConfig, Slot, SlotBar, SlotType
from .controller import FarmingController

__all__ = ["FarmingConfig", "FarmingController", "Slot", "SlotBar", "SlotType"]
