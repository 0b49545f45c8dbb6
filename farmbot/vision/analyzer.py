"""Contract for the vision collaborator consumed by the farming controller."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, TYPE_CHECKING

import numpy as np

from farmbot.core.geometry import Bounds, Point
from farmbot.vision.capture import WindowCapture
from farmbot.vision.stats import ClientStats
from farmbot.vision.targets import Target

if TYPE_CHECKING:  # pragma: no cover
    from farmbot.skills.farming.config import FarmingConfig

# Side of the square sampled under the cursor.
CURSOR_SAMPLE_PX = 2


@dataclass
class PixelProbe:
    """Matches a captured region against a set of reference BGR colours."""

    colors: Sequence[Tuple[int, int, int]]
    tolerance: int = 5
    area: Optional[Bounds] = None
    min_matches: int = 1

    def matches(self, region: np.ndarray) -> bool:
        if region is None or region.size == 0 or not self.colors:
            return False
        pixels = region.reshape(-1, region.shape[-1])[:, :3].astype(np.int16)
        refs = np.asarray(self.colors, dtype=np.int16).reshape(-1, 1, 3)
        within = np.all(np.abs(pixels[None, :, :] - refs) <= self.tolerance, axis=2)
        hits = int(np.count_nonzero(np.any(within, axis=0)))
        return hits >= self.min_matches


@dataclass
class AnalyzerSettings:
    window_origin: Tuple[int, int] = (0, 0)
    cursor_probe: Optional[PixelProbe] = None
    npc_probe: Optional[PixelProbe] = None


class ImageAnalyzer(ABC):
    """Screen reader that feeds mob lists, gauges and pixel classifications.

    Mob, marker and gauge recognition are left to subclasses. Pixel
    classification (cursor style, NPC check) is implemented here on top of
    :meth:`capture_area` and :class:`PixelProbe`.
    """

    def __init__(self, settings: Optional[AnalyzerSettings] = None) -> None:
        self.settings = settings or AnalyzerSettings()
        self.client_stats = ClientStats()
        self.capture = WindowCapture(self.settings.window_origin)

    # Sensors -------------------------------------------------------------
    @abstractmethod
    def refresh(self) -> None:
        """Capture a new frame and update ``client_stats``."""
        raise NotImplementedError

    @abstractmethod
    def identify_mobs(self, config: "FarmingConfig") -> List[Target]:
        raise NotImplementedError

    @abstractmethod
    def identify_target_marker(self, config: "FarmingConfig") -> Optional[Target]:
        raise NotImplementedError

    @abstractmethod
    def screen_center(self) -> Point:
        raise NotImplementedError

    # Pixel classification -------------------------------------------------
    def capture_area(self, area: Bounds) -> np.ndarray:
        return self.capture.grab(area)

    def detect_cursor_hostile(self, point: Point) -> bool:
        """True when the cursor at ``point`` shows the attack style."""
        probe = self.settings.cursor_probe
        if probe is None:
            return False
        region = self.capture_area(Bounds(point.x, point.y, CURSOR_SAMPLE_PX, CURSOR_SAMPLE_PX))
        return probe.matches(region)

    def detect_npc(self) -> bool:
        probe = self.settings.npc_probe
        if probe is None or probe.area is None:
            return False
        return probe.matches(self.capture_area(probe.area))


__all__ = ["AnalyzerSettings", "CURSOR_SAMPLE_PX", "ImageAnalyzer", "PixelProbe"]
