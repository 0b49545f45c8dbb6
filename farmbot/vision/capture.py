from __future__ import annotations

from typing import Tuple

import mss
import numpy as np

from farmbot.core.geometry import Bounds


class WindowCapture:
    """Grabs client-relative rectangles of the game window as BGR arrays."""

    def __init__(self, window_origin: Tuple[int, int] = (0, 0)) -> None:
        self.window_origin = window_origin

    def monitor_for(self, area: Bounds) -> dict:
        ox, oy = self.window_origin
        return {
            "left": ox + area.x,
            "top": oy + area.y,
            "width": max(1, area.w),
            "height": max(1, area.h),
        }

    def grab(self, area: Bounds) -> np.ndarray:
        # mss handles are bound to the thread that opened them
        with mss.mss() as sct:
            shot = sct.grab(self.monitor_for(area))
        return np.asarray(shot)[:, :, :3].copy()


__all__ = ["WindowCapture"]
