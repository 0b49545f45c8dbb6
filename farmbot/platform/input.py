from __future__ import annotations

import logging
import os
import random
import time
from typing import Tuple

try:
    import ctypes
except ImportError:  # pragma: no cover
    ctypes = None  # type: ignore

if os.name == "nt" and ctypes is not None:
    from ctypes import wintypes

    user32 = ctypes.windll.user32
    INPUT_AVAILABLE = True
else:  # pragma: no cover
    user32 = None  # type: ignore
    INPUT_AVAILABLE = False

MOUSEEVENTF_LEFTDOWN = 0x0002
MOUSEEVENTF_LEFTUP = 0x0004
KEYEVENTF_KEYUP = 0x0002

VK_MAP = {
    "left": 0x25,
    "up": 0x26,
    "right": 0x27,
    "down": 0x28,
    "space": 0x20,
    "escape": 0x1B,
    "enter": 0x0D,
    "tab": 0x09,
    "shift": 0x10,
    "ctrl": 0x11,
    "alt": 0x12,
}
VK_MAP.update({f"f{i}": 0x70 + i - 1 for i in range(1, 13)})

logger = logging.getLogger("farmbot.input")


def _ensure_available() -> None:
    if not INPUT_AVAILABLE:
        raise RuntimeError("Live input simulation is only supported on Windows with ctypes available")


def _set_cursor_pos(x: int, y: int) -> None:
    _ensure_available()
    if not user32.SetCursorPos(int(x), int(y)):
        raise OSError("SetCursorPos failed")


def _get_cursor_pos() -> Tuple[int, int]:
    _ensure_available()
    pt = wintypes.POINT()
    if not user32.GetCursorPos(ctypes.byref(pt)):
        raise OSError("GetCursorPos failed")
    return pt.x, pt.y


def _mouse_event(event_flag: int) -> None:
    _ensure_available()
    user32.mouse_event(event_flag, 0, 0, 0, 0)  # type: ignore[arg-type]


def _linear_move(start: Tuple[int, int], end: Tuple[int, int], duration: float) -> None:
    if duration <= 0:
        _set_cursor_pos(end[0], end[1])
        return
    steps = max(1, int(duration / 0.01))
    sx, sy = start
    ex, ey = end
    for i in range(1, steps + 1):
        t = i / steps
        _set_cursor_pos(int(round(sx + (ex - sx) * t)), int(round(sy + (ey - sy) * t)))
        time.sleep(duration / steps)


def resolve_vk(key: str) -> int:
    k = key.strip().lower()
    if not k:
        raise ValueError("Key cannot be empty")
    if k in VK_MAP:
        return VK_MAP[k]
    if len(k) == 1 and k.isalnum():
        return ord(k.upper())
    raise ValueError(f"Unsupported key: {key}")


def key_down(key: str) -> None:
    vk = resolve_vk(key)
    _ensure_available()
    user32.keybd_event(vk, 0, 0, 0)  # type: ignore[arg-type]


def key_up(key: str) -> None:
    vk = resolve_vk(key)
    _ensure_available()
    user32.keybd_event(vk, 0, KEYEVENTF_KEYUP, 0)  # type: ignore[arg-type]


def _jittered(point: Tuple[int, int], jitter_px: int) -> Tuple[int, int, float, float]:
    jitter_x = random.uniform(-jitter_px, jitter_px) if jitter_px else 0.0
    jitter_y = random.uniform(-jitter_px, jitter_px) if jitter_px else 0.0
    return int(round(point[0] + jitter_x)), int(round(point[1] + jitter_y)), jitter_x, jitter_y


def human_move(point: Tuple[int, int], *, jitter_px: int = 0, move_duration: float = 0.05) -> None:
    """Move the cursor towards ``point`` (absolute screen coords) without clicking."""

    _ensure_available()
    target_x, target_y, jitter_x, jitter_y = _jittered(point, jitter_px)
    _linear_move(_get_cursor_pos(), (target_x, target_y), max(0.0, move_duration))
    logger.debug("move | x=%d y=%d jitter=(%.2f,%.2f)", target_x, target_y, jitter_x, jitter_y)


def human_keypress(key: str, hold: float = 0.05) -> None:
    """Press and release a keyboard key with optional hold duration."""

    key_down(key)
    time.sleep(max(0.0, hold))
    key_up(key)
    logger.debug("keypress | key=%s hold=%.3f", key, hold)


def human_click(
    point: Tuple[int, int],
    *,
    jitter_px: int = 0,
    move_duration: float = 0.05,
    click_delay: float = 0.05,
) -> None:
    """Perform a left click around ``point``.

    Args:
        point: Absolute screen-space (x, y) target.
        jitter_px: Random +/- jitter applied to both axes before moving.
        move_duration: Approximate duration of the mouse move animation.
        click_delay: Delay between button down and button up.
    """

    _ensure_available()
    target_x, target_y, jitter_x, jitter_y = _jittered(point, jitter_px)
    _linear_move(_get_cursor_pos(), (target_x, target_y), max(0.0, move_duration))

    time.sleep(0.01)
    _mouse_event(MOUSEEVENTF_LEFTDOWN)
    time.sleep(max(0.01, click_delay))
    _mouse_event(MOUSEEVENTF_LEFTUP)
    logger.debug("click | x=%d y=%d jitter=(%.2f,%.2f)", target_x, target_y, jitter_x, jitter_y)


__all__ = ["human_click", "human_keypress", "human_move", "key_down", "key_up", "resolve_vk"]
