from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

import keyboard

logger = logging.getLogger("farmbot.hotkeys")

PAUSE_HOTKEY = "ctrl+alt+p"
KILL_HOTKEY = "ctrl+alt+o"


class HotkeyManager:
    def __init__(self, on_pause_toggle: Callable[[], None], on_kill: Callable[[], None]):
        self.on_pause_toggle = on_pause_toggle
        self.on_kill = on_kill
        self._thread: Optional[threading.Thread] = None
        self._stop = threading.Event()

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._worker, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        keyboard.unhook_all_hotkeys()

    def _worker(self) -> None:
        try:
            keyboard.add_hotkey(PAUSE_HOTKEY, self.on_pause_toggle)
            keyboard.add_hotkey(KILL_HOTKEY, self.on_kill)
        except (ImportError, OSError, ValueError) as exc:
            # keyboard needs root on Linux; the API still works without hotkeys
            logger.warning("hotkeys unavailable: %s", exc)
            return
        logger.info("hotkeys | pause=%s kill=%s", PAUSE_HOTKEY, KILL_HOTKEY)
        self._stop.wait()
