from __future__ import annotations

import importlib
import os
import random
import threading
import time
from dataclasses import asdict, dataclass, field
from logging.handlers import RotatingFileHandler
from typing import Any, Callable, Dict, Optional, Tuple

from farmbot.core.config import Config, get_config
from farmbot.core.logging import init_logging
from farmbot.core.timeline import Timeline
from farmbot.movement import DryRunInputBackend, InputBackend, KeyBindings, MovementPlayer, Win32InputBackend
from farmbot.skills.farming import FarmingConfig, FarmingController
from farmbot.vision.analyzer import ImageAnalyzer

CLICK_MODES = ("dry_run", "live")
LOOP_THREAD_NAME = "farmbot-runtime"
STOP_JOIN_TIMEOUT = 2.0


@dataclass
class FarmingStatus:
    running: bool = False
    paused: bool = False
    click_mode: str = "dry_run"  # dry_run, live
    state: str = "SearchingForEnemy"
    is_attacking: bool = False
    kill_count: int = 0
    kills_per_minute: int = 0
    kills_per_hour: int = 0
    ticks: int = 0
    last_error: Optional[str] = None
    last_result: Dict[str, Any] = field(default_factory=dict)

    def set_is_attacking(self, value: bool) -> None:
        self.is_attacking = bool(value)

    def set_kill_count(self, count: int) -> None:
        self.kill_count = int(count)

    def set_kill_avg(self, avg: Tuple[int, int]) -> None:
        self.kills_per_minute, self.kills_per_hour = int(avg[0]), int(avg[1])

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_analyzer(path: Optional[str]) -> ImageAnalyzer:
    """Instantiate an analyzer from a ``"package.module:ClassName"`` path."""
    if not path or ":" not in str(path):
        raise ValueError(f"Analyzer must be given as 'module:ClassName', got {path!r}")
    module_name, _, attr = str(path).partition(":")
    try:
        module = importlib.import_module(module_name)
        factory = getattr(module, attr)
    except (ImportError, AttributeError) as exc:
        raise ValueError(f"Cannot load analyzer {path!r}: {exc}") from exc
    analyzer = factory()
    if not isinstance(analyzer, ImageAnalyzer):
        raise ValueError(f"{path!r} is not an ImageAnalyzer")
    return analyzer


class FarmingRuntime:
    """Owns the farming controller and drives it one tick at a time on a worker thread."""

    def __init__(
        self,
        analyzer: Optional[ImageAnalyzer] = None,
        *,
        config: Optional[Config] = None,
        backend: Optional[InputBackend] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.logger = init_logging(level=os.environ.get("LOG_LEVEL", "INFO"))
        self.config_loader = config or get_config()
        self.status = FarmingStatus()
        self.timeline = Timeline()

        profile = self.config_loader.load_profile() or {}
        click_mode = profile.get("click_mode", self.status.click_mode)
        if click_mode in CLICK_MODES:
            self.status.click_mode = click_mode
        self.analyzer = analyzer or load_analyzer(profile.get("analyzer"))
        self.bindings = KeyBindings.from_dict(self.config_loader.load_keys())
        self._fixed_backend = backend
        self.movement = MovementPlayer(backend or self._make_backend(self.status.click_mode), sleep=sleep)
        self.controller = FarmingController(
            self,
            self.analyzer,
            self.movement,
            self.load_farming_config(),
            rng=rng,
            clock=clock,
            sleep=sleep,
        )

        self._thread: Optional[threading.Thread] = None
        self._stop_evt = threading.Event()
        self._lock = threading.Lock()
        self._tick_lock = threading.Lock()
        default_loop_sleep = 0.1
        try:
            env_loop = os.environ.get("FARMBOT_LOOP_SLEEP")
            self._loop_sleep = float(env_loop) if env_loop else default_loop_sleep
        except (TypeError, ValueError):
            self._loop_sleep = default_loop_sleep

    # ------------------------------------------------------------------
    def _make_backend(self, click_mode: str) -> InputBackend:
        if click_mode == "live":
            return Win32InputBackend(self.bindings, window_origin=self.analyzer.settings.window_origin)
        return DryRunInputBackend(self.bindings)

    def load_farming_config(self) -> FarmingConfig:
        self.config_loader.clear_cache()
        return FarmingConfig.from_dict(self.config_loader.load_farming())

    def reload_config(self) -> FarmingConfig:
        """Re-read farming.yml and hand it to the controller without resetting the session."""
        config = self.load_farming_config()
        self.controller.on_update_params({"config": config})
        return config

    def _set_click_mode(self, click_mode: Optional[str]) -> None:
        if click_mode not in CLICK_MODES or click_mode == self.status.click_mode:
            return
        self.status.click_mode = click_mode
        if self._fixed_backend is None:
            self.movement.backend = self._make_backend(click_mode)

    def _roll_run_log(self) -> None:
        for handler in getattr(self.logger, "handlers", []):
            if isinstance(handler, RotatingFileHandler):
                try:
                    handler.doRollover()
                except OSError:
                    self.logger.exception("Failed to rollover log handler")

    # Lifecycle ---------------------------------------------------------
    def start(self, click_mode: Optional[str] = None, *, threaded: bool = True) -> None:
        with self._lock:
            if self.status.running:
                self._set_click_mode(click_mode)
                self.status.paused = False
                self.reload_config()
                self.logger.info("Runtime updated | click_mode=%s", self.status.click_mode)
                return
            self._set_click_mode(click_mode)
            self.status.running = True
            self.status.paused = False
            self.status.last_error = None
            # A loop only watches the event of the run that started it
            stop_evt = threading.Event()
            self._stop_evt = stop_evt
            self._roll_run_log()
            self.timeline.clear()
        with self._tick_lock:
            self.controller.on_start({"config": self.load_farming_config()})
        if threaded:
            thread = threading.Thread(target=self._run_loop, args=(stop_evt,), name=LOOP_THREAD_NAME, daemon=True)
            with self._lock:
                self._thread = thread
            thread.start()
        self.logger.info("Runtime started | click_mode=%s", self.status.click_mode)

    def pause(self) -> None:
        with self._lock:
            if self.status.running:
                self.status.paused = True
                self.logger.info("Runtime paused")

    def stop(self) -> None:
        with self._lock:
            self._stop_evt.set()
            self.status.running = False
            self.status.paused = False
            thread, self._thread = self._thread, None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=STOP_JOIN_TIMEOUT)
            if thread.is_alive():
                self.logger.warning("Runtime loop did not exit within %.1fs", STOP_JOIN_TIMEOUT)
        # Let the in-flight tick finish before resetting the session
        with self._tick_lock:
            self.controller.on_stop()
        self.logger.info("Runtime stopped")

    def run_iteration(self) -> Dict[str, Any]:
        """Refresh sensors and advance the controller by one tick."""
        with self._tick_lock:
            return self._tick()

    def _tick(self) -> Dict[str, Any]:
        self.analyzer.refresh()
        result = self.controller.run_iteration()
        with self._lock:
            self.status.last_result = result
            self.status.ticks += 1
        return result

    def _run_loop(self, stop_evt: threading.Event) -> None:
        while not stop_evt.is_set():
            if self.status.paused:
                stop_evt.wait(0.1)
                continue
            try:
                with self._tick_lock:
                    if stop_evt.is_set():
                        break
                    self._tick()
            except Exception as e:
                self.status.last_error = str(e)
                self.logger.exception("runtime error")
            stop_evt.wait(self._loop_sleep)

    # Status ------------------------------------------------------------
    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return self.status.to_dict()

    def get_timeline(self, n: int = 50) -> list[dict]:
        return self.timeline.last(n)

    def set_state(self, new_state: str) -> None:
        self.status.state = new_state


__all__ = ["CLICK_MODES", "FarmingRuntime", "FarmingStatus", "load_analyzer"]
