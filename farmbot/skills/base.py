from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from farmbot.runtime.service import FarmingRuntime


class SkillController(ABC):
    """Contract for behaviour controllers driven one tick at a time by the runtime."""

    name: str = "base"

    def __init__(self, runtime: "FarmingRuntime") -> None:
        self.runtime = runtime

    # Lifecycle hooks -----------------------------------------------------
    def on_start(self, params: Dict[str, Any] | None = None) -> None:
        """Called when the runtime starts this behaviour."""
        return None

    def on_update_params(self, params: Dict[str, Any] | None = None) -> None:
        """Called when parameters change while running."""
        return None

    def on_stop(self) -> None:
        """Called when the runtime stops the behaviour."""
        return None

    def snapshot(self) -> Dict[str, Any]:
        """Optional per-behaviour data exposed via the API."""
        return {}

    # Tick ----------------------------------------------------------------
    @abstractmethod
    def run_iteration(self) -> Dict[str, Any]:
        """Advance one tick and return a status snapshot."""
        raise NotImplementedError
