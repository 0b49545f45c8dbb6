from __future__ import annotations

import threading
from collections import deque
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Deque, Dict, List, Optional

EVENT_KINDS = ("transition", "kill", "abort", "info")


@dataclass
class Event:
    ts: str
    state: str
    kind: str
    label: str
    data: Dict[str, Any]


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class Timeline:
    """Bounded, thread-safe history of engagement events for the API."""

    def __init__(self, maxlen: int = 200) -> None:
        self._events: Deque[Event] = deque(maxlen=maxlen)
        self._lock = threading.Lock()

    def add(self, state: str, kind: str, label: str, **data: Any) -> Event:
        if kind not in EVENT_KINDS:
            raise ValueError(f"Unknown timeline event kind: {kind}")
        event = Event(ts=_utc_now(), state=state, kind=kind, label=label, data=data)
        with self._lock:
            self._events.append(event)
        return event

    def transition(self, previous: str, current: str, **data: Any) -> Event:
        return self.add(current, "transition", f"{previous}->{current}", **data)

    def last(self, n: int = 50, kind: Optional[str] = None) -> List[Dict[str, Any]]:
        with self._lock:
            events = [e for e in self._events if kind is None or e.kind == kind]
        return [asdict(e) for e in events[-n:]] if n > 0 else []

    def clear(self) -> None:
        with self._lock:
            self._events.clear()


__all__ = ["EVENT_KINDS", "Event", "Timeline"]
