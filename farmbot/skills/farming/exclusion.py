from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List

from farmbot.core.geometry import Bounds


@dataclass(frozen=True)
class ExclusionEntry:
    bounds: Bounds
    recorded_at: float
    ttl_ms: int

    def alive(self, now: float) -> bool:
        return (now - self.recorded_at) * 1000.0 < self.ttl_ms


class ExclusionList:
    """Screen regions to skip during target acquisition, each with its own TTL."""

    def __init__(self) -> None:
        self._entries: List[ExclusionEntry] = []

    def add(self, bounds: Bounds, ttl_ms: int, now: float) -> ExclusionEntry:
        entry = ExclusionEntry(bounds, now, int(ttl_ms))
        self._entries.append(entry)
        return entry

    def prune(self, now: float) -> int:
        before = len(self._entries)
        self._entries = [entry for entry in self._entries if entry.alive(now)]
        return before - len(self._entries)

    def overlaps(self, bounds: Bounds) -> bool:
        return any(entry.bounds.intersects(bounds) for entry in self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def __iter__(self) -> Iterator[ExclusionEntry]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)
