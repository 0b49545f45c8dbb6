"""Target acquisition: choose one mob to engage from a scan."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from farmbot.core.geometry import Point
from farmbot.skills.farming.exclusion import ExclusionList
from farmbot.vision.targets import Target, TargetKind

logger = logging.getLogger("farmbot.farming.targeting")

# Detection radius around the screen center (px).
CLOSE_SEARCH_DISTANCE = 325
PATROL_SEARCH_DISTANCE = 1000
# A lone mob of the last killed kind seen this soon after a kill is treated
# as a stale detection of the corpse.
RECENT_KILL_WINDOW_MS = 5500
RECENT_KILL_MOB_COUNT = 1


def search_distance(patrol_duration: int) -> int:
    return CLOSE_SEARCH_DISTANCE if patrol_duration == 0 else PATROL_SEARCH_DISTANCE


def _of_kind(mobs: Sequence[Target], kind: TargetKind) -> List[Target]:
    return [mob for mob in mobs if mob.kind is kind]


def _is_kill_echo(
    candidates: Sequence[Target],
    kind: TargetKind,
    last_killed_type: TargetKind,
    last_kill_elapsed_ms: float,
) -> bool:
    return (
        kind is last_killed_type
        and len(candidates) == RECENT_KILL_MOB_COUNT
        and last_kill_elapsed_ms < RECENT_KILL_WINDOW_MS
    )


def find_closest_mob(
    mobs: Sequence[Target],
    origin: Point,
    max_distance: float,
    exclusions: Optional[ExclusionList] = None,
) -> Optional[Target]:
    """Nearest mob to ``origin`` within ``max_distance`` not overlapping an exclusion."""
    best: Optional[Target] = None
    best_distance = 0.0
    for mob in mobs:
        if exclusions is not None and exclusions.overlaps(mob.bounds):
            continue
        distance = origin.distance_to(mob.attack_point)
        if distance > max_distance:
            continue
        if best is None or distance < best_distance:
            best = mob
            best_distance = distance
    return best


def acquire_target(
    mobs: Sequence[Target],
    *,
    origin: Point,
    max_distance: float,
    exclusions: Optional[ExclusionList],
    last_killed_type: TargetKind,
    last_kill_elapsed_ms: float,
    hp: int,
    min_hp_attack: int,
) -> Optional[Target]:
    candidates = _of_kind(mobs, TargetKind.AGGRESSIVE)
    kind = TargetKind.AGGRESSIVE

    # Fall back to passive mobs when no aggressive one is worth chasing.
    if not candidates or _is_kill_echo(candidates, kind, last_killed_type, last_kill_elapsed_ms):
        if hp >= min_hp_attack:
            candidates = _of_kind(mobs, TargetKind.PASSIVE)
            kind = TargetKind.PASSIVE

    if not candidates:
        return None
    if _is_kill_echo(candidates, kind, last_killed_type, last_kill_elapsed_ms):
        logger.debug("acquire | skipped lone %s mob after recent kill", kind.value)
        return None

    target = find_closest_mob(candidates, origin, max_distance, exclusions)
    if target is not None:
        logger.debug(
            "acquire | kind=%s candidates=%d bounds=%s", kind.value, len(candidates), target.bounds.to_tuple()
        )
    return target


__all__ = [
    "CLOSE_SEARCH_DISTANCE",
    "PATROL_SEARCH_DISTANCE",
    "RECENT_KILL_WINDOW_MS",
    "acquire_target",
    "find_closest_mob",
    "search_distance",
]
