"""Engagement states. Each state carries only the payload it needs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional, Union

from farmbot.vision.targets import Target


@dataclass(frozen=True)
class NoEnemyFound:
    name: ClassVar[str] = "NoEnemyFound"


@dataclass(frozen=True)
class SearchingForEnemy:
    name: ClassVar[str] = "SearchingForEnemy"


@dataclass(frozen=True)
class EnemyFound:
    target: Target
    name: ClassVar[str] = "EnemyFound"


@dataclass(frozen=True)
class Attacking:
    target: Target
    name: ClassVar[str] = "Attacking"


@dataclass(frozen=True)
class AfterEnemyKill:
    target: Target
    name: ClassVar[str] = "AfterEnemyKill"


State = Union[NoEnemyFound, SearchingForEnemy, EnemyFound, Attacking, AfterEnemyKill]


def state_target(state: State) -> Optional[Target]:
    return getattr(state, "target", None)


__all__ = [
    "AfterEnemyKill",
    "Attacking",
    "EnemyFound",
    "NoEnemyFound",
    "SearchingForEnemy",
    "State",
    "state_target",
]
