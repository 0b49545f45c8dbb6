from __future__ import annotations

import logging
import random
import time
from typing import Any, Callable, Dict, Optional, Tuple

from farmbot.movement.script import (
    ClickAt,
    HoldKeyFor,
    HoldKeys,
    MoveTo,
    MovementPlayer,
    PressKey,
    ReleaseKey,
    ReleaseKeys,
    Rotate,
    SendSlot,
    Wait,
)
from farmbot.skills.base import SkillController
from farmbot.skills.farming.config import FarmingConfig, SlotType
from farmbot.skills.farming.cooldowns import CooldownLedger, PetTimer
from farmbot.skills.farming.exclusion import ExclusionList
from farmbot.skills.farming.slots import select_slot
from farmbot.skills.farming.states import (
    AfterEnemyKill,
    Attacking,
    EnemyFound,
    NoEnemyFound,
    SearchingForEnemy,
    State,
    state_target,
)
from farmbot.skills.farming.targeting import acquire_target, search_distance
from farmbot.vision.analyzer import ImageAnalyzer
from farmbot.vision.targets import Target, TargetKind

logger = logging.getLogger("farmbot.farming")

MAX_ROTATION_TRIES = 20
MAX_MISSCLICKS = 30
MISSCLICK_EXCLUSION_MS = 3000
ABORT_EXCLUSION_MS = 2500
ABORT_GROW_PX = 10
BUFF_INTERVAL_MS = 2000
AGGRESSIVE_AVOIDANCE_FACTOR = 5
PICKUP_MOTION_REPEAT = 6


class FarmingController(SkillController):
    """Per-tick kill/loot loop: restore, buff, search, click, fight, pick up."""

    name = "farming"

    def __init__(
        self,
        runtime,
        analyzer: ImageAnalyzer,
        movement: MovementPlayer,
        config: Optional[FarmingConfig] = None,
        *,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        super().__init__(runtime)
        self.analyzer = analyzer
        self.movement = movement
        self.config = config or FarmingConfig()
        self._rng = rng or random.Random()
        self._clock = clock
        self._sleep = sleep
        self.ledger = CooldownLedger()
        self.exclusions = ExclusionList()
        self.pet = PetTimer()
        self._reset_session()

    # ------------------------------------------------------------------
    def _reset_session(self) -> None:
        now = self._clock()
        self.state: State = SearchingForEnemy()
        self.ledger.reset()
        self.exclusions.clear()
        self.pet.clear()
        self.is_attacking = False
        self.rotation_movement_tries = 0
        self.kill_count = 0
        self.obstacle_avoidance_count = 0
        self.missclick_count = 0
        self.already_attack_count = 0
        self.last_killed_type = TargetKind.PASSIVE
        self.start_time = now
        self.last_initial_attack_time = now
        self.last_kill_time = now
        self.last_buff_usage = now

    def on_start(self, params: Dict[str, Any] | None = None) -> None:
        self._apply_params(params or {})
        self._reset_session()
        self.runtime.set_state(self.state.name)
        logger.info("farming start | state=%s", self.state.name)

    def on_update_params(self, params: Dict[str, Any] | None = None) -> None:
        if params:
            self._apply_params(params)

    def on_stop(self) -> None:
        self._reset_session()
        self.runtime.set_state(self.state.name)
        self.runtime.status.set_is_attacking(False)
        logger.info("farming stop")

    def _apply_params(self, params: Dict[str, Any]) -> None:
        config = params.get("config")
        if isinstance(config, FarmingConfig):
            self.config = config

    def snapshot(self) -> Dict[str, Any]:
        target = state_target(self.state)
        return {
            "state": self.state.name,
            "target": target.bounds.to_tuple() if target else None,
            "is_attacking": self.is_attacking,
            "kill_count": self.kill_count,
            "missclick_count": self.missclick_count,
            "obstacle_avoidance_count": self.obstacle_avoidance_count,
            "already_attack_count": self.already_attack_count,
            "rotation_movement_tries": self.rotation_movement_tries,
            "last_killed_type": self.last_killed_type.value,
            "exclusions": len(self.exclusions),
        }

    # ------------------------------------------------------------------
    def run_iteration(self) -> Dict[str, Any]:
        config = self.config

        self._update_timestamps(config)
        self._check_restorations(config)
        self._check_buffs(config)

        previous = self.state
        state = self.state
        if isinstance(state, NoEnemyFound):
            self.state = self._on_no_enemy_found(config)
        elif isinstance(state, SearchingForEnemy):
            self.state = self._on_searching_for_enemy(config)
        elif isinstance(state, EnemyFound):
            self.state = self._on_enemy_found(state.target)
        elif isinstance(state, Attacking):
            self.state = self._on_attacking(config, state.target)
        elif isinstance(state, AfterEnemyKill):
            self.state = self._after_enemy_kill(config)

        if type(self.state) is not type(previous):
            self.runtime.set_state(self.state.name)
            self.runtime.timeline.transition(previous.name, self.state.name, kill_count=self.kill_count)
        self.runtime.status.set_is_attacking(self.is_attacking)
        return self.snapshot()

    # Timers -----------------------------------------------------------
    def _update_timestamps(self, config: FarmingConfig) -> None:
        now = self._clock()
        self._update_pickup_pet(config, now)
        self.ledger.refresh(config, now)
        self.exclusions.prune(now)

    def _update_pickup_pet(self, config: FarmingConfig, now: float) -> None:
        pet_slot = config.slot_index(SlotType.PICKUP_PET)
        if pet_slot is None:
            return
        if self.pet.expired(config.slot_cooldown(*pet_slot), now):
            # Pressing the pet slot again dismisses it
            self._press_slot(pet_slot)
            self.pet.clear()
            logger.debug("pet | dismissed bar=%d slot=%d", *pet_slot)

    # Slots ------------------------------------------------------------
    def get_slot_for(
        self,
        config: FarmingConfig,
        threshold: Optional[int],
        slot_type: SlotType,
        send: bool,
    ) -> Optional[Tuple[int, int]]:
        slot = select_slot(config, self.ledger, slot_type, threshold)
        if slot is not None and send:
            self.send_slot(slot)
        return slot

    def send_slot(self, slot: Tuple[int, int]) -> None:
        self._press_slot(slot)
        self.ledger.fire(slot[0], slot[1], self._clock())

    def _press_slot(self, slot: Tuple[int, int]) -> None:
        self.movement.play([SendSlot(slot[0], slot[1])])

    def _check_restorations(self, config: FarmingConfig) -> None:
        stats = self.analyzer.client_stats

        hp = stats.hp.value
        if hp > 0:
            if self.get_slot_for(config, hp, SlotType.PILL, True) is None:
                self.get_slot_for(config, hp, SlotType.FOOD, True)

        mp = stats.mp.value
        if mp > 0:
            self.get_slot_for(config, mp, SlotType.MP_RESTORER, True)

        fp = stats.fp.value
        if fp > 0:
            self.get_slot_for(config, fp, SlotType.FP_RESTORER, True)

    def _check_buffs(self, config: FarmingConfig) -> None:
        now = self._clock()
        if (now - self.last_buff_usage) * 1000.0 > BUFF_INTERVAL_MS:
            self.last_buff_usage = now
            self.get_slot_for(config, None, SlotType.BUFF_SKILL, True)

    def _pickup_items(self, config: FarmingConfig) -> None:
        pet_slot = self.get_slot_for(config, None, SlotType.PICKUP_PET, False)
        if pet_slot is not None:
            if not self.pet.active:
                self._press_slot(pet_slot)
            # An already summoned pet only gets its timer extended
            self.pet.summon(self._clock())
            return
        motion_slot = self.get_slot_for(config, None, SlotType.PICKUP_MOTION, False)
        if motion_slot is not None:
            self.movement.play([SendSlot(*motion_slot)] * PICKUP_MOTION_REPEAT)

    # States -----------------------------------------------------------
    def _on_no_enemy_found(self, config: FarmingConfig) -> State:
        if self.rotation_movement_tries < MAX_ROTATION_TRIES:
            self.movement.play([
                Rotate("right", 100),
                Wait(200),
            ])
            self.rotation_movement_tries += 1
            return SearchingForEnemy()

        duration = config.circle_pattern_rotation_duration
        if duration > 0:
            self._move_circle_pattern(duration)
            return SearchingForEnemy()

        # Nothing to patrol: idle until a mob walks into view
        self.rotation_movement_tries = 0
        return self.state

    def _move_circle_pattern(self, rotation_duration: int) -> None:
        # Short durations draw wide circles, long durations tight ones
        self.movement.play([
            HoldKeys(("W", "Space", "D")),
            Wait(rotation_duration),
            ReleaseKey("D"),
            Wait(20),
            ReleaseKeys(("Space", "W")),
            HoldKeyFor("S", 50),
        ])
        logger.debug("patrol | duration=%d", rotation_duration)

    def _on_searching_for_enemy(self, config: FarmingConfig) -> State:
        if config.is_stop_fighting:
            return Attacking(Target.empty())

        mobs = self.analyzer.identify_mobs(config)
        if not mobs:
            return NoEnemyFound()

        now = self._clock()
        target = acquire_target(
            mobs,
            origin=self.analyzer.screen_center(),
            max_distance=search_distance(config.circle_pattern_rotation_duration),
            exclusions=self.exclusions,
            last_killed_type=self.last_killed_type,
            last_kill_elapsed_ms=(now - self.last_kill_time) * 1000.0,
            hp=self.analyzer.client_stats.hp.value,
            min_hp_attack=config.min_hp_attack,
        )
        if target is None:
            return NoEnemyFound()
        return EnemyFound(target)

    def _on_enemy_found(self, target: Target) -> State:
        self.rotation_movement_tries = 0

        point = target.attack_point
        self.movement.play([MoveTo(point)])
        self._sleep(0.1)
        if self.analyzer.detect_cursor_hostile(point):
            self.movement.play([ClickAt(point)])
            self.missclick_count = 0
            self._sleep(0.1)
            return Attacking(target)

        self.missclick_count += 1
        self.exclusions.add(target.bounds, MISSCLICK_EXCLUSION_MS, self._clock())
        logger.debug("missclick | count=%d bounds=%s", self.missclick_count, target.bounds.to_tuple())
        if self.missclick_count == MAX_MISSCLICKS:
            self.missclick_count = 0
            return NoEnemyFound()
        return SearchingForEnemy()

    def _abort_attack(self, config: FarmingConfig) -> State:
        self.is_attacking = False

        marker = self.analyzer.identify_target_marker(config)
        if marker is not None:
            self.exclusions.add(
                marker.bounds.grow_by(self.already_attack_count * ABORT_GROW_PX),
                ABORT_EXCLUSION_MS,
                self._clock(),
            )
        self.already_attack_count += 1
        self.movement.play([PressKey("Escape")])
        logger.info("abort | already_attack_count=%d marker=%s", self.already_attack_count, marker is not None)
        self.runtime.timeline.add(self.state.name, "abort", "abort", already_attack_count=self.already_attack_count)
        return SearchingForEnemy()

    def _on_attacking(self, config: FarmingConfig, target: Target) -> State:
        stats = self.analyzer.client_stats
        is_npc = self.analyzer.detect_npc()

        if not self.is_attacking and not config.is_stop_fighting:
            if stats.target_hp.value == 0:
                # Target vanished before the fight registered
                self.movement.play([HoldKeyFor("S", 50)])
                return SearchingForEnemy()
            # A wounded mob is probably someone else's fight
            if (config.prevent_already_attacked and stats.target_hp.value < 100) or is_npc:
                return self._abort_attack(config)
            self.already_attack_count = 0

        if not is_npc and (stats.target_hp.value > 0 or stats.target_mp.value > 0):
            now = self._clock()
            if not self.is_attacking:
                self.obstacle_avoidance_count = 0
                self.last_initial_attack_time = now
                self.is_attacking = True

            stalled_ms = stats.target_hp.elapsed_ms(now)
            if (
                not config.is_stop_fighting
                and config.obstacle_avoidance_enabled
                and stalled_ms is not None
                and stalled_ms > config.obstacle_avoidance_cooldown
            ):
                stats.target_hp.reset_last_update_time(now)

                max_try = config.obstacle_avoidance_max_try
                if not config.obstacle_avoidance_only_passive and target.kind is TargetKind.AGGRESSIVE:
                    max_try *= AGGRESSIVE_AVOIDANCE_FACTOR

                if self.obstacle_avoidance_count >= max_try and stats.hp.value == 100:
                    logger.info("obstacle | unreachable after %d tries", self.obstacle_avoidance_count)
                    self.obstacle_avoidance_count = 0
                    state = self._abort_attack(config)
                    self._sleep(0.5)
                    return state

                self.last_initial_attack_time = now
                strafe_key = self._rng.choice(("A", "D"))
                self.movement.play([
                    HoldKeys(("W", "Space")),
                    HoldKeyFor(strafe_key, 200),
                    Wait(800),
                    ReleaseKeys(("Space", "W")),
                ])
                self.obstacle_avoidance_count += 1
                logger.debug("obstacle | try=%d strafe=%s", self.obstacle_avoidance_count, strafe_key)

            self.get_slot_for(config, None, SlotType.ATTACK_SKILL, True)
            return self.state

        if (
            stats.target_hp.value == 0
            and stats.target_mp.value == 0
            and self.is_attacking
            and stats.is_alive()
        ):
            self.is_attacking = False
            if target.kind.is_mob:
                self.last_killed_type = target.kind
            return AfterEnemyKill(target)

        self.is_attacking = False
        return SearchingForEnemy()

    def _after_enemy_kill(self, config: FarmingConfig) -> State:
        self.kill_count += 1
        status = self.runtime.status
        status.set_kill_count(self.kill_count)
        status.set_kill_avg(self._kill_rate())
        self.runtime.timeline.add(
            self.state.name, "kill", f"kill #{self.kill_count}", kills_per_minute=status.kills_per_minute
        )

        self.last_kill_time = self._clock()
        self._pickup_items(config)
        return SearchingForEnemy()

    def _kill_rate(self) -> Tuple[int, int]:
        now = self._clock()
        time_to_kill = now - self.last_initial_attack_time
        search_time = (now - self.last_kill_time) - time_to_kill
        cycle = time_to_kill + search_time
        if cycle <= 0:
            return 0, 0
        per_minute = round(60.0 / cycle)
        logger.info(
            "kill | count=%d to_kill=%.2fs to_find=%.2fs since_start=%.0fs per_minute=%d",
            self.kill_count,
            time_to_kill,
            search_time,
            now - self.start_time,
            per_minute,
        )
        return per_minute, per_minute * 60


__all__ = ["FarmingController", "MAX_MISSCLICKS", "MAX_ROTATION_TRIES"]
