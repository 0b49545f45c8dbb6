import unittest

from farmbot.core.geometry import Bounds
from farmbot.skills.farming.controller import MAX_MISSCLICKS, MAX_ROTATION_TRIES
from farmbot.skills.farming.states import (
    AfterEnemyKill,
    Attacking,
    EnemyFound,
    NoEnemyFound,
    SearchingForEnemy,
)
from farmbot.vision.targets import Target, TargetKind

from fakes import config_with, make_controller, slot_events


PASSIVE_MOB = Target(TargetKind.PASSIVE, Bounds(380, 250, 40, 10))
AGGRESSIVE_MOB = Target(TargetKind.AGGRESSIVE, Bounds(300, 250, 40, 10))


class RestorationTests(unittest.TestCase):
    def setUp(self) -> None:
        config = config_with(
            {"slot_type": "Food", "slot_threshold": 90},
            {"slot_type": "Pill", "slot_threshold": 90},
            {"slot_type": "MpRestorer", "slot_threshold": 50},
            {"slot_type": "BuffSkill"},
        )
        self.controller, self.analyzer, self.backend, self.clock = make_controller(config)

    def test_pill_is_preferred_over_food(self) -> None:
        self.analyzer.set_stat("hp", 80)
        self.controller.run_iteration()
        self.assertEqual(slot_events(self.backend), [("slot", 0, 1)])

    def test_food_covers_while_pill_cools_down(self) -> None:
        self.analyzer.set_stat("hp", 80)
        self.controller.run_iteration()
        self.backend.clear()
        self.controller.run_iteration()
        self.assertEqual(slot_events(self.backend), [("slot", 0, 0)])

    def test_zero_reading_is_ignored(self) -> None:
        self.controller.run_iteration()
        self.assertEqual(slot_events(self.backend), [])

    def test_mp_restorer_respects_threshold(self) -> None:
        self.analyzer.set_stat("mp", 60)
        self.controller.run_iteration()
        self.assertEqual(slot_events(self.backend), [])

        self.analyzer.set_stat("mp", 40)
        self.controller.run_iteration()
        self.assertEqual(slot_events(self.backend), [("slot", 0, 2)])

    def test_buffs_fire_once_interval_passes(self) -> None:
        self.controller.run_iteration()
        self.assertEqual(slot_events(self.backend), [])

        self.clock.advance(2001)
        self.controller.run_iteration()
        self.assertEqual(slot_events(self.backend), [("slot", 0, 3)])

    def test_slot_press_uses_bar_then_slot_key(self) -> None:
        self.analyzer.set_stat("hp", 80)
        self.controller.run_iteration()
        self.assertEqual(
            self.backend.events[:5],
            [("slot", 0, 1), ("down", "f1"), ("up", "f1"), ("down", "2"), ("up", "2")],
        )


class SearchTests(unittest.TestCase):
    def setUp(self) -> None:
        self.controller, self.analyzer, self.backend, self.clock = make_controller()

    def test_empty_scan_goes_to_no_enemy(self) -> None:
        self.controller.run_iteration()
        self.assertIsInstance(self.controller.state, NoEnemyFound)
        self.assertEqual(self.controller.runtime.status.state, "NoEnemyFound")
        events = self.controller.runtime.timeline.last()
        self.assertEqual(events[-1]["label"], "SearchingForEnemy->NoEnemyFound")

    def test_found_mob_becomes_target(self) -> None:
        self.analyzer.mobs = [AGGRESSIVE_MOB]
        self.controller.run_iteration()
        self.assertEqual(self.controller.state, EnemyFound(AGGRESSIVE_MOB))

    def test_stop_fighting_skips_search(self) -> None:
        self.controller.config.is_stop_fighting = True
        self.analyzer.mobs = [PASSIVE_MOB]
        self.controller.run_iteration()
        self.assertEqual(self.controller.state, Attacking(Target.empty()))

    def test_rotation_then_back_to_search(self) -> None:
        self.controller.state = NoEnemyFound()
        self.controller.run_iteration()
        self.assertIsInstance(self.controller.state, SearchingForEnemy)
        self.assertEqual(self.controller.rotation_movement_tries, 1)
        self.assertEqual(self.backend.events, [("down", "right"), ("up", "right")])

    def test_patrol_after_rotation_exhausted(self) -> None:
        self.controller.state = NoEnemyFound()
        self.controller.rotation_movement_tries = MAX_ROTATION_TRIES
        self.controller.run_iteration()
        self.assertIsInstance(self.controller.state, SearchingForEnemy)
        self.assertEqual(self.backend.events[:3], [("down", "W"), ("down", "Space"), ("down", "D")])
        self.assertEqual(self.backend.events[-2:], [("down", "S"), ("up", "S")])

    def test_no_patrol_keeps_idling(self) -> None:
        self.controller.config.circle_pattern_rotation_duration = 0
        self.controller.state = NoEnemyFound()
        for _ in range(MAX_ROTATION_TRIES):
            self.controller.run_iteration()
            self.controller.state = NoEnemyFound()
        self.backend.clear()

        self.controller.run_iteration()
        self.assertIsInstance(self.controller.state, NoEnemyFound)
        self.assertEqual(self.controller.rotation_movement_tries, 0)
        self.assertEqual(self.backend.events, [])


class ClickTests(unittest.TestCase):
    def setUp(self) -> None:
        self.controller, self.analyzer, self.backend, self.clock = make_controller()

    def test_hostile_cursor_clicks_and_engages(self) -> None:
        self.analyzer.cursor_hostile = True
        self.controller.missclick_count = 5
        self.controller.state = EnemyFound(PASSIVE_MOB)
        self.controller.run_iteration()

        self.assertEqual(self.controller.state, Attacking(PASSIVE_MOB))
        self.assertEqual(self.controller.missclick_count, 0)
        point = PASSIVE_MOB.attack_point
        self.assertEqual(self.backend.events, [("move", point), ("click", point)])

    def test_missclick_excludes_target(self) -> None:
        self.controller.state = EnemyFound(PASSIVE_MOB)
        self.controller.run_iteration()
        self.assertIsInstance(self.controller.state, SearchingForEnemy)
        self.assertTrue(self.controller.exclusions.overlaps(PASSIVE_MOB.bounds))

    def test_missclicks_escalate_exactly_at_limit(self) -> None:
        for attempt in range(1, MAX_MISSCLICKS):
            self.controller.state = EnemyFound(PASSIVE_MOB)
            self.controller.run_iteration()
            self.assertIsInstance(self.controller.state, SearchingForEnemy)
            self.assertEqual(self.controller.missclick_count, attempt)

        self.controller.state = EnemyFound(PASSIVE_MOB)
        self.controller.run_iteration()
        self.assertIsInstance(self.controller.state, NoEnemyFound)
        self.assertEqual(self.controller.missclick_count, 0)


class AttackTests(unittest.TestCase):
    def setUp(self) -> None:
        config = config_with({"slot_type": "AttackSkill", "slot_cooldown": 1500})
        self.controller, self.analyzer, self.backend, self.clock = make_controller(config)
        self.analyzer.set_stat("hp", 100)
        self.analyzer.set_stat("target_hp", 100)

    def engage(self, target: Target = PASSIVE_MOB) -> None:
        self.controller.state = Attacking(target)
        self.controller.run_iteration()
        self.assertTrue(self.controller.is_attacking)
        self.backend.clear()

    def test_engagement_resets_obstacle_counter(self) -> None:
        self.controller.obstacle_avoidance_count = 2
        self.engage()
        self.assertEqual(self.controller.obstacle_avoidance_count, 0)
        self.assertTrue(self.controller.runtime.status.is_attacking)
        self.assertEqual(self.controller.state, Attacking(PASSIVE_MOB))

    def test_vanished_target_backs_off(self) -> None:
        self.analyzer.set_stat("target_hp", 0)
        self.controller.state = Attacking(PASSIVE_MOB)
        self.controller.run_iteration()
        self.assertIsInstance(self.controller.state, SearchingForEnemy)
        self.assertEqual(self.backend.events, [("down", "S"), ("up", "S")])

    def test_wounded_target_is_abandoned(self) -> None:
        self.controller.config.prevent_already_attacked = True
        self.analyzer.set_stat("target_hp", 60)
        self.controller.state = Attacking(PASSIVE_MOB)
        self.controller.run_iteration()
        self.assertIsInstance(self.controller.state, SearchingForEnemy)
        self.assertEqual(self.controller.already_attack_count, 1)
        self.assertEqual(self.backend.events, [("down", "Escape"), ("up", "Escape")])

    def test_npc_is_abandoned(self) -> None:
        self.analyzer.npc = True
        self.controller.state = Attacking(PASSIVE_MOB)
        self.controller.run_iteration()
        self.assertIsInstance(self.controller.state, SearchingForEnemy)
        self.assertFalse(self.controller.is_attacking)

    def test_stalled_attack_strafes(self) -> None:
        self.engage()
        self.clock.advance(6000)
        checked_at = self.clock()
        self.controller.run_iteration()

        self.assertEqual(self.controller.obstacle_avoidance_count, 1)
        self.assertEqual(self.analyzer.client_stats.target_hp.last_update_time, checked_at)
        self.assertEqual(self.backend.events[:2], [("down", "W"), ("down", "Space")])
        self.assertIn(self.backend.events[2], [("down", "A"), ("down", "D")])
        self.assertEqual(self.controller.state, Attacking(PASSIVE_MOB))

    def test_no_strafe_before_cooldown(self) -> None:
        self.engage()
        self.clock.advance(5000)
        self.controller.run_iteration()
        self.assertEqual(self.controller.obstacle_avoidance_count, 0)

    def test_unreachable_target_aborts_at_full_hp(self) -> None:
        self.engage()
        self.controller.obstacle_avoidance_count = 3
        self.clock.advance(6000)
        self.controller.run_iteration()

        self.assertIsInstance(self.controller.state, SearchingForEnemy)
        self.assertEqual(self.controller.obstacle_avoidance_count, 0)
        self.assertFalse(self.controller.is_attacking)
        self.assertIn(("down", "Escape"), self.backend.events)

    def test_damaged_character_keeps_strafing(self) -> None:
        self.engage()
        self.analyzer.set_stat("hp", 90)
        self.controller.obstacle_avoidance_count = 3
        self.clock.advance(6000)
        self.controller.run_iteration()

        self.assertIsInstance(self.controller.state, Attacking)
        self.assertEqual(self.controller.obstacle_avoidance_count, 4)

    def test_aggressive_targets_get_more_tries(self) -> None:
        self.controller.config.obstacle_avoidance_only_passive = False
        self.engage(AGGRESSIVE_MOB)
        self.controller.obstacle_avoidance_count = 3
        self.clock.advance(6000)
        self.controller.run_iteration()
        self.assertIsInstance(self.controller.state, Attacking)

    def test_aggressive_budget_is_five_times_max_try(self) -> None:
        self.controller.config.obstacle_avoidance_only_passive = False
        self.engage(AGGRESSIVE_MOB)
        self.controller.obstacle_avoidance_count = 14
        self.clock.advance(6000)
        self.controller.run_iteration()
        self.assertEqual(self.controller.state, Attacking(AGGRESSIVE_MOB))
        self.assertEqual(self.controller.obstacle_avoidance_count, 15)
        self.assertNotIn(("down", "Escape"), self.backend.events)

        self.clock.advance(6000)
        self.controller.run_iteration()
        self.assertIsInstance(self.controller.state, SearchingForEnemy)
        self.assertEqual(self.controller.obstacle_avoidance_count, 0)
        self.assertIn(("down", "Escape"), self.backend.events)

    def test_abort_excludes_grown_marker(self) -> None:
        self.analyzer.marker = Target(TargetKind.MARKER, Bounds(100, 100, 50, 10))
        self.engage()
        self.controller.already_attack_count = 2
        self.controller.obstacle_avoidance_count = 3
        self.clock.advance(6000)
        self.controller.run_iteration()

        entries = list(self.controller.exclusions)
        self.assertEqual(len(entries), 1)
        self.assertEqual(entries[0].bounds, Bounds(80, 80, 90, 50))
        self.assertEqual(entries[0].ttl_ms, 2500)
        self.assertEqual(self.controller.already_attack_count, 3)


class KillTests(unittest.TestCase):
    def setUp(self) -> None:
        config = config_with({}, {}, {}, {}, {}, {"slot_type": "PickupPet", "slot_cooldown": 3000})
        self.controller, self.analyzer, self.backend, self.clock = make_controller(config)
        self.analyzer.set_stat("hp", 100)
        self.analyzer.set_stat("target_hp", 100)
        self.controller.state = Attacking(AGGRESSIVE_MOB)
        self.controller.run_iteration()
        self.backend.clear()

    def kill(self) -> None:
        self.analyzer.set_stat("target_hp", 0)
        self.controller.run_iteration()

    def test_kill_goes_through_after_kill(self) -> None:
        self.clock.advance(30_000)
        self.kill()
        self.assertEqual(self.controller.state, AfterEnemyKill(AGGRESSIVE_MOB))
        self.assertEqual(self.controller.last_killed_type, TargetKind.AGGRESSIVE)
        self.assertFalse(self.controller.is_attacking)

        self.controller.run_iteration()
        status = self.controller.runtime.status
        self.assertIsInstance(self.controller.state, SearchingForEnemy)
        self.assertEqual(self.controller.kill_count, 1)
        self.assertEqual(status.kill_count, 1)
        self.assertEqual((status.kills_per_minute, status.kills_per_hour), (2, 120))
        kills = self.controller.runtime.timeline.last(kind="kill")
        self.assertEqual([event["label"] for event in kills], ["kill #1"])

    def test_dead_character_does_not_count_kill(self) -> None:
        self.analyzer.set_stat("hp", 0)
        self.kill()
        self.assertIsInstance(self.controller.state, SearchingForEnemy)
        self.assertEqual(self.controller.kill_count, 0)

    def test_pet_is_summoned_then_dismissed(self) -> None:
        self.kill()
        self.controller.run_iteration()
        self.assertEqual(slot_events(self.backend), [("slot", 0, 5)])
        self.assertTrue(self.controller.pet.active)

        self.backend.clear()
        self.clock.advance(3001)
        self.controller.run_iteration()
        self.assertEqual(slot_events(self.backend), [("slot", 0, 5)])
        self.assertFalse(self.controller.pet.active)

    def test_active_pet_only_extends_timer(self) -> None:
        self.kill()
        self.controller.run_iteration()
        first_summon = self.controller.pet.summoned_at

        self.clock.advance(1000)
        self.analyzer.set_stat("target_hp", 100)
        self.controller.state = Attacking(AGGRESSIVE_MOB)
        self.controller.run_iteration()
        self.kill()
        self.assertIsInstance(self.controller.state, AfterEnemyKill)
        self.controller.run_iteration()

        self.assertEqual(self.controller.kill_count, 2)
        self.assertEqual(slot_events(self.backend), [("slot", 0, 5)])
        self.assertTrue(self.controller.pet.active)
        self.assertGreater(self.controller.pet.summoned_at, first_summon)

    def test_pickup_motion_without_pet(self) -> None:
        self.controller.config = config_with({"slot_type": "PickupMotion"})
        self.kill()
        self.controller.run_iteration()
        self.assertEqual(slot_events(self.backend), [("slot", 0, 0)] * 6)


class LifecycleTests(unittest.TestCase):
    def test_stop_resets_session(self) -> None:
        controller, analyzer, backend, clock = make_controller()
        controller.kill_count = 4
        controller.missclick_count = 3
        controller.state = Attacking(PASSIVE_MOB)
        controller.on_stop()
        self.assertIsInstance(controller.state, SearchingForEnemy)
        self.assertEqual(controller.kill_count, 0)
        self.assertEqual(controller.missclick_count, 0)
        self.assertEqual(controller.runtime.status.state, "SearchingForEnemy")

    def test_start_applies_config(self) -> None:
        controller, analyzer, backend, clock = make_controller()
        config = config_with({"slot_type": "Food"}, min_hp_attack=40)
        controller.on_start({"config": config})
        self.assertIs(controller.config, config)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
