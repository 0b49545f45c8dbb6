import unittest

import numpy as np

from farmbot.core.geometry import Bounds
from farmbot.core.timeline import Timeline
from farmbot.vision.analyzer import AnalyzerSettings, PixelProbe
from farmbot.vision.capture import WindowCapture
from farmbot.vision.stats import ClientStats, Stat

from fakes import FakeAnalyzer, FakeClock


class PixelProbeTests(unittest.TestCase):
    def setUp(self) -> None:
        self.region = np.zeros((2, 2, 3), dtype=np.uint8)
        self.region[0, 1] = (20, 40, 200)

    def test_colour_within_tolerance_matches(self) -> None:
        probe = PixelProbe(colors=[(22, 38, 204)], tolerance=5)
        self.assertTrue(probe.matches(self.region))

    def test_colour_outside_tolerance_misses(self) -> None:
        probe = PixelProbe(colors=[(30, 40, 200)], tolerance=5)
        self.assertFalse(probe.matches(self.region))

    def test_min_matches(self) -> None:
        probe = PixelProbe(colors=[(0, 0, 0)], tolerance=0, min_matches=4)
        self.assertFalse(probe.matches(self.region))
        probe.min_matches = 3
        self.assertTrue(probe.matches(self.region))

    def test_empty_inputs_never_match(self) -> None:
        self.assertFalse(PixelProbe(colors=[]).matches(self.region))
        self.assertFalse(PixelProbe(colors=[(0, 0, 0)]).matches(np.zeros((0, 0, 3), dtype=np.uint8)))


class AnalyzerTests(unittest.TestCase):
    def test_capture_is_window_relative(self) -> None:
        capture = WindowCapture((100, 50))
        self.assertEqual(
            capture.monitor_for(Bounds(10, 20, 0, 5)),
            {"left": 110, "top": 70, "width": 1, "height": 5},
        )

    def test_settings_origin_reaches_capture(self) -> None:
        analyzer = FakeAnalyzer(FakeClock())
        self.assertEqual(analyzer.capture.window_origin, (0, 0))
        self.assertEqual(analyzer.settings, AnalyzerSettings())

    def test_stat_tracks_last_change(self) -> None:
        stat = Stat()
        self.assertIsNone(stat.elapsed_ms(5.0))
        self.assertTrue(stat.update(150, 1.0))
        self.assertEqual(stat.value, 100)
        self.assertFalse(stat.update(100, 2.0))
        self.assertEqual(stat.elapsed_ms(3.0), 2000.0)
        stat.reset_last_update_time(3.0)
        self.assertEqual(stat.elapsed_ms(3.0), 0.0)

    def test_alive_follows_hp(self) -> None:
        stats = ClientStats()
        self.assertFalse(stats.is_alive())
        stats.hp.update(1, 0.0)
        self.assertTrue(stats.is_alive())


class GeometryTests(unittest.TestCase):
    def test_grow(self) -> None:
        bounds = Bounds(10, 10, 20, 10)
        self.assertEqual(bounds.grow_by(0), bounds)
        self.assertEqual(bounds.grow_by(5), Bounds(5, 5, 30, 20))

    def test_touching_edges_do_not_intersect(self) -> None:
        self.assertFalse(Bounds(0, 0, 10, 10).intersects(Bounds(10, 0, 10, 10)))
        self.assertTrue(Bounds(0, 0, 10, 10).intersects(Bounds(9, 9, 10, 10)))


class TimelineTests(unittest.TestCase):
    def test_ring_buffer_and_kind_filter(self) -> None:
        timeline = Timeline(maxlen=3)
        timeline.transition("SearchingForEnemy", "EnemyFound")
        timeline.add("Attacking", "abort", "abort")
        timeline.transition("EnemyFound", "Attacking")
        timeline.add("AfterEnemyKill", "kill", "kill #1")

        events = timeline.last(10)
        self.assertEqual([e["kind"] for e in events], ["abort", "transition", "kill"])
        self.assertEqual(timeline.last(10, kind="transition")[0]["label"], "EnemyFound->Attacking")
        self.assertTrue(events[0]["ts"].endswith("Z"))

    def test_unknown_kind_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            Timeline().add("NoEnemyFound", "teleport", "x")


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
