import unittest
from traffic_sim.domain.config import SignalControlConfig
from traffic_sim.domain.models import DIRECTIONS, ControlPhase, Direction, Point, SignalPhase, TrafficLight
from traffic_sim.systems.signal_system import PHASE_ORDER, SignalController

def make_lights(directions=DIRECTIONS):
    return {
        d: TrafficLight(
            id=f"tl-{d.value}", direction=d, position=Point(x=0.0, y=0.0),
            green_duration=30.0, yellow_duration=3.0, all_red_duration=2.0,
        )
        for d in directions
    }

class TestSignalController(unittest.TestCase):
    def setUp(self):
        self.controller = SignalController(make_lights(), SignalControlConfig())

    def test_initial_phase(self):
        self.assertEqual(self.controller.current_phase, ControlPhase.NORTH_SOUTH_GREEN)
        self.assertEqual(self.controller.phase_for(Direction.NORTH), SignalPhase.GREEN)
        self.assertEqual(self.controller.phase_for(Direction.SOUTH), SignalPhase.GREEN)
        self.assertEqual(self.controller.phase_for(Direction.EAST), SignalPhase.RED)
        self.assertEqual(self.controller.phase_for(Direction.WEST), SignalPhase.RED)

    def test_cycle_length(self):
        self.assertEqual(self.controller.cycle_length(), 70.0)
        self.assertEqual(self.controller.configured_cycle_length(), 70.0)

    def test_east_west_green_after_35_seconds(self):
        for _ in range(34):
            self.controller.update(1.0)
        self.assertEqual(self.controller.current_phase, ControlPhase.ALL_RED_1)

        self.controller.update(1.0)
        self.assertEqual(self.controller.current_phase, ControlPhase.EAST_WEST_GREEN)
        self.assertEqual(self.controller.phase_for(Direction.EAST), SignalPhase.GREEN)
        self.assertEqual(self.controller.phase_for(Direction.NORTH), SignalPhase.RED)

    def test_phase_sequence_and_cycle_count(self):
        seen = [self.controller.current_phase]
        for _ in range(140):
            self.controller.update(0.5)
            if self.controller.current_phase != seen[-1]:
                seen.append(self.controller.current_phase)

        self.assertEqual(seen, PHASE_ORDER + [ControlPhase.NORTH_SOUTH_GREEN])
        self.assertEqual(self.controller.cycle_count, 1)

    def test_fractional_time_steps_keep_cycle_timing(self):
        for dt in (0.2, 0.1):
            controller = SignalController(make_lights(), SignalControlConfig())
            changes = {}
            steps = int(round(140.0 / dt))
            for step in range(1, steps + 1):
                previous = controller.current_phase
                controller.update(dt)
                if controller.current_phase != previous:
                    changes.setdefault(controller.current_phase, []).append(step * dt)

            self.assertAlmostEqual(changes[ControlPhase.NORTH_SOUTH_YELLOW][0], 30.0, places=9, msg=dt)
            self.assertAlmostEqual(changes[ControlPhase.EAST_WEST_GREEN][0], 35.0, places=9, msg=dt)
            cycle_starts = changes[ControlPhase.NORTH_SOUTH_GREEN]
            self.assertEqual(len(cycle_starts), 2, dt)
            self.assertAlmostEqual(cycle_starts[0], 70.0, places=9, msg=dt)
            self.assertAlmostEqual(cycle_starts[1], 140.0, places=9, msg=dt)
            self.assertEqual(controller.cycle_count, 2)

    def test_conflicting_axes_never_both_non_red(self):
        for _ in range(300):
            self.controller.update(0.5)
            ns_open = any(self.controller.phase_for(d) != SignalPhase.RED for d in (Direction.NORTH, Direction.SOUTH))
            ew_open = any(self.controller.phase_for(d) != SignalPhase.RED for d in (Direction.EAST, Direction.WEST))
            self.assertFalse(ns_open and ew_open)

    def test_time_in_cycle(self):
        for _ in range(40):
            self.controller.update(1.0)
        self.assertEqual(self.controller.current_phase, ControlPhase.EAST_WEST_GREEN)
        self.assertEqual(self.controller.time_in_cycle(), 40.0)

    def test_light_timers_reset_on_change(self):
        for _ in range(31):
            self.controller.update(1.0)
        light = self.controller.get_traffic_light(Direction.NORTH)
        self.assertEqual(light.phase, SignalPhase.YELLOW)
        self.assertEqual(light.time_in_phase, 1.0)

    def test_reset(self):
        for _ in range(50):
            self.controller.update(1.0)
        self.controller.reset()

        self.assertEqual(self.controller.current_phase, ControlPhase.NORTH_SOUTH_GREEN)
        self.assertEqual(self.controller.time_in_phase, 0.0)
        self.assertEqual(self.controller.cycle_count, 0)
        self.assertEqual(self.controller.phase_for(Direction.NORTH), SignalPhase.GREEN)
        self.assertEqual(self.controller.phase_for(Direction.EAST), SignalPhase.RED)

    def test_missing_light_reads_red(self):
        controller = SignalController(
            make_lights((Direction.NORTH, Direction.SOUTH, Direction.EAST)), SignalControlConfig()
        )
        self.assertEqual(controller.phase_for(Direction.WEST), SignalPhase.RED)
        self.assertEqual(len(controller.all_traffic_lights()), 3)

    def test_stats(self):
        stats = self.controller.get_stats()
        self.assertEqual(stats.current_phase, ControlPhase.NORTH_SOUTH_GREEN)
        self.assertEqual(stats.cycle_length, 70.0)

class TestTrafficLight(unittest.TestCase):
    def test_standalone_progression(self):
        light = make_lights((Direction.NORTH,))[Direction.NORTH]
        light.set_phase(SignalPhase.GREEN)
        light.tick(30.0)
        self.assertTrue(light.is_phase_complete())
        self.assertEqual(light.remaining_time(), 0.0)

        light.advance_phase()
        self.assertEqual(light.phase, SignalPhase.YELLOW)
        self.assertFalse(light.can_pass())
        light.advance_phase()
        self.assertEqual(light.phase, SignalPhase.RED)
        self.assertFalse(light.is_phase_complete())

if __name__ == '__main__':
    unittest.main()
