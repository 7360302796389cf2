import math
import unittest
from traffic_sim.domain.models import Direction, SignalPhase, TurnIntent, Vehicle, VehicleStatus
from traffic_sim.systems.vehicle_system import VehicleSystem

def make_vehicle(vehicle_id="v0001", y=-100.0, velocity=0.0, **kwargs):
    return Vehicle(
        id=vehicle_id, direction=Direction.NORTH, turn_intent=TurnIntent.STRAIGHT,
        x=0.0, y=y, velocity=velocity, **kwargs
    )

class TestVehicleSystem(unittest.TestCase):
    def setUp(self):
        self.system = VehicleSystem()

    def test_free_road_acceleration(self):
        vehicle = make_vehicle()
        self.system.update(vehicle, 1.0, None, 85.0, SignalPhase.GREEN)

        self.assertEqual(vehicle.acceleration, 2.0)
        self.assertEqual(vehicle.velocity, 2.0)
        self.assertEqual(vehicle.y, -98.0)
        self.assertEqual(vehicle.total_distance, 2.0)
        self.assertEqual(vehicle.total_travel_time, 1.0)
        self.assertEqual(vehicle.max_speed_achieved, 2.0)
        self.assertEqual(vehicle.status, VehicleStatus.APPROACHING)

    def test_red_light_stops_vehicle(self):
        vehicle = make_vehicle(velocity=5.0)
        target = self.system.calculate_target_speed(vehicle, None, 5.0, SignalPhase.RED)
        self.assertEqual(target, 0.0)

        self.system.update(vehicle, 1.0, None, 5.0, SignalPhase.RED)
        self.assertEqual(vehicle.acceleration, -3.0)
        self.assertEqual(vehicle.velocity, 2.0)

    def test_far_red_light_ignored(self):
        vehicle = make_vehicle(velocity=5.0)
        # stopping distance 25 / 6 plus the 10 m margin is well under 80 m
        self.assertEqual(self.system.calculate_target_speed(vehicle, None, 80.0, SignalPhase.RED), vehicle.max_speed)

    def test_waiting_at_red_accrues_wait_time(self):
        vehicle = make_vehicle()
        for _ in range(3):
            self.system.update(vehicle, 1.0, None, 0.0, SignalPhase.RED)

        self.assertEqual(vehicle.velocity, 0.0)
        self.assertEqual(vehicle.wait_time, 3.0)
        self.assertEqual(vehicle.status, VehicleStatus.WAITING)

        self.system.update(vehicle, 1.0, None, 0.0, SignalPhase.GREEN)
        self.assertEqual(vehicle.status, VehicleStatus.APPROACHING)

    def test_stationary_leader_at_safe_gap_holds_follower(self):
        follower = make_vehicle("v0002", y=-100.0)
        # desired gap at rest is min_gap = 2.0; leader length 4.5
        leader = make_vehicle("v0001", y=-100.0 + 2.0 + 4.5)

        self.assertEqual(self.system.gap(follower, leader), self.system.desired_gap(follower))
        self.system.update(follower, 1.0, leader, 50.0, SignalPhase.GREEN)

        self.assertLessEqual(follower.acceleration, 0.0)
        self.assertEqual(follower.velocity, 0.0)
        self.assertEqual(follower.y, -100.0)

    def test_overlapping_leader_brakes_finitely(self):
        follower = make_vehicle("v0002", y=-100.0, velocity=5.0)
        leader = make_vehicle("v0001", y=-100.0)

        self.assertEqual(self.system.gap(follower, leader), 0.0)
        acceleration = self.system.calculate_acceleration(follower, follower.max_speed, leader)
        self.assertTrue(math.isfinite(acceleration))
        self.assertLess(acceleration, 0.0)

    def test_speed_is_clamped(self):
        vehicle = make_vehicle(velocity=1.0)
        self.system.update(vehicle, 1.0, None, 0.0, SignalPhase.RED)
        self.assertEqual(vehicle.velocity, 0.0)
        self.assertEqual(vehicle.y, -100.0)

    def test_helpers(self):
        vehicle = make_vehicle(velocity=6.0)
        self.assertEqual(VehicleSystem.stopping_distance(vehicle), 6.0)
        self.assertEqual(VehicleSystem.desired_gap(vehicle), 2.0 + 6.0 * 1.5)
        self.assertEqual(VehicleSystem.stopping_distance(make_vehicle()), 0.0)

if __name__ == '__main__':
    unittest.main()
