import unittest
from traffic_sim.domain.models import (
    DIRECTIONS, Direction, QueueLengthRecord, SignalPhase, TurnIntent, VehicleRecord
)
from traffic_sim.metrics import statistics
from traffic_sim.metrics.collector import DataCollector

def make_record(vehicle_id, exit_time, travel=60.0, wait=10.0, direction=Direction.NORTH):
    return VehicleRecord(
        id=vehicle_id, entry_time=exit_time - travel, exit_time=exit_time, total_travel_time=travel,
        wait_time=wait, direction=direction, turn_intent=TurnIntent.STRAIGHT, max_speed_achieved=11.1,
    )

def queue_sample(time, north=0, south=0, east=0, west=0):
    return QueueLengthRecord(time=time, queue_lengths={
        Direction.NORTH: north, Direction.SOUTH: south, Direction.EAST: east, Direction.WEST: west
    })

class TestDataCollector(unittest.TestCase):
    def setUp(self):
        self.collector = DataCollector(warmup_period=100.0)

    def test_records_before_warmup_are_discarded(self):
        self.collector.record_vehicle_exit(make_record("v0001", 50.0))
        self.collector.record_vehicle_exit(make_record("v0002", 100.0))
        self.collector.record_vehicle_exit(make_record("v0003", 150.0, direction=Direction.EAST))

        self.assertEqual([r.id for r in self.collector.get_vehicle_data()], ["v0002", "v0003"])
        self.assertEqual(self.collector.discarded_count, 1)
        self.assertEqual(self.collector.get_collected_vehicle_count(), 2)

    def test_filters(self):
        self.collector.record_vehicle_exit(make_record("v0001", 120.0))
        self.collector.record_vehicle_exit(make_record("v0002", 200.0, direction=Direction.EAST))

        self.assertEqual([r.id for r in self.collector.get_vehicle_data_by_direction(Direction.EAST)], ["v0002"])
        self.assertEqual([r.id for r in self.collector.get_vehicle_data_by_time_range(100.0, 150.0)], ["v0001"])

    def test_warmup_flag_logged_once(self):
        self.collector.record_vehicle_entry("v0001", Direction.NORTH, 10.0)
        self.assertFalse(self.collector.warmup_complete)

        with self.assertLogs("traffic_sim.metrics.collector", level="INFO"):
            self.collector.record_vehicle_entry("v0002", Direction.NORTH, 100.0)
        self.assertTrue(self.collector.warmup_complete)

    def test_queue_sampling_interval(self):
        for step in range(12):
            self.collector.record_queue_length(float(step), {d: step for d in DIRECTIONS}, 1.0)

        history = self.collector.get_queue_length_history()
        self.assertEqual([r.time for r in history], [4.0, 9.0])
        self.assertEqual(history[0].queue_lengths[Direction.NORTH], 4)

    def test_queue_sampling_interval_with_fractional_step(self):
        # 50 steps of 0.1 s per sample; time here is just the step index
        for step in range(200):
            self.collector.record_queue_length(float(step), {d: 0 for d in DIRECTIONS}, 0.1)

        history = self.collector.get_queue_length_history()
        self.assertEqual([r.time for r in history], [49.0, 99.0, 149.0, 199.0])

    def test_signal_phase_recorded_on_change_only(self):
        green_ns = {Direction.NORTH: SignalPhase.GREEN, Direction.SOUTH: SignalPhase.GREEN,
                    Direction.EAST: SignalPhase.RED, Direction.WEST: SignalPhase.RED}
        yellow_ns = dict(green_ns)
        yellow_ns[Direction.NORTH] = SignalPhase.YELLOW
        yellow_ns[Direction.SOUTH] = SignalPhase.YELLOW

        self.collector.record_signal_phase(0.0, green_ns)
        self.collector.record_signal_phase(1.0, green_ns)
        self.collector.record_signal_phase(30.0, yellow_ns)

        self.assertEqual([r.time for r in self.collector.get_signal_phase_history()], [0.0, 30.0])

    def test_reset(self):
        self.collector.record_vehicle_exit(make_record("v0001", 50.0))
        self.collector.record_vehicle_exit(make_record("v0002", 150.0))
        self.collector.reset()

        stats = self.collector.get_stats()
        self.assertEqual(stats.vehicle_count, 0)
        self.assertEqual(stats.discarded_count, 0)
        self.assertFalse(stats.warmup_complete)

class TestStatistics(unittest.TestCase):
    def test_empty_inputs(self):
        stats = statistics.calculate_statistics([], [], 1800.0, 120.0)
        self.assertEqual(stats.total_vehicles, 0)
        self.assertEqual(stats.average_travel_time, 0.0)
        self.assertEqual(stats.throughput, 0.0)
        self.assertEqual(stats.average_queue_length, 0.0)
        self.assertEqual(set(stats.by_direction), set(DIRECTIONS))

    def test_aggregates(self):
        records = [
            make_record("v0001", 200.0, travel=40.0, wait=0.0),
            make_record("v0002", 300.0, travel=60.0, wait=10.0, direction=Direction.EAST),
            make_record("v0003", 400.0, travel=80.0, wait=20.0, direction=Direction.EAST),
        ]
        history = [queue_sample(5.0, north=2, east=4), queue_sample(10.0, north=0, east=2)]

        stats = statistics.calculate_statistics(records, history, 1920.0, 120.0)

        self.assertEqual(stats.total_vehicles, 3)
        self.assertEqual(stats.average_travel_time, 60.0)
        self.assertEqual(stats.average_wait_time, 10.0)
        self.assertEqual(stats.average_delay, stats.average_wait_time)
        self.assertEqual(stats.throughput, 6.0)  # 3 vehicles over half an hour
        self.assertEqual(stats.average_queue_length, 1.0)
        self.assertEqual(stats.max_queue_length, 4)

        east = stats.by_direction[Direction.EAST]
        self.assertEqual(east.vehicle_count, 2)
        self.assertEqual(east.average_travel_time, 70.0)
        self.assertEqual(east.throughput, 4.0)
        self.assertEqual(east.average_queue_length, 3.0)
        self.assertEqual(stats.by_direction[Direction.WEST].vehicle_count, 0)

    def test_throughput_without_effective_duration(self):
        self.assertEqual(statistics.throughput(10, 0.0), 0.0)
        self.assertEqual(statistics.throughput(10, -5.0), 0.0)
        stats = statistics.calculate_statistics([make_record("v0001", 50.0)], [], 100.0, 120.0)
        self.assertEqual(stats.throughput, 0.0)

    def test_percentile(self):
        values = [1.0, 2.0, 3.0, 4.0, 5.0]
        self.assertEqual(statistics.percentile(values, 0), 1.0)
        self.assertEqual(statistics.percentile(values, 50), 3.0)
        self.assertEqual(statistics.percentile(values, 100), 5.0)
        self.assertAlmostEqual(statistics.percentile([0.0, 10.0], 90), 9.0)
        self.assertEqual(statistics.percentile([], 90), 0.0)

    def test_standard_deviation(self):
        self.assertEqual(statistics.standard_deviation([2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0]), 2.0)
        self.assertEqual(statistics.standard_deviation([]), 0.0)

    def test_moving_average(self):
        self.assertEqual(statistics.moving_average([1.0, 2.0, 3.0, 4.0], 2), [1.0, 1.5, 2.5, 3.5])
        self.assertEqual(statistics.moving_average([], 3), [])

    def test_average_uses_exact_summation(self):
        values = [0.1] * 10
        self.assertEqual(statistics.average_travel_time(
            [make_record(f"v{i:04d}", 200.0, travel=v) for i, v in enumerate(values)]
        ), 0.1)

if __name__ == '__main__':
    unittest.main()
