import logging
from typing import Dict, List
from traffic_sim.domain import config
from traffic_sim.domain.models import (
    DIRECTIONS, CollectorStats, Direction, QueueLengthRecord, SignalPhase, SignalPhaseRecord, VehicleRecord
)

logger = logging.getLogger(__name__)

class DataCollector:
    """Owns finalized vehicle records and the queue / signal time series."""

    def __init__(self, warmup_period: float, sampling_interval: float = config.QUEUE_SAMPLING_INTERVAL):
        self.warmup_period = warmup_period
        self.sampling_interval = sampling_interval
        self.vehicle_data: List[VehicleRecord] = []
        self.queue_length_history: List[QueueLengthRecord] = []
        self.signal_phase_history: List[SignalPhaseRecord] = []
        self.discarded_count = 0
        self.warmup_complete = False
        self._time_since_last_sample = 0.0

    def record_vehicle_entry(self, vehicle_id: str, direction: Direction, time: float):
        if time >= self.warmup_period and not self.warmup_complete:
            self.warmup_complete = True
            logger.info("Warmup period complete at t=%.2fs", time)

    def record_vehicle_exit(self, record: VehicleRecord):
        # Vehicles that leave before warm-up ends never reach the statistics.
        if record.exit_time >= self.warmup_period:
            self.vehicle_data.append(record)
        else:
            self.discarded_count += 1

    def record_queue_length(self, time: float, queue_lengths: Dict[Direction, int], dt: float):
        self._time_since_last_sample += dt
        if self._time_since_last_sample >= self.sampling_interval - config.TIMER_EPSILON:
            self.queue_length_history.append(QueueLengthRecord(time=time, queue_lengths=dict(queue_lengths)))
            self._time_since_last_sample = 0.0

    def record_signal_phase(self, time: float, phases: Dict[Direction, SignalPhase]):
        last = self.signal_phase_history[-1] if self.signal_phase_history else None
        if last is None or not self._phases_equal(last.phases, phases):
            self.signal_phase_history.append(SignalPhaseRecord(time=time, phases=dict(phases)))

    @staticmethod
    def _phases_equal(p1: Dict[Direction, SignalPhase], p2: Dict[Direction, SignalPhase]) -> bool:
        return all(p1.get(d) == p2.get(d) for d in DIRECTIONS)

    def get_vehicle_data(self) -> List[VehicleRecord]:
        return list(self.vehicle_data)

    def get_queue_length_history(self) -> List[QueueLengthRecord]:
        return list(self.queue_length_history)

    def get_signal_phase_history(self) -> List[SignalPhaseRecord]:
        return list(self.signal_phase_history)

    def get_vehicle_data_by_direction(self, direction: Direction) -> List[VehicleRecord]:
        return [r for r in self.vehicle_data if r.direction == direction]

    def get_vehicle_data_by_time_range(self, start_time: float, end_time: float) -> List[VehicleRecord]:
        return [r for r in self.vehicle_data if start_time <= r.exit_time <= end_time]

    def get_collected_vehicle_count(self) -> int:
        return len(self.vehicle_data)

    def reset(self):
        self.vehicle_data.clear()
        self.queue_length_history.clear()
        self.signal_phase_history.clear()
        self.discarded_count = 0
        self.warmup_complete = False
        self._time_since_last_sample = 0.0

    def get_stats(self) -> CollectorStats:
        return CollectorStats(
            vehicle_count=len(self.vehicle_data),
            discarded_count=self.discarded_count,
            queue_length_samples=len(self.queue_length_history),
            signal_phase_changes=len(self.signal_phase_history),
            warmup_complete=self.warmup_complete,
        )

    def __repr__(self) -> str:
        return f"DataCollector(vehicles={len(self.vehicle_data)}, warmup={self.warmup_complete})"
