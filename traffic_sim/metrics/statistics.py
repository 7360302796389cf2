"""Summary metrics derived from finalized vehicle records and queue samples.

Sums go through ``math.fsum`` so the result does not depend on accumulated
rounding error from long runs.
"""

import math
from typing import List, Optional, Sequence
from traffic_sim.domain.models import (
    DIRECTIONS, Direction, DirectionStatistics, QueueLengthRecord, Statistics, VehicleRecord
)

SECONDS_PER_HOUR = 3600.0


def calculate_statistics(
    vehicle_data: Sequence[VehicleRecord],
    queue_length_history: Sequence[QueueLengthRecord],
    simulation_duration: float,
    warmup_period: float,
) -> Statistics:
    effective_duration = simulation_duration - warmup_period
    wait_times = [r.wait_time for r in vehicle_data]

    by_direction = {
        direction: _direction_statistics(vehicle_data, queue_length_history, direction, effective_duration)
        for direction in DIRECTIONS
    }

    return Statistics(
        total_vehicles=len(vehicle_data),
        average_travel_time=average_travel_time(vehicle_data),
        average_wait_time=average_wait_time(vehicle_data),
        throughput=throughput(len(vehicle_data), effective_duration),
        average_delay=average_delay(vehicle_data),
        average_queue_length=average_queue_length(queue_length_history),
        by_direction=by_direction,
        wait_time_p90=percentile(wait_times, 90),
        wait_time_std_dev=standard_deviation(wait_times),
        max_queue_length=max_queue_length(queue_length_history),
    )


def _mean(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return math.fsum(values) / len(values)


def average_travel_time(vehicle_data: Sequence[VehicleRecord]) -> float:
    return _mean([r.total_travel_time for r in vehicle_data])


def average_wait_time(vehicle_data: Sequence[VehicleRecord]) -> float:
    return _mean([r.wait_time for r in vehicle_data])


def average_delay(vehicle_data: Sequence[VehicleRecord]) -> float:
    # Delay is taken to be the wait time; there is no free-flow reference travel time.
    return average_wait_time(vehicle_data)


def throughput(vehicle_count: int, duration: float) -> float:
    """Vehicles per hour over ``duration`` seconds; 0 when there is no effective duration."""
    if duration <= 0:
        return 0.0
    return vehicle_count / (duration / SECONDS_PER_HOUR)


def average_queue_length(queue_length_history: Sequence[QueueLengthRecord], direction: Optional[Direction] = None) -> float:
    if direction is not None:
        return _mean([record.queue_lengths.get(direction, 0) for record in queue_length_history])
    # Flattened over every direction of every sample.
    return _mean([record.queue_lengths.get(d, 0) for record in queue_length_history for d in DIRECTIONS])


def max_queue_length(queue_length_history: Sequence[QueueLengthRecord]) -> int:
    return max((n for record in queue_length_history for n in record.queue_lengths.values()), default=0)


def _direction_statistics(
    vehicle_data: Sequence[VehicleRecord],
    queue_length_history: Sequence[QueueLengthRecord],
    direction: Direction,
    duration: float,
) -> DirectionStatistics:
    records = [r for r in vehicle_data if r.direction == direction]
    return DirectionStatistics(
        vehicle_count=len(records),
        average_travel_time=average_travel_time(records),
        average_wait_time=average_wait_time(records),
        throughput=throughput(len(records), duration),
        average_queue_length=average_queue_length(queue_length_history, direction),
    )


def percentile(values: Sequence[float], pct: float) -> float:
    """Linear interpolation between closest ranks."""
    if not values:
        return 0.0
    ordered = sorted(values)
    index = (pct / 100) * (len(ordered) - 1)
    lower = math.floor(index)
    upper = math.ceil(index)
    weight = index - lower
    return ordered[lower] * (1 - weight) + ordered[upper] * weight


def standard_deviation(values: Sequence[float]) -> float:
    """Population standard deviation."""
    if not values:
        return 0.0
    mean = _mean(values)
    return math.sqrt(math.fsum((v - mean) ** 2 for v in values) / len(values))


def moving_average(values: Sequence[float], window_size: int) -> List[float]:
    """Trailing mean; the first entries average over however many values exist so far."""
    result = []
    for i in range(len(values)):
        window = values[max(0, i - window_size + 1):i + 1]
        result.append(_mean(window))
    return result
