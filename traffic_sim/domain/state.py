from typing import List
from pydantic import BaseModel
from traffic_sim.domain.config import SimulationConfig
from traffic_sim.domain.models import (
    CollisionEvent, IntersectionSnapshot, QueueLengthRecord, RunState, SignalPhaseRecord,
    Statistics, TrafficLightView, VehicleRecord, VehicleView
)

class SimulationSnapshot(BaseModel):
    """What a renderer needs for one frame."""

    tick_id: int
    time: float
    state: RunState
    progress: float
    vehicles: List[VehicleView]
    traffic_lights: List[TrafficLightView]
    intersection: IntersectionSnapshot
    collision_count: int
    near_miss_count: int
    cycle_count: int

class SimulationResults(BaseModel):
    config: SimulationConfig
    statistics: Statistics
    vehicle_data: List[VehicleRecord]
    queue_length_history: List[QueueLengthRecord]
    signal_phase_history: List[SignalPhaseRecord]
    collision_events: List[CollisionEvent]
    timestamp: str  # ISO-8601, UTC
