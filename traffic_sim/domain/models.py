from enum import Enum
from typing import Dict, List, Optional, Tuple
from pydantic import BaseModel, ConfigDict

class Direction(str, Enum):
    NORTH = "north"
    SOUTH = "south"
    EAST = "east"
    WEST = "west"

class TurnIntent(str, Enum):
    STRAIGHT = "straight"
    LEFT = "left"
    RIGHT = "right"

class SignalPhase(str, Enum):
    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"

class VehicleStatus(str, Enum):
    APPROACHING = "approaching"
    WAITING = "waiting"
    CROSSING = "crossing"
    EXITED = "exited"

class IntersectionType(str, Enum):
    FOUR_WAY = "fourWay"
    THREE_WAY = "threeWay"

class Severity(str, Enum):
    NEAR_MISS = "near-miss"
    COLLISION = "collision"

class ControlPhase(str, Enum):
    NORTH_SOUTH_GREEN = "northSouthGreen"
    NORTH_SOUTH_YELLOW = "northSouthYellow"
    ALL_RED_1 = "allRed1"
    EAST_WEST_GREEN = "eastWestGreen"
    EAST_WEST_YELLOW = "eastWestYellow"
    ALL_RED_2 = "allRed2"

class RunState(str, Enum):
    READY = "ready"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"

# Canonical iteration order. Generation draws follow it, so changing it changes every seeded run.
DIRECTIONS: Tuple[Direction, ...] = (Direction.NORTH, Direction.SOUTH, Direction.EAST, Direction.WEST)

class Point(BaseModel):
    model_config = ConfigDict(frozen=True)

    x: float
    y: float

class Bounds(BaseModel):
    model_config = ConfigDict(frozen=True)

    x_min: float
    x_max: float
    y_min: float
    y_max: float

    def contains(self, x: float, y: float) -> bool:
        return self.x_min <= x <= self.x_max and self.y_min <= y <= self.y_max

class Vehicle(BaseModel):
    """Live agent. Mutated in place by VehicleSystem; owned by MovementSystem only."""

    id: str
    direction: Direction
    turn_intent: TurnIntent
    lane: int = 0

    # physical state
    x: float
    y: float
    velocity: float = 0.0
    acceleration: float = 0.0

    status: VehicleStatus = VehicleStatus.APPROACHING
    wait_time: float = 0.0
    total_travel_time: float = 0.0
    total_distance: float = 0.0
    max_speed_achieved: float = 0.0

    # parameters
    max_speed: float = 11.1  # m/s (40 km/h)
    max_acceleration: float = 2.0
    comfortable_deceleration: float = 3.0
    min_gap: float = 2.0
    reaction_time: float = 1.5
    length: float = 4.5

    def is_in_intersection(self, bounds: Bounds) -> bool:
        return bounds.contains(self.x, self.y)

    def is_outside_bounds(self, boundary_distance: float) -> bool:
        return abs(self.x) > boundary_distance or abs(self.y) > boundary_distance

    def __str__(self) -> str:
        return f"Vehicle({self.id}, {self.direction.value}, v={self.velocity:.2f} m/s, status={self.status.value})"

class TrafficLight(BaseModel):
    id: str
    direction: Direction
    position: Point
    phase: SignalPhase = SignalPhase.RED
    time_in_phase: float = 0.0
    green_duration: float
    yellow_duration: float
    all_red_duration: float

    def set_phase(self, new_phase: SignalPhase):
        if self.phase != new_phase:
            self.phase = new_phase
            self.time_in_phase = 0.0

    def tick(self, dt: float):
        self.time_in_phase += dt

    def can_pass(self) -> bool:
        return self.phase == SignalPhase.GREEN

    def is_phase_complete(self) -> bool:
        # Red only ends when the controller says so.
        if self.phase == SignalPhase.GREEN:
            return self.time_in_phase >= self.green_duration
        if self.phase == SignalPhase.YELLOW:
            return self.time_in_phase >= self.yellow_duration
        return False

    def advance_phase(self):
        """Standalone green -> yellow -> red progression. Unused under a SignalController."""
        if self.phase == SignalPhase.GREEN:
            self.set_phase(SignalPhase.YELLOW)
        elif self.phase == SignalPhase.YELLOW:
            self.set_phase(SignalPhase.RED)

    def remaining_time(self) -> float:
        if self.phase == SignalPhase.GREEN:
            return max(0.0, self.green_duration - self.time_in_phase)
        if self.phase == SignalPhase.YELLOW:
            return max(0.0, self.yellow_duration - self.time_in_phase)
        return 0.0

    def reset(self, initial_phase: SignalPhase = SignalPhase.RED):
        self.phase = initial_phase
        self.time_in_phase = 0.0

# Records outlive the agents and simulation steps that produced them.

class VehicleRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    entry_time: float
    exit_time: float
    total_travel_time: float
    wait_time: float
    direction: Direction
    turn_intent: TurnIntent
    max_speed_achieved: float

    @classmethod
    def from_vehicle(cls, vehicle: Vehicle, exit_time: float) -> "VehicleRecord":
        return cls(
            id=vehicle.id,
            entry_time=exit_time - vehicle.total_travel_time,
            exit_time=exit_time,
            total_travel_time=vehicle.total_travel_time,
            wait_time=vehicle.wait_time,
            direction=vehicle.direction,
            turn_intent=vehicle.turn_intent,
            max_speed_achieved=vehicle.max_speed_achieved,
        )

class CollisionEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    time: float
    vehicle1_id: str
    vehicle2_id: str
    location: Point
    severity: Severity

    def involves_pair(self, id_a: str, id_b: str) -> bool:
        return {self.vehicle1_id, self.vehicle2_id} == {id_a, id_b}

class QueueLengthRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    time: float
    queue_lengths: Dict[Direction, int]

class SignalPhaseRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    time: float
    phases: Dict[Direction, SignalPhase]

# Aggregates

class DirectionStatistics(BaseModel):
    vehicle_count: int
    average_travel_time: float
    average_wait_time: float
    throughput: float
    average_queue_length: float

class Statistics(BaseModel):
    total_vehicles: int
    average_travel_time: float
    average_wait_time: float
    throughput: float  # vehicles / hour
    average_delay: float
    average_queue_length: float
    by_direction: Dict[Direction, DirectionStatistics]
    wait_time_p90: float = 0.0
    wait_time_std_dev: float = 0.0
    max_queue_length: int = 0

class SignalControllerStats(BaseModel):
    current_phase: ControlPhase
    time_in_phase: float
    cycle_count: int
    time_in_cycle: float
    cycle_length: float

class CollisionStats(BaseModel):
    total_collisions: int
    total_near_misses: int
    total_events: int

class CollectorStats(BaseModel):
    vehicle_count: int
    discarded_count: int
    queue_length_samples: int
    signal_phase_changes: int
    warmup_complete: bool

class IntersectionSnapshot(BaseModel):
    type: IntersectionType
    width: float
    approach_length: float
    lane_width: float
    active_directions: List[Direction]
    total_lanes: int
    area: float
    bounds: Bounds
    boundary_distance: float

class DebugInfo(BaseModel):
    time: float
    state: RunState
    vehicle_count: int
    collected_vehicles: int
    signal_cycle: int
    collisions: int
    near_misses: int
    generated: int

class VehicleView(BaseModel):
    """Read-only projection of a live agent for rendering collaborators."""

    id: str
    direction: Direction
    turn_intent: TurnIntent
    lane: int
    x: float
    y: float
    velocity: float
    acceleration: float
    status: VehicleStatus
    length: float
    wait_time: float

    @classmethod
    def of(cls, vehicle: Vehicle) -> "VehicleView":
        return cls(**vehicle.model_dump(include=set(cls.model_fields)))

class TrafficLightView(BaseModel):
    id: str
    direction: Direction
    position: Point
    phase: SignalPhase
    time_in_phase: float
    remaining_time: float

    @classmethod
    def of(cls, light: TrafficLight) -> "TrafficLightView":
        return cls(
            id=light.id,
            direction=light.direction,
            position=light.position,
            phase=light.phase,
            time_in_phase=light.time_in_phase,
            remaining_time=light.remaining_time(),
        )

class GeneratorStats(BaseModel):
    total_generated: int
    spawn_rates: Dict[Direction, float]
    turn_probabilities: Dict[TurnIntent, float]

class MovementStats(BaseModel):
    total_vehicles: int
    vehicles_by_direction: Dict[Direction, int]

class RunSummary(BaseModel):
    seed: int
    statistics: Statistics
    collisions: int
    near_misses: int
    completed_at: Optional[str] = None
