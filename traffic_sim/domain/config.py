# Simulation Configuration

import json
import math
from typing import Any, Dict, List
from pydantic import BaseModel, ConfigDict, ValidationError
from traffic_sim.domain.models import DIRECTIONS, Direction, IntersectionType, TurnIntent

# Geometry
STOP_LINE_OFFSET = 5.0       # Stop line distance beyond the intersection half-width
BOUNDARY_MARGIN = 50.0       # Agents are evicted past approach length + margin
SIGNAL_LIGHT_OFFSET = 5.0    # Lateral offset of the signal head from the stop line
MAX_LANES = 3

# Vehicle Physics
WAITING_SPEED = 0.5          # m/s, below this an agent counts as waiting
SIGNAL_STOP_MARGIN = 10.0    # m added to stopping distance when reacting to yellow/red
MIN_GAP_EPSILON = 0.01       # m, floor for the braking-term denominator

# Conflict Detection
COLLISION_THRESHOLD = 1.0    # m
MIN_SAFE_DISTANCE = 2.0      # m
DEDUP_WINDOW = 1.0           # s
DEDUP_LOOKBACK = 10          # most recent events scanned for duplicates

# Data Collection
QUEUE_SAMPLING_INTERVAL = 5.0  # s, independent of the time step

# Timers accumulate dt; a timer within this of its target has reached it.
TIMER_EPSILON = 1e-9         # s

# Validation
MAX_SPAWN_RATE = 60.0        # vehicles / minute
CYCLE_LENGTH_TOLERANCE = 0.1
PROBABILITY_TOLERANCE = 0.001


class ConfigValidationError(ValueError):
    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__(f"Invalid configuration: {', '.join(self.errors)}")


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class LaneCounts(_Frozen):
    north: int = 2
    south: int = 2
    east: int = 2
    west: int = 2

    def get(self, direction: Direction) -> int:
        return getattr(self, direction.value)


class SpawnRates(_Frozen):
    north: float = 15.0  # vehicles / minute
    south: float = 15.0
    east: float = 15.0
    west: float = 15.0

    def get(self, direction: Direction) -> float:
        return getattr(self, direction.value)


class TurnProbabilities(_Frozen):
    straight: float = 0.6
    left: float = 0.2
    right: float = 0.2

    def get(self, intent: TurnIntent) -> float:
        return getattr(self, intent.value)


class GreenDuration(_Frozen):
    northSouth: float = 30.0
    eastWest: float = 30.0


class IntersectionConfig(_Frozen):
    type: IntersectionType = IntersectionType.FOUR_WAY
    width: float = 20.0
    approach_length: float = 200.0
    lane_width: float = 3.5
    num_lanes: LaneCounts = LaneCounts()


class SignalControlConfig(_Frozen):
    cycle_length: float = 70.0
    green_duration: GreenDuration = GreenDuration()
    yellow_duration: float = 3.0
    all_red_duration: float = 2.0

    def computed_cycle_length(self) -> float:
        return (
            self.green_duration.northSouth + self.yellow_duration + self.all_red_duration
            + self.green_duration.eastWest + self.yellow_duration + self.all_red_duration
        )


class VehicleGenerationConfig(_Frozen):
    spawn_rates: SpawnRates = SpawnRates()
    turn_probabilities: TurnProbabilities = TurnProbabilities()


class VehicleDefaults(_Frozen):
    max_speed: float = 11.1  # m/s (40 km/h)
    max_acceleration: float = 2.0
    comfortable_deceleration: float = 3.0
    min_gap: float = 2.0
    reaction_time: float = 1.5
    length: float = 4.5


class SimulationConfig(_Frozen):
    duration: float = 1800.0
    time_step: float = 1.0
    warmup_period: float = 120.0
    random_seed: int = 42
    intersection: IntersectionConfig = IntersectionConfig()
    signal_control: SignalControlConfig = SignalControlConfig()
    vehicle_generation: VehicleGenerationConfig = VehicleGenerationConfig()
    vehicle_defaults: VehicleDefaults = VehicleDefaults()

    @property
    def effective_duration(self) -> float:
        return self.duration - self.warmup_period


DEFAULT_CONFIG = SimulationConfig()


def validate_config(config: SimulationConfig) -> List[str]:
    """Collect every problem with ``config``; an empty list means it may run."""
    errors: List[str] = []

    if config.duration <= 0:
        errors.append("Duration must be positive")
    if config.time_step <= 0 or config.time_step > 1:
        errors.append("Time step must be between 0 and 1")
    if config.warmup_period < 0:
        errors.append("Warmup period must be non-negative")
    if config.warmup_period >= config.duration:
        errors.append("Warmup period must be less than duration")

    geometry = config.intersection
    if geometry.width <= 0:
        errors.append("Intersection width must be positive")
    if geometry.approach_length <= 0:
        errors.append("Approach length must be positive")
    if geometry.lane_width <= 0:
        errors.append("Lane width must be positive")

    for direction in DIRECTIONS:
        lanes = geometry.num_lanes.get(direction)
        if lanes < 0 or lanes > MAX_LANES:
            errors.append(f"Number of lanes for {direction.value} must be between 0 and {MAX_LANES}")

    if geometry.type == IntersectionType.THREE_WAY:
        zero_lane_count = sum(1 for d in DIRECTIONS if geometry.num_lanes.get(d) == 0)
        if zero_lane_count != 1:
            errors.append("Three-way intersection must have exactly one direction with 0 lanes")

    signal = config.signal_control
    if signal.green_duration.northSouth <= 0:
        errors.append("North-South green duration must be positive")
    if signal.green_duration.eastWest <= 0:
        errors.append("East-West green duration must be positive")
    if signal.yellow_duration <= 0:
        errors.append("Yellow duration must be positive")
    if signal.all_red_duration < 0:
        errors.append("All-red duration must be non-negative")

    calculated = signal.computed_cycle_length()
    if abs(signal.cycle_length - calculated) > CYCLE_LENGTH_TOLERANCE:
        errors.append(
            f"Cycle length ({signal.cycle_length:g}) does not match calculated value ({calculated:g})"
        )

    generation = config.vehicle_generation
    for direction in DIRECTIONS:
        rate = generation.spawn_rates.get(direction)
        if rate < 0 or rate > MAX_SPAWN_RATE:
            errors.append(f"Spawn rate for {direction.value} must be between 0 and {MAX_SPAWN_RATE:g} vehicles/min")

    turns = generation.turn_probabilities
    prob_sum = math.fsum([turns.straight, turns.left, turns.right])
    if abs(prob_sum - 1.0) > PROBABILITY_TOLERANCE:
        errors.append(f"Turn probabilities must sum to 1.0 (current sum: {prob_sum:g})")

    defaults = config.vehicle_defaults
    if defaults.max_speed <= 0:
        errors.append("Max speed must be positive")
    if defaults.max_acceleration <= 0:
        errors.append("Max acceleration must be positive")
    if defaults.comfortable_deceleration <= 0:
        errors.append("Comfortable deceleration must be positive")
    if defaults.min_gap < 0:
        errors.append("Min gap must be non-negative")
    if defaults.reaction_time <= 0:
        errors.append("Reaction time must be positive")
    if defaults.length <= 0:
        errors.append("Vehicle length must be positive")

    return errors


def ensure_valid(config: SimulationConfig) -> SimulationConfig:
    errors = validate_config(config)
    if errors:
        raise ConfigValidationError(errors)
    return config


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def merge_config(partial: Dict[str, Any], base: SimulationConfig = DEFAULT_CONFIG) -> SimulationConfig:
    """Overlay a (possibly nested, partial) dict on ``base``. Does not validate ranges."""
    return SimulationConfig.model_validate(_deep_merge(base.model_dump(mode="json"), partial))


def export_config(config: SimulationConfig) -> str:
    return config.model_dump_json(indent=2)


def import_config(text: str) -> SimulationConfig:
    try:
        config = SimulationConfig.model_validate_json(text)
    except ValidationError as e:
        try:
            json.loads(text)
        except json.JSONDecodeError as decode_error:
            raise ConfigValidationError([f"Failed to parse JSON: {decode_error.msg}"]) from e
        raise ConfigValidationError(
            [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
        ) from e
    return ensure_valid(config)
