from typing import Optional
from traffic_sim.domain.config import VehicleDefaults, VehicleGenerationConfig
from traffic_sim.domain.models import DIRECTIONS, Direction, GeneratorStats, Point, TurnIntent, Vehicle
from traffic_sim.kernel.random_source import SeededRandom

class VehicleGenerator:
    """Bernoulli-per-step arrivals, approximating a Poisson process for small dt."""

    def __init__(self, generation_config: VehicleGenerationConfig, vehicle_defaults: VehicleDefaults, rng: SeededRandom):
        self.rng = rng
        self.spawn_rates = {d: generation_config.spawn_rates.get(d) for d in DIRECTIONS}
        self.turn_probabilities = generation_config.turn_probabilities
        self.vehicle_defaults = vehicle_defaults
        self.next_id = 1

    def try_generate(self, direction: Direction, dt: float, entry_position: Point) -> Optional[Vehicle]:
        # Exactly one draw per call, success or not; callers iterate directions in DIRECTIONS order.
        probability = self.spawn_rates[direction] / 60 * dt
        if self.rng.random() < probability:
            return self._create_vehicle(direction, entry_position)
        return None

    def _create_vehicle(self, direction: Direction, entry_position: Point) -> Vehicle:
        turn_intent = self._choose_turn_intent()
        vehicle_id = f"v{self.next_id:04d}"
        self.next_id += 1

        return Vehicle(
            id=vehicle_id,
            direction=direction,
            turn_intent=turn_intent,
            lane=0,
            x=entry_position.x,
            y=entry_position.y,
            **self.vehicle_defaults.model_dump(),
        )

    def _choose_turn_intent(self) -> TurnIntent:
        # No renormalisation: probabilities are assumed to sum to 1 (validated upstream).
        r = self.rng.random()
        p = self.turn_probabilities
        if r < p.straight:
            return TurnIntent.STRAIGHT
        if r < p.straight + p.left:
            return TurnIntent.LEFT
        return TurnIntent.RIGHT

    def get_spawn_rate(self, direction: Direction) -> float:
        return self.spawn_rates[direction]

    @property
    def total_generated(self) -> int:
        return self.next_id - 1

    def get_stats(self) -> GeneratorStats:
        return GeneratorStats(
            total_generated=self.total_generated,
            spawn_rates=dict(self.spawn_rates),
            turn_probabilities={t: self.turn_probabilities.get(t) for t in TurnIntent},
        )

    def reset(self):
        self.next_id = 1
