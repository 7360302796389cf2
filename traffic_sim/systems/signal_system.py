import logging
from typing import Dict, List, Optional
from traffic_sim.domain.config import TIMER_EPSILON, SignalControlConfig
from traffic_sim.domain.models import (
    DIRECTIONS, ControlPhase, Direction, SignalControllerStats, SignalPhase, TrafficLight
)

logger = logging.getLogger(__name__)

GREEN, YELLOW, RED = SignalPhase.GREEN, SignalPhase.YELLOW, SignalPhase.RED

PHASE_ORDER: List[ControlPhase] = [
    ControlPhase.NORTH_SOUTH_GREEN,
    ControlPhase.NORTH_SOUTH_YELLOW,
    ControlPhase.ALL_RED_1,
    ControlPhase.EAST_WEST_GREEN,
    ControlPhase.EAST_WEST_YELLOW,
    ControlPhase.ALL_RED_2,
]

NEXT_PHASE: Dict[ControlPhase, ControlPhase] = {
    phase: PHASE_ORDER[(i + 1) % len(PHASE_ORDER)] for i, phase in enumerate(PHASE_ORDER)
}

# north, south, east, west
_ASSIGNMENTS = {
    ControlPhase.NORTH_SOUTH_GREEN: (GREEN, GREEN, RED, RED),
    ControlPhase.NORTH_SOUTH_YELLOW: (YELLOW, YELLOW, RED, RED),
    ControlPhase.ALL_RED_1: (RED, RED, RED, RED),
    ControlPhase.EAST_WEST_GREEN: (RED, RED, GREEN, GREEN),
    ControlPhase.EAST_WEST_YELLOW: (RED, RED, YELLOW, YELLOW),
    ControlPhase.ALL_RED_2: (RED, RED, RED, RED),
}

PHASE_ASSIGNMENTS: Dict[ControlPhase, Dict[Direction, SignalPhase]] = {
    phase: dict(zip(DIRECTIONS, colors)) for phase, colors in _ASSIGNMENTS.items()
}


class SignalController:
    """Fixed-cycle controller. Lights are pushed their phase; they never advance themselves here."""

    def __init__(self, traffic_lights: Dict[Direction, TrafficLight], signal_config: SignalControlConfig):
        self.traffic_lights = traffic_lights
        self.config = signal_config
        self.current_phase = ControlPhase.NORTH_SOUTH_GREEN
        self.time_in_phase = 0.0
        self.cycle_count = 0
        self._apply_current_phase()

    def update(self, dt: float):
        self.time_in_phase += dt

        for light in self.traffic_lights.values():
            light.tick(dt)

        if self.time_in_phase >= self.phase_duration(self.current_phase) - TIMER_EPSILON:
            self._advance_phase()

    def phase_duration(self, phase: ControlPhase) -> float:
        if phase == ControlPhase.NORTH_SOUTH_GREEN:
            return self.config.green_duration.northSouth
        if phase == ControlPhase.EAST_WEST_GREEN:
            return self.config.green_duration.eastWest
        if phase in (ControlPhase.NORTH_SOUTH_YELLOW, ControlPhase.EAST_WEST_YELLOW):
            return self.config.yellow_duration
        return self.config.all_red_duration

    def _advance_phase(self):
        self.current_phase = NEXT_PHASE[self.current_phase]
        if self.current_phase == ControlPhase.NORTH_SOUTH_GREEN:
            self.cycle_count += 1
        self.time_in_phase = 0.0
        self._apply_current_phase()
        logger.debug("Signal phase -> %s (cycle %d)", self.current_phase.value, self.cycle_count)

    def _apply_current_phase(self):
        for direction, phase in PHASE_ASSIGNMENTS[self.current_phase].items():
            light = self.traffic_lights.get(direction)
            if light is not None:
                light.set_phase(phase)

    def get_traffic_light(self, direction: Direction) -> Optional[TrafficLight]:
        return self.traffic_lights.get(direction)

    def all_traffic_lights(self) -> List[TrafficLight]:
        return [self.traffic_lights[d] for d in DIRECTIONS if d in self.traffic_lights]

    def phase_for(self, direction: Direction) -> SignalPhase:
        light = self.traffic_lights.get(direction)
        return light.phase if light is not None else SignalPhase.RED

    def phases(self) -> Dict[Direction, SignalPhase]:
        return {d: self.phase_for(d) for d in DIRECTIONS}

    def time_in_cycle(self) -> float:
        elapsed = 0.0
        for phase in PHASE_ORDER:
            if phase == self.current_phase:
                break
            elapsed += self.phase_duration(phase)
        return elapsed + self.time_in_phase

    def cycle_length(self) -> float:
        return sum(self.phase_duration(phase) for phase in PHASE_ORDER)

    def configured_cycle_length(self) -> float:
        return self.config.cycle_length

    def reset(self):
        self.current_phase = ControlPhase.NORTH_SOUTH_GREEN
        self.time_in_phase = 0.0
        self.cycle_count = 0
        for light in self.traffic_lights.values():
            light.reset(SignalPhase.RED)
        self._apply_current_phase()

    def get_stats(self) -> SignalControllerStats:
        return SignalControllerStats(
            current_phase=self.current_phase,
            time_in_phase=self.time_in_phase,
            cycle_count=self.cycle_count,
            time_in_cycle=self.time_in_cycle(),
            cycle_length=self.configured_cycle_length(),
        )

    def __repr__(self) -> str:
        return f"SignalController(phase={self.current_phase.value}, cycle={self.cycle_count}, time={self.time_in_phase:.1f}s)"
