import logging
from datetime import datetime, timezone
from typing import Dict, Optional
from traffic_sim.application.commands import Command
from traffic_sim.domain.config import DEFAULT_CONFIG, SimulationConfig, ensure_valid
from traffic_sim.domain.intersection import Intersection
from traffic_sim.domain.models import (
    DebugInfo, Direction, RunState, Severity, Statistics, TrafficLight, VehicleRecord
)
from traffic_sim.domain.state import SimulationResults, SimulationSnapshot
from traffic_sim.kernel.command_queue import CommandQueue
from traffic_sim.kernel.random_source import SeededRandom
from traffic_sim.kernel.snapshot_builder import SnapshotBuilder
from traffic_sim.metrics.collector import DataCollector
from traffic_sim.metrics.statistics import calculate_statistics
from traffic_sim.systems.collision_system import CollisionDetector
from traffic_sim.systems.movement_system import MovementSystem
from traffic_sim.systems.signal_system import SignalController
from traffic_sim.systems.vehicle_generator import VehicleGenerator

logger = logging.getLogger(__name__)

class SimulationKernel:
    """Owns the authoritative step order and every engine component for one run.

    Per tick: commands, generation, signals, movement, conflict scan,
    eviction, sampling, clock.
    """

    def __init__(self, config: SimulationConfig = DEFAULT_CONFIG):
        self.command_queue = CommandQueue()
        self.snapshot_builder = SnapshotBuilder()
        self._build(config)

    def _build(self, config: SimulationConfig):
        self.config = ensure_valid(config)
        self.dt = config.time_step
        self.tick_id = 0
        self.time = 0.0
        self.run_state = RunState.READY
        self.completed_at: Optional[str] = None

        self.rng = SeededRandom(config.random_seed)
        self.intersection = Intersection(config.intersection)
        self.signal_controller = SignalController(self._initialize_traffic_lights(), config.signal_control)
        self.vehicle_generator = VehicleGenerator(config.vehicle_generation, config.vehicle_defaults, self.rng)
        self.movement_system = MovementSystem(self.intersection, self.signal_controller)
        self.collision_detector = CollisionDetector(self.intersection)
        self.data_collector = DataCollector(config.warmup_period)
        logger.info("Kernel Initialized (Seed: %d)", config.random_seed)

    def _initialize_traffic_lights(self) -> Dict[Direction, TrafficLight]:
        signal = self.config.signal_control
        lights = {}
        for direction in self.intersection.active_directions():
            green = (
                signal.green_duration.northSouth
                if direction in (Direction.NORTH, Direction.SOUTH)
                else signal.green_duration.eastWest
            )
            lights[direction] = TrafficLight(
                id=f"tl-{direction.value}",
                direction=direction,
                position=self.intersection.traffic_light_position(direction),
                green_duration=green,
                yellow_duration=signal.yellow_duration,
                all_red_duration=signal.all_red_duration,
            )
        return lights

    def initialize(self, seed: Optional[int] = None):
        """Rebuild from the current config, optionally under a different seed."""
        config = self.config if seed is None else self.config.model_copy(update={"random_seed": seed})
        self._build(config)

    def queue_command(self, command: Command):
        self.command_queue.add(command)

    def process_commands(self):
        for command in self.command_queue.drain():
            command.execute(self)

    def run_tick(self) -> bool:
        """Advance one step. Returns False when the run is already complete."""
        self.process_commands()

        if self.run_state == RunState.COMPLETED:
            return False

        dt = self.dt

        # 1. Arrivals
        self._generate_vehicles(dt)

        # 2. Signals
        self.signal_controller.update(dt)

        # 3. Kinematics
        self.movement_system.update_all_vehicles(dt)

        # 4. Conflict scan
        self.collision_detector.check_collisions(self.movement_system.get_all_vehicles(), self.time)

        # 5. Eviction, strictly after the whole kinematic pass
        for vehicle in self.movement_system.remove_exited_vehicles():
            self.data_collector.record_vehicle_exit(VehicleRecord.from_vehicle(vehicle, self.time))

        # 6. Sampling
        self._collect_metrics(dt)

        # 7. Time advance (multiplied, not accumulated, so long runs do not drift)
        self.tick_id += 1
        self.time = self.tick_id * dt

        if self.time >= self.config.duration:
            self._complete()
        return True

    def run_until_complete(self) -> SimulationResults:
        if self.run_state in (RunState.READY, RunState.PAUSED):
            self.start()
        while self.run_tick():
            pass
        return self.get_results()

    def _generate_vehicles(self, dt: float):
        for direction in self.intersection.active_directions():
            entry = self.intersection.entry_position(direction, 0)
            vehicle = self.vehicle_generator.try_generate(direction, dt, entry)
            if vehicle is not None:
                self.movement_system.add_vehicle(vehicle)
                self.data_collector.record_vehicle_entry(vehicle.id, direction, self.time)

    def _collect_metrics(self, dt: float):
        self.data_collector.record_queue_length(self.time, self.movement_system.queue_lengths(), dt)
        self.data_collector.record_signal_phase(self.time, self.signal_controller.phases())

    # Run state. Illegal transitions are ignored with a warning, never raised.

    def start(self):
        if self.run_state not in (RunState.READY, RunState.PAUSED):
            logger.warning("Simulation is not in a startable state (%s)", self.run_state.value)
            return
        self.run_state = RunState.RUNNING
        logger.info("Simulation started (duration: %gs)", self.config.duration)

    def pause(self):
        if self.run_state != RunState.RUNNING:
            logger.warning("Simulation is not running (%s)", self.run_state.value)
            return
        self.run_state = RunState.PAUSED
        logger.info("Simulation paused at t=%.2fs", self.time)

    def resume(self):
        if self.run_state != RunState.PAUSED:
            logger.warning("Simulation is not paused (%s)", self.run_state.value)
            return
        self.run_state = RunState.RUNNING
        logger.info("Simulation resumed")

    def stop(self):
        self.run_state = RunState.COMPLETED
        logger.info("Simulation stopped at t=%.2fs", self.time)

    def _complete(self):
        self.run_state = RunState.COMPLETED
        self.completed_at = datetime.now(timezone.utc).isoformat()
        logger.info(
            "Simulation completed: %d vehicles recorded, %d collisions",
            self.data_collector.get_collected_vehicle_count(),
            self.collision_detector.get_collision_count(Severity.COLLISION),
        )

    def reset(self):
        """Back to t=0 under the same config, random stream included."""
        self._build(self.config)
        logger.info("Simulation reset")

    def apply_config(self, config: SimulationConfig):
        """Replace the config. Raises ConfigValidationError and keeps the old run if invalid."""
        ensure_valid(config)
        self._build(config)
        logger.info("Configuration applied; simulation reset")

    # Outputs

    def progress(self) -> float:
        return min(1.0, self.time / self.config.duration)

    def get_results(self) -> SimulationResults:
        vehicle_data = self.data_collector.get_vehicle_data()
        queue_history = self.data_collector.get_queue_length_history()
        return SimulationResults(
            config=self.config,
            statistics=calculate_statistics(
                vehicle_data, queue_history, self.config.duration, self.config.warmup_period
            ),
            vehicle_data=vehicle_data,
            queue_length_history=queue_history,
            signal_phase_history=self.data_collector.get_signal_phase_history(),
            collision_events=self.collision_detector.get_collision_events(),
            timestamp=self.completed_at or datetime.now(timezone.utc).isoformat(),
        )

    def get_current_statistics(self) -> Statistics:
        """Statistics so far, with elapsed time standing in for the full duration."""
        return calculate_statistics(
            self.data_collector.get_vehicle_data(),
            self.data_collector.get_queue_length_history(),
            self.time,
            self.config.warmup_period,
        )

    def get_snapshot(self) -> SimulationSnapshot:
        return self.snapshot_builder.build(self)

    def get_debug_info(self) -> DebugInfo:
        return DebugInfo(
            time=round(self.time, 2),
            state=self.run_state,
            vehicle_count=self.movement_system.get_total_vehicle_count(),
            collected_vehicles=self.data_collector.get_collected_vehicle_count(),
            signal_cycle=self.signal_controller.cycle_count,
            collisions=self.collision_detector.get_collision_count(Severity.COLLISION),
            near_misses=self.collision_detector.get_collision_count(Severity.NEAR_MISS),
            generated=self.vehicle_generator.total_generated,
        )
