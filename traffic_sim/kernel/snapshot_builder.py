from typing import TYPE_CHECKING
from traffic_sim.domain.models import Severity, TrafficLightView, VehicleView
from traffic_sim.domain.state import SimulationSnapshot

if TYPE_CHECKING:
    from traffic_sim.kernel.simulation_kernel import SimulationKernel

class SnapshotBuilder:
    def build(self, kernel: "SimulationKernel") -> SimulationSnapshot:
        return SimulationSnapshot(
            tick_id=kernel.tick_id,
            time=kernel.time,
            state=kernel.run_state,
            progress=kernel.progress(),
            vehicles=[VehicleView.of(v) for v in kernel.movement_system.get_all_vehicles()],
            traffic_lights=[TrafficLightView.of(light) for light in kernel.signal_controller.all_traffic_lights()],
            intersection=kernel.intersection.snapshot(),
            collision_count=kernel.collision_detector.get_collision_count(Severity.COLLISION),
            near_miss_count=kernel.collision_detector.get_collision_count(Severity.NEAR_MISS),
            cycle_count=kernel.signal_controller.cycle_count,
        )
