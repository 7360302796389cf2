import logging
from typing import Dict, List, Optional
from traffic_sim.domain.intersection import Intersection
from traffic_sim.domain.models import (
    DIRECTIONS, Direction, MovementStats, Vehicle, VehicleStatus
)
from traffic_sim.systems.signal_system import SignalController
from traffic_sim.systems.vehicle_system import VehicleSystem

logger = logging.getLogger(__name__)

class MovementSystem:
    """Sole owner of the live agent population."""

    def __init__(self, intersection: Intersection, signal_controller: SignalController, vehicle_system: Optional[VehicleSystem] = None):
        self.intersection = intersection
        self.signal_controller = signal_controller
        self.vehicle_system = vehicle_system or VehicleSystem()

        # Kept sorted closest-to-centre first after every update pass.
        self.vehicles_by_direction: Dict[Direction, List[Vehicle]] = {d: [] for d in DIRECTIONS}
        self.all_vehicles: Dict[str, Vehicle] = {}

    def add_vehicle(self, vehicle: Vehicle):
        if vehicle.id in self.all_vehicles:
            raise ValueError(f"Vehicle {vehicle.id} is already in the simulation")
        self.vehicles_by_direction[vehicle.direction].append(vehicle)
        self.all_vehicles[vehicle.id] = vehicle

    def remove_vehicle(self, vehicle_id: str) -> Optional[Vehicle]:
        vehicle = self.all_vehicles.pop(vehicle_id, None)
        if vehicle is None:
            return None
        lane_group = self.vehicles_by_direction[vehicle.direction]
        for i, v in enumerate(lane_group):
            if v.id == vehicle_id:
                del lane_group[i]
                break
        return vehicle

    def update_all_vehicles(self, dt: float):
        stop_line = self.intersection.stop_line_distance()

        for direction in self.intersection.active_directions():
            road = self.intersection.get_road(direction)
            vehicles = self.vehicles_by_direction[direction]
            vehicles.sort(key=lambda v: road.distance_from_center(v.x, v.y))

            signal_phase = self.signal_controller.phase_for(direction)
            for i, vehicle in enumerate(vehicles):
                front_vehicle = self._get_front_vehicle(vehicle, i, vehicles)
                signal_distance = max(0.0, road.distance_from_center(vehicle.x, vehicle.y) - stop_line)
                self.vehicle_system.update(vehicle, dt, front_vehicle, signal_distance, signal_phase)

        # Geometry decides crossing, only once every agent has moved.
        for vehicle in self.all_vehicles.values():
            if vehicle.status != VehicleStatus.CROSSING and self.intersection.is_in_intersection(vehicle.x, vehicle.y):
                vehicle.status = VehicleStatus.CROSSING

    @staticmethod
    def _get_front_vehicle(vehicle: Vehicle, current_index: int, vehicles: List[Vehicle]) -> Optional[Vehicle]:
        for i in range(current_index - 1, -1, -1):
            if vehicles[i].lane == vehicle.lane:
                return vehicles[i]
        return None

    def remove_exited_vehicles(self) -> List[Vehicle]:
        """Evict agents beyond the simulated region. Call only after update_all_vehicles."""
        boundary = self.intersection.eviction_distance()
        exited = [v for v in self.all_vehicles.values() if v.is_outside_bounds(boundary)]
        for vehicle in exited:
            self.remove_vehicle(vehicle.id)
            vehicle.status = VehicleStatus.EXITED
        if exited:
            logger.debug("Evicted %s", ", ".join(v.id for v in exited))
        return exited

    def queue_lengths(self) -> Dict[Direction, int]:
        return {
            d: sum(1 for v in self.vehicles_by_direction[d] if v.status == VehicleStatus.WAITING)
            for d in DIRECTIONS
        }

    def get_vehicle_count(self, direction: Direction) -> int:
        return len(self.vehicles_by_direction[direction])

    def get_total_vehicle_count(self) -> int:
        return len(self.all_vehicles)

    def get_all_vehicles(self) -> List[Vehicle]:
        return list(self.all_vehicles.values())

    def get_vehicles_by_direction(self, direction: Direction) -> List[Vehicle]:
        return list(self.vehicles_by_direction[direction])

    def get_vehicle_by_id(self, vehicle_id: str) -> Optional[Vehicle]:
        return self.all_vehicles.get(vehicle_id)

    def reset(self):
        self.all_vehicles.clear()
        for vehicles in self.vehicles_by_direction.values():
            vehicles.clear()

    def get_stats(self) -> MovementStats:
        return MovementStats(
            total_vehicles=len(self.all_vehicles),
            vehicles_by_direction={d: len(v) for d, v in self.vehicles_by_direction.items()},
        )

    def __repr__(self) -> str:
        return f"MovementSystem(total={len(self.all_vehicles)} vehicles)"
