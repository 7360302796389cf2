from typing import Optional
from traffic_sim.domain import config
from traffic_sim.domain.geometry import distance, heading
from traffic_sim.domain.models import SignalPhase, Vehicle, VehicleStatus

class VehicleSystem:
    """Simplified Intelligent Driver Model car following with signal response."""

    def update(
        self,
        vehicle: Vehicle,
        dt: float,
        front_vehicle: Optional[Vehicle],
        signal_distance: float,
        signal_phase: SignalPhase,
    ):
        target_speed = self.calculate_target_speed(vehicle, front_vehicle, signal_distance, signal_phase)
        vehicle.acceleration = self.calculate_acceleration(vehicle, target_speed, front_vehicle)

        vehicle.velocity += vehicle.acceleration * dt
        vehicle.velocity = max(0.0, min(vehicle.max_speed, vehicle.velocity))

        # Explicit Euler along the heading
        displacement = vehicle.velocity * dt
        hx, hy = heading(vehicle.direction)
        vehicle.x += hx * displacement
        vehicle.y += hy * displacement

        vehicle.total_distance += displacement
        vehicle.total_travel_time += dt
        vehicle.max_speed_achieved = max(vehicle.max_speed_achieved, vehicle.velocity)

        if vehicle.velocity < config.WAITING_SPEED:
            vehicle.wait_time += dt
            if vehicle.status == VehicleStatus.APPROACHING:
                vehicle.status = VehicleStatus.WAITING
        elif vehicle.status == VehicleStatus.WAITING:
            vehicle.status = VehicleStatus.APPROACHING

    def calculate_target_speed(
        self,
        vehicle: Vehicle,
        front_vehicle: Optional[Vehicle],
        signal_distance: float,
        signal_phase: SignalPhase,
    ) -> float:
        target_speed = vehicle.max_speed

        if signal_phase in (SignalPhase.RED, SignalPhase.YELLOW):
            if signal_distance < self.stopping_distance(vehicle) + config.SIGNAL_STOP_MARGIN:
                target_speed = 0.0

        if front_vehicle is not None:
            # Inclusive: a stopped leader exactly at the safe gap must hold us at its speed.
            if self.gap(vehicle, front_vehicle) <= self.desired_gap(vehicle):
                target_speed = min(target_speed, front_vehicle.velocity)

        return target_speed

    def calculate_acceleration(self, vehicle: Vehicle, target_speed: float, front_vehicle: Optional[Vehicle]) -> float:
        if vehicle.velocity < target_speed:
            acceleration = vehicle.max_acceleration * (1 - (vehicle.velocity / vehicle.max_speed) ** 4)
        else:
            acceleration = -vehicle.comfortable_deceleration

        if front_vehicle is not None:
            gap = self.gap(vehicle, front_vehicle)
            desired_gap = self.desired_gap(vehicle)
            if gap < desired_gap:
                braking = -vehicle.comfortable_deceleration * (desired_gap / max(gap, config.MIN_GAP_EPSILON)) ** 2
                acceleration = min(acceleration, braking)

        return acceleration

    @staticmethod
    def stopping_distance(vehicle: Vehicle) -> float:
        if vehicle.velocity <= 0:
            return 0.0
        return vehicle.velocity ** 2 / (2 * vehicle.comfortable_deceleration)

    @staticmethod
    def desired_gap(vehicle: Vehicle) -> float:
        return vehicle.min_gap + vehicle.velocity * vehicle.reaction_time

    @staticmethod
    def gap(vehicle: Vehicle, front_vehicle: Vehicle) -> float:
        d = distance(vehicle.x, vehicle.y, front_vehicle.x, front_vehicle.y)
        return max(0.0, d - front_vehicle.length)
