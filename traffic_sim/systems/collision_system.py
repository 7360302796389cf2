import logging
from typing import Iterable, List, Optional
from traffic_sim.domain import config
from traffic_sim.domain.geometry import distance, is_opposite, is_perpendicular, midpoint
from traffic_sim.domain.intersection import Intersection
from traffic_sim.domain.models import (
    CollisionEvent, CollisionStats, Point, Severity, TurnIntent, Vehicle
)

logger = logging.getLogger(__name__)

class CollisionDetector:
    """Pairwise proximity scan plus the advisory intersection-entry check."""

    def __init__(
        self,
        intersection: Intersection,
        collision_threshold: float = config.COLLISION_THRESHOLD,
        min_safe_distance: float = config.MIN_SAFE_DISTANCE,
    ):
        self.intersection = intersection
        self.collision_threshold = collision_threshold
        self.min_safe_distance = min_safe_distance
        self.collision_events: List[CollisionEvent] = []

    def check_collisions(self, vehicles: List[Vehicle], current_time: float):
        for i in range(len(vehicles)):
            for j in range(i + 1, len(vehicles)):
                self._check_pair(vehicles[i], vehicles[j], current_time)

    def _check_pair(self, v1: Vehicle, v2: Vehicle, current_time: float):
        separation = distance(v1.x, v1.y, v2.x, v2.y)

        if separation < self.collision_threshold:
            severity = Severity.COLLISION
        elif separation < self.min_safe_distance and v1.direction != v2.direction:
            # Close following in the same direction is normal traffic.
            severity = Severity.NEAR_MISS
        else:
            return

        mx, my = midpoint(v1.x, v1.y, v2.x, v2.y)
        self._log_event(CollisionEvent(
            time=current_time,
            vehicle1_id=v1.id,
            vehicle2_id=v2.id,
            location=Point(x=mx, y=my),
            severity=severity,
        ))

    def _log_event(self, event: CollisionEvent):
        recent = self._find_recent(event.vehicle1_id, event.vehicle2_id)
        if recent is not None and event.time - recent.time < config.DEDUP_WINDOW:
            return

        self.collision_events.append(event)
        if event.severity == Severity.COLLISION:
            logger.warning(
                "COLLISION at t=%.2fs: %s <-> %s", event.time, event.vehicle1_id, event.vehicle2_id
            )

    def _find_recent(self, id_a: str, id_b: str) -> Optional[CollisionEvent]:
        # Newest first, so the window is measured from the latest logged event for the pair.
        for event in reversed(self.collision_events[-config.DEDUP_LOOKBACK:]):
            if event.involves_pair(id_a, id_b):
                return event
        return None

    def is_safe_to_enter_intersection(self, vehicle: Vehicle, other_vehicles: Iterable[Vehicle]) -> bool:
        """Advisory only; nothing in the movement update gates on this."""
        for other in other_vehicles:
            if other.id == vehicle.id:
                continue
            if other.is_in_intersection(self.intersection.bounds) and self.paths_intersect(vehicle, other):
                return False
        return True

    @staticmethod
    def paths_intersect(v1: Vehicle, v2: Vehicle) -> bool:
        if v1.direction == v2.direction:
            return False
        if is_opposite(v1.direction, v2.direction):
            return v1.turn_intent == TurnIntent.LEFT or v2.turn_intent == TurnIntent.LEFT
        return is_perpendicular(v1.direction, v2.direction)

    def get_collision_events(self) -> List[CollisionEvent]:
        return list(self.collision_events)

    def get_collision_count(self, severity: Optional[Severity] = None) -> int:
        if severity is None:
            return len(self.collision_events)
        return sum(1 for e in self.collision_events if e.severity == severity)

    def reset(self):
        self.collision_events.clear()

    def get_stats(self) -> CollisionStats:
        return CollisionStats(
            total_collisions=self.get_collision_count(Severity.COLLISION),
            total_near_misses=self.get_collision_count(Severity.NEAR_MISS),
            total_events=len(self.collision_events),
        )

    def __repr__(self) -> str:
        return (
            f"CollisionDetector(collisions={self.get_collision_count(Severity.COLLISION)}, "
            f"near-misses={self.get_collision_count(Severity.NEAR_MISS)})"
        )
