import logging
from typing import List
from pydantic import BaseModel, ConfigDict
from traffic_sim.domain import config
from traffic_sim.domain.config import IntersectionConfig
from traffic_sim.domain.geometry import DIRECTION_TABLE, dot
from traffic_sim.domain.graph import RoadNetwork
from traffic_sim.domain.models import (
    DIRECTIONS, Bounds, Direction, IntersectionSnapshot, IntersectionType, Point
)

logger = logging.getLogger(__name__)


class Road(BaseModel):
    """One approach leading into the intersection. Immutable after construction."""

    model_config = ConfigDict(frozen=True)

    direction: Direction
    num_lanes: int
    length: float
    lane_width: float

    def lane_position(self, lane_index: int, distance: float) -> Point:
        """Centre of ``lane_index`` at ``distance`` metres from the intersection centre."""
        if lane_index < 0 or lane_index >= self.num_lanes:
            raise ValueError(f"Invalid lane index: {lane_index} (numLanes: {self.num_lanes})")

        lane_offset = (lane_index - (self.num_lanes - 1) / 2) * self.lane_width
        geo = DIRECTION_TABLE[self.direction]
        return Point(
            x=geo.approach[0] * distance + geo.lateral[0] * lane_offset,
            y=geo.approach[1] * distance + geo.lateral[1] * lane_offset,
        )

    def entry_position(self, lane_index: int) -> Point:
        return self.lane_position(lane_index, self.length)

    def stop_line_position(self, lane_index: int, intersection_width: float) -> Point:
        return self.lane_position(lane_index, intersection_width / 2 + config.STOP_LINE_OFFSET)

    def total_width(self) -> float:
        return self.num_lanes * self.lane_width

    def distance_from_center(self, x: float, y: float) -> float:
        """Signed projection onto the approach axis; negative once past the centre."""
        return dot((x, y), DIRECTION_TABLE[self.direction].approach)

    def is_on_road(self, x: float, y: float, intersection_width: float) -> bool:
        d = self.distance_from_center(x, y)
        lateral = dot((x, y), DIRECTION_TABLE[self.direction].lateral)
        return intersection_width / 2 <= d <= self.length and abs(lateral) <= self.total_width() / 2

    def __repr__(self) -> str:
        return f"Road({self.direction.value}, {self.num_lanes} lanes, {self.length}m)"


class Intersection:
    def __init__(self, intersection_config: IntersectionConfig):
        self.type = intersection_config.type
        self.width = intersection_config.width
        self.approach_length = intersection_config.approach_length
        self.lane_width = intersection_config.lane_width

        half = self.width / 2
        self.bounds = Bounds(x_min=-half, x_max=half, y_min=-half, y_max=half)

        self.network = RoadNetwork()
        for direction in DIRECTIONS:
            num_lanes = intersection_config.num_lanes.get(direction)
            if num_lanes <= 0:
                continue
            road = Road(
                direction=direction, num_lanes=num_lanes,
                length=self.approach_length, lane_width=self.lane_width
            )
            entry = road.entry_position(0)
            self.network.add_approach(direction.value, (entry.x, entry.y), self.approach_length, num_lanes, road=road)

        if self.type == IntersectionType.THREE_WAY and len(self.active_directions()) != 3:
            logger.warning(
                "Three-way intersection should have exactly 3 roads, but has %d", len(self.active_directions())
            )

        logger.info("Intersection initialized: %s, %d directions", self.type.value, len(self.active_directions()))

    def get_road(self, direction: Direction) -> Road:
        if not self.network.has_approach(direction.value):
            raise KeyError(f"No road found for direction: {direction.value}")
        return self.network.get_edge_data(direction.value)["road"]

    def all_roads(self) -> List[Road]:
        return [self.get_road(d) for d in self.active_directions()]

    def active_directions(self) -> List[Direction]:
        return [d for d in DIRECTIONS if self.network.has_approach(d.value)]

    def is_direction_active(self, direction: Direction) -> bool:
        return self.network.has_approach(direction.value)

    def is_in_intersection(self, x: float, y: float) -> bool:
        return self.bounds.contains(x, y)

    def entry_position(self, direction: Direction, lane_index: int = 0) -> Point:
        return self.get_road(direction).entry_position(lane_index)

    def stop_line_position(self, direction: Direction, lane_index: int = 0) -> Point:
        return self.get_road(direction).stop_line_position(lane_index, self.width)

    def stop_line_distance(self) -> float:
        return self.width / 2 + config.STOP_LINE_OFFSET

    def traffic_light_position(self, direction: Direction) -> Point:
        stop_line = self.stop_line_position(direction, 0)
        lateral = DIRECTION_TABLE[direction].lateral
        return Point(
            x=stop_line.x + lateral[0] * config.SIGNAL_LIGHT_OFFSET,
            y=stop_line.y + lateral[1] * config.SIGNAL_LIGHT_OFFSET,
        )

    def boundary_distance(self) -> float:
        return self.approach_length + self.width / 2

    def eviction_distance(self) -> float:
        return self.approach_length + config.BOUNDARY_MARGIN

    def area(self) -> float:
        return self.width * self.width

    def total_lanes(self) -> int:
        return self.network.total_lanes()

    def opposite_direction(self, direction: Direction) -> Direction:
        return DIRECTION_TABLE[direction].opposite

    def perpendicular_directions(self, direction: Direction) -> List[Direction]:
        perpendicular = DIRECTION_TABLE[direction].perpendicular
        return [d for d in self.active_directions() if d in perpendicular]

    def snapshot(self) -> IntersectionSnapshot:
        return IntersectionSnapshot(
            type=self.type,
            width=self.width,
            approach_length=self.approach_length,
            lane_width=self.lane_width,
            active_directions=self.active_directions(),
            total_lanes=self.total_lanes(),
            area=self.area(),
            bounds=self.bounds,
            boundary_distance=self.boundary_distance(),
        )

    def __repr__(self) -> str:
        directions = ", ".join(d.value for d in self.active_directions())
        return f"Intersection({self.type.value}, {self.width}m x {self.width}m, directions: {directions})"
