import math
from typing import Dict, FrozenSet, NamedTuple, Tuple
from traffic_sim.domain.models import Direction

Vec = Tuple[float, float]

class DirectionGeometry(NamedTuple):
    heading: Vec     # unit vector of travel
    approach: Vec    # unit vector from the centre out to the road's entry
    lateral: Vec     # lane-offset axis
    opposite: Direction
    perpendicular: FrozenSet[Direction]
    axis: str        # "northSouth" or "eastWest"

_NS = frozenset({Direction.NORTH, Direction.SOUTH})
_EW = frozenset({Direction.EAST, Direction.WEST})

# Screen coordinates: the north approach sits at negative y and its traffic heads +y.
DIRECTION_TABLE: Dict[Direction, DirectionGeometry] = {
    Direction.NORTH: DirectionGeometry((0.0, 1.0), (0.0, -1.0), (1.0, 0.0), Direction.SOUTH, _EW, "northSouth"),
    Direction.SOUTH: DirectionGeometry((0.0, -1.0), (0.0, 1.0), (-1.0, 0.0), Direction.NORTH, _EW, "northSouth"),
    Direction.EAST: DirectionGeometry((1.0, 0.0), (-1.0, 0.0), (0.0, 1.0), Direction.WEST, _NS, "eastWest"),
    Direction.WEST: DirectionGeometry((-1.0, 0.0), (1.0, 0.0), (0.0, -1.0), Direction.EAST, _NS, "eastWest"),
}

def heading(direction: Direction) -> Vec:
    return DIRECTION_TABLE[direction].heading

def opposite(direction: Direction) -> Direction:
    return DIRECTION_TABLE[direction].opposite

def is_opposite(a: Direction, b: Direction) -> bool:
    return DIRECTION_TABLE[a].opposite == b

def is_perpendicular(a: Direction, b: Direction) -> bool:
    return b in DIRECTION_TABLE[a].perpendicular

def axis(direction: Direction) -> str:
    return DIRECTION_TABLE[direction].axis

def dot(a: Vec, b: Vec) -> float:
    return a[0] * b[0] + a[1] * b[1]

def distance(ax: float, ay: float, bx: float, by: float) -> float:
    return math.hypot(ax - bx, ay - by)

def midpoint(ax: float, ay: float, bx: float, by: float) -> Vec:
    return ((ax + bx) / 2, (ay + by) / 2)
