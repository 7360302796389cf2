import networkx as nx
from typing import Dict, Any, List, Tuple

CENTER = "center"

class RoadNetwork:
    """Approach topology of a single intersection: entry nodes feeding one centre node."""

    def __init__(self):
        self.graph = nx.DiGraph()
        self.graph.add_node(CENTER, pos=(0.0, 0.0), type="intersection")

    def add_approach(self, name: str, entry_pos: Tuple[float, float], length: float, lanes: int, road: Any = None):
        self.graph.add_node(name, pos=entry_pos, type="entry")
        self.graph.add_edge(name, CENTER, length=length, lanes=lanes, road=road)

    def approaches(self) -> List[str]:
        return list(self.graph.predecessors(CENTER))

    def has_approach(self, name: str) -> bool:
        return self.graph.has_edge(name, CENTER)

    def get_edge_data(self, name: str) -> Dict[str, Any]:
        return self.graph.get_edge_data(name, CENTER)

    def get_node_pos(self, u: str) -> Tuple[float, float]:
        return self.graph.nodes[u].get('pos', (0.0, 0.0))

    def total_lanes(self) -> int:
        return sum(lanes for _, _, lanes in self.graph.in_edges(CENTER, data="lanes"))
