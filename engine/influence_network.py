import logging
from typing import Dict, List, Optional, Set, Tuple

import networkx as nx

from models.edge import Edge, EdgeType
from models.node import Node

logger = logging.getLogger(__name__)

MAX_PROPAGATION_DEPTH = 3
PROPAGATION_THRESHOLD = 0.01
PROPAGATION_DECAY = 0.5
VULNERABILITY_THRESHOLD = 0.3


class InfluenceNetwork:
    """
    Owns every agent and relationship of the influence graph.

    Nodes live in an arena keyed by integer id; edges, allies and subordinates
    only ever hold ids. Edges keep insertion order, which also fixes the
    traversal order of propagation.
    """

    def __init__(self):
        self._nodes: Dict[int, Node] = {}
        self._edges: List[Edge] = []
        self._next_node_id = 0

    def add_node(self, name: str, initial_power: float) -> int:
        node_id = self._next_node_id
        self._next_node_id += 1
        self._nodes[node_id] = Node(node_id, name, initial_power)
        logger.debug("Added node %s (%s) with power %.2f", node_id, name, initial_power)
        return node_id

    def get_node(self, node_id: int) -> Optional[Node]:
        return self._nodes.get(node_id)

    def get_all_nodes(self) -> Dict[int, Node]:
        return dict(self._nodes)

    def add_edge(self, source: int, target: int, edge_type: EdgeType, weight: float) -> None:
        self._edges.append(Edge(source, target, edge_type, weight))

        source_node = self.get_node(source)
        target_node = self.get_node(target)
        if source_node and target_node:
            if edge_type == EdgeType.ALLIANCE:
                source_node.add_ally(target)
                target_node.add_ally(source)
            elif edge_type == EdgeType.SUBORDINATION:
                source_node.add_subordinate(target)
        logger.debug("Added %s edge %s -> %s (weight %.2f)", edge_type.value, source, target, weight)

    def remove_edge(self, source: int, target: int, retract_relationships: bool = False) -> None:
        """
        Removes every edge with exactly this (source, target) pair.

        Ally and subordinate memberships are left untouched unless
        *retract_relationships* is set; then the subordinate entry goes, and
        the mutual alliance goes once no ALLIANCE edge links the pair anymore.
        """
        before = len(self._edges)
        self._edges = [
            e for e in self._edges
            if not (e.source_id == source and e.target_id == target)
        ]
        logger.debug("Removed %d edge(s) %s -> %s", before - len(self._edges), source, target)

        if not retract_relationships:
            return

        source_node = self.get_node(source)
        target_node = self.get_node(target)
        if source_node:
            source_node.remove_subordinate(target)
        if source_node and target_node and not self._has_alliance(source, target):
            source_node.remove_ally(target)
            target_node.remove_ally(source)

    def _has_alliance(self, a: int, b: int) -> bool:
        return any(
            e.type == EdgeType.ALLIANCE and {e.source_id, e.target_id} == {a, b}
            for e in self._edges
        )

    def get_edges(self) -> List[Edge]:
        return [e.copy() for e in self._edges]

    def get_edges_from(self, node_id: int) -> List[Edge]:
        return [e.copy() for e in self._edges if e.source_id == node_id]

    def propagate_influence(self, source_id: int, amount: float) -> None:
        """
        Depth-first decayed flood of a power delta along outgoing edges.

        Every node is processed at most once per call and the first path to
        reach it wins. A branch ends past depth 3, on an already visited node,
        or when its amount drops below 0.01 (signed, so negative flow through
        CONFLICT edges stops there).
        """
        visited: Set[int] = set()
        stack: List[Tuple[int, float, int]] = [(source_id, amount, 0)]

        while stack:
            node_id, current, depth = stack.pop()
            if depth > MAX_PROPAGATION_DEPTH or node_id in visited or current < PROPAGATION_THRESHOLD:
                continue

            visited.add(node_id)
            node = self.get_node(node_id)
            if not node:
                continue

            node.modify_power(current)
            logger.debug("Propagated %.4f to node %s at depth %d", current, node_id, depth)

            # Reversed so the first inserted edge is explored first.
            children = [
                (edge.target_id, current * edge.calculate_influence_flow() * PROPAGATION_DECAY, depth + 1)
                for edge in self.get_edges_from(node_id)
            ]
            stack.extend(reversed(children))

    def update_all_influence_radii(self) -> None:
        for node in self._nodes.values():
            node.update_influence_radius()

    def calculate_total_network_power(self) -> float:
        return sum(node.power for node in self._nodes.values())

    def find_most_influential_nodes(self, count: int) -> List[int]:
        """Ids by descending power; stable, so ties keep node order."""
        if count <= 0:
            return []
        ranked = sorted(self._nodes.values(), key=lambda n: n.power, reverse=True)
        return [n.id for n in ranked[:count]]

    def calculate_centrality(self, node_id: int) -> float:
        node = self.get_node(node_id)
        if not node:
            return 0.0

        incoming = 0
        outgoing = 0
        for edge in self._edges:
            if edge.target_id == node_id:
                incoming += 1
            if edge.source_id == node_id:
                outgoing += 1

        return (incoming + outgoing) * node.power

    def find_vulnerable_targets(self) -> List[int]:
        vulnerabilities = []
        for node_id, node in self._nodes.items():
            vulnerability = node.calculate_vulnerability()
            if vulnerability > VULNERABILITY_THRESHOLD:
                vulnerabilities.append((node_id, vulnerability))

        vulnerabilities.sort(key=lambda pair: pair[1], reverse=True)
        return [node_id for node_id, _ in vulnerabilities]

    def copy(self) -> "InfluenceNetwork":
        clone = InfluenceNetwork()
        clone._nodes = {node_id: node.copy() for node_id, node in self._nodes.items()}
        clone._edges = [e.copy() for e in self._edges]
        clone._next_node_id = self._next_node_id
        return clone

    def to_networkx(self) -> nx.MultiDiGraph:
        """
        Builds a NetworkX view of the current state for structural analytics.
        Edges pointing at unknown ids are skipped.
        """
        G = nx.MultiDiGraph()
        for node in self._nodes.values():
            G.add_node(node.id, name=node.name, power=node.power,
                       loyalty=node.loyalty, traitor=node.is_traitor)

        for e in self._edges:
            if e.source_id not in self._nodes or e.target_id not in self._nodes:
                continue
            G.add_edge(e.source_id, e.target_id,
                       type=e.type.value,
                       weight=e.weight,
                       trust=e.trust_level,
                       flow=e.calculate_influence_flow())
        return G
