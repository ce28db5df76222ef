from enum import Enum


class EdgeType(str, Enum):
    ALLIANCE = "ALLIANCE"
    SUBORDINATION = "SUBORDINATION"
    CONFLICT = "CONFLICT"
    NEUTRAL = "NEUTRAL"


class Edge:
    """
    Typed, weighted directed relationship between two agents.
    Trust only modulates ALLIANCE flow and always stays within [0, 1].
    """

    def __init__(self, source_id: int, target_id: int, edge_type: EdgeType, weight: float):
        self.source_id = source_id
        self.target_id = target_id
        self.type = edge_type
        self.weight = weight
        self.trust_level = 0.8

    def set_type(self, edge_type: EdgeType) -> None:
        self.type = edge_type

    def set_weight(self, weight: float) -> None:
        self.weight = weight

    def modify_trust(self, delta: float) -> None:
        self.trust_level = max(0.0, min(1.0, self.trust_level + delta))

    def calculate_influence_flow(self) -> float:
        if self.type == EdgeType.ALLIANCE:
            return self.weight * self.trust_level * 0.8
        if self.type == EdgeType.SUBORDINATION:
            return self.weight * 1.2
        if self.type == EdgeType.CONFLICT:
            return -self.weight * 0.5
        if self.type == EdgeType.NEUTRAL:
            return self.weight * 0.3
        return 0.0

    def copy(self) -> "Edge":
        clone = Edge(self.source_id, self.target_id, self.type, self.weight)
        clone.trust_level = self.trust_level
        return clone

    def __repr__(self):
        return (
            f"<Edge(source={self.source_id}, target={self.target_id}, "
            f"type={self.type.value}, weight={self.weight}, trust={self.trust_level})>"
        )
