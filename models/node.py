import math
from typing import Dict


class Node:
    """
    Represents an agent in the influence graph.

    Power and loyalty are unclamped. Allies and subordinates
    are kept as insertion-ordered id sets (dict keys).
    """

    def __init__(self, node_id: int, name: str, initial_power: float):
        self.id = node_id
        self.name = name
        self.power = initial_power
        self.loyalty = 1.0
        self.influence_radius = initial_power * 0.5
        self.is_traitor = False
        self._allies: Dict[int, None] = {}
        self._subordinates: Dict[int, None] = {}

    @property
    def allies(self):
        return list(self._allies)

    @property
    def subordinates(self):
        return list(self._subordinates)

    def set_power(self, power: float) -> None:
        self.power = power

    def modify_power(self, delta: float) -> None:
        self.power += delta

    def set_loyalty(self, loyalty: float) -> None:
        self.loyalty = loyalty

    def modify_loyalty(self, delta: float) -> None:
        self.loyalty += delta

    def mark_as_traitor(self) -> None:
        self.is_traitor = True

    def clear_traitor_mark(self) -> None:
        self.is_traitor = False

    def add_ally(self, node_id: int) -> None:
        self._allies.setdefault(node_id, None)

    def remove_ally(self, node_id: int) -> None:
        self._allies.pop(node_id, None)

    def add_subordinate(self, node_id: int) -> None:
        self._subordinates.setdefault(node_id, None)

    def remove_subordinate(self, node_id: int) -> None:
        self._subordinates.pop(node_id, None)

    def calculate_betrayal_gain(self, target_power: float) -> float:
        base_gain = target_power * 0.6
        loyalty_penalty = self.loyalty * target_power * 0.3
        return base_gain - loyalty_penalty

    def calculate_vulnerability(self) -> float:
        """
        Inverse-power susceptibility, discounted by 0.1 per ally, floored at 0.
        A power of exactly -1 makes the base term +inf rather than raising.
        """
        denominator = self.power + 1.0
        base_vulnerability = math.inf if denominator == 0 else 1.0 / denominator
        ally_protection = len(self._allies) * 0.1
        return max(0.0, base_vulnerability - ally_protection)

    def update_influence_radius(self) -> None:
        self.influence_radius = self.power * 0.5 + len(self._subordinates) * 0.2

    def copy(self) -> "Node":
        clone = Node(self.id, self.name, self.power)
        clone.loyalty = self.loyalty
        clone.influence_radius = self.influence_radius
        clone.is_traitor = self.is_traitor
        clone._allies = dict(self._allies)
        clone._subordinates = dict(self._subordinates)
        return clone

    def __repr__(self):
        return f"<Node(id={self.id}, name={self.name}, power={self.power}, loyalty={self.loyalty})>"
