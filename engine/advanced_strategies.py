import logging
from typing import List, Optional, Set

import networkx as nx

from models.edge import EdgeType
from models.plans import BetrayalPlan, Coalition, MultiStepPlan
from .betrayal_strategy import BetrayalStrategy
from .influence_network import InfluenceNetwork

logger = logging.getLogger(__name__)

BRIDGE_CENTRALITY_THRESHOLD = 50.0


class AdvancedStrategies:
    """
    Coalition building, multi-step planning and network manipulation
    layered on top of BetrayalStrategy.
    """

    def __init__(self, network: InfluenceNetwork):
        self.network = network
        self.strategy = BetrayalStrategy(network)

    def form_optimal_coalition(self, initiator: int, target_size: int) -> Coalition:
        """
        1. Score every other agent: power, loyalty and an existing-alliance bonus.
        2. Recruit the best ``target_size - 1`` candidates.
        3. Cohesion shrinks by 0.05 per member.
        """
        coalition = Coalition(leader_id=initiator, members=[initiator])

        initiator_node = self.network.get_node(initiator)
        if not initiator_node:
            return coalition

        allies = set(initiator_node.allies)
        candidates = []
        for node_id, candidate in self.network.get_all_nodes().items():
            if node_id == initiator:
                continue
            compatibility = candidate.power * 0.4 + candidate.loyalty * 0.3
            if node_id in allies:
                compatibility += 5.0
            candidates.append((node_id, compatibility))

        candidates.sort(key=lambda pair: pair[1], reverse=True)

        coalition.combined_power = initiator_node.power
        for node_id, _ in candidates[:max(0, target_size - 1)]:
            coalition.members.append(node_id)
            member = self.network.get_node(node_id)
            if member:
                coalition.combined_power += member.power

        coalition.cohesion = 0.8 - len(coalition.members) * 0.05
        return coalition

    def detect_existing_coalitions(self) -> List[Coalition]:
        coalitions: List[Coalition] = []
        processed: Set[int] = set()

        for node_id, node in self.network.get_all_nodes().items():
            if node_id in processed:
                continue

            coalition = Coalition(leader_id=node_id, members=[node_id], combined_power=node.power)
            for member_id in node.allies + node.subordinates:
                if member_id in processed or member_id in coalition.members:
                    continue
                coalition.members.append(member_id)
                member = self.network.get_node(member_id)
                if member:
                    coalition.combined_power += member.power

            if len(coalition.members) > 1:
                coalition.cohesion = 0.7
                coalitions.append(coalition)
                processed.update(coalition.members)

        return coalitions

    def plan_dominance_path(self, agent_id: int, horizon: int) -> MultiStepPlan:
        """
        Greedy lookahead: repeatedly take the best-ROI betrayal and play it
        out on a scratch copy of the network.
        """
        plan = MultiStepPlan()
        scratch = BetrayalStrategy(self.network.copy())

        for _ in range(horizon):
            opportunities = scratch.find_optimal_betrayals(agent_id, 1)
            if not opportunities:
                break

            best = opportunities[0]
            plan.sequence.append(best)
            plan.cumulative_gain += best.expected_gain
            plan.required_turns += 1
            scratch.execute_betrayal(best)

        logger.debug("Dominance path for %s: %d step(s)", agent_id, plan.required_turns)
        return plan

    def isolate_target(self, target_id: int, aggressor_id: int) -> None:
        target = self.network.get_node(target_id)
        if not target:
            return

        for ally_id in target.allies:
            self.network.remove_edge(ally_id, target_id)
            self.network.remove_edge(target_id, ally_id)
            self.network.add_edge(aggressor_id, ally_id, EdgeType.ALLIANCE, 1.0)

        target.modify_loyalty(-0.5)
        logger.info("Agent %s isolated target %s", aggressor_id, target_id)

    def find_bridge_nodes(self) -> List[int]:
        # Degree-weighted power stands in for betweenness.
        return [
            node_id for node_id in self.network.get_all_nodes()
            if self.network.calculate_centrality(node_id) > BRIDGE_CENTRALITY_THRESHOLD
        ]

    def find_articulation_agents(self) -> List[int]:
        G = nx.Graph(self.network.to_networkx().to_undirected())
        G.remove_edges_from(list(nx.selfloop_edges(G)))
        return sorted(nx.articulation_points(G))

    def execute_divide_and_conquer(self, agent_id: int) -> Optional[BetrayalPlan]:
        for bridge_id in self.find_bridge_nodes():
            if bridge_id == agent_id:
                continue

            bridge = self.network.get_node(bridge_id)
            if not bridge:
                continue

            if bridge.calculate_vulnerability() > 0.3:
                plan = self.strategy.analyze_betrayal_opportunity(agent_id, bridge_id)
                if plan.success_probability > 0.5:
                    self.strategy.execute_betrayal(plan)
                    return plan
        return None
