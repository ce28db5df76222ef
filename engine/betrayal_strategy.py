import logging
import math
from typing import List

from models.edge import EdgeType
from models.plans import BetrayalPlan
from .influence_network import InfluenceNetwork

logger = logging.getLogger(__name__)

MIN_SUCCESS_PROBABILITY = 0.05
MAX_SUCCESS_PROBABILITY = 0.95
VIABLE_SUCCESS_PROBABILITY = 0.3
ALLY_POWER_THRESHOLD = 5.0
MAX_REQUIRED_ALLIES = 2
POWER_THEFT_RATIO = 0.6
RIPPLE_RATIO = 0.3
CENTRALITY_NORMALIZER = 100.0
DOMINANCE_TARGET_COUNT = 5


def _divide(numerator: float, denominator: float) -> float:
    # IEEE-style quotient; unclamped power can zero the denominator.
    if denominator == 0:
        if numerator == 0:
            return 0.0
        return math.copysign(math.inf, numerator)
    return numerator / denominator


class BetrayalStrategy:
    """
    Stateless scoring engine over an InfluenceNetwork.

    Analysis never fails on unknown ids: it yields a zero-valued plan, and
    execution of such a plan is a no-op.
    """

    def __init__(self, network: InfluenceNetwork):
        self.network = network

    def analyze_betrayal_opportunity(self, betrayer: int, target: int) -> BetrayalPlan:
        betrayer_node = self.network.get_node(betrayer)
        target_node = self.network.get_node(target)

        if not betrayer_node or not target_node:
            return BetrayalPlan(betrayer_id=betrayer, target_id=target)

        plan = BetrayalPlan(
            betrayer_id=betrayer,
            target_id=target,
            expected_gain=betrayer_node.calculate_betrayal_gain(target_node.power),
            success_probability=self.calculate_betrayal_success_probability(betrayer, target),
            required_allies=self.identify_necessary_allies(betrayer, target),
        )
        plan.total_cost = self.calculate_execution_cost(plan)
        return plan

    def find_optimal_betrayals(self, betrayer_id: int, top_n: int) -> List[BetrayalPlan]:
        if not self.network.get_node(betrayer_id) or top_n <= 0:
            return []

        plans = []
        for node_id in self.network.get_all_nodes():
            if node_id == betrayer_id:
                continue
            plan = self.analyze_betrayal_opportunity(betrayer_id, node_id)
            if plan.expected_gain > 0 and plan.success_probability > VIABLE_SUCCESS_PROBABILITY:
                plans.append(plan)

        plans.sort(key=lambda p: p.roi, reverse=True)
        return plans[:top_n]

    def execute_betrayal(self, plan: BetrayalPlan) -> None:
        """
        Applies the plan: traitor mark, power transfer, loyalty damage,
        edge rewrite to CONFLICT, then a ripple from the betrayer.
        The steps run in sequence and are not atomic as a unit.
        """
        betrayer = self.network.get_node(plan.betrayer_id)
        target = self.network.get_node(plan.target_id)
        if not betrayer or not target:
            logger.debug("Skipping betrayal %s -> %s: unknown agent", plan.betrayer_id, plan.target_id)
            return

        betrayer.mark_as_traitor()

        power_stolen = target.power * POWER_THEFT_RATIO
        target.modify_power(-power_stolen)
        betrayer.modify_power(power_stolen)

        target.modify_loyalty(-0.4)
        for ally_id in plan.required_allies:
            ally = self.network.get_node(ally_id)
            if ally:
                ally.modify_loyalty(-0.2)

        self.network.remove_edge(plan.betrayer_id, plan.target_id)
        self.network.add_edge(plan.betrayer_id, plan.target_id, EdgeType.CONFLICT, 1.0)

        logger.info(
            "%s betrayed %s, stealing %.2f power",
            betrayer.name, target.name, power_stolen,
        )
        self.network.propagate_influence(plan.betrayer_id, power_stolen * RIPPLE_RATIO)

    def calculate_betrayal_success_probability(self, betrayer: int, target: int) -> float:
        betrayer_node = self.network.get_node(betrayer)
        target_node = self.network.get_node(target)
        if not betrayer_node or not target_node:
            return 0.0

        power_ratio = _divide(betrayer_node.power, target_node.power + 1.0)
        ally_advantage = len(betrayer_node.allies) * 0.1
        target_vulnerability = target_node.calculate_vulnerability()

        probability = power_ratio * 0.5 + ally_advantage + target_vulnerability * 0.3
        if math.isnan(probability):
            return MIN_SUCCESS_PROBABILITY
        return min(MAX_SUCCESS_PROBABILITY, max(MIN_SUCCESS_PROBABILITY, probability))

    def identify_necessary_allies(self, betrayer: int, target: int) -> List[int]:
        betrayer_node = self.network.get_node(betrayer)
        target_node = self.network.get_node(target)
        if not betrayer_node or not target_node:
            return []

        necessary_allies: List[int] = []
        if target_node.power > betrayer_node.power * 1.5:
            for ally_id in betrayer_node.allies:
                ally = self.network.get_node(ally_id)
                if ally and ally.power > ALLY_POWER_THRESHOLD:
                    necessary_allies.append(ally_id)
                    if len(necessary_allies) >= MAX_REQUIRED_ALLIES:
                        break
        return necessary_allies

    def calculate_execution_cost(self, plan: BetrayalPlan) -> float:
        base_cost = 2.0
        ally_cost = len(plan.required_allies) * 1.5
        risk_cost = (1.0 - plan.success_probability) * 5.0
        return base_cost + ally_cost + risk_cost

    def calculate_network_control(self, node_id: int) -> float:
        """
        Share of total power (weight 0.6) plus centrality over a fixed
        normalizer of 100 (weight 0.4).
        """
        node = self.network.get_node(node_id)
        if not node:
            return 0.0

        total_power = self.network.calculate_total_network_power()
        power_share = 0.0 if total_power == 0 else node.power / total_power
        centrality = self.network.calculate_centrality(node_id)
        return power_share * 0.6 + (centrality / CENTRALITY_NORMALIZER) * 0.4

    def find_critical_targets_for_dominance(self, player_id: int) -> List[int]:
        target_values = []
        for node_id, node in self.network.get_all_nodes().items():
            if node_id == player_id:
                continue
            strategic_value = (
                node.power * 0.5
                + self.network.calculate_centrality(node_id) * 0.3
                + node.calculate_vulnerability() * 0.2
            )
            target_values.append((node_id, strategic_value))

        target_values.sort(key=lambda pair: pair[1], reverse=True)
        return [node_id for node_id, _ in target_values[:DOMINANCE_TARGET_COUNT]]
