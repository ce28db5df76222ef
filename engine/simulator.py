import logging
import os
import random
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from models.edge import EdgeType
from models.plans import BetrayalPlan
from .betrayal_strategy import BetrayalStrategy
from .influence_network import InfluenceNetwork

logger = logging.getLogger(__name__)


class SimulationConfig(BaseModel):
    max_turns: int = Field(default=20, ge=0)
    seed: Optional[int] = None
    event_chance: int = Field(default=30, ge=0, le=100)  # fires when a 1..100 roll is below it
    event_power_bonus: float = 2.0
    growth_power: float = 0.5
    growth_loyalty: float = 0.02
    status_interval: int = Field(default=5, ge=1)
    relationship_weight: float = 1.0

    @classmethod
    def from_env(cls) -> "SimulationConfig":
        overrides: Dict[str, Any] = {}
        if os.getenv("INFLUENCE_SIM_MAX_TURNS"):
            overrides["max_turns"] = int(os.environ["INFLUENCE_SIM_MAX_TURNS"])
        if os.getenv("INFLUENCE_SIM_SEED"):
            overrides["seed"] = int(os.environ["INFLUENCE_SIM_SEED"])
        if os.getenv("INFLUENCE_SIM_EVENT_CHANCE"):
            overrides["event_chance"] = int(os.environ["INFLUENCE_SIM_EVENT_CHANCE"])
        return cls(**overrides)


class RandomEvent(BaseModel):
    turn: int
    node_id: int
    name: str
    power_gain: float


class SimulationReport(BaseModel):
    turns_played: int = 0
    events: List[RandomEvent] = Field(default_factory=list)
    snapshots: List[Dict[str, Any]] = Field(default_factory=list)
    final_analysis: Dict[str, Any] = Field(default_factory=dict)


class Simulator:
    """
    Turn-based driver around an InfluenceNetwork: natural growth, seeded
    random windfalls, periodic status snapshots and betrayal execution.
    """

    def __init__(self, config: Optional[SimulationConfig] = None,
                 network: Optional[InfluenceNetwork] = None):
        self.config = config or SimulationConfig()
        self.network = network or InfluenceNetwork()
        self.strategy = BetrayalStrategy(self.network)
        self.rng = random.Random(self.config.seed)
        self.current_turn = 0

    def create_agent(self, name: str, power: float) -> int:
        return self.network.add_node(name, power)

    def create_relationship(self, source: int, target: int, edge_type: EdgeType) -> None:
        self.network.add_edge(source, target, edge_type, self.config.relationship_weight)

    def run_simulation(self) -> SimulationReport:
        report = SimulationReport()
        report.snapshots.append(self.network_status())

        for turn in range(1, self.config.max_turns + 1):
            self.current_turn = turn
            logger.debug("Turn %d", turn)

            self.simulate_natural_growth()
            node_id = self.simulate_random_events()
            if node_id is not None:
                node = self.network.get_node(node_id)
                report.events.append(RandomEvent(
                    turn=turn, node_id=node_id, name=node.name,
                    power_gain=self.config.event_power_bonus,
                ))

            if turn % self.config.status_interval == 0:
                report.snapshots.append(self.network_status())

        report.turns_played = self.current_turn
        report.final_analysis = self.final_analysis()
        logger.info("Simulation finished after %d turn(s), %d event(s)",
                    report.turns_played, len(report.events))
        return report

    def simulate_natural_growth(self) -> None:
        for node in self.network.get_all_nodes().values():
            node.modify_power(self.config.growth_power)
            node.modify_loyalty(self.config.growth_loyalty)
        self.network.update_all_influence_radii()

    def simulate_random_events(self) -> Optional[int]:
        if self.rng.randint(1, 100) >= self.config.event_chance:
            return None

        node_ids = list(self.network.get_all_nodes())
        if not node_ids:
            return None

        node_id = self.rng.choice(node_ids)
        node = self.network.get_node(node_id)
        node.modify_power(self.config.event_power_bonus)
        logger.info("[EVENT] %s gained unexpected power", node.name)
        return node_id

    def execute_optimal_betrayal_for(self, agent_id: int) -> Optional[BetrayalPlan]:
        plans = self.strategy.find_optimal_betrayals(agent_id, 1)
        if not plans:
            logger.info("No viable betrayal opportunities for agent %s", agent_id)
            return None

        best_plan = plans[0]
        self.strategy.execute_betrayal(best_plan)
        return best_plan

    def betrayal_opportunities(self, agent_id: int, top_n: int = 5) -> List[BetrayalPlan]:
        return self.strategy.find_optimal_betrayals(agent_id, top_n)

    def network_status(self) -> Dict[str, Any]:
        rows = [
            {
                "id": node_id,
                "name": node.name,
                "power": node.power,
                "loyalty": node.loyalty,
                "allies": len(node.allies),
                "centrality": self.network.calculate_centrality(node_id),
            }
            for node_id, node in self.network.get_all_nodes().items()
        ]
        return {
            "turn": self.current_turn,
            "total_power": self.network.calculate_total_network_power(),
            "agents": rows,
        }

    def final_analysis(self) -> Dict[str, Any]:
        influential = [
            {
                "id": node_id,
                "name": self.network.get_node(node_id).name,
                "power": self.network.get_node(node_id).power,
                "control": self.strategy.calculate_network_control(node_id),
            }
            for node_id in self.network.find_most_influential_nodes(3)
        ]
        vulnerable = [
            {
                "id": node_id,
                "name": self.network.get_node(node_id).name,
                "vulnerability": self.network.get_node(node_id).calculate_vulnerability(),
            }
            for node_id in self.network.find_vulnerable_targets()[:3]
        ]
        return {"most_influential": influential, "most_vulnerable": vulnerable}
