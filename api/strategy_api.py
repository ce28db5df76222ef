"""
Strategy API Layer
==================
Audited, version-tracked facade over the influence engines. **Every public
method**:

  1. Resolves the current algorithm version for the operation.
  2. Checks that every referenced agent exists (``not_found`` otherwise).
  3. Delegates to the engine(s) and builds a structured payload plus a
     human-readable explanation.
  4. Appends an AuditLogEntry before returning.

The engines keep their lenient contract (zero plans, silent no-ops); the
distinction between "unknown agent" and "neutral result" is made here.

Public operations
~~~~~~~~~~~~~~~~~
  - ``register_agent``         - add an agent to the network.
  - ``establish_relationship`` - add a typed, weighted edge.
  - ``analyze_betrayal``       - score one betrayer/target pair.
  - ``rank_betrayals``         - best plans for a betrayer by ROI.
  - ``execute_betrayal``       - analyze and carry out a betrayal.
  - ``network_overview``       - network-wide analytics.
  - ``critical_targets``       - dominance targets for a player.
  - ``form_coalition``         - recruit an optimal coalition.
  - ``plan_dominance_path``    - multi-step betrayal lookahead.
"""

from __future__ import annotations

import json
import logging
import time
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

from engine.advanced_strategies import AdvancedStrategies
from engine.betrayal_strategy import BetrayalStrategy
from engine.influence_network import InfluenceNetwork
from models.edge import EdgeType
from models.plans import BetrayalPlan

from api.algorithm_registry import get_current_version
from api.audit_log import AuditLogger
from api.response_envelope import (
    StrategyResponse,
    error_envelope,
    not_found_envelope,
    success_envelope,
)

logger = logging.getLogger(__name__)


def _parse_edge_type(value: Union[str, EdgeType]) -> EdgeType:
    if isinstance(value, EdgeType):
        return value
    try:
        return EdgeType(str(value).upper())
    except ValueError:
        raise ValueError(f"Unknown relationship type: {value!r}") from None


class StrategyAPI:
    def __init__(self, network: Optional[InfluenceNetwork] = None, caller_identity: Optional[str] = None):
        self.network = network if network is not None else InfluenceNetwork()
        self.caller_identity = caller_identity

        self._strategy = BetrayalStrategy(self.network)
        self._advanced = AdvancedStrategies(self.network)
        self._audit = AuditLogger()

    def _run(
        self,
        op: str,
        request_payload: Dict[str, Any],
        agent_ids: Iterable[int],
        compute: Callable[[], Tuple[Any, str]],
    ) -> StrategyResponse:
        ver = get_current_version(op)
        t0 = time.perf_counter()

        missing = [i for i in agent_ids if self.network.get_node(i) is None]
        if missing:
            audit = self._audit.log(
                operation=op,
                algorithm_version=ver.version,
                request_payload=request_payload,
                response_payload=None,
                duration_ms=(time.perf_counter() - t0) * 1000,
                caller_identity=self.caller_identity,
                status="not_found",
                error_detail=f"missing agent ids {missing}",
            )
            return not_found_envelope(op, ver.version, missing, audit.id)

        try:
            data, explanation = compute()
        except Exception as exc:
            logger.warning("Operation %s failed: %s", op, exc)
            audit = self._audit.log(
                operation=op,
                algorithm_version=ver.version,
                request_payload=request_payload,
                response_payload=None,
                duration_ms=(time.perf_counter() - t0) * 1000,
                caller_identity=self.caller_identity,
                status="error",
                error_detail=str(exc),
            )
            return error_envelope(op, ver.version, str(exc), audit.id)

        audit = self._audit.log(
            operation=op,
            algorithm_version=ver.version,
            request_payload=request_payload,
            response_payload=data,
            duration_ms=(time.perf_counter() - t0) * 1000,
            caller_identity=self.caller_identity,
        )
        logger.info("Operation %s completed (audit %s)", op, audit.id[:8])
        return success_envelope(op, ver.version, data, explanation, audit.id)

    def _name(self, node_id: int) -> str:
        node = self.network.get_node(node_id)
        return node.name if node else str(node_id)

    def _describe_plan(self, plan: BetrayalPlan) -> Dict[str, Any]:
        data = plan.model_dump()
        data["betrayer_name"] = self._name(plan.betrayer_id)
        data["target_name"] = self._name(plan.target_id)
        return data

    # =====================================================================
    #  Graph construction
    # =====================================================================
    def register_agent(self, name: str, power: float) -> StrategyResponse:
        def compute():
            node_id = self.network.add_node(name, power)
            node = self.network.get_node(node_id)
            data = {
                "id": node.id,
                "name": node.name,
                "power": node.power,
                "loyalty": node.loyalty,
                "influence_radius": node.influence_radius,
            }
            return data, f"Agent '{name}' registered as #{node_id} with power {power:.2f}."

        return self._run("register_agent", {"name": name, "power": power}, [], compute)

    def establish_relationship(
        self,
        source: int,
        target: int,
        relationship_type: Union[str, EdgeType],
        weight: float = 1.0,
    ) -> StrategyResponse:
        request_payload = {
            "source": source,
            "target": target,
            "relationship_type": str(getattr(relationship_type, "value", relationship_type)),
            "weight": weight,
        }

        def compute():
            edge_type = _parse_edge_type(relationship_type)
            self.network.add_edge(source, target, edge_type, weight)
            data = {
                "source": source,
                "target": target,
                "type": edge_type.value,
                "weight": weight,
                "source_allies": self.network.get_node(source).allies,
                "source_subordinates": self.network.get_node(source).subordinates,
            }
            explanation = (
                f"{edge_type.value} edge {self._name(source)} -> {self._name(target)} "
                f"established with weight {weight:.2f}."
            )
            return data, explanation

        return self._run("establish_relationship", request_payload, [source, target], compute)

    # =====================================================================
    #  Betrayal analysis and execution
    # =====================================================================
    def analyze_betrayal(self, betrayer: int, target: int) -> StrategyResponse:
        def compute():
            plan = self._strategy.analyze_betrayal_opportunity(betrayer, target)
            explanation = (
                f"{self._name(betrayer)} betraying {self._name(target)}: expected gain "
                f"{plan.expected_gain:.2f}, success {plan.success_probability:.0%}, cost "
                f"{plan.total_cost:.2f}, ROI {plan.roi:.2f}, "
                f"{len(plan.required_allies)} ally(ies) required."
            )
            return self._describe_plan(plan), explanation

        return self._run("analyze_betrayal", {"betrayer": betrayer, "target": target},
                         [betrayer, target], compute)

    def rank_betrayals(self, betrayer: int, top_n: int = 5) -> StrategyResponse:
        def compute():
            plans = self._strategy.find_optimal_betrayals(betrayer, top_n)
            data = {"plans": [self._describe_plan(p) for p in plans]}
            if plans:
                explanation = (
                    f"{len(plans)} viable betrayal(s) for {self._name(betrayer)}; best target "
                    f"{self._name(plans[0].target_id)} with ROI {plans[0].roi:.2f}."
                )
            else:
                explanation = f"No viable betrayal opportunities for {self._name(betrayer)}."
            return data, explanation

        return self._run("rank_betrayals", {"betrayer": betrayer, "top_n": top_n}, [betrayer], compute)

    def execute_betrayal(self, betrayer: int, target: int) -> StrategyResponse:
        def compute():
            betrayer_node = self.network.get_node(betrayer)
            target_node = self.network.get_node(target)
            before = {"betrayer_power": betrayer_node.power, "target_power": target_node.power}

            plan = self._strategy.analyze_betrayal_opportunity(betrayer, target)
            self._strategy.execute_betrayal(plan)

            data = {
                "plan": self._describe_plan(plan),
                "before": before,
                "after": {"betrayer_power": betrayer_node.power, "target_power": target_node.power},
                "betrayer_is_traitor": betrayer_node.is_traitor,
            }
            explanation = (
                f"{betrayer_node.name} betrayed {target_node.name}; power moved from "
                f"{before['betrayer_power']:.2f} to {betrayer_node.power:.2f} after the ripple."
            )
            return data, explanation

        return self._run("execute_betrayal", {"betrayer": betrayer, "target": target},
                         [betrayer, target], compute)

    # =====================================================================
    #  Network analytics
    # =====================================================================
    def network_overview(self, top_n: int = 3) -> StrategyResponse:
        def compute():
            agents = [
                {
                    "id": node_id,
                    "name": node.name,
                    "power": node.power,
                    "loyalty": node.loyalty,
                    "traitor": node.is_traitor,
                    "centrality": self.network.calculate_centrality(node_id),
                    "vulnerability": node.calculate_vulnerability(),
                    "control": self._strategy.calculate_network_control(node_id),
                }
                for node_id, node in self.network.get_all_nodes().items()
            ]
            data = {
                "total_power": self.network.calculate_total_network_power(),
                "agents": agents,
                "most_influential": self.network.find_most_influential_nodes(top_n),
                "vulnerable_targets": self.network.find_vulnerable_targets(),
                "coalitions": [c.model_dump() for c in self._advanced.detect_existing_coalitions()],
                "bridge_nodes": self._advanced.find_bridge_nodes(),
                "articulation_agents": self._advanced.find_articulation_agents(),
            }
            explanation = (
                f"{len(agents)} agent(s) holding {data['total_power']:.2f} total power; "
                f"{len(data['vulnerable_targets'])} vulnerable, "
                f"{len(data['coalitions'])} coalition(s) detected."
            )
            return data, explanation

        return self._run("network_overview", {"top_n": top_n}, [], compute)

    def critical_targets(self, player_id: int) -> StrategyResponse:
        def compute():
            targets = self._strategy.find_critical_targets_for_dominance(player_id)
            data = {
                "player_id": player_id,
                "network_control": self._strategy.calculate_network_control(player_id),
                "targets": [{"id": t, "name": self._name(t)} for t in targets],
            }
            names = ", ".join(self._name(t) for t in targets) or "none"
            return data, f"Critical targets for {self._name(player_id)}: {names}."

        return self._run("critical_targets", {"player_id": player_id}, [player_id], compute)

    # =====================================================================
    #  Coalitions and lookahead
    # =====================================================================
    def form_coalition(self, initiator: int, target_size: int) -> StrategyResponse:
        def compute():
            coalition = self._advanced.form_optimal_coalition(initiator, target_size)
            explanation = (
                f"Coalition led by {self._name(initiator)} with {len(coalition.members)} member(s), "
                f"combined power {coalition.combined_power:.2f}, cohesion {coalition.cohesion:.2f}."
            )
            return coalition.model_dump(), explanation

        return self._run("form_coalition", {"initiator": initiator, "target_size": target_size},
                         [initiator], compute)

    def plan_dominance_path(self, agent_id: int, horizon: int = 3) -> StrategyResponse:
        def compute():
            plan = self._advanced.plan_dominance_path(agent_id, horizon)
            data = plan.model_dump()
            data["sequence"] = [self._describe_plan(p) for p in plan.sequence]
            explanation = (
                f"{plan.required_turns}-step dominance path for {self._name(agent_id)} with "
                f"cumulative expected gain {plan.cumulative_gain:.2f}."
            )
            return data, explanation

        return self._run("plan_dominance_path", {"agent_id": agent_id, "horizon": horizon},
                         [agent_id], compute)

    # =====================================================================
    #  Utility: query audit log
    # =====================================================================
    def query_audit_log(
        self,
        operation: Optional[str] = None,
        since: Optional[datetime] = None,
        limit: int = 50,
    ) -> List[Dict[str, Any]]:
        entries = self._audit.query_log(operation=operation, since=since, limit=limit)
        return [
            {
                "id": e.id,
                "operation": e.operation,
                "algorithm_version": e.algorithm_version,
                "request_payload": json.loads(e.request_payload),
                "response_payload": json.loads(e.response_payload),
                "duration_ms": e.duration_ms,
                "caller_identity": e.caller_identity,
                "status": e.status,
                "error_detail": e.error_detail,
                "timestamp": e.timestamp.isoformat(),
            }
            for e in entries
        ]
