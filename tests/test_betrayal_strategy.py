import itertools

import pytest

from engine.betrayal_strategy import BetrayalStrategy
from engine.influence_network import InfluenceNetwork
from models.edge import EdgeType
from models.plans import BetrayalPlan


@pytest.fixture
def network():
    return InfluenceNetwork()


@pytest.fixture
def strategy(network):
    return BetrayalStrategy(network)


def test_expected_gain_example(network, strategy):
    betrayer = network.add_node("betrayer", 20.0)
    target = network.add_node("target", 10.0)

    plan = strategy.analyze_betrayal_opportunity(betrayer, target)

    assert plan.expected_gain == pytest.approx(3.0)
    # 20/11 * 0.5 + (1/11) * 0.3, no allies
    assert plan.success_probability == pytest.approx(20 / 11 * 0.5 + 0.3 / 11)
    assert plan.required_allies == []
    assert plan.total_cost == pytest.approx(2.0 + 5.0 * (1 - plan.success_probability))
    assert plan.roi == pytest.approx(plan.expected_gain / (plan.total_cost + 0.1))


def test_missing_agent_gives_zero_plan(network, strategy):
    a = network.add_node("a", 10.0)

    for betrayer, target in [(a, 99), (99, a), (98, 99)]:
        plan = strategy.analyze_betrayal_opportunity(betrayer, target)
        assert plan.betrayer_id == betrayer
        assert plan.target_id == target
        assert plan.expected_gain == 0
        assert plan.success_probability == 0
        assert plan.required_allies == []
        assert plan.roi == 0.0


def test_success_probability_is_clamped(network, strategy):
    giant = network.add_node("giant", 100.0)
    ant = network.add_node("ant", 1.0)
    weakling = network.add_node("weakling", 0.0)

    assert strategy.calculate_betrayal_success_probability(giant, ant) == pytest.approx(0.95)
    assert strategy.calculate_betrayal_success_probability(weakling, giant) == pytest.approx(0.05)
    assert strategy.calculate_betrayal_success_probability(giant, 404) == 0.0


def test_success_probability_bounds_over_many_pairs(network, strategy):
    powers = [-5.0, -1.0, 0.0, 0.5, 3.0, 7.0, 20.0, 150.0]
    ids = [network.add_node(f"n{i}", p) for i, p in enumerate(powers)]
    network.add_edge(ids[2], ids[3], EdgeType.ALLIANCE, 1.0)
    network.add_edge(ids[4], ids[5], EdgeType.ALLIANCE, 1.0)

    for betrayer, target in itertools.permutations(ids, 2):
        plan = strategy.analyze_betrayal_opportunity(betrayer, target)
        assert 0.05 <= plan.success_probability <= 0.95


def test_no_required_allies_when_betrayer_has_none(network, strategy):
    a = network.add_node("A", 5.0)
    b = network.add_node("B", 50.0)

    plan = strategy.analyze_betrayal_opportunity(a, b)
    assert plan.required_allies == []


def test_required_allies_take_first_two_strong_allies(network, strategy):
    a = network.add_node("A", 5.0)
    strong = network.add_node("strong", 10.0)
    weak = network.add_node("weak", 3.0)
    sturdy = network.add_node("sturdy", 8.0)
    extra = network.add_node("extra", 9.0)
    target = network.add_node("target", 50.0)

    for ally in (strong, weak, sturdy, extra):
        network.add_edge(a, ally, EdgeType.ALLIANCE, 1.0)

    plan = strategy.analyze_betrayal_opportunity(a, target)

    assert plan.required_allies == [strong, sturdy]
    assert plan.total_cost == pytest.approx(2.0 + 3.0 + 5.0 * (1 - plan.success_probability))


def test_required_allies_only_above_power_gap(network, strategy):
    a = network.add_node("A", 5.0)
    ally = network.add_node("ally", 10.0)
    target = network.add_node("target", 7.0)
    network.add_edge(a, ally, EdgeType.ALLIANCE, 1.0)

    assert strategy.identify_necessary_allies(a, target) == []


def test_find_optimal_betrayals_sorted_and_truncated(network, strategy):
    betrayer = network.add_node("betrayer", 20.0)
    for i, power in enumerate([10.0, 3.0, 25.0, 8.0, 0.0, 14.0]):
        network.add_node(f"t{i}", power)

    plans = strategy.find_optimal_betrayals(betrayer, 3)

    assert len(plans) <= 3
    rois = [p.roi for p in plans]
    assert rois == sorted(rois, reverse=True)
    for plan in plans:
        assert plan.target_id != betrayer
        assert plan.expected_gain > 0
        assert plan.success_probability > 0.3

    all_plans = strategy.find_optimal_betrayals(betrayer, 100)
    zero_power_target = 5
    assert zero_power_target not in [p.target_id for p in all_plans]


def test_find_optimal_betrayals_edge_cases(network, strategy):
    a = network.add_node("a", 20.0)
    network.add_node("b", 10.0)

    assert strategy.find_optimal_betrayals(a, 0) == []
    assert strategy.find_optimal_betrayals(404, 5) == []


def test_execute_betrayal_transfers_power_and_rewrites_edge(network, strategy):
    betrayer = network.add_node("betrayer", 20.0)
    target = network.add_node("target", 10.0)
    network.add_edge(betrayer, target, EdgeType.ALLIANCE, 1.0)
    network.add_edge(betrayer, target, EdgeType.NEUTRAL, 1.0)

    plan = strategy.analyze_betrayal_opportunity(betrayer, target)
    strategy.execute_betrayal(plan)

    betrayer_node = network.get_node(betrayer)
    target_node = network.get_node(target)

    # 6.0 stolen, then a 1.8 ripple lands on the betrayer only (CONFLICT stops it).
    assert betrayer_node.power == pytest.approx(20.0 + 6.0 + 1.8)
    assert target_node.power == pytest.approx(4.0)
    assert target_node.loyalty == pytest.approx(0.6)
    assert betrayer_node.is_traitor
    assert not target_node.is_traitor

    edges = network.get_edges_from(betrayer)
    assert [(e.target_id, e.type) for e in edges] == [(target, EdgeType.CONFLICT)]
    assert edges[0].weight == 1.0
    # Alliance membership survives the edge rewrite.
    assert target in betrayer_node.allies


def test_execute_betrayal_ripples_through_betrayer_edges(network, strategy):
    betrayer = network.add_node("betrayer", 20.0)
    target = network.add_node("target", 10.0)
    vassal = network.add_node("vassal", 1.0)
    network.add_edge(betrayer, vassal, EdgeType.SUBORDINATION, 1.0)

    strategy.execute_betrayal(strategy.analyze_betrayal_opportunity(betrayer, target))

    # ripple 1.8 * 1.2 * 0.5
    assert network.get_node(vassal).power == pytest.approx(1.0 + 1.08)


def test_execute_betrayal_costs_required_allies_loyalty(network, strategy):
    betrayer = network.add_node("betrayer", 5.0)
    ally = network.add_node("ally", 10.0)
    target = network.add_node("target", 50.0)
    network.add_edge(betrayer, ally, EdgeType.ALLIANCE, 1.0)

    plan = strategy.analyze_betrayal_opportunity(betrayer, target)
    assert plan.required_allies == [ally]

    strategy.execute_betrayal(plan)

    assert network.get_node(ally).loyalty == pytest.approx(0.8)
    assert network.get_node(target).power == pytest.approx(20.0)


def test_execute_betrayal_with_missing_agent_is_noop(network, strategy):
    a = network.add_node("a", 10.0)

    strategy.execute_betrayal(BetrayalPlan(betrayer_id=a, target_id=404))

    assert network.get_node(a).power == 10.0
    assert not network.get_node(a).is_traitor
    assert network.get_edges() == []


def test_network_control(network, strategy):
    a = network.add_node("a", 30.0)
    b = network.add_node("b", 10.0)
    network.add_edge(a, b, EdgeType.NEUTRAL, 1.0)

    # 30/40 * 0.6 + (30/100) * 0.4
    assert strategy.calculate_network_control(a) == pytest.approx(0.57)
    assert strategy.calculate_network_control(404) == 0.0


def test_network_control_with_zero_total_power(network, strategy):
    a = network.add_node("a", 0.0)
    network.add_node("b", 0.0)

    assert strategy.calculate_network_control(a) == 0.0


def test_critical_targets_for_dominance(network, strategy):
    player = network.add_node("player", 50.0)
    others = [network.add_node(f"n{i}", float(i)) for i in range(1, 8)]
    network.add_edge(others[0], others[1], EdgeType.NEUTRAL, 1.0)

    targets = strategy.find_critical_targets_for_dominance(player)

    assert len(targets) == 5
    assert player not in targets
    assert targets[0] == others[-1]


def test_negative_target_power_does_not_raise(network, strategy):
    betrayer = network.add_node("betrayer", 20.0)
    target = network.add_node("target", -1.0)

    plan = strategy.analyze_betrayal_opportunity(betrayer, target)

    assert plan.success_probability == pytest.approx(0.95)
    assert plan.expected_gain == pytest.approx(-0.3)
