import pytest
from pydantic import ValidationError

from engine.simulator import SimulationConfig, Simulator
from models.edge import EdgeType


class FixedRandom:
    """Always rolls the lowest value and picks the first candidate."""

    def randint(self, a, b):
        return a

    def choice(self, seq):
        return seq[0]


def _build(sim):
    alpha = sim.create_agent("Alpha", 15.0)
    beta = sim.create_agent("Beta", 12.0)
    gamma = sim.create_agent("Gamma", 10.0)
    sim.create_relationship(alpha, beta, EdgeType.ALLIANCE)
    sim.create_relationship(alpha, gamma, EdgeType.SUBORDINATION)
    return alpha, beta, gamma


def test_natural_growth_updates_power_loyalty_and_radius():
    sim = Simulator(SimulationConfig(max_turns=0))
    alpha, _, _ = _build(sim)

    sim.simulate_natural_growth()

    node = sim.network.get_node(alpha)
    assert node.power == pytest.approx(15.5)
    assert node.loyalty == pytest.approx(1.02)
    # 15.5 * 0.5 + 1 subordinate * 0.2
    assert node.influence_radius == pytest.approx(7.95)


def test_random_event_never_fires_with_zero_chance():
    sim = Simulator(SimulationConfig(event_chance=0, seed=1))
    _build(sim)

    assert all(sim.simulate_random_events() is None for _ in range(50))


def test_random_event_boosts_chosen_agent():
    sim = Simulator(SimulationConfig())
    alpha, _, _ = _build(sim)
    sim.rng = FixedRandom()

    assert sim.simulate_random_events() == alpha
    assert sim.network.get_node(alpha).power == pytest.approx(17.0)


def test_random_event_on_empty_network():
    sim = Simulator(SimulationConfig())
    sim.rng = FixedRandom()
    assert sim.simulate_random_events() is None


def test_run_simulation_snapshots_and_growth():
    sim = Simulator(SimulationConfig(max_turns=10, event_chance=0))
    alpha, beta, gamma = _build(sim)

    report = sim.run_simulation()

    assert report.turns_played == 10
    assert report.events == []
    assert [s["turn"] for s in report.snapshots] == [0, 5, 10]
    assert sim.network.get_node(beta).power == pytest.approx(17.0)
    assert report.snapshots[-1]["total_power"] == pytest.approx(37.0 + 15.0)

    influential = report.final_analysis["most_influential"]
    assert [entry["id"] for entry in influential] == [alpha, beta, gamma]


def test_seeded_runs_are_reproducible():
    reports = []
    for _ in range(2):
        sim = Simulator(SimulationConfig(max_turns=20, seed=1234))
        _build(sim)
        reports.append(sim.run_simulation())

    assert reports[0].model_dump() == reports[1].model_dump()


def test_execute_optimal_betrayal_for():
    sim = Simulator(SimulationConfig(max_turns=0))
    alpha, _, _ = _build(sim)

    opportunities = sim.betrayal_opportunities(alpha)
    plan = sim.execute_optimal_betrayal_for(alpha)

    assert plan is not None
    assert plan.target_id == opportunities[0].target_id
    assert sim.network.get_node(alpha).is_traitor


def test_execute_optimal_betrayal_without_targets():
    sim = Simulator(SimulationConfig(max_turns=0))
    loner = sim.create_agent("Loner", 10.0)

    assert sim.execute_optimal_betrayal_for(loner) is None
    assert not sim.network.get_node(loner).is_traitor


def test_config_from_env(monkeypatch):
    monkeypatch.setenv("INFLUENCE_SIM_MAX_TURNS", "7")
    monkeypatch.setenv("INFLUENCE_SIM_SEED", "99")
    monkeypatch.delenv("INFLUENCE_SIM_EVENT_CHANCE", raising=False)

    config = SimulationConfig.from_env()

    assert config.max_turns == 7
    assert config.seed == 99
    assert config.event_chance == 30


def test_config_rejects_invalid_values():
    with pytest.raises(ValidationError):
        SimulationConfig(max_turns=-1)
    with pytest.raises(ValidationError):
        SimulationConfig(status_interval=0)
