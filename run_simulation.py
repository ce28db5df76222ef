import logging

from engine.simulator import SimulationConfig, Simulator
from models.edge import EdgeType


def print_status(status):
    print(f"\n=== NETWORK STATUS (turn {status['turn']}) ===")
    print(f"Total Network Power: {status['total_power']:.2f}\n")
    print(f"{'Agent':<15}{'Power':<10}{'Loyalty':<10}{'Allies':<10}{'Centrality':<12}")
    print("-" * 60)
    for row in status["agents"]:
        print(
            f"{row['name']:<15}{row['power']:<10.2f}{row['loyalty']:<10.2f}"
            f"{row['allies']:<10}{row['centrality']:<12.2f}"
        )


def print_opportunities(sim, agent_id):
    name = sim.network.get_node(agent_id).name
    print(f"\n=== BETRAYAL OPPORTUNITIES FOR {name} ===\n")
    plans = sim.betrayal_opportunities(agent_id)
    if not plans:
        print("No viable betrayal opportunities at this time.")
        return
    for i, plan in enumerate(plans, start=1):
        print(f"{i}. Target: {sim.network.get_node(plan.target_id).name}")
        print(f"   Expected Gain: {plan.expected_gain:.2f}")
        print(f"   Success Rate: {plan.success_probability:.0%}")
        print(f"   ROI: {plan.roi:.2f}")
        print(f"   Required Allies: {len(plan.required_allies)}")
        print(f"   Total Cost: {plan.total_cost:.2f}\n")


def run_demo():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    sim = Simulator(SimulationConfig.from_env())

    alpha = sim.create_agent("Alpha", 15.0)
    beta = sim.create_agent("Beta", 12.0)
    gamma = sim.create_agent("Gamma", 10.0)
    delta = sim.create_agent("Delta", 8.0)
    epsilon = sim.create_agent("Epsilon", 7.0)
    zeta = sim.create_agent("Zeta", 6.0)

    sim.create_relationship(alpha, beta, EdgeType.ALLIANCE)
    sim.create_relationship(alpha, gamma, EdgeType.SUBORDINATION)
    sim.create_relationship(beta, delta, EdgeType.ALLIANCE)
    sim.create_relationship(gamma, epsilon, EdgeType.SUBORDINATION)
    sim.create_relationship(delta, zeta, EdgeType.ALLIANCE)
    sim.create_relationship(epsilon, zeta, EdgeType.NEUTRAL)
    sim.create_relationship(beta, gamma, EdgeType.CONFLICT)

    print("Initial network configuration established.")
    print("Agents: 6 | Relationships: 7")

    report = sim.run_simulation()
    for snapshot in report.snapshots:
        print_status(snapshot)

    print("\n========== FINAL ANALYSIS ==========")
    print("\nMost Influential Agents:")
    for i, entry in enumerate(report.final_analysis["most_influential"], start=1):
        print(f"{i}. {entry['name']} (Power: {entry['power']:.2f}, Control: {entry['control']:.2%})")
    print("\nMost Vulnerable Targets:")
    for i, entry in enumerate(report.final_analysis["most_vulnerable"], start=1):
        print(f"{i}. {entry['name']} (Vulnerability: {entry['vulnerability']:.3f})")

    print("\n========== STRATEGIC ANALYSIS ==========")
    print_opportunities(sim, alpha)
    print_opportunities(sim, beta)

    print("\n========== BETRAYAL PHASE ==========")
    for agent_id in (alpha, delta):
        plan = sim.execute_optimal_betrayal_for(agent_id)
        if plan is None:
            print("\n[NO VIABLE BETRAYAL OPPORTUNITIES]")
            continue
        print("\n[BETRAYAL EXECUTED]")
        print(f"  Betrayer: {sim.network.get_node(plan.betrayer_id).name}")
        print(f"  Target: {sim.network.get_node(plan.target_id).name}")
        print(f"  Expected Gain: {plan.expected_gain:.2f}")
        print(f"  Success Probability: {plan.success_probability:.0%}")
        print(f"  ROI: {plan.roi:.2f}")

    print_status(sim.network_status())


if __name__ == "__main__":
    run_demo()
