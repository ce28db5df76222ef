from typing import List

from pydantic import BaseModel, Field, computed_field


class BetrayalPlan(BaseModel):
    """
    Scored, costed proposal for one agent to seize power from another.
    Produced by analysis and consumed once by execution.
    """

    betrayer_id: int
    target_id: int
    expected_gain: float = 0.0
    success_probability: float = 0.0
    required_allies: List[int] = Field(default_factory=list)
    total_cost: float = 0.0

    @computed_field
    @property
    def roi(self) -> float:
        return self.expected_gain / (self.total_cost + 0.1)


class Coalition(BaseModel):
    members: List[int] = Field(default_factory=list)
    combined_power: float = 0.0
    leader_id: int
    cohesion: float = 0.0


class MultiStepPlan(BaseModel):
    """Ordered betrayal sequence simulated on a copy of the network."""

    sequence: List[BetrayalPlan] = Field(default_factory=list)
    cumulative_gain: float = 0.0
    required_turns: int = 0
