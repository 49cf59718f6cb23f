from __future__ import annotations

from typing import Dict, List

from ..config import DistanceConfig
from ..sim.core.rng import DeterministicRng
from .agent import Agent
from .genome import Genome


class Species:
    """Agents within compatibility distance of a representative genome.

    Members are borrowed from the population's agent arena and keyed by id.
    They are replaced wholesale on every speciation pass.
    """

    def __init__(self, species_id: int, representative: Agent):
        self.id = species_id
        self.members: Dict[int, Agent] = {}
        self.representative: Genome = representative.genome
        self.add_member(representative)

    def __len__(self) -> int:
        return len(self.members)

    def add_member(self, member: Agent) -> None:
        member.species_id = self.id
        self.members[member.id] = member

    def remove_member(self, member: Agent) -> None:
        member.species_id = None
        self.members.pop(member.id, None)

    def random_member(self, rng: DeterministicRng) -> Agent | None:
        return rng.sample_choice(list(self.members.values()))

    def reset(self, rng: DeterministicRng) -> bool:
        """Pick a new representative from the current members and clear them.

        Returns False when there is nobody left to represent the species.
        """
        member = self.random_member(rng)
        if member is None:
            return False
        self.representative = member.genome
        self.members = {}
        return True

    def check_distance(self, candidate: Agent, coefficients: DistanceConfig) -> float:
        return self.representative.topological_distance(candidate.genome, coefficients)

    def average_fitness(self) -> float:
        if not self.members:
            return 0.0
        return sum(member.fitness for member in self.members.values()) / len(self.members)

    def ranked_members(self) -> List[Agent]:
        return sorted(self.members.values(), key=lambda agent: agent.fitness, reverse=True)
