from __future__ import annotations

from typing import List, Optional

from ..config import SimulationConfig
from ..sim.core.bridge import SensorActuatorBridge
from ..sim.core.rng import DeterministicRng
from ..sim.core.world import SimulationWorld
from ..sim.types.snapshot import AgentObservation
from .genome import Genome, Mutation
from .network import CompiledNetwork


class Agent:
    """One genome, the network compiled from it and the world it is scored in."""

    def __init__(self, agent_id: int, genome: Genome, world: SimulationWorld, config: SimulationConfig):
        self.id = agent_id
        self.genome = genome
        self.world = world
        self.fitness = 0.0
        self.adjusted_fitness = 0.0
        self.species_id: Optional[int] = None
        self._config = config
        self.bridge = SensorActuatorBridge(
            world,
            config.network.sensors,
            config.network.actuators,
            config.physics_frequency,
        )
        self.network = self._compile()

    def _compile(self) -> CompiledNetwork:
        return CompiledNetwork(self.genome, self.bridge.sensors, self.bridge.actuators, self._config.network)

    def think(self) -> None:
        self.network.activate()

    def crossover(self, recessive: "Agent", rng: DeterministicRng) -> Genome:
        return self.genome.crossover(recessive.genome, rng)

    def mutate(self, rng: DeterministicRng) -> List[Mutation]:
        applied = self.genome.mutate(rng, self._config.evolution.mutation)
        self.network = self._compile()
        return applied

    def observe(self) -> AgentObservation:
        return AgentObservation(
            agent_id=self.id,
            species_id=self.species_id,
            fitness=self.fitness,
            world=self.world.snapshot(),
            activations=self.network.activations(),
        )

    def __repr__(self) -> str:
        return f"Agent(id={self.id}, fitness={self.fitness:.4f}, species={self.species_id})"
