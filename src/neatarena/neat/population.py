"""Generational loop.

One generation is ``Select -> Reproduce -> Mutate -> Speciate -> Evaluate``;
the very first generation starts at ``Mutate``. Each call to
:meth:`Population.advance` runs exactly one phase so an external scheduler can
interleave its own work between phases. Only ``Evaluate`` may fan out to
worker threads, and it joins before returning.
"""
from __future__ import annotations

import math
from concurrent.futures import ThreadPoolExecutor, as_completed
from enum import Enum
from itertools import cycle, islice
from time import perf_counter
from typing import Callable, Dict, List, Optional

from loguru import logger

from ..config import SimulationConfig
from ..exceptions import ConfigurationError, ContractViolation, TrainingInProgressError
from ..sim.core.bridge import validate_interface
from ..sim.core.rng import DeterministicRng
from ..sim.core.world import SimulationWorld
from ..sim.systems.autopilot import autopilot
from ..sim.systems.trial import Trial
from ..sim.types.metrics import GenerationMetrics
from ..sim.types.snapshot import AgentObservation
from .agent import Agent
from .genome import Genome, GenomeCounters
from .species import Species

_WORLD_RNG_SALT = 0x5EED0F3A11D0B07A

ProgressCallback = Callable[[int, int], None]


class Phase(str, Enum):
    SELECT = "Select"
    REPRODUCE = "Reproduce"
    MUTATE = "Mutate"
    SPECIATE = "Speciate"
    EVALUATE = "Evaluate"


_NEXT_PHASE = {
    Phase.SELECT: Phase.REPRODUCE,
    Phase.REPRODUCE: Phase.MUTATE,
    Phase.MUTATE: Phase.SPECIATE,
    Phase.SPECIATE: Phase.EVALUATE,
    Phase.EVALUATE: Phase.SELECT,
}


class Population:
    def __init__(self, config: SimulationConfig, on_progress: Optional[ProgressCallback] = None):
        evolution = config.evolution
        if evolution.population_size < 1:
            raise ConfigurationError("population_size must be at least 1")
        if not 0.0 < evolution.survival_rate <= 1.0:
            raise ConfigurationError("survival_rate must be in (0, 1]")
        validate_interface(config.network.sensors, config.network.actuators)

        self._config = config
        self._rng = DeterministicRng(config.seed)
        self.on_progress = on_progress
        self.inputs_number = len(config.network.sensors)
        self.outputs_number = len(config.network.actuators)
        self.counters = GenomeCounters(self.inputs_number + self.outputs_number, 0)
        self.trial = Trial(config)
        self.agents: Dict[int, Agent] = {}
        self.species: Dict[int, Species] = {}
        self.generation = 0
        self.phase = Phase.MUTATE
        self.progress = 0
        self.average_fitness = 0.0
        self.best_fitness = 0.0
        self.metrics: Optional[GenerationMetrics] = None
        self._next_agent_id = 0
        self._next_species_id = 0
        self._in_generation = False
        self._generation_started = 0.0

        network = config.network
        founders: Optional[Species] = None
        for _ in range(evolution.population_size):
            genome = Genome(
                self.counters,
                self.inputs_number,
                self.outputs_number,
                initial_bias=network.initial_bias,
                initial_weight=network.initial_weight,
                feed_forward=network.start_feed_forward,
            )
            agent = self._spawn_agent(genome)
            if founders is None:
                founders = self._found_species(agent)
            else:
                founders.add_member(agent)
        logger.debug(
            f"[Population] Initialized {len(self.agents)} agents "
            f"({self.inputs_number} inputs, {self.outputs_number} outputs)"
        )

    @property
    def config(self) -> SimulationConfig:
        return self._config

    @property
    def in_generation(self) -> bool:
        return self._in_generation

    def _spawn_agent(self, genome: Genome) -> Agent:
        agent_id = self._next_agent_id
        self._next_agent_id += 1
        world = SimulationWorld(self._config, self._rng.spawn(_WORLD_RNG_SALT))
        agent = Agent(agent_id, genome, world, self._config)
        self.agents[agent_id] = agent
        return agent

    def _found_species(self, representative: Agent) -> Species:
        species = Species(self._next_species_id, representative)
        self._next_species_id += 1
        self.species[species.id] = species
        return species

    def _species_of(self, agent: Agent) -> Optional[Species]:
        if agent.species_id is None:
            return None
        species = self.species.get(agent.species_id)
        if species is None:
            raise ContractViolation(f"Agent {agent.id} belongs to missing species {agent.species_id}")
        return species

    def remove_agent(self, agent: Agent) -> None:
        self.agents.pop(agent.id, None)
        species = self._species_of(agent)
        if species is not None:
            species.remove_member(agent)

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    def advance(self) -> Phase:
        """Run the current phase and move to the next one."""
        phase = self.phase
        if not self._in_generation:
            self.generation += 1
            self._in_generation = True
            self._generation_started = perf_counter()
        logger.debug(f"[Population] Generation {self.generation}: {phase.value}")
        handlers = {
            Phase.SELECT: self.select,
            Phase.REPRODUCE: self.reproduce,
            Phase.MUTATE: self.mutate,
            Phase.SPECIATE: self.speciate,
            Phase.EVALUATE: self.evaluate,
        }
        handlers[phase]()
        self.phase = _NEXT_PHASE[phase]
        if phase is Phase.EVALUATE:
            self._finish_generation()
        return phase

    def run_generation(self) -> GenerationMetrics:
        while self.advance() is not Phase.EVALUATE:
            pass
        if self.metrics is None:
            raise ContractViolation(f"Generation {self.generation} finished without metrics")
        return self.metrics

    def _finish_generation(self) -> None:
        self._in_generation = False
        fitnesses = [agent.fitness for agent in self.agents.values()]
        self.average_fitness = sum(fitnesses) / len(fitnesses) if fitnesses else 0.0
        self.best_fitness = max(fitnesses, default=0.0)
        self.metrics = GenerationMetrics(
            generation=self.generation,
            species=len(self.species),
            agents=len(self.agents),
            average_fitness=self.average_fitness,
            best_fitness=self.best_fitness,
            duration_ms=(perf_counter() - self._generation_started) * 1000.0,
        )
        logger.info(
            f"[Population] Generation {self.generation} done: species={len(self.species)} "
            f"avg_fitness={self.average_fitness:.4f} best_fitness={self.best_fitness:.4f}"
        )

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    def select(self) -> None:
        for agent in self.agents.values():
            species = self._species_of(agent)
            size = len(species) if species is not None else 1
            agent.adjusted_fitness = agent.fitness / size
        ranked = sorted(self.agents.values(), key=lambda agent: agent.adjusted_fitness)
        dropped = int(len(ranked) * (1.0 - self._config.evolution.survival_rate))
        dropped = min(dropped, len(ranked) - 1)
        for agent in ranked[:dropped]:
            self.remove_agent(agent)
        for species_id, species in list(self.species.items()):
            if len(species) == 0:
                del self.species[species_id]
                logger.debug(f"[Population] Species {species_id} went extinct")

    def reproduce(self) -> None:
        size = self._config.evolution.population_size
        averages = {species_id: species.average_fitness() for species_id, species in self.species.items()}
        total = sum(averages.values())
        genomes: List[Genome] = []
        while len(genomes) < size:
            for species_id, species in self.species.items():
                if len(genomes) >= size:
                    break
                share = averages[species_id] / total if total > 0 else 1.0 / len(self.species)
                quota = math.ceil(share * size)
                ranked = species.ranked_members()
                pairs = [(a, b) for i, a in enumerate(ranked) for b in ranked[i + 1 :]]
                # A lone survivor is crossed with itself.
                pairs = pairs or [(ranked[0], ranked[0])]
                for dominant, recessive in islice(cycle(pairs), quota):
                    if len(genomes) >= size:
                        break
                    genomes.append(dominant.crossover(recessive, self._rng))
        logger.debug(f"[Population] Reproduced {len(genomes)} genomes from {len(self.species)} species")
        # Species keep their (now retired) members until the next speciation pass.
        self.agents = {}
        for genome in genomes:
            self._spawn_agent(genome)

    def mutate(self) -> None:
        for agent in self.agents.values():
            agent.mutate(self._rng)

    def speciate(self) -> None:
        coefficients = self._config.evolution.distance
        threshold = self._config.evolution.species_threshold
        for species_id, species in list(self.species.items()):
            if not species.reset(self._rng):
                del self.species[species_id]
                logger.debug(f"[Population] Species {species_id} disbanded")
        for agent in self.agents.values():
            for species in self.species.values():
                if species.check_distance(agent, coefficients) < threshold:
                    species.add_member(agent)
                    break
            else:
                species = self._found_species(agent)
                logger.debug(f"[Population] Species {species.id} founded by agent {agent.id}")
        for species_id, species in list(self.species.items()):
            if len(species) == 0:
                del self.species[species_id]
                logger.debug(f"[Population] Species {species_id} matched no agent")

    def evaluate(self) -> None:
        self.progress = 0
        agents = list(self.agents.values())
        workers = max(1, self._config.evaluation_workers)
        if workers == 1:
            for agent in agents:
                self.trial.evaluate(agent)
                self._report_progress(len(agents))
            return
        logger.debug(f"[Population] Evaluating {len(agents)} agents on {workers} workers")
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="neatarena-trial") as executor:
            futures = [executor.submit(self.trial.evaluate, agent) for agent in agents]
            for future in as_completed(futures):
                future.result()
                self._report_progress(len(agents))

    def _report_progress(self, total: int) -> None:
        self.progress += 1
        if self.on_progress is not None:
            self.on_progress(self.progress, total)

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def best_agent(self) -> Agent:
        return max(self.agents.values(), key=lambda agent: agent.fitness)

    def observe(self, agent_id: int) -> AgentObservation:
        return self.agents[agent_id].observe()

    def live_session(self, agent_id: Optional[int] = None) -> "LiveSession":
        if self._in_generation:
            raise TrainingInProgressError("Cannot open a live session while a generation is running")
        agent = self.best_agent() if agent_id is None else self.agents[agent_id]
        return LiveSession(agent, self._config)


class LiveSession:
    """Steps one agent's world outside the generational loop."""

    def __init__(self, agent: Agent, config: SimulationConfig):
        self.agent = agent
        self.time_step = config.time_step
        self.physics_frequency = config.physics_frequency
        agent.world.reset()

    def step(self, use_autopilot: bool = False) -> AgentObservation:
        if use_autopilot:
            autopilot(self.agent.world, self.physics_frequency)
        else:
            self.agent.think()
        self.agent.world.update(self.time_step)
        return self.agent.observe()

    def run(self, steps: int, use_autopilot: bool = False) -> AgentObservation:
        observation = self.step(use_autopilot)
        for _ in range(steps - 1):
            observation = self.step(use_autopilot)
        return observation

    def reset(self) -> None:
        self.agent.world.reset()
