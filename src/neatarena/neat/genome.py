"""Genome encoding: neuron genes, connection genes and structural mutation.

Connection genes are keyed by innovation number. Innovation numbers come from
a :class:`GenomeCounters` shared by the whole population, so the same
``source -> target`` connection always gets the same number regardless of the
lineage that discovered it. That is what lets crossover and the distance
metric align genes between two genomes.
"""
from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Deque, Dict, List, Optional, Set, Tuple

from ..config import DistanceConfig, MutationConfig
from ..exceptions import ContractViolation
from ..sim.core.rng import DeterministicRng


class NeuronType(str, Enum):
    INPUT = "Input"
    HIDDEN = "Hidden"
    OUTPUT = "Output"


class Mutation(str, Enum):
    BIAS = "bias"
    NEW_BIAS = "new_bias"
    WEIGHT = "weight"
    NEW_WEIGHT = "new_weight"
    TOGGLE_CONNECTION = "toggle_connection"
    NEW_NEURON = "new_neuron"
    REMOVE_NEURON = "remove_neuron"
    NEW_CONNECTION = "new_connection"
    REMOVE_CONNECTION = "remove_connection"


@dataclass(slots=True)
class NeuronGene:
    id: int
    bias: float
    type: NeuronType


@dataclass(slots=True)
class ConnectionGene:
    source: int
    target: int
    weight: float
    innovation: int
    enabled: bool = True


class GenomeCounters:
    """Population-wide source of neuron ids and innovation numbers."""

    def __init__(self, start_neuron_id: int = 0, start_innovation: int = 0):
        self.neuron_counter = start_neuron_id
        self.innovation_counter = start_innovation
        self._innovations: Dict[Tuple[int, int], int] = {}
        self._lock = threading.Lock()

    def innovation(self, source: int, target: int) -> int:
        with self._lock:
            key = (source, target)
            number = self._innovations.get(key)
            if number is None:
                number = self.innovation_counter
                self._innovations[key] = number
                self.innovation_counter += 1
            return number

    def next_neuron_id(self) -> int:
        with self._lock:
            neuron_id = self.neuron_counter
            self.neuron_counter += 1
            return neuron_id


class Genome:
    def __init__(
        self,
        counters: GenomeCounters,
        inputs_number: int,
        outputs_number: int,
        *,
        initial_bias: float = 0.0,
        initial_weight: float = 1.0,
        feed_forward: bool = False,
    ):
        self.counters = counters
        self.inputs_number = inputs_number
        self.outputs_number = outputs_number
        self.initial_bias = initial_bias
        self.initial_weight = initial_weight
        self.neuron_genes: Dict[int, NeuronGene] = {}
        self.connection_genes: Dict[int, ConnectionGene] = {}
        for i in range(inputs_number):
            self.add_neuron_gene(i, initial_bias, NeuronType.INPUT)
        for i in range(outputs_number):
            self.add_neuron_gene(inputs_number + i, initial_bias, NeuronType.OUTPUT)
        if not feed_forward:
            return
        for i in range(inputs_number):
            for j in range(outputs_number):
                self.add_connection_gene(i, inputs_number + j, initial_weight)

    def add_neuron_gene(self, neuron_id: int, bias: float, neuron_type: NeuronType = NeuronType.HIDDEN) -> NeuronGene:
        gene = NeuronGene(neuron_id, bias, neuron_type)
        self.neuron_genes[neuron_id] = gene
        return gene

    def add_connection_gene(self, source: int, target: int, weight: float, enabled: bool = True) -> ConnectionGene:
        innovation = self.counters.innovation(source, target)
        gene = ConnectionGene(source, target, weight, innovation, enabled)
        self.connection_genes[innovation] = gene
        return gene

    def neurons_of(self, neuron_type: NeuronType) -> List[NeuronGene]:
        return [gene for gene in self.neuron_genes.values() if gene.type is neuron_type]

    def _empty_like(self) -> "Genome":
        return Genome(
            self.counters,
            self.inputs_number,
            self.outputs_number,
            initial_bias=self.initial_bias,
            initial_weight=self.initial_weight,
        )

    # ------------------------------------------------------------------
    # Recombination and compatibility
    # ------------------------------------------------------------------

    def crossover(self, recessive: "Genome", rng: DeterministicRng) -> "Genome":
        """Child genome with this genome's structure.

        Genes shared with `recessive` take their values from either parent at
        random; genes only this genome has are copied unchanged. Genes only
        `recessive` has are dropped.
        """
        child = self._empty_like()
        neuron_ids: Set[int] = set(self.neuron_genes)
        for connection in self.connection_genes.values():
            selected = connection
            other = recessive.connection_genes.get(connection.innovation)
            if other is not None and not rng.next_bool():
                selected = other
            neuron_ids.add(connection.source)
            neuron_ids.add(connection.target)
            child.connection_genes[connection.innovation] = ConnectionGene(
                connection.source,
                connection.target,
                selected.weight,
                connection.innovation,
                selected.enabled,
            )
        for neuron_id in sorted(neuron_ids):
            dominant = self.neuron_genes.get(neuron_id)
            other_neuron = recessive.neuron_genes.get(neuron_id)
            if dominant is not None and other_neuron is not None:
                selected_neuron = dominant if rng.next_bool() else other_neuron
            else:
                selected_neuron = dominant or other_neuron
            if selected_neuron is None:
                raise ContractViolation(f"Neuron {neuron_id} is referenced but defined in neither parent")
            child.add_neuron_gene(neuron_id, selected_neuron.bias, selected_neuron.type)
        return child

    def topological_distance(self, other: "Genome", coefficients: DistanceConfig) -> float:
        total = 0.0
        equal_connections = 0
        equal_neurons = 0
        for innovation, connection in self.connection_genes.items():
            match = other.connection_genes.get(innovation)
            if match is None:
                continue
            total += abs(connection.weight - match.weight)
            equal_connections += 1
        for neuron_id, neuron in self.neuron_genes.items():
            match_neuron = other.neuron_genes.get(neuron_id)
            if match_neuron is None:
                continue
            total += abs(neuron.bias - match_neuron.bias)
            equal_neurons += 1

        max_length = max(len(self.connection_genes), len(other.connection_genes)) + max(
            len(self.neuron_genes), len(other.neuron_genes)
        )
        if max_length == 0:
            return 0.0
        disjoint = (
            len(self.connection_genes)
            + len(other.connection_genes)
            - 2 * equal_connections
            + len(self.neuron_genes)
            + len(other.neuron_genes)
            - 2 * equal_neurons
        )
        shared = equal_connections + equal_neurons
        average = total / shared if shared else 0.0
        return coefficients.disjoint * disjoint / max_length + coefficients.average * average

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def mutate(self, rng: DeterministicRng, config: MutationConfig) -> List[Mutation]:
        """Roll every operator against its own chance; return the ones that changed the genome."""
        operators = {
            Mutation.BIAS: (config.bias_chance, lambda: self.mutate_bias(rng, config.bias_magnitude)),
            Mutation.NEW_BIAS: (config.new_bias_chance, lambda: self.mutate_new_bias(rng, config.new_bias_magnitude)),
            Mutation.WEIGHT: (config.weight_chance, lambda: self.mutate_weight(rng, config.weight_magnitude)),
            Mutation.NEW_WEIGHT: (
                config.new_weight_chance,
                lambda: self.mutate_new_weight(rng, config.new_weight_magnitude),
            ),
            Mutation.TOGGLE_CONNECTION: (config.toggle_connection_chance, lambda: self.mutate_toggle_connection(rng)),
            Mutation.NEW_NEURON: (config.new_neuron_chance, lambda: self.mutate_new_neuron(rng)),
            Mutation.REMOVE_NEURON: (config.remove_neuron_chance, lambda: self.mutate_remove_neuron(rng)),
            Mutation.NEW_CONNECTION: (config.new_connection_chance, lambda: self.mutate_new_connection(rng)),
            Mutation.REMOVE_CONNECTION: (config.remove_connection_chance, lambda: self.mutate_remove_connection(rng)),
        }
        applied: List[Mutation] = []
        for mutation in Mutation:
            chance, operator = operators[mutation]
            if rng.next_float() < chance and operator():
                applied.append(mutation)
        return applied

    def random_connection(self, rng: DeterministicRng) -> Optional[ConnectionGene]:
        return rng.sample_choice(list(self.connection_genes.values()))

    def random_neuron(self, rng: DeterministicRng) -> Optional[NeuronGene]:
        return rng.sample_choice(list(self.neuron_genes.values()))

    def mutate_weight(self, rng: DeterministicRng, magnitude: float) -> bool:
        connection = self.random_connection(rng)
        if connection is None:
            return False
        connection.weight += rng.next_range(-magnitude, magnitude)
        return True

    def mutate_new_weight(self, rng: DeterministicRng, magnitude: float) -> bool:
        connection = self.random_connection(rng)
        if connection is None:
            return False
        connection.weight = rng.next_range(-magnitude, magnitude)
        return True

    def mutate_bias(self, rng: DeterministicRng, magnitude: float) -> bool:
        neuron = self.random_neuron(rng)
        if neuron is None:
            return False
        neuron.bias += rng.next_range(-magnitude, magnitude)
        return True

    def mutate_new_bias(self, rng: DeterministicRng, magnitude: float) -> bool:
        neuron = self.random_neuron(rng)
        if neuron is None:
            return False
        neuron.bias = rng.next_range(-magnitude, magnitude)
        return True

    def check_for_cycle(self, source: int, target: int) -> bool:
        """True if adding ``source -> target`` would close a loop.

        Disabled connections count: they can be re-enabled later.
        """
        if source == target:
            return True
        graph: Dict[int, List[int]] = {neuron_id: [] for neuron_id in self.neuron_genes}
        for connection in self.connection_genes.values():
            graph.setdefault(connection.source, []).append(connection.target)
        queue: Deque[int] = deque([target])
        visited = {target}
        while queue:
            node = queue.popleft()
            for out in graph.get(node, ()):
                if out == source:
                    return True
                if out not in visited:
                    visited.add(out)
                    queue.append(out)
        return False

    def mutate_new_connection(self, rng: DeterministicRng) -> bool:
        hidden = self.neurons_of(NeuronType.HIDDEN)
        sources = self.neurons_of(NeuronType.INPUT) + hidden
        targets = self.neurons_of(NeuronType.OUTPUT) + hidden
        if not sources or not targets:
            return False
        source = sources[rng.next_int(len(sources))].id
        target = targets[rng.next_int(len(targets))].id
        if self.check_for_cycle(source, target):
            return False
        existing = self.connection_genes.get(self.counters.innovation(source, target))
        if existing is not None:
            if existing.enabled:
                return False
            existing.enabled = True
            return True
        self.add_connection_gene(source, target, self.initial_weight)
        return True

    def mutate_remove_connection(self, rng: DeterministicRng) -> bool:
        connection = self.random_connection(rng)
        if connection is None:
            return False
        del self.connection_genes[connection.innovation]
        return True

    def mutate_toggle_connection(self, rng: DeterministicRng) -> bool:
        connection = self.random_connection(rng)
        if connection is None:
            return False
        connection.enabled = not connection.enabled
        return True

    def mutate_new_neuron(self, rng: DeterministicRng) -> bool:
        """Split a connection in two; the only operator that adds neurons."""
        connection = self.random_connection(rng)
        if connection is None:
            return False
        neuron_id = self.counters.next_neuron_id()
        self.add_neuron_gene(neuron_id, self.initial_bias, NeuronType.HIDDEN)
        self.add_connection_gene(connection.source, neuron_id, self.initial_weight)
        self.add_connection_gene(neuron_id, connection.target, connection.weight)
        connection.enabled = False
        return True

    def mutate_remove_neuron(self, rng: DeterministicRng) -> bool:
        neuron = rng.sample_choice(self.neurons_of(NeuronType.HIDDEN))
        if neuron is None:
            return False
        for innovation, connection in list(self.connection_genes.items()):
            if connection.source == neuron.id or connection.target == neuron.id:
                del self.connection_genes[innovation]
        del self.neuron_genes[neuron.id]
        return True
