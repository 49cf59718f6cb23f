from __future__ import annotations

import pytest
from pytest import approx

from neatarena.config import DistanceConfig, MutationConfig
from neatarena.exceptions import ContractViolation
from neatarena.neat.genome import Genome, GenomeCounters, Mutation, NeuronType
from neatarena.sim.core.rng import DeterministicRng


def _genome(counters: GenomeCounters, feed_forward: bool = True, inputs: int = 2, outputs: int = 1) -> Genome:
    return Genome(counters, inputs, outputs, initial_bias=0.0, initial_weight=1.0, feed_forward=feed_forward)


def _is_acyclic(genome: Genome) -> bool:
    return all(not genome.check_for_cycle(c.source, c.target) for c in genome.connection_genes.values())


def test_feed_forward_initialization():
    genome = _genome(GenomeCounters(3))
    assert [n.id for n in genome.neurons_of(NeuronType.INPUT)] == [0, 1]
    assert [n.id for n in genome.neurons_of(NeuronType.OUTPUT)] == [2]
    assert {(c.source, c.target) for c in genome.connection_genes.values()} == {(0, 2), (1, 2)}
    assert not genome.neurons_of(NeuronType.HIDDEN)


def test_innovation_numbers_are_shared_across_genomes():
    counters = GenomeCounters(3)
    first = _genome(counters, feed_forward=False)
    second = _genome(counters, feed_forward=False)
    a = first.add_connection_gene(1, 2, 0.5)
    b = second.add_connection_gene(0, 2, 0.5)
    c = second.add_connection_gene(1, 2, -3.0)
    assert a.innovation == c.innovation
    assert a.innovation != b.innovation


def test_new_neuron_splits_connection():
    counters = GenomeCounters(3)
    genome = _genome(counters, inputs=1)
    original = next(iter(genome.connection_genes.values()))
    original.weight = 0.7
    assert genome.mutate_new_neuron(DeterministicRng(0))
    hidden = genome.neurons_of(NeuronType.HIDDEN)
    assert [n.id for n in hidden] == [3]
    assert not original.enabled
    into = genome.connection_genes[counters.innovation(original.source, 3)]
    out = genome.connection_genes[counters.innovation(3, original.target)]
    assert into.weight == approx(1.0)
    assert out.weight == approx(0.7)


def test_cycle_check_covers_paths():
    counters = GenomeCounters(2)
    genome = _genome(counters, feed_forward=False, inputs=1)
    genome.add_neuron_gene(5, 0.0)
    genome.add_neuron_gene(6, 0.0)
    genome.add_connection_gene(0, 5, 1.0)
    genome.add_connection_gene(5, 6, 1.0)
    genome.add_connection_gene(6, 1, 1.0, enabled=False)
    assert genome.check_for_cycle(5, 5)
    assert genome.check_for_cycle(6, 5)
    assert genome.check_for_cycle(1, 5)
    assert not genome.check_for_cycle(5, 1)


def test_new_connection_reenables_disabled_duplicate():
    genome = _genome(GenomeCounters(2), inputs=1)
    connection = next(iter(genome.connection_genes.values()))
    connection.enabled = False
    rng = DeterministicRng(1)
    assert genome.mutate_new_connection(rng)
    assert connection.enabled
    assert len(genome.connection_genes) == 1
    assert not genome.mutate_new_connection(rng)


def test_remove_neuron_only_removes_hidden():
    genome = _genome(GenomeCounters(3))
    rng = DeterministicRng(2)
    assert not genome.mutate_remove_neuron(rng)
    assert genome.mutate_new_neuron(rng)
    hidden_id = genome.neurons_of(NeuronType.HIDDEN)[0].id
    assert genome.mutate_remove_neuron(rng)
    assert hidden_id not in genome.neuron_genes
    assert len(genome.neuron_genes) == 3
    for connection in genome.connection_genes.values():
        assert hidden_id not in (connection.source, connection.target)


def test_operators_on_empty_genome_do_nothing():
    genome = _genome(GenomeCounters(3), feed_forward=False)
    rng = DeterministicRng(3)
    assert not genome.mutate_weight(rng, 1.0)
    assert not genome.mutate_toggle_connection(rng)
    assert not genome.mutate_remove_connection(rng)
    assert not genome.mutate_new_neuron(rng)


def test_mutation_keeps_genome_acyclic():
    counters = GenomeCounters(5)
    genome = _genome(counters, inputs=3, outputs=2)
    config = MutationConfig(
        new_connection_chance=0.9,
        new_neuron_chance=0.5,
        toggle_connection_chance=0.2,
        remove_connection_chance=0.05,
        remove_neuron_chance=0.05,
    )
    rng = DeterministicRng(4)
    seen = set()
    for _ in range(300):
        seen.update(genome.mutate(rng, config))
        assert _is_acyclic(genome)
        for connection in genome.connection_genes.values():
            assert connection.source in genome.neuron_genes
            assert connection.target in genome.neuron_genes
            assert genome.neuron_genes[connection.target].type is not NeuronType.INPUT
    assert Mutation.NEW_NEURON in seen
    assert Mutation.NEW_CONNECTION in seen


def test_self_crossover_keeps_structure():
    counters = GenomeCounters(3)
    genome = _genome(counters)
    rng = DeterministicRng(5)
    genome.mutate_new_neuron(rng)
    genome.mutate_new_neuron(rng)
    child = genome.crossover(genome, rng)
    assert set(child.neuron_genes) == set(genome.neuron_genes)
    assert set(child.connection_genes) == set(genome.connection_genes)
    for innovation, connection in genome.connection_genes.items():
        copied = child.connection_genes[innovation]
        assert copied is not connection
        assert copied.weight == connection.weight
        assert copied.enabled == connection.enabled


def test_crossover_keeps_only_dominant_disjoint_genes():
    counters = GenomeCounters(3)
    dominant = _genome(counters)
    recessive = _genome(counters)
    dominant.mutate_new_neuron(DeterministicRng(6))
    rng = DeterministicRng(7)
    child = dominant.crossover(recessive, rng)
    assert set(child.connection_genes) == set(dominant.connection_genes)
    reverse = recessive.crossover(dominant, rng)
    assert set(reverse.connection_genes) == set(recessive.connection_genes)
    assert set(reverse.neuron_genes) == set(recessive.neuron_genes)


def test_crossover_rejects_undefined_neuron():
    counters = GenomeCounters(3)
    dominant = _genome(counters, feed_forward=False)
    dominant.add_connection_gene(0, 9, 1.0)
    with pytest.raises(ContractViolation):
        dominant.crossover(_genome(counters, feed_forward=False), DeterministicRng(8))


def test_topological_distance():
    counters = GenomeCounters(3)
    coefficients = DistanceConfig(disjoint=1.0, average=0.4)
    first = _genome(counters)
    second = _genome(counters)
    assert first.topological_distance(second, coefficients) == approx(0.0)

    next(iter(second.connection_genes.values())).weight = 3.0
    # Five shared genes with a total difference of 2.
    assert first.topological_distance(second, coefficients) == approx(0.4 * 2.0 / 5)

    third = _genome(counters)
    third.mutate_new_neuron(DeterministicRng(9))
    # One extra neuron and two extra connections over four plus four genes.
    assert first.topological_distance(third, coefficients) == approx(3 / 8)
    assert third.topological_distance(first, coefficients) == approx(3 / 8)
