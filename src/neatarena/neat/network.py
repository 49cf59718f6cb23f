"""Executable form of a genome.

Nodes are evaluated in a fixed order computed once at compile time: a
post-order walk upstream from every output node, so a node is always
activated after everything that feeds it. Nodes that cannot reach an output
are never evaluated.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from ..config import NetworkConfig
from ..exceptions import ContractViolation
from ..sim.core.bridge import Actuator, Sensor
from .activations import ActivationFunction, resolve_activation
from .genome import Genome, NeuronType


@dataclass(slots=True)
class Node:
    neuron_id: int
    kind: NeuronType
    bias: float
    activation: ActivationFunction
    sensor: Optional[Sensor] = None
    actuator: Optional[Actuator] = None
    outputs: List[Tuple[float, "Node"]] = field(default_factory=list)
    value: float = 0.0


class CompiledNetwork:
    def __init__(
        self,
        genome: Genome,
        sensors: Sequence[Sensor],
        actuators: Sequence[Actuator],
        config: NetworkConfig,
    ):
        if len(sensors) != genome.inputs_number or len(actuators) != genome.outputs_number:
            raise ContractViolation(
                f"Genome expects {genome.inputs_number} inputs/{genome.outputs_number} outputs, "
                f"bridge provides {len(sensors)}/{len(actuators)}"
            )
        self.genome = genome
        self.sensors = list(sensors)
        self.actuators = list(actuators)
        self.nodes: Dict[int, Node] = {}
        self.order: List[int] = []

        activations = {
            NeuronType.INPUT: resolve_activation(config.input_activation),
            NeuronType.HIDDEN: resolve_activation(config.hidden_activation),
            NeuronType.OUTPUT: resolve_activation(config.output_activation),
        }
        upstream: Dict[int, List[int]] = {}
        output_ids: List[int] = []
        for gene in genome.neuron_genes.values():
            node = Node(gene.id, gene.type, gene.bias, activations[gene.type])
            if gene.type is NeuronType.INPUT:
                node.sensor = self.sensors[gene.id]
            elif gene.type is NeuronType.OUTPUT:
                node.actuator = self.actuators[gene.id - genome.inputs_number]
                output_ids.append(gene.id)
            self.nodes[gene.id] = node
            upstream[gene.id] = []

        for connection in genome.connection_genes.values():
            if not connection.enabled:
                continue
            if connection.source not in self.nodes or connection.target not in self.nodes:
                raise ContractViolation(
                    f"Connection {connection.innovation} references an undefined neuron "
                    f"({connection.source} -> {connection.target})"
                )
            upstream[connection.target].append(connection.source)
            self.nodes[connection.source].outputs.append((connection.weight, self.nodes[connection.target]))

        visited = set()

        def visit(neuron_id: int) -> None:
            for source in upstream[neuron_id]:
                if source not in visited:
                    visited.add(source)
                    visit(source)
            self.order.append(neuron_id)

        for neuron_id in output_ids:
            if neuron_id not in visited:
                visited.add(neuron_id)
                visit(neuron_id)

    def activate(self) -> None:
        """Sample sensors, propagate once through the graph and drive the actuators."""
        nodes = self.nodes
        for node in nodes.values():
            node.value = 0.0
        for neuron_id in self.order:
            node = nodes[neuron_id]
            if node.kind is NeuronType.INPUT:
                node.value = node.sensor.read()
            node.value = node.activation(node.value + node.bias)
            for weight, target in node.outputs:
                target.value += weight * node.value
            if node.kind is NeuronType.OUTPUT:
                node.actuator.apply(node.value)

    def activations(self) -> Dict[int, float]:
        return {neuron_id: node.value for neuron_id, node in self.nodes.items()}
