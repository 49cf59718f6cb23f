from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

import yaml

DEFAULT_SENSORS: Tuple[str, ...] = (
    "bot_sin",
    "bot_cos",
    "bot_speed",
    "bot_angular_speed",
    "distance",
    "bearing_sin",
    "bearing_cos",
)
DEFAULT_ACTUATORS: Tuple[str, ...] = ("speed", "angular_speed")


@dataclass(frozen=True)
class BotConfig:
    max_speed: float = 100.0
    max_angular_speed: float = 180.0
    radius: float = 10.0


@dataclass(frozen=True)
class BallConfig:
    radius: float = 5.0
    min_speed: float = 50.0
    max_speed: float = 100.0
    should_move: bool = False


@dataclass(frozen=True)
class NetworkConfig:
    initial_bias: float = 0.0
    initial_weight: float = 1.0
    start_feed_forward: bool = True
    input_activation: str = "sigmoid"
    hidden_activation: str = "sigmoid"
    output_activation: str = "sigmoid"
    sensors: Tuple[str, ...] = DEFAULT_SENSORS
    actuators: Tuple[str, ...] = DEFAULT_ACTUATORS


@dataclass(frozen=True)
class DistanceConfig:
    disjoint: float = 1.0
    average: float = 0.4


@dataclass(frozen=True)
class MutationConfig:
    bias_chance: float = 0.3
    new_bias_chance: float = 0.05
    weight_chance: float = 0.6
    new_weight_chance: float = 0.05
    toggle_connection_chance: float = 0.02
    new_connection_chance: float = 0.1
    remove_connection_chance: float = 0.02
    new_neuron_chance: float = 0.03
    remove_neuron_chance: float = 0.01
    bias_magnitude: float = 0.5
    new_bias_magnitude: float = 2.0
    weight_magnitude: float = 0.5
    new_weight_magnitude: float = 2.0


@dataclass(frozen=True)
class EvolutionConfig:
    population_size: int = 50
    survival_rate: float = 0.5
    species_threshold: float = 0.6
    distance: DistanceConfig = field(default_factory=DistanceConfig)
    mutation: MutationConfig = field(default_factory=MutationConfig)


@dataclass(frozen=True)
class FitnessConfig:
    # Penalizes drifting away from the ball more than approaching it is rewarded.
    delta_positive_scale: float = 5.0
    delta_weight: float = 1.0
    traveled_weight: float = 0.0
    rotation_weight: float = 0.0
    heading_weight: float = 0.0


@dataclass(frozen=True)
class SimulationConfig:
    width: float = 800.0
    height: float = 600.0
    physics_frequency: float = 60.0
    simulated_seconds: float = 1.0
    total_time: float = 30.0
    runs: int = 3
    facing_offset: Optional[float] = None
    seed: int = 42
    evaluation_workers: int = 1
    bot: BotConfig = field(default_factory=BotConfig)
    ball: BallConfig = field(default_factory=BallConfig)
    network: NetworkConfig = field(default_factory=NetworkConfig)
    evolution: EvolutionConfig = field(default_factory=EvolutionConfig)
    fitness: FitnessConfig = field(default_factory=FitnessConfig)

    @property
    def time_step(self) -> float:
        return self.simulated_seconds / self.physics_frequency

    @staticmethod
    def from_yaml(path: Path) -> "SimulationConfig":
        data = yaml.safe_load(Path(path).read_text()) or {}
        return load_config(data)


def load_config(raw: dict) -> SimulationConfig:
    network_raw = dict(raw.get("network", {}))
    for key in ("sensors", "actuators"):
        if key in network_raw:
            network_raw[key] = tuple(network_raw[key])
    network = NetworkConfig(**network_raw)

    evolution_raw = raw.get("evolution", {})
    evolution = EvolutionConfig(
        distance=DistanceConfig(**evolution_raw.get("distance", {})),
        mutation=MutationConfig(**evolution_raw.get("mutation", {})),
        **{k: v for k, v in evolution_raw.items() if k not in {"distance", "mutation"}},
    )
    sim_values = {k: v for k, v in raw.items() if k not in {"bot", "ball", "network", "evolution", "fitness"}}
    return SimulationConfig(
        bot=BotConfig(**raw.get("bot", {})),
        ball=BallConfig(**raw.get("ball", {})),
        network=network,
        evolution=evolution,
        fitness=FitnessConfig(**raw.get("fitness", {})),
        **sim_values,
    )
