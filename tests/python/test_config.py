from __future__ import annotations

from pathlib import Path

import pytest
from pytest import approx

from neatarena.config import DEFAULT_SENSORS, SimulationConfig, load_config


def test_defaults():
    config = SimulationConfig()
    assert config.time_step == approx(1.0 / 60.0)
    assert config.network.sensors == DEFAULT_SENSORS
    assert config.network.actuators == ("speed", "angular_speed")
    assert config.fitness.delta_positive_scale == approx(5.0)
    assert config.evolution.population_size == 50


def test_from_yaml_overrides_nested_sections(tmp_path: Path):
    path = tmp_path / "arena.yaml"
    path.write_text(
        "\n".join(
            [
                "width: 400",
                "physics_frequency: 30",
                "facing_offset: 15",
                "bot:",
                "  max_speed: 50",
                "network:",
                "  sensors: [distance, heading_error]",
                "  hidden_activation: tanh",
                "evolution:",
                "  population_size: 12",
                "  distance:",
                "    disjoint: 2.0",
                "  mutation:",
                "    new_neuron_chance: 0.5",
                "fitness:",
                "  heading_weight: 1.0",
            ]
        )
    )
    config = SimulationConfig.from_yaml(path)
    assert config.width == 400
    assert config.height == approx(600.0)
    assert config.time_step == approx(1.0 / 30.0)
    assert config.facing_offset == 15
    assert config.bot.max_speed == 50
    assert config.bot.radius == approx(10.0)
    assert config.network.sensors == ("distance", "heading_error")
    assert config.network.hidden_activation == "tanh"
    assert config.evolution.population_size == 12
    assert config.evolution.distance.disjoint == approx(2.0)
    assert config.evolution.distance.average == approx(0.4)
    assert config.evolution.mutation.new_neuron_chance == approx(0.5)
    assert config.fitness.heading_weight == approx(1.0)


def test_empty_yaml_gives_defaults(tmp_path: Path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert SimulationConfig.from_yaml(path) == SimulationConfig()


def test_unknown_keys_are_rejected():
    with pytest.raises(TypeError):
        load_config({"bot": {"wings": 2}})
