from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Protocol, Sequence

from ...exceptions import ConfigurationError
from ..utils.math2d import clamp_value
from .world import SimulationWorld

SensorReader = Callable[[SimulationWorld], float]
ActuatorWriter = Callable[[SimulationWorld, float, float], None]


class Sensor(Protocol):
    name: str

    def read(self) -> float: ...


class Actuator(Protocol):
    name: str

    def apply(self, value: float) -> None: ...


def _bot_sin(world: SimulationWorld) -> float:
    return math.sin(math.radians(world.bot.angle))


def _bot_cos(world: SimulationWorld) -> float:
    return math.cos(math.radians(world.bot.angle))


def _bearing_sin(world: SimulationWorld) -> float:
    return math.sin(math.radians(world.bearing()))


def _bearing_cos(world: SimulationWorld) -> float:
    return math.cos(math.radians(world.bearing()))


SENSOR_READERS: Dict[str, SensorReader] = {
    "bot_x": lambda world: world.bot.position.x,
    "bot_y": lambda world: world.bot.position.y,
    "bot_sin": _bot_sin,
    "bot_cos": _bot_cos,
    "bot_speed": lambda world: world.bot.speed,
    "bot_angular_speed": lambda world: world.bot.angular_speed,
    "ball_x": lambda world: world.ball.position.x,
    "ball_y": lambda world: world.ball.position.y,
    "ball_speed": lambda world: world.ball.speed(),
    "ball_direction": lambda world: world.ball.direction(),
    "distance": lambda world: world.distance(),
    "bearing_sin": _bearing_sin,
    "bearing_cos": _bearing_cos,
    "heading_error": lambda world: world.heading_error(),
}


def _rescale(value: float, capability: float, physics_frequency: float) -> float:
    """Map a [0, 1] network output onto [-max_delta, +max_delta] per physics step."""
    max_delta = capability / physics_frequency
    return -max_delta + clamp_value(value, 0.0, 1.0) * 2 * max_delta


def _write_speed(world: SimulationWorld, value: float, physics_frequency: float) -> None:
    world.bot.add_speed(_rescale(value, world.bot.max_speed, physics_frequency))


def _write_angular_speed(world: SimulationWorld, value: float, physics_frequency: float) -> None:
    world.bot.add_angular_speed(_rescale(value, world.bot.max_angular_speed, physics_frequency))


ACTUATOR_WRITERS: Dict[str, ActuatorWriter] = {
    "speed": _write_speed,
    "angular_speed": _write_angular_speed,
}


@dataclass(slots=True)
class SensorBinding:
    name: str
    world: SimulationWorld
    reader: SensorReader

    def read(self) -> float:
        return self.reader(self.world)


@dataclass(slots=True)
class ActuatorBinding:
    name: str
    world: SimulationWorld
    writer: ActuatorWriter
    physics_frequency: float

    def apply(self, value: float) -> None:
        self.writer(self.world, value, self.physics_frequency)


class SensorActuatorBridge:
    """Ordered sensors and actuators bound to one world.

    The order fixes the genome's input and output neuron ids, so the same
    names must be used for every agent of a population.
    """

    def __init__(
        self,
        world: SimulationWorld,
        sensors: Sequence[str],
        actuators: Sequence[str],
        physics_frequency: float,
    ):
        validate_interface(sensors, actuators)
        self.world = world
        self.sensors: List[Sensor] = [SensorBinding(name, world, SENSOR_READERS[name]) for name in sensors]
        self.actuators: List[Actuator] = [
            ActuatorBinding(name, world, ACTUATOR_WRITERS[name], physics_frequency) for name in actuators
        ]

    @property
    def names(self) -> List[str]:
        return [sensor.name for sensor in self.sensors] + [actuator.name for actuator in self.actuators]

    def read_all(self) -> List[float]:
        return [sensor.read() for sensor in self.sensors]


def validate_interface(sensors: Sequence[str], actuators: Sequence[str]) -> None:
    if not sensors:
        raise ConfigurationError("At least one sensor is required")
    if not actuators:
        raise ConfigurationError("At least one actuator is required")
    unknown = [name for name in sensors if name not in SENSOR_READERS]
    unknown += [name for name in actuators if name not in ACTUATOR_WRITERS]
    if unknown:
        raise ConfigurationError(f"Unknown sensor or actuator names: {', '.join(unknown)}")
