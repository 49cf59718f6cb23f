from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ...config import SimulationConfig
from ...exceptions import ConfigurationError
from ..core.world import SimulationWorld
from ..types.metrics import TrialResult

if TYPE_CHECKING:
    from ...neat.agent import Agent

# Sums of per-step floats can land a few ulps past the theoretical maximum.
_RATIO_TOLERANCE = 1e-9


def _ratio(value: float, maximum: float) -> float:
    if maximum <= 0:
        return 0.0
    ratio = value / maximum
    if 1.0 < ratio <= 1.0 + _RATIO_TOLERANCE:
        return 1.0
    return ratio


@dataclass(slots=True)
class EpisodeMetrics:
    delta: float
    traveled: float
    rotation: float
    heading_error: float


class Trial:
    """Scores an agent over several fixed-length episodes of its own world."""

    def __init__(self, config: SimulationConfig):
        self._config = config
        self.time_step = config.time_step
        self.runs = config.runs
        self.steps_per_episode = max(1, math.ceil(round(config.total_time / self.time_step, 9)))
        weights = config.fitness
        self._weight_total = (
            weights.delta_weight + weights.traveled_weight + weights.rotation_weight + weights.heading_weight
        )
        if self._weight_total <= 0:
            raise ConfigurationError("At least one fitness weight must be positive")

    def run_episode(self, agent: "Agent") -> EpisodeMetrics:
        world = agent.world
        world.reset()
        for _ in range(self.steps_per_episode):
            agent.think()
            world.update(self.time_step)
        return self.measure(world)

    def measure(self, world: SimulationWorld) -> EpisodeMetrics:
        config = self._config
        closing_speed = config.bot.max_speed + (config.ball.max_speed if config.ball.should_move else 0.0)
        step_capability = closing_speed * self.time_step
        positive = _ratio(world.delta_positive / world.delta_positive_count, step_capability)
        negative = _ratio(world.delta_negative / world.delta_negative_count, step_capability)
        delta = negative / (1.0 + positive * config.fitness.delta_positive_scale)
        return EpisodeMetrics(
            delta=delta,
            traveled=_ratio(world.bot_traveled, config.bot.max_speed * world.elapsed),
            rotation=_ratio(world.bot_rotated, config.bot.max_angular_speed * world.elapsed),
            heading_error=_ratio(world.heading_error_sum, 180.0 * world.steps),
        )

    def combine(self, delta: float, traveled: float, rotation: float, heading_error: float) -> TrialResult:
        weights = self._config.fitness
        fitness = (
            weights.delta_weight * delta
            + weights.traveled_weight * traveled
            + weights.rotation_weight * rotation
            + weights.heading_weight * (1.0 - heading_error)
        ) / self._weight_total
        return TrialResult(
            delta=delta,
            traveled=traveled,
            rotation=rotation,
            heading_error=heading_error,
            fitness=fitness,
        )

    def evaluate(self, agent: "Agent") -> TrialResult:
        totals = EpisodeMetrics(0.0, 0.0, 0.0, 0.0)
        for _ in range(self.runs):
            episode = self.run_episode(agent)
            totals.delta += episode.delta
            totals.traveled += episode.traveled
            totals.rotation += episode.rotation
            totals.heading_error += episode.heading_error
        result = self.combine(
            totals.delta / self.runs,
            totals.traveled / self.runs,
            totals.rotation / self.runs,
            totals.heading_error / self.runs,
        )
        agent.fitness = result.fitness
        return result
