from __future__ import annotations

from ..core.world import SimulationWorld
from ..utils.math2d import shortest_rotation

_ALIGNED_DEGREES = 60.0


def autopilot(world: SimulationWorld, physics_frequency: float) -> None:
    """Scripted chaser: turn toward the ball, drive when roughly facing it."""
    bot = world.bot
    error = shortest_rotation(bot.angle, world.bearing())
    if error != 0:
        max_delta = bot.max_angular_speed / physics_frequency
        delta = shortest_rotation(bot.angular_speed, error)
        bot.add_angular_speed(max(-max_delta, min(delta, max_delta)))
    max_delta = bot.max_speed / physics_frequency
    bot.add_speed(max_delta if abs(error) < _ALIGNED_DEGREES else -max_delta)
