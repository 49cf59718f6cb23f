from __future__ import annotations

import math
from typing import Optional

from ...config import SimulationConfig
from ..types.snapshot import WorldSnapshot
from ..utils.math2d import bearing, correct_collision, shortest_rotation
from .bodies import Ball, Bot
from .rng import DeterministicRng


class SimulationWorld:
    """A bot chasing a ball inside a walled arena, plus the running statistics
    that the fitness trial turns into a score.
    """

    def __init__(self, config: SimulationConfig, rng: Optional[DeterministicRng] = None):
        self._config = config
        self._rng = rng if rng is not None else DeterministicRng(config.seed)
        self.width = config.width
        self.height = config.height
        self.minimal_initial_distance = math.sqrt(config.width**2 + config.height**2) / 3
        self.facing_offset = config.facing_offset
        self.bot = Bot(0.0, 0.0, 0.0, config.bot)
        self.ball = Ball(0.0, 0.0, config.ball)
        self.score = 0
        self.set_random_bot_position()
        self.set_random_ball_position()
        self.reset_statistics()

    @property
    def rng(self) -> DeterministicRng:
        return self._rng

    def reset_statistics(self) -> None:
        self.delta_positive = 0.0
        self.delta_negative = 0.0
        # Counters start at 1 so averages never divide by zero.
        self.delta_positive_count = 1
        self.delta_negative_count = 1
        self.distance_sum = 0.0
        self.bot_traveled = 0.0
        self.bot_rotated = 0.0
        self.heading_error_sum = 0.0
        self.bot_collisions = 0
        self.steps = 0
        self.elapsed = 0.0
        self.last_distance = self.distance()

    def reset(self) -> None:
        self.score = 0
        self.set_random_bot_position()
        self.set_random_ball_position()
        self.reset_statistics()

    def update(self, dt: float) -> None:
        self.bot_traveled += self.bot.speed * dt
        self.bot_rotated += abs(self.bot.angular_speed) * dt
        self.ball.update(dt)
        self.bot.update(dt)
        self._solve_ball_collision()
        self._solve_bot_collision()
        self._solve_score()
        self.steps += 1
        self.elapsed += dt

    def _solve_ball_collision(self) -> None:
        ball = self.ball
        x, y = ball.position.x, ball.position.y
        ox, oy = ball.old_position.x, ball.old_position.y
        radius = ball.radius
        if x < radius:
            ball.old_position.x, ball.position.x = correct_collision(ox, x, radius)
        if x > self.width - radius:
            ball.old_position.x, ball.position.x = correct_collision(ox, x, self.width - radius)
        if y < radius:
            ball.old_position.y, ball.position.y = correct_collision(oy, y, radius)
        if y > self.height - radius:
            ball.old_position.y, ball.position.y = correct_collision(oy, y, self.height - radius)

    def _solve_bot_collision(self) -> None:
        bot = self.bot
        collide = False
        if bot.position.x < bot.radius:
            bot.position.x = bot.radius
            collide = True
        if bot.position.x > self.width - bot.radius:
            bot.position.x = self.width - bot.radius
            collide = True
        if bot.position.y < bot.radius:
            bot.position.y = bot.radius
            collide = True
        if bot.position.y > self.height - bot.radius:
            bot.position.y = self.height - bot.radius
            collide = True
        if collide:
            self.bot_collisions += 1

    def _solve_score(self) -> None:
        distance = self.distance()
        delta = distance - self.last_distance
        if delta > 0:
            self.delta_positive += delta
            self.delta_positive_count += 1
        else:
            self.delta_negative -= delta
            self.delta_negative_count += 1
        self.last_distance = distance
        self.distance_sum += distance
        self.heading_error_sum += abs(self.heading_error())
        if distance < self.bot.radius + self.ball.radius:
            self.score += 1
            self.set_random_ball_position()

    def set_random_bot_position(self) -> None:
        bot = self.bot
        bot.set_position(
            self._rng.next_range(bot.radius, self.width - bot.radius),
            self._rng.next_range(bot.radius, self.height - bot.radius),
        )
        bot.speed = 0.0
        bot.angular_speed = 0.0
        bot.set_angle(self._rng.next_range(0.0, 360.0))

    def set_random_ball_position(self) -> None:
        ball = self.ball
        while True:
            ball.set_position(
                self._rng.next_range(ball.radius, self.width - ball.radius),
                self._rng.next_range(ball.radius, self.height - ball.radius),
            )
            if self.distance() >= self.minimal_initial_distance:
                break
        if self._config.ball.should_move:
            ball.add_random_speed(self._rng)
        self._face_ball()

    def _face_ball(self) -> None:
        if self.facing_offset is None:
            return
        offset = self._rng.next_range(-self.facing_offset, self.facing_offset)
        self.bot.set_angle(self.bearing() + offset)

    def bearing(self) -> float:
        return bearing(self.bot.position, self.ball.position)

    def heading_error(self) -> float:
        return shortest_rotation(self.bot.angle, self.bearing())

    def distance(self) -> float:
        return self.bot.position.distance_to(self.ball.position)

    def snapshot(self) -> WorldSnapshot:
        bot = self.bot
        ball = self.ball
        return WorldSnapshot(
            width=self.width,
            height=self.height,
            bot={
                "x": bot.position.x,
                "y": bot.position.y,
                "angle": bot.angle,
                "speed": bot.speed,
                "angular_speed": bot.angular_speed,
                "radius": bot.radius,
            },
            ball={
                "x": ball.position.x,
                "y": ball.position.y,
                "speed": ball.speed(),
                "radius": ball.radius,
            },
            score=self.score,
            distance=self.distance(),
            steps=self.steps,
            elapsed=self.elapsed,
            bot_collisions=self.bot_collisions,
        )
