from __future__ import annotations

from pygame.math import Vector2

from ...config import BallConfig, BotConfig
from ..utils.math2d import cap_delta, vector_from
from .kinematics import AngularKinematicBody, KinematicBody
from .rng import DeterministicRng


class Ball(KinematicBody):
    def __init__(self, x: float, y: float, config: BallConfig):
        super().__init__(x, y)
        self.radius = config.radius
        self.min_speed = config.min_speed
        self.max_speed = config.max_speed

    @property
    def velocity(self) -> Vector2:
        return self.position - self.old_position

    def speed(self) -> float:
        return self.velocity.length()

    def direction(self) -> float:
        if self.velocity.length_squared() == 0:
            return 0.0
        return self.velocity.as_polar()[1] % 360.0

    def set_position(self, x: float, y: float) -> None:
        self.old_position.update(x, y)
        self.position.update(x, y)
        self.acceleration.update(0, 0)

    def add_random_speed(self, rng: DeterministicRng) -> None:
        magnitude = rng.next_range(self.min_speed, self.max_speed)
        self.add_velocity(rng.next_unit_circle() * magnitude)


class Bot(AngularKinematicBody):
    def __init__(self, x: float, y: float, angle: float, config: BotConfig):
        super().__init__(x, y, angle)
        self.speed = 0.0
        self.angular_speed = 0.0
        self.max_speed = config.max_speed
        self.max_angular_speed = config.max_angular_speed
        self.radius = config.radius

    def add_speed(self, delta: float) -> None:
        self.speed = cap_delta(self.speed, delta, 0.0, self.max_speed)

    def add_angular_speed(self, delta: float) -> None:
        self.angular_speed = cap_delta(self.angular_speed, delta, -self.max_angular_speed, self.max_angular_speed)

    def set_position(self, x: float, y: float) -> None:
        self.old_position.update(x, y)
        self.position.update(x, y)
        self.acceleration.update(0, 0)

    def set_angle(self, angle: float) -> None:
        self.angle = angle
        self.old_angle = self.angle

    def update(self, dt: float) -> None:
        """Drive at the commanded speeds; momentum does not carry between steps."""
        if not self.primed:
            super().update(dt)
            return
        self.old_position.update(self.position)
        self.add_velocity(vector_from(self.angle, self.speed))
        self.old_angle = self.angle
        self.add_angular_velocity(self.angular_speed)
        super().update(dt)
