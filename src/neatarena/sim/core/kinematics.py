"""Position-based (Verlet) integration for linear and angular motion.

Velocity is never stored. It is inferred from the last two position samples,
so the first ``update`` after construction only records the step size.
"""
from __future__ import annotations

from pygame.math import Vector2

from ..utils.math2d import circular_number, shortest_rotation, vector_from


class KinematicBody:
    def __init__(self, x: float, y: float):
        self.position = Vector2(x, y)
        self.old_position = Vector2(x, y)
        self.acceleration = Vector2()
        self.pending_velocity = Vector2()
        self.old_dt = 0.0

    @property
    def primed(self) -> bool:
        return self.old_dt != 0

    def accelerate(self, acceleration: Vector2) -> None:
        self.acceleration += acceleration

    def add_velocity(self, velocity: Vector2, dt: float = 1.0) -> None:
        """Queue a direct velocity command applied on the next ``update``."""
        self.pending_velocity += velocity / dt

    def update(self, dt: float) -> None:
        if self.old_dt == 0:
            self.old_dt = dt
            return
        velocity = self.position - self.old_position
        self.old_position.update(self.position)
        self.position += self.acceleration * ((dt + self.old_dt) / 2 * dt) + velocity * (dt / self.old_dt)
        self.position += self.pending_velocity * dt
        self.old_dt = dt
        self.pending_velocity.update(0, 0)
        self.acceleration.update(0, 0)


class AngularKinematicBody(KinematicBody):
    def __init__(self, x: float, y: float, angle: float):
        super().__init__(x, y)
        self._angle = circular_number(angle, 360.0)
        self._old_angle = self._angle
        self.angular_acceleration = 0.0
        self.angular_pending_velocity = 0.0

    @property
    def angle(self) -> float:
        return self._angle

    @angle.setter
    def angle(self, value: float) -> None:
        self._angle = circular_number(value, 360.0)

    @property
    def old_angle(self) -> float:
        return self._old_angle

    @old_angle.setter
    def old_angle(self, value: float) -> None:
        self._old_angle = circular_number(value, 360.0)

    def accelerate_angular(self, acceleration: float) -> None:
        self.angular_acceleration += acceleration

    def add_angular_velocity(self, velocity: float, dt: float = 1.0) -> None:
        self.angular_pending_velocity += velocity / dt

    def update(self, dt: float) -> None:
        if self.old_dt == 0:
            self.old_dt = dt
            return
        velocity = shortest_rotation(self.old_angle, self.angle)
        self.old_angle = self.angle
        self.angle += self.angular_acceleration * ((dt + self.old_dt) / 2 * dt) + velocity * (dt / self.old_dt)
        self.angle += self.angular_pending_velocity * dt
        # Point the implicit velocity along the new heading, keeping last step's speed.
        # Subtracting (not adding) the heading vector is deliberate: adding it
        # would send the body backwards along its heading.
        distance = (self.position - self.old_position).length()
        self.old_position = self.position - vector_from(self.angle, distance)
        self.angular_pending_velocity = 0.0
        self.angular_acceleration = 0.0
        super().update(dt)
