from __future__ import annotations

import math

from pygame.math import Vector2


def circular_number(value: float, maximum: float) -> float:
    wrapped = (maximum + math.fmod(value, maximum)) % maximum
    # fmod + % can round up to exactly `maximum` for tiny negatives.
    return 0.0 if wrapped >= maximum else wrapped


def shortest_rotation(current: float, target: float) -> float:
    """Signed rotation in degrees from `current` to `target`, in (-180, 180]."""
    delta = (target - current + 540.0) % 360.0 - 180.0
    return 180.0 if delta == -180.0 else delta


def vector_from(direction_deg: float, magnitude: float) -> Vector2:
    vector = Vector2()
    vector.from_polar((magnitude, direction_deg))
    return vector


def bearing(origin: Vector2, target: Vector2) -> float:
    angle = math.degrees(math.atan2(target.y - origin.y, target.x - origin.x))
    return circular_number(angle, 360.0)


def correct_collision(old: float, new: float, collision: float) -> tuple[float, float]:
    """Reflect both samples of a coordinate about the wall crossing point."""
    if old == new:
        return collision, collision
    time_c = (collision - new) / (old - new)
    crossing = time_c * old + (1.0 - time_c) * new
    return old + 2.0 * (crossing - old), new + 2.0 * (crossing - new)


def cap_delta(value: float, delta: float, min_value: float, max_value: float) -> float:
    return clamp_value(value + delta, min_value, max_value)


def clamp_value(value: float, min_value: float, max_value: float) -> float:
    return max(min_value, min(max_value, value))
