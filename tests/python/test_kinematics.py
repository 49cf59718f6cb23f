from __future__ import annotations

from pygame.math import Vector2
from pytest import approx

from neatarena.config import BotConfig
from neatarena.sim.core.bodies import Bot
from neatarena.sim.core.kinematics import AngularKinematicBody, KinematicBody


def test_first_update_only_primes():
    body = KinematicBody(3.0, 4.0)
    body.add_velocity(Vector2(5.0, 0.0))
    body.update(0.1)
    assert body.position == Vector2(3.0, 4.0)
    assert body.old_dt == approx(0.1)
    assert body.primed


def test_verlet_step_keeps_implicit_velocity():
    body = KinematicBody(0.0, 0.0)
    body.update(0.1)
    body.add_velocity(Vector2(5.0, 0.0))
    body.update(0.1)
    assert body.position.x == approx(0.5)
    body.update(0.1)
    assert body.position.x == approx(1.0)
    # A longer step scales the inferred velocity by dt / old_dt.
    body.update(0.2)
    assert body.position.x == approx(2.0)


def test_acceleration_is_consumed_by_one_step():
    body = KinematicBody(0.0, 0.0)
    body.update(0.1)
    body.accelerate(Vector2(10.0, 0.0))
    body.update(0.1)
    assert body.position.x == approx(0.1)
    assert body.acceleration == Vector2(0.0, 0.0)


def test_angles_are_normalized():
    body = AngularKinematicBody(0.0, 0.0, -30.0)
    assert body.angle == approx(330.0)
    body.angle = 720.0
    assert body.angle == approx(0.0)
    body.old_angle = -90.0
    assert body.old_angle == approx(270.0)


def test_rotation_redirects_motion_along_new_heading():
    body = AngularKinematicBody(0.0, 0.0, 0.0)
    body.update(1.0)
    body.position = Vector2(1.0, 0.0)
    body.add_angular_velocity(90.0)
    body.update(1.0)
    assert body.angle == approx(90.0)
    assert body.position.x == approx(1.0)
    assert body.position.y == approx(1.0)


def test_angular_velocity_uses_shortest_rotation():
    body = AngularKinematicBody(0.0, 0.0, 350.0)
    body.update(1.0)
    body.angle = 10.0
    body.update(1.0)
    # Turned +20 degrees across the wrap, so it keeps turning the same way.
    assert body.angle == approx(30.0)


def test_bot_drives_at_commanded_speed():
    bot = Bot(50.0, 50.0, 0.0, BotConfig())
    bot.speed = 10.0
    bot.update(0.1)
    assert bot.position == Vector2(50.0, 50.0)
    bot.update(0.1)
    assert bot.position.x == approx(51.0)
    assert bot.position.y == approx(50.0)
    bot.speed = 0.0
    bot.update(0.1)
    # No momentum carries over once the command drops to zero.
    assert bot.position.x == approx(51.0)


def test_bot_turns_at_commanded_angular_speed():
    bot = Bot(50.0, 50.0, 0.0, BotConfig())
    bot.update(0.1)
    bot.angular_speed = 90.0
    bot.update(0.1)
    assert bot.angle == approx(9.0)
    bot.update(0.1)
    assert bot.angle == approx(18.0)


def test_bot_speed_commands_are_capped():
    bot = Bot(0.0, 0.0, 0.0, BotConfig(max_speed=100.0, max_angular_speed=180.0))
    bot.add_speed(150.0)
    assert bot.speed == 100.0
    bot.add_speed(-500.0)
    assert bot.speed == 0.0
    bot.add_angular_speed(-400.0)
    assert bot.angular_speed == -180.0
