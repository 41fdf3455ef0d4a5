"""
Tests for vector math, angle helpers and the ship motion model.

Tests cover:
1. Vector2D arithmetic, clamping and polar construction
2. Angle wrapping and shortest turns
3. Rotation and velocity smoothing with exact snapping
4. The speed limit under arbitrary desired-velocity assignments
5. Position integration against the arena bounds
"""

import math

import numpy as np
import pytest

from torpedo_arena.config import GameConfig
from torpedo_arena.physics import (
    Vector2D,
    advance_rotation,
    advance_ship,
    advance_velocity,
    heading_to_rotation,
    integrate_ship,
    rotation_to_heading,
    shortest_turn,
    velocity_for_rotation,
    wrap_angle,
)
from torpedo_arena.ships import Ship


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def game_config():
    return GameConfig()


@pytest.fixture
def ship(game_config):
    return Ship(
        ship_id=1,
        position=Vector2D(1000, 1000),
        max_velocity=game_config.max_ship_velocity,
        torpedo_bays_max=game_config.torpedo_bays,
    )


# =============================================================================
# VECTOR TESTS
# =============================================================================

class TestVector2D:

    def test_arithmetic(self):
        a = Vector2D(1, 2)
        b = Vector2D(3, -4)
        assert a + b == Vector2D(4, -2)
        assert a - b == Vector2D(-2, 6)
        assert a * 2 == Vector2D(2, 4)
        assert 2 * a == Vector2D(2, 4)
        assert -a == Vector2D(-1, -2)
        assert a.dot(b) == pytest.approx(-5)

    def test_magnitude_and_distance(self):
        assert Vector2D(3, 4).magnitude() == pytest.approx(5)
        assert Vector2D(3, 4).magnitude_squared() == pytest.approx(25)
        assert Vector2D(0, 0).distance_squared_to(Vector2D(30, 0)) == pytest.approx(900)

    def test_normalized_zero_vector_is_zero(self):
        assert Vector2D(0, 0).normalized() == Vector2D(0, 0)

    def test_clamped_keeps_direction(self):
        v = Vector2D(300, 400).clamped(100)
        assert v.magnitude() == pytest.approx(100)
        assert v.x / v.y == pytest.approx(300 / 400)

    def test_clamped_leaves_short_vector_alone(self):
        assert Vector2D(3, 4).clamped(100) == Vector2D(3, 4)

    def test_from_polar(self):
        v = Vector2D.from_polar(math.pi / 2, 10)
        assert v.x == pytest.approx(0, abs=1e-9)
        assert v.y == pytest.approx(10)


# =============================================================================
# ANGLE TESTS
# =============================================================================

class TestAngles:

    @pytest.mark.parametrize("angle,expected", [
        (0.0, 0.0),
        (math.pi, math.pi),
        (-math.pi, math.pi),
        (3 * math.pi / 2, -math.pi / 2),
        (-3 * math.pi / 2, math.pi / 2),
    ])
    def test_wrap_angle(self, angle, expected):
        assert wrap_angle(angle) == pytest.approx(expected)

    def test_shortest_turn_crosses_zero(self):
        assert shortest_turn(0.1, 2 * math.pi - 0.1) == pytest.approx(-0.2)
        assert shortest_turn(2 * math.pi - 0.1, 0.1) == pytest.approx(0.2)

    def test_rotation_heading_round_trip(self):
        assert rotation_to_heading(heading_to_rotation(1.234)) == pytest.approx(1.234)

    def test_rotation_zero_flies_up(self):
        v = velocity_for_rotation(0.0, 100)
        assert v.x == pytest.approx(0, abs=1e-9)
        assert v.y == pytest.approx(-100)


# =============================================================================
# MOTION MODEL TESTS
# =============================================================================

class TestMotionModel:

    def test_rotation_moves_toward_desired(self):
        assert 0 < advance_rotation(0.0, 1.0, 0.1, 0.1) < 1.0
        assert -1.0 < advance_rotation(0.0, -1.0, 0.1, 0.1) < 0

    def test_rotation_turns_the_short_way(self):
        current = advance_rotation(0.2, 2 * math.pi - 0.5, 0.1, 0.01)
        assert current < 0.2

    def test_rotation_snaps_within_one_step(self):
        assert advance_rotation(1.0, 1.05, 0.1, 0.1) == 1.05

    def test_velocity_snaps_within_one_step(self):
        desired = Vector2D(100, 0)
        assert advance_velocity(Vector2D(99, 1), desired, 0.1, 2.0) == desired

    def test_velocity_lerps(self):
        v = advance_velocity(Vector2D(0, 0), Vector2D(100, 0), 0.1, 2.0)
        assert v.x == pytest.approx(10)

    @pytest.mark.parametrize("rotation", [2.0, -3.0, 5.5, math.pi])
    def test_converges_exactly(self, ship, game_config, rotation):
        """After enough ticks the current state equals the desired state bit for bit."""
        desired_velocity = velocity_for_rotation(rotation, game_config.max_ship_velocity)
        ship.steer(rotation, desired_velocity)

        for _ in range(500):
            advance_ship(ship, game_config)

        assert ship.rotation == rotation
        assert ship.velocity.x == ship.desired_velocity.x
        assert ship.velocity.y == ship.desired_velocity.y

    def test_desired_velocity_clamped_on_assignment(self, ship, game_config):
        ship.desired_velocity = Vector2D(1000, 0)
        assert ship.desired_velocity.magnitude() == pytest.approx(game_config.max_ship_velocity)
        assert ship.desired_velocity.y == 0

    def test_speed_limit_holds_for_any_desired_sequence(self, ship, game_config):
        rng = np.random.default_rng(7)
        limit = game_config.max_ship_velocity + 1e-9

        for _ in range(300):
            if rng.random() < 0.2:
                ship.steer(
                    rng.uniform(-10, 10),
                    Vector2D(rng.uniform(-1000, 1000), rng.uniform(-1000, 1000)),
                )
                assert ship.desired_velocity.magnitude() <= limit
            advance_ship(ship, game_config)
            assert ship.velocity.magnitude() <= limit


# =============================================================================
# INTEGRATION TESTS
# =============================================================================

class TestIntegration:

    def test_position_follows_velocity(self, ship):
        ship.velocity = Vector2D(60, 0)
        integrate_ship(ship, 0.5, 8000, 6000)
        assert ship.position == Vector2D(1030, 1000)

    def test_ship_stays_in_bounds(self, ship):
        ship.position = Vector2D(5, 5990)
        ship.velocity = Vector2D(-100, 100)
        integrate_ship(ship, 1.0, 8000, 6000)
        assert ship.position == Vector2D(0, 6000)
        assert ship.velocity == Vector2D(0, 0)
