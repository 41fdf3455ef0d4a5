"""
Torpedo Arena Physics

2D vector math, angle helpers and the smoothed ship motion model.

Rotation follows the sprite convention of the arena: a rotation of 0 points
the ship's nose "up" the screen (negative y), so the direction of travel for
a rotation ``r`` is the polar angle ``r - pi/2``.
"""

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from torpedo_arena.config import GameConfig
    from torpedo_arena.ships import Ship


# =============================================================================
# Physics Primitives
# =============================================================================

@dataclass
class Vector2D:
    """2D vector with physics operations."""

    x: float = 0.0
    y: float = 0.0

    def __add__(self, other: "Vector2D") -> "Vector2D":
        return Vector2D(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Vector2D") -> "Vector2D":
        return Vector2D(self.x - other.x, self.y - other.y)

    def __mul__(self, scalar: float) -> "Vector2D":
        return Vector2D(self.x * scalar, self.y * scalar)

    def __rmul__(self, scalar: float) -> "Vector2D":
        return self.__mul__(scalar)

    def __truediv__(self, scalar: float) -> "Vector2D":
        return Vector2D(self.x / scalar, self.y / scalar)

    def __neg__(self) -> "Vector2D":
        return Vector2D(-self.x, -self.y)

    def magnitude(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y)

    def magnitude_squared(self) -> float:
        return self.x * self.x + self.y * self.y

    def normalized(self) -> "Vector2D":
        mag = self.magnitude()
        if mag < 1e-8:
            return Vector2D(0.0, 0.0)
        return self / mag

    def dot(self, other: "Vector2D") -> float:
        return self.x * other.x + self.y * other.y

    def distance_to(self, other: "Vector2D") -> float:
        return (self - other).magnitude()

    def distance_squared_to(self, other: "Vector2D") -> float:
        return (self - other).magnitude_squared()

    def angle_to(self, other: "Vector2D") -> float:
        """Angle from self to other in radians."""
        diff = other - self
        return math.atan2(diff.y, diff.x)

    def clamped(self, max_magnitude: float) -> "Vector2D":
        """Return a copy no longer than max_magnitude, keeping its direction."""
        mag = self.magnitude()
        if mag <= max_magnitude:
            return Vector2D(self.x, self.y)
        return self * (max_magnitude / mag)

    def copy(self) -> "Vector2D":
        return Vector2D(self.x, self.y)

    def as_array(self) -> np.ndarray:
        return np.array([self.x, self.y], dtype=np.float32)

    @staticmethod
    def from_polar(angle: float, magnitude: float = 1.0) -> "Vector2D":
        """Create vector from angle (radians) and magnitude."""
        return Vector2D(math.cos(angle) * magnitude, math.sin(angle) * magnitude)


# =============================================================================
# Angle Helpers
# =============================================================================

def wrap_angle(angle: float) -> float:
    """Wrap an angle to the interval (-pi, pi]."""
    wrapped = math.fmod(angle + math.pi, 2 * math.pi)
    if wrapped <= 0:
        wrapped += 2 * math.pi
    return wrapped - math.pi


def shortest_turn(current: float, desired: float) -> float:
    """Signed angular delta that turns current onto desired the short way."""
    return wrap_angle(desired - current)


def heading_to_rotation(heading: float) -> float:
    """Convert a direction of travel to a ship rotation."""
    return heading + math.pi / 2


def rotation_to_heading(rotation: float) -> float:
    """Convert a ship rotation to its direction of travel."""
    return rotation - math.pi / 2


def velocity_for_rotation(rotation: float, speed: float) -> Vector2D:
    """Velocity of a ship flying nose-first at the given rotation."""
    return Vector2D.from_polar(rotation_to_heading(rotation), speed)


# =============================================================================
# Ship Motion Model
# =============================================================================

def advance_rotation(current: float, desired: float, lerp: float, snap_step: float) -> float:
    """
    Move a rotation one tick toward its desired value.

    The step is a fraction of the remaining shortest-way delta. Once the
    remaining delta is within one snap step the desired rotation is returned
    exactly, so the ship never oscillates around its target.
    """
    delta = shortest_turn(current, desired)
    if abs(delta) <= snap_step:
        return desired
    return current + delta * min(lerp, 1.0)


def advance_velocity(current: Vector2D, desired: Vector2D, lerp: float, snap_step: float) -> Vector2D:
    """
    Move a velocity one tick toward its desired value.

    Linear interpolation by ``lerp``; within ``snap_step`` (compared on
    squared distance) the desired velocity is returned exactly.
    """
    diff = desired - current
    if diff.magnitude_squared() <= snap_step * snap_step:
        return desired.copy()
    return current + diff * min(lerp, 1.0)


def advance_ship(ship: "Ship", cfg: "GameConfig"):
    """Advance a ship's rotation and velocity one fixed tick toward its desired state."""
    ship.rotation = advance_rotation(
        ship.rotation, ship.desired_rotation, cfg.ship_rotation_lerp, cfg.ship_turn_rate
    )
    # Interpolating between two velocities inside the speed disc stays inside it
    ship.velocity = advance_velocity(
        ship.velocity, ship.desired_velocity, cfg.ship_velocity_lerp, cfg.ship_acceleration_rate
    )


def integrate_ship(ship: "Ship", dt: float, width: float, height: float):
    """Update position and keep the ship inside the arena bounds."""
    ship.position = ship.position + ship.velocity * dt

    if ship.position.x < 0 or ship.position.x > width:
        ship.position.x = min(max(ship.position.x, 0.0), width)
        ship.velocity.x = 0.0
    if ship.position.y < 0 or ship.position.y > height:
        ship.position.y = min(max(ship.position.y, 0.0), height)
        ship.velocity.y = 0.0
