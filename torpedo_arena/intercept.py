"""
Intercept prediction for torpedo fire.

Given a target at position P_t moving with constant velocity V_t and a
projectile fired now from P_s at constant speed S, find the time T at which
they meet:

    |P_t + V_t * T - P_s| = S * T

Squaring both sides gives a quadratic in T:

    (|V_t|^2 - S^2) * T^2 + 2 * dot(D, V_t) * T + |D|^2 = 0

with D = P_t - P_s. The smallest non-negative root is the intercept time and
the aim point is P_t + V_t * T. When no such root exists the target's current
position is used instead.
"""

import math
from typing import Optional

from torpedo_arena.physics import Vector2D

# Below this |a| the quadratic degenerates (target as fast as the projectile)
_DEGENERATE_EPSILON = 1e-9


def solve_intercept_time(
    shooter_position: Vector2D,
    target_position: Vector2D,
    target_velocity: Vector2D,
    projectile_speed: float,
) -> Optional[float]:
    """Return the earliest non-negative intercept time, or None if there is none."""
    distance_vec = target_position - shooter_position

    a = target_velocity.magnitude_squared() - projectile_speed * projectile_speed
    b = 2 * distance_vec.dot(target_velocity)
    c = distance_vec.magnitude_squared()

    if abs(a) < _DEGENERATE_EPSILON:
        return None

    discriminant = b * b - 4 * a * c
    if discriminant < 0:
        return None

    sqrt_discriminant = math.sqrt(discriminant)
    t1 = (-b - sqrt_discriminant) / (2 * a)
    t2 = (-b + sqrt_discriminant) / (2 * a)

    candidates = [t for t in (t1, t2) if t >= 0 and math.isfinite(t)]
    if not candidates:
        return None
    return min(candidates)


def solve_intercept(
    shooter_position: Vector2D,
    target_position: Vector2D,
    target_velocity: Vector2D,
    projectile_speed: float,
) -> Vector2D:
    """
    Compute where to aim a projectile so it meets a moving target.

    Args:
        shooter_position: Where the projectile is launched from.
        target_position: Current target position.
        target_velocity: Target velocity, assumed constant.
        projectile_speed: Scalar projectile speed.

    Returns:
        The intercept aim point, or a copy of ``target_position`` when the
        target cannot be caught.
    """
    t = solve_intercept_time(shooter_position, target_position, target_velocity, projectile_speed)
    if t is None:
        return target_position.copy()
    return target_position + target_velocity * t
