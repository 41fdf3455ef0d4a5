"""
Ship state shared by the player and the robot ships.

A robot is an ordinary Ship with an AI controller attached; the player is a
Ship without one. Current rotation and velocity are written only by the
motion model; input and AI code steer through the desired state.
"""

from dataclasses import dataclass, field
from typing import Optional, TYPE_CHECKING

from torpedo_arena.physics import Vector2D

if TYPE_CHECKING:
    from torpedo_arena.ai import AIController


class DeathCause:
    """How a ship died."""
    ALIVE = "alive"
    EXPLOSION = "explosion"


@dataclass(eq=False)
class Ship:
    """A ship in the arena."""

    ship_id: int
    position: Vector2D
    max_velocity: float
    torpedo_bays_max: int
    rotation: float = 0.0
    velocity: Vector2D = field(default_factory=Vector2D)
    desired_rotation: float = 0.0
    _desired_velocity: Vector2D = field(default_factory=Vector2D, repr=False)
    torpedo_bays_ready: int = -1
    alive: bool = True
    death_cause: str = DeathCause.ALIVE
    color: tuple = (170, 170, 170)
    ai: Optional["AIController"] = field(default=None, repr=False)

    def __post_init__(self):
        if self.torpedo_bays_ready < 0:
            self.torpedo_bays_ready = self.torpedo_bays_max
        self.desired_velocity = self._desired_velocity

    @property
    def is_robot(self) -> bool:
        return self.ai is not None

    @property
    def desired_velocity(self) -> Vector2D:
        return self._desired_velocity.copy()

    @desired_velocity.setter
    def desired_velocity(self, value: Vector2D):
        # Clamped on assignment, direction preserved
        self._desired_velocity = value.clamped(self.max_velocity)

    def steer(self, rotation: float, velocity: Vector2D):
        """Set the desired rotation and velocity together."""
        self.desired_rotation = rotation
        self.desired_velocity = velocity

    def take_torpedo_bay(self) -> bool:
        """
        Consume one ready torpedo bay.

        Returns False if every bay is reloading. The caller schedules the reload.
        """
        if not self.alive or self.torpedo_bays_ready <= 0:
            return False
        self.torpedo_bays_ready -= 1
        return True

    def reload_torpedo_bay(self):
        self.torpedo_bays_ready = min(self.torpedo_bays_ready + 1, self.torpedo_bays_max)

    def destroy(self, cause: str = DeathCause.EXPLOSION):
        self.alive = False
        self.death_cause = cause

    def respawn(self, position: Vector2D):
        """Bring a destroyed ship back at position, at rest with full bays."""
        self.position = position.copy()
        self.rotation = 0.0
        self.velocity = Vector2D()
        self.steer(0.0, Vector2D())
        self.torpedo_bays_ready = self.torpedo_bays_max
        self.alive = True
        self.death_cause = DeathCause.ALIVE
