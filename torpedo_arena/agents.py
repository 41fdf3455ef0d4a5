"""
Scripted pilots for the player ship.

Used by the demo and by headless simulation runs in place of a human.
"""

from abc import ABC, abstractmethod
from typing import Optional

import numpy as np

from torpedo_arena.environment import Actions, TorpedoArenaEnv
from torpedo_arena.physics import rotation_to_heading, shortest_turn


# =============================================================================
# Base Pilot
# =============================================================================

class BasePilot(ABC):
    """Abstract base class for all pilots."""

    name = "pilot"

    @abstractmethod
    def select_action(self, env: TorpedoArenaEnv) -> int:
        """Select an action for the player ship in env."""
        pass

    def reset(self):
        """Forget any per-round state."""
        pass


# =============================================================================
# Pilots
# =============================================================================

class RandomPilot(BasePilot):
    """Uniformly random actions."""

    name = "random"

    def __init__(self, rng: Optional[np.random.Generator] = None):
        self.rng = rng if rng is not None else np.random.default_rng()

    def select_action(self, env: TorpedoArenaEnv) -> int:
        return int(self.rng.integers(Actions.NUM_ACTIONS))


class HeuristicPilot(BasePilot):
    """
    Simple rule-based pilot.

    Priorities:
        1. Fire at the nearest robot when it is in range and a bay is ready
        2. Turn toward the nearest robot
        3. Keep flying at full speed
    """

    name = "heuristic"

    def __init__(self, fire_range: float = 600.0, fire_cooldown_ticks: int = 60):
        self.fire_range = fire_range
        self.fire_cooldown_ticks = fire_cooldown_ticks
        self._last_fire_tick = -fire_cooldown_ticks

    def reset(self):
        self._last_fire_tick = -self.fire_cooldown_ticks

    def select_action(self, env: TorpedoArenaEnv) -> int:
        sim = env.sim
        player = sim.player
        if not player.alive:
            return Actions.NONE

        target = env.nearest_robot()
        if target is None:
            return Actions.STOP

        distance = player.position.distance_to(target.position)
        ready = player.torpedo_bays_ready > 0
        cooled = sim.tick_count - self._last_fire_tick >= self.fire_cooldown_ticks

        # Priority 1: Fire
        if ready and cooled and distance < self.fire_range:
            self._last_fire_tick = sim.tick_count
            return Actions.FIRE

        # Priority 2: Turn toward the target
        bearing = player.position.angle_to(target.position)
        heading = rotation_to_heading(player.desired_rotation)
        angle_diff = shortest_turn(heading, bearing)
        if abs(angle_diff) > Actions.TURN_STEP:
            return Actions.TURN_RIGHT if angle_diff > 0 else Actions.TURN_LEFT

        # Priority 3: Keep moving; a moving ship is harder to lead
        if player.desired_velocity.magnitude() < sim.cfg.max_ship_velocity:
            return Actions.THRUST

        return Actions.NONE


def create_pilot(name: str, rng: Optional[np.random.Generator] = None) -> BasePilot:
    """Create pilot by name."""
    if name.lower() == "heuristic":
        return HeuristicPilot()
    elif name.lower() == "random":
        return RandomPilot(rng)
    else:
        raise ValueError(f"Unknown pilot: {name}")
