"""
Robot ship behaviour.

Each robot runs three independent timers:

    course change   - head for a distant player, or wander when close
    offensive fire  - lead the player with an intercept shot
    defensive fire  - shoot down a torpedo that is closing in

Timer periods get a little random jitter so robots do not act in lockstep,
and are stretched on easy difficulty, which also adds aiming error.
"""

import logging
import math
from typing import Dict, Iterable, List, Optional, Protocol

import numpy as np

from torpedo_arena.config import AIConfig, GameConfig
from torpedo_arena.intercept import solve_intercept
from torpedo_arena.physics import Vector2D, heading_to_rotation, velocity_for_rotation
from torpedo_arena.scheduler import Scheduler, TimerHandle
from torpedo_arena.ships import Ship

logger = logging.getLogger(__name__)


class GameInterface(Protocol):
    """What the arena exposes to robot controllers and input handlers."""

    player: Ship
    difficulty: str

    @property
    def torpedoes(self) -> Dict:
        ...

    def launch_torpedo(self, ship: Ship, target_x: float, target_y: float):
        ...


class AIController:
    """Timer driven decision loop attached to one robot ship."""

    def __init__(
        self,
        ship: Ship,
        game: GameInterface,
        scheduler: Scheduler,
        game_config: GameConfig,
        ai_config: AIConfig,
        rng: np.random.Generator,
    ):
        self.ship = ship
        self.game = game
        self.scheduler = scheduler
        self.cfg = game_config
        self.ai = ai_config
        self.rng = rng
        self.timers: List[TimerHandle] = []

        ship.ai = self

    @property
    def running(self) -> bool:
        return bool(self.timers)

    def _interval(self, base: float, jitter: bool = True) -> float:
        modifier = self.ai.easy_interval_multiplier if self.game.difficulty == "easy" else 1.0
        interval = base * modifier
        if jitter:
            spread = self.ai.interval_jitter
            interval += self.rng.uniform(-spread, spread)
        return max(interval, self.cfg.dt)

    def start(self):
        """Pick a first course and arm the three behaviour timers."""
        self.stop()
        self.change_course()

        self.timers = [
            self.scheduler.schedule_repeating(
                self._interval(self.ai.course_change_interval),
                self.change_course,
                owner=self.ship,
            ),
            self.scheduler.schedule_repeating(
                self._interval(self.ai.fire_interval),
                self.fire_at_player,
                owner=self.ship,
            ),
            self.scheduler.schedule_repeating(
                self._interval(self.ai.defensive_fire_interval, jitter=False),
                self.fire_defensively,
                owner=self.ship,
            ),
        ]

    def stop(self):
        """Disarm every behaviour timer."""
        for timer in self.timers:
            self.scheduler.cancel(timer)
        self.timers = []

    # -------------------------------------------------------------------------
    # Behaviours
    # -------------------------------------------------------------------------

    def change_course(self):
        ship = self.ship
        if not ship.alive:
            return

        player = self.game.player
        far = player.position.distance_squared_to(ship.position) > self.ai.pursuit_distance ** 2
        if player.alive and far:
            # Face the player, but not dead on or the robots all lump together
            bearing = ship.position.angle_to(player.position)
            cone = self.ai.pursuit_cone
            rotation = heading_to_rotation(bearing) + self.rng.uniform(-cone, cone)
            speed = self.cfg.max_ship_velocity
        else:
            rotation = self.rng.uniform(0.0, 2 * math.pi)
            speed = self.rng.uniform(self.cfg.max_ship_velocity / 2, self.cfg.max_ship_velocity)

        ship.steer(rotation, velocity_for_rotation(rotation, speed))

    def fire_at_player(self):
        ship = self.ship
        player = self.game.player
        if not ship.alive or not player.alive:
            return

        aim = solve_intercept(ship.position, player.position, player.velocity, self.cfg.torpedo_speed)
        if self.game.difficulty == "easy":
            slack = self.ai.easy_aim_slack
            aim = aim + Vector2D(self.rng.uniform(-slack, slack), self.rng.uniform(-slack, slack))

        self.game.launch_torpedo(ship, aim.x, aim.y)

    def find_inbound_torpedo(self, torpedoes: Iterable) -> Optional[tuple]:
        """
        First torpedo in the defensive band that is closing on this ship.

        Returns (position, velocity) of the threat or None.
        """
        ship = self.ship
        min_sq = self.ai.defensive_min_distance ** 2
        max_sq = self.ai.defensive_max_distance ** 2

        for torpedo in torpedoes:
            if not torpedo.alive:
                continue

            distance_sq = ship.position.distance_squared_to(torpedo.position)
            if distance_sq > max_sq or distance_sq < min_sq:
                continue

            relative_position = torpedo.position - ship.position
            torpedo_velocity = (torpedo.target - torpedo.position).normalized() * self.cfg.torpedo_speed
            relative_velocity = torpedo_velocity - ship.velocity

            if relative_velocity.dot(relative_position) < 0:
                return torpedo.position.copy(), torpedo_velocity

        return None

    def fire_defensively(self):
        ship = self.ship
        if not ship.alive:
            return

        threat = self.find_inbound_torpedo(self.game.torpedoes.values())
        if threat is None:
            return

        position, velocity = threat
        aim = solve_intercept(ship.position, position, velocity, self.cfg.torpedo_speed)
        logger.debug(f"Robot {ship.ship_id} firing defensively at ({aim.x:.0f}, {aim.y:.0f})")
        self.game.launch_torpedo(ship, aim.x, aim.y)
