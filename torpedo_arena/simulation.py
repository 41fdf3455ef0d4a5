"""
Torpedo Arena Simulation

One round of the game: the player's ship against a ring of robot ships.
Owns every ship, the torpedo manager, the obstacle field and the timer
queue, and advances them in a fixed order once per tick.
"""

import logging
import math
from enum import Enum
from typing import Dict, List, Optional, Tuple

import numpy as np

from torpedo_arena.ai import AIController
from torpedo_arena.combat import Explosion, Obstacle, ObstacleIndex, Torpedo, TorpedoManager
from torpedo_arena.config import Config
from torpedo_arena.physics import Vector2D, advance_ship, heading_to_rotation, integrate_ship
from torpedo_arena.scheduler import Scheduler
from torpedo_arena.ships import Ship

logger = logging.getLogger(__name__)


PLAYER_COLOR = (170, 170, 170)

ROBOT_COLORS = [
    (255, 0, 0),      # Red
    (255, 127, 0),    # Orange
    (255, 255, 0),    # Yellow
    (127, 255, 0),    # Chartreuse
    (0, 255, 0),      # Green
    (0, 255, 127),    # Spring green
    (0, 255, 255),    # Cyan
    (0, 127, 255),    # Azure
    (0, 0, 255),      # Blue
    (127, 0, 255),    # Violet
    (255, 0, 255),    # Magenta
    (255, 0, 127),    # Rose
    (255, 255, 255),  # White
    (255, 255, 127),  # Light yellow
]

# Pointer travel below this (squared pixels) is a tap, not a swipe
TAP_THRESHOLD_SQ = 15 ** 2


class GameState(Enum):
    BEFORE_START = "before_start"
    RUNNING = "running"
    GAME_OVER = "game_over"


class Outcome:
    """How a round ended."""
    WIN = "win"
    LOSE = "lose"


class Simulation:
    """
    The arena. Satisfies the GameInterface used by robot controllers.

    Tick order:
        1. due timers fire (AI behaviours, reloads, torpedo timeouts, respawn)
        2. every live ship steers toward its desired state and moves
        3. torpedoes fly, detonate, and explosions damage ships
        4. destroyed ships are retired; win/loss is decided
    """

    def __init__(self, config: Optional[Config] = None, rng: Optional[np.random.Generator] = None):
        self.config = config or Config()
        self.cfg = self.config.game
        self.rng = rng if rng is not None else np.random.default_rng(self.config.seed)

        self.scheduler = Scheduler()
        self.obstacles = ObstacleIndex()
        self.torpedo_manager = TorpedoManager(self.cfg, self.scheduler, self.obstacles)

        self.state = GameState.BEFORE_START
        self.outcome: Optional[str] = None
        self.player: Optional[Ship] = None
        self.robots: List[Ship] = []
        self.lives_remaining = 0
        self.tick_count = 0

        # Ships destroyed during the latest tick, with the explosion that did it
        self.destroyed: List[Tuple[Ship, Explosion]] = []

        self.reset()

    # -------------------------------------------------------------------------
    # GameInterface
    # -------------------------------------------------------------------------

    @property
    def difficulty(self) -> str:
        return self.cfg.difficulty

    @property
    def torpedoes(self) -> Dict[int, Torpedo]:
        return self.torpedo_manager.torpedoes

    @property
    def explosions(self) -> List[Explosion]:
        return self.torpedo_manager.explosions

    @property
    def ships(self) -> List[Ship]:
        return [self.player] + self.robots

    def launch_torpedo(self, ship: Ship, target_x: float, target_y: float) -> Optional[Torpedo]:
        return self.torpedo_manager.launch_torpedo(ship, target_x, target_y)

    # -------------------------------------------------------------------------
    # Setup and teardown
    # -------------------------------------------------------------------------

    @property
    def center(self) -> Vector2D:
        return Vector2D(*self.cfg.center)

    def reset(self):
        """Tear down any previous round and lay out a fresh one."""
        self.cleanup()

        self.state = GameState.BEFORE_START
        self.outcome = None
        self.tick_count = 0
        self.lives_remaining = self.cfg.player_lives

        self.player = self._create_ship(0, self.center, PLAYER_COLOR)
        self._add_robot_ships()
        self._add_asteroids()

    def _create_ship(self, ship_id: int, position: Vector2D, color: tuple) -> Ship:
        return Ship(
            ship_id=ship_id,
            position=position,
            max_velocity=self.cfg.max_ship_velocity,
            torpedo_bays_max=self.cfg.torpedo_bays,
            color=color,
        )

    def _add_robot_ships(self):
        """Space the robots evenly on a circle around the arena center."""
        count = self.cfg.enemy_ship_count
        if count == 0:
            return
        angle_step = 2 * math.pi / count

        for i in range(count):
            position = self.center + Vector2D.from_polar(angle_step * i, self.cfg.enemy_spawn_radius)
            robot = self._create_ship(i + 1, position, ROBOT_COLORS[i % len(ROBOT_COLORS)])
            AIController(robot, self, self.scheduler, self.cfg, self.config.ai, self.rng)
            self.robots.append(robot)

    def _add_asteroids(self):
        for _ in range(self.cfg.asteroid_count):
            center = Vector2D(
                self.rng.uniform(0, self.cfg.boundary_width),
                self.rng.uniform(0, self.cfg.boundary_height),
            )
            size = self.rng.uniform(self.cfg.asteroid_min_size, self.cfg.asteroid_max_size)
            self.obstacles.insert(Obstacle(center=center, radius=size))

    def start(self):
        """Start the round: robots pick a course and arm their timers."""
        if self.state != GameState.BEFORE_START:
            return
        self.state = GameState.RUNNING
        for robot in self.robots:
            robot.ai.start()
        logger.info(
            f"Round started: {len(self.robots)} robots, difficulty {self.difficulty}, "
            f"{self.lives_remaining} lives"
        )

    def cleanup(self):
        """Cancel every timer and drop every object of the current round."""
        for robot in self.robots:
            if robot.ai is not None:
                robot.ai.stop()
        self.scheduler.clear()
        self.torpedo_manager.clear()
        self.obstacles.clear()
        self.robots = []
        self.player = None
        self.destroyed = []

    def restart(self):
        self.reset()
        self.start()

    # -------------------------------------------------------------------------
    # Player input
    # -------------------------------------------------------------------------

    def tap_at(self, x: float, y: float) -> Optional[Torpedo]:
        """Fire a player torpedo at a world point."""
        if self.state != GameState.RUNNING or not self.player.alive:
            return None
        return self.launch_torpedo(self.player, x, y)

    def swipe(self, start: Vector2D, end: Vector2D) -> Optional[Torpedo]:
        """
        Steer the player along a swipe direction at full speed.

        A very short swipe counts as a tap at its end point, which must
        then be given in world coordinates.
        """
        if self.state != GameState.RUNNING or not self.player.alive:
            return None

        if start.distance_squared_to(end) < TAP_THRESHOLD_SQ:
            return self.tap_at(end.x, end.y)

        self.steer_player(start.angle_to(end))
        return None

    def steer_player(self, heading: float, speed: Optional[float] = None):
        """Point the player along heading (radians) at speed, max by default."""
        if speed is None:
            speed = self.cfg.max_ship_velocity
        self.player.steer(heading_to_rotation(heading), Vector2D.from_polar(heading, speed))

    # -------------------------------------------------------------------------
    # Tick
    # -------------------------------------------------------------------------

    def step(self) -> List[Tuple[Ship, Explosion]]:
        """Advance one fixed tick. Returns the ships destroyed in it."""
        self.destroyed = []
        if self.state != GameState.RUNNING:
            return self.destroyed

        dt = self.cfg.dt
        self.tick_count += 1

        self.scheduler.advance(dt)

        for ship in self.ships:
            if not ship.alive:
                continue
            advance_ship(ship, self.cfg)
            integrate_ship(ship, dt, self.cfg.boundary_width, self.cfg.boundary_height)

        self.destroyed = self.torpedo_manager.update(dt, self.ships)
        for ship, _ in self.destroyed:
            self._retire(ship)

        self._check_game_over()
        return self.destroyed

    def _retire(self, ship: Ship):
        if ship.ai is not None:
            ship.ai.stop()
        self.scheduler.cancel_owner(ship)
        ship.velocity = Vector2D()
        ship.desired_velocity = Vector2D()

        if ship is self.player:
            self.lives_remaining -= 1
            if self.lives_remaining > 0:
                logger.info(f"Player destroyed, respawning in {self.cfg.respawn_time:.1f}s")
                self.scheduler.schedule_once(self.cfg.respawn_time, self._respawn_player, owner=ship)
            else:
                logger.info("Player destroyed, no lives left")
        else:
            logger.info(f"Robot {ship.ship_id} destroyed, {self.robots_alive} left")

    def _respawn_player(self):
        if self.state != GameState.RUNNING:
            return
        self.player.respawn(self.center)
        logger.info("Player respawned")

    @property
    def robots_alive(self) -> int:
        return sum(1 for robot in self.robots if robot.alive)

    def _check_game_over(self):
        player_out = not self.player.alive and self.lives_remaining <= 0
        if player_out:
            self._game_over(Outcome.LOSE)
        elif self.robots and self.robots_alive == 0:
            self._game_over(Outcome.WIN)

    def _game_over(self, outcome: str):
        self.state = GameState.GAME_OVER
        self.outcome = outcome
        for robot in self.robots:
            robot.ai.stop()
        logger.info(f"Game over: {'You win!' if outcome == Outcome.WIN else 'You lose!'} "
                    f"after {self.tick_count} ticks")
