"""
Torpedo and explosion lifecycle.

Torpedoes fly straight at a fixed aim point. A torpedo detonates when it
arrives, when it drifts into an active blast, when it hits an asteroid, or
when its lifetime runs out. Each detonation leaves one explosion that
destroys every live ship inside its radius until it fades.
"""

import itertools
import logging
import math
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Protocol, Tuple

from torpedo_arena.config import GameConfig
from torpedo_arena.physics import Vector2D
from torpedo_arena.scheduler import Scheduler
from torpedo_arena.ships import Ship, DeathCause

logger = logging.getLogger(__name__)


# =============================================================================
# Game Objects
# =============================================================================

@dataclass(eq=False)
class Torpedo:
    """Projectile flying at constant speed toward a fixed target point."""

    torpedo_id: int
    position: Vector2D
    target: Vector2D
    velocity: Vector2D
    owner: Ship
    launch_time: float
    alive: bool = True

    @property
    def rotation(self) -> float:
        return math.atan2(self.velocity.y, self.velocity.x) + math.pi / 2

    def fly(self, dt: float):
        """Advance along the launch line, stopping on the target point."""
        remaining = self.target - self.position
        step = self.velocity.magnitude() * dt
        if remaining.magnitude_squared() <= step * step:
            self.position = self.target.copy()
        else:
            self.position = self.position + self.velocity * dt


@dataclass(eq=False)
class Explosion:
    """Blast left behind by a detonated torpedo."""

    position: Vector2D
    radius: float
    lifetime: float
    remaining_lifetime: float
    owner: Optional[Ship] = None

    @property
    def progress(self) -> float:
        """0.0 when fresh, 1.0 when about to fade out."""
        if self.lifetime <= 0:
            return 1.0
        return min(max(1.0 - self.remaining_lifetime / self.lifetime, 0.0), 1.0)

    def contains(self, point: Vector2D) -> bool:
        return point.distance_squared_to(self.position) <= self.radius * self.radius


@dataclass(frozen=True)
class Obstacle:
    """Static circular obstacle (asteroid)."""

    center: Vector2D
    radius: float

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        return (
            self.center.x - self.radius,
            self.center.y - self.radius,
            self.center.x + self.radius,
            self.center.y + self.radius,
        )


# =============================================================================
# Spatial Index
# =============================================================================

class SpatialIndex(Protocol):
    """Range query over static obstacles."""

    def query(self, min_x: float, min_y: float, max_x: float, max_y: float) -> List[Obstacle]:
        ...


class ObstacleIndex:
    """Uniform grid of obstacle bounding boxes."""

    def __init__(self, cell_size: float = 100.0):
        self.cell_size = cell_size
        self._cells: Dict[Tuple[int, int], List[Obstacle]] = defaultdict(list)
        self._obstacles: List[Obstacle] = []

    def __len__(self) -> int:
        return len(self._obstacles)

    def __iter__(self):
        return iter(self._obstacles)

    def _cell_range(self, min_x: float, min_y: float, max_x: float, max_y: float):
        size = self.cell_size
        return itertools.product(
            range(math.floor(min_x / size), math.floor(max_x / size) + 1),
            range(math.floor(min_y / size), math.floor(max_y / size) + 1),
        )

    def insert(self, obstacle: Obstacle):
        self._obstacles.append(obstacle)
        for cell in self._cell_range(*obstacle.bounds):
            self._cells[cell].append(obstacle)

    def query(self, min_x: float, min_y: float, max_x: float, max_y: float) -> List[Obstacle]:
        """Obstacles whose bounding box overlaps the query box."""
        found: Dict[int, Obstacle] = {}
        for cell in self._cell_range(min_x, min_y, max_x, max_y):
            for obstacle in self._cells.get(cell, ()):
                o_min_x, o_min_y, o_max_x, o_max_y = obstacle.bounds
                if o_max_x < min_x or o_min_x > max_x or o_max_y < min_y or o_min_y > max_y:
                    continue
                found[id(obstacle)] = obstacle
        return list(found.values())

    def clear(self):
        self._cells.clear()
        self._obstacles.clear()


# =============================================================================
# Torpedo Manager
# =============================================================================

# Half extents of the box probed around a torpedo for obstacles
_PROBE_HALF_WIDTH = 2.0
_PROBE_HALF_HEIGHT = 10.0


class TorpedoManager:
    """Owns every live torpedo and explosion."""

    def __init__(
        self,
        config: GameConfig,
        scheduler: Scheduler,
        obstacles: Optional[SpatialIndex] = None,
    ):
        self.cfg = config
        self.scheduler = scheduler
        self.obstacles = obstacles if obstacles is not None else ObstacleIndex()

        # Insertion ordered: launch order is the defensive scan order
        self.torpedoes: Dict[int, Torpedo] = {}
        self.explosions: List[Explosion] = []
        self._pending_explosions: List[Explosion] = []
        self._ids = itertools.count(1)

        # Optional hook called with each new explosion (sounds, effects)
        self.on_explosion: Optional[Callable[[Explosion], None]] = None

    # -------------------------------------------------------------------------
    # Launch
    # -------------------------------------------------------------------------

    def launch_torpedo(self, ship: Ship, target_x: float, target_y: float) -> Optional[Torpedo]:
        """
        Fire a torpedo from ship toward (target_x, target_y).

        A ship with no ready bay cannot fire; this is a rate limit, not an
        error, and the call returns None.
        """
        if not ship.take_torpedo_bay():
            return None

        self.scheduler.schedule_once(self.cfg.torpedo_reload_time, ship.reload_torpedo_bay, owner=ship)

        target = Vector2D(target_x, target_y)
        velocity = (target - ship.position).normalized() * self.cfg.torpedo_speed
        torpedo = Torpedo(
            torpedo_id=next(self._ids),
            position=ship.position.copy(),
            target=target,
            velocity=velocity,
            owner=ship,
            launch_time=self.scheduler.now,
        )
        self.torpedoes[torpedo.torpedo_id] = torpedo

        self.scheduler.schedule_once(
            self.cfg.torpedo_lifetime, lambda: self._on_timeout(torpedo), owner=torpedo
        )

        logger.debug(
            f"Ship {ship.ship_id} launched torpedo {torpedo.torpedo_id} "
            f"at ({target_x:.0f}, {target_y:.0f}), {ship.torpedo_bays_ready} bays left"
        )
        return torpedo

    def _on_timeout(self, torpedo: Torpedo):
        if torpedo.alive:
            logger.debug(f"Torpedo {torpedo.torpedo_id} timed out")
            self.explode(torpedo)
            self.torpedoes.pop(torpedo.torpedo_id, None)

    # -------------------------------------------------------------------------
    # Detonation
    # -------------------------------------------------------------------------

    def explode(self, torpedo: Torpedo) -> Explosion:
        """
        Detonate a torpedo where it is.

        The torpedo is marked dead but left in ``torpedoes``; callers
        iterating the map remove it afterwards. The new explosion becomes
        active at the end of the current update.
        """
        torpedo.alive = False
        self.scheduler.cancel_owner(torpedo)

        explosion = Explosion(
            position=torpedo.position.copy(),
            radius=self.cfg.explosion_radius,
            lifetime=self.cfg.torpedo_blast_time,
            remaining_lifetime=self.cfg.torpedo_blast_time,
            owner=torpedo.owner,
        )
        self._pending_explosions.append(explosion)

        if self.on_explosion is not None:
            self.on_explosion(explosion)
        return explosion

    def _hits_explosion(self, torpedo: Torpedo, explosions: List[Explosion]) -> bool:
        radius_sq = self.cfg.explosion_radius ** 2
        return any(
            torpedo.position.distance_squared_to(explosion.position) < radius_sq
            for explosion in explosions
        )

    def _hits_obstacle(self, torpedo: Torpedo) -> bool:
        x, y = torpedo.position.x, torpedo.position.y
        candidates = self.obstacles.query(
            x - _PROBE_HALF_WIDTH, y - _PROBE_HALF_HEIGHT,
            x + _PROBE_HALF_WIDTH, y + _PROBE_HALF_HEIGHT,
        )
        return any(
            torpedo.position.distance_to(obstacle.center) < obstacle.radius
            for obstacle in candidates
        )

    # -------------------------------------------------------------------------
    # Per-tick update
    # -------------------------------------------------------------------------

    def update(self, dt: float, ships: List[Ship]) -> List[Tuple[Ship, Explosion]]:
        """
        Advance torpedoes and explosions by one tick.

        Order within the tick:
            1. torpedoes fly
            2. torpedo detonations (arrival, blast, obstacle)
            3. blast damage from explosions that were active before this tick
            4. explosions age; new ones from this tick become active

        Returns (ship, explosion) for every ship destroyed this tick.
        """
        active = list(self.explosions)
        epsilon = self.cfg.torpedo_arrival_epsilon

        for torpedo in self.torpedoes.values():
            if torpedo.alive:
                torpedo.fly(dt)

        finished = []
        for torpedo in list(self.torpedoes.values()):
            if not torpedo.alive:
                finished.append(torpedo.torpedo_id)
                continue

            if (
                torpedo.position.distance_to(torpedo.target) < epsilon
                or self._hits_explosion(torpedo, active)
                or self._hits_obstacle(torpedo)
            ):
                self.explode(torpedo)
                finished.append(torpedo.torpedo_id)

        for torpedo_id in finished:
            del self.torpedoes[torpedo_id]

        destroyed = []
        for explosion in active:
            for ship in ships:
                if ship.alive and explosion.contains(ship.position):
                    ship.destroy(DeathCause.EXPLOSION)
                    destroyed.append((ship, explosion))
                    logger.debug(f"Ship {ship.ship_id} destroyed by explosion")

        for explosion in active:
            explosion.remaining_lifetime -= dt
        self.explosions = [e for e in self.explosions if e.remaining_lifetime > 0]

        self.explosions.extend(self._pending_explosions)
        self._pending_explosions.clear()

        return destroyed

    def clear(self):
        """Remove every torpedo and explosion and cancel their timers."""
        for torpedo in self.torpedoes.values():
            torpedo.alive = False
            self.scheduler.cancel_owner(torpedo)
        self.torpedoes.clear()
        self.explosions.clear()
        self._pending_explosions.clear()
