"""
Torpedo Arena Game Environment

Gymnasium environment around the arena simulation. The agent flies the
player ship; robot ships run their own timer-driven AI. Also hosts the
pygame renderer and the pointer (tap / swipe) input used for human play.
"""

import math
from typing import Optional, Tuple, Dict, Any
import numpy as np
import gymnasium as gym
from gymnasium import spaces

try:
    import pygame
    PYGAME_AVAILABLE = True
except ImportError:
    PYGAME_AVAILABLE = False

from torpedo_arena.config import Config
from torpedo_arena.intercept import solve_intercept
from torpedo_arena.physics import Vector2D, rotation_to_heading
from torpedo_arena.simulation import TAP_THRESHOLD_SQ, GameState, Outcome, Simulation
from torpedo_arena.ships import Ship


# =============================================================================
# Actions
# =============================================================================

class Actions:
    """Discrete action space for the player ship."""

    NONE = 0
    TURN_LEFT = 1
    TURN_RIGHT = 2
    THRUST = 3
    STOP = 4
    FIRE = 5

    NUM_ACTIONS = 6

    # Heading change per turn action (radians)
    TURN_STEP = math.pi / 4

    @staticmethod
    def to_string(action: int) -> str:
        names = ["NONE", "TURN_LEFT", "TURN_RIGHT", "THRUST", "STOP", "FIRE"]
        return names[action] if 0 <= action < len(names) else "UNKNOWN"


# =============================================================================
# Gymnasium Environment
# =============================================================================

class TorpedoArenaEnv(gym.Env):
    """
    Torpedo Arena Gymnasium Environment.

    The player ship against a ring of robot ships in a bounded arena.
    Torpedoes fly to a fixed aim point and explode there; explosions destroy
    every ship inside the blast radius.
    """

    metadata = {"render_modes": ["human", "rgb_array"], "render_fps": 60}

    # Nearest robots / torpedoes included in the observation
    TRACKED_ROBOTS = 3
    TRACKED_TORPEDOES = 3

    def __init__(
        self,
        config: Optional[Config] = None,
        render_mode: Optional[str] = None,
    ):
        super().__init__()

        self.config = config or Config()
        self.cfg = self.config.game
        self.reward_config = self.config.reward
        self.render_mode = render_mode

        self.action_space = spaces.Discrete(Actions.NUM_ACTIONS)

        # Player: x, y, vx, vy, rotation_sin, rotation_cos, bays ready
        # Nearest 3 robots: rel_x, rel_y, rel_vx, rel_vy (each)
        # Nearest 3 torpedoes: rel_x, rel_y, vx, vy (each)
        obs_dim = 7 + 4 * self.TRACKED_ROBOTS + 4 * self.TRACKED_TORPEDOES  # 31 total
        self.observation_space = spaces.Box(
            low=-1.0, high=1.0, shape=(obs_dim,), dtype=np.float32
        )

        self.sim: Optional[Simulation] = None
        self.episode_reward = 0.0

        # Rendering
        self.screen = None
        self.clock = None
        self.font = None
        self.big_font = None
        self.camera = Vector2D()
        self._stars: Optional[np.ndarray] = None
        self._pointer_down: Optional[Vector2D] = None

    def reset(
        self,
        seed: Optional[int] = None,
        options: Optional[Dict] = None,
    ) -> Tuple[np.ndarray, Dict]:
        """Reset environment to a fresh, running round."""
        super().reset(seed=seed)

        if self.sim is not None:
            self.sim.cleanup()
        self.sim = Simulation(self.config, rng=self.np_random)
        self.sim.start()
        self.episode_reward = 0.0
        self._pointer_down = None
        self._center_camera()

        return self._get_observation(), self._get_info()

    def step(self, action: int) -> Tuple[np.ndarray, float, bool, bool, Dict]:
        """Apply a player action, then advance the arena one tick."""
        self._apply_action(action)
        destroyed = self.sim.step()

        reward = self.reward_config.time_penalty
        for ship, explosion in destroyed:
            if ship is self.sim.player:
                reward += self.reward_config.player_destroyed
            elif explosion.owner is self.sim.player:
                reward += self.reward_config.kill_robot

        terminated = self.sim.state == GameState.GAME_OVER
        truncated = not terminated and self.sim.tick_count >= self.cfg.max_episode_steps

        if terminated:
            if self.sim.outcome == Outcome.WIN:
                reward += self.reward_config.win_bonus
            else:
                reward += self.reward_config.lose_penalty

        self.episode_reward += reward

        info = self._get_info()
        info["episode_reward"] = self.episode_reward

        if self.render_mode == "human":
            self.render()

        return self._get_observation(), reward, terminated, truncated, info

    def _apply_action(self, action: int):
        """Translate a discrete action into player steering or a launch."""
        player = self.sim.player
        if not player.alive:
            return

        heading = rotation_to_heading(player.desired_rotation)
        speed = player.desired_velocity.magnitude()

        if action == Actions.TURN_LEFT:
            self.sim.steer_player(heading - Actions.TURN_STEP, speed)
        elif action == Actions.TURN_RIGHT:
            self.sim.steer_player(heading + Actions.TURN_STEP, speed)
        elif action == Actions.THRUST:
            self.sim.steer_player(heading)
        elif action == Actions.STOP:
            self.sim.steer_player(heading, 0.0)
        elif action == Actions.FIRE:
            target = self.nearest_robot()
            if target is not None:
                aim = solve_intercept(player.position, target.position, target.velocity, self.cfg.torpedo_speed)
                self.sim.tap_at(aim.x, aim.y)

    def nearest_robot(self) -> Optional[Ship]:
        player = self.sim.player
        alive = [r for r in self.sim.robots if r.alive]
        if not alive:
            return None
        return min(alive, key=lambda r: r.position.distance_squared_to(player.position))

    def _get_observation(self) -> np.ndarray:
        """Get normalized observation for the player ship."""
        player = self.sim.player
        max_speed = self.cfg.max_ship_velocity
        half_extent = np.array(
            [self.cfg.boundary_width / 2, self.cfg.boundary_height / 2], dtype=np.float32
        )

        obs = []

        # === Player state (7 values) ===
        obs.append(player.position.x / self.cfg.boundary_width * 2 - 1)
        obs.append(player.position.y / self.cfg.boundary_height * 2 - 1)
        obs.append(np.clip(player.velocity.x / max_speed, -1, 1))
        obs.append(np.clip(player.velocity.y / max_speed, -1, 1))
        obs.append(math.sin(player.rotation))
        obs.append(math.cos(player.rotation))
        bays = player.torpedo_bays_max
        obs.append(player.torpedo_bays_ready / bays if bays else 0.0)

        # === Nearest robots (12 values) ===
        robots = sorted(
            (r for r in self.sim.robots if r.alive),
            key=lambda r: r.position.distance_squared_to(player.position),
        )
        for i in range(self.TRACKED_ROBOTS):
            if i < len(robots):
                rel = (robots[i].position - player.position).as_array() / half_extent
                rel_v = (robots[i].velocity - player.velocity).as_array() / (2 * max_speed)
                obs.extend(np.clip(np.concatenate([rel, rel_v]), -1, 1))
            else:
                obs.extend([0.0, 0.0, 0.0, 0.0])

        # === Nearest torpedoes (12 values) ===
        torpedoes = sorted(
            (t for t in self.sim.torpedoes.values() if t.alive),
            key=lambda t: t.position.distance_squared_to(player.position),
        )
        for i in range(self.TRACKED_TORPEDOES):
            if i < len(torpedoes):
                rel = (torpedoes[i].position - player.position).as_array() / half_extent
                vel = torpedoes[i].velocity.as_array() / self.cfg.torpedo_speed
                obs.extend(np.clip(np.concatenate([rel, vel]), -1, 1))
            else:
                obs.extend([0.0, 0.0, 0.0, 0.0])

        return np.array(obs, dtype=np.float32)

    def _get_info(self) -> Dict[str, Any]:
        """Get info dictionary."""
        sim = self.sim
        return {
            "tick": sim.tick_count,
            "state": sim.state.value,
            "outcome": sim.outcome,
            "player_alive": sim.player.alive,
            "lives": sim.lives_remaining,
            "robots_alive": sim.robots_alive,
            "torpedo_bays": sim.player.torpedo_bays_ready,
            "torpedoes": len(sim.torpedoes),
            "explosions": len(sim.explosions),
        }

    # =========================================================================
    # Human Input
    # =========================================================================

    def screen_to_world(self, x: float, y: float) -> Vector2D:
        return Vector2D(self.camera.x + x, self.camera.y + y)

    def handle_pointer_event(self, event) -> bool:
        """
        Translate a mouse event into tap or swipe input.

        Press and release within a few pixels is a tap: a torpedo is fired
        at the world point. A longer drag is a swipe: the ship turns to fly
        along the drag direction at full speed.

        Returns True if the event was consumed.
        """
        if not PYGAME_AVAILABLE or self.sim is None:
            return False

        if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            self._pointer_down = Vector2D(*event.pos)
            return True

        if event.type == pygame.MOUSEBUTTONUP and event.button == 1:
            if self._pointer_down is None:
                return False
            start, end = self._pointer_down, Vector2D(*event.pos)
            self._pointer_down = None

            if start.distance_squared_to(end) < TAP_THRESHOLD_SQ:
                world = self.screen_to_world(end.x, end.y)
                self.sim.tap_at(world.x, world.y)
            else:
                self.sim.swipe(start, end)
            return True

        return False

    # =========================================================================
    # Rendering
    # =========================================================================

    def _center_camera(self):
        player = self.sim.player
        self.camera = Vector2D(
            player.position.x - self.cfg.screen_width / 2,
            player.position.y - self.cfg.screen_height / 2,
        )

    def _follow_player(self, deadzone: float = 100.0):
        """Scroll the camera once the player leaves the central dead zone."""
        player = self.sim.player
        half_w = self.cfg.screen_width / 2
        half_h = self.cfg.screen_height / 2

        offset_x = player.position.x - (self.camera.x + half_w)
        offset_y = player.position.y - (self.camera.y + half_h)
        if abs(offset_x) > deadzone / 2:
            self.camera.x += offset_x - math.copysign(deadzone / 2, offset_x)
        if abs(offset_y) > deadzone / 2:
            self.camera.y += offset_y - math.copysign(deadzone / 2, offset_y)

    def _to_screen(self, point: Vector2D) -> Tuple[int, int]:
        return (int(point.x - self.camera.x), int(point.y - self.camera.y))

    def render(self) -> Optional[np.ndarray]:
        """Render the game."""
        if not PYGAME_AVAILABLE:
            return None

        if self.screen is None:
            pygame.init()
            pygame.display.init()

            size = (self.cfg.screen_width, self.cfg.screen_height)
            if self.render_mode == "human":
                self.screen = pygame.display.set_mode(size)
                pygame.display.set_caption("Torpedo Arena")
            else:
                self.screen = pygame.Surface(size)

            self.clock = pygame.time.Clock()
            self.font = pygame.font.Font(None, 24)
            self.big_font = pygame.font.Font(None, 64)

        self._follow_player()

        self.screen.fill((0, 0, 10))
        self._draw_starfield()
        self._draw_asteroids()

        for explosion in self.sim.explosions:
            self._draw_explosion(explosion)
        for torpedo in self.sim.torpedoes.values():
            self._draw_torpedo(torpedo)
        for ship in self.sim.ships:
            self._draw_ship(ship)
        for robot in self.sim.robots:
            self._draw_marker(robot)

        self._draw_hud()

        if self.render_mode == "human":
            pygame.event.pump()
            pygame.display.flip()
            self.clock.tick(self.cfg.fps)
        elif self.render_mode == "rgb_array":
            return np.transpose(
                np.array(pygame.surfarray.pixels3d(self.screen)), axes=(1, 0, 2)
            )

        return None

    def _draw_starfield(self):
        """Draw background stars, fixed in world space."""
        if self._stars is None:
            # Fixed seed for a consistent starfield
            rng = np.random.default_rng(42)
            self._stars = np.column_stack([
                rng.uniform(0, self.cfg.boundary_width, self.cfg.star_count),
                rng.uniform(0, self.cfg.boundary_height, self.cfg.star_count),
                rng.uniform(100, 255, self.cfg.star_count),
            ])

        w, h = self.cfg.screen_width, self.cfg.screen_height
        xs = self._stars[:, 0] - self.camera.x
        ys = self._stars[:, 1] - self.camera.y
        visible = (xs >= 0) & (xs < w) & (ys >= 0) & (ys < h)
        for x, y, grey in zip(xs[visible], ys[visible], self._stars[visible, 2]):
            g = int(grey)
            self.screen.set_at((int(x), int(y)), (g, g, g))

    def _draw_asteroids(self):
        for obstacle in self.sim.obstacles:
            pygame.draw.circle(self.screen, (136, 136, 136), self._to_screen(obstacle.center), int(obstacle.radius))

    def _draw_ship(self, ship: Ship):
        """Draw a ship as a triangle, nose along its rotation."""
        if not ship.alive:
            return

        heading = rotation_to_heading(ship.rotation)
        length = 15.0
        points = [
            ship.position + Vector2D.from_polar(heading, length),
            ship.position + Vector2D.from_polar(heading + 2.5, length * 0.7),
            ship.position + Vector2D.from_polar(heading - 2.5, length * 0.7),
        ]
        pygame.draw.polygon(self.screen, ship.color, [self._to_screen(p) for p in points])

    def _draw_torpedo(self, torpedo):
        """Draw a torpedo, plus a target marker for the player's own."""
        if not torpedo.alive:
            return

        heading = rotation_to_heading(torpedo.rotation)
        tail = torpedo.position - Vector2D.from_polar(heading, 5.0)
        nose = torpedo.position + Vector2D.from_polar(heading, 5.0)
        pygame.draw.line(self.screen, (255, 0, 0), self._to_screen(tail), self._to_screen(nose), 2)

        if torpedo.owner is self.sim.player:
            x, y = self._to_screen(torpedo.target)
            color = (119, 0, 0)
            pygame.draw.line(self.screen, color, (x - 4, y - 4), (x + 4, y + 4), 2)
            pygame.draw.line(self.screen, color, (x + 4, y - 4), (x - 4, y + 4), 2)

    def _draw_explosion(self, explosion):
        """Explosion fades from bright to dark red over its lifetime."""
        p = 1.0 - (1.0 - explosion.progress) ** 3
        red = int(255 + (119 - 255) * p)
        pygame.draw.circle(self.screen, (red, 0, 0), self._to_screen(explosion.position), int(explosion.radius))

    def _draw_marker(self, robot: Ship):
        """Point at an off-screen robot from the edge of the screen."""
        if not robot.alive:
            return

        w, h = self.cfg.screen_width, self.cfg.screen_height
        sx, sy = self._to_screen(robot.position)
        if 0 <= sx < w and 0 <= sy < h:
            return

        px, py = self._to_screen(self.sim.player.position)
        dx, dy = sx - px, sy - py
        scale = min(
            ((w - 10 - px) / dx if dx > 0 else (10 - px) / dx) if dx else math.inf,
            ((h - 10 - py) / dy if dy > 0 else (10 - py) / dy) if dy else math.inf,
        )
        mx, my = px + dx * scale, py + dy * scale

        angle = math.atan2(dy, dx)
        points = [
            (mx + math.cos(angle) * 10, my + math.sin(angle) * 10),
            (mx + math.cos(angle + 2.4) * 8, my + math.sin(angle + 2.4) * 8),
            (mx + math.cos(angle - 2.4) * 8, my + math.sin(angle - 2.4) * 8),
        ]
        pygame.draw.polygon(self.screen, robot.color, points)

    def _draw_hud(self):
        """Draw heads-up display."""
        sim = self.sim
        text = f"Bays:{sim.player.torpedo_bays_ready}/{sim.player.torpedo_bays_max}  Lives:{sim.lives_remaining}"
        if not sim.player.alive and sim.lives_remaining > 0:
            text += "  RESPAWNING"
        surface = self.font.render(text, True, (200, 200, 200))
        self.screen.blit(surface, (10, 10))

        text = f"Robots: {sim.robots_alive}"
        surface = self.font.render(text, True, (255, 100, 100))
        self.screen.blit(surface, (self.cfg.screen_width - 110, 10))

        if sim.state == GameState.GAME_OVER:
            message = "You win!" if sim.outcome == Outcome.WIN else "You lose!"
            surface = self.big_font.render(message, True, (255, 255, 255))
            rect = surface.get_rect(center=(self.cfg.screen_width // 2, self.cfg.screen_height // 2))
            self.screen.blit(surface, rect)

    def close(self):
        """Clean up resources."""
        if self.sim is not None:
            self.sim.cleanup()
        if self.screen is not None and PYGAME_AVAILABLE:
            pygame.display.quit()
            pygame.quit()
            self.screen = None
            self.clock = None
