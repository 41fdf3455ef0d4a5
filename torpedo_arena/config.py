"""
Torpedo Arena Configuration

All tunable game constants in one place.
"""

import math
from dataclasses import dataclass, field, fields
from typing import Iterable, List


DIFFICULTIES = ("easy", "hard")


@dataclass
class GameConfig:
    """Arena, ship and torpedo configuration."""

    # Arena (pixels)
    boundary_width: int = 8000
    boundary_height: int = 6000

    # Ship motion
    max_ship_velocity: float = 140.0  # pixels per second
    ship_turn_rate: float = 0.1  # radians, rotation snap step per tick
    ship_rotation_lerp: float = 0.1  # fraction of remaining turn per tick
    ship_acceleration_rate: float = 2.0  # pixels per second, velocity snap step
    ship_velocity_lerp: float = 0.1  # fraction of remaining velocity change per tick

    # Torpedoes
    explosion_radius: float = 40.0
    torpedo_speed: float = 200.0  # pixels per second
    torpedo_blast_time: float = 0.7  # seconds
    torpedo_bays: int = 3
    torpedo_reload_time: float = 5.0  # seconds
    torpedo_lifetime: float = 30.0  # seconds before self-detonation
    torpedo_arrival_epsilon: float = 2.0

    # Ships
    enemy_ship_count: int = 4
    enemy_spawn_radius: float = 400.0
    player_lives: int = 3
    respawn_time: float = 3.0  # seconds

    # Obstacles
    asteroid_count: int = 0
    asteroid_min_size: float = 10.0
    asteroid_max_size: float = 50.0

    difficulty: str = "hard"

    # Simulation
    fps: int = 60
    max_episode_steps: int = 36000

    # Rendering
    screen_width: int = 1024
    screen_height: int = 768
    star_count: int = 6000

    @property
    def dt(self) -> float:
        return 1.0 / self.fps

    @property
    def center(self):
        return (self.boundary_width / 2, self.boundary_height / 2)


@dataclass
class AIConfig:
    """Robot ship behaviour timings and thresholds."""

    # Timer intervals (seconds)
    course_change_interval: float = 4.0
    fire_interval: float = 6.0
    defensive_fire_interval: float = 2.0
    interval_jitter: float = 0.5

    # Multiplier applied to every interval on easy difficulty
    easy_interval_multiplier: float = 2.0

    # Course change
    pursuit_distance: float = 500.0  # farther than this -> head for the player
    pursuit_cone: float = math.pi / 3  # random offset around the player bearing

    # Defensive fire band (distance from robot to inbound torpedo)
    defensive_min_distance: float = 100.0
    defensive_max_distance: float = 500.0

    # Aiming error on easy difficulty (pixels, each axis)
    easy_aim_slack: float = 100.0


@dataclass
class RewardConfig:
    """Reward function weights for the Gymnasium environment."""

    kill_robot: float = 10.0
    player_destroyed: float = -10.0

    win_bonus: float = 50.0
    lose_penalty: float = -50.0

    time_penalty: float = -0.001  # per step


@dataclass
class Config:
    """Master configuration combining all sub-configs."""

    game: GameConfig = field(default_factory=GameConfig)
    ai: AIConfig = field(default_factory=AIConfig)
    reward: RewardConfig = field(default_factory=RewardConfig)
    seed: int = 42

    def __post_init__(self):
        """Validate configuration."""
        game = self.game
        if game.difficulty not in DIFFICULTIES:
            raise ValueError(f"Unknown difficulty: {game.difficulty}")
        for name in ("max_ship_velocity", "torpedo_speed", "explosion_radius", "fps"):
            if getattr(game, name) <= 0:
                raise ValueError(f"{name} must be positive")
        for name in ("torpedo_bays", "enemy_ship_count", "player_lives", "asteroid_count"):
            if getattr(game, name) < 0:
                raise ValueError(f"{name} must not be negative")
        if game.asteroid_min_size > game.asteroid_max_size:
            raise ValueError("asteroid_min_size exceeds asteroid_max_size")
        if self.ai.defensive_min_distance > self.ai.defensive_max_distance:
            raise ValueError("defensive_min_distance exceeds defensive_max_distance")


def get_default_config() -> Config:
    """Return default configuration."""
    return Config()


def _coerce(raw: str, current):
    if isinstance(current, bool):
        if raw.lower() in ("1", "true", "yes", "on"):
            return True
        if raw.lower() in ("0", "false", "no", "off"):
            return False
        raise ValueError(f"Not a boolean: {raw}")
    if isinstance(current, int):
        return int(raw)
    if isinstance(current, float):
        return float(raw)
    return raw


def apply_overrides(config: Config, overrides: Iterable[str]) -> Config:
    """
    Apply KEY=VALUE overrides to a configuration and re-validate it.

    Keys are looked up in the game, ai and reward sections in that order,
    or may be qualified explicitly, e.g. ``ai.fire_interval=3``.
    """
    sections = {"game": config.game, "ai": config.ai, "reward": config.reward}

    for item in overrides:
        if "=" not in item:
            raise ValueError(f"Override must look like KEY=VALUE: {item}")
        key, raw = (part.strip() for part in item.split("=", 1))

        if "." in key:
            section_name, name = key.split(".", 1)
            candidates = [sections[section_name]] if section_name in sections else []
        else:
            name = key
            candidates = list(sections.values())

        target = next(
            (s for s in candidates if name in {f.name for f in fields(s)}),
            None,
        )
        if target is None:
            raise ValueError(f"Unknown configuration key: {key}")

        try:
            value = _coerce(raw, getattr(target, name))
        except ValueError as e:
            raise ValueError(f"Bad value for {key}: {raw}") from e
        setattr(target, name, value)

    config.__post_init__()
    return config


def override_keys(config: Config) -> List[str]:
    """List every key accepted by :func:`apply_overrides`."""
    return [
        f"{section}.{f.name}"
        for section, obj in (("game", config.game), ("ai", config.ai), ("reward", config.reward))
        for f in fields(obj)
    ]
