"""Torpedo Arena: player ship vs. AI ships, torpedo combat in a bounded 2D arena."""

from torpedo_arena.config import Config, GameConfig, AIConfig, RewardConfig, get_default_config
from torpedo_arena.physics import Vector2D
from torpedo_arena.intercept import solve_intercept, solve_intercept_time
from torpedo_arena.scheduler import Scheduler
from torpedo_arena.ships import Ship
from torpedo_arena.ai import AIController, GameInterface
from torpedo_arena.combat import Explosion, Obstacle, ObstacleIndex, Torpedo, TorpedoManager
from torpedo_arena.simulation import GameState, Outcome, Simulation

__all__ = [
    "Config",
    "GameConfig",
    "AIConfig",
    "RewardConfig",
    "get_default_config",
    "Vector2D",
    "solve_intercept",
    "solve_intercept_time",
    "Scheduler",
    "Ship",
    "AIController",
    "GameInterface",
    "Explosion",
    "Obstacle",
    "ObstacleIndex",
    "Torpedo",
    "TorpedoManager",
    "GameState",
    "Outcome",
    "Simulation",
]
