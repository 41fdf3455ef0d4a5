"""
Tests for the arena simulation.

Tests cover:
1. Round layout and the state machine
2. Player input: taps, swipes and steering
3. Win and loss, respawning and timer cleanup
4. Determinism under a fixed seed
"""

import math

import pytest

from torpedo_arena.combat import Explosion
from torpedo_arena.config import Config, GameConfig
from torpedo_arena.physics import Vector2D
from torpedo_arena.simulation import GameState, Outcome, Simulation


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def sim():
    return Simulation(Config(seed=11))


@pytest.fixture
def running(sim):
    sim.start()
    return sim


def blast_at(sim, position):
    """Drop an active explosion into the arena."""
    blast_time = sim.cfg.torpedo_blast_time
    sim.torpedo_manager.explosions.append(
        Explosion(
            position=position.copy(),
            radius=sim.cfg.explosion_radius,
            lifetime=blast_time,
            remaining_lifetime=blast_time,
        )
    )


# =============================================================================
# LAYOUT AND STATE
# =============================================================================

class TestLayout:

    def test_player_at_center(self, sim):
        assert sim.player.ship_id == 0
        assert sim.player.position == Vector2D(4000, 3000)
        assert not sim.player.is_robot

    def test_robots_on_ring(self, sim):
        assert [robot.ship_id for robot in sim.robots] == [1, 2, 3, 4]
        for i, robot in enumerate(sim.robots):
            expected = Vector2D(4000, 3000) + Vector2D.from_polar(i * math.pi / 2, 400)
            assert robot.position.x == pytest.approx(expected.x)
            assert robot.position.y == pytest.approx(expected.y)
            assert robot.is_robot
            assert robot.torpedo_bays_ready == 3

    def test_robot_colors_distinct(self, sim):
        colors = [robot.color for robot in sim.robots]
        assert len(set(colors)) == len(colors)

    def test_asteroids_placed(self):
        sim = Simulation(Config(game=GameConfig(asteroid_count=5)))
        assert len(sim.obstacles) == 5
        for asteroid in sim.obstacles:
            assert 10 <= asteroid.radius <= 50

    def test_nothing_happens_before_start(self, sim):
        assert sim.state == GameState.BEFORE_START
        assert sim.step() == []
        assert sim.tick_count == 0
        assert sim.tap_at(0, 0) is None

    def test_start(self, sim):
        sim.start()
        assert sim.state == GameState.RUNNING
        assert all(robot.ai.running for robot in sim.robots)
        assert sim.scheduler.pending == 3 * len(sim.robots)

    def test_start_twice_is_noop(self, running):
        running.start()
        assert running.scheduler.pending == 3 * len(running.robots)


# =============================================================================
# PLAYER INPUT
# =============================================================================

class TestPlayerInput:

    def test_tap_fires(self, running):
        torpedo = running.tap_at(4100, 3000)
        assert torpedo is not None
        assert torpedo.owner is running.player
        assert running.player.torpedo_bays_ready == 2
        assert torpedo.torpedo_id in running.torpedoes

    def test_short_swipe_is_tap(self, running):
        torpedo = running.swipe(Vector2D(4100, 3000), Vector2D(4105, 3005))
        assert torpedo is not None
        assert torpedo.target == Vector2D(4105, 3005)

    def test_long_swipe_steers(self, running):
        assert running.swipe(Vector2D(0, 0), Vector2D(100, 0)) is None
        assert running.player.desired_rotation == pytest.approx(math.pi / 2)
        assert running.player.desired_velocity.x == pytest.approx(140)
        assert running.player.desired_velocity.y == pytest.approx(0, abs=1e-9)
        assert running.torpedoes == {}

    def test_player_moves_after_steering(self, running):
        running.steer_player(0.0)
        for _ in range(60):
            running.step()
        assert running.player.position.x > 4000

    def test_dead_player_cannot_fire(self, running):
        running.player.destroy()
        assert running.tap_at(4100, 3000) is None


# =============================================================================
# ROUND OUTCOME
# =============================================================================

class TestOutcome:

    def test_win_when_every_robot_is_gone(self, running):
        for robot in running.robots:
            robot.destroy()
        running.step()

        assert running.state == GameState.GAME_OVER
        assert running.outcome == Outcome.WIN
        assert not any(robot.ai.running for robot in running.robots)

    def test_lose_on_last_life(self):
        sim = Simulation(Config(game=GameConfig(player_lives=1)))
        sim.start()
        blast_at(sim, sim.player.position)

        destroyed = sim.step()

        assert [ship for ship, _ in destroyed] == [sim.player]
        assert sim.state == GameState.GAME_OVER
        assert sim.outcome == Outcome.LOSE
        assert sim.lives_remaining == 0

    def test_step_after_game_over_is_noop(self, running):
        for robot in running.robots:
            robot.destroy()
        running.step()
        ticks = running.tick_count
        running.step()
        assert running.tick_count == ticks

    def test_player_respawns_with_lives_left(self):
        sim = Simulation(Config(game=GameConfig(player_lives=2)))
        sim.start()
        blast_at(sim, sim.player.position)
        sim.step()

        assert not sim.player.alive
        assert sim.lives_remaining == 1
        assert sim.state == GameState.RUNNING

        for _ in range(150):
            sim.step()
        assert not sim.player.alive

        for _ in range(50):
            sim.step()
        assert sim.player.alive
        assert sim.player.position == Vector2D(4000, 3000)
        assert sim.player.torpedo_bays_ready == 3

    def test_destroyed_robot_timers_cancelled(self, running):
        robot = running.robots[0]
        blast_at(running, robot.position)
        running.step()

        assert not robot.alive
        assert not robot.ai.running
        assert running.scheduler.cancel_owner(robot) == 0
        assert running.scheduler.pending == 3 * (len(running.robots) - 1)
        assert robot.velocity == Vector2D(0, 0)


# =============================================================================
# LIFECYCLE
# =============================================================================

class TestLifecycle:

    def test_cleanup_cancels_everything(self, running):
        running.tap_at(4100, 3000)
        running.cleanup()

        assert running.scheduler.pending == 0
        assert running.torpedoes == {}
        assert running.robots == []
        assert running.player is None

    def test_restart(self, running):
        running.tap_at(4100, 3000)
        for _ in range(10):
            running.step()
        running.restart()

        assert running.state == GameState.RUNNING
        assert running.tick_count == 0
        assert running.torpedoes == {}
        assert running.player.torpedo_bays_ready == 3
        assert running.scheduler.pending == 3 * len(running.robots)


# =============================================================================
# DETERMINISM
# =============================================================================

class TestDeterminism:

    def test_same_seed_same_round(self):
        def play(seed):
            sim = Simulation(Config(seed=seed))
            sim.start()
            for _ in range(900):
                sim.step()
            return (
                [(ship.position.x, ship.position.y) for ship in sim.ships],
                sorted(sim.torpedoes),
                sim.tick_count,
            )

        assert play(5) == play(5)
