"""
Tests for the scripted pilots and the command-line entry point.
"""

import numpy as np
import pytest

from torpedo_arena.agents import HeuristicPilot, RandomPilot, create_pilot
from torpedo_arena.config import Config, GameConfig
from torpedo_arena.environment import Actions, TorpedoArenaEnv
from torpedo_arena.main import build_parser, main, run_rounds


# =============================================================================
# PILOTS
# =============================================================================

class TestPilots:

    def test_create_pilot(self):
        assert isinstance(create_pilot("heuristic"), HeuristicPilot)
        assert isinstance(create_pilot("Random", np.random.default_rng(0)), RandomPilot)
        with pytest.raises(ValueError):
            create_pilot("ace")

    def test_random_pilot_actions_valid(self):
        env = TorpedoArenaEnv(Config())
        env.reset(seed=0)
        pilot = RandomPilot(np.random.default_rng(0))
        for _ in range(20):
            assert 0 <= pilot.select_action(env) < Actions.NUM_ACTIONS
        env.close()

    def test_heuristic_pilot_fires_then_waits(self):
        env = TorpedoArenaEnv(Config())
        env.reset(seed=0)
        pilot = HeuristicPilot()

        # Robots spawn 400 px away, inside the default firing range
        assert pilot.select_action(env) == Actions.FIRE
        env.step(Actions.FIRE)
        assert pilot.select_action(env) != Actions.FIRE
        env.close()


# =============================================================================
# ENTRY POINT
# =============================================================================

class TestEntryPoint:

    def test_run_rounds_counts_every_round(self):
        config = Config(game=GameConfig(max_episode_steps=120))
        results = run_rounds(config, "heuristic", rounds=2)
        assert sum(results.values()) == 2

    def test_headless_main(self):
        main(["--rounds", "1", "--set", "max_episode_steps=60", "--difficulty", "easy"])

    def test_list_keys(self, capsys):
        main(["--list-keys"])
        out = capsys.readouterr().out
        assert "game.torpedo_bays" in out

    def test_bad_override_exits(self):
        with pytest.raises(SystemExit):
            main(["--set", "warp_drive=9"])

    def test_parser_defaults(self):
        args = build_parser().parse_args([])
        assert args.rounds == 10
        assert args.pilot == "heuristic"
        assert args.overrides == []
        assert not args.play
