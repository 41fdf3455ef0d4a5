#!/usr/bin/env python3
"""
Torpedo Arena - Main Entry Point

Player ship against a ring of robot ships, torpedo combat in a bounded arena.

Usage:
    # Play with the mouse (tap to shoot, swipe to fly)
    torpedo-arena --play --difficulty easy

    # Watch the heuristic pilot play
    torpedo-arena --demo

    # Headless rounds with win/loss statistics
    torpedo-arena --rounds 20 --pilot heuristic --seed 7

    # Override any game constant
    torpedo-arena --play --set max_ship_velocity=180 --set enemy_ship_count=8
"""

import argparse
import logging

import numpy as np

from torpedo_arena.agents import create_pilot
from torpedo_arena.config import Config, DIFFICULTIES, apply_overrides, get_default_config, override_keys
from torpedo_arena.environment import TorpedoArenaEnv, PYGAME_AVAILABLE
from torpedo_arena.simulation import Outcome


logger = logging.getLogger(__name__)


# =============================================================================
# Human Play Mode
# =============================================================================

def human_play(config: Config):
    """
    Play against the robot ships with the mouse.

    Controls:
        Click / tap      - Fire a torpedo at the pointer
        Drag / swipe     - Fly in the drag direction at full speed
        R                - Restart game
        ESC / Q          - Quit
    """
    import pygame

    logger.info(f"Starting human play mode - Difficulty: {config.game.difficulty}")
    logger.info("Controls: click to shoot, drag to fly, R to restart, ESC to quit")

    env = TorpedoArenaEnv(config=config, render_mode="human")

    wins = 0
    losses = 0
    games_played = 0

    running = True
    while running:
        obs, info = env.reset()
        done = False

        logger.info(f"Game {games_played + 1} started - {info['robots_alive']} robots")
        env.render()

        while not done and running:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                elif event.type == pygame.KEYDOWN:
                    if event.key in (pygame.K_ESCAPE, pygame.K_q):
                        running = False
                    elif event.key == pygame.K_r:
                        done = True  # Restart
                else:
                    env.handle_pointer_event(event)

            if not running or done:
                break

            obs, reward, terminated, truncated, info = env.step(0)
            done = terminated or truncated

        if running and done and info.get("outcome") is not None:
            games_played += 1
            if info["outcome"] == Outcome.WIN:
                wins += 1
                result = "YOU WIN"
            else:
                losses += 1
                result = "YOU LOSE"

            logger.info(
                f"Game Over: {result} | Score: {wins} won, {losses} lost | "
                f"Press R to restart, ESC to quit"
            )

            # Wait for input
            waiting = True
            while waiting and running:
                env.render()
                for event in pygame.event.get():
                    if event.type == pygame.QUIT:
                        running = False
                    elif event.type == pygame.KEYDOWN:
                        if event.key in (pygame.K_ESCAPE, pygame.K_q):
                            running = False
                        elif event.key == pygame.K_r:
                            waiting = False

    env.close()

    logger.info("=" * 50)
    logger.info("FINAL SCORE")
    logger.info(f"  Won: {wins}")
    logger.info(f"  Lost: {losses}")
    logger.info(f"  Games played: {games_played}")
    logger.info("=" * 50)


# =============================================================================
# Demo / Headless Rounds
# =============================================================================

def run_rounds(config: Config, pilot_name: str, rounds: int, render: bool = False) -> dict:
    """Play rounds with a scripted pilot and report the results."""
    render_mode = "human" if render else None
    env = TorpedoArenaEnv(config=config, render_mode=render_mode)
    pilot = create_pilot(pilot_name, np.random.default_rng(config.seed))

    results = {Outcome.WIN: 0, Outcome.LOSE: 0, None: 0}
    ticks = []

    for episode in range(rounds):
        seed = config.seed + episode
        obs, info = env.reset(seed=seed)
        pilot.reset()
        done = False

        while not done:
            obs, reward, terminated, truncated, info = env.step(pilot.select_action(env))
            done = terminated or truncated

        results[info["outcome"]] += 1
        ticks.append(info["tick"])
        logger.info(
            f"Round {episode + 1}: {info['outcome'] or 'timeout'} after {info['tick']} ticks | "
            f"robots left {info['robots_alive']}, reward {info['episode_reward']:.1f}"
        )

    env.close()

    logger.info("=" * 50)
    logger.info(f"{rounds} rounds with the {pilot_name} pilot ({config.game.difficulty})")
    logger.info(f"Wins: {results[Outcome.WIN]} ({results[Outcome.WIN] / max(rounds, 1):.1%})")
    logger.info(f"Losses: {results[Outcome.LOSE]}")
    logger.info(f"Timeouts: {results[None]}")
    if ticks:
        logger.info(f"Average round length: {np.mean(ticks) / config.game.fps:.1f}s")
    logger.info("=" * 50)

    return {"wins": results[Outcome.WIN], "losses": results[Outcome.LOSE], "timeouts": results[None]}


# =============================================================================
# Main
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Torpedo Arena - torpedo combat against AI ships",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    torpedo-arena --play --difficulty easy
    torpedo-arena --demo
    torpedo-arena --rounds 20 --pilot random
    torpedo-arena --play --set torpedo_bays=5 --set ai.fire_interval=3
        """,
    )

    # Mode selection
    parser.add_argument("--play", action="store_true", help="Play against the robots (needs pygame)")
    parser.add_argument("--demo", action="store_true", help="Watch a scripted pilot play (needs pygame)")
    parser.add_argument("--list-keys", action="store_true", help="List configuration keys for --set")

    parser.add_argument(
        "--difficulty",
        choices=DIFFICULTIES,
        default=None,
        help="Robot difficulty (default: hard)",
    )
    parser.add_argument(
        "--pilot",
        choices=["heuristic", "random"],
        default="heuristic",
        help="Scripted pilot for demo and headless rounds (default: heuristic)",
    )
    parser.add_argument("--rounds", type=int, default=10, help="Headless rounds to play (default: 10)")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    parser.add_argument(
        "--set",
        dest="overrides",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Override a configuration value (repeatable)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    return parser


def main(argv=None):
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )

    config = get_default_config()
    config.seed = args.seed
    overrides = list(args.overrides)
    if args.difficulty is not None:
        overrides.append(f"game.difficulty={args.difficulty}")
    try:
        apply_overrides(config, overrides)
    except ValueError as e:
        parser.error(str(e))

    if args.list_keys:
        for key in override_keys(config):
            print(key)
        return

    if (args.play or args.demo) and not PYGAME_AVAILABLE:
        parser.error("pygame is required for --play and --demo")

    if args.play:
        human_play(config)
    elif args.demo:
        run_rounds(config, args.pilot, rounds=5, render=True)
    else:
        run_rounds(config, args.pilot, rounds=args.rounds)


if __name__ == "__main__":
    main()
