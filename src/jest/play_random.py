"""
Tiny CLI to run random games in the JestEnv environment.

Usage (from project root, after installing in editable mode):
    python -m jest.play_random
"""
from __future__ import annotations

import argparse
import random

from .agents import RandomAgent
from .env_game import JestEnv, StepResult


def run_random_game(num_players: int, variant: str, seed: int) -> float:
    rng = random.Random(seed)
    env = JestEnv(num_players=num_players, learning_player=0, variant=variant, rng=rng)
    agent = RandomAgent(seed=seed)

    step: StepResult = env.reset()
    total_reward = 0.0
    steps = 0

    while not step.done and steps < 10_000:
        action = agent.act(step.obs, step.legal_actions_mask)
        step = env.step(action)
        total_reward += step.reward
        steps += 1

    print(
        f"JestEnv: players={num_players}, variant={variant}, steps={steps}, "
        f"final_reward_for_player0={total_reward}, points={step.info.get('points')}"
    )
    return total_reward


def main() -> None:
    parser = argparse.ArgumentParser(description="Run random games in the Jest environment.")
    parser.add_argument(
        "--players",
        choices=["3", "4", "all"],
        default="4",
        help="Which player count to run.",
    )
    parser.add_argument("--variant", default="Classic", help="Game variant name.")
    parser.add_argument("--seed", type=int, default=42, help="Random seed for reproducibility.")
    args = parser.parse_args()

    counts = [3, 4] if args.players == "all" else [int(args.players)]
    for n in counts:
        run_random_game(n, variant=args.variant, seed=args.seed)


if __name__ == "__main__":
    main()
