"""Smoke tests for JestEnv."""
import random

import pytest

from jest.agents import RandomAgent, SafeStrategy
from jest.env import NUM_ACTIONS, OBS_SIZE
from jest.env_game import JestEnv, PolicyProvider
from jest.errors import DecisionContractError
from jest.game import Game, play_game


@pytest.mark.parametrize("num_players", [3, 4])
@pytest.mark.parametrize("variant", ["Classic", "Speed", "High Stakes"])
def test_env_single_game_random_policy(num_players, variant):
    rng = random.Random(42)
    env = JestEnv(num_players=num_players, learning_player=1, variant=variant, rng=rng)

    step = env.reset()
    assert not step.done
    assert len(step.obs) == OBS_SIZE
    assert len(step.legal_actions_mask) == NUM_ACTIONS

    total_reward = 0.0
    steps = 0
    while not step.done and steps < 1_000:
        legal = [i for i, ok in enumerate(step.legal_actions_mask) if ok]
        assert legal, "There should always be at least one legal action"
        step = env.step(rng.choice(legal))
        total_reward += step.reward
        steps += 1

    assert step.done
    assert env.game.finished
    assert env.game.total_cards() == 17
    assert total_reward == step.info["points"][env.learner.name]
    # Further steps just repeat the terminal state
    assert env.step(0).done


def test_env_with_custom_opponents():
    env = JestEnv(num_players=3, opponents=[SafeStrategy(1), SafeStrategy(2)], rng=random.Random(0))
    step = env.reset()
    agent = RandomAgent(seed=0)
    while not step.done:
        step = env.step(agent.act(step.obs, step.legal_actions_mask))
    assert step.info["rounds_played"] >= 1


def test_env_rejects_wrong_opponent_count():
    with pytest.raises(ValueError):
        JestEnv(num_players=4, opponents=[SafeStrategy()])


def test_policy_provider_plays_full_game():
    rng = random.Random(5)
    game = Game.new(["A", "B", "C"], rng=rng)
    providers = [PolicyProvider(RandomAgent(seed=i)) for i in range(3)]
    result = play_game(game, providers, rng)
    assert game.total_cards() == 17
    assert result.winner is not None


class _AlwaysIllegal:
    def act(self, obs, legal_actions_mask):
        return 9 if not list(legal_actions_mask)[9] else 0


def test_policy_provider_illegal_actions_hit_the_contract():
    rng = random.Random(5)
    game = Game.new(["A", "B", "C"], rng=rng)
    providers = [PolicyProvider(_AlwaysIllegal()) for _ in range(3)]
    with pytest.raises(DecisionContractError):
        play_game(game, providers, rng, max_attempts=2)
