"""Tests for the actor-critic and the PPO trainer (skipped in effect when torch is missing)."""

import importlib
import json
import random
from pathlib import Path

import pytest


def _has_torch() -> bool:
    try:
        importlib.import_module("torch")  # noqa: F401
        return True
    except ImportError:
        return False


def test_training_module_imports_if_torch_available():
    if not _has_torch():
        return
    training = importlib.import_module("jest.training")
    assert hasattr(training, "JestPPOTrainer")


def test_phase_switches_between_hide_and_pick_heads():
    if not _has_torch():
        return

    import torch
    from jest.env import NUM_HIDE_ACTIONS, PHASE_HIDE, PHASE_PICK
    from jest.env_game import JestEnv
    from jest.models import MASKED_LOGIT, JestActorCritic
    from jest.training import mask_tensor, observation_tensor

    torch.manual_seed(0)
    model = JestActorCritic()
    env = JestEnv(num_players=3, rng=random.Random(0))
    step = env.reset()
    seen = set()
    while not step.done and len(seen) < 2:
        phase = step.info["phase"]
        obs = observation_tensor([step.obs], torch.device("cpu"))
        logits, value = model(obs)
        assert logits.shape == (1, 10)
        assert value.shape == (1,)
        hide, pick = logits[0, :NUM_HIDE_ACTIONS], logits[0, NUM_HIDE_ACTIONS:]
        if phase == PHASE_HIDE:
            assert torch.all(pick == MASKED_LOGIT)
            assert torch.all(hide > MASKED_LOGIT)
        else:
            assert torch.all(hide == MASKED_LOGIT)
        dist, _ = model.distribution(obs, mask_tensor([step.legal_actions_mask], torch.device("cpu")))
        probs = dist.probs[0].tolist()
        assert sum(p for p, legal in zip(probs, step.legal_actions_mask) if legal) == pytest.approx(1.0)
        seen.add(phase)
        step = env.step(step.legal_actions_mask.index(True))
    assert seen == {PHASE_HIDE, PHASE_PICK}


def test_seat_blocks_share_one_layout():
    if not _has_torch():
        return

    import torch
    from jest.env import MAX_SEATS, NUM_CARDS, OPPONENTS_OFFSET, SEAT_SIZE
    from jest.env_game import JestEnv
    from jest.models import seat_blocks
    from jest.training import observation_tensor

    env = JestEnv(num_players=4, rng=random.Random(2))
    step = env.reset()
    while step.info["phase"] != "pick":
        step = env.step(step.legal_actions_mask.index(True))
    obs = observation_tensor([step.obs], torch.device("cpu"))
    blocks = seat_blocks(obs)
    assert blocks.shape == (1, MAX_SEATS, SEAT_SIZE)
    assert torch.equal(blocks[0, 0, :2 * NUM_CARDS], obs[0, :2 * NUM_CARDS])
    assert torch.equal(blocks[0, 1], obs[0, OPPONENTS_OFFSET:OPPONENTS_OFFSET + SEAT_SIZE])


def test_observation_tensor_rejects_short_rows():
    if not _has_torch():
        return

    import torch
    from jest.training import observation_tensor

    with pytest.raises(ValueError):
        observation_tensor([[0.0] * 10], torch.device("cpu"))


def test_single_update_and_checkpoint(tmp_path: Path):
    if not _has_torch():
        return

    import torch
    from jest.env_game import JestEnv
    from jest.training import JestPPOTrainer, PPOConfig, load_checkpoint

    env = JestEnv(num_players=3, variant="Speed", rng=random.Random(0))
    cfg = PPOConfig(batch_size=64, minibatch_size=32, update_epochs=1)
    trainer = JestPPOTrainer(env, cfg=cfg, device=torch.device("cpu"))
    stats = trainer.update(seed=0)
    assert {"loss", "policy_loss", "value_loss", "hide_entropy", "pick_entropy", "win_rate"} <= set(stats)
    assert stats["hide_decisions"] + stats["pick_decisions"] == 64
    assert stats["hide_decisions"] > 0 and stats["pick_decisions"] > 0
    assert stats["episodes"] > 0
    assert 0.0 <= stats["win_rate"] <= 1.0

    ckpt = tmp_path / "ckpt"
    trainer.save_checkpoint(ckpt)
    assert (ckpt / "policy.pt").exists()
    assert (ckpt / "config.json").exists()

    model, policy_cfg, meta = load_checkpoint(ckpt)
    assert policy_cfg.arch_name == "jest_two_head_v1"
    assert meta["table"] == {
        "num_players": 3,
        "learning_player": 0,
        "variant": "Speed",
        "include_expansion": False,
    }
    assert not model.training


def test_unknown_architecture_is_rejected(tmp_path: Path):
    if not _has_torch():
        return

    from jest.models import PolicyConfig
    from jest.training import load_checkpoint, save_checkpoint

    cfg = PolicyConfig(hidden_dim=16, card_dim=8)
    save_checkpoint(cfg.build(), cfg, tmp_path)
    meta = json.loads((tmp_path / "config.json").read_text(encoding="utf-8"))
    meta["policy_config"]["arch_name"] = "flat_mlp_v0"
    (tmp_path / "config.json").write_text(json.dumps(meta), encoding="utf-8")
    with pytest.raises(ValueError):
        load_checkpoint(tmp_path)
