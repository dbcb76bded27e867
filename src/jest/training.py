"""
PPO training of a Jest seat on ``JestEnv``.

One learning seat plays full games against fixed decision providers; the
only reward is the seat's final variant points. Rollouts remember whether a
step was a hiding or a drafting decision so the two heads of
``JestActorCritic`` can be watched separately (``hide_entropy`` /
``pick_entropy``), and finished games are summarised (points, win, rounds).

Checkpoint layout:
  - policy.pt   : model state_dict
  - config.json : version, policy config, PPO config and the table it was
                  trained at (seat count, variant, expansion)
"""
from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Sequence, Tuple

import numpy as np
import torch
from torch import nn

from . import __version__
from .env import OBS_SIZE, PHASE_HIDE, PHASE_PICK
from .env_game import JestEnv, StepResult
from .models import JestActorCritic, PolicyConfig

logger = logging.getLogger(__name__)

KNOWN_ARCHS = ("jest_two_head_v1",)


@dataclass
class Transition:
    """One decision of the learning seat."""

    obs: Sequence[float]
    action: int
    reward: float
    value: float
    log_prob: float
    done: bool
    legal_actions_mask: Sequence[bool]
    phase: str


@dataclass
class EpisodeSummary:
    points: int
    won: bool
    rounds: int


@dataclass
class Rollout:
    transitions: List[Transition] = field(default_factory=list)
    episodes: List[EpisodeSummary] = field(default_factory=list)


@dataclass
class PPOConfig:
    """Hyperparameters for PPO training."""

    gamma: float = 0.99
    gae_lambda: float = 0.95
    clip_coef: float = 0.2
    value_coef: float = 0.5
    entropy_coef: float = 0.01
    learning_rate: float = 3e-4
    batch_size: int = 1024
    minibatch_size: int = 128
    update_epochs: int = 4
    max_grad_norm: float = 0.5


def observation_tensor(rows: Sequence[Sequence[float]], device: torch.device) -> torch.Tensor:
    """Stack decision observations; every row must be a full Jest observation."""
    for row in rows:
        if len(row) != OBS_SIZE:
            raise ValueError(f"Expected a {OBS_SIZE}-value observation, got {len(row)} values")
    return torch.tensor([list(r) for r in rows], dtype=torch.float32, device=device)


def mask_tensor(masks: Sequence[Sequence[bool]], device: torch.device) -> torch.Tensor:
    return torch.from_numpy(np.array([list(m) for m in masks], dtype=bool)).to(device)


# ---- Checkpoints ----


def save_checkpoint(
    model: JestActorCritic,
    policy_cfg: PolicyConfig,
    directory: str | Path,
    ppo_cfg: PPOConfig | None = None,
    table: Dict[str, Any] | None = None,
) -> Path:
    out_dir = Path(directory)
    out_dir.mkdir(parents=True, exist_ok=True)
    torch.save(model.state_dict(), out_dir / "policy.pt")
    meta: Dict[str, Any] = {"version": __version__, "policy_config": asdict(policy_cfg)}
    if ppo_cfg is not None:
        meta["ppo_config"] = asdict(ppo_cfg)
    if table is not None:
        meta["table"] = table
    with (out_dir / "config.json").open("w", encoding="utf-8") as f:
        json.dump(meta, f, indent=2)
    logger.info("Saved checkpoint to %s", out_dir)
    return out_dir


def load_checkpoint(
    directory: str | Path,
    device: torch.device | None = None,
) -> Tuple[JestActorCritic, PolicyConfig, Dict[str, Any]]:
    """
    Load a model saved by ``save_checkpoint``, in eval mode, with its policy
    config and the raw metadata.
    """
    device = device or torch.device("cpu")
    ckpt_dir = Path(directory)
    with (ckpt_dir / "config.json").open("r", encoding="utf-8") as f:
        meta = json.load(f)
    policy_cfg = PolicyConfig(**meta.get("policy_config", {}))
    if policy_cfg.arch_name not in KNOWN_ARCHS:
        raise ValueError(f"Unknown policy architecture {policy_cfg.arch_name!r} in {ckpt_dir}")
    model = policy_cfg.build().to(device)
    model.load_state_dict(torch.load(ckpt_dir / "policy.pt", map_location=device))
    model.eval()
    return model, policy_cfg, meta


class JestPPOTrainer:
    """
    PPO trainer for a single-seat JestEnv.

    Minimal and CPU-first: one learning seat against fixed opponents.
    """

    def __init__(
        self,
        env: JestEnv,
        cfg: PPOConfig | None = None,
        policy_cfg: PolicyConfig | None = None,
        device: torch.device | None = None,
    ) -> None:
        self.env = env
        self.cfg = cfg or PPOConfig()
        self.policy_cfg = policy_cfg or PolicyConfig()
        self.device = device or torch.device("cpu")
        self.model = self.policy_cfg.build().to(self.device)
        self.optimizer = torch.optim.Adam(self.model.parameters(), lr=self.cfg.learning_rate)

    def table(self) -> Dict[str, Any]:
        return {
            "num_players": self.env.num_players,
            "learning_player": self.env.learning_player,
            "variant": self.env.variant_name,
            "include_expansion": self.env.include_expansion,
        }

    def save_checkpoint(self, directory: str | Path) -> Path:
        return save_checkpoint(self.model, self.policy_cfg, directory, self.cfg, self.table())

    # ---- Rollouts ----

    def _act(self, step: StepResult) -> Tuple[int, float, float]:
        obs = observation_tensor([step.obs], self.device)
        mask = mask_tensor([step.legal_actions_mask], self.device)
        with torch.no_grad():
            dist, value = self.model.distribution(obs, mask)
            action = dist.sample()
            log_prob = dist.log_prob(action)
        return int(action.item()), float(log_prob.item()), float(value.item())

    def _summarise(self, step: StepResult) -> EpisodeSummary:
        name = self.env.learner.name
        return EpisodeSummary(
            points=int(step.info["points"][name]),
            won=step.info.get("winner") == name,
            rounds=int(step.info.get("rounds_played", 0)),
        )

    def _collect_rollouts(self) -> Rollout:
        """Play games until ``batch_size`` decisions of the learning seat are collected."""
        rollout = Rollout()
        step = self.env.reset()
        while len(rollout.transitions) < self.cfg.batch_size:
            action, log_prob, value = self._act(step)
            next_step = self.env.step(action)
            rollout.transitions.append(
                Transition(
                    obs=list(step.obs),
                    action=action,
                    reward=float(next_step.reward),
                    value=value,
                    log_prob=log_prob,
                    done=bool(next_step.done),
                    legal_actions_mask=list(step.legal_actions_mask),
                    phase=step.info["phase"],
                )
            )
            step = next_step
            if step.done:
                rollout.episodes.append(self._summarise(step))
                step = self.env.reset()
        return rollout

    def _compute_advantages(
        self,
        transitions: Sequence[Transition],
    ) -> Tuple[torch.Tensor, torch.Tensor]:
        """GAE advantages and returns; an unfinished last game bootstraps from 0."""
        rewards = torch.tensor([t.reward for t in transitions], dtype=torch.float32, device=self.device)
        values = torch.tensor([t.value for t in transitions] + [0.0], dtype=torch.float32, device=self.device)
        not_done = 1.0 - torch.tensor([t.done for t in transitions], dtype=torch.float32, device=self.device)

        advantages = torch.zeros(len(transitions), dtype=torch.float32, device=self.device)
        gae = 0.0
        for t in reversed(range(len(transitions))):
            delta = rewards[t] + self.cfg.gamma * values[t + 1] * not_done[t] - values[t]
            gae = delta + self.cfg.gamma * self.cfg.gae_lambda * not_done[t] * gae
            advantages[t] = gae
        return advantages, advantages + values[:-1]

    def _phase_entropy(
        self,
        obs: torch.Tensor,
        masks: torch.Tensor,
        phases: Sequence[str],
    ) -> Dict[str, float]:
        with torch.no_grad():
            dist, _ = self.model.distribution(obs, masks)
            entropy = dist.entropy()
        out: Dict[str, float] = {}
        for phase in (PHASE_HIDE, PHASE_PICK):
            rows = [i for i, p in enumerate(phases) if p == phase]
            out[f"{phase}_entropy"] = float(entropy[rows].mean().item()) if rows else 0.0
        return out

    def update(self, seed: int | None = None) -> dict:
        """
        Run one PPO update cycle: collect rollouts, optimise, and report losses,
        per-phase entropy and the results of the games played.
        """
        if seed is not None:
            torch.manual_seed(seed)
            np.random.seed(seed % (2**32))
        rollout = self._collect_rollouts()
        transitions = rollout.transitions
        advantages, returns = self._compute_advantages(transitions)
        advantages = (advantages - advantages.mean()) / (advantages.std() + 1e-8)

        obs = observation_tensor([t.obs for t in transitions], self.device)
        masks = mask_tensor([t.legal_actions_mask for t in transitions], self.device)
        actions = torch.tensor([t.action for t in transitions], dtype=torch.long, device=self.device)
        old_log_probs = torch.tensor([t.log_prob for t in transitions], dtype=torch.float32, device=self.device)

        idxs = np.arange(len(transitions))
        stats: dict = {}
        for _ in range(self.cfg.update_epochs):
            np.random.shuffle(idxs)
            for start in range(0, len(idxs), self.cfg.minibatch_size):
                mb = torch.as_tensor(idxs[start:start + self.cfg.minibatch_size], device=self.device)
                dist, values = self.model.distribution(obs[mb], masks[mb])
                log_probs = dist.log_prob(actions[mb])
                entropy = dist.entropy().mean()

                ratio = (log_probs - old_log_probs[mb]).exp()
                clipped = torch.clamp(ratio, 1.0 - self.cfg.clip_coef, 1.0 + self.cfg.clip_coef)
                policy_loss = -torch.min(ratio * advantages[mb], clipped * advantages[mb]).mean()
                value_loss = nn.functional.mse_loss(values, returns[mb])
                loss = policy_loss + self.cfg.value_coef * value_loss - self.cfg.entropy_coef * entropy

                self.optimizer.zero_grad()
                loss.backward()
                nn.utils.clip_grad_norm_(self.model.parameters(), self.cfg.max_grad_norm)
                self.optimizer.step()

                stats = {
                    "loss": float(loss.item()),
                    "policy_loss": float(policy_loss.item()),
                    "value_loss": float(value_loss.item()),
                    "entropy": float(entropy.item()),
                }

        stats.update(self._phase_entropy(obs, masks, [t.phase for t in transitions]))
        episodes = rollout.episodes
        stats["hide_decisions"] = sum(1 for t in transitions if t.phase == PHASE_HIDE)
        stats["pick_decisions"] = sum(1 for t in transitions if t.phase == PHASE_PICK)
        stats["episodes"] = len(episodes)
        stats["mean_return"] = sum(e.points for e in episodes) / len(episodes) if episodes else 0.0
        stats["win_rate"] = sum(e.won for e in episodes) / len(episodes) if episodes else 0.0
        stats["mean_rounds"] = sum(e.rounds for e in episodes) / len(episodes) if episodes else 0.0
        logger.debug("PPO update: %s", stats)
        return stats


__all__ = [
    "Transition",
    "EpisodeSummary",
    "Rollout",
    "PPOConfig",
    "JestPPOTrainer",
    "observation_tensor",
    "mask_tensor",
    "save_checkpoint",
    "load_checkpoint",
]
