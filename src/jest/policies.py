"""
Trained checkpoints as players.

``NNPolicy`` implements the ``Policy`` protocol on top of a
``JestActorCritic``; ``provider_from_checkpoint`` seats it at an engine table
through ``PolicyProvider``; ``evaluate_policy`` plays it in ``JestEnv`` and
reports points, wins and how confident each head was.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Sequence

import torch

from .agents import Policy
from .env import PHASE_HIDE, PHASE_PICK, observation_phase
from .env_game import JestEnv, PolicyProvider
from .models import JestActorCritic, PolicyConfig
from .training import load_checkpoint, mask_tensor, observation_tensor

logger = logging.getLogger(__name__)


@dataclass
class NNPolicy(Policy):
    """
    Policy wrapper around a trained JestActorCritic network.

    Actions are sampled from the masked distribution unless
    ``deterministic`` is set, in which case the most likely legal action is
    played.
    """

    model: JestActorCritic
    policy_cfg: PolicyConfig
    device: torch.device
    deterministic: bool = False

    def probabilities(self, obs: Sequence[float], legal_actions_mask: Iterable[bool]) -> List[float]:
        """Probability of every global action; illegal actions get 0."""
        mask = list(legal_actions_mask)
        if not any(mask):
            raise ValueError("NNPolicy needs at least one legal action")
        with torch.no_grad():
            dist, _ = self.model.distribution(
                observation_tensor([obs], self.device), mask_tensor([mask], self.device)
            )
        return [float(p) for p in dist.probs.squeeze(0).tolist()]

    def act(self, obs: Sequence[float], legal_actions_mask: Iterable[bool]) -> int:  # type: ignore[override]
        probs = self.probabilities(obs, legal_actions_mask)
        if self.deterministic:
            return max(range(len(probs)), key=probs.__getitem__)
        return int(torch.multinomial(torch.tensor(probs), 1).item())


def load_policy_from_checkpoint(
    directory: str | Path,
    device: torch.device | None = None,
    deterministic: bool = False,
) -> NNPolicy:
    """Load a trained policy from ``directory`` created by JestPPOTrainer."""
    device = device or torch.device("cpu")
    model, policy_cfg, meta = load_checkpoint(directory, device=device)
    logger.info("Loaded %s trained at %s", policy_cfg.arch_name, meta.get("table", "an unknown table"))
    return NNPolicy(model=model, policy_cfg=policy_cfg, device=device, deterministic=deterministic)


def provider_from_checkpoint(
    directory: str | Path,
    device: torch.device | None = None,
    deterministic: bool = True,
) -> PolicyProvider:
    """Decision provider playing a trained checkpoint."""
    return PolicyProvider(load_policy_from_checkpoint(directory, device=device, deterministic=deterministic))


@dataclass
class EvaluationReport:
    games: int = 0
    wins: int = 0
    points: List[int] = field(default_factory=list)
    confidence: Dict[str, List[float]] = field(default_factory=lambda: {PHASE_HIDE: [], PHASE_PICK: []})

    @property
    def mean_points(self) -> float:
        return sum(self.points) / len(self.points) if self.points else 0.0

    def mean_confidence(self, phase: str) -> float:
        """Average probability the policy gave to the action it played."""
        values = self.confidence[phase]
        return sum(values) / len(values) if values else 0.0


def evaluate_policy(policy: NNPolicy, env: JestEnv, games: int) -> EvaluationReport:
    """Play ``games`` full games with ``policy`` in the learning seat of ``env``."""
    report = EvaluationReport()
    for _ in range(games):
        step = env.reset()
        while not step.done:
            probs = policy.probabilities(step.obs, step.legal_actions_mask)
            action = policy.act(step.obs, step.legal_actions_mask)
            report.confidence[observation_phase(step.obs)].append(probs[action])
            step = env.step(action)
        report.games += 1
        report.points.append(int(step.reward))
        report.wins += int(step.info.get("winner") == env.learner.name)
    return report


__all__ = [
    "NNPolicy",
    "load_policy_from_checkpoint",
    "provider_from_checkpoint",
    "EvaluationReport",
    "evaluate_policy",
]
