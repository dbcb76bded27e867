"""
Neural network models for Jest policies and value functions.

``JestActorCritic`` follows the two kinds of Jest decision instead of
treating the action space as ten unrelated outputs:

- hiding: each of the two dealt cards is scored against the table context,
  giving the logits of actions 0 and 1;
- drafting: one offer scorer, shared by every relative seat, reads that
  seat's block (jest, face-up card, hidden-card flag) and gives two logits,
  take the face-up card or take the hidden one. Seat 0 is the player's own
  offer, used by the own-offer fallback.

The phase bits of the observation switch off the head that does not apply.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import torch
from torch import nn
from torch.distributions import Categorical

from .env import (
    HIDE_CARDS_OFFSET,
    MAX_SEATS,
    NUM_CARDS,
    NUM_PICK_ACTIONS,
    OBS_SIZE,
    OPPONENTS_OFFSET,
    OWN_SIZE,
    PHASE_OFFSET,
    SEAT_SIZE,
)

MASKED_LOGIT = -1e9


class JestMLP(nn.Module):
    """Shared trunk over the whole observation."""

    def __init__(self, input_dim: int, hidden_dim: int = 128) -> None:
        super().__init__()
        self.net = nn.Sequential(
            nn.Linear(input_dim, hidden_dim),
            nn.ReLU(),
            nn.Linear(hidden_dim, hidden_dim),
            nn.ReLU(),
        )

    def forward(self, x: torch.Tensor) -> torch.Tensor:  # type: ignore[override]
        return self.net(x)


def seat_blocks(obs: torch.Tensor) -> torch.Tensor:
    """
    Offer blocks of every relative seat, shape (batch, MAX_SEATS, SEAT_SIZE).

    The own block carries the hidden card itself; it is reduced to a flag so
    all seats share one layout.
    """
    own_jest = obs[:, :NUM_CARDS]
    own_visible = obs[:, NUM_CARDS:2 * NUM_CARDS]
    own_hidden = obs[:, 2 * NUM_CARDS:OWN_SIZE].sum(dim=-1, keepdim=True).clamp(max=1.0)
    own = torch.cat([own_jest, own_visible, own_hidden], dim=-1).unsqueeze(1)
    others = obs[:, OPPONENTS_OFFSET:PHASE_OFFSET].reshape(-1, MAX_SEATS - 1, SEAT_SIZE)
    return torch.cat([own, others], dim=1)


def hiding_rows(obs: torch.Tensor) -> torch.Tensor:
    """Boolean column (batch, 1): True where the observation is a hiding decision."""
    return obs[:, PHASE_OFFSET:PHASE_OFFSET + 1] > 0.5


class JestActorCritic(nn.Module):
    """
    Combined policy + value network.

    - Input: observation tensor of shape (batch, OBS_SIZE)
    - Output:
        - logits: (batch, NUM_ACTIONS), hide logits first, then pick logits
          in ``2 + 2 * relative_seat + slot`` order
        - value:  (batch,)
    """

    def __init__(self, obs_dim: int = OBS_SIZE, hidden_dim: int = 128, card_dim: int = 32) -> None:
        super().__init__()
        if obs_dim != OBS_SIZE:
            raise ValueError(f"JestActorCritic reads the {OBS_SIZE}-value Jest observation, got obs_dim={obs_dim}")
        self.backbone = JestMLP(obs_dim, hidden_dim=hidden_dim)
        self.card_embed = nn.Linear(NUM_CARDS, card_dim)
        self.hide_head = nn.Linear(hidden_dim + card_dim, 1)
        self.seat_encoder = nn.Sequential(nn.Linear(SEAT_SIZE, card_dim), nn.ReLU())
        self.pick_head = nn.Linear(hidden_dim + card_dim, 2)
        self.value_head = nn.Linear(hidden_dim, 1)

    def hide_logits(self, obs: torch.Tensor, context: torch.Tensor) -> torch.Tensor:
        dealt = obs[:, HIDE_CARDS_OFFSET:HIDE_CARDS_OFFSET + 2 * NUM_CARDS].reshape(-1, 2, NUM_CARDS)
        ctx = context.unsqueeze(1).expand(-1, 2, -1)
        return self.hide_head(torch.cat([ctx, self.card_embed(dealt)], dim=-1)).squeeze(-1)

    def pick_logits(self, obs: torch.Tensor, context: torch.Tensor) -> torch.Tensor:
        seats = self.seat_encoder(seat_blocks(obs))
        ctx = context.unsqueeze(1).expand(-1, MAX_SEATS, -1)
        return self.pick_head(torch.cat([ctx, seats], dim=-1)).reshape(-1, NUM_PICK_ACTIONS)

    def forward(self, obs: torch.Tensor) -> Tuple[torch.Tensor, torch.Tensor]:  # type: ignore[override]
        context = self.backbone(obs)
        hiding = hiding_rows(obs)
        hide = self.hide_logits(obs, context).masked_fill(~hiding, MASKED_LOGIT)
        pick = self.pick_logits(obs, context).masked_fill(hiding, MASKED_LOGIT)
        value = self.value_head(context).squeeze(-1)
        return torch.cat([hide, pick], dim=-1), value

    def distribution(
        self,
        obs: torch.Tensor,
        legal_actions_mask: torch.Tensor,
    ) -> Tuple[Categorical, torch.Tensor]:
        """Action distribution restricted to the legal actions, and the value."""
        logits, value = self(obs)
        return Categorical(logits=logits.masked_fill(~legal_actions_mask, MASKED_LOGIT)), value


@dataclass
class PolicyConfig:
    """Metadata describing a saved policy architecture."""

    arch_name: str = "jest_two_head_v1"
    obs_dim: int = OBS_SIZE
    hidden_dim: int = 128
    card_dim: int = 32

    def build(self) -> JestActorCritic:
        return JestActorCritic(obs_dim=self.obs_dim, hidden_dim=self.hidden_dim, card_dim=self.card_dim)


__all__ = ["JestActorCritic", "JestMLP", "PolicyConfig", "seat_blocks", "hiding_rows", "MASKED_LOGIT"]
