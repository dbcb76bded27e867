"""
Environment wrapper around the Jest engine for RL.

Design:
- Single-agent view: one learning seat per env instance.
- Episode = one full game. Reward is given only at the end of the game and
  equals the final (variant) points of the learning seat.
- At each step, the env exposes a decision point for the learning seat:
  - Hiding decision when it is dealt two cards.
  - Drafting decision whenever it is its turn to pick.
- Other seats use decision providers (RandomStrategy by default); any
  ``Policy`` can be plugged in through ``PolicyProvider``.
"""
from __future__ import annotations

import random
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .agents import DecisionProvider, Policy, RandomStrategy, request_choice
from .deal import deal_round, place_offer
from .deck import Card
from .env import (
    NUM_ACTIONS,
    PHASE_HIDE,
    PHASE_PICK,
    encode_hide_observation,
    encode_pick_observation,
    hide_choice_for_action,
    candidate_index_for_action,
    legal_action_mask_hide,
    legal_action_mask_pick,
    pick_action,
)
from .game import DraftRound, Game, GameResult, Phase, end_round, finish_game, start_round
from .players import Candidate, Player
from .variants import variant_by_name


@dataclass
class StepResult:
    """Container returned by JestEnv.step/reset for clarity."""

    obs: List[float]
    reward: float
    done: bool
    info: dict
    legal_actions_mask: List[bool]


@dataclass
class PolicyProvider:
    """
    Decision provider driven by a ``Policy`` over the global action space.

    Illegal actions are passed on as out-of-range answers, so the engine's
    retry / DecisionContractError handling applies to them.
    """

    policy: Policy

    def choose_hidden_card(self, game: Game, player: Player, card1: Card, card2: Card) -> int:
        obs = encode_hide_observation(game, player, card1, card2)
        action = self.policy.act(obs, legal_action_mask_hide())
        return action + 1

    def choose_pick_card(self, game: Game, player: Player, candidates: Sequence[Candidate]) -> int:
        obs = encode_pick_observation(game, player)
        action = self.policy.act(obs, legal_action_mask_pick(game, player, candidates))
        for i, cand in enumerate(candidates, start=1):
            if pick_action(game, player, cand) == action:
                return i
        return 0


class JestEnv:
    """
    Jest environment (single learning seat, full game episodes).

    Public API (minimal, Gym-like but without external dependency):
      - reset() -> StepResult          # start new game, first decision for learning seat
      - step(action: int) -> StepResult
    """

    def __init__(
        self,
        num_players: int = 4,
        learning_player: int = 0,
        variant: str = "Classic",
        include_expansion: bool = False,
        opponents: Sequence[DecisionProvider] | None = None,
        rng: Optional[random.Random] = None,
        max_decision_attempts: int = 5,
    ) -> None:
        assert num_players in (3, 4)
        assert 0 <= learning_player < num_players
        self.num_players = num_players
        self.learning_player = learning_player
        self.variant_name = variant
        self.include_expansion = include_expansion
        self.rng = rng or random.Random()
        self.max_decision_attempts = max_decision_attempts
        if opponents is None:
            opponents = [RandomStrategy(seed=self.rng.randrange(2**32)) for _ in range(num_players - 1)]
        if len(opponents) != num_players - 1:
            raise ValueError(f"Expected {num_players - 1} opponents, got {len(opponents)}")
        self._providers: List[Optional[DecisionProvider]] = list(opponents)
        self._providers.insert(learning_player, None)

        self.game: Optional[Game] = None
        self.result: Optional[GameResult] = None
        self._hands: List[Tuple[Player, List[Card]]] = []
        self._hand_pos: int = 0
        self._draft: Optional[DraftRound] = None
        self._phase: str = "idle"  # "hide", "pick", "done"

    @property
    def learner(self) -> Player:
        assert self.game is not None
        return self.game.players[self.learning_player]

    # ---- Public API ----

    def reset(self) -> StepResult:
        """Start a new game and return the first decision for the learning seat."""
        names = [f"P{i}" for i in range(self.num_players)]
        self.game = Game.new(
            names,
            variant=variant_by_name(self.variant_name),
            include_expansion=self.include_expansion,
            rng=self.rng,
        )
        self.result = None
        self._start_round()
        return self._advance()

    def step(self, action: int) -> StepResult:
        """
        Apply an action for the learning seat at the current decision point.

        - Hiding decision: ``action`` must be 0 or 1.
        - Drafting decision: ``action`` must be legal under the current mask.
        """
        if self._phase == PHASE_HIDE:
            player, hand = self._hands[self._hand_pos]
            place_offer(self.game, player, hand, hide_choice_for_action(action))
            self._hand_pos += 1
            return self._advance()
        if self._phase == PHASE_PICK:
            assert self._draft is not None
            cands = self._draft.candidates()
            self._draft.pick(candidate_index_for_action(self.game, self.learner, cands, action))
            return self._advance()
        # If phase is "done", any further step just re-emits terminal state
        return StepResult(
            obs=[],
            reward=0.0,
            done=True,
            info={"phase": "done"},
            legal_actions_mask=[False] * NUM_ACTIONS,
        )

    # ---- Internal helpers ----

    def _start_round(self) -> None:
        start_round(self.game)
        self._hands = deal_round(self.game, self.rng)
        self._hand_pos = 0
        self._draft = None
        self._phase = PHASE_HIDE

    def _provider(self, player: Player) -> DecisionProvider:
        provider = self._providers[self.game.seat_of(player)]
        assert provider is not None
        return provider

    def _advance(self) -> StepResult:
        """Simulate other seats until the learning seat must act, or the game ends."""
        game = self.game
        assert game is not None
        while True:
            if self._phase == PHASE_HIDE:
                while self._hand_pos < len(self._hands):
                    player, hand = self._hands[self._hand_pos]
                    if len(hand) == 2 and player is self.learner:
                        return self._decision(
                            encode_hide_observation(game, player, hand[0], hand[1]),
                            legal_action_mask_hide(),
                            PHASE_HIDE,
                        )
                    choice = None
                    if len(hand) == 2:
                        provider = self._provider(player)
                        choice = request_choice(
                            lambda: provider.choose_hidden_card(game, player, hand[0], hand[1]),
                            player, 1, 2, self.max_decision_attempts,
                        )
                    place_offer(game, player, hand, choice)
                    self._hand_pos += 1
                self._draft = DraftRound(game)
                self._draft.start()
                self._phase = PHASE_PICK

            draft = self._draft
            while draft.phase is Phase.PLAYER_TURN:
                player = draft.current
                cands = draft.candidates()
                if player is self.learner:
                    return self._decision(
                        encode_pick_observation(game, player),
                        legal_action_mask_pick(game, player, cands),
                        PHASE_PICK,
                    )
                provider = self._provider(player)
                index = request_choice(
                    lambda: provider.choose_pick_card(game, player, cands),
                    player, 1, len(cands), self.max_decision_attempts,
                )
                draft.pick(index)

            end_round(game, draft)
            if game.deck and draft.drafted:
                self._start_round()
                continue
            return self._finish()

    def _decision(self, obs: List[float], mask: List[bool], phase: str) -> StepResult:
        self._phase = phase
        return StepResult(
            obs=obs,
            reward=0.0,
            done=False,
            info={"phase": phase, "round": self.game.round_number},
            legal_actions_mask=mask,
        )

    def _finish(self) -> StepResult:
        self.result = finish_game(self.game)
        self._phase = "done"
        learner = self.learner
        return StepResult(
            obs=[],
            reward=float(self.result.points[learner.name]),
            done=True,
            info={
                "phase": "done",
                "points": dict(self.result.points),
                "winner": self.result.winner.name if self.result.winner else None,
                "rounds_played": self.result.rounds_played,
            },
            legal_actions_mask=[False] * NUM_ACTIONS,
        )


__all__ = ["StepResult", "PolicyProvider", "JestEnv"]
