"""
Decision providers and baseline agents.

The engine asks a ``DecisionProvider`` two kinds of questions:

- ``choose_hidden_card(game, player, card1, card2) -> 1 | 2``: which of the two
  dealt cards goes face down (1 hides ``card1``, 2 hides ``card2``).
- ``choose_pick_card(game, player, candidates) -> index``: which candidate to
  draft, 1-based into ``candidates``.

Built-in strategies are the computer players of the console game (random, safe,
risky and the adaptive switch between them). The small ``Policy`` protocol
is the contract used by learning agents: ``act(obs, legal_actions_mask)``.
"""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Dict, Iterable, List, Protocol, Sequence

from .deck import Card, Suit
from .errors import ConfigurationError, DecisionContractError
from .players import Candidate, Player

if TYPE_CHECKING:  # pragma: no cover - import cycle guard for type checking only
    from .game import Game

logger = logging.getLogger(__name__)


class DecisionProvider(Protocol):
    """Human or computer collaborator answering the engine's questions."""

    def choose_hidden_card(self, game: "Game", player: Player, card1: Card, card2: Card) -> int:
        """Return 1 to hide ``card1`` (``card2`` face up) or 2 for the reverse."""

    def choose_pick_card(self, game: "Game", player: Player, candidates: Sequence[Candidate]) -> int:
        """Return a 1-based index into ``candidates``."""


class Policy(Protocol):
    """Stateless or stateful decision policy working on flat observations."""

    def act(self, obs: Sequence[float], legal_actions_mask: Iterable[bool]) -> int:
        """
        Choose an action index given an observation and a boolean legal-action mask.

        Implementations must only return indices where ``legal_actions_mask[i]`` is
        true; callers are free to validate or fall back to a default if needed.
        """


@dataclass
class RandomAgent:
    """
    Baseline policy that samples uniformly among legal actions.

    Usage:
        agent = RandomAgent(seed=42)
        action = agent.act(obs, legal_actions_mask)
    """

    seed: int | None = None

    def __post_init__(self) -> None:
        self._rng = random.Random(self.seed)

    def act(self, obs: Sequence[float], legal_actions_mask: Iterable[bool]) -> int:
        """Pick a random legal action given an observation and a boolean mask."""
        legal_indices: List[int] = [i for i, ok in enumerate(legal_actions_mask) if ok]
        if not legal_indices:
            raise ValueError("No legal actions available for RandomAgent")
        return self._rng.choice(legal_indices)


# ---- Card-level strategies ----


def _is_black(card: Card) -> bool:
    return card.is_suit() and card.suit in (Suit.SPADE, Suit.CLUB)


def _is_heart_or_joker(card: Card) -> bool:
    return card.is_joker() or card.suit == Suit.HEART


@dataclass
class RandomStrategy:
    """Uniform choice for every decision."""

    seed: int | None = None

    def __post_init__(self) -> None:
        self._rng = random.Random(self.seed)

    def choose_hidden_card(self, game: "Game", player: Player, card1: Card, card2: Card) -> int:
        return self._rng.randint(1, 2)

    def choose_pick_card(self, game: "Game", player: Player, candidates: Sequence[Candidate]) -> int:
        return self._rng.randint(1, len(candidates))


@dataclass
class _PreferenceStrategy(RandomStrategy):
    """Hide the first card when it is a preferred one; pick the first visible preferred card."""

    def prefers(self, card: Card) -> bool:
        raise NotImplementedError

    def choose_hidden_card(self, game: "Game", player: Player, card1: Card, card2: Card) -> int:
        return 1 if self.prefers(card1) else 2

    def choose_pick_card(self, game: "Game", player: Player, candidates: Sequence[Candidate]) -> int:
        for i, cand in enumerate(candidates, start=1):
            if cand.visible and self.prefers(cand.card):
                return i
        return super().choose_pick_card(game, player, candidates)


@dataclass
class SafeStrategy(_PreferenceStrategy):
    """Goes after Spades and Clubs, which always score positively."""

    def prefers(self, card: Card) -> bool:
        return _is_black(card)


@dataclass
class RiskyStrategy(_PreferenceStrategy):
    """Goes after Hearts and the Joker, hoping for the four-Heart reversal."""

    def prefers(self, card: Card) -> bool:
        return _is_heart_or_joker(card)


@dataclass
class AdaptiveStrategy:
    """
    Switches strategy from the player's own offer before every decision:
    - risky with a face-up Joker and 2+ Hearts, or with 3+ Hearts
    - random without a face-up Joker
    - safe otherwise
    """

    seed: int | None = None

    def __post_init__(self) -> None:
        self._random = RandomStrategy(self.seed)
        self._safe = SafeStrategy(self.seed)
        self._risky = RiskyStrategy(self.seed)

    def current_strategy(self, player: Player) -> RandomStrategy:
        offer = player.offer
        hearts = sum(1 for c in offer.cards() if c.is_suit() and c.suit == Suit.HEART)
        visible_joker = offer.visible is not None and offer.visible.is_joker()
        if (visible_joker and hearts >= 2) or hearts >= 3:
            return self._risky
        if not visible_joker:
            return self._random
        return self._safe

    def choose_hidden_card(self, game: "Game", player: Player, card1: Card, card2: Card) -> int:
        return self.current_strategy(player).choose_hidden_card(game, player, card1, card2)

    def choose_pick_card(self, game: "Game", player: Player, candidates: Sequence[Candidate]) -> int:
        return self.current_strategy(player).choose_pick_card(game, player, candidates)


def request_choice(
    ask: Callable[[], object],
    player: Player,
    low: int,
    high: int,
    max_attempts: int = 5,
) -> int:
    """
    Call ``ask`` until it returns an int in [low, high].
    Out-of-range answers are logged and asked again; after ``max_attempts``
    a DecisionContractError is raised. Answers are never clamped.
    """
    answer: object = None
    for attempt in range(1, max_attempts + 1):
        answer = ask()
        if isinstance(answer, int) and not isinstance(answer, bool) and low <= answer <= high:
            return answer
        logger.warning(
            "%s answered %r (attempt %d/%d), expected [%d, %d]",
            player.name, answer, attempt, max_attempts, low, high,
        )
    raise DecisionContractError(player.name, low, high, answer, max_attempts)


PROVIDER_FACTORIES: Dict[str, Callable[[int | None], DecisionProvider]] = {
    "random": RandomStrategy,
    "safe": SafeStrategy,
    "risky": RiskyStrategy,
    "adaptive": AdaptiveStrategy,
}


def make_provider(kind: str, seed: int | None = None) -> DecisionProvider:
    """Build the decision provider for a controller kind."""
    try:
        factory = PROVIDER_FACTORIES[kind]
    except KeyError:
        raise ConfigurationError(
            f"Unknown controller {kind!r}; expected one of {sorted(PROVIDER_FACTORIES)}"
        ) from None
    return factory(seed)


__all__ = [
    "DecisionProvider",
    "Policy",
    "RandomAgent",
    "RandomStrategy",
    "SafeStrategy",
    "RiskyStrategy",
    "AdaptiveStrategy",
    "PROVIDER_FACTORIES",
    "make_provider",
    "request_choice",
]
