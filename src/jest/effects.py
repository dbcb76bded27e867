"""
Trophy resolution: one resolver per effect kind, each mapping the players
(in seat order) to the trophy winner or None.

Tie-breaks follow the printed rules of each card and are deliberately not
uniform: most effects keep the first player reaching the best count, while
BEST_JEST and BEST_JEST_WITHOUT_JOKER hand ties to the last player scanned.
"""
from __future__ import annotations

from typing import Callable, Dict, Optional, Sequence

from .deck import Card, Effect, EffectKind
from .players import Player
from .scoring import jest_points

Resolver = Callable[[Effect, Sequence[Player]], Optional[Player]]


def _highest(effect: Effect, players: Sequence[Player]) -> Optional[Player]:
    winner: Optional[Player] = None
    best: Optional[int] = None
    for player in players:
        for card in player.jest:
            if card.is_suit() and card.suit == effect.sign and (best is None or card.value > best):
                best = card.value
                winner = player
    return winner


def _lowest(effect: Effect, players: Sequence[Player]) -> Optional[Player]:
    winner: Optional[Player] = None
    best: Optional[int] = None
    for player in players:
        for card in player.jest:
            if card.is_suit() and card.suit == effect.sign and (best is None or card.value < best):
                best = card.value
                winner = player
    return winner


def _majority(effect: Effect, players: Sequence[Player]) -> Optional[Player]:
    winner: Optional[Player] = None
    most = 0
    for player in players:
        count = sum(1 for c in player.jest if c.is_suit() and c.value == effect.value)
        if count > most:
            winner = player
            most = count
    return winner


def _joker(effect: Effect, players: Sequence[Player]) -> Optional[Player]:
    for player in players:
        if player.has_joker():
            return player
    return None


def _best_jest(effect: Effect, players: Sequence[Player], skip_joker: bool = False) -> Optional[Player]:
    # Scores start at 0 and ties go to the later player (>=).
    winner: Optional[Player] = None
    best = 0
    for player in players:
        if skip_joker and player.has_joker():
            continue
        points = jest_points(player.jest)
        if points >= best:
            winner = player
            best = points
    return winner


def _best_jest_without_joker(effect: Effect, players: Sequence[Player]) -> Optional[Player]:
    return _best_jest(effect, players, skip_joker=True)


def _most_cards(effect: Effect, players: Sequence[Player]) -> Optional[Player]:
    winner: Optional[Player] = None
    most = 0
    for player in players:
        if len(player.jest) > most:
            winner = player
            most = len(player.jest)
    return winner


def _least_cards(effect: Effect, players: Sequence[Player]) -> Optional[Player]:
    winner: Optional[Player] = None
    least = float("inf")
    for player in players:
        if len(player.jest) < least:
            winner = player
            least = len(player.jest)
    return winner


def _count_parity(cards: Sequence[Card], remainder: int) -> int:
    return sum(1 for c in cards if c.is_suit() and c.value % 2 == remainder)


def _even_values(effect: Effect, players: Sequence[Player]) -> Optional[Player]:
    winner: Optional[Player] = None
    most = 0
    for player in players:
        count = _count_parity(player.jest, 0)
        if count > most:
            winner = player
            most = count
    return winner


def _odd_values(effect: Effect, players: Sequence[Player]) -> Optional[Player]:
    winner: Optional[Player] = None
    most = 0
    for player in players:
        count = _count_parity(player.jest, 1)
        if count > most:
            winner = player
            most = count
    return winner


def _no_duplicates(effect: Effect, players: Sequence[Player]) -> Optional[Player]:
    for player in players:
        values = [c.value for c in player.jest if c.is_suit()]
        if len(values) == len(set(values)):
            return player
    return None


RESOLVERS: Dict[EffectKind, Resolver] = {
    EffectKind.HIGHEST: _highest,
    EffectKind.LOWEST: _lowest,
    EffectKind.MAJORITY: _majority,
    EffectKind.JOKER: _joker,
    EffectKind.BEST_JEST: _best_jest,
    EffectKind.BEST_JEST_WITHOUT_JOKER: _best_jest_without_joker,
    EffectKind.MOST_CARDS: _most_cards,
    EffectKind.LEAST_CARDS: _least_cards,
    EffectKind.EVEN_VALUES: _even_values,
    EffectKind.ODD_VALUES: _odd_values,
    EffectKind.NO_DUPLICATES: _no_duplicates,
}

assert set(RESOLVERS) == set(EffectKind), "every effect kind needs a resolver"


def resolve_effect(effect: Effect, players: Sequence[Player]) -> Optional[Player]:
    """Winner of ``effect`` among ``players`` (seat order matters for ties), or None."""
    return RESOLVERS[effect.kind](effect, players)


def trophy_winner(card: Card, players: Sequence[Player]) -> Optional[Player]:
    """Player who receives ``card`` as a trophy, or None if nobody qualifies."""
    return resolve_effect(card.effect, players)


__all__ = ["Resolver", "RESOLVERS", "resolve_effect", "trophy_winner"]
