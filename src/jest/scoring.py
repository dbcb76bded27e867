"""
Jest score: Spades and Clubs add their value, Diamonds subtract theirs,
Hearts only count when the Joker is in the jest.
Bonuses: +4 per suit held exactly once, +2 per Spade value also found among
the Clubs, +4 for Joker with no Heart.
"""
from __future__ import annotations

from typing import Dict, Iterable, List

from .deck import Card, Suit

SINGLETON_BONUS = 4
JOKER_WITHOUT_HEART_BONUS = 4
BLACK_PAIR_BONUS = 2
FULL_HEART_COUNT = 4


def values_by_suit(cards: Iterable[Card]) -> Dict[Suit, List[int]]:
    """Values of the suited cards, grouped by suit. Jokers are skipped."""
    groups: Dict[Suit, List[int]] = {s: [] for s in Suit}
    for c in cards:
        if c.is_suit():
            groups[c.suit].append(c.value)
    return groups


def heart_points(hearts: List[int], has_joker: bool) -> int:
    """
    Heart contribution:
    - no Joker: nothing
    - Joker and 1..3 Hearts: minus their values
    - Joker and all 4 Hearts: plus their values
    - Joker and no Heart: flat bonus
    """
    if not has_joker:
        return 0
    count = len(hearts)
    if count == 0:
        return JOKER_WITHOUT_HEART_BONUS
    if count == FULL_HEART_COUNT:
        return sum(hearts)
    if count < FULL_HEART_COUNT:
        return -sum(hearts)
    # More hearts than the base deck holds (expansion): no contribution.
    return 0


def black_pair_bonus(spades: List[int], clubs: List[int]) -> int:
    """+2 for every Spade whose value also appears among the Clubs (containment, not multiset)."""
    return sum(BLACK_PAIR_BONUS for v in spades if v in clubs)


def jest_points(cards: Iterable[Card]) -> int:
    """Raw score of a jest pile. Does not mutate ``cards``; order does not matter."""
    cards = list(cards)
    groups = values_by_suit(cards)
    has_joker = any(c.is_joker() for c in cards)

    score = sum(groups[Suit.SPADE]) + sum(groups[Suit.CLUB])
    score -= sum(groups[Suit.DIAMOND])
    score += heart_points(groups[Suit.HEART], has_joker)

    for values in groups.values():
        if len(values) == 1:
            score += SINGLETON_BONUS

    score += black_pair_bonus(groups[Suit.SPADE], groups[Suit.CLUB])
    return score


__all__ = [
    "SINGLETON_BONUS",
    "JOKER_WITHOUT_HEART_BONUS",
    "BLACK_PAIR_BONUS",
    "values_by_suit",
    "heart_points",
    "black_pair_bonus",
    "jest_points",
]
