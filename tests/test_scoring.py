"""Tests for jest scoring."""
import random

from jest.deck import Effect, EffectKind, Suit, make_joker, make_suit_card
from jest.scoring import heart_points, jest_points

_EFFECT = Effect(EffectKind.JOKER)


def card(suit: Suit, value: int):
    return make_suit_card(suit, value, _EFFECT)


def joker():
    return make_joker(Effect(EffectKind.BEST_JEST))


def test_black_cards_add_diamonds_subtract():
    # 3 + 4 - 2, plus a singleton bonus per suit
    jest = [card(Suit.SPADE, 3), card(Suit.CLUB, 4), card(Suit.DIAMOND, 2)]
    assert jest_points(jest) == 5 + 3 * 4


def test_matching_black_pair_bonus_and_diamond_delta():
    base = [card(Suit.SPADE, 3), card(Suit.CLUB, 3)]
    # 6 + pair bonus 2 + two singleton bonuses
    assert jest_points(base) == 16
    with_diamond = base + [card(Suit.DIAMOND, 2)]
    # Lone diamond: -2 and its own singleton bonus
    assert jest_points(with_diamond) - jest_points(base) == -2 + 4


def test_pair_bonus_uses_containment():
    jest = [card(Suit.SPADE, 2), card(Suit.SPADE, 2), card(Suit.CLUB, 2), card(Suit.CLUB, 3)]
    # 4 + 5, both spades 2 find a club 2
    assert jest_points(jest) == 9 + 2 + 2


def test_hearts_ignored_without_joker():
    blacks = [card(Suit.SPADE, 2), card(Suit.SPADE, 4)]
    assert jest_points(blacks + [card(Suit.HEART, 1), card(Suit.HEART, 3)]) == jest_points(blacks)
    # A single heart still earns its singleton bonus
    assert jest_points(blacks + [card(Suit.HEART, 4)]) == jest_points(blacks) + 4


def test_four_hearts_with_joker_add():
    hearts = [card(Suit.HEART, v) for v in (1, 2, 3, 4)]
    assert jest_points(hearts + [joker()]) == 10
    assert heart_points([1, 2, 3, 4], has_joker=True) == 10


def test_some_hearts_with_joker_subtract():
    assert jest_points([card(Suit.HEART, 2), card(Suit.HEART, 3), joker()]) == -5


def test_joker_without_hearts_bonus():
    assert jest_points([joker()]) == 4
    assert heart_points([], has_joker=False) == 0


def test_scoring_is_order_independent_and_pure():
    rng = random.Random(7)
    jest = [card(s, v) for s in Suit for v in (1, 3)] + [joker()]
    expected = jest_points(jest)
    snapshot = list(jest)
    for _ in range(10):
        rng.shuffle(jest)
        assert jest_points(jest) == expected
    assert sorted(map(str, jest)) == sorted(map(str, snapshot))


def test_empty_jest_scores_zero():
    assert jest_points([]) == 0
