"""Tests for the event bus and the player/offer model."""
import pytest

from jest.deck import Effect, EffectKind, Suit, make_suit_card
from jest.events import EventBus, EventKind, GameEvent
from jest.players import Offer, Player


def test_event_bus_order_and_unsubscribe():
    bus = EventBus()
    seen = []
    first = lambda e: seen.append(("first", e.kind))  # noqa: E731
    second = lambda e: seen.append(("second", e.kind))  # noqa: E731
    bus.subscribe(first)
    bus.subscribe(second)
    bus.emit(GameEvent(EventKind.ROUND_STARTED, 1))
    bus.unsubscribe(first)
    bus.emit(GameEvent(EventKind.ROUND_ENDED, 1))
    assert seen == [
        ("first", EventKind.ROUND_STARTED),
        ("second", EventKind.ROUND_STARTED),
        ("second", EventKind.ROUND_ENDED),
    ]


def test_offer_take_by_identity():
    effect = Effect(EffectKind.JOKER)
    a = make_suit_card(Suit.SPADE, 1, effect)
    b = make_suit_card(Suit.SPADE, 1, effect)
    offer = Offer(visible=a, hidden=b)
    assert offer.is_full()
    assert offer.take(b) is False
    assert offer.visible is a and offer.hidden is None
    with pytest.raises(ValueError):
        offer.take(b)
    assert offer.clear() == [a]
    assert offer.is_empty()


def test_player_has_drafted_follows_jest_size():
    p = Player("A")
    assert p.has_drafted(0)
    assert not p.has_drafted(1)
    p.add_to_jest(make_suit_card(Suit.CLUB, 2, Effect(EffectKind.JOKER)))
    assert p.has_drafted(1)
