"""
Distribution of offers at the start of a round.

Round 1: two random cards per player straight from the deck pool.
Round 2+: one fresh card per player from the deck pool, plus every card left
in the players' offers from the previous round; two random cards per player
are dealt from that pool and whatever is not dealt goes back to the deck.

When the pool is short every player gets a single card while cards last,
and players after that get nothing. This is not an error.
"""
from __future__ import annotations

import logging
import random
from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple

from .agents import DecisionProvider, request_choice
from .deck import Card
from .errors import ConfigurationError
from .events import EventKind
from .players import Player

if TYPE_CHECKING:  # pragma: no cover - import cycle guard for type checking only
    from .game import Game

logger = logging.getLogger(__name__)


def draw_random(cards: List[Card], rng: random.Random) -> Card:
    """Remove and return a random card of ``cards``."""
    return cards.pop(rng.randrange(len(cards)))


def prepare_round_pool(game: "Game", rng: random.Random) -> List[Card]:
    """
    Cards in circulation for the round ``game.round_number``.

    For round 1 this is the deck pool itself, so dealing removes cards from
    the deck directly. For later rounds a new list is built and the drawn
    cards leave the deck pool; offers are emptied into it.
    """
    if game.round_number <= 1:
        for player in game.players:
            game.deck.extend(player.offer.clear())
        return game.deck

    fresh: List[Card] = []
    for _ in range(min(len(game.players), len(game.deck))):
        fresh.append(draw_random(game.deck, rng))
    leftovers: List[Card] = []
    for player in game.players:
        leftovers.extend(player.offer.clear())
    logger.debug(
        "Round %d pool: %d fresh + %d recirculated", game.round_number, len(fresh), len(leftovers)
    )
    return fresh + leftovers


def deal_hands(
    pool: List[Card],
    num_players: int,
    cards_per_player: int,
    rng: random.Random,
) -> List[List[Card]]:
    """
    Remove cards from ``pool`` and return one hand per player (seat order).
    Falls back to one card per player, while cards last, when the pool cannot
    give everyone ``cards_per_player``.
    """
    if cards_per_player not in (1, 2):
        raise ConfigurationError(f"cards_per_player must be 1 or 2, got {cards_per_player}")

    per_player = cards_per_player
    if len(pool) < cards_per_player * num_players:
        logger.info(
            "Not enough cards for a full distribution (%d for %d players); dealing one card each",
            len(pool), num_players,
        )
        per_player = 1

    hands: List[List[Card]] = []
    for _ in range(num_players):
        hand: List[Card] = []
        for _ in range(per_player):
            if pool:
                hand.append(draw_random(pool, rng))
        hands.append(hand)
    return hands


def assign_offer(player: Player, cards: Sequence[Card], hide_choice: Optional[int] = None) -> None:
    """
    Put dealt cards into ``player``'s offer.
    - no card: the offer stays empty
    - one card: it is the visible card, no hidden card
    - two cards: hide_choice 1 hides cards[0], 2 hides cards[1]
    """
    player.offer.clear()
    if not cards:
        return
    if len(cards) == 1:
        player.offer.visible = cards[0]
        return
    if len(cards) != 2:
        raise ValueError(f"An offer holds at most two cards, got {len(cards)}")
    if hide_choice == 1:
        player.offer.hidden, player.offer.visible = cards[0], cards[1]
    elif hide_choice == 2:
        player.offer.visible, player.offer.hidden = cards[0], cards[1]
    else:
        raise ValueError(f"hide_choice must be 1 or 2, got {hide_choice!r}")


def deal_round(game: "Game", rng: random.Random) -> List[Tuple[Player, List[Card]]]:
    """
    Build the round pool, deal hands and return undealt cards to the deck.
    Hiding decisions are left to the caller.
    """
    pool = prepare_round_pool(game, rng)
    cards_per_player = game.variant.cards_per_player(game.round_number)
    hands = deal_hands(pool, len(game.players), cards_per_player, rng)
    if pool is not game.deck and pool:
        game.deck.extend(pool)
        pool.clear()
    return list(zip(game.players, hands))


def place_offer(game: "Game", player: Player, hand: Sequence[Card], hide_choice: Optional[int] = None) -> None:
    """Assign a dealt hand to the player's offer and announce it."""
    assign_offer(player, hand, hide_choice)
    game.emit(EventKind.OFFER_DEALT, player=player, cards_dealt=len(hand), visible=player.offer.visible)


def distribute(
    game: "Game",
    providers: Sequence[DecisionProvider],
    rng: random.Random,
    max_attempts: int | None = None,
) -> None:
    """Deal the round and ask each player with two cards which one to hide."""
    if max_attempts is None:
        max_attempts = game.max_decision_attempts
    for seat, (player, hand) in enumerate(deal_round(game, rng)):
        choice: Optional[int] = None
        if len(hand) == 2:
            provider = providers[seat]
            card1, card2 = hand
            choice = request_choice(
                lambda: provider.choose_hidden_card(game, player, card1, card2),
                player, 1, 2, max_attempts,
            )
        place_offer(game, player, hand, choice)


__all__ = [
    "draw_random",
    "prepare_round_pool",
    "deal_hands",
    "assign_offer",
    "place_offer",
    "deal_round",
    "distribute",
]
