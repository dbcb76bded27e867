"""
Observation / action encoding for Jest decisions.

Flat observations are built for the deciding seat only. They never contain
another player's hidden card, just a flag saying that it is there. Seats are
relative: slot 0 is the deciding player, slots 1..3 are the next players in
seat order.

Global action space (NUM_ACTIONS = 10):
  - 0, 1 : hiding decision, hide the first / second dealt card
  - 2..9 : drafting decision, 2 + 2 * relative_seat + slot
           (slot 0 = visible card, slot 1 = hidden card)

This module stays free of numpy / torch so the game engine can use it without
the ``rl`` extra.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Sequence

from .deck import FULL_DECK_SIZE, Card, make_full_deck
from .players import Candidate, Player

if TYPE_CHECKING:  # pragma: no cover - import cycle guard for type checking only
    from .game import Game


NUM_CARDS: int = FULL_DECK_SIZE
MAX_SEATS: int = 4
MAX_ROUNDS: int = 8
NUM_HIDE_ACTIONS: int = 2
NUM_PICK_ACTIONS: int = 2 * MAX_SEATS
NUM_ACTIONS: int = NUM_HIDE_ACTIONS + NUM_PICK_ACTIONS  # 2 + 8 = 10

PHASE_HIDE = "hide"
PHASE_PICK = "pick"

OWN_SIZE: int = 3 * NUM_CARDS        # own jest, visible, hidden
SEAT_SIZE: int = 2 * NUM_CARDS + 1   # opponent jest + visible card + hidden-card flag
OBS_SIZE: int = (
    OWN_SIZE
    + (MAX_SEATS - 1) * SEAT_SIZE
    + 2                              # phase one-hot
    + 2 * NUM_CARDS                  # the two cards of a hiding decision
    + MAX_ROUNDS                     # round one-hot
    + 1                              # deck pool fill ratio
    + 2                              # player count one-hot (3, 4)
)  # = 302

# Offsets of the blocks the network reads separately.
OPPONENTS_OFFSET: int = OWN_SIZE
PHASE_OFFSET: int = OPPONENTS_OFFSET + (MAX_SEATS - 1) * SEAT_SIZE
HIDE_CARDS_OFFSET: int = PHASE_OFFSET + 2

_CARD_INDEX: Dict[Card, int] = {card: i for i, card in enumerate(make_full_deck())}


def _one_hot(index: int | None, size: int) -> List[int]:
    vec = [0] * size
    if index is None:
        return vec
    if 0 <= index < size:
        vec[index] = 1
    return vec


def card_index(card: Card) -> int:
    """
    Stable index 0..25 for every card, matching make_full_deck():
      - 0..16  : standard deck
      - 17..25 : expansion
    Cards are compared by value (suit, value and effect), so a card restored
    from a snapshot maps to the same index.
    """
    return _CARD_INDEX[card]


def encode_card_set(cards: Iterable[Card]) -> List[int]:
    """Binary NUM_CARDS-dim vector: 1 if the card is present."""
    vec = [0] * NUM_CARDS
    for c in cards:
        vec[card_index(c)] = 1
    return vec


def _encode_optional_card(card: Optional[Card]) -> List[int]:
    return encode_card_set([] if card is None else [card])


def relative_seat(game: "Game", player: Player, other: Player) -> int:
    return (game.seat_of(other) - game.seat_of(player)) % len(game.players)


def _encode_common(
    game: "Game",
    player: Player,
    phase: str,
    hide_cards: Sequence[Card] = (),
) -> List[float]:
    vec: List[int] = []
    vec.extend(encode_card_set(player.jest))
    vec.extend(_encode_optional_card(player.offer.visible))
    vec.extend(_encode_optional_card(player.offer.hidden))

    seats = len(game.players)
    me = game.seat_of(player)
    for rel in range(1, MAX_SEATS):
        if rel >= seats:
            vec.extend([0] * SEAT_SIZE)
            continue
        other = game.players[(me + rel) % seats]
        vec.extend(encode_card_set(other.jest))
        vec.extend(_encode_optional_card(other.offer.visible))
        vec.append(1 if other.offer.hidden is not None else 0)

    vec.extend(_one_hot(0 if phase == PHASE_HIDE else 1, 2))
    first, second = (list(hide_cards) + [None, None])[:2]
    vec.extend(_encode_optional_card(first))
    vec.extend(_encode_optional_card(second))
    vec.extend(_one_hot(min(game.round_number, MAX_ROUNDS) - 1, MAX_ROUNDS))

    out = [float(x) for x in vec]
    out.append(len(game.deck) / NUM_CARDS)
    out.extend(float(x) for x in _one_hot({3: 0, 4: 1}.get(seats), 2))
    assert len(out) == OBS_SIZE
    return out


def observation_phase(obs: Sequence[float]) -> str:
    """Decision phase encoded in an observation."""
    return PHASE_HIDE if obs[PHASE_OFFSET] > 0.5 else PHASE_PICK


def encode_hide_observation(game: "Game", player: Player, card1: Card, card2: Card) -> List[float]:
    """Observation for choosing which of two dealt cards to hide."""
    return _encode_common(game, player, PHASE_HIDE, (card1, card2))


def encode_pick_observation(game: "Game", player: Player) -> List[float]:
    """Observation for choosing which card to draft."""
    return _encode_common(game, player, PHASE_PICK)


def legal_action_mask_hide() -> List[bool]:
    mask = [False] * NUM_ACTIONS
    for i in range(NUM_HIDE_ACTIONS):
        mask[i] = True
    return mask


def pick_action(game: "Game", player: Player, candidate: Candidate) -> int:
    """Global action index of drafting ``candidate``."""
    rel = relative_seat(game, player, candidate.owner)
    return NUM_HIDE_ACTIONS + 2 * rel + (0 if candidate.visible else 1)


def legal_action_mask_pick(
    game: "Game",
    player: Player,
    candidates: Sequence[Candidate],
) -> List[bool]:
    """Mask over the global action space with one True per candidate."""
    mask = [False] * NUM_ACTIONS
    for cand in candidates:
        mask[pick_action(game, player, cand)] = True
    return mask


def candidate_index_for_action(
    game: "Game",
    player: Player,
    candidates: Sequence[Candidate],
    action: int,
) -> int:
    """1-based candidate index for a pick action; ValueError if not legal."""
    for i, cand in enumerate(candidates, start=1):
        if pick_action(game, player, cand) == action:
            return i
    raise ValueError(f"Action {action} is not a legal pick")


def hide_choice_for_action(action: int) -> int:
    """Map hide action 0/1 to the engine's hide choice 1/2."""
    if not 0 <= action < NUM_HIDE_ACTIONS:
        raise ValueError(f"Invalid hiding action {action}")
    return action + 1


__all__ = [
    "NUM_CARDS",
    "NUM_ACTIONS",
    "NUM_HIDE_ACTIONS",
    "NUM_PICK_ACTIONS",
    "OBS_SIZE",
    "OWN_SIZE",
    "SEAT_SIZE",
    "MAX_SEATS",
    "OPPONENTS_OFFSET",
    "PHASE_OFFSET",
    "HIDE_CARDS_OFFSET",
    "PHASE_HIDE",
    "PHASE_PICK",
    "card_index",
    "encode_card_set",
    "relative_seat",
    "observation_phase",
    "encode_hide_observation",
    "encode_pick_observation",
    "legal_action_mask_hide",
    "legal_action_mask_pick",
    "pick_action",
    "candidate_index_for_action",
    "hide_choice_for_action",
]
