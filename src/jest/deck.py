"""
Jest deck: 17 standard cards (4 suits × values 1..4 plus the Joker) and a
9-card expansion. Every card carries a trophy effect that is resolved at the
end of the game if the card is drawn as a trophy.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Optional

from .errors import CardConfigurationError


class Suit(IntEnum):
    """Pique, Trèfle, Carreau, Cœur. Integer values are encoding indices, not ranks."""
    SPADE = 0
    CLUB = 1
    DIAMOND = 2
    HEART = 3


class Color(Enum):
    RED = "red"
    BLACK = "black"


# Tie-break between equal visible values: HEART > DIAMOND > CLUB > SPADE
SUIT_RANK = {
    Suit.HEART: 4,
    Suit.DIAMOND: 3,
    Suit.CLUB: 2,
    Suit.SPADE: 1,
}

SUIT_COLORS = {
    Suit.SPADE: Color.BLACK,
    Suit.CLUB: Color.BLACK,
    Suit.DIAMOND: Color.RED,
    Suit.HEART: Color.RED,
}

MIN_VALUE = 1
MAX_VALUE = 7


class EffectKind(Enum):
    """Trophy conditions printed on the cards."""
    HIGHEST = "highest"
    LOWEST = "lowest"
    MAJORITY = "majority"
    JOKER = "joker"
    BEST_JEST = "best_jest"
    BEST_JEST_WITHOUT_JOKER = "best_jest_without_joker"
    # Expansion
    MOST_CARDS = "most_cards"
    LEAST_CARDS = "least_cards"
    EVEN_VALUES = "even_values"
    ODD_VALUES = "odd_values"
    NO_DUPLICATES = "no_duplicates"


SIGN_EFFECTS = frozenset({EffectKind.HIGHEST, EffectKind.LOWEST})
VALUE_EFFECTS = frozenset({EffectKind.MAJORITY})


@dataclass(frozen=True)
class Effect:
    """
    Trophy effect with its parameter:
    - sign parameter: HIGHEST, LOWEST
    - value parameter: MAJORITY
    - no parameter: every other kind
    """

    kind: EffectKind
    sign: Optional[Suit] = None
    value: Optional[int] = None

    def __post_init__(self) -> None:
        if self.kind in SIGN_EFFECTS:
            if self.sign is None or self.value is not None:
                raise CardConfigurationError(f"{self.kind.name} needs a suit parameter and no value")
        elif self.kind in VALUE_EFFECTS:
            if self.value is None or self.sign is not None:
                raise CardConfigurationError(f"{self.kind.name} needs a value parameter and no suit")
            if not MIN_VALUE <= self.value <= MAX_VALUE:
                raise CardConfigurationError(
                    f"{self.kind.name} value must be between {MIN_VALUE} and {MAX_VALUE}, got {self.value}"
                )
        elif self.sign is not None or self.value is not None:
            raise CardConfigurationError(f"{self.kind.name} takes no parameter")

    def code(self) -> str:
        """Short label such as 'HIGHEST SPADE', 'MAJORITY 3' or 'BEST_JEST'."""
        if self.sign is not None:
            return f"{self.kind.name} {self.sign.name}"
        if self.value is not None:
            return f"{self.kind.name} {self.value}"
        return self.kind.name


@dataclass(frozen=True)
class Card:
    """
    A single Jest card. Either:
    - suited: suit + value (1..7)
    - joker: no suit/value
    Both carry a trophy effect.
    """

    kind: str  # "suit" | "joker"
    effect: Effect
    suit: Optional[Suit] = None
    value: Optional[int] = None

    def __post_init__(self) -> None:
        if self.kind == "suit":
            if self.suit is None or self.value is None:
                raise CardConfigurationError("Suited card needs a suit and a value")
            if not MIN_VALUE <= self.value <= MAX_VALUE:
                raise CardConfigurationError(f"Card value must be between {MIN_VALUE} and {MAX_VALUE}")
        elif self.kind == "joker":
            if self.suit is not None or self.value is not None:
                raise CardConfigurationError("Joker has no suit or value")
        else:
            raise CardConfigurationError(f"Unknown card kind: {self.kind}")

    def is_joker(self) -> bool:
        return self.kind == "joker"

    def is_suit(self) -> bool:
        return self.kind == "suit"

    @property
    def color(self) -> Color | None:
        if self.suit is None:
            return None
        return SUIT_COLORS[self.suit]

    def __str__(self) -> str:
        if self.kind == "joker":
            return "Joker"
        suit_char = "♠♣♦♥"[self.suit]
        return f"{self.value}{suit_char}"

    def __repr__(self) -> str:
        return str(self)


def make_suit_card(suit: Suit, value: int, effect: Effect) -> Card:
    return Card(kind="suit", suit=suit, value=value, effect=effect)


def make_joker(effect: Effect) -> Card:
    return Card(kind="joker", effect=effect)


def make_standard_deck() -> list[Card]:
    """The 17 standard cards, in a fixed order."""
    E = EffectKind
    return [
        make_suit_card(Suit.CLUB, 1, Effect(E.HIGHEST, sign=Suit.SPADE)),
        make_suit_card(Suit.CLUB, 2, Effect(E.LOWEST, sign=Suit.HEART)),
        make_suit_card(Suit.CLUB, 3, Effect(E.HIGHEST, sign=Suit.HEART)),
        make_suit_card(Suit.CLUB, 4, Effect(E.LOWEST, sign=Suit.SPADE)),
        make_suit_card(Suit.SPADE, 1, Effect(E.HIGHEST, sign=Suit.CLUB)),
        make_suit_card(Suit.SPADE, 2, Effect(E.MAJORITY, value=3)),
        make_suit_card(Suit.SPADE, 3, Effect(E.MAJORITY, value=2)),
        make_suit_card(Suit.SPADE, 4, Effect(E.LOWEST, sign=Suit.CLUB)),
        make_suit_card(Suit.HEART, 1, Effect(E.JOKER)),
        make_suit_card(Suit.HEART, 2, Effect(E.JOKER)),
        make_suit_card(Suit.HEART, 3, Effect(E.JOKER)),
        make_suit_card(Suit.HEART, 4, Effect(E.JOKER)),
        make_suit_card(Suit.DIAMOND, 1, Effect(E.MAJORITY, value=4)),
        make_suit_card(Suit.DIAMOND, 2, Effect(E.HIGHEST, sign=Suit.DIAMOND)),
        make_suit_card(Suit.DIAMOND, 3, Effect(E.LOWEST, sign=Suit.DIAMOND)),
        make_suit_card(Suit.DIAMOND, 4, Effect(E.BEST_JEST_WITHOUT_JOKER)),
        make_joker(Effect(E.BEST_JEST)),
    ]


def make_expansion_deck() -> list[Card]:
    """The 9 expansion cards."""
    E = EffectKind
    return [
        make_suit_card(Suit.CLUB, 1, Effect(E.MOST_CARDS)),
        make_suit_card(Suit.CLUB, 2, Effect(E.LEAST_CARDS)),
        make_suit_card(Suit.HEART, 3, Effect(E.EVEN_VALUES)),
        make_suit_card(Suit.HEART, 4, Effect(E.ODD_VALUES)),
        make_suit_card(Suit.SPADE, 1, Effect(E.NO_DUPLICATES)),
        make_joker(Effect(E.MOST_CARDS)),
        make_suit_card(Suit.SPADE, 5, Effect(E.HIGHEST, sign=Suit.SPADE)),
        make_suit_card(Suit.DIAMOND, 6, Effect(E.LOWEST, sign=Suit.DIAMOND)),
        make_suit_card(Suit.HEART, 7, Effect(E.MAJORITY, value=5)),
    ]


STANDARD_DECK_SIZE = 17
EXPANSION_DECK_SIZE = 9
FULL_DECK_SIZE = STANDARD_DECK_SIZE + EXPANSION_DECK_SIZE


def make_deck(include_expansion: bool = False) -> list[Card]:
    """Build a fresh deck pool (standard, or standard + expansion)."""
    deck = make_standard_deck()
    if include_expansion:
        deck.extend(make_expansion_deck())
    return deck


def make_full_deck() -> list[Card]:
    return make_deck(include_expansion=True)
