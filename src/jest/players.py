"""
Players, their two-slot offer and the jest pile.

An offer has a face-up slot (``visible``) and a face-down slot (``hidden``).
A player with both slots occupied has not been drafted from this round; a
player with none has been fully drafted from.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, NamedTuple, Optional

from .deck import Card


@dataclass
class Offer:
    visible: Optional[Card] = None
    hidden: Optional[Card] = None

    def is_full(self) -> bool:
        return self.visible is not None and self.hidden is not None

    def is_empty(self) -> bool:
        return self.visible is None and self.hidden is None

    def cards(self) -> List[Card]:
        """Occupied slots, visible first."""
        return [c for c in (self.visible, self.hidden) if c is not None]

    def take(self, card: Card) -> bool:
        """
        Remove ``card`` from its slot. Returns True if it was the visible card.
        Slots are matched by identity, not equality.
        """
        if card is self.visible:
            self.visible = None
            return True
        if card is self.hidden:
            self.hidden = None
            return False
        raise ValueError(f"Card {card} is not in this offer")

    def clear(self) -> List[Card]:
        """Empty both slots and return what they held."""
        cards = self.cards()
        self.visible = None
        self.hidden = None
        return cards


@dataclass(eq=False)
class Player:
    """
    One seat at the table. ``controller`` names the kind of decision provider
    driving this seat ("random", "safe", "human", ...) so that a saved game can
    rebuild it.
    """

    name: str
    controller: str = "random"
    jest: List[Card] = field(default_factory=list)
    offer: Offer = field(default_factory=Offer)

    def has_joker(self) -> bool:
        return any(c.is_joker() for c in self.jest)

    def has_drafted(self, round_number: int) -> bool:
        """True once this player has taken a card in round ``round_number``."""
        return len(self.jest) == round_number

    def add_to_jest(self, card: Card) -> None:
        self.jest.append(card)

    def __str__(self) -> str:
        return self.name


class Candidate(NamedTuple):
    """A card that may be drafted, with its owner and the slot it sits in."""

    card: Card
    owner: Player
    visible: bool


__all__ = ["Offer", "Player", "Candidate"]
