"""
Game variants: named policies that scale scores, change the deal size and
declare a trophy weight without touching the draft state machine.

- Classic: standard rules.
- Speed: one card per player after round 2, scores × 1.5 (truncated).
- High Stakes: scores × 2, trophies declared as worth × 3.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, Type

from .errors import ConfigurationError
from .players import Player
from .scoring import jest_points

if TYPE_CHECKING:  # pragma: no cover - import cycle guard for type checking only
    from .game import Game

logger = logging.getLogger(__name__)


class GameVariant:
    """
    Base variant with the classic behaviour. Subclasses override the hooks
    they change. ``on_round_start`` / ``on_round_end`` are observation hooks:
    the engine calls them and ignores whatever they return.
    """

    name: str = "Classic"
    description: str = "Basic game mode with standard rules."

    def cards_per_player(self, round_number: int) -> int:
        return 2

    def transform_score(self, raw_score: int) -> int:
        return raw_score

    def trophy_multiplier(self) -> int:
        return 1

    def trophy_count(self, num_players: int) -> int:
        """Trophies reserved at setup."""
        return 2 if num_players <= 3 else 1

    def points(self, player: Player) -> int:
        """Final points of ``player``: raw jest score passed through the variant."""
        return self.transform_score(jest_points(player.jest))

    def on_round_start(self, game: "Game") -> None:
        pass

    def on_round_end(self, game: "Game") -> None:
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class ClassicVariant(GameVariant):
    pass


class SpeedVariant(GameVariant):
    name = "Speed"
    description = "Fast Mode - Fewer cards dealt, shorter games, x1.5 points"

    def cards_per_player(self, round_number: int) -> int:
        return 2 if round_number <= 2 else 1

    def transform_score(self, raw_score: int) -> int:
        # int() truncates toward zero, also for negative scores
        return int(raw_score * 1.5)

    def on_round_start(self, game: "Game") -> None:
        if game.round_number > 2:
            logger.info("Speed mode: one card per player in round %d", game.round_number)

    def on_round_end(self, game: "Game") -> None:
        logger.debug("Speed mode: +50%% points applied at scoring time")


class HighStakesVariant(GameVariant):
    name = "High Stakes"
    description = "All points are doubled and trophy cards are worth triple!"

    def transform_score(self, raw_score: int) -> int:
        return raw_score * 2

    def trophy_multiplier(self) -> int:
        # Declared only; trophy scoring goes through transform_score like any card.
        return 3

    def on_round_start(self, game: "Game") -> None:
        if game.round_number == 1:
            logger.info("High stakes mode: points doubled, trophies declared x%d", self.trophy_multiplier())


VARIANTS: Dict[str, Type[GameVariant]] = {
    ClassicVariant.name: ClassicVariant,
    SpeedVariant.name: SpeedVariant,
    HighStakesVariant.name: HighStakesVariant,
}


def variant_by_name(name: str) -> GameVariant:
    """Instantiate a registered variant ("Classic", "Speed", "High Stakes")."""
    try:
        return VARIANTS[name]()
    except KeyError:
        raise ConfigurationError(f"Unknown variant {name!r}; expected one of {sorted(VARIANTS)}") from None


__all__ = [
    "GameVariant",
    "ClassicVariant",
    "SpeedVariant",
    "HighStakesVariant",
    "VARIANTS",
    "variant_by_name",
]
