"""
Game aggregate and round orchestration: distribute → draft → score.

A round is driven by ``DraftRound``, a small state machine:

    AWAITING_START → PLAYER_TURN → ROUND_COMPLETE

The starting player is the one showing the highest face-up card (ties broken
HEART > DIAMOND > CLUB > SPADE). Each turn the current player drafts one card
from an opponent who still has both offer cards (or from their own offer if
nobody else has), and the owner of that card plays next, unless they already
drafted this round, in which case the highest face-up card decides again.

The game plays rounds until the deck pool is empty, then every player adds
their last offer card to their jest, trophies are resolved and scored.
"""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from .agents import DecisionProvider, make_provider, request_choice
from .deal import distribute, draw_random
from .deck import SUIT_RANK, Card, make_deck
from .effects import trophy_winner
from .errors import ConfigurationError, DecisionContractError, GameStateError
from .events import EventBus, EventKind, EventListener, GameEvent
from .players import Candidate, Player
from .variants import ClassicVariant, GameVariant, variant_by_name

logger = logging.getLogger(__name__)

MIN_PLAYERS = 3
MAX_PLAYERS = 4


@dataclass
class GameConfig:
    """Everything needed to set up a new game."""

    player_names: List[str]
    controllers: List[str] | None = None  # default: "random" for every seat
    variant: str = "Classic"
    include_expansion: bool = False
    seed: int | None = None
    max_decision_attempts: int = 5


class Phase(Enum):
    AWAITING_START = "awaiting_start"
    PLAYER_TURN = "player_turn"
    ROUND_COMPLETE = "round_complete"


def _visible_rank(card: Card) -> Tuple[int, int]:
    return (card.value, SUIT_RANK[card.suit])


class Game:
    """
    Mutable state of one game: deck pool, trophies, players (seat order),
    round counter and variant. Renderers and savers get read access only;
    all mutation goes through the functions of this module.
    """

    def __init__(
        self,
        players: List[Player],
        deck: List[Card],
        trophies: List[Card] | None = None,
        variant: GameVariant | None = None,
        round_number: int = 0,
        include_expansion: bool = False,
        finished: bool = False,
        max_decision_attempts: int = 5,
    ):
        if not MIN_PLAYERS <= len(players) <= MAX_PLAYERS:
            raise ConfigurationError(
                f"Jest is played by {MIN_PLAYERS} or {MAX_PLAYERS} players, got {len(players)}"
            )
        names = [p.name for p in players]
        if len(set(names)) != len(names):
            raise ConfigurationError(f"Player names must be unique: {names}")
        self.players = players
        self.deck = deck
        self.trophies: List[Card] = trophies if trophies is not None else []
        self.variant = variant or ClassicVariant()
        self.round_number = round_number
        self.include_expansion = include_expansion
        self.finished = finished
        self.max_decision_attempts = max_decision_attempts
        self.events = EventBus()

    @classmethod
    def new(
        cls,
        player_names: Sequence[str],
        controllers: Sequence[str] | None = None,
        variant: GameVariant | None = None,
        include_expansion: bool = False,
        rng: random.Random | None = None,
        max_decision_attempts: int = 5,
    ) -> "Game":
        """Fresh game: full deck pool, trophies reserved at random."""
        rng = rng or random.Random()
        if controllers is None:
            controllers = ["random"] * len(player_names)
        if len(controllers) != len(player_names):
            raise ConfigurationError("One controller per player is required")
        players = [Player(name=n, controller=c) for n, c in zip(player_names, controllers)]
        game = cls(
            players=players,
            deck=make_deck(include_expansion),
            variant=variant,
            include_expansion=include_expansion,
            max_decision_attempts=max_decision_attempts,
        )
        game.reserve_trophies(rng)
        return game

    @classmethod
    def from_config(cls, cfg: GameConfig, rng: random.Random | None = None) -> "Game":
        return cls.new(
            cfg.player_names,
            controllers=cfg.controllers,
            variant=variant_by_name(cfg.variant),
            include_expansion=cfg.include_expansion,
            rng=rng or random.Random(cfg.seed),
            max_decision_attempts=cfg.max_decision_attempts,
        )

    # ---- Events ----

    def subscribe(self, listener: EventListener) -> None:
        self.events.subscribe(listener)

    def emit(self, kind: EventKind, **payload) -> None:
        self.events.emit(GameEvent(kind=kind, round_number=self.round_number, payload=payload))

    # ---- Queries ----

    def seat_of(self, player: Player) -> int:
        for i, p in enumerate(self.players):
            if p is player:
                return i
        raise ValueError(f"{player.name} does not play in this game")

    def count_full_offers(self) -> int:
        return sum(1 for p in self.players if p.offer.is_full())

    def highest_visible_player(self) -> Optional[Player]:
        """
        Undrafted player with the highest face-up suited card, or None.
        Players showing the Joker or no face-up card are not eligible.
        """
        best: Optional[Player] = None
        for player in self.players:
            card = player.offer.visible
            if card is None or card.is_joker() or player.has_drafted(self.round_number):
                continue
            if best is None or _visible_rank(card) > _visible_rank(best.offer.visible):
                best = player
        return best

    def total_cards(self) -> int:
        """Cards in the deck pool, trophies, jests and offers."""
        n = len(self.deck) + len(self.trophies)
        for p in self.players:
            n += len(p.jest) + len(p.offer.cards())
        return n

    def reserve_trophies(self, rng: random.Random) -> None:
        count = self.variant.trophy_count(len(self.players))
        for _ in range(min(count, len(self.deck))):
            self.trophies.append(draw_random(self.deck, rng))
        logger.info("Trophies: %s", ", ".join(f"{c} ({c.effect.code()})" for c in self.trophies))


class DraftRound:
    """
    Turn state machine for one round, once offers are dealt.

    When the next player cannot be found from the highest face-up card
    because every undrafted player with a full offer shows the Joker, the
    first of them in seat order drafts next. The round reaches
    ``ROUND_COMPLETE`` only once no player holds two offer cards, so
    ``end_round`` never sees a full offer left behind.
    """

    def __init__(self, game: Game):
        self.game = game
        self.phase = Phase.AWAITING_START
        self.current: Optional[Player] = None
        self.picks: List[Tuple[Player, Candidate]] = []

    @property
    def drafted(self) -> bool:
        return bool(self.picks)

    def start(self) -> Optional[Player]:
        """
        Pick the starting player. A round where nobody holds two cards has
        nothing to draft and completes at once (returns None).
        """
        if self.phase is not Phase.AWAITING_START:
            raise GameStateError(f"Round already started (phase {self.phase.name})")
        if self.game.count_full_offers() == 0:
            self.phase = Phase.ROUND_COMPLETE
            return None
        starter = self.game.highest_visible_player()
        if starter is None:
            raise GameStateError(
                f"Round {self.game.round_number}: no player shows a suited face-up card to start"
            )
        self.current = starter
        self.phase = Phase.PLAYER_TURN
        logger.info("Round %d starts with %s", self.game.round_number, starter.name)
        return starter

    def candidates(self) -> List[Candidate]:
        """
        Cards the current player may draft: visible then hidden card of every
        opponent with a full offer (seat order), or the player's own two cards
        when no opponent has one.
        """
        if self.phase is not Phase.PLAYER_TURN or self.current is None:
            raise GameStateError("No player is drafting")
        current = self.current
        out: List[Candidate] = []
        for player in self.game.players:
            if player is not current and player.offer.is_full():
                out.append(Candidate(player.offer.visible, player, True))
                out.append(Candidate(player.offer.hidden, player, False))
        if not out and current.offer.is_full():
            out.append(Candidate(current.offer.visible, current, True))
            out.append(Candidate(current.offer.hidden, current, False))
        if not out:
            raise GameStateError(f"{current.name} has nothing to draft")
        return out

    def pick(self, index: int) -> Candidate:
        """Draft candidate ``index`` (1-based) for the current player and move the turn on."""
        cands = self.candidates()
        if not 1 <= index <= len(cands):
            raise DecisionContractError(self.current.name, 1, len(cands), index, 1)
        chosen = cands[index - 1]
        picker = self.current
        chosen.owner.offer.take(chosen.card)
        picker.add_to_jest(chosen.card)
        self.picks.append((picker, chosen))
        logger.debug(
            "%s drafts %s from %s",
            picker.name, chosen.card if chosen.visible else "the hidden card", chosen.owner.name,
        )
        self.game.emit(
            EventKind.CARD_PICKED,
            picker=picker,
            owner=chosen.owner,
            card=chosen.card,
            visible=chosen.visible,
        )
        self.current = self._next_player(chosen.owner)
        if self.current is None:
            self.phase = Phase.ROUND_COMPLETE
        return chosen

    def _next_player(self, owner: Player) -> Optional[Player]:
        game = self.game
        if game.count_full_offers() == 0:
            return None
        if not owner.has_drafted(game.round_number):
            return owner
        nxt = game.highest_visible_player()
        if nxt is None:
            # Only Joker-faced offers are left undrafted: they play in seat order.
            nxt = next(
                (p for p in game.players if p.offer.is_full() and not p.has_drafted(game.round_number)),
                None,
            )
        return nxt


@dataclass
class GameResult:
    points: Dict[str, int]
    winner: Optional[Player]
    trophies: List[Tuple[Card, Optional[Player]]] = field(default_factory=list)
    rounds_played: int = 0


def default_providers(game: Game, seed: int | None = None) -> List[DecisionProvider]:
    """One provider per seat, built from each player's controller kind."""
    return [
        make_provider(p.controller, None if seed is None else seed + i)
        for i, p in enumerate(game.players)
    ]


def start_round(game: Game) -> None:
    if game.finished:
        raise GameStateError("The game is over")
    game.round_number += 1
    game.variant.on_round_start(game)
    game.emit(EventKind.ROUND_STARTED, deck_size=len(game.deck))


def end_round(game: Game, draft: DraftRound) -> None:
    """Round complete: nobody may still hold two offer cards."""
    if draft.phase is not Phase.ROUND_COMPLETE:
        raise GameStateError(f"Round {game.round_number} is not complete (phase {draft.phase.name})")
    for player in game.players:
        if player.offer.is_full():
            raise GameStateError(
                f"{player.name} still holds two offer cards at the end of round {game.round_number}"
            )
    game.variant.on_round_end(game)
    game.emit(EventKind.ROUND_ENDED, drafted=draft.drafted, deck_size=len(game.deck))
    logger.info("Round %d complete, %d cards left in the deck", game.round_number, len(game.deck))


def run_draft(
    game: Game,
    providers: Sequence[DecisionProvider],
    max_attempts: int | None = None,
) -> DraftRound:
    """
    Drive the draft of the current round to completion. ``max_attempts``
    defaults to the game's ``max_decision_attempts``.
    """
    if max_attempts is None:
        max_attempts = game.max_decision_attempts
    draft = DraftRound(game)
    draft.start()
    while draft.phase is Phase.PLAYER_TURN:
        player = draft.current
        cands = draft.candidates()
        provider = providers[game.seat_of(player)]
        index = request_choice(
            lambda: provider.choose_pick_card(game, player, cands),
            player, 1, len(cands), max_attempts,
        )
        draft.pick(index)
    return draft


def play_round(
    game: Game,
    providers: Sequence[DecisionProvider],
    rng: random.Random | None = None,
    max_attempts: int | None = None,
) -> bool:
    """Play one full round. Returns False if nothing could be drafted."""
    rng = rng or random.Random()
    start_round(game)
    distribute(game, providers, rng, max_attempts)
    draft = run_draft(game, providers, max_attempts)
    end_round(game, draft)
    return draft.drafted


def collect_last_offers(game: Game) -> None:
    """Move each player's single remaining offer card into their jest."""
    for player in game.players:
        if player.offer.is_full():
            raise GameStateError(f"{player.name} still holds two offer cards")
        player.jest.extend(player.offer.clear())


def award_trophies(game: Game) -> List[Tuple[Card, Optional[Player]]]:
    """
    Resolve trophies in order. An awarded trophy joins the winner's jest
    before the next one is resolved; unawarded trophies stay reserved.
    """
    results: List[Tuple[Card, Optional[Player]]] = []
    for card in list(game.trophies):
        winner = trophy_winner(card, game.players)
        results.append((card, winner))
        if winner is None:
            logger.info("Trophy %s (%s) is not awarded", card, card.effect.code())
            continue
        game.trophies = [t for t in game.trophies if t is not card]
        winner.add_to_jest(card)
        logger.info("Trophy %s (%s) goes to %s", card, card.effect.code(), winner.name)
        game.emit(EventKind.TROPHY_AWARDED, card=card, winner=winner)
    return results


def final_points(game: Game) -> Dict[str, int]:
    return {p.name: game.variant.points(p) for p in game.players}


def finish_game(game: Game) -> GameResult:
    """Last offers into jests, trophies, final points and winner (first seat wins ties)."""
    if game.finished:
        raise GameStateError("The game is already finished")
    collect_last_offers(game)
    trophies = award_trophies(game)
    points = final_points(game)
    winner: Optional[Player] = None
    for player in game.players:
        if winner is None or points[player.name] > points[winner.name]:
            winner = player
    game.finished = True
    game.emit(EventKind.GAME_ENDED, points=dict(points), winner=winner)
    return GameResult(points=points, winner=winner, trophies=trophies, rounds_played=game.round_number)


def play_game(
    game: Game,
    providers: Sequence[DecisionProvider] | None = None,
    rng: random.Random | None = None,
    max_attempts: int | None = None,
) -> GameResult:
    """
    Play rounds while the deck pool has cards, then finish the game.
    Works for fresh games and for games restored at a round boundary.
    A round where nothing could be drafted ends the game.
    """
    rng = rng or random.Random()
    if providers is None:
        providers = default_providers(game)
    if len(providers) != len(game.players):
        raise ConfigurationError("One decision provider per player is required")
    while game.deck:
        if not play_round(game, providers, rng, max_attempts):
            break
    return finish_game(game)


__all__ = [
    "GameConfig",
    "Phase",
    "Game",
    "DraftRound",
    "GameResult",
    "default_providers",
    "start_round",
    "end_round",
    "run_draft",
    "play_round",
    "collect_last_offers",
    "award_trophies",
    "final_points",
    "finish_game",
    "play_game",
]
