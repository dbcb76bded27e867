"""Tests for the draft state machine and game drivers."""
import random

import pytest

from jest.agents import RandomStrategy, SafeStrategy, AdaptiveStrategy, RiskyStrategy
from jest.deck import Effect, EffectKind, Suit, make_joker, make_suit_card
from jest.errors import ConfigurationError, DecisionContractError, GameStateError
from jest.events import EventKind
from jest.game import (
    DraftRound,
    Game,
    GameConfig,
    Phase,
    end_round,
    finish_game,
    play_game,
    run_draft,
)
from jest.players import Offer, Player
from jest.variants import HighStakesVariant, SpeedVariant

_EFFECT = Effect(EffectKind.JOKER)


def card(suit: Suit, value: int):
    return make_suit_card(suit, value, _EFFECT)


def joker():
    return make_joker(Effect(EffectKind.BEST_JEST))


def table(*offers):
    players = [Player(name=chr(ord("A") + i), offer=o) for i, o in enumerate(offers)]
    game = Game(players=players, deck=[])
    game.round_number = 1
    return game


class Scripted:
    def __init__(self, picks=(), hides=()):
        self.picks = list(picks)
        self.hides = list(hides)

    def choose_hidden_card(self, game, player, card1, card2):
        return self.hides.pop(0) if self.hides else 1

    def choose_pick_card(self, game, player, candidates):
        return self.picks.pop(0) if self.picks else 1


def test_start_player_highest_visible_with_suit_tie_break():
    game = table(
        Offer(card(Suit.SPADE, 3), card(Suit.CLUB, 1)),
        Offer(card(Suit.HEART, 3), card(Suit.CLUB, 2)),
        Offer(card(Suit.DIAMOND, 3), card(Suit.CLUB, 3)),
    )
    draft = DraftRound(game)
    assert draft.start() is game.players[1]
    assert draft.phase is Phase.PLAYER_TURN


def test_visible_joker_cannot_start():
    game = table(
        Offer(joker(), card(Suit.CLUB, 1)),
        Offer(card(Suit.SPADE, 1), card(Suit.CLUB, 2)),
        Offer(card(Suit.DIAMOND, 1), card(Suit.CLUB, 3)),
    )
    assert DraftRound(game).start() is game.players[2]


def test_no_eligible_starting_player_is_state_error():
    game = table(Offer(joker(), card(Suit.CLUB, 1)), Offer(), Offer())
    with pytest.raises(GameStateError):
        DraftRound(game).start()


def test_round_without_full_offer_completes_at_once():
    game = table(Offer(card(Suit.SPADE, 1)), Offer(card(Suit.CLUB, 1)), Offer())
    draft = DraftRound(game)
    assert draft.start() is None
    assert draft.phase is Phase.ROUND_COMPLETE
    end_round(game, draft)


def test_candidate_order_opponents_visible_then_hidden():
    a = Offer(card(Suit.SPADE, 4), card(Suit.CLUB, 1))
    b = Offer(card(Suit.SPADE, 2), card(Suit.CLUB, 2))
    c = Offer(card(Suit.SPADE, 1), card(Suit.CLUB, 3))
    game = table(a, b, c)
    draft = DraftRound(game)
    draft.start()
    cands = draft.candidates()
    assert [(x.owner.name, x.visible) for x in cands] == [
        ("B", True), ("B", False), ("C", True), ("C", False),
    ]
    assert cands[1].card is b.hidden


def test_owner_who_already_drafted_is_skipped():
    a_vis, b_vis = card(Suit.DIAMOND, 4), card(Suit.SPADE, 2)
    game = table(
        Offer(a_vis, card(Suit.CLUB, 1)),
        Offer(b_vis, card(Suit.CLUB, 2)),
        Offer(card(Suit.CLUB, 3), card(Suit.SPADE, 1)),
        Offer(card(Suit.HEART, 1), card(Suit.DIAMOND, 1)),
    )
    A, B, C, D = game.players
    draft = DraftRound(game)
    assert draft.start() is A
    draft.pick(1)  # A takes B's visible card
    assert draft.current is B
    assert A.jest == [b_vis] and B.offer.visible is None
    draft.pick(1)  # B takes A's visible card; A has drafted already
    assert draft.current is C
    draft.pick(1)  # C can only draft from D
    assert draft.current is D
    assert len(draft.candidates()) == 2
    draft.pick(2)
    assert draft.phase is Phase.ROUND_COMPLETE
    assert [len(p.jest) for p in game.players] == [1, 1, 1, 1]
    assert all(len(p.offer.cards()) == 1 for p in game.players)
    end_round(game, draft)


def test_own_offer_fallback():
    game = table(
        Offer(card(Suit.SPADE, 4), card(Suit.CLUB, 4)),
        Offer(card(Suit.SPADE, 1)),
        Offer(card(Suit.CLUB, 1)),
    )
    A = game.players[0]
    draft = DraftRound(game)
    draft.start()
    cands = draft.candidates()
    assert [(x.owner, x.visible) for x in cands] == [(A, True), (A, False)]
    draft.pick(2)
    assert draft.phase is Phase.ROUND_COMPLETE
    assert A.offer.visible is not None and A.offer.hidden is None


def test_joker_faced_offer_still_drafts():
    game = table(
        Offer(card(Suit.SPADE, 4), card(Suit.CLUB, 4)),
        Offer(joker(), card(Suit.CLUB, 2)),
        Offer(card(Suit.SPADE, 1), card(Suit.CLUB, 1)),
    )
    A, B, C = game.players
    draft = DraftRound(game)
    draft.start()
    draft.pick(3)  # A takes C's visible card
    assert draft.current is C
    draft.pick(2)  # C takes A's hidden card, only B is left undrafted
    assert draft.current is B
    draft.pick(1)
    assert draft.phase is Phase.ROUND_COMPLETE
    assert [len(p.jest) for p in game.players] == [1, 1, 1]


def test_pick_out_of_range_raises_contract_error():
    game = table(
        Offer(card(Suit.SPADE, 4), card(Suit.CLUB, 4)),
        Offer(card(Suit.SPADE, 2), card(Suit.CLUB, 2)),
        Offer(card(Suit.SPADE, 1), card(Suit.CLUB, 1)),
    )
    draft = DraftRound(game)
    draft.start()
    with pytest.raises(DecisionContractError):
        draft.pick(5)
    with pytest.raises(DecisionContractError):
        draft.pick(0)


def test_end_round_with_full_offer_is_state_error():
    game = table(
        Offer(card(Suit.SPADE, 4), card(Suit.CLUB, 4)),
        Offer(card(Suit.SPADE, 2)),
        Offer(card(Suit.SPADE, 1)),
    )
    draft = DraftRound(game)
    draft.phase = Phase.ROUND_COMPLETE
    with pytest.raises(GameStateError):
        end_round(game, draft)


def test_invalid_answers_are_asked_again():
    game = table(
        Offer(card(Suit.SPADE, 4), card(Suit.CLUB, 4)),
        Offer(card(Suit.SPADE, 2), card(Suit.CLUB, 2)),
        Offer(card(Suit.SPADE, 1), card(Suit.CLUB, 1)),
    )
    providers = [Scripted(picks=[0, 9, True, "2", 1]), Scripted(), Scripted()]
    draft = run_draft(game, providers, max_attempts=5)
    assert draft.phase is Phase.ROUND_COMPLETE
    assert game.players[0].jest[0] is draft.picks[0][1].card
    assert draft.picks[0][1].owner is game.players[1]


def test_contract_error_after_max_attempts():
    game = table(
        Offer(card(Suit.SPADE, 4), card(Suit.CLUB, 4)),
        Offer(card(Suit.SPADE, 2), card(Suit.CLUB, 2)),
        Offer(card(Suit.SPADE, 1), card(Suit.CLUB, 1)),
    )
    providers = [Scripted(picks=[7] * 10), Scripted(), Scripted()]
    with pytest.raises(DecisionContractError) as info:
        run_draft(game, providers, max_attempts=3)
    assert info.value.attempts == 3
    assert info.value.last_answer == 7
    assert game.players[0].jest == []


def test_player_count_and_names_are_validated():
    with pytest.raises(ConfigurationError):
        Game.new(["A", "B"])
    with pytest.raises(ConfigurationError):
        Game.new(["A", "B", "C", "D", "E"])
    with pytest.raises(ConfigurationError):
        Game.new(["A", "A", "B"])
    with pytest.raises(ConfigurationError):
        Game.new(["A", "B", "C"], controllers=["random"])


def test_trophy_count_by_player_count():
    g3 = Game.new(["A", "B", "C"], rng=random.Random(0))
    g4 = Game.new(["A", "B", "C", "D"], rng=random.Random(0))
    assert len(g3.trophies) == 2 and len(g3.deck) == 15
    assert len(g4.trophies) == 1 and len(g4.deck) == 16


@pytest.mark.parametrize("num_players", [3, 4])
@pytest.mark.parametrize("expansion", [False, True])
@pytest.mark.parametrize("seed", [0, 1, 2])
def test_card_count_is_conserved_over_a_game(num_players, expansion, seed):
    rng = random.Random(seed)
    game = Game.new([f"P{i}" for i in range(num_players)], include_expansion=expansion, rng=rng)
    total = game.total_cards()
    assert total == (26 if expansion else 17)
    counts = []
    checked = (EventKind.ROUND_ENDED, EventKind.CARD_PICKED, EventKind.TROPHY_AWARDED, EventKind.GAME_ENDED)
    game.subscribe(lambda e: counts.append(game.total_cards()) if e.kind in checked else None)
    providers = [RandomStrategy(seed + i) for i in range(num_players)]
    result = play_game(game, providers, rng)
    assert counts and all(c == total for c in counts)
    assert game.total_cards() == total
    assert all(p.offer.is_empty() for p in game.players)
    assert set(result.points) == {p.name for p in game.players}


def test_game_is_reproducible_from_seed():
    def run(seed):
        game = Game.from_config(GameConfig(player_names=["A", "B", "C"], seed=seed))
        providers = [SafeStrategy(1), RiskyStrategy(2), AdaptiveStrategy(3)]
        return play_game(game, providers, random.Random(seed)).points

    assert run(11) == run(11)


def test_event_order_and_trophies():
    rng = random.Random(4)
    game = Game.new(["A", "B", "C"], rng=rng)
    trophies = list(game.trophies)
    events = []
    game.subscribe(events.append)
    result = play_game(game, [RandomStrategy(i) for i in range(3)], rng)
    kinds = [e.kind for e in events]
    assert kinds[0] is EventKind.ROUND_STARTED
    assert kinds[-1] is EventKind.GAME_ENDED
    assert kinds.count(EventKind.ROUND_STARTED) == kinds.count(EventKind.ROUND_ENDED)
    assert [t for t, _ in result.trophies] == trophies
    for trophy, winner in result.trophies:
        if winner is None:
            assert any(t is trophy for t in game.trophies)
        else:
            assert any(c is trophy for c in winner.jest)
    best = max(result.points.values())
    assert result.points[result.winner.name] == best
    first_best = next(p for p in game.players if result.points[p.name] == best)
    assert result.winner is first_best


def test_finish_twice_is_state_error():
    rng = random.Random(0)
    game = Game.new(["A", "B", "C"], rng=rng)
    play_game(game, rng=rng)
    with pytest.raises(GameStateError):
        finish_game(game)


@pytest.mark.parametrize("variant", [SpeedVariant(), HighStakesVariant()])
def test_variants_play_to_the_end(variant):
    rng = random.Random(9)
    game = Game.new(["A", "B", "C", "D"], variant=variant, rng=rng)
    result = play_game(game, rng=rng)
    for p in game.players:
        assert result.points[p.name] == variant.points(p)
    assert game.total_cards() == 17


def test_config_retry_limit_reaches_the_drivers():
    cfg = GameConfig(player_names=["A", "B", "C"], seed=1, max_decision_attempts=2)
    game = Game.from_config(cfg)
    assert game.max_decision_attempts == 2
    providers = [Scripted(picks=[9] * 10, hides=[9] * 10) for _ in range(3)]
    with pytest.raises(DecisionContractError) as info:
        play_game(game, providers, random.Random(1))
    assert info.value.attempts == 2
    assert info.value.last_answer == 9
