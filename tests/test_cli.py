"""Tests for the command-line interface."""
import random

from jest import cli
from jest.deck import Effect, EffectKind, Suit, make_suit_card
from jest.game import Game, play_game
from jest.persistence import list_saves
from jest.players import Candidate, Player


def test_simulate_reports_every_seat():
    stats = cli.simulate(["random", "safe", "risky"], games=5, seed=1)
    assert set(stats) == {"random0", "safe1", "risky2"}
    assert sum(s["wins"] for s in stats.values()) == 5


def test_simulate_command_prints(capsys):
    assert cli.main(["simulate", "--games", "3", "--controllers", "random", "adaptive", "safe", "risky"]) == 0
    out = capsys.readouterr().out
    assert "3 games" in out
    assert "adaptive1" in out


def test_play_with_computer_players_and_save(tmp_path, capsys):
    code = cli.main([
        "play",
        "--players", "A", "B", "C",
        "--controllers", "random", "safe", "adaptive",
        "--seed", "4",
        "--save", "run1",
        "--save-dir", str(tmp_path),
    ])
    assert code == 0
    out = capsys.readouterr().out
    assert "Round 1" in out
    assert "Game over" in out
    # Finished games do not leave a save behind
    assert list_saves(tmp_path) == []


def test_play_rejects_bad_player_count(capsys):
    code = cli.main(["play", "--players", "A", "B", "--controllers", "random", "random"])
    assert code == 1
    assert "Error" in capsys.readouterr().out


def test_saves_command_lists_nothing(tmp_path, capsys):
    assert cli.main(["saves", "--save-dir", str(tmp_path)]) == 0
    assert "No saved games" in capsys.readouterr().out


def test_console_provider_reads_answers():
    answers = iter(["2", "x", "1"])
    lines = []
    provider = cli.ConsoleProvider(input_fn=lambda prompt: next(answers), print_fn=lines.append)
    effect = Effect(EffectKind.JOKER)
    a, b = make_suit_card(Suit.SPADE, 1, effect), make_suit_card(Suit.CLUB, 2, effect)
    me, owner = Player("Me"), Player("Bob")
    assert provider.choose_hidden_card(None, me, a, b) == 2
    cands = [Candidate(a, owner, True), Candidate(b, owner, False)]
    assert provider.choose_pick_card(None, me, cands) == "x"
    assert any("[hidden]" in line for line in lines)
    assert not any(str(b) in line for line in lines[1:])


def test_console_provider_in_a_game():
    rng = random.Random(0)
    game = Game.new(["Me", "B", "C"], controllers=["human", "random", "random"], rng=rng)
    provider = cli.ConsoleProvider(input_fn=lambda prompt: "1", print_fn=lambda s: None)
    providers = cli.build_providers(game, seed=0)
    providers[0] = provider
    result = play_game(game, providers, rng)
    assert set(result.points) == {"Me", "B", "C"}
