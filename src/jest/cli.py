"""
Command-line interface for playing, simulating and training Jest agents.

Usage examples:

    jest play --players Ann Bob Cid --controllers human safe adaptive
    jest simulate --games 200 --controllers random safe risky adaptive
    jest saves --delete mygame

With the ``rl`` extra installed:

    jest train-ppo --updates 20 --batch-size 1024 --checkpoint-dir checkpoints/run1
    jest eval --checkpoint-dir checkpoints/run1 --games 50
"""
from __future__ import annotations

import argparse
import logging
import random
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from .agents import DecisionProvider, make_provider
from .deck import Card
from .errors import JestError
from .events import EventKind, GameEvent
from .game import Game, GameConfig, finish_game, play_game, play_round
from .persistence import DEFAULT_SAVE_DIR, delete_save, list_saves, load_game, save_game
from .players import Candidate, Player
from .variants import VARIANTS, variant_by_name

logger = logging.getLogger(__name__)

CONTROLLERS = ["human", "random", "safe", "risky", "adaptive"]


class ConsoleProvider:
    """Decision provider asking a human at the terminal."""

    def __init__(
        self,
        input_fn: Callable[[str], str] = input,
        print_fn: Callable[[str], None] = print,
    ) -> None:
        self._input = input_fn
        self._print = print_fn

    def _ask_int(self, prompt: str) -> object:
        answer = self._input(prompt).strip()
        try:
            return int(answer)
        except ValueError:
            return answer

    def choose_hidden_card(self, game: Game, player: Player, card1: Card, card2: Card) -> int:
        self._print(f"{player.name}, you were dealt: 1) {card1}   2) {card2}")
        return self._ask_int("Which card do you hide? [1-2] ")  # type: ignore[return-value]

    def choose_pick_card(self, game: Game, player: Player, candidates: Sequence[Candidate]) -> int:
        self._print(f"{player.name}, your jest: {' '.join(map(str, player.jest)) or '(empty)'}")
        for i, cand in enumerate(candidates, start=1):
            shown = str(cand.card) if cand.visible else "[hidden]"
            self._print(f"  {i}) {shown} from {cand.owner.name}")
        return self._ask_int(f"Which card do you take? [1-{len(candidates)}] ")  # type: ignore[return-value]


def _print_event(event: GameEvent) -> None:
    p = event.payload
    if event.kind is EventKind.ROUND_STARTED:
        print(f"--- Round {event.round_number} ({p['deck_size']} cards in the deck) ---")
    elif event.kind is EventKind.OFFER_DEALT:
        visible = p["visible"] if p["visible"] is not None else "-"
        print(f"{p['player'].name} offers {visible}" + (" + [hidden]" if p["cards_dealt"] == 2 else ""))
    elif event.kind is EventKind.CARD_PICKED:
        card = p["card"] if p["visible"] else "a hidden card"
        print(f"{p['picker'].name} takes {card} from {p['owner'].name}")
    elif event.kind is EventKind.TROPHY_AWARDED:
        print(f"Trophy {p['card']} ({p['card'].effect.code()}) goes to {p['winner'].name}")
    elif event.kind is EventKind.GAME_ENDED:
        winner = p["winner"].name if p["winner"] is not None else "nobody"
        print(f"Game over. Winner: {winner}")


def build_providers(game: Game, seed: Optional[int] = None) -> List[DecisionProvider]:
    """One provider per seat; "human" seats are asked on the console."""
    providers: List[DecisionProvider] = []
    for i, player in enumerate(game.players):
        if player.controller == "human":
            providers.append(ConsoleProvider())
        else:
            providers.append(make_provider(player.controller, None if seed is None else seed + i))
    return providers


def _print_scores(game: Game, points: Dict[str, int]) -> None:
    for player in game.players:
        jest = " ".join(str(c) for c in player.jest)
        print(f"{player.name:>12}: {points[player.name]:>4}  [{jest}]")


# ---- play ----


def _add_play_parser(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("play", help="Play a game on the console.")
    parser.add_argument("--players", nargs="+", default=["You", "Bot1", "Bot2"], help="Player names (3 or 4).")
    parser.add_argument(
        "--controllers",
        nargs="+",
        choices=CONTROLLERS,
        default=None,
        help='Controller per player (default: "human" then "adaptive").',
    )
    parser.add_argument("--variant", choices=sorted(VARIANTS), default="Classic", help="Game variant.")
    parser.add_argument("--expansion", action="store_true", help="Add the 9 expansion cards.")
    parser.add_argument("--seed", type=int, default=None, help="Random seed.")
    parser.add_argument("--max-attempts", type=int, default=5, help="Retries for invalid answers.")
    parser.add_argument("--save", type=str, default=None, help="Save name, written after every round.")
    parser.add_argument("--load", type=str, default=None, help="Resume a saved game.")
    parser.add_argument("--save-dir", type=str, default=str(DEFAULT_SAVE_DIR), help="Save directory.")
    parser.set_defaults(func=_cmd_play)


def _cmd_play(args: argparse.Namespace) -> None:
    rng = random.Random(args.seed)
    if args.load:
        game = load_game(args.load, args.save_dir)
        game.max_decision_attempts = args.max_attempts
        print(f"Resuming {args.load} after round {game.round_number}")
    else:
        controllers = args.controllers or ["human"] + ["adaptive"] * (len(args.players) - 1)
        cfg = GameConfig(
            player_names=list(args.players),
            controllers=list(controllers),
            variant=args.variant,
            include_expansion=args.expansion,
            seed=args.seed,
            max_decision_attempts=args.max_attempts,
        )
        game = Game.from_config(cfg, rng=rng)
    game.subscribe(_print_event)
    providers = build_providers(game, args.seed)

    print(f"{game.variant.name}: {game.variant.description}")
    while game.deck:
        drafted = play_round(game, providers, rng)
        if args.save and game.deck and drafted:
            save_game(game, args.save, args.save_dir)
        if not drafted:
            break
    result = finish_game(game)
    _print_scores(game, result.points)
    if args.save:
        delete_save(args.save, args.save_dir)


# ---- simulate ----


def _add_simulate_parser(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("simulate", help="Play many computer-only games and report results.")
    parser.add_argument("--games", type=int, default=100, help="Number of games.")
    parser.add_argument(
        "--controllers",
        nargs="+",
        choices=CONTROLLERS[1:],
        default=["random", "safe", "risky", "adaptive"],
        help="One strategy per seat (3 or 4 seats).",
    )
    parser.add_argument("--variant", choices=sorted(VARIANTS), default="Classic", help="Game variant.")
    parser.add_argument("--expansion", action="store_true", help="Add the 9 expansion cards.")
    parser.add_argument("--seed", type=int, default=0, help="Random seed.")
    parser.set_defaults(func=_cmd_simulate)


def simulate(
    controllers: Sequence[str],
    games: int,
    variant: str = "Classic",
    include_expansion: bool = False,
    seed: int = 0,
) -> Dict[str, Dict[str, float]]:
    """Per-seat wins and average points over ``games`` games."""
    names = [f"{c}{i}" for i, c in enumerate(controllers)]
    stats = {n: {"wins": 0, "points": 0.0} for n in names}
    rng = random.Random(seed)
    for g in range(games):
        game = Game.new(
            names,
            controllers=list(controllers),
            variant=variant_by_name(variant),
            include_expansion=include_expansion,
            rng=rng,
        )
        providers = [make_provider(c, seed * 1000 + g * 10 + i) for i, c in enumerate(controllers)]
        result = play_game(game, providers, rng)
        for name, pts in result.points.items():
            stats[name]["points"] += pts
        if result.winner is not None:
            stats[result.winner.name]["wins"] += 1
    for s in stats.values():
        s["avg_points"] = s.pop("points") / games if games else 0.0
    return stats


def _cmd_simulate(args: argparse.Namespace) -> None:
    stats = simulate(args.controllers, args.games, args.variant, args.expansion, args.seed)
    print(f"{args.games} games, variant={args.variant}, expansion={args.expansion}")
    for name, s in stats.items():
        print(f"{name:>12}: wins={s['wins']:>5}  avg_points={s['avg_points']:.2f}")


# ---- saves ----


def _add_saves_parser(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("saves", help="List or delete saved games.")
    parser.add_argument("--save-dir", type=str, default=str(DEFAULT_SAVE_DIR), help="Save directory.")
    parser.add_argument("--delete", type=str, default=None, help="Delete the named save.")
    parser.set_defaults(func=_cmd_saves)


def _cmd_saves(args: argparse.Namespace) -> None:
    if args.delete:
        removed = delete_save(args.delete, args.save_dir)
        print(f"Deleted {args.delete}" if removed else f"No save named {args.delete}")
        return
    names = list_saves(args.save_dir)
    if not names:
        print("No saved games.")
    for name in names:
        print(name)


# ---- train-ppo / eval (rl extra) ----


def _add_train_ppo_parser(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("train-ppo", help="Train a Jest policy with custom PPO.")
    parser.add_argument("--updates", type=int, default=50, help="Number of PPO update cycles to run.")
    parser.add_argument("--players", type=int, choices=[3, 4], default=4, help="Number of seats.")
    parser.add_argument("--variant", choices=sorted(VARIANTS), default="Classic", help="Game variant.")
    parser.add_argument("--batch-size", type=int, default=1024, help="Environment steps per PPO batch.")
    parser.add_argument("--minibatch-size", type=int, default=128, help="Minibatch size for PPO updates.")
    parser.add_argument("--update-epochs", type=int, default=4, help="Number of PPO epochs per update.")
    parser.add_argument("--learning-rate", type=float, default=3e-4, help="Learning rate for the optimizer.")
    parser.add_argument("--seed", type=int, default=0, help="Random seed for environment and training.")
    parser.add_argument("--device", type=str, default="cpu", help='Torch device string, e.g. "cpu" or "cuda".')
    parser.add_argument(
        "--checkpoint-dir",
        type=str,
        default="checkpoints/ppo_run",
        help="Directory where the final checkpoint will be saved.",
    )
    parser.set_defaults(func=_cmd_train_ppo)


def _cmd_train_ppo(args: argparse.Namespace) -> None:
    import torch

    from .env_game import JestEnv
    from .training import JestPPOTrainer, PPOConfig

    env = JestEnv(num_players=args.players, variant=args.variant, rng=random.Random(args.seed))
    cfg = PPOConfig(
        learning_rate=args.learning_rate,
        batch_size=args.batch_size,
        minibatch_size=args.minibatch_size,
        update_epochs=args.update_epochs,
    )
    trainer = JestPPOTrainer(env, cfg=cfg, device=torch.device(args.device))

    for i in range(1, args.updates + 1):
        stats = trainer.update(seed=args.seed + i)
        print(
            f"[update {i}/{args.updates}] "
            f"loss={stats.get('loss', 0.0):.4f} "
            f"policy={stats.get('policy_loss', 0.0):.4f} "
            f"value={stats.get('value_loss', 0.0):.4f} "
            f"entropy(hide/pick)={stats.get('hide_entropy', 0.0):.3f}/{stats.get('pick_entropy', 0.0):.3f} "
            f"return={stats.get('mean_return', 0.0):.2f} "
            f"wins={stats.get('win_rate', 0.0):.0%}",
            flush=True,
        )

    out_dir = Path(args.checkpoint_dir)
    trainer.save_checkpoint(str(out_dir))
    print(f"Saved checkpoint to {out_dir.resolve()}")


def _add_eval_parser(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("eval", help="Evaluate a policy checkpoint vs random opponents.")
    parser.add_argument("--checkpoint-dir", type=str, required=True, help="Checkpoint directory from train-ppo.")
    parser.add_argument("--games", type=int, default=20, help="Number of games to play.")
    parser.add_argument("--players", type=int, choices=[3, 4], default=4, help="Number of seats.")
    parser.add_argument("--variant", choices=sorted(VARIANTS), default="Classic", help="Game variant.")
    parser.add_argument("--seed", type=int, default=123, help="Random seed for evaluation.")
    parser.add_argument("--device", type=str, default="cpu", help='Torch device string, e.g. "cpu" or "cuda".')
    parser.set_defaults(func=_cmd_eval)


def _cmd_eval(args: argparse.Namespace) -> None:
    import torch

    from .env import PHASE_HIDE, PHASE_PICK
    from .env_game import JestEnv
    from .policies import evaluate_policy, load_policy_from_checkpoint

    env = JestEnv(num_players=args.players, variant=args.variant, rng=random.Random(args.seed))
    policy = load_policy_from_checkpoint(args.checkpoint_dir, device=torch.device(args.device))
    report = evaluate_policy(policy, env, args.games)
    for g, points in enumerate(report.points, start=1):
        print(f"[game {g}/{report.games}] points={points}")
    print(
        f"Average points over {report.games} games: {report.mean_points:.2f} (wins: {report.wins}); "
        f"confidence hide={report.mean_confidence(PHASE_HIDE):.2f} pick={report.mean_confidence(PHASE_PICK):.2f}"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="jest", description="Jest card game CLI.")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level for the engine.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_play_parser(subparsers)
    _add_simulate_parser(subparsers)
    _add_saves_parser(subparsers)
    _add_train_ppo_parser(subparsers)
    _add_eval_parser(subparsers)
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        args.func(args)
    except JestError as exc:
        logger.error("%s", exc)
        print(f"Error: {exc}")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
