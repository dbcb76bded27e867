"""
Game snapshots for save/load.

Exports and imports a Game to/from JSON-compatible dicts. Snapshots are taken
between rounds: the deck pool, reserved trophies, every player's jest and
offer, the round counter, the variant name and the expansion flag. A restored
game resumes with the next round.
"""
from __future__ import annotations

import json
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

from .deck import Card, Effect, EffectKind, Suit
from .errors import ConfigurationError, PersistenceError
from .game import Game
from .players import Offer, Player
from .variants import variant_by_name

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1
DEFAULT_SAVE_DIR = Path("saves")
SAVE_SUFFIX = ".json"

_SAVE_NAME = re.compile(r"^[A-Za-z0-9_.-]+$")


def _card_to_dict(card: Card) -> Dict[str, Any]:
    effect = card.effect
    return {
        "kind": card.kind,
        "suit": card.suit.name if card.suit is not None else None,
        "value": card.value,
        "effect": {
            "kind": effect.kind.name,
            "sign": effect.sign.name if effect.sign is not None else None,
            "value": effect.value,
        },
    }


def _card_from_dict(d: Dict[str, Any]) -> Card:
    try:
        e = d["effect"]
        effect = Effect(
            kind=EffectKind[e["kind"]],
            sign=Suit[e["sign"]] if e.get("sign") is not None else None,
            value=e.get("value"),
        )
        return Card(
            kind=d["kind"],
            effect=effect,
            suit=Suit[d["suit"]] if d.get("suit") is not None else None,
            value=d.get("value"),
        )
    except (KeyError, TypeError, AttributeError, ConfigurationError) as exc:
        raise PersistenceError(f"Malformed card entry {d!r}: {exc}") from exc


def _optional_card(d: Dict[str, Any] | None) -> Card | None:
    return None if d is None else _card_from_dict(d)


def _player_to_dict(player: Player) -> Dict[str, Any]:
    offer = player.offer
    return {
        "name": player.name,
        "controller": player.controller,
        "jest": [_card_to_dict(c) for c in player.jest],
        "offer": {
            "visible": _card_to_dict(offer.visible) if offer.visible is not None else None,
            "hidden": _card_to_dict(offer.hidden) if offer.hidden is not None else None,
        },
    }


def _player_from_dict(d: Dict[str, Any]) -> Player:
    if not isinstance(d, dict):
        raise PersistenceError(f"Malformed player entry {d!r}")
    offer = d.get("offer") or {}
    if not isinstance(offer, dict):
        raise PersistenceError(f"Malformed offer of {d.get('name')!r}: {offer!r}")
    return Player(
        name=d["name"],
        controller=d.get("controller", "random"),
        jest=[_card_from_dict(c) for c in d.get("jest", [])],
        offer=Offer(
            visible=_optional_card(offer.get("visible")),
            hidden=_optional_card(offer.get("hidden")),
        ),
    )


def game_to_dict(
    game: Game,
    *,
    metadata: Dict[str, Any] | None = None,
) -> Dict[str, Any]:
    """
    Serialize a Game to a JSON-compatible dict.

    Args:
        game: The game to serialize, between two rounds.
        metadata: Optional extra metadata (e.g. a seed or a save label).

    Returns:
        Dict with schema_version, exported_at, the game state and optional metadata.
    """
    result: Dict[str, Any] = {
        "schema_version": SCHEMA_VERSION,
        "exported_at": datetime.now(timezone.utc).isoformat(),
        "round_number": game.round_number,
        "variant": game.variant.name,
        "include_expansion": game.include_expansion,
        "finished": game.finished,
        "deck": [_card_to_dict(c) for c in game.deck],
        "trophies": [_card_to_dict(c) for c in game.trophies],
        "players": [_player_to_dict(p) for p in game.players],
    }
    if metadata:
        result["metadata"] = metadata
    return result


def game_from_dict(d: Dict[str, Any]) -> Game:
    """
    Deserialize a Game from a dict (e.g. from JSON).

    Raises:
        PersistenceError: unknown schema version or variant, malformed entries.
    """
    if not isinstance(d, dict):
        raise PersistenceError(f"A game snapshot must be an object, got {type(d).__name__}")
    version = d.get("schema_version")
    if version != SCHEMA_VERSION:
        raise PersistenceError(f"Unsupported schema version {version!r} (expected {SCHEMA_VERSION})")
    try:
        variant = variant_by_name(d.get("variant", "Classic"))
    except ConfigurationError as exc:
        raise PersistenceError(str(exc)) from exc
    try:
        players = [_player_from_dict(p) for p in d["players"]]
        return Game(
            players=players,
            deck=[_card_from_dict(c) for c in d.get("deck", [])],
            trophies=[_card_from_dict(c) for c in d.get("trophies", [])],
            variant=variant,
            round_number=int(d.get("round_number", 0)),
            include_expansion=bool(d.get("include_expansion", False)),
            finished=bool(d.get("finished", False)),
        )
    except PersistenceError:
        raise
    except (KeyError, TypeError, AttributeError, ValueError) as exc:
        raise PersistenceError(f"Malformed game snapshot: {exc}") from exc


def game_to_json(game: Game, *, metadata: Dict[str, Any] | None = None) -> str:
    """Serialize a Game to a JSON string."""
    return json.dumps(game_to_dict(game, metadata=metadata), indent=2)


def game_from_json(s: str) -> Game:
    """Deserialize a Game from a JSON string."""
    try:
        data = json.loads(s)
    except json.JSONDecodeError as exc:
        raise PersistenceError(f"Invalid JSON: {exc}") from exc
    return game_from_dict(data)


# ---- Save directory ----


def _save_path(name: str, directory: Path | str) -> Path:
    if not _SAVE_NAME.match(name):
        raise PersistenceError(f"Invalid save name {name!r}")
    return Path(directory) / f"{name}{SAVE_SUFFIX}"


def save_game(
    game: Game,
    name: str,
    directory: Path | str = DEFAULT_SAVE_DIR,
    *,
    metadata: Dict[str, Any] | None = None,
) -> Path:
    """Write ``game`` to ``<directory>/<name>.json`` and return the path."""
    path = _save_path(name, directory)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(game_to_json(game, metadata=metadata), encoding="utf-8")
    logger.info("Saved game after round %d to %s", game.round_number, path)
    return path


def load_game(name: str, directory: Path | str = DEFAULT_SAVE_DIR) -> Game:
    path = _save_path(name, directory)
    if not path.exists():
        raise PersistenceError(f"No save named {name!r} in {directory}")
    game = game_from_json(path.read_text(encoding="utf-8"))
    logger.info("Loaded %s (round %d)", path, game.round_number)
    return game


def list_saves(directory: Path | str = DEFAULT_SAVE_DIR) -> List[str]:
    """Save names in ``directory``, sorted."""
    directory = Path(directory)
    if not directory.is_dir():
        return []
    return sorted(p.stem for p in directory.glob(f"*{SAVE_SUFFIX}"))


def delete_save(name: str, directory: Path | str = DEFAULT_SAVE_DIR) -> bool:
    """Remove a save. Returns False if there was none."""
    path = _save_path(name, directory)
    if not path.exists():
        return False
    path.unlink()
    return True


__all__ = [
    "game_to_dict",
    "game_from_dict",
    "game_to_json",
    "game_from_json",
    "save_game",
    "load_game",
    "list_saves",
    "delete_save",
    "SCHEMA_VERSION",
    "DEFAULT_SAVE_DIR",
]
