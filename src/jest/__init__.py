"""Jest card game engine: distribution, draft, trophies and scoring."""

__version__ = "0.1.0"

from .deck import Card, Effect, EffectKind, Suit, make_deck, make_full_deck
from .errors import (
    JestError,
    ConfigurationError,
    CardConfigurationError,
    DecisionContractError,
    GameStateError,
    PersistenceError,
)
from .players import Candidate, Offer, Player
from .scoring import jest_points
from .effects import resolve_effect, trophy_winner
from .variants import ClassicVariant, GameVariant, HighStakesVariant, SpeedVariant, variant_by_name
from .events import EventKind, GameEvent
from .agents import AdaptiveStrategy, RandomStrategy, RiskyStrategy, SafeStrategy, make_provider
from .game import (
    DraftRound,
    Game,
    GameConfig,
    GameResult,
    Phase,
    finish_game,
    play_game,
    play_round,
)
