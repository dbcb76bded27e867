"""
Exceptions raised by the Jest engine.

- ConfigurationError: invalid setup (player count, variant, card effect shape).
- DecisionContractError: a decision provider kept answering outside the
  declared range after all retries.
- GameStateError: an engine invariant is broken (no starting player, a
  player still holding two offer cards at round end, ...).
- PersistenceError: a snapshot cannot be read back.

Running out of cards during distribution is not an error.
"""
from __future__ import annotations


class JestError(Exception):
    """Base exception for Jest engine errors."""


class ConfigurationError(JestError, ValueError):
    """Raised when a game, deck or variant is configured inconsistently."""


class CardConfigurationError(ConfigurationError):
    """Raised when a card effect is built with the wrong parameter shape."""


class DecisionContractError(JestError):
    """Raised when a decision provider answers out of range too many times."""

    def __init__(self, player_name: str, low: int, high: int, last_answer: object, attempts: int):
        self.player_name = player_name
        self.low = low
        self.high = high
        self.last_answer = last_answer
        self.attempts = attempts
        super().__init__(
            f"{player_name} answered {last_answer!r} {attempts} times; "
            f"expected an integer in [{low}, {high}]"
        )


class GameStateError(JestError):
    """Raised when the game is in an invalid state for the requested action."""


class PersistenceError(JestError):
    """Raised when a saved game snapshot cannot be restored."""


__all__ = [
    "JestError",
    "ConfigurationError",
    "CardConfigurationError",
    "DecisionContractError",
    "GameStateError",
    "PersistenceError",
]
