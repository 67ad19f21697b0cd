"""
Two-player Durak match engine.

This package provides the card rules, the per-match state machine, the
registry of live matches, and an asynchronous service facade for a transport
layer to drive.
"""

from durak.api import DurakService
from durak.common import Card, Rank, Suit
from durak.errors import (
    DurakError,
    InvariantViolation,
    MalformedCardError,
    MatchIdExhausted,
)
from durak.match import MatchPhase, MatchSession, MatchView
from durak.registry import (
    ActionResult,
    ActionStatus,
    MatchRegistry,
    RegistryErrorKind,
    RegistryResult,
)

__version__ = "0.1.0"

__all__ = [
    "DurakService",
    "Card",
    "Rank",
    "Suit",
    "DurakError",
    "InvariantViolation",
    "MalformedCardError",
    "MatchIdExhausted",
    "MatchPhase",
    "MatchSession",
    "MatchView",
    "ActionResult",
    "ActionStatus",
    "MatchRegistry",
    "RegistryErrorKind",
    "RegistryResult",
]
