"""
Durak match module.

This module provides the match state models, the pure state transitions,
the live per-match session, and the per-player view.
"""

from durak.match.state import (
    ActionKind as ActionKind,
    LastAction as LastAction,
    MatchPhase as MatchPhase,
    MatchRules as MatchRules,
    MatchState as MatchState,
    PlayerState as PlayerState,
    TablePair as TablePair,
    TableState as TableState,
)
from durak.match.transitions import StateTransitionEngine as StateTransitionEngine
from durak.match.session import MatchSession as MatchSession, verify_integrity as verify_integrity
from durak.match.view import MatchView as MatchView

__all__ = [
    "ActionKind",
    "LastAction",
    "MatchPhase",
    "MatchRules",
    "MatchState",
    "PlayerState",
    "TablePair",
    "TableState",
    "StateTransitionEngine",
    "MatchSession",
    "verify_integrity",
    "MatchView",
]
