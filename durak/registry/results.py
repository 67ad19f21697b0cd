"""
Result types returned by the match registry.

Registry conflicts and move rejections are ordinary outcomes, so they are
returned as values carrying a stable kind rather than raised.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from durak.match.view import MatchView


class RegistryErrorKind(Enum):
    """Why a registry operation failed. The value is the stable kind string."""

    ALREADY_IN_MATCH = "already_in_match"
    MATCH_NOT_FOUND = "match_not_found"
    MATCH_FULL = "match_full"
    MATCH_STARTED = "match_started"
    NOT_IN_MATCH = "not_in_match"

    @property
    def reason(self) -> str:
        """Default human-readable explanation."""
        return _REASONS[self]


_REASONS = {
    RegistryErrorKind.ALREADY_IN_MATCH: "Player is already in a match; leave it first.",
    RegistryErrorKind.MATCH_NOT_FOUND: "Match not found.",
    RegistryErrorKind.MATCH_FULL: "Match is already full.",
    RegistryErrorKind.MATCH_STARTED: "Match has already started.",
    RegistryErrorKind.NOT_IN_MATCH: "Player is not in any match.",
}


@dataclass(frozen=True)
class RegistryResult:
    """
    Outcome of create, join and leave.

    Attributes:
        ok: Whether the operation succeeded
        match_id: ID of the match concerned, when known
        error: Failure kind when ``ok`` is False
    """

    ok: bool
    match_id: Optional[str] = None
    error: Optional[RegistryErrorKind] = None

    @classmethod
    def success(cls, match_id: Optional[str] = None) -> "RegistryResult":
        return cls(ok=True, match_id=match_id)

    @classmethod
    def failure(
        cls, error: RegistryErrorKind, match_id: Optional[str] = None
    ) -> "RegistryResult":
        return cls(ok=False, match_id=match_id, error=error)

    @property
    def reason(self) -> Optional[str]:
        return self.error.reason if self.error else None


class ActionStatus(Enum):
    """Outcome of a move routed through the registry."""

    OK = "ok"
    REJECTED = "rejected"
    NOT_FOUND = "not_found"
    MALFORMED = "malformed"


@dataclass(frozen=True)
class ActionResult:
    """
    Outcome of a move.

    Attributes:
        status: Whether the move was applied, rejected, or had no match
        view: The actor's view of the match after the attempt, if they have one
    """

    status: ActionStatus
    view: Optional[MatchView] = None

    @property
    def ok(self) -> bool:
        return self.status == ActionStatus.OK


@dataclass(frozen=True)
class MatchSummary:
    """Lobby listing of an open match."""

    match_id: str
    player_count: int
    max_players: int
    status: str
    created_at: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "match_id": self.match_id,
            "player_count": self.player_count,
            "max_players": self.max_players,
            "status": self.status,
            "created_at": self.created_at,
        }


@dataclass(frozen=True)
class RegistryStats:
    """Counts of live matches and players."""

    active_matches: int
    online_players: int
    waiting: int
    playing: int
    finished: int

    def to_dict(self) -> Dict[str, int]:
        return {
            "active_matches": self.active_matches,
            "online_players": self.online_players,
            "waiting": self.waiting,
            "playing": self.playing,
            "finished": self.finished,
        }
