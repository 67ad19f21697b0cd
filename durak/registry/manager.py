"""
Match registry: owns every live match and the player to match index.

The registry creates matches, seats and removes players, routes moves to
the right `MatchSession`, and reclaims matches that are empty or finished.

Locking: the player and match dictionaries are guarded by one coarse
re-entrant lock; each match also has its own lock that serializes every
action on that match. A match lock is always taken before the registry lock,
never after. Events are emitted with no registry lock held, and reading a
player's view takes no match lock, so event handlers may query the registry
about any match.
"""

from typing import Any, Callable, Dict, List, Optional
import random
import threading
import time

from durak.common.card import Card
from durak.events import EventBus, EventEmitter, MatchEventType
from durak.match.constants import MAX_PLAYERS
from durak.match.session import MatchSession
from durak.match.state import MatchPhase, MatchRules
from durak.match.view import MatchView
from durak.registry.ids import DEFAULT_ALPHABET, RegistryConfig, generate_match_id
from durak.registry.results import (
    ActionResult,
    ActionStatus,
    MatchSummary,
    RegistryErrorKind,
    RegistryResult,
    RegistryStats,
)


class MatchRegistry:
    """
    Registry of live matches.

    Construct one per process and hand it to whatever serves players; every
    lookup by player ID or match ID is a dictionary lookup.
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        rng: Optional[random.Random] = None,
        emitter: Optional[EventEmitter] = None,
    ):
        """
        Initialize the registry.

        Args:
            config: Configuration options (match id format, hand size)
            rng: Random source; each match gets its own generator seeded from it
            emitter: Event emitter (the process EventBus if None)
        """
        default_config = {
            "match_id_length": 6,
            "match_id_alphabet": DEFAULT_ALPHABET,
            "max_id_attempts": 10,
            "fallback_id_length": 12,
            "hand_size": 6,
        }

        if config:
            default_config.update(config)

        self.config = default_config

        self.id_config = RegistryConfig(
            match_id_length=self.config["match_id_length"],
            match_id_alphabet=self.config["match_id_alphabet"],
            max_id_attempts=self.config["max_id_attempts"],
            fallback_id_length=self.config["fallback_id_length"],
        )
        self.rules = MatchRules(hand_size=self.config["hand_size"])

        self.event_bus = emitter or EventBus.get_instance()
        self._rng = rng or random.Random()

        self._sessions: Dict[str, MatchSession] = {}
        self._player_matches: Dict[str, str] = {}
        self._match_locks: Dict[str, threading.RLock] = {}
        self._lock = threading.RLock()

    # Lookups

    def get_session(self, match_id: str) -> Optional[MatchSession]:
        """Get a live match session by match ID."""
        with self._lock:
            return self._sessions.get(match_id)

    def get_match_id_for_player(self, player_id: str) -> Optional[str]:
        with self._lock:
            return self._player_matches.get(player_id)

    def get_session_for_player(self, player_id: str) -> Optional[MatchSession]:
        """Get the session of the match ``player_id`` belongs to."""
        with self._lock:
            match_id = self._player_matches.get(player_id)
            if match_id is None:
                return None
            return self._sessions.get(match_id)

    def is_player_in_match(self, player_id: str) -> bool:
        with self._lock:
            return player_id in self._player_matches

    def get_match_for_player(self, player_id: str) -> Optional[MatchView]:
        """
        Get the player's view of their match.

        Returns:
            The player-scoped view, or None if the player is in no match
        """
        session, _ = self._resolve(player_id)
        if session is None:
            return None
        # Sessions publish immutable snapshots; no match lock is needed to read one
        return session.view_for(player_id)

    @property
    def active_match_count(self) -> int:
        with self._lock:
            return len(self._sessions)

    @property
    def online_player_count(self) -> int:
        with self._lock:
            return len(self._player_matches)

    # Lifecycle

    def create_match(self, player_id: str) -> RegistryResult:
        """
        Create a new match and seat its first player.

        Args:
            player_id: ID of the creating player

        Returns:
            Result holding the new match ID on success
        """
        match_lock = threading.RLock()

        with self._lock:
            if player_id in self._player_matches:
                return RegistryResult.failure(RegistryErrorKind.ALREADY_IN_MATCH)

            match_id = generate_match_id(self._sessions, self.id_config, self._rng)
            session = MatchSession(
                match_id=match_id,
                rules=self.rules,
                rng=random.Random(self._rng.getrandbits(64)),
                emitter=self.event_bus,
            )

            # The lock is not published yet, so taking it here cannot block
            match_lock.acquire()
            self._sessions[match_id] = session
            self._match_locks[match_id] = match_lock
            self._player_matches[player_id] = match_id

        try:
            self.event_bus.emit(
                MatchEventType.MATCH_CREATED,
                {
                    "match_id": match_id,
                    "player_id": player_id,
                    "timestamp": time.time(),
                },
            )
            session.add_player(player_id)
        finally:
            match_lock.release()

        return RegistryResult.success(match_id)

    def join_match(self, player_id: str, match_id: str) -> RegistryResult:
        """
        Seat a player in an open match. The second player's arrival deals the cards.

        Args:
            player_id: ID of the joining player
            match_id: ID of the match to join

        Returns:
            Result of the join
        """
        with self._lock:
            match_lock = self._match_locks.get(match_id)

        if match_lock is None:
            return self._join_failure(player_id, match_id)

        with match_lock:
            with self._lock:
                session = self._sessions.get(match_id)
                if player_id in self._player_matches or session is None:
                    return self._join_failure(player_id, match_id)

                if session.is_full:
                    return RegistryResult.failure(
                        RegistryErrorKind.MATCH_FULL, match_id
                    )

                if session.phase != MatchPhase.WAITING:
                    return RegistryResult.failure(
                        RegistryErrorKind.MATCH_STARTED, match_id
                    )

                # The checks above cover every reason the session can refuse
                self._player_matches[player_id] = match_id

            session.add_player(player_id)

        return RegistryResult.success(match_id)

    def _join_failure(self, player_id: str, match_id: str) -> RegistryResult:
        with self._lock:
            if player_id in self._player_matches:
                return RegistryResult.failure(RegistryErrorKind.ALREADY_IN_MATCH)
            return RegistryResult.failure(RegistryErrorKind.MATCH_NOT_FOUND, match_id)

    def leave_match(self, player_id: str) -> RegistryResult:
        """
        Remove a player from their match.

        Leaving a match in progress hands the win to the opponent. A match
        left without players is reclaimed at once.

        Args:
            player_id: ID of the leaving player

        Returns:
            Result holding the ID of the match that was left
        """
        with self._lock:
            match_id = self._player_matches.get(player_id)
            match_lock = self._match_locks.get(match_id) if match_id else None

        if match_id is None:
            return RegistryResult.failure(RegistryErrorKind.NOT_IN_MATCH)

        if match_lock is None:
            # Mapping outlived its match; drop it
            with self._lock:
                if self._player_matches.get(player_id) == match_id:
                    del self._player_matches[player_id]
            return RegistryResult.failure(RegistryErrorKind.MATCH_NOT_FOUND, match_id)

        with match_lock:
            with self._lock:
                if self._player_matches.get(player_id) != match_id:
                    return RegistryResult.failure(RegistryErrorKind.NOT_IN_MATCH)

                del self._player_matches[player_id]

                session = self._sessions.get(match_id)
                if session is None:
                    return RegistryResult.failure(
                        RegistryErrorKind.MATCH_NOT_FOUND, match_id
                    )

            session.remove_player(player_id)

            if session.is_empty:
                with self._lock:
                    discarded = self._discard(match_id)
                if discarded:
                    self._emit_reclaimed(match_id, reason="empty")

        return RegistryResult.success(match_id)

    def list_open_matches(self) -> List[MatchSummary]:
        """
        List matches waiting for a second player, oldest first.
        """
        with self._lock:
            open_sessions = [
                session
                for session in self._sessions.values()
                if session.phase == MatchPhase.WAITING and not session.is_full
            ]

        open_sessions.sort(key=lambda session: session.state.created_at)
        return [
            MatchSummary(
                match_id=session.id,
                player_count=session.player_count,
                max_players=MAX_PLAYERS,
                status=session.phase.value,
                created_at=session.state.created_at,
            )
            for session in open_sessions
        ]

    def reclaim_empty(self) -> int:
        """
        Discard every match without players.

        Returns:
            Number of matches reclaimed
        """
        with self._lock:
            empty_ids = [
                match_id
                for match_id, session in self._sessions.items()
                if session.is_empty
            ]
            for match_id in empty_ids:
                self._discard(match_id)

        for match_id in empty_ids:
            self._emit_reclaimed(match_id, reason="empty")
        return len(empty_ids)

    def reclaim_finished(self, older_than: Optional[float] = None) -> int:
        """
        Discard finished matches and release their players.

        Args:
            older_than: Only reclaim matches finished at least this many
                seconds ago; None reclaims every finished match

        Returns:
            Number of matches reclaimed
        """
        now = time.time()
        with self._lock:
            finished_ids = []
            for match_id, session in self._sessions.items():
                if session.phase != MatchPhase.FINISHED:
                    continue
                finished_at = session.state.finished_at
                if older_than is not None and (
                    finished_at is None or now - finished_at < older_than
                ):
                    continue
                finished_ids.append(match_id)

            for match_id in finished_ids:
                self._discard(match_id)

        for match_id in finished_ids:
            self._emit_reclaimed(match_id, reason="finished")
        return len(finished_ids)

    def get_stats(self) -> RegistryStats:
        """Get counts of live matches by phase and of players in matches."""
        with self._lock:
            phases = [session.phase for session in self._sessions.values()]
            waiting = sum(
                1
                for session in self._sessions.values()
                if session.phase == MatchPhase.WAITING and not session.is_full
            )
            return RegistryStats(
                active_matches=len(self._sessions),
                online_players=len(self._player_matches),
                waiting=waiting,
                playing=phases.count(MatchPhase.PLAYING),
                finished=phases.count(MatchPhase.FINISHED),
            )

    def _discard(self, match_id: str) -> bool:
        # Caller holds self._lock and emits MATCH_RECLAIMED once it is released
        if self._sessions.pop(match_id, None) is None:
            return False
        self._match_locks.pop(match_id, None)

        # Also drops mappings of players the session no longer seats
        stale = [
            player_id
            for player_id, mapped_id in self._player_matches.items()
            if mapped_id == match_id
        ]
        for player_id in stale:
            del self._player_matches[player_id]
        return True

    def _emit_reclaimed(self, match_id: str, reason: str) -> None:
        self.event_bus.emit(
            MatchEventType.MATCH_RECLAIMED,
            {"match_id": match_id, "reason": reason, "timestamp": time.time()},
        )

    # Moves

    def attack(self, player_id: str, card: Card) -> ActionResult:
        return self._route(player_id, lambda session: session.attack(player_id, card))

    def defend(
        self, player_id: str, attack_card: Card, defense_card: Card
    ) -> ActionResult:
        return self._route(
            player_id,
            lambda session: session.defend(player_id, attack_card, defense_card),
        )

    def throw_in(self, player_id: str, card: Card) -> ActionResult:
        return self._route(
            player_id, lambda session: session.throw_in(player_id, card)
        )

    def pass_turn(self, player_id: str) -> ActionResult:
        return self._route(player_id, lambda session: session.pass_turn(player_id))

    def take_cards(self, player_id: str) -> ActionResult:
        return self._route(player_id, lambda session: session.take_cards(player_id))

    def _resolve(self, player_id: str):
        with self._lock:
            match_id = self._player_matches.get(player_id)
            if match_id is None:
                return None, None
            return self._sessions.get(match_id), self._match_locks.get(match_id)

    def _route(
        self, player_id: str, move: Callable[[MatchSession], bool]
    ) -> ActionResult:
        """
        Run ``move`` on the player's match under that match's lock.

        Returns:
            Result with the actor's view after the attempt
        """
        session, match_lock = self._resolve(player_id)
        if session is None or match_lock is None:
            return ActionResult(ActionStatus.NOT_FOUND)

        with match_lock:
            applied = move(session)
            view = session.view_for(player_id)

        return ActionResult(
            ActionStatus.OK if applied else ActionStatus.REJECTED, view
        )
