"""
Match session: the live state machine of one match.

A `MatchSession` owns the current `MatchState` of a single match. Each move
runs the matching pure transition; if the transition accepted the move the
new state is checked for card integrity, committed, and announced on the
event emitter. Rejected moves leave the session untouched and return False.

Sessions hold no locks. Callers must serialize actions on the same match
(`MatchRegistry` does this with a per-match lock).
"""

from collections import Counter
from typing import Any, Dict, Optional, Sequence, Tuple
import random
import time

from durak.common.card import Card
from durak.errors import InvariantViolation
from durak.events import EventBus, EventEmitter, MatchEventType
from durak.match.constants import MAX_PLAYERS, TOTAL_CARDS
from durak.match.state import MatchPhase, MatchRules, MatchState
from durak.match.transitions import StateTransitionEngine
from durak.match.view import MatchView


def verify_integrity(state: MatchState) -> None:
    """
    Check card conservation and uniqueness for a dealt two-player match.

    Every card lies in exactly one of the deck, the trump indicator slot,
    a hand, the table, or the discard pile.

    Raises:
        InvariantViolation: If a card is missing or duplicated
    """
    if state.phase == MatchPhase.WAITING or len(state.players) != MAX_PLAYERS:
        return

    counts = Counter(state.iter_cards())
    total = sum(counts.values())
    if total != TOTAL_CARDS:
        raise InvariantViolation(
            f"Match {state.id} holds {total} cards, expected {TOTAL_CARDS}"
        )

    duplicates = [card.code for card, count in counts.items() if count > 1]
    if duplicates:
        raise InvariantViolation(
            f"Match {state.id} holds duplicate cards: {', '.join(duplicates)}"
        )


class MatchSession:
    """
    Live state machine for a single two-player match.

    Attributes:
        state: The current committed match state
        rng: Random source used for shuffling and the fallback attacker pick
        event_bus: Emitter that receives match events
    """

    def __init__(
        self,
        match_id: Optional[str] = None,
        rules: Optional[MatchRules] = None,
        rng: Optional[random.Random] = None,
        emitter: Optional[EventEmitter] = None,
        state: Optional[MatchState] = None,
    ):
        """
        Initialize a session.

        Args:
            match_id: ID for a new match (a UUID if None)
            rules: Rules for a new match
            rng: Random source (a fresh `random.Random` if None)
            emitter: Event emitter (the process EventBus if None)
            state: Existing state to resume from instead of a new match
        """
        if state is None:
            kwargs = {"rules": rules or MatchRules()}
            if match_id is not None:
                kwargs["id"] = match_id
            state = MatchState(**kwargs)

        self.state = state
        self.rng = rng or random.Random()
        self.event_bus = emitter or EventBus.get_instance()

    @property
    def id(self) -> str:
        return self.state.id

    @property
    def phase(self) -> MatchPhase:
        return self.state.phase

    @property
    def player_ids(self) -> Tuple[str, ...]:
        return self.state.player_ids

    @property
    def player_count(self) -> int:
        return len(self.state.players)

    @property
    def is_full(self) -> bool:
        return self.player_count >= MAX_PLAYERS

    @property
    def is_empty(self) -> bool:
        return self.player_count == 0

    def has_player(self, player_id: str) -> bool:
        return self.state.get_player(player_id) is not None

    def view_for(self, player_id: str) -> MatchView:
        """Get the match as seen by ``player_id``."""
        return MatchView.from_state(self.state, player_id)

    # Player management

    def add_player(
        self, player_id: str, deck: Optional[Sequence[Card]] = None
    ) -> bool:
        """
        Seat a player; seating the second player deals the cards.

        Args:
            player_id: ID of the player to add
            deck: Pre-ordered deck (top card last) to deal from, for setups
                that need a known deal

        Returns:
            True if the player was seated
        """
        new_state = StateTransitionEngine.add_player(
            self.state, player_id, rng=self.rng, deck=deck
        )
        return self._commit(
            new_state, MatchEventType.PLAYER_JOINED, {"player_id": player_id}
        )

    def remove_player(self, player_id: str) -> bool:
        """
        Remove a player. Leaving a match in progress forfeits it.

        Returns:
            True if the player was seated and has been removed
        """
        new_state = StateTransitionEngine.remove_player(self.state, player_id)
        return self._commit(
            new_state, MatchEventType.PLAYER_LEFT, {"player_id": player_id}
        )

    # Moves

    def attack(self, player_id: str, card: Card) -> bool:
        """Open the round with ``card``. Returns True if the move was legal."""
        new_state = StateTransitionEngine.attack(self.state, player_id, card)
        return self._commit(
            new_state,
            MatchEventType.ATTACK_PLAYED,
            {"player_id": player_id, "card": card.code},
        )

    def defend(self, player_id: str, attack_card: Card, defense_card: Card) -> bool:
        """Cover ``attack_card`` with ``defense_card``. Returns True if the move was legal."""
        new_state = StateTransitionEngine.defend(
            self.state, player_id, attack_card, defense_card
        )
        return self._commit(
            new_state,
            MatchEventType.DEFENSE_PLAYED,
            {
                "player_id": player_id,
                "attack_card": attack_card.code,
                "defense_card": defense_card.code,
            },
        )

    def throw_in(self, player_id: str, card: Card) -> bool:
        """Throw ``card`` in. Returns True if the move was legal."""
        new_state = StateTransitionEngine.throw_in(self.state, player_id, card)
        return self._commit(
            new_state,
            MatchEventType.CARD_THROWN_IN,
            {"player_id": player_id, "card": card.code},
        )

    def pass_turn(self, player_id: str) -> bool:
        """Declare "Beat!". Returns True if the move was legal."""
        new_state = StateTransitionEngine.pass_turn(self.state, player_id)
        return self._commit(
            new_state, MatchEventType.ROUND_PASSED, {"player_id": player_id}
        )

    def take_cards(self, player_id: str) -> bool:
        """Take the table into the defender's hand. Returns True if the move was legal."""
        previous_table = self.state.table.cards
        new_state = StateTransitionEngine.take_cards(self.state, player_id)
        return self._commit(
            new_state,
            MatchEventType.CARDS_TAKEN,
            {"player_id": player_id, "card_count": len(previous_table)},
        )

    def _commit(
        self,
        new_state: MatchState,
        event_type: MatchEventType,
        data: Dict[str, Any],
    ) -> bool:
        """
        Commit ``new_state`` if the transition accepted the action.

        Returns:
            False if the transition rejected the action (state unchanged)
        """
        if new_state is self.state:
            return False

        verify_integrity(new_state)

        previous = self.state
        self.state = new_state

        payload = {"match_id": new_state.id, "timestamp": time.time(), **data}
        self.event_bus.emit(event_type, payload)

        if (
            previous.phase == MatchPhase.WAITING
            and new_state.phase == MatchPhase.PLAYING
        ):
            self.event_bus.emit(
                MatchEventType.MATCH_STARTED,
                {
                    "match_id": new_state.id,
                    "timestamp": payload["timestamp"],
                    "attacker_id": new_state.attacker_id,
                    "defender_id": new_state.defender_id,
                    "trump_card": (
                        new_state.trump_card.code if new_state.trump_card else None
                    ),
                },
            )

        if (
            previous.phase != MatchPhase.FINISHED
            and new_state.phase == MatchPhase.FINISHED
        ):
            self.event_bus.emit(
                MatchEventType.MATCH_FINISHED,
                {
                    "match_id": new_state.id,
                    "timestamp": payload["timestamp"],
                    "winner_id": new_state.winner_id,
                    "is_draw": new_state.is_draw,
                },
            )

        self.event_bus.emit(
            MatchEventType.STATE_CHANGED,
            {"match_id": new_state.id, "timestamp": payload["timestamp"]},
        )
        return True
