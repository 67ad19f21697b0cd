"""
Immutable state models for a two-player Durak match.

This module provides dataclasses for representing the state of a match in an
immutable manner. These classes are designed to be used with the pure
transition functions in `durak.match.transitions`, which create new state
instances rather than modifying existing ones.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Iterator, Optional, Tuple
import time
import uuid

from durak.common.card import Card, Suit
from durak.match.constants import HAND_SIZE


class MatchPhase(Enum):
    """Lifecycle phases of a match. FINISHED is terminal."""

    WAITING = "waiting"
    PLAYING = "playing"
    FINISHED = "finished"


class ActionKind(Enum):
    """Kinds of actions recorded as the last action of a match."""

    MATCH_STARTED = auto()
    ATTACK = auto()
    DEFEND = auto()
    THROW_IN = auto()
    PASS = auto()
    TAKE = auto()
    PLAYER_LEFT = auto()
    WIN = auto()
    DRAW = auto()


@dataclass(frozen=True)
class LastAction:
    """
    The most recent thing that happened in a match.

    Attributes:
        kind: What happened
        player_id: Who did it, if a player did
        cards: Cards involved, in play order
    """

    kind: ActionKind
    player_id: Optional[str] = None
    cards: Tuple[Card, ...] = ()

    def describe(self) -> str:
        """Return a short English description of the action."""
        codes = [card.code for card in self.cards]
        if self.kind == ActionKind.MATCH_STARTED:
            return "Match started"
        if self.kind == ActionKind.ATTACK:
            return f"{self.player_id} attacks with {codes[0]}"
        if self.kind == ActionKind.DEFEND:
            return f"{self.player_id} beats {codes[0]} with {codes[1]}"
        if self.kind == ActionKind.THROW_IN:
            return f"{self.player_id} throws in {codes[0]}"
        if self.kind == ActionKind.PASS:
            return "Beat! Round over"
        if self.kind == ActionKind.TAKE:
            return f"{self.player_id} takes the cards"
        if self.kind == ActionKind.PLAYER_LEFT:
            return f"{self.player_id} left the match"
        if self.kind == ActionKind.WIN:
            return f"{self.player_id} wins"
        return "Draw"


@dataclass(frozen=True)
class TablePair:
    """An attack card and, once beaten, the card that covers it."""

    attack: Card
    defense: Optional[Card] = None

    @property
    def is_defended(self) -> bool:
        return self.defense is not None


@dataclass(frozen=True)
class TableState:
    """
    Immutable representation of the cards on the table.

    Attributes:
        pairs: Attack/defense pairs in the order the attacks were played
    """

    pairs: Tuple[TablePair, ...] = ()

    @property
    def cards(self) -> Tuple[Card, ...]:
        """All cards on the table, attack and defense sides combined."""
        cards = []
        for pair in self.pairs:
            cards.append(pair.attack)
            if pair.defense is not None:
                cards.append(pair.defense)
        return tuple(cards)

    @property
    def is_empty(self) -> bool:
        return not self.pairs

    @property
    def undefended_count(self) -> int:
        """Number of attack cards still waiting for a defense."""
        return sum(1 for pair in self.pairs if not pair.is_defended)

    @property
    def all_defended(self) -> bool:
        """True when every pair is covered (vacuously true for an empty table)."""
        return all(pair.is_defended for pair in self.pairs)

    def find_open_pair(self, attack: Card) -> Optional[int]:
        """Get the index of the undefended pair attacked with ``attack``, if any."""
        for i, pair in enumerate(self.pairs):
            if pair.attack == attack and not pair.is_defended:
                return i
        return None


@dataclass(frozen=True)
class PlayerState:
    """
    Immutable representation of a player seated in a match.

    Attributes:
        id: Identifier supplied by the caller (the transport's player id)
        hand: Cards in the player's hand, kept sorted
    """

    id: str
    hand: Tuple[Card, ...] = ()

    @property
    def card_count(self) -> int:
        """Get the number of cards in the player's hand."""
        return len(self.hand)

    def has_card(self, card: Card) -> bool:
        return card in self.hand


@dataclass(frozen=True)
class MatchRules:
    """
    Immutable representation of the rules for a match.

    Attributes:
        hand_size: Number of cards dealt to each player and refilled up to
    """

    hand_size: int = HAND_SIZE


@dataclass(frozen=True)
class MatchState:
    """
    Immutable representation of a two-player Durak match.

    Attributes:
        id: Identifier of this match
        players: Seated players in join order
        phase: Current lifecycle phase
        deck: Undealt cards; the top of the deck is the last element
        trump_card: Trump indicator held aside under the deck, None once discarded
        trump_suit: The trump suit for this match
        table: Cards currently on the table
        discard_pile: Cards cleared off the table by "Beat!"
        attacker_id: ID of the current attacker
        defender_id: ID of the current defender
        winner_id: ID of the winner once the match is finished
        is_draw: Whether the match finished with both hands empty
        can_throw_in: Whether a throw-in is currently allowed
        last_action: The most recent action
        rules: Rules for this match
        created_at: Time the match was created
        finished_at: Time the match finished, if it has
    """

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    players: Tuple[PlayerState, ...] = ()
    phase: MatchPhase = MatchPhase.WAITING
    deck: Tuple[Card, ...] = ()
    trump_card: Optional[Card] = None
    trump_suit: Optional[Suit] = None
    table: TableState = field(default_factory=TableState)
    discard_pile: Tuple[Card, ...] = ()
    attacker_id: Optional[str] = None
    defender_id: Optional[str] = None
    winner_id: Optional[str] = None
    is_draw: bool = False
    can_throw_in: bool = False
    last_action: Optional[LastAction] = None
    rules: MatchRules = field(default_factory=MatchRules)
    created_at: float = field(default_factory=time.time)
    finished_at: Optional[float] = None

    @property
    def player_ids(self) -> Tuple[str, ...]:
        return tuple(player.id for player in self.players)

    @property
    def deck_size(self) -> int:
        """Get the number of cards left in the deck."""
        return len(self.deck)

    def get_player(self, player_id: str) -> Optional[PlayerState]:
        """Get a seated player by ID, or None if they are not in this match."""
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def opponent_of(self, player_id: str) -> Optional[PlayerState]:
        """Get the other seated player, if any."""
        for player in self.players:
            if player.id != player_id:
                return player
        return None

    def hand_of(self, player_id: str) -> Tuple[Card, ...]:
        player = self.get_player(player_id)
        return player.hand if player else ()

    @property
    def current_attacker(self) -> Optional[PlayerState]:
        return self.get_player(self.attacker_id) if self.attacker_id else None

    @property
    def current_defender(self) -> Optional[PlayerState]:
        return self.get_player(self.defender_id) if self.defender_id else None

    def iter_cards(self) -> Iterator[Card]:
        """Iterate over every card the match holds, wherever it lies."""
        yield from self.deck
        if self.trump_card is not None:
            yield self.trump_card
        for player in self.players:
            yield from player.hand
        yield from self.table.cards
        yield from self.discard_pile

    @property
    def card_count(self) -> int:
        """Total number of cards held across all containers of the match."""
        return sum(1 for _ in self.iter_cards())
