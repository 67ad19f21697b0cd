"""
Per-player projection of a match.

A `MatchView` shows one player everything about the match except the
contents of the opponent's hand, of which only the size is revealed.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from durak.common.card import Card, Suit
from durak.match.constants import HIDDEN_CARD
from durak.match.state import MatchPhase, MatchState, TablePair


@dataclass(frozen=True)
class MatchView:
    """
    Immutable snapshot of a match as seen by one player.

    Attributes:
        match_id: ID of the match
        viewer_id: ID of the player this view was built for
        players: Seated player IDs in join order
        phase: Lifecycle phase
        hand: The viewer's own cards
        hand_sizes: Number of cards held by each seated player
        table: Attack/defense pairs on the table
        deck_count: Number of cards left in the deck
        trump_card: Trump indicator, if still held aside
        trump_suit: Trump suit of the match
        attacker_id: ID of the current attacker
        defender_id: ID of the current defender
        winner_id: ID of the winner, once finished
        is_draw: Whether the match ended in a draw
        can_throw_in: Whether a throw-in is currently allowed
        last_action: Description of the last action
    """

    match_id: str
    viewer_id: str
    players: Tuple[str, ...]
    phase: MatchPhase
    hand: Tuple[Card, ...] = ()
    hand_sizes: Dict[str, int] = field(default_factory=dict)
    table: Tuple[TablePair, ...] = ()
    deck_count: int = 0
    trump_card: Optional[Card] = None
    trump_suit: Optional[Suit] = None
    attacker_id: Optional[str] = None
    defender_id: Optional[str] = None
    winner_id: Optional[str] = None
    is_draw: bool = False
    can_throw_in: bool = False
    last_action: str = ""

    @classmethod
    def from_state(cls, state: MatchState, viewer_id: str) -> "MatchView":
        """
        Build the view of ``state`` for ``viewer_id``.

        Args:
            state: Full match state
            viewer_id: Player the view is for; a non-seated viewer sees no hand

        Returns:
            MatchView with the opponent's cards hidden
        """
        return cls(
            match_id=state.id,
            viewer_id=viewer_id,
            players=state.player_ids,
            phase=state.phase,
            hand=state.hand_of(viewer_id),
            hand_sizes={player.id: player.card_count for player in state.players},
            table=state.table.pairs,
            deck_count=state.deck_size,
            trump_card=state.trump_card,
            trump_suit=state.trump_suit,
            attacker_id=state.attacker_id,
            defender_id=state.defender_id,
            winner_id=state.winner_id,
            is_draw=state.is_draw,
            can_throw_in=state.can_throw_in,
            last_action=state.last_action.describe() if state.last_action else "",
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the view to a dictionary suitable for serialization.

        Cards are rendered as ``"<rank><suit>"`` codes; each card of the
        opponent's hand is rendered as the ``"back"`` placeholder.

        Returns:
            Dictionary representation of the view
        """
        hands = {}
        for player_id in self.players:
            if player_id == self.viewer_id:
                hands[player_id] = [card.code for card in self.hand]
            else:
                hands[player_id] = [HIDDEN_CARD] * self.hand_sizes.get(player_id, 0)

        return {
            "match_id": self.match_id,
            "players": list(self.players),
            "phase": self.phase.value,
            "hands": hands,
            "table": [
                {
                    "attack": pair.attack.code,
                    "defense": pair.defense.code if pair.defense else None,
                }
                for pair in self.table
            ],
            "deck_count": self.deck_count,
            "trump_card": self.trump_card.code if self.trump_card else None,
            "trump_suit": self.trump_suit.code if self.trump_suit else None,
            "attacker": self.attacker_id,
            "defender": self.defender_id,
            "winner": self.winner_id,
            "is_draw": self.is_draw,
            "can_throw_in": self.can_throw_in,
            "last_action": self.last_action,
        }
