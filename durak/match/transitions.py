"""
State transition functions for a two-player Durak match.

This module provides pure functions for transitioning between match states,
without modifying the original state objects. Every transition validates all
of its preconditions before building the new state; when any precondition
fails the original state object is returned unchanged.
"""

from dataclasses import replace
from typing import List, Optional, Sequence, Tuple
import random
import time

from durak.common.card import Card
from durak.common.deck import generate_deck, shuffle_deck
from durak.common.rules import can_beat, can_throw_in, lowest_trump, sort_hand
from durak.match.constants import MAX_PLAYERS
from durak.match.state import (
    ActionKind,
    LastAction,
    MatchPhase,
    MatchState,
    PlayerState,
    TablePair,
    TableState,
)


def _with_hand(
    players: Tuple[PlayerState, ...], player_id: str, hand: Sequence[Card]
) -> Tuple[PlayerState, ...]:
    return tuple(
        replace(player, hand=tuple(hand)) if player.id == player_id else player
        for player in players
    )


def _without_card(hand: Sequence[Card], card: Card) -> List[Card]:
    new_hand = list(hand)
    new_hand.remove(card)
    return new_hand


class StateTransitionEngine:
    """
    Pure functions for state transitions in Durak.

    This class contains static methods that implement match state transitions.
    Each method takes a state and returns a new state, without modifying the
    original. A rejected move returns the very same state object, so callers
    can detect rejection with an identity check.
    """

    @staticmethod
    def add_player(
        state: MatchState,
        player_id: str,
        rng: Optional[random.Random] = None,
        deck: Optional[Sequence[Card]] = None,
    ) -> MatchState:
        """
        Seat a player in a waiting match.

        When the second player is seated the cards are dealt immediately.

        Args:
            state: Current match state
            player_id: ID of the player to add
            rng: Random source for the shuffle and the fallback attacker pick
            deck: Pre-ordered deck to deal from instead of a shuffled one

        Returns:
            New match state with the player added
        """
        if state.phase != MatchPhase.WAITING:
            return state  # Match already started

        if len(state.players) >= MAX_PLAYERS:
            return state  # Match is full

        if state.get_player(player_id) is not None:
            return state  # Already seated

        new_state = replace(
            state, players=state.players + (PlayerState(id=player_id),)
        )

        if len(new_state.players) == MAX_PLAYERS:
            return StateTransitionEngine.deal(new_state, rng=rng, deck=deck)

        return new_state

    @staticmethod
    def remove_player(state: MatchState, player_id: str) -> MatchState:
        """
        Remove a player from the match.

        A player leaving a match in progress forfeits it: the remaining player
        is declared the winner whatever the cards say.

        Args:
            state: Current match state
            player_id: ID of the player to remove

        Returns:
            New match state with the player removed
        """
        if state.get_player(player_id) is None:
            return state  # Player not found

        remaining = tuple(p for p in state.players if p.id != player_id)

        if state.phase == MatchPhase.PLAYING and len(remaining) == 1:
            return replace(
                state,
                players=remaining,
                phase=MatchPhase.FINISHED,
                winner_id=remaining[0].id,
                can_throw_in=False,
                last_action=LastAction(ActionKind.PLAYER_LEFT, player_id),
                finished_at=time.time(),
            )

        return replace(state, players=remaining)

    @staticmethod
    def deal(
        state: MatchState,
        rng: Optional[random.Random] = None,
        deck: Optional[Sequence[Card]] = None,
    ) -> MatchState:
        """
        Deal the opening hands and start the match.

        Cards are dealt one at a time from the top of the deck, alternating in
        join order, until each player holds a full hand. The bottom card is
        then set aside face up as the trump indicator. The player holding the
        lowest trump attacks first; if nobody holds a trump the first attacker
        is picked at random.

        Args:
            state: Current match state with both players seated
            rng: Random source for the shuffle and the fallback attacker pick
            deck: Pre-ordered deck (top card last) to deal from instead of a
                freshly shuffled one

        Returns:
            New match state in the PLAYING phase
        """
        if state.phase != MatchPhase.WAITING or len(state.players) != MAX_PLAYERS:
            return state  # Can't deal cards yet

        rng = rng or random
        if deck is None:
            cards = shuffle_deck(generate_deck(), rng)
        else:
            cards = list(deck)

        # Deal one card at a time to each player in join order
        hands = {player.id: [] for player in state.players}
        for _ in range(state.rules.hand_size):
            for player in state.players:
                if cards:
                    hands[player.id].append(cards.pop())

        trump_card = cards.pop(0) if cards else None
        trump_suit = trump_card.suit if trump_card else None

        # Whoever holds the lowest trump attacks first
        attacker_id = None
        attacker_trump = None
        for player in state.players:
            trump = lowest_trump(hands[player.id], trump_suit)
            if trump is None:
                continue
            if (
                attacker_trump is None
                or trump.rank.rank_value < attacker_trump.rank.rank_value
            ):
                attacker_trump = trump
                attacker_id = player.id

        if attacker_id is None:
            attacker_id = rng.choice(state.player_ids)

        defender_id = next(pid for pid in state.player_ids if pid != attacker_id)

        new_players = tuple(
            replace(player, hand=tuple(sort_hand(hands[player.id], trump_suit)))
            for player in state.players
        )

        return replace(
            state,
            players=new_players,
            phase=MatchPhase.PLAYING,
            deck=tuple(cards),
            trump_card=trump_card,
            trump_suit=trump_suit,
            table=TableState(),
            discard_pile=(),
            attacker_id=attacker_id,
            defender_id=defender_id,
            winner_id=None,
            is_draw=False,
            can_throw_in=False,
            last_action=LastAction(ActionKind.MATCH_STARTED),
        )

    @staticmethod
    def attack(state: MatchState, player_id: str, card: Card) -> MatchState:
        """
        Open a round with an attack card.

        Only the attacker may attack, and only onto an empty table; every
        further card of the round arrives as a throw-in.

        Args:
            state: Current match state
            player_id: ID of the player making the attack
            card: Card to attack with

        Returns:
            New match state with the attack card on the table
        """
        if state.phase != MatchPhase.PLAYING:
            return state  # Not in play

        if player_id != state.attacker_id:
            return state  # Not the attacker

        if not state.table.is_empty:
            return state  # Round already opened

        player = state.get_player(player_id)
        if player is None or not player.has_card(card):
            return state  # Card not in hand

        return replace(
            state,
            players=_with_hand(
                state.players, player_id, _without_card(player.hand, card)
            ),
            table=TableState(pairs=(TablePair(attack=card),)),
            can_throw_in=False,
            last_action=LastAction(ActionKind.ATTACK, player_id, (card,)),
        )

    @staticmethod
    def defend(
        state: MatchState, player_id: str, attack_card: Card, defense_card: Card
    ) -> MatchState:
        """
        Cover an attack card on the table.

        Args:
            state: Current match state
            player_id: ID of the player defending
            attack_card: Undefended attack card to cover
            defense_card: Card from the defender's hand that beats it

        Returns:
            New match state with the attack covered
        """
        if state.phase != MatchPhase.PLAYING:
            return state  # Not in play

        if player_id != state.defender_id:
            return state  # Not the defender

        if state.trump_suit is None:
            return state  # No trump to compare against

        player = state.get_player(player_id)
        if player is None or not player.has_card(defense_card):
            return state  # Card not in hand

        pair_index = state.table.find_open_pair(attack_card)
        if pair_index is None:
            return state  # Nothing open to cover with that attack card

        if not can_beat(attack_card, defense_card, state.trump_suit):
            return state  # Defense card does not beat the attack

        pairs = list(state.table.pairs)
        pairs[pair_index] = replace(pairs[pair_index], defense=defense_card)
        new_table = TableState(pairs=tuple(pairs))

        return replace(
            state,
            players=_with_hand(
                state.players, player_id, _without_card(player.hand, defense_card)
            ),
            table=new_table,
            # Throw-ins open up only once the whole table is covered
            can_throw_in=new_table.all_defended,
            last_action=LastAction(
                ActionKind.DEFEND, player_id, (attack_card, defense_card)
            ),
        )

    @staticmethod
    def throw_in(state: MatchState, player_id: str, card: Card) -> MatchState:
        """
        Throw in an additional attack card (a card of a rank already on the table).

        Throw-ins are allowed after a full defense, from either player, as long
        as the defender holds more cards than there are open attacks.

        Args:
            state: Current match state
            player_id: ID of the player throwing in
            card: Card to throw in

        Returns:
            New match state with the card thrown in
        """
        if state.phase != MatchPhase.PLAYING:
            return state  # Not in play

        if not state.can_throw_in:
            return state  # Must wait for the next defense

        player = state.get_player(player_id)
        if player is None or not player.has_card(card):
            return state  # Card not in hand

        if not can_throw_in(card, state.table.cards):
            return state  # Rank not on the table

        defender = state.current_defender
        if defender is None or defender.card_count <= state.table.undefended_count:
            return state  # Defender could not cover another card

        return replace(
            state,
            players=_with_hand(
                state.players, player_id, _without_card(player.hand, card)
            ),
            table=TableState(pairs=state.table.pairs + (TablePair(attack=card),)),
            can_throw_in=False,
            last_action=LastAction(ActionKind.THROW_IN, player_id, (card,)),
        )

    @staticmethod
    def pass_turn(state: MatchState, player_id: str) -> MatchState:
        """
        Declare "Beat!": end a fully defended round.

        The table goes to the discard pile, hands are refilled (attacker
        first), and the defender becomes the next attacker.

        Args:
            state: Current match state
            player_id: ID of the attacker

        Returns:
            New match state for the next round
        """
        if state.phase != MatchPhase.PLAYING:
            return state  # Not in play

        if player_id != state.attacker_id:
            return state  # Only the attacker calls the round

        if not state.table.all_defended:
            return state  # Open attacks remain

        new_state = replace(
            state,
            table=TableState(),
            discard_pile=state.discard_pile + state.table.cards,
            can_throw_in=False,
        )
        new_state = StateTransitionEngine.refill_hands(new_state)
        new_state = replace(
            new_state,
            attacker_id=state.defender_id,
            defender_id=state.attacker_id,
            last_action=LastAction(ActionKind.PASS, player_id),
        )

        return StateTransitionEngine.check_winner(new_state)

    @staticmethod
    def take_cards(state: MatchState, player_id: str) -> MatchState:
        """
        Defender takes all cards on the table.

        Both sides of every pair go into the defender's hand. Hands are
        refilled and the attacker keeps the initiative.

        Args:
            state: Current match state
            player_id: ID of the player taking cards (must be the defender)

        Returns:
            New match state for the next round
        """
        if state.phase != MatchPhase.PLAYING:
            return state  # Not in play

        if player_id != state.defender_id:
            return state  # Not the defender

        if state.table.is_empty:
            return state  # Nothing to take

        player = state.get_player(player_id)
        if player is None:
            return state

        new_hand = sort_hand(player.hand + state.table.cards, state.trump_suit)

        new_state = replace(
            state,
            players=_with_hand(state.players, player_id, new_hand),
            table=TableState(),
            can_throw_in=False,
            last_action=LastAction(ActionKind.TAKE, player_id),
        )
        new_state = StateTransitionEngine.refill_hands(new_state)

        return StateTransitionEngine.check_winner(new_state)

    @staticmethod
    def refill_hands(state: MatchState) -> MatchState:
        """
        Refill hands from the deck, attacker first, then defender.

        Each player draws from the top of the deck until their hand is full
        or the deck runs out. Once the deck is empty the trump indicator is
        discarded rather than dealt.

        Args:
            state: Current match state

        Returns:
            New match state with refilled hands
        """
        new_deck = list(state.deck)
        new_players = state.players

        for player_id in (state.attacker_id, state.defender_id):
            player = state.get_player(player_id) if player_id else None
            if player is None:
                continue

            new_hand = list(player.hand)
            while len(new_hand) < state.rules.hand_size and new_deck:
                new_hand.append(new_deck.pop())

            new_players = _with_hand(
                new_players, player_id, sort_hand(new_hand, state.trump_suit)
            )

        trump_card = state.trump_card
        discard_pile = state.discard_pile
        if not new_deck and trump_card is not None:
            discard_pile = discard_pile + (trump_card,)
            trump_card = None

        return replace(
            state,
            players=new_players,
            deck=tuple(new_deck),
            trump_card=trump_card,
            discard_pile=discard_pile,
        )

    @staticmethod
    def check_winner(state: MatchState) -> MatchState:
        """
        Finish the match if someone has run out of cards for good.

        Only applies once the deck and the trump indicator are both gone. The
        player with an empty hand wins while the opponent still holds cards;
        if both hands are empty at once the match ends in a draw.

        Args:
            state: Current match state

        Returns:
            The same state, or a FINISHED state with the result recorded
        """
        if state.phase != MatchPhase.PLAYING:
            return state

        if state.deck or state.trump_card is not None:
            return state  # Cards left to draw

        empty_handed = [player for player in state.players if not player.hand]

        if len(empty_handed) == 1 and len(state.players) == MAX_PLAYERS:
            winner_id = empty_handed[0].id
            return replace(
                state,
                phase=MatchPhase.FINISHED,
                winner_id=winner_id,
                can_throw_in=False,
                last_action=LastAction(ActionKind.WIN, winner_id),
                finished_at=time.time(),
            )

        if empty_handed and len(empty_handed) == len(state.players):
            return replace(
                state,
                phase=MatchPhase.FINISHED,
                winner_id=None,
                is_draw=True,
                can_throw_in=False,
                last_action=LastAction(ActionKind.DRAW),
                finished_at=time.time(),
            )

        return state
