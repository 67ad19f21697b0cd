"""
Pytest configuration for tests at the root level.

This module contains pytest fixtures shared by the test packages: resetting
the event bus, building stacked decks for a known deal, and building late-game
match states directly.
"""

from dataclasses import replace

import pytest

from durak.common.card import Card, Suit
from durak.common.deck import generate_deck
from durak.events import EventBus
from durak.match.state import (
    MatchPhase,
    MatchState,
    PlayerState,
    TablePair,
    TableState,
)


# Reset event bus before each test
@pytest.fixture(scope="function", autouse=True)
def reset_event_bus():
    """Reset the event bus singleton before each test."""
    EventBus._instance = None
    yield
    EventBus._instance = None


def _parse_all(codes):
    return [Card.parse(code) for code in codes]


@pytest.fixture
def stacked_deck():
    """
    Build a deck (top card last) that deals known hands.

    ``first_hand`` goes to the first player to join, ``second_hand`` to the
    second, ``trump`` becomes the trump indicator, and refills draw
    ``draw_order`` first, then every unused card in deck order.
    """

    def build(first_hand, second_hand, trump, draw_order=()):
        first = _parse_all(first_hand)
        second = _parse_all(second_hand)
        trump_card = Card.parse(trump)
        draws = _parse_all(draw_order)

        used = set(first) | set(second) | set(draws) | {trump_card}
        draws += [card for card in generate_deck() if card not in used]

        dealt = []
        for a, b in zip(first, second):
            dealt += [a, b]

        return [trump_card] + list(reversed(draws)) + list(reversed(dealt))

    return build


@pytest.fixture
def endgame_state():
    """
    Build a PLAYING state directly from card codes.

    Every card not placed anywhere is put in the discard pile, so the state
    satisfies card conservation.
    """

    def build(
        hands,
        attacker,
        defender,
        trump_suit=Suit.SPADES,
        deck=(),
        trump_card=None,
        table=(),
        can_throw_in=False,
    ):
        players = tuple(
            PlayerState(id=player_id, hand=tuple(_parse_all(codes)))
            for player_id, codes in hands.items()
        )
        pairs = tuple(
            TablePair(
                attack=Card.parse(attack),
                defense=Card.parse(defense) if defense else None,
            )
            for attack, defense in table
        )
        deck_cards = tuple(_parse_all(deck))
        trump = Card.parse(trump_card) if trump_card else None

        state = MatchState(
            id="M1",
            players=players,
            phase=MatchPhase.PLAYING,
            deck=deck_cards,
            trump_card=trump,
            trump_suit=trump_suit,
            table=TableState(pairs=pairs),
            attacker_id=attacker,
            defender_id=defender,
            can_throw_in=can_throw_in,
        )
        used = set(state.iter_cards())
        discard = tuple(card for card in generate_deck() if card not in used)
        return replace(state, discard_pile=discard)

    return build
