import random

import pytest

from durak.common.card import Card, Suit
from durak.match.state import MatchPhase, MatchState
from durak.match.transitions import StateTransitionEngine
from durak.match.view import MatchView


@pytest.fixture
def state(stacked_deck):
    deck = stacked_deck(
        ["6s", "7h", "8h", "9h", "6d", "7d"],
        ["7s", "8c", "9c", "10c", "8d", "Kh"],
        "As",
    )
    state = StateTransitionEngine.add_player(MatchState(id="M1"), "alice")
    state = StateTransitionEngine.add_player(
        state, "bob", rng=random.Random(0), deck=deck
    )
    return StateTransitionEngine.attack(state, "alice", Card.parse("7h"))


def test_view_shows_own_hand(state):
    view = MatchView.from_state(state, "alice")
    assert view.hand == state.hand_of("alice")
    assert view.hand_sizes == {"alice": 5, "bob": 6}
    assert view.trump_suit == Suit.SPADES
    assert view.phase == MatchPhase.PLAYING


def test_to_dict_hides_opponent_hand(state):
    data = MatchView.from_state(state, "alice").to_dict()

    assert data["hands"]["alice"] == ["6d", "7d", "8h", "9h", "6s"]
    assert data["hands"]["bob"] == ["back"] * 6
    assert "Kh" not in str(data["hands"])


def test_to_dict_fields(state):
    data = MatchView.from_state(state, "bob").to_dict()

    assert data["match_id"] == "M1"
    assert data["players"] == ["alice", "bob"]
    assert data["phase"] == "playing"
    assert data["hands"]["alice"] == ["back"] * 5
    assert data["hands"]["bob"] == ["8c", "9c", "10c", "8d", "Kh", "7s"]
    assert data["table"] == [{"attack": "7h", "defense": None}]
    assert data["deck_count"] == 23
    assert data["trump_card"] == "As"
    assert data["trump_suit"] == "s"
    assert data["attacker"] == "alice"
    assert data["defender"] == "bob"
    assert data["winner"] is None
    assert data["is_draw"] is False
    assert data["can_throw_in"] is False
    assert data["last_action"] == "alice attacks with 7h"


def test_outsider_sees_no_cards(state):
    data = MatchView.from_state(state, "carol").to_dict()
    assert data["hands"] == {"alice": ["back"] * 5, "bob": ["back"] * 6}


def test_waiting_match_view():
    state = StateTransitionEngine.add_player(MatchState(id="M2"), "alice")
    data = MatchView.from_state(state, "alice").to_dict()

    assert data["phase"] == "waiting"
    assert data["hands"] == {"alice": []}
    assert data["trump_card"] is None
    assert data["trump_suit"] is None
    assert data["table"] == []
    assert data["last_action"] == ""
