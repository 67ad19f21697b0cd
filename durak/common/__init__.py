"""
Card values and card rules shared by the Durak engine.
"""

from durak.common.card import Card as Card, Rank as Rank, Suit as Suit
from durak.common.deck import (
    DECK_SIZE as DECK_SIZE,
    Deck as Deck,
    generate_deck as generate_deck,
    shuffle_deck as shuffle_deck,
)
from durak.common.rules import (
    can_beat as can_beat,
    can_throw_in as can_throw_in,
    lowest_trump as lowest_trump,
    sort_hand as sort_hand,
)

__all__ = [
    "Card",
    "Rank",
    "Suit",
    "DECK_SIZE",
    "Deck",
    "generate_deck",
    "shuffle_deck",
    "can_beat",
    "can_throw_in",
    "lowest_trump",
    "sort_hand",
]
