"""
This module contains deck generation, shuffling, and the Deck container.

The top of a deck is the end of its card list: `Deck.deal` pops from there.
The bottom card (index 0) is where the trump indicator is revealed from.

>>> deck = Deck()
>>> deck.size
36
>>> deck.deal()
Card(Suit.SPADES, Rank.ACE)
>>> deck.size
35
"""

import random
from typing import List, Optional, Union

from durak.common.card import Card, Rank, Suit

DECK_SIZE = 36

# Precompute the fixed enumeration order
_DEFAULT_DECK = [
    Card(suit, rank)
    for suit in [Suit.HEARTS, Suit.DIAMONDS, Suit.CLUBS, Suit.SPADES]
    for rank in Rank
]


def generate_deck() -> List[Card]:
    """
    Return the 36-card deck in its fixed enumeration order.

    Suits come in the order hearts, diamonds, clubs, spades; ranks ascend
    from Six to Ace within each suit.
    """
    return list(_DEFAULT_DECK)


def shuffle_deck(
    cards: List[Card], rng: Optional[random.Random] = None
) -> List[Card]:
    """
    Return a uniformly shuffled copy of ``cards`` (Fisher-Yates).

    Args:
        cards: Cards to shuffle; the list itself is not modified
        rng: Random source to use (the module-level generator if None)

    Returns:
        New list holding the same cards in random order
    """
    rng = rng or random
    shuffled = list(cards)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


class Deck:
    """
    A class representing a deck of cards.
    """

    def __init__(self, cards: Union[List[Card], None] = None):
        """
        Initialize a Deck instance.

        :param cards: A list of Card instances to populate the deck (optional).
                      If not provided, the full 36-card deck is used.
        """
        if cards is None:
            self.cards: List[Card] = generate_deck()
        else:
            self.cards = list(cards)

    def shuffle(self, rng: Optional[random.Random] = None) -> "Deck":
        """
        Shuffle the cards in the deck in place.
        """
        self.cards = shuffle_deck(self.cards, rng)
        return self

    def deal(self) -> Card:
        """
        Pop the top card from the deck.

        :raises IndexError: If the deck is empty.
        """
        return self.cards.pop()

    def draw_bottom(self) -> Card:
        """
        Remove and return the bottom card of the deck.

        :raises IndexError: If the deck is empty.
        """
        return self.cards.pop(0)

    @property
    def size(self) -> int:
        """
        Return the number of remaining cards in the deck.
        """
        return len(self.cards)

    def is_empty(self) -> bool:
        return len(self.cards) == 0

    def __len__(self) -> int:
        return len(self.cards)

    def __repr__(self) -> str:
        return f"Deck({[repr(card) for card in self.cards]})"

    def __str__(self) -> str:
        return f"Deck of {len(self.cards)} cards"
