"""
This module defines the `Suit`, `Rank`, and `Card` types used by the Durak engine.

- `Suit`: An enum of the four suits. Each suit has a one-letter code used on
the wire (``h``, ``d``, ``c``, ``s``) and a sort order used when arranging a
hand.

- `Rank`: An enum of the nine ranks of the 36-card deck, Six through Ace. The
enum value is the comparison value (Six is 6, Ace is 14).

- `Card`: An immutable value pairing a suit with a rank. Cards compare by
value, never by identity, and can be encoded to and decoded from the short
``"<rank><suit>"`` form (``"7h"``, ``"10d"``, ``"As"``).
"""

from dataclasses import dataclass
from enum import Enum, unique

from durak.errors import MalformedCardError


@unique
class Suit(Enum):
    """
    Enum for suits in a card deck.
    """

    HEARTS = "h"
    DIAMONDS = "d"
    CLUBS = "c"
    SPADES = "s"

    @property
    def code(self) -> str:
        """The one-letter code of the suit."""
        return self.value

    @property
    def symbol(self) -> str:
        return _SUIT_SYMBOLS[self]

    @property
    def sort_order(self) -> int:
        """Position of the suit when sorting a hand (clubs first, spades last)."""
        return _SUIT_SORT_ORDER[self]

    @classmethod
    def from_code(cls, code: str) -> "Suit":
        """
        Look up a suit by its one-letter code.

        :raises MalformedCardError: If the code is not a known suit.
        """
        try:
            return cls(code)
        except ValueError:
            raise MalformedCardError(code) from None

    def __str__(self) -> str:
        return self.symbol


_SUIT_SYMBOLS = {
    Suit.HEARTS: "♥",
    Suit.DIAMONDS: "♦",
    Suit.CLUBS: "♣",
    Suit.SPADES: "♠",
}

_SUIT_SORT_ORDER = {
    Suit.CLUBS: 1,
    Suit.DIAMONDS: 2,
    Suit.HEARTS: 3,
    Suit.SPADES: 4,
}


@unique
class Rank(Enum):
    """
    Enum for ranks in a 36-card Durak deck, ordered Six < Seven < ... < Ace.
    """

    SIX = 6
    SEVEN = 7
    EIGHT = 8
    NINE = 9
    TEN = 10
    JACK = 11
    QUEEN = 12
    KING = 13
    ACE = 14

    @property
    def rank_value(self) -> int:
        """The value of the rank, used for comparisons."""
        return self.value

    @property
    def code(self) -> str:
        """The short code of the rank (``"6"`` .. ``"10"``, ``"J"``, ``"Q"``, ``"K"``, ``"A"``)."""
        if self.value > 10:
            return self.name[0]
        return str(self.value)

    @classmethod
    def from_code(cls, code: str) -> "Rank":
        """
        Look up a rank by its short code.

        :raises MalformedCardError: If the code is not a known rank.
        """
        rank = _RANKS_BY_CODE.get(code)
        if rank is None:
            raise MalformedCardError(code)
        return rank

    def __str__(self) -> str:
        return self.code


_RANKS_BY_CODE = {rank.code: rank for rank in Rank}


@dataclass(frozen=True)
class Card:
    """
    Immutable playing card.

    >>> card = Card(Suit.HEARTS, Rank.SEVEN)
    >>> card.code
    '7h'
    >>> print(card)
    7 of ♥
    >>> Card.parse("10d") == Card(Suit.DIAMONDS, Rank.TEN)
    True
    """

    suit: Suit
    rank: Rank

    def __post_init__(self):
        if not isinstance(self.suit, Suit):
            raise TypeError(f"Invalid suit: {self.suit}")
        if not isinstance(self.rank, Rank):
            raise TypeError(f"Invalid rank: {self.rank}")

    @property
    def code(self) -> str:
        """The ``"<rank><suit>"`` encoding of the card."""
        return f"{self.rank.code}{self.suit.code}"

    @classmethod
    def parse(cls, code: str) -> "Card":
        """
        Decode a card from its ``"<rank><suit>"`` encoding.

        :param code: Card code such as ``"7h"`` or ``"10d"``.
        :return: The decoded card.
        :raises MalformedCardError: If the code is not a valid card.
        """
        if not isinstance(code, str) or len(code) < 2:
            raise MalformedCardError(code)
        try:
            return cls(Suit.from_code(code[-1]), Rank.from_code(code[:-1]))
        except MalformedCardError:
            raise MalformedCardError(code) from None

    def __repr__(self) -> str:
        return f"Card(Suit.{self.suit.name}, Rank.{self.rank.name})"

    def __str__(self) -> str:
        return f"{self.rank.code} of {self.suit.symbol}"
