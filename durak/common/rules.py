"""
Card comparison rules for Durak.

Pure functions over card values: whether a defense card beats an attack
card, whether a card may be thrown in, hand ordering, and trump lookup.
"""

from typing import Iterable, List, Optional

from durak.common.card import Card, Suit


def can_beat(attack: Card, defense: Card, trump_suit: Suit) -> bool:
    """
    Check whether ``defense`` beats ``attack`` under ``trump_suit``.

    The rules are:
        1. Both cards of the same non-trump suit: the higher rank wins.
        2. Both cards trump: the higher rank wins.
        3. Defense is trump, attack is not: the defense always wins.
        4. Anything else does not beat.

    Args:
        attack: The card being attacked with
        defense: The card offered to cover it
        trump_suit: The trump suit of the match

    Returns:
        True if the defense card beats the attack card
    """
    attack_is_trump = attack.suit == trump_suit
    defense_is_trump = defense.suit == trump_suit

    if attack.suit == defense.suit and not attack_is_trump:
        return defense.rank.rank_value > attack.rank.rank_value

    if attack_is_trump and defense_is_trump:
        return defense.rank.rank_value > attack.rank.rank_value

    if defense_is_trump and not attack_is_trump:
        return True

    return False


def can_throw_in(card: Card, table_cards: Iterable[Card]) -> bool:
    """
    Check whether ``card`` may be thrown in onto a table holding ``table_cards``.

    A throw-in needs a non-empty table with at least one card of the same
    rank; the suit does not matter.
    """
    return any(table_card.rank == card.rank for table_card in table_cards)


def _hand_sort_key(card: Card, trump_suit: Optional[Suit]):
    return (card.suit == trump_suit, card.suit.sort_order, card.rank.rank_value)


def sort_hand(hand: Iterable[Card], trump_suit: Optional[Suit]) -> List[Card]:
    """
    Return the hand ordered for display.

    Non-trump suits come first, grouped by suit sort order, and the trump suit
    comes last. Within a suit, cards ascend by rank.
    """
    return sorted(hand, key=lambda card: _hand_sort_key(card, trump_suit))


def lowest_trump(cards: Iterable[Card], trump_suit: Optional[Suit]) -> Optional[Card]:
    """Return the lowest-ranked trump among ``cards``, or None if there is none."""
    trumps = [card for card in cards if card.suit == trump_suit]
    if not trumps:
        return None
    return min(trumps, key=lambda card: card.rank.rank_value)
