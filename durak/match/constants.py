"""Match-level constants for two-player Durak."""

from durak.common.deck import DECK_SIZE

# Cards each player is dealt and refilled up to
HAND_SIZE = 6

MAX_PLAYERS = 2

# Placeholder shown in place of each card of an opponent's hand
HIDDEN_CARD = "back"

TOTAL_CARDS = DECK_SIZE
