"""Card and deck rules that are independent from the transport.

Rule of thumb:
- OK: deck construction, permutations, cuts, dice, code generation.
- Not OK: touching websockets, rooms, asyncio, datetime.now(), etc.
"""

import math
from enum import Enum
from typing import List

import numpy as np
from pydantic import BaseModel, Field

DECK_SIZE = 40
HAND_SIZE = 3
ROOM_CODE_LENGTH = 6
ROOM_CODE_CHARS = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
CARD_VALUES = [1, 2, 3, 4, 5, 6, 7, 8, 9, 10]


class Suit(str, Enum):
    coppe = "coppe"
    denari = "denari"
    spade = "spade"
    bastoni = "bastoni"


class Card(BaseModel):
    suit: Suit
    value: int = Field(ge=1, le=10)

    class Config:
        frozen = True

    def __str__(self) -> str:
        return f"{self.value} di {self.suit.value}"


def create_deck() -> List[Card]:
    """Return the ordered 40 card reference deck (suit-major, value-ascending)."""
    return [Card(suit=suit, value=value) for suit in Suit for value in CARD_VALUES]


def shuffle_deck(deck: List[Card], rng: np.random.Generator) -> List[Card]:
    """Fisher-Yates shuffle on a copy of the deck.

    The input list is left untouched so the caller can keep showing the
    pre-shuffle order.

    Args:
        deck (List[Card]): Deck to permute
        rng (np.random.Generator): Source of randomness

    Returns:
        List[Card]: A new list holding a uniformly random permutation of deck
    """
    shuffled = list(deck)
    for i in range(len(shuffled) - 1, 0, -1):
        j = int(rng.integers(0, i + 1))
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def cut_index(cut_position: float, deck_length: int) -> int:
    """Map a cut position in [0, 100] to an index into the deck.

    A position of 100 would land one past the last card; it wraps to 0, so
    cutting at 100 is the same as not cutting at all.
    """
    if cut_position < 0 or cut_position > 100:
        raise ValueError("cut_position must be between 0 and 100")
    if deck_length == 0:
        return 0
    index = math.floor(cut_position / 100 * deck_length)
    if index >= deck_length:
        index = 0
    return index


def cut_deck(deck: List[Card], cut_position: float) -> List[Card]:
    """Move the cards above the cut point to the bottom of the deck."""
    index = cut_index(cut_position, len(deck))
    return deck[index:] + deck[:index]


def roll_dice(rng: np.random.Generator) -> tuple[int, int]:
    """Roll two independent six-sided dice."""
    dice1, dice2 = rng.integers(1, 7, size=2)
    return int(dice1), int(dice2)


def generate_room_code(rng: np.random.Generator) -> str:
    indexes = rng.integers(0, len(ROOM_CODE_CHARS), size=ROOM_CODE_LENGTH)
    return "".join(ROOM_CODE_CHARS[int(i)] for i in indexes)
