"""Trick resolution rules.

A trick is two played cards, in play order. Both cards always go to the
winner's pile, so the points of a trick are simply the sum of both cards.
"""

from typing import List, NamedTuple

from pydantic import BaseModel

from briscola_server.domain.cards import Card, Suit

# value -> points
POINT_VALUES = {1: 11, 3: 10, 10: 4, 9: 3, 8: 2, 7: 0, 6: 0, 5: 0, 4: 0, 2: 0}
# value -> rank strength
CARD_STRENGTH = {1: 11, 3: 10, 10: 4, 9: 3, 8: 2, 7: 0, 6: 0, 5: 0, 4: 0, 2: 0}

TOTAL_POINTS = 120


class PlayedCard(BaseModel):
    card: Card
    player: int


class TrickResult(NamedTuple):
    winner: int
    points: int


def card_points(card: Card) -> int:
    return POINT_VALUES.get(card.value, 0)


def card_strength(card: Card) -> int:
    return CARD_STRENGTH.get(card.value, 0)


def determine_trick_winner(trick: List[PlayedCard], trump_suit: Suit) -> int:
    """Decide who takes the trick

    Args:
        trick (List[PlayedCard]): The two played cards, first-played first
        trump_suit (Suit): Suit of the revealed trump card

    Raises:
        ValueError: The trick does not hold exactly two cards

    Returns:
        int: Player number (1 or 2) of the winner
    """
    if len(trick) != 2:
        raise ValueError(f"A trick needs exactly 2 cards, got {len(trick)}")
    first, second = trick

    if second.card.suit == trump_suit and first.card.suit != trump_suit:
        return second.player

    if first.card.suit == trump_suit and second.card.suit != trump_suit:
        return first.player

    if first.card.suit == second.card.suit:
        # Equal strength (two blank cards of the same suit) goes to the leader.
        if card_strength(first.card) >= card_strength(second.card):
            return first.player
        return second.player

    # Different suits, neither trump: the lead suit holds.
    return first.player


def calculate_trick_points(trick: List[PlayedCard]) -> int:
    return sum(card_points(played.card) for played in trick)


def resolve_trick(trick: List[PlayedCard], trump_suit: Suit) -> TrickResult:
    return TrickResult(
        winner=determine_trick_winner(trick, trump_suit),
        points=calculate_trick_points(trick),
    )
