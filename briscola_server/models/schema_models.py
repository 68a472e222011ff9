from pydantic import BaseModel
from typing import List

from briscola_server.domain.cards import Card, DECK_SIZE
from briscola_server.domain.trick_rules import PlayedCard


class GameStateSchema(BaseModel):
    """Authoritative card state of one room once the deck has been dealt.

    The trump card is held aside from ``deck`` and is drawn last.
    """

    deck: List[Card]
    trump_card: Card
    trump_drawn: bool = False
    player1_hand: List[Card]
    player2_hand: List[Card]
    player1_pile: List[Card] = []
    player2_pile: List[Card] = []
    player1_score: int = 0
    player2_score: int = 0
    current_trick: List[PlayedCard] = []
    current_player: int = 2  # Non-dealer leads the first trick
    last_trick_winner: int | None = None
    game_over: bool = False

    def hand(self, player_number: int) -> List[Card]:
        return self.player1_hand if player_number == 1 else self.player2_hand

    def pile(self, player_number: int) -> List[Card]:
        return self.player1_pile if player_number == 1 else self.player2_pile

    def add_score(self, player_number: int, points: int) -> None:
        if player_number == 1:
            self.player1_score += points
        else:
            self.player2_score += points

    def cards_remaining(self) -> int:
        """Number of cards still to be drawn, trump card included."""
        return len(self.deck) + (0 if self.trump_drawn else 1)

    def draw(self) -> Card | None:
        """Take the next card: the deck front, then the trump card."""
        if self.deck:
            return self.deck.pop(0)
        if not self.trump_drawn:
            self.trump_drawn = True
            return self.trump_card
        return None

    def accounted_cards(self) -> int:
        return (
            len(self.player1_hand)
            + len(self.player2_hand)
            + len(self.player1_pile)
            + len(self.player2_pile)
            + len(self.current_trick)
            + self.cards_remaining()
        )

    def is_consistent(self) -> bool:
        return self.accounted_cards() == DECK_SIZE
