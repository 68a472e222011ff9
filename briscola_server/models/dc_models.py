from pydantic import BaseModel, Field
from enum import Enum
from typing import Optional, List, Dict, Any

from briscola_server.domain.cards import Card
from briscola_server.domain.trick_rules import PlayedCard


class Phase(str, Enum):
    waiting = "waiting"
    rolling_dice = "rolling_dice"
    shuffling = "shuffling"
    cutting = "cutting"
    playing = "playing"
    trick_complete = "trick_complete"
    drawing = "drawing"
    counting = "counting"
    game_over = "game_over"


class EventModel(BaseModel):
    """Envelope of every message exchanged over the websocket."""

    event: str
    data: Optional[Dict[str, Any]] = None


# ==============================================================================
# ==== Inbound (participant -> server) =========================================
# ==============================================================================


class JoinRoomModel(BaseModel):
    room_code: str


class CutDeckModel(BaseModel):
    room_code: str
    cut_position: float = Field(ge=0, le=100)


class PlayCardModel(BaseModel):
    room_code: str
    card: Card


# ==============================================================================
# ==== Outbound (server -> participant) ========================================
# ==============================================================================


class RoomSlotModel(BaseModel):
    room_code: str
    player_number: int


class DiceRolledModel(BaseModel):
    dice1: int
    dice2: int
    dealer: int
    message: str


class ShuffleStartModel(BaseModel):
    deck: List[Card]


class DeckCutModel(BaseModel):
    cut_position: float


class GameStateModel(BaseModel):
    trump_card: Card
    deck_size: int
    current_trick: List[PlayedCard]
    game_over: bool
    phase: Phase
    last_trick_winner: int | None
    my_hand: List[Card]
    opponent_hand_size: int
    is_my_turn: bool
    player_number: int


class TrickCompleteModel(BaseModel):
    winner: int
    points: int


class DrawCardModel(BaseModel):
    card: Card
    # Always true; existing clients read it from the draw payload
    from_deck: bool = True


class CountingStartModel(BaseModel):
    player1_pile: List[Card]
    player2_pile: List[Card]
    player1_score: int
    player2_score: int


class GameOverModel(BaseModel):
    winner: int | None
    player1_score: int
    player2_score: int


class ErrorModel(BaseModel):
    code: str
    message: str


class RoomStatusModel(BaseModel):
    room_code: str
    phase: Phase
    player_count: int
    game_over: bool
