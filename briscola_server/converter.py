from pydantic import BaseModel

from briscola_server.models.dc_models import (
    CountingStartModel,
    GameOverModel,
    GameStateModel,
    RoomStatusModel,
)
from briscola_server.models.schema_models import GameStateSchema
from briscola_server.room import Room


class DataConverter:
    """This class is used to convert room state into the data sent to clients."""

    def build_message(self, event: str, data: BaseModel | None = None) -> dict:
        """Wrap a payload into the {"event", "data"} envelope

        Args:
            event (str): Event name
            data (BaseModel | None): Payload, or None for bare notifications

        Returns:
            dict: JSON-ready message
        """
        return {
            "event": event,
            "data": data.model_dump(mode="json") if data is not None else None,
        }

    def convert_room_to_gamestatemodel(self, room: Room, player_number: int) -> GameStateModel:
        """Convert the room state into the snapshot one participant may see

        Args:
            room (Room): Room holding a dealt game state
            player_number (int): Slot of the recipient

        Returns:
            GameStateModel: Own hand only; the opponent's hand is reduced to its size
        """
        game_state: GameStateSchema = room.game_state
        opponent_number = 2 if player_number == 1 else 1
        return GameStateModel(
            trump_card=game_state.trump_card,
            deck_size=game_state.cards_remaining(),
            current_trick=list(game_state.current_trick),
            game_over=game_state.game_over,
            phase=room.phase,
            last_trick_winner=game_state.last_trick_winner,
            my_hand=list(game_state.hand(player_number)),
            opponent_hand_size=len(game_state.hand(opponent_number)),
            is_my_turn=game_state.current_player == player_number,
            player_number=player_number,
        )

    def convert_room_to_countingstartmodel(self, room: Room) -> CountingStartModel:
        game_state = room.game_state
        return CountingStartModel(
            player1_pile=list(game_state.player1_pile),
            player2_pile=list(game_state.player2_pile),
            player1_score=game_state.player1_score,
            player2_score=game_state.player2_score,
        )

    def convert_room_to_gameovermodel(self, room: Room) -> GameOverModel:
        game_state = room.game_state
        winner = None
        if game_state.player1_score > game_state.player2_score:
            winner = 1
        elif game_state.player2_score > game_state.player1_score:
            winner = 2
        return GameOverModel(
            winner=winner,
            player1_score=game_state.player1_score,
            player2_score=game_state.player2_score,
        )

    def convert_room_to_roomstatusmodel(self, room: Room) -> RoomStatusModel:
        return RoomStatusModel(
            room_code=room.room_code,
            phase=room.phase,
            player_count=len(room.participants()),
            game_over=room.game_state is not None and room.game_state.game_over,
        )
