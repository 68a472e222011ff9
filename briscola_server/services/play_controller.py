import logging
from datetime import datetime
from functools import partial
from typing import List

from briscola_server.domain.cards import Card
from briscola_server.domain.trick_rules import PlayedCard, resolve_trick
from briscola_server.errors import (
    CardNotInHand,
    InvalidPhaseForAction,
    NotInRoom,
    NotYourTurn,
    RoomNotFound,
)
from briscola_server.events import (
    COUNTING_START,
    DRAW_CARD,
    GAME_OVER,
    OPPONENT_DRAW,
    TRICK_COMPLETE,
)
from briscola_server.load_settings import GameTimings
from briscola_server.models.dc_models import DrawCardModel, Phase, TrickCompleteModel
from briscola_server.room import Room
from briscola_server.room_registry import RoomRegistry
from briscola_server.services.notifier import RoomNotifier
from briscola_server.transition_scheduler import Step


def other_player(player_number: int) -> int:
    return 2 if player_number == 1 else 1


class PlayController:
    """Applies played cards and drives each trick to its end.

    A trick is resolved as soon as its second card is played. The cards
    are drawn after a pause (winner first) and the winner leads the next
    trick. The game ends when both hands are empty.
    """

    def __init__(self, room_registry: RoomRegistry, transport, timings: GameTimings | None = None):
        self.room_registry = room_registry
        self.timings = timings or GameTimings()
        self.notifier = RoomNotifier(transport)

    def check_play(self, room: Room, connection_id: str, card: Card) -> int:
        """Validate a play without touching the room

        Args:
            room (Room): Room the card is played in
            connection_id (str): Connection of the player
            card (Card): Card the player wants to play

        Raises:
            RoomNotFound: The room has been closed
            NotInRoom: The caller does not play in this room
            InvalidPhaseForAction: The room does not accept plays right now
            NotYourTurn: The other player is on turn
            CardNotInHand: The card is not in the caller's hand

        Returns:
            int: Player number of the caller
        """
        if room.closed:
            raise RoomNotFound()
        player_number = room.slot_of(connection_id)
        if player_number is None:
            raise NotInRoom()
        game_state = room.game_state
        if game_state is None or room.phase != Phase.playing:
            raise InvalidPhaseForAction()
        if game_state.current_player != player_number:
            raise NotYourTurn()
        if card not in game_state.hand(player_number):
            raise CardNotInHand()
        return player_number

    async def play_card(self, room_code: str, connection_id: str, card: Card) -> Room:
        room = await self.room_registry.get_room(room_code)
        if room is None:
            raise RoomNotFound()
        async with room.lock:
            player_number = self.check_play(room, connection_id, card)
            game_state = room.game_state
            game_state.hand(player_number).remove(card)
            game_state.current_trick.append(PlayedCard(card=card, player=player_number))
            logging.debug(f"Player {player_number} played {card} in {room_code}")

            if len(game_state.current_trick) == 1:
                game_state.current_player = other_player(player_number)
                await self.notifier.send_game_state(room)
            else:
                await self._complete_trick(room)
        return room

    async def _complete_trick(self, room: Room):
        game_state = room.game_state
        room.phase = Phase.trick_complete

        trick = list(game_state.current_trick)
        winner, points = resolve_trick(trick, game_state.trump_card.suit)
        game_state.add_score(winner, points)
        # Keep the order played for the final count
        game_state.pile(winner).extend(played.card for played in trick)
        game_state.last_trick_winner = winner
        logging.info(f"Trick in {room.room_code} won by player {winner} for {points} points")

        await self.notifier.broadcast(
            room, TRICK_COMPLETE, TrickCompleteModel(winner=winner, points=points)
        )
        await self.notifier.send_game_state(room)
        game_state.current_trick.clear()

        room.scheduler.run(
            [(self.timings.trick_display_delay, partial(self._start_drawing, room, winner))]
        )

    async def _start_drawing(self, room: Room, winner: int) -> List[Step] | None:
        room.phase = Phase.drawing
        if room.game_state.cards_remaining() == 0:
            return await self._finish_trick(room, winner)
        await self._draw_for(room, winner)
        return [(self.timings.draw_delay, partial(self._draw_for_loser, room, winner))]

    async def _draw_for_loser(self, room: Room, winner: int) -> List[Step] | None:
        if room.game_state.cards_remaining() > 0:
            await self._draw_for(room, other_player(winner))
        return await self._finish_trick(room, winner)

    async def _draw_for(self, room: Room, player_number: int):
        """Give the next card to one player; only that player sees it."""
        game_state = room.game_state
        card = game_state.draw()
        game_state.hand(player_number).append(card)
        await self.notifier.send(
            room.connection_for(player_number), DRAW_CARD, DrawCardModel(card=card)
        )
        await self.notifier.send(room.connection_for(other_player(player_number)), OPPONENT_DRAW)
        await self.notifier.send_game_state(room)

    async def _finish_trick(self, room: Room, winner: int) -> List[Step] | None:
        game_state = room.game_state
        game_state.current_trick.clear()
        room.phase = Phase.playing
        game_state.current_player = winner

        if not game_state.player1_hand and not game_state.player2_hand:
            game_state.game_over = True
            room.phase = Phase.counting
            logging.info(
                f"Game over in {room.room_code}: "
                f"{game_state.player1_score} - {game_state.player2_score}"
            )
            await self.notifier.broadcast(
                room,
                COUNTING_START,
                self.notifier.data_converter.convert_room_to_countingstartmodel(room),
            )
            return [(self.timings.counting_delay, partial(self._close_game, room))]

        await self.notifier.send_game_state(room)
        return None

    async def _close_game(self, room: Room):
        room.phase = Phase.game_over
        room.finished_at = datetime.now()
        await self.notifier.broadcast(
            room, GAME_OVER, self.notifier.data_converter.convert_room_to_gameovermodel(room)
        )
