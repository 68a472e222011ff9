import logging
from datetime import timedelta
from functools import partial
from typing import List

import numpy as np

from briscola_server.domain.cards import (
    HAND_SIZE,
    create_deck,
    cut_deck,
    roll_dice,
    shuffle_deck,
)
from briscola_server.errors import (
    AlreadyInRoom,
    InvalidPhaseForAction,
    NotInRoom,
    NotYourTurn,
    RoomFull,
    RoomNotFound,
)
from briscola_server.events import (
    DEALING_START,
    DECK_CUT,
    DICE_ROLL_START,
    DICE_ROLLED,
    GAME_START,
    OPPONENT_CUTTING,
    PLAYER_DISCONNECTED,
    ROOM_CREATED,
    ROOM_JOINED,
    SHUFFLE_START,
    YOUR_TURN_TO_CUT,
)
from briscola_server.load_settings import GameTimings
from briscola_server.models.dc_models import (
    DeckCutModel,
    DiceRolledModel,
    Phase,
    RoomSlotModel,
    ShuffleStartModel,
)
from briscola_server.models.schema_models import GameStateSchema
from briscola_server.room import Room
from briscola_server.room_registry import RoomRegistry
from briscola_server.services.notifier import RoomNotifier
from briscola_server.transition_scheduler import Step


class SessionLifecycleManager:
    """Creates, joins and tears down rooms, and runs the dealer ritual.

    The ritual is a fixed sequence of timed steps: roll the dice, show the
    ordered deck, shuffle it, then wait for the non-dealer to cut. The cut
    deals the cards and two more timed steps start the game.
    """

    def __init__(
        self,
        room_registry: RoomRegistry,
        transport,
        timings: GameTimings | None = None,
        rng: np.random.Generator | None = None,
    ):
        self.room_registry = room_registry
        self.transport = transport
        self.timings = timings or GameTimings()
        self.rng = rng if rng is not None else np.random.default_rng()
        self.notifier = RoomNotifier(transport)

    async def create_room(self, connection_id: str) -> Room:
        """Create a room with the caller in slot 1

        Args:
            connection_id (str): Connection of the creator

        Returns:
            Room: The new room, waiting for an opponent
        """
        room = await self.room_registry.create_room(connection_id)
        room.scheduler.on_failure = partial(self._abort, room)
        self.transport.join_group(room.room_code, connection_id)
        await self.notifier.send(
            connection_id, ROOM_CREATED, RoomSlotModel(room_code=room.room_code, player_number=1)
        )
        logging.info(f"Room created: {room.room_code}")
        return room

    async def join_room(self, room_code: str, connection_id: str) -> Room:
        """Put the caller in slot 2 and start the dealer ritual

        Args:
            room_code (str): Code of the room to join
            connection_id (str): Connection of the joining player

        Raises:
            RoomNotFound: No live room has this code
            AlreadyInRoom: The creator tried to join their own room
            RoomFull: Slot 2 is already taken

        Returns:
            Room: The joined room, now rolling dice
        """
        room = await self.room_registry.get_room(room_code)
        if room is None:
            raise RoomNotFound()
        async with room.lock:
            if room.closed:
                raise RoomNotFound()
            if room.has_participant(connection_id):
                raise AlreadyInRoom()
            if room.slot2_id is not None:
                raise RoomFull()

            room.slot2_id = connection_id
            self.transport.join_group(room_code, connection_id)
            await self.notifier.send(
                connection_id, ROOM_JOINED, RoomSlotModel(room_code=room_code, player_number=2)
            )
            logging.info(f"Player joined room: {room_code}")

            room.phase = Phase.rolling_dice
            await self.notifier.broadcast(room, DICE_ROLL_START)
            room.scheduler.run(self._dealer_ritual(room))
        return room

    def _dealer_ritual(self, room: Room) -> List[Step]:
        return [
            (self.timings.dice_roll_delay, partial(self._roll_for_dealer, room)),
            (self.timings.shuffle_delay, partial(self._start_shuffle, room)),
            (self.timings.shuffle_animation_delay, partial(self._finish_shuffle, room)),
        ]

    async def _roll_for_dealer(self, room: Room):
        dice1, dice2 = roll_dice(self.rng)
        # The higher roll deals from slot 1; a tie keeps the creator as dealer.
        if dice1 >= dice2:
            dealer, non_dealer = 1, 2
        else:
            dealer, non_dealer = 2, 1
            room.swap_slots()
        rolls = {1: dice1, 2: dice2}
        message = (
            f"Player {dealer} rolled {rolls[dealer]}, "
            f"Player {non_dealer} rolled {rolls[non_dealer]}. Player {dealer} deals!"
        )
        logging.info(f"Dice rolled in {room.room_code}: {dice1} vs {dice2}")
        await self.notifier.broadcast(
            room,
            DICE_ROLLED,
            DiceRolledModel(dice1=dice1, dice2=dice2, dealer=dealer, message=message),
        )

    async def _start_shuffle(self, room: Room):
        room.phase = Phase.shuffling
        room.deck = create_deck()
        await self.notifier.broadcast(room, SHUFFLE_START, ShuffleStartModel(deck=room.deck))

    async def _finish_shuffle(self, room: Room):
        room.deck = shuffle_deck(room.deck, self.rng)
        room.phase = Phase.cutting
        await self.notifier.send(room.slot2_id, YOUR_TURN_TO_CUT)
        await self.notifier.send(room.slot1_id, OPPONENT_CUTTING)
        logging.info(f"Waiting for cut in {room.room_code}")

    async def cut_and_deal(self, room_code: str, connection_id: str, cut_position: float) -> Room:
        """Cut the shuffled deck, deal three cards each and set the trump card

        Args:
            room_code (str): Code of the room
            connection_id (str): Connection of the player cutting, must be the non-dealer
            cut_position (float): Where to cut, from 0 to 100

        Raises:
            RoomNotFound: No live room has this code
            NotInRoom: The caller does not play in this room
            InvalidPhaseForAction: The deck is not waiting to be cut
            NotYourTurn: The dealer tried to cut

        Returns:
            Room: The room with its game state dealt
        """
        room = await self.room_registry.get_room(room_code)
        if room is None:
            raise RoomNotFound()
        async with room.lock:
            if room.closed:
                raise RoomNotFound()
            player_number = room.slot_of(connection_id)
            if player_number is None:
                raise NotInRoom()
            if room.phase != Phase.cutting or room.game_state is not None:
                raise InvalidPhaseForAction()
            if player_number != 2:
                raise NotYourTurn()

            dealt = cut_deck(room.deck, cut_position)
            player1_hand = dealt[:HAND_SIZE]
            player2_hand = dealt[HAND_SIZE : 2 * HAND_SIZE]
            remaining = dealt[2 * HAND_SIZE :]
            room.game_state = GameStateSchema(
                deck=remaining[:-1],
                trump_card=remaining[-1],
                player1_hand=player1_hand,
                player2_hand=player2_hand,
                current_player=2,
            )
            room.deck = []
            logging.info(
                f"Deck cut at {cut_position} in {room_code}, trump: {room.game_state.trump_card}"
            )

            await self.notifier.broadcast(room, DECK_CUT, DeckCutModel(cut_position=cut_position))
            room.scheduler.run(
                [
                    (self.timings.deal_delay, partial(self._start_dealing, room)),
                    (self.timings.deal_animation_delay, partial(self._start_game, room)),
                ]
            )
        return room

    async def _start_dealing(self, room: Room):
        await self.notifier.broadcast(room, DEALING_START)

    async def _start_game(self, room: Room):
        room.phase = Phase.playing
        await self.notifier.broadcast(room, GAME_START)
        await self.notifier.send_game_state(room)
        logging.info(f"Game started in {room.room_code}")

    async def disconnect(self, connection_id: str) -> List[str]:
        """Tear down every room the connection plays in

        Args:
            connection_id (str): Connection that went away

        Returns:
            List[str]: Codes of the rooms that were torn down
        """
        closed_rooms = []
        for room in await self.room_registry.rooms_with_participant(connection_id):
            async with room.lock:
                if room.closed:
                    continue
                room.close()
                await self.room_registry.remove_room(room.room_code)
                self.transport.leave_group(room.room_code, connection_id)
                await self.notifier.broadcast(room, PLAYER_DISCONNECTED)
                self.transport.discard_group(room.room_code)
            logging.info(f"Room {room.room_code} closed: {connection_id} disconnected")
            closed_rooms.append(room.room_code)
        return closed_rooms

    async def _abort(self, room: Room):
        """Tear down a room whose timed transition failed and tell both players."""
        async with room.lock:
            if room.closed:
                return
            room.close()
            await self.room_registry.remove_room(room.room_code)
            await self.notifier.broadcast(room, PLAYER_DISCONNECTED)
            self.transport.discard_group(room.room_code)
        logging.warning(f"Room {room.room_code} closed after a failed transition")

    async def sweep_finished_rooms(self) -> List[str]:
        """Remove rooms whose game ended longer ago than the retention time."""
        retention = timedelta(seconds=self.timings.finished_room_retention)
        swept = []
        for room in await self.room_registry.finished_rooms(retention):
            async with room.lock:
                if room.closed:
                    continue
                await self._teardown(room)
            swept.append(room.room_code)
        if swept:
            logging.info(f"Swept finished rooms: {swept}")
        return swept

    async def _teardown(self, room: Room):
        room.close()
        await self.room_registry.remove_room(room.room_code)
        self.transport.discard_group(room.room_code)

    async def close_all(self):
        """Close every live room, used when the server shuts down."""
        async with self.room_registry.lock:
            rooms = list(self.room_registry.rooms.values())
        for room in rooms:
            async with room.lock:
                if not room.closed:
                    await self._teardown(room)
        logging.info(f"Closed {len(rooms)} rooms")
