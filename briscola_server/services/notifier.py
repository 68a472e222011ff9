from pydantic import BaseModel

from briscola_server.converter import DataConverter
from briscola_server.errors import GameError
from briscola_server.events import ERROR, GAME_STATE
from briscola_server.models.dc_models import ErrorModel
from briscola_server.room import Room


class RoomNotifier:
    """Pushes events to participants through the transport.

    The transport needs ``send_personal_message(message, connection_id)``,
    ``broadcast(message, room_code)``, ``join_group(room_code, connection_id)``,
    ``leave_group(room_code, connection_id)`` and ``discard_group(room_code)``;
    ConnectionManager provides them over websockets.
    """

    def __init__(self, transport, data_converter: DataConverter | None = None):
        self.transport = transport
        self.data_converter = data_converter or DataConverter()

    async def send(self, connection_id: str, event: str, data: BaseModel | None = None):
        message = self.data_converter.build_message(event, data)
        await self.transport.send_personal_message(message, connection_id)

    async def broadcast(self, room: Room, event: str, data: BaseModel | None = None):
        message = self.data_converter.build_message(event, data)
        await self.transport.broadcast(message, room.room_code)

    async def send_game_state(self, room: Room):
        """Send each participant the snapshot they are allowed to see."""
        if room.game_state is None:
            return
        for player_number in (1, 2):
            connection_id = room.connection_for(player_number)
            if connection_id is None:
                continue
            state = self.data_converter.convert_room_to_gamestatemodel(room, player_number)
            await self.send(connection_id, GAME_STATE, state)

    async def send_error(self, connection_id: str, code: str, message: str):
        await self.send(connection_id, ERROR, ErrorModel(code=code, message=message))

    async def reject(self, connection_id: str, error: GameError):
        await self.send_error(connection_id, error.code, error.message)
