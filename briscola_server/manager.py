from fastapi import WebSocket, WebSocketDisconnect
from typing import Dict, Set
from uuid6 import uuid7
import logging


class ConnectionManager:
    """Websocket transport: personal messages and room-wide broadcasts."""

    def __init__(self):
        self.active_connections: Dict[str, WebSocket] = {}
        self.groups: Dict[str, Set[str]] = {}

    async def connect(self, websocket: WebSocket) -> str:
        """Accepts a websocket and gives it a connection id

        Args:
            websocket (WebSocket): Connector of the new client

        Returns:
            str: Opaque connection id used as the participant identity
        """
        await websocket.accept()
        connection_id = str(uuid7())
        self.active_connections[connection_id] = websocket
        return connection_id

    def disconnect(self, connection_id: str):
        """Forgets a connection and removes it from every group

        Args:
            connection_id (str): Connection to forget
        """
        self.active_connections.pop(connection_id, None)
        for room_code in list(self.groups):
            self.leave_group(room_code, connection_id)

    def join_group(self, room_code: str, connection_id: str):
        self.groups.setdefault(room_code, set()).add(connection_id)

    def leave_group(self, room_code: str, connection_id: str):
        if room_code in self.groups:
            self.groups[room_code].discard(connection_id)
            # Clean up if there are no more connections for this room
            if not self.groups[room_code]:
                del self.groups[room_code]

    def discard_group(self, room_code: str):
        self.groups.pop(room_code, None)

    async def send_personal_message(self, message: dict, connection_id: str):
        websocket = self.active_connections.get(connection_id)
        if websocket is None:
            logging.debug(f"Dropping message for closed connection: {connection_id}")
            return
        try:
            await websocket.send_json(message)
        except (WebSocketDisconnect, RuntimeError) as e:
            logging.warning(f"Failed to send to {connection_id}: {e}")

    async def broadcast(self, message: dict, room_code: str):
        logging.debug(f"Broadcasting {message['event']} to room: {room_code}")
        for connection_id in list(self.groups.get(room_code, ())):
            await self.send_personal_message(message, connection_id)
