import logging
from asyncio import Lock
from datetime import datetime, timedelta
from typing import Callable, Dict, List

from briscola_server.room import Room


class RoomRegistry:
    """Live rooms by room code. The only structure shared across rooms."""

    def __init__(self, code_factory: Callable[[], str]):
        self.rooms: Dict[str, Room] = {}
        self.code_factory = code_factory
        self.lock = Lock()  # rooms への書き込みを保護

    async def create_room(self, creator_id: str) -> Room:
        """Register a new room under a code no live room uses

        Args:
            creator_id (str): Connection that created the room, placed in slot 1

        Returns:
            Room: The new room in the waiting phase
        """
        async with self.lock:
            room_code = self.code_factory()
            while room_code in self.rooms:
                logging.debug(f"Room code collision: {room_code}")
                room_code = self.code_factory()
            room = Room(room_code, creator_id)
            self.rooms[room_code] = room
            return room

    async def get_room(self, room_code: str) -> Room | None:
        async with self.lock:
            return self.rooms.get(room_code)

    async def remove_room(self, room_code: str) -> Room | None:
        async with self.lock:
            return self.rooms.pop(room_code, None)

    async def rooms_with_participant(self, connection_id: str) -> List[Room]:
        async with self.lock:
            return [
                room for room in self.rooms.values() if room.has_participant(connection_id)
            ]

    async def finished_rooms(self, retention: timedelta) -> List[Room]:
        """Rooms whose game ended longer than ``retention`` ago."""
        threshold = datetime.now() - retention
        async with self.lock:
            return [
                room
                for room in self.rooms.values()
                if room.finished_at is not None and room.finished_at <= threshold
            ]

    async def count(self) -> int:
        async with self.lock:
            return len(self.rooms)
