import asyncio
from datetime import datetime
from typing import List

from briscola_server.domain.cards import Card
from briscola_server.models.dc_models import Phase
from briscola_server.models.schema_models import GameStateSchema
from briscola_server.transition_scheduler import TransitionScheduler


class Room:
    """One game session between two connections.

    Slot 1 is the dealer once the dice have been rolled. Every mutation
    happens while holding ``lock``.
    """

    def __init__(self, room_code: str, slot1_id: str):
        self.room_code = room_code
        self.slot1_id: str | None = slot1_id
        self.slot2_id: str | None = None
        self.phase = Phase.waiting
        self.deck: List[Card] = []  # working deck until the deal
        self.game_state: GameStateSchema | None = None
        self.finished_at: datetime | None = None
        self.lock = asyncio.Lock()
        self.scheduler = TransitionScheduler(room_code, self.lock)

    @property
    def closed(self) -> bool:
        return self.scheduler.closed

    def participants(self) -> List[str]:
        return [cid for cid in (self.slot1_id, self.slot2_id) if cid is not None]

    def has_participant(self, connection_id: str) -> bool:
        return connection_id in self.participants()

    def slot_of(self, connection_id: str) -> int | None:
        if connection_id == self.slot1_id:
            return 1
        if connection_id == self.slot2_id:
            return 2
        return None

    def connection_for(self, player_number: int) -> str | None:
        return self.slot1_id if player_number == 1 else self.slot2_id

    def swap_slots(self):
        self.slot1_id, self.slot2_id = self.slot2_id, self.slot1_id

    def close(self):
        self.scheduler.close()
