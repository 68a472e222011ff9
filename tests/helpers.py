from typing import Dict, List, Set, Tuple

import numpy as np

from briscola_server.room import Room


class RecordingTransport:
    """In-memory stand-in for ConnectionManager that records every message."""

    def __init__(self):
        self.groups: Dict[str, Set[str]] = {}
        self.messages: List[Tuple[str, dict]] = []

    async def send_personal_message(self, message: dict, connection_id: str):
        self.messages.append((connection_id, message))

    async def broadcast(self, message: dict, room_code: str):
        for connection_id in sorted(self.groups.get(room_code, ())):
            self.messages.append((connection_id, message))

    def join_group(self, room_code: str, connection_id: str):
        self.groups.setdefault(room_code, set()).add(connection_id)

    def leave_group(self, room_code: str, connection_id: str):
        self.groups.get(room_code, set()).discard(connection_id)

    def discard_group(self, room_code: str):
        self.groups.pop(room_code, None)

    def events_for(self, connection_id: str) -> List[str]:
        return [m["event"] for cid, m in self.messages if cid == connection_id]

    def payloads(self, connection_id: str, event: str) -> List[dict]:
        return [
            m["data"] for cid, m in self.messages if cid == connection_id and m["event"] == event
        ]

    def clear(self):
        self.messages.clear()


class FixedRng:
    """Generator stub: fixed dice, shuffles that leave the deck in order."""

    def __init__(self, dice):
        self.dice = dice

    def integers(self, low, high=None, size=None):
        if size == 2:
            return np.array(self.dice)
        if size is not None:
            return np.zeros(size, dtype=int)
        return high - 1


async def start_game(lifecycle, creator="alice", joiner="bob", cut_position=37.0) -> Room:
    """Create, join, run the ritual and cut: the room ends up in the playing phase."""
    room = await lifecycle.create_room(creator)
    await lifecycle.join_room(room.room_code, joiner)
    await room.scheduler.wait_idle()
    await lifecycle.cut_and_deal(room.room_code, room.slot2_id, cut_position)
    await room.scheduler.wait_idle()
    return room


async def play_turn(controller, room: Room, index: int = 0):
    """Let whoever is on turn play a card from their hand and wait for the timed steps."""
    game_state = room.game_state
    player_number = game_state.current_player
    card = game_state.hand(player_number)[index]
    await controller.play_card(room.room_code, room.connection_for(player_number), card)
    await room.scheduler.wait_idle()
    return player_number, card
