import asyncio
import json
import logging
from functools import partial

import numpy as np
from fastapi import APIRouter, HTTPException, WebSocket, WebSocketDisconnect, status
from pydantic import ValidationError

from briscola_server.converter import DataConverter
from briscola_server.domain.cards import generate_room_code
from briscola_server.errors import GameError
from briscola_server.events import CREATE_ROOM, CUT_DECK, JOIN_ROOM, PLAY_CARD
from briscola_server.load_settings import GameTimings
from briscola_server.manager import ConnectionManager
from briscola_server.models.dc_models import (
    CutDeckModel,
    EventModel,
    JoinRoomModel,
    PlayCardModel,
    RoomStatusModel,
)
from briscola_server.room_registry import RoomRegistry
from briscola_server.services.lifecycle import SessionLifecycleManager
from briscola_server.services.notifier import RoomNotifier
from briscola_server.services.play_controller import PlayController

room_router = APIRouter()
rng = np.random.default_rng()
game_timings = GameTimings()
connection_manager = ConnectionManager()
room_registry = RoomRegistry(partial(generate_room_code, rng))
lifecycle_manager = SessionLifecycleManager(room_registry, connection_manager, game_timings, rng)
play_controller = PlayController(room_registry, connection_manager, game_timings)
notifier = RoomNotifier(connection_manager)
data_converter = DataConverter()


class RoomServer:
    @staticmethod
    @room_router.websocket("/ws")
    async def connect(websocket: WebSocket):
        """Serve one client until it disconnects

        Args:
            websocket (WebSocket): Connector with the connected client
        """
        connection_id = await connection_manager.connect(websocket)
        logging.info(f"New client connected: {connection_id}")
        try:
            while True:
                try:
                    message = await websocket.receive_json()
                # KeyError: a binary frame has no "text" to decode
                except (json.JSONDecodeError, KeyError):
                    await notifier.send_error(connection_id, "invalid_payload", "Message is not JSON")
                    continue
                await RoomServer.dispatch(connection_id, message)
        except WebSocketDisconnect:
            logging.info(f"Client disconnected: {connection_id}")
        finally:
            connection_manager.disconnect(connection_id)
            # Runs to completion even if this handler is being cancelled
            await asyncio.shield(lifecycle_manager.disconnect(connection_id))

    @staticmethod
    async def dispatch(connection_id: str, message: dict):
        """Route one inbound event to the engine

        Rejections are reported to the sender only and leave rooms untouched.

        Args:
            connection_id (str): Connection that sent the message
            message (dict): {"event": name, "data": payload}
        """
        try:
            event = EventModel.model_validate(message)
            data = event.data or {}
            if event.event == CREATE_ROOM:
                await lifecycle_manager.create_room(connection_id)
            elif event.event == JOIN_ROOM:
                join = JoinRoomModel.model_validate(data)
                await lifecycle_manager.join_room(join.room_code, connection_id)
            elif event.event == CUT_DECK:
                cut = CutDeckModel.model_validate(data)
                await lifecycle_manager.cut_and_deal(cut.room_code, connection_id, cut.cut_position)
            elif event.event == PLAY_CARD:
                play = PlayCardModel.model_validate(data)
                await play_controller.play_card(play.room_code, connection_id, play.card)
            else:
                logging.warning(f"Unknown event from {connection_id}: {event.event}")
                await notifier.send_error(
                    connection_id, "unknown_event", f"Unknown event: {event.event}"
                )
        except GameError as e:
            logging.warning(f"Rejected action from {connection_id}: {e.code}")
            await notifier.reject(connection_id, e)
        except ValidationError as e:
            logging.warning(f"Invalid payload from {connection_id}: {e.error_count()} errors")
            await notifier.send_error(connection_id, "invalid_payload", "Invalid payload")


class RoomAPI:
    @staticmethod
    @room_router.get("/rooms/{room_code}", response_model=RoomStatusModel)
    async def get_room(room_code: str):
        room = await room_registry.get_room(room_code)
        if room is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Room not found",
            )
        return data_converter.convert_room_to_roomstatusmodel(room)
