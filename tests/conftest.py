from functools import partial

import numpy as np
import pytest

from briscola_server.domain.cards import generate_room_code
from briscola_server.load_settings import GameTimings
from briscola_server.room_registry import RoomRegistry
from briscola_server.services.lifecycle import SessionLifecycleManager
from briscola_server.services.play_controller import PlayController
from tests.helpers import RecordingTransport


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def rng():
    return np.random.default_rng(20240601)


@pytest.fixture
def registry(rng):
    return RoomRegistry(partial(generate_room_code, rng))


@pytest.fixture
def lifecycle(registry, transport, rng):
    return SessionLifecycleManager(registry, transport, GameTimings.instant(), rng)


@pytest.fixture
def controller(registry, transport):
    return PlayController(registry, transport, GameTimings.instant())
