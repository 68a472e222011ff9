import asyncio

import numpy as np
import pytest

from briscola_server.domain.cards import Card
from briscola_server.domain.trick_rules import TOTAL_POINTS
from briscola_server.errors import (
    CardNotInHand,
    InvalidPhaseForAction,
    NotInRoom,
    NotYourTurn,
    RoomNotFound,
)
from briscola_server.load_settings import GameTimings
from briscola_server.models.dc_models import Phase
from briscola_server.services.lifecycle import SessionLifecycleManager
from briscola_server.services.play_controller import PlayController
from tests.helpers import FixedRng, play_turn, start_game


@pytest.fixture
def ordered_lifecycle(registry, transport):
    # alice deals from slot 1, the deck is never shuffled
    return SessionLifecycleManager(registry, transport, GameTimings.instant(), FixedRng((6, 1)))


async def test_first_card_passes_the_turn(lifecycle, controller, transport):
    room = await start_game(lifecycle)
    leader = room.slot2_id
    player_number, card = await play_turn(controller, room)

    game_state = room.game_state
    assert player_number == 2
    assert card not in game_state.player2_hand
    assert len(game_state.player2_hand) == 2
    assert [played.card for played in game_state.current_trick] == [card]
    assert game_state.current_player == 1
    assert room.phase == Phase.playing
    state = transport.payloads(leader, "game_state")[-1]
    assert state["is_my_turn"] is False
    assert state["current_trick"] == [{"card": card.model_dump(mode="json"), "player": 2}]


async def test_trick_resolution_and_draws(ordered_lifecycle, controller, transport):
    room = await start_game(ordered_lifecycle, cut_position=0)
    game_state = room.game_state
    assert game_state.player1_hand[0] == Card(suit="coppe", value=1)
    assert game_state.player2_hand[0] == Card(suit="coppe", value=4)

    await play_turn(controller, room)  # bob leads the 4 of coppe
    await play_turn(controller, room)  # alice takes it with the ace

    assert game_state.player1_score == 11
    assert game_state.player2_score == 0
    assert game_state.player1_pile == [Card(suit="coppe", value=4), Card(suit="coppe", value=1)]
    assert game_state.last_trick_winner == 1
    assert game_state.current_trick == []
    assert game_state.current_player == 1
    assert room.phase == Phase.playing

    # winner draws first and only the drawer sees the card
    assert game_state.player1_hand[-1] == Card(suit="coppe", value=7)
    assert game_state.player2_hand[-1] == Card(suit="coppe", value=8)
    assert transport.payloads("alice", "draw_card") == [
        {"card": {"suit": "coppe", "value": 7}, "from_deck": True}
    ]
    assert transport.payloads("bob", "draw_card") == [
        {"card": {"suit": "coppe", "value": 8}, "from_deck": True}
    ]
    assert transport.payloads("bob", "opponent_draw") == [None]
    assert transport.payloads("alice", "trick_complete") == [{"winner": 1, "points": 11}]
    assert game_state.cards_remaining() == 32
    assert game_state.is_consistent()


async def test_trick_complete_snapshot_shows_both_cards(ordered_lifecycle, controller, transport):
    room = await start_game(ordered_lifecycle, cut_position=0)
    await play_turn(controller, room)
    await play_turn(controller, room)
    events = transport.events_for("bob")
    snapshot_index = events.index("trick_complete") + 1
    assert events[snapshot_index] == "game_state"
    states = transport.payloads("bob", "game_state")
    completed = [s for s in states if s["phase"] == "trick_complete"]
    assert len(completed) == 1
    assert len(completed[0]["current_trick"]) == 2


async def test_rejected_plays_do_not_change_state(lifecycle, controller, transport):
    room = await start_game(lifecycle)
    before = room.game_state.model_dump()
    dealer, non_dealer = room.slot1_id, room.slot2_id
    dealer_card = room.game_state.player1_hand[0]

    with pytest.raises(NotYourTurn):
        await controller.play_card(room.room_code, dealer, dealer_card)
    with pytest.raises(CardNotInHand):
        await controller.play_card(room.room_code, non_dealer, dealer_card)
    with pytest.raises(NotInRoom):
        await controller.play_card(room.room_code, "mallory", dealer_card)
    with pytest.raises(RoomNotFound):
        await controller.play_card("ZZZZZZ", non_dealer, dealer_card)

    assert room.game_state.model_dump() == before
    assert room.phase == Phase.playing


async def test_simultaneous_plays_accept_only_one_card(lifecycle, controller, transport):
    room = await start_game(lifecycle)
    leader = room.game_state.current_player
    connection_id = room.connection_for(leader)
    hand = list(room.game_state.hand(leader))

    results = await asyncio.gather(
        *(controller.play_card(room.room_code, connection_id, card) for card in hand),
        return_exceptions=True,
    )
    await room.scheduler.wait_idle()

    assert [result is room for result in results].count(True) == 1
    rejected = [result for result in results if result is not room]
    assert len(rejected) == 2
    assert all(isinstance(result, NotYourTurn) for result in rejected)
    assert len(room.game_state.hand(leader)) == 2
    assert len(room.game_state.current_trick) == 1
    assert room.game_state.current_player != leader


async def test_play_before_game_starts_is_rejected(registry, transport, rng):
    timings = GameTimings.instant()
    timings.deal_delay = 60
    lifecycle = SessionLifecycleManager(registry, transport, timings, rng)
    controller = PlayController(registry, transport, timings)
    room = await lifecycle.create_room("alice")
    await lifecycle.join_room(room.room_code, "bob")
    await room.scheduler.wait_idle()

    with pytest.raises(InvalidPhaseForAction):
        await controller.play_card(room.room_code, room.slot2_id, Card(suit="coppe", value=1))

    await lifecycle.cut_and_deal(room.room_code, room.slot2_id, 50)
    card = room.game_state.player2_hand[0]
    with pytest.raises(InvalidPhaseForAction):
        await controller.play_card(room.room_code, room.slot2_id, card)
    assert len(room.game_state.player2_hand) == 3
    room.close()


async def test_play_during_trick_pause_is_rejected(registry, transport, rng):
    timings = GameTimings.instant()
    timings.trick_display_delay = 60
    lifecycle = SessionLifecycleManager(registry, transport, GameTimings.instant(), rng)
    controller = PlayController(registry, transport, timings)
    room = await start_game(lifecycle)

    await play_turn(controller, room)
    game_state = room.game_state
    second = game_state.current_player
    await controller.play_card(
        room.room_code, room.connection_for(second), game_state.hand(second)[0]
    )
    assert room.phase == Phase.trick_complete
    winner = game_state.last_trick_winner
    with pytest.raises(InvalidPhaseForAction):
        await controller.play_card(
            room.room_code, room.connection_for(winner), game_state.hand(winner)[0]
        )
    room.close()


async def test_disconnect_mid_trick_cancels_draws(registry, transport, rng):
    timings = GameTimings.instant()
    timings.trick_display_delay = 0.05
    lifecycle = SessionLifecycleManager(registry, transport, GameTimings.instant(), rng)
    controller = PlayController(registry, transport, timings)
    room = await start_game(lifecycle)

    await play_turn(controller, room)
    second = room.game_state.current_player
    await controller.play_card(
        room.room_code, room.connection_for(second), room.game_state.hand(second)[0]
    )
    await lifecycle.disconnect("alice")
    await room.scheduler.wait_idle()

    assert "draw_card" not in transport.events_for("bob")
    assert room.phase == Phase.trick_complete
    assert await registry.get_room(room.room_code) is None


@pytest.mark.parametrize("seed", [1, 2, 3])
async def test_full_game(seed, registry, transport):
    rng = np.random.default_rng(seed)
    lifecycle = SessionLifecycleManager(registry, transport, GameTimings.instant(), rng)
    controller = PlayController(registry, transport, GameTimings.instant())
    room = await start_game(lifecycle, cut_position=float(seed * 17 % 101))
    game_state = room.game_state

    plays = 0
    while not game_state.game_over:
        index = plays % len(game_state.hand(game_state.current_player))
        await play_turn(controller, room, index)
        plays += 1
        assert game_state.is_consistent()
        if plays % 2 == 0 and not game_state.game_over:
            assert game_state.current_player == game_state.last_trick_winner
            assert len(game_state.player1_hand) == len(game_state.player2_hand)

    assert plays == 40
    assert game_state.player1_score + game_state.player2_score == TOTAL_POINTS
    assert game_state.player1_hand == [] and game_state.player2_hand == []
    assert game_state.deck == [] and game_state.trump_drawn
    assert len(game_state.player1_pile) + len(game_state.player2_pile) == 40
    assert room.phase == Phase.game_over
    assert room.finished_at is not None

    for participant in ("alice", "bob"):
        counting = transport.payloads(participant, "counting_start")
        assert len(counting) == 1
        assert len(counting[0]["player1_pile"]) + len(counting[0]["player2_pile"]) == 40
        over = transport.payloads(participant, "game_over")[0]
        assert over["player1_score"] + over["player2_score"] == TOTAL_POINTS
        if over["player1_score"] > over["player2_score"]:
            assert over["winner"] == 1
        elif over["player1_score"] < over["player2_score"]:
            assert over["winner"] == 2
        else:
            assert over["winner"] is None

    with pytest.raises(InvalidPhaseForAction):
        await controller.play_card(room.room_code, "alice", Card(suit="coppe", value=1))
