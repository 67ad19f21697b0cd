"""
Tests for the asynchronous DurakService facade.
"""

import asyncio
import logging
from unittest.mock import MagicMock

import pytest

from durak.api import DurakService
from durak.events import EventBus, MatchEventType
from durak.match.state import MatchPhase
from durak.registry import ActionStatus, RegistryErrorKind


async def start_match(service):
    created = await service.create_match("alice")
    await service.join_match("bob", created.match_id)
    view = await service.get_match_for_player("alice")
    return created.match_id, view.attacker_id, view.defender_id


async def start_match_with(service, first, second):
    created = await service.create_match(first)
    await service.join_match(second, created.match_id)
    return created.match_id


@pytest.mark.asyncio
async def test_default_construction():
    service = DurakService()
    assert service.event_bus is EventBus.get_instance()
    assert service.config["finished_match_ttl"] is None


@pytest.mark.asyncio
async def test_config_passes_through_to_registry():
    service = DurakService(config={"hand_size": 5, "match_id_length": 4})
    result = await service.create_match("alice")
    assert len(result.match_id) == 4
    assert service.registry.rules.hand_size == 5


@pytest.mark.asyncio
async def test_create_join_leave(service):
    created = await service.create_match("alice")
    assert created.ok

    joined = await service.join_match("bob", created.match_id)
    assert joined.ok

    view = await service.get_match_for_player("bob")
    assert view.phase == MatchPhase.PLAYING

    left = await service.leave_match("bob")
    assert left.ok
    view = await service.get_match_for_player("alice")
    assert view.winner_id == "alice"


@pytest.mark.asyncio
async def test_failures_are_logged(service, caplog):
    with caplog.at_level(logging.INFO, logger="durak.api"):
        result = await service.join_match("bob", "NOPE00")

    assert result.error == RegistryErrorKind.MATCH_NOT_FOUND
    assert "match_not_found" in caplog.text


@pytest.mark.asyncio
async def test_list_open_matches_and_stats(service):
    await service.create_match("alice")
    await start_match_with(service, "carol", "dave")

    open_matches = await service.list_open_matches()
    assert [m.player_count for m in open_matches] == [1]

    stats = await service.get_stats()
    assert stats == {
        "active_matches": 2,
        "online_players": 3,
        "waiting": 1,
        "playing": 1,
        "finished": 0,
    }


@pytest.mark.asyncio
async def test_moves_by_card_code(service):
    match_id, attacker, defender = await start_match(service)
    view = await service.get_match_for_player(attacker)
    code = view.hand[0].code

    result = await service.attack(attacker, code)
    assert result.ok
    assert result.view.table[0].attack.code == code

    result = await service.take_cards(defender)
    assert result.ok

    result = await service.pass_turn(defender)
    assert result.status == ActionStatus.REJECTED


@pytest.mark.asyncio
async def test_malformed_card_codes(service):
    _, attacker, defender = await start_match(service)

    assert (await service.attack(attacker, "1x")).status == ActionStatus.MALFORMED
    assert (await service.defend(defender, "7h", "")).status == ActionStatus.MALFORMED
    assert (await service.throw_in(attacker, "Zz")).status == ActionStatus.MALFORMED


@pytest.mark.asyncio
async def test_move_outside_match(service):
    result = await service.attack("nobody", "7h")
    assert result.status == ActionStatus.NOT_FOUND


@pytest.mark.asyncio
async def test_subscribers_receive_their_own_view(service):
    await service.initialize()
    alice_views = []
    bob_views = []
    service.subscribe("alice", alice_views.append)
    service.subscribe("bob", bob_views.append)

    await start_match(service)

    assert alice_views and bob_views
    assert all(view.viewer_id == "alice" for view in alice_views)
    assert bob_views[-1].viewer_id == "bob"
    assert bob_views[-1].phase == MatchPhase.PLAYING
    assert bob_views[-1].to_dict()["hands"]["alice"] == ["back"] * 6

    await service.shutdown()


@pytest.mark.asyncio
async def test_unsubscribe(service):
    await service.initialize()
    callback = MagicMock()
    unsubscribe = service.subscribe("alice", callback)

    await service.create_match("alice")
    assert callback.call_count == 1

    unsubscribe()
    await service.leave_match("alice")
    assert callback.call_count == 1

    await service.shutdown()


@pytest.mark.asyncio
async def test_async_subscriber(service):
    await service.initialize()
    received = asyncio.Event()
    views = []

    async def push(view):
        views.append(view)
        received.set()

    service.subscribe("alice", push)
    await service.create_match("alice")

    await asyncio.wait_for(received.wait(), timeout=1)
    assert views[0].viewer_id == "alice"

    await service.shutdown()


@pytest.mark.asyncio
async def test_failing_subscriber_is_logged(service, caplog):
    await service.initialize()

    def broken(view):
        raise RuntimeError("socket closed")

    service.subscribe("alice", broken)

    with caplog.at_level(logging.ERROR, logger="durak.api"):
        result = await service.create_match("alice")

    assert result.ok
    assert "socket closed" in caplog.text

    await service.shutdown()


@pytest.mark.asyncio
async def test_failing_async_subscriber_is_logged(service, caplog):
    await service.initialize()

    async def broken(view):
        raise RuntimeError("socket closed")

    service.subscribe("alice", broken)

    with caplog.at_level(logging.ERROR, logger="durak.api"):
        result = await service.create_match("alice")
        for _ in range(5):
            await asyncio.sleep(0)

    assert result.ok
    records = [r for r in caplog.records if r.name == "durak.api"]
    assert any("socket closed" in r.getMessage() for r in records)
    assert any(r.exc_info and r.exc_info[0] is RuntimeError for r in records)

    await service.shutdown()


@pytest.mark.asyncio
async def test_shutdown_cancels_pending_pushes(service):
    await service.initialize()
    started = asyncio.Event()
    cancelled = []

    async def slow(view):
        started.set()
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            cancelled.append(view.viewer_id)
            raise

    service.subscribe("alice", slow)
    await service.create_match("alice")
    await asyncio.wait_for(started.wait(), timeout=1)

    await service.shutdown()

    assert cancelled == ["alice"]


@pytest.mark.asyncio
async def test_shutdown_stops_updates(service):
    await service.initialize()
    callback = MagicMock()
    service.subscribe("alice", callback)

    await service.shutdown()
    await service.create_match("alice")

    callback.assert_not_called()
    assert service.event_handlers == {}


@pytest.mark.asyncio
async def test_service_handlers_use_registry_emitter(service):
    listener = MagicMock()
    service.on(MatchEventType.MATCH_CREATED, listener)

    await service.create_match("alice")
    listener.assert_called_once()

    await service.shutdown()
    await service.create_match("bob")
    listener.assert_called_once()


@pytest.mark.asyncio
async def test_cleanup(service):
    match_id = await start_match_with(service, "alice", "bob")
    await service.leave_match("alice")
    await service.create_match("carol")
    service.registry.get_session(
        service.registry.get_match_id_for_player("carol")
    ).remove_player("carol")

    reclaimed = await service.cleanup()

    assert reclaimed == {"empty": 1, "finished": 1}
    assert service.registry.get_session(match_id) is None
    assert (await service.get_stats())["active_matches"] == 0


@pytest.mark.asyncio
async def test_cleanup_respects_ttl(registry):
    service = DurakService(registry=registry, config={"finished_match_ttl": 3600})
    await start_match_with(service, "alice", "bob")
    await service.leave_match("alice")

    assert await service.cleanup() == {"empty": 0, "finished": 0}
    assert service.registry.active_match_count == 1
