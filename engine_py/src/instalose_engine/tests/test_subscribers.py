"""
Tests for push subscriptions and fan-out.
"""

import asyncio
import random

import pytest
from fastapi import WebSocketDisconnect
from instalose_engine.engine import create_game, join_game, start_game
from instalose_engine.rules import create_rules
from instalose_engine.subscribers import SubscriberRegistry


def make_game(version=1):
    game = create_game("GAME01", "host-1")
    for pid in ("a", "b", "c"):
        game = join_game(game, pid, pid.upper(), "cat", "blue")
    game = start_game(game, "a", random.Random(4))
    game.version = version
    return game


@pytest.fixture
def registry(clock):
    return SubscriberRegistry(rules=create_rules(subscriber_ttl=60), clock=clock)


def test_register_and_unregister(registry, fake_connection):
    registry.register("c1", "GAME01", "a", False, fake_connection())
    registry.register("c2", "GAME01", None, True, fake_connection())
    registry.register("c3", "OTHER1", "x", False, fake_connection())

    assert len(registry) == 3
    assert {s.connection_id for s in registry.subscribers_for("GAME01")} == {"c1", "c2"}

    removed = registry.unregister("c1")
    assert removed.viewer_player_id == "a"
    assert registry.unregister("c1") is None
    assert [s.connection_id for s in registry.subscribers_for("GAME01")] == ["c2"]


def test_reregister_replaces_record(registry, fake_connection):
    registry.register("c1", "GAME01", "a", False, fake_connection())
    registry.register("c1", "OTHER1", "b", False, fake_connection())

    assert len(registry) == 1
    assert registry.subscribers_for("GAME01") == []
    assert registry.get("c1").game_id == "OTHER1"


def test_expiry_and_touch(registry, clock, fake_connection):
    registry.register("c1", "GAME01", "a", False, fake_connection())
    registry.register("c2", "GAME01", "b", False, fake_connection())

    clock.now += 50
    registry.touch("c2")
    clock.now += 20

    assert registry.purge_expired() == ["c1"]
    assert registry.get("c1") is None
    assert registry.get("c2") is not None


@pytest.mark.asyncio
async def test_broadcast_sends_redacted_view_per_subscriber(registry, fake_connection):
    game = make_game()
    conns = {name: fake_connection() for name in ("a", "b", "host")}
    registry.register("ca", "GAME01", "a", False, conns["a"])
    registry.register("cb", "GAME01", "b", False, conns["b"])
    registry.register("ch", "GAME01", None, True, conns["host"])

    result = await registry.broadcast(game)

    assert (result.sent, result.failed, result.skipped) == (3, 0, 0)
    for name in ("a", "b"):
        message = conns[name].messages[0]
        assert message["type"] == "game_state_update"
        assert message["state"]["viewer_player_id"] == name
        assert [c["id"] for c in message["state"]["my_hand"]] == [c.id for c in game.get_player(name).hand]
    assert conns["host"].messages[0]["state"]["my_hand"] == []


@pytest.mark.asyncio
async def test_broadcast_only_reaches_same_game(registry, fake_connection):
    other = fake_connection()
    registry.register("c1", "GAME01", "a", False, fake_connection())
    registry.register("c2", "OTHER1", "a", False, other)

    await registry.broadcast(make_game())
    assert other.messages == []


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [
    WebSocketDisconnect(code=1001), ConnectionResetError("gone"), RuntimeError("closed"), ValueError("boom"),
])
async def test_failed_delivery_unregisters_and_others_still_receive(registry, error, fake_connection):
    healthy = fake_connection()
    registry.register("good", "GAME01", "a", False, healthy)
    registry.register("bad", "GAME01", "b", False, fake_connection(error=error))

    result = await registry.broadcast(make_game())

    assert result.sent == 1
    assert result.failed == 1
    assert len(healthy.messages) == 1
    assert registry.get("bad") is None
    assert registry.get("good") is not None


@pytest.mark.asyncio
async def test_slow_subscriber_does_not_block_others(registry, fake_connection):
    fast = fake_connection()
    slow = fake_connection(delay=0.05)
    registry.register("slow", "GAME01", "a", False, slow)
    registry.register("fast", "GAME01", "b", False, fast)

    result = await registry.broadcast(make_game())
    assert result.sent == 2
    assert len(fast.messages) == 1 and len(slow.messages) == 1


@pytest.mark.asyncio
async def test_older_version_never_overtakes_newer(registry, fake_connection):
    conn = fake_connection()
    registry.register("c1", "GAME01", "a", False, conn)

    await registry.broadcast(make_game(version=3))
    result = await registry.broadcast(make_game(version=2))
    again = await registry.broadcast(make_game(version=3))

    assert result.skipped == 1
    assert again.skipped == 1
    assert [m["state"]["version"] for m in conn.messages] == [3]


@pytest.mark.asyncio
async def test_send_view_resends_current_version(registry, fake_connection):
    conn = fake_connection()
    registry.register("c1", "GAME01", "a", False, conn)
    game = make_game(version=5)

    await registry.broadcast(game)
    assert await registry.send_view("c1", game)
    assert not await registry.send_view("missing", game)
    assert [m["state"]["version"] for m in conn.messages] == [5, 5]


@pytest.mark.asyncio
async def test_expired_subscriber_not_pushed(registry, clock, fake_connection):
    conn = fake_connection()
    registry.register("c1", "GAME01", "a", False, conn)
    clock.now += 61

    result = await registry.broadcast(make_game())
    assert result.sent == 0
    assert conn.messages == []
    assert len(registry) == 0


@pytest.mark.asyncio
async def test_action_result_goes_to_actor_only(registry, fake_connection):
    actor, other, host = fake_connection(), fake_connection(), fake_connection()
    registry.register("ca", "GAME01", "a", False, actor)
    registry.register("cb", "GAME01", "b", False, other)
    registry.register("ch", "GAME01", None, True, host)

    action_result = {"player_id": "a", "peeked_cards": [{"id": "x", "kind": "peek"}]}
    await registry.broadcast(make_game(), action_result)

    assert actor.messages[0]["action_result"] == action_result
    assert other.messages[0]["action_result"] is None
    assert host.messages[0]["action_result"] is None


@pytest.mark.asyncio
async def test_broadcast_without_subscribers(registry):
    result = await registry.broadcast(make_game())
    assert (result.sent, result.failed, result.skipped) == (0, 0, 0)


@pytest.mark.asyncio
async def test_replaced_registration_never_sends_again(registry, fake_connection):
    gate = asyncio.Event()
    old = fake_connection(gate=gate)
    new = fake_connection()
    registry.register("c1", "GAME01", "a", False, old)

    # v1 is stuck mid-send; v2 queues behind it on the same registration
    first = asyncio.create_task(registry.broadcast(make_game(version=1)))
    for _ in range(5):
        await asyncio.sleep(0)
    second = asyncio.create_task(registry.broadcast(make_game(version=2)))
    for _ in range(5):
        await asyncio.sleep(0)

    registry.register("c1", "GAME01", "a", False, new)
    await registry.broadcast(make_game(version=3))

    gate.set()
    first_result = await first
    second_result = await second

    assert first_result.sent == 1
    assert second_result.sent == 0
    assert [m["state"]["version"] for m in old.messages] == [1]
    assert [m["state"]["version"] for m in new.messages] == [3]
    assert registry.get("c1").last_delivered_version == 3


@pytest.mark.asyncio
async def test_failed_send_after_reregister_keeps_new_registration(registry, fake_connection):
    gate = asyncio.Event()
    registry.register("c1", "GAME01", "a", False, fake_connection(error=RuntimeError("closed"), gate=gate))

    pending = asyncio.create_task(registry.broadcast(make_game(version=1)))
    for _ in range(5):
        await asyncio.sleep(0)
    new = fake_connection()
    registry.register("c1", "GAME01", "a", False, new)

    gate.set()
    result = await pending

    assert result.failed == 1
    assert registry.get("c1") is not None
    assert (await registry.broadcast(make_game(version=2))).sent == 1
    assert len(new.messages) == 1
