"""
Tests for the game store's compare-and-swap persistence.
"""

import random

import pytest
from instalose_engine.constants import ACTION_DRAW
from instalose_engine.engine import apply_action, create_game, join_game, start_game
from instalose_engine.errors import NotFoundError, WriteConflictError, WRITE_CONFLICT
from instalose_engine.models import PlayerAction
from instalose_engine.store import InMemoryGameStore


@pytest.fixture
def store(clock):
    return InMemoryGameStore(clock=clock)


def test_create_and_load(store):
    created = store.create(create_game("GAME01", "host"))
    assert created.version == 0
    loaded = store.load("GAME01")
    assert loaded == created
    assert store.exists("GAME01")
    assert not store.exists("NOPE00")


def test_create_duplicate_id(store):
    store.create(create_game("GAME01", "host"))
    with pytest.raises(WriteConflictError):
        store.create(create_game("GAME01", "other-host"))


def test_load_unknown_game(store):
    with pytest.raises(NotFoundError):
        store.load("NOPE00")


def test_save_unknown_game(store):
    with pytest.raises(NotFoundError):
        store.save(create_game("NOPE00", "host"), expected_version=0)


def test_save_bumps_version_and_timestamp(store):
    store.create(create_game("GAME01", "host", now=1.0))
    game = store.load("GAME01")
    store._clock.now = 2000.0

    saved = store.save(join_game(game, "a", "A", "cat", "blue"), expected_version=game.version)

    assert saved.version == 1
    assert saved.updated_at == 2000.0
    assert store.load("GAME01").players[0].id == "a"


def test_loads_are_independent_copies(store):
    store.create(create_game("GAME01", "host"))
    first = store.load("GAME01")
    first.players.append(None)
    assert store.load("GAME01").players == []


def test_stale_write_rejected(store):
    store.create(create_game("GAME01", "host"))
    first = store.load("GAME01")
    second = store.load("GAME01")

    store.save(join_game(first, "a", "A", "cat", "blue"), expected_version=first.version)

    with pytest.raises(WriteConflictError) as exc:
        store.save(join_game(second, "b", "B", "cat", "blue"), expected_version=second.version)
    assert exc.value.code == WRITE_CONFLICT

    stored = store.load("GAME01")
    assert [p.id for p in stored.players] == ["a"]
    assert stored.version == 1


def test_double_submitted_draw_applies_once(store):
    """Two racing requests for the same turn: only one draw lands."""
    game = create_game("GAME01", "host")
    for pid in ("a", "b"):
        game = join_game(game, pid, pid.upper(), "cat", "blue")
    store.create(start_game(game, "a", random.Random(3)))

    first = store.load("GAME01")
    second = store.load("GAME01")
    player_id = first.current_turn_player_id
    action = PlayerAction(player_id=player_id, type=ACTION_DRAW)

    store.save(apply_action(first, action, random.Random(1)).state, expected_version=first.version)
    with pytest.raises(WriteConflictError):
        store.save(apply_action(second, action, random.Random(1)).state, expected_version=second.version)

    stored = store.load("GAME01")
    assert stored.total_action_count == first.total_action_count + 1
    assert stored.version == first.version + 1
