"""
Tests for per-viewer redaction and the stored encoding.
"""

import random

import orjson
import pytest
from instalose_engine.constants import (
    ACTION_DRAW, ACTION_PLAY_CARD, RESULT_DREW_CARD, RESULT_SAVED, RESULT_STOLE_CARD,
)
from instalose_engine.engine import create_game, join_game, start_game
from instalose_engine.models import ActionRecord, CardKind
from instalose_engine.rules import create_rules
from instalose_engine.serialization import (
    decode_game, encode_game, sanitize_action, sanitize_state,
)


@pytest.fixture
def started_game():
    game = create_game("GAME01", "host-1")
    for pid in ("a", "b", "c"):
        game = join_game(game, pid, pid.upper(), "cat", "blue")
    return start_game(game, "a", random.Random(9))


def test_player_sees_only_own_hand(started_game):
    view = sanitize_state(started_game, "b")
    me = started_game.get_player("b")

    assert view["viewer_player_id"] == "b"
    assert [c["id"] for c in view["my_hand"]] == [c.id for c in me.hand]
    assert all("hand" not in p for p in view["players"])
    assert [p["card_count"] for p in view["players"]] == [len(p.hand) for p in started_game.players]

    # No other card id may appear anywhere in the payload
    dumped = orjson.dumps(view).decode()
    hidden = [c.id for c in started_game.deck + started_game.discard]
    hidden += [c.id for p in started_game.players if p.id != "b" for c in p.hand]
    assert not any(card_id in dumped for card_id in hidden)


def test_host_and_spectator_get_no_hand(started_game):
    for viewer in (None, "host-1", "stranger"):
        view = sanitize_state(started_game, viewer)
        assert view["my_hand"] == []
        assert view["viewer_player_id"] is None


def test_view_summary_fields(started_game):
    view = sanitize_state(started_game, "a")
    assert view["deck_count"] == len(started_game.deck)
    assert view["discard_count"] == 0
    assert view["mvp_id"] == "a"
    assert view["host_id"] == "host-1"
    assert view["turn_order"] == started_game.turn_order
    assert view["status"] == "in-progress"


def test_view_action_limit(started_game):
    rules = create_rules(view_action_limit=3)
    started_game.actions = [
        ActionRecord(type=ACTION_DRAW, timestamp=0.0, sequence_number=i, player_id="a",
                     card_kind=CardKind.SKIP, result=RESULT_DREW_CARD)
        for i in range(1, 9)
    ]
    view = sanitize_state(started_game, "a", rules)
    assert [a["sequence_number"] for a in view["actions"]] == [6, 7, 8]


def test_drawn_card_kind_visible_to_drawer_only():
    record = ActionRecord(type=ACTION_DRAW, timestamp=0.0, sequence_number=2, player_id="a",
                          card_kind=CardKind.SAVE, result=RESULT_DREW_CARD)
    assert sanitize_action(record, "a")["card_kind"] == "panic"
    assert sanitize_action(record, "b")["card_kind"] is None
    assert sanitize_action(record, None)["card_kind"] is None


def test_saved_draw_is_public():
    record = ActionRecord(type=ACTION_DRAW, timestamp=0.0, sequence_number=2, player_id="a",
                          card_kind=CardKind.ELIMINATION, result=RESULT_SAVED)
    assert sanitize_action(record, "b")["card_kind"] == "insta-lose"


def test_stolen_card_kind_visible_to_thief_and_victim():
    record = ActionRecord(type=ACTION_PLAY_CARD, timestamp=0.0, sequence_number=3, player_id="a",
                          card_kind=CardKind.PAIR_C, result=RESULT_STOLE_CARD,
                          target_player_id="b", stolen_card_kind=CardKind.SAVE)
    assert sanitize_action(record, "a")["stolen_card_kind"] == "panic"
    assert sanitize_action(record, "b")["stolen_card_kind"] == "panic"
    assert sanitize_action(record, "c")["stolen_card_kind"] is None
    assert sanitize_action(record, None)["stolen_card_kind"] is None
    assert sanitize_action(record, "c")["target_player_id"] == "b"


def test_sanitize_does_not_mutate(started_game):
    before = encode_game(started_game)
    sanitize_state(started_game, "a")
    assert encode_game(started_game) == before


def test_encoded_game_keeps_everything(started_game):
    assert decode_game(encode_game(started_game)) == started_game
