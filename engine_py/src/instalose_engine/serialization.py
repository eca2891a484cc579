"""
State serialization and sanitization utilities.
"""

from typing import Any, Dict, List, Optional

import orjson

from .constants import RESULT_DREW_CARD
from .models import ActionRecord, Card, CardKind, GameState, Player
from .rules import RuleConfig, default_rules


def serialize_card(card: Card) -> Dict[str, Any]:
    return {"id": card.id, "kind": card.kind.value}


def deserialize_card(data: Dict[str, Any]) -> Card:
    return Card(id=data["id"], kind=CardKind(data["kind"]))


def serialize_action(record: ActionRecord) -> Dict[str, Any]:
    return {
        "type": record.type,
        "timestamp": record.timestamp,
        "sequence_number": record.sequence_number,
        "player_id": record.player_id,
        "card_kind": record.card_kind.value if record.card_kind else None,
        "result": record.result,
        "target_player_id": record.target_player_id,
        "stolen_card_kind": record.stolen_card_kind.value if record.stolen_card_kind else None,
        "winner_id": record.winner_id,
    }


def deserialize_action(data: Dict[str, Any]) -> ActionRecord:
    return ActionRecord(
        type=data["type"],
        timestamp=data["timestamp"],
        sequence_number=data["sequence_number"],
        player_id=data.get("player_id"),
        card_kind=CardKind(data["card_kind"]) if data.get("card_kind") else None,
        result=data.get("result"),
        target_player_id=data.get("target_player_id"),
        stolen_card_kind=CardKind(data["stolen_card_kind"]) if data.get("stolen_card_kind") else None,
        winner_id=data.get("winner_id"),
    )


def game_to_dict(state: GameState) -> Dict[str, Any]:
    """Full, unredacted record of the aggregate, for persistence only."""
    return {
        "id": state.id,
        "host_id": state.host_id,
        "status": state.status,
        "players": [
            {
                "id": p.id,
                "name": p.name,
                "icon": p.icon,
                "color": p.color,
                "hand": [serialize_card(c) for c in p.hand],
                "alive": p.alive,
            }
            for p in state.players
        ],
        "turn_order": list(state.turn_order),
        "current_turn_player_id": state.current_turn_player_id,
        "deck": [serialize_card(c) for c in state.deck],
        "discard": [serialize_card(c) for c in state.discard],
        "actions": [serialize_action(a) for a in state.actions],
        "total_action_count": state.total_action_count,
        "winner_id": state.winner_id,
        "version": state.version,
        "created_at": state.created_at,
        "updated_at": state.updated_at,
    }


def game_from_dict(data: Dict[str, Any]) -> GameState:
    return GameState(
        id=data["id"],
        host_id=data.get("host_id"),
        status=data["status"],
        players=[
            Player(
                id=p["id"],
                name=p["name"],
                icon=p["icon"],
                color=p["color"],
                hand=[deserialize_card(c) for c in p["hand"]],
                alive=p["alive"],
            )
            for p in data["players"]
        ],
        turn_order=list(data["turn_order"]),
        current_turn_player_id=data.get("current_turn_player_id"),
        deck=[deserialize_card(c) for c in data["deck"]],
        discard=[deserialize_card(c) for c in data["discard"]],
        actions=[deserialize_action(a) for a in data["actions"]],
        total_action_count=data["total_action_count"],
        winner_id=data.get("winner_id"),
        version=data["version"],
        created_at=data["created_at"],
        updated_at=data["updated_at"],
    )


def encode_game(state: GameState) -> bytes:
    return orjson.dumps(game_to_dict(state))


def decode_game(raw: bytes) -> GameState:
    return game_from_dict(orjson.loads(raw))


def sanitize_state(
    state: GameState,
    viewer_id: Optional[str] = None,
    rules: RuleConfig = default_rules,
) -> Dict[str, Any]:
    """
    Project the game into the view a single viewer is allowed to see.

    Args:
        state: Game to project (never mutated)
        viewer_id: Player viewing the state, or None for the host/spectators

    Returns:
        JSON-ready dict. Every player's hand is reduced to a count; only the
        viewer's own hand is listed in full.
    """
    viewer = state.get_player(viewer_id) if viewer_id else None

    return {
        "game_id": state.id,
        "version": state.version,
        "status": state.status,
        "host_id": state.host_id,
        "mvp_id": state.mvp_id,
        "current_turn_player_id": state.current_turn_player_id,
        "turn_order": list(state.turn_order),
        "deck_count": len(state.deck),
        "discard_count": len(state.discard),
        "players": [
            {
                "id": p.id,
                "name": p.name,
                "icon": p.icon,
                "color": p.color,
                "card_count": len(p.hand),
                "alive": p.alive,
            }
            for p in state.players
        ],
        "viewer_player_id": viewer.id if viewer else None,
        "my_hand": [serialize_card(c) for c in viewer.hand] if viewer else [],
        "actions": [
            sanitize_action(a, viewer.id if viewer else None)
            for a in state.actions[-rules.view_action_limit:]
        ],
        "total_action_count": state.total_action_count,
        "winner_id": state.winner_id,
        "updated_at": state.updated_at,
    }


def sanitize_action(record: ActionRecord, viewer_id: Optional[str]) -> Dict[str, Any]:
    """Hide card kinds that only landed in someone else's hand."""
    data = serialize_action(record)

    involved = viewer_id is not None and viewer_id in (record.player_id, record.target_player_id)
    if not involved:
        data["stolen_card_kind"] = None

    if record.result == RESULT_DREW_CARD and viewer_id != record.player_id:
        data["card_kind"] = None

    return data


def serialize_peeked(cards: List[Card]) -> List[Dict[str, Any]]:
    return [serialize_card(c) for c in cards]
