# engine_py/src/instalose_engine/recap.py

from typing import Any, Dict, List

from .constants import (
    ACTION_DRAW, ACTION_GAME_STARTED, RESULT_ELIMINATED, RESULT_SKIPPED,
)
from .models import ActionRecord, GameState
from .serialization import sanitize_action


def build_standings(state: GameState) -> List[Dict[str, Any]]:
    """
    Order players for the end-of-game recap.

    The winner comes first, then anyone still alive in seat order, then the
    eliminated players, most recently eliminated first. Eliminations that
    fell out of the bounded action log keep seat order at the end.
    """
    elimination_order = [
        a.player_id for a in sorted(state.actions, key=lambda a: a.sequence_number)
        if a.result == RESULT_ELIMINATED
    ]

    def sort_key(player):
        if player.id == state.winner_id:
            return (0, 0)
        if player.alive:
            return (1, 0)
        if player.id in elimination_order:
            return (2, -elimination_order.index(player.id))
        return (3, 0)

    ordered = sorted(state.players, key=sort_key)  # stable, so seat order breaks ties
    return [
        {
            "place": place,
            "player_id": p.id,
            "name": p.name,
            "icon": p.icon,
            "color": p.color,
            "alive": p.alive,
            "winner": p.id == state.winner_id,
        }
        for place, p in enumerate(ordered, start=1)
    ]


def _closes_turn(record: ActionRecord) -> bool:
    return (
        record.type in (ACTION_DRAW, ACTION_GAME_STARTED)
        or record.result == RESULT_SKIPPED
    )


def group_actions_by_turn(actions: List[ActionRecord]) -> List[Dict[str, Any]]:
    """
    Fold the action log into turns using sequence numbers.

    A turn ends with the draw or skip that passed it on; the game-start
    record forms a turn of its own. Trailing actions of a turn still in
    progress form the last, open group.
    """
    turns: List[Dict[str, Any]] = []
    current: List[ActionRecord] = []

    for record in sorted(actions, key=lambda a: a.sequence_number):
        current.append(record)
        if _closes_turn(record):
            turns.append(_turn_entry(current, complete=True))
            current = []

    if current:
        turns.append(_turn_entry(current, complete=False))
    return turns


def _turn_entry(records: List[ActionRecord], complete: bool) -> Dict[str, Any]:
    return {
        "first_sequence_number": records[0].sequence_number,
        "last_sequence_number": records[-1].sequence_number,
        "player_id": records[0].player_id,
        "complete": complete,
        # Recaps are public, so card identities are redacted as for a spectator
        "actions": [sanitize_action(r, None) for r in records],
    }


def build_recap(state: GameState) -> Dict[str, Any]:
    return {
        "game_id": state.id,
        "status": state.status,
        "winner_id": state.winner_id,
        "total_action_count": state.total_action_count,
        "standings": build_standings(state),
        "turns": group_actions_by_turn(state.actions),
    }
