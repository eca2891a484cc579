"""Rules engine: pure transitions from one game snapshot to the next.

Every public function takes the loaded aggregate, validates against it and
returns a new aggregate. The input is never mutated, so a raised GameError
always means no state change.
"""

import copy
import logging
import random
import time
from dataclasses import dataclass, field
from typing import List, Optional

from .constants import (
    ACTION_DRAW, ACTION_GAME_STARTED, STATUS_FINISHED, STATUS_IN_PROGRESS,
    STATUS_WAITING,
)
from .effects import EffectResult, apply_card_effect, resolve_draw
from .errors import (
    AuthorizationError, StateConflictError, ValidationError,
    ALREADY_JOINED, ALREADY_STARTED, GAME_FULL, INVALID_REQUEST, NOT_ENOUGH_PLAYERS,
    NOT_MVP,
)
from .models import ActionRecord, Card, GameState, Player, PlayerAction
from .rules import RuleConfig, default_rules
from .shuffle import (
    add_elimination_cards, create_deck, deal_initial_hands, shuffle_deck,
    shuffle_turn_order,
)
from .validate import validate_action

logger = logging.getLogger(__name__)


@dataclass
class ActionOutcome:
    """What apply_action hands back to the caller."""
    state: GameState
    record: ActionRecord
    peeked_cards: List[Card] = field(default_factory=list)


def create_game(game_id: str, host_id: Optional[str], now: Optional[float] = None) -> GameState:
    """A new game waiting for players. The host only watches."""
    now = time.time() if now is None else now
    return GameState(id=game_id, host_id=host_id, status=STATUS_WAITING, created_at=now, updated_at=now)


def join_game(
    state: GameState,
    player_id: str,
    name: str,
    icon: str,
    color: str,
    rules: RuleConfig = default_rules,
) -> GameState:
    if not player_id or not name:
        raise ValidationError(INVALID_REQUEST, "Missing required fields")
    if state.status != STATUS_WAITING:
        raise StateConflictError(ALREADY_STARTED, "Game already started")
    if len(state.players) >= rules.max_players:
        raise StateConflictError(GAME_FULL, "Game is full")
    if state.get_player(player_id) is not None:
        raise StateConflictError(ALREADY_JOINED, "Player already in game")

    new_state = copy.deepcopy(state)
    new_state.players.append(Player(id=player_id, name=name, icon=icon, color=color))
    return new_state


def start_game(
    state: GameState,
    requesting_player_id: str,
    rng: Optional[random.Random] = None,
    rules: RuleConfig = default_rules,
    now: Optional[float] = None,
) -> GameState:
    """
    Deal the game and move it to in-progress.

    Hands are dealt from a deck holding no Elimination cards; those are mixed
    in afterwards. The turn order is an independent shuffle of player ids.
    """
    rng = rng or random.Random()
    if state.status != STATUS_WAITING:
        raise StateConflictError(ALREADY_STARTED, "Game already started")
    if state.mvp_id != requesting_player_id:
        raise AuthorizationError(NOT_MVP, "Only MVP can start the game")
    if len(state.players) < rules.min_players:
        raise StateConflictError(
            NOT_ENOUGH_PLAYERS, f"Need at least {rules.min_players} players to start"
        )

    new_state = copy.deepcopy(state)
    player_count = len(new_state.players)

    deck = shuffle_deck(create_deck(player_count, rules), rng)
    deck = deal_initial_hands(new_state.players, deck, rules)
    new_state.deck = add_elimination_cards(deck, player_count, rng)
    new_state.discard = []

    new_state.turn_order = shuffle_turn_order([p.id for p in new_state.players], rng)
    new_state.current_turn_player_id = new_state.turn_order[0]
    new_state.status = STATUS_IN_PROGRESS
    new_state.actions = []
    new_state.total_action_count = 0
    _append_action(new_state, rules, type=ACTION_GAME_STARTED, timestamp=_now(now))

    logger.info(
        f"Game {new_state.id} started with {player_count} players, "
        f"{new_state.current_turn_player_id} goes first"
    )
    return new_state


def apply_action(
    state: GameState,
    action: PlayerAction,
    rng: Optional[random.Random] = None,
    rules: RuleConfig = default_rules,
    now: Optional[float] = None,
) -> ActionOutcome:
    """
    Apply one player action.

    Raises a GameError subclass, leaving `state` untouched, when any
    precondition fails.
    """
    rng = rng or random.Random()
    validation = validate_action(state, action)
    validation.raise_if_invalid()

    new_state = copy.deepcopy(state)
    player = new_state.get_player(action.player_id)

    if action.type == ACTION_DRAW:
        effect = resolve_draw(new_state, player, rng)
    else:
        card = player.find_card(action.card_id)
        effect = apply_card_effect(
            new_state, player, card, rng, rules, target_player_id=action.target_player_id
        )

    if effect.advance_turn:
        advance_turn(new_state)

    winner_id = check_winner(new_state)

    record = _append_action(
        new_state,
        rules,
        type=action.type,
        timestamp=_now(now),
        player_id=action.player_id,
        card_kind=effect.card_kind,
        result=effect.result,
        target_player_id=effect.target_player_id,
        stolen_card_kind=effect.stolen_card_kind,
        winner_id=winner_id,
    )

    _log_effect(new_state, action, effect)
    return ActionOutcome(state=new_state, record=record, peeked_cards=effect.peeked_cards)


def next_alive_player_id(state: GameState) -> Optional[str]:
    """Next living player after the current one, walking the turn order cyclically."""
    if len(state.alive_players()) <= 1:
        return None

    order = state.turn_order
    if state.current_turn_player_id not in order:
        return next((pid for pid in order if state.get_player(pid).alive), None)

    start = order.index(state.current_turn_player_id)
    for offset in range(1, len(order) + 1):
        candidate = order[(start + offset) % len(order)]
        if state.get_player(candidate).alive:
            return candidate
    return None


def advance_turn(state: GameState) -> None:
    """Move the turn on. A no-op once one or no players remain alive."""
    next_id = next_alive_player_id(state)
    if next_id is not None:
        state.current_turn_player_id = next_id


def check_winner(state: GameState) -> Optional[str]:
    """Finish the game if exactly one player is alive. Returns the winner id."""
    alive = state.alive_players()
    if len(alive) == 1:
        state.status = STATUS_FINISHED
        state.winner_id = alive[0].id
        return state.winner_id
    return None


def _append_action(state: GameState, rules: RuleConfig, **fields) -> ActionRecord:
    state.total_action_count += 1
    record = ActionRecord(sequence_number=state.total_action_count, **fields)
    state.actions = (state.actions + [record])[-rules.action_log_limit:]
    return record


def _now(now: Optional[float]) -> float:
    return time.time() if now is None else now


def _log_effect(state: GameState, action: PlayerAction, effect: EffectResult) -> None:
    logger.info(
        f"Game {state.id}: {action.player_id} {action.type} "
        f"{effect.card_kind.value if effect.card_kind else ''} -> {effect.result}"
    )
    if state.status == STATUS_FINISHED:
        logger.info(f"Game {state.id} finished, winner {state.winner_id}")
