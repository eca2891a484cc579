"""
Game service - the request surface between the transport and the engine.

Each request is handled as load -> apply -> compare-and-swap save -> fan out.
Nothing is cached between requests; the store is the only shared state.
This layer is framework-agnostic.
"""

import logging
import random
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Union

from . import engine
from .constants import DEFAULT_COLOR, DEFAULT_ICON
from .errors import (
    GameError, NotFoundError, ValidationError,
    GAME_NOT_FOUND, INTERNAL_ERROR, INVALID_REQUEST,
)
from .models import ActionRecord, Card, GameState, PlayerAction, Subscriber
from .recap import build_recap
from .rules import RuleConfig, default_rules
from .serialization import sanitize_state, serialize_action, serialize_peeked
from .shuffle import generate_game_id
from .store import GameStore, InMemoryGameStore
from .subscribers import BroadcastResult, SubscriberRegistry

logger = logging.getLogger(__name__)


class _NotModified:
    def __repr__(self) -> str:
        return "NOT_MODIFIED"


NOT_MODIFIED = _NotModified()


@dataclass
class ActionResponse:
    record: ActionRecord
    status: str
    current_turn_player_id: Optional[str]
    winner_id: Optional[str]
    peeked_cards: List[Card] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        action = serialize_action(self.record)
        if self.peeked_cards:
            action["peeked_cards"] = serialize_peeked(self.peeked_cards)
        return {
            "success": True,
            "action": action,
            "game_status": self.status,
            "current_turn_player_id": self.current_turn_player_id,
            "winner_id": self.winner_id,
        }


class GameService:
    """
    Usage:
        service = GameService()
        game_id = service.create_game("host-1")
        await service.join_game(game_id, "p1", "Alice")
        await service.join_game(game_id, "p2", "Bob")
        await service.start_game(game_id, "p1")
        await service.take_action(game_id, current_player_id, "draw")
    """

    def __init__(
        self,
        store: Optional[GameStore] = None,
        registry: Optional[SubscriberRegistry] = None,
        rules: RuleConfig = default_rules,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.rules = rules
        self.clock = clock
        self.store = store or InMemoryGameStore(clock=clock)
        self.registry = registry or SubscriberRegistry(rules=rules, clock=clock)
        self.rng = rng or random.Random()

    def create_game(self, host_id: str) -> str:
        if not host_id:
            raise ValidationError(INVALID_REQUEST, "Missing required fields")

        for _ in range(self.rules.game_id_attempts):
            game_id = generate_game_id(self.rules.game_id_length, self.rng)
            if self.store.exists(game_id):
                continue
            self.store.create(engine.create_game(game_id, host_id, self.clock()))
            logger.info(f"Game {game_id} created by host {host_id}")
            return game_id

        raise GameError(INTERNAL_ERROR, "Failed to generate unique game ID")

    async def join_game(
        self,
        game_id: str,
        player_id: str,
        name: str,
        icon: Optional[str] = None,
        color: Optional[str] = None,
    ) -> GameState:
        if not game_id or not player_id or not name:
            raise ValidationError(INVALID_REQUEST, "Missing required fields")

        game = self.store.load(game_id)
        updated = engine.join_game(
            game, player_id, name, icon or DEFAULT_ICON, color or DEFAULT_COLOR, self.rules
        )
        saved = self.store.save(updated, expected_version=game.version)
        logger.info(f"Player {player_id} ({name}) joined game {game_id}")
        await self._broadcast(saved)
        return saved

    async def start_game(self, game_id: str, requesting_player_id: str) -> GameState:
        if not game_id or not requesting_player_id:
            raise ValidationError(INVALID_REQUEST, "Missing required fields")

        game = self.store.load(game_id)
        started = engine.start_game(
            game, requesting_player_id, self.rng, self.rules, self.clock()
        )
        saved = self.store.save(started, expected_version=game.version)
        await self._broadcast(saved)
        return saved

    async def take_action(
        self,
        game_id: str,
        player_id: str,
        action_type: str,
        card_id: Optional[str] = None,
        target_player_id: Optional[str] = None,
    ) -> ActionResponse:
        if not game_id or not player_id or not action_type:
            raise ValidationError(INVALID_REQUEST, "Missing required fields")

        game = self.store.load(game_id)
        action = PlayerAction(
            player_id=player_id,
            type=action_type,
            card_id=card_id,
            target_player_id=target_player_id,
        )
        outcome = engine.apply_action(game, action, self.rng, self.rules, self.clock())
        saved = self.store.save(outcome.state, expected_version=game.version)

        action_result = None
        if outcome.peeked_cards:
            action_result = {
                "player_id": player_id,
                "peeked_cards": serialize_peeked(outcome.peeked_cards),
            }
        await self._broadcast(saved, action_result)

        return ActionResponse(
            record=outcome.record,
            status=saved.status,
            current_turn_player_id=saved.current_turn_player_id,
            winner_id=saved.winner_id,
            peeked_cards=outcome.peeked_cards,
        )

    def get_state(
        self,
        game_id: str,
        viewer_player_id: Optional[str] = None,
        since_version: Optional[int] = None,
    ) -> Union[Dict[str, Any], _NotModified]:
        """Pull path. Returns NOT_MODIFIED when nothing changed since `since_version`."""
        game = self.store.load(game_id)
        if since_version is not None and game.version <= since_version:
            return NOT_MODIFIED
        return sanitize_state(game, viewer_player_id, self.rules)

    def get_recap(self, game_id: str) -> Dict[str, Any]:
        return build_recap(self.store.load(game_id))

    async def subscribe(
        self,
        connection_id: str,
        game_id: str,
        viewer_player_id: Optional[str],
        is_host: bool,
        connection: Any,
    ) -> Subscriber:
        """Register a push connection and send it the current view."""
        if not self.store.exists(game_id):
            raise NotFoundError(GAME_NOT_FOUND, "Game not found")

        subscriber = self.registry.register(
            connection_id, game_id, viewer_player_id, is_host, connection
        )
        await self.registry.send_view(connection_id, self.store.load(game_id))
        return subscriber

    def unsubscribe(self, connection_id: str) -> None:
        self.registry.unregister(connection_id)

    async def resend_state(self, connection_id: str) -> bool:
        subscriber = self.registry.get(connection_id)
        if subscriber is None:
            return False
        self.registry.touch(connection_id)
        return await self.registry.send_view(connection_id, self.store.load(subscriber.game_id))

    async def _broadcast(
        self, game: GameState, action_result: Optional[Dict[str, Any]] = None
    ) -> BroadcastResult:
        # The action is already committed; a fan-out problem must not fail it
        try:
            return await self.registry.broadcast(game, action_result)
        except Exception as e:
            logger.error(f"Failed to broadcast game {game.id}: {e}")
            return BroadcastResult()
