"""
Live push subscriptions and state fan-out.

A SubscriberRegistry is created once per process and handed to whatever
needs it; there is no module-level registry.
"""

import asyncio
import logging
import time
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Set

from fastapi import WebSocketDisconnect

from .models import GameState, Subscriber
from .rules import RuleConfig, default_rules
from .serialization import sanitize_state
from .ws.events import create_state_update_event

logger = logging.getLogger(__name__)

# Errors that mean the remote end is gone rather than something went wrong here
GONE_ERRORS = (WebSocketDisconnect, ConnectionError, RuntimeError)


@dataclass
class BroadcastResult:
    sent: int = 0
    failed: int = 0
    skipped: int = 0


class SubscriberRegistry:
    """Tracks push connections per game and fans out redacted views."""

    def __init__(self, rules: RuleConfig = default_rules, clock: Callable[[], float] = time.time):
        self.rules = rules
        self._clock = clock
        self._subscribers: Dict[str, Subscriber] = {}
        self._connections: Dict[str, Any] = {}
        self._game_index: Dict[str, Set[str]] = defaultdict(set)
        self._locks: Dict[str, asyncio.Lock] = {}

    def register(
        self,
        connection_id: str,
        game_id: str,
        viewer_player_id: Optional[str],
        is_host: bool,
        connection: Any,
    ) -> Subscriber:
        """
        Register a connection. Re-registering an existing connection id
        replaces its record, which is how a reconnecting client is handled.
        """
        if connection_id in self._subscribers:
            self.unregister(connection_id)

        now = self._clock()
        subscriber = Subscriber(
            connection_id=connection_id,
            game_id=game_id,
            viewer_player_id=viewer_player_id,
            is_host=is_host,
            connected_at=now,
            expires_at=now + self.rules.subscriber_ttl,
        )
        self._subscribers[connection_id] = subscriber
        self._connections[connection_id] = connection
        self._locks[connection_id] = asyncio.Lock()
        self._game_index[game_id].add(connection_id)
        logger.info(
            f"Subscriber {connection_id} registered for game {game_id} "
            f"(player={viewer_player_id}, host={is_host})"
        )
        return subscriber

    def unregister(self, connection_id: str) -> Optional[Subscriber]:
        subscriber = self._subscribers.pop(connection_id, None)
        self._connections.pop(connection_id, None)
        self._locks.pop(connection_id, None)
        if subscriber is None:
            return None

        game_connections = self._game_index.get(subscriber.game_id)
        if game_connections is not None:
            game_connections.discard(connection_id)
            if not game_connections:
                del self._game_index[subscriber.game_id]

        logger.info(f"Subscriber {connection_id} unregistered from game {subscriber.game_id}")
        return subscriber

    def get(self, connection_id: str) -> Optional[Subscriber]:
        return self._subscribers.get(connection_id)

    def touch(self, connection_id: str) -> None:
        """Push back the expiry of a connection that showed signs of life."""
        subscriber = self._subscribers.get(connection_id)
        if subscriber is not None:
            subscriber.expires_at = self._clock() + self.rules.subscriber_ttl

    def purge_expired(self) -> List[str]:
        """Drop subscriptions whose endpoint vanished without a close signal."""
        now = self._clock()
        expired = [cid for cid, sub in self._subscribers.items() if sub.expires_at <= now]
        for connection_id in expired:
            logger.warning(f"Subscriber {connection_id} expired")
            self.unregister(connection_id)
        return expired

    def subscribers_for(self, game_id: str) -> List[Subscriber]:
        return [self._subscribers[cid] for cid in self._game_index.get(game_id, ())]

    def __len__(self) -> int:
        return len(self._subscribers)

    async def broadcast(self, game: GameState, action_result: Optional[Dict[str, Any]] = None) -> BroadcastResult:
        """
        Push a redacted view of `game` to every subscriber of it.

        Deliveries run concurrently and independently; a failed delivery
        unregisters that subscriber and never fails the broadcast.
        `action_result` is attached only for subscribers viewing as
        action_result["player_id"].
        """
        self.purge_expired()
        subscribers = self.subscribers_for(game.id)
        result = BroadcastResult()
        if not subscribers:
            return result

        outcomes = await asyncio.gather(
            *(self._deliver(sub, game, action_result) for sub in subscribers)
        )
        for outcome in outcomes:
            if outcome == "sent":
                result.sent += 1
            elif outcome == "failed":
                result.failed += 1
            else:
                result.skipped += 1

        logger.info(
            f"Broadcast for game {game.id} v{game.version}: "
            f"{result.sent} sent, {result.failed} failed, {result.skipped} skipped"
        )
        return result

    async def send_view(self, connection_id: str, game: GameState) -> bool:
        """Send the current view to one subscriber, even if it already has this version."""
        subscriber = self._subscribers.get(connection_id)
        if subscriber is None:
            return False
        return await self._deliver(subscriber, game, None, resend=True) == "sent"

    async def _deliver(
        self,
        subscriber: Subscriber,
        game: GameState,
        action_result: Optional[Dict[str, Any]],
        resend: bool = False,
    ) -> str:
        connection_id = subscriber.connection_id
        lock = self._locks.get(connection_id)
        if lock is None or not self._is_current(subscriber):
            return "failed"

        # Each registration has its own lock; a replaced registration never sends again
        async with lock:
            if not self._is_current(subscriber):
                return "failed"
            connection = self._connections[connection_id]

            # Never let an older snapshot overtake a newer one on the same connection
            last = subscriber.last_delivered_version
            if game.version < last or (game.version == last and not resend):
                return "skipped"

            state = sanitize_state(game, subscriber.viewer_player_id, self.rules)
            attachment = None
            if action_result and subscriber.viewer_player_id is not None \
                    and action_result.get("player_id") == subscriber.viewer_player_id:
                attachment = action_result
            event = create_state_update_event(state, attachment)

            try:
                await connection.send_text(event.model_dump_json())
            except GONE_ERRORS as e:
                logger.warning(f"Stale connection {connection_id}: {e!r}")
                self._drop(subscriber)
                return "failed"
            except Exception as e:
                logger.error(f"Error broadcasting to {connection_id}: {e}")
                self._drop(subscriber)
                return "failed"

            subscriber.last_delivered_version = game.version
            return "sent"

    def _is_current(self, subscriber: Subscriber) -> bool:
        return self._subscribers.get(subscriber.connection_id) is subscriber

    def _drop(self, subscriber: Subscriber) -> None:
        # The connection id may have been re-registered while the send was in flight
        if self._is_current(subscriber):
            self.unregister(subscriber.connection_id)
