"""
Request and event models and validation.
"""

import time
from enum import Enum
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


class EventType(str, Enum):
    """Inbound websocket event types."""
    REQUEST_STATE = "request_state"
    PING = "ping"


class OutboundEventType(str, Enum):
    """Outbound websocket event types."""
    GAME_STATE_UPDATE = "game_state_update"
    ERROR = "error"
    PONG = "pong"


class ErrorCode(str, Enum):
    """Error codes for websocket clients."""
    INVALID_EVENT = "INVALID_EVENT"


# REST request bodies. Accept camelCase from browsers as well as snake_case.
class RequestModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class CreateGameRequest(RequestModel):
    host_id: str = Field(..., alias="hostId", min_length=1, max_length=100)


class JoinGameRequest(RequestModel):
    player_id: str = Field(..., alias="playerId", min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=30)
    icon: Optional[str] = Field(default=None, max_length=30)
    color: Optional[str] = Field(default=None, max_length=30)


class StartGameRequest(RequestModel):
    player_id: str = Field(..., alias="playerId", min_length=1, max_length=100)


class ActionType(str, Enum):
    DRAW = "draw"
    PLAY_CARD = "playCard"


class TakeActionRequest(RequestModel):
    player_id: str = Field(..., alias="playerId", min_length=1, max_length=100)
    action_type: ActionType = Field(..., alias="actionType")
    card_id: Optional[str] = Field(default=None, alias="cardId")
    target_player_id: Optional[str] = Field(default=None, alias="targetPlayerId")

    @model_validator(mode="after")
    def require_card_for_play(self):
        if self.action_type == ActionType.PLAY_CARD and not self.card_id:
            raise ValueError("cardId is required for playCard")
        return self


# Inbound websocket events
class BaseEvent(BaseModel):
    """Base event model."""
    type: EventType


class RequestStateEvent(BaseEvent):
    """Request full state event."""
    type: EventType = EventType.REQUEST_STATE


class PingEvent(BaseEvent):
    type: EventType = EventType.PING


InboundEvent = Union[RequestStateEvent, PingEvent]


# Outbound websocket events
class StateUpdateEvent(BaseModel):
    """Redacted game view pushed to one subscriber."""
    type: OutboundEventType = OutboundEventType.GAME_STATE_UPDATE
    state: Dict[str, Any]
    action_result: Optional[Dict[str, Any]] = None
    timestamp: float


class ErrorEvent(BaseModel):
    """Error event."""
    type: OutboundEventType = OutboundEventType.ERROR
    code: str
    message: str
    timestamp: float


class PongEvent(BaseModel):
    type: OutboundEventType = OutboundEventType.PONG
    timestamp: float


OutboundEvent = Union[StateUpdateEvent, ErrorEvent, PongEvent]


def parse_inbound_event(data: Dict[str, Any]) -> InboundEvent:
    """
    Parse raw event data into appropriate event model.

    Raises:
        ValueError: If event type is invalid or data is malformed
    """
    if not isinstance(data, dict):
        raise ValueError("Event must be a JSON object")

    event_type = data.get("type")

    if not event_type:
        raise ValueError("Missing event type")

    try:
        event_type = EventType(event_type)
    except ValueError:
        raise ValueError(
            f"Invalid event type: {event_type}. Use the REST API for game actions."
        )

    event_map = {
        EventType.REQUEST_STATE: RequestStateEvent,
        EventType.PING: PingEvent,
    }

    try:
        return event_map[event_type](**data)
    except Exception as e:
        raise ValueError(f"Invalid event data: {str(e)}")


def create_error_event(code: str, message: str) -> ErrorEvent:
    """Create an error event."""
    return ErrorEvent(code=code, message=message, timestamp=time.time())


def create_state_update_event(
    state: Dict[str, Any],
    action_result: Optional[Dict[str, Any]] = None,
) -> StateUpdateEvent:
    return StateUpdateEvent(state=state, action_result=action_result, timestamp=time.time())


def create_pong_event() -> PongEvent:
    return PongEvent(timestamp=time.time())
