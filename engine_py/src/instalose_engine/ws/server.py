"""
FastAPI server for the Insta-Lose game.

REST endpoints carry every request; the websocket is a push channel that
receives redacted state updates.
"""

import logging
import os
import uuid
from typing import Optional

import orjson
from fastapi import FastAPI, Request, Response, WebSocket, WebSocketDisconnect
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from ..errors import GameError, INTERNAL_ERROR, INVALID_REQUEST
from ..serialization import sanitize_state
from ..service import NOT_MODIFIED, GameService
from .events import (
    CreateGameRequest, ErrorCode, JoinGameRequest, PingEvent, RequestStateEvent,
    StartGameRequest, TakeActionRequest, create_error_event, create_pong_event,
    parse_inbound_event,
)

logger = logging.getLogger(__name__)


def create_app(service: Optional[GameService] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        service: Optional GameService (creates a fresh one if not provided)
    """
    service = service or GameService()

    app = FastAPI(
        title="Insta-Lose Game Engine",
        version="1.0.0",
        default_response_class=ORJSONResponse,
    )
    app.state.service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=os.getenv("ALLOWED_ORIGINS", "*").split(","),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(GameError)
    async def game_error_handler(request: Request, exc: GameError):
        logger.warning(f"{request.method} {request.url.path} rejected: {exc}")
        return ORJSONResponse(status_code=exc.status_code, content={"error": exc.to_dict()})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        message = "; ".join(str(err.get("msg")) for err in exc.errors())
        return ORJSONResponse(
            status_code=400,
            content={"error": {"code": INVALID_REQUEST, "message": message}},
        )

    @app.exception_handler(Exception)
    async def internal_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return ORJSONResponse(
            status_code=500,
            content={"error": {"code": INTERNAL_ERROR, "message": "Internal server error"}},
        )

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "subscribers": len(service.registry)}

    @app.post("/games", status_code=201)
    async def create_game(body: CreateGameRequest):
        game_id = service.create_game(body.host_id)
        return {"game_id": game_id}

    @app.post("/games/{game_id}/join")
    async def join_game(game_id: str, body: JoinGameRequest):
        game = await service.join_game(game_id, body.player_id, body.name, body.icon, body.color)
        return {"success": True, "state": sanitize_state(game, body.player_id, service.rules)}

    @app.post("/games/{game_id}/start")
    async def start_game(game_id: str, body: StartGameRequest):
        game = await service.start_game(game_id, body.player_id)
        return {"success": True, "state": sanitize_state(game, body.player_id, service.rules)}

    @app.post("/games/{game_id}/action")
    async def take_action(game_id: str, body: TakeActionRequest):
        response = await service.take_action(
            game_id,
            body.player_id,
            body.action_type.value,
            card_id=body.card_id,
            target_player_id=body.target_player_id,
        )
        return response.to_dict()

    @app.get("/games/{game_id}")
    async def get_game_state(
        game_id: str,
        playerId: Optional[str] = None,
        sinceVersion: Optional[int] = None,
    ):
        view = service.get_state(game_id, playerId, sinceVersion)
        if view is NOT_MODIFIED:
            return Response(status_code=304)
        return view

    @app.get("/games/{game_id}/recap")
    async def get_recap(game_id: str):
        return service.get_recap(game_id)

    @app.websocket("/ws")
    async def websocket_endpoint(
        websocket: WebSocket,
        gameId: str,
        playerId: Optional[str] = None,
        isHost: bool = False,
    ):
        """Push channel. Query: gameId, optional playerId, isHost."""
        await websocket.accept()
        connection_id = uuid.uuid4().hex

        try:
            await service.subscribe(connection_id, gameId, playerId, isHost, websocket)
        except GameError as e:
            await websocket.send_text(create_error_event(e.code, e.message).model_dump_json())
            await websocket.close(code=4404)
            return

        try:
            while True:
                raw_data = await websocket.receive_text()
                service.registry.touch(connection_id)

                try:
                    event = parse_inbound_event(orjson.loads(raw_data))
                except (ValueError, orjson.JSONDecodeError) as e:
                    error_event = create_error_event(ErrorCode.INVALID_EVENT.value, str(e))
                    await websocket.send_text(error_event.model_dump_json())
                    continue

                if isinstance(event, RequestStateEvent):
                    await service.resend_state(connection_id)
                elif isinstance(event, PingEvent):
                    await websocket.send_text(create_pong_event().model_dump_json())

        except WebSocketDisconnect:
            logger.info(f"WebSocket {connection_id} disconnected")
        finally:
            service.unsubscribe(connection_id)

    return app
